"""Allow-list validation of privileged pre-commands.

Pre-commands come from services.json, which less-trusted tooling may edit,
but they run as root. They are therefore matched against a strict
allow-list of known-safe shapes instead of being screened for known-bad
constructs. The only shape currently accepted is a recursive, world
read-write chmod of a path under the service user's home directory, for
fixing bind-mount permissions the unprivileged user cannot change itself:

    chmod -R a+rw /home/node/<path> [2>/dev/null || true]
"""

import re

from polyclaw.config import SERVICE_HOME

# Path characters allowed after the home prefix. Excludes whitespace, quotes,
# globbing, redirection and every shell metacharacter.
_PATH_CHARS = r"[\w.@%+=:,/-]+"

_HOME_PREFIX = re.escape(f"{SERVICE_HOME}/")

_ALLOWED_PRE_COMMAND = re.compile(
    rf"chmod[ \t]+-R[ \t]+a\+rw[ \t]+{_HOME_PREFIX}(?P<path>{_PATH_CHARS})"
    r"(?:[ \t]+2>/dev/null[ \t]+\|\|[ \t]+true)?",
    re.ASCII,
)


def is_pre_command_safe(command: str) -> bool:
    """Check whether a pre-command may be executed as root.

    Args:
        command: The raw pre-command string from the service descriptor.

    Returns:
        True if the command matches the allow-list exactly, False otherwise.
    """
    match = _ALLOWED_PRE_COMMAND.fullmatch(command.strip())
    if match is None:
        return False

    # The target must stay under the home directory
    return ".." not in match.group("path").split("/")
