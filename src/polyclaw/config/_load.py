import os
from collections.abc import Mapping

from ._models import EntrypointConfig, LogFormat, LogLevel

STARTUP_DELAY_ENV = "STARTUP_DELAY"
LOG_LEVEL_ENV = "POLYCLAW_LOG_LEVEL"
DEBUG_ENV = "POLYCLAW_DEBUG"
LOG_FORMAT_ENV = "POLYCLAW_LOG_FORMAT"


def load_config(
    environ: Mapping[str, str] | None = None,
    **overrides: object,
) -> EntrypointConfig:
    """Build the entrypoint configuration from the process environment.

    Environment variables:
    - STARTUP_DELAY: seconds to wait before registering services. Only the
      leading integer is read ("30s" is 30); absent, negative or
      non-numeric values mean no delay.
    - POLYCLAW_DEBUG: if set to any non-empty value, log at debug level.
    - POLYCLAW_LOG_LEVEL: debug, info, warning or error (default info).
    - POLYCLAW_LOG_FORMAT: text (default) or json.

    Unrecognized level or format values fall back to the defaults instead
    of failing, so a typo in the container environment never prevents the
    gateway from starting.

    Args:
        environ: Environment mapping to read. Defaults to os.environ.
        **overrides: Field values that take precedence over the environment.

    Returns:
        The resolved EntrypointConfig.
    """
    env = os.environ if environ is None else environ

    values: dict[str, object] = {
        "startup_delay": env.get(STARTUP_DELAY_ENV, "0"),
        "log_level": _parse_log_level(env),
        "log_format": _parse_log_format(env),
    }
    values.update(overrides)
    return EntrypointConfig.model_validate(values)


def _parse_log_level(env: Mapping[str, str]) -> LogLevel:
    if env.get(DEBUG_ENV):
        return LogLevel.DEBUG
    try:
        return LogLevel(env.get(LOG_LEVEL_ENV, "info").strip().lower())
    except ValueError:
        return LogLevel.INFO


def _parse_log_format(env: Mapping[str, str]) -> LogFormat:
    try:
        return LogFormat(env.get(LOG_FORMAT_ENV, "text").strip().lower())
    except ValueError:
        return LogFormat.TEXT
