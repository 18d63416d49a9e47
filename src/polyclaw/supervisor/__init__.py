"""Process supervision for the gateway container.

This package provides the supervisor that keeps the gateway and every
service declared in services.json running:

- ServiceDescriptor: Immutable declaration of a supervised service
- ServiceLauncher: Condition / pre-command / spawn / restart loop of one service
- Supervisor: Runs all launchers concurrently until a termination signal
- boot: Full container boot sequence ending in supervision

Example:
    >>> import anyio
    >>> from polyclaw.config import load_config
    >>> from polyclaw.supervisor import boot
    >>> anyio.run(boot, load_config())  # doctest: +SKIP
"""

from ._condition import FILE_CONDITION_PREFIX, FileCondition, is_ready, parse_condition
from ._entrypoint import boot, prepare
from ._models import (
    DEFAULT_RESTART_DELAY,
    DEFAULT_START_DELAY,
    PRIMARY_RESTART_DELAY,
    PRIMARY_SERVICE_COMMAND,
    PRIMARY_SERVICE_NAME,
    ExitStatus,
    ServiceDescriptor,
    ServiceState,
    ServiceStatus,
    primary_service,
)
from ._security import is_pre_command_safe
from ._service import CONDITION_LOG_EVERY, SHELL, ServiceLauncher
from ._store import load_descriptors, parse_descriptors, read_descriptor_file
from ._supervisor import TERMINATION_SIGNALS, Supervisor

__all__ = [
    "CONDITION_LOG_EVERY",
    "DEFAULT_RESTART_DELAY",
    "DEFAULT_START_DELAY",
    "FILE_CONDITION_PREFIX",
    "PRIMARY_RESTART_DELAY",
    "PRIMARY_SERVICE_COMMAND",
    "PRIMARY_SERVICE_NAME",
    "SHELL",
    "TERMINATION_SIGNALS",
    "ExitStatus",
    "FileCondition",
    "ServiceDescriptor",
    "ServiceLauncher",
    "ServiceState",
    "ServiceStatus",
    "Supervisor",
    "boot",
    "is_pre_command_safe",
    "is_ready",
    "load_descriptors",
    "parse_condition",
    "parse_descriptors",
    "prepare",
    "primary_service",
    "read_descriptor_file",
]
