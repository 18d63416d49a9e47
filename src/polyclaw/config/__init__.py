"""polyclaw entrypoint configuration.

This module provides the public API for the entrypoint configuration:
the container layout, the unprivileged service identity and the boot
tuning read from the environment.

Example:
    >>> from polyclaw.config import load_config
    >>> config = load_config({"STARTUP_DELAY": "5"})
    >>> config.startup_delay
    5
"""

from polyclaw.exceptions import ConfigError, ConfigLoadError

from ._load import (
    DEBUG_ENV,
    LOG_FORMAT_ENV,
    LOG_LEVEL_ENV,
    STARTUP_DELAY_ENV,
    load_config,
)
from ._models import (
    DEFAULT_APP_DIR,
    DEFAULT_BUNDLED_SKILLS_DIR,
    DEFAULT_CONDITION_POLL_INTERVAL,
    DEFAULT_CUSTOM_SKILLS_DIR,
    DEFAULT_STATE_DIR,
    SERVICE_GID,
    SERVICE_HOME,
    SERVICE_UID,
    EntrypointConfig,
    LogFormat,
    LogLevel,
    ServiceIdentity,
)

__all__ = [
    "DEBUG_ENV",
    "DEFAULT_APP_DIR",
    "DEFAULT_BUNDLED_SKILLS_DIR",
    "DEFAULT_CONDITION_POLL_INTERVAL",
    "DEFAULT_CUSTOM_SKILLS_DIR",
    "DEFAULT_STATE_DIR",
    "LOG_FORMAT_ENV",
    "LOG_LEVEL_ENV",
    "SERVICE_GID",
    "SERVICE_HOME",
    "SERVICE_UID",
    "STARTUP_DELAY_ENV",
    "ConfigError",
    "ConfigLoadError",
    "EntrypointConfig",
    "LogFormat",
    "LogLevel",
    "ServiceIdentity",
    "load_config",
]
