"""Entrypoint configuration model.

This module provides the EntrypointConfig Pydantic model describing where
the container keeps its state, which identity services run under, and
how the boot sequence is tuned.
"""

import re
from enum import StrEnum
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Leading integer of a delay string: "10s" and "2.5" read as 10 and 2
_LEADING_INT_PATTERN = re.compile(r"\s*([+-]?\d+)", re.ASCII)

# Container layout
DEFAULT_STATE_DIR = Path("/home/node/.openclaw")
DEFAULT_APP_DIR = Path("/app")
DEFAULT_BUNDLED_SKILLS_DIR = Path("/app/skills")
DEFAULT_CUSTOM_SKILLS_DIR = Path("/skills-custom")

# Unprivileged identity every service runs under
SERVICE_UID = 1000
SERVICE_GID = 1000
SERVICE_HOME = Path("/home/node")

# Seconds between condition checks of a waiting service
DEFAULT_CONDITION_POLL_INTERVAL = 30.0


class LogLevel(StrEnum):
    """Log level threshold values."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class ServiceIdentity(BaseModel):
    """Unprivileged user every supervised service is spawned as.

    Attributes:
        uid: Numeric user id.
        gid: Numeric group id.
        home: Home directory injected as HOME into the service environment.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    uid: int = SERVICE_UID
    gid: int = SERVICE_GID
    home: Path = SERVICE_HOME


class EntrypointConfig(BaseModel):
    """Configuration for the container entrypoint.

    Attributes:
        state_dir: Main state directory of the gateway (~/.openclaw).
        app_dir: Directory the gateway is installed in.
        bundled_skills_dir: Skills shipped with the image.
        custom_skills_dir: Skills bind-mounted by the operator.
        services_path: Override for the service descriptor file location.
        identity: Identity services run under.
        startup_delay: Seconds to wait before registering any service.
        condition_poll_interval: Seconds between condition checks.
        log_level: Log level threshold.
        log_format: Log output format.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    state_dir: Path = DEFAULT_STATE_DIR
    app_dir: Path = DEFAULT_APP_DIR
    bundled_skills_dir: Path = DEFAULT_BUNDLED_SKILLS_DIR
    custom_skills_dir: Path = DEFAULT_CUSTOM_SKILLS_DIR
    services_path: Path | None = None
    identity: ServiceIdentity = Field(default_factory=ServiceIdentity)
    startup_delay: int = 0
    condition_poll_interval: float = Field(
        default=DEFAULT_CONDITION_POLL_INTERVAL, gt=0
    )
    log_level: LogLevel = LogLevel.INFO
    log_format: LogFormat = LogFormat.TEXT

    @field_validator("startup_delay", mode="before")
    @classmethod
    def _coerce_startup_delay(cls, value: object) -> int:
        """Take the leading integer of a delay; anything else is zero."""
        if isinstance(value, bool):
            return 0
        if isinstance(value, int):
            return max(value, 0)
        if isinstance(value, str):
            match = _LEADING_INT_PATTERN.match(value)
            return max(int(match.group(1)), 0) if match else 0
        return 0

    @property
    def services_file(self) -> Path:
        """Path to the JSON service descriptor list."""
        if self.services_path is not None:
            return self.services_path
        return self.state_dir / "services.json"

    @property
    def workspace_dir(self) -> Path:
        """Path to the agent workspace directory."""
        return self.state_dir / "workspace"

    @property
    def skills_dir(self) -> Path:
        """Path to the managed skills directory shared by all agents."""
        return self.state_dir / "skills"

    @property
    def skill_bin_dir(self) -> Path:
        """Path to the user-writable directory skill CLIs are linked into."""
        return self.identity.home / ".local" / "bin"

    @property
    def credentials_dir(self) -> Path:
        """Path to the credentials directory."""
        return self.state_dir / "credentials"

    @property
    def wacli_lock_file(self) -> Path:
        """Path to the advisory lock file of the WhatsApp CLI."""
        return self.state_dir / "wacli" / "LOCK"
