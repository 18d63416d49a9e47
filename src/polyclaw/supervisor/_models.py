"""Data models for the supervisor system.

This module defines the core data types for service supervision:
- ServiceDescriptor: Immutable declaration of a supervised service
- ServiceState: Lifecycle states of a running service instance
- ServiceStatus: Mutable runtime status of a running service instance
- ExitStatus: How a service process terminated
"""

import signal
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_RESTART_DELAY = 5.0
DEFAULT_START_DELAY = 0.0

PRIMARY_SERVICE_NAME = "gateway"
PRIMARY_SERVICE_COMMAND = "cd /app && node dist/index.js gateway"
PRIMARY_RESTART_DELAY = 1.0


class ServiceDescriptor(BaseModel):
    """Declaration of a supervised service.

    Descriptors are immutable for the lifetime of the supervisor; changing
    the service list requires restarting the container. Field names follow
    the camelCase keys of services.json.

    Attributes:
        name: Human-readable identifier used to correlate log lines.
        command: Shell command line, executed through /bin/sh -c.
        condition: Optional precondition, currently only ``file:<path>``.
        pre_command: Optional shell command run as root before every start.
        restart_delay: Seconds to wait before restarting after a non-clean exit.
        start_delay: Seconds to wait before the first start attempt.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, extra="ignore", populate_by_name=True
    )

    name: str = Field(min_length=1)
    command: str = Field(min_length=1)
    condition: str | None = None
    pre_command: str | None = Field(default=None, alias="preCommand")
    restart_delay: float = Field(
        default=DEFAULT_RESTART_DELAY,
        ge=0,
        validation_alias=AliasChoices(
            "restartDelay", "restartDelaySeconds", "restart_delay"
        ),
    )
    start_delay: float = Field(
        default=DEFAULT_START_DELAY,
        ge=0,
        validation_alias=AliasChoices("startDelay", "startDelaySeconds", "start_delay"),
    )


def primary_service() -> ServiceDescriptor:
    """Return the descriptor of the always-present gateway service."""
    return ServiceDescriptor(
        name=PRIMARY_SERVICE_NAME,
        command=PRIMARY_SERVICE_COMMAND,
        restart_delay=PRIMARY_RESTART_DELAY,
    )


class ServiceState(StrEnum):
    """Lifecycle states of a running service instance.

    - PENDING_START_DELAY: Waiting out the start delay before the first attempt
    - WAITING_ON_CONDITION: Polling the start condition
    - PRE_COMMAND: Running the privileged pre-command
    - RUNNING: Service process is alive
    - EXITED_CLEAN: Exited with code 0, never restarted (terminal)
    - EXITED_NONZERO: Crashed or was signalled, waiting to restart
    """

    PENDING_START_DELAY = "pending_start_delay"
    WAITING_ON_CONDITION = "waiting_on_condition"
    PRE_COMMAND = "pre_command"
    RUNNING = "running"
    EXITED_CLEAN = "exited_clean"
    EXITED_NONZERO = "exited_nonzero"


@dataclass(frozen=True, slots=True)
class ExitStatus:
    """How a service process terminated.

    Attributes:
        code: Exit code, or None if the process was killed by a signal or
            never started.
        signal: Name of the terminating signal, if any.
        error: Spawn error message if the process never started.
    """

    code: int | None = None
    signal: str | None = None
    error: str | None = None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        """Build an exit status from a subprocess return code.

        Negative return codes mean the process was killed by a signal.
        """
        if returncode < 0:
            try:
                name = signal.Signals(-returncode).name
            except ValueError:
                name = f"signal {-returncode}"
            return cls(signal=name)
        return cls(code=returncode)

    @property
    def clean(self) -> bool:
        """Whether the process completed successfully (exit code exactly 0)."""
        return self.code == 0

    def describe(self) -> str:
        """Return a short description for log lines."""
        if self.error is not None:
            return f"spawn failed: {self.error}"
        if self.signal is not None:
            return self.signal
        return f"code={self.code}"


@dataclass(slots=True)
class ServiceStatus:
    """Mutable runtime status of a running service instance.

    Attributes:
        state: Current lifecycle state.
        attempt: Number of start attempts so far (diagnostics only).
        condition_checks: Condition evaluations since the last start attempt.
        pid: Process ID of the running service, if any.
        last_exit: How the previous process terminated.
        started_at: ISO 8601 timestamp of the last spawn.
        stopped_at: ISO 8601 timestamp of the last exit.
    """

    state: ServiceState = ServiceState.PENDING_START_DELAY
    attempt: int = 0
    condition_checks: int = 0
    pid: int | None = None
    last_exit: ExitStatus | None = None
    started_at: str | None = None
    stopped_at: str | None = None
