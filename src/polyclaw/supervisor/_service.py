"""Service launcher driving one supervised service.

This module provides the ServiceLauncher class that owns the
condition-poll / pre-command / spawn / restart loop of a single service.
Each launcher is independent: it shares no state with other launchers
and owns only its own child process.
"""

import os
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc

from polyclaw.config import DEFAULT_CONDITION_POLL_INTERVAL
from polyclaw.exceptions import ServiceStartError

from ._condition import is_ready
from ._models import ExitStatus, ServiceState, ServiceStatus
from ._security import is_pre_command_safe

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from polyclaw.config import ServiceIdentity

    from ._models import ServiceDescriptor

SHELL = "/bin/sh"

# While waiting on a condition, log on the first check and every Nth after
CONDITION_LOG_EVERY = 10


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    import pendulum  # noqa: PLC0415

    return pendulum.now("UTC").to_iso8601_string()


@final
class ServiceLauncher:
    """Supervises one service for the lifetime of the supervisor.

    The lifecycle is an explicit loop:

        pending_start_delay -> waiting_on_condition -> pre_command -> running
            -> exited_clean (terminal)
            -> exited_nonzero -> (restart delay) -> waiting_on_condition

    The start delay applies to the first attempt only. The condition is
    re-checked before every attempt. A clean exit (code 0) ends supervision
    of the service; anything else is restarted after the fixed restart
    delay, with no exponential growth.

    Attributes:
        descriptor: Immutable declaration of the service.
        status: Mutable runtime status.
    """

    __slots__ = (
        "_identity",
        "_logger",
        "_poll_interval",
        "_process",
        "descriptor",
        "status",
    )

    def __init__(
        self,
        descriptor: "ServiceDescriptor",
        *,
        logger: "FilteringBoundLogger",
        identity: "ServiceIdentity | None" = None,
        poll_interval: float = DEFAULT_CONDITION_POLL_INTERVAL,
    ) -> None:
        """Initialize the launcher.

        Args:
            descriptor: The service to supervise.
            logger: Logger for lifecycle records.
            identity: Unprivileged identity to spawn the service as. If None,
                the service inherits the supervisor's own identity.
            poll_interval: Seconds between condition checks.
        """
        self.descriptor = descriptor
        self.status = ServiceStatus()
        self._logger = logger.bind(service=descriptor.name)
        self._identity = identity
        self._poll_interval = poll_interval
        self._process: anyio.abc.Process | None = None

    @property
    def name(self) -> str:
        """Return the name of this service."""
        return self.descriptor.name

    @property
    def state(self) -> ServiceState:
        """Return the current state of this service."""
        return self.status.state

    @property
    def pid(self) -> int | None:
        """Return the process ID if running, None otherwise."""
        return self.status.pid

    async def run(self) -> None:
        """Run the service until it exits cleanly.

        Never raises for service failures: spawn errors and crashes are
        logged and retried. Returns only after a clean exit; otherwise runs
        until cancelled.
        """
        await self._wait_start_delay()

        while True:
            await self._wait_for_condition()
            await self._run_pre_command()

            exit_status = await self._run_once()
            self.status.last_exit = exit_status

            if exit_status.clean:
                self.status.state = ServiceState.EXITED_CLEAN
                self._logger.info(
                    "Service exited cleanly (code=0), not restarting",
                    attempt=self.status.attempt,
                )
                return

            self.status.state = ServiceState.EXITED_NONZERO
            delay = self.descriptor.restart_delay
            self._logger.warning(
                f"Service exited ({exit_status.describe()}), restarting in {delay:g}s",
                exit_code=exit_status.code,
                signal=exit_status.signal,
                attempt=self.status.attempt,
            )
            await anyio.sleep(delay)

    async def _wait_start_delay(self) -> None:
        delay = self.descriptor.start_delay
        if delay <= 0:
            return

        self.status.state = ServiceState.PENDING_START_DELAY
        self._logger.info(f"Delaying initial start by {delay:g}s")
        await anyio.sleep(delay)

    async def _wait_for_condition(self) -> None:
        """Poll the start condition until it is met."""
        self.status.state = ServiceState.WAITING_ON_CONDITION
        self.status.condition_checks = 0
        condition = self.descriptor.condition

        while True:
            ready = is_ready(condition, logger=self._logger, service=self.name)
            self.status.condition_checks += 1
            if ready:
                return

            checks = self.status.condition_checks
            if checks == 1 or checks % CONDITION_LOG_EVERY == 0:
                self._logger.info(
                    "Waiting for start condition",
                    condition=condition,
                    checks=checks,
                )
            await anyio.sleep(self._poll_interval)

    async def _run_pre_command(self) -> None:
        """Run the privileged pre-command, if any, and wait for it.

        The pre-command is best-effort setup: its exit code does not affect
        the start attempt. A pre-command that fails the allow-list is never
        executed, but the service still starts.
        """
        pre_command = self.descriptor.pre_command
        if not pre_command:
            return

        self.status.state = ServiceState.PRE_COMMAND

        if not is_pre_command_safe(pre_command):
            self._logger.error(
                "BLOCKED: unsafe preCommand, not running it",
                pre_command=pre_command,
            )
            return

        try:
            result = await anyio.run_process(
                (SHELL, "-c", pre_command),
                stdout=None,
                stderr=None,
                check=False,
            )
        except OSError as e:
            self._logger.error(
                "Failed to run preCommand",
                pre_command=pre_command,
                error=str(e),
            )
            return

        if result.returncode != 0:
            self._logger.warning(
                "preCommand failed, starting service anyway",
                pre_command=pre_command,
                exit_code=result.returncode,
            )
        else:
            self._logger.debug("preCommand completed", pre_command=pre_command)

    async def _spawn(self) -> anyio.abc.Process:
        """Spawn the service command through the shell.

        Raises:
            ServiceStartError: If the process cannot be created.
        """
        kwargs: dict[str, object] = {}
        env: dict[str, str] | None = None
        if self._identity is not None:
            env = {**os.environ, "HOME": str(self._identity.home)}
            kwargs = {"user": self._identity.uid, "group": self._identity.gid}
            # Dropping supplementary groups needs CAP_SETGID
            if os.geteuid() == 0:
                kwargs["extra_groups"] = []

        try:
            return await anyio.open_process(
                (SHELL, "-c", self.descriptor.command),
                stdin=None,
                stdout=None,
                stderr=None,
                env=env,
                **kwargs,  # pyright: ignore[reportArgumentType]
            )
        except OSError as e:
            msg = f"Failed to start service '{self.name}': {e}"
            raise ServiceStartError(msg, service_name=self.name, cause=e) from e

    async def _run_once(self) -> ExitStatus:
        """Spawn the service and wait for it to exit.

        Cancellation leaves the child process alone: on supervisor
        termination the container runtime reaps the process tree.
        """
        self.status.attempt += 1

        try:
            process = await self._spawn()
        except ServiceStartError as e:
            self._logger.error(
                "Failed to start service",
                attempt=self.status.attempt,
                error=str(e.cause or e),
            )
            return ExitStatus(error=str(e.cause or e))

        self._process = process
        self.status.pid = process.pid
        self.status.state = ServiceState.RUNNING
        self.status.started_at = _get_timestamp()
        self._logger.info(
            "Service started",
            pid=process.pid,
            attempt=self.status.attempt,
        )

        try:
            returncode = await process.wait()
        finally:
            self._process = None
            self.status.pid = None

        self.status.stopped_at = _get_timestamp()
        return ExitStatus.from_returncode(returncode)
