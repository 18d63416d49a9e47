"""Supervisor coordinating all service launchers.

This module provides the Supervisor class that owns the explicit
collection of ServiceLaunchers and runs them concurrently using anyio
for structured concurrency.
"""

import signal
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc

from polyclaw.config import DEFAULT_CONDITION_POLL_INTERVAL

from ._service import ServiceLauncher

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from polyclaw.config import ServiceIdentity

    from ._models import ServiceDescriptor

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@final
class Supervisor:
    """Runs every registered service in its own task.

    Launchers share no state; each one drives its own service's lifecycle.
    The supervisor itself only starts them and waits for a termination
    signal. On SIGTERM or SIGINT it stops all launcher tasks and returns
    without signalling the children: in a container, the runtime reaps the
    whole process tree once process 1 exits.
    """

    __slots__ = (
        "_identity",
        "_launchers",
        "_logger",
        "_poll_interval",
        "_received_signal",
        "_shutdown_event",
        "_task_group",
    )

    def __init__(
        self,
        *,
        logger: "FilteringBoundLogger",
        identity: "ServiceIdentity | None" = None,
        poll_interval: float = DEFAULT_CONDITION_POLL_INTERVAL,
    ) -> None:
        """Initialize the supervisor.

        Args:
            logger: Logger for supervisor and service lifecycle records.
            identity: Identity services are spawned as. None keeps the
                supervisor's own identity.
            poll_interval: Seconds between condition checks of waiting services.
        """
        self._logger = logger
        self._identity = identity
        self._poll_interval = poll_interval
        self._launchers: list[ServiceLauncher] = []
        self._received_signal: signal.Signals | None = None
        self._shutdown_event: anyio.Event | None = None
        self._task_group: anyio.abc.TaskGroup | None = None

    @property
    def launchers(self) -> tuple[ServiceLauncher, ...]:
        """Return the registered launchers in registration order."""
        return tuple(self._launchers)

    @property
    def received_signal(self) -> signal.Signals | None:
        """Return the termination signal that stopped the supervisor, if any."""
        return self._received_signal

    def register(self, descriptor: "ServiceDescriptor") -> ServiceLauncher:
        """Register a service for supervision.

        Services registered while the supervisor is running start
        immediately; otherwise they start when run() is called.

        Args:
            descriptor: The service to supervise.

        Returns:
            The launcher created for the service.
        """
        if any(launcher.name == descriptor.name for launcher in self._launchers):
            self._logger.warning(
                "Service name registered twice, log lines will be ambiguous",
                service=descriptor.name,
            )

        launcher = ServiceLauncher(
            descriptor,
            logger=self._logger,
            identity=self._identity,
            poll_interval=self._poll_interval,
        )
        self._launchers.append(launcher)
        self._logger.info("Registered service", service=descriptor.name)

        if self._task_group is not None:
            self._task_group.start_soon(
                launcher.run, name=f"service:{descriptor.name}"
            )
        return launcher

    async def _handle_signals(self) -> None:
        with anyio.open_signal_receiver(*TERMINATION_SIGNALS) as signals:
            async for signum in signals:
                self._received_signal = signal.Signals(signum)
                self._logger.info(
                    "Received termination signal, exiting",
                    signal=self._received_signal.name,
                )
                await self.shutdown()
                break

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """Run all registered services until shutdown.

        Blocks until a termination signal arrives or shutdown() is called.
        Services that exit cleanly stay stopped; the supervisor keeps
        running regardless of the health of any single service.

        Args:
            install_signal_handlers: Whether to exit on SIGTERM/SIGINT.
        """
        self._shutdown_event = anyio.Event()

        async with anyio.create_task_group() as tg:
            self._task_group = tg

            if install_signal_handlers:
                tg.start_soon(self._handle_signals, name="signals")

            for launcher in self._launchers:
                tg.start_soon(launcher.run, name=f"service:{launcher.name}")

            await self._shutdown_event.wait()

            # Stop every launcher loop; children are left to the runtime
            tg.cancel_scope.cancel()

        self._task_group = None

    async def shutdown(self) -> None:
        """Trigger shutdown of the supervisor."""
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    def get_status(self) -> list[dict[str, object]]:
        """Get status summary for all services.

        Returns:
            One status dictionary per registered service, in registration order.
        """
        statuses: list[dict[str, object]] = []
        for launcher in self._launchers:
            last_exit = launcher.status.last_exit
            statuses.append(
                {
                    "name": launcher.name,
                    "state": launcher.status.state.value,
                    "pid": launcher.status.pid,
                    "attempt": launcher.status.attempt,
                    "last_exit_code": last_exit.code if last_exit else None,
                    "last_signal": last_exit.signal if last_exit else None,
                    "started_at": launcher.status.started_at,
                    "stopped_at": launcher.status.stopped_at,
                }
            )
        return statuses
