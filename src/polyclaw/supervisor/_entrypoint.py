"""Container boot sequence.

Runs as process 1 of the gateway container: prepares the state directory,
provisions skills, then hands control to the supervisor for the lifetime
of the container.
"""

import signal
from typing import TYPE_CHECKING

import anyio
import anyio.abc

from polyclaw.maintenance import run_maintenance
from polyclaw.skills import setup_skills
from polyclaw.utils import create_setup_logger, create_supervisor_logger

from ._models import primary_service
from ._store import load_descriptors
from ._supervisor import TERMINATION_SIGNALS, Supervisor

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from polyclaw.config import EntrypointConfig


async def prepare(
    config: "EntrypointConfig",
    *,
    logger: "FilteringBoundLogger",
    setup_logger: "FilteringBoundLogger",
) -> Supervisor:
    """Run the boot steps that precede supervision.

    Order: state maintenance, skill provisioning, the staggered startup
    delay, then registration of the gateway followed by every declared
    service in file order. No step here can prevent the gateway from
    being registered.

    Args:
        config: Entrypoint configuration.
        logger: Supervisor logger.
        setup_logger: Logger for maintenance and skill provisioning.

    Returns:
        A supervisor with every service registered, not yet running.
    """
    _ = run_maintenance(config, logger=setup_logger)

    try:
        _ = setup_skills(config, logger=setup_logger)
    except OSError as e:
        setup_logger.error(
            "Skill setup failed, continuing without skills", error=str(e)
        )

    if config.startup_delay > 0:
        setup_logger.info(f"Waiting {config.startup_delay}s (staggered startup)")
        await anyio.sleep(config.startup_delay)

    supervisor = Supervisor(
        logger=logger,
        identity=config.identity,
        poll_interval=config.condition_poll_interval,
    )
    _ = supervisor.register(primary_service())

    for descriptor in load_descriptors(config.services_file, logger=logger):
        _ = supervisor.register(descriptor)

    return supervisor


async def _exit_on_signal(
    scope: anyio.CancelScope,
    logger: "FilteringBoundLogger",
    *,
    task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
) -> None:
    """Cancel the boot on the first SIGTERM or SIGINT."""
    with anyio.open_signal_receiver(*TERMINATION_SIGNALS) as signals:
        task_status.started()
        async for signum in signals:
            logger.info(
                "Received termination signal, exiting",
                signal=signal.Signals(signum).name,
            )
            scope.cancel()
            return


async def boot(
    config: "EntrypointConfig",
    *,
    logger: "FilteringBoundLogger | None" = None,
    setup_logger: "FilteringBoundLogger | None" = None,
    install_signal_handlers: bool = True,
) -> Supervisor | None:
    """Boot the container and supervise services until terminated.

    SIGTERM and SIGINT are handled from the first boot step on: a signal
    during maintenance or the startup delay ends the boot cleanly.

    Args:
        config: Entrypoint configuration.
        logger: Supervisor logger. Created from the config if not given.
        setup_logger: Setup logger. Created from the config if not given.
        install_signal_handlers: Whether SIGTERM/SIGINT end the boot.

    Returns:
        The supervisor after it has stopped, or None if a termination
        signal arrived before supervision started.
    """
    if logger is None:
        logger = create_supervisor_logger(
            level=config.log_level.value, log_format=config.log_format.value
        )
    if setup_logger is None:
        setup_logger = create_setup_logger(
            level=config.log_level.value, log_format=config.log_format.value
        )

    supervisor: Supervisor | None = None
    async with anyio.create_task_group() as tg:
        if install_signal_handlers:
            await tg.start(_exit_on_signal, tg.cancel_scope, logger, name="signals")

        supervisor = await prepare(config, logger=logger, setup_logger=setup_logger)
        logger.info(f"Supervising {len(supervisor.launchers)} service(s)")
        await supervisor.run(install_signal_handlers=False)
        tg.cancel_scope.cancel()

    return supervisor
