"""One-time fixups applied to the gateway state at container start.

Every step is idempotent and independently fault tolerant: a failing step
is logged and recorded, and the remaining steps still run.
"""

import stat
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from polyclaw.config import EntrypointConfig

LEGACY_ALLOW_FROM = "telegram-allowFrom.json"
CURRENT_ALLOW_FROM = "telegram-default-allowFrom.json"

STATE_DIR_MODE = 0o700


@dataclass(frozen=True, slots=True)
class MaintenanceResult:
    """Outcome of one maintenance step.

    Attributes:
        step: Step identifier.
        changed: Whether the step modified the filesystem.
        error: Error message if the step failed.
    """

    step: str
    changed: bool = False
    error: str | None = None


def migrate_legacy_state(
    config: "EntrypointConfig", logger: "FilteringBoundLogger"
) -> bool:
    """Rename the legacy Telegram pairing allow-list to its current name.

    Only renames when the legacy file exists and the current file does not,
    so existing current-format state is never overwritten.
    """
    legacy = config.credentials_dir / LEGACY_ALLOW_FROM
    current = config.credentials_dir / CURRENT_ALLOW_FROM
    if not legacy.exists() or current.exists():
        return False

    _ = legacy.rename(current)
    logger.info(f"Migrated {LEGACY_ALLOW_FROM} to {CURRENT_ALLOW_FROM}")
    return True


def remove_stale_locks(
    config: "EntrypointConfig", logger: "FilteringBoundLogger"
) -> bool:
    """Delete the WhatsApp CLI lock left behind by an ungraceful shutdown."""
    lock_file = config.wacli_lock_file
    if not lock_file.exists():
        return False

    lock_file.unlink()
    logger.info("Removed stale wacli LOCK", path=str(lock_file))
    return True


def tighten_permissions(
    config: "EntrypointConfig", logger: "FilteringBoundLogger"
) -> bool:
    """Restrict the state directory to its owner.

    Best-effort: bind mounts on some virtualized filesystems reject chmod,
    which is ignored.
    """
    state_dir = config.state_dir
    try:
        current_mode = stat.S_IMODE(state_dir.stat().st_mode)
        if current_mode == STATE_DIR_MODE:
            return False
        state_dir.chmod(STATE_DIR_MODE)
    except PermissionError as e:
        logger.debug("Cannot tighten state directory permissions", error=str(e))
        return False
    except FileNotFoundError:
        return False
    return True


MaintenanceStep = Callable[["EntrypointConfig", "FilteringBoundLogger"], bool]

MAINTENANCE_STEPS: tuple[tuple[str, MaintenanceStep], ...] = (
    ("migrate-legacy-state", migrate_legacy_state),
    ("remove-stale-locks", remove_stale_locks),
    ("tighten-permissions", tighten_permissions),
)


def run_maintenance(
    config: "EntrypointConfig",
    *,
    logger: "FilteringBoundLogger",
) -> list[MaintenanceResult]:
    """Run every maintenance step in order.

    Args:
        config: Entrypoint configuration locating the state directory.
        logger: Logger for setup records.

    Returns:
        One result per step, in execution order.
    """
    results: list[MaintenanceResult] = []
    for name, step in MAINTENANCE_STEPS:
        try:
            changed = step(config, logger)
        except OSError as e:
            logger.warning(
                "Maintenance step failed",
                step=name,
                error=str(e),
            )
            results.append(MaintenanceResult(step=name, error=str(e)))
            continue
        results.append(MaintenanceResult(step=name, changed=changed))
    return results
