"""One-time maintenance of the gateway state at container start."""

from ._maintenance import (
    CURRENT_ALLOW_FROM,
    LEGACY_ALLOW_FROM,
    MAINTENANCE_STEPS,
    STATE_DIR_MODE,
    MaintenanceResult,
    migrate_legacy_state,
    remove_stale_locks,
    run_maintenance,
    tighten_permissions,
)

__all__ = [
    "CURRENT_ALLOW_FROM",
    "LEGACY_ALLOW_FROM",
    "MAINTENANCE_STEPS",
    "STATE_DIR_MODE",
    "MaintenanceResult",
    "migrate_legacy_state",
    "remove_stale_locks",
    "run_maintenance",
    "tighten_permissions",
]
