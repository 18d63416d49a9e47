"""Start conditions gating a service's (re)start.

A condition is a typed string. The only type currently defined is
``file:<absolute-path>``, which is satisfied while the path exists.
Conditions that cannot be parsed are never satisfied: starting a service
whose dependency is absent is worse than delaying it.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from polyclaw.exceptions import ConditionSyntaxError

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

FILE_CONDITION_PREFIX = "file:"


@dataclass(frozen=True, slots=True)
class FileCondition:
    """Condition satisfied while a path exists.

    Attributes:
        path: Absolute path to probe.
    """

    path: Path

    def is_met(self) -> bool:
        """Check whether the path exists right now."""
        return os.path.exists(self.path)

    def describe(self) -> str:
        return str(self.path)


def parse_condition(condition: str | None) -> FileCondition | None:
    """Parse a condition string.

    Args:
        condition: The raw condition from the service descriptor.

    Returns:
        The parsed condition, or None if no condition is set.

    Raises:
        ConditionSyntaxError: If the condition type is unknown or the
            path is not absolute.
    """
    if not condition:
        return None

    if not condition.startswith(FILE_CONDITION_PREFIX):
        msg = f"Unrecognized condition type: {condition!r}"
        raise ConditionSyntaxError(msg, condition=condition)

    raw_path = condition.removeprefix(FILE_CONDITION_PREFIX)
    if not raw_path.startswith("/"):
        msg = f"File condition requires an absolute path: {condition!r}"
        raise ConditionSyntaxError(msg, condition=condition)

    return FileCondition(path=Path(raw_path))


def is_ready(
    condition: str | None,
    *,
    logger: "FilteringBoundLogger | None" = None,
    service: str | None = None,
) -> bool:
    """Evaluate a start condition.

    Args:
        condition: The raw condition string, or None.
        logger: Logger for reporting malformed conditions.
        service: Service name to attach to log records.

    Returns:
        True if the service may start now, False otherwise. Malformed
        conditions always return False.
    """
    try:
        parsed = parse_condition(condition)
    except ConditionSyntaxError as e:
        if logger is not None:
            logger.error(
                "Invalid start condition, service will never start",
                service=service,
                condition=e.condition,
                error=str(e),
            )
        return False

    return parsed is None or parsed.is_met()
