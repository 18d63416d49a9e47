"""polyclaw exceptions."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class PolyclawError(Exception):
    """Base exception for polyclaw errors."""


class ConfigError(PolyclawError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: "Path | None" = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and optional file context."""
        super().__init__(message)
        self.path: "Path | None" = path
        self.cause: Exception | None = cause


class ConditionSyntaxError(ConfigError, ValueError):
    """Raised when a service condition string cannot be parsed.

    Attributes:
        condition: The raw condition string that failed to parse.
    """

    def __init__(self, message: str, *, condition: str) -> None:
        """Initialize with error message and the offending condition."""
        super().__init__(message)
        self.condition: str = condition


# =============================================================================
# Service Exceptions
# =============================================================================


class ServiceError(PolyclawError):
    """Base exception for supervised service errors."""

    def __init__(
        self,
        message: str,
        *,
        service_name: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and service context.

        Args:
            message: Human-readable error message.
            service_name: Name of the service involved.
            cause: The underlying exception, if any.
        """
        super().__init__(message)
        self.service_name: str | None = service_name
        self.cause: Exception | None = cause


class ServiceStartError(ServiceError):
    """Raised when a service process cannot be spawned."""
