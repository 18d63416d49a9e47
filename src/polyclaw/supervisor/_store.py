"""Loading of declared services from services.json.

The descriptor file is written by the host-side configuration tooling.
A missing file means "no extra services". A malformed file, or malformed
entries in it, must never prevent the gateway from starting, so every
failure here degrades to skipping the offending part with a warning.
"""

from typing import TYPE_CHECKING, cast

import orjson
from pydantic import ValidationError

from polyclaw.exceptions import ConfigLoadError

from ._models import ServiceDescriptor

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger


def read_descriptor_file(path: "Path") -> list[object]:
    """Read and decode the descriptor file.

    Args:
        path: Path to the JSON file.

    Returns:
        The decoded top-level array.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be read, is not valid JSON, or
            does not contain an array.
    """
    try:
        data: object = orjson.loads(path.read_bytes())
    except FileNotFoundError:
        raise
    except OSError as e:
        msg = f"Failed to read {path}: {e}"
        raise ConfigLoadError(msg, path=path, cause=e) from e
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON in {path}: {e}"
        raise ConfigLoadError(msg, path=path, cause=e) from e

    if not isinstance(data, list):
        msg = f"Expected a JSON array in {path}, got {type(data).__name__}"
        raise ConfigLoadError(msg, path=path)

    return cast("list[object]", data)


def load_descriptors(
    path: "Path",
    *,
    logger: "FilteringBoundLogger",
) -> list[ServiceDescriptor]:
    """Load the declared service descriptors.

    Args:
        path: Path to services.json.
        logger: Logger for reporting skipped entries.

    Returns:
        The valid descriptors in file order. Empty if the file is missing
        or cannot be parsed.
    """
    try:
        entries = read_descriptor_file(path)
    except FileNotFoundError:
        logger.debug("No services file, skipping custom services", path=str(path))
        return []
    except ConfigLoadError as e:
        logger.warning(
            "Failed to parse services file, skipping custom services",
            path=str(path),
            error=str(e),
        )
        return []

    return parse_descriptors(entries, path=path, logger=logger)


def parse_descriptors(
    entries: list[object],
    *,
    path: "Path",
    logger: "FilteringBoundLogger",
) -> list[ServiceDescriptor]:
    """Validate decoded entries, skipping the invalid ones with a warning."""
    descriptors: list[ServiceDescriptor] = []
    for index, entry in enumerate(entries):
        try:
            descriptors.append(ServiceDescriptor.model_validate(entry))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid service entry",
                path=str(path),
                index=index,
                errors=e.error_count(),
                error=str(e),
            )

    return descriptors
