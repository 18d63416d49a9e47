"""Logging utilities for polyclaw.

This module provides standalone structlog logger factories that write
line-oriented records to the container's standard streams. Each logger
is self-contained and does not modify global structlog configuration.

Text records are prefixed with a component tag (``[supervisor]`` or
``[setup]``) so that container log aggregation can tell the entrypoint's
own output apart from the output of the services it runs.
"""

import logging
import sys
from os import getenv
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import (
        EventDict,
        FilteringBoundLogger,
        Processor,
        WrappedLogger,
    )

LogFormatType = Literal["json", "text"]

SUPERVISOR_COMPONENT = "supervisor"
SETUP_COMPONENT = "setup"


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks POLYCLAW_DEBUG first (sets DEBUG if present), then
    POLYCLAW_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("POLYCLAW_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("POLYCLAW_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, POLYCLAW_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("POLYCLAW_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def _get_log_format() -> LogFormatType:
    if getenv("POLYCLAW_LOG_FORMAT", "text").lower() == "json":
        return "json"
    return "text"


class _ComponentPrefixRenderer:
    """Render a record as text and prefix it with its component tag."""

    __slots__ = ("_component", "_renderer")

    def __init__(self, component: str) -> None:
        self._component = component
        self._renderer = structlog.dev.ConsoleRenderer(colors=False)

    def __call__(
        self,
        logger: "WrappedLogger",
        method_name: str,
        event_dict: "EventDict",
    ) -> str:
        line = cast("str", self._renderer(logger, method_name, event_dict))
        return f"[{self._component}] {line}"


def create_console_logger(
    component: str,
    *,
    level: str | None = None,
    log_format: LogFormatType | None = None,
    file: TextIO | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger writing to a standard stream.

    The log level is determined by (in order of precedence):
    1. POLYCLAW_DEBUG environment variable (if set, enables DEBUG level)
    2. The `level` parameter (if provided)
    3. POLYCLAW_LOG_LEVEL environment variable
    4. Default: INFO

    Args:
        component: Component tag for every record (e.g. "supervisor").
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text". Uses
            POLYCLAW_LOG_FORMAT when not given.
        file: Stream to write to. Defaults to stdout.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = (
        _log_level_from_string(level, respect_env=True)
        if level is not None
        else _get_log_level()
    )
    effective_format = log_format if log_format is not None else _get_log_format()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if effective_format == "json":
        processors.append(_bind_component(component))
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(_ComponentPrefixRenderer(component))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.PrintLogger(file=file if file is not None else sys.stdout),
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def _bind_component(component: str) -> "Processor":
    def processor(
        _logger: "WrappedLogger",
        _method_name: str,
        event_dict: "EventDict",
    ) -> "EventDict":
        event_dict.setdefault("component", component)
        return event_dict

    return processor


def create_supervisor_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the logger used by the service supervisor."""
    return create_console_logger(
        SUPERVISOR_COMPONENT, level=level, log_format=log_format
    )


def create_setup_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create the logger used by boot-time setup (maintenance, skills)."""
    return create_console_logger(SETUP_COMPONENT, level=level, log_format=log_format)
