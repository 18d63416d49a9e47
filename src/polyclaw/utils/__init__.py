"""Shared utilities for polyclaw."""

from ._logging import (
    SETUP_COMPONENT,
    SUPERVISOR_COMPONENT,
    LogFormatType,
    create_console_logger,
    create_setup_logger,
    create_supervisor_logger,
)

__all__ = [
    "SETUP_COMPONENT",
    "SUPERVISOR_COMPONENT",
    "LogFormatType",
    "create_console_logger",
    "create_setup_logger",
    "create_supervisor_logger",
]
