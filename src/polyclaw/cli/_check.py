"""Validation of a services.json file before it is deployed."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from polyclaw.exceptions import ConditionSyntaxError
from polyclaw.supervisor import (
    is_pre_command_safe,
    parse_condition,
    parse_descriptors,
    read_descriptor_file,
)

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console
    from structlog.typing import FilteringBoundLogger

    from polyclaw.supervisor import ServiceDescriptor


@dataclass(frozen=True, slots=True)
class ServiceVerdict:
    """Validation outcome for one declared service.

    Attributes:
        descriptor: The declared service.
        pre_command_allowed: Whether the pre-command would run. None if
            the service declares no pre-command.
        condition_error: Parse error of the condition, if any.
    """

    descriptor: "ServiceDescriptor"
    pre_command_allowed: bool | None
    condition_error: str | None

    @property
    def ok(self) -> bool:
        return self.pre_command_allowed is not False and self.condition_error is None


def evaluate_service(descriptor: "ServiceDescriptor") -> ServiceVerdict:
    """Evaluate a descriptor the way the supervisor will at runtime."""
    allowed: bool | None = None
    if descriptor.pre_command:
        allowed = is_pre_command_safe(descriptor.pre_command)

    condition_error: str | None = None
    try:
        _ = parse_condition(descriptor.condition)
    except ConditionSyntaxError as e:
        condition_error = str(e)

    return ServiceVerdict(
        descriptor=descriptor,
        pre_command_allowed=allowed,
        condition_error=condition_error,
    )


def check_services(
    path: "Path",
    *,
    logger: "FilteringBoundLogger",
) -> list[ServiceVerdict]:
    """Load a descriptor file and evaluate every valid entry.

    Unlike the boot sequence, an unreadable or malformed file is an error
    here. Entries that fail validation are reported through the logger and
    are not part of the result.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be read or decoded.
    """
    entries = read_descriptor_file(path)
    return [
        evaluate_service(d)
        for d in parse_descriptors(entries, path=path, logger=logger)
    ]


def _format_delay(seconds: float) -> str:
    return f"{seconds:g}s"


def render_verdicts(verdicts: list[ServiceVerdict], console: "Console") -> None:
    """Print a table summarizing the verdicts."""
    table = Table(title="Declared services")
    table.add_column("Name", style="bold")
    table.add_column("Command")
    table.add_column("Condition")
    table.add_column("Pre-command")
    table.add_column("Start delay", justify="right")
    table.add_column("Restart delay", justify="right")

    for verdict in verdicts:
        descriptor = verdict.descriptor

        condition = escape(descriptor.condition) if descriptor.condition else "-"
        if verdict.condition_error is not None:
            condition = f"[red]invalid[/red] {condition}"

        if verdict.pre_command_allowed is None:
            pre_command = "-"
        elif verdict.pre_command_allowed:
            pre_command = "[green]allowed[/green]"
        else:
            pre_command = "[red]blocked[/red]"

        table.add_row(
            escape(descriptor.name),
            escape(descriptor.command),
            condition,
            pre_command,
            _format_delay(descriptor.start_delay),
            _format_delay(descriptor.restart_delay),
        )

    console.print(table)
