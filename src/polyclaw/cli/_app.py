"""The command-line interface of the container entrypoint."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

import sys
from functools import partial
from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import App, Parameter
from rich.console import Console
from rich.markup import escape

from polyclaw.config import load_config
from polyclaw.exceptions import ConfigLoadError
from polyclaw.supervisor import boot
from polyclaw.utils import create_console_logger

from ._check import check_services, render_verdicts
from ._shared import ExitCode, exit_with_error, exit_with_success

_HELP = "Container entrypoint supervising the gateway and its helper services."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="polyclaw-entrypoint",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.default
    def run(  # pyright: ignore[reportUnusedFunction]
        *,
        services_file: Annotated[
            Path | None,
            Parameter(name="--services-file", help="Path to services.json"),
        ] = None,
    ) -> None:
        """Boot the container and supervise services until terminated.

        Args:
            services_file: Override for the service descriptor file.
        """
        config = load_config(services_path=services_file)
        anyio.run(partial(boot, config))

    @app.command
    def check(  # pyright: ignore[reportUnusedFunction]
        path: Annotated[
            Path | None,
            Parameter(help="Service descriptor file (defaults to the state dir)"),
        ] = None,
    ) -> None:
        """Validate a services.json file without starting anything.

        Exits non-zero if the file cannot be loaded, any pre-command would
        be blocked or any start condition cannot be parsed.

        Args:
            path: Service descriptor file to validate.
        """
        services_file = path if path is not None else load_config().services_file
        logger = create_console_logger("check", file=sys.stderr)

        try:
            verdicts = check_services(services_file, logger=logger)
        except FileNotFoundError:
            exit_with_error(
                f"Services file not found: {escape(str(services_file))}",
                ExitCode.NOT_FOUND,
                console=error_console,
            )
        except ConfigLoadError as e:
            exit_with_error(escape(str(e)), ExitCode.LOAD_ERROR, console=error_console)

        render_verdicts(verdicts, console)

        failing = [v.descriptor.name for v in verdicts if not v.ok]
        if failing:
            exit_with_error(
                f"{len(failing)} service(s) would not run as declared: "
                + escape(", ".join(failing)),
                ExitCode.VALIDATION_ERROR,
                console=error_console,
            )
        exit_with_success(f"{len(verdicts)} service(s) valid", console=error_console)

    return app


def main() -> None:
    """Default entrypoint for the `polyclaw-entrypoint` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
