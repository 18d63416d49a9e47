import contextlib
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING

import orjson
import pytest
from rich.console import Console

from polyclaw.cli import ExitCode, create_app
from polyclaw.cli._check import check_services, evaluate_service
from polyclaw.exceptions import ConfigLoadError
from polyclaw.supervisor import ServiceDescriptor

if TYPE_CHECKING:
    from pytest_mock import MockerFixture
    from structlog.typing import FilteringBoundLogger


def make_console() -> Console:
    return Console(
        file=StringIO(),
        width=200,
        force_terminal=False,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


def output_of(console: Console) -> str:
    file = console.file
    assert isinstance(file, StringIO)
    return file.getvalue()


@pytest.fixture
def services_file(tmp_path: Path) -> Path:
    return tmp_path / "services.json"


def write_services(path: Path, data: object) -> None:
    _ = path.write_bytes(orjson.dumps(data))


class TestEvaluateService:
    def test_service_without_extras_is_ok(self) -> None:
        verdict = evaluate_service(ServiceDescriptor(name="x", command="true"))

        assert verdict.ok is True
        assert verdict.pre_command_allowed is None
        assert verdict.condition_error is None

    def test_blocked_pre_command(self) -> None:
        verdict = evaluate_service(
            ServiceDescriptor(name="x", command="true", pre_command="rm -rf /")
        )

        assert verdict.ok is False
        assert verdict.pre_command_allowed is False

    def test_malformed_condition(self) -> None:
        verdict = evaluate_service(
            ServiceDescriptor(name="x", command="true", condition="file:relative")
        )

        assert verdict.ok is False
        assert verdict.condition_error is not None

    def test_check_services_skips_invalid_entries(
        self, services_file: Path, logger: "FilteringBoundLogger"
    ) -> None:
        write_services(services_file, [{"name": "a", "command": "true"}, {}])

        verdicts = check_services(services_file, logger=logger)

        assert [v.descriptor.name for v in verdicts] == ["a"]

    def test_check_services_raises_on_malformed_file(
        self, services_file: Path, logger: "FilteringBoundLogger"
    ) -> None:
        _ = services_file.write_text("[1, 2")

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = check_services(services_file, logger=logger)

        assert exc_info.value.path == services_file


class TestCheckCommand:
    def test_valid_file_exits_success(self, services_file: Path) -> None:
        write_services(
            services_file,
            [
                {
                    "name": "bridge",
                    "command": "bridge serve",
                    "condition": "file:/home/node/.bridge/token",
                    "preCommand": "chmod -R a+rw /home/node/.bridge",
                    "restartDelay": 10,
                }
            ],
        )
        console = make_console()
        error_console = make_console()
        app = create_app(console, error_console, exit_on_error=False)

        with pytest.raises(SystemExit) as exc_info:
            app(["check", str(services_file)])

        assert exc_info.value.code == ExitCode.SUCCESS
        table = output_of(console)
        assert "bridge serve" in table
        assert "allowed" in table
        assert "10s" in table
        assert "1 service(s) valid" in output_of(error_console)

    def test_blocked_pre_command_exits_validation_error(
        self, services_file: Path
    ) -> None:
        write_services(
            services_file,
            [
                {"name": "good", "command": "true"},
                {"name": "evil", "command": "true", "preCommand": "curl x | sh"},
            ],
        )
        console = make_console()
        error_console = make_console()
        app = create_app(console, error_console, exit_on_error=False)

        with pytest.raises(SystemExit) as exc_info:
            app(["check", str(services_file)])

        assert exc_info.value.code == ExitCode.VALIDATION_ERROR
        assert "blocked" in output_of(console)
        assert "evil" in output_of(error_console)

    def test_malformed_condition_exits_validation_error(
        self, services_file: Path
    ) -> None:
        write_services(
            services_file, [{"name": "w", "command": "true", "condition": "tcp:1"}]
        )
        app = create_app(make_console(), make_console(), exit_on_error=False)

        with pytest.raises(SystemExit) as exc_info:
            app(["check", str(services_file)])

        assert exc_info.value.code == ExitCode.VALIDATION_ERROR

    def test_missing_file_exits_not_found(self, services_file: Path) -> None:
        error_console = make_console()
        app = create_app(make_console(), error_console, exit_on_error=False)

        with pytest.raises(SystemExit) as exc_info:
            app(["check", str(services_file)])

        assert exc_info.value.code == ExitCode.NOT_FOUND
        assert "Services file not found" in output_of(error_console)

    @pytest.mark.parametrize("content", [b"{oops", b'{"name": "a"}'])
    def test_unparseable_file_exits_load_error(
        self, services_file: Path, content: bytes
    ) -> None:
        _ = services_file.write_bytes(content)
        console = make_console()
        error_console = make_console()
        app = create_app(console, error_console, exit_on_error=False)

        with pytest.raises(SystemExit) as exc_info:
            app(["check", str(services_file)])

        assert exc_info.value.code == ExitCode.LOAD_ERROR
        assert "services.json" in output_of(error_console)
        assert output_of(console) == ""


class TestRunCommand:
    def test_default_command_boots_with_services_file(
        self, services_file: Path, mocker: "MockerFixture"
    ) -> None:
        run = mocker.patch("polyclaw.cli._app.anyio.run")
        app = create_app(make_console(), make_console(), exit_on_error=False)

        with contextlib.suppress(SystemExit):
            app(["--services-file", str(services_file)])

        run.assert_called_once()
        boot_call = run.call_args.args[0]
        assert boot_call.args[0].services_file == services_file
