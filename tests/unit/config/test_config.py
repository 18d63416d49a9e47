from pathlib import Path

import pytest
from pydantic import ValidationError

from polyclaw.config import (
    DEFAULT_STATE_DIR,
    SERVICE_HOME,
    EntrypointConfig,
    LogFormat,
    LogLevel,
    ServiceIdentity,
    load_config,
)


class TestEntrypointConfig:
    def test_default_layout(self) -> None:
        config = EntrypointConfig()

        assert config.state_dir == DEFAULT_STATE_DIR == Path("/home/node/.openclaw")
        assert config.services_file == Path("/home/node/.openclaw/services.json")
        assert config.skills_dir == Path("/home/node/.openclaw/skills")
        assert config.workspace_dir == Path("/home/node/.openclaw/workspace")
        assert config.wacli_lock_file == Path("/home/node/.openclaw/wacli/LOCK")
        assert config.skill_bin_dir == Path("/home/node/.local/bin")
        assert config.condition_poll_interval == 30

    def test_default_identity_is_unprivileged_node_user(self) -> None:
        identity = EntrypointConfig().identity

        assert identity == ServiceIdentity(uid=1000, gid=1000, home=SERVICE_HOME)

    def test_services_path_override(self) -> None:
        config = EntrypointConfig(services_path=Path("/etc/polyclaw/services.json"))

        assert config.services_file == Path("/etc/polyclaw/services.json")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("15", 15),
            (" 3 ", 3),
            (0, 0),
            (7, 7),
            ("-5", 0),
            (-5, 0),
            ("abc", 0),
            ("", 0),
            ("2.5", 2),
            ("10s", 10),
            ("+4", 4),
            ("s10", 0),
            ("-", 0),
            (None, 0),
            (True, 0),
        ],
    )
    def test_startup_delay_coercion(self, value: object, expected: int) -> None:
        config = EntrypointConfig.model_validate({"startup_delay": value})

        assert config.startup_delay == expected

    def test_poll_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            _ = EntrypointConfig(condition_poll_interval=0)


class TestLoadConfig:
    def test_empty_environment(self) -> None:
        config = load_config({})

        assert config.startup_delay == 0
        assert config.log_level == LogLevel.INFO
        assert config.log_format == LogFormat.TEXT

    def test_reads_startup_delay(self) -> None:
        assert load_config({"STARTUP_DELAY": "20"}).startup_delay == 20

    def test_non_numeric_startup_delay_is_zero(self) -> None:
        assert load_config({"STARTUP_DELAY": "soon"}).startup_delay == 0

    def test_startup_delay_with_unit_suffix_uses_leading_digits(self) -> None:
        assert load_config({"STARTUP_DELAY": "30s"}).startup_delay == 30

    def test_log_settings(self) -> None:
        config = load_config(
            {"POLYCLAW_LOG_LEVEL": "WARNING", "POLYCLAW_LOG_FORMAT": "json"}
        )

        assert config.log_level == LogLevel.WARNING
        assert config.log_format == LogFormat.JSON

    def test_debug_flag_wins_over_level(self) -> None:
        config = load_config({"POLYCLAW_DEBUG": "1", "POLYCLAW_LOG_LEVEL": "error"})

        assert config.log_level == LogLevel.DEBUG

    def test_unknown_values_fall_back_to_defaults(self) -> None:
        config = load_config(
            {"POLYCLAW_LOG_LEVEL": "verbose", "POLYCLAW_LOG_FORMAT": "xml"}
        )

        assert config.log_level == LogLevel.INFO
        assert config.log_format == LogFormat.TEXT

    def test_overrides_take_precedence(self) -> None:
        config = load_config(
            {"STARTUP_DELAY": "20"},
            startup_delay=0,
            services_path=Path("/srv/services.json"),
        )

        assert config.startup_delay == 0
        assert config.services_file == Path("/srv/services.json")

    def test_reads_process_environment_by_default(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STARTUP_DELAY", "4")

        assert load_config().startup_delay == 4
