"""Shared test fixtures for polyclaw tests."""

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, cast

import pytest
import structlog
from structlog.testing import LogCapture

from polyclaw.config import EntrypointConfig, ServiceIdentity

if TYPE_CHECKING:
    from structlog.typing import EventDict, FilteringBoundLogger


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def log_capture() -> LogCapture:
    return LogCapture()


@pytest.fixture
def logger(log_capture: LogCapture) -> "FilteringBoundLogger":
    """Logger at debug level whose records end up in log_capture."""
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.PrintLogger(),
            processors=[log_capture],
            wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
            context_class=dict,
        ),
    )


FindEvents = Callable[..., list["EventDict"]]


@pytest.fixture
def find_events(log_capture: LogCapture) -> FindEvents:
    """Return a function selecting captured records by level and text."""

    def _find(level: str | None = None, contains: str = "") -> "list[EventDict]":
        return [
            entry
            for entry in log_capture.entries
            if (level is None or entry["log_level"] == level)
            and contains in str(entry["event"])
        ]

    return _find


@pytest.fixture
def config(tmp_path: Path) -> EntrypointConfig:
    """Entrypoint configuration rooted in a temporary directory.

    Structure:
        tmp_path/
            home/                 # service user home
                .openclaw/        # state dir (not created)
            app/skills/           # bundled skills (not created)
            skills-custom/        # custom skills (not created)
    """
    home = tmp_path / "home"
    home.mkdir()
    return EntrypointConfig(
        state_dir=home / ".openclaw",
        app_dir=tmp_path / "app",
        bundled_skills_dir=tmp_path / "app" / "skills",
        custom_skills_dir=tmp_path / "skills-custom",
        identity=ServiceIdentity(uid=os.getuid(), gid=os.getgid(), home=home),
        condition_poll_interval=0.05,
    )


@pytest.fixture(autouse=True)
def _restore_path(monkeypatch: pytest.MonkeyPatch) -> None:
    """Undo PATH changes made by skill binary linking."""
    monkeypatch.setenv("PATH", os.environ.get("PATH", ""))
