from pathlib import Path
from typing import TYPE_CHECKING

import orjson

from polyclaw.supervisor import load_descriptors

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem
    from structlog.typing import FilteringBoundLogger

    from tests.conftest import FindEvents

SERVICES_FILE = Path("/home/node/.openclaw/services.json")


def write_services(fs: "FakeFilesystem", data: object) -> None:
    _ = fs.create_file(SERVICES_FILE, contents=orjson.dumps(data).decode())


class TestLoadDescriptors:
    def test_missing_file_yields_no_services(
        self,
        fs: "FakeFilesystem",
        logger: "FilteringBoundLogger",
        find_events: "FindEvents",
    ) -> None:
        assert load_descriptors(SERVICES_FILE, logger=logger) == []
        assert find_events("warning") == []
        assert find_events("error") == []

    def test_loads_entries_in_file_order(
        self,
        fs: "FakeFilesystem",
        logger: "FilteringBoundLogger",
    ) -> None:
        write_services(
            fs,
            [
                {"name": "b", "command": "run-b"},
                {"name": "a", "command": "run-a", "restartDelay": 2},
            ],
        )

        descriptors = load_descriptors(SERVICES_FILE, logger=logger)

        assert [d.name for d in descriptors] == ["b", "a"]
        assert descriptors[1].restart_delay == 2

    def test_empty_array(
        self,
        fs: "FakeFilesystem",
        logger: "FilteringBoundLogger",
    ) -> None:
        write_services(fs, [])

        assert load_descriptors(SERVICES_FILE, logger=logger) == []

    def test_invalid_json_is_skipped_with_warning(
        self,
        fs: "FakeFilesystem",
        logger: "FilteringBoundLogger",
        find_events: "FindEvents",
    ) -> None:
        _ = fs.create_file(SERVICES_FILE, contents="[{not json")

        assert load_descriptors(SERVICES_FILE, logger=logger) == []

        warnings = find_events("warning", "Failed to parse services file")
        assert len(warnings) == 1
        assert warnings[0]["path"] == str(SERVICES_FILE)

    def test_non_array_top_level_is_skipped_with_warning(
        self,
        fs: "FakeFilesystem",
        logger: "FilteringBoundLogger",
        find_events: "FindEvents",
    ) -> None:
        write_services(fs, {"name": "x", "command": "true"})

        assert load_descriptors(SERVICES_FILE, logger=logger) == []
        assert len(find_events("warning", "Failed to parse services file")) == 1

    def test_invalid_entries_are_skipped_individually(
        self,
        fs: "FakeFilesystem",
        logger: "FilteringBoundLogger",
        find_events: "FindEvents",
    ) -> None:
        write_services(
            fs,
            [
                {"name": "ok", "command": "true"},
                {"name": "no-command"},
                "not an object",
                {"name": "also-ok", "command": "true", "extra": 1},
            ],
        )

        descriptors = load_descriptors(SERVICES_FILE, logger=logger)

        assert [d.name for d in descriptors] == ["ok", "also-ok"]
        skipped = find_events("warning", "Skipping invalid service entry")
        assert [entry["index"] for entry in skipped] == [1, 2]

    def test_duplicate_names_are_kept(
        self,
        fs: "FakeFilesystem",
        logger: "FilteringBoundLogger",
    ) -> None:
        write_services(
            fs,
            [{"name": "dup", "command": "one"}, {"name": "dup", "command": "two"}],
        )

        descriptors = load_descriptors(SERVICES_FILE, logger=logger)

        assert [d.command for d in descriptors] == ["one", "two"]
