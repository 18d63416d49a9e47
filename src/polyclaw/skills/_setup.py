"""Skill provisioning at container start.

Rebuilds the managed skills directory from the skills bundled with the
image and the operator's custom skills, then exposes the command-line
tools declared by skills (``bin`` entries of their package.json) on the
PATH inherited by every supervised service.

Failures of individual skills are logged and skipped so that one broken
skill never prevents the gateway from starting.
"""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import orjson

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from polyclaw.config import EntrypointConfig


@dataclass(slots=True)
class SkillSetupResult:
    """Summary of a skill provisioning run.

    Attributes:
        bundled: Names of bundled skills linked.
        custom: Names of custom skills linked.
        binaries: Names of skill CLIs linked into the bin directory.
        failed: Names of items that could not be linked.
    """

    bundled: list[str] = field(default_factory=list)
    custom: list[str] = field(default_factory=list)
    binaries: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _remove_path(path: Path) -> None:
    """Remove a file, symlink (dangling or not) or directory tree."""
    if path.is_symlink() or not path.is_dir():
        path.unlink(missing_ok=True)
    else:
        shutil.rmtree(path)


def _reset_skills_dir(skills_dir: Path) -> None:
    # lexists: a dangling symlink must be removed too
    if os.path.lexists(skills_dir):
        _remove_path(skills_dir)
    skills_dir.mkdir(parents=True, exist_ok=True)


def _link_skills(
    source_dir: Path,
    skills_dir: Path,
    *,
    replace: bool,
    result: SkillSetupResult,
    logger: "FilteringBoundLogger",
) -> list[str]:
    """Symlink every entry of source_dir into skills_dir.

    Args:
        source_dir: Directory containing one entry per skill.
        skills_dir: Managed skills directory.
        replace: Whether an existing entry of the same name is replaced.
        result: Result collecting failures.
        logger: Logger for setup records.

    Returns:
        Names of the skills linked.
    """
    if not source_dir.is_dir():
        return []

    linked: list[str] = []
    for source in sorted(source_dir.iterdir()):
        dest = skills_dir / source.name
        try:
            if os.path.lexists(dest):
                if not replace:
                    continue
                _remove_path(dest)
            dest.symlink_to(source)
        except OSError as e:
            logger.warning(f"Failed to link skill {source.name}", error=str(e))
            result.failed.append(source.name)
            continue
        linked.append(source.name)
    return linked


def _read_bin_entries(skill_dir: Path) -> dict[str, str]:
    """Read the bin entries of a skill's package.json.

    Returns:
        Mapping of command name to path relative to the skill, empty if the
        skill has no package.json or it declares no bin object.
    """
    package_json = skill_dir / "package.json"
    if not package_json.is_file():
        return {}

    try:
        data: object = orjson.loads(package_json.read_bytes())
    except (OSError, orjson.JSONDecodeError):
        return {}

    if not isinstance(data, dict):
        return {}
    bin_entries = data.get("bin")  # pyright: ignore[reportUnknownMemberType]
    if not isinstance(bin_entries, dict):
        return {}
    return {
        str(name): target
        for name, target in bin_entries.items()  # pyright: ignore[reportUnknownVariableType]
        if isinstance(target, str)
    }


def link_skill_binaries(
    config: "EntrypointConfig",
    *,
    logger: "FilteringBoundLogger",
    result: SkillSetupResult | None = None,
) -> list[str]:
    """Link skill CLIs into the user bin directory and put it on PATH.

    The PATH change applies to the supervisor's own environment, which
    every service inherits when it is spawned.

    Args:
        config: Entrypoint configuration.
        logger: Logger for setup records.
        result: Optional result collecting failures.

    Returns:
        Names of the CLIs linked.
    """
    skills_dir = config.skills_dir
    if not skills_dir.is_dir():
        return []

    bin_dir = config.skill_bin_dir
    bin_dir.mkdir(parents=True, exist_ok=True)
    path_entries = os.environ.get("PATH", "").split(os.pathsep)
    if str(bin_dir) not in path_entries:
        os.environ["PATH"] = os.pathsep.join(
            [str(bin_dir), *filter(None, path_entries)]
        )

    linked: list[str] = []
    for skill in sorted(skills_dir.iterdir()):
        try:
            real_dir = skill.resolve(strict=True)
        except OSError:
            continue

        for name, relative_target in _read_bin_entries(real_dir).items():
            target = (real_dir / relative_target).resolve()
            if not target.exists():
                continue

            link = bin_dir / name
            try:
                if os.path.lexists(link):
                    link.unlink()
                link.symlink_to(target)
            except OSError as e:
                logger.warning(f"Failed to link {name}", error=str(e))
                if result is not None:
                    result.failed.append(name)
                continue
            linked.append(name)

    if linked:
        logger.info(f"{len(linked)} skill CLI(s) linked to {bin_dir}")
    return linked


def setup_skills(
    config: "EntrypointConfig",
    *,
    logger: "FilteringBoundLogger",
) -> SkillSetupResult:
    """Rebuild the managed skills directory.

    Bundled skills are linked first; custom skills are linked afterwards
    and override bundled skills of the same name.

    Args:
        config: Entrypoint configuration locating the skill directories.
        logger: Logger for setup records.

    Returns:
        Summary of what was linked.

    Raises:
        OSError: If the workspace or skills directory cannot be created.
    """
    result = SkillSetupResult()

    config.workspace_dir.mkdir(parents=True, exist_ok=True)
    _reset_skills_dir(config.skills_dir)

    result.bundled = _link_skills(
        config.bundled_skills_dir,
        config.skills_dir,
        replace=False,
        result=result,
        logger=logger,
    )
    if config.bundled_skills_dir.is_dir():
        logger.info(f"{len(result.bundled)} bundled skills linked")

    result.custom = _link_skills(
        config.custom_skills_dir,
        config.skills_dir,
        replace=True,
        result=result,
        logger=logger,
    )
    if result.custom:
        logger.info(f"{len(result.custom)} custom skills linked")

    result.binaries = link_skill_binaries(config, logger=logger, result=result)
    return result
