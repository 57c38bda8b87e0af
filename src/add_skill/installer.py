"""Copy discovered skills into an agent's skills directory."""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from add_skill.agents import get_agent
from add_skill.config import INSTALL_EXCLUDED_FILES, INSTALL_EXCLUDED_PREFIX
from add_skill.skills import Skill

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallResult:
    success: bool
    path: Path
    error: str | None = None


def _is_excluded(name: str) -> bool:
    return name in INSTALL_EXCLUDED_FILES or name.startswith(INSTALL_EXCLUDED_PREFIX)


def _ignore_excluded(_directory: str, names: list[str]) -> set[str]:
    return {n for n in names if _is_excluded(n)}


def _check_skill_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid skill name for installation: {name!r}")


def get_install_path(skill_name: str, agent: str, global_: bool = False, cwd: Path | None = None) -> Path:
    """Destination directory for a skill: the agent's project or global skills dir joined with the name."""
    config = get_agent(agent)
    base = config.global_path() if global_ else config.project_path(cwd)
    return base / skill_name


def is_skill_installed(skill_name: str, agent: str, global_: bool = False, cwd: Path | None = None) -> bool:
    """True if the destination exists. Contents are not compared."""
    return get_install_path(skill_name, agent, global_, cwd).exists()


def _remove_existing(target: Path) -> None:
    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.is_dir():
        shutil.rmtree(target)


def _ignore_for(source: Path, destination: Path) -> Callable[[str, list[str]], set[str]]:
    """Exclusion filter that also skips the entry of source holding destination, if any."""
    blocked = destination.relative_to(source).parts[0] if source in destination.parents else None

    def ignore(directory: str, names: list[str]) -> set[str]:
        ignored = _ignore_excluded(directory, names)
        if blocked in names and Path(directory).resolve() == source:
            ignored.add(blocked)
        return ignored

    return ignore


def install_skill_for_agent(skill: Skill, agent: str, global_: bool = False, cwd: Path | None = None) -> InstallResult:
    """Copy a skill's directory tree to its destination for one agent.

    Any previous installation at the destination is replaced. README.md, metadata.json and
    anything starting with "_" are left out. The tree is staged in a temporary directory
    first, so a destination nested in (or containing) the source is handled. A skill whose
    directory already is the destination is left untouched. Filesystem errors are reported
    in the result rather than raised, so one failing (skill, agent) pair does not stop the others.
    """
    target = get_install_path(skill.name, agent, global_, cwd)
    try:
        _check_skill_name(skill.name)
        source = skill.path.resolve()
        destination = target.resolve()
        if destination == source:
            logger.info("%s is already in place for %s at %s", skill.name, agent, target)
            return InstallResult(success=True, path=target)

        staging = Path(tempfile.mkdtemp(prefix="add-skill-install-"))
        try:
            staged = staging / skill.name
            shutil.copytree(source, staged, ignore=_ignore_for(source, destination))
            _remove_existing(target)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(staged, target)
        finally:
            shutil.rmtree(staging, ignore_errors=True)
    except (OSError, ValueError) as e:
        logger.warning("Failed to install %s for %s: %s", skill.name, agent, e)
        return InstallResult(success=False, path=target, error=str(e))

    logger.info("Installed %s for %s at %s", skill.name, agent, target)
    return InstallResult(success=True, path=target)
