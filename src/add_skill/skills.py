"""Skill discovery: locate SKILL.md directories in a checkout and parse their front-matter."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from add_skill.config import MAX_SEARCH_DEPTH, SKILL_FILE, SKIP_DIRS, STANDARD_SKILL_DIRS

logger = logging.getLogger(__name__)

_FRONTMATTER_RE = re.compile(r"\A\ufeff?---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


@dataclass(frozen=True)
class Skill:
    name: str
    description: str
    path: Path
    metadata: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    if value is None:
        return ""
    return str(value)


def _required_text(value: Any) -> str | None:
    """Scalar front-matter value as stripped text; None when absent, blank, or a list/mapping."""
    if value is None or isinstance(value, (list, dict)):
        return None
    return _stringify(value).strip() or None


def parse_skill_md(skill_md: Path) -> Skill | None:
    """Parse a SKILL.md file into a Skill.

    Returns None when the file cannot be read, has no front-matter block, the block is not a
    YAML mapping, or ``name``/``description`` are missing, blank, or a list/mapping. Scalars of
    other YAML types (``2048``, ``yes``, dates) are taken as text. The markdown body is ignored.
    """
    try:
        content = skill_md.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Skipping %s: unreadable (%s)", skill_md, e)
        return None

    match = _FRONTMATTER_RE.match(content)
    if not match:
        logger.debug("Skipping %s: no front-matter block", skill_md)
        return None

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.debug("Skipping %s: invalid front-matter (%s)", skill_md, e)
        return None

    if not isinstance(data, dict):
        logger.debug("Skipping %s: front-matter is not a mapping", skill_md)
        return None

    name = _required_text(data.get("name"))
    description = _required_text(data.get("description"))
    if name is None:
        logger.debug("Skipping %s: missing name", skill_md)
        return None
    if description is None:
        logger.debug("Skipping %s: missing description", skill_md)
        return None

    metadata = {str(k): _stringify(v) for k, v in data.items() if k not in ("name", "description")}
    return Skill(
        name=name,
        description=description,
        path=skill_md.parent.resolve(),
        metadata=metadata,
    )


def has_skill_md(directory: Path) -> bool:
    return (directory / SKILL_FILE).is_file()


def _child_dirs(directory: Path) -> list[Path]:
    try:
        return sorted((p for p in directory.iterdir() if p.is_dir()), key=lambda p: p.name)
    except OSError:
        return []


def _direct_hit(search_root: Path) -> list[Path]:
    return [search_root] if has_skill_md(search_root) else []


def _standard_locations(search_root: Path) -> list[Path]:
    """Immediate children of every conventional container, in container priority order."""
    candidates: list[Path] = []
    for container in STANDARD_SKILL_DIRS:
        container_path = search_root / container if container else search_root
        if not container_path.is_dir():
            continue
        for child in _child_dirs(container_path):
            if has_skill_md(child):
                candidates.append(child)
    return candidates


def _recursive_search(search_root: Path, max_depth: int = MAX_SEARCH_DEPTH) -> list[Path]:
    """Depth-first walk for SKILL.md directories no deeper than max_depth below search_root."""
    candidates: list[Path] = []
    seen: set[Path] = set()
    for dirpath, dirnames, _filenames in os.walk(search_root, followlinks=True):
        current = Path(dirpath)
        real = current.resolve()
        if real in seen:
            # Symlink loop or a second route to an already-walked directory
            dirnames[:] = []
            continue
        seen.add(real)

        if has_skill_md(current):
            candidates.append(current)

        depth = len(current.relative_to(search_root).parts)
        if depth >= max_depth:
            dirnames[:] = []
        else:
            dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
    return candidates


def _resolve_search_root(base_path: Path, subpath: str | None) -> Path:
    base = base_path.resolve()
    if not subpath:
        return base
    if Path(subpath).is_absolute():
        raise ValueError(f"Subpath must be relative: {subpath}")
    root = (base / subpath).resolve()
    if root != base and base not in root.parents:
        raise ValueError(f"Subpath escapes repository root: {subpath}")
    return root


def _parse_candidates(candidates: Iterable[Path]) -> list[Skill]:
    skills: list[Skill] = []
    seen_paths: set[Path] = set()
    for directory in candidates:
        skill = parse_skill_md(directory / SKILL_FILE)
        if skill is None or skill.path in seen_paths:
            continue
        seen_paths.add(skill.path)
        skills.append(skill)
    return skills


def discover_skills(base_path: str | Path, subpath: str | None = None) -> list[Skill]:
    """Find every valid skill under base_path (optionally scoped to subpath).

    Search tiers are tried in order and the first one producing a valid skill wins:

    1. the search root itself holds a SKILL.md
    2. children of the standard skill containers (aggregated across all containers)
    3. a recursive walk, limited to MAX_SEARCH_DEPTH levels

    Candidates with invalid manifests are dropped silently. Results are deduplicated by
    resolved path; skills sharing a name but living in different directories are all kept.
    """
    search_root = _resolve_search_root(Path(base_path), subpath)
    if not search_root.is_dir():
        logger.info("Search root does not exist: %s", search_root)
        return []

    tiers: list[tuple[str, Callable[[Path], list[Path]]]] = [
        ("direct", _direct_hit),
        ("standard", _standard_locations),
        ("recursive", _recursive_search),
    ]
    for tier_name, find_candidates in tiers:
        skills = _parse_candidates(find_candidates(search_root))
        if skills:
            logger.debug("Found %d skill(s) in %s via %s search", len(skills), search_root, tier_name)
            return skills

    logger.debug("No skills found under %s", search_root)
    return []


def _short_hash(path: Path) -> str:
    return hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:6]


def get_skill_display_name(skill: Skill, catalog: Iterable[Skill] = ()) -> str:
    """Name shown to the user; disambiguated with a short path hash when the name is shared in catalog."""
    if sum(1 for s in catalog if s.name == skill.name) > 1:
        return f"{skill.name} ({_short_hash(skill.path)})"
    return skill.name
