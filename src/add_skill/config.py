"""Configuration defaults and path helpers."""

from __future__ import annotations

import os
from pathlib import Path

# ── Skill manifest ──
SKILL_FILE = "SKILL.md"

# ── Discovery ──
MAX_SEARCH_DEPTH = 5

# Containers checked before falling back to a recursive walk. "" is the search root itself.
STANDARD_SKILL_DIRS = (
    "",
    "skills",
    "skills/.curated",
    "skills/.experimental",
    "skills/.system",
    ".agent/skills",
    ".agents/skills",
    ".claude/skills",
    ".cline/skills",
    ".codex/skills",
    ".cursor/skills",
    ".github/skills",
    ".goose/skills",
    ".kilocode/skills",
    ".opencode/skill",
    ".roo/skills",
    ".windsurf/skills",
)

SKIP_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        "__pycache__",
        "dist",
        "build",
    }
)

# ── Installation ──
INSTALL_EXCLUDED_FILES = frozenset({"README.md", "metadata.json"})
INSTALL_EXCLUDED_PREFIX = "_"

# ── Network ──
CLONE_TIMEOUT = 120
SEARCH_TIMEOUT = 30
DEFAULT_SEARCH_API_BASE = "https://skillsmp.com/api/v1"


def config_dir() -> Path:
    """Resolve the per-user config directory. Respects ADD_SKILL_CONFIG_DIR env var."""
    override = os.environ.get("ADD_SKILL_CONFIG_DIR")
    if override:
        return Path(override)
    return Path.home() / ".config" / "skill"


def favourites_path() -> Path:
    return config_dir() / "data.json"


def search_api_base() -> str:
    return os.environ.get("SKILLS_MP_API_BASE", DEFAULT_SEARCH_API_BASE).rstrip("/")


def search_api_token() -> str | None:
    return os.environ.get("SKILLS_MP_API") or None
