"""Supported coding agents and where each one reads skills from."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


def _home_has(*parts: str) -> Callable[[], bool]:
    def detect() -> bool:
        return Path.home().joinpath(*parts).exists()

    return detect


def _antigravity_installed() -> bool:
    return (Path.cwd() / ".agent").exists() or (Path.home() / ".gemini" / "antigravity").exists()


@dataclass(frozen=True)
class AgentConfig:
    name: str
    display_name: str
    skills_dir: str
    global_skills_dir: str
    detect_installed: Callable[[], bool]

    def project_path(self, cwd: Path | None = None) -> Path:
        return (cwd or Path.cwd()) / self.skills_dir

    def global_path(self) -> Path:
        return Path(self.global_skills_dir).expanduser()


AGENTS: dict[str, AgentConfig] = {
    "opencode": AgentConfig(
        name="opencode",
        display_name="OpenCode",
        skills_dir=".opencode/skill",
        global_skills_dir="~/.config/opencode/skill",
        detect_installed=_home_has(".config", "opencode"),
    ),
    "claude-code": AgentConfig(
        name="claude-code",
        display_name="Claude Code",
        skills_dir=".claude/skills",
        global_skills_dir="~/.claude/skills",
        detect_installed=_home_has(".claude"),
    ),
    "codex": AgentConfig(
        name="codex",
        display_name="Codex",
        skills_dir=".codex/skills",
        global_skills_dir="~/.codex/skills",
        detect_installed=_home_has(".codex"),
    ),
    "cursor": AgentConfig(
        name="cursor",
        display_name="Cursor",
        skills_dir=".cursor/skills",
        global_skills_dir="~/.cursor/skills",
        detect_installed=_home_has(".cursor"),
    ),
    "amp": AgentConfig(
        name="amp",
        display_name="Amp",
        skills_dir=".agents/skills",
        global_skills_dir="~/.config/agents/skills",
        detect_installed=_home_has(".config", "amp"),
    ),
    "kilo": AgentConfig(
        name="kilo",
        display_name="Kilo Code",
        skills_dir=".kilocode/skills",
        global_skills_dir="~/.kilocode/skills",
        detect_installed=_home_has(".kilocode"),
    ),
    "roo": AgentConfig(
        name="roo",
        display_name="Roo Code",
        skills_dir=".roo/skills",
        global_skills_dir="~/.roo/skills",
        detect_installed=_home_has(".roo"),
    ),
    "goose": AgentConfig(
        name="goose",
        display_name="Goose",
        skills_dir=".goose/skills",
        global_skills_dir="~/.config/goose/skills",
        detect_installed=_home_has(".config", "goose"),
    ),
    "antigravity": AgentConfig(
        name="antigravity",
        display_name="Antigravity",
        skills_dir=".agent/skills",
        global_skills_dir="~/.gemini/antigravity/skills",
        detect_installed=_antigravity_installed,
    ),
}


def get_agent(name: str) -> AgentConfig:
    """Look up an agent by name. Raises KeyError for unknown agents."""
    try:
        return AGENTS[name]
    except KeyError:
        raise KeyError(f"Unknown agent: {name}") from None


def detect_installed_agents() -> list[str]:
    """Names of agents whose config directories exist, in table order."""
    installed = []
    for name, config in AGENTS.items():
        try:
            found = config.detect_installed()
        except OSError as e:
            logger.debug("Detection failed for %s: %s", name, e)
            found = False
        if found:
            installed.append(name)
    return installed
