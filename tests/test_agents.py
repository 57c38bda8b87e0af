"""Tests for add_skill.agents: agent table and installed-agent detection."""

from __future__ import annotations

from pathlib import Path

import pytest

from add_skill.agents import AGENTS, detect_installed_agents, get_agent


@pytest.fixture
def home(tmp_path, monkeypatch) -> Path:
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.chdir(tmp_path)
    return home_dir


class TestAgentTable:
    def test_keys_match_names(self):
        for key, config in AGENTS.items():
            assert config.name == key

    def test_project_dirs_are_relative(self):
        for config in AGENTS.values():
            assert not Path(config.skills_dir).is_absolute()

    def test_global_dirs_are_home_templates(self):
        for config in AGENTS.values():
            assert config.global_skills_dir.startswith("~/")

    def test_global_path_expands_home(self, home):
        assert AGENTS["claude-code"].global_path() == home / ".claude" / "skills"

    def test_get_agent_unknown(self):
        with pytest.raises(KeyError):
            get_agent("vim")


class TestDetectInstalledAgents:
    def test_none_installed(self, home):
        assert detect_installed_agents() == []

    def test_detects_by_home_directory(self, home):
        (home / ".codex").mkdir()
        (home / ".claude").mkdir()

        assert detect_installed_agents() == ["claude-code", "codex"]

    def test_detects_config_subdirectory(self, home):
        (home / ".config" / "goose").mkdir(parents=True)
        assert detect_installed_agents() == ["goose"]

    def test_antigravity_detected_from_project(self, home, tmp_path):
        (tmp_path / ".agent").mkdir()
        assert detect_installed_agents() == ["antigravity"]
