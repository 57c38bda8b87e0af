"""Tests for add_skill.source: shorthand, URL and local path resolution."""

from __future__ import annotations

import pytest

from add_skill.source import GIT, GITHUB, GITLAB, LOCAL, SourceResolutionError, normalize_repo, parse_source


class TestShorthand:
    def test_owner_repo(self):
        parsed = parse_source("octo/tools")
        assert parsed.kind == GITHUB
        assert parsed.url == "https://github.com/octo/tools"
        assert parsed.subpath is None

    def test_owner_repo_with_subpath(self):
        parsed = parse_source("octo/tools/extra/skill")
        assert parsed.url == "https://github.com/octo/tools"
        assert parsed.subpath == "extra/skill"

    def test_strips_whitespace(self):
        assert parse_source("  octo/tools \n").url == "https://github.com/octo/tools"

    def test_trailing_slash_ignored(self):
        parsed = parse_source("octo/tools/")
        assert parsed.url == "https://github.com/octo/tools"
        assert parsed.subpath is None

    def test_host_like_first_token_treated_as_url(self):
        parsed = parse_source("github.com/octo/tools/skills/lint")
        assert parsed.kind == GITHUB
        assert parsed.url == "https://github.com/octo/tools"
        assert parsed.subpath == "skills/lint"

    def test_gitlab_prefix(self):
        parsed = parse_source("gitlab:octo/tools")
        assert parsed.kind == GITLAB
        assert parsed.url == "https://gitlab.com/octo/tools"


class TestUrls:
    def test_https_github_used_as_is(self):
        parsed = parse_source("https://github.com/octo/tools")
        assert parsed.kind == GITHUB
        assert parsed.url == "https://github.com/octo/tools"
        assert parsed.subpath is None

    def test_host_case_insensitive(self):
        assert parse_source("https://GitHub.com/octo/tools").kind == GITHUB

    def test_extra_segments_become_subpath(self):
        parsed = parse_source("https://github.com/octo/tools/skills/lint")
        assert parsed.url == "https://github.com/octo/tools"
        assert parsed.subpath == "skills/lint"

    def test_tree_url_extracts_ref_and_subpath(self):
        parsed = parse_source("https://github.com/octo/tools/tree/main/skills/lint")
        assert parsed.url == "https://github.com/octo/tools"
        assert parsed.ref == "main"
        assert parsed.subpath == "skills/lint"

    def test_gitlab_tree_url(self):
        parsed = parse_source("https://gitlab.com/octo/tools/-/tree/dev/skills")
        assert parsed.kind == GITLAB
        assert parsed.url == "https://gitlab.com/octo/tools"
        assert parsed.ref == "dev"
        assert parsed.subpath == "skills"

    def test_scp_style_ssh(self):
        parsed = parse_source("git@github.com:octo/tools.git")
        assert parsed.kind == GITHUB
        assert parsed.url == "git@github.com:octo/tools.git"
        assert parsed.subpath is None

    def test_generic_host(self):
        parsed = parse_source("https://git.example.org/team/repo.git")
        assert parsed.kind == GIT
        assert parsed.url == "https://git.example.org/team/repo.git"

    def test_dot_git_segment_ends_repo_path(self):
        parsed = parse_source("https://git.example.org/group/sub/repo.git/skills")
        assert parsed.url == "https://git.example.org/group/sub/repo.git"
        assert parsed.subpath == "skills"

    def test_url_without_repo_rejected(self):
        with pytest.raises(SourceResolutionError):
            parse_source("https://github.com/octo")


class TestLocalPaths:
    def test_absolute_path(self, tmp_path):
        parsed = parse_source(str(tmp_path))
        assert parsed.kind == LOCAL
        assert parsed.is_local
        assert parsed.url == str(tmp_path.resolve())

    def test_relative_dot_path(self, tmp_path, monkeypatch):
        (tmp_path / "skill").mkdir()
        monkeypatch.chdir(tmp_path)
        parsed = parse_source("./skill")
        assert parsed.kind == LOCAL
        assert parsed.url == str((tmp_path / "skill").resolve())

    def test_bare_existing_directory(self, tmp_path, monkeypatch):
        (tmp_path / "myskill").mkdir()
        monkeypatch.chdir(tmp_path)
        assert parse_source("myskill").kind == LOCAL

    def test_nested_path_is_the_scope(self, tmp_path, monkeypatch):
        (tmp_path / "repo" / "skills" / "lint").mkdir(parents=True)
        monkeypatch.chdir(tmp_path)
        parsed = parse_source("./repo/skills/lint")
        assert parsed.subpath is None
        assert parsed.url == str((tmp_path / "repo" / "skills" / "lint").resolve())


class TestErrors:
    @pytest.mark.parametrize("source", ["", "   ", None])
    def test_empty(self, source):
        with pytest.raises(SourceResolutionError):
            parse_source(source)

    def test_unrecognised(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SourceResolutionError):
            parse_source("not a source")

    def test_subpath_cannot_escape(self):
        with pytest.raises(SourceResolutionError):
            parse_source("octo/tools/../../etc")

    def test_resolution_error_is_value_error(self):
        assert issubclass(SourceResolutionError, ValueError)


class TestNormalizeRepo:
    def test_github_url(self):
        assert normalize_repo("https://github.com/octo/tools.git") == "octo/tools"

    def test_shorthand_with_subpath(self):
        assert normalize_repo("octo/tools/skills/lint") == "octo/tools"

    def test_gitlab(self):
        assert normalize_repo("https://gitlab.com/octo/tools") == "gitlab:octo/tools"

    def test_generic_kept_as_url(self):
        assert normalize_repo("https://git.example.org/team/repo.git") == "https://git.example.org/team/repo.git"
