"""Resolve user-supplied source strings into clone targets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

GITHUB = "github"
GITLAB = "gitlab"
GIT = "git"
LOCAL = "local"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_SCP_RE = re.compile(r"^(?P<user>[^@/\s]+)@(?P<host>[^:/\s]+):(?P<path>.+)$")
_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.-]+$")
_DRIVE_RE = re.compile(r"^[A-Za-z]:[\\/]")
_GITHUB_REPO_RE = re.compile(r"github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?$")
_GITLAB_REPO_RE = re.compile(r"gitlab\.com[/:]([^/]+)/([^/]+?)(?:\.git)?$")

# "gitlab:owner/repo" is the form favourites store for GitLab repositories.
_HOST_PREFIXES = {"github": "github.com", "gitlab": "gitlab.com"}


class SourceResolutionError(ValueError):
    """Raised when a source string cannot be resolved to a repository or path."""


@dataclass(frozen=True)
class ParsedSource:
    kind: str
    url: str
    subpath: str | None = None
    ref: str | None = None

    @property
    def is_local(self) -> bool:
        return self.kind == LOCAL


def _looks_like_local_path(source: str) -> bool:
    if source in (".", "..") or source.startswith(("/", "./", "../", "~", ".\\", "..\\")):
        return True
    return bool(_DRIVE_RE.match(source))


def _clean_subpath(parts: list[str]) -> str | None:
    """Join path segments into a relative subpath, refusing anything that climbs out of the repo."""
    cleaned: list[str] = []
    for part in parts:
        part = unquote(part)
        if part in ("", "."):
            continue
        if part == "..":
            raise SourceResolutionError("Subpath must not contain '..' segments")
        cleaned.append(part)
    return "/".join(cleaned) or None


def _classify_host(host: str) -> str:
    host = host.lower()
    if host == "github.com" or host.endswith(".github.com"):
        return GITHUB
    if "gitlab" in host:
        return GITLAB
    return GIT


def _parse_url(url: str) -> ParsedSource:
    scp = _SCP_RE.match(url) if not _SCHEME_RE.match(url) else None
    if scp:
        host = scp.group("host")
        path = scp.group("path")
        prefix = f"{scp.group('user')}@{host}:"
    else:
        parts = urlsplit(url)
        host = parts.hostname or ""
        path = parts.path
        prefix = f"{parts.scheme}://{parts.netloc}/"

    if not host:
        raise SourceResolutionError(f"Cannot determine host from URL: {url}")

    segments = [s for s in path.split("/") if s]
    if len(segments) < 2:
        raise SourceResolutionError(f"Cannot determine repository from URL: {url}")

    # A ".git" suffix marks where the repository path ends.
    end = 2
    for i, segment in enumerate(segments[1:], start=1):
        if segment.endswith(".git"):
            end = i + 1
            break

    kind = _classify_host(host)
    rest = segments[end:]
    ref = None
    if kind == GITLAB and rest[:1] == ["-"]:
        rest = rest[1:]
    if kind in (GITHUB, GITLAB) and len(rest) >= 2 and rest[0] in ("tree", "blob"):
        ref = rest[1]
        rest = rest[2:]

    if not rest and ref is None:
        return ParsedSource(kind=kind, url=url.rstrip("/"))

    repo_url = prefix + "/".join(segments[:end])
    return ParsedSource(kind=kind, url=repo_url, subpath=_clean_subpath(rest), ref=ref)


def parse_source(source: str) -> ParsedSource:
    """Resolve a source string into a ParsedSource.

    Accepted shapes, tried in order:

    - ``owner/repo`` GitHub shorthand
    - ``owner/repo/sub/path`` GitHub shorthand with a subpath
    - ``gitlab:owner/repo`` and ``github:owner/repo`` host prefixes
    - full URLs (``https://``, ``ssh://``, ``git@host:owner/repo``) or ``host.tld/owner/repo``
    - local filesystem paths

    Raises SourceResolutionError for empty or unrecognised input.

    A local path is resolved to an absolute directory and becomes the discovery root
    itself, so ``subpath`` is always None for local sources: ``./repo/skills/lint`` scopes
    discovery exactly as ``./repo`` with subpath ``skills/lint`` would.
    """
    text = (source or "").strip()
    if not text:
        raise SourceResolutionError("Source is empty")

    if _looks_like_local_path(text):
        return ParsedSource(kind=LOCAL, url=str(Path(text).expanduser().resolve()))

    if _SCHEME_RE.match(text) or _SCP_RE.match(text):
        return _parse_url(text)

    prefix, sep, remainder = text.partition(":")
    if sep and prefix in _HOST_PREFIXES:
        return _parse_url(f"https://{_HOST_PREFIXES[prefix]}/{remainder.lstrip('/')}")

    segments = text.strip("/").split("/")
    if len(segments) >= 2 and "." in segments[0]:
        return _parse_url(f"https://{text}")

    if len(segments) >= 2 and all(_SEGMENT_RE.match(s) for s in segments[:2]):
        owner, repo = segments[0], segments[1]
        return ParsedSource(
            kind=GITHUB,
            url=f"https://github.com/{owner}/{repo}",
            subpath=_clean_subpath(segments[2:]),
        )

    if Path(text).expanduser().is_dir():
        return ParsedSource(kind=LOCAL, url=str(Path(text).expanduser().resolve()))

    raise SourceResolutionError(f"Unrecognised source: {source!r}")


def normalize_repo(source: str) -> str:
    """Reduce a source to the short form stored in favourites (owner/repo, gitlab:owner/repo, or the URL)."""
    parsed = parse_source(source)

    match = _GITHUB_REPO_RE.search(parsed.url)
    if match:
        return f"{match.group(1)}/{match.group(2)}"

    match = _GITLAB_REPO_RE.search(parsed.url)
    if match:
        return f"gitlab:{match.group(1)}/{match.group(2)}"

    return parsed.url
