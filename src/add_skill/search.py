"""Client for the skillsmp.com skill search API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx

from add_skill.config import SEARCH_TIMEOUT, search_api_base, search_api_token

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("stars", "recent")


class SearchError(RuntimeError):
    """Raised when the search API cannot be reached or rejects the request."""


@dataclass(frozen=True)
class SearchSkill:
    id: str
    name: str
    author: str
    description: str
    github_url: str
    skill_url: str
    stars: int
    updated_at: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchSkill:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            author=str(data.get("author", "")),
            description=str(data.get("description", "")),
            github_url=str(data.get("githubUrl", "")),
            skill_url=str(data.get("skillUrl", "")),
            stars=int(data.get("stars") or 0),
            updated_at=int(data.get("updatedAt") or 0),
        )


@dataclass(frozen=True)
class SearchPagination:
    page: int = 1
    limit: int = 20
    total: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_prev: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchPagination:
        return cls(
            page=int(data.get("page", 1)),
            limit=int(data.get("limit", 20)),
            total=int(data.get("total", 0)),
            total_pages=int(data.get("totalPages", 0)),
            has_next=bool(data.get("hasNext", False)),
            has_prev=bool(data.get("hasPrev", False)),
        )


@dataclass(frozen=True)
class SearchResult:
    skills: list[SearchSkill] = field(default_factory=list)
    pagination: SearchPagination = field(default_factory=SearchPagination)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchResult:
        return cls(
            skills=[SearchSkill.from_dict(s) for s in data.get("skills") or []],
            pagination=SearchPagination.from_dict(data.get("pagination") or {}),
        )


def search_skills(
    query: str,
    page: int = 1,
    limit: int = 20,
    sort_by: str | None = None,
    client: httpx.Client | None = None,
) -> SearchResult:
    """Query the search API. Requires the SKILLS_MP_API token in the environment."""
    token = search_api_token()
    if not token:
        raise SearchError("SKILLS_MP_API environment variable is not set. Please set your API token.")

    params = {"q": query, "page": str(page), "limit": str(limit)}
    if sort_by:
        params["sortBy"] = sort_by
    headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    url = f"{search_api_base()}/skills/search"

    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=SEARCH_TIMEOUT, follow_redirects=True)
    try:
        response = client.get(url, params=params, headers=headers)
    except httpx.HTTPError as e:
        raise SearchError(f"Search request failed: {e}") from e
    finally:
        if owns_client:
            client.close()

    if response.status_code == 401:
        raise SearchError("Invalid API token. Please check your SKILLS_MP_API environment variable.")
    if response.is_error:
        raise SearchError(f"Search API error: {response.status_code} {response.reason_phrase}")

    try:
        payload = response.json()
    except ValueError as e:
        raise SearchError("Search API returned invalid JSON") from e

    if not isinstance(payload, dict) or not payload.get("success"):
        raise SearchError("Search failed")

    try:
        result = SearchResult.from_dict(payload.get("data") or {})
    except (TypeError, ValueError, AttributeError) as e:
        raise SearchError(f"Unexpected search response: {e}") from e
    logger.debug("Search %r returned %d skill(s)", query, len(result.skills))
    return result


def format_stars(stars: int) -> str:
    if stars >= 1_000_000:
        return f"{stars / 1_000_000:.1f}M"
    if stars >= 1000:
        return f"{stars / 1000:.1f}k"
    return str(stars)


def format_date(timestamp: int, now: datetime | None = None) -> str:
    """Relative age of a unix timestamp, e.g. "3 days ago"."""
    now = now or datetime.now(UTC)
    days = (now - datetime.fromtimestamp(timestamp, UTC)).days

    if days <= 0:
        return "today"
    if days == 1:
        return "yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"
