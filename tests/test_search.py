"""Tests for add_skill.search: API client and formatting helpers."""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from unittest import mock

import httpx
import pytest

from add_skill.search import SearchError, format_date, format_stars, search_skills

_PAYLOAD = {
    "success": True,
    "data": {
        "skills": [
            {
                "id": "s1",
                "name": "lint-helper",
                "author": "octo",
                "description": "Lints things",
                "githubUrl": "https://github.com/octo/tools/tree/main/skills/lint-helper",
                "skillUrl": "https://skillsmp.com/skills/s1",
                "stars": 1234,
                "updatedAt": 1700000000,
            }
        ],
        "pagination": {"page": 1, "limit": 20, "total": 1, "totalPages": 1, "hasNext": False, "hasPrev": False},
        "filters": {"search": "lint", "sortBy": "stars", "marketplaceOnly": False},
    },
    "meta": {"requestId": "r", "responseTimeMs": 5},
}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def token():
    with mock.patch.dict(os.environ, {"SKILLS_MP_API": "secret", "SKILLS_MP_API_BASE": "https://api.test/v1"}):
        yield


class TestSearchSkills:
    def test_parses_results_and_sends_auth(self, token):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=_PAYLOAD)

        result = search_skills("lint", sort_by="stars", client=_client(handler))

        assert seen["auth"] == "Bearer secret"
        assert seen["url"].path == "/v1/skills/search"
        assert seen["url"].params["q"] == "lint"
        assert seen["url"].params["sortBy"] == "stars"
        assert seen["url"].params["page"] == "1"
        assert seen["url"].params["limit"] == "20"
        assert len(result.skills) == 1
        skill = result.skills[0]
        assert skill.name == "lint-helper"
        assert skill.github_url.endswith("skills/lint-helper")
        assert skill.stars == 1234
        assert result.pagination.total == 1

    def test_missing_token(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with pytest.raises(SearchError, match="SKILLS_MP_API"):
                search_skills("lint", client=_client(lambda r: httpx.Response(200, json=_PAYLOAD)))

    def test_unauthorized(self, token):
        client = _client(lambda r: httpx.Response(401))
        with pytest.raises(SearchError, match="Invalid API token"):
            search_skills("lint", client=client)

    def test_server_error(self, token):
        client = _client(lambda r: httpx.Response(503))
        with pytest.raises(SearchError, match="503"):
            search_skills("lint", client=client)

    def test_unsuccessful_payload(self, token):
        client = _client(lambda r: httpx.Response(200, json={"success": False}))
        with pytest.raises(SearchError, match="Search failed"):
            search_skills("lint", client=client)

    def test_invalid_json(self, token):
        client = _client(lambda r: httpx.Response(200, content=b"<html>"))
        with pytest.raises(SearchError, match="invalid JSON"):
            search_skills("lint", client=client)

    def test_transport_error(self, token):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(SearchError, match="request failed"):
            search_skills("lint", client=_client(handler))


class TestFormatStars:
    @pytest.mark.parametrize(
        "stars,expected",
        [(0, "0"), (999, "999"), (1000, "1.0k"), (1250, "1.2k"), (2_500_000, "2.5M")],
    )
    def test_format(self, stars, expected):
        assert format_stars(stars) == expected


class TestFormatDate:
    NOW = datetime(2026, 1, 31, 12, tzinfo=UTC)

    def _ago(self, **delta) -> int:
        return int((self.NOW - timedelta(**delta)).timestamp())

    @pytest.mark.parametrize(
        "delta,expected",
        [
            ({"hours": 2}, "today"),
            ({"days": 1}, "yesterday"),
            ({"days": 3}, "3 days ago"),
            ({"days": 15}, "2 weeks ago"),
            ({"days": 95}, "3 months ago"),
            ({"days": 800}, "2 years ago"),
        ],
    )
    def test_relative(self, delta, expected):
        assert format_date(self._ago(**delta), now=self.NOW) == expected
