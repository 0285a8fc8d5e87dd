"""Tests for the search web server."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils

from conftest import parcel
from property_search.query.models import Failure, GeoPoint, MultiMatch, SingleMatch
from property_search.web_server import SearchSessions, WebServer, outcome_to_dict


def make_orchestrator(outcome=None):
    orchestrator = MagicMock()
    orchestrator.submit = AsyncMock(return_value=outcome)
    return orchestrator


class TestOutcomeToDict:
    """Test outcome serialization."""

    def test_single_match(self):
        outcome = SingleMatch(
            message="I found **306 CEDAR LN**. Here are the details:",
            location=GeoPoint(latitude=26.7, longitude=-80.1, label="306 CEDAR LN"),
            record=parcel("12-345", "306 CEDAR LN"),
        )

        payload = outcome_to_dict(outcome)

        assert payload["type"] == "SingleMatch"
        assert payload["location"] == {"latitude": 26.7, "longitude": -80.1, "label": "306 CEDAR LN"}
        assert payload["features"][0]["attributes"]["PARCELID"] == "12-345"
        assert "reason" not in payload

    def test_multi_match(self):
        outcome = MultiMatch(message="I found **2**", matches=[parcel("1", "A"), parcel("2", "B")])
        payload = outcome_to_dict(outcome)
        assert len(payload["features"]) == 2
        assert payload["location"] is None

    def test_failure(self):
        payload = outcome_to_dict(Failure(message="Too broad", reason="too_broad"))
        assert payload["type"] == "Failure"
        assert payload["reason"] == "too_broad"
        assert payload["features"] == []


class TestSearchSessions:
    """Test per-session orchestrators."""

    def test_sessions_are_isolated(self):
        sessions = SearchSessions(MagicMock(side_effect=lambda: MagicMock()))

        first = sessions.get("a")
        assert sessions.get("a") is first
        assert sessions.get("b") is not first
        assert len(sessions) == 2

    def test_end(self):
        sessions = SearchSessions(MagicMock)
        sessions.get("a")

        assert sessions.end("a") is True
        assert sessions.end("a") is False
        assert len(sessions) == 0

    def test_least_recently_used_session_dropped(self):
        """Test the oldest idle session is dropped past the bound."""
        sessions = SearchSessions(MagicMock(side_effect=lambda: MagicMock()), max_sessions=2)
        first = sessions.get("a")
        sessions.get("b")
        assert sessions.get("a") is first

        sessions.get("c")

        assert len(sessions) == 2
        assert sessions.end("b") is False
        assert sessions.get("a") is first

    def test_invalid_bound(self):
        with pytest.raises(ValueError):
            SearchSessions(MagicMock, max_sessions=0)


class TestWebServer:
    """Test the HTTP routes."""

    @pytest.mark.asyncio
    async def test_health(self):
        server = WebServer(SearchSessions(make_orchestrator))
        async with test_utils.TestClient(test_utils.TestServer(server.app)) as client:
            response = await client.get("/health")
            assert response.status == 200
            assert (await response.json())["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_search(self):
        orchestrator = make_orchestrator(Failure(message="Too broad", reason="too_broad"))
        server = WebServer(SearchSessions(lambda: orchestrator))

        async with test_utils.TestClient(test_utils.TestServer(server.app)) as client:
            response = await client.post("/api/search", json={"query": "every parcel", "session_id": "s1"})
            payload = await response.json()

        assert response.status == 200
        assert payload["reason"] == "too_broad"
        orchestrator.submit.assert_awaited_once_with("every parcel")

    @pytest.mark.asyncio
    async def test_search_invalid_body(self):
        server = WebServer(SearchSessions(make_orchestrator))
        async with test_utils.TestClient(test_utils.TestServer(server.app)) as client:
            response = await client.post("/api/search", data="not json")
            assert response.status == 400

            response = await client.post("/api/search", json=["query"])
            assert response.status == 400

    @pytest.mark.asyncio
    async def test_search_unexpected_error(self):
        orchestrator = make_orchestrator()
        orchestrator.submit.side_effect = RuntimeError("boom")
        server = WebServer(SearchSessions(lambda: orchestrator))

        async with test_utils.TestClient(test_utils.TestServer(server.app)) as client:
            response = await client.post("/api/search", json={"query": "12-345"})
            assert response.status == 500

    @pytest.mark.asyncio
    async def test_end_session(self):
        sessions = SearchSessions(make_orchestrator)
        sessions.get("s1")
        server = WebServer(sessions)

        async with test_utils.TestClient(test_utils.TestServer(server.app)) as client:
            response = await client.delete("/api/sessions/s1")
            assert response.status == 200
            response = await client.delete("/api/sessions/s1")
            assert response.status == 404
