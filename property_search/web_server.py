"""Web server exposing the search pipeline to the map UI."""

import logging
from collections import OrderedDict
from dataclasses import asdict
from typing import Any, Callable

from aiohttp import web

from property_search.query.models import Failure, ResolutionOutcome
from property_search.query.orchestrator import QueryOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


def outcome_to_dict(outcome: ResolutionOutcome) -> dict[str, Any]:
    """Serialize an outcome for the UI layer."""
    payload: dict[str, Any] = {
        "type": outcome.kind,
        "message": outcome.message,
        "location": asdict(outcome.location) if outcome.location else None,
        "interpretation": outcome.interpretation,
        "features": [asdict(record) for record in outcome.records],
    }
    if isinstance(outcome, Failure):
        payload["reason"] = outcome.reason
    return payload


class SearchSessions:
    """One orchestrator, and so one session memory, per session id.

    At most ``max_sessions`` are kept; the least recently used session is
    dropped when a new one would exceed the bound.
    """

    def __init__(self, factory: Callable[[], QueryOrchestrator], max_sessions: int = 1000):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.factory = factory
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, QueryOrchestrator] = OrderedDict()

    def get(self, session_id: str) -> QueryOrchestrator:
        if session_id in self._sessions:
            self._sessions.move_to_end(session_id)
            return self._sessions[session_id]

        logger.info(f"Starting search session {session_id}")
        self._sessions[session_id] = self.factory()
        while len(self._sessions) > self.max_sessions:
            expired, _ = self._sessions.popitem(last=False)
            logger.info(f"Dropped least recently used search session {expired}")
        return self._sessions[session_id]

    def end(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


class WebServer:
    """HTTP server for search requests."""

    def __init__(self, sessions: SearchSessions, host: str = "0.0.0.0", port: int = 3000):
        """Initialize web server."""
        self.sessions = sessions
        self.host = host
        self.port = port
        self.app = web.Application()
        self._setup_routes()
        logger.info(f"Web server initialized on port {port}")

    def _setup_routes(self):
        """Set up HTTP routes."""
        self.app.router.add_get("/", self._handle_health)
        self.app.router.add_get("/health", self._handle_health)
        self.app.router.add_post("/api/search", self._handle_search)
        self.app.router.add_delete("/api/sessions/{session_id}", self._handle_end_session)
        logger.info("Routes configured: /, /health, /api/search, /api/sessions/{session_id}")

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response(
            {"status": "healthy", "service": "Property Search", "sessions": len(self.sessions)}
        )

    async def _handle_search(self, request: web.Request) -> web.Response:
        """
        Handle a search request.

        Expects JSON: {"query": "...", "session_id": "..."}
        """
        try:
            data = await request.json()
        except ValueError:
            return web.json_response({"error": "Request body must be JSON"}, status=400)

        if not isinstance(data, dict):
            return web.json_response({"error": "Request body must be a JSON object"}, status=400)

        query = str(data.get("query") or "")
        session_id = str(data.get("session_id") or DEFAULT_SESSION)

        try:
            outcome = await self.sessions.get(session_id).submit(query)
        except Exception as e:
            logger.error(f"Error handling search: {e}", exc_info=True)
            return web.json_response({"error": "Search failed. Please try rephrasing your question."}, status=500)

        return web.json_response(outcome_to_dict(outcome))

    async def _handle_end_session(self, request: web.Request) -> web.Response:
        """Forget a session and its search memory."""
        session_id = request.match_info["session_id"]
        if not self.sessions.end(session_id):
            return web.json_response({"error": "Unknown session"}, status=404)
        return web.json_response({"status": "ended", "session_id": session_id})

    async def start(self):
        """Start the web server."""
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        await site.start()
        logger.info(f"Web server started on {self.host}:{self.port}")
        logger.info(f"Search endpoint: http://localhost:{self.port}/api/search")
        return runner

    async def stop(self, runner):
        """Stop the web server."""
        await runner.cleanup()
