"""HTTP + Server-Sent Events transport.

``GET /sse`` opens a session through the MCP SDK's ``SseServerTransport``; the
first event (``endpoint``) tells the client where to POST its JSON-RPC
messages. The SDK names the query parameter ``session_id``; clients of this
server expect ``sessionId``, so the endpoint event is rewritten on its way out
and ``/messages`` accepts either spelling.
"""

from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

import anyio
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from ..exceptions import SessionNotFoundError, TransportError
from .sessions import Session, SessionManager

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/messages"

# Seconds to wait for the SDK to announce the session before giving up on the stream
ENDPOINT_EVENT_TIMEOUT = 5.0

_SDK_SESSION_PARAM = re.compile(rb"([?&])session_id=([0-9a-f]{32})")


def announce_session_id(body: bytes) -> Tuple[bytes, Optional[str]]:
    """Rename ``session_id`` to ``sessionId`` in an endpoint event chunk.

    Returns the rewritten chunk and the session id, or the chunk unchanged and
    ``None`` when it carries no session id.
    """
    match = _SDK_SESSION_PARAM.search(body)
    if match is None:
        return body, None
    rewritten = _SDK_SESSION_PARAM.sub(rb"\1sessionId=\2", body, count=1)
    return rewritten, match.group(2).decode("ascii")


class SseEndpoint:
    """ASGI app for ``GET /sse``: one SDK connection, one session, one message loop."""

    def __init__(
        self,
        transport: SseServerTransport,
        sessions: SessionManager,
        *,
        endpoint_timeout: float = ENDPOINT_EVENT_TIMEOUT,
    ) -> None:
        self._transport = transport
        self._sessions = sessions
        self._endpoint_timeout = endpoint_timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        opened: Dict[str, Session] = {}
        announced = anyio.Event()

        async def announcing_send(message: Message) -> None:
            if not announced.is_set() and message["type"] == "http.response.body":
                body, session_id = announce_session_id(message.get("body", b""))
                if session_id is not None:
                    # registered before the client can learn the id and POST to it
                    opened["session"] = self._sessions.open(session_id)
                    message = {**message, "body": body}
                    announced.set()
            await send(message)

        client = scope.get("client") or ("unknown",)
        try:
            async with self._transport.connect_sse(scope, receive, announcing_send) as (read_stream, write_stream):
                with anyio.move_on_after(self._endpoint_timeout):
                    await announced.wait()

                session = opened.get("session")
                if session is None:
                    logger.warning(f"SSE stream from {client[0]} ended before a session was announced")
                    write_stream.close()
                    return

                logger.info(f"SSE connection from {client[0]} -> session {session.session_id}")
                await self._sessions.run(session, read_stream, write_stream)
        finally:
            if "session" in opened:
                self._sessions.close(opened["session"].session_id)


class MessagesEndpoint:
    """ASGI app for ``POST /messages``: session table check, then the SDK handler."""

    def __init__(self, transport: SseServerTransport, sessions: SessionManager) -> None:
        self._transport = transport
        self._sessions = sessions

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        query = Request(scope).query_params
        session_id = query.get("sessionId") or query.get("session_id")
        try:
            self._sessions.get(session_id)
        except SessionNotFoundError as exc:
            logger.warning(f"{exc.kind.value}: {exc}")
            response: Response = PlainTextResponse("No transport/server found for sessionId", status_code=400)
            await response(scope, receive, send)
            return

        started = False

        async def tracking_send(message: Message) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        forwarded = dict(scope, query_string=urlencode({"session_id": session_id}).encode("ascii"))
        try:
            await self._transport.handle_post_message(forwarded, receive, tracking_send)
        except Exception as e:
            error = TransportError(f"Message handling failed for session {session_id}: {e}")
            logger.error(str(error), exc_info=True)
            if not started:
                response = JSONResponse({"error": "Message handling failed", "kind": error.kind.value}, status_code=500)
                await response(scope, receive, send)


def create_sse_app(
    sessions: SessionManager,
    health_handler: Callable[[Request], Awaitable[Response]],
    *,
    transport: Optional[SseServerTransport] = None,
) -> Starlette:
    """Build the Starlette app serving ``/health``, ``/sse`` and ``/messages``."""
    transport = transport or SseServerTransport(MESSAGES_PATH)

    routes = [
        Route("/health", health_handler, methods=["GET"]),
        Route("/sse", SseEndpoint(transport, sessions), methods=["GET"]),
        Route(MESSAGES_PATH, MessagesEndpoint(transport, sessions), methods=["POST"]),
    ]
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
            allow_credentials=False,
        )
    ]
    return Starlette(routes=routes, middleware=middleware)
