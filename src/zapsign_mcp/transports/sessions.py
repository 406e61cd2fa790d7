"""Per-connection session table for the streaming transport."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from ..core.processor import MCPProcessor
from ..exceptions import SessionNotFoundError, TransportError
from .bridge import ReadStream, WriteStream, run_message_loop

logger = logging.getLogger(__name__)

ProcessorFactory = Callable[[str], MCPProcessor]


class SessionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Session:
    """One SSE connection and the processor that serves it.

    ``write_stream`` is the SDK stream feeding the client's event stream; it is
    set once the message loop starts and closing it ends the response.
    """

    session_id: str
    processor: MCPProcessor
    state: SessionState = SessionState.CONNECTING
    write_stream: Optional[WriteStream] = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN


class SessionManager:
    """Create, look up and tear down sessions.

    The table is checked before any message reaches the SDK transport, so a
    closed or unknown session is refused even while the SDK still holds its
    stream. All methods except ``run`` are synchronous and must run on the
    event loop thread.
    """

    def __init__(self, processor_factory: ProcessorFactory, *, id_factory: Optional[Callable[[], str]] = None) -> None:
        self._processor_factory = processor_factory
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, session_id: Optional[str] = None) -> Session:
        """Register a session with its own processor.

        Args:
            session_id: Id assigned by the transport; generated when omitted

        Raises:
            TransportError: If ``session_id`` belongs to a session still in the table
        """
        if session_id is None:
            session_id = self._id_factory()
            while session_id in self._sessions:
                session_id = self._id_factory()
        elif session_id in self._sessions:
            raise TransportError(f"Session already open: {session_id}")

        session = Session(session_id=session_id, processor=self._processor_factory(session_id))
        self._sessions[session_id] = session
        session.state = SessionState.OPEN
        logger.info(f"SSE session opened: {session_id} ({len(self)} active)")
        return session

    def get(self, session_id: Optional[str]) -> Session:
        session = self._sessions.get(session_id) if session_id else None
        if session is None or not session.is_open:
            raise SessionNotFoundError(session_id)
        return session

    async def run(self, session: Session, read_stream: ReadStream, write_stream: WriteStream) -> None:
        """Serve ``session`` from the SDK streams until the client goes away or it is closed."""
        session.write_stream = write_stream
        if not session.is_open:
            write_stream.close()
        try:
            await run_message_loop(
                session.processor,
                read_stream,
                write_stream,
                stopping=lambda: not session.is_open,
            )
        finally:
            self.close(session.session_id)
            logger.debug(f"Session message loop finished: {session.session_id}")

    def close(self, session_id: str) -> bool:
        """Close a session; returns False if it was not registered.

        Calls already running are not cancelled. Their responses are dropped.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        session.state = SessionState.CLOSING
        session.processor.close()
        if session.write_stream is not None:
            session.write_stream.close()
        session.state = SessionState.CLOSED
        logger.info(f"SSE session closed: {session_id} ({len(self)} active)")
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)
