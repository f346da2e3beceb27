"""SSE session management.

A session exists for as long as its event stream is open. All table operations
run on the server's event loop, so open/close/lookup never interleave and need
no lock.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, Optional


ENDPOINT_EVENT = "endpoint"
MESSAGE_EVENT = "message"


def format_sse_event(event: str, data: Any) -> str:
    """Frame one server-sent event; non-string data is sent as compact JSON."""
    if not isinstance(data, str):
        data = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    return f"event: {event}\ndata: {data}\n\n"


class Session:
    """One open event stream."""

    def __init__(self, token: str, endpoint: str):
        self.token = token
        self.endpoint = endpoint
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def message_endpoint(self) -> str:
        return f"{self.endpoint}?sessionId={self.token}"

    def send(self, event: str, data: Any) -> bool:
        """Queue an event for the stream. Returns False if it was dropped."""
        if self._closed:
            return False
        self._queue.put_nowait(format_sse_event(event, data))
        return True

    def close(self) -> bool:
        """Mark the session closed and wake the stream. Only the first call has effect."""
        if self._closed:
            return False
        self._closed = True
        self._queue.put_nowait(None)
        return True

    async def frames(self) -> AsyncIterator[str]:
        """Yield the endpoint announcement, then queued events until closed."""
        yield format_sse_event(ENDPOINT_EVENT, self.message_endpoint)
        while True:
            frame = await self._queue.get()
            if frame is None:
                break
            yield frame


class SessionManager:
    """Table of open SSE sessions keyed by token."""

    def __init__(self, endpoint: str = "/mcp"):
        self.endpoint = endpoint
        self._sessions: Dict[str, Session] = {}
        self.logger = logging.getLogger("session_manager")

    def open(self) -> Session:
        token = uuid.uuid4().hex
        while token in self._sessions:
            token = uuid.uuid4().hex
        session = Session(token, self.endpoint)
        self._sessions[token] = session
        self.logger.info(f"Session opened: {token} ({len(self._sessions)} open)")
        return session

    def get(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        return self._sessions.get(token)

    def close(self, token: str) -> bool:
        """Close and forget a session. Unknown or already closed tokens are ignored."""
        session = self._sessions.pop(token, None)
        if session is None:
            return False
        closed = session.close()
        self.logger.info(f"Session closed: {token} ({len(self._sessions)} open)")
        return closed

    def close_all(self) -> None:
        for token in list(self._sessions):
            self.close(token)

    def push(self, token: Optional[str], data: Any, event: str = MESSAGE_EVENT) -> bool:
        """Best-effort delivery of ``data`` to the session's stream."""
        session = self.get(token)
        if session is None:
            if token:
                self.logger.debug(f"No open session for token {token}, push skipped")
            return False
        try:
            delivered = session.send(event, data)
        except Exception as e:
            self.logger.warning(f"Push to session {token} failed: {e}")
            return False
        if not delivered:
            self.logger.debug(f"Session {token} closed, push dropped")
        return delivered

    async def event_stream(self, session: Session) -> AsyncIterator[str]:
        """Stream a session's frames and close it when the client goes away."""
        try:
            async for frame in session.frames():
                yield frame
        finally:
            self.close(session.token)

    def __contains__(self, token: object) -> bool:
        return token in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
