# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Streaming session management for the SSE transport.

A client opens ``GET /sse`` and keeps the response open. The server
allocates a session, tells the client where to POST its JSON-RPC messages
(the ``endpoint`` event), and streams every response back over the open
connection as a ``message`` event.

The session table maps session ids to open sessions. Every key refers to a
live outbound channel: entries are removed synchronously when the client
disconnects or the server shuts down, so a lookup miss always means "no
such session". Closed sessions are never reinserted.

Within a session, messages are handled one at a time in arrival order.
Sessions share nothing but the table.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from ..core.exceptions import ServerShuttingDown, SessionNotFound
from ..core.logging import correlation_context

logger = logging.getLogger(__name__)

DEFAULT_SSE_PATH = "/sse"
DEFAULT_MAX_BUFFERED_MESSAGES = 64

MessageHandler = Callable[[Any], Awaitable[Any]]


class SessionState(StrEnum):
    CREATED = "created"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(eq=False)
class Session:
    """One open streaming connection and its outbound channel."""

    session_id: str
    post_endpoint_path: str
    send_stream: MemoryObjectSendStream[Any] = field(repr=False)
    receive_stream: MemoryObjectReceiveStream[Any] = field(repr=False)
    state: SessionState = SessionState.CREATED
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    lock: anyio.Lock = field(default_factory=anyio.Lock, repr=False)

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    async def send(self, message: Any) -> None:
        """Queue an outbound message for the event stream."""
        await self.send_stream.send(message)

    def close(self) -> None:
        self.state = SessionState.CLOSED
        self.send_stream.close()
        self.receive_stream.close()


class SessionManager:
    """Owns the session table and the session lifecycle.

    Args:
        handler: Coroutine that turns one inbound payload into its response
            (``None`` when nothing should be sent back)
        sse_path: Path of the streaming endpoint; POSTs go to ``{sse_path}/{id}``
        max_buffered_messages: Outbound messages buffered per session before
            the sender waits for the stream to drain
    """

    def __init__(
        self,
        handler: MessageHandler,
        sse_path: str = DEFAULT_SSE_PATH,
        max_buffered_messages: int = DEFAULT_MAX_BUFFERED_MESSAGES,
    ) -> None:
        self._handler = handler
        self.sse_path = sse_path.rstrip("/")
        self.max_buffered_messages = max_buffered_messages
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._accepting = True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create_session(self) -> Session:
        """Allocate a new session and register it in the table.

        Raises:
            ServerShuttingDown: After shutdown() has been called
        """
        send_stream, receive_stream = anyio.create_memory_object_stream[Any](self.max_buffered_messages)
        with self._lock:
            if not self._accepting:
                send_stream.close()
                receive_stream.close()
                raise ServerShuttingDown()
            session_id = uuid.uuid4().hex
            while session_id in self._sessions:
                session_id = uuid.uuid4().hex
            session = Session(
                session_id=session_id,
                post_endpoint_path=f"{self.sse_path}/{session_id}",
                send_stream=send_stream,
                receive_stream=receive_stream,
            )
            self._sessions[session_id] = session
            count = len(self._sessions)

        logger.info(f"Session created: {session_id} ({count} open)")
        return session

    def close_session(self, session_id: str) -> bool:
        """Remove a session from the table and close its channel.

        Returns:
            True only for the call that actually closed the session
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        session.close()
        logger.info(f"Session closed: {session_id}")
        return True

    def close_all(self) -> int:
        """Close every open session. Returns how many were closed."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            session.close()
        if sessions:
            logger.info(f"Closed {len(sessions)} open sessions")
        return len(sessions)

    def shutdown(self) -> int:
        """Stop accepting sessions and close the open ones."""
        with self._lock:
            self._accepting = False
        return self.close_all()

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[Session]:
        """Open a session for the lifetime of one streaming connection.

        The session is closed on exit however the block ends: client
        disconnect, error or cancellation.
        """
        session = self.create_session()
        try:
            yield session
        finally:
            self.close_session(session.session_id)

    # =========================================================================
    # Messaging
    # =========================================================================

    async def stream_events(self, session: Session) -> AsyncIterator[dict[str, str]]:
        """Event source for a session's open response.

        Yields the ``endpoint`` event first, then one ``message`` event per
        outbound message until the session is closed.
        """
        if session.state is SessionState.CREATED:
            session.state = SessionState.ACTIVE
        yield {"event": "endpoint", "data": session.post_endpoint_path}

        try:
            async for message in session.receive_stream:
                yield {"event": "message", "data": json.dumps(message)}
        except anyio.ClosedResourceError:
            logger.debug(f"Session {session.session_id} closed with undelivered messages")

    async def route_message(self, session_id: str, payload: Any) -> Any:
        """Handle an inbound payload for a session and queue its response.

        Returns:
            The handler's response, also pushed onto the session's stream

        Raises:
            SessionNotFound: If no open session has this id, or the session
                closed before the response could be queued
        """
        session = self.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)

        async with session.lock:
            if session.is_closed:
                raise SessionNotFound(session_id)

            with correlation_context(session_id):
                response = await self._handler(payload)

            if response is not None:
                try:
                    await session.send(response)
                except (anyio.ClosedResourceError, anyio.BrokenResourceError) as e:
                    raise SessionNotFound(session_id) from e

        return response

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_session(self, session_id: str) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        return self.active_count
