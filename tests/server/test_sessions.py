"""Tests for the streaming session manager."""

from __future__ import annotations

import json

import anyio
import pytest

from google_search_mcp.core.exceptions import ServerShuttingDown, SessionNotFound
from google_search_mcp.core.logging import get_correlation_id
from google_search_mcp.server.config import ServerSettings
from google_search_mcp.server.rpc import RpcDispatcher
from google_search_mcp.server.sessions import SessionManager, SessionState


async def echo_handler(payload):
    return {"echo": payload}


@pytest.fixture
def manager():
    manager = SessionManager(echo_handler)
    yield manager
    manager.close_all()


class TestLifecycle:
    def test_create_session(self, manager):
        session = manager.create_session()

        assert len(session.session_id) == 32
        assert int(session.session_id, 16) >= 0
        assert session.post_endpoint_path == f"/sse/{session.session_id}"
        assert session.state is SessionState.CREATED
        assert session.session_id in manager
        assert manager.active_count == 1

    def test_ids_are_distinct(self, manager):
        ids = {manager.create_session().session_id for _ in range(200)}
        assert len(ids) == 200
        assert manager.active_count == 200

    def test_custom_sse_path(self):
        manager = SessionManager(echo_handler, sse_path="/events/")
        session = manager.create_session()
        assert session.post_endpoint_path == f"/events/{session.session_id}"

    def test_close_is_idempotent(self, manager):
        session = manager.create_session()

        assert manager.close_session(session.session_id) is True
        assert manager.close_session(session.session_id) is False
        assert session.state is SessionState.CLOSED
        assert session.session_id not in manager
        assert manager.get_session(session.session_id) is None

    def test_close_unknown_session(self, manager):
        assert manager.close_session("0" * 32) is False

    def test_close_only_affects_one_session(self, manager):
        first = manager.create_session()
        second = manager.create_session()

        manager.close_session(first.session_id)

        assert second.session_id in manager
        assert second.state is SessionState.CREATED

    def test_close_all(self, manager):
        sessions = [manager.create_session() for _ in range(3)]

        assert manager.close_all() == 3
        assert manager.active_count == 0
        assert all(s.state is SessionState.CLOSED for s in sessions)
        assert manager.close_all() == 0

    def test_shutdown_refuses_new_sessions(self, manager):
        session = manager.create_session()

        assert manager.shutdown() == 1
        assert session.is_closed
        with pytest.raises(ServerShuttingDown):
            manager.create_session()
        assert manager.active_count == 0

    async def test_connect_closes_on_exit(self, manager):
        async with manager.connect() as session:
            assert session.session_id in manager
        assert session.session_id not in manager
        assert session.is_closed

    async def test_connect_closes_on_error(self, manager):
        with pytest.raises(RuntimeError):
            async with manager.connect() as session:
                raise RuntimeError("client went away")
        assert session.session_id not in manager

    async def test_connect_closes_on_cancellation(self, manager):
        opened = anyio.Event()
        holder = {}

        async def hold_open():
            async with manager.connect() as session:
                holder["session"] = session
                opened.set()
                await anyio.sleep_forever()

        async with anyio.create_task_group() as tg:
            tg.start_soon(hold_open)
            await opened.wait()
            assert manager.active_count == 1
            tg.cancel_scope.cancel()

        assert manager.active_count == 0
        assert holder["session"].is_closed


class TestRouting:
    async def test_route_returns_and_queues_response(self, manager):
        session = manager.create_session()

        response = await manager.route_message(session.session_id, {"id": 1})

        assert response == {"echo": {"id": 1}}
        assert session.receive_stream.receive_nowait() == {"echo": {"id": 1}}

    async def test_unknown_session(self, manager):
        with pytest.raises(SessionNotFound) as exc_info:
            await manager.route_message("f" * 32, {"id": 1})
        assert exc_info.value.session_id == "f" * 32

    async def test_closed_session_matches_unknown(self, manager):
        session = manager.create_session()
        manager.close_session(session.session_id)

        with pytest.raises(SessionNotFound) as closed:
            await manager.route_message(session.session_id, {"id": 1})
        with pytest.raises(SessionNotFound) as unknown:
            await manager.route_message("f" * 32, {"id": 1})

        assert type(closed.value) is type(unknown.value)

    async def test_notifications_queue_nothing(self):
        async def silent(payload):
            return None

        manager = SessionManager(silent)
        session = manager.create_session()

        assert await manager.route_message(session.session_id, {"method": "initialized"}) is None
        assert session.receive_stream.statistics().current_buffer_used == 0

    async def test_handler_error_keeps_session_open(self):
        async def broken(payload):
            raise ValueError("handler failed")

        manager = SessionManager(broken)
        session = manager.create_session()

        with pytest.raises(ValueError):
            await manager.route_message(session.session_id, {})
        assert session.session_id in manager

    async def test_handler_runs_with_session_correlation_id(self):
        seen = []

        async def record(payload):
            seen.append(get_correlation_id())
            return {}

        manager = SessionManager(record)
        session = manager.create_session()
        await manager.route_message(session.session_id, {})

        assert seen == [session.session_id]

    async def test_messages_processed_in_arrival_order(self):
        order = []

        async def slow_first(payload):
            if payload["n"] == 0:
                await anyio.sleep(0.05)
            order.append(payload["n"])
            return payload

        manager = SessionManager(slow_first)
        session = manager.create_session()

        async with anyio.create_task_group() as tg:
            for n in range(3):
                tg.start_soon(manager.route_message, session.session_id, {"n": n})
                await anyio.sleep(0.001)

        assert order == [0, 1, 2]

    async def test_close_while_sender_waits(self):
        manager = SessionManager(echo_handler, max_buffered_messages=0)
        session = manager.create_session()
        errors = []

        async def send():
            try:
                await manager.route_message(session.session_id, {"id": 1})
            except SessionNotFound as e:
                errors.append(e)

        async with anyio.create_task_group() as tg:
            tg.start_soon(send)
            await anyio.sleep(0.01)
            manager.close_session(session.session_id)

        assert len(errors) == 1


class TestStreamEvents:
    async def test_endpoint_event_first(self, manager):
        session = manager.create_session()
        events = manager.stream_events(session)

        first = await events.__anext__()

        assert first == {"event": "endpoint", "data": f"/sse/{session.session_id}"}
        assert session.state is SessionState.ACTIVE
        await events.aclose()

    async def test_messages_follow_and_stream_ends_on_close(self, manager):
        session = manager.create_session()
        events = manager.stream_events(session)
        await events.__anext__()

        await manager.route_message(session.session_id, {"id": 7})
        event = await events.__anext__()
        assert event["event"] == "message"
        assert json.loads(event["data"]) == {"echo": {"id": 7}}

        manager.close_session(session.session_id)
        with pytest.raises(StopAsyncIteration):
            await events.__anext__()


class TestEndToEnd:
    async def test_search_over_session(self, router, search_provider):
        dispatcher = RpcDispatcher(router, ServerSettings(server_name="test-server"))
        manager = SessionManager(dispatcher.handle_message)

        async with manager.connect() as session:
            events = manager.stream_events(session)
            endpoint = await events.__anext__()
            assert endpoint["data"] == session.post_endpoint_path

            await manager.route_message(
                session.session_id,
                {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
            )
            init = json.loads((await events.__anext__())["data"])
            assert init["result"]["serverInfo"]["name"] == "test-server"

            await manager.route_message(session.session_id, {"jsonrpc": "2.0", "method": "notifications/initialized"})

            response = await manager.route_message(
                session.session_id,
                {
                    "jsonrpc": "2.0",
                    "id": 2,
                    "method": "tools/call",
                    "params": {"name": "google_search", "arguments": {"query": "rust ownership"}},
                },
            )
            event = json.loads((await events.__anext__())["data"])

            assert event == response
            assert event["id"] == 2
            text = event["result"]["content"][0]["text"]
            assert text.startswith('Search results for "rust ownership":')
            assert "isError" not in event["result"]
            assert search_provider.calls[0][0] == "rust ownership"
            await events.aclose()

        assert session.session_id not in manager
        with pytest.raises(SessionNotFound):
            await manager.route_message(session.session_id, {"jsonrpc": "2.0", "id": 3, "method": "ping"})
