import asyncio

import pytest

from mcp_engine.core.session import Session, SessionManager, SessionState, SessionStateError


class TestSession:
    def test_lifecycle(self):
        session = Session("s1")
        assert session.state == SessionState.UNINITIALIZED

        session.activate()
        assert session.is_active

        session.close()
        assert session.is_closed

    def test_invalid_transitions(self):
        session = Session("s1")
        session.activate()
        with pytest.raises(SessionStateError):
            session.activate()

        session.close()
        with pytest.raises(SessionStateError):
            session.close()
        with pytest.raises(SessionStateError):
            session.activate()

    @pytest.mark.asyncio
    async def test_run_serialises_requests(self):
        session = Session("s1")
        events = []

        async def request(name):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")
            return name

        results = await asyncio.gather(
            session.run(lambda: request("a")),
            session.run(lambda: request("b")),
        )

        assert results == ["a", "b"]
        assert events == ["a:start", "a:end", "b:start", "b:end"]


class TestSessionManager:
    def test_create_get_remove(self):
        manager = SessionManager()
        session = manager.create_session()

        assert len(manager) == 1
        assert session.id in manager
        assert manager.get_session(session.id) is session

        assert manager.remove_session(session.id) is session
        assert session.is_closed
        assert len(manager) == 0
        assert manager.get_session(session.id) is None

    def test_remove_unknown(self):
        assert SessionManager().remove_session("missing") is None

    def test_ids_are_unique(self):
        manager = SessionManager()
        ids = {manager.create_session().id for _ in range(50)}
        assert len(ids) == 50
