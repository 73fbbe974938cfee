from __future__ import annotations

import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage

from research.core.memory import SESSION_ID_ALPHABET, Session, SessionStore
from research.errors import SessionNotFound


class TestSessionStore:
    def test_create_returns_short_alphanumeric_token(self):
        session_id = SessionStore(id_length=10).create()
        assert len(session_id) == 10
        assert set(session_id) <= set(SESSION_ID_ALPHABET)

    def test_create_does_not_store(self):
        store = SessionStore()
        session_id = store.create()
        assert session_id not in store
        assert len(store) == 0

    def test_put_then_get(self):
        store = SessionStore()
        session = Session()
        store.put("abc", session)
        assert store.get("abc") is session
        assert "abc" in store

    def test_get_unknown_raises(self):
        with pytest.raises(SessionNotFound) as info:
            SessionStore().get("missing")
        assert info.value.session_id == "missing"
        assert info.value.status_code == 404

    def test_put_collision_replaces(self, caplog):
        store = SessionStore()
        first, second = Session(), Session()
        store.put("same", first)
        store.put("same", second)
        assert store.get("same") is second
        assert "collision" in caplog.text

    def test_put_same_session_again_is_silent(self, caplog):
        store = SessionStore()
        session = Session()
        store.put("same", session)
        store.put("same", session)
        assert "collision" not in caplog.text

    def test_lock_is_per_session(self):
        store = SessionStore()
        assert store.lock("a") is store.lock("a")
        assert store.lock("a") is not store.lock("b")

    @pytest.mark.asyncio
    async def test_lock_serializes_updates(self):
        store = SessionStore()
        store.put("s", Session())
        order = []

        async def update(tag):
            async with store.lock("s"):
                order.append(f"{tag}-start")
                await asyncio.sleep(0.01)
                order.append(f"{tag}-end")

        await asyncio.gather(update("one"), update("two"))
        assert order == ["one-start", "one-end", "two-start", "two-end"]


class TestSession:
    def test_turns_counts_exchanges(self):
        session = Session(history=[HumanMessage(content="q"), AIMessage(content="a")])
        assert session.turns == 1
