"""Tests for SessionStore persistence."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from scout.discovery.errors import SessionNotFoundError
from scout.discovery.models import DiscoveryAnswer, DiscoverySession, SessionStatus
from scout.discovery.session import SessionStore


class TestSessionStore:
    """Tests for saving and loading sessions."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        session = DiscoverySession(
            goal="Add billing",
            answer_history=[DiscoveryAnswer(question_id="q1", answer="Stripe")],
        )

        store.save(session)
        loaded = store.load(session.id)

        assert loaded == session
        assert (tmp_path / ".scout" / "sessions" / f"{session.id}.json").exists()

    def test_saved_json_uses_camel_case(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        session = DiscoverySession(goal="g")
        store.save(session)
        text = (tmp_path / ".scout" / "sessions" / f"{session.id}.json").read_text()
        assert '"answerHistory"' in text
        assert '"readinessScore"' in text

    def test_load_missing(self, tmp_path: Path) -> None:
        assert SessionStore(tmp_path).load("nope") is None

    def test_get_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(SessionNotFoundError, match="nope"):
            SessionStore(tmp_path).get("nope")

    def test_list_sorted_by_updated(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        now = datetime.now(UTC)
        older = DiscoverySession(goal="old", updated_at=now - timedelta(hours=1))
        newer = DiscoverySession(goal="new", updated_at=now)
        store.save(older)
        store.save(newer)

        assert [s.goal for s in store.list_sessions()] == ["new", "old"]

    def test_list_empty(self, tmp_path: Path) -> None:
        assert SessionStore(tmp_path).list_sessions() == []

    def test_abandon(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        active = DiscoverySession(goal="keep")
        dropped = DiscoverySession(goal="drop")
        store.save(active)
        store.save(dropped)

        result = store.abandon(dropped.id)

        assert result.status == SessionStatus.ABANDONED
        assert store.get(dropped.id).status == SessionStatus.ABANDONED
        assert [s.id for s in store.list_active()] == [active.id]

    def test_delete_and_exists(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path)
        session = DiscoverySession(goal="g")
        store.save(session)

        assert store.exists(session.id)
        assert store.delete(session.id)
        assert not store.exists(session.id)
        assert not store.delete(session.id)

    def test_custom_directory(self, tmp_path: Path) -> None:
        store = SessionStore(tmp_path, directory=".discovery")
        session = DiscoverySession(goal="g")
        store.save(session)
        assert (tmp_path / ".discovery" / "sessions" / f"{session.id}.json").exists()
