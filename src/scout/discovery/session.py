"""SessionStore: JSON-backed persistence for DiscoverySession objects."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from scout.discovery.errors import SessionNotFoundError
from scout.discovery.models import DiscoverySession, SessionStatus


class SessionStore:
    """Stores and retrieves DiscoverySession objects as JSON files."""

    def __init__(self, project_root: Path, directory: str = ".scout") -> None:
        self._sessions_dir = project_root / directory / "sessions"

    def _session_path(self, session_id: str) -> Path:
        return self._sessions_dir / f"{session_id}.json"

    def save(self, session: DiscoverySession) -> None:
        """Persist a session to disk, creating the directory if needed."""
        self._sessions_dir.mkdir(parents=True, exist_ok=True)
        path = self._session_path(session.id)
        path.write_text(session.model_dump_json(by_alias=True, indent=2), encoding="utf-8")

    def load(self, session_id: str) -> DiscoverySession | None:
        """Load a session by id, or None if not found."""
        path = self._session_path(session_id)
        if not path.exists():
            return None
        return DiscoverySession.model_validate_json(path.read_text(encoding="utf-8"))

    def get(self, session_id: str) -> DiscoverySession:
        """Load a session by id, raising if it does not exist."""
        session = self.load(session_id)
        if session is None:
            raise SessionNotFoundError(f"No discovery session with id {session_id!r}")
        return session

    def list_sessions(self) -> list[DiscoverySession]:
        """Return all saved sessions, most recently updated first."""
        if not self._sessions_dir.exists():
            return []
        sessions = [
            DiscoverySession.model_validate_json(json_file.read_text(encoding="utf-8"))
            for json_file in self._sessions_dir.glob("*.json")
        ]
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)

    def list_active(self) -> list[DiscoverySession]:
        return [s for s in self.list_sessions() if s.is_active]

    def abandon(self, session_id: str) -> DiscoverySession:
        """Mark a session abandoned and persist it."""
        session = self.get(session_id)
        session.status = SessionStatus.ABANDONED
        session.updated_at = datetime.now(UTC)
        self.save(session)
        return session

    def delete(self, session_id: str) -> bool:
        """Delete a session. Returns True if it existed, False otherwise."""
        path = self._session_path(session_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def exists(self, session_id: str) -> bool:
        """Return True if a session with the given id exists."""
        return self._session_path(session_id).exists()
