import asyncio
import os
import tempfile
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from researchmind.errors import SessionStoreError
from researchmind.models import ResearchSession

_SESSIONS = TypeAdapter(List[ResearchSession])


class SessionStore:
    """Research sessions persisted as a single JSON file, newest first."""

    def __init__(self, path: str):
        self.path = path
        self._lock = asyncio.Lock()

    def _read(self) -> List[ResearchSession]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return _SESSIONS.validate_json(f.read())
        except (OSError, ValidationError) as e:
            raise SessionStoreError(f"Failed to load sessions from {self.path}: {e}") from e

    def _write(self, sessions: List[ResearchSession]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        payload = _SESSIONS.dump_json(sessions, indent=2)
        fd, tmp = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except OSError as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise SessionStoreError(f"Failed to save sessions to {self.path}: {e}") from e

    async def load(self) -> List[ResearchSession]:
        async with self._lock:
            return self._read()

    async def save(self, sessions: List[ResearchSession]) -> None:
        async with self._lock:
            self._write(sessions)

    async def get(self, session_id: str) -> Optional[ResearchSession]:
        async with self._lock:
            return next((s for s in self._read() if s.id == session_id), None)

    async def create(self, topic: str = "") -> ResearchSession:
        async with self._lock:
            sessions = self._read()
            session = ResearchSession(topic=topic)
            self._write([session, *sessions])
            return session

    async def update(self, session: ResearchSession) -> None:
        async with self._lock:
            sessions = self._read()
            for i, s in enumerate(sessions):
                if s.id == session.id:
                    sessions[i] = session
                    break
            else:
                raise KeyError(session.id)
            self._write(sessions)

    async def patch(self, session_id: str, **fields) -> ResearchSession:
        """Replaces only ``fields`` on the stored session; raises KeyError if it is gone."""
        async with self._lock:
            sessions = self._read()
            for i, s in enumerate(sessions):
                if s.id == session_id:
                    sessions[i] = s.model_copy(update=fields)
                    break
            else:
                raise KeyError(session_id)
            self._write(sessions)
            return sessions[i]

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            sessions = self._read()
            remaining = [s for s in sessions if s.id != session_id]
            if len(remaining) == len(sessions):
                raise KeyError(session_id)
            self._write(remaining)

