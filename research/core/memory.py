from __future__ import annotations

"""Server-side conversation memory.

Sessions live in process memory only: no eviction, no TTL, nothing survives a
restart. Identifiers are short random tokens; a collision replaces the older
session. Follow-ups on one session are serialized through ``lock()`` so a
read-modify-write of the history is atomic per session.
"""

import asyncio
import logging
import secrets
import string
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from langchain_core.messages import BaseMessage

from research.errors import SessionNotFound


logger = logging.getLogger(__name__)

SESSION_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class Session:
    history: List[BaseMessage] = field(default_factory=list)
    credential: Optional[str] = None
    created_at: float = field(default_factory=time.time)

    @property
    def turns(self) -> int:
        return len(self.history) // 2


class SessionStore:
    def __init__(self, id_length: int = 12) -> None:
        self._id_length = id_length
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._mutex = threading.Lock()

    def create(self) -> str:
        """Generate a new session id. The session itself is stored via ``put``."""
        return "".join(
            secrets.choice(SESSION_ID_ALPHABET) for _ in range(self._id_length)
        )

    def get(self, session_id: str) -> Session:
        with self._mutex:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def put(self, session_id: str, session: Session) -> None:
        with self._mutex:
            previous = self._sessions.get(session_id)
            if previous is not None and previous is not session:
                logger.warning("Session id collision, replacing session %s", session_id)
            self._sessions[session_id] = session

    def lock(self, session_id: str) -> asyncio.Lock:
        with self._mutex:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = asyncio.Lock()
            return lock

    def __contains__(self, session_id: object) -> bool:
        with self._mutex:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._mutex:
            return len(self._sessions)
