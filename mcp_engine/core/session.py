import uuid
import asyncio
import logging
import threading
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


class SessionStateError(Exception):
    pass


class Session:
    def __init__(self, session_id: str):
        self.id = session_id
        self.state = SessionState.UNINITIALIZED
        self._lock = asyncio.Lock()

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.CLOSED

    def activate(self):
        if self.state != SessionState.UNINITIALIZED:
            raise SessionStateError(f"Session {self.id} cannot be activated from state {self.state.value}")
        self.state = SessionState.ACTIVE

    def close(self):
        if self.state == SessionState.CLOSED:
            raise SessionStateError(f"Session {self.id} is already closed")
        self.state = SessionState.CLOSED

    async def run(self, func: Callable[[], Awaitable[T]]) -> T:
        """Run ``func`` while holding the session lock; requests in a session never overlap."""
        async with self._lock:
            return await func()


class SessionManager:
    def __init__(self):
        self.sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(self) -> Session:
        with self._lock:
            session_id = str(uuid.uuid4())
            while session_id in self.sessions:
                session_id = str(uuid.uuid4())
            session = Session(session_id)
            self.sessions[session_id] = session
        logger.info(f"Session created: {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self.sessions.get(session_id)

    def remove_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self.sessions.pop(session_id, None)
        if session is not None:
            if not session.is_closed:
                session.close()
            logger.info(f"Session removed: {session_id}")
        return session

    def __len__(self) -> int:
        with self._lock:
            return len(self.sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self.sessions
