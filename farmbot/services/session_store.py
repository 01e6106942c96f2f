import threading
from contextlib import contextmanager
from typing import Iterator

from farmbot.logging_config import get_logger
from farmbot.schemas.conversation import ConversationState

logger = get_logger("session_store")


class _UserLock:
    """A user's turn lock and the number of turns holding or waiting for it."""

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class SessionStore:
    """In-memory conversation drafts, one per user id.

    A single lock guards the map so get/put/clear are individually safe.
    Callers that read, call out, then write back must hold ``user_lock``
    for the whole sequence; the map lock alone does not make it atomic.
    """

    def __init__(self):
        self._sessions: dict[str, ConversationState] = {}
        self._lock = threading.Lock()
        self._user_locks: dict[str, _UserLock] = {}

    def get(self, user_id: str) -> ConversationState:
        """Current draft for the user, or a fresh COLLECTING one."""
        with self._lock:
            state = self._sessions.get(user_id)
            if state is None:
                return ConversationState()
            return state.model_copy(deep=True)

    def put(self, user_id: str, state: ConversationState) -> None:
        with self._lock:
            self._sessions[user_id] = state.model_copy(deep=True)

    def clear(self, user_id: str) -> None:
        with self._lock:
            self._sessions.pop(user_id, None)

    def has_session(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @contextmanager
    def user_lock(self, user_id: str) -> Iterator[None]:
        """Serialize turns of one user. The entry is dropped once no turn holds or waits on it."""
        with self._lock:
            entry = self._user_locks.get(user_id)
            if entry is None:
                entry = _UserLock()
                self._user_locks[user_id] = entry
            entry.users += 1

        try:
            if not entry.lock.acquire(blocking=False):
                logger.info("Waiting for in-flight turn", extra={"context": {"user_id": user_id}})
                entry.lock.acquire()
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._lock:
                entry.users -= 1
                if entry.users == 0:
                    self._user_locks.pop(user_id, None)
