import asyncio
import weakref
from typing import Dict, Optional

from models.session_models import Session


class SessionStore:
    """
    In-memory upload sessions, one per conversation id.

    A new session overwrites whatever was pending (last write wins). Sessions do
    not survive a restart.
    """

    def __init__(self):
        self._sessions: Dict[int, Session] = {}
        # a lock lives only while some handler holds or waits on it
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get_session(self, conversation_id: int) -> Optional[Session]:
        return self._sessions.get(conversation_id)

    def save_session(self, conversation_id: int, session: Optional[Session]):
        if session is None:
            self.clear_session(conversation_id)
        else:
            self._sessions[conversation_id] = session

    def clear_session(self, conversation_id: int):
        self._sessions.pop(conversation_id, None)

    def lock(self, conversation_id: int) -> asyncio.Lock:
        """Serializes event handling for a single conversation."""
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    def __len__(self):
        return len(self._sessions)
