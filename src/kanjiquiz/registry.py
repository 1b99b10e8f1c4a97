import random
import threading
from typing import Dict, Optional

from .controller import SessionController
from .database import Database
from .errors import InvalidTransition
from .models import QuizMode, make_session_id
from .session_store import SessionStore


class ControllerRegistry:
    """Keeps one live controller per quiz session id.

    Each controller comes with its own lock; callers hold it for the whole
    operation so a session is only ever driven by one request at a time.
    """

    def __init__(self, db: Database, rng: Optional[random.Random] = None):
        self.sessions = SessionStore(db)
        self.rng = rng
        self._controllers: Dict[str, SessionController] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def acquire(self, set_id: str, mode: QuizMode):
        """Returns the controller for the pair, creating it on first use."""
        session_id = make_session_id(set_id, mode)
        with self._guard:
            if session_id not in self._controllers:
                self._controllers[session_id] = SessionController(self.sessions, rng=self.rng)
                self._locks[session_id] = threading.Lock()
            return self._controllers[session_id], self._locks[session_id]

    def find(self, set_id: str, mode: QuizMode):
        """Returns the live controller and its lock, or raises if none was started."""
        session_id = make_session_id(set_id, mode)
        with self._guard:
            if session_id not in self._controllers:
                raise InvalidTransition(f"Quiz {session_id} has not been started")
            return self._controllers[session_id], self._locks[session_id]

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._controllers

    def discard(self, set_id: str, mode: QuizMode):
        session_id = make_session_id(set_id, mode)
        with self._guard:
            self._controllers.pop(session_id, None)
            self._locks.pop(session_id, None)
