"""
Per-session application context.

Views get a `SessionContext` by dependency injection instead of reading
module globals. The registry subscribes once to the backend's auth events
and keeps contexts in step with sign-in, sign-out and profile updates.
"""
import hashlib
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from prosupps.config import settings
from prosupps.database.backend import AuthEvents, SIGNED_IN, SIGNED_OUT, USER_UPDATED
from prosupps.modules.admin.coordinator import WriteCoordinator
from prosupps.modules.admin.drafts import DraftStore

logger = logging.getLogger(__name__)


def token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class SessionContext:
    def __init__(self, user: Dict[str, Any], coordinator: WriteCoordinator = None, drafts: DraftStore = None):
        self.user = user
        self.profile: Optional[Dict[str, Any]] = None
        self.coordinator = coordinator or WriteCoordinator()
        self.drafts = drafts or DraftStore()
        self.cancelled = threading.Event()
        self.products: Optional[List[Dict[str, Any]]] = None
        self.last_seen: float = 0.0

    @property
    def user_id(self) -> str:
        return self.user["id"]

    def close(self) -> None:
        self.cancelled.set()
        self.coordinator.close()


class SessionRegistry:
    def __init__(
        self,
        factory: Callable[[Dict[str, Any]], SessionContext] = SessionContext,
        idle_timeout: float = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, SessionContext] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self, events: AuthEvents) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = events.subscribe(self._on_auth_event)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for context in sessions:
            context.close()

    def _on_auth_event(self, event: str, session: Dict[str, Any]) -> None:
        if event == SIGNED_IN:
            self.get_or_create(session["access_token"], session["user"])
            logger.info(f"Session opened for user {session['user']['id']}")
        elif event == SIGNED_OUT:
            with self._lock:
                context = self._sessions.pop(token_key(session["access_token"]), None)
            if context is not None:
                context.close()
                logger.info(f"Session closed for user {context.user_id}")
        elif event == USER_UPDATED:
            with self._lock:
                contexts = [c for c in self._sessions.values() if c.user_id == session["user_id"]]
            for context in contexts:
                context.profile = session["profile"]

    def get(self, token: str) -> Optional[SessionContext]:
        with self._lock:
            return self._sessions.get(token_key(token))

    def get_or_create(self, token: str, user: Dict[str, Any]) -> SessionContext:
        """Tokens issued before this process started get a context on first use."""
        key = token_key(token)
        now = self.clock()
        with self._lock:
            expired = self._pop_idle(now, keep=key)
            context = self._sessions.get(key)
            if context is None:
                context = self._factory(user)
                self._sessions[key] = context
            context.last_seen = now
        for stale in expired:
            stale.close()
        if expired:
            logger.info(f"Dropped {len(expired)} idle session(s)")
        return context

    def _pop_idle(self, now: float, keep: str) -> List[SessionContext]:
        """Remove contexts unused for longer than the idle timeout. Caller holds the lock."""
        timeout = self.idle_timeout
        if timeout is None:
            timeout = settings.session_idle_timeout_minutes * 60
        idle = [
            key for key, context in self._sessions.items()
            if key != keep
            and now - context.last_seen > timeout
            and not context.coordinator.operation_in_progress
        ]
        return [self._sessions.pop(key) for key in idle]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


session_registry = SessionRegistry()


def get_session_registry() -> SessionRegistry:
    return session_registry
