import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from prosupps.config import settings


class DraftStore:
    """Session-scoped form drafts that expire after `ttl_hours`."""

    def __init__(self, ttl_hours: int = None, clock: Callable[[], float] = time.time):
        self.ttl_seconds = (ttl_hours or settings.draft_ttl_hours) * 3600
        self.clock = clock
        self._lock = threading.Lock()
        self._drafts: Dict[str, Tuple[Dict[str, Any], float]] = {}

    def save(self, form: str, data: Dict[str, Any]) -> float:
        saved_at = self.clock()
        with self._lock:
            self._drafts[form] = (dict(data), saved_at)
        return saved_at

    def load(self, form: str) -> Optional[Tuple[Dict[str, Any], float]]:
        with self._lock:
            entry = self._drafts.get(form)
            if entry is None:
                return None
            data, saved_at = entry
            if self.clock() - saved_at > self.ttl_seconds:
                del self._drafts[form]
                return None
            return dict(data), saved_at

    def clear(self, form: str) -> None:
        with self._lock:
            self._drafts.pop(form, None)
