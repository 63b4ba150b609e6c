"""
Write coordination for the admin dashboard.

All catalog writes in the process go through one `CatalogWriteLock`. A writer
that cannot get the lock within `lock_timeout` seconds is rejected with
`WriteBusyError`; it is never allowed through. Each dashboard session has
its own `WriteCoordinator`, which tracks which of the session's tabs are in
the background (by the `X-Tab-Id` each tab sends), spaces consecutive
writes apart and retries transient failures with exponential backoff.
"""
import asyncio
import inspect
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Optional, Set

from starlette.concurrency import run_in_threadpool

from prosupps.config import settings
from prosupps.core.errors import (
    OperationCancelled, TransportError, WriteBusyError, WriteRefusedError
)

logger = logging.getLogger(__name__)

# Requests that do not name their tab share this one
DEFAULT_TAB = "default"


class CatalogWriteLock:
    def __init__(self):
        self._lock = asyncio.Lock()
        self.last_started: Optional[float] = None

    def locked(self) -> bool:
        return self._lock.locked()

    async def acquire(self, timeout: float) -> None:
        """Wait up to `timeout` seconds. On any failure the lock is left free."""
        task = asyncio.ensure_future(self._lock.acquire())
        try:
            await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            if not task.cancel() and not task.cancelled() and task.exception() is None:
                self._lock.release()
            raise
        if not task.done():
            # a cancelled acquire never ends up holding the lock
            task.cancel()
            raise WriteBusyError()
        task.result()

    def release(self) -> None:
        self._lock.release()


catalog_write_lock = CatalogWriteLock()


def check_cancelled(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled()


async def _call(operation: Callable[[], Any]) -> Any:
    if inspect.iscoroutinefunction(operation):
        return await operation()
    result = await run_in_threadpool(operation)
    if inspect.isawaitable(result):
        result = await result
    return result


class WriteCoordinator:
    def __init__(
        self,
        lock: CatalogWriteLock = None,
        min_spacing: float = None,
        max_attempts: int = None,
        base_delay: float = None,
        lock_timeout: float = None,
        refresh_delay: float = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.lock = lock or catalog_write_lock
        self.min_spacing = settings.write_min_spacing_ms / 1000 if min_spacing is None else min_spacing
        self.max_attempts = max_attempts or settings.write_retry_attempts
        self.base_delay = settings.write_retry_base_delay if base_delay is None else base_delay
        self.lock_timeout = settings.write_lock_timeout if lock_timeout is None else lock_timeout
        self.refresh_delay = settings.refresh_delay_on_activate if refresh_delay is None else refresh_delay
        self.clock = clock
        self.sleep = sleep

        self.operation_in_progress = False
        self._hidden_tabs: Set[str] = set()
        self._refresh_task: Optional[asyncio.Task] = None

    def is_tab_active(self, tab_id: str = DEFAULT_TAB) -> bool:
        return tab_id not in self._hidden_tabs

    def ensure_writable(self, action: str, tab_id: str = DEFAULT_TAB) -> None:
        if not self.is_tab_active(tab_id):
            raise WriteRefusedError(
                f"Cannot {action} while the dashboard tab is in the background. "
                "Switch back to the tab and try again."
            )

    async def run(
        self,
        action: str,
        operation: Callable[[], Any],
        cancel: Optional[threading.Event] = None,
        tab_id: str = DEFAULT_TAB,
    ) -> Any:
        """Run one catalog write under the lock, with spacing and retries."""
        self.ensure_writable(action, tab_id)
        await self.lock.acquire(self.lock_timeout)
        try:
            # The tab may have gone to the background while we waited
            self.ensure_writable(action, tab_id)
            self.operation_in_progress = True
            await self._space_out()
            return await self._with_retry(action, operation, cancel)
        finally:
            self.operation_in_progress = False
            self.lock.release()

    async def _space_out(self) -> None:
        last = self.lock.last_started
        if last is not None:
            elapsed = self.clock() - last
            if elapsed < self.min_spacing:
                await self.sleep(self.min_spacing - elapsed)
        self.lock.last_started = self.clock()

    async def _with_retry(self, action, operation, cancel) -> Any:
        attempt = 0
        while True:
            attempt += 1
            check_cancelled(cancel)
            try:
                return await _call(operation)
            except TransportError as e:
                if attempt >= self.max_attempts:
                    logger.error(f"{action} failed after {attempt} attempt(s): {e.message}")
                    raise
                delay = self.base_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"{action} failed (attempt {attempt}/{self.max_attempts}): {e.message}; "
                    f"retrying in {delay:.1f}s"
                )
                await self.sleep(delay)

    def set_visibility(
        self,
        visible: bool,
        refresh: Optional[Callable[[], Awaitable[Any]]] = None,
        tab_id: str = DEFAULT_TAB,
    ) -> bool:
        """Record a visibility change of one tab. Returns True when a refresh was scheduled."""
        was_active = self.is_tab_active(tab_id)
        if visible:
            self._hidden_tabs.discard(tab_id)
        else:
            self._hidden_tabs.add(tab_id)
        if not visible or was_active:
            return False
        if self.operation_in_progress and not self.lock.locked():
            logger.info("Clearing stale in-flight flag after tab reactivation")
            self.operation_in_progress = False
        if refresh is None:
            return False
        self._schedule_refresh(refresh)
        return True

    def _schedule_refresh(self, refresh: Callable[[], Awaitable[Any]]) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()

        async def delayed():
            await self.sleep(self.refresh_delay)
            await refresh()

        task = asyncio.get_running_loop().create_task(delayed())
        task.add_done_callback(self._log_refresh_failure)
        self._refresh_task = task

    @staticmethod
    def _log_refresh_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and not isinstance(exc, OperationCancelled):
            logger.error(f"Catalog refresh after tab reactivation failed: {exc}")

    @property
    def refresh_pending(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def close(self) -> None:
        """Safe to call from any thread."""
        task = self._refresh_task
        self._refresh_task = None
        if task is not None and not task.done() and not task.get_loop().is_closed():
            task.get_loop().call_soon_threadsafe(task.cancel)
