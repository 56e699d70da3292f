"""
Change notification for pet locators.

Observers register interest in a locator and are called with the
locator that changed.  A change at a locator reaches observers
registered on that locator, on any descendant of it (a change to the
collection concerns every pet), and on any ancestor that asked for
descendant notifications (a change to one pet concerns collection
watchers).

Callbacks run on a background executor: ``notify_change`` only
schedules them and returns, and an exception raised by a callback is
logged, never propagated to the writer that triggered it.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Set, Tuple
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

Observer = Callable[[str], None]


def _segments(locator: str) -> Tuple[str, ...]:
    parts = urlsplit(locator)
    return (parts.scheme, parts.netloc) + tuple(s for s in parts.path.split("/") if s)


class ObserverHandle:
    """Registration returned by ``ChangeNotifier.register``."""

    __slots__ = ("locator", "callback", "notify_for_descendants", "_segments")

    def __init__(self, locator: str, callback: Observer, notify_for_descendants: bool):
        self.locator = locator
        self.callback = callback
        self.notify_for_descendants = notify_for_descendants
        self._segments = _segments(locator)

    def wants(self, changed: Tuple[str, ...]) -> bool:
        mine = self._segments
        if mine == changed:
            return True
        if len(mine) > len(changed) and mine[: len(changed)] == changed:
            return True
        if self.notify_for_descendants and len(changed) > len(mine) and changed[: len(mine)] == mine:
            return True
        return False

    def __repr__(self) -> str:
        return f"ObserverHandle({self.locator!r}, descendants={self.notify_for_descendants})"


class ChangeNotifier:
    """Registry of observers plus a non-blocking dispatcher."""

    def __init__(self, max_workers: int = 1):
        self.max_workers = max_workers
        self._observers: List[ObserverHandle] = []
        self._pending: Set[Future] = set()
        # Re-entrant: a future that is already done runs _discard inline.
        self._lock = threading.RLock()
        self._executor: Optional[ThreadPoolExecutor] = None

    def register(self, locator: str, callback: Observer, notify_for_descendants: bool = True) -> ObserverHandle:
        if not callable(callback):
            raise TypeError("callback must be callable")
        handle = ObserverHandle(locator, callback, notify_for_descendants)
        with self._lock:
            self._observers.append(handle)
        logger.debug("Registered observer for %s", locator)
        return handle

    def unregister(self, handle: ObserverHandle) -> bool:
        """Remove a registration; returns False if it was not registered."""
        with self._lock:
            try:
                self._observers.remove(handle)
            except ValueError:
                return False
        return True

    def observers_for(self, locator: str) -> List[ObserverHandle]:
        changed = _segments(locator)
        with self._lock:
            return [h for h in self._observers if h.wants(changed)]

    def notify_change(self, locator: str) -> int:
        """Schedule every interested observer; returns how many were scheduled."""
        targets = self.observers_for(locator)
        if not targets:
            return 0
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="pets-notify"
                )
            for handle in targets:
                future = self._executor.submit(self._deliver, handle, locator)
                self._pending.add(future)
                future.add_done_callback(self._discard)
        logger.debug("Change at %s scheduled for %d observer(s)", locator, len(targets))
        return len(targets)

    @staticmethod
    def _deliver(handle: ObserverHandle, locator: str) -> None:
        try:
            handle.callback(locator)
        except Exception:
            logger.exception("Observer for %s failed on change at %s", handle.locator, locator)

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for every notification scheduled so far; False on timeout."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait_for_pending)
