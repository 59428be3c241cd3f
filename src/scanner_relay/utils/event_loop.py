"""
Single-threaded event loop.

Background threads never mutate service state themselves: they post a
handler here and the loop thread runs it to completion before the next one.
"""
import logging
import queue
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def spawn_daemon(target: Callable[[], None], name: Optional[str] = None) -> threading.Thread:
    """Start target on a daemon thread"""
    thread = threading.Thread(target=target, daemon=True, name=name)
    thread.start()
    return thread


class EventLoop:
    def __init__(self):
        self._events = queue.Queue()
        self._stop_event = threading.Event()
        self._interval: Optional[float] = None
        self._on_tick: Optional[Callable[[], None]] = None
        self._next_tick: Optional[float] = None
        self._thread_id: Optional[int] = None

    def post(self, callback: Callable, *args):
        """Queue callback(*args) to run on the loop thread. Safe from any thread."""
        self._events.put((callback, args))

    def stop(self):
        """Make run() return once the current handler finishes"""
        self._stop_event.set()
        # wake the loop if it is waiting on an empty queue
        self._events.put((None, ()))

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def in_loop_thread(self) -> bool:
        return self._thread_id == threading.get_ident()

    def cancel_timer(self):
        """No more ticks fire; queued events are still dispatched"""
        self._next_tick = None
        self._on_tick = None

    def run(self, interval: float, on_tick: Callable[[], None]):
        """
        Dispatch events and fire on_tick every interval seconds until stop() is called.

        Args:
            interval: seconds between ticks
            on_tick: called on the loop thread at each tick
        """
        self._thread_id = threading.get_ident()
        self._interval = interval
        self._on_tick = on_tick
        self._next_tick = time.monotonic() + interval
        logger.debug(f"Event loop running, tick every {interval}s")

        while not self._stop_event.is_set():
            timeout = None
            if self._next_tick is not None:
                timeout = max(0.0, self._next_tick - time.monotonic())
            self.run_once(timeout)
            if self._stop_event.is_set():
                break
            self._fire_due_tick()

        self._thread_id = None
        logger.debug("Event loop stopped")

    def run_once(self, timeout: Optional[float] = 0.0) -> bool:
        """
        Dispatch at most one queued event.

        Args:
            timeout: seconds to wait for an event, None waits forever

        Returns:
            True if an event was dispatched
        """
        try:
            if timeout == 0:
                callback, args = self._events.get_nowait()
            else:
                callback, args = self._events.get(timeout=timeout)
        except queue.Empty:
            return False
        if callback is None:
            return False
        self._dispatch(callback, args)
        return True

    def run_pending(self) -> int:
        """Dispatch every event already queued, without waiting. Returns how many ran."""
        count = 0
        while self.run_once(0):
            count += 1
        return count

    def _fire_due_tick(self):
        if self._next_tick is None or self._on_tick is None:
            return
        now = time.monotonic()
        if now < self._next_tick:
            return
        self._next_tick += self._interval
        if self._next_tick <= now:
            # missed several deadlines, run once and re-anchor
            self._next_tick = now + self._interval
        self._dispatch(self._on_tick, ())

    def _dispatch(self, callback, args):
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"❌ Event handler {getattr(callback, '__name__', callback)} failed: {e}",
                         exc_info=True)
