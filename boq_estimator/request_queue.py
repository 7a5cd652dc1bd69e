"""
Rate-limited request queue for the external rate advisor.

One worker thread runs queued work strictly one at a time, in FIFO order,
and sleeps for a fixed cooldown after every task (success or failure)
before starting the next one. All uploads share the same instance, so
concurrent estimates interleave through a single throttled channel and
never exceed one advisor call per cooldown.

The worker thread is the only consumer of the internal queue.Queue, which
is what serializes the calls. There is no retry: a task that raises fails
only its own future and the worker moves on.

Lifetime: built once when the app module loads (see main.py), stored on
app.state and injected into each BoqEstimator. Call close() on shutdown.
"""

import logging
import queue
import threading
import time
from concurrent.futures import Future
from typing import Callable

logger = logging.getLogger(__name__)

_STOP = object()


class RateLimitedQueue:
    """
    FIFO work queue with a minimum idle gap between tasks.

    Usage:
        limiter = RateLimitedQueue(cooldown_seconds=4.5)
        future = limiter.enqueue(lambda: advisor.suggest(description, unit, api_key))
        outcome = future.result()   # blocks this caller only
    """

    def __init__(self, cooldown_seconds: float, sleep: Callable[[float], None] = time.sleep,
                 name: str = "advisor-queue"):
        if cooldown_seconds < 0:
            raise ValueError(f"cooldown_seconds must be >= 0, got {cooldown_seconds}")
        self.cooldown_seconds = cooldown_seconds
        self._sleep = sleep
        self._tasks = queue.Queue()
        self._closed = False
        self._worker = threading.Thread(target=self._run, name=name, daemon=True)
        self._worker.start()

    @property
    def pending(self) -> int:
        """Approximate number of tasks waiting to start."""
        return self._tasks.qsize()

    @property
    def closed(self) -> bool:
        return self._closed

    def enqueue(self, work: Callable) -> Future:
        """Schedule ``work`` and return a Future resolved with its result or exception."""
        if self._closed:
            raise RuntimeError("RateLimitedQueue is closed")
        future = Future()
        self._tasks.put((work, future))
        return future

    def close(self, timeout: float = None):
        """Stop the worker after the tasks already queued have run."""
        if self._closed:
            return
        self._closed = True
        self._tasks.put(_STOP)
        self._worker.join(timeout)

    def _run(self):
        while True:
            item = self._tasks.get()
            if item is _STOP:
                break
            work, future = item
            if not future.set_running_or_notify_cancel():
                # Cancelled while waiting - never ran, so no cooldown owed
                continue
            try:
                result = work()
            except Exception as e:
                logger.warning("Queued advisor task failed: %s", e)
                future.set_exception(e)
            else:
                future.set_result(result)
            self._sleep(self.cooldown_seconds)
