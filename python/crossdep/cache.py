"""Request-scoped compute-if-absent cache."""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCache(Generic[T]):
    """
    Thread-safe memoization map, scoped to a single resolution call.

    Concurrent requests for the same key collapse to one computation; every
    caller observes the same result (or the same exception). Failed
    computations are not kept, so the cache only ever holds complete values.
    Instances must not be shared between independent resolution calls.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Future] = {}
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        with self._lock:
            future = self._entries.get(key)
            if future is not None:
                self.hits += 1
                owner = False
            else:
                self.misses += 1
                future = Future()
                self._entries[key] = future
                owner = True

        if not owner:
            logger.debug(f"Cache hit for {key}")
            return future.result()

        try:
            value = compute()
        except BaseException as e:
            with self._lock:
                self._entries.pop(key, None)
            future.set_exception(e)
            raise
        future.set_result(value)
        return value

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            future = self._entries.get(key)
        return future is not None and future.done() and future.exception() is None

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for f in self._entries.values() if f.done() and f.exception() is None)
