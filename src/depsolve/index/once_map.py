"""Run a computation at most once per key, across threads.

The first caller for a key starts the work; every later caller, on any
thread, waits for the same ``Future``. Results (and exceptions) stay cached
for the lifetime of the map.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from typing import Callable, Dict, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class OnceMap(Generic[K, T]):
    """Memoizing map of in-flight and finished computations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._futures: Dict[K, Future] = {}

    def submit(self, executor: Executor, key: K, func: Callable[[], T]) -> Future:
        """Start ``func`` on ``executor`` unless ``key`` is already known.

        Returns:
            The future computing the value of ``key``.
        """
        with self._lock:
            future = self._futures.get(key)
            if future is None:
                future = executor.submit(func)
                self._futures[key] = future
        return future

    def get(self, key: K, func: Callable[[], T]) -> T:
        """Value of ``key``, computing it on the calling thread if nobody has started it.

        Re-raises the exception of a failed computation.
        """
        with self._lock:
            future = self._futures.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._futures[key] = future
        if owner:
            try:
                future.set_result(func())
            except BaseException as exc:
                future.set_exception(exc)
        return future.result()

    def keys(self) -> list[K]:
        with self._lock:
            return list(self._futures)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._futures

    def __len__(self) -> int:
        with self._lock:
            return len(self._futures)
