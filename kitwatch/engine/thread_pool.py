"""Fixed-size worker pool with a cap on queued work."""

from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from threading import Lock
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


class WorkerPool:
    """Wrap a ThreadPoolExecutor and track in-flight futures.

    ``max_pending`` bounds how many submitted-but-unfinished tasks may exist,
    which keeps memory flat when draining an unbounded feed.
    """

    def __init__(self, workers: int, max_pending: int | None = None, name: str = "kitwatch") -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.workers = workers
        self.max_pending = max_pending or workers * 2
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name)
        self._pending: set[Future] = set()
        self._lock = Lock()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def saturated(self) -> bool:
        return self.pending >= self.max_pending

    def submit(self, fn: Callable[..., T], *args, **kwargs) -> Future[T]:
        future = self._executor.submit(fn, *args, **kwargs)
        with self._lock:
            self._pending.add(future)
        return future

    def wait_any(self, timeout: float | None = None) -> list[Future]:
        """Block until at least one pending future finishes and return the finished ones."""

        with self._lock:
            snapshot = set(self._pending)
        if not snapshot:
            return []
        done, _ = wait_futures(snapshot, timeout=timeout, return_when=FIRST_COMPLETED)
        return self._release(done)

    def completed(self) -> list[Future]:
        """Return finished futures without blocking."""

        with self._lock:
            done = [future for future in self._pending if future.done()]
            self._pending.difference_update(done)
        return done

    def drain(self) -> list[Future]:
        """Wait for every pending future and return them."""

        with self._lock:
            snapshot = set(self._pending)
        if not snapshot:
            return []
        done, _ = wait_futures(snapshot)
        return self._release(done)

    def _release(self, done: Iterable[Future]) -> list[Future]:
        finished = list(done)
        with self._lock:
            self._pending.difference_update(finished)
        return finished

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)


__all__ = ["WorkerPool"]
