"""Executor adapters implementing ExecutorPort."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Callable


class SynchronousExecutor:
    """Runs each task immediately in the calling thread.

    Used when ``max_workers`` is 1 and in tests that need deterministic
    fetch order. A failing task yields a future holding its exception,
    the same as a pool worker would.
    """

    def submit(
        self, fn: Callable[..., object], *args: object, **kwargs: object
    ) -> Future[object]:
        done: Future[object] = Future()
        try:
            done.set_result(fn(*args, **kwargs))
        except Exception as e:
            done.set_exception(e)
        return done

    def __enter__(self) -> SynchronousExecutor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        pass


class ThreadPoolExecutorAdapter:
    """Bounded thread pool for registry fetches and directory writes.

    Args:
        max_workers: Upper bound on concurrent tasks, and so on concurrent
            registry connections. None lets the standard library choose.
    """

    def __init__(self, max_workers: int | None = None) -> None:
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ldpm"
        )

    def submit(
        self, fn: Callable[..., object], *args: object, **kwargs: object
    ) -> Future[object]:
        return self._pool.submit(fn, *args, **kwargs)

    def __enter__(self) -> ThreadPoolExecutorAdapter:
        return self

    def __exit__(self, exc_type: object, *_: object) -> None:
        # Queued fetches are pointless once the resolution has failed
        self._pool.shutdown(wait=True, cancel_futures=exc_type is not None)
