"""Executors used to run page fetches and deletes concurrently.

Everything here follows the ``concurrent.futures.Executor`` API so callers can
pass their own executor instead of the defaults.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Iterable, List, Optional, Sequence, TypeVar, Union

__all__ = [
    "SerialExecutor",
    "ThreadPoolExecutorWrapper",
    "get_executor",
    "completed_future",
    "submit_all",
    "gather",
]

T = TypeVar("T")


def completed_future(result: T) -> Future:
    """Return a future that already holds ``result``."""
    future: Future = Future()
    future.set_result(result)
    return future


class SerialExecutor(Executor):
    """A custom Executor that runs tasks sequentially, mimicking the
    concurrent.futures.Executor interface. Useful for debugging and for
    keeping request order deterministic.
    """

    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Future[T]:
        """Run ``fn`` immediately and return a resolved future."""
        future: Future = Future()

        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)

        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        # Nothing is ever pending.
        pass


class ThreadPoolExecutorWrapper(Executor):
    """A lazily started ThreadPoolExecutor.

    The pool is only created on first use, so building an executor that is
    never needed costs nothing.
    """

    def __init__(
        self,
        max_workers: Union[int, None] = None,
        **kwargs: Any,
    ) -> None:
        self._max_workers = max_workers
        self._executor_kwargs = kwargs
        self._executor: Optional[ThreadPoolExecutor] = None

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, **self._executor_kwargs
            )
        return self._executor

    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Future[T]:
        """Submit a task to the thread pool."""
        return self._pool().submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        """Shutdown the thread pool, if it was ever started."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)
        self._executor = None


def get_executor(
    parallel: Union[str, Executor, bool, None] = True,
    max_workers: Union[int, None] = None,
    **kwargs: Any,
) -> Executor:
    """Get an executor that follows the concurrent.futures.Executor ABC API.

    Parameters
    ----------
    parallel : str, Executor, bool, or None
        - True, None or "threads": a thread pool
        - False or "serial": run everything in the calling thread
        - Executor instance: returned unchanged
    max_workers : int, optional
        Maximum number of worker threads

    Examples:
    --------
    >>> executor = get_executor("threads", max_workers=3)
    >>> executor = get_executor(False)
    """
    if parallel is None or parallel is True:
        return ThreadPoolExecutorWrapper(max_workers=max_workers, **kwargs)
    elif parallel is False:
        return SerialExecutor()
    elif isinstance(parallel, str):
        parallel = parallel.lower()
        if parallel in ("threads", "thread", "threadpool"):
            return ThreadPoolExecutorWrapper(max_workers=max_workers, **kwargs)
        elif parallel in ("serial", "none", "disabled"):
            return SerialExecutor()
        else:
            raise ValueError(
                f"Unrecognized parallel backend: {parallel}. "
                "Valid options are: 'threads', 'serial', or an Executor instance."
            )
    elif isinstance(parallel, Executor):
        return parallel
    else:
        raise ValueError(
            f"Invalid parallel argument: {parallel}. "
            "Must be a string, Executor instance, or boolean."
        )


def submit_all(
    executor: Executor,
    func: Callable[..., T],
    iterable: Iterable[Any],
    *args: Any,
    **kwargs: Any,
) -> List[Future]:
    """Submit ``func(item, *args, **kwargs)`` for every item without waiting.

    Returns the futures in submission order.
    """
    return [executor.submit(func, item, *args, **kwargs) for item in iterable]


def gather(futures: Sequence[Future]) -> List[Any]:
    """Wait for ``futures`` in order and return their results in that order.

    The first failure is re-raised after cancelling every future that has
    not started yet. Futures that are already running are left to finish.
    """
    results = []
    for index, future in enumerate(futures):
        try:
            results.append(future.result())
        except BaseException:
            for pending in futures[index + 1 :]:
                pending.cancel()
            raise
    return results
