"""Bounded pool of daemon worker threads."""

import contextvars
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, List, Optional, Tuple

_WorkItem = Tuple[Future, contextvars.Context, Callable[..., Any], Tuple[Any, ...]]


class WorkerPool:
    """Fixed set of daemon threads fed from a queue.

    Workers are daemon threads, so a conversion abandoned after its deadline
    does not keep the interpreter alive at exit. Each submission runs in a
    copy of the submitter's context, which carries ``batch_id`` into worker
    log lines.
    """

    def __init__(self, size: int, name_prefix: str):
        if size <= 0:
            raise ValueError(f"Pool size must be positive, got {size}")

        self._queue: "queue.Queue[Optional[_WorkItem]]" = queue.Queue()
        self._threads: List[threading.Thread] = []
        self._shutdown = False

        for index in range(size):
            worker = threading.Thread(
                target=self._worker, name=f"{name_prefix}_{index}", daemon=True
            )
            worker.start()
            self._threads.append(worker)

    @property
    def size(self) -> int:
        return len(self._threads)

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        if self._shutdown:
            raise RuntimeError("Cannot submit to a pool that has been shut down")

        future: Future = Future()
        self._queue.put((future, contextvars.copy_context(), fn, args))
        return future

    def shutdown(self) -> None:
        """Cancel queued work and let idle workers exit.

        Workers busy with a unit finish it in the background; nothing waits
        for them.
        """
        if self._shutdown:
            return
        self._shutdown = True

        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is not None:
                item[0].cancel()

        for _ in self._threads:
            self._queue.put(None)

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                return

            future, context, fn, args = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = context.run(fn, *args)
            except BaseException as e:
                future.set_exception(e)
            else:
                future.set_result(result)
