"""A fixed-size pool of worker threads fed from a shared queue."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, List, Optional

log = logging.getLogger(__name__)


class ThreadPool:
    """Runs submitted callables on a fixed number of threads."""

    def __init__(self, size: int = 10, name: str = "thread_pool") -> None:
        self.name = name[:15]
        self._tasks: "queue.Queue[Optional[Callable[[], object]]]" = queue.Queue()
        self._closed = False
        self._lock = threading.Lock()
        self._threads: List[threading.Thread] = [
            threading.Thread(target=self._run, name=self.name, daemon=True)
            for _ in range(size)
        ]
        for thread in self._threads:
            thread.start()

    def execute(self, func: Callable[[], object]) -> bool:
        """Queue ``func`` to run on some worker thread."""
        with self._lock:
            if self._closed:
                raise RuntimeError("thread pool has been shut down")
            self._tasks.put(func)
        return True

    def shutdown(self) -> None:
        """Let queued tasks finish, then stop and join every worker."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for _ in self._threads:
                self._tasks.put(None)
        for thread in self._threads:
            thread.join()

    def _run(self) -> None:
        while True:
            task = self._tasks.get()
            if task is None:
                return
            try:
                task()
            except Exception:
                log.exception("task in pool %s failed", self.name)

    def __enter__(self) -> "ThreadPool":
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()