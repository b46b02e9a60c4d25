# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle worker pools — named thread pools with a bounded backlog.

Two pools are created by their owners, each with one thread:
  store  AsyncEntryStore routes every call here, so saves against one
         store queue up instead of interleaving their clear/upsert phases.
  llm    FeedbackComposer runs bridge calls here and waits on the future
         with a timeout, so a hung model never blocks the rule path.

A pool refuses new work once `max_queue` calls are in flight.
"""

import asyncio
import functools
import logging
import threading
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict

logger = logging.getLogger("mogle.workers")

MAX_QUEUE_DEPTH = 32


class WorkerPoolBusy(Exception):
    """Pool backlog is full; the call was not queued."""

    def __init__(self, pool: str, depth: int):
        super().__init__(f"Pool '{pool}' full ({depth}/{depth})")
        self.pool = pool
        self.depth = depth


class WorkerPool:

    def __init__(self, name: str, max_workers: int = 1, max_queue: int = MAX_QUEUE_DEPTH):
        self.name = name
        self.max_workers = max_workers
        self.max_queue = max_queue
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"mogle-{name}",
        )
        self._lock = threading.Lock()
        self._in_flight = 0
        self._counts: Counter = Counter()

    def _admit(self, fn: Callable, args: tuple, kwargs: dict) -> Callable[[], Any]:
        """Reserve a backlog slot and wrap `fn` so the slot is released."""
        with self._lock:
            if self._in_flight >= self.max_queue:
                self._counts["rejected"] += 1
                logger.warning("Worker pool '%s' rejected a call", self.name)
                raise WorkerPoolBusy(self.name, self.max_queue)
            self._in_flight += 1
            self._counts["submitted"] += 1

        call = functools.partial(fn, *args, **kwargs)

        def run():
            try:
                return call()
            finally:
                with self._lock:
                    self._in_flight -= 1
                    self._counts["completed"] += 1

        return run

    def submit_sync(self, fn: Callable, *args, **kwargs) -> Future:
        """Queue `fn` and return its Future. Raises WorkerPoolBusy."""
        return self._executor.submit(self._admit(fn, args, kwargs))

    async def submit(self, fn: Callable, *args, **kwargs) -> Any:
        """Queue `fn` and await its result. Raises WorkerPoolBusy."""
        run = self._admit(fn, args, kwargs)
        return await asyncio.get_running_loop().run_in_executor(self._executor, run)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "max_workers": self.max_workers,
                "pending": self._in_flight,
                "submitted": self._counts["submitted"],
                "completed": self._counts["completed"],
                "rejected": self._counts["rejected"],
            }

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
        logger.debug("Worker pool '%s' shut down", self.name)
