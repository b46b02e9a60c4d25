# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Tests for named worker pools."""

import asyncio
import threading

import pytest

from mogle.workers import MAX_QUEUE_DEPTH, WorkerPool, WorkerPoolBusy


@pytest.fixture
def pool():
    p = WorkerPool("test", max_workers=1)
    yield p
    p.shutdown(wait=True)


class TestWorkerPool:

    def test_submit_sync_returns_result(self, pool):
        assert pool.submit_sync(lambda: 42).result(timeout=2) == 42

    def test_submit_sync_with_args(self, pool):
        def add(a, b, c=0):
            return a + b + c
        assert pool.submit_sync(add, 3, 4, c=1).result(timeout=2) == 8

    def test_async_submit(self, pool):
        async def run():
            return await pool.submit(str.upper, "hello")
        assert asyncio.run(run()) == "HELLO"

    def test_single_worker_runs_in_order(self, pool):
        order = []
        futures = [pool.submit_sync(order.append, i) for i in range(10)]
        for f in futures:
            f.result(timeout=2)
        assert order == list(range(10))

    def test_thread_name(self, pool):
        name = pool.submit_sync(lambda: threading.current_thread().name).result(timeout=2)
        assert name.startswith("mogle-test")

    def test_stats_tracking(self, pool):
        pool.submit_sync(lambda: None).result(timeout=2)
        pool.submit_sync(lambda: None).result(timeout=2)
        stats = pool.stats()
        assert stats["name"] == "test"
        assert stats["submitted"] == 2
        assert stats["completed"] == 2
        assert stats["rejected"] == 0
        assert stats["pending"] == 0

    def test_exception_propagation(self, pool):
        def fail():
            raise RuntimeError("boom")
        with pytest.raises(RuntimeError, match="boom"):
            pool.submit_sync(fail).result(timeout=2)
        assert pool.stats()["pending"] == 0


class TestBackpressure:

    def test_rejects_when_full(self):
        pool = WorkerPool("tiny", max_workers=1)
        barrier = threading.Event()
        futures = [pool.submit_sync(barrier.wait, 5) for _ in range(MAX_QUEUE_DEPTH)]

        with pytest.raises(WorkerPoolBusy):
            pool.submit_sync(lambda: None)
        assert pool.stats()["rejected"] == 1

        barrier.set()
        for f in futures:
            f.result(timeout=5)
        pool.shutdown(wait=True)

    def test_async_rejects_when_full(self):
        pool = WorkerPool("tiny", max_workers=1)
        barrier = threading.Event()
        futures = [pool.submit_sync(barrier.wait, 5) for _ in range(MAX_QUEUE_DEPTH)]

        async def run():
            return await pool.submit(lambda: None)

        with pytest.raises(WorkerPoolBusy):
            asyncio.run(run())

        barrier.set()
        for f in futures:
            f.result(timeout=5)
        pool.shutdown(wait=True)
