#!/usr/bin/env python3
"""
Task Queues

Concrete queues for recompute tasks:

- ImmediateQueue runs each task inline as it is enqueued
- ThreadPoolQueue runs tasks on a thread pool
- AsyncioQueue buffers tasks in an asyncio.Queue drained by worker coroutines

Failures inside a worker are logged and recorded on the queue; they never
reach the code that enqueued the task.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_for
from typing import List, Optional, Set, Tuple

from ..exceptions import QueueError
from .base import RecomputeTask


logger = logging.getLogger(__name__)

Failure = Tuple[RecomputeTask, BaseException]


class ImmediateQueue:
    """
    Runs tasks synchronously when they are enqueued.

    Errors raised by the task propagate to the caller of ``enqueue``.
    Useful as a default and in tests.
    """

    def __init__(self):
        self._closed = False
        self.processed = 0

    def enqueue(self, task: RecomputeTask) -> None:
        if self._closed:
            raise QueueError("Queue is closed")
        task.run()
        self.processed += 1

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class ThreadPoolQueue:
    """
    Runs tasks on a ``ThreadPoolExecutor``.

    Example:
        with ThreadPoolQueue(max_workers=4) as queue:
            configure(queue=queue)
            article.recompute_async()
            queue.join()
    """

    def __init__(self, max_workers: Optional[int] = None):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="sclerotium",
        )
        self._futures: Set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False
        self.failures: List[Failure] = []

    def enqueue(self, task: RecomputeTask) -> None:
        with self._lock:
            if self._closed:
                raise QueueError("Queue is closed")
            try:
                future = self._executor.submit(self._run, task)
            except RuntimeError as e:
                raise QueueError(f"Cannot schedule {task!r}: {e}") from e
            self._futures.add(future)
        future.add_done_callback(self._discard)

    def _run(self, task: RecomputeTask) -> None:
        try:
            task.run()
        except Exception as e:
            logger.exception("Recompute task %r failed", task)
            with self._lock:
                self.failures.append((task, e))

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the tasks enqueued so far.

        Returns:
            True if all of them finished within the timeout
        """
        with self._lock:
            pending = set(self._futures)
        _, not_done = wait_for(pending, timeout=timeout)
        return not not_done

    def close(self, wait: bool = True) -> None:
        """Stop accepting tasks and shut the pool down."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AsyncioQueue:
    """
    Buffers tasks in an ``asyncio.Queue`` drained by worker coroutines.

    Tasks are run with ``asyncio.to_thread()`` so blocking compute functions
    and repositories don't stall the event loop. ``enqueue`` must be called
    from the event loop's thread.

    Example:
        queue = AsyncioQueue(maxsize=100)
        configure(queue=queue)
        queue.start(workers=2)
        article.recompute_async()
        await queue.drain()
        await queue.stop()
    """

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue[RecomputeTask] = asyncio.Queue(maxsize=maxsize)
        self._workers: List[asyncio.Task] = []
        self._closed = False
        self.failures: List[Failure] = []

    def enqueue(self, task: RecomputeTask) -> None:
        if self._closed:
            raise QueueError("Queue is closed")
        try:
            self._queue.put_nowait(task)
        except asyncio.QueueFull as e:
            raise QueueError(f"Queue is full ({self._queue.maxsize} tasks)") from e

    async def worker(self) -> None:
        """Run queued tasks until cancelled."""
        while True:
            task = await self._queue.get()
            try:
                await asyncio.to_thread(task.run)
            except Exception as e:
                logger.exception("Recompute task %r failed", task)
                self.failures.append((task, e))
            finally:
                self._queue.task_done()

    def start(self, workers: int = 1) -> None:
        """Spawn worker coroutines on the running loop."""
        for _ in range(workers):
            self._workers.append(asyncio.create_task(self.worker()))

    async def drain(self) -> None:
        """Wait until every enqueued task has been processed."""
        await self._queue.join()

    async def stop(self) -> None:
        """Cancel the workers started with ``start()``."""
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()

    def close(self) -> None:
        self._closed = True

    @property
    def pending(self) -> int:
        return self._queue.qsize()
