"""Bounded worker pool for export jobs."""

import asyncio
import logging
from typing import Optional

from burnsub.models.job import ExportJob
from burnsub.render.pipeline import ExportPipeline

logger = logging.getLogger(__name__)


class ExportScheduler:
    """
    Runs queued export jobs with at most ``concurrency`` in parallel.

    The dispatch loop takes the next job from the queue and then waits for
    a free slot before starting it, so submissions never fail because the
    pool is busy. A failing job only affects itself.
    """

    def __init__(self, pipeline: ExportPipeline, concurrency: int = 2, queue_size: int = 1024):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.pipeline = pipeline
        self.concurrency = concurrency
        self._queue: asyncio.Queue[ExportJob] = asyncio.Queue(maxsize=queue_size)
        self._slots = asyncio.Semaphore(concurrency)
        self._tasks: set[asyncio.Task] = set()
        self._dispatcher: Optional[asyncio.Task] = None
        self._running = 0
        # taken from the queue, waiting for a slot
        self._next: Optional[ExportJob] = None

    @property
    def running(self) -> int:
        """Number of jobs currently executing."""
        return self._running

    @property
    def queued(self) -> int:
        """Jobs waiting to start, including the one held by the dispatcher."""
        return self._queue.qsize() + (1 if self._next is not None else 0)

    async def submit(self, job: ExportJob) -> None:
        """Enqueue a job, waiting only if the queue itself is full."""
        await self._queue.put(job)

    def submit_nowait(self, job: ExportJob) -> None:
        self._queue.put_nowait(job)

    async def join(self) -> None:
        """Wait until every submitted job has run."""
        await self._queue.join()

    def start(self) -> None:
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(self.run(), name="export-dispatcher")

    async def stop(self) -> None:
        """Stop dispatching and wait for running jobs to finish.

        Jobs that have not started stay queued for the next ``start()``.
        """
        if self._dispatcher is not None:
            self._dispatcher.cancel()
            try:
                await self._dispatcher
            except asyncio.CancelledError:
                pass
            self._dispatcher = None

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def run(self) -> None:
        """Dispatch loop, runs until cancelled."""
        logger.info(f"[SCHEDULER] Running export jobs with concurrency {self.concurrency}")
        while True:
            if self._next is None:
                self._next = await self._queue.get()

            # limit number of running jobs; a job held here survives stop()
            # and is started first after the next start()
            await self._slots.acquire()
            job, self._next = self._next, None

            self._running += 1
            task = asyncio.create_task(self._execute(job), name=f"export-{job.id}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _execute(self, job: ExportJob) -> None:
        try:
            await job.execute(self.pipeline)
        except Exception as e:
            logger.error(f"[EXPORT {job.id}] Export failed with error: {e}", exc_info=e)
        finally:
            self._running -= 1
            # allow another job to start
            self._slots.release()
            self._queue.task_done()
