"""Scrape-time collection orchestration."""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Optional

from .collectors.base import BaseProber
from .collectors.source import BookmarkCursor, BookmarkSource, StoreOpenError
from .collectors.worker_pool import STOP, WorkerPool
from .config.models import CollectionConfig
from .services.gauge_store import GaugeStore
from .services.result_sink import ResultSink
from .utils.metrics import CollectionRun
from .utils.status import RunState


class OrchestratorClosed(RuntimeError):
    """Raised when a collection is requested after shutdown began."""


class CollectionOrchestrator:
    """
    Runs one collection per scrape.

    Wires source → URL queue → worker pool → result sink → gauge store,
    and bounds the whole run by a deadline. A run that hits the deadline
    ends in TIMED_OUT and leaves whatever already reached the store.
    """

    def __init__(
        self,
        source: BookmarkSource,
        prober: BaseProber,
        store: GaugeStore,
        config: CollectionConfig,
        logger: logging.Logger
    ):
        """
        Initialize orchestrator.

        Args:
            source: Bookmark URL source
            prober: Prober shared by every run's workers
            store: Process-wide gauge store
            config: Pool size, queue sizes and deadline
            logger: Logger instance
        """
        self.source = source
        self.prober = prober
        self.store = store
        self.config = config
        self.logger = logger.getChild(self.__class__.__name__)
        self._run_lock: Optional[asyncio.Lock] = asyncio.Lock() if config.serialize_runs else None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def collect(self, deadline_seconds: Optional[float] = None) -> CollectionRun:
        """
        Execute one collection run.

        Args:
            deadline_seconds: Overrides config.deadline_seconds for this run

        Returns:
            CollectionRun: Finished run, state DONE or TIMED_OUT

        Raises:
            StoreOpenError: If the bookmarks store cannot be opened
            OrchestratorClosed: If close() was already called
        """
        if self._closed:
            raise OrchestratorClosed("Collection orchestrator is shut down")

        if deadline_seconds is None:
            deadline_seconds = self.config.deadline_seconds
        run = CollectionRun(deadline_seconds=deadline_seconds)

        if self._run_lock is None:
            return await self._execute(run)

        async with self._run_lock:
            return await self._execute(run)

    async def _execute(self, run: CollectionRun) -> CollectionRun:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + run.deadline_seconds

        urls = await self._open_urls(run)

        run.transition(RunState.RUNNING)
        self.logger.info(
            f"Collection run {run.run_id} started",
            extra={"run_id": run.run_id, "workers": self.config.workers}
        )

        url_queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.url_queue_size)
        sink = ResultSink(self.store, maxsize=self.config.result_queue_size, logger=self.logger)
        pool = WorkerPool(self.prober, self.config.workers, self.logger)

        # Teardown runs in reverse order and every step runs even if one raises
        async with AsyncExitStack() as teardown:
            teardown.push_async_callback(urls.aclose)
            # Results that completed before a timeout still count
            teardown.callback(sink.drain)

            feeder = asyncio.create_task(self._feed(urls, url_queue, pool.size, run), name="url-feeder")
            pool.start(url_queue, sink)
            consumer = asyncio.create_task(sink.consume(), name="result-consumer")

            teardown.push_async_callback(self._stop, consumer)
            teardown.push_async_callback(pool.cancel)
            teardown.push_async_callback(self._stop, feeder)

            try:
                await asyncio.wait_for(pool.join(), timeout=max(deadline - loop.time(), 0))
                run.transition(RunState.DRAINING)

                await self._stop(consumer)
                sink.drain()
                run.transition(RunState.DONE)

            except asyncio.TimeoutError:
                run.transition(RunState.TIMED_OUT)
                self.logger.warning(
                    f"Collection run {run.run_id} hit its {run.deadline_seconds}s deadline, "
                    f"serving partial results",
                    extra={
                        "run_id": run.run_id,
                        "pending_workers": pool.running,
                        "pending_results": sink.pending(),
                    }
                )

        run.urls_probed = pool.probed
        run.results_applied = sink.applied
        run.probe_failures = sink.failed

        self.logger.info(
            f"Collection run {run.run_id} finished: {run.state.value}",
            extra={
                "run_id": run.run_id,
                "state": run.state.value,
                "urls_dispatched": run.urls_dispatched,
                "urls_probed": run.urls_probed,
                "results_applied": run.results_applied,
                "probe_failures": run.probe_failures,
                "duration_seconds": round(run.duration_seconds, 3),
            }
        )
        return run

    async def _open_urls(self, run: CollectionRun) -> BookmarkCursor:
        """Open the source within the run's deadline."""
        try:
            return await asyncio.wait_for(self.source.open_urls(), timeout=run.deadline_seconds)
        except asyncio.TimeoutError as e:
            raise StoreOpenError(
                f"Bookmarks store not opened within the {run.deadline_seconds}s deadline"
            ) from e

    async def _feed(
        self,
        urls: BookmarkCursor,
        url_queue: asyncio.Queue,
        workers: int,
        run: CollectionRun
    ) -> None:
        """
        Copy URLs from the source into the bounded queue, then stop every worker.

        Args:
            urls: Open bookmark cursor
            url_queue: Queue read by the workers
            workers: Number of STOP markers to enqueue
            run: Run being fed
        """
        async with urls:
            async for url in urls:
                await url_queue.put(url)
                run.urls_dispatched += 1

        self.logger.debug(f"Feeder done after {run.urls_dispatched} URL(s)")
        for _ in range(workers):
            await url_queue.put(STOP)

    @staticmethod
    async def _stop(task: asyncio.Task) -> None:
        """Cancel a helper task and wait for it, surfacing real failures."""
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # Only the helper's own cancellation is expected here
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

    async def close(self) -> None:
        """Refuse further runs and release the prober."""
        if self._closed:
            return
        self._closed = True
        await self.prober.aclose()
        self.logger.info("Collection orchestrator closed")
