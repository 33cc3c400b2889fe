"""Fixed-size pool of asyncio probe workers."""

import asyncio
import logging
import time
from typing import List

from ..services.result_sink import ResultSink
from ..utils.metrics import ProbeResult
from .base import BaseProber


# Put on the URL queue once per worker when the source is exhausted
STOP = object()


class WorkerPool:
    """
    Drains a bounded URL queue with a fixed number of concurrent workers.

    Each worker takes a URL, probes it, and forwards exactly one
    ProbeResult to the sink. At most `size` probes are in flight.
    """

    def __init__(self, prober: BaseProber, size: int, logger: logging.Logger):
        """
        Initialize worker pool.

        Args:
            prober: Prober shared by all workers
            size: Number of workers
            logger: Logger instance
        """
        if size < 1:
            raise ValueError(f"Worker pool size must be at least 1, got {size}")

        self.prober = prober
        self.size = size
        self.logger = logger.getChild(self.__class__.__name__)
        self.in_flight = 0
        self.peak_in_flight = 0
        self.probed = 0
        self._tasks: List[asyncio.Task] = []

    def start(self, urls: asyncio.Queue, sink: ResultSink) -> None:
        """
        Spawn the workers.

        Args:
            urls: Bounded queue of URLs, terminated by one STOP per worker
            sink: Destination for probe results
        """
        if self._tasks:
            raise RuntimeError("Worker pool already started")

        self._tasks = [
            asyncio.create_task(self._worker(i, urls, sink), name=f"probe-worker-{i}")
            for i in range(self.size)
        ]
        self.logger.debug(f"Started {self.size} workers")

    async def join(self) -> None:
        """Wait until every worker has exited."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

    async def cancel(self) -> None:
        """Cancel all workers and wait for them to finish unwinding."""
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self.logger.info(f"Cancelled {len(pending)} worker(s)")

    @property
    def running(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def _worker(self, worker_id: int, urls: asyncio.Queue, sink: ResultSink) -> None:
        """
        Worker loop: take a URL, probe it, emit the result.

        Args:
            worker_id: Index used in logs
            urls: URL queue
            sink: Result sink
        """
        while True:
            url = await urls.get()
            if url is STOP:
                self.logger.debug(f"Worker {worker_id} finished")
                return

            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            start_time = time.monotonic()
            try:
                status = await self.prober.probe(url)
            finally:
                self.in_flight -= 1

            self.probed += 1
            await sink.put(ProbeResult(
                url=url,
                status_code=status,
                duration_seconds=time.monotonic() - start_time
            ))
