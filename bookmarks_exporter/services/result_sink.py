"""Bounded result channel feeding the gauge store."""

import asyncio
import logging

from ..utils.metrics import ProbeResult
from .gauge_store import GaugeStore


class ResultSink:
    """
    Fan-in point between probe workers and the gauge store.

    Workers `put` results into a bounded queue and block when it is full.
    `consume` applies results while a run is in progress; `drain` is the
    final non-blocking pass once the pool has joined.
    """

    def __init__(self, store: GaugeStore, maxsize: int = 1000, logger: logging.Logger = None):
        """
        Initialize result sink.

        Args:
            store: Gauge store receiving the results
            maxsize: Capacity of the result channel
            logger: Optional logger instance
        """
        self.store = store
        self.logger = (logger or logging.getLogger(__name__)).getChild(self.__class__.__name__)
        self.applied = 0
        self.failed = 0
        self._channel: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    async def put(self, result: ProbeResult) -> None:
        """Enqueue a result, waiting for space if the channel is full."""
        await self._channel.put(result)

    def pending(self) -> int:
        """Number of results buffered but not yet applied."""
        return self._channel.qsize()

    def drain(self) -> int:
        """
        Apply every currently buffered result to the store.

        Never waits for producers; calling it on an empty channel is a no-op.

        Returns:
            int: Number of results applied by this call
        """
        count = 0
        while True:
            try:
                result = self._channel.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._apply(result)
            count += 1

        if count:
            self.logger.debug(f"Drained {count} result(s)")
        return count

    async def consume(self) -> None:
        """Apply results as they arrive until cancelled."""
        while True:
            result = await self._channel.get()
            self._apply(result)

    def _apply(self, result: ProbeResult) -> None:
        self.store.update(result)
        self.applied += 1
        if result.failed:
            self.failed += 1
