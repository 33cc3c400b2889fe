"""Process-wide store of the last known status per URL."""

import logging
import threading
from typing import Dict, Optional

from ..utils.metrics import ProbeResult


class GaugeStore:
    """
    Thread-safe url → status mapping with last-writer-wins upserts.

    One instance lives for the whole process and is shared by every
    collection run and by the exposition path. Readers may observe a
    partially updated map while a run is still writing.
    """

    def __init__(self, logger: logging.Logger = None):
        """
        Initialize gauge store.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._values: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update(self, result: ProbeResult) -> None:
        """Apply one probe result, replacing any previous value for its URL."""
        self.set(result.url, result.status_code)

    def set(self, url: str, status: int) -> None:
        """Upsert the status for a URL."""
        with self._lock:
            self._values[url] = status

    def get(self, url: str) -> Optional[int]:
        """Return the stored status for a URL, None if it was never probed."""
        with self._lock:
            return self._values.get(url)

    def snapshot(self) -> Dict[str, int]:
        """Return a point-in-time copy safe to iterate without the lock."""
        with self._lock:
            return dict(self._values)

    def clear(self) -> None:
        """Forget every URL."""
        with self._lock:
            self._values.clear()
        self.logger.info("Gauge store cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)
