"""Shared pytest configuration and fixtures."""

import asyncio
import sqlite3

import httpx
import pytest

from bookmarks_exporter.collectors.base import BaseProber, safe_probe
from bookmarks_exporter.collectors.prober import HTTPProber
from bookmarks_exporter.config.models import (
    CollectionConfig,
    ExporterConfig,
    ProbeConfig,
    StoreConfig,
)
from bookmarks_exporter.services.gauge_store import GaugeStore
from bookmarks_exporter.utils.logger import setup_logger


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test", "DEBUG")


@pytest.fixture
def make_bookmarks_db(tmp_path):
    """Factory writing a bookmarks SQLite database with the given rows."""
    def _make(urls, name="bookmarks.db"):
        path = tmp_path / name
        conn = sqlite3.connect(path)
        conn.execute("CREATE TABLE bookmarks (id INTEGER PRIMARY KEY, url TEXT)")
        conn.executemany("INSERT INTO bookmarks (url) VALUES (?)", [(u,) for u in urls])
        conn.commit()
        conn.close()
        return str(path)
    return _make


@pytest.fixture
def store_config(make_bookmarks_db):
    """Store config pointing at three bookmarks."""
    return StoreConfig(path=make_bookmarks_db([
        "https://example.com/",
        "https://example.org/docs",
        "http://example.net/blog",
    ]))


@pytest.fixture
def collection_config():
    """Small pool and short deadline suitable for tests."""
    return CollectionConfig(workers=4, url_queue_size=2, result_queue_size=2, deadline_seconds=5.0)


@pytest.fixture
def probe_config():
    """Probe config with a short timeout."""
    return ProbeConfig(timeout_seconds=1.0, user_agent="test-agent/1.0")


@pytest.fixture
def exporter_config(store_config, collection_config, probe_config):
    """Full config assembled from the section fixtures."""
    return ExporterConfig(store=store_config, collection=collection_config, probe=probe_config)


@pytest.fixture
def gauge_store(logger):
    """Fresh gauge store."""
    return GaugeStore(logger)


def _mock_prober(handler, logger, **config_kwargs) -> HTTPProber:
    """HTTPProber whose requests are answered by an httpx.MockTransport handler."""
    config = ProbeConfig(**{"timeout_seconds": 1.0, **config_kwargs})
    return HTTPProber(config, logger, transport=httpx.MockTransport(handler))


class StaticProber(BaseProber):
    """Returns a fixed status per URL after an optional delay, tracking concurrency."""

    def __init__(self, logger, statuses=None, default=200, delay=0.0, delays=None):
        super().__init__(logger)
        self.statuses = statuses or {}
        self.default = default
        self.delay = delay
        self.delays = delays or {}
        self.calls = []
        self.current = 0
        self.max_concurrent = 0
        self.closed = False

    @safe_probe
    async def probe(self, url: str) -> int:
        self.calls.append(url)
        self.current += 1
        self.max_concurrent = max(self.max_concurrent, self.current)
        try:
            await asyncio.sleep(self.delays.get(url, self.delay))
        finally:
            self.current -= 1
        status = self.statuses.get(url, self.default)
        if isinstance(status, Exception):
            raise status
        return status

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def mock_prober(logger):
    """Factory: mock_prober(handler, **probe_config) -> HTTPProber on a MockTransport."""
    def _make(handler, **config_kwargs):
        return _mock_prober(handler, logger, **config_kwargs)
    return _make


@pytest.fixture
def static_prober(logger):
    """Factory building StaticProber instances bound to the test logger."""
    def _make(**kwargs):
        return StaticProber(logger, **kwargs)
    return _make
