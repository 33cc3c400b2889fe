"""Tests for BaseProber and the safe_probe decorator."""

import asyncio
import logging

import pytest

from bookmarks_exporter.collectors.base import BaseProber, safe_probe
from bookmarks_exporter.utils.status import FAILURE_STATUS


class RaisingProber(BaseProber):
    """Prober raising whatever exception it was built with."""

    def __init__(self, error, logger=None):
        super().__init__(logger or logging.getLogger(__name__))
        self.error = error

    @safe_probe
    async def probe(self, url):
        raise self.error


class OkProber(BaseProber):

    def __init__(self, logger=None):
        super().__init__(logger or logging.getLogger(__name__))

    @safe_probe
    async def probe(self, url):
        return 204


class TestSafeProbe:
    """Test suite for safe_probe."""

    @pytest.mark.asyncio
    async def test_passes_status_through(self):
        assert await OkProber().probe("http://example.com") == 204

    @pytest.mark.asyncio
    async def test_exception_becomes_failure_status(self):
        prober = RaisingProber(ConnectionError("refused"))
        assert await prober.probe("http://example.com") == FAILURE_STATUS

    @pytest.mark.asyncio
    async def test_timeout_becomes_failure_status(self):
        prober = RaisingProber(asyncio.TimeoutError())
        assert await prober.probe("http://example.com") == FAILURE_STATUS

    @pytest.mark.asyncio
    async def test_failure_is_logged_as_warning(self, caplog):
        logger = logging.getLogger("safe_probe_test")
        logger.propagate = True
        prober = RaisingProber(ValueError("bad url"), logger)

        with caplog.at_level(logging.WARNING):
            await prober.probe("::not a url::")

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("::not a url::" in r.getMessage() for r in warnings)

    @pytest.mark.asyncio
    async def test_cancellation_is_not_swallowed(self):
        prober = RaisingProber(asyncio.CancelledError())
        with pytest.raises(asyncio.CancelledError):
            await prober.probe("http://example.com")

    def test_logger_is_child_of_given_logger(self):
        prober = OkProber(logging.getLogger("parent"))
        assert prober.logger.name == "parent.OkProber"

    @pytest.mark.asyncio
    async def test_default_aclose_is_noop(self):
        assert await OkProber().aclose() is None
