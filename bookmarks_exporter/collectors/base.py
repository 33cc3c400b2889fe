"""Base prober abstract class and failure handling for all probers."""

from abc import ABC, abstractmethod
import logging
from functools import wraps

from ..utils.status import FAILURE_STATUS


class BaseProber(ABC):
    """Abstract base class for URL probers."""

    def __init__(self, logger: logging.Logger):
        """
        Initialize base prober.

        Args:
            logger: Logger instance
        """
        self.logger = logger.getChild(self.__class__.__name__)

    @abstractmethod
    async def probe(self, url: str) -> int:
        """
        Check one URL and return its HTTP status.

        Args:
            url: Target URL

        Returns:
            int: HTTP status code, or FAILURE_STATUS if none was obtained

        Note:
            Implementations should use the @safe_probe decorator so that
            failures come back as FAILURE_STATUS instead of raising.
        """
        pass

    async def aclose(self) -> None:
        """Release any resources held by the prober."""
        return None


def safe_probe(func):
    """
    Decorator turning any probe failure into FAILURE_STATUS.

    Cancellation (asyncio.CancelledError) is a BaseException and still
    propagates, so a cancelled run stops its in-flight probes.

    Args:
        func: Probe coroutine method taking (self, url)

    Returns:
        Wrapped coroutine that never raises Exception
    """
    @wraps(func)
    async def wrapper(self, url, *args, **kwargs):
        try:
            return await func(self, url, *args, **kwargs)
        except Exception as e:
            self.logger.warning(
                f"Probe failed for {url}: {type(e).__name__}: {e}",
                extra={"url": url, "error_type": type(e).__name__}
            )
            return FAILURE_STATUS
    return wrapper
