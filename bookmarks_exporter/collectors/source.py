"""Bookmark URL source backed by SQLite."""

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from ..config.models import StoreConfig


class StoreOpenError(Exception):
    """The bookmarks store could not be opened or queried."""


class BookmarkCursor:
    """
    Forward-only sequence of URLs for a single collection run.

    Owns its connection; use as an async context manager or call aclose().
    Iterate it once.
    """

    def __init__(
        self,
        db: aiosqlite.Connection,
        cursor: aiosqlite.Cursor,
        logger: logging.Logger
    ):
        self._db = db
        self._cursor = cursor
        self.logger = logger
        self.yielded = 0
        self.skipped = 0
        self.closed = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self._rows()

    async def _rows(self) -> AsyncIterator[str]:
        """Yield URLs row by row, skipping records that hold no text."""
        try:
            async for row in self._cursor:
                url = row[0] if row else None
                if not isinstance(url, str):
                    self.skipped += 1
                    self.logger.warning(f"Skipping bad bookmark row: {row!r}")
                    continue
                # Stored text is the label as-is; a blank or malformed URL probes to 0
                self.yielded += 1
                yield url
        except aiosqlite.Error as e:
            self.logger.error(f"Reading bookmarks stopped early: {e}", exc_info=True)

    async def aclose(self) -> None:
        """Close cursor and connection. Safe to call more than once."""
        if self.closed:
            return
        try:
            await self._cursor.close()
        finally:
            await self._db.close()
        self.closed = True
        self.logger.debug(f"Bookmark cursor closed ({self.yielded} yielded, {self.skipped} skipped)")

    async def __aenter__(self) -> "BookmarkCursor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class BookmarkSource:
    """Read-only access to the bookmarked URLs."""

    def __init__(self, config: StoreConfig, logger: logging.Logger):
        """
        Initialize bookmark source.

        Args:
            config: Store configuration (database path and query)
            logger: Logger instance
        """
        self.config = config
        self.logger = logger.getChild(self.__class__.__name__)

    @property
    def uri(self) -> str:
        # mode=ro stops sqlite from creating a missing database file
        return f"{Path(self.config.path).resolve().as_uri()}?mode=ro"

    async def _connect(self) -> aiosqlite.Connection:
        try:
            return await aiosqlite.connect(self.uri, uri=True)
        except aiosqlite.Error as e:
            raise StoreOpenError(f"Cannot open bookmarks store {self.config.path}: {e}") from e

    async def verify(self) -> None:
        """
        Check that the store can be opened and answers a trivial query.

        Raises:
            StoreOpenError: If the database is missing or unreadable
        """
        db = await self._connect()
        try:
            await db.execute("SELECT 1")
        except aiosqlite.Error as e:
            raise StoreOpenError(f"Bookmarks store {self.config.path} is not usable: {e}") from e
        finally:
            await db.close()

        self.logger.info(f"Bookmarks store {self.config.path} is reachable")

    async def open_urls(self) -> BookmarkCursor:
        """
        Open the URL sequence for one collection run.

        Returns:
            BookmarkCursor: Lazy sequence of URLs holding its own connection

        Raises:
            StoreOpenError: If the database cannot be opened or the query fails
        """
        db = await self._connect()
        try:
            cursor = await db.execute(self.config.query)
        except aiosqlite.Error as e:
            await db.close()
            raise StoreOpenError(f"Query failed on {self.config.path}: {e}") from e
        except asyncio.CancelledError:
            await db.close()
            raise

        return BookmarkCursor(db, cursor, self.logger)
