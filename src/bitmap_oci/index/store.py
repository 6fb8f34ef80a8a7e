"""
Paged Index Store

In-memory store of decoded index pages mapping bitmap numbers to sats.

Design choices
--------------
- One store per process, constructed explicitly and injected into the
  resolvers (no module-level page array).
- Pages are fetched lazily on first access and kept for the store's
  lifetime; the full domain is nine pages of historical data.
- Single-flight per page: concurrent first accesses to the same page share
  one fetch and one decode via a per-page asyncio.Lock.
- Decoded pages are immutable tuples, so readers need no locking.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .decoder import MAX_BITMAP, MIN_BITMAP, PAGE_COUNT, PAGE_SIZE, SENTINEL, decode_page
from ..config import settings
from ..core.errors import BitmapRangeError, IndexDecodeError
from ..ordinals.client import OrdinalsClient

logger = logging.getLogger("bitmap.index")


def check_bitmap_number(bitmap_number: int) -> None:
    """
    Raises
    ------
    BitmapRangeError
        If ``bitmap_number`` is outside [0, 839999].
    """
    if bitmap_number < MIN_BITMAP:
        raise BitmapRangeError(f"Bitmap number {bitmap_number} is below {MIN_BITMAP}")
    if bitmap_number > MAX_BITMAP:
        raise BitmapRangeError(f"Bitmap number {bitmap_number} is above {MAX_BITMAP:,}")


class PagedIndexStore:
    """
    Fetches, decodes and caches index pages.
    """

    def __init__(
        self,
        client: OrdinalsClient,
        page_sources: Optional[Sequence[str]] = None,
    ) -> None:
        """
        Parameters
        ----------
        client : OrdinalsClient
            Client used to download page documents.

        page_sources : Optional[Sequence[str]]
            Content paths of the pages in page order. Defaults to
            settings.index_page_sources.
        """
        sources = list(page_sources if page_sources is not None else settings.index_page_sources)
        if len(sources) < PAGE_COUNT:
            raise ValueError(
                f"Expected {PAGE_COUNT} index page sources, got {len(sources)}."
            )
        self._client = client
        self._sources = sources
        self._pages: Dict[int, Tuple[int, ...]] = {}
        self._locks: Dict[int, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Page lifecycle
    # ------------------------------------------------------------------

    async def ensure_page(self, page: int) -> Tuple[int, ...]:
        """
        Return decoded page ``page``, fetching and decoding it if needed.

        Raises
        ------
        RemoteLookupError
            If the page document cannot be downloaded.

        IndexDecodeError
            If the page document cannot be parsed.
        """
        cached = self._pages.get(page)
        if cached is not None:
            return cached

        if not 0 <= page < PAGE_COUNT:
            raise IndexDecodeError(f"No index page {page}")

        lock = self._locks.setdefault(page, asyncio.Lock())
        async with lock:
            # Another task may have filled the page while we waited.
            cached = self._pages.get(page)
            if cached is not None:
                return cached

            logger.info("Fetching index page %d from %s", page, self._sources[page])
            text = await self._client.get_text(self._sources[page])
            decoded = decode_page(page, text)
            self._pages[page] = decoded
            return decoded

    def cached_pages(self) -> List[int]:
        return sorted(self._pages)

    def clear(self) -> None:
        """Drop every decoded page. Intended for tests and administrative resets."""
        self._pages.clear()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_sat(self, bitmap_number: int) -> int:
        """
        Raises
        ------
        BitmapRangeError
            If ``bitmap_number`` is out of domain.

        IndexDecodeError
            If the page holds no sat for ``bitmap_number``.
        """
        check_bitmap_number(bitmap_number)
        page = await self.ensure_page(bitmap_number // PAGE_SIZE)
        sat = page[bitmap_number % PAGE_SIZE]
        if sat == SENTINEL:
            raise IndexDecodeError(f"Index page has no sat for bitmap {bitmap_number}")
        return sat

    async def get_sats_range(self, start: int, end: int) -> List[int]:
        """
        Return sats for bitmaps ``start`` through ``end`` inclusive. A
        reversed range is empty.

        Raises
        ------
        BitmapRangeError
            If either bound is out of domain.
        """
        check_bitmap_number(start)
        check_bitmap_number(end)
        return [await self.get_sat(n) for n in range(start, end + 1)]


class SatResolver:
    """
    Public query surface over a PagedIndexStore.
    """

    def __init__(self, store: PagedIndexStore) -> None:
        self.store = store

    async def get_sat(self, bitmap_number: int) -> int:
        return await self.store.get_sat(bitmap_number)

    async def get_sats_range(self, start: int, end: int) -> List[int]:
        return await self.store.get_sats_range(start, end)
