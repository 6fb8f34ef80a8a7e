"""
Canonical Claim Resolution

Maps a bitmap number to the inscription recognised as its canonical record:
bitmap number -> sat (index store) -> ordinal index (exception table) ->
inscription ID (data service).
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from .exceptions_table import ExceptionTable
from .store import SatResolver, check_bitmap_number
from ..core.errors import IndexDecodeError, RemoteLookupError
from ..ordinals.content import ContentFetcher

logger = logging.getLogger("bitmap.index")


class CanonicalRecord(NamedTuple):
    """Every intermediate value of one resolution."""
    bitmap_number: int
    sat: int
    sat_index: int
    inscription_id: str


class CanonicalClaimResolver:
    def __init__(
        self,
        sats: SatResolver,
        exceptions: ExceptionTable,
        fetcher: ContentFetcher,
    ) -> None:
        self._sats = sats
        self._exceptions = exceptions
        self._fetcher = fetcher

    async def resolve(self, bitmap_number: int) -> CanonicalRecord:
        """
        Resolve ``bitmap_number`` to its canonical record.

        Raises
        ------
        BitmapRangeError
            If the number is outside [0, 839999].

        RemoteLookupError
            If the index page, or the record at (sat, index), cannot be
            obtained.
        """
        check_bitmap_number(bitmap_number)

        try:
            sat = await self._sats.get_sat(bitmap_number)
        except IndexDecodeError as exc:
            raise RemoteLookupError(
                f"Index page for bitmap {bitmap_number} is unreadable"
            ) from exc

        sat_index = self._exceptions.get_sat_index(bitmap_number)
        inscription_id = await self._fetcher.fetch_sat_record(sat, sat_index)

        logger.debug(
            "Bitmap %d resolved to sat %d index %d: %s",
            bitmap_number,
            sat,
            sat_index,
            inscription_id,
        )
        return CanonicalRecord(bitmap_number, sat, sat_index, inscription_id)

    async def resolve_canonical_id(self, bitmap_number: int) -> str:
        record = await self.resolve(bitmap_number)
        return record.inscription_id
