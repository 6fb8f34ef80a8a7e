"""
Index Package

Decoding and lookup of the bitmap on-chain index (bitmap number -> sat),
the curated sat-index exceptions, and canonical record resolution.
"""

from .decoder import PAGE_SIZE, MIN_BITMAP, MAX_BITMAP, PAGE_COUNT, decode_page
from .store import PagedIndexStore, SatResolver, check_bitmap_number
from .exceptions_table import ExceptionTable
from .canonical import CanonicalClaimResolver, CanonicalRecord

__all__ = [
    "PAGE_SIZE",
    "MIN_BITMAP",
    "MAX_BITMAP",
    "PAGE_COUNT",
    "decode_page",
    "PagedIndexStore",
    "SatResolver",
    "check_bitmap_number",
    "ExceptionTable",
    "CanonicalClaimResolver",
    "CanonicalRecord",
]
