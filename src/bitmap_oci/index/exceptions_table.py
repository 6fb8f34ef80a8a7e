"""
Sat Index Exceptions

Most bitmaps are the first inscription on their sat. The bitmaps below are
not: an earlier inscription on the same sat (a duplicate or conflicting
submission) occupies a lower ordinal position, so the canonical record sits
at the listed index instead of 0.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional


KNOWN_SAT_INDICES: Mapping[int, int] = {
    92871: 1, 92970: 1, 123132: 1, 365518: 1, 700181: 1, 826151: 1,
    827151: 1, 828151: 1, 828239: 1, 828661: 1, 829151: 1, 830151: 1,
    832104: 2, 832249: 2, 832252: 2, 832385: 4, 833067: 1, 833101: 3,
    833105: 4, 833109: 4, 833121: 8, 834030: 2, 834036: 2, 834051: 17,
    834073: 4, 836151: 1, 837115: 2, 837120: 2, 837151: 1, 837183: 3,
    837188: 2, 838058: 5, 838068: 2, 838076: 2, 838096: 1, 838151: 1,
    838821: 1, 839151: 1, 839377: 1, 839378: 2, 839382: 2, 839397: 1,
    840151: 1, 841151: 1, 842151: 1, 845151: 1,
}


class ExceptionTable:
    """Read-only lookup of curated ordinal indices."""

    def __init__(self, entries: Optional[Mapping[int, int]] = None) -> None:
        source = KNOWN_SAT_INDICES if entries is None else entries
        if any(index <= 0 for index in source.values()):
            raise ValueError("Sat index exceptions must be positive.")
        self._entries: Dict[int, int] = dict(source)

    def get_sat_index(self, bitmap_number: int) -> int:
        return self._entries.get(bitmap_number, 0)

    def __contains__(self, bitmap_number: int) -> bool:
        return bitmap_number in self._entries

    def __len__(self) -> int:
        return len(self._entries)
