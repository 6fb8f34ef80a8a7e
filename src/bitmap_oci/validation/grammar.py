"""
Claim Grammar

Parsing of bitmap claim content:

    N.bitmap      bitmap claim for block N
    P.N.bitmap    parcel claim P of block N

Nothing here touches the network.
"""

from __future__ import annotations

import re
from typing import Literal, NamedTuple, Optional

from ..core.errors import ClaimFormatError


CLAIM_SUFFIX = "bitmap"

CLAIM_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?\.bitmap", re.ASCII)

ContentType = Literal["bitmap", "parcel", "other"]


class ClaimRef(NamedTuple):
    """A parsed claim. ``parcel_number`` is None for bitmap claims."""
    bitmap_number: int
    parcel_number: Optional[int] = None

    @property
    def is_parcel(self) -> bool:
        return self.parcel_number is not None


def parse_claim(content: str) -> ClaimRef:
    """
    Parse ``content`` as a bitmap or parcel claim.

    Raises
    ------
    ClaimFormatError
        If the content does not match ``N.bitmap`` or ``P.N.bitmap``.
    """
    match = CLAIM_PATTERN.fullmatch(content)
    if match is None:
        raise ClaimFormatError(
            'Bad format: expected "number.bitmap" or "parcel.block.bitmap"'
        )
    first, second = match.group(1), match.group(2)
    if second is None:
        return ClaimRef(bitmap_number=int(first))
    return ClaimRef(bitmap_number=int(second), parcel_number=int(first))


def _is_decimal(text: str) -> bool:
    return text.isascii() and text.isdigit()


def parse_parcel_content(content: str, parent_number: int) -> Optional[int]:
    """
    Return the parcel number claimed by child ``content`` for block
    ``parent_number``, or None if the content is not a parcel of that block.

    The block part must equal the parent number textually; the parcel part
    must be a non-negative decimal integer (``05`` reads as 5).
    """
    parts = content.split(".")
    if len(parts) != 3 or parts[2] != CLAIM_SUFFIX:
        return None
    parcel_text, block_text = parts[0], parts[1]
    if block_text != str(parent_number):
        return None
    if not _is_decimal(parcel_text):
        return None
    return int(parcel_text)


def classify_content(content: Optional[str]) -> ContentType:
    if not content:
        return "other"
    try:
        claim = parse_claim(content.strip())
    except ClaimFormatError:
        return "other"
    return "parcel" if claim.is_parcel else "bitmap"
