"""
Index Page Decoder

Turns the raw text of one index page into a dense array of sat numbers.

Each page document holds two parallel sequences: sat deltas (first value
absolute, the rest relative to the previous value) and a permutation that
maps decoded position to bitmap offset within the page. Some published
pages are framed inconsistently, so parsing is a fixed chain of strategies
where the first one that yields a well-formed payload wins:

- WRAP_SPLIT        pages 2 and 3: fragments wrapped into one array, then
                    split into halves (deltas, permutation); STRICT follows
                    in case the page is published whole
- STRICT            plain JSON
- WHITESPACE_REPAIR strip literal ``\\n  `` runs, then double spaces, retrying
                    after each step
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from ..core.errors import IndexDecodeError

logger = logging.getLogger("bitmap.index")


PAGE_SIZE = 100_000
MIN_BITMAP = 0
MAX_BITMAP = 839_999
PAGE_COUNT = MAX_BITMAP // PAGE_SIZE + 1

# Unset slots in a decoded page. Sat 0 never carries a bitmap.
SENTINEL = 0

# Pages published with fragmented framing.
WRAP_SPLIT_PAGES = frozenset({2, 3})


class ParseStrategy(str, enum.Enum):
    STRICT = "strict"
    WRAP_SPLIT = "wrap_split"
    WHITESPACE_REPAIR = "whitespace_repair"


@dataclass
class RawIndexPayload:
    """Delta and permutation sequences for one page, plus how they were parsed."""

    deltas: List[int]
    permutation: List[int]
    strategy: ParseStrategy


# ---------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------

def _wrap_split_candidates(text: str) -> Iterator[Any]:
    parsed = json.loads("[" + text + "]")
    if (
        len(parsed) == 2
        and isinstance(parsed[0], list)
        and isinstance(parsed[1], list)
    ):
        # Fragments were two complete arrays.
        yield parsed
        return
    half = len(parsed) // 2
    yield [parsed[:half], parsed[half:]]


def _strict_candidates(text: str) -> Iterator[Any]:
    yield json.loads(text)


def _whitespace_candidates(text: str) -> Iterator[Any]:
    repaired = text.replace("\\n  ", "")
    try:
        yield json.loads(repaired)
    except json.JSONDecodeError:
        logger.debug("Whitespace repair step 1 did not parse, stripping double spaces")
    yield json.loads(repaired.replace("  ", ""))


_STRATEGIES = {
    ParseStrategy.WRAP_SPLIT: _wrap_split_candidates,
    ParseStrategy.STRICT: _strict_candidates,
    ParseStrategy.WHITESPACE_REPAIR: _whitespace_candidates,
}


def strategies_for_page(page: int) -> Tuple[ParseStrategy, ...]:
    if page in WRAP_SPLIT_PAGES:
        return (ParseStrategy.WRAP_SPLIT, ParseStrategy.STRICT)
    return (ParseStrategy.STRICT, ParseStrategy.WHITESPACE_REPAIR)


def _coerce_payload(
    candidate: Any, strategy: ParseStrategy, size: int
) -> Optional[RawIndexPayload]:
    """Return a payload if ``candidate`` has the expected shape, else None."""
    if not isinstance(candidate, list) or len(candidate) < 2:
        return None
    raw_deltas, raw_permutation = candidate[0], candidate[1]
    if not isinstance(raw_deltas, list) or not isinstance(raw_permutation, list):
        return None
    if len(raw_deltas) != len(raw_permutation) or len(raw_deltas) > size:
        return None
    try:
        deltas = [int(d) for d in raw_deltas]
        permutation = [int(p) for p in raw_permutation]
    except (TypeError, ValueError):
        return None
    if any(p < 0 or p >= size for p in permutation):
        return None
    return RawIndexPayload(deltas=deltas, permutation=permutation, strategy=strategy)


def parse_page_payload(
    page: int, text: str, size: int = PAGE_SIZE
) -> RawIndexPayload:
    """
    Parse the raw text of ``page`` into its delta and permutation sequences.

    Raises
    ------
    IndexDecodeError
        If no strategy produces a well-formed payload.
    """
    for strategy in strategies_for_page(page):
        try:
            for candidate in _STRATEGIES[strategy](text):
                payload = _coerce_payload(candidate, strategy, size)
                if payload is not None:
                    logger.info(
                        "Index page %d parsed with %s strategy (%d entries)",
                        page,
                        strategy.value,
                        len(payload.deltas),
                    )
                    return payload
        except json.JSONDecodeError as exc:
            logger.warning(
                "Index page %d: %s strategy failed: %s", page, strategy.value, exc
            )

    raise IndexDecodeError(f"Index page {page} could not be parsed by any strategy")


# ---------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------

def reconstruct_sats(deltas: Sequence[int]) -> List[int]:
    """Cumulative sum: index 0 is absolute, each later entry adds its delta."""
    sats: List[int] = []
    running = 0
    for i, delta in enumerate(deltas):
        running = delta if i == 0 else running + delta
        sats.append(running)
    return sats


def apply_permutation(
    sats: Sequence[int], permutation: Sequence[int], size: int = PAGE_SIZE
) -> Tuple[int, ...]:
    """Place ``sats[i]`` at ``permutation[i]`` in a dense array of ``size``."""
    output = [SENTINEL] * size
    for i, position in enumerate(permutation):
        output[position] = sats[i]
    return tuple(output)


def decode_page(page: int, text: str, size: int = PAGE_SIZE) -> Tuple[int, ...]:
    payload = parse_page_payload(page, text, size)
    sats = reconstruct_sats(payload.deltas)
    decoded = apply_permutation(sats, payload.permutation, size)

    unset = size - len(set(payload.permutation))
    if unset:
        logger.warning("Index page %d decoded with %d unset slot(s)", page, unset)
    return decoded
