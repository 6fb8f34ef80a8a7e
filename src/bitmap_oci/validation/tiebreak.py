"""
Parcel Tie-Break

When several children claim the same parcel number, the claim inscribed at
the lowest block height wins; at equal height the lexicographically smaller
inscription ID wins. The reduction is a minimum over a total order, so the
result does not depend on the order claims arrive in.
"""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from .models import ParcelClaim


def tiebreak_key(claim: ParcelClaim) -> Tuple[int, str]:
    return (claim.height, claim.id)


def beats(candidate: ParcelClaim, incumbent: ParcelClaim) -> bool:
    """True if ``candidate`` should replace ``incumbent`` for a parcel slot."""
    return tiebreak_key(candidate) < tiebreak_key(incumbent)


def reduce_parcel_winners(claims: Iterable[ParcelClaim]) -> Tuple[ParcelClaim, ...]:
    """
    Return one winning claim per parcel number, ordered by parcel number.
    """
    winners: Dict[int, ParcelClaim] = {}
    for claim in claims:
        current = winners.get(claim.parcel_number)
        if current is None or beats(claim, current):
            winners[claim.parcel_number] = claim
    return tuple(winners[number] for number in sorted(winners))
