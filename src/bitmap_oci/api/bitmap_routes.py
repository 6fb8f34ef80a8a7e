"""
Bitmap Index Routes

Lookups against the bitmap on-chain index: bitmap -> sat, sat ranges, and
bitmap -> canonical inscription. Out-of-range numbers surface as 422 and
data-service failures as 502 through the global exception handlers.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Annotated

from .models import SatResponse, SatsRangeResponse, CanonicalInscriptionResponse
from .dependencies import get_sat_resolver, get_canonical_resolver
from ..config import settings
from ..index.canonical import CanonicalClaimResolver
from ..index.store import SatResolver

router = APIRouter(prefix="/bitmap", tags=["bitmap"])


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------

@router.get(
    "/sats",
    response_model=SatsRangeResponse,
    summary="Sats for an inclusive range of bitmaps",
)
async def get_sats_range(
    sats: Annotated[SatResolver, Depends(get_sat_resolver)],
    start: int = Query(..., description="First bitmap number (inclusive)"),
    end: int = Query(..., description="Last bitmap number (inclusive)"),
) -> SatsRangeResponse:
    """
    Return the sat of every bitmap from ``start`` to ``end``.

    The width of the range is capped by ``max_sats_range``.
    """
    if end - start + 1 > settings.max_sats_range:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Range is wider than {settings.max_sats_range} bitmaps",
        )
    values = await sats.get_sats_range(start, end)
    return SatsRangeResponse(start=start, end=end, sats=values)


@router.get(
    "/{bitmap_number}/sat",
    response_model=SatResponse,
    summary="Sat carrying a bitmap",
)
async def get_sat(
    bitmap_number: int,
    sats: Annotated[SatResolver, Depends(get_sat_resolver)],
) -> SatResponse:
    sat = await sats.get_sat(bitmap_number)
    return SatResponse(bitmap_number=bitmap_number, sat=sat)


@router.get(
    "/{bitmap_number}/inscription",
    response_model=CanonicalInscriptionResponse,
    summary="Canonical inscription of a bitmap",
)
async def get_canonical_inscription(
    bitmap_number: int,
    resolver: Annotated[CanonicalClaimResolver, Depends(get_canonical_resolver)],
) -> CanonicalInscriptionResponse:
    record = await resolver.resolve(bitmap_number)
    return CanonicalInscriptionResponse(**record._asdict())
