"""
Validation Routes

HTTP entry points for bitmap, parcel and raw-content validation. Every
route answers with a ValidationResult; only out-of-range bitmap numbers in
the path produce an error status (422).
"""

from fastapi import APIRouter, Depends, Query
from typing import Annotated, Optional

from .models import ContentValidationRequest
from .dependencies import get_validator
from ..validation.models import ValidationResult
from ..validation.validator import ClaimValidator

router = APIRouter(prefix="/validate", tags=["validation"])


@router.get(
    "/bitmap/{bitmap_number}",
    response_model=ValidationResult,
    summary="Validate a bitmap claim and its parcels",
)
async def validate_bitmap(
    bitmap_number: int,
    validator: Annotated[ClaimValidator, Depends(get_validator)],
    inscription_id: Optional[str] = Query(
        default=None, description="Expected canonical inscription ID"
    ),
) -> ValidationResult:
    return await validator.validate_bitmap(bitmap_number, inscription_id)


@router.get(
    "/parcel/{bitmap_number}/{parcel_number}",
    response_model=ValidationResult,
    summary="Validate one parcel of a bitmap",
)
async def validate_parcel(
    bitmap_number: int,
    parcel_number: int,
    validator: Annotated[ClaimValidator, Depends(get_validator)],
    inscription_id: Optional[str] = Query(
        default=None, description="Expected inscription ID of the parcel"
    ),
) -> ValidationResult:
    return await validator.validate_bitmap_parcel(
        bitmap_number, parcel_number, inscription_id
    )


@router.post(
    "/content",
    response_model=ValidationResult,
    summary="Validate claim content",
)
async def validate_content(
    req: ContentValidationRequest,
    validator: Annotated[ClaimValidator, Depends(get_validator)],
) -> ValidationResult:
    """
    Parse ``req.content`` as ``N.bitmap`` or ``P.N.bitmap`` and validate it.

    Malformed content yields an ``invalid`` result without any lookups.
    """
    return await validator.validate_content(req.content, req.inscription_id)
