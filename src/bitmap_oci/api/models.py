"""
API Models

Pydantic models for request/response validation across the index lookup,
validation and inscription endpoints. Validation endpoints respond with
``bitmap_oci.validation.models.ValidationResult`` directly.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Clear schema documentation
"""

from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from ..index.decoder import MAX_BITMAP, MIN_BITMAP
from ..validation.grammar import ContentType


# ---------------------------------------------------------------------
# Index Lookup Models
# ---------------------------------------------------------------------

class SatResponse(BaseModel):
    """
    Sat carrying a bitmap.
    """
    bitmap_number: int = Field(..., ge=MIN_BITMAP, le=MAX_BITMAP)
    sat: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


class SatsRangeResponse(BaseModel):
    """
    Sats for an inclusive range of bitmaps, in bitmap order.
    """
    start: int
    end: int
    sats: List[int] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class CanonicalInscriptionResponse(BaseModel):
    """
    Canonical inscription of a bitmap and how it was located.
    """
    bitmap_number: int
    sat: int
    sat_index: int = Field(..., ge=0)
    inscription_id: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Validation Models
# ---------------------------------------------------------------------

class ContentValidationRequest(BaseModel):
    """
    Claim content to validate, e.g. "177700.bitmap" or "0.177700.bitmap".
    """
    content: str = Field(..., min_length=1)
    inscription_id: Optional[str] = Field(
        default=None,
        description="Inscription carrying the content; checked against the canonical record.",
    )

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Inscription Models
# ---------------------------------------------------------------------

class ClassifyRequest(BaseModel):
    """
    Inscriptions whose content should be fetched and classified.
    """
    ids: List[str] = Field(..., min_length=1, max_length=500)

    model_config = ConfigDict(extra="forbid")


class ClassifiedInscription(BaseModel):
    """
    One inscription's trimmed content and claim type. ``content`` is None
    when it could not be fetched.
    """
    id: str
    content: Optional[str] = None
    type: ContentType

    model_config = ConfigDict(extra="forbid")
