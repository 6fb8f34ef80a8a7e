"""
Validation Data Models

Immutable result types produced by the claim validator. Field names are
snake_case in Python and camelCase on the wire (``validParcels``,
``allChildren``, ...).
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


ValidationStatus = Literal["valid", "invalid", "pending", "unknown"]


_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)


class ParcelClaim(BaseModel):
    """
    A child inscription whose content is a well-formed parcel claim
    (``P.N.bitmap``) for its parent bitmap.
    """

    id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    height: int = Field(..., ge=0)

    model_config = _WIRE_CONFIG

    @property
    def parcel_number(self) -> int:
        return int(self.content.split(".", 1)[0])


class ValidationDetails(BaseModel):
    bitmap_number: Optional[int] = None
    parcel_number: Optional[int] = None
    inscription_id: Optional[str] = None
    is_parcel: bool = False

    # Winning claim per parcel number, ordered by parcel number.
    valid_parcels: Tuple[ParcelClaim, ...] = ()

    # Every enumerated child whose checks completed, winners and losers alike.
    all_children: Tuple[str, ...] = ()

    # Children dropped because their content or metadata could not be fetched.
    failed_children: Tuple[str, ...] = ()

    model_config = _WIRE_CONFIG


class ValidationResult(BaseModel):
    """
    Outcome of one validation call.

    - ``valid``: the claim resolved and its content checked out.
    - ``invalid``: the claim is malformed, mismatched or not found.
    - ``unknown``: the data service could not answer, no verdict reached.
    - ``pending``: reserved for callers that report in-flight validations.
    """

    status: ValidationStatus
    message: str = ""
    details: ValidationDetails = Field(default_factory=ValidationDetails)

    model_config = _WIRE_CONFIG

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def valid(cls, message: str, **details: Any) -> "ValidationResult":
        return cls(status="valid", message=message, details=ValidationDetails(**details))

    @classmethod
    def invalid(cls, message: str, **details: Any) -> "ValidationResult":
        return cls(status="invalid", message=message, details=ValidationDetails(**details))

    @classmethod
    def unknown(cls, message: str, **details: Any) -> "ValidationResult":
        return cls(status="unknown", message=message, details=ValidationDetails(**details))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        return self.status == "valid"

    def with_details(self, **updates: Any) -> "ValidationResult":
        """Return a copy with ``details`` fields replaced."""
        details = self.details.model_copy(update=updates)
        return self.model_copy(update={"details": details})
