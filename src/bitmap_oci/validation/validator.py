"""
Claim Validator

Validates bitmap claims (``N.bitmap``) and parcel claims (``P.N.bitmap``)
against the ordinals data service.

Validation of bitmap N runs through these stages:

    RESOLVING            canonical inscription for N (index + exceptions)
    CONTENT_CHECKING     canonical content names N and ends with ``.bitmap``
    ENUMERATING_CHILDREN all child inscriptions of the canonical record
    VALIDATING_PARCELS   every child checked concurrently
    REDUCING             one winner per parcel number (see tiebreak)
    DONE

Every child check settles (claim, rejected or failed) before the reduction
runs, so a slow child can never be overtaken by an invalid one. A child whose
fetches fail is dropped and logged; it never fails the whole run.

Error semantics
---------------
- BitmapRangeError from validate_bitmap / validate_bitmap_parcel propagates.
- RemoteLookupError for the root claim becomes an ``unknown`` result.
- Content and format problems become ``invalid`` results.
- validate_content never raises.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .grammar import parse_claim, parse_parcel_content
from .models import ParcelClaim, ValidationResult
from .tiebreak import reduce_parcel_winners
from ..config import settings
from ..core.errors import BitmapRangeError, ClaimFormatError, RemoteLookupError
from ..index.canonical import CanonicalClaimResolver
from ..index.store import check_bitmap_number
from ..ordinals.content import ContentFetcher

logger = logging.getLogger("bitmap.validator")


class ValidationStage(str, enum.Enum):
    RESOLVING = "resolving"
    CONTENT_CHECKING = "content_checking"
    ENUMERATING_CHILDREN = "enumerating_children"
    VALIDATING_PARCELS = "validating_parcels"
    REDUCING = "reducing"
    DONE = "done"


@dataclass(frozen=True)
class ChildOutcome:
    """Settled result of checking one child inscription."""
    child_id: str
    claim: Optional[ParcelClaim] = None
    failed: bool = False


class ClaimValidator:
    def __init__(
        self,
        resolver: CanonicalClaimResolver,
        fetcher: ContentFetcher,
        child_concurrency: Optional[int] = None,
    ) -> None:
        """
        Parameters
        ----------
        resolver : CanonicalClaimResolver
            Resolves bitmap numbers to canonical inscription IDs.

        fetcher : ContentFetcher
            Content, metadata, children and block info lookups.

        child_concurrency : Optional[int]
            Maximum in-flight child checks per run. Defaults to
            settings.child_concurrency.
        """
        self._resolver = resolver
        self._fetcher = fetcher
        self.child_concurrency = child_concurrency or settings.child_concurrency

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def validate_bitmap(
        self,
        bitmap_number: int,
        expected_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Validate bitmap ``bitmap_number`` and collect its winning parcels.

        Parameters
        ----------
        bitmap_number : int
            Block number claimed by ``N.bitmap``.

        expected_id : Optional[str]
            If given, the canonical inscription must have this ID.

        Raises
        ------
        BitmapRangeError
            If ``bitmap_number`` is outside [0, 839999].
        """
        check_bitmap_number(bitmap_number)
        try:
            return await self._validate_bitmap(bitmap_number, expected_id)
        except RemoteLookupError as exc:
            logger.warning("Bitmap %d could not be validated: %s", bitmap_number, exc)
            return ValidationResult.unknown(
                f"Could not validate bitmap {bitmap_number}: {exc}",
                bitmap_number=bitmap_number,
                inscription_id=expected_id,
            )

    async def validate_bitmap_parcel(
        self,
        bitmap_number: int,
        parcel_number: int,
        expected_parcel_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Validate parcel ``parcel_number`` of bitmap ``bitmap_number``.

        The parent bitmap is validated afresh on every call; the parcel is
        valid only if it is the tie-break winner for its number.

        Raises
        ------
        BitmapRangeError
            If ``bitmap_number`` is outside [0, 839999].
        """
        check_bitmap_number(bitmap_number)
        parcel_details = dict(
            bitmap_number=bitmap_number,
            parcel_number=parcel_number,
            is_parcel=True,
        )
        if parcel_number < 0:
            return ValidationResult.invalid(
                f"Parcel number {parcel_number} is negative", **parcel_details
            )

        parent = await self.validate_bitmap(bitmap_number)
        if not parent.is_valid:
            logger.info(
                "Parent bitmap %d is %s, parcel %d cannot be valid",
                bitmap_number,
                parent.status,
                parcel_number,
            )
            return parent.with_details(parcel_number=parcel_number, is_parcel=True)

        target = next(
            (p for p in parent.details.valid_parcels if p.parcel_number == parcel_number),
            None,
        )

        if target is None:
            return ValidationResult.invalid(
                f"Parcel {parcel_number} not found or invalid for bitmap {bitmap_number}",
                inscription_id=parent.details.inscription_id,
                all_children=parent.details.all_children,
                failed_children=parent.details.failed_children,
                **parcel_details,
            )

        if expected_parcel_id and target.id != expected_parcel_id:
            logger.info(
                "Parcel %d.%d identifier mismatch: expected %s, winner is %s",
                parcel_number,
                bitmap_number,
                expected_parcel_id,
                target.id,
            )
            return ValidationResult.invalid(
                "Identifier mismatch: parcel inscription ID does not match the winning claim",
                inscription_id=expected_parcel_id,
                **parcel_details,
            )

        return ValidationResult.valid(
            f"Parcel {target.content} is valid",
            inscription_id=target.id,
            valid_parcels=(target,),
            **parcel_details,
        )

    async def validate_content(
        self,
        content: str,
        expected_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Parse ``content`` and dispatch to the bitmap or parcel validator.

        For parcel content, ``expected_id`` is the parcel's own inscription
        ID. Malformed content is rejected without any network call.
        """
        try:
            claim = parse_claim(content)
        except ClaimFormatError as exc:
            return ValidationResult.invalid(str(exc))

        try:
            if claim.is_parcel:
                return await self.validate_bitmap_parcel(
                    claim.bitmap_number, claim.parcel_number, expected_id
                )
            return await self.validate_bitmap(claim.bitmap_number, expected_id)
        except BitmapRangeError as exc:
            return ValidationResult.invalid(
                str(exc),
                bitmap_number=claim.bitmap_number,
                parcel_number=claim.parcel_number,
                is_parcel=claim.is_parcel,
                inscription_id=expected_id,
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _enter(self, stage: ValidationStage, bitmap_number: int) -> None:
        logger.debug("Bitmap %d: %s", bitmap_number, stage.value)

    async def _validate_bitmap(
        self,
        bitmap_number: int,
        expected_id: Optional[str],
    ) -> ValidationResult:
        self._enter(ValidationStage.RESOLVING, bitmap_number)
        canonical_id = await self._resolver.resolve_canonical_id(bitmap_number)

        if expected_id and expected_id != canonical_id:
            return ValidationResult.invalid(
                "Identifier mismatch: inscription ID does not match bitmap number",
                bitmap_number=bitmap_number,
                inscription_id=canonical_id,
            )

        self._enter(ValidationStage.CONTENT_CHECKING, bitmap_number)
        content = await self._fetcher.fetch_content(canonical_id)
        if str(bitmap_number) not in content or not content.endswith(".bitmap"):
            return ValidationResult.invalid(
                "Invalid bitmap content",
                bitmap_number=bitmap_number,
                inscription_id=canonical_id,
            )

        transaction_count = await self._transaction_count(bitmap_number)

        self._enter(ValidationStage.ENUMERATING_CHILDREN, bitmap_number)
        children = await self._fetcher.fetch_children(canonical_id)

        self._enter(ValidationStage.VALIDATING_PARCELS, bitmap_number)
        semaphore = asyncio.Semaphore(self.child_concurrency)
        outcomes = await asyncio.gather(
            *(
                self._check_child(child_id, bitmap_number, transaction_count, semaphore)
                for child_id in children
            )
        )

        self._enter(ValidationStage.REDUCING, bitmap_number)
        winners = reduce_parcel_winners(o.claim for o in outcomes if o.claim is not None)
        settled = tuple(o.child_id for o in outcomes if not o.failed)
        failed = tuple(o.child_id for o in outcomes if o.failed)

        if failed:
            logger.warning(
                "Bitmap %d: %d of %d children could not be checked",
                bitmap_number,
                len(failed),
                len(children),
            )

        self._enter(ValidationStage.DONE, bitmap_number)
        logger.info(
            "Bitmap %d is valid with %d parcels (%d children)",
            bitmap_number,
            len(winners),
            len(children),
        )
        return ValidationResult.valid(
            f"Bitmap {bitmap_number} is valid with {len(winners)} parcels",
            bitmap_number=bitmap_number,
            inscription_id=canonical_id,
            valid_parcels=winners,
            all_children=settled,
            failed_children=failed,
        )

    async def _transaction_count(self, bitmap_number: int) -> Optional[int]:
        """
        Transaction count of block ``bitmap_number``, or None when there is
        no upper bound on parcel numbers (block 0, or block info missing).
        """
        if bitmap_number == 0:
            return None
        try:
            block = await self._fetcher.fetch_block_info(bitmap_number)
        except RemoteLookupError as exc:
            logger.warning(
                "Block info unavailable for bitmap %d, parcel numbers unbounded: %s",
                bitmap_number,
                exc,
            )
            return None
        return block.transaction_count

    async def _check_child(
        self,
        child_id: str,
        bitmap_number: int,
        transaction_count: Optional[int],
        semaphore: asyncio.Semaphore,
    ) -> ChildOutcome:
        async with semaphore:
            try:
                return await self._inspect_child(child_id, bitmap_number, transaction_count)
            except Exception:
                # A broken child never aborts the run.
                logger.exception("Dropping child %s: unexpected error", child_id)
                return ChildOutcome(child_id, failed=True)

    async def _inspect_child(
        self,
        child_id: str,
        bitmap_number: int,
        transaction_count: Optional[int],
    ) -> ChildOutcome:
        try:
            content = await self._fetcher.fetch_content(child_id)
        except RemoteLookupError as exc:
            logger.warning("Dropping child %s: content unavailable (%s)", child_id, exc)
            return ChildOutcome(child_id, failed=True)

        parcel_number = parse_parcel_content(content, bitmap_number)
        if parcel_number is None:
            logger.debug("Child %s is not a parcel of %d: %r", child_id, bitmap_number, content)
            return ChildOutcome(child_id)
        if transaction_count is not None and parcel_number >= transaction_count:
            logger.debug(
                "Child %s parcel %d exceeds transaction count %d",
                child_id,
                parcel_number,
                transaction_count,
            )
            return ChildOutcome(child_id)

        try:
            metadata = await self._fetcher.fetch_metadata(child_id)
        except RemoteLookupError as exc:
            logger.warning("Dropping child %s: metadata unavailable (%s)", child_id, exc)
            return ChildOutcome(child_id, failed=True)

        return ChildOutcome(
            child_id,
            claim=ParcelClaim(id=child_id, content=content, height=metadata.height),
        )
