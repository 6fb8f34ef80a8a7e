"""
Inscription Routes

Batch classification of inscriptions by their content: bitmap claim,
parcel claim, or other. Content fetches run concurrently; an inscription
whose content cannot be fetched is reported with ``content: null``.
"""

import asyncio
import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends

from .models import ClassifyRequest, ClassifiedInscription
from .dependencies import get_content_fetcher
from ..core.errors import RemoteLookupError
from ..ordinals.content import ContentFetcher
from ..validation.grammar import classify_content

logger = logging.getLogger("bitmap.api")

router = APIRouter(prefix="/inscriptions", tags=["inscriptions"])


async def _classify_one(fetcher: ContentFetcher, inscription_id: str) -> ClassifiedInscription:
    content: Optional[str]
    try:
        content = await fetcher.fetch_content(inscription_id)
    except RemoteLookupError as exc:
        logger.warning("Content unavailable for %s: %s", inscription_id, exc)
        content = None
    return ClassifiedInscription(
        id=inscription_id,
        content=content,
        type=classify_content(content),
    )


@router.post(
    "/classify",
    response_model=List[ClassifiedInscription],
    summary="Classify inscriptions as bitmap, parcel or other",
)
async def classify_inscriptions(
    req: ClassifyRequest,
    fetcher: Annotated[ContentFetcher, Depends(get_content_fetcher)],
) -> List[ClassifiedInscription]:
    return list(
        await asyncio.gather(*(_classify_one(fetcher, i) for i in req.ids))
    )
