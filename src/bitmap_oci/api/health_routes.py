from typing import Annotated

from fastapi import APIRouter, Depends

from .dependencies import get_store
from ..config import settings
from ..index.store import PagedIndexStore

router = APIRouter(tags=["health"])

@router.get("/health")
def health(store: Annotated[PagedIndexStore, Depends(get_store)]):
    return {
        "status": "ok",
        "ordinals_base_url": str(settings.ordinals_base_url),
        "cached_pages": store.cached_pages(),
    }
