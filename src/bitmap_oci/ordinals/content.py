"""
Content Fetcher

Record-level lookups against the ordinals data service: raw content,
inscription metadata, paginated children, block info and sat records.

Design choices
--------------
- One ContentCache per process, injected wherever content is needed, so
  every content lookup shares a single fetch path and a single staleness
  policy.
- Content of an inscription never changes once written, so successful
  fetches are cached until evicted; failures are never cached.
- Metadata, children and block info are not cached (children grow over time).
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .client import OrdinalsClient
from ..config import settings
from ..core.errors import RemoteLookupError

logger = logging.getLogger("bitmap.ordinals")


# ---------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------

class InscriptionMetadata(BaseModel):
    """Subset of /r/inscription/{id} the validator relies on."""

    id: str = Field(..., min_length=1)
    height: int = Field(..., ge=0)

    model_config = ConfigDict(extra="allow", frozen=True)


class BlockInfo(BaseModel):
    """Subset of /r/blockinfo/{height}."""

    transaction_count: int = Field(..., ge=0)

    model_config = ConfigDict(extra="allow", frozen=True)


# ---------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------

class ContentCache:
    """
    Bounded LRU mapping inscription IDs to trimmed content.

    A ``max_entries`` of 0 disables caching entirely. The cache may be
    cleared at any time without affecting correctness.
    """

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self._entries: "OrderedDict[str, str]" = OrderedDict()
        self._max_entries = (
            settings.content_cache_size if max_entries is None else max_entries
        )

    def get(self, inscription_id: str) -> Optional[str]:
        content = self._entries.get(inscription_id)
        if content is not None:
            self._entries.move_to_end(inscription_id)
        return content

    def put(self, inscription_id: str, content: str) -> None:
        if self._max_entries <= 0:
            return
        self._entries[inscription_id] = content
        self._entries.move_to_end(inscription_id)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, inscription_id: str) -> bool:
        return inscription_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------

class ContentFetcher:
    """
    Retrieves and normalises record data from the ordinals data service.
    """

    def __init__(
        self,
        client: OrdinalsClient,
        cache: Optional[ContentCache] = None,
    ) -> None:
        self._client = client
        self.cache = cache if cache is not None else ContentCache()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_content(self, inscription_id: str) -> str:
        """
        Return the content of an inscription with surrounding whitespace
        removed.

        Raises
        ------
        RemoteLookupError
            If the content cannot be fetched.
        """
        cached = self.cache.get(inscription_id)
        if cached is not None:
            return cached

        text = await self._client.get_text(f"/content/{inscription_id}")
        content = text.strip()
        self.cache.put(inscription_id, content)
        return content

    async def fetch_metadata(self, inscription_id: str) -> InscriptionMetadata:
        data = await self._client.get_json(f"/r/inscription/{inscription_id}")
        return self._parse(InscriptionMetadata, data, f"inscription {inscription_id}")

    async def fetch_block_info(self, height: int) -> BlockInfo:
        data = await self._client.get_json(f"/r/blockinfo/{height}")
        return self._parse(BlockInfo, data, f"block {height}")

    async def fetch_children(self, inscription_id: str) -> List[str]:
        """
        Return every child inscription ID, following upstream pagination.

        Pagination stops when a page reports ``more: false`` or returns an
        empty batch. A 404 on the first page means the inscription has no
        children.

        Raises
        ------
        RemoteLookupError
            On any other failure, including a 404 on a later page.
        """
        children: List[str] = []
        page = 0

        while True:
            path = (
                f"/r/children/{inscription_id}"
                if page == 0
                else f"/r/children/{inscription_id}/{page}"
            )
            try:
                data = await self._client.get_json(path)
            except RemoteLookupError as exc:
                if exc.status_code == 404 and page == 0:
                    break
                raise

            if not isinstance(data, dict):
                raise RemoteLookupError(
                    f"Malformed children page {page} for {inscription_id}"
                )

            ids = data.get("ids") or []
            if not isinstance(ids, list):
                raise RemoteLookupError(
                    f"Malformed children page {page} for {inscription_id}"
                )
            if not ids:
                break

            children.extend(str(child_id) for child_id in ids)
            if not data.get("more"):
                break
            page += 1

        logger.debug(
            "Fetched %d children across %d page(s) for %s",
            len(children),
            page + 1,
            inscription_id,
        )
        return children

    async def fetch_sat_record(self, sat: int, index: int) -> str:
        """
        Return the inscription ID at ordinal position ``index`` on ``sat``.

        Raises
        ------
        RemoteLookupError
            If the lookup fails or the response carries no ID.
        """
        data = await self._client.get_json(f"/r/sat/{sat}/at/{index}")
        inscription_id = data.get("id") if isinstance(data, dict) else None
        if not inscription_id:
            raise RemoteLookupError(f"No inscription at index {index} of sat {sat}")
        return str(inscription_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(model: Any, data: Any, what: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise RemoteLookupError(f"Malformed response for {what}") from exc
