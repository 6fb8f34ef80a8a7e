"""
Shared fixtures: an in-process stand-in for the ordinals data service and
the service graph wired against it.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from bitmap_oci.core.retry import RetryPolicy
from bitmap_oci.index.canonical import CanonicalClaimResolver
from bitmap_oci.index.exceptions_table import ExceptionTable
from bitmap_oci.index.store import PagedIndexStore, SatResolver
from bitmap_oci.ordinals.client import OrdinalsClient
from bitmap_oci.ordinals.content import ContentCache, ContentFetcher
from bitmap_oci.validation.validator import ClaimValidator

BASE_URL = "http://ordinals.test"
PAGE_SOURCES = [f"/page/{i}" for i in range(9)]


def page_text(deltas: List[Any], permutation: List[int]) -> str:
    return json.dumps([deltas, permutation])


class FakeOrdinalsService:
    """
    Path-routed fake of the data service. Unknown paths answer 404.
    Every requested path is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Any] = {}
        self.calls: List[str] = []

    def add_json(self, path: str, data: Any, status: int = 200) -> None:
        self.routes[path] = ("json", data, status)

    def add_text(self, path: str, text: str, status: int = 200) -> None:
        self.routes[path] = ("text", text, status)

    def add_error(self, path: str, status: int) -> None:
        self.routes[path] = ("text", "error", status)

    def add_exception(self, path: str, exc: Exception) -> None:
        self.routes[path] = ("raise", exc, None)

    def count(self, path: str) -> int:
        return self.calls.count(path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, text="not found")
        kind, body, status = route
        if kind == "raise":
            raise body
        if kind == "json":
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    # ------------------------------------------------------------------
    # Domain helpers
    # ------------------------------------------------------------------

    def add_bitmap(
        self,
        bitmap_number: int,
        sat: int,
        inscription_id: str,
        content: Optional[str] = None,
        sat_index: int = 0,
        transaction_count: Optional[int] = None,
    ) -> None:
        """Register a single-entry index page and the canonical record."""
        page = bitmap_number // 100_000
        self.add_text(PAGE_SOURCES[page], page_text([sat], [bitmap_number % 100_000]))
        self.add_json(f"/r/sat/{sat}/at/{sat_index}", {"id": inscription_id})
        self.add_text(
            f"/content/{inscription_id}",
            content if content is not None else f"{bitmap_number}.bitmap\n",
        )
        if transaction_count is not None:
            self.add_json(
                f"/r/blockinfo/{bitmap_number}",
                {"height": bitmap_number, "transaction_count": transaction_count},
            )

    def add_child(self, child_id: str, content: str, height: int) -> None:
        self.add_text(f"/content/{child_id}", content)
        self.add_json(f"/r/inscription/{child_id}", {"id": child_id, "height": height})

    def set_children(self, parent_id: str, ids: List[str]) -> None:
        self.add_json(f"/r/children/{parent_id}", {"ids": ids, "more": False, "page": 0})


@pytest.fixture
def ordinals() -> FakeOrdinalsService:
    return FakeOrdinalsService()


@pytest.fixture
async def http_client(ordinals):
    async with httpx.AsyncClient(transport=httpx.MockTransport(ordinals.handler)) as client:
        yield client


@pytest.fixture
def client(http_client) -> OrdinalsClient:
    return OrdinalsClient(
        base_url=BASE_URL,
        timeout=5.0,
        retry_policy=RetryPolicy.none(),
        http_client=http_client,
    )


@pytest.fixture
def store(client) -> PagedIndexStore:
    return PagedIndexStore(client, page_sources=PAGE_SOURCES)


@pytest.fixture
def fetcher(client) -> ContentFetcher:
    return ContentFetcher(client, ContentCache(max_entries=1000))


@pytest.fixture
def resolver(store, fetcher) -> CanonicalClaimResolver:
    return CanonicalClaimResolver(SatResolver(store), ExceptionTable(), fetcher)


@pytest.fixture
def validator(resolver, fetcher) -> ClaimValidator:
    return ClaimValidator(resolver, fetcher, child_concurrency=8)
