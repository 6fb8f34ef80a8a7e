"""
Service Wiring

Builds the process-wide service graph and exposes FastAPI dependency
providers for it. The graph is built once per application lifespan and
stored on ``app.state.services``; tests replace individual providers via
``app.dependency_overrides``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from ..config import settings
from ..core.retry import RetryPolicy
from ..index.canonical import CanonicalClaimResolver
from ..index.exceptions_table import ExceptionTable
from ..index.store import PagedIndexStore, SatResolver
from ..ordinals.client import OrdinalsClient
from ..ordinals.content import ContentCache, ContentFetcher
from ..validation.validator import ClaimValidator


@dataclass
class Services:
    store: PagedIndexStore
    sats: SatResolver
    resolver: CanonicalClaimResolver
    fetcher: ContentFetcher
    validator: ClaimValidator


def build_services(http_client: Optional[httpx.AsyncClient] = None) -> Services:
    client = OrdinalsClient(
        retry_policy=RetryPolicy.fixed(
            settings.retry_max_attempts, settings.retry_delay_seconds
        ),
        http_client=http_client,
    )
    store = PagedIndexStore(client)
    sats = SatResolver(store)
    fetcher = ContentFetcher(client, ContentCache(settings.content_cache_size))
    resolver = CanonicalClaimResolver(sats, ExceptionTable(), fetcher)
    validator = ClaimValidator(resolver, fetcher)
    return Services(
        store=store,
        sats=sats,
        resolver=resolver,
        fetcher=fetcher,
        validator=validator,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_store(request: Request) -> PagedIndexStore:
    return get_services(request).store


def get_sat_resolver(request: Request) -> SatResolver:
    return get_services(request).sats


def get_canonical_resolver(request: Request) -> CanonicalClaimResolver:
    return get_services(request).resolver


def get_content_fetcher(request: Request) -> ContentFetcher:
    return get_services(request).fetcher


def get_validator(request: Request) -> ClaimValidator:
    return get_services(request).validator
