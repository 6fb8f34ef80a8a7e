"""
Ordinals Data Service Client

Thin async HTTP client for the read-only ordinals data service. Every other
component reaches the network through this class, so transport errors,
timeouts and HTTP failures are normalised into RemoteLookupError here.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..config import settings
from ..core.errors import RemoteLookupError
from ..core.retry import RetryPolicy

logger = logging.getLogger("bitmap.ordinals")


class OrdinalsClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Parameters
        ----------
        base_url : Optional[str]
            Service root. Defaults to settings.ordinals_base_url.

        timeout : Optional[float]
            Per-request timeout in seconds. Defaults to settings.request_timeout.

        retry_policy : Optional[RetryPolicy]
            Policy for transport failures and 5xx responses. Defaults to a
            fixed-delay policy built from settings.

        http_client : Optional[httpx.AsyncClient]
            Shared connection pool. When omitted a short-lived client is
            opened per request.
        """
        self.base_url = (base_url or str(settings.ordinals_base_url)).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.retry_policy = retry_policy or RetryPolicy.fixed(
            settings.retry_max_attempts, settings.retry_delay_seconds
        )
        self._http = http_client

    async def _get(self, url: str) -> httpx.Response:
        if self._http is not None:
            return await self._http.get(url, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url)

    async def _request(self, path: str) -> httpx.Response:
        url = f"{self.base_url}{path}"

        async def _send() -> httpx.Response:
            resp = await self._get(url)
            # Server-side failures are worth another attempt; 4xx are final.
            if resp.status_code >= 500:
                resp.raise_for_status()
            return resp

        try:
            resp = await self.retry_policy.run(
                _send,
                retry_on=(httpx.TransportError, httpx.HTTPStatusError),
                description=f"GET {path}",
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("GET %s failed with HTTP %d", url, status)
            raise RemoteLookupError(
                f"Data service returned HTTP {status}", url=url, status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("GET %s failed (%s): %s", url, type(exc).__name__, exc)
            raise RemoteLookupError(
                f"Data service request failed: {type(exc).__name__}", url=url
            ) from exc

        if resp.is_error:
            raise RemoteLookupError(
                f"Data service returned HTTP {resp.status_code}",
                url=url,
                status_code=resp.status_code,
            )
        return resp

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_text(self, path: str) -> str:
        resp = await self._request(path)
        return resp.text

    async def get_json(self, path: str) -> Any:
        resp = await self._request(path)
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteLookupError(
                "Data service returned a non-JSON body",
                url=str(resp.request.url),
                status_code=resp.status_code,
            ) from exc
