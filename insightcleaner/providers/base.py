"""
Insight provider contract.

Every backend exposes one coroutine, describe(), which turns a scanned node
into a NodeInsight. Providers never raise out of describe(): any failure
resolves to NodeInsight.empty().
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ..cancellation import CancellationToken, run_with_deadline
from ..config import AiConfiguration
from ..http_clients import create_generation_client, request_headers
from ..types import NodeInsight, StorageNode

logger = logging.getLogger(__name__)


class InsightProvider(ABC):
    """Abstract base class for insight backends."""

    @abstractmethod
    async def describe(
        self,
        node: StorageNode,
        configuration: AiConfiguration,
        cancellation: CancellationToken | None = None,
    ) -> NodeInsight:
        """Describe a node; must not raise."""
        pass

    async def aclose(self) -> None:
        """Release resources held by the provider."""
        pass

    async def __aenter__(self) -> InsightProvider:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class HttpInsightProvider(InsightProvider):
    """
    Base for providers that make one HTTP round trip per describe call.

    A client passed in by the caller is shared and left open; a client created
    here is owned by the provider and closed by aclose().
    """

    label = "http"

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._owns_client = client is None
        self._client = client or create_generation_client()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post_json(
        self,
        endpoint: str,
        body: dict[str, Any],
        api_key: str | None,
        timeout_seconds: float,
        cancellation: CancellationToken | None,
    ) -> str | None:
        """
        POST body and read the full response under one composite deadline.

        Returns:
            The response text, or None for a non-success status

        Raises:
            TimeoutError, CancelledException, httpx.HTTPError
        """

        async def send() -> httpx.Response:
            response = await self._client.post(
                endpoint,
                json=body,
                headers=request_headers(api_key),
            )
            # Body download stays inside the deadline
            await response.aread()
            return response

        response = await run_with_deadline(send(), timeout_seconds, cancellation)
        if not response.is_success:
            logger.warning(f"{self.label} request failed: HTTP {response.status_code}")
            return None
        return response.text


__all__ = ["HttpInsightProvider", "InsightProvider"]
