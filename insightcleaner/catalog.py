"""
Model catalog discovery.

Lists the model identifiers a backend currently offers, for the settings UI.
Cloud backends speak the OpenAI-compatible /models dialect; local backends are
tried as Ollama (/api/tags) first and as OpenAI-compatible second.

Every entry point is best-effort: failures are logged and yield an empty list.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import BaseModel

from .cancellation import CancellationToken, run_with_deadline
from .http_clients import CATALOG_TIMEOUT_SECONDS, create_catalog_client, request_headers

logger = logging.getLogger(__name__)

OLLAMA_TAGS_PATH = "/api/tags"


class OllamaModelTag(BaseModel):
    name: str | None = None


class OllamaTagList(BaseModel):
    """Response of GET /api/tags."""

    models: list[OllamaModelTag]


def build_models_endpoint(endpoint: str) -> str:
    """
    Rewrite a generation endpoint into the matching models-listing URL.

    Scheme, host, port and query string are preserved.

    Examples:
        https://api.example.com/v1/models           -> unchanged
        https://api.example.com/v1/chat/completions -> https://api.example.com/v1/models
        http://host:11434                           -> http://host:11434/v1/models
    """
    if endpoint.lower().endswith("/models"):
        return endpoint

    url = httpx.URL(endpoint)
    path = url.path
    trimmed = path.rstrip("/")

    if trimmed.endswith("/chat/completions"):
        path = trimmed[: -len("/chat/completions")] + "/models"
    elif "/v1/chat" in path:
        path = path.replace("/v1/chat", "/v1/models", 1)
    elif not path.endswith("/models"):
        path += "v1/models" if path.endswith("/") else "/v1/models"

    return str(url.copy_with(path=path))


def build_ollama_tags_endpoint(endpoint: str) -> str:
    """/api/tags relative to the endpoint's base address."""
    return str(httpx.URL(endpoint).join(OLLAMA_TAGS_PATH))


def _model_id(item: Any) -> str | None:
    if isinstance(item, dict):
        value = item.get("id")
    else:
        value = item
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_models_response(content: str) -> list[str]:
    """
    Parse an OpenAI-compatible model listing.

    Accepts {"data": [{"id": ...}, ...]} or a bare array of objects with "id"
    or of plain strings. Elements that match neither are skipped.
    """
    try:
        root = json.loads(content)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Failed to parse model list response: {e}")
        return []

    if isinstance(root, dict):
        data = root.get("data")
        if not isinstance(data, list):
            return []
        items = [item for item in data if isinstance(item, dict)]
    elif isinstance(root, list):
        items = root
    else:
        return []

    models = []
    for item in items:
        model_id = _model_id(item)
        if model_id is not None:
            models.append(model_id)
    return models


class ModelCatalogService:
    """
    Discovers available models from cloud or local backends.

    Each HTTP request gets a fixed 10 second budget, independent of the
    generation timeout.
    """

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._owns_client = client is None
        self._client = client or create_catalog_client()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ModelCatalogService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _get(
        self,
        url: str,
        api_key: str | None,
        cancellation: CancellationToken | None,
    ) -> httpx.Response:
        async def send() -> httpx.Response:
            response = await self._client.get(url, headers=request_headers(api_key))
            await response.aread()
            return response

        return await run_with_deadline(send(), CATALOG_TIMEOUT_SECONDS, cancellation)

    async def get_cloud_models(
        self,
        endpoint: str,
        api_key: str | None,
        cancellation: CancellationToken | None = None,
    ) -> list[str]:
        """List models from an OpenAI-compatible cloud API."""
        if not endpoint or not endpoint.strip():
            return []

        try:
            models_endpoint = build_models_endpoint(endpoint)
            logger.info(f"Fetching cloud model list: {models_endpoint}")
            response = await self._get(models_endpoint, api_key, cancellation)

            if not response.is_success:
                logger.warning(f"Fetching cloud model list failed: HTTP {response.status_code}")
                return []

            models = parse_models_response(response.text)
            logger.info(f"Fetched {len(models)} cloud models")
            return models
        except Exception as e:
            logger.error(f"Fetching cloud model list raised: {e!r}", exc_info=True)
            return []

    async def get_local_models(
        self,
        endpoint: str,
        api_key: str | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[str]:
        """List models from a local service, Ollama dialect first."""
        if not endpoint or not endpoint.strip():
            return []

        try:
            models = await self._try_ollama_models(endpoint, cancellation)
            if models is not None:
                return models

            models = await self._try_openai_style_models(endpoint, api_key, cancellation)
            if models is not None:
                return models
        except Exception as e:
            logger.error(f"Fetching local model list raised: {e!r}", exc_info=True)

        return []

    async def _try_ollama_models(
        self,
        endpoint: str,
        cancellation: CancellationToken | None,
    ) -> list[str] | None:
        """Model names from /api/tags, or None if this is not an Ollama server."""
        try:
            tags_endpoint = build_ollama_tags_endpoint(endpoint)
            logger.info(f"Trying Ollama model list: {tags_endpoint}")
            response = await self._get(tags_endpoint, None, cancellation)

            if not response.is_success:
                logger.info(f"Ollama model list unavailable: HTTP {response.status_code}")
                return None

            tag_list = OllamaTagList.model_validate_json(response.text)
            models = [tag.name for tag in tag_list.models if tag.name and tag.name.strip()]
            logger.info(f"Ollama model list returned {len(models)} models")
            return models
        except Exception as e:
            logger.warning(f"Ollama model list failed: {e!r}")
            return None

    async def _try_openai_style_models(
        self,
        endpoint: str,
        api_key: str | None,
        cancellation: CancellationToken | None,
    ) -> list[str] | None:
        """Model ids from the OpenAI-compatible listing, or None on failure."""
        try:
            models_endpoint = build_models_endpoint(endpoint)
            logger.info(f"Trying OpenAI-style model list: {models_endpoint}")
            response = await self._get(models_endpoint, api_key, cancellation)

            if not response.is_success:
                logger.info(f"OpenAI-style model list unavailable: HTTP {response.status_code}")
                return None

            models = parse_models_response(response.text)
            logger.info(f"OpenAI-style model list returned {len(models)} models")
            return models
        except Exception as e:
            logger.warning(f"OpenAI-style model list failed: {e!r}")
            return None


__all__ = [
    "ModelCatalogService",
    "OllamaTagList",
    "build_models_endpoint",
    "build_ollama_tags_endpoint",
    "parse_models_response",
]
