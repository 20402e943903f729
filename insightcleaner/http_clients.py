"""
HTTP transport configurations.

Generation and catalog discovery use separate pooled clients. Generation
against large self-hosted models can legitimately run for minutes, so its
client has no timeout and expiry is left to the per-call composite deadline.
Catalog discovery is a lightweight call with a fixed 10 second budget.
"""

from __future__ import annotations

import httpx

CATALOG_TIMEOUT_SECONDS = 10.0

JSON_HEADERS = {"Accept": "application/json"}


def create_generation_client() -> httpx.AsyncClient:
    """Client for describe calls; no transport-level timeout."""
    return httpx.AsyncClient(timeout=None)


def create_catalog_client() -> httpx.AsyncClient:
    """Client for model catalog discovery."""
    return httpx.AsyncClient(timeout=httpx.Timeout(CATALOG_TIMEOUT_SECONDS))


def request_headers(api_key: str | None) -> dict[str, str]:
    """JSON accept header plus a bearer token when a key is configured."""
    headers = dict(JSON_HEADERS)
    if api_key and api_key.strip():
        headers["Authorization"] = f"Bearer {api_key}"
    return headers
