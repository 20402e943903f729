"""
Keyed cloud insight provider.

Mirrors the local LLM provider against an OpenAI-compatible chat completions
API: same prompt, same composite deadline, same tolerant parsing. A key is
mandatory here.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel

from ..cancellation import CancellationToken
from ..config import AiConfiguration
from ..types import NodeInsight, StorageNode
from .base import HttpInsightProvider
from .parsing import classify_summary, preview, summarize_payload
from .prompts import build_prompt

logger = logging.getLogger(__name__)

CLOUD_CONFIDENCE = 0.75
CLOUD_SOURCE_NOTE = "Generated by cloud API"


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatCompletionRequest(BaseModel):
    """Request body for /chat/completions endpoints."""

    model: str
    messages: list[ChatMessage]
    stream: bool = False


class CloudInsightProvider(HttpInsightProvider):
    """Describes nodes through a keyed cloud API."""

    label = "Cloud API"

    async def describe(
        self,
        node: StorageNode,
        configuration: AiConfiguration,
        cancellation: CancellationToken | None = None,
    ) -> NodeInsight:
        endpoint = configuration.cloud_endpoint or ""
        model = configuration.cloud_model or ""
        api_key = configuration.cloud_api_key or ""
        if not endpoint.strip() or not model.strip() or not api_key.strip():
            logger.warning(
                f"Cloud configuration invalid - Endpoint={endpoint!r}, Model={model!r}, "
                f"ApiKey={'set' if api_key.strip() else 'unset'}"
            )
            return NodeInsight.empty()

        request = ChatCompletionRequest(
            model=model,
            messages=[ChatMessage(role="user", content=build_prompt(node))],
        )
        timeout_seconds = configuration.cloud_timeout

        try:
            logger.info(f"Cloud request: {node.name} (model={model}, timeout={timeout_seconds}s)")
            payload = await self._post_json(
                endpoint,
                request.model_dump(),
                api_key,
                timeout_seconds,
                cancellation,
            )
            if payload is None:
                return NodeInsight.empty()

            logger.debug(f"Cloud response: {preview(payload)}...")

            summary = summarize_payload(payload, self.label)
            logger.info(f"Cloud success: {node.name}")
            return NodeInsight(
                classification=classify_summary(summary),
                summary=summary.strip(),
                confidence=CLOUD_CONFIDENCE,
                source_note=CLOUD_SOURCE_NOTE,
                is_restricted=False,
            )
        except Exception as e:
            logger.error(f"Cloud error: {node.name}: {e!r}", exc_info=True)
            return NodeInsight.empty()


__all__ = ["ChatCompletionRequest", "ChatMessage", "CloudInsightProvider"]
