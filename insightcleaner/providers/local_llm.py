"""
Local LLM insight provider.

Connects to a user-provided LLM service (Ollama, koboldcpp, llama.cpp server,
or any OpenAI-compatible server) over HTTP. Self-hosted large models may take
minutes to answer, so the only deadline is the composite of the caller's
cancellation token and the configured request timeout.
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

LOCAL_LLM_CONFIDENCE = 0.65
LOCAL_LLM_SOURCE_NOTE = "Generated by local LLM"


class GenerationRequest(BaseModel):
    """Request body for /api/generate style endpoints."""

    model: str
    prompt: str
    stream: bool = False


class LocalLlmInsightProvider(HttpInsightProvider):
    """Describes nodes through a user-hosted LLM service."""

    label = "Local LLM"

    async def describe(
        self,
        node: StorageNode,
        configuration: AiConfiguration,
        cancellation: CancellationToken | None = None,
    ) -> NodeInsight:
        endpoint = configuration.local_llm_endpoint or ""
        model = configuration.local_llm_model or ""
        if not endpoint.strip() or not model.strip():
            logger.warning(
                f"Local LLM configuration invalid - Endpoint={endpoint!r}, Model={model!r}"
            )
            return NodeInsight.empty()

        logger.info(f"Local LLM describe - Model={model}, Path={node.full_path}")

        request = GenerationRequest(model=model, prompt=build_prompt(node))
        timeout_seconds = configuration.local_llm_timeout

        try:
            logger.info(f"Local LLM request: {node.name} (timeout={timeout_seconds}s)")
            payload = await self._post_json(
                endpoint,
                request.model_dump(),
                configuration.local_llm_api_key,
                timeout_seconds,
                cancellation,
            )
            if payload is None:
                return NodeInsight.empty()

            logger.debug(f"Local LLM response: {preview(payload)}...")

            summary = summarize_payload(payload, self.label)
            logger.info(f"Local LLM success: {node.name}")
            return NodeInsight(
                classification=classify_summary(summary),
                summary=summary.strip(),
                confidence=LOCAL_LLM_CONFIDENCE,
                source_note=LOCAL_LLM_SOURCE_NOTE,
                is_restricted=False,
            )
        except Exception as e:
            logger.error(f"Local LLM error: {node.name}: {e!r}", exc_info=True)
            return NodeInsight.empty()


__all__ = ["GenerationRequest", "LocalLlmInsightProvider"]
