"""
AI insight coordinator.

Routes each describe request to exactly one provider, chosen by the mode in
the caller's configuration snapshot. The coordinator holds no per-call state
and never raises; every mode, including one without a registered provider,
resolves to a defined NodeInsight.
"""

from __future__ import annotations

import logging
from typing import Any

from .cancellation import CancellationToken
from .config import AiConfiguration
from .providers import (
    CloudInsightProvider,
    HeuristicInsightProvider,
    InsightProvider,
    LocalLlmInsightProvider,
)
from .types import AiMode, NodeInsight, StorageNode

logger = logging.getLogger(__name__)


class AiInsightCoordinator:
    """
    Mode-keyed dispatch over insight providers.

    Providers are optional. A mode with no registered provider yields the
    same Unknown insight as a provider that found nothing.
    """

    def __init__(
        self,
        heuristic_provider: InsightProvider | None = None,
        local_llm_provider: InsightProvider | None = None,
        cloud_provider: InsightProvider | None = None,
    ):
        self._providers: dict[AiMode, InsightProvider | None] = {
            AiMode.DISABLED: None,
            AiMode.HEURISTIC_LOCAL: heuristic_provider,
            AiMode.LOCAL_LLM: local_llm_provider,
            AiMode.CLOUD_KEYED: cloud_provider,
        }

    @classmethod
    def with_default_providers(cls) -> AiInsightCoordinator:
        """Coordinator with every built-in provider registered."""
        return cls(
            heuristic_provider=HeuristicInsightProvider(),
            local_llm_provider=LocalLlmInsightProvider(),
            cloud_provider=CloudInsightProvider(),
        )

    def provider_for(self, mode: AiMode) -> InsightProvider | None:
        return self._providers.get(mode)

    async def describe(
        self,
        node: StorageNode,
        configuration: AiConfiguration,
        cancellation: CancellationToken | None = None,
    ) -> NodeInsight:
        """
        Describe a node with the provider selected by configuration.mode.

        Args:
            node: Scanned file or directory
            configuration: Per-call configuration snapshot
            cancellation: Caller's cancellation token

        Returns:
            The provider's insight, or NodeInsight.empty() when disabled,
            unregistered, or failed
        """
        mode = configuration.mode
        if mode == AiMode.DISABLED:
            logger.info("AI coordinator - Mode=disabled")
            return NodeInsight.empty()

        provider = self.provider_for(mode)
        logger.info(
            f"AI coordinator - Mode={mode.value}, "
            f"Provider={type(provider).__name__ if provider else None}, "
            f"Model={self._model_for(configuration)}"
        )
        if provider is None:
            logger.warning(f"No provider registered for mode {mode.value}")
            return NodeInsight.empty()

        try:
            return await provider.describe(node, configuration, cancellation)
        except Exception as e:
            logger.error(f"Provider {type(provider).__name__} raised: {e!r}", exc_info=True)
            return NodeInsight.empty()

    @staticmethod
    def _model_for(configuration: AiConfiguration) -> str:
        if configuration.mode == AiMode.LOCAL_LLM:
            return configuration.local_llm_model
        if configuration.mode == AiMode.CLOUD_KEYED:
            return configuration.cloud_model
        return "-"

    async def aclose(self) -> None:
        """Close every registered provider."""
        for provider in self._providers.values():
            if provider is not None:
                await provider.aclose()

    async def __aenter__(self) -> AiInsightCoordinator:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["AiInsightCoordinator"]
