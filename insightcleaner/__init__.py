"""
InsightCleaner: AI insights for disk analysis.

Attaches a short purpose description and a coarse category to scanned files
and folders, using offline heuristics, a user-hosted LLM service, or a keyed
cloud API. Every describe call resolves to a NodeInsight; no backend failure
escapes to the caller.
"""

__version__ = "0.3.0"

# Value types
from .types import AiMode, NodeClassification, NodeInsight, StorageNode

# Configuration
from .config import AiConfiguration, default_config, effective_timeout

# Cancellation and deadlines
from .cancellation import CancellationToken, CancelledException, run_with_deadline

# Providers and dispatch
from .providers import (
    CloudInsightProvider,
    HeuristicInsightProvider,
    InsightProvider,
    LocalLlmInsightProvider,
)
from .coordinator import AiInsightCoordinator

# Model catalog discovery
from .catalog import ModelCatalogService, build_models_endpoint, parse_models_response

__all__ = [
    "AiConfiguration",
    "AiInsightCoordinator",
    "AiMode",
    "CancellationToken",
    "CancelledException",
    "CloudInsightProvider",
    "HeuristicInsightProvider",
    "InsightProvider",
    "LocalLlmInsightProvider",
    "ModelCatalogService",
    "NodeClassification",
    "NodeInsight",
    "StorageNode",
    "build_models_endpoint",
    "default_config",
    "effective_timeout",
    "parse_models_response",
    "run_with_deadline",
]
