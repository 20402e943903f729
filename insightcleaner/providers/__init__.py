"""
Insight providers.

One concrete InsightProvider per backend mode:
- HeuristicInsightProvider: offline rules
- LocalLlmInsightProvider: user-hosted LLM service
- CloudInsightProvider: keyed cloud API
"""

from .base import HttpInsightProvider, InsightProvider
from .cloud import CloudInsightProvider
from .heuristic import HeuristicInsightProvider
from .local_llm import LocalLlmInsightProvider

__all__ = [
    "CloudInsightProvider",
    "HeuristicInsightProvider",
    "HttpInsightProvider",
    "InsightProvider",
    "LocalLlmInsightProvider",
]
