"""
Shared type definitions for InsightCleaner.

Value types exchanged between the scanner, the insight providers and the
caller: the analysis mode, the scanned node and the resulting insight.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AiMode(str, Enum):
    """Which insight backend, if any, handles a describe request."""

    DISABLED = "disabled"
    HEURISTIC_LOCAL = "heuristic"  # Offline rules, no network
    LOCAL_LLM = "local_llm"  # User-hosted LLM service
    CLOUD_KEYED = "cloud"  # Keyed cloud API


class NodeClassification(str, Enum):
    """Coarse purpose label for a file or directory."""

    UNKNOWN = "unknown"
    CACHE = "cache"
    LOG = "log"
    TEMPORARY = "temporary"
    OPERATING_SYSTEM = "operating_system"
    APPLICATION = "application"
    DOCUMENT = "document"
    MEDIA = "media"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class StorageNode:
    """
    A file or directory entry produced by the scanner.

    full_path is None when the scanner scrubbed it for privacy; display_path
    is always available.
    """

    name: str
    is_directory: bool
    size_bytes: int
    display_path: str
    full_path: str | None = None


@dataclass(frozen=True)
class NodeInsight:
    """Short description plus a coarse category assigned to a node."""

    classification: NodeClassification
    summary: str
    confidence: float
    source_note: str
    is_restricted: bool = False

    @classmethod
    def empty(
        cls, classification: NodeClassification = NodeClassification.UNKNOWN
    ) -> NodeInsight:
        """The insight returned whenever nothing could be produced."""
        return cls(
            classification=classification,
            summary="",
            confidence=0.0,
            source_note="",
            is_restricted=False,
        )

    @property
    def is_empty(self) -> bool:
        return not self.summary and self.confidence == 0.0


__all__ = [
    "AiMode",
    "NodeClassification",
    "NodeInsight",
    "StorageNode",
]
