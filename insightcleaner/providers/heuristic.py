"""
Offline heuristic insight provider.

Classifies nodes from their name and path alone, without any network call.
Rules are evaluated in order and the first match wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..cancellation import CancellationToken
from ..config import AiConfiguration
from ..types import NodeClassification, NodeInsight, StorageNode
from .base import InsightProvider

logger = logging.getLogger(__name__)

HEURISTIC_SOURCE_NOTE = "Matched by heuristic rules"


@dataclass(frozen=True)
class HeuristicRule:
    """One path/name pattern and the insight it produces."""

    classification: NodeClassification
    pattern: re.Pattern[str]
    summary: str
    confidence: float
    is_restricted: bool = False


def _rule(
    classification: NodeClassification,
    pattern: str,
    summary: str,
    confidence: float,
    is_restricted: bool = False,
) -> HeuristicRule:
    return HeuristicRule(
        classification=classification,
        pattern=re.compile(pattern, re.IGNORECASE),
        summary=summary,
        confidence=confidence,
        is_restricted=is_restricted,
    )


# Patterns run against "/"-separated, lower-cased paths.
HEURISTIC_RULES: tuple[HeuristicRule, ...] = (
    _rule(
        NodeClassification.CACHE,
        r"(^|/)(\.?cache|caches|inetcache|code cache|gpucache|shadercache)(/|$)",
        "Cache data that applications can rebuild on demand.",
        0.6,
    ),
    _rule(
        NodeClassification.LOG,
        r"(^|/)logs?(/|$)|\.(log|etl|dmp)$",
        "Log or diagnostic output written by software.",
        0.6,
    ),
    _rule(
        NodeClassification.TEMPORARY,
        r"(^|/)(te?mp)(/|$)|\.(tmp|temp|part|crdownload)$|(^|/)~\$",
        "Temporary files left behind by installers or applications.",
        0.55,
    ),
    _rule(
        NodeClassification.OPERATING_SYSTEM,
        r"^[a-z]:/windows(/|$)|(^|/)(system32|syswow64|winsxs|\$recycle\.bin)(/|$)"
        r"|(^|/)(pagefile|hiberfil|swapfile)\.sys$|^/(usr|bin|sbin|etc|boot|system)(/|$)",
        "Operating system component; removing it may break the system.",
        0.7,
        is_restricted=True,
    ),
    _rule(
        NodeClassification.APPLICATION,
        r"(^|/)(program files( \(x86\))?|programdata|applications|node_modules)(/|$)"
        r"|\.(exe|dll|msi|app|so|dylib)$",
        "Installed application files.",
        0.5,
    ),
    _rule(
        NodeClassification.DOCUMENT,
        r"\.(pdf|docx?|xlsx?|pptx?|odt|ods|txt|md|rtf|csv)$",
        "User document.",
        0.45,
    ),
    _rule(
        NodeClassification.MEDIA,
        r"\.(jpe?g|png|gif|bmp|heic|webp|mp3|wav|flac|aac|mp4|mkv|mov|avi)$",
        "Image, audio or video file.",
        0.45,
    ),
    _rule(
        NodeClassification.ARCHIVE,
        r"\.(zip|rar|7z|tar|gz|bz2|xz|iso)$",
        "Compressed archive or disk image.",
        0.45,
    ),
)


def _normalized_path(node: StorageNode) -> str:
    path = node.full_path if node.full_path is not None else node.display_path
    return (path or node.name).replace("\\", "/").rstrip("/").lower()


def match_rule(node: StorageNode) -> HeuristicRule | None:
    """First rule matching the node's path, or None."""
    path = _normalized_path(node)
    for rule in HEURISTIC_RULES:
        if rule.pattern.search(path):
            return rule
    return None


class HeuristicInsightProvider(InsightProvider):
    """Rule-based provider for offline operation."""

    async def describe(
        self,
        node: StorageNode,
        configuration: AiConfiguration,
        cancellation: CancellationToken | None = None,
    ) -> NodeInsight:
        rule = match_rule(node)
        if rule is None:
            logger.debug(f"No heuristic rule matched: {node.display_path}")
            return NodeInsight.empty()

        return NodeInsight(
            classification=rule.classification,
            summary=rule.summary,
            confidence=rule.confidence,
            source_note=HEURISTIC_SOURCE_NOTE,
            is_restricted=rule.is_restricted,
        )
