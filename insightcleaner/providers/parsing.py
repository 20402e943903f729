"""
Tolerant interpretation of LLM responses.

Self-hosted and cloud services disagree on response schemas (Ollama,
OpenAI chat and completion styles, koboldcpp, text-generation-webui, ...).
The body is probed against known shapes in a fixed priority; when nothing
matches, the raw text itself becomes the summary.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..types import NodeClassification

logger = logging.getLogger(__name__)

RAW_SUMMARY_LIMIT = 300
LOG_PREVIEW_LIMIT = 200

# Ordered: the first group with a match decides the category.
CLASSIFICATION_KEYWORDS: tuple[tuple[NodeClassification, tuple[str, ...]], ...] = (
    (NodeClassification.CACHE, ("缓存", "cache")),
    (NodeClassification.LOG, ("日志", "log")),
    (NodeClassification.TEMPORARY, ("临时", "temp")),
    (NodeClassification.OPERATING_SYSTEM, ("系统", "windows")),
    (NodeClassification.APPLICATION, ("应用", "程序", "app")),
)


def _non_blank(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _first_choice(root: dict[str, Any]) -> dict[str, Any] | None:
    choices = root.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return None


def extract_summary(payload: str) -> str | None:
    """
    Pull the generated text out of a response body.

    Shapes, in priority order:
        {"response": str}                                  (Ollama)
        {"choices": [{"message": {"content": str}}]}       (OpenAI chat)
        {"choices": [{"text": str}]}                       (OpenAI completions)
        {"content": str}                                   (llama.cpp server)
        {"text": str}
        {"output": str}

    Returns:
        The first non-blank match, or None if the body is not a JSON object
        or no shape matches
    """
    if not payload or not payload.strip():
        return None

    try:
        root = json.loads(payload)
    except (ValueError, RecursionError) as e:
        logger.debug(f"Response is not JSON: {e}")
        return None

    if not isinstance(root, dict):
        return None

    text = _non_blank(root.get("response"))
    if text:
        return text

    choice = _first_choice(root)
    if choice is not None:
        message = choice.get("message")
        if isinstance(message, dict):
            text = _non_blank(message.get("content"))
            if text:
                return text
        text = _non_blank(choice.get("text"))
        if text:
            return text

    for key in ("content", "text", "output"):
        text = _non_blank(root.get(key))
        if text:
            return text

    return None


def truncate_raw(payload: str, limit: int = RAW_SUMMARY_LIMIT) -> str:
    """Raw body as a summary, cut to limit characters plus an ellipsis."""
    if len(payload) > limit:
        return payload[:limit] + "..."
    return payload


def preview(payload: str, limit: int = LOG_PREVIEW_LIMIT) -> str:
    return payload[:limit]


def summarize_payload(payload: str, label: str) -> str:
    """Extracted summary, falling back to the truncated raw body."""
    summary = extract_summary(payload)
    if summary is None:
        logger.warning(f"{label} response could not be parsed, using raw response")
        summary = truncate_raw(payload)
    return summary


def classify_summary(summary: str) -> NodeClassification:
    """Keyword classification of a summary; Unknown when nothing matches."""
    if not summary or not summary.strip():
        return NodeClassification.UNKNOWN

    text = summary.lower()
    for classification, keywords in CLASSIFICATION_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return classification
    return NodeClassification.UNKNOWN
