"""
Prompt construction for LLM-backed providers.

The prompt is built only from node attributes in a fixed order, so identical
nodes always produce byte-identical prompts.
"""

from __future__ import annotations

import ntpath
import posixpath

from ..types import StorageNode

UNKNOWN = "unknown"
LABEL_DIRECTORY = "directory"
LABEL_FILE = "file"

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

PROMPT_INTRO = (
    "You are a disk cleanup assistant. Explain what the following file or "
    "folder is most likely used for."
)
PROMPT_INSTRUCTION = (
    "Describe its purpose in one or two sentences and say whether it is a "
    "cache, log, temporary, system or application item."
)
PROMPT_FORMAT = "Answer with plain text only, no Markdown."


def format_size(size_bytes: int) -> str:
    """Human-readable size in binary units, or the unknown sentinel."""
    if size_bytes <= 0:
        return UNKNOWN

    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f}{_SIZE_UNITS[unit]}"


def parent_directory(full_path: str | None) -> str | None:
    """Parent of full_path, or None when it cannot be derived (absent or a root)."""
    if not full_path:
        return None

    pathmod = ntpath if "\\" in full_path or ntpath.splitdrive(full_path)[0] else posixpath
    stripped = full_path.rstrip("\\/") or full_path
    parent = pathmod.dirname(stripped)
    if not parent or parent in (full_path, stripped):
        return None
    return parent


def build_prompt(node: StorageNode) -> str:
    """Deterministic describe prompt for a node."""
    type_label = LABEL_DIRECTORY if node.is_directory else LABEL_FILE
    lines = [
        PROMPT_INTRO,
        f"Name: {node.name}",
        f"Type: {type_label}",
        f"Path: {node.full_path if node.full_path is not None else node.display_path}",
        f"Size: {format_size(node.size_bytes)}",
        f"Parent directory: {parent_directory(node.full_path) or UNKNOWN}",
        "",
        PROMPT_INSTRUCTION,
        PROMPT_FORMAT,
    ]
    return "\n".join(lines) + "\n"
