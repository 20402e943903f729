"""
Command line entry point.

    insightcleaner describe PATH [PATH ...] [--mode MODE] [--private]
    insightcleaner models {local,cloud}
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

from .catalog import ModelCatalogService
from .config import AiConfiguration
from .coordinator import AiInsightCoordinator
from .types import AiMode, NodeInsight, StorageNode


def node_from_path(path: Path, private: bool = False) -> StorageNode:
    """
    Build a node from the filesystem.

    Directory sizes are not aggregated here; that is the scanner's job.
    With private=True the full path is withheld, as under privacy scrubbing.
    """
    resolved = path.expanduser().resolve()
    is_directory = resolved.is_dir()
    size_bytes = 0 if is_directory else resolved.stat().st_size
    return StorageNode(
        name=resolved.name or str(resolved),
        is_directory=is_directory,
        size_bytes=size_bytes,
        display_path=resolved.name if private else str(resolved),
        full_path=None if private else str(resolved),
    )


def format_insight(node: StorageNode, insight: NodeInsight) -> str:
    summary = insight.summary or "-"
    return (
        f"{node.display_path}\t{insight.classification.value}\t"
        f"{insight.confidence:.2f}\t{summary}"
    )


async def run_describe(
    paths: list[Path],
    configuration: AiConfiguration,
    private: bool = False,
) -> list[tuple[StorageNode, NodeInsight]]:
    """Describe every path concurrently."""
    nodes = []
    for path in paths:
        try:
            nodes.append(node_from_path(path, private=private))
        except OSError as e:
            print(f"Skipping {path}: {e}", file=sys.stderr)

    async with AiInsightCoordinator.with_default_providers() as coordinator:
        insights = await asyncio.gather(
            *(coordinator.describe(node, configuration) for node in nodes)
        )
    return list(zip(nodes, insights))


async def run_models(source: str, configuration: AiConfiguration) -> list[str]:
    async with ModelCatalogService() as catalog:
        if source == "cloud":
            return await catalog.get_cloud_models(
                configuration.cloud_endpoint, configuration.cloud_api_key
            )
        return await catalog.get_local_models(
            configuration.local_llm_endpoint, configuration.local_llm_api_key
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="insightcleaner",
        description="Describe files and folders with heuristics or an LLM",
    )
    parser.add_argument("--config", type=Path, help="Path to settings.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    describe = subparsers.add_parser("describe", help="Describe files or folders")
    describe.add_argument("paths", nargs="+", type=Path)
    describe.add_argument(
        "--mode",
        choices=[mode.value for mode in AiMode],
        help="Override the configured mode",
    )
    describe.add_argument(
        "--private",
        action="store_true",
        help="Withhold full paths from the backend",
    )

    models = subparsers.add_parser("models", help="List models offered by a backend")
    models.add_argument("source", choices=["local", "cloud"])

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    configuration = AiConfiguration.load(args.config)

    if args.command == "describe":
        if args.mode:
            configuration = dataclasses.replace(configuration, mode=AiMode(args.mode))
        results = asyncio.run(run_describe(args.paths, configuration, private=args.private))
        for node, insight in results:
            print(format_insight(node, insight))
        return 0

    if args.command == "models":
        endpoint = (
            configuration.cloud_endpoint
            if args.source == "cloud"
            else configuration.local_llm_endpoint
        )
        if not endpoint.strip():
            print(f"No {args.source} endpoint configured")
            return 1

        models = asyncio.run(run_models(args.source, configuration))
        for name in models:
            print(name)
        if not models:
            print("No models found; check the endpoint and API key")
            return 1
        print(f"Found {len(models)} models")
        return 0

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
