"""
Pytest configuration and fixtures for InsightCleaner tests.
"""

import sys
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

# Add project root to path so we can import the package without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from insightcleaner.config import AiConfiguration
from insightcleaner.types import AiMode, StorageNode


@pytest.fixture
def sample_node():
    """A file node with a full path."""
    return StorageNode(
        name="index.dat",
        is_directory=False,
        size_bytes=5 * 1024 * 1024,
        display_path="AppData/Local/Browser/Cache/index.dat",
        full_path="C:\\Users\\alice\\AppData\\Local\\Browser\\Cache\\index.dat",
    )


@pytest.fixture
def private_node():
    """A directory node whose full path was scrubbed."""
    return StorageNode(
        name="Logs",
        is_directory=True,
        size_bytes=0,
        display_path="~/Library/Logs",
        full_path=None,
    )


@pytest.fixture
def local_config():
    """Configuration pointing at a local Ollama-style endpoint."""
    return AiConfiguration(
        mode=AiMode.LOCAL_LLM,
        local_llm_endpoint="http://localhost:11434/api/generate",
        local_llm_model="qwen3:0.6b",
        local_llm_request_timeout_seconds=5,
    )


@pytest.fixture
def cloud_config():
    """Configuration pointing at an OpenAI-compatible cloud endpoint."""
    return AiConfiguration(
        mode=AiMode.CLOUD_KEYED,
        cloud_endpoint="https://api.example.com/v1/chat/completions",
        cloud_model="gpt-4o-mini",
        cloud_api_key="sk-test",
        cloud_request_timeout_seconds=5,
    )


@pytest.fixture
def make_client() -> Callable[[Callable], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by handler."""

    def factory(handler: Callable) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "hypothesis: property-based tests"
    )
    config.addinivalue_line(
        "markers", "slow: tests that take >1s"
    )
