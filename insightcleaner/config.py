"""
Configuration snapshot for the AI insight subsystem.

The settings layer loads an AiConfiguration once and passes it by value into
every describe and catalog call. Nothing in the subsystem mutates it; use
dataclasses.replace() to derive a modified copy.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .types import AiMode

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT_SECONDS = 300
DEFAULT_CONFIG_DIR = Path.home() / ".insightcleaner"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "settings.json"
DEFAULT_ENV_PATH = DEFAULT_CONFIG_DIR / ".env"

LOCAL_LLM_API_KEY_ENV = "INSIGHTCLEANER_LOCAL_LLM_API_KEY"
CLOUD_API_KEY_ENV = "INSIGHTCLEANER_CLOUD_API_KEY"

_SENSITIVE_FIELDS = ("local_llm_api_key", "cloud_api_key")


def effective_timeout(seconds: float) -> float:
    """Normalize a configured timeout; non-positive means the 300s default."""
    return seconds if seconds > 0 else DEFAULT_REQUEST_TIMEOUT_SECONDS


@dataclass(frozen=True)
class AiConfiguration:
    """Read-only per-call configuration."""

    mode: AiMode = AiMode.HEURISTIC_LOCAL

    # Local LLM service (Ollama, koboldcpp, llama.cpp server, ...)
    local_llm_endpoint: str = "http://localhost:11434/api/generate"
    local_llm_model: str = ""
    local_llm_api_key: str = ""
    local_llm_request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    # Keyed cloud API (OpenAI-compatible chat completions)
    cloud_endpoint: str = "https://api.openai.com/v1/chat/completions"
    cloud_model: str = ""
    cloud_api_key: str = ""
    cloud_request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @property
    def local_llm_timeout(self) -> float:
        return effective_timeout(self.local_llm_request_timeout_seconds)

    @property
    def cloud_timeout(self) -> float:
        return effective_timeout(self.cloud_request_timeout_seconds)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AiConfiguration:
        """Build a configuration from a settings dict, ignoring unknown keys and nulls."""
        data = dict(data)

        # Older settings files stored the cloud endpoint under its UI name
        if "remote_server_url" in data and "cloud_endpoint" not in data:
            data["cloud_endpoint"] = data.pop("remote_server_url")

        known = {f.name for f in fields(cls)}
        values = {
            key: value for key, value in data.items() if key in known and value is not None
        }
        if "mode" in values:
            values["mode"] = AiMode(values["mode"])
        return cls(**values)

    def to_dict(self, include_sensitive: bool = True) -> dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        if not include_sensitive:
            for name in _SENSITIVE_FIELDS:
                data[name] = ""
        return data

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        env_file: Path | None = None,
    ) -> AiConfiguration:
        """
        Load configuration from file, then apply API keys from the environment.

        A missing settings file yields the defaults. Keys found in the
        environment (or in the optional .env file) take precedence over the
        values stored on disk.
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH
        if env_file is None:
            env_file = DEFAULT_ENV_PATH

        if env_file.exists():
            load_dotenv(env_file)

        data: dict[str, Any] = {}
        if path.exists():
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            logger.debug(f"Loaded settings from {path}")

        local_key = os.environ.get(LOCAL_LLM_API_KEY_ENV)
        if local_key:
            data["local_llm_api_key"] = local_key
        cloud_key = os.environ.get(CLOUD_API_KEY_ENV)
        if cloud_key:
            data["cloud_api_key"] = cloud_key

        return cls.from_dict(data)

    def save(self, path: Path | None = None, include_sensitive: bool = True) -> None:
        """Save configuration to file; API keys are blanked unless include_sensitive."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(include_sensitive=include_sensitive), f, indent=2)

        logger.info(
            f"Saved settings - Mode={self.mode.value}, "
            f"LocalLlmModel={self.local_llm_model}, CloudModel={self.cloud_model}"
        )


# Default configuration instance
default_config = AiConfiguration()
