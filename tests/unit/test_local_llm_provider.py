"""
Unit tests for LocalLlmInsightProvider.

HTTP is faked with httpx.MockTransport; no real service is contacted.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import time
from unittest.mock import patch

import httpx
import pytest

from insightcleaner.cancellation import CancellationToken, run_with_deadline
from insightcleaner.config import AiConfiguration
from insightcleaner.providers.local_llm import (
    LOCAL_LLM_CONFIDENCE,
    LOCAL_LLM_SOURCE_NOTE,
    LocalLlmInsightProvider,
)
from insightcleaner.providers.prompts import build_prompt
from insightcleaner.types import NodeClassification, NodeInsight


def json_handler(body, status_code=200, seen=None):
    """Handler answering every request with a JSON body."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return handler


class TestPreconditions:
    """Invalid configuration never reaches the network."""

    @pytest.mark.asyncio
    async def test_blank_endpoint(self, make_client, sample_node, local_config):
        seen: list[httpx.Request] = []
        provider = LocalLlmInsightProvider(make_client(json_handler({}, seen=seen)))
        config = dataclasses.replace(local_config, local_llm_endpoint="  ")

        insight = await provider.describe(sample_node, config)

        assert insight == NodeInsight.empty()
        assert seen == []

    @pytest.mark.asyncio
    async def test_blank_model(self, make_client, sample_node, local_config):
        seen: list[httpx.Request] = []
        provider = LocalLlmInsightProvider(make_client(json_handler({}, seen=seen)))
        config = dataclasses.replace(local_config, local_llm_model="")

        insight = await provider.describe(sample_node, config)

        assert insight == NodeInsight.empty()
        assert seen == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["local_llm_endpoint", "local_llm_model"])
    async def test_null_setting(self, make_client, sample_node, local_config, field):
        seen: list[httpx.Request] = []
        provider = LocalLlmInsightProvider(make_client(json_handler({}, seen=seen)))
        config = dataclasses.replace(local_config, **{field: None})

        insight = await provider.describe(sample_node, config)

        assert insight == NodeInsight.empty()
        assert seen == []

    @pytest.mark.asyncio
    async def test_null_model_from_settings(self, make_client, sample_node):
        seen: list[httpx.Request] = []
        provider = LocalLlmInsightProvider(make_client(json_handler({}, seen=seen)))
        config = AiConfiguration.from_dict({"mode": "local_llm", "local_llm_model": None})

        insight = await provider.describe(sample_node, config)

        assert insight == NodeInsight.empty()
        assert seen == []


class TestRequest:
    """Tests for the outgoing request."""

    @pytest.mark.asyncio
    async def test_request_body_and_headers(self, make_client, sample_node, local_config):
        seen: list[httpx.Request] = []
        provider = LocalLlmInsightProvider(
            make_client(json_handler({"response": "ok"}, seen=seen))
        )

        await provider.describe(sample_node, local_config)

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == local_config.local_llm_endpoint
        assert request.headers["accept"] == "application/json"
        assert "authorization" not in request.headers
        assert json.loads(request.content) == {
            "model": "qwen3:0.6b",
            "prompt": build_prompt(sample_node),
            "stream": False,
        }

    @pytest.mark.asyncio
    async def test_bearer_header_when_key_configured(
        self, make_client, sample_node, local_config
    ):
        seen: list[httpx.Request] = []
        provider = LocalLlmInsightProvider(
            make_client(json_handler({"response": "ok"}, seen=seen))
        )
        config = dataclasses.replace(local_config, local_llm_api_key="secret-key")

        await provider.describe(sample_node, config)

        assert seen[0].headers["authorization"] == "Bearer secret-key"


class TestResponses:
    """Tests for response interpretation."""

    @pytest.mark.asyncio
    async def test_ollama_success(self, make_client, sample_node, local_config):
        provider = LocalLlmInsightProvider(
            make_client(json_handler({"response": "  这是浏览器缓存目录  "}))
        )

        insight = await provider.describe(sample_node, local_config)

        assert insight.classification == NodeClassification.CACHE
        assert insight.summary == "这是浏览器缓存目录"
        assert insight.confidence == LOCAL_LLM_CONFIDENCE
        assert insight.source_note == LOCAL_LLM_SOURCE_NOTE
        assert insight.is_restricted is False

    @pytest.mark.asyncio
    async def test_openai_chat_success(self, make_client, sample_node, local_config):
        body = {"choices": [{"message": {"content": "application log files"}}]}
        provider = LocalLlmInsightProvider(make_client(json_handler(body)))

        insight = await provider.describe(sample_node, local_config)

        assert insight.classification == NodeClassification.LOG
        assert insight.summary == "application log files"

    @pytest.mark.asyncio
    async def test_plain_text_body(self, make_client, sample_node, local_config):
        provider = LocalLlmInsightProvider(
            make_client(lambda request: httpx.Response(200, text="hello world"))
        )

        insight = await provider.describe(sample_node, local_config)

        assert insight.summary == "hello world"
        assert insight.classification == NodeClassification.UNKNOWN
        assert insight.confidence == LOCAL_LLM_CONFIDENCE

    @pytest.mark.asyncio
    async def test_long_plain_text_truncated(self, make_client, sample_node, local_config):
        provider = LocalLlmInsightProvider(
            make_client(lambda request: httpx.Response(200, text="z" * 400))
        )

        insight = await provider.describe(sample_node, local_config)

        assert insight.summary == "z" * 300 + "..."

    @pytest.mark.asyncio
    async def test_deeply_nested_body_used_raw(self, make_client, sample_node, local_config):
        body = "[" * 100000 + "]" * 100000
        provider = LocalLlmInsightProvider(
            make_client(lambda request: httpx.Response(200, text=body))
        )

        insight = await provider.describe(sample_node, local_config)

        assert insight.summary == body[:300] + "..."
        assert insight.confidence == LOCAL_LLM_CONFIDENCE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 404, 500, 503])
    async def test_error_status(self, make_client, sample_node, local_config, status_code):
        provider = LocalLlmInsightProvider(
            make_client(json_handler({"response": "ignored"}, status_code=status_code))
        )

        insight = await provider.describe(sample_node, local_config)

        assert insight == NodeInsight.empty()


class TestFailures:
    """Transport failures resolve to the empty insight."""

    @pytest.mark.asyncio
    async def test_connect_error(self, make_client, sample_node, local_config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = LocalLlmInsightProvider(make_client(handler))

        insight = await provider.describe(sample_node, local_config)

        assert insight == NodeInsight.empty()

    @pytest.mark.asyncio
    async def test_timeout(self, make_client, sample_node, local_config):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(10)
            return httpx.Response(200, json={"response": "too late"})

        provider = LocalLlmInsightProvider(make_client(handler))
        config = dataclasses.replace(local_config, local_llm_request_timeout_seconds=0.05)

        start = time.perf_counter()
        insight = await provider.describe(sample_node, config)

        assert insight == NodeInsight.empty()
        assert time.perf_counter() - start < 2.0

    @pytest.mark.asyncio
    async def test_cancellation_before_response(self, make_client, sample_node, local_config):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(10)
            return httpx.Response(200, json={"response": "too late"})

        token = CancellationToken()
        provider = LocalLlmInsightProvider(make_client(handler))
        asyncio.get_running_loop().call_later(0.05, token.cancel)

        start = time.perf_counter()
        insight = await provider.describe(sample_node, local_config, token)

        assert insight == NodeInsight.empty()
        assert time.perf_counter() - start < 2.0

    @pytest.mark.asyncio
    async def test_cancellation_during_body_download(
        self, make_client, sample_node, local_config
    ):
        """Headers arrive, then the body stalls; cancellation still applies."""

        async def stalled_body():
            yield b'{"response": "partial'
            await asyncio.sleep(10)
            yield b'"}'

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=stalled_body())

        token = CancellationToken()
        provider = LocalLlmInsightProvider(make_client(handler))
        asyncio.get_running_loop().call_later(0.05, token.cancel)

        start = time.perf_counter()
        insight = await provider.describe(sample_node, local_config, token)

        assert insight == NodeInsight.empty()
        assert time.perf_counter() - start < 2.0

    @pytest.mark.asyncio
    async def test_already_cancelled(self, make_client, sample_node, local_config):
        seen: list[httpx.Request] = []
        token = CancellationToken()
        token.cancel()
        provider = LocalLlmInsightProvider(make_client(json_handler({}, seen=seen)))

        insight = await provider.describe(sample_node, local_config, token)

        assert insight == NodeInsight.empty()
        assert seen == []


class TestTimeoutComposition:
    """The configured timeout seeds the composite deadline."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("configured,expected", [(0, 300), (-1, 300), (42, 42)])
    async def test_deadline_seconds(
        self, make_client, sample_node, local_config, configured, expected
    ):
        recorded: list[float | None] = []

        async def recording_deadline(operation, timeout_seconds, cancellation=None):
            recorded.append(timeout_seconds)
            return await run_with_deadline(operation, timeout_seconds, cancellation)

        provider = LocalLlmInsightProvider(make_client(json_handler({"response": "ok"})))
        config = dataclasses.replace(
            local_config, local_llm_request_timeout_seconds=configured
        )

        with patch("insightcleaner.providers.base.run_with_deadline", recording_deadline):
            await provider.describe(sample_node, config)

        assert recorded == [expected]


class TestClientLifecycle:
    """Tests for client ownership."""

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self, make_client):
        client = make_client(json_handler({}))
        provider = LocalLlmInsightProvider(client)
        await provider.aclose()
        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        async with LocalLlmInsightProvider() as provider:
            client = provider._client
            assert client.timeout.read is None
        assert client.is_closed is True

    @pytest.mark.asyncio
    async def test_concurrent_describes(self, make_client, local_config):
        """Many nodes share one client without interfering."""
        from insightcleaner.types import StorageNode

        def handler(request: httpx.Request) -> httpx.Response:
            prompt = json.loads(request.content)["prompt"]
            name = prompt.splitlines()[1].removeprefix("Name: ")
            return httpx.Response(200, json={"response": f"summary for {name}"})

        provider = LocalLlmInsightProvider(make_client(handler))
        nodes = [
            StorageNode(f"file{i}.bin", False, 100, f"file{i}.bin", f"/data/file{i}.bin")
            for i in range(10)
        ]

        insights = await asyncio.gather(
            *(provider.describe(node, local_config) for node in nodes)
        )

        assert [i.summary for i in insights] == [f"summary for file{i}.bin" for i in range(10)]
