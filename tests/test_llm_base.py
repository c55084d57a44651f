"""Tests for the shared LLM client behavior and the provider factory."""

import asyncio
from types import SimpleNamespace

import pytest

from app.llm import create_llm_client
from app.llm.base import BaseLLMClient
from app.utils.errors import AiServiceFailure


class SlowClient(BaseLLMClient):
    provider = "slow"

    async def _ainvoke(self, prompt, *, temperature, max_output_tokens):
        await asyncio.sleep(5)
        return "late"


class BrokenClient(BaseLLMClient):
    provider = "broken"

    async def _ainvoke(self, prompt, *, temperature, max_output_tokens):
        raise RuntimeError("503 Service Unavailable")


class EchoClient(BaseLLMClient):
    provider = "echo"

    async def _ainvoke(self, prompt, *, temperature, max_output_tokens):
        return f"{prompt}|{temperature}|{max_output_tokens}"


class TestAgenerate:
    @pytest.mark.asyncio
    async def test_timeout_maps_to_ai_failure(self):
        client = SlowClient(api_key="k", model_name="m")

        with pytest.raises(AiServiceFailure) as exc_info:
            await client.agenerate("hi", timeout=0.01)

        assert "timed out" in exc_info.value.message
        assert exc_info.value.code == "llm_error"

    @pytest.mark.asyncio
    async def test_provider_error_maps_to_ai_failure(self):
        client = BrokenClient(api_key="k", model_name="m")

        with pytest.raises(AiServiceFailure) as exc_info:
            await client.agenerate("hi")

        assert exc_info.value.http_status == 502
        assert "503" in exc_info.value.details["error"]

    @pytest.mark.asyncio
    async def test_defaults_and_overrides(self):
        client = EchoClient(api_key="k", model_name="m", temperature=0.7, max_output_tokens=2048)

        assert await client.agenerate("p") == "p|0.7|2048"
        assert await client.agenerate("p", temperature=0.0, max_output_tokens=10) == "p|0.0|10"


class TestClientHelpers:
    def test_content_to_text(self):
        assert BaseLLMClient._content_to_text("plain") == "plain"
        assert BaseLLMClient._content_to_text([{"type": "text", "text": "a"}, "b"]) == "ab"
        assert BaseLLMClient._content_to_text(None) == ""

    def test_validate_requires_key(self):
        client = EchoClient(api_key="", model_name="m")
        assert client.is_configured() is False
        with pytest.raises(ValueError):
            client.validate()


def _settings(**overrides):
    values = dict(
        llm_provider="groq",
        llm_model="",
        max_output_tokens=2048,
        llm_timeout_seconds=30,
        analysis_temperature=0.7,
        safety_threshold="BLOCK_MEDIUM_AND_ABOVE",
        GEMINI_API_KEY="g",
        GROQ_API_KEY="q",
        OPENAI_API_KEY="o",
        ANTHROPIC_API_KEY="a",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestFactory:
    def test_groq_default_model(self):
        client = create_llm_client(_settings())
        assert client.provider == "groq"
        assert client.api_key == "q"

    def test_gemini_with_model_override(self):
        client = create_llm_client(_settings(llm_provider="Gemini", llm_model="gemini-1.5-pro"))
        assert client.provider == "gemini"
        assert client.model_name == "gemini-1.5-pro"
        assert client.safety_threshold == "BLOCK_MEDIUM_AND_ABOVE"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_llm_client(_settings(llm_provider="mystery"))
