import logging
import os

from langchain_groq import ChatGroq  # Groq exposes OpenAI-compatible API

from .base import BaseLLMClient

logger = logging.getLogger(__name__)


class GroqClient(BaseLLMClient):
    """Wrapper for Groq LLMs (OpenAI-compatible)."""

    provider = "groq"

    def __init__(self, api_key: str, model_name: str = "llama-3.1-8b-instant", **kwargs):
        # Ensure GROQ_API_KEY is available in environment for the Groq SDK
        if api_key:
            os.environ.setdefault("GROQ_API_KEY", api_key)
            logger.info("Initializing GroqClient (api_key present, masked).")
        else:
            logger.warning("Initializing GroqClient without an API key configured.")

        super().__init__(api_key=api_key, model_name=model_name, **kwargs)

    def get_model(self, temperature: float, max_output_tokens: int) -> ChatGroq:
        return ChatGroq(model=self.model_name, temperature=temperature, max_tokens=max_output_tokens)

    async def _ainvoke(self, prompt: str, *, temperature: float, max_output_tokens: int) -> str:
        response = await self.get_model(temperature, max_output_tokens).ainvoke(prompt)
        return self._content_to_text(response.content)
