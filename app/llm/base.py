import asyncio
from abc import ABC
from abc import abstractmethod
from typing import Any

from app.utils.errors import AiServiceFailure
from app.utils.logger import get_logger

logger = get_logger("llm.base")


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients.

    All providers (Gemini, OpenAI, Groq, Anthropic) implement `_ainvoke`; callers go through
    `agenerate`, which applies the timeout and maps every provider failure to
    `AiServiceFailure`.
    """

    provider: str = "base"

    def __init__(
        self,
        api_key: str | None,
        model_name: str,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        timeout: float = 30.0,
    ):
        """Initialize client.

        Do NOT raise on missing API key here to allow tests/mocks. Validation of credentials should
        happen at startup or via an explicit `validate()` call so unit tests can construct clients
        without keys.
        """
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout

    @abstractmethod
    async def _ainvoke(self, prompt: str, *, temperature: float, max_output_tokens: int) -> str:
        """Send one rendered prompt to the provider and return the reply text."""

    async def agenerate(
        self,
        prompt: str,
        *,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        timeout: float | None = None,
    ) -> str:
        """Run text generation for a single prompt with an explicit deadline."""
        timeout = timeout if timeout is not None else self.timeout
        try:
            return await asyncio.wait_for(
                self._ainvoke(
                    prompt,
                    temperature=self.temperature if temperature is None else temperature,
                    max_output_tokens=max_output_tokens or self.max_output_tokens,
                ),
                timeout=timeout,
            )
        except AiServiceFailure:
            raise
        except TimeoutError:
            logger.error(
                "LLM request timed out",
                extra={"provider": self.provider, "model": self.model_name, "timeout": timeout},
            )
            raise AiServiceFailure(
                f"AI service timed out after {timeout} seconds",
                details={"provider": self.provider},
            ) from None
        except Exception as e:
            logger.error(
                "LLM request failed",
                extra={"provider": self.provider, "model": self.model_name, "error": str(e)},
            )
            raise AiServiceFailure(
                details={"provider": self.provider, "error": f"{type(e).__name__}: {e}"}
            ) from e

    @staticmethod
    def _content_to_text(content: Any) -> str:
        """Flatten LangChain message content (str or list of parts) into text."""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts = []
            for part in content:
                if isinstance(part, str):
                    parts.append(part)
                elif isinstance(part, dict) and isinstance(part.get("text"), str):
                    parts.append(part["text"])
            return "".join(parts)
        return str(content or "")

    def is_configured(self) -> bool:
        """Return True when the client has required credentials configured."""
        return bool(self.api_key)

    def validate(self) -> None:
        """Validate client configuration and raise a clear error if missing.

        Call this during application startup to fail fast on missing credentials.
        """
        if not self.is_configured():
            raise ValueError(
                f"LLM client {self.__class__.__name__} is not configured with an API key"
            )

    async def aclose(self) -> None:
        """Release provider resources; most clients hold none."""
