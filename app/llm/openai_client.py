from langchain_openai import ChatOpenAI

from .base import BaseLLMClient


class OpenAIClient(BaseLLMClient):
    """Wrapper around LangChain's OpenAI chat model."""

    provider = "openai"

    def __init__(self, api_key: str, model_name: str = "gpt-4o-mini", **kwargs):
        super().__init__(api_key=api_key, model_name=model_name, **kwargs)

    def get_model(self, temperature: float, max_output_tokens: int) -> ChatOpenAI:
        return ChatOpenAI(
            model=self.model_name,
            api_key=self.api_key or None,
            temperature=temperature,
            max_tokens=max_output_tokens,
        )

    async def _ainvoke(self, prompt: str, *, temperature: float, max_output_tokens: int) -> str:
        response = await self.get_model(temperature, max_output_tokens).ainvoke(prompt)
        return self._content_to_text(response.content)
