from google import genai
from google.genai import types

from app.utils.errors import AiServiceFailure
from app.utils.logger import get_logger

from .base import BaseLLMClient

logger = get_logger("llm.gemini")

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiClient(BaseLLMClient):
    """Gemini models through the google-genai SDK, with content-safety thresholds."""

    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.0-flash",
        safety_threshold: str = "BLOCK_MEDIUM_AND_ABOVE",
        top_p: float = 0.95,
        top_k: int = 40,
        **kwargs,
    ):
        super().__init__(api_key=api_key, model_name=model_name, **kwargs)
        self.safety_threshold = safety_threshold
        self.top_p = top_p
        self.top_k = top_k
        self._client: genai.Client | None = None

    def get_model(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                logger.warning("Initializing GeminiClient without an API key configured.")
            self._client = genai.Client(api_key=self.api_key or None)
        return self._client

    def _generation_config(
        self, temperature: float, max_output_tokens: int
    ) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_output_tokens=max_output_tokens,
            safety_settings=[
                types.SafetySetting(category=category, threshold=self.safety_threshold)
                for category in HARM_CATEGORIES
            ],
        )

    async def _ainvoke(self, prompt: str, *, temperature: float, max_output_tokens: int) -> str:
        response = await self.get_model().aio.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config=self._generation_config(temperature, max_output_tokens),
        )

        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None)
        if block_reason:
            raise AiServiceFailure(
                "AI service blocked the request for content safety",
                details={"provider": self.provider, "block_reason": str(block_reason)},
            )

        text = response.text
        if not text:
            raise AiServiceFailure(
                "AI service returned an empty response", details={"provider": self.provider}
            )
        return text
