"""LLM client implementations and the provider factory."""

from app.llm.base import BaseLLMClient

PROVIDERS = ("gemini", "groq", "openai", "anthropic")


def create_llm_client(settings) -> BaseLLMClient:
    """Build the client for `settings.llm_provider`.

    Provider modules are imported lazily so only the selected SDK has to be importable.
    """
    provider = settings.llm_provider.strip().lower()
    common = {
        "max_output_tokens": settings.max_output_tokens,
        "timeout": settings.llm_timeout_seconds,
        "temperature": settings.analysis_temperature,
    }
    if settings.llm_model:
        common["model_name"] = settings.llm_model

    if provider == "gemini":
        from app.llm.gemini_client import GeminiClient

        return GeminiClient(
            api_key=settings.GEMINI_API_KEY, safety_threshold=settings.safety_threshold, **common
        )
    if provider == "groq":
        from app.llm.groq_client import GroqClient

        return GroqClient(api_key=settings.GROQ_API_KEY, **common)
    if provider == "openai":
        from app.llm.openai_client import OpenAIClient

        return OpenAIClient(api_key=settings.OPENAI_API_KEY, **common)
    if provider == "anthropic":
        from app.llm.anthropic_client import AnthropicClient

        return AnthropicClient(api_key=settings.ANTHROPIC_API_KEY, **common)

    raise ValueError(f"Unknown llm_provider '{settings.llm_provider}', expected one of {PROVIDERS}")


__all__ = ["BaseLLMClient", "PROVIDERS", "create_llm_client"]
