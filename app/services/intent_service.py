from __future__ import annotations

from app.llm.base import BaseLLMClient
from app.models.analysis import Intent
from app.models.user import UserContext
from app.parsers.structured import parse_intent_response
from app.prompts.templates import build_intent_prompt
from app.utils.logger import get_logger

logger = get_logger("services.intent")


class IntentInferencer:
    """Best-effort guess at what the user wants from a scan.

    Any failure (AI error, timeout, unparseable reply) yields `Intent.default()`.
    """

    def __init__(self, llm_client: BaseLLMClient, temperature: float = 0.5):
        self.llm_client = llm_client
        self.temperature = temperature

    async def infer(
        self,
        cue: str,
        user_context: UserContext | None = None,
        time_of_day: str | None = None,
        recent_analyses: list[str] | None = None,
    ) -> Intent:
        prompt = build_intent_prompt(
            cue, user_context, time_of_day=time_of_day, recent_analyses=recent_analyses
        )
        try:
            reply = await self.llm_client.agenerate(prompt, temperature=self.temperature)
        except Exception as e:
            logger.warning(f"Intent inference failed, using default intent: {e}")
            return Intent.default()

        intent = parse_intent_response(reply)
        if intent is None:
            logger.warning("Intent reply had no usable intent object, using default intent")
            return Intent.default()
        return intent
