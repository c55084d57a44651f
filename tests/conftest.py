"""Test configuration and fixtures for the ingredient copilot application."""

import json
import os

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.database.memory_store import InMemoryStore  # noqa: E402
from app.graphs.analysis_graph import AnalysisGraph  # noqa: E402
from app.llm.base import BaseLLMClient  # noqa: E402
from app.ocr.base import BaseOCRClient  # noqa: E402
from app.ocr.base import OcrResult  # noqa: E402
from app.services.analysis_service import AnalysisService  # noqa: E402
from app.services.conversation_service import ConversationContextTracker  # noqa: E402
from app.services.conversation_service import ConversationService  # noqa: E402
from app.services.intent_service import IntentInferencer  # noqa: E402
from app.services.user_context import UserContextAssembler  # noqa: E402

USER_ID = "user-1"

ANALYSIS_REPLY = {
    "summary": {"verdict": "moderate", "score": 62, "oneLineSummary": "Fine in moderation"},
    "healthImpact": {
        "positives": ["Whole grain oats"],
        "concerns": ["Added sugar", "Artificial color"],
        "tradeoffs": ["Convenient but sweet"],
    },
    "reasoningSteps": [
        {
            "step": 1,
            "thought": "Checked sugar position",
            "evidence": ["Sugar is listed second"],
            "conclusion": "Sugar content is significant",
        }
    ],
    "personalizedAdvice": {
        "relevant": True,
        "specificConcerns": ["Sugar"],
        "alternatives": ["Plain oats"],
        "whyRelevant": "You are reducing sugar",
    },
    "ingredients": [
        {"name": "Oats", "category": "grain", "analysis": "Good fiber"},
        {"name": "Sugar", "category": "sweetener", "analysis": "Added sugar"},
    ],
}

INTENT_REPLY = {
    "primaryGoal": "check-sugar",
    "confidence": 0.8,
    "reasoning": "User tracks sugar",
    "specificConcerns": ["sugar"],
    "suggestedActions": ["compare-products"],
}


class FakeLLMClient(BaseLLMClient):
    """Scripted LLM client.

    Replies are chosen by prompt kind; each reply may be a string or an exception to raise.
    """

    provider = "fake"

    def __init__(self, analysis=None, intent=None, chat="Happy to help with that."):
        super().__init__(api_key="test-key", model_name="fake-model", timeout=5)
        self.replies = {
            "analysis": f"Here you go:\n```json\n{json.dumps(ANALYSIS_REPLY)}\n```" if analysis is None else analysis,
            "intent": json.dumps(INTENT_REPLY) if intent is None else intent,
            "chat": chat,
        }
        self.calls: list[tuple[str, str, float]] = []

    @staticmethod
    def kind_of(prompt: str) -> str:
        if "INGREDIENT TEXT TO ANALYZE" in prompt:
            return "analysis"
        if "CONVERSATION HISTORY" in prompt:
            return "chat"
        return "intent"

    def calls_of(self, kind: str) -> list[tuple[str, str, float]]:
        return [c for c in self.calls if c[0] == kind]

    async def _ainvoke(self, prompt: str, *, temperature: float, max_output_tokens: int) -> str:
        kind = self.kind_of(prompt)
        self.calls.append((kind, prompt, temperature))
        reply = self.replies[kind]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeOCRClient(BaseOCRClient):
    def __init__(self, text: str = "Ingredients: Oats, Sugar, Salt", confidence: float = 91.5, error=None):
        self.text = text
        self.confidence = confidence
        self.error = error
        self.calls = 0

    async def extract_text(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return OcrResult(text=self.text, confidence=self.confidence)


def build_services(store, llm_client, ocr_client):
    graph = AnalysisGraph(
        llm_client=llm_client,
        ocr_client=ocr_client,
        context_assembler=UserContextAssembler(store),
        intent_inferencer=IntentInferencer(llm_client, temperature=0.5),
    )
    analysis_service = AnalysisService(store, graph, model_name=llm_client.model_name)
    conversation_service = ConversationService(
        store, ConversationContextTracker(llm_client, temperature=0.8)
    )
    return analysis_service, conversation_service


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def llm_client():
    return FakeLLMClient()


@pytest.fixture
def ocr_client():
    return FakeOCRClient()


@pytest.fixture
def services(store, llm_client, ocr_client):
    return build_services(store, llm_client, ocr_client)


@pytest.fixture
def analysis_service(services):
    return services[0]


@pytest.fixture
def conversation_service(services):
    return services[1]


@pytest.fixture
def client(store, llm_client, ocr_client):
    """Test client wired to in-memory storage and scripted collaborators."""
    from app.app import create_app

    app = create_app(store=store, llm_client=llm_client, ocr_client=ocr_client)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user_headers():
    return {"X-User-Id": USER_ID}
