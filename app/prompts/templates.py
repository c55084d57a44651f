"""Prompt templates for ingredient analysis, intent inference and follow-up chat.

Templates are rendered to plain strings. Optional context lines are only emitted when the
underlying data is present so prompts never carry empty placeholders.
"""

from __future__ import annotations

from langchain_core.prompts import PromptTemplate

from app.models.analysis import AnalysisResult
from app.models.analysis import Intent
from app.models.conversation import Message
from app.models.user import UserContext

BASE_ANALYSIS_FRAMING = """You are an expert nutritionist and food scientist with deep knowledge of ingredient safety, health impacts, and dietary considerations.

Your role is to analyze food ingredients with:
1. TRANSPARENCY: Show your reasoning process
2. BALANCE: Acknowledge both benefits and concerns
3. CONTEXT: Consider real-world usage patterns
4. PERSONALIZATION: Adapt to the user's specific needs

Do not make absolute claims without evidence, ignore context and dosage, or skip the reasoning process.
Explain why something matters, discuss tradeoffs thoughtfully and show uncertainty when appropriate."""

ANALYSIS_RESPONSE_FORMAT = """{
  "summary": {
    "verdict": "healthy|moderate|concerning|avoid",
    "score": 0-100,
    "oneLineSummary": "brief takeaway"
  },
  "healthImpact": {
    "positives": ["positive aspect"],
    "concerns": ["concern"],
    "tradeoffs": ["tradeoff"]
  },
  "reasoningSteps": [
    {
      "step": 1,
      "thought": "what I'm analyzing",
      "evidence": ["fact"],
      "conclusion": "what this means"
    }
  ],
  "personalizedAdvice": {
    "relevant": true,
    "specificConcerns": ["concern"],
    "alternatives": ["alternative"],
    "whyRelevant": "explanation"
  },
  "ingredients": [
    {"name": "ingredient name", "category": "category", "analysis": "brief analysis"}
  ]
}"""

INTENT_RESPONSE_FORMAT = """{
  "primaryGoal": "specific goal",
  "confidence": 0.0-1.0,
  "reasoning": "why you think this",
  "specificConcerns": ["concern"],
  "suggestedActions": ["action"]
}"""

CHAT_RESPONSE_FORMAT = """{
  "message": "your reply",
  "reasoning": {"steps": ["short step"], "confidence": 0.0-1.0}
}"""

analysis_prompt = PromptTemplate.from_template(
    """{framing}

INGREDIENT TEXT TO ANALYZE:
{ingredients}
{user_context}{intent}
RESPONSE FORMAT:
Respond with ONLY a JSON object with the following structure:
{response_format}"""
)

intent_prompt = PromptTemplate.from_template(
    """Analyze this user activity to understand their underlying intent and needs.

USER QUERY: "{query}"
{context}
Determine:
1. Primary goal (what they really want to know)
2. Underlying concerns
3. Best way to help them

Respond with ONLY a JSON object, no explanations:
{response_format}"""
)

chat_prompt = PromptTemplate.from_template(
    """You are an AI nutrition co-pilot helping users understand food ingredients.

CONVERSATION HISTORY:
{history}
{analysis_context}
USER MESSAGE: "{message}"

Respond in a conversational, helpful way. Focus on:
1. Directly answering their question
2. Providing context and reasoning
3. Offering actionable guidance
4. Maintaining a supportive tone

Keep responses concise but informative (2-4 sentences unless more detail is needed).
You may reply with plain text or with a JSON object shaped like:
{response_format}"""
)


def _section(title: str, lines: list[str]) -> str:
    if not lines:
        return ""
    return f"\n{title}:\n" + "\n".join(lines) + "\n"


def _user_context_lines(user_context: UserContext | None) -> list[str]:
    if user_context is None:
        return []
    prefs = user_context.preferences
    facts = [
        ("Dietary Restrictions", prefs.dietary_restrictions),
        ("Health Goals", prefs.health_goals),
        ("Known Allergens", prefs.allergens),
        ("Common Concerns", user_context.behavior_profile.common_concerns),
    ]
    return [f"- {label}: {', '.join(values)}" for label, values in facts if values]


def build_analysis_prompt(
    text: str, user_context: UserContext | None = None, intent: Intent | None = None
) -> str:
    intent_lines = []
    if intent is not None:
        intent_lines.append(f"- Primary goal: {intent.primary_goal}")
        if intent.specific_concerns:
            intent_lines.append(f"- Specific concerns: {', '.join(intent.specific_concerns)}")

    return analysis_prompt.format(
        framing=BASE_ANALYSIS_FRAMING,
        ingredients=text,
        user_context=_section("USER CONTEXT", _user_context_lines(user_context)),
        intent=_section("USER INTENT (focus the analysis on this)", intent_lines),
        response_format=ANALYSIS_RESPONSE_FORMAT,
    )


def build_intent_prompt(
    cue: str,
    user_context: UserContext | None = None,
    time_of_day: str | None = None,
    recent_analyses: list[str] | None = None,
) -> str:
    lines = []
    if recent_analyses:
        lines.append(f"- Recently analyzed: {', '.join(recent_analyses)}")
    if user_context is not None and user_context.preferences.health_goals:
        lines.append(f"- User goals: {', '.join(user_context.preferences.health_goals)}")
    if time_of_day:
        lines.append(f"- Time of day: {time_of_day}")

    return intent_prompt.format(
        query=cue,
        context=_section("CONTEXT", lines),
        response_format=INTENT_RESPONSE_FORMAT,
    )


def build_chat_prompt(
    message: str,
    history: list[Message],
    analysis: AnalysisResult | None = None,
    main_concerns: list[str] | None = None,
    history_limit: int = 10,
) -> str:
    recent = history[-history_limit:] if history_limit > 0 else []
    history_text = "\n".join(f"{m.role.value}: {m.content}" for m in recent) or "(none)"

    context_lines = []
    if analysis is not None:
        context_lines.append(f"- Product verdict: {analysis.verdict.value}")
        names = [i.name for i in analysis.ingredients[:5]]
        if names:
            context_lines.append(f"- Key ingredients: {', '.join(names)}")
    if main_concerns:
        context_lines.append(f"- Main concerns: {', '.join(main_concerns)}")

    return chat_prompt.format(
        history=history_text,
        analysis_context=_section("CURRENT ANALYSIS CONTEXT", context_lines),
        message=message,
        response_format=CHAT_RESPONSE_FORMAT,
    )
