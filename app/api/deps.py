"""Dependency providers that hand route handlers the services built in `create_app`."""

from fastapi import Request

from app.services.analysis_service import AnalysisService
from app.services.conversation_service import ConversationService


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service


def get_conversation_service(request: Request) -> ConversationService:
    return request.app.state.conversation_service
