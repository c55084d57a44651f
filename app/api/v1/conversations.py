from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query

from app.api.deps import get_conversation_service
from app.models.payload import MessagePayload
from app.models.payload import StartConversationPayload
from app.models.response import Response
from app.services.conversation_service import ConversationService
from app.utils.security import get_current_user_id

router = APIRouter(tags=["Conversations"])


@router.post(
    "",
    response_model=Response,
    status_code=201,
    summary="Start a conversation about an analysis",
    responses={404: {"description": "Analysis not found"}},
)
async def start_conversation(
    payload: StartConversationPayload,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    conversation = await service.start(user_id, payload.analysis_id)
    return Response(
        success=True,
        message="Conversation started",
        data={
            "conversationId": conversation.id,
            "context": conversation.context.model_dump(by_alias=True),
        },
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=Response,
    summary="Ask a follow-up question",
    responses={404: {"description": "Conversation not found"}, 502: {"description": "AI service unavailable"}},
)
async def send_message(
    conversation_id: str,
    payload: MessagePayload,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    reply = await service.send_message(user_id, conversation_id, payload.message)
    return Response(success=True, data=reply)


@router.get("/{conversation_id}", response_model=Response, summary="Fetch a conversation with its messages")
async def get_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    conversation = await service.get(user_id, conversation_id)
    return Response(success=True, data=conversation.model_dump(by_alias=True, mode="json"))


@router.get("", response_model=Response, summary="List the caller's conversations")
async def list_conversations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    return Response(success=True, data=await service.list_conversations(user_id, page, limit))
