"""Chat endpoints: one assistant turn, new conversations, history."""

import logging

from fastapi import APIRouter

from .....core.domain.utils import normalize_text
from ..deps import CitizenId, Orchestrator
from ..models import (
    ChatMessageRequest,
    ChatMessageResponse,
    ConversationHistoryResponse,
    ErrorResponse,
    HistoryMessage,
    NewConversationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post(
    "/message",
    response_model=ChatMessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Empty message"}},
)
def send_message(
    request: ChatMessageRequest, orchestrator: Orchestrator, citizen_id: CitizenId
) -> ChatMessageResponse:
    """Send a message to the assistant and get its reply.

    Provider outages do not fail the request; the reply degrades to a
    knowledge-base summary or a "try again" message.
    """
    reply = orchestrator.handle_message(
        request.conversation_id, normalize_text(request.message), citizen_id
    )
    return ChatMessageResponse(
        response=reply.content,
        message_id=reply.message_id,
        requires_action=reply.requires_action,
        function_call=reply.function_call,
    )


@router.post("/conversation", response_model=NewConversationResponse)
def new_conversation(orchestrator: Orchestrator, citizen_id: CitizenId) -> NewConversationResponse:
    conversation = orchestrator.start_conversation(citizen_id)
    return NewConversationResponse(
        conversation_id=conversation.conversation_id,
        is_anonymous=conversation.is_anonymous,
    )


@router.get(
    "/history/{conversation_id}",
    response_model=ConversationHistoryResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Conversation belongs to another citizen"},
        404: {"model": ErrorResponse, "description": "Unknown conversation"},
    },
)
def conversation_history(
    conversation_id: str, orchestrator: Orchestrator, citizen_id: CitizenId
) -> ConversationHistoryResponse:
    conversation = orchestrator.history(conversation_id, citizen_id)
    return ConversationHistoryResponse(
        conversation_id=conversation.conversation_id,
        is_anonymous=conversation.is_anonymous,
        last_message_at=conversation.last_activity_at.isoformat(),
        messages=[
            HistoryMessage(
                id=m.message_id,
                role=m.role.value,
                content=m.content,
                metadata=m.metadata,
                created_at=m.created_at.isoformat(),
            )
            for m in conversation.messages
        ],
    )
