"""
Messaging endpoints.

Each job has one conversation between its owner and its provider. New
messages are also pushed live over the notification WebSocket.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.api.v1.schemas.auth import UserSummary
from app.api.v1.schemas.common import SuccessResponse
from app.api.v1.schemas.message import (
    ChatMessageResponse,
    ConversationDetail,
    ConversationResponse,
    ConversationSummary,
    MessageCreate,
)
from app.db.postgres.models import User
from app.db.postgres.session import get_db
from app.services.message_service import MessageService, get_message_service

router = APIRouter()


@router.get("/conversations", response_model=List[ConversationSummary], summary="List conversations")
async def list_conversations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
) -> List[ConversationSummary]:
    """Caller's conversations, most recently active first."""
    items = await message_service.list_conversations(db, current_user)
    return [
        ConversationSummary(
            **ConversationResponse.model_validate(item["conversation"]).model_dump(),
            lastMessage=ChatMessageResponse.model_validate(item["lastMessage"]) if item["lastMessage"] else None,
            unreadCount=item["unreadCount"],
            otherUser=UserSummary.model_validate(item["otherUser"]) if item["otherUser"] else None,
        )
        for item in items
    ]


@router.get(
    "/conversations/{job_id}",
    response_model=ConversationDetail,
    summary="Open the conversation of a job",
)
async def get_conversation(
    job_id: UUID = Path(..., description="Job ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
) -> ConversationDetail:
    """
    Get or create the job's conversation.

    Messages from the other participant are marked read. Messages are
    returned oldest first.
    """
    conversation, messages, other = await message_service.open_conversation(db, job_id, current_user)
    return ConversationDetail(
        **ConversationResponse.model_validate(conversation).model_dump(),
        messages=[ChatMessageResponse.model_validate(message) for message in messages],
        otherUser=UserSummary.model_validate(other) if other else None,
    )


@router.post(
    "",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
):
    return await message_service.send_message(db, current_user, data.job_id, data.content)


@router.post(
    "/conversations/{conversation_id}/read",
    response_model=SuccessResponse,
    summary="Mark a conversation read",
)
async def mark_conversation_read(
    conversation_id: UUID = Path(..., description="Conversation ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    message_service: MessageService = Depends(get_message_service),
) -> SuccessResponse:
    await message_service.mark_conversation_read(db, conversation_id, current_user)
    return SuccessResponse()
