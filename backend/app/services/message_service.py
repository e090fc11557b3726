"""
Job-scoped messaging between an owner and their provider.
"""

from functools import partial
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenException, NotFoundException
from app.core.logging import get_logger
from app.db.postgres.models import Conversation, Job, Message, User
from app.db.postgres.repositories import ConversationRepository, JobRepository, UserRepository
from app.db.postgres.session import after_commit
from app.services.notification_gateway import get_connection_manager

logger = get_logger(__name__)


class MessageService:
    async def _get_job_for_participant(self, db: AsyncSession, job_id: UUID, user: User) -> Job:
        job = await JobRepository(db).get(job_id)
        if job is None:
            raise NotFoundException(message="Job not found", resource_type="Job", resource_id=str(job_id))
        if user.id not in (job.owner_id, job.provider_id):
            raise ForbiddenException(message="You are not a participant of this job")
        return job

    async def _get_or_create_conversation(self, db: AsyncSession, job: Job) -> Conversation:
        conversations = ConversationRepository(db)
        conversation = await conversations.get_by_job(job.id)
        if conversation is None:
            conversation = await conversations.create(
                {"job_id": job.id, "owner_id": job.owner_id, "provider_id": job.provider_id}
            )
            logger.info(f"Conversation {conversation.id} opened for job {job.id}")
        return conversation

    async def list_conversations(self, db: AsyncSession, user: User) -> list[dict[str, Any]]:
        """Inbox, most recently active first."""
        conversations = ConversationRepository(db)
        items = []
        for conversation in await conversations.list_for_user(user.id):
            other = conversation.provider if conversation.owner_id == user.id else conversation.owner
            items.append(
                {
                    "conversation": conversation,
                    "lastMessage": await conversations.last_message(conversation.id),
                    "unreadCount": await conversations.unread_count(conversation.id, user.id),
                    "otherUser": other,
                }
            )
        return items

    async def open_conversation(
        self, db: AsyncSession, job_id: UUID, user: User
    ) -> tuple[Conversation, list[Message], User | None]:
        """
        Get or create the job's conversation and mark the other side's messages read.

        Returns:
            The conversation, its messages oldest first, and the other participant
        """
        job = await self._get_job_for_participant(db, job_id, user)
        conversation = await self._get_or_create_conversation(db, job)

        conversations = ConversationRepository(db)
        await conversations.mark_read(conversation.id, user.id)
        messages = await conversations.messages(conversation.id)
        other = await UserRepository(db).get(conversation.other_participant_id(user.id))
        return conversation, messages, other

    async def send_message(self, db: AsyncSession, user: User, job_id: UUID, content: str) -> Message:
        job = await self._get_job_for_participant(db, job_id, user)
        conversation = await self._get_or_create_conversation(db, job)
        message = await ConversationRepository(db).add_message(conversation, user.id, content)

        recipient_id = conversation.other_participant_id(user.id)
        after_commit(
            db,
            partial(
                get_connection_manager().send_to_user,
                recipient_id,
                "newMessage",
                {
                    "id": message.id,
                    "conversationId": conversation.id,
                    "jobId": job.id,
                    "senderId": user.id,
                    "senderName": user.name,
                    "content": message.content,
                    "createdAt": message.created_at,
                },
            ),
        )

        return message

    async def mark_conversation_read(self, db: AsyncSession, conversation_id: UUID, user: User) -> int:
        conversations = ConversationRepository(db)
        conversation = await conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundException(
                message="Conversation not found",
                resource_type="Conversation",
                resource_id=str(conversation_id),
            )
        if user.id not in (conversation.owner_id, conversation.provider_id):
            raise ForbiddenException(message="You are not a participant of this conversation")
        return await conversations.mark_read(conversation.id, user.id)

    async def is_participant(self, db: AsyncSession, conversation_id: UUID, user_id: UUID) -> bool:
        conversation = await ConversationRepository(db).get(conversation_id)
        return conversation is not None and user_id in (conversation.owner_id, conversation.provider_id)


# Singleton instance
_message_service: MessageService | None = None


def get_message_service() -> MessageService:
    """Get or create message service instance."""
    global _message_service
    if _message_service is None:
        _message_service = MessageService()
    return _message_service
