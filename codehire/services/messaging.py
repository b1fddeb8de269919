"""Direct conversations between users, persisted like every other entity."""

from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codehire.database import store_operation
from codehire.errors import AuthorizationError, NotFoundError, ValidationError
from codehire.models.conversation import Conversation, ConversationParticipant
from codehire.models.message import Message
from codehire.models.user import User
from codehire.utils.clock import Clock, utcnow

MAX_MESSAGE_LENGTH = 5000


class MessagingService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def _ensure_participant(self, conversation_id: int, user_id: int) -> None:
        conversation = await self.db.get(Conversation, conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found.", conversation_id=conversation_id)
        member = await self.db.get(ConversationParticipant, (conversation_id, user_id))
        if member is None:
            raise AuthorizationError(
                "You are not a participant in this conversation.", conversation_id=conversation_id
            )

    @store_operation
    async def start_conversation(self, user_id: int, other_user_id: int) -> Conversation:
        """Return the existing direct conversation between two users, or open one."""
        if user_id == other_user_id:
            raise ValidationError("You cannot start a conversation with yourself.", field="user_id")
        if await self.db.get(User, other_user_id) is None:
            raise NotFoundError("User not found.", user_id=other_user_id)

        pair = (
            select(ConversationParticipant.conversation_id)
            .where(ConversationParticipant.user_id.in_((user_id, other_user_id)))
            .group_by(ConversationParticipant.conversation_id)
            .having(func.count(ConversationParticipant.user_id) == 2)
        )
        result = await self.db.execute(
            select(Conversation).where(Conversation.id.in_(pair)).order_by(Conversation.id.asc()).limit(1)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing

        conversation = Conversation(created_at=self.clock())
        try:
            self.db.add(conversation)
            await self.db.flush()
            self.db.add_all([
                ConversationParticipant(conversation_id=conversation.id, user_id=user_id),
                ConversationParticipant(conversation_id=conversation.id, user_id=other_user_id),
            ])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return conversation

    @store_operation
    async def list_conversations(self, user_id: int) -> List[Conversation]:
        result = await self.db.execute(
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(ConversationParticipant.user_id == user_id)
            .order_by(Conversation.created_at.desc(), Conversation.id.desc())
        )
        return list(result.scalars().all())

    @store_operation
    async def participants(self, conversation_id: int) -> List[int]:
        result = await self.db.execute(
            select(ConversationParticipant.user_id)
            .where(ConversationParticipant.conversation_id == conversation_id)
            .order_by(ConversationParticipant.user_id)
        )
        return list(result.scalars().all())

    @store_operation
    async def send_message(self, conversation_id: int, sender_id: int, content: str) -> Message:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message cannot be empty.", field="content")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message must be at most {MAX_MESSAGE_LENGTH} characters.", field="content"
            )
        await self._ensure_participant(conversation_id, sender_id)

        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            created_at=self.clock(),
        )
        self.db.add(message)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return message

    @store_operation
    async def list_messages(self, conversation_id: int, user_id: int, limit: int = 50) -> List[Message]:
        """Most recent ``limit`` messages, oldest first."""
        await self._ensure_participant(conversation_id, user_id)
        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))
