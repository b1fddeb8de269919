"""Conversations router — direct messages between users."""

from typing import List

from fastapi import APIRouter, Depends, Query, status

from codehire.dependencies import get_messaging
from codehire.models.user import User
from codehire.routers.auth import require_user
from codehire.schemas.conversation import ConversationOut, ConversationStart, MessageCreate, MessageOut
from codehire.services.messaging import MessagingService

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post("", response_model=ConversationOut, status_code=status.HTTP_201_CREATED)
async def start_conversation(
    payload: ConversationStart,
    current_user: User = Depends(require_user),
    messaging: MessagingService = Depends(get_messaging),
):
    """Open (or reuse) the direct conversation with another user."""
    conversation = await messaging.start_conversation(current_user.id, payload.user_id)
    return ConversationOut(
        id=conversation.id,
        participant_ids=await messaging.participants(conversation.id),
        created_at=conversation.created_at,
    )


@router.get("", response_model=List[ConversationOut])
async def list_conversations(
    current_user: User = Depends(require_user),
    messaging: MessagingService = Depends(get_messaging),
):
    conversations = await messaging.list_conversations(current_user.id)
    return [
        ConversationOut(
            id=c.id,
            participant_ids=await messaging.participants(c.id),
            created_at=c.created_at,
        )
        for c in conversations
    ]


@router.get("/{conversation_id}/messages", response_model=List[MessageOut])
async def list_messages(
    conversation_id: int,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_user),
    messaging: MessagingService = Depends(get_messaging),
):
    return await messaging.list_messages(conversation_id, current_user.id, limit=limit)


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: int,
    payload: MessageCreate,
    current_user: User = Depends(require_user),
    messaging: MessagingService = Depends(get_messaging),
):
    return await messaging.send_message(conversation_id, current_user.id, payload.content)
