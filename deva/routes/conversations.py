import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deva import errors
from deva.database import models
from deva.database.config import get_db
from deva.routes.users import get_user_or_404
from deva.schemas import (
    ConversationCreate,
    ConversationResponse,
    ConversationStatus,
    ConversationStatusUpdate,
    Message,
    MessageCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["conversations"])


async def get_conversation_or_404(conversation_id: str, db: AsyncSession) -> models.Conversation:
    result = await db.execute(
        select(models.Conversation).where(models.Conversation.id == conversation_id)
    )
    conversation = result.scalars().first()

    if not conversation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")

    return conversation


@router.post(
    "/conversations", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED
)
async def create_conversation(payload: ConversationCreate, db: AsyncSession = Depends(get_db)):
    """Start a conversation with the user's first message"""
    await get_user_or_404(payload.user_id, db)

    now = models.utcnow()
    conversation = models.Conversation(
        user_id=payload.user_id,
        status=ConversationStatus.ACTIVE.value,
        created_at=now,
        updated_at=now,
        messages=[
            models.ConversationMessage(
                position=0, role="user", content=payload.first_message, timestamp=now
            )
        ],
    )
    db.add(conversation)
    await db.commit()

    logger.info("Conversation started", extra={"conversation_id": conversation.id})
    return ConversationResponse.model_validate(conversation)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
)
async def add_message(
    conversation_id: str, payload: MessageCreate, db: AsyncSession = Depends(get_db)
):
    """Append a message; only active conversations accept new messages"""
    conversation = await get_conversation_or_404(conversation_id, db)
    if conversation.status != ConversationStatus.ACTIVE.value:
        raise errors.InvalidTransition(f"Conversation is {conversation.status}")

    now = models.utcnow()
    message = models.ConversationMessage(
        position=len(conversation.messages),
        role=payload.role.value,
        content=payload.content,
        timestamp=now,
        issue_preview=payload.issue_preview.model_dump(mode="json") if payload.issue_preview else None,
    )
    conversation.messages.append(message)
    conversation.updated_at = now

    await db.commit()
    return Message.model_validate(message)


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(conversation_id: str, db: AsyncSession = Depends(get_db)):
    """Get conversation by ID"""
    return ConversationResponse.model_validate(await get_conversation_or_404(conversation_id, db))


@router.patch("/conversations/{conversation_id}/status", response_model=ConversationResponse)
async def update_conversation_status(
    conversation_id: str, payload: ConversationStatusUpdate, db: AsyncSession = Depends(get_db)
):
    """Move a conversation forward; completed and abandoned are final"""
    conversation = await get_conversation_or_404(conversation_id, db)
    current = ConversationStatus(conversation.status)

    if not current.can_transition_to(payload.status):
        raise errors.InvalidTransition(
            f"Cannot move conversation from {current.value} to {payload.status.value}"
        )

    if current != payload.status:
        conversation.status = payload.status.value
        conversation.updated_at = models.utcnow()
        await db.commit()
        logger.info(
            "Conversation status changed",
            extra={"conversation_id": conversation_id, "status": payload.status.value},
        )

    return ConversationResponse.model_validate(conversation)


@router.get("/users/{user_id}/conversations", response_model=list[ConversationResponse])
async def list_user_conversations(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Most recently updated conversations for a user"""
    result = await db.execute(
        select(models.Conversation)
        .where(models.Conversation.user_id == user_id)
        .order_by(models.Conversation.updated_at.desc())
        .limit(limit)
    )
    return [ConversationResponse.model_validate(c) for c in result.scalars().all()]
