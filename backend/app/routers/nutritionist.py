"""
Nutritionist chat API endpoints.
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.chat_history import Conversation
from app.models.user import FamilyProfile, User
from app.schemas import (
    ApplyActionRequest,
    ChatRequest,
    ChatResponse,
    ConversationCreate,
    ConversationDetailResponse,
    ConversationResponse,
)
from app.services.nutritionist_service import nutritionist_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _summary(conversation: Conversation) -> dict:
    last_msg = conversation.messages[-1] if conversation.messages else None
    return {
        "id": conversation.id,
        "title": conversation.title or "New Conversation",
        "profile_id": conversation.profile_id,
        "last_message": (last_msg.content[:50] + "...") if last_msg else None,
        "created_at": conversation.created_at,
        "updated_at": conversation.updated_at,
    }


@router.get("/conversations", response_model=List[ConversationResponse])
def list_conversations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List conversations, most recent first."""
    conversations = (
        db.query(Conversation)
        .filter(Conversation.user_id == current_user.id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .all()
    )
    return [_summary(c) for c in conversations]


@router.post("/conversations", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
def create_conversation(
    request: ConversationCreate = Body(default=ConversationCreate()),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a new conversation."""
    if request.profile_id is not None:
        get_owned(db, FamilyProfile, request.profile_id, current_user, "Profile")
    conversation = Conversation(
        user_id=current_user.id, profile_id=request.profile_id, title=request.title
    )
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return _summary(conversation)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetailResponse)
def get_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    conversation = get_owned(db, Conversation, conversation_id, current_user, "Conversation")
    return {**_summary(conversation), "messages": conversation.messages}


@router.delete("/conversations/{conversation_id}")
def delete_conversation(
    conversation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    conversation = get_owned(db, Conversation, conversation_id, current_user, "Conversation")
    db.delete(conversation)
    db.commit()
    return {"success": True}


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Send a message and get the nutritionist's reply. A new conversation is
    started when no conversationId is given.
    """
    return nutritionist_service.chat(
        db,
        current_user,
        request.message,
        conversation_id=request.conversation_id,
        profile_id=request.profile_id,
    )


@router.get("/suggested-prompts")
def suggested_prompts(
    profile_id: Optional[int] = Query(None, alias="profileId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    profile = None
    if profile_id is not None:
        profile = get_owned(db, FamilyProfile, profile_id, current_user, "Profile")
    return {"prompts": nutritionist_service.suggested_prompts(db, current_user, profile)}


@router.post("/apply-action")
def apply_action(
    request: ApplyActionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    return nutritionist_service.apply_action(db, current_user, request.type, request.payload)
