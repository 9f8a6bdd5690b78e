from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from models import Conversation, InsertMessage, Message, User, NotificationType, TargetType
from schemas.messages import ConversationCreate, MessageCreate, ConversationSummary, UnreadCount
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user, ensure_not_blocked, notify

router = APIRouter(prefix="/api/messages", tags=["messages"])

def _get_conversation_for(storage: IStorage, conversation_id: str, user: User) -> Conversation:
    conversation = storage.get_conversation(conversation_id)
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if not conversation.has_participant(user.id):
        raise HTTPException(status_code=403, detail="Not a participant in this conversation")
    return conversation

def _summarize(storage: IStorage, conversation: Conversation, user_id: str) -> ConversationSummary:
    latest = storage.get_messages(conversation.id, limit=1)
    return ConversationSummary(
        **conversation.model_dump(),
        other_user=storage.get_profile(conversation.other_participant(user_id)),
        last_message=latest[-1] if latest else None,
    )

@router.get("/conversations", response_model=List[ConversationSummary])
def list_conversations(current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return [_summarize(storage, c, current_user.id) for c in storage.get_conversations_for_user(current_user.id)]

@router.post("/conversations", response_model=ConversationSummary)
def start_conversation(data: ConversationCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    if data.recipient_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot message yourself")
    if not storage.get_user(data.recipient_id):
        raise HTTPException(status_code=404, detail="User not found")
    ensure_not_blocked(storage, current_user.id, data.recipient_id)
    recipient_profile = storage.get_profile(data.recipient_id)
    if recipient_profile and not recipient_profile.accepts_messages:
        raise HTTPException(status_code=403, detail="This user is not accepting messages")
    conversation = storage.create_conversation(current_user.id, data.recipient_id)
    return _summarize(storage, conversation, current_user.id)

@router.get("/unread-count", response_model=UnreadCount)
def unread_count(current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return {"count": storage.get_unread_message_count(current_user.id)}

@router.get("/conversations/{conversation_id}/messages", response_model=List[Message])
def list_messages(
    conversation_id: str,
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    storage: IStorage = Depends(get_storage),
):
    """A page of messages in chronological order; pass ``before`` to page back"""
    _get_conversation_for(storage, conversation_id, current_user)
    return storage.get_messages(conversation_id, limit=limit, before=before)

@router.post("/conversations/{conversation_id}/messages", response_model=Message, status_code=201)
def send_message(conversation_id: str, data: MessageCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    conversation = _get_conversation_for(storage, conversation_id, current_user)
    recipient_id = conversation.other_participant(current_user.id)
    ensure_not_blocked(storage, current_user.id, recipient_id)
    message = storage.create_message(
        InsertMessage(conversation_id=conversation_id, sender_id=current_user.id, body=data.body)
    )
    notify(storage, recipient_id, NotificationType.MESSAGE, actor_id=current_user.id,
           target_type=TargetType.MESSAGE, target_id=message.id, metadata={"conversation_id": conversation_id})
    return message

@router.post("/conversations/{conversation_id}/messages/{message_id}/read", response_model=Message)
def mark_message_read(conversation_id: str, message_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    _get_conversation_for(storage, conversation_id, current_user)
    message = storage.mark_message_read(conversation_id, message_id, current_user.id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    return message
