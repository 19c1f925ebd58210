"""/v1/users/{user_id}/conversations - chatbot conversations the user kept"""

from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from astral_gateway.api.v1.schemas import (
    ChatMessageSchema,
    ConversationRequest,
    ConversationResponse,
    ConversationsResponse,
)
from astral_gateway.api.dependencies import get_now
from astral_gateway.infrastructure.database.models import ChatConversationRecord
from astral_gateway.infrastructure.database.session import get_db
from astral_gateway.infrastructure.database.repositories import ConversationRepository

router = APIRouter()


def _conversation_response(record: ChatConversationRecord) -> ConversationResponse:
    return ConversationResponse(
        conversation_id=record.id,
        created_at=record.created_at,
        messages=[ChatMessageSchema(**m) for m in record.messages],
    )


@router.post("/users/{user_id}/conversations", response_model=ConversationResponse, status_code=201)
def save_conversation(
    user_id: str,
    request_body: ConversationRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    messages = [m.to_domain() for m in request_body.messages]
    record = ConversationRepository(db).save_conversation(user_id, messages, now)
    db.commit()
    return _conversation_response(record)


@router.get("/users/{user_id}/conversations", response_model=ConversationsResponse)
def list_conversations(user_id: str, db: Session = Depends(get_db)):
    """Saved conversations, newest first"""
    records = ConversationRepository(db).list_conversations(user_id)
    return ConversationsResponse(user_id=user_id, conversations=[_conversation_response(r) for r in records])
