"""
Message endpoints.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query, status

from famguard.api.deps import CurrentIdentity, Enforcement
from famguard.schemas.communication import MessageCreate, MessageResponse

router = APIRouter()


@router.post("/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    data: MessageCreate,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Send a message. Any refusal is a plain 403."""
    return await enforcement.send_message(
        identity,
        data.receiver.to_ref(),
        data.body,
        sender_family_id=data.own_family_id,
        receiver_family_id=data.receiver.family_id,
    )


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    conversation_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = Query(None),
):
    """Message history, newest first. Participants and overseeing parents only."""
    return await enforcement.list_messages(identity, conversation_id, limit=limit, before=before)
