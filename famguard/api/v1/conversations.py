"""
Conversation endpoints.
"""

from fastapi import APIRouter, status

from famguard.api.deps import CurrentIdentity, Enforcement
from famguard.schemas.communication import (
    ConversationCreate,
    ConversationResponse,
    ParticipantOut,
)

router = APIRouter()


@router.post("/conversations", response_model=ConversationResponse, status_code=status.HTTP_200_OK)
async def open_conversation(
    data: ConversationCreate,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Get or create the conversation between the caller and ``other``."""
    conversation = await enforcement.open_conversation(
        identity,
        data.other.to_ref(),
        actor_family_id=data.own_family_id,
        other_family_id=data.other.family_id,
    )
    participants = await enforcement.partitioner.get_participants(conversation.id)
    return ConversationResponse(
        id=conversation.id,
        type=conversation.type,
        participants=[ParticipantOut(id=p.id, kind=p.kind) for p in participants],
        created_at=conversation.created_at,
    )
