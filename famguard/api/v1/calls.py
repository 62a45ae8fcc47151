"""
Call record endpoints.
"""

import uuid
from typing import List

from fastapi import APIRouter, Query, status

from famguard.api.deps import CurrentIdentity, Enforcement
from famguard.schemas.communication import CallCreate, CallResponse

router = APIRouter()


@router.post("/calls", response_model=CallResponse, status_code=status.HTTP_201_CREATED)
async def place_call(
    data: CallCreate,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Record a call attempt after the calling permission check."""
    return await enforcement.place_call(
        identity,
        data.callee.to_ref(),
        signaling=data.signaling,
        caller_family_id=data.own_family_id,
        callee_family_id=data.callee.family_id,
    )


@router.post("/calls/{call_id}/end", response_model=CallResponse)
async def end_call(
    call_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    return await enforcement.end_call(identity, call_id)


@router.get("/conversations/{conversation_id}/calls", response_model=List[CallResponse])
async def list_calls(
    conversation_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
    limit: int = Query(50, ge=1, le=200),
):
    return await enforcement.list_calls(identity, conversation_id, limit=limit)
