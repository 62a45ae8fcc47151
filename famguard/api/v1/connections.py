"""
Child-to-child connection endpoints.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, status

from famguard.api.deps import CurrentIdentity, Enforcement
from famguard.kernel.exceptions import InvalidRequestError
from famguard.kernel.models.connection import ConnectionStatus
from famguard.schemas.connection import (
    ConnectionCheckResponse,
    ConnectionCreate,
    ConnectionListResponse,
    ConnectionResponse,
)

router = APIRouter()


@router.post("/connections", response_model=ConnectionResponse, status_code=status.HTTP_201_CREATED)
async def request_connection(
    data: ConnectionCreate,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """
    Request a connection. A repeated request, in either direction, returns
    the existing pending or approved connection.
    """
    requester_child_id = data.requester_child_id
    if requester_child_id is None:
        if not identity.is_child:
            raise InvalidRequestError("requester_child_id is required")
        requester_child_id = identity.id

    return await enforcement.request_connection(
        identity,
        requester_child_id,
        data.target_child_id,
        requester_family_id=data.requester_family_id,
        target_family_id=data.target_family_id,
    )


@router.get("/connections/between", response_model=ConnectionCheckResponse)
async def check_connection(
    identity: CurrentIdentity,
    enforcement: Enforcement,
    child_a: uuid.UUID = Query(...),
    child_b: uuid.UUID = Query(...),
):
    approved = await enforcement.check_connection(identity, child_a, child_b)
    return ConnectionCheckResponse(child_a=child_a, child_b=child_b, approved=approved)


@router.post("/connections/{connection_id}/approve", response_model=ConnectionResponse)
async def approve_connection(
    connection_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    return await enforcement.approve_connection(identity, connection_id)


@router.post("/connections/{connection_id}/reject", response_model=ConnectionResponse)
async def reject_connection(
    connection_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    return await enforcement.reject_connection(identity, connection_id)


@router.post("/connections/{connection_id}/block", response_model=ConnectionResponse)
async def block_connection(
    connection_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Refuse the connection and prevent the pair from asking again."""
    return await enforcement.block_connection(identity, connection_id)


@router.get("/children/{child_id}/connections", response_model=ConnectionListResponse)
async def list_connections(
    child_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
    status_filter: Optional[ConnectionStatus] = Query(None, alias="status"),
):
    connections = await enforcement.list_connections(identity, child_id, status_filter)
    return ConnectionListResponse(
        items=[ConnectionResponse.model_validate(c) for c in connections],
        total=len(connections),
    )
