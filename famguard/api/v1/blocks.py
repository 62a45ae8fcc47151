"""
Block endpoints for a child's block list.
"""

import uuid

from fastapi import APIRouter, status

from famguard.api.deps import CurrentIdentity, Enforcement
from famguard.engines.blocking.block_registry import block_target_from_fields
from famguard.schemas.blocking import BlockListResponse, BlockResponse, BlockTargetIn
from famguard.schemas.common import SuccessResponse

router = APIRouter()


@router.get("/children/{child_id}/blocks", response_model=BlockListResponse)
async def list_blocks(
    child_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Active blocks held by the child. The child and their parents may read."""
    blocks = await enforcement.list_blocks(identity, child_id)
    return BlockListResponse(
        items=[BlockResponse.model_validate(b) for b in blocks],
        total=len(blocks),
    )


@router.post("/children/{child_id}/blocks", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
async def block_contact(
    child_id: uuid.UUID,
    data: BlockTargetIn,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """
    Block an adult or a child on behalf of ``child_id``.

    Blocking the child's own parent is rejected with 400.
    """
    target = block_target_from_fields(data.blocked_adult_profile_id, data.blocked_child_profile_id)
    return await enforcement.block_contact(identity, child_id, target)


@router.post("/children/{child_id}/blocks/clear", response_model=SuccessResponse)
async def unblock_contact(
    child_id: uuid.UUID,
    data: BlockTargetIn,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Lift a block. Parents only."""
    target = block_target_from_fields(data.blocked_adult_profile_id, data.blocked_child_profile_id)
    cleared = await enforcement.unblock_contact(identity, child_id, target)
    return SuccessResponse(
        message="Block cleared" if cleared else "No active block",
        data={"cleared": cleared},
    )
