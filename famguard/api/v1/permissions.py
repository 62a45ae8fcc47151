"""
Permission check endpoint.

Lets a client ask before it offers a "message" or "call" action. The answer is
a bare boolean; the reason for a denial is never returned.
"""

from fastapi import APIRouter

from famguard.api.deps import CurrentIdentity, Enforcement
from famguard.schemas.communication import PermissionCheckRequest, PermissionCheckResponse

router = APIRouter()


@router.post("/permissions/check", response_model=PermissionCheckResponse)
async def check_permission(
    data: PermissionCheckRequest,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Whether the caller may currently message or call ``other``."""
    allowed = await enforcement.check_permission(
        identity,
        data.other.to_ref(),
        mode=data.mode,
        actor_family_id=data.own_family_id,
        other_family_id=data.other.family_id,
    )
    return PermissionCheckResponse(allowed=allowed)
