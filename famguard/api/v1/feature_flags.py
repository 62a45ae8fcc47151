"""
Family feature flag endpoints.
"""

import uuid

from fastapi import APIRouter

from famguard.api.deps import CurrentIdentity, Enforcement
from famguard.kernel.models.feature_flag import FeatureKey
from famguard.schemas.feature_flag import (
    FeatureFlagListResponse,
    FeatureFlagResponse,
    FeatureFlagUpdate,
)

router = APIRouter()


@router.get("/families/{family_id}/flags", response_model=FeatureFlagListResponse)
async def list_feature_flags(
    family_id: uuid.UUID,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Every known flag for the family; unset flags read as disabled."""
    flags = await enforcement.list_feature_flags(identity, family_id)
    return FeatureFlagListResponse(family_id=family_id, flags=flags)


@router.put("/families/{family_id}/flags/{key}", response_model=FeatureFlagResponse)
async def set_feature_flag(
    family_id: uuid.UUID,
    key: FeatureKey,
    data: FeatureFlagUpdate,
    identity: CurrentIdentity,
    enforcement: Enforcement,
):
    """Turn a capability on or off. Parents of the family only."""
    return await enforcement.set_feature_flag(identity, family_id, key, data.enabled)
