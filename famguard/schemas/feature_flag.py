"""
Family feature flag schemas.
"""

import uuid
from datetime import datetime
from typing import Dict

from pydantic import BaseModel

from famguard.kernel.models.feature_flag import FeatureKey


class FeatureFlagUpdate(BaseModel):
    enabled: bool


class FeatureFlagResponse(BaseModel):
    family_id: uuid.UUID
    key: FeatureKey
    enabled: bool
    updated_at: datetime

    class Config:
        from_attributes = True


class FeatureFlagListResponse(BaseModel):
    family_id: uuid.UUID
    flags: Dict[str, bool]
