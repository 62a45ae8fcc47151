"""
Block schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class BlockTargetIn(BaseModel):
    """Exactly one of the two fields must be set."""
    
    blocked_adult_profile_id: Optional[uuid.UUID] = None
    blocked_child_profile_id: Optional[uuid.UUID] = None


class BlockResponse(BaseModel):
    id: uuid.UUID
    blocker_child_id: uuid.UUID
    blocked_adult_profile_id: Optional[uuid.UUID]
    blocked_child_profile_id: Optional[uuid.UUID]
    blocked_by_kind: str
    blocked_at: datetime
    parent_notified_at: Optional[datetime] = None
    unblocked_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BlockListResponse(BaseModel):
    items: List[BlockResponse]
    total: int
