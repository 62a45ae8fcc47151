"""
Child-to-child connection schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from famguard.kernel.models.connection import ConnectionStatus


class ConnectionCreate(BaseModel):
    """
    Connection request.

    ``requester_child_id`` may be omitted when the caller is the requesting
    child; a parent must name which of their children is asking.
    """
    
    target_child_id: uuid.UUID
    requester_child_id: Optional[uuid.UUID] = None
    requester_family_id: Optional[uuid.UUID] = None
    target_family_id: Optional[uuid.UUID] = None


class ConnectionResponse(BaseModel):
    id: uuid.UUID
    requester_child_id: uuid.UUID
    requester_family_id: uuid.UUID
    target_child_id: uuid.UUID
    target_family_id: uuid.UUID
    status: ConnectionStatus
    requested_by_child: bool
    approved_by_parent_id: Optional[uuid.UUID] = None
    decided_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ConnectionListResponse(BaseModel):
    items: List[ConnectionResponse]
    total: int


class ConnectionCheckResponse(BaseModel):
    child_a: uuid.UUID
    child_b: uuid.UUID
    approved: bool
