"""
Permission check, conversation, message and call schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from famguard.kernel.identity.types import IdentityKind, ParticipantRef
from famguard.kernel.models.communication import CallStatus
from famguard.kernel.models.conversation import ConversationType
from famguard.orchestration.enforcement import CommunicationMode


class ParticipantIn(BaseModel):
    """The other party, as named by the caller."""
    
    id: uuid.UUID
    kind: IdentityKind
    family_id: Optional[uuid.UUID] = None

    def to_ref(self) -> ParticipantRef:
        return ParticipantRef(id=self.id, kind=self.kind)


class ParticipantOut(BaseModel):
    id: uuid.UUID
    kind: IdentityKind

    class Config:
        from_attributes = True


class PermissionCheckRequest(BaseModel):
    """May the caller message (or call) this participant right now?"""
    
    other: ParticipantIn
    mode: CommunicationMode = CommunicationMode.MESSAGE
    own_family_id: Optional[uuid.UUID] = None


class PermissionCheckResponse(BaseModel):
    allowed: bool


class ConversationCreate(BaseModel):
    other: ParticipantIn
    own_family_id: Optional[uuid.UUID] = None


class ConversationResponse(BaseModel):
    id: uuid.UUID
    type: ConversationType
    participants: List[ParticipantOut] = []
    created_at: datetime

    class Config:
        from_attributes = True


class MessageCreate(BaseModel):
    """Message send request. The body is stored as given."""
    
    receiver: ParticipantIn
    body: str = Field(..., min_length=1, max_length=10000)
    own_family_id: Optional[uuid.UUID] = None


class MessageResponse(BaseModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    sender_id: uuid.UUID
    sender_kind: IdentityKind
    receiver_id: uuid.UUID
    receiver_kind: IdentityKind
    body: str
    created_at: datetime
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CallCreate(BaseModel):
    """Call placement request. ``signaling`` is relayed untouched."""
    
    callee: ParticipantIn
    signaling: Optional[Dict[str, Any]] = None
    own_family_id: Optional[uuid.UUID] = None


class CallResponse(BaseModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    caller_id: uuid.UUID
    caller_kind: IdentityKind
    callee_id: uuid.UUID
    callee_kind: IdentityKind
    status: CallStatus
    signaling: Optional[Dict[str, Any]] = None
    created_at: datetime
    ended_at: Optional[datetime] = None

    class Config:
        from_attributes = True
