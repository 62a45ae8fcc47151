"""
Pydantic schemas for API request/response validation.
"""

from famguard.schemas.common import ErrorResponse, SuccessResponse, HealthResponse
from famguard.schemas.communication import (
    ParticipantIn,
    ParticipantOut,
    PermissionCheckRequest,
    PermissionCheckResponse,
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
    CallCreate,
    CallResponse,
)
from famguard.schemas.blocking import BlockTargetIn, BlockResponse, BlockListResponse
from famguard.schemas.connection import (
    ConnectionCreate,
    ConnectionResponse,
    ConnectionListResponse,
    ConnectionCheckResponse,
)
from famguard.schemas.feature_flag import (
    FeatureFlagUpdate,
    FeatureFlagResponse,
    FeatureFlagListResponse,
)

__all__ = [
    # Common
    "ErrorResponse",
    "SuccessResponse",
    "HealthResponse",
    # Communication
    "ParticipantIn",
    "ParticipantOut",
    "PermissionCheckRequest",
    "PermissionCheckResponse",
    "ConversationCreate",
    "ConversationResponse",
    "MessageCreate",
    "MessageResponse",
    "CallCreate",
    "CallResponse",
    # Blocks
    "BlockTargetIn",
    "BlockResponse",
    "BlockListResponse",
    # Connections
    "ConnectionCreate",
    "ConnectionResponse",
    "ConnectionListResponse",
    "ConnectionCheckResponse",
    # Feature flags
    "FeatureFlagUpdate",
    "FeatureFlagResponse",
    "FeatureFlagListResponse",
]
