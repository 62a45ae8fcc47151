"""
Kernel Data Models

Core SQLAlchemy models: family structure, blocks, connections, feature flags,
conversations and the communication records written behind the permission check.
"""

from famguard.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from famguard.kernel.models.family import (
    Family,
    HouseholdType,
    AdultProfile,
    AdultRole,
    ProfileStatus,
    ChildProfile,
    ChildFamilyMembership,
)
from famguard.kernel.models.block import BlockedContact
from famguard.kernel.models.connection import (
    ChildConnection,
    ConnectionStatus,
    LIVE_STATUSES,
    connection_pair_key,
)
from famguard.kernel.models.feature_flag import FamilyFeatureFlag, FeatureKey
from famguard.kernel.models.conversation import (
    Conversation,
    ConversationParticipant,
    ConversationType,
)
from famguard.kernel.models.communication import Message, CallRecord, CallStatus

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # Family structure
    "Family",
    "HouseholdType",
    "AdultProfile",
    "AdultRole",
    "ProfileStatus",
    "ChildProfile",
    "ChildFamilyMembership",
    # Blocks
    "BlockedContact",
    # Connections
    "ChildConnection",
    "ConnectionStatus",
    "LIVE_STATUSES",
    "connection_pair_key",
    # Feature flags
    "FamilyFeatureFlag",
    "FeatureKey",
    # Conversations
    "Conversation",
    "ConversationParticipant",
    "ConversationType",
    # Communication
    "Message",
    "CallRecord",
    "CallStatus",
]
