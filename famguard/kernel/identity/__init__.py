"""
Identity Core - session verification and typed identity resolution.
"""

from famguard.kernel.identity.types import Identity, IdentityKind, ParticipantRef
from famguard.kernel.identity.jwt import (
    JWTManager,
    SessionClaims,
    SessionType,
    create_access_token,
    create_child_session_token,
    verify_token,
)
from famguard.kernel.identity.resolver import IdentityResolver

__all__ = [
    "Identity",
    "IdentityKind",
    "ParticipantRef",
    "JWTManager",
    "SessionClaims",
    "SessionType",
    "create_access_token",
    "create_child_session_token",
    "verify_token",
    "IdentityResolver",
]
