"""
FastAPI dependencies for authentication, identity resolution and database sessions.
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from famguard.database import async_session_maker
from famguard.kernel.identity.jwt import verify_token
from famguard.kernel.identity.resolver import IdentityResolver
from famguard.kernel.identity.types import Identity
from famguard.kernel.relationships.relationship_graph import RelationshipGraph
from famguard.orchestration.enforcement import EnforcementLayer


# Security scheme
security = HTTPBearer(auto_error=False)

PROFILE_HEADER = "X-Profile-Id"


async def get_db() -> AsyncSession:
    """Dependency that yields database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_identity(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
    profile_id: Annotated[Optional[uuid.UUID], Header(alias=PROFILE_HEADER)] = None,
) -> Identity:
    """
    Resolve the session to a typed identity or raise 401.

    Adults holding more than one profile send ``X-Profile-Id`` to choose the
    one they act as. The failure detail does not say which step failed.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    claims = verify_token(credentials.credentials)
    identity = None
    if claims:
        resolver = IdentityResolver(RelationshipGraph(db))
        identity = await resolver.resolve_session(claims, profile_id)
    
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


async def get_enforcement(db: DbSession) -> EnforcementLayer:
    """Enforcement layer bound to the request session."""
    return EnforcementLayer(db)


Enforcement = Annotated[EnforcementLayer, Depends(get_enforcement)]


def get_request_id(request: Request) -> Optional[str]:
    """Get request correlation ID (set by RequestIdMiddleware)."""
    return getattr(request.state, "request_id", None)
