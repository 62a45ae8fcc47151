"""
Identity resolution: session or caller-named participant -> typed Identity.

Every failure path returns None. Callers must treat None as a denial; no
distinct "not found" signal is ever surfaced.
"""

import uuid
from typing import Optional

from famguard.kernel.identity.jwt import SessionClaims, SessionType
from famguard.kernel.identity.types import Identity, IdentityKind, ParticipantRef
from famguard.kernel.models.family import AdultProfile, AdultRole
from famguard.kernel.relationships.relationship_graph import RelationshipGraph
from famguard.logging_config import get_logger

logger = get_logger(__name__)

_ROLE_TO_KIND = {
    AdultRole.PARENT.value: IdentityKind.PARENT,
    AdultRole.FAMILY_MEMBER.value: IdentityKind.FAMILY_MEMBER,
}


def _adult_identity(profile: AdultProfile) -> Identity:
    role = profile.role.value if hasattr(profile.role, "value") else profile.role
    return Identity(
        id=profile.id,
        kind=_ROLE_TO_KIND[role],
        family_ids=frozenset({profile.family_id}),
        backing_user_ref=profile.user_id,
    )


class IdentityResolver:
    """Maps sessions and participant references to typed identities."""

    def __init__(self, graph: RelationshipGraph):
        self.graph = graph

    async def resolve_adult(
        self,
        user_id: uuid.UUID,
        profile_id: Optional[uuid.UUID] = None,
    ) -> Optional[Identity]:
        """
        Resolve an authenticated adult account to one of its adult profiles.

        An account holding several active profiles must name the one it acts
        as; without ``profile_id`` the request is ambiguous and resolves to
        None. A named profile must belong to the account and be active.
        """
        profiles = await self.graph.adult_profiles_of_user(user_id)
        if profile_id is not None:
            for profile in profiles:
                if profile.id == profile_id:
                    return _adult_identity(profile)
            logger.info(
                "Adult profile not resolvable for account",
                extra={"user_id": str(user_id), "profile_id": str(profile_id)},
            )
            return None

        if len(profiles) != 1:
            logger.info(
                "Adult account has %d active profiles; profile must be named",
                len(profiles),
                extra={"user_id": str(user_id)},
            )
            return None
        return _adult_identity(profiles[0])

    async def resolve_child(self, child_profile_id: uuid.UUID) -> Optional[Identity]:
        """Resolve an anonymous child session; revoked or family-less children fail."""
        child = await self.graph.get_child_profile(child_profile_id)
        if child is None or not child.is_active:
            return None

        families = await self.graph.families_of_child(child_profile_id)
        if not families:
            return None

        return Identity(
            id=child.id,
            kind=IdentityKind.CHILD,
            family_ids=frozenset(families),
            backing_user_ref=None,
        )

    async def resolve_participant(self, ref: ParticipantRef) -> Optional[Identity]:
        """
        Resolve a caller-named ``{id, kind}`` pair.

        The stored role must agree with the claimed kind: naming a family
        member profile as a parent (or the reverse) resolves to None.
        """
        if ref.kind is IdentityKind.CHILD:
            return await self.resolve_child(ref.id)

        profile = await self.graph.get_adult_profile(ref.id)
        if profile is None or not profile.is_active:
            return None

        identity = _adult_identity(profile)
        if identity.kind is not ref.kind:
            return None
        return identity

    async def resolve_session(
        self,
        claims: SessionClaims,
        profile_id: Optional[uuid.UUID] = None,
    ) -> Optional[Identity]:
        """Dispatch on session type."""
        if claims.type is SessionType.ACCESS:
            return await self.resolve_adult(claims.sub, profile_id)
        if claims.type is SessionType.CHILD_SESSION:
            return await self.resolve_child(claims.sub)
        return None
