"""
Relationship graph: durable family-membership facts.

This is the trusted, policy-free accessor that the permission engine and the
enforcement layer use to answer "who belongs to which family". It runs plain
lookups on the session it is given and never consults the permission engine,
so evaluating a policy for a family can never recurse into itself. It must
not be exposed to untrusted callers directly.
"""

import uuid
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from famguard.kernel.models.family import (
    AdultProfile,
    AdultRole,
    ChildFamilyMembership,
    ChildProfile,
    ProfileStatus,
)


class RelationshipGraph:
    """Read-only family membership lookups."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_adult_profile(self, adult_profile_id: uuid.UUID) -> Optional[AdultProfile]:
        return await self.session.get(AdultProfile, adult_profile_id)

    async def get_child_profile(self, child_profile_id: uuid.UUID) -> Optional[ChildProfile]:
        return await self.session.get(ChildProfile, child_profile_id)

    async def user_of_adult_profile(self, adult_profile_id: uuid.UUID) -> Optional[uuid.UUID]:
        """Backing account id of an adult profile."""
        query = select(AdultProfile.user_id).where(AdultProfile.id == adult_profile_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def adult_profiles_of_user(
        self,
        user_id: uuid.UUID,
        active_only: bool = True,
    ) -> List[AdultProfile]:
        """All adult profiles held by one account."""
        query = select(AdultProfile).where(AdultProfile.user_id == user_id)
        if active_only:
            query = query.where(AdultProfile.status == ProfileStatus.ACTIVE)
        result = await self.session.execute(query.order_by(AdultProfile.created_at))
        return list(result.scalars().all())

    async def is_child_of_family(self, child_id: uuid.UUID, family_id: uuid.UUID) -> bool:
        query = select(ChildFamilyMembership.id).where(
            and_(
                ChildFamilyMembership.child_profile_id == child_id,
                ChildFamilyMembership.family_id == family_id,
            )
        )
        result = await self.session.execute(query)
        return result.first() is not None

    async def families_of_child(self, child_id: uuid.UUID) -> Set[uuid.UUID]:
        """Every family the child belongs to (one, or two for shared custody)."""
        query = select(ChildFamilyMembership.family_id).where(
            ChildFamilyMembership.child_profile_id == child_id
        )
        result = await self.session.execute(query)
        return {row[0] for row in result.all()}

    async def families_of_adult(
        self,
        user_id: uuid.UUID,
        role: AdultRole,
        active_only: bool = True,
    ) -> Set[uuid.UUID]:
        query = select(AdultProfile.family_id).where(
            and_(
                AdultProfile.user_id == user_id,
                AdultProfile.role == role,
            )
        )
        if active_only:
            query = query.where(AdultProfile.status == ProfileStatus.ACTIVE)
        result = await self.session.execute(query)
        return {row[0] for row in result.all()}

    async def family_of_adult(self, user_id: uuid.UUID, role: AdultRole) -> Optional[uuid.UUID]:
        """
        The family in which ``user_id`` holds ``role``.

        Returns None when there is no such profile, and also when there is more
        than one: picking one arbitrarily would make decisions depend on row
        order.
        """
        families = await self.families_of_adult(user_id, role)
        if len(families) != 1:
            return None
        return next(iter(families))

    async def is_parent_in_families(
        self,
        user_id: uuid.UUID,
        family_ids: Iterable[uuid.UUID],
        active_only: bool = True,
    ) -> bool:
        """True if the account holds a parent profile in any of ``family_ids``."""
        family_ids = list(family_ids)
        if not family_ids:
            return False
        query = select(AdultProfile.id).where(
            and_(
                AdultProfile.user_id == user_id,
                AdultProfile.role == AdultRole.PARENT,
                AdultProfile.family_id.in_(family_ids),
            )
        )
        if active_only:
            query = query.where(AdultProfile.status == ProfileStatus.ACTIVE)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def is_parent_of_child(
        self,
        user_id: uuid.UUID,
        child_id: uuid.UUID,
        active_only: bool = True,
    ) -> bool:
        """
        Ownership: the account holds a parent profile in any family of the child.

        Matching against every membership means a child in two households is
        owned by the parents of both.
        """
        families = await self.families_of_child(child_id)
        return await self.is_parent_in_families(user_id, families, active_only=active_only)

