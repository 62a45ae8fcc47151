"""
Test data builders shared by the unit and integration suites.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from famguard.kernel.identity.jwt import create_access_token, create_child_session_token
from famguard.kernel.identity.types import IdentityKind, ParticipantRef
from famguard.kernel.models import (
    AdultProfile,
    AdultRole,
    ChildFamilyMembership,
    ChildProfile,
    Family,
    HouseholdType,
)


@dataclass(frozen=True)
class FamilyWorld:
    """
    Ids of a small seeded world.

    - family_a: parent_a, member_a (grandparent), child_a, child_a2
    - family_b: parent_b, member_b, child_b
    - family_c: parent_c, the second household of child_shared
    - child_shared belongs to family_a and family_c
    - dual_user holds a family-member profile in family_a (dual_member_a)
      and a parent profile in family_b (dual_parent_b)
    """

    family_a: uuid.UUID
    family_b: uuid.UUID
    family_c: uuid.UUID
    parent_a_user: uuid.UUID
    parent_a: uuid.UUID
    parent_b_user: uuid.UUID
    parent_b: uuid.UUID
    parent_c_user: uuid.UUID
    parent_c: uuid.UUID
    member_a_user: uuid.UUID
    member_a: uuid.UUID
    member_b_user: uuid.UUID
    member_b: uuid.UUID
    dual_user: uuid.UUID
    dual_member_a: uuid.UUID
    dual_parent_b: uuid.UUID
    child_a: uuid.UUID
    child_a2: uuid.UUID
    child_b: uuid.UUID
    child_shared: uuid.UUID


def parent(profile_id: uuid.UUID) -> ParticipantRef:
    return ParticipantRef(profile_id, IdentityKind.PARENT)


def member(profile_id: uuid.UUID) -> ParticipantRef:
    return ParticipantRef(profile_id, IdentityKind.FAMILY_MEMBER)


def child(child_id: uuid.UUID) -> ParticipantRef:
    return ParticipantRef(child_id, IdentityKind.CHILD)


async def add_family(
    session: AsyncSession,
    name: str,
    household_type: HouseholdType = HouseholdType.SINGLE,
) -> uuid.UUID:
    family = Family(id=uuid.uuid4(), name=name, household_type=household_type)
    session.add(family)
    await session.flush()
    return family.id


async def add_adult(
    session: AsyncSession,
    user_id: uuid.UUID,
    family_id: uuid.UUID,
    role: AdultRole,
    display_name: Optional[str] = None,
) -> uuid.UUID:
    profile = AdultProfile(
        id=uuid.uuid4(),
        user_id=user_id,
        family_id=family_id,
        role=role,
        display_name=display_name,
    )
    session.add(profile)
    await session.flush()
    return profile.id


async def add_child(
    session: AsyncSession,
    *family_ids: uuid.UUID,
    display_name: Optional[str] = None,
) -> uuid.UUID:
    profile = ChildProfile(id=uuid.uuid4(), display_name=display_name)
    session.add(profile)
    await session.flush()
    for family_id in family_ids:
        session.add(ChildFamilyMembership(id=uuid.uuid4(), child_profile_id=profile.id, family_id=family_id))
    await session.flush()
    return profile.id


async def seed_world(session: AsyncSession) -> FamilyWorld:
    family_a = await add_family(session, "Smith")
    family_b = await add_family(session, "Jones")
    family_c = await add_family(session, "Smith (second household)", HouseholdType.TWO_HOUSEHOLD)

    parent_a_user, parent_b_user, parent_c_user = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    member_a_user, member_b_user, dual_user = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()

    return FamilyWorld(
        family_a=family_a,
        family_b=family_b,
        family_c=family_c,
        parent_a_user=parent_a_user,
        parent_a=await add_adult(session, parent_a_user, family_a, AdultRole.PARENT, "Alex"),
        parent_b_user=parent_b_user,
        parent_b=await add_adult(session, parent_b_user, family_b, AdultRole.PARENT, "Blair"),
        parent_c_user=parent_c_user,
        parent_c=await add_adult(session, parent_c_user, family_c, AdultRole.PARENT, "Casey"),
        member_a_user=member_a_user,
        member_a=await add_adult(session, member_a_user, family_a, AdultRole.FAMILY_MEMBER, "Grandma"),
        member_b_user=member_b_user,
        member_b=await add_adult(session, member_b_user, family_b, AdultRole.FAMILY_MEMBER, "Uncle"),
        dual_user=dual_user,
        dual_member_a=await add_adult(session, dual_user, family_a, AdultRole.FAMILY_MEMBER, "Dana"),
        dual_parent_b=await add_adult(session, dual_user, family_b, AdultRole.PARENT, "Dana"),
        child_a=await add_child(session, family_a, display_name="Sam"),
        child_a2=await add_child(session, family_a, display_name="Jo"),
        child_b=await add_child(session, family_b, display_name="Kim"),
        child_shared=await add_child(session, family_a, family_c, display_name="Riley"),
    )


def adult_headers(user_id: uuid.UUID, profile_id: Optional[uuid.UUID] = None) -> dict:
    """Authorization headers for an adult account, optionally naming the acting profile."""
    token, _, _ = create_access_token(user_id)
    headers = {"Authorization": f"Bearer {token}"}
    if profile_id is not None:
        headers["X-Profile-Id"] = str(profile_id)
    return headers


def child_headers(child_id: uuid.UUID) -> dict:
    token, _, _ = create_child_session_token(child_id)
    return {"Authorization": f"Bearer {token}"}
