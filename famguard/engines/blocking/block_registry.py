"""
Block registry: per-child blocks against adults or other children.

Safety override: a child's own parent can never be blocked. ``is_blocked``
checks the override before looking at stored rows, so a stale row against a
parent (e.g. written before the adult became a parent of the child) has no
effect. ``list_active_blocks`` leaves such rows out, and ``set_block`` refuses
to write one at all.

Adult blocks are matched per account: a block placed against one adult
profile also covers every other profile held by the same account, so an adult
who is a family member in one family and a parent in another cannot slip past
a block by switching profile.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional, Union

from sqlalchemy import select, and_, exists
from sqlalchemy.orm import aliased
from sqlalchemy.ext.asyncio import AsyncSession

from famguard.database import insert_for
from famguard.kernel.exceptions import InvalidRequestError, ParentBlockError
from famguard.kernel.identity.types import IdentityKind
from famguard.kernel.models.base import generate_uuid, utcnow
from famguard.kernel.models.block import BlockedContact
from famguard.kernel.models.family import AdultProfile, AdultRole, ChildFamilyMembership
from famguard.kernel.relationships.relationship_graph import RelationshipGraph
from famguard.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AdultRef:
    adult_profile_id: uuid.UUID

    @property
    def key(self) -> str:
        return f"adult:{self.adult_profile_id}"


@dataclass(frozen=True)
class ChildRef:
    child_profile_id: uuid.UUID

    @property
    def key(self) -> str:
        return f"child:{self.child_profile_id}"


BlockTarget = Union[AdultRef, ChildRef]


def block_target_from_fields(
    adult_profile_id: Optional[uuid.UUID],
    child_profile_id: Optional[uuid.UUID],
) -> BlockTarget:
    """Build a target from the two optional fields; exactly one must be set."""
    if (adult_profile_id is None) == (child_profile_id is None):
        raise InvalidRequestError(
            "Exactly one of blocked_adult_profile_id or blocked_child_profile_id is required"
        )
    if adult_profile_id is not None:
        return AdultRef(adult_profile_id)
    return ChildRef(child_profile_id)


class BlockRegistry:
    """Stores and evaluates blocks held by children."""

    def __init__(self, session: AsyncSession, graph: Optional[RelationshipGraph] = None):
        self.session = session
        self.graph = graph or RelationshipGraph(session)

    def _target_clause(self, target: BlockTarget, user_id: Optional[uuid.UUID]):
        if isinstance(target, ChildRef):
            return BlockedContact.blocked_child_profile_id == target.child_profile_id
        if user_id is None:
            return BlockedContact.blocked_adult_profile_id == target.adult_profile_id
        profiles_of_account = select(AdultProfile.id).where(AdultProfile.user_id == user_id)
        return BlockedContact.blocked_adult_profile_id.in_(profiles_of_account)

    async def _is_protected_parent(self, child_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        # Suspended parent profiles stay protected too
        return await self.graph.is_parent_of_child(user_id, child_id, active_only=False)

    async def is_blocked(self, child_id: uuid.UUID, target: BlockTarget) -> bool:
        """
        True iff ``child_id`` holds an active block against ``target``.

        Always False when the target adult is a parent of the child.
        """
        user_id: Optional[uuid.UUID] = None
        if isinstance(target, AdultRef):
            user_id = await self.graph.user_of_adult_profile(target.adult_profile_id)
            if user_id is not None and await self._is_protected_parent(child_id, user_id):
                return False

        query = select(BlockedContact.id).where(
            and_(
                BlockedContact.blocker_child_id == child_id,
                BlockedContact.unblocked_at.is_(None),
                self._target_clause(target, user_id),
            )
        )
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def set_block(
        self,
        child_id: uuid.UUID,
        target: BlockTarget,
        blocked_by_kind: IdentityKind,
    ) -> BlockedContact:
        """
        Create or re-activate a block.

        Keyed by (blocker, target): re-blocking an unblocked contact reopens the
        existing row and the latest write wins.

        Raises:
            ParentBlockError: target is a parent of the child
            InvalidRequestError: self-block or unknown target
        """
        adult_id: Optional[uuid.UUID] = None
        child_target_id: Optional[uuid.UUID] = None

        if isinstance(target, ChildRef):
            if target.child_profile_id == child_id:
                raise InvalidRequestError("A child cannot block themself")
            if await self.graph.get_child_profile(target.child_profile_id) is None:
                raise InvalidRequestError("Block target does not exist")
            child_target_id = target.child_profile_id
        else:
            user_id = await self.graph.user_of_adult_profile(target.adult_profile_id)
            if user_id is None:
                raise InvalidRequestError("Block target does not exist")
            if await self._is_protected_parent(child_id, user_id):
                logger.warning(
                    "Rejected block against own parent",
                    extra={"child_id": str(child_id), "adult_profile_id": str(target.adult_profile_id)},
                )
                raise ParentBlockError()
            adult_id = target.adult_profile_id

        now = utcnow()
        stmt = insert_for(self.session, BlockedContact).values(
            id=generate_uuid(),
            blocker_child_id=child_id,
            blocked_adult_profile_id=adult_id,
            blocked_child_profile_id=child_target_id,
            target_key=target.key,
            blocked_by_kind=blocked_by_kind.value,
            blocked_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["blocker_child_id", "target_key"],
            set_={
                "blocked_by_kind": blocked_by_kind.value,
                "blocked_at": now,
                "parent_notified_at": None,
                "unblocked_at": None,
                "unblocked_by_parent_id": None,
            },
        ).returning(BlockedContact)

        result = await self.session.execute(
            stmt, execution_options={"populate_existing": True}
        )
        block = result.scalar_one()

        logger.info(
            "Block set",
            extra={"child_id": str(child_id), "target": target.key, "blocked_by": blocked_by_kind.value},
        )
        return block

    async def clear_block(
        self,
        child_id: uuid.UUID,
        target: BlockTarget,
        unblocked_by_parent_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """
        Soft-close every active block ``child_id`` holds against ``target``.

        For an adult target this covers all profiles of the same account.

        Returns:
            True if at least one block was closed
        """
        user_id: Optional[uuid.UUID] = None
        if isinstance(target, AdultRef):
            user_id = await self.graph.user_of_adult_profile(target.adult_profile_id)

        query = select(BlockedContact).where(
            and_(
                BlockedContact.blocker_child_id == child_id,
                BlockedContact.unblocked_at.is_(None),
                self._target_clause(target, user_id),
            )
        ).with_for_update()
        result = await self.session.execute(query)
        blocks = list(result.scalars().all())

        now = utcnow()
        for block in blocks:
            block.unblocked_at = now
            block.unblocked_by_parent_id = unblocked_by_parent_id
        await self.session.flush()

        if blocks:
            logger.info(
                "Block cleared",
                extra={"child_id": str(child_id), "target": target.key, "closed": len(blocks)},
            )
        return bool(blocks)

    def _protected_parent_clause(self, child_id: uuid.UUID):
        """Rows whose adult target's account is a parent of the child (any status)."""
        target_profile = aliased(AdultProfile)
        parent_profile = aliased(AdultProfile)
        child_families = select(ChildFamilyMembership.family_id).where(
            ChildFamilyMembership.child_profile_id == child_id
        )
        return exists(
            select(target_profile.id)
            .join(parent_profile, parent_profile.user_id == target_profile.user_id)
            .where(
                and_(
                    target_profile.id == BlockedContact.blocked_adult_profile_id,
                    parent_profile.role == AdultRole.PARENT,
                    parent_profile.family_id.in_(child_families),
                )
            )
        )

    async def list_active_blocks(self, child_id: uuid.UUID) -> List[BlockedContact]:
        """Active blocks held by the child, minus stale rows against its own parents."""
        query = (
            select(BlockedContact)
            .where(
                and_(
                    BlockedContact.blocker_child_id == child_id,
                    BlockedContact.unblocked_at.is_(None),
                    ~self._protected_parent_clause(child_id),
                )
            )
            .order_by(BlockedContact.blocked_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def mark_parent_notified(self, block_id: uuid.UUID) -> Optional[BlockedContact]:
        """Record that the parents were told about a block (delivery happens elsewhere)."""
        block = await self.session.get(BlockedContact, block_id)
        if block is None:
            return None
        if block.parent_notified_at is None:
            block.parent_notified_at = utcnow()
            await self.session.flush()
        return block
