"""
Permission engine: may A and B communicate?

Rules are evaluated in a fixed order and the first one that decides wins:

1. Adult-adult veto: two adult-kind identities never communicate.
2. Blocking: the child side's active blocks against the other party, and for
   two children each side's blocks against the other. The parental safety
   override lives in the block registry.
3. Child-to-child gate: an approved connection AND the capability flag
   (``child_to_child_messaging`` or ``child_to_child_calls``) enabled in any
   family of either child.
4. Family scope: a family member reaches a child only if the member's family
   is one of the child's families.
5. Ownership: a parent reaches a child only if the parent's account holds a
   parent profile in one of the child's families.
6. Otherwise allow.

The decision is symmetric, read-only and fail-closed. Identities that do not
resolve, inconsistent family hints and database errors all yield False. The
reason for a denial is logged and never returned.
"""

import uuid
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from famguard.engines.blocking.block_registry import AdultRef, BlockRegistry, ChildRef
from famguard.engines.connections.connection_service import ConnectionService
from famguard.engines.flags.feature_flag_service import FeatureFlagService
from famguard.kernel.identity.resolver import IdentityResolver
from famguard.kernel.identity.types import Identity, IdentityKind, ParticipantRef
from famguard.kernel.models.feature_flag import FeatureKey
from famguard.kernel.relationships.relationship_graph import RelationshipGraph
from famguard.logging_config import get_logger

logger = get_logger(__name__)

Participant = Union[Identity, ParticipantRef]


class PermissionEngine:
    """
    Composes the relationship graph, block registry, connection store and
    feature flags into a single boolean decision.

    The engine never writes. Callers gating a write must run the check and
    the write in the same transaction (see ``EnforcementLayer``).
    """

    def __init__(self, session: AsyncSession, graph: Optional[RelationshipGraph] = None):
        self.session = session
        self.graph = graph or RelationshipGraph(session)
        self.resolver = IdentityResolver(self.graph)
        self.blocks = BlockRegistry(session, self.graph)
        self.connections = ConnectionService(session, self.graph)
        self.flags = FeatureFlagService(session, self.graph)

    async def can_communicate(
        self,
        sender: Participant,
        receiver: Participant,
        sender_family_id: Optional[uuid.UUID] = None,
        receiver_family_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """Decide whether ``sender`` may message ``receiver``."""
        return await self.check(
            sender,
            receiver,
            FeatureKey.CHILD_TO_CHILD_MESSAGING,
            sender_family_id=sender_family_id,
            receiver_family_id=receiver_family_id,
        )

    async def can_call(
        self,
        sender: Participant,
        receiver: Participant,
        sender_family_id: Optional[uuid.UUID] = None,
        receiver_family_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """Same rules as ``can_communicate`` with the calls flag for children."""
        return await self.check(
            sender,
            receiver,
            FeatureKey.CHILD_TO_CHILD_CALLS,
            sender_family_id=sender_family_id,
            receiver_family_id=receiver_family_id,
        )

    async def check(
        self,
        sender: Participant,
        receiver: Participant,
        flag_key: FeatureKey,
        sender_family_id: Optional[uuid.UUID] = None,
        receiver_family_id: Optional[uuid.UUID] = None,
    ) -> bool:
        try:
            return await self._evaluate(
                sender, receiver, flag_key, sender_family_id, receiver_family_id
            )
        except SQLAlchemyError:
            logger.exception(
                "Permission lookup failed; denying",
                extra={"sender_id": str(sender.id), "receiver_id": str(receiver.id)},
            )
            return False

    def _deny(self, rule: str, sender: Participant, receiver: Participant) -> bool:
        logger.info(
            "Communication denied",
            extra={
                "rule": rule,
                "sender_id": str(sender.id),
                "sender_kind": sender.kind.value,
                "receiver_id": str(receiver.id),
                "receiver_kind": receiver.kind.value,
            },
        )
        return False

    async def _resolve(
        self,
        participant: Participant,
        family_hint: Optional[uuid.UUID],
    ) -> Optional[Identity]:
        # Resolved identities are re-read from the graph
        ref = participant.ref() if isinstance(participant, Identity) else participant
        identity = await self.resolver.resolve_participant(ref)
        if identity is None:
            return None
        # A caller-supplied family must agree with the graph
        if family_hint is not None and family_hint not in identity.family_ids:
            return None
        return identity

    async def _evaluate(
        self,
        sender: Participant,
        receiver: Participant,
        flag_key: FeatureKey,
        sender_family_id: Optional[uuid.UUID],
        receiver_family_id: Optional[uuid.UUID],
    ) -> bool:
        # 1. Adult-adult veto, decided on kind alone
        if sender.kind.is_adult and receiver.kind.is_adult:
            return self._deny("adult_adult", sender, receiver)

        if sender.id == receiver.id:
            return self._deny("self", sender, receiver)

        s = await self._resolve(sender, sender_family_id)
        r = await self._resolve(receiver, receiver_family_id)
        if s is None or r is None:
            return self._deny("unresolved", sender, receiver)

        if s.is_child and r.is_child:
            # 2. Blocks in both directions
            if await self.blocks.is_blocked(s.id, ChildRef(r.id)):
                return self._deny("blocked", sender, receiver)
            if await self.blocks.is_blocked(r.id, ChildRef(s.id)):
                return self._deny("blocked", sender, receiver)

            # 3. Child-to-child gate
            if not await self.connections.is_approved_between(s.id, r.id):
                return self._deny("no_connection", sender, receiver)
            if not await self.flags.is_enabled_for_children(s.id, r.id, flag_key):
                return self._deny("flag_disabled", sender, receiver)
            return True

        if s.is_child:
            child, adult, child_hint = s, r, sender_family_id
        else:
            child, adult, child_hint = r, s, receiver_family_id

        # 2. The child's blocks against the adult cover both directions
        if await self.blocks.is_blocked(child.id, AdultRef(adult.id)):
            return self._deny("blocked", sender, receiver)

        # 4. Family scope
        if adult.kind is IdentityKind.FAMILY_MEMBER:
            member_family = adult.family_id
            if member_family is None or member_family not in child.family_ids:
                return self._deny("family_scope", sender, receiver)
            if child_hint is not None and child_hint != member_family:
                return self._deny("family_scope", sender, receiver)
            return True

        # 5. Ownership
        if adult.kind is IdentityKind.PARENT:
            if adult.backing_user_ref is None:
                return self._deny("ownership", sender, receiver)
            if not await self.graph.is_parent_of_child(adult.backing_user_ref, child.id):
                return self._deny("ownership", sender, receiver)
            return True

        # 6. Allow
        return True
