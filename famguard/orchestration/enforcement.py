"""
Enforcement layer: the only write path for messages, calls, blocks,
connections and flags, and the only read path for message/call history.

Each operation locks the child and family rows it depends on
(``SELECT ... FOR UPDATE``, children first then families, each in id order),
evaluates the permission engine, and performs the write in the same session.
The request-scoped session commits once at the end, so the check and the
write it gates are atomic: a concurrent block, unblock or connection change
either lands before the check or waits for the write to commit.

Every denial raises ``PermissionDeniedError`` with the same generic message,
whether the cause is policy, an unknown identity or a missing record.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from famguard.engines.blocking.block_registry import (
    AdultRef,
    BlockRegistry,
    BlockTarget,
    ChildRef,
)
from famguard.engines.connections.connection_service import ConnectionService
from famguard.engines.conversations.partitioner import ConversationPartitioner
from famguard.engines.flags.feature_flag_service import FeatureFlagService
from famguard.kernel.exceptions import InvalidRequestError, PermissionDeniedError
from famguard.kernel.identity.resolver import IdentityResolver
from famguard.kernel.identity.types import Identity, IdentityKind, ParticipantRef
from famguard.kernel.models.base import utcnow
from famguard.kernel.models.block import BlockedContact
from famguard.kernel.models.communication import CallRecord, CallStatus, Message
from famguard.kernel.models.connection import ChildConnection, ConnectionStatus, connection_pair_key
from famguard.kernel.models.conversation import Conversation
from famguard.kernel.models.family import ChildProfile, Family
from famguard.kernel.models.feature_flag import FamilyFeatureFlag, FeatureKey
from famguard.kernel.permissions.permission_service import PermissionEngine
from famguard.kernel.relationships.relationship_graph import RelationshipGraph
from famguard.logging_config import get_logger

logger = get_logger(__name__)


class CommunicationMode(str, Enum):
    """Which capability a permission check is for."""
    MESSAGE = "message"
    CALL = "call"


class EnforcementLayer:
    """Permission-gated operations over one request-scoped session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.graph = RelationshipGraph(session)
        self.resolver = IdentityResolver(self.graph)
        self.engine = PermissionEngine(session, self.graph)
        self.blocks = BlockRegistry(session, self.graph)
        self.connections = ConnectionService(session, self.graph)
        self.flags = FeatureFlagService(session, self.graph)
        self.partitioner = ConversationPartitioner(session)

    async def _lock_rows(self, model, ids: Iterable[uuid.UUID]) -> None:
        ordered = sorted(set(ids), key=str)
        if not ordered:
            return
        query = (
            select(model.id)
            .where(model.id.in_(ordered))
            .order_by(model.id)
            .with_for_update()
        )
        await self.session.execute(query)

    async def _lock_scope(self, *participants) -> None:
        """Lock every child named and every family those children or adults belong to."""
        child_ids = set()
        family_ids = set()
        for participant in participants:
            if participant.kind is IdentityKind.CHILD:
                child_ids.add(participant.id)
                family_ids |= await self.graph.families_of_child(participant.id)
            else:
                profile = await self.graph.get_adult_profile(participant.id)
                if profile is not None:
                    family_ids.add(profile.family_id)
        await self._lock_rows(ChildProfile, child_ids)
        await self._lock_rows(Family, family_ids)

    async def _has_oversight(self, actor: Identity, child_id: uuid.UUID) -> bool:
        """The child themself, or a parent of the child."""
        if actor.is_child:
            return actor.id == child_id
        if actor.kind is IdentityKind.PARENT and actor.backing_user_ref is not None:
            return await self.graph.is_parent_of_child(actor.backing_user_ref, child_id)
        return False

    async def _require_oversight(self, actor: Identity, child_id: uuid.UUID) -> None:
        if not await self._has_oversight(actor, child_id):
            raise PermissionDeniedError()

    async def _require_parent_of(self, actor: Identity, child_id: uuid.UUID) -> None:
        if actor.kind is not IdentityKind.PARENT or actor.backing_user_ref is None:
            raise PermissionDeniedError()
        if not await self.graph.is_parent_of_child(actor.backing_user_ref, child_id):
            raise PermissionDeniedError()

    async def _require_resolved(self, ref: ParticipantRef) -> Identity:
        identity = await self.resolver.resolve_participant(ref)
        if identity is None:
            raise PermissionDeniedError()
        return identity

    async def _deny_if_blocked_either_way(self, child_a: uuid.UUID, child_b: uuid.UUID) -> None:
        if await self.blocks.is_blocked(child_a, ChildRef(child_b)):
            raise PermissionDeniedError()
        if await self.blocks.is_blocked(child_b, ChildRef(child_a)):
            raise PermissionDeniedError()

    async def check_permission(
        self,
        actor: Identity,
        other: ParticipantRef,
        mode: CommunicationMode = CommunicationMode.MESSAGE,
        actor_family_id: Optional[uuid.UUID] = None,
        other_family_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """Whether ``actor`` may currently message (or call) ``other``."""
        if mode == CommunicationMode.CALL:
            return await self.engine.can_call(actor, other, actor_family_id, other_family_id)
        if mode == CommunicationMode.MESSAGE:
            return await self.engine.can_communicate(actor, other, actor_family_id, other_family_id)
        raise InvalidRequestError(f"Unknown communication mode: {mode}")

    async def open_conversation(
        self,
        actor: Identity,
        other: ParticipantRef,
        actor_family_id: Optional[uuid.UUID] = None,
        other_family_id: Optional[uuid.UUID] = None,
    ) -> Conversation:
        """Get or create the conversation with ``other`` if messaging or calling is allowed."""
        await self._lock_scope(actor, other)
        allowed = await self.engine.can_communicate(actor, other, actor_family_id, other_family_id)
        if not allowed:
            allowed = await self.engine.can_call(actor, other, actor_family_id, other_family_id)
        if not allowed:
            raise PermissionDeniedError()
        return await self.partitioner.get_or_create_conversation(actor, other)

    async def send_message(
        self,
        sender: Identity,
        receiver: ParticipantRef,
        body: str,
        sender_family_id: Optional[uuid.UUID] = None,
        receiver_family_id: Optional[uuid.UUID] = None,
    ) -> Message:
        if not body or not body.strip():
            raise InvalidRequestError("Message body cannot be empty")

        await self._lock_scope(sender, receiver)
        if not await self.engine.can_communicate(sender, receiver, sender_family_id, receiver_family_id):
            raise PermissionDeniedError()

        conversation = await self.partitioner.get_or_create_conversation(sender, receiver)
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender.id,
            sender_kind=sender.kind.value,
            receiver_id=receiver.id,
            receiver_kind=receiver.kind.value,
            body=body,
            created_at=utcnow(),
        )
        self.session.add(message)
        await self.session.flush()

        logger.info(
            "Message accepted",
            extra={"message_id": str(message.id), "conversation_id": str(conversation.id)},
        )
        return message

    async def place_call(
        self,
        caller: Identity,
        callee: ParticipantRef,
        signaling: Optional[Dict[str, Any]] = None,
        caller_family_id: Optional[uuid.UUID] = None,
        callee_family_id: Optional[uuid.UUID] = None,
    ) -> CallRecord:
        await self._lock_scope(caller, callee)
        if not await self.engine.can_call(caller, callee, caller_family_id, callee_family_id):
            raise PermissionDeniedError()

        conversation = await self.partitioner.get_or_create_conversation(caller, callee)
        call = CallRecord(
            conversation_id=conversation.id,
            caller_id=caller.id,
            caller_kind=caller.kind.value,
            callee_id=callee.id,
            callee_kind=callee.kind.value,
            status=CallStatus.RINGING,
            signaling=signaling,
            created_at=utcnow(),
        )
        self.session.add(call)
        await self.session.flush()

        logger.info(
            "Call placed",
            extra={"call_id": str(call.id), "conversation_id": str(conversation.id)},
        )
        return call

    async def end_call(self, actor: Identity, call_id: uuid.UUID) -> CallRecord:
        """Either party may hang up; ending is never permission-gated beyond that."""
        query = select(CallRecord).where(CallRecord.id == call_id).with_for_update()
        result = await self.session.execute(query)
        call = result.scalar_one_or_none()
        if call is None or actor.id not in (call.caller_id, call.callee_id):
            raise PermissionDeniedError()

        if call.status != CallStatus.ENDED:
            call.status = CallStatus.ENDED
            call.ended_at = utcnow()
            await self.session.flush()
        return call

    async def _require_history_access(self, actor: Identity, conversation_id: uuid.UUID) -> None:
        """
        Participants may read; so may a parent with oversight of a child participant.

        Oversight is a read rule only and never grants write access.
        """
        if await self.partitioner.get_conversation(conversation_id) is None:
            raise PermissionDeniedError()
        if await self.partitioner.is_participant(conversation_id, actor.id):
            return
        if actor.kind is IdentityKind.PARENT and actor.backing_user_ref is not None:
            for participant in await self.partitioner.get_participants(conversation_id):
                if participant.kind is IdentityKind.CHILD and await self.graph.is_parent_of_child(
                    actor.backing_user_ref, participant.id
                ):
                    return
        raise PermissionDeniedError()

    async def list_messages(
        self,
        actor: Identity,
        conversation_id: uuid.UUID,
        limit: int = 50,
        before: Optional[datetime] = None,
    ) -> List[Message]:
        await self._require_history_access(actor, conversation_id)
        query = select(Message).where(Message.conversation_id == conversation_id)
        if before is not None:
            query = query.where(Message.created_at < before)
        query = query.order_by(Message.created_at.desc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_calls(
        self,
        actor: Identity,
        conversation_id: uuid.UUID,
        limit: int = 50,
    ) -> List[CallRecord]:
        await self._require_history_access(actor, conversation_id)
        query = (
            select(CallRecord)
            .where(CallRecord.conversation_id == conversation_id)
            .order_by(CallRecord.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def _require_target_exists(self, target: BlockTarget) -> None:
        if isinstance(target, AdultRef):
            exists = await self.graph.get_adult_profile(target.adult_profile_id) is not None
        else:
            exists = await self.graph.get_child_profile(target.child_profile_id) is not None
        if not exists:
            raise PermissionDeniedError()

    async def block_contact(
        self,
        actor: Identity,
        child_id: uuid.UUID,
        target: BlockTarget,
    ) -> BlockedContact:
        """
        Block on behalf of ``child_id``; the child or one of their parents may do this.

        Raises:
            ParentBlockError: target is a parent of the child
        """
        await self._require_oversight(actor, child_id)
        await self._require_target_exists(target)
        await self._lock_rows(ChildProfile, [child_id])
        return await self.blocks.set_block(child_id, target, blocked_by_kind=actor.kind)

    async def unblock_contact(
        self,
        actor: Identity,
        child_id: uuid.UUID,
        target: BlockTarget,
    ) -> bool:
        """Lift a block. Only a parent of the child may do this."""
        await self._require_parent_of(actor, child_id)
        await self._lock_rows(ChildProfile, [child_id])
        return await self.blocks.clear_block(child_id, target, unblocked_by_parent_id=actor.id)

    async def list_blocks(self, actor: Identity, child_id: uuid.UUID) -> List[BlockedContact]:
        await self._require_oversight(actor, child_id)
        return await self.blocks.list_active_blocks(child_id)

    async def _has_blocked_connection(self, child_a: uuid.UUID, child_b: uuid.UUID) -> bool:
        query = select(ChildConnection.id).where(
            and_(
                ChildConnection.pair_key == connection_pair_key(child_a, child_b),
                ChildConnection.status == ConnectionStatus.BLOCKED.value,
            )
        )
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def request_connection(
        self,
        actor: Identity,
        requester_child_id: uuid.UUID,
        target_child_id: uuid.UUID,
        requester_family_id: Optional[uuid.UUID] = None,
        target_family_id: Optional[uuid.UUID] = None,
    ) -> ChildConnection:
        """
        Request a connection from ``requester_child_id`` to ``target_child_id``.

        The requester child or one of their parents may ask. Requests between
        children who block each other, or whose earlier connection a parent
        blocked, are denied.
        """
        await self._require_oversight(actor, requester_child_id)
        await self._require_resolved(ParticipantRef(target_child_id, IdentityKind.CHILD))

        await self._lock_rows(ChildProfile, [requester_child_id, target_child_id])
        await self._deny_if_blocked_either_way(requester_child_id, target_child_id)
        if await self._has_blocked_connection(requester_child_id, target_child_id):
            raise PermissionDeniedError()

        return await self.connections.request_connection(
            requester_child_id,
            target_child_id,
            requested_by_child=actor.is_child,
            requester_family_id=requester_family_id,
            target_family_id=target_family_id,
        )

    async def approve_connection(self, actor: Identity, connection_id: uuid.UUID) -> ChildConnection:
        return await self.connections.approve_connection(connection_id, actor)

    async def reject_connection(self, actor: Identity, connection_id: uuid.UUID) -> ChildConnection:
        return await self.connections.reject_connection(connection_id, actor)

    async def block_connection(self, actor: Identity, connection_id: uuid.UUID) -> ChildConnection:
        return await self.connections.block_connection(connection_id, actor)

    async def check_connection(
        self,
        actor: Identity,
        child_a: uuid.UUID,
        child_b: uuid.UUID,
    ) -> bool:
        """Approval status for a pair, visible to either child and their parents."""
        if not (await self._has_oversight(actor, child_a) or await self._has_oversight(actor, child_b)):
            raise PermissionDeniedError()
        return await self.connections.is_approved_between(child_a, child_b)

    async def list_connections(
        self,
        actor: Identity,
        child_id: uuid.UUID,
        status: Optional[ConnectionStatus] = None,
    ) -> List[ChildConnection]:
        await self._require_oversight(actor, child_id)
        return await self.connections.list_connections_for_child(child_id, status)

    async def set_feature_flag(
        self,
        actor: Identity,
        family_id: uuid.UUID,
        key: FeatureKey,
        enabled: bool,
    ) -> FamilyFeatureFlag:
        """Only a parent profile of ``family_id`` may change its flags."""
        if actor.kind is not IdentityKind.PARENT or family_id not in actor.family_ids:
            raise PermissionDeniedError()
        await self._lock_rows(Family, [family_id])
        return await self.flags.set_flag(family_id, key, enabled)

    async def list_feature_flags(self, actor: Identity, family_id: uuid.UUID) -> Dict[str, bool]:
        """Any identity belonging to the family may read its flags."""
        if family_id not in actor.family_ids:
            raise PermissionDeniedError()
        return await self.flags.list_flags(family_id)
