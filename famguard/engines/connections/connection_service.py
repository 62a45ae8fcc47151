"""
Connection approval: child-to-child connection requests and parental decisions.

At most one live (pending or approved) connection exists per unordered pair of
children. The partial unique index on ``pair_key`` enforces that, so a
duplicate request, including one submitted with requester and target swapped,
is absorbed by ``ON CONFLICT DO NOTHING`` and returns the existing live row.
"""

import uuid
from typing import List, Optional, Set

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from famguard.database import insert_for
from famguard.kernel.exceptions import InvalidRequestError, PermissionDeniedError
from famguard.kernel.identity.types import Identity, IdentityKind
from famguard.kernel.models.base import generate_uuid
from famguard.kernel.models.connection import (
    ChildConnection,
    ConnectionStatus,
    LIVE_STATUSES,
    connection_pair_key,
)
from famguard.kernel.relationships.relationship_graph import RelationshipGraph
from famguard.logging_config import get_logger
from famguard.orchestration.state_machine import StateMachine

logger = get_logger(__name__)


def _pick_family(
    families: Set[uuid.UUID],
    requested: Optional[uuid.UUID],
    label: str,
) -> uuid.UUID:
    # The recorded family is informational; authorization always uses every
    # membership of both children.
    if requested is not None:
        if requested not in families:
            raise InvalidRequestError(f"{label} family does not match the child")
        return requested
    return min(families, key=str)


class ConnectionService:
    """Creates and decides child-to-child connections."""

    def __init__(self, session: AsyncSession, graph: Optional[RelationshipGraph] = None):
        self.session = session
        self.graph = graph or RelationshipGraph(session)
        self.state_machine = StateMachine(session)

    async def get_connection(self, connection_id: uuid.UUID) -> Optional[ChildConnection]:
        return await self.session.get(ChildConnection, connection_id)

    async def get_live_connection(
        self,
        child_a: uuid.UUID,
        child_b: uuid.UUID,
    ) -> Optional[ChildConnection]:
        """The pending or approved connection for the pair, in either direction."""
        query = select(ChildConnection).where(
            and_(
                ChildConnection.pair_key == connection_pair_key(child_a, child_b),
                ChildConnection.status.in_([s.value for s in LIVE_STATUSES]),
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def request_connection(
        self,
        requester_child_id: uuid.UUID,
        target_child_id: uuid.UUID,
        requested_by_child: bool = True,
        requester_family_id: Optional[uuid.UUID] = None,
        target_family_id: Optional[uuid.UUID] = None,
    ) -> ChildConnection:
        """
        Create a pending connection, or return the live one for the pair.

        Raises:
            InvalidRequestError: self-connection, unknown child, or a named
                family the child does not belong to
        """
        if requester_child_id == target_child_id:
            raise InvalidRequestError("A child cannot connect to themself")

        requester_families = await self.graph.families_of_child(requester_child_id)
        target_families = await self.graph.families_of_child(target_child_id)
        if not requester_families or not target_families:
            raise InvalidRequestError("Both children must belong to a family")

        stmt = insert_for(self.session, ChildConnection).values(
            id=generate_uuid(),
            requester_child_id=requester_child_id,
            requester_family_id=_pick_family(requester_families, requester_family_id, "Requester"),
            target_child_id=target_child_id,
            target_family_id=_pick_family(target_families, target_family_id, "Target"),
            pair_key=connection_pair_key(requester_child_id, target_child_id),
            status=ConnectionStatus.PENDING.value,
            requested_by_child=requested_by_child,
        ).on_conflict_do_nothing().returning(ChildConnection.id)
        result = await self.session.execute(stmt)
        created_id = result.scalar_one_or_none()

        connection = await self.get_live_connection(requester_child_id, target_child_id)
        if connection is None:
            # The conflicting row was decided between our insert and the read
            raise InvalidRequestError("Connection request could not be recorded; retry")

        if created_id is not None:
            logger.info(
                "Connection requested",
                extra={
                    "connection_id": str(connection.id),
                    "requester_child_id": str(requester_child_id),
                    "target_child_id": str(target_child_id),
                },
            )
        return connection

    async def can_decide(self, connection: ChildConnection, parent: Identity) -> bool:
        """A parent of either child may decide."""
        if parent.kind is not IdentityKind.PARENT or parent.backing_user_ref is None:
            return False
        families = await self.graph.families_of_child(connection.requester_child_id)
        families |= await self.graph.families_of_child(connection.target_child_id)
        families |= {connection.requester_family_id, connection.target_family_id}
        return await self.graph.is_parent_in_families(parent.backing_user_ref, families)

    async def _decide(
        self,
        connection_id: uuid.UUID,
        parent: Identity,
        to_state: ConnectionStatus,
    ) -> ChildConnection:
        query = select(ChildConnection).where(ChildConnection.id == connection_id).with_for_update()
        result = await self.session.execute(query)
        connection = result.scalar_one_or_none()

        if connection is None or not await self.can_decide(connection, parent):
            raise PermissionDeniedError()

        return await self.state_machine.transition_connection(connection, to_state, parent)

    async def approve_connection(self, connection_id: uuid.UUID, parent: Identity) -> ChildConnection:
        return await self._decide(connection_id, parent, ConnectionStatus.APPROVED)

    async def reject_connection(self, connection_id: uuid.UUID, parent: Identity) -> ChildConnection:
        return await self._decide(connection_id, parent, ConnectionStatus.REJECTED)

    async def block_connection(self, connection_id: uuid.UUID, parent: Identity) -> ChildConnection:
        return await self._decide(connection_id, parent, ConnectionStatus.BLOCKED)

    async def is_approved_between(self, child_a: uuid.UUID, child_b: uuid.UUID) -> bool:
        """True if an approved connection exists in either direction."""
        query = select(ChildConnection.id).where(
            and_(
                ChildConnection.status == ConnectionStatus.APPROVED.value,
                or_(
                    and_(
                        ChildConnection.requester_child_id == child_a,
                        ChildConnection.target_child_id == child_b,
                    ),
                    and_(
                        ChildConnection.requester_child_id == child_b,
                        ChildConnection.target_child_id == child_a,
                    ),
                ),
            )
        )
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def list_connections_for_child(
        self,
        child_id: uuid.UUID,
        status: Optional[ConnectionStatus] = None,
    ) -> List[ChildConnection]:
        query = select(ChildConnection).where(
            or_(
                ChildConnection.requester_child_id == child_id,
                ChildConnection.target_child_id == child_id,
            )
        )
        if status is not None:
            query = query.where(ChildConnection.status == status.value)
        result = await self.session.execute(query.order_by(ChildConnection.created_at.desc()))
        return list(result.scalars().all())
