"""Tests for child-to-child connection requests and decisions."""

import uuid

import pytest

from famguard.engines.connections.connection_service import ConnectionService
from famguard.kernel.exceptions import InvalidRequestError, InvalidTransitionError, PermissionDeniedError
from famguard.kernel.models import ConnectionStatus, connection_pair_key
from tests.factories import child, member, parent


class TestPairKey:
    """Tests for connection_pair_key."""

    def test_order_independent(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        assert connection_pair_key(a, b) == connection_pair_key(b, a)

    def test_distinct_pairs_differ(self):
        a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        assert connection_pair_key(a, b) != connection_pair_key(a, c)


class TestRequestConnection:
    """Tests for ConnectionService.request_connection."""

    async def test_creates_pending(self, db_session, world):
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_a, world.child_b)

        assert connection.status == ConnectionStatus.PENDING
        assert connection.requester_child_id == world.child_a
        assert connection.target_child_id == world.child_b
        assert connection.requester_family_id == world.family_a
        assert connection.target_family_id == world.family_b
        assert connection.requested_by_child is True
        assert connection.approved_by_parent_id is None

    async def test_duplicate_request_returns_live_row(self, db_session, world):
        service = ConnectionService(db_session)
        first = await service.request_connection(world.child_a, world.child_b)
        second = await service.request_connection(world.child_a, world.child_b)
        assert second.id == first.id

    async def test_reversed_request_returns_live_row(self, db_session, world):
        """Swapping requester and target does not create a second connection."""
        service = ConnectionService(db_session)
        first = await service.request_connection(world.child_a, world.child_b)
        reversed_request = await service.request_connection(world.child_b, world.child_a)

        assert reversed_request.id == first.id
        assert len(await service.list_connections_for_child(world.child_a)) == 1

    async def test_self_connection_rejected(self, db_session, world):
        service = ConnectionService(db_session)
        with pytest.raises(InvalidRequestError):
            await service.request_connection(world.child_a, world.child_a)

    async def test_unknown_child_rejected(self, db_session, world):
        service = ConnectionService(db_session)
        with pytest.raises(InvalidRequestError):
            await service.request_connection(world.child_a, uuid.uuid4())

    async def test_named_family_must_be_a_membership(self, db_session, world):
        service = ConnectionService(db_session)
        with pytest.raises(InvalidRequestError):
            await service.request_connection(
                world.child_a, world.child_b, requester_family_id=world.family_b
            )

    async def test_named_family_of_shared_child_is_recorded(self, db_session, world):
        service = ConnectionService(db_session)
        connection = await service.request_connection(
            world.child_shared, world.child_b, requester_family_id=world.family_c
        )
        assert connection.requester_family_id == world.family_c

    async def test_parent_request_flagged(self, db_session, world):
        service = ConnectionService(db_session)
        connection = await service.request_connection(
            world.child_a, world.child_b, requested_by_child=False
        )
        assert connection.requested_by_child is False


class TestDecisions:
    """Tests for approve, reject and block."""

    async def test_parent_of_requester_approves(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_a, world.child_b)

        decided = await service.approve_connection(connection.id, await resolve(parent(world.parent_a)))

        assert decided.status == ConnectionStatus.APPROVED
        assert decided.approved_by_parent_id == world.parent_a
        assert decided.decided_at is not None
        assert await service.is_approved_between(world.child_a, world.child_b) is True
        assert await service.is_approved_between(world.child_b, world.child_a) is True

    async def test_parent_of_target_approves(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_a, world.child_b)

        decided = await service.approve_connection(connection.id, await resolve(parent(world.parent_b)))
        assert decided.status == ConnectionStatus.APPROVED

    async def test_second_household_parent_decides(self, db_session, world, resolve):
        """Either household of a shared child may decide."""
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_shared, world.child_b)

        decided = await service.reject_connection(connection.id, await resolve(parent(world.parent_c)))
        assert decided.status == ConnectionStatus.REJECTED

    async def test_unrelated_parent_denied(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_a, world.child_a2)

        with pytest.raises(PermissionDeniedError):
            await service.approve_connection(connection.id, await resolve(parent(world.parent_b)))

    async def test_family_member_denied(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_a, world.child_b)

        with pytest.raises(PermissionDeniedError):
            await service.approve_connection(connection.id, await resolve(member(world.member_a)))

    async def test_child_cannot_approve(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_a, world.child_b)

        with pytest.raises(PermissionDeniedError):
            await service.approve_connection(connection.id, await resolve(child(world.child_b)))

    async def test_unknown_connection_denied(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        with pytest.raises(PermissionDeniedError):
            await service.approve_connection(uuid.uuid4(), await resolve(parent(world.parent_a)))

    async def test_decided_connection_is_terminal(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_a, world.child_b)
        parent_a = await resolve(parent(world.parent_a))
        await service.reject_connection(connection.id, parent_a)

        with pytest.raises(InvalidTransitionError):
            await service.approve_connection(connection.id, parent_a)

    async def test_new_request_after_rejection(self, db_session, world, resolve):
        """A rejected row is history; asking again opens a fresh pending row."""
        service = ConnectionService(db_session)
        first = await service.request_connection(world.child_a, world.child_b)
        await service.reject_connection(first.id, await resolve(parent(world.parent_a)))

        second = await service.request_connection(world.child_b, world.child_a)
        assert second.id != first.id
        assert second.status == ConnectionStatus.PENDING

    async def test_blocked_is_not_approved(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        connection = await service.request_connection(world.child_a, world.child_b)
        decided = await service.block_connection(connection.id, await resolve(parent(world.parent_b)))

        assert decided.status == ConnectionStatus.BLOCKED
        assert await service.is_approved_between(world.child_a, world.child_b) is False
        assert await service.get_live_connection(world.child_a, world.child_b) is None


class TestListConnections:
    """Tests for list_connections_for_child."""

    async def test_lists_both_directions(self, db_session, world, resolve):
        service = ConnectionService(db_session)
        outgoing = await service.request_connection(world.child_a, world.child_b)
        incoming = await service.request_connection(world.child_a2, world.child_a)
        await service.request_connection(world.child_a2, world.child_b)
        await service.approve_connection(incoming.id, await resolve(parent(world.parent_a)))

        connections = await service.list_connections_for_child(world.child_a)
        assert {c.id for c in connections} == {outgoing.id, incoming.id}

        approved = await service.list_connections_for_child(world.child_a, ConnectionStatus.APPROVED)
        assert [c.id for c in approved] == [incoming.id]

    async def test_swapped_requests_from_separate_sessions_converge(self, session_maker, world):
        """Two sessions requesting the same pair in opposite directions share one live row."""
        async with session_maker() as first_session:
            first = await ConnectionService(first_session).request_connection(world.child_a, world.child_b)
            await first_session.commit()

        async with session_maker() as second_session:
            service = ConnectionService(second_session)
            second = await service.request_connection(world.child_b, world.child_a)
            await second_session.commit()
            connections = await service.list_connections_for_child(world.child_a)

        assert second.id == first.id
        assert second.requester_child_id == world.child_a
        assert [c.id for c in connections] == [first.id]
