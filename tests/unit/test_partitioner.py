"""Tests for the conversation partitioner."""

import uuid

import pytest

from famguard.engines.conversations.partitioner import (
    ConversationPartitioner,
    canonical_pair,
    pair_key,
)
from famguard.kernel.exceptions import InvalidRequestError
from famguard.kernel.identity.types import IdentityKind, ParticipantRef
from tests.factories import child, member, parent


class TestCanonicalPair:
    """Tests for pair ordering."""

    def test_child_sorts_first(self):
        adult = parent(uuid.uuid4())
        kid = child(uuid.uuid4())
        assert canonical_pair(adult, kid) == (kid, adult)
        assert canonical_pair(kid, adult) == (kid, adult)

    def test_two_children_sort_by_id(self):
        a, b = sorted([uuid.uuid4(), uuid.uuid4()], key=str)
        assert canonical_pair(child(b), child(a)) == (child(a), child(b))

    def test_key_is_order_independent(self):
        kid, adult = child(uuid.uuid4()), member(uuid.uuid4())
        assert pair_key(kid, adult) == pair_key(adult, kid)
        assert pair_key(kid, adult) == f"child:{kid.id}|family_member:{adult.id}"

    def test_same_identity_rejected(self):
        same = uuid.uuid4()
        with pytest.raises(InvalidRequestError):
            canonical_pair(child(same), child(same))

    def test_two_adults_rejected(self):
        with pytest.raises(InvalidRequestError):
            canonical_pair(parent(uuid.uuid4()), member(uuid.uuid4()))


class TestConversationPartitioner:
    """Tests for ConversationPartitioner."""

    async def test_get_or_create_is_idempotent(self, db_session, world):
        partitioner = ConversationPartitioner(db_session)
        first = await partitioner.get_or_create_conversation(parent(world.parent_a), child(world.child_a))
        second = await partitioner.get_or_create_conversation(parent(world.parent_a), child(world.child_a))
        assert second.id == first.id

    async def test_argument_order_does_not_matter(self, db_session, world):
        partitioner = ConversationPartitioner(db_session)
        first = await partitioner.get_or_create_conversation(child(world.child_a), child(world.child_b))
        second = await partitioner.get_or_create_conversation(child(world.child_b), child(world.child_a))
        assert second.id == first.id

    async def test_distinct_pairs_get_distinct_conversations(self, db_session, world):
        partitioner = ConversationPartitioner(db_session)
        one = await partitioner.get_or_create_conversation(parent(world.parent_a), child(world.child_a))
        other = await partitioner.get_or_create_conversation(parent(world.parent_a), child(world.child_a2))
        assert one.id != other.id

    async def test_participants_recorded(self, db_session, world):
        partitioner = ConversationPartitioner(db_session)
        conversation = await partitioner.get_or_create_conversation(
            member(world.member_a), child(world.child_a)
        )

        participants = await partitioner.get_participants(conversation.id)
        assert set(participants) == {
            ParticipantRef(world.member_a, IdentityKind.FAMILY_MEMBER),
            ParticipantRef(world.child_a, IdentityKind.CHILD),
        }
        assert await partitioner.is_participant(conversation.id, world.child_a) is True
        assert await partitioner.is_participant(conversation.id, world.parent_a) is False

    async def test_find_conversation(self, db_session, world):
        partitioner = ConversationPartitioner(db_session)
        assert await partitioner.find_conversation(parent(world.parent_a), child(world.child_a)) is None

        created = await partitioner.get_or_create_conversation(parent(world.parent_a), child(world.child_a))
        found = await partitioner.find_conversation(child(world.child_a), parent(world.parent_a))
        assert found.id == created.id
        assert (await partitioner.get_conversation(created.id)).pair_key == created.pair_key

    async def test_adult_pair_rejected(self, db_session, world):
        partitioner = ConversationPartitioner(db_session)
        with pytest.raises(InvalidRequestError):
            await partitioner.get_or_create_conversation(parent(world.parent_a), member(world.member_a))

    async def test_separate_sessions_converge_on_one_conversation(self, session_maker, world):
        """First contact from two sessions, in opposite argument order, yields one conversation."""
        async with session_maker() as first_session:
            first = await ConversationPartitioner(first_session).get_or_create_conversation(
                child(world.child_a), child(world.child_b)
            )
            await first_session.commit()

        async with session_maker() as second_session:
            partitioner = ConversationPartitioner(second_session)
            second = await partitioner.get_or_create_conversation(
                child(world.child_b), child(world.child_a)
            )
            await second_session.commit()
            participants = await partitioner.get_participants(second.id)

        assert second.id == first.id
        assert {p.id for p in participants} == {world.child_a, world.child_b}
