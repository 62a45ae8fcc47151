"""
Conversation partitioner: the canonical channel for a pair of identities.

The pair is normalized (child first, then by id) into ``pair_key``. Creation
is an ``INSERT ... ON CONFLICT DO NOTHING`` on that unique key followed by a
read, so concurrent first contacts converge on one conversation.
"""

import uuid
from typing import List, Optional, Tuple, Union

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from famguard.database import insert_for
from famguard.kernel.exceptions import InvalidRequestError
from famguard.kernel.identity.types import Identity, IdentityKind, ParticipantRef
from famguard.kernel.models.base import generate_uuid, utcnow
from famguard.kernel.models.conversation import (
    Conversation,
    ConversationParticipant,
    ConversationType,
)
from famguard.logging_config import get_logger

logger = get_logger(__name__)

Participant = Union[Identity, ParticipantRef]


def _sort_key(participant: Participant) -> Tuple[int, str]:
    return (0 if participant.kind is IdentityKind.CHILD else 1, str(participant.id))


def canonical_pair(a: Participant, b: Participant) -> Tuple[Participant, Participant]:
    """
    Order a pair for storage.

    Raises:
        InvalidRequestError: the same identity twice, or two adults
    """
    if a.id == b.id:
        raise InvalidRequestError("A conversation needs two distinct participants")
    if a.kind.is_adult and b.kind.is_adult:
        raise InvalidRequestError("Adults cannot share a conversation")
    first, second = sorted((a, b), key=_sort_key)
    return first, second


def pair_key(a: Participant, b: Participant) -> str:
    first, second = canonical_pair(a, b)
    return f"{first.kind.value}:{first.id}|{second.kind.value}:{second.id}"


class ConversationPartitioner:
    """Get-or-create and membership lookups for conversations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_conversation(self, conversation_id: uuid.UUID) -> Optional[Conversation]:
        return await self.session.get(Conversation, conversation_id)

    async def find_conversation(self, a: Participant, b: Participant) -> Optional[Conversation]:
        query = select(Conversation).where(Conversation.pair_key == pair_key(a, b))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create_conversation(self, a: Participant, b: Participant) -> Conversation:
        """Return the one conversation for the pair, creating it on first contact."""
        first, second = canonical_pair(a, b)
        key = pair_key(first, second)

        stmt = insert_for(self.session, Conversation).values(
            id=generate_uuid(),
            type=ConversationType.ONE_TO_ONE.value,
            pair_key=key,
            created_at=utcnow(),
        ).on_conflict_do_nothing(index_elements=["pair_key"]).returning(Conversation.id)
        result = await self.session.execute(stmt)
        created_id = result.scalar_one_or_none()

        conversation = await self.find_conversation(first, second)

        for participant in (first, second):
            await self.session.execute(
                insert_for(self.session, ConversationParticipant).values(
                    id=generate_uuid(),
                    conversation_id=conversation.id,
                    participant_id=participant.id,
                    kind=participant.kind.value,
                ).on_conflict_do_nothing(index_elements=["conversation_id", "participant_id"])
            )

        if created_id is not None:
            logger.info("Conversation created", extra={"conversation_id": str(conversation.id)})
        return conversation

    async def is_participant(self, conversation_id: uuid.UUID, identity_id: uuid.UUID) -> bool:
        query = select(ConversationParticipant.id).where(
            and_(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.participant_id == identity_id,
            )
        )
        result = await self.session.execute(query)
        return result.first() is not None

    async def get_participants(self, conversation_id: uuid.UUID) -> List[ParticipantRef]:
        query = select(ConversationParticipant).where(
            ConversationParticipant.conversation_id == conversation_id
        )
        result = await self.session.execute(query)
        return [
            ParticipantRef(id=row.participant_id, kind=IdentityKind(row.kind))
            for row in result.scalars().all()
        ]
