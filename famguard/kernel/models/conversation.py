"""
Conversation partitioning: one one-to-one conversation per unordered pair of
identities.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from famguard.kernel.models.base import Base, generate_uuid


class ConversationType(str, Enum):
    """Only one-to-one conversations exist today."""
    ONE_TO_ONE = "one_to_one"


class Conversation(Base):
    """
    A conversation between exactly two identities.

    ``pair_key`` is the canonical ordering of the two participants; the unique
    constraint on it is what makes concurrent get-or-create converge on a
    single row.
    """

    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    type: Mapped[ConversationType] = mapped_column(
        String(50),
        default=ConversationType.ONE_TO_ONE,
        nullable=False,
    )
    pair_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Conversation {self.id} {self.pair_key}>"


class ConversationParticipant(Base):
    """Membership of one identity in a conversation."""

    __tablename__ = "conversation_participants"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    participant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    # IdentityKind value
    kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "participant_id", name="uq_conversation_participants_member"
        ),
    )

    def __repr__(self) -> str:
        return f"<ConversationParticipant {self.participant_id} in {self.conversation_id}>"
