"""
Messages and call records written after a permitted attempt.

Message bodies and call signaling are opaque to this service; they are stored
as handed over by the transport layer.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, ForeignKey, Index, JSON, String, Text, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from famguard.kernel.models.base import Base, generate_uuid


class CallStatus(str, Enum):
    """Call record lifecycle."""
    RINGING = "ringing"
    ENDED = "ended"


class Message(Base):
    """A message accepted into a conversation."""

    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    sender_kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    receiver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    receiver_kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Message {self.id} in {self.conversation_id}>"


class CallRecord(Base):
    """A call placed between two identities."""

    __tablename__ = "call_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    caller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    caller_kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    callee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    callee_kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    status: Mapped[CallStatus] = mapped_column(
        String(50),
        default=CallStatus.RINGING,
        nullable=False,
    )
    # Offer/answer payload, relayed untouched
    signaling: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_call_records_conversation_created", "conversation_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<CallRecord {self.id} status={self.status}>"
