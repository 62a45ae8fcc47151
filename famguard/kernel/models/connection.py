"""
Child-to-child connection requests and their parental decision.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from famguard.kernel.models.base import Base, TimestampMixin, generate_uuid


class ConnectionStatus(str, Enum):
    """Lifecycle of a connection request."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    BLOCKED = "blocked"


# Statuses that count as the live relationship for a pair of children
LIVE_STATUSES = (ConnectionStatus.PENDING, ConnectionStatus.APPROVED)

_LIVE_PREDICATE = text("status IN ('pending', 'approved')")


def connection_pair_key(child_a: uuid.UUID, child_b: uuid.UUID) -> str:
    """Order-independent key for a pair of children."""
    low, high = sorted((str(child_a), str(child_b)))
    return f"{low}:{high}"


class ChildConnection(Base, TimestampMixin):
    """
    A request from one child to connect with another.

    The row is directional (requester -> target) but the relationship it
    grants is not: at most one pending/approved row may exist per unordered
    pair, enforced by a partial unique index on ``pair_key``. Rejected and
    blocked rows stay as history and a fresh request creates a new row.
    """

    __tablename__ = "child_connections"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    requester_child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    requester_family_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    target_family_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
    )
    pair_key: Mapped[str] = mapped_column(
        String(80),
        nullable=False,
    )

    status: Mapped[ConnectionStatus] = mapped_column(
        String(50),
        default=ConnectionStatus.PENDING,
        nullable=False,
        index=True,
    )
    requested_by_child: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Decision
    approved_by_parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("adult_profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "requester_child_id != target_child_id",
            name="ck_child_connections_not_self",
        ),
        Index(
            "uq_child_connections_live_pair",
            "pair_key",
            unique=True,
            postgresql_where=_LIVE_PREDICATE,
            sqlite_where=_LIVE_PREDICATE,
        ),
        Index("ix_child_connections_pair_status", "pair_key", "status"),
    )

    def __repr__(self) -> str:
        return f"<ChildConnection {self.requester_child_id} -> {self.target_child_id} status={self.status}>"
