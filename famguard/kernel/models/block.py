"""
Blocked contacts: a child suppressing contact with one adult or one child.

Rows are soft-closed through ``unblocked_at`` and never deleted, so the
history stays available to parents and to the notification collaborator.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from famguard.kernel.models.base import Base, generate_uuid


class BlockedContact(Base):
    """
    A block held by ``blocker_child_id``.

    Exactly one of ``blocked_adult_profile_id`` / ``blocked_child_profile_id``
    is set. ``target_key`` mirrors whichever one is set ("adult:<id>" or
    "child:<id>") so that (blocker, target) stays unique even though one of
    the two target columns is always NULL.
    """

    __tablename__ = "blocked_contacts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    blocker_child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    blocked_adult_profile_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("adult_profiles.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    blocked_child_profile_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    target_key: Mapped[str] = mapped_column(
        String(80),
        nullable=False,
    )

    # Who placed the block: the child themself or one of their parents
    blocked_by_kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    blocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    parent_notified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Soft close
    unblocked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    unblocked_by_parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("adult_profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "(blocked_adult_profile_id IS NOT NULL AND blocked_child_profile_id IS NULL) OR "
            "(blocked_adult_profile_id IS NULL AND blocked_child_profile_id IS NOT NULL)",
            name="ck_blocked_contacts_one_target",
        ),
        UniqueConstraint("blocker_child_id", "target_key", name="uq_blocked_contacts_blocker_target"),
        Index("ix_blocked_contacts_active", "blocker_child_id", "unblocked_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.unblocked_at is None

    def __repr__(self) -> str:
        return f"<BlockedContact {self.blocker_child_id} -> {self.target_key} active={self.is_active}>"
