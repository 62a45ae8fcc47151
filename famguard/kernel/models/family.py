"""
Family structure models: families, adult profiles, child profiles and the
child membership join.

Adults are backed by an account owned by the external credential service;
``user_id`` is that account's id and is never resolved here. Children have no
account and authenticate through an anonymous, code-based session that
carries only the child profile id.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from famguard.kernel.models.base import Base, TimestampMixin, generate_uuid


class HouseholdType(str, Enum):
    """Whether a child is raised in one household or split between two."""
    SINGLE = "single"
    TWO_HOUSEHOLD = "two_household"


class AdultRole(str, Enum):
    """Role of an adult profile inside one family."""
    PARENT = "parent"
    FAMILY_MEMBER = "family_member"


class ProfileStatus(str, Enum):
    """Soft status of an adult profile."""
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Family(Base, TimestampMixin):
    """Top-level grouping of adults and children sharing oversight."""

    __tablename__ = "families"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    household_type: Mapped[HouseholdType] = mapped_column(
        String(50),
        default=HouseholdType.SINGLE,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Family {self.id}>"


class AdultProfile(Base, TimestampMixin):
    """
    One profile per (account, family, role).

    A single account may be a parent in one family and a family member in
    another; each of those is its own profile row.
    """

    __tablename__ = "adult_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[AdultRole] = mapped_column(
        String(50),
        nullable=False,
    )
    display_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    status: Mapped[ProfileStatus] = mapped_column(
        String(50),
        default=ProfileStatus.ACTIVE,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "family_id", "role", name="uq_adult_profiles_user_family_role"),
        Index("ix_adult_profiles_family_role", "family_id", "role"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == ProfileStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<AdultProfile {self.id} role={self.role} family={self.family_id}>"


class ChildProfile(Base, TimestampMixin):
    """Child identity; no backing account."""

    __tablename__ = "child_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    display_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    # Revoked sessions flip this off; an inactive child never resolves
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ChildProfile {self.id}>"


class ChildFamilyMembership(Base):
    """Many-to-many join: a child belongs to one or two families."""

    __tablename__ = "child_family_memberships"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    child_profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("child_profile_id", "family_id", name="uq_child_family_memberships_pair"),
    )

    def __repr__(self) -> str:
        return f"<ChildFamilyMembership child={self.child_profile_id} family={self.family_id}>"
