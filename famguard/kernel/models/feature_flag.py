"""
Per-family feature flags gating optional child-to-child capabilities.
"""

import uuid
from enum import Enum

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from famguard.kernel.models.base import Base, TimestampMixin, generate_uuid


class FeatureKey(str, Enum):
    """Known flag keys. A family with no row for a key has it disabled."""
    CHILD_TO_CHILD_MESSAGING = "child_to_child_messaging"
    CHILD_TO_CHILD_CALLS = "child_to_child_calls"


class FamilyFeatureFlag(Base, TimestampMixin):
    """One row per (family, key)."""

    __tablename__ = "family_feature_flags"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key: Mapped[FeatureKey] = mapped_column(
        String(100),
        nullable=False,
    )
    enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("family_id", "key", name="uq_family_feature_flags_family_key"),
    )

    def __repr__(self) -> str:
        return f"<FamilyFeatureFlag family={self.family_id} {self.key}={self.enabled}>"
