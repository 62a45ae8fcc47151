"""
Per-family feature flags.

A family with no row for a key has that capability disabled.
"""

import uuid
from typing import Dict, List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from famguard.database import insert_for
from famguard.kernel.models.base import generate_uuid, utcnow
from famguard.kernel.models.feature_flag import FamilyFeatureFlag, FeatureKey
from famguard.kernel.relationships.relationship_graph import RelationshipGraph
from famguard.logging_config import get_logger

logger = get_logger(__name__)


class FeatureFlagService:
    """Reads and upserts family feature flags."""

    def __init__(self, session: AsyncSession, graph: Optional[RelationshipGraph] = None):
        self.session = session
        self.graph = graph or RelationshipGraph(session)

    async def set_flag(self, family_id: uuid.UUID, key: FeatureKey, enabled: bool) -> FamilyFeatureFlag:
        """Upsert one (family, key) flag."""
        now = utcnow()
        stmt = insert_for(self.session, FamilyFeatureFlag).values(
            id=generate_uuid(),
            family_id=family_id,
            key=key.value,
            enabled=enabled,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["family_id", "key"],
            set_={"enabled": enabled, "updated_at": now},
        ).returning(FamilyFeatureFlag)

        result = await self.session.execute(
            stmt, execution_options={"populate_existing": True}
        )
        flag = result.scalar_one()

        logger.info(
            "Feature flag set",
            extra={"family_id": str(family_id), "key": key.value, "enabled": enabled},
        )
        return flag

    async def is_enabled(self, family_id: uuid.UUID, key: FeatureKey) -> bool:
        query = select(FamilyFeatureFlag.enabled).where(
            and_(
                FamilyFeatureFlag.family_id == family_id,
                FamilyFeatureFlag.key == key.value,
            )
        )
        result = await self.session.execute(query)
        return bool(result.scalar_one_or_none())

    async def list_flags(self, family_id: uuid.UUID) -> Dict[str, bool]:
        """Every known key for the family, defaulting missing rows to disabled."""
        flags = {key.value: False for key in FeatureKey}
        query = select(FamilyFeatureFlag).where(FamilyFeatureFlag.family_id == family_id)
        result = await self.session.execute(query)
        for row in result.scalars().all():
            flags[row.key.value if hasattr(row.key, "value") else row.key] = row.enabled
        return flags

    async def is_enabled_for_any(self, family_ids: List[uuid.UUID], key: FeatureKey) -> bool:
        if not family_ids:
            return False
        query = select(FamilyFeatureFlag.id).where(
            and_(
                FamilyFeatureFlag.family_id.in_(family_ids),
                FamilyFeatureFlag.key == key.value,
                FamilyFeatureFlag.enabled.is_(True),
            )
        )
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def is_enabled_for_children(
        self,
        child_a: uuid.UUID,
        child_b: uuid.UUID,
        key: FeatureKey,
    ) -> bool:
        """
        True if any family of either child has ``key`` enabled.

        The OR is deliberate: one household can unlock a capability without a
        co-parent's separate household opting in as well.
        """
        families = await self.graph.families_of_child(child_a)
        families |= await self.graph.families_of_child(child_b)
        return await self.is_enabled_for_any(list(families), key)
