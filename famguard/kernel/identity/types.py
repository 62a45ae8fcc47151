"""
Typed identities handed to the permission engine.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


class IdentityKind(str, Enum):
    """Closed set of identity kinds."""
    PARENT = "parent"
    FAMILY_MEMBER = "family_member"
    CHILD = "child"

    @property
    def is_adult(self) -> bool:
        return self is not IdentityKind.CHILD


@dataclass(frozen=True)
class ParticipantRef:
    """
    An untrusted ``{id, kind}`` pair as named by a caller.

    For adults ``id`` is the adult profile id; for children it is the child
    profile id. It only becomes an ``Identity`` once resolved.
    """

    id: uuid.UUID
    kind: IdentityKind


@dataclass(frozen=True)
class Identity:
    """
    A resolved identity.

    ``family_ids`` holds the single family of an adult profile, or the one or
    two families a child belongs to. ``backing_user_ref`` is the account id for
    adults and ``None`` for children.
    """

    id: uuid.UUID
    kind: IdentityKind
    family_ids: FrozenSet[uuid.UUID] = field(default_factory=frozenset)
    backing_user_ref: Optional[uuid.UUID] = None

    @property
    def is_adult(self) -> bool:
        return self.kind.is_adult

    @property
    def is_child(self) -> bool:
        return self.kind is IdentityKind.CHILD

    @property
    def family_id(self) -> Optional[uuid.UUID]:
        """The family id when there is exactly one, else ``None``."""
        if len(self.family_ids) == 1:
            return next(iter(self.family_ids))
        return None

    def ref(self) -> ParticipantRef:
        return ParticipantRef(id=self.id, kind=self.kind)
