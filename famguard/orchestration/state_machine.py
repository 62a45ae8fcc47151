"""
State machine for child-to-child connection requests.

A connection is created pending and is decided exactly once by a parent:
pending -> approved | rejected | blocked. Decided rows are terminal; a new
request creates a new row. Valid transitions and who may trigger them are
defined here.
"""

from typing import Dict, List, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from famguard.kernel.exceptions import InvalidTransitionError
from famguard.kernel.identity.types import Identity, IdentityKind
from famguard.kernel.models.base import utcnow
from famguard.kernel.models.connection import ChildConnection, ConnectionStatus
from famguard.logging_config import get_logger

logger = get_logger(__name__)


# Valid transitions: (from_state, to_state) -> identity kinds that may trigger
_TRANSITIONS: Dict[Tuple[str, str], Set[IdentityKind]] = {
    (ConnectionStatus.PENDING.value, ConnectionStatus.APPROVED.value): {IdentityKind.PARENT},
    (ConnectionStatus.PENDING.value, ConnectionStatus.REJECTED.value): {IdentityKind.PARENT},
    (ConnectionStatus.PENDING.value, ConnectionStatus.BLOCKED.value): {IdentityKind.PARENT},
}


def _state_value(state) -> str:
    return state.value if hasattr(state, "value") else str(state)


def valid_transitions(from_state: str) -> List[str]:
    """Return list of valid target states from given state."""
    return sorted({t for (f, t) in _TRANSITIONS if f == _state_value(from_state)})


def can_transition(actor_kind: IdentityKind, from_state: str, to_state: str) -> bool:
    """Check if an actor of the given kind may move from_state -> to_state."""
    key = (_state_value(from_state), _state_value(to_state))
    return actor_kind in _TRANSITIONS.get(key, set())


class StateMachine:
    """Applies connection transitions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def transition_connection(
        self,
        connection: ChildConnection,
        to_state: ConnectionStatus,
        actor: Identity,
    ) -> ChildConnection:
        """
        Move a connection to ``to_state`` on behalf of ``actor``.

        The caller has already checked that ``actor`` is a parent of one of
        the two children.

        Raises:
            InvalidTransitionError: transition not allowed from the current status
        """
        from_state = _state_value(connection.status)
        if not can_transition(actor.kind, from_state, to_state):
            raise InvalidTransitionError(
                f"Invalid transition: {from_state} -> {_state_value(to_state)}"
            )

        connection.status = ConnectionStatus(_state_value(to_state))
        connection.approved_by_parent_id = actor.id
        connection.decided_at = utcnow()
        await self.session.flush()

        logger.info(
            "Connection %s -> %s",
            from_state,
            connection.status.value,
            extra={"connection_id": str(connection.id), "parent_profile_id": str(actor.id)},
        )
        return connection
