"""Abstract interfaces (Protocol classes) for the scoring engine.

Scoring components depend on these interfaces, not on the concrete store.
The bundled in-memory implementation lives in ``adapters/history_store.py``;
a database-backed store only has to satisfy the same Protocols.

Entity ids have the form ``"{team_id}:{kind}:{key}"`` where kind is one of
``team``, ``dimension`` or ``outcome``. Peers of an entity are the entities
with the same kind and key belonging to other teams.
"""

from collections.abc import Sequence
from typing import Literal, Protocol, runtime_checkable

from jira_health.core.errors import InvalidIdentifierError
from jira_health.core.models import HistoricalSnapshot

EntityKind = Literal["team", "dimension", "outcome"]

_ENTITY_KINDS: frozenset[str] = frozenset({"team", "dimension", "outcome"})
_SEPARATOR = ":"


def entity_id(team_id: str, kind: EntityKind, key: str = "overall") -> str:
    """Build the entity id for a team-level, dimension or outcome series.

    Raises:
        InvalidIdentifierError: If a component is empty, contains ':' or
            ``kind`` is unknown.
    """
    if kind not in _ENTITY_KINDS:
        raise InvalidIdentifierError(f"Unknown entity kind: {kind!r}")
    for part in (team_id, key):
        if not part or _SEPARATOR in part:
            raise InvalidIdentifierError(f"Invalid entity id component: {part!r}")
    return f"{team_id}{_SEPARATOR}{kind}{_SEPARATOR}{key}"


def parse_entity_id(value: str) -> tuple[str, str, str]:
    """Split an entity id into ``(team_id, kind, key)``.

    Raises:
        InvalidIdentifierError: If ``value`` is not a well-formed entity id.
    """
    parts = value.split(_SEPARATOR)
    if len(parts) != 3 or not all(parts) or parts[1] not in _ENTITY_KINDS:
        raise InvalidIdentifierError(f"Malformed entity id: {value!r}")
    return parts[0], parts[1], parts[2]


@runtime_checkable
class IHistoryView(Protocol):
    """Immutable point-in-time read of the historical data store."""

    def get_history(self, entity_id: str) -> tuple[HistoricalSnapshot, ...]:
        """Snapshots for ``entity_id`` ordered by period."""
        ...

    def scores(self, entity_id: str) -> tuple[float, ...]:
        """Scores for ``entity_id`` ordered by period."""
        ...

    def early_window(self, entity_id: str) -> tuple[float, ...]:
        """First half of the entity's scores."""
        ...

    def recent_window(self, entity_id: str) -> tuple[float, ...]:
        """Second half of the entity's scores (includes the middle point)."""
        ...

    def latest(self, entity_id: str) -> HistoricalSnapshot | None:
        """Most recent snapshot, or None without history."""
        ...

    def peer_entity_ids(self, entity_id: str) -> tuple[str, ...]:
        """Entities of the same kind and key belonging to other teams."""
        ...


@runtime_checkable
class IHistoricalDataStore(Protocol):
    """Append-only repository of historical snapshots."""

    def append_snapshot(self, entity_id: str, snapshot: HistoricalSnapshot) -> None:
        """Append one snapshot to the entity's series."""
        ...

    def append_snapshots(self, snapshots: Sequence[HistoricalSnapshot]) -> int:
        """Append a batch atomically: either every snapshot is stored or none.

        Returns:
            Number of snapshots appended.
        """
        ...

    def get_history(self, entity_id: str) -> tuple[HistoricalSnapshot, ...]:
        """Snapshots for ``entity_id`` ordered by period."""
        ...

    def view(self) -> IHistoryView:
        """Consistent snapshot of the whole store for one computation cycle."""
        ...
