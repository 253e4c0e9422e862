"""In-memory implementation of the historical data store.

Series are kept per entity id, sorted by period. Appends and ``view()`` are
serialised with a lock so concurrent scorers each observe a complete,
consistent copy; a view never changes after it is taken.
"""

import threading
from collections.abc import Iterable, Mapping, Sequence

from jira_health.core.errors import (
    DuplicateSnapshotError,
    HistoryError,
    InvalidIdentifierError,
)
from jira_health.core.interfaces import parse_entity_id
from jira_health.core.models import HistoricalSnapshot
from jira_health.observability import get_logger

logger = get_logger(__name__)


class HistoryView:
    """Read-only copy of the store taken at one instant.

    Satisfies ``IHistoryView``. Looking up an unknown entity returns an
    empty series rather than raising.
    """

    def __init__(self, series: Mapping[str, tuple[HistoricalSnapshot, ...]]) -> None:
        """Initialise the view.

        Args:
            series: Snapshots per entity id, already ordered by period.
        """
        self._series: dict[str, tuple[HistoricalSnapshot, ...]] = dict(series)
        self._peer_index: dict[tuple[str, str], list[tuple[str, str]]] = {}
        for key in self._series:
            team_id, kind, item_key = parse_entity_id(key)
            self._peer_index.setdefault((kind, item_key), []).append((team_id, key))

    @property
    def entity_ids(self) -> tuple[str, ...]:
        """All entity ids with at least one snapshot, sorted."""
        return tuple(sorted(self._series))

    def get_history(self, entity_id: str) -> tuple[HistoricalSnapshot, ...]:
        """Snapshots for ``entity_id`` ordered by period."""
        return self._series.get(entity_id, ())

    def scores(self, entity_id: str) -> tuple[float, ...]:
        """Scores for ``entity_id`` ordered by period."""
        return tuple(snapshot.score for snapshot in self.get_history(entity_id))

    def early_window(self, entity_id: str) -> tuple[float, ...]:
        """First ``n // 2`` scores of the entity."""
        values = self.scores(entity_id)
        return values[: len(values) // 2]

    def recent_window(self, entity_id: str) -> tuple[float, ...]:
        """Scores from ``n // 2`` onwards."""
        values = self.scores(entity_id)
        return values[len(values) // 2 :]

    def latest(self, entity_id: str) -> HistoricalSnapshot | None:
        """Most recent snapshot, or None without history."""
        history = self.get_history(entity_id)
        return history[-1] if history else None

    def peer_entity_ids(self, entity_id: str) -> tuple[str, ...]:
        """Entities of the same kind and key belonging to other teams, sorted."""
        team_id, kind, key = parse_entity_id(entity_id)
        return tuple(
            sorted(
                peer_id
                for peer_team, peer_id in self._peer_index.get((kind, key), [])
                if peer_team != team_id
            )
        )


class InMemoryHistoricalDataStore:
    """Append-only, thread-safe, in-memory snapshot store.

    Satisfies ``IHistoricalDataStore``. Periods are compared as strings, so
    labels must sort chronologically (e.g. '2025-Q1', '2025-07').
    """

    def __init__(self, snapshots: Iterable[HistoricalSnapshot] = ()) -> None:
        """Initialise the store, optionally seeding it.

        Args:
            snapshots: Initial snapshots, appended in order.
        """
        self._lock = threading.Lock()
        self._series: dict[str, list[HistoricalSnapshot]] = {}
        self._periods: dict[str, set[str]] = {}
        for snapshot in snapshots:
            self.append_snapshot(snapshot.entity_id, snapshot)

    def append_snapshot(self, entity_id: str, snapshot: HistoricalSnapshot) -> None:
        """Append one snapshot to an entity's series.

        The series stays ordered by period; snapshots never move once stored.

        Args:
            entity_id: Entity the snapshot belongs to.
            snapshot: Snapshot to store. Its ``entity_id`` must match.

        Raises:
            HistoryError: If ``snapshot.entity_id`` differs from ``entity_id``
                or ``entity_id`` is malformed.
            DuplicateSnapshotError: If the entity already has a snapshot for
                the same period.
        """
        if snapshot.entity_id != entity_id:
            raise HistoryError(
                f"Snapshot belongs to {snapshot.entity_id!r}, not {entity_id!r}"
            )
        _check_entity_id(entity_id)

        with self._lock:
            self._check_period_free(snapshot)
            self._insert(snapshot)

        logger.debug(
            "Snapshot appended",
            entity_id=entity_id,
            period=snapshot.period,
            score=snapshot.score,
        )

    def append_snapshots(self, snapshots: Sequence[HistoricalSnapshot]) -> int:
        """Append a batch of snapshots, all or nothing.

        Every snapshot is checked under the lock before the first one is
        inserted, so a concurrent writer can never leave a partial batch.

        Raises:
            HistoryError: If any entity id is malformed.
            DuplicateSnapshotError: If any entity already has the period, or
                the batch repeats an entity and period. Nothing is stored.
        """
        for snapshot in snapshots:
            _check_entity_id(snapshot.entity_id)

        with self._lock:
            batch: set[tuple[str, str]] = set()
            for snapshot in snapshots:
                self._check_period_free(snapshot)
                key = (snapshot.entity_id, snapshot.period)
                if key in batch:
                    raise DuplicateSnapshotError(
                        f"Batch repeats period {snapshot.period!r} for {snapshot.entity_id!r}"
                    )
                batch.add(key)
            for snapshot in snapshots:
                self._insert(snapshot)

        logger.debug("Snapshot batch appended", count=len(snapshots))
        return len(snapshots)

    def get_history(self, entity_id: str) -> tuple[HistoricalSnapshot, ...]:
        """Snapshots for ``entity_id`` ordered by period."""
        with self._lock:
            return tuple(self._series.get(entity_id, ()))

    def view(self) -> HistoryView:
        """Take a consistent copy of every series."""
        with self._lock:
            copied = {key: tuple(series) for key, series in self._series.items()}
        return HistoryView(copied)

    def _check_period_free(self, snapshot: HistoricalSnapshot) -> None:
        # caller holds the lock
        if snapshot.period in self._periods.get(snapshot.entity_id, ()):
            raise DuplicateSnapshotError(
                f"{snapshot.entity_id!r} already has a snapshot for period "
                f"{snapshot.period!r}"
            )

    def _insert(self, snapshot: HistoricalSnapshot) -> None:
        # caller holds the lock
        series = self._series.setdefault(snapshot.entity_id, [])
        index = len(series)
        while index > 0 and series[index - 1].period > snapshot.period:
            index -= 1
        series.insert(index, snapshot)
        self._periods.setdefault(snapshot.entity_id, set()).add(snapshot.period)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(series) for series in self._series.values())


def _check_entity_id(entity_id: str) -> None:
    try:
        parse_entity_id(entity_id)
    except InvalidIdentifierError as exc:
        raise HistoryError(str(exc)) from exc
