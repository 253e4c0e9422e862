"""Exceptions raised by the scoring engine.

Missing dimensions are not errors; they surface as ``is_missing``
contributions. Everything here signals either a caller bug (NaN scores,
duplicate keys) or configuration drift (unknown outcome or dimension ids).
"""


class HealthEngineError(Exception):
    """Base class for all scoring engine errors."""


class InvalidScoreError(HealthEngineError, ValueError):
    """Raised when a score or percentile is not a finite number."""


class ConfigurationError(HealthEngineError):
    """Raised when static configuration references data that cannot exist."""


class UnknownOutcomeError(ConfigurationError, KeyError):
    """Raised when an outcome id is not in the outcome catalog."""

    def __init__(self, outcome_id: str) -> None:
        super().__init__(outcome_id)
        self.outcome_id = outcome_id

    def __str__(self) -> str:
        return f"Unknown outcome id: {self.outcome_id!r}"


class UnknownDimensionError(ConfigurationError, KeyError):
    """Raised when an outcome definition references an uncatalogued dimension."""

    def __init__(self, dimension_key: str, outcome_id: str | None = None) -> None:
        super().__init__(dimension_key)
        self.dimension_key = dimension_key
        self.outcome_id = outcome_id

    def __str__(self) -> str:
        if self.outcome_id is None:
            return f"Unknown dimension key: {self.dimension_key!r}"
        return (
            f"Outcome {self.outcome_id!r} references unknown dimension key "
            f"{self.dimension_key!r}"
        )


class DuplicateDimensionError(HealthEngineError, ValueError):
    """Raised when one assessment contains the same dimension key twice."""


class HistoryError(HealthEngineError):
    """Raised when the historical data store is used incorrectly."""


class DuplicateSnapshotError(HistoryError):
    """Raised when a snapshot for the same entity and period already exists."""


class InvalidIdentifierError(HealthEngineError, ValueError):
    """Raised when a team id, key or entity id cannot form a history key."""
