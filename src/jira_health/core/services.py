"""Service layer running one assessment cycle for a team.

    1. view()         take one consistent read of the history store
    2. risk-adjust    every dimension's maturity
    3. outcomes       score every catalogued outcome with history and peers
    4. summary        build the executive summary
    5. record         append one snapshot per dimension, outcome and the
                      team as a single atomic batch, only after everything
                      above succeeded

All history access goes through the IHistoricalDataStore interface. The core
layer never imports from the adapters layer.
"""

from collections.abc import Mapping, Sequence

from jira_health.core.executive_summary import ExecutiveSummaryAggregator
from jira_health.core.interfaces import IHistoricalDataStore, entity_id
from jira_health.core.models import (
    AssessmentReport,
    DimensionResult,
    HistoricalSnapshot,
    index_dimensions,
)
from jira_health.core.outcome_confidence import OutcomeConfidenceEngine
from jira_health.core.risk_adjusted import RiskAdjustedMaturityCalculator
from jira_health.observability import get_logger

logger = get_logger(__name__)


class HealthAssessmentService:
    """Orchestrates risk adjustment, outcome confidence and the summary.

    Depends on a history store injected at construction time; the scoring
    components default to fresh instances built from the process settings.
    """

    def __init__(
        self,
        history_store: IHistoricalDataStore,
        risk_calculator: RiskAdjustedMaturityCalculator | None = None,
        outcome_engine: OutcomeConfidenceEngine | None = None,
        summary_aggregator: ExecutiveSummaryAggregator | None = None,
    ) -> None:
        """Initialise the service.

        Args:
            history_store: Any object satisfying ``IHistoricalDataStore``.
            risk_calculator: Risk-adjusted maturity calculator.
            outcome_engine: Outcome confidence engine.
            summary_aggregator: Executive summary aggregator.
        """
        self._store = history_store
        self._risk = risk_calculator or RiskAdjustedMaturityCalculator()
        self._outcomes = outcome_engine or OutcomeConfidenceEngine()
        self._summary = summary_aggregator or ExecutiveSummaryAggregator()

    def assess(
        self,
        team_id: str,
        dimensions: Sequence[DimensionResult],
        period: str | None = None,
        weights: Mapping[str, float] | None = None,
    ) -> AssessmentReport:
        """Score a team's dimensions and optionally record the results.

        Args:
            team_id: Team being assessed.
            dimensions: The team's dimension results, keys unique.
            period: Period label to record snapshots under. Nothing is
                recorded when None.
            weights: Relative dimension weights for the summary trend delta.

        Returns:
            The complete assessment report.

        Raises:
            InvalidIdentifierError: If ``team_id`` is empty or contains ':'.
            DuplicateDimensionError: If two dimensions share a key.
            DuplicateSnapshotError: If the team was already recorded for
                ``period``. Nothing is appended in that case.
        """
        team_key = entity_id(team_id, "team")
        indexed = index_dimensions(dimensions)
        view = self._store.view()

        risk_adjusted = tuple(self._risk.calculate_all(dimensions))
        outcomes = self._outcomes.calculate_all(indexed, view=view, team_id=team_id)
        summary = self._summary.summarize_from_view(
            dimensions,
            view,
            team_id,
            weights=weights,
            outcome_confidence=outcomes,
        )

        recorded = 0
        if period is not None:
            snapshots = [
                HistoricalSnapshot(
                    entity_id=team_key,
                    period=period,
                    score=summary.overall_score,
                )
            ]
            snapshots.extend(
                HistoricalSnapshot(
                    entity_id=entity_id(team_id, "dimension", dimension.dimension_key),
                    period=period,
                    score=dimension.health_score,
                )
                for dimension in dimensions
            )
            snapshots.extend(
                HistoricalSnapshot(
                    entity_id=entity_id(team_id, "outcome", outcome.id),
                    period=period,
                    score=outcome.css_score,
                )
                for outcome in outcomes.outcomes
                if any(not item.is_missing for item in outcome.contributions)
            )
            recorded = self._store.append_snapshots(snapshots)

        logger.info(
            "Assessment completed",
            team_id=team_id,
            period=period,
            dimension_count=len(dimensions),
            overall_score=summary.overall_score,
            snapshots_recorded=recorded,
        )
        return AssessmentReport(
            team_id=team_id,
            period=period,
            risk_adjusted=risk_adjusted,
            outcome_confidence=outcomes,
            executive_summary=summary,
            snapshots_recorded=recorded,
        )
