"""Outcome confidence scoring.

An outcome (e.g. "Can we make reliable delivery commitments?") is scored from
its weighted contributing dimensions:

    1. Present dimensions contribute ``css * weight`` and are checked against
       their critical threshold. Absent dimensions are marked missing and
       contribute 0; they are never critical gaps.
    2. Present dimensions are blended through CHS with the outcome's own
       history and its peers' trajectories.
    3. Any critical gap caps the final score at 55.
    4. The (possibly capped) final score is mapped to a confidence level.
"""

from collections.abc import Mapping, Sequence

from jira_health.core.catalog import OutcomeCatalog
from jira_health.core.composite import CompositeHealthScoreEngine
from jira_health.core.interfaces import IHistoryView, entity_id
from jira_health.core.maturity import CONFIDENCE_LABELS, confidence_level
from jira_health.core.models import (
    DimensionResult,
    DimensionScoreInput,
    OutcomeConfidenceResult,
    OutcomeConfidenceSummary,
    OutcomeContribution,
    OutcomeDefinition,
    OutcomeTrend,
    index_dimensions,
)
from jira_health.core.numeric import round_int
from jira_health.observability import get_logger
from jira_health.settings import EngineSettings, get_settings

logger = get_logger(__name__)

_TREND_LABELS: dict[str, str] = {
    "up": "Improving",
    "down": "Declining",
    "stable": "Stable",
}

_CONFIDENCE_SUMMARIES: dict[str, str] = {
    "very-high": "Strong foundation for decisions",
    "high": "Reliable for most purposes",
    "moderate": "Usable with caveats",
    "low": "Significant gaps limit reliability",
}


class OutcomeConfidenceEngine:
    """Aggregates dimension results into per-outcome confidence scores."""

    def __init__(
        self,
        catalog: OutcomeCatalog | None = None,
        chs_engine: CompositeHealthScoreEngine | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            catalog: Outcome definitions. Defaults to the built-in catalog.
            chs_engine: Composite score engine used for the blend.
            settings: Engine settings. Defaults to the process-wide settings.
        """
        self._settings = settings or get_settings()
        self._catalog = catalog or OutcomeCatalog()
        self._chs = chs_engine or CompositeHealthScoreEngine(self._settings)

    @property
    def catalog(self) -> OutcomeCatalog:
        """The outcome catalog this engine scores against."""
        return self._catalog

    def build_contributions(
        self,
        definition: OutcomeDefinition,
        dimensions: Mapping[str, DimensionResult],
    ) -> list[OutcomeContribution]:
        """Evaluate every contribution of ``definition`` in declaration order."""
        contributions: list[OutcomeContribution] = []
        for item in definition.dimensions:
            dimension = dimensions.get(item.dimension_key)
            if dimension is None:
                contributions.append(
                    OutcomeContribution(
                        dimension_key=item.dimension_key,
                        dimension_name=self._catalog.dimension_name(item.dimension_key),
                        weight=item.weight,
                        health_score=0.0,
                        weighted_score=0.0,
                        is_critical_gap=False,
                        is_missing=True,
                        critical_threshold=item.critical_threshold,
                        why_it_matters=item.why_it_matters,
                    )
                )
                continue
            is_gap = (
                item.critical_threshold is not None
                and dimension.health_score < item.critical_threshold
            )
            contributions.append(
                OutcomeContribution(
                    dimension_key=item.dimension_key,
                    dimension_name=dimension.dimension_name
                    or self._catalog.dimension_name(item.dimension_key),
                    weight=item.weight,
                    health_score=dimension.health_score,
                    weighted_score=dimension.current_state_score * item.weight,
                    is_critical_gap=is_gap,
                    is_missing=False,
                    critical_threshold=item.critical_threshold,
                    why_it_matters=item.why_it_matters,
                )
            )
        return contributions

    def weighted_trend(
        self,
        definition: OutcomeDefinition,
        dimensions: Mapping[str, DimensionResult],
    ) -> OutcomeTrend:
        """Direction of the weight share of improving vs declining dimensions.

        Shares are taken over the definition's total weight; one side must
        lead by more than ``outcome_trend_margin`` to count.
        """
        total_weight = definition.total_weight
        if total_weight <= 0:
            return "stable"
        improving = 0.0
        declining = 0.0
        for item in definition.dimensions:
            dimension = dimensions.get(item.dimension_key)
            if dimension is None:
                continue
            if dimension.trend == "improving":
                improving += item.weight
            elif dimension.trend == "declining":
                declining += item.weight
        margin = self._settings.outcome_trend_margin
        if improving / total_weight > declining / total_weight + margin:
            return "up"
        if declining / total_weight > improving / total_weight + margin:
            return "down"
        return "stable"

    def calculate_for_definition(
        self,
        definition: OutcomeDefinition,
        dimensions: Sequence[DimensionResult] | Mapping[str, DimensionResult],
        history: Sequence[float] = (),
        peer_trs: Sequence[float] = (),
    ) -> OutcomeConfidenceResult:
        """Score one outcome definition.

        Args:
            definition: The outcome to score.
            dimensions: Assessed dimensions, as a sequence or keyed mapping.
            history: The outcome's historical scores, oldest first.
            peer_trs: Trajectory scores of peer teams for the same outcome.

        Returns:
            The outcome's confidence result.

        Raises:
            DuplicateDimensionError: If a sequence contains a key twice.
        """
        indexed = (
            dict(dimensions)
            if isinstance(dimensions, Mapping)
            else index_dimensions(dimensions)
        )
        contributions = self.build_contributions(definition, indexed)
        present = [
            DimensionScoreInput(
                dimension_key=item.dimension_key,
                css_score=indexed[item.dimension_key].current_state_score,
                weight=item.weight,
            )
            for item in contributions
            if not item.is_missing
        ]
        chs = self._chs.compose(present, history=history, peer_trs=peer_trs)

        critical_gaps = tuple(item for item in contributions if item.is_critical_gap)
        uncapped = round_int(chs.health_score)
        final_score = uncapped
        if critical_gaps:
            final_score = min(final_score, int(self._settings.critical_gap_cap))
        trend = self.weighted_trend(definition, indexed)
        level = confidence_level(final_score)

        result = OutcomeConfidenceResult(
            id=definition.id,
            name=definition.name,
            short_name=definition.short_name or definition.name,
            question=definition.question,
            raw_score=round_int(chs.css_score),
            final_score=final_score,
            css_score=chs.css_score,
            trs_score=chs.trs_score,
            pgs_score=chs.pgs_score,
            standard_error=chs.standard_error,
            confidence_interval=chs.confidence_interval,
            components_available=chs.components_available,
            contributions=tuple(contributions),
            critical_gaps=critical_gaps,
            is_capped=final_score < uncapped,
            trend=trend,
            trend_label=_TREND_LABELS[trend],
            confidence_level=level,
        )
        logger.debug(
            "Outcome confidence computed",
            outcome_id=definition.id,
            final_score=final_score,
            critical_gap_count=len(critical_gaps),
            missing_count=sum(1 for item in contributions if item.is_missing),
            confidence_level=level,
        )
        return result

    def calculate(
        self,
        outcome_id: str,
        dimensions: Sequence[DimensionResult] | Mapping[str, DimensionResult],
        view: IHistoryView | None = None,
        team_id: str | None = None,
    ) -> OutcomeConfidenceResult:
        """Score a catalogued outcome, reading history from ``view`` if given.

        Args:
            outcome_id: Catalogued outcome id.
            dimensions: Assessed dimensions.
            view: History view taken at the start of the computation.
            team_id: Team whose outcome history and peers to use. Required
                for history to be read.

        Raises:
            UnknownOutcomeError: If ``outcome_id`` is not catalogued.
        """
        definition = self._catalog.get(outcome_id)
        history: Sequence[float] = ()
        peer_trs: Sequence[float] = ()
        if view is not None and team_id is not None:
            key = entity_id(team_id, "outcome", outcome_id)
            history = view.scores(key)
            peer_trs = self._chs.peer_trajectory_scores(view, key)
        return self.calculate_for_definition(definition, dimensions, history, peer_trs)

    def calculate_all(
        self,
        dimensions: Sequence[DimensionResult] | Mapping[str, DimensionResult],
        view: IHistoryView | None = None,
        team_id: str | None = None,
    ) -> OutcomeConfidenceSummary:
        """Score every catalogued outcome and summarise the results."""
        indexed = (
            dict(dimensions)
            if isinstance(dimensions, Mapping)
            else index_dimensions(dimensions)
        )
        outcomes = [
            self.calculate(outcome_id, indexed, view=view, team_id=team_id)
            for outcome_id in self._catalog.outcome_ids
        ]
        return summarize_outcomes(outcomes)


def summarize_outcomes(outcomes: Sequence[OutcomeConfidenceResult]) -> OutcomeConfidenceSummary:
    """Lowest, highest and rounded mean final score of a set of outcomes.

    Ties keep the first outcome in catalog order.
    """
    if not outcomes:
        return OutcomeConfidenceSummary()
    lowest = min(outcomes, key=lambda outcome: outcome.final_score)
    highest = max(outcomes, key=lambda outcome: outcome.final_score)
    average = round_int(sum(outcome.final_score for outcome in outcomes) / len(outcomes))
    return OutcomeConfidenceSummary(
        outcomes=tuple(outcomes),
        lowest_outcome=lowest,
        highest_outcome=highest,
        overall_average=average,
    )


def confidence_summary(result: OutcomeConfidenceResult) -> str:
    """One-line verdict for an outcome result."""
    if result.critical_gaps:
        names = ", ".join(gap.dimension_name for gap in result.critical_gaps)
        return f"Limited by critical gaps in: {names}"
    return _CONFIDENCE_SUMMARIES[result.confidence_level]


def outcome_insight(result: OutcomeConfidenceResult) -> str:
    """Actionable next step for an outcome result."""
    short_name = result.short_name.lower()
    if result.critical_gaps:
        return (
            f"Address {result.critical_gaps[0].dimension_name} first; it is "
            f"limiting your {short_name} confidence."
        )
    present = [item for item in result.contributions if not item.is_missing]
    weakest = min(present, key=lambda item: item.health_score) if present else None
    if result.confidence_level == "very-high":
        return f"{result.short_name} confidence is excellent. Maintain current practices."
    if result.confidence_level == "high":
        area = weakest.dimension_name if weakest else "any area"
        return (
            f"Good {short_name} reliability. Small improvements in {area} "
            "could push it higher."
        )
    if weakest is not None:
        return f"Improving {weakest.dimension_name} would most impact your {short_name} confidence."
    return "Review contributing dimensions to identify improvement opportunities."


def confidence_label(result: OutcomeConfidenceResult) -> str:
    """Display label of the result's confidence level."""
    return CONFIDENCE_LABELS[result.confidence_level]
