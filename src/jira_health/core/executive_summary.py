"""Executive summary aggregation.

Rolls dimension results into the narrative view shown to leadership:
strengths and risks by maturity level, overall score movement since the
previous assessment, biggest movers, team rank within a comparison cohort,
theme roll-ups, a 9-zone priority matrix and the top recommendations.
"""

from collections.abc import Mapping, Sequence

from jira_health.core.catalog import ThemeGroup, get_theme_groups
from jira_health.core.interfaces import IHistoryView, entity_id
from jira_health.core.maturity import CLASSIFIER, MaturityClassifier
from jira_health.core.models import (
    DimensionResult,
    DimensionSummary,
    ExecutiveSummaryData,
    OutcomeConfidenceSummary,
    PrioritizedRecommendation,
    PriorityZone,
    Recommendation,
    ScoreMovement,
    TeamRank,
    ThemeSummary,
    TrendDirection,
    index_dimensions,
)
from jira_health.core.numeric import round_half_up, round_int
from jira_health.observability import get_logger
from jira_health.settings import EngineSettings, get_settings

logger = get_logger(__name__)

_EFFORT_WEIGHT: dict[str, int] = {"low": 1, "medium": 2, "high": 3}
_IMPACT_WEIGHT: dict[str, int] = {"low": 1, "medium": 2, "high": 3}

# Risk rows use the Good (55) and Below Average (30) band edges
_LOW_RISK_FLOOR: float = 55.0
_MODERATE_RISK_FLOOR: float = 30.0

# (zone id, label, description) keyed by (risk level, trend direction)
_ZONES: dict[tuple[str, str], tuple[str, str, str]] = {
    ("high", "declining"): ("act-now", "Act Now", "Critical issues getting worse. Address first."),
    ("high", "stable"): ("address", "Address", "Significant issues not improving on their own."),
    ("high", "improving"): ("keep-pushing", "Keep Pushing", "Your efforts are working. Maintain focus."),
    ("moderate", "declining"): ("act-soon", "Act Soon", "Moderate issues worsening. Prevent escalation."),
    ("moderate", "stable"): ("monitor", "Monitor", "Stable but not ideal. Address after priorities."),
    ("moderate", "improving"): ("good-progress", "Good Progress", "Improving steadily. On track to become healthy."),
    ("low", "declining"): ("heads-up", "Heads Up", "Healthy but declining. Investigate early."),
    ("low", "stable"): ("maintain", "Maintain", "Healthy and stable. Continue current practices."),
    ("low", "improving"): ("celebrate", "Celebrate", "Healthy and improving. Share what is working."),
}

_ZONE_ORDER: list[tuple[str, str]] = [
    ("high", "declining"),
    ("high", "stable"),
    ("high", "improving"),
    ("moderate", "declining"),
    ("moderate", "stable"),
    ("moderate", "improving"),
    ("low", "declining"),
    ("low", "stable"),
    ("low", "improving"),
]


def ordinal(n: int) -> str:
    """Return ``n`` with its English ordinal suffix (1st, 2nd, 11th, 23rd)."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def recommendation_priority(recommendation: Recommendation) -> int:
    """Impact counted twice minus effort; higher is better value."""
    return _IMPACT_WEIGHT[recommendation.impact] * 2 - _EFFORT_WEIGHT[recommendation.effort]


class ExecutiveSummaryAggregator:
    """Builds ExecutiveSummaryData from dimension results."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        classifier: MaturityClassifier = CLASSIFIER,
        theme_groups: Sequence[ThemeGroup] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._classifier = classifier
        self._themes = list(theme_groups) if theme_groups is not None else get_theme_groups()

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def trend_direction(self, delta: float) -> TrendDirection:
        """Classify a score delta using the summary trend threshold."""
        threshold = self._settings.summary_trend_threshold
        if delta > threshold:
            return "improving"
        if delta < -threshold:
            return "declining"
        return "stable"

    def dimension_summary(
        self, dimension: DimensionResult, score_change: float | None = None
    ) -> DimensionSummary:
        """Compact view of one dimension with its derived maturity."""
        level = self._classifier.classify(dimension.health_score)
        indicators = dimension.indicators
        flag_at = self._settings.flagged_indicator_percentile
        return DimensionSummary(
            dimension_key=dimension.dimension_key,
            dimension_name=dimension.dimension_name or dimension.dimension_key,
            health_score=dimension.health_score,
            maturity_level=level.level,
            maturity_name=level.name,
            trend=dimension.trend,
            score_change=score_change,
            indicator_count=len(indicators),
            flagged_indicator_count=sum(
                1 for indicator in indicators if indicator.benchmark_percentile <= flag_at
            ),
        )

    @staticmethod
    def score_changes(
        dimensions: Sequence[DimensionResult], previous_scores: Mapping[str, float]
    ) -> dict[str, float]:
        """Score change per dimension that has a reference point.

        A prior score gives current minus previous. Without one, a dimension
        with two or more ``trend_data`` points uses last minus first. Other
        dimensions are left out.
        """
        changes: dict[str, float] = {}
        for dimension in dimensions:
            key = dimension.dimension_key
            if key in previous_scores:
                change: float | None = dimension.health_score - previous_scores[key]
            else:
                change = dimension.trend_change
            if change is not None:
                changes[key] = round_half_up(change, 1)
        return changes

    @staticmethod
    def overall_trend_delta(
        changes: Mapping[str, float], weights: Mapping[str, float] | None = None
    ) -> float:
        """Weighted mean of per-dimension changes; 0 without changes.

        A mean rather than a plain weighted sum, so the result stays on the
        points scale the summary trend threshold is set in, however many
        dimensions moved. Weights default to 1 per dimension.
        """
        weights = weights or {}
        pairs = [(change, weights.get(key, 1.0)) for key, change in changes.items()]
        total_weight = sum(weight for _, weight in pairs)
        if not pairs or total_weight == 0:
            return 0.0
        return round_half_up(sum(change * weight for change, weight in pairs) / total_weight, 1)

    @staticmethod
    def biggest_movers(
        dimensions: Sequence[DimensionResult],
        changes: Mapping[str, float],
        weights: Mapping[str, float] | None = None,
    ) -> tuple[ScoreMovement | None, ScoreMovement | None]:
        """Largest positive and most negative change.

        Ties go to the larger absolute weight, then to the dimension declared
        first.

        Returns:
            ``(biggest_gain, biggest_decline)``; either is None when no
            dimension moved in that direction.
        """
        weights = weights or {}
        gain: tuple[tuple[float, float, int], ScoreMovement] | None = None
        decline: tuple[tuple[float, float, int], ScoreMovement] | None = None
        for index, dimension in enumerate(dimensions):
            change = changes.get(dimension.dimension_key)
            if change is None or change == 0:
                continue
            weight = weights.get(dimension.dimension_key, 1.0)
            movement = ScoreMovement(
                dimension_key=dimension.dimension_key,
                dimension_name=dimension.dimension_name or dimension.dimension_key,
                change=change,
                weight=weight,
            )
            if change > 0:
                key = (change, abs(weight), -index)
                if gain is None or key > gain[0]:
                    gain = (key, movement)
            else:
                key = (-change, abs(weight), -index)
                if decline is None or key > decline[0]:
                    decline = (key, movement)
        return (
            gain[1] if gain is not None else None,
            decline[1] if decline is not None else None,
        )

    @staticmethod
    def team_rank(
        overall_score: float,
        cohort_scores: Sequence[float] | None = None,
        comparison_team_count: int = 0,
    ) -> TeamRank:
        """Rank the team within its comparison cohort.

        With cohort scores the rank is one plus the number of teams scoring
        strictly higher. Without them, it is estimated from the score alone
        across ``comparison_team_count`` other teams.
        """
        if cohort_scores:
            total = len(cohort_scores) + 1
            rank = 1 + sum(1 for score in cohort_scores if score > overall_score)
            estimated = False
        else:
            total = max(0, comparison_team_count) + 1
            rank = min(total, round_int((100 - overall_score) / 100 * total) + 1)
            estimated = True
        position = ordinal(rank)
        return TeamRank(
            rank=rank,
            total=total,
            ordinal=position,
            narrative=f"{position} of {total} similar teams",
            is_estimated=estimated,
        )

    @staticmethod
    def dominant_trend(summaries: Sequence[DimensionSummary]) -> TrendDirection:
        """The more common of improving and declining; stable on a tie."""
        improving = sum(1 for item in summaries if item.trend == "improving")
        declining = sum(1 for item in summaries if item.trend == "declining")
        if declining > improving:
            return "declining"
        if improving > declining:
            return "improving"
        return "stable"

    def theme_summaries(
        self, summaries: Mapping[str, DimensionSummary]
    ) -> list[ThemeSummary]:
        """Roll dimension summaries up into their theme groups."""
        results: list[ThemeSummary] = []
        for theme in self._themes:
            members = [summaries[key] for key in theme.dimension_keys if key in summaries]
            concerns = sum(1 for item in members if item.maturity_level <= 2)
            results.append(
                ThemeSummary(
                    theme_id=theme.id,
                    theme_name=theme.name,
                    theme_question=theme.question,
                    concern_count=concerns,
                    is_healthy=concerns == 0,
                    overall_trend=self.dominant_trend(members),
                    dimensions=tuple(members),
                )
            )
        return results

    def priority_zones(self, summaries: Sequence[DimensionSummary]) -> list[PriorityZone]:
        """Place every dimension in the 9-zone risk-by-trend matrix."""
        grouped: dict[tuple[str, str], list[DimensionSummary]] = {
            cell: [] for cell in _ZONE_ORDER
        }
        for item in summaries:
            if item.health_score >= _LOW_RISK_FLOOR:
                risk = "low"
            elif item.health_score >= _MODERATE_RISK_FLOOR:
                risk = "moderate"
            else:
                risk = "high"
            trend = self.trend_direction(item.score_change or 0.0)
            grouped[(risk, trend)].append(item)
        return [
            PriorityZone(
                zone=_ZONES[cell][0],
                label=_ZONES[cell][1],
                description=_ZONES[cell][2],
                dimensions=tuple(grouped[cell]),
            )
            for cell in _ZONE_ORDER
        ]

    def top_recommendations(
        self, dimensions: Sequence[DimensionResult], limit: int | None = None
    ) -> list[PrioritizedRecommendation]:
        """Recommendations by priority, then impact, then lowest effort."""
        ranked = [
            PrioritizedRecommendation(
                recommendation=recommendation,
                source_dimension_key=dimension.dimension_key,
                source_dimension_name=dimension.dimension_name or dimension.dimension_key,
                priority=recommendation_priority(recommendation),
            )
            for dimension in dimensions
            for recommendation in dimension.recommendations
        ]
        ranked.sort(
            key=lambda item: (
                -item.priority,
                -_IMPACT_WEIGHT[item.recommendation.impact],
                _EFFORT_WEIGHT[item.recommendation.effort],
            )
        )
        return ranked[: limit if limit is not None else self._settings.max_recommendations]

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def summarize(
        self,
        dimensions: Sequence[DimensionResult],
        previous_scores: Mapping[str, float] | None = None,
        weights: Mapping[str, float] | None = None,
        cohort_scores: Sequence[float] | None = None,
        comparison_team_count: int = 0,
        outcome_confidence: OutcomeConfidenceSummary | None = None,
    ) -> ExecutiveSummaryData:
        """Build the executive summary for one team's assessment.

        Args:
            dimensions: Assessed dimensions in declaration order.
            previous_scores: Latest prior health score per dimension key.
            weights: Relative weight per dimension key (default 1).
            cohort_scores: Overall scores of comparison teams.
            comparison_team_count: Cohort size used when no cohort scores
                are supplied.
            outcome_confidence: Outcome results to embed in the summary.

        Returns:
            The executive summary.

        Raises:
            DuplicateDimensionError: If two dimensions share a key.
        """
        index_dimensions(dimensions)
        changes = self.score_changes(dimensions, previous_scores or {})
        summaries = {
            dimension.dimension_key: self.dimension_summary(
                dimension, changes.get(dimension.dimension_key)
            )
            for dimension in dimensions
        }
        ordered = list(summaries.values())

        overall_score = (
            round_int(sum(d.health_score for d in dimensions) / len(dimensions))
            if dimensions
            else 0
        )
        overall_level = self._classifier.classify(overall_score)
        delta = self.overall_trend_delta(changes, weights)
        gain, decline = self.biggest_movers(dimensions, changes, weights)

        maturity_counts = {level: 0 for level in range(1, 6)}
        for item in ordered:
            maturity_counts[item.maturity_level] += 1

        summary = ExecutiveSummaryData(
            overall_score=overall_score,
            overall_maturity_level=overall_level.level,
            overall_maturity_name=overall_level.name,
            overall_trend=self.trend_direction(delta),
            overall_trend_delta=delta,
            team_rank=self.team_rank(overall_score, cohort_scores, comparison_team_count),
            strengths=tuple(item for item in ordered if item.maturity_level >= 4),
            risks=tuple(item for item in ordered if item.maturity_level <= 2),
            biggest_gain=gain,
            biggest_decline=decline,
            maturity_counts=maturity_counts,
            improving_count=sum(1 for d in dimensions if d.trend == "improving"),
            stable_count=sum(1 for d in dimensions if d.trend == "stable"),
            declining_count=sum(1 for d in dimensions if d.trend == "declining"),
            total_dimensions=len(dimensions),
            total_indicators=sum(item.indicator_count for item in ordered),
            flagged_indicators=sum(item.flagged_indicator_count for item in ordered),
            quick_win_count=sum(
                1
                for d in dimensions
                for r in d.recommendations
                if r.effort == "low" and r.impact == "high"
            ),
            top_recommendations=tuple(self.top_recommendations(dimensions)),
            theme_summaries=tuple(self.theme_summaries(summaries)),
            priority_zones=tuple(self.priority_zones(ordered)),
            outcome_confidence=outcome_confidence,
        )
        logger.debug(
            "Executive summary built",
            overall_score=overall_score,
            overall_trend_delta=delta,
            risk_count=len(summary.risks),
            strength_count=len(summary.strengths),
        )
        return summary

    def summarize_from_view(
        self,
        dimensions: Sequence[DimensionResult],
        view: IHistoryView,
        team_id: str,
        weights: Mapping[str, float] | None = None,
        outcome_confidence: OutcomeConfidenceSummary | None = None,
    ) -> ExecutiveSummaryData:
        """Build the summary reading prior scores and the cohort from ``view``.

        Prior scores are each dimension's latest snapshot. The cohort is every
        other team with a team-level snapshot, scored by its latest one.
        """
        previous: dict[str, float] = {}
        for dimension in dimensions:
            latest = view.latest(entity_id(team_id, "dimension", dimension.dimension_key))
            if latest is not None:
                previous[dimension.dimension_key] = latest.score

        cohort: list[float] = []
        for peer_id in view.peer_entity_ids(entity_id(team_id, "team")):
            latest = view.latest(peer_id)
            if latest is not None:
                cohort.append(latest.score)

        return self.summarize(
            dimensions,
            previous_scores=previous,
            weights=weights,
            cohort_scores=cohort,
            outcome_confidence=outcome_confidence,
        )
