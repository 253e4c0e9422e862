"""Dimension-level health scores from indicator measurements.

Each indicator is converted to a z-score and mapped onto a 0-100 scale where
50 is the population baseline and one standard deviation is worth 10 points:

    score = clamp(50 + 10 * z, 0, 100)

When a population baseline exists for the indicator's unit the z-score comes
from the raw value (inverted for lower-is-better indicators); otherwise it is
recovered from the benchmark percentile through the inverse normal CDF.
Category scores are rounded means of their indicators; a dimension's current
state score (CSS) is the weighted mean of its category scores.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from jira_health.core.composite import CompositeHealthScoreEngine
from jira_health.core.interfaces import IHistoryView, entity_id
from jira_health.core.models import (
    CategoryHealthScore,
    CompositeHealthScore,
    DimensionHealthScore,
    DimensionResult,
    Indicator,
    IndicatorCategory,
    TrendDirection,
)
from jira_health.core.numeric import (
    clamp,
    inverse_normal_cdf,
    round_half_up,
    round_int,
    weighted_mean,
)
from jira_health.observability import get_logger
from jira_health.settings import EngineSettings, get_settings

logger = get_logger(__name__)

_BASELINE_SCORE: float = 50.0
_POINTS_PER_STD_DEV: float = 10.0


@dataclass(frozen=True)
class PopulationBaseline:
    """Mean and standard deviation of an indicator type across teams."""

    mean: float
    std_dev: float


POPULATION_BASELINES: dict[str, PopulationBaseline] = {
    "percentage": PopulationBaseline(mean=0.5, std_dev=0.2),
    "count": PopulationBaseline(mean=10.0, std_dev=5.0),
    "days": PopulationBaseline(mean=7.0, std_dev=3.0),
    "ratio": PopulationBaseline(mean=1.0, std_dev=0.3),
}

# Indicator units accepted for each baseline
_UNIT_ALIASES: dict[str, str] = {
    "%": "percentage",
    "percent": "percentage",
    "percentage": "percentage",
    "count": "count",
    "items": "count",
    "issues": "count",
    "days": "days",
    "day": "days",
    "ratio": "ratio",
    "x": "ratio",
}


def baseline_for_unit(unit: str) -> PopulationBaseline | None:
    """Population baseline for an indicator unit, or None if unknown."""
    key = _UNIT_ALIASES.get(unit.strip().lower())
    return POPULATION_BASELINES.get(key) if key else None


def z_to_score(z_score: float) -> float:
    """Map a z-score onto the 0-100 health scale."""
    return clamp(_BASELINE_SCORE + z_score * _POINTS_PER_STD_DEV, 0.0, 100.0)


def percentile_to_z(percentile: float) -> float:
    """Approximate z-score of a 0-100 percentile."""
    return inverse_normal_cdf(percentile / 100.0)


class DimensionHealthScorer:
    """Scores indicators, categories and dimensions on the 0-100 health scale."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        chs_engine: CompositeHealthScoreEngine | None = None,
    ) -> None:
        """Initialise the scorer.

        Args:
            settings: Engine settings. Defaults to the process-wide settings.
            chs_engine: Engine used by ``score_with_history``.
        """
        self._settings = settings or get_settings()
        self._chs = chs_engine or CompositeHealthScoreEngine(self._settings)

    def indicator_score(self, indicator: Indicator) -> float:
        """Health score of one indicator, in [0, 100]."""
        baseline = baseline_for_unit(indicator.unit)
        if baseline is not None and baseline.std_dev > 0:
            z_score = (indicator.value - baseline.mean) / baseline.std_dev
            if not indicator.higher_is_better:
                z_score = -z_score
        else:
            z_score = percentile_to_z(indicator.benchmark_percentile)
        return z_to_score(z_score)

    def category_score(self, category: IndicatorCategory) -> int:
        """Rounded mean indicator score; 50 for an empty category."""
        if not category.indicators:
            return int(_BASELINE_SCORE)
        scores = [self.indicator_score(indicator) for indicator in category.indicators]
        return round_int(sum(scores) / len(scores))

    def category_scores(
        self,
        categories: Sequence[IndicatorCategory],
        category_weights: Mapping[str, float] | None = None,
    ) -> list[CategoryHealthScore]:
        """Score every category with its weight (default 1)."""
        weights = category_weights or {}
        return [
            CategoryHealthScore(
                category_id=category.id,
                score=self.category_score(category),
                weight=weights.get(category.id, 1.0),
            )
            for category in categories
        ]

    def current_state_score(
        self,
        categories: Sequence[IndicatorCategory],
        category_weights: Mapping[str, float] | None = None,
    ) -> float:
        """Weighted mean of category scores; 50 without categories."""
        scored = self.category_scores(categories, category_weights)
        return weighted_mean(
            [(item.score, item.weight) for item in scored], default=_BASELINE_SCORE
        )

    def apply_trend(self, score: float, trend: TrendDirection) -> float:
        """Nudge a score up for improving and down for declining, clamped."""
        nudge = self._settings.health_trend_nudge
        offsets = {"improving": nudge, "stable": 0.0, "declining": -nudge}
        return clamp(score + offsets.get(trend, 0.0), 0.0, 100.0)

    def health_score(
        self,
        categories: Sequence[IndicatorCategory],
        trend: TrendDirection,
        category_weights: Mapping[str, float] | None = None,
    ) -> int:
        """CSS with the trend nudge applied, rounded to an integer."""
        css = self.current_state_score(categories, category_weights)
        return round_int(self.apply_trend(css, trend))

    def score(
        self,
        dimension: DimensionResult,
        category_weights: Mapping[str, float] | None = None,
    ) -> DimensionHealthScore:
        """Score a dimension from its categories.

        Args:
            dimension: Dimension with indicator categories.
            category_weights: Optional weight per category id (default 1).

        Returns:
            CSS, trend-nudged health score and per-category scores.
        """
        scored = self.category_scores(dimension.categories, category_weights)
        css = weighted_mean(
            [(item.score, item.weight) for item in scored], default=_BASELINE_SCORE
        )
        return DimensionHealthScore(
            dimension_key=dimension.dimension_key,
            css_score=round_half_up(css, 1),
            health_score=round_int(self.apply_trend(css, dimension.trend)),
            category_scores=tuple(scored),
        )

    def score_with_history(
        self,
        dimension: DimensionResult,
        view: IHistoryView,
        team_id: str,
        category_weights: Mapping[str, float] | None = None,
    ) -> CompositeHealthScore:
        """Full CHS for a dimension using its history and peers from ``view``.

        Args:
            dimension: Dimension with indicator categories.
            view: History view taken at the start of the computation.
            team_id: Team that owns the dimension.
            category_weights: Optional weight per category id.

        Returns:
            The dimension's composite health score.
        """
        css = self.current_state_score(dimension.categories, category_weights)
        key = entity_id(team_id, "dimension", dimension.dimension_key)
        result = self._chs.score_dimension(
            css,
            history=view.scores(key),
            peer_trs=self._chs.peer_trajectory_scores(view, key),
            dimension_key=dimension.dimension_key,
        )
        logger.debug(
            "Dimension CHS computed",
            dimension_key=dimension.dimension_key,
            team_id=team_id,
            health_score=result.health_score,
        )
        return result

    def transform_percentile(self, percentile: float, trend: TrendDirection) -> float:
        """Approximate a health score from a bare percentile and trend."""
        return self.apply_trend(z_to_score(percentile_to_z(percentile)), trend)
