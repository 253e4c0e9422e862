"""Immutable records consumed and produced by the scoring engine.

Inputs (indicators, dimension results, outcome definitions, snapshots) are
validated on construction: non-finite numbers are rejected and finite scores
outside [0, 100] are clamped. Outputs are plain serializable records with no
embedded behaviour, so ``model_dump()`` / ``model_dump_json()`` give a
transport-ready payload.
"""

from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jira_health.core.errors import DuplicateDimensionError
from jira_health.core.numeric import clamp

TrendDirection = Literal["improving", "stable", "declining"]
OutcomeTrend = Literal["up", "down", "stable"]
ConfidenceLevel = Literal["low", "moderate", "high", "very-high"]
EffortLevel = Literal["low", "medium", "high"]

# Keys become components of "team:kind:key" history ids
_KEY_PATTERN = r"^[^:]+$"

# Value change needed before a trend series counts as moving
_TREND_MIN_POINTS = 3
_TREND_MIN_PERCENT_CHANGE = 5.0
_TREND_MIN_ABSOLUTE_CHANGE = 0.05


class EngineModel(BaseModel):
    """Base for every engine record: frozen and finite-only."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)


def _clamp_score(value: float | None) -> float | None:
    if value is None:
        return None
    return clamp(value, 0.0, 100.0)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class TrendPoint(EngineModel):
    """One point of an indicator or dimension time series.

    Attributes:
        period: Sortable period label (e.g. '2025-Q3' or '2025-07').
        value: Measured value for the period.
    """

    period: str
    value: float


def series_change(points: tuple[TrendPoint, ...]) -> float | None:
    """Last value minus first value; None with fewer than two points."""
    if len(points) < 2:
        return None
    return points[-1].value - points[0].value


def trend_from_values(
    points: tuple[TrendPoint, ...], higher_is_better: bool = True
) -> TrendDirection:
    """Classify a measured series by its first-to-last change.

    Values within 1 of zero need an absolute move of 0.05; larger values need
    a 5% move. Shorter series are stable.
    """
    change = series_change(points)
    if change is None or len(points) < _TREND_MIN_POINTS:
        return "stable"
    first = points[0].value
    if abs(first) <= 1:
        significant = abs(change) >= _TREND_MIN_ABSOLUTE_CHANGE
    else:
        significant = abs(change / first) * 100 >= _TREND_MIN_PERCENT_CHANGE
    if not significant:
        return "stable"
    if (change > 0) == higher_is_better:
        return "improving"
    return "declining"


class Indicator(EngineModel):
    """A single measured Jira indicator.

    Attributes:
        id: Stable indicator identifier (e.g. 'staleWorkItems').
        name: Human-readable indicator name.
        value: Raw measured value.
        display_value: Pre-formatted value for display.
        unit: Measurement unit, used to select a population baseline.
        benchmark_percentile: Percentile of the value within the benchmark
            cohort, clamped to [0, 100].
        trend: Direction of recent movement. Used when ``trend_data`` is
            too short to classify.
        trend_data: Historical values, oldest first.
        higher_is_better: False for indicators where a lower value is healthier.
    """

    id: str
    name: str = ""
    value: float
    display_value: str = ""
    unit: str = ""
    benchmark_percentile: float
    trend: TrendDirection = "stable"
    trend_data: tuple[TrendPoint, ...] = ()
    higher_is_better: bool = True

    @field_validator("benchmark_percentile")
    @classmethod
    def clamp_percentile(cls, value: float) -> float:
        """Clamp the benchmark percentile into [0, 100]."""
        return clamp(value, 0.0, 100.0)

    @property
    def observed_trend(self) -> TrendDirection:
        """Trend measured from ``trend_data``, falling back to ``trend``."""
        if len(self.trend_data) < _TREND_MIN_POINTS:
            return self.trend
        return trend_from_values(self.trend_data, self.higher_is_better)


class IndicatorCategory(EngineModel):
    """A named group of indicators within a dimension."""

    id: str
    name: str = ""
    indicators: tuple[Indicator, ...] = ()


class Recommendation(EngineModel):
    """An improvement action suggested for a dimension.

    Attributes:
        id: Recommendation identifier.
        title: Short action title.
        description: Longer explanation of the action.
        effort: Relative effort to implement.
        impact: Expected impact once implemented.
    """

    id: str
    title: str
    description: str = ""
    effort: EffortLevel = "medium"
    impact: EffortLevel = "medium"


class DimensionResult(EngineModel):
    """Assessment result for one Jira health dimension.

    The maturity level is never stored; it is always derived from the score
    it describes.

    Attributes:
        dimension_key: Unique dimension key (e.g. 'dataFreshness').
        dimension_name: Display name.
        health_score: Health score, clamped to [0, 100].
        css_score: Optional current state score, clamped to [0, 100].
        overall_percentile: Optional benchmark percentile of the dimension,
            clamped to [0, 100]. Falls back to ``health_score``.
        trend: Direction of recent movement.
        categories: Indicator categories measured for the dimension.
        recommendations: Suggested improvement actions.
        trend_data: Historical dimension scores, oldest first. Supplies the
            score change when no prior snapshot exists.
    """

    dimension_key: str = Field(min_length=1, pattern=_KEY_PATTERN)
    dimension_name: str = ""
    health_score: float
    css_score: float | None = None
    overall_percentile: float | None = None
    trend: TrendDirection = "stable"
    categories: tuple[IndicatorCategory, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    trend_data: tuple[TrendPoint, ...] = ()

    @field_validator("health_score", "css_score", "overall_percentile")
    @classmethod
    def clamp_scores(cls, value: float | None) -> float | None:
        """Clamp scores into [0, 100]."""
        return _clamp_score(value)

    @property
    def percentile(self) -> float:
        """Benchmark percentile, falling back to the health score."""
        if self.overall_percentile is None:
            return self.health_score
        return self.overall_percentile

    @property
    def current_state_score(self) -> float:
        """CSS used for aggregation, falling back to the health score."""
        if self.css_score is None:
            return self.health_score
        return self.css_score

    @property
    def trend_change(self) -> float | None:
        """Score change across ``trend_data``; None with fewer than two points."""
        return series_change(self.trend_data)

    @property
    def indicators(self) -> tuple[Indicator, ...]:
        """All indicators across every category, in declaration order."""
        return tuple(
            indicator for category in self.categories for indicator in category.indicators
        )


class DimensionContribution(EngineModel):
    """How one dimension feeds an outcome.

    Attributes:
        dimension_key: Key of the contributing dimension.
        weight: Relative weight within the outcome (weights need not sum to 1).
        critical_threshold: Minimum health score below which the outcome is
            capped. None when the dimension has no threshold.
        why_it_matters: Rationale shown alongside the contribution.
    """

    dimension_key: str = Field(min_length=1, pattern=_KEY_PATTERN)
    weight: float = Field(gt=0)
    critical_threshold: float | None = Field(default=None, ge=0, le=100)
    why_it_matters: str = ""


class OutcomeDefinition(EngineModel):
    """Static definition of a business outcome scored from dimensions.

    Attributes:
        id: Outcome identifier (e.g. 'commitments').
        name: Display name.
        short_name: Compact display name.
        question: The question the outcome answers.
        dimensions: Ordered contributing dimensions.
    """

    id: str = Field(min_length=1, pattern=_KEY_PATTERN)
    name: str
    short_name: str = ""
    question: str = ""
    dimensions: tuple[DimensionContribution, ...]

    @property
    def total_weight(self) -> float:
        """Sum of contribution weights."""
        return sum(contribution.weight for contribution in self.dimensions)


class HistoricalSnapshot(EngineModel):
    """Score of an entity at one period.

    Attributes:
        entity_id: Entity the score belongs to (see ``entity_id()``).
        period: Sortable period label.
        score: Score at that period, clamped to [0, 100].
    """

    entity_id: str = Field(min_length=1)
    period: str = Field(min_length=1)
    score: float

    @field_validator("score")
    @classmethod
    def clamp_score(cls, value: float) -> float:
        """Clamp the score into [0, 100]."""
        return clamp(value, 0.0, 100.0)


# ---------------------------------------------------------------------------
# Maturity and risk adjustment
# ---------------------------------------------------------------------------


class MaturityLevelConfig(EngineModel):
    """One of the five fixed maturity bands.

    Attributes:
        level: Level number, 1 (lowest) to 5.
        name: Band name.
        min_percentile: Inclusive lower bound.
        max_percentile: Exclusive upper bound (inclusive for level 5).
        description: Brief description of the band.
        guidance: Longer guidance text.
    """

    level: int = Field(ge=1, le=5)
    name: str
    min_percentile: float
    max_percentile: float
    description: str
    guidance: str


class TierDistribution(EngineModel):
    """Count of indicators per benchmark tier."""

    needs_attention: int = 0
    below_average: int = 0
    average: int = 0
    good: int = 0
    excellent: int = 0
    total: int = 0
    risk_count: int = 0
    healthy_count: int = 0


class TrendBreakdown(EngineModel):
    """Count of indicators per trend direction."""

    improving: int = 0
    stable: int = 0
    declining: int = 0


class RiskAdjustedMaturity(EngineModel):
    """A dimension's maturity after risk and trend adjustment.

    Attributes:
        dimension_key: Dimension the result belongs to.
        base_percentile: Unadjusted percentile.
        risk_penalty: Points deducted for indicators needing attention.
        trend_adjustment: Points added (or deducted) for the indicator trend balance.
        adjusted_percentile: Adjusted percentile, in [0, 100].
        maturity_level: Level derived from ``adjusted_percentile``.
        maturity_name: Name of ``maturity_level``.
        original_maturity_level: Level derived from ``base_percentile``.
        was_significantly_adjusted: True when the level changed or the
            percentile moved by at least the significance delta.
        tier_distribution: Indicator counts per tier.
        trend_breakdown: Indicator counts per trend direction.
    """

    dimension_key: str = ""
    base_percentile: float
    risk_penalty: float
    trend_adjustment: float
    adjusted_percentile: float
    maturity_level: int
    maturity_name: str
    original_maturity_level: int
    was_significantly_adjusted: bool
    tier_distribution: TierDistribution
    trend_breakdown: TrendBreakdown


# ---------------------------------------------------------------------------
# Composite health score
# ---------------------------------------------------------------------------


class ConfidenceInterval(EngineModel):
    """Bounds of a 90% confidence interval."""

    lower: float
    upper: float


class ComponentsAvailable(EngineModel):
    """Which CHS components contributed to a composite score."""

    css: bool = True
    trs: bool = False
    pgs: bool = False


class ComponentWeights(EngineModel):
    """Effective CHS component weights after redistribution."""

    css: float
    trs: float
    pgs: float


class DimensionScoreInput(EngineModel):
    """A weighted current state score fed into a composite score."""

    dimension_key: str
    css_score: float
    weight: float = Field(default=1.0, gt=0)

    @field_validator("css_score")
    @classmethod
    def clamp_css(cls, value: float) -> float:
        """Clamp the score into [0, 100]."""
        return clamp(value, 0.0, 100.0)


class CompositeHealthScore(EngineModel):
    """Blended CSS / TRS / PGS score with its uncertainty.

    Attributes:
        health_score: Composite score, in [5, 95] (0 when nothing contributed).
        css_score: Current state score.
        trs_score: Trajectory score, None when history is too short.
        pgs_score: Peer growth score, None without peers or TRS.
        standard_error: Standard error of the composite.
        confidence_interval: 90% confidence interval.
        components_available: Which components contributed.
        weights_used: Effective component weights.
        dimension_contributions: Inputs that formed the CSS.
    """

    health_score: float
    css_score: float
    trs_score: float | None = None
    pgs_score: float | None = None
    standard_error: float
    confidence_interval: ConfidenceInterval
    components_available: ComponentsAvailable
    weights_used: ComponentWeights
    dimension_contributions: tuple[DimensionScoreInput, ...] = ()


class CategoryHealthScore(EngineModel):
    """Health score of one indicator category."""

    category_id: str
    score: int
    weight: float


class DimensionHealthScore(EngineModel):
    """Current state and trend-nudged health score of one dimension."""

    dimension_key: str
    css_score: float
    health_score: int
    category_scores: tuple[CategoryHealthScore, ...] = ()


# ---------------------------------------------------------------------------
# Outcome confidence
# ---------------------------------------------------------------------------


class OutcomeContribution(EngineModel):
    """One dimension's contribution to an outcome.

    Attributes:
        dimension_key: Contributing dimension.
        dimension_name: Display name (the key when the dimension is missing).
        weight: Relative weight from the definition.
        health_score: Dimension health score, 0 when missing.
        weighted_score: CSS times weight, 0 when missing.
        is_critical_gap: Health score is below the critical threshold.
        is_missing: Dimension was not part of the assessment.
        critical_threshold: Threshold from the definition, if any.
        why_it_matters: Rationale from the definition.
    """

    dimension_key: str
    dimension_name: str
    weight: float
    health_score: float
    weighted_score: float
    is_critical_gap: bool = False
    is_missing: bool = False
    critical_threshold: float | None = None
    why_it_matters: str = ""


class OutcomeConfidenceResult(EngineModel):
    """Confidence score for one outcome.

    Attributes:
        id: Outcome identifier.
        name: Outcome name.
        short_name: Compact outcome name.
        question: The question the outcome answers.
        raw_score: Rounded CSS before any cap.
        final_score: Rounded CHS, capped when a critical gap exists.
        css_score: Current state score.
        trs_score: Trajectory score, if available.
        pgs_score: Peer growth score, if available.
        standard_error: Standard error of the composite.
        confidence_interval: 90% confidence interval of the composite.
        components_available: Which CHS components contributed.
        contributions: Per-dimension contributions in definition order.
        critical_gaps: Contributions that breach their threshold.
        is_capped: The critical-gap cap lowered the final score.
        trend: Weighted trend across present dimensions.
        trend_label: Narrative description of ``trend``.
        confidence_level: Band derived from ``final_score``.
    """

    id: str
    name: str
    short_name: str
    question: str
    raw_score: int
    final_score: int
    css_score: float
    trs_score: float | None = None
    pgs_score: float | None = None
    standard_error: float
    confidence_interval: ConfidenceInterval
    components_available: ComponentsAvailable
    contributions: tuple[OutcomeContribution, ...]
    critical_gaps: tuple[OutcomeContribution, ...] = ()
    is_capped: bool = False
    trend: OutcomeTrend = "stable"
    trend_label: str = ""
    confidence_level: ConfidenceLevel


class OutcomeConfidenceSummary(EngineModel):
    """All outcome results with the extremes and overall average."""

    outcomes: tuple[OutcomeConfidenceResult, ...] = ()
    lowest_outcome: OutcomeConfidenceResult | None = None
    highest_outcome: OutcomeConfidenceResult | None = None
    overall_average: int = 0


# ---------------------------------------------------------------------------
# Executive summary
# ---------------------------------------------------------------------------


class DimensionSummary(EngineModel):
    """Compact dimension view used throughout the executive summary."""

    dimension_key: str
    dimension_name: str
    health_score: float
    maturity_level: int
    maturity_name: str
    trend: TrendDirection
    score_change: float | None = None
    indicator_count: int = 0
    flagged_indicator_count: int = 0


class ScoreMovement(EngineModel):
    """Score change of one dimension since its latest prior snapshot."""

    dimension_key: str
    dimension_name: str
    change: float
    weight: float


class TeamRank(EngineModel):
    """Position of the team within its comparison cohort.

    Attributes:
        rank: 1-based rank, 1 being the healthiest.
        total: Number of teams including the assessed one.
        ordinal: Rank with its ordinal suffix (e.g. '3rd').
        narrative: Display text (e.g. '3rd of 12 similar teams').
        is_estimated: True when no cohort scores were available and the
            rank was estimated from the score alone.
    """

    rank: int
    total: int
    ordinal: str
    narrative: str
    is_estimated: bool = False


class ThemeSummary(EngineModel):
    """Aggregated view of the dimensions in one theme group."""

    theme_id: str
    theme_name: str
    theme_question: str
    concern_count: int
    is_healthy: bool
    overall_trend: TrendDirection
    dimensions: tuple[DimensionSummary, ...] = ()


class PriorityZone(EngineModel):
    """One cell of the 9-zone risk-by-trend priority matrix."""

    zone: str
    label: str
    description: str
    dimensions: tuple[DimensionSummary, ...] = ()


class PrioritizedRecommendation(EngineModel):
    """A recommendation ranked by impact versus effort."""

    recommendation: Recommendation
    source_dimension_key: str
    source_dimension_name: str
    priority: int


class ExecutiveSummaryData(EngineModel):
    """Narrative roll-up of an assessment.

    Attributes:
        overall_score: Rounded mean dimension health score.
        overall_maturity_level: Level of ``overall_score``.
        overall_maturity_name: Name of ``overall_maturity_level``.
        overall_trend: Direction of ``overall_trend_delta``.
        overall_trend_delta: Weighted mean score change since the prior snapshot.
        team_rank: Position within the comparison cohort.
        strengths: Dimensions at level 4 or above.
        risks: Dimensions at level 2 or below.
        biggest_gain: Dimension with the largest positive change.
        biggest_decline: Dimension with the most negative change.
        maturity_counts: Number of dimensions per maturity level.
        improving_count: Dimensions trending up.
        stable_count: Dimensions holding steady.
        declining_count: Dimensions trending down.
        total_dimensions: Dimensions assessed.
        total_indicators: Indicators measured.
        flagged_indicators: Indicators in the bottom quartile.
        quick_win_count: Low-effort high-impact recommendations.
        top_recommendations: Highest-priority recommendations.
        theme_summaries: Per-theme roll-ups.
        priority_zones: 9-zone priority matrix.
        outcome_confidence: Outcome confidence results, if computed.
    """

    overall_score: int
    overall_maturity_level: int
    overall_maturity_name: str
    overall_trend: TrendDirection
    overall_trend_delta: float
    team_rank: TeamRank
    strengths: tuple[DimensionSummary, ...] = ()
    risks: tuple[DimensionSummary, ...] = ()
    biggest_gain: ScoreMovement | None = None
    biggest_decline: ScoreMovement | None = None
    maturity_counts: dict[int, int] = Field(default_factory=dict)
    improving_count: int = 0
    stable_count: int = 0
    declining_count: int = 0
    total_dimensions: int = 0
    total_indicators: int = 0
    flagged_indicators: int = 0
    quick_win_count: int = 0
    top_recommendations: tuple[PrioritizedRecommendation, ...] = ()
    theme_summaries: tuple[ThemeSummary, ...] = ()
    priority_zones: tuple[PriorityZone, ...] = ()
    outcome_confidence: OutcomeConfidenceSummary | None = None


class AssessmentReport(EngineModel):
    """Everything computed in one assessment cycle for a team."""

    team_id: str
    period: str | None = None
    risk_adjusted: tuple[RiskAdjustedMaturity, ...] = ()
    outcome_confidence: OutcomeConfidenceSummary
    executive_summary: ExecutiveSummaryData
    snapshots_recorded: int = 0


def index_dimensions(dimensions: Iterable[DimensionResult]) -> dict[str, DimensionResult]:
    """Map dimension results by key, preserving input order.

    Raises:
        DuplicateDimensionError: If two results share a dimension key.
    """
    indexed: dict[str, DimensionResult] = {}
    for dimension in dimensions:
        if dimension.dimension_key in indexed:
            raise DuplicateDimensionError(
                f"Dimension key {dimension.dimension_key!r} appears more than once"
            )
        indexed[dimension.dimension_key] = dimension
    return indexed
