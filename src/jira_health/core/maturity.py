"""Maturity classification.

Maps percentiles (or 0-100 health scores) onto five fixed maturity bands,
outcome scores onto four confidence levels, and indicator benchmark
percentiles onto five tiers. All cut points are module-level constants.

Bands are half-open [lower, upper) except the top band, which includes 100:

    [0, 30)   -> Level 1 (Needs Attention)
    [30, 45)  -> Level 2 (Below Average)
    [45, 55)  -> Level 3 (Average)
    [55, 70)  -> Level 4 (Good)
    [70, 100] -> Level 5 (Excellent)
"""

from collections.abc import Iterable

from jira_health.core.models import (
    ConfidenceLevel,
    Indicator,
    MaturityLevelConfig,
    TierDistribution,
    TrendDirection,
)
from jira_health.core.numeric import clamp, require_finite

MATURITY_LEVELS: tuple[MaturityLevelConfig, ...] = (
    MaturityLevelConfig(
        level=1,
        name="Needs Attention",
        min_percentile=0.0,
        max_percentile=30.0,
        description="Significantly below baseline, intervention required",
        guidance=(
            "Requires immediate focus. Establish basic processes and capture "
            "work consistently."
        ),
    ),
    MaturityLevelConfig(
        level=2,
        name="Below Average",
        min_percentile=30.0,
        max_percentile=45.0,
        description="Under baseline, needs attention",
        guidance="Focus on building stronger practices. Identify and address key gaps.",
    ),
    MaturityLevelConfig(
        level=3,
        name="Average",
        min_percentile=45.0,
        max_percentile=55.0,
        description="Near baseline, stable performance",
        guidance=(
            "You have stable practices in place. Look for improvement opportunities."
        ),
    ),
    MaturityLevelConfig(
        level=4,
        name="Good",
        min_percentile=55.0,
        max_percentile=70.0,
        description="Above baseline with positive direction",
        guidance=(
            "Strong performance! Fine-tune and share best practices with other teams."
        ),
    ),
    MaturityLevelConfig(
        level=5,
        name="Excellent",
        min_percentile=70.0,
        max_percentile=100.0,
        description="Significantly above baseline with strong trajectory",
        guidance=(
            "Exceptional! Consider mentoring other teams and documenting your approach."
        ),
    ),
)

MATURITY_BY_LEVEL: dict[int, MaturityLevelConfig] = {
    config.level: config for config in MATURITY_LEVELS
}

# Inclusive lower bounds, checked highest first
_CONFIDENCE_THRESHOLDS: list[tuple[float, ConfidenceLevel]] = [
    (80.0, "very-high"),
    (60.0, "high"),
    (40.0, "moderate"),
    (0.0, "low"),
]

CONFIDENCE_LABELS: dict[ConfidenceLevel, str] = {
    "very-high": "Very High",
    "high": "High",
    "moderate": "Moderate",
    "low": "Low",
}

# Indicator tiers by benchmark percentile (inclusive upper bound).
# Tier 1 is the "needs attention" risk tier counted by the risk penalty.
_TIER_UPPER_BOUNDS: list[tuple[float, int, str]] = [
    (25.0, 1, "Critical"),
    (50.0, 2, "At Risk"),
    (75.0, 3, "Fair"),
    (90.0, 4, "Healthy"),
    (100.0, 5, "Optimal"),
]

_TREND_PRIORITY: dict[str, int] = {"declining": 0, "stable": 1, "improving": 2}


class MaturityClassifier:
    """Classifies percentiles into the five fixed maturity bands.

    The classifier is stateless; one module-level instance is shared by the
    other components.
    """

    levels: tuple[MaturityLevelConfig, ...] = MATURITY_LEVELS

    def classify(self, percentile: float) -> MaturityLevelConfig:
        """Return the maturity band containing ``percentile``.

        Args:
            percentile: Percentile or health score. Finite values outside
                [0, 100] are clamped first.

        Returns:
            The matching MaturityLevelConfig.

        Raises:
            InvalidScoreError: If ``percentile`` is NaN or infinite.
        """
        value = clamp(require_finite(percentile, "percentile"), 0.0, 100.0)
        for config in reversed(self.levels):
            if value >= config.min_percentile:
                return config
        return self.levels[0]

    def level(self, percentile: float) -> int:
        """Return only the maturity level number for ``percentile``."""
        return self.classify(percentile).level

    def name(self, percentile: float) -> str:
        """Return only the maturity level name for ``percentile``."""
        return self.classify(percentile).name

    @staticmethod
    def get_level(level: int) -> MaturityLevelConfig:
        """Look up a band by level number.

        Raises:
            KeyError: If ``level`` is not in 1-5.
        """
        return MATURITY_BY_LEVEL[level]

    @staticmethod
    def priority_key(level: int, trend: TrendDirection) -> tuple[int, int]:
        """Sort key placing lower levels first, declining before improving."""
        return (level, _TREND_PRIORITY.get(trend, 1))


def confidence_level(score: float) -> ConfidenceLevel:
    """Map an outcome score onto low / moderate / high / very-high.

    Raises:
        InvalidScoreError: If ``score`` is NaN or infinite.
    """
    value = require_finite(score, "score")
    for threshold, band in _CONFIDENCE_THRESHOLDS:
        if value >= threshold:
            return band
    return "low"


def indicator_tier(percentile: float) -> tuple[int, str]:
    """Return ``(tier_level, tier_name)`` for a benchmark percentile."""
    value = clamp(require_finite(percentile, "percentile"), 0.0, 100.0)
    for upper, tier, name in _TIER_UPPER_BOUNDS:
        if value <= upper:
            return tier, name
    return _TIER_UPPER_BOUNDS[-1][1], _TIER_UPPER_BOUNDS[-1][2]


def is_risk_indicator(indicator: Indicator) -> bool:
    """True when the indicator falls in the lowest (needs attention) tier."""
    return indicator_tier(indicator.benchmark_percentile)[0] == 1


def tier_distribution(indicators: Iterable[Indicator]) -> TierDistribution:
    """Count indicators per benchmark tier.

    Args:
        indicators: Indicators to count.

    Returns:
        TierDistribution with per-tier counts, the total, the risk count
        (tier 1) and the healthy count (tiers 4 and 5).
    """
    counts = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    for indicator in indicators:
        tier, _ = indicator_tier(indicator.benchmark_percentile)
        counts[tier] += 1
    return TierDistribution(
        needs_attention=counts[1],
        below_average=counts[2],
        average=counts[3],
        good=counts[4],
        excellent=counts[5],
        total=sum(counts.values()),
        risk_count=counts[1],
        healthy_count=counts[4] + counts[5],
    )


CLASSIFIER: MaturityClassifier = MaturityClassifier()
