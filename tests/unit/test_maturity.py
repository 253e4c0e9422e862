"""Unit tests for maturity classification, confidence levels and indicator tiers."""

import math

import pytest

from jira_health.core.errors import InvalidScoreError
from jira_health.core.maturity import (
    CLASSIFIER,
    MATURITY_LEVELS,
    MaturityClassifier,
    confidence_level,
    indicator_tier,
    is_risk_indicator,
    tier_distribution,
)
from jira_health.core.models import Indicator


def _indicator(percentile: float, trend: str = "stable") -> Indicator:
    return Indicator(id=f"ind-{percentile}", value=0, benchmark_percentile=percentile, trend=trend)


@pytest.fixture()
def classifier() -> MaturityClassifier:
    """Provide a fresh MaturityClassifier instance."""
    return MaturityClassifier()


class TestClassify:
    """Verify band placement of MaturityClassifier.classify."""

    @pytest.mark.parametrize(
        "percentile,expected_level",
        [
            (0, 1),
            (29, 1),
            (29.99, 1),
            (30, 2),
            (44, 2),
            (45, 3),
            (54, 3),
            (55, 4),
            (69, 4),
            (70, 5),
            (100, 5),
        ],
    )
    def test_boundaries(
        self, classifier: MaturityClassifier, percentile: float, expected_level: int
    ) -> None:
        """Bands are half-open with the lower bound inclusive."""
        assert classifier.classify(percentile).level == expected_level

    def test_names_match_levels(self, classifier: MaturityClassifier) -> None:
        """Each band reports its fixed name."""
        assert classifier.name(10) == "Needs Attention"
        assert classifier.name(40) == "Below Average"
        assert classifier.name(50) == "Average"
        assert classifier.name(60) == "Good"
        assert classifier.name(90) == "Excellent"

    def test_monotonic_over_full_range(self, classifier: MaturityClassifier) -> None:
        """A higher percentile never yields a lower level."""
        previous = 0
        for step in range(0, 1001):
            level = classifier.level(step / 10)
            assert level >= previous
            previous = level

    def test_out_of_range_is_clamped(self, classifier: MaturityClassifier) -> None:
        """Finite values outside [0, 100] clamp to the end bands."""
        assert classifier.level(-25) == 1
        assert classifier.level(250) == 5

    def test_nan_raises(self, classifier: MaturityClassifier) -> None:
        """NaN is a caller error, never silently level 3."""
        with pytest.raises(InvalidScoreError):
            classifier.classify(math.nan)

    def test_nan_error_is_value_error(self, classifier: MaturityClassifier) -> None:
        """InvalidScoreError can be caught as ValueError."""
        with pytest.raises(ValueError):
            classifier.classify(float("nan"))

    def test_infinity_raises(self, classifier: MaturityClassifier) -> None:
        """Infinite input is rejected rather than clamped."""
        with pytest.raises(InvalidScoreError):
            classifier.classify(math.inf)

    def test_bands_are_contiguous(self) -> None:
        """Each band starts where the previous one ends."""
        for lower, upper in zip(MATURITY_LEVELS, MATURITY_LEVELS[1:]):
            assert lower.max_percentile == upper.min_percentile
        assert MATURITY_LEVELS[0].min_percentile == 0
        assert MATURITY_LEVELS[-1].max_percentile == 100

    def test_get_level_lookup(self) -> None:
        """Bands can be fetched by level number."""
        assert MaturityClassifier.get_level(4).name == "Good"
        with pytest.raises(KeyError):
            MaturityClassifier.get_level(6)

    def test_priority_key_orders_declining_first(self) -> None:
        """Within a level, declining sorts before stable before improving."""
        keys = [
            MaturityClassifier.priority_key(2, "improving"),
            MaturityClassifier.priority_key(2, "declining"),
            MaturityClassifier.priority_key(1, "improving"),
            MaturityClassifier.priority_key(2, "stable"),
        ]
        assert sorted(keys) == [(1, 2), (2, 0), (2, 1), (2, 2)]

    def test_shared_instance(self) -> None:
        """The module-level classifier behaves like a fresh one."""
        assert CLASSIFIER.level(55) == MaturityClassifier().level(55)


class TestConfidenceLevel:
    """Verify the four confidence bands."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (100, "very-high"),
            (80, "very-high"),
            (79.9, "high"),
            (60, "high"),
            (59, "moderate"),
            (40, "moderate"),
            (39.9, "low"),
            (0, "low"),
        ],
    )
    def test_bands(self, score: float, expected: str) -> None:
        """Cut points are 80, 60 and 40 with inclusive lower bounds."""
        assert confidence_level(score) == expected

    def test_nan_raises(self) -> None:
        """NaN scores are rejected."""
        with pytest.raises(InvalidScoreError):
            confidence_level(math.nan)


class TestIndicatorTiers:
    """Verify indicator tier placement and distribution counts."""

    @pytest.mark.parametrize(
        "percentile,expected_tier",
        [(0, 1), (25, 1), (25.5, 2), (50, 2), (75, 3), (90, 4), (90.5, 5), (100, 5)],
    )
    def test_tier_bounds(self, percentile: float, expected_tier: int) -> None:
        """Tier upper bounds are inclusive."""
        assert indicator_tier(percentile)[0] == expected_tier

    def test_risk_indicator(self) -> None:
        """Only the lowest tier counts as a risk indicator."""
        assert is_risk_indicator(_indicator(20))
        assert not is_risk_indicator(_indicator(26))

    def test_distribution_counts(self) -> None:
        """Counts per tier plus risk and healthy totals."""
        distribution = tier_distribution(
            [_indicator(p) for p in (10, 20, 40, 60, 80, 95, 99)]
        )
        assert distribution.needs_attention == 2
        assert distribution.below_average == 1
        assert distribution.average == 1
        assert distribution.good == 1
        assert distribution.excellent == 2
        assert distribution.total == 7
        assert distribution.risk_count == 2
        assert distribution.healthy_count == 3

    def test_empty_distribution(self) -> None:
        """No indicators gives all-zero counts."""
        distribution = tier_distribution([])
        assert distribution.total == 0
        assert distribution.risk_count == 0
