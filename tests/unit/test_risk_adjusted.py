"""Unit tests for risk-adjusted maturity."""

import math

import pytest

from jira_health.core.errors import InvalidScoreError
from jira_health.core.models import (
    DimensionResult,
    Indicator,
    IndicatorCategory,
    TierDistribution,
    TrendBreakdown,
    TrendPoint,
)
from jira_health.core.risk_adjusted import (
    RiskAdjustedMaturityCalculator,
    adjustment_summary,
    requires_attention,
    sort_key,
    trend_breakdown,
)
from jira_health.settings import EngineSettings


def _indicators(*specs: tuple[float, str]) -> list[Indicator]:
    """Build indicators from (benchmark_percentile, trend) pairs."""
    return [
        Indicator(id=f"ind{i}", value=0, benchmark_percentile=percentile, trend=trend)
        for i, (percentile, trend) in enumerate(specs)
    ]


@pytest.fixture()
def calculator(settings: EngineSettings) -> RiskAdjustedMaturityCalculator:
    """Provide a calculator with default settings."""
    return RiskAdjustedMaturityCalculator(settings)


class TestRiskPenalty:
    """Verify the needs-attention penalty."""

    def test_two_points_per_indicator(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """Each needs-attention indicator costs 2 points."""
        assert calculator.risk_penalty(TierDistribution(needs_attention=3)) == 6

    def test_capped_at_twenty(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """The penalty never exceeds 20."""
        assert calculator.risk_penalty(TierDistribution(needs_attention=15)) == 20

    def test_zero_without_risk(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """No needs-attention indicators means no penalty."""
        assert calculator.risk_penalty(TierDistribution(good=4)) == 0


class TestTrendAdjustment:
    """Verify the linear trend balance adjustment."""

    def test_no_indicators(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """An empty breakdown gives zero."""
        assert calculator.trend_adjustment(TrendBreakdown()) == 0

    def test_balanced(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """Equal improving and declining counts cancel out."""
        assert calculator.trend_adjustment(TrendBreakdown(improving=2, declining=2)) == 0

    def test_proportional(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """Net share of improving indicators times 10."""
        breakdown = TrendBreakdown(improving=3, stable=1, declining=1)
        assert calculator.trend_adjustment(breakdown) == 4

    def test_rounds_half_up(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """+2.5 rounds to 3 and -2.5 rounds to -2."""
        assert calculator.trend_adjustment(TrendBreakdown(improving=1, stable=3)) == 3
        assert calculator.trend_adjustment(TrendBreakdown(declining=1, stable=3)) == -2

    def test_bounded(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """All improving gives +10, all declining -10."""
        assert calculator.trend_adjustment(TrendBreakdown(improving=7)) == 10
        assert calculator.trend_adjustment(TrendBreakdown(declining=7)) == -10

    def test_breakdown_counts_stable(self) -> None:
        """Indicators neither improving nor declining count as stable."""
        breakdown = trend_breakdown(
            _indicators((50, "improving"), (50, "stable"), (50, "declining"), (50, "stable"))
        )
        assert breakdown == TrendBreakdown(improving=1, stable=2, declining=1)

    def test_breakdown_reads_measured_series(self) -> None:
        """A series of three or more points decides the indicator's direction."""
        falling = tuple(
            TrendPoint(period=f"2025-Q{quarter}", value=value)
            for quarter, value in ((1, 30), (2, 25), (3, 20))
        )
        indicators = _indicators((50, "improving"), (50, "improving"))
        indicators[0] = indicators[0].model_copy(update={"trend_data": falling})
        assert trend_breakdown(indicators) == TrendBreakdown(improving=1, declining=1)


class TestCalculate:
    """Verify the full adjustment."""

    def test_penalty_drops_a_level(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """Three needs-attention indicators pull 60 down to 54 (Good -> Average)."""
        result = calculator.calculate(
            60, _indicators((10, "stable"), (20, "stable"), (25, "stable"), (80, "stable"))
        )
        assert result.risk_penalty == 6
        assert result.trend_adjustment == 0
        assert result.adjusted_percentile == 54
        assert result.original_maturity_level == 4
        assert result.maturity_level == 3
        assert result.maturity_name == "Average"
        assert result.was_significantly_adjusted is True

    def test_small_adjustment_not_significant(
        self, calculator: RiskAdjustedMaturityCalculator
    ) -> None:
        """Same level and a move under 5 points is not significant."""
        result = calculator.calculate(80, _indicators((10, "stable"), (80, "stable")))
        assert result.adjusted_percentile == 78
        assert result.maturity_level == result.original_maturity_level == 5
        assert result.was_significantly_adjusted is False

    def test_exactly_five_points_is_significant(
        self, calculator: RiskAdjustedMaturityCalculator
    ) -> None:
        """A move of exactly 5 points counts even within the same level."""
        specs = [(10, "stable"), (10, "stable"), (60, "declining")] + [(60, "stable")] * 7
        result = calculator.calculate(52, _indicators(*specs))
        assert result.risk_penalty == 4
        assert result.trend_adjustment == -1
        assert result.adjusted_percentile == 47
        assert result.maturity_level == result.original_maturity_level == 3
        assert result.was_significantly_adjusted is True

    def test_clamped_at_zero(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """The adjusted percentile never drops below 0."""
        result = calculator.calculate(5, _indicators(*[(10, "declining")] * 10))
        assert result.risk_penalty == 20
        assert result.trend_adjustment == -10
        assert result.adjusted_percentile == 0
        assert result.maturity_level == 1

    def test_clamped_at_hundred(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """The adjusted percentile never exceeds 100."""
        result = calculator.calculate(98, _indicators(*[(95, "improving")] * 4))
        assert result.adjusted_percentile == 100

    def test_no_indicators(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """Without indicators the base percentile passes through."""
        result = calculator.calculate(47, [])
        assert result.adjusted_percentile == 47
        assert result.tier_distribution.total == 0
        assert result.was_significantly_adjusted is False

    def test_nan_base_rejected(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """NaN base percentiles raise instead of propagating."""
        with pytest.raises(InvalidScoreError):
            calculator.calculate(math.nan, [])

    def test_idempotent(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """Repeated calls give identical results."""
        indicators = _indicators((10, "improving"), (70, "declining"), (92, "improving"))
        assert calculator.calculate(58, indicators) == calculator.calculate(58, indicators)

    @pytest.mark.parametrize("base", [0, 12.5, 30, 44.9, 55, 70, 99, 100])
    def test_invariants(self, calculator: RiskAdjustedMaturityCalculator, base: float) -> None:
        """Adjusted stays in [0, 100] and the penalty never exceeds 20."""
        indicators = _indicators(*[(5, "declining")] * 12, *[(95, "improving")] * 3)
        result = calculator.calculate(base, indicators)
        assert 0 <= result.adjusted_percentile <= 100
        assert result.risk_penalty <= 20
        assert -10 <= result.trend_adjustment <= 10

    def test_for_dimension_uses_overall_percentile(
        self, calculator: RiskAdjustedMaturityCalculator
    ) -> None:
        """The dimension's benchmark percentile is preferred over its health score."""
        dimension = DimensionResult(
            dimension_key="sprintHygiene",
            health_score=80,
            overall_percentile=40,
            categories=(
                IndicatorCategory(id="carryover", indicators=tuple(_indicators((20, "stable")))),
            ),
        )
        result = calculator.calculate_for_dimension(dimension)
        assert result.dimension_key == "sprintHygiene"
        assert result.base_percentile == 40
        assert result.adjusted_percentile == 38

    def test_calculate_all_preserves_order(
        self,
        calculator: RiskAdjustedMaturityCalculator,
        sample_dimensions: list[DimensionResult],
    ) -> None:
        """Results come back in input order."""
        results = calculator.calculate_all(sample_dimensions)
        assert [r.dimension_key for r in results] == [
            d.dimension_key for d in sample_dimensions
        ]


class TestHelpers:
    """Verify the weighted alternative and narrative helpers."""

    def test_weighted_maturity(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """50% base, 25% risk score, 25% trend score."""
        dimension = DimensionResult(dimension_key="workHierarchy", health_score=60)
        # 0.5 * 60 + 0.25 * 100 + 0.25 * 50
        assert calculator.weighted_maturity(dimension) == pytest.approx(67.5)

    def test_summary_text(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """The summary names the penalty and the trend bonus."""
        penalised = calculator.calculate(
            60, _indicators((10, "stable"), (20, "stable"), (25, "stable"))
        )
        assert adjustment_summary(penalised) == (
            "Base: 60 health score, -6 for 3 needs-attention indicators"
        )
        improving = calculator.calculate(60, _indicators((80, "improving")))
        assert adjustment_summary(improving) == "Base: 60 health score, +10 for improving trends"
        assert adjustment_summary(calculator.calculate(60, [])) == "No adjustment needed"

    def test_requires_attention(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """Low level, risk indicators or net decline all require attention."""
        assert requires_attention(calculator.calculate(35, []))
        assert requires_attention(calculator.calculate(80, _indicators((10, "stable"))))
        assert requires_attention(
            calculator.calculate(80, _indicators((80, "declining"), (80, "stable")))
        )
        assert not requires_attention(calculator.calculate(80, _indicators((80, "improving"))))

    def test_sort_key_worst_first(self, calculator: RiskAdjustedMaturityCalculator) -> None:
        """Results sort by level, then adjusted percentile."""
        results = [calculator.calculate(p, []) for p in (72, 31, 44, 50)]
        ordered = sorted(results, key=sort_key)
        assert [r.base_percentile for r in ordered] == [31, 44, 50, 72]
