"""Risk-adjusted maturity.

A dimension's base percentile is lowered by a risk penalty for indicators in
the lowest benchmark tier and nudged by the balance of improving versus
declining indicators:

    risk_penalty     = min(needs_attention_count * 2, 20)
    trend_adjustment = round_half_up((improving - declining) / total * 10)
    adjusted         = clamp(base - risk_penalty + trend_adjustment, 0, 100)

Every function here is pure; calling it twice with the same input yields the
same result.
"""

from collections.abc import Sequence

from jira_health.core.maturity import CLASSIFIER, MaturityClassifier, tier_distribution
from jira_health.core.models import (
    DimensionResult,
    Indicator,
    RiskAdjustedMaturity,
    TierDistribution,
    TrendBreakdown,
)
from jira_health.core.numeric import clamp, require_finite, round_half_up
from jira_health.observability import get_logger
from jira_health.settings import EngineSettings, get_settings

logger = get_logger(__name__)

# Blend used by weighted_maturity(); sums to 1.0
_WEIGHTED_MATURITY_SHARES: dict[str, float] = {
    "base": 0.50,
    "risk": 0.25,
    "trend": 0.25,
}


def trend_breakdown(indicators: Sequence[Indicator]) -> TrendBreakdown:
    """Count indicators per observed trend direction."""
    improving = sum(1 for indicator in indicators if indicator.observed_trend == "improving")
    declining = sum(1 for indicator in indicators if indicator.observed_trend == "declining")
    return TrendBreakdown(
        improving=improving,
        stable=len(indicators) - improving - declining,
        declining=declining,
    )


class RiskAdjustedMaturityCalculator:
    """Adjusts dimension percentiles for risk density and trend direction."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        classifier: MaturityClassifier = CLASSIFIER,
    ) -> None:
        self._settings = settings or get_settings()
        self._classifier = classifier

    def risk_penalty(self, distribution: TierDistribution) -> float:
        """Points deducted for indicators in the needs-attention tier, capped."""
        s = self._settings
        return min(
            distribution.needs_attention * s.risk_penalty_per_indicator,
            s.max_risk_penalty,
        )

    def trend_adjustment(self, breakdown: TrendBreakdown) -> float:
        """Points added for a net improving balance, deducted for declining.

        Linear in the net share of improving over declining indicators and
        bounded by ``max_trend_adjustment``. Zero without indicators.
        """
        total = breakdown.improving + breakdown.stable + breakdown.declining
        if total == 0:
            return 0.0
        net = (breakdown.improving - breakdown.declining) / total
        limit = self._settings.max_trend_adjustment
        return clamp(round_half_up(net * limit), -limit, limit)

    def calculate(
        self,
        base_percentile: float,
        indicators: Sequence[Indicator],
        dimension_key: str = "",
    ) -> RiskAdjustedMaturity:
        """Risk-adjust a base percentile using its indicators.

        Args:
            base_percentile: Unadjusted percentile. Finite values outside
                [0, 100] are clamped.
            indicators: The dimension's indicators (tier and trend are read).
            dimension_key: Key echoed in the result.

        Returns:
            The adjusted percentile with derived maturity and breakdowns.

        Raises:
            InvalidScoreError: If ``base_percentile`` is NaN or infinite.
        """
        base = clamp(require_finite(base_percentile, "base_percentile"), 0.0, 100.0)
        distribution = tier_distribution(indicators)
        breakdown = trend_breakdown(indicators)
        penalty = self.risk_penalty(distribution)
        adjustment = self.trend_adjustment(breakdown)
        adjusted = clamp(base - penalty + adjustment, 0.0, 100.0)

        level = self._classifier.classify(adjusted)
        original_level = self._classifier.level(base)
        significant = (
            level.level != original_level
            or abs(adjusted - base) >= self._settings.significant_adjustment_delta
        )

        logger.debug(
            "Risk-adjusted maturity computed",
            dimension_key=dimension_key,
            base_percentile=base,
            risk_penalty=penalty,
            trend_adjustment=adjustment,
            adjusted_percentile=adjusted,
        )
        return RiskAdjustedMaturity(
            dimension_key=dimension_key,
            base_percentile=base,
            risk_penalty=penalty,
            trend_adjustment=adjustment,
            adjusted_percentile=adjusted,
            maturity_level=level.level,
            maturity_name=level.name,
            original_maturity_level=original_level,
            was_significantly_adjusted=significant,
            tier_distribution=distribution,
            trend_breakdown=breakdown,
        )

    def calculate_for_dimension(self, dimension: DimensionResult) -> RiskAdjustedMaturity:
        """Risk-adjust a dimension's benchmark percentile."""
        return self.calculate(
            dimension.percentile, dimension.indicators, dimension.dimension_key
        )

    def calculate_all(
        self, dimensions: Sequence[DimensionResult]
    ) -> list[RiskAdjustedMaturity]:
        """Risk-adjust every dimension, preserving input order."""
        return [self.calculate_for_dimension(dimension) for dimension in dimensions]

    def weighted_maturity(self, dimension: DimensionResult) -> float:
        """Alternative blended percentile: base, risk score and trend score.

        The risk penalty is mapped to a 0-100 risk score (max penalty -> 0)
        and the trend adjustment to a 0-100 trend score (-10 -> 0, +10 -> 100).
        """
        indicators = dimension.indicators
        penalty = self.risk_penalty(tier_distribution(indicators))
        adjustment = self.trend_adjustment(trend_breakdown(indicators))
        risk_score = max(0.0, 100.0 - penalty * 5)
        trend_score = 50.0 + adjustment * 5
        blended = (
            dimension.percentile * _WEIGHTED_MATURITY_SHARES["base"]
            + risk_score * _WEIGHTED_MATURITY_SHARES["risk"]
            + trend_score * _WEIGHTED_MATURITY_SHARES["trend"]
        )
        return clamp(blended, 0.0, 100.0)


def adjustment_summary(result: RiskAdjustedMaturity) -> str:
    """Human-readable description of what moved the percentile."""
    parts: list[str] = []
    needs_attention = result.tier_distribution.needs_attention
    if result.risk_penalty > 0 and needs_attention > 0:
        parts.append(
            f"-{result.risk_penalty:g} for {needs_attention} needs-attention indicators"
        )
    if result.trend_adjustment > 0:
        parts.append(f"+{result.trend_adjustment:g} for improving trends")
    elif result.trend_adjustment < 0:
        parts.append(f"{result.trend_adjustment:g} for declining trends")
    if not parts:
        return "No adjustment needed"
    return f"Base: {result.base_percentile:g} health score, {', '.join(parts)}"


def requires_attention(result: RiskAdjustedMaturity) -> bool:
    """True for low maturity, any needs-attention indicator, or net decline."""
    return (
        result.maturity_level <= 2
        or result.tier_distribution.needs_attention > 0
        or result.trend_breakdown.declining > result.trend_breakdown.improving
    )


def sort_key(result: RiskAdjustedMaturity) -> tuple[int, float]:
    """Order results worst first: by level, then adjusted percentile."""
    return (result.maturity_level, result.adjusted_percentile)
