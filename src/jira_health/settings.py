"""Engine settings.

Every tunable constant of the scoring pipeline lives here so it is loaded
once at process start and never mutated afterwards. Values can be overridden
with environment variables using the JIRA_HEALTH_ prefix, e.g.
``JIRA_HEALTH_CRITICAL_GAP_CAP=50``.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Settings for the Jira health scoring engine.

    Environment variable prefix: JIRA_HEALTH_
    """

    # Composite health score blend (nominal weights, sum to 1.0)
    css_weight: float = Field(default=0.50, ge=0.0, le=1.0)
    trs_weight: float = Field(default=0.35, ge=0.0, le=1.0)
    pgs_weight: float = Field(default=0.15, ge=0.0, le=1.0)

    # Trajectory score
    min_periods_for_trs: int = Field(default=2, ge=2)
    trs_scale: float = 15.0  # a 15-point mean shift moves TRS by 50
    trs_floor: float = 5.0
    trs_ceiling: float = 95.0

    # Peer growth score
    min_peers_for_pgs: int = Field(default=1, ge=1)
    pgs_shrinkage_offset: float = 9.0

    # Composite bounds and uncertainty
    composite_floor: float = 5.0
    composite_ceiling: float = 95.0
    base_css_standard_error: float = 4.0
    standard_error_inflation: float = 1.2
    confidence_z: float = 1.645  # 90% interval

    # Outcome confidence
    critical_gap_cap: float = 55.0
    outcome_trend_margin: float = 0.1

    # Risk-adjusted maturity
    risk_penalty_per_indicator: float = 2.0
    max_risk_penalty: float = 20.0
    max_trend_adjustment: float = 10.0
    significant_adjustment_delta: float = 5.0

    # Dimension health
    health_trend_nudge: float = 5.0

    # Executive summary
    summary_trend_threshold: float = 3.0
    flagged_indicator_percentile: float = 25.0
    max_recommendations: int = 5

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_prefix="JIRA_HEALTH_", frozen=True)


@lru_cache
def get_settings() -> EngineSettings:
    """Return the process-wide settings instance."""
    return EngineSettings()
