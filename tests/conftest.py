"""Shared fixtures for the Jira health engine tests."""

import pytest

from jira_health.adapters.history_store import InMemoryHistoricalDataStore
from jira_health.core.models import DimensionResult, Indicator, IndicatorCategory
from jira_health.settings import EngineSettings


@pytest.fixture()
def settings() -> EngineSettings:
    """Default engine settings, independent of the cached process settings."""
    return EngineSettings()


@pytest.fixture()
def history_store() -> InMemoryHistoricalDataStore:
    """Empty in-memory history store."""
    return InMemoryHistoricalDataStore()


@pytest.fixture()
def sample_dimensions() -> list[DimensionResult]:
    """A small realistic assessment covering three themes."""
    stale = Indicator(
        id="staleWorkItems",
        name="Stale work items",
        value=12,
        unit="count",
        benchmark_percentile=18,
        trend="declining",
        higher_is_better=False,
    )
    fresh = Indicator(
        id="recentlyUpdated",
        name="Recently updated",
        value=0.7,
        unit="%",
        benchmark_percentile=72,
        trend="improving",
    )
    estimated = Indicator(
        id="estimatedStories",
        name="Estimated stories",
        value=0.8,
        unit="%",
        benchmark_percentile=85,
        trend="improving",
    )
    return [
        DimensionResult(
            dimension_key="dataFreshness",
            dimension_name="Data Freshness",
            health_score=42,
            overall_percentile=40,
            trend="declining",
            categories=(
                IndicatorCategory(id="staleness", indicators=(stale, fresh)),
            ),
        ),
        DimensionResult(
            dimension_key="estimationCoverage",
            dimension_name="Estimation Coverage",
            health_score=78,
            trend="improving",
            categories=(IndicatorCategory(id="coverage", indicators=(estimated,)),),
        ),
        DimensionResult(
            dimension_key="teamCollaboration",
            dimension_name="Team Collaboration",
            health_score=25,
            trend="stable",
        ),
    ]
