"""Unit tests for the Composite Health Score engine (CSS + TRS + PGS)."""

import math

import pytest

from jira_health.adapters.history_store import InMemoryHistoricalDataStore
from jira_health.core.composite import CompositeHealthScoreEngine
from jira_health.core.models import DimensionScoreInput, HistoricalSnapshot
from jira_health.settings import EngineSettings


def _inputs(*scores: float, weights: list[float] | None = None) -> list[DimensionScoreInput]:
    weights = weights or [1.0] * len(scores)
    return [
        DimensionScoreInput(dimension_key=f"dim{i}", css_score=score, weight=weight)
        for i, (score, weight) in enumerate(zip(scores, weights))
    ]


@pytest.fixture()
def engine(settings: EngineSettings) -> CompositeHealthScoreEngine:
    """Provide a CompositeHealthScoreEngine with default settings."""
    return CompositeHealthScoreEngine(settings)


class TestCurrentStateScore:
    """Verify the weighted CSS average."""

    def test_equal_weights(self, engine: CompositeHealthScoreEngine) -> None:
        """Equal weights give the arithmetic mean."""
        assert engine.current_state_score(_inputs(60, 70, 80)) == pytest.approx(70)

    def test_relative_weights_are_normalised(self, engine: CompositeHealthScoreEngine) -> None:
        """Weights need not sum to 1; only their ratios matter."""
        fractional = engine.current_state_score(_inputs(90, 50, weights=[0.25, 0.75]))
        integral = engine.current_state_score(_inputs(90, 50, weights=[2, 6]))
        assert fractional == pytest.approx(60)
        assert integral == pytest.approx(60)

    def test_empty_is_zero(self, engine: CompositeHealthScoreEngine) -> None:
        """No inputs yields 0 rather than dividing by zero."""
        assert engine.current_state_score([]) == 0.0


class TestTrajectoryScore:
    """Verify the early-vs-recent trajectory comparison."""

    def test_requires_two_points(self, engine: CompositeHealthScoreEngine) -> None:
        """A single point gives no TRS."""
        assert engine.trajectory_score([50]) is None
        assert engine.trajectory_score([]) is None

    def test_flat_history_is_fifty(self, engine: CompositeHealthScoreEngine) -> None:
        """No change maps to 50."""
        assert engine.trajectory_score([55, 55, 55, 55]) == pytest.approx(50)

    def test_improving_history(self, engine: CompositeHealthScoreEngine) -> None:
        """A 4-point mean rise scores 50 + 4/15 * 50."""
        assert engine.trajectory_score([50, 52, 54, 56]) == pytest.approx(63.3333, abs=1e-3)

    def test_declining_history(self, engine: CompositeHealthScoreEngine) -> None:
        """A 6-point fall scores 30."""
        assert engine.trajectory_score([60, 54]) == pytest.approx(30)

    def test_odd_length_split(self, engine: CompositeHealthScoreEngine) -> None:
        """The middle point of an odd series belongs to the recent window."""
        # early [40], recent [40, 46] -> effect 3 -> 60
        assert engine.trajectory_score([40, 40, 46]) == pytest.approx(60)

    def test_bounded(self, engine: CompositeHealthScoreEngine) -> None:
        """Large swings clamp to [5, 95]."""
        assert engine.trajectory_score([0, 100]) == 95
        assert engine.trajectory_score([100, 0]) == 5

    def test_standard_error(self, engine: CompositeHealthScoreEngine) -> None:
        """RMS deviation from CSS divided by sqrt(n)."""
        # deviations from 50: -10, +10 -> rms 10 -> 10 / sqrt(2)
        se = engine.trajectory_standard_error([40, 60], 50)
        assert se == pytest.approx(10 / math.sqrt(2))


class TestPeerGrowthScore:
    """Verify peer ranking with shrinkage."""

    def test_requires_team_trs(self, engine: CompositeHealthScoreEngine) -> None:
        """Without the team's own TRS there is no PGS."""
        assert engine.peer_growth_score(None, [40, 50, 60]) is None

    def test_requires_peers(self, engine: CompositeHealthScoreEngine) -> None:
        """Without peers there is no PGS."""
        assert engine.peer_growth_score(60, []) is None

    def test_single_peer_shrinks_to_fifty(self, engine: CompositeHealthScoreEngine) -> None:
        """With one peer alpha is 0, so PGS is exactly 50."""
        score, se = engine.peer_growth_score(90, [10])
        assert score == pytest.approx(50)
        assert se == pytest.approx(0)

    def test_rank_with_shrinkage(self, engine: CompositeHealthScoreEngine) -> None:
        """Mid-rank percentile shrunk by alpha = (n - 1) / (n + 9)."""
        score, se = engine.peer_growth_score(63.3, [30, 40, 50, 60, 70, 80])
        # rank 4.5 of 6 -> 75; alpha 1/3 -> 58.33
        assert score == pytest.approx(58.3333, abs=1e-3)
        assert se == pytest.approx(50 / math.sqrt(6) / 3)

    def test_minimum_peers_setting(self) -> None:
        """min_peers_for_pgs raises the bar for PGS availability."""
        strict = CompositeHealthScoreEngine(EngineSettings(min_peers_for_pgs=5))
        assert strict.peer_growth_score(60, [40, 50, 60, 70]) is None
        assert strict.peer_growth_score(60, [40, 50, 60, 70, 80]) is not None


class TestComponentWeights:
    """Verify weight redistribution when components are unavailable."""

    def test_full_model(self, engine: CompositeHealthScoreEngine) -> None:
        """All components use the nominal 50/35/15 split."""
        weights = engine.component_weights(True, True)
        assert (weights.css, weights.trs, weights.pgs) == (0.50, 0.35, 0.15)

    def test_trs_only_redistributes_proportionally(
        self, engine: CompositeHealthScoreEngine
    ) -> None:
        """PGS weight is shared between CSS and TRS by their nominal ratio."""
        weights = engine.component_weights(True, False)
        assert weights.css == pytest.approx(0.5 + 0.15 * 0.5 / 0.85)
        assert weights.trs == pytest.approx(0.35 + 0.15 * 0.35 / 0.85)
        assert weights.pgs == 0
        assert weights.css + weights.trs == pytest.approx(1.0)

    def test_css_only(self, engine: CompositeHealthScoreEngine) -> None:
        """Without TRS everything falls back onto CSS."""
        weights = engine.component_weights(False, False)
        assert (weights.css, weights.trs, weights.pgs) == (1.0, 0.0, 0.0)

    def test_pgs_without_trs_is_invalid(self, engine: CompositeHealthScoreEngine) -> None:
        """PGS depends on TRS."""
        with pytest.raises(ValueError):
            engine.component_weights(False, True)


class TestCompose:
    """Verify the blended composite and its uncertainty."""

    def test_css_only_fallback(self, engine: CompositeHealthScoreEngine) -> None:
        """No history gives the CSS itself, with SE shrinking by sqrt(n)."""
        result = engine.compose(_inputs(80, 80, 80))
        assert result.health_score == 80
        assert result.css_score == 80
        assert result.trs_score is None
        assert result.pgs_score is None
        assert result.components_available.css is True
        assert result.components_available.trs is False
        # 4 / sqrt(3) * 1.2 = 2.77
        assert result.standard_error == 2.8
        assert result.confidence_interval.lower == 75.4
        assert result.confidence_interval.upper == 84.6

    def test_more_dimensions_narrow_the_interval(
        self, engine: CompositeHealthScoreEngine
    ) -> None:
        """Standard error decreases as the contributing dimension count grows."""
        few = engine.compose(_inputs(60, 60))
        many = engine.compose(_inputs(*[60] * 8))
        assert many.standard_error < few.standard_error

    def test_css_and_trs(self, engine: CompositeHealthScoreEngine) -> None:
        """Two-component blend uses the redistributed weights."""
        result = engine.compose(_inputs(70), history=[50, 52, 54, 56])
        assert result.trs_score == 63.3
        assert result.pgs_score is None
        assert result.components_available.trs is True
        assert result.health_score == 67.3

    def test_full_blend(self, engine: CompositeHealthScoreEngine) -> None:
        """All three components use the nominal weights."""
        result = engine.compose(
            _inputs(70),
            history=[50, 52, 54, 56],
            peer_trs=[30, 40, 50, 60, 70, 80],
        )
        assert result.pgs_score == 58.3
        assert result.components_available.pgs is True
        # 0.5 * 70 + 0.35 * 63.33 + 0.15 * 58.33
        assert result.health_score == 65.9

    def test_peers_without_history_are_ignored(
        self, engine: CompositeHealthScoreEngine
    ) -> None:
        """PGS needs the entity's own TRS."""
        result = engine.compose(_inputs(70), peer_trs=[30, 40, 50])
        assert result.pgs_score is None
        assert result.health_score == 70

    def test_composite_clamped(self, engine: CompositeHealthScoreEngine) -> None:
        """The composite stays within [5, 95]."""
        assert engine.compose(_inputs(100)).health_score == 95
        assert engine.compose(_inputs(0)).health_score == 5

    def test_interval_within_bounds(self, engine: CompositeHealthScoreEngine) -> None:
        """The confidence interval never leaves [5, 95]."""
        result = engine.compose(_inputs(94), history=[10, 90])
        assert result.confidence_interval.lower >= 5
        assert result.confidence_interval.upper <= 95

    def test_no_inputs(self, engine: CompositeHealthScoreEngine) -> None:
        """Nothing to score returns zero, never NaN."""
        result = engine.compose([])
        assert result.health_score == 0
        assert result.css_score == 0
        assert result.components_available.css is False

    def test_deterministic(self, engine: CompositeHealthScoreEngine) -> None:
        """Identical inputs give byte-identical output."""
        first = engine.compose(_inputs(62, 48), history=[40, 45, 50], peer_trs=[45, 55])
        second = engine.compose(_inputs(62, 48), history=[40, 45, 50], peer_trs=[45, 55])
        assert first.model_dump_json() == second.model_dump_json()

    def test_score_dimension(self, engine: CompositeHealthScoreEngine) -> None:
        """Single-dimension scoring uses the base CSS standard error."""
        result = engine.score_dimension(50, dimension_key="sprintHygiene")
        assert result.health_score == 50
        assert result.standard_error == 4.8
        assert result.dimension_contributions[0].dimension_key == "sprintHygiene"


class TestScoreEntity:
    """Verify history and peer reads from a view."""

    def test_reads_history_and_peers(self, engine: CompositeHealthScoreEngine) -> None:
        """Own history feeds TRS; peers with enough history feed PGS."""
        store = InMemoryHistoricalDataStore()
        series = {
            "team-a:outcome:progress": [50, 52, 54, 56],
            "team-b:outcome:progress": [50, 50],
            "team-c:outcome:progress": [60, 50],
            "team-d:outcome:progress": [40],
        }
        for key, values in series.items():
            for i, value in enumerate(values):
                store.append_snapshot(
                    key, HistoricalSnapshot(entity_id=key, period=f"2025-0{i + 1}", score=value)
                )
        view = store.view()

        peers = engine.peer_trajectory_scores(view, "team-a:outcome:progress")
        assert sorted(peers) == pytest.approx([16.6667, 50], abs=1e-3)

        result = engine.score_entity(_inputs(70), view, "team-a:outcome:progress")
        assert result.components_available.trs is True
        assert result.components_available.pgs is True
