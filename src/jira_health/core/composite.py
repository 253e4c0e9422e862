"""Composite Health Score (CHS).

CHS blends three components:

    CSS  Current State Score   weighted mean of dimension current state scores
    TRS  Trajectory Score      early-window vs recent-window mean, 50 = no change
    PGS  Peer Growth Score     rank of this entity's TRS among peer TRS values

Nominal blend is 0.50 CSS + 0.35 TRS + 0.15 PGS. PGS needs TRS, so the
availability cases are:

    CSS + TRS + PGS  nominal weights
    CSS + TRS        PGS weight shared between CSS and TRS in proportion
                     to their nominal weights
    CSS only         CSS weight 1.0

The composite is clamped to [5, 95] and reported with a standard error and
a 90% confidence interval. All reported numbers are rounded half-up to one
decimal place.
"""

import math
from collections.abc import Sequence

from jira_health.core.interfaces import IHistoryView
from jira_health.core.models import (
    ComponentsAvailable,
    ComponentWeights,
    CompositeHealthScore,
    ConfidenceInterval,
    DimensionScoreInput,
)
from jira_health.core.numeric import clamp, mean, round_half_up
from jira_health.observability import get_logger
from jira_health.settings import EngineSettings, get_settings

logger = get_logger(__name__)


class CompositeHealthScoreEngine:
    """Computes CSS, TRS, PGS and their blend for dimensions and outcomes.

    All methods are pure; history and peer data arrive as arguments or via an
    ``IHistoryView`` taken once by the caller.
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        """Initialise the engine.

        Args:
            settings: Engine settings. Defaults to the process-wide settings.
        """
        self._settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @staticmethod
    def current_state_score(inputs: Sequence[DimensionScoreInput]) -> float:
        """Weighted mean of the inputs' CSS, normalised by total weight.

        Returns 0.0 when there are no inputs.
        """
        total_weight = sum(item.weight for item in inputs)
        if total_weight == 0:
            return 0.0
        return sum(item.css_score * item.weight for item in inputs) / total_weight

    def trajectory_score(self, history: Sequence[float]) -> float | None:
        """Compare the early and recent halves of a score series.

        The series is split at ``len // 2``. A mean shift of ``trs_scale``
        points moves the score 50 points away from 50.

        Args:
            history: Scores ordered oldest first.

        Returns:
            TRS in [trs_floor, trs_ceiling], or None when the series is
            shorter than ``min_periods_for_trs``.
        """
        s = self._settings
        if len(history) < s.min_periods_for_trs:
            return None
        midpoint = len(history) // 2
        effect_size = mean(history[midpoint:]) - mean(history[:midpoint])
        return clamp(50.0 + effect_size / s.trs_scale * 50.0, s.trs_floor, s.trs_ceiling)

    @staticmethod
    def trajectory_standard_error(history: Sequence[float], css_score: float) -> float:
        """Root mean squared deviation of the history from the CSS, over sqrt(n)."""
        if not history:
            return 0.0
        variance = sum((value - css_score) ** 2 for value in history) / len(history)
        return math.sqrt(variance) / math.sqrt(len(history))

    def peer_growth_score(
        self, team_trs: float | None, peer_trs: Sequence[float]
    ) -> tuple[float, float] | None:
        """Rank the team's TRS among its peers.

        The raw mid-rank percentile is shrunk towards 50 for small peer groups
        with ``alpha = min(1, (n - 1) / (n + offset))``.

        Args:
            team_trs: This entity's TRS, or None if it has none.
            peer_trs: TRS values of peer entities.

        Returns:
            ``(pgs, standard_error)``, or None when the team has no TRS or
            there are fewer than ``min_peers_for_pgs`` peers.
        """
        s = self._settings
        if team_trs is None or len(peer_trs) < s.min_peers_for_pgs:
            return None
        n = len(peer_trs)
        rank = sum(1 for value in peer_trs if value < team_trs) + 0.5
        raw = rank / n * 100.0
        alpha = min(1.0, (n - 1) / (n + s.pgs_shrinkage_offset))
        score = alpha * raw + (1 - alpha) * 50.0
        standard_error = 50.0 / math.sqrt(n) * alpha
        return score, standard_error

    def peer_trajectory_scores(self, view: IHistoryView, entity_id: str) -> list[float]:
        """TRS of every peer of ``entity_id`` that has enough history."""
        scores: list[float] = []
        for peer_id in view.peer_entity_ids(entity_id):
            trs = self.trajectory_score(view.scores(peer_id))
            if trs is not None:
                scores.append(trs)
        return scores

    def component_weights(self, has_trs: bool, has_pgs: bool) -> ComponentWeights:
        """Effective component weights for the available components.

        Raises:
            ValueError: If PGS is flagged available without TRS.
        """
        s = self._settings
        if has_pgs and not has_trs:
            raise ValueError("PGS cannot be available without TRS")
        if has_trs and has_pgs:
            return ComponentWeights(css=s.css_weight, trs=s.trs_weight, pgs=s.pgs_weight)
        if has_trs:
            shared = s.css_weight + s.trs_weight
            return ComponentWeights(
                css=s.css_weight + s.pgs_weight * s.css_weight / shared,
                trs=s.trs_weight + s.pgs_weight * s.trs_weight / shared,
                pgs=0.0,
            )
        return ComponentWeights(css=1.0, trs=0.0, pgs=0.0)

    # ------------------------------------------------------------------
    # Blends
    # ------------------------------------------------------------------

    def compose(
        self,
        inputs: Sequence[DimensionScoreInput],
        history: Sequence[float] = (),
        peer_trs: Sequence[float] = (),
    ) -> CompositeHealthScore:
        """Blend CSS, TRS and PGS for a set of weighted dimension scores.

        Args:
            inputs: Contributing dimension scores. An empty sequence yields a
                zero score with no components available.
            history: The entity's own historical scores, oldest first.
            peer_trs: TRS values of peer entities.

        Returns:
            The composite score with uncertainty and weights used.
        """
        s = self._settings
        if not inputs:
            return CompositeHealthScore(
                health_score=0.0,
                css_score=0.0,
                standard_error=0.0,
                confidence_interval=ConfidenceInterval(lower=0.0, upper=0.0),
                components_available=ComponentsAvailable(css=False),
                weights_used=ComponentWeights(css=1.0, trs=0.0, pgs=0.0),
            )

        css = self.current_state_score(inputs)
        trs = self.trajectory_score(history)
        trs_se = self.trajectory_standard_error(history, css) if trs is not None else 0.0
        pgs_result = self.peer_growth_score(trs, peer_trs)
        pgs, pgs_se = pgs_result if pgs_result is not None else (None, 0.0)

        weights = self.component_weights(trs is not None, pgs is not None)
        css_se = s.base_css_standard_error / math.sqrt(len(inputs))

        blended = weights.css * css + weights.trs * (trs or 0.0) + weights.pgs * (pgs or 0.0)
        health = clamp(blended, s.composite_floor, s.composite_ceiling)
        standard_error = (
            math.sqrt(
                (weights.css * css_se) ** 2
                + (weights.trs * trs_se) ** 2
                + (weights.pgs * pgs_se) ** 2
            )
            * s.standard_error_inflation
        )
        margin = s.confidence_z * standard_error

        result = CompositeHealthScore(
            health_score=round_half_up(health, 1),
            css_score=round_half_up(css, 1),
            trs_score=round_half_up(trs, 1) if trs is not None else None,
            pgs_score=round_half_up(pgs, 1) if pgs is not None else None,
            standard_error=round_half_up(standard_error, 1),
            confidence_interval=ConfidenceInterval(
                lower=round_half_up(max(s.composite_floor, health - margin), 1),
                upper=round_half_up(min(s.composite_ceiling, health + margin), 1),
            ),
            components_available=ComponentsAvailable(
                css=True, trs=trs is not None, pgs=pgs is not None
            ),
            weights_used=weights,
            dimension_contributions=tuple(inputs),
        )
        logger.debug(
            "Composite health score computed",
            dimension_count=len(inputs),
            history_points=len(history),
            peer_count=len(peer_trs),
            health_score=result.health_score,
        )
        return result

    def score_dimension(
        self,
        css_score: float,
        history: Sequence[float] = (),
        peer_trs: Sequence[float] = (),
        dimension_key: str = "",
    ) -> CompositeHealthScore:
        """CHS for a single dimension from its CSS, history and peers."""
        return self.compose(
            [DimensionScoreInput(dimension_key=dimension_key, css_score=css_score)],
            history=history,
            peer_trs=peer_trs,
        )

    def score_entity(
        self,
        inputs: Sequence[DimensionScoreInput],
        view: IHistoryView,
        entity_id: str,
    ) -> CompositeHealthScore:
        """CHS for an entity, reading its history and peers from one view."""
        return self.compose(
            inputs,
            history=view.scores(entity_id),
            peer_trs=self.peer_trajectory_scores(view, entity_id),
        )
