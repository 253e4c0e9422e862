"""Static configuration: dimension catalog, outcome definitions and themes.

Dimensions:
    workCaptured               Invisible Work
    informationHealth          Information Health
    dataFreshness              Data Freshness
    issueTypeConsistency       Issue Type Consistency
    workHierarchy              Work Hierarchy Linkage
    estimationCoverage         Estimation Coverage
    sizingConsistency          Sizing Consistency
    teamCollaboration          Team Collaboration
    blockerManagement          Blocker Management
    collaborationFeatureUsage  Collaboration Feature Usage
    automationOpportunities    Automation Opportunities
    configurationEfficiency    Configuration Efficiency
    sprintHygiene              Sprint Hygiene
    backlogDiscipline          Backlog Discipline
    ticketReadiness            Ticket Readiness

Outcome definitions are validated against the dimension catalog when an
OutcomeCatalog is built, so configuration drift fails at load time.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from jira_health.core.errors import UnknownDimensionError, UnknownOutcomeError
from jira_health.core.models import DimensionContribution, OutcomeDefinition


@dataclass(frozen=True)
class DimensionInfo:
    """A catalogued Jira health dimension.

    Attributes:
        key: Unique dimension key.
        name: Display name.
    """

    key: str
    name: str


@dataclass(frozen=True)
class ThemeGroup:
    """A narrative grouping of dimensions for the executive summary.

    Attributes:
        id: Theme identifier.
        name: Display name.
        question: The question the theme answers.
        dimension_keys: Member dimensions, in display order.
    """

    id: str
    name: str
    question: str
    dimension_keys: tuple[str, ...]


DIMENSIONS: list[DimensionInfo] = [
    DimensionInfo("workCaptured", "Invisible Work"),
    DimensionInfo("informationHealth", "Information Health"),
    DimensionInfo("dataFreshness", "Data Freshness"),
    DimensionInfo("issueTypeConsistency", "Issue Type Consistency"),
    DimensionInfo("workHierarchy", "Work Hierarchy Linkage"),
    DimensionInfo("estimationCoverage", "Estimation Coverage"),
    DimensionInfo("sizingConsistency", "Sizing Consistency"),
    DimensionInfo("teamCollaboration", "Team Collaboration"),
    DimensionInfo("blockerManagement", "Blocker Management"),
    DimensionInfo("collaborationFeatureUsage", "Collaboration Feature Usage"),
    DimensionInfo("automationOpportunities", "Automation Opportunities"),
    DimensionInfo("configurationEfficiency", "Configuration Efficiency"),
    DimensionInfo("sprintHygiene", "Sprint Hygiene"),
    DimensionInfo("backlogDiscipline", "Backlog Discipline"),
    DimensionInfo("ticketReadiness", "Ticket Readiness"),
]

DIMENSIONS_BY_KEY: dict[str, DimensionInfo] = {d.key: d for d in DIMENSIONS}


def _contribution(
    dimension_key: str,
    weight: float,
    why_it_matters: str,
    critical_threshold: float | None = None,
) -> DimensionContribution:
    return DimensionContribution(
        dimension_key=dimension_key,
        weight=weight,
        critical_threshold=critical_threshold,
        why_it_matters=why_it_matters,
    )


OUTCOME_DEFINITIONS: list[OutcomeDefinition] = [
    OutcomeDefinition(
        id="commitments",
        name="Delivery Commitments",
        short_name="Commitments",
        question=(
            "Can we use our Jira data to make reliable commitments about what "
            "will be delivered when?"
        ),
        dimensions=(
            _contribution(
                "estimationCoverage", 0.25,
                "Capacity and sprint fit cannot be predicted for unestimated work.",
                critical_threshold=30,
            ),
            _contribution(
                "sizingConsistency", 0.20,
                "Inconsistent sizing makes velocity swing from sprint to sprint.",
                critical_threshold=25,
            ),
            _contribution(
                "workCaptured", 0.15,
                "Untracked work makes every commitment underestimate remaining effort.",
            ),
            _contribution(
                "informationHealth", 0.15,
                "Incomplete tickets push discovery into the sprint and disrupt plans.",
            ),
            _contribution(
                "dataFreshness", 0.10,
                "Velocity calculations depend on up-to-date status information.",
            ),
            _contribution(
                "sprintHygiene", 0.10,
                "Carryover shows whether planned commitments are actually met.",
            ),
            _contribution(
                "backlogDiscipline", 0.05,
                "An unrefined backlog turns sprint planning into grooming.",
            ),
        ),
    ),
    OutcomeDefinition(
        id="progress",
        name="Progress Tracking",
        short_name="Progress",
        question="Can we use our Jira data to track progress towards achieving a goal?",
        dimensions=(
            _contribution(
                "dataFreshness", 0.30,
                "Progress reports are only as current as the underlying statuses.",
                critical_threshold=30,
            ),
            _contribution(
                "workCaptured", 0.25,
                "Work missing from Jira is invisible to progress tracking.",
                critical_threshold=25,
            ),
            _contribution(
                "sprintHygiene", 0.20,
                "Clean sprint boundaries make burndown and completion rates meaningful.",
            ),
            _contribution(
                "workHierarchy", 0.15,
                "Linked work rolls up into epic and initiative progress.",
            ),
            _contribution(
                "configurationEfficiency", 0.10,
                "Consistent workflows make status transitions comparable.",
            ),
        ),
    ),
    OutcomeDefinition(
        id="productivity",
        name="Productivity Measurement",
        short_name="Productivity",
        question="Can we use our Jira data to measure our productivity?",
        dimensions=(
            _contribution(
                "workCaptured", 0.25,
                "Throughput undercounts whatever work is never recorded.",
                critical_threshold=25,
            ),
            _contribution(
                "estimationCoverage", 0.20,
                "Output cannot be weighed without estimates on the work delivered.",
                critical_threshold=25,
            ),
            _contribution(
                "sizingConsistency", 0.20,
                "Points only compare across sprints when sizing is consistent.",
                critical_threshold=20,
            ),
            _contribution(
                "dataFreshness", 0.15,
                "Cycle time is distorted by statuses that lag reality.",
            ),
            _contribution(
                "teamCollaboration", 0.10,
                "Hand-offs recorded in Jira expose where work waits.",
            ),
            _contribution(
                "sprintHygiene", 0.10,
                "Stable sprints give a consistent unit for measuring delivery.",
            ),
        ),
    ),
    OutcomeDefinition(
        id="improvement",
        name="Continuous Improvement",
        short_name="Improvement",
        question=(
            "Can we use our Jira data to determine how we might improve our processes?"
        ),
        dimensions=(
            _contribution(
                "sprintHygiene", 0.25,
                "Retrospectives need an accurate record of what happened in each sprint.",
                critical_threshold=25,
            ),
            _contribution(
                "dataFreshness", 0.20,
                "Process bottlenecks only show up when statuses are kept current.",
                critical_threshold=25,
            ),
            _contribution(
                "estimationCoverage", 0.15,
                "Estimate versus actual comparisons need estimates to exist.",
            ),
            _contribution(
                "sizingConsistency", 0.15,
                "Consistent sizing separates process change from estimation noise.",
            ),
            _contribution(
                "automationOpportunities", 0.15,
                "Repetitive manual steps are the cheapest improvements to find.",
            ),
            _contribution(
                "teamCollaboration", 0.10,
                "Collaboration patterns reveal where coordination slows work.",
            ),
        ),
    ),
    OutcomeDefinition(
        id="collaboration",
        name="Collaboration Effectiveness",
        short_name="Collaboration",
        question="Are we using Jira to collaborate effectively?",
        dimensions=(
            _contribution(
                "teamCollaboration", 0.30,
                "Comments, mentions and shared ownership are the core of collaboration.",
                critical_threshold=25,
            ),
            _contribution(
                "collaborationFeatureUsage", 0.25,
                "Watchers, links and mentions keep the right people informed.",
            ),
            _contribution(
                "blockerManagement", 0.20,
                "Flagged blockers let others step in before work stalls.",
            ),
            _contribution(
                "automationOpportunities", 0.15,
                "Automated notifications remove manual coordination overhead.",
            ),
            _contribution(
                "configurationEfficiency", 0.10,
                "Shared conventions make each team's boards readable to others.",
            ),
        ),
    ),
    OutcomeDefinition(
        id="portfolio",
        name="Portfolio Planning",
        short_name="Portfolio",
        question=(
            "Is our Jira data reliable enough to be used in portfolio-level "
            "planning or decision-making?"
        ),
        dimensions=(
            _contribution(
                "workHierarchy", 0.30,
                "Portfolio views depend on stories rolling up to epics and initiatives.",
                critical_threshold=30,
            ),
            _contribution(
                "estimationCoverage", 0.20,
                "Roadmap forecasts aggregate the estimates of the underlying work.",
                critical_threshold=25,
            ),
            _contribution(
                "workCaptured", 0.15,
                "Unrecorded work hides real capacity from portfolio planners.",
            ),
            _contribution(
                "informationHealth", 0.15,
                "Decisions made on incomplete tickets carry hidden assumptions.",
            ),
            _contribution(
                "issueTypeConsistency", 0.10,
                "Issue types must mean the same thing across teams to be aggregated.",
            ),
            _contribution(
                "dataFreshness", 0.10,
                "Portfolio reports inherit any staleness in team-level data.",
            ),
        ),
    ),
    OutcomeDefinition(
        id="awareness",
        name="Risk Detection",
        short_name="Risk Detection",
        question="Can we use our Jira data to identify risks and blockers early?",
        dimensions=(
            _contribution(
                "blockerManagement", 0.30,
                "Blockers that are never flagged cannot be escalated.",
                critical_threshold=30,
            ),
            _contribution(
                "dataFreshness", 0.25,
                "Early warnings rely on statuses that reflect today, not last week.",
                critical_threshold=25,
            ),
            _contribution(
                "teamCollaboration", 0.20,
                "Risks surface in discussion before they surface in dates.",
            ),
            _contribution(
                "collaborationFeatureUsage", 0.15,
                "Links and watchers spread risk signals to dependent teams.",
            ),
            _contribution(
                "workHierarchy", 0.10,
                "Linked work shows which goals a slipping item puts at risk.",
            ),
        ),
    ),
]

THEME_GROUPS: list[ThemeGroup] = [
    ThemeGroup(
        id="dataQuality",
        name="Data Quality & Completeness",
        question="Is our Jira data complete and accurate?",
        dimension_keys=(
            "workCaptured",
            "ticketReadiness",
            "dataFreshness",
            "issueTypeConsistency",
            "workHierarchy",
        ),
    ),
    ThemeGroup(
        id="estimation",
        name="Estimation Health",
        question="Is our estimation data reliable?",
        dimension_keys=("estimationCoverage", "sizingConsistency"),
    ),
    ThemeGroup(
        id="collaboration",
        name="Effective Collaboration",
        question="Are we using Jira as a collaboration tool?",
        dimension_keys=(
            "teamCollaboration",
            "blockerManagement",
            "collaborationFeatureUsage",
        ),
    ),
    ThemeGroup(
        id="efficiency",
        name="Jira Efficiency",
        question="Are we wasting time in Jira?",
        dimension_keys=("automationOpportunities", "configurationEfficiency"),
    ),
    ThemeGroup(
        id="discipline",
        name="Methodology Support",
        question="Is Jira helping or hindering your methodology?",
        dimension_keys=("sprintHygiene", "backlogDiscipline"),
    ),
]


class OutcomeCatalog:
    """Validated, immutable lookup of outcome definitions.

    Every contribution in every definition must reference a key present in
    the dimension catalog; otherwise construction fails.
    """

    def __init__(
        self,
        definitions: Iterable[OutcomeDefinition] = OUTCOME_DEFINITIONS,
        dimensions: Mapping[str, DimensionInfo] = DIMENSIONS_BY_KEY,
    ) -> None:
        """Build and validate the catalog.

        Args:
            definitions: Outcome definitions in display order.
            dimensions: Dimension catalog keyed by dimension key.

        Raises:
            UnknownDimensionError: If a definition references a dimension key
                missing from ``dimensions``.
            ValueError: If two definitions share an id or one definition
                lists the same dimension twice.
        """
        self._dimensions = dict(dimensions)
        self._definitions: dict[str, OutcomeDefinition] = {}
        for definition in definitions:
            if definition.id in self._definitions:
                raise ValueError(f"Duplicate outcome id: {definition.id!r}")
            seen: set[str] = set()
            for contribution in definition.dimensions:
                if contribution.dimension_key not in self._dimensions:
                    raise UnknownDimensionError(contribution.dimension_key, definition.id)
                if contribution.dimension_key in seen:
                    raise ValueError(
                        f"Outcome {definition.id!r} lists dimension "
                        f"{contribution.dimension_key!r} more than once"
                    )
                seen.add(contribution.dimension_key)
            self._definitions[definition.id] = definition

    def get(self, outcome_id: str) -> OutcomeDefinition:
        """Return the definition for ``outcome_id``.

        Raises:
            UnknownOutcomeError: If the id is not catalogued.
        """
        try:
            return self._definitions[outcome_id]
        except KeyError:
            raise UnknownOutcomeError(outcome_id) from None

    def dimension_name(self, dimension_key: str) -> str:
        """Display name of a catalogued dimension, the key itself otherwise."""
        info = self._dimensions.get(dimension_key)
        return info.name if info is not None else dimension_key

    @property
    def outcome_ids(self) -> list[str]:
        """Outcome ids in definition order."""
        return list(self._definitions)

    def __iter__(self) -> Iterator[OutcomeDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, outcome_id: object) -> bool:
        return outcome_id in self._definitions

    def required_dimension_keys(self) -> set[str]:
        """All dimension keys referenced by any outcome."""
        return {
            contribution.dimension_key
            for definition in self._definitions.values()
            for contribution in definition.dimensions
        }


def get_theme_groups() -> list[ThemeGroup]:
    """Return the theme groups in display order."""
    return list(THEME_GROUPS)
