"""
Rule-based insights over window summaries.

Each rule is an independent, pure predicate with a fixed message, so rules can
be tested in isolation and new ones appended without touching the others.
The engine evaluates its rules in definition order; a rule whose category has
no records never fires, because missing data is not evidence of a problem.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog
from pydantic import BaseModel, Field

from healthboard.domain.models import Insight, Severity
from healthboard.domain.summaries import WindowSummaries

logger = structlog.get_logger(__name__)

NO_INSIGHTS_MESSAGE = "Add more data to receive personalized insights!"


class InsightThresholds(BaseModel):
    """Thresholds the default insight rules compare summaries against."""

    active_calories_per_activity: float = Field(
        default=300.0, ge=0.0, description="Mean kcal per activity above which it counts as active"
    )
    min_total_protein_g: float = Field(
        default=50.0, ge=0.0, description="Total protein in the window below which to caution"
    )
    good_mood_rating: float = Field(
        default=4.0, ge=1.0, le=5.0, description="Mean mood rating above which mood is good"
    )
    min_total_water_ml: float = Field(
        default=2000.0, ge=0.0, description="Total water in the window below which to caution"
    )


RulePredicate = Callable[[WindowSummaries, InsightThresholds], bool]


@dataclass(frozen=True)
class InsightRule:
    """A named predicate plus the insight it produces when the predicate holds."""

    name: str
    severity: Severity
    message: str
    predicate: RulePredicate

    def evaluate(
        self, summaries: WindowSummaries, thresholds: InsightThresholds
    ) -> Insight | None:
        if not self.predicate(summaries, thresholds):
            return None
        return Insight(rule=self.name, severity=self.severity, message=self.message)


def _active_lifestyle(summaries: WindowSummaries, thresholds: InsightThresholds) -> bool:
    activity = summaries.activity
    average = activity.average_calories_burned
    return (
        not activity.is_empty
        and average is not None
        and average > thresholds.active_calories_per_activity
    )


def _low_protein(summaries: WindowSummaries, thresholds: InsightThresholds) -> bool:
    nutrition = summaries.nutrition
    return not nutrition.is_empty and nutrition.total_protein < thresholds.min_total_protein_g


def _good_mood(summaries: WindowSummaries, thresholds: InsightThresholds) -> bool:
    mood = summaries.mood
    return (
        not mood.is_empty
        and mood.average_mood is not None
        and mood.average_mood > thresholds.good_mood_rating
    )


def _low_hydration(summaries: WindowSummaries, thresholds: InsightThresholds) -> bool:
    water = summaries.water
    return not water.is_empty and water.total_volume_ml < thresholds.min_total_water_ml


ACTIVE_LIFESTYLE = InsightRule(
    name="active_lifestyle",
    severity=Severity.POSITIVE,
    message="Great job maintaining an active lifestyle! Keep it up!",
    predicate=_active_lifestyle,
)
LOW_PROTEIN = InsightRule(
    name="low_protein",
    severity=Severity.CAUTION,
    message="Consider increasing your protein intake for better recovery.",
    predicate=_low_protein,
)
GOOD_MOOD = InsightRule(
    name="good_mood",
    severity=Severity.POSITIVE,
    message="You've been in a great mood lately! That's wonderful!",
    predicate=_good_mood,
)
LOW_HYDRATION = InsightRule(
    name="low_hydration",
    severity=Severity.CAUTION,
    message="Try to drink more water throughout the day for better hydration.",
    predicate=_low_hydration,
)

DEFAULT_RULES: tuple[InsightRule, ...] = (
    ACTIVE_LIFESTYLE,
    LOW_PROTEIN,
    GOOD_MOOD,
    LOW_HYDRATION,
)


class InsightEngine:
    """
    Evaluates an ordered, immutable rule list against window summaries.

    Extending the engine returns a new engine; an existing engine's rules never
    change, so evaluation stays a static, side-effect-free pass.
    """

    def __init__(
        self,
        rules: Iterable[InsightRule] = DEFAULT_RULES,
        thresholds: InsightThresholds | None = None,
    ) -> None:
        self.rules: tuple[InsightRule, ...] = tuple(rules)
        self.thresholds = thresholds or InsightThresholds()
        self.logger = logger.bind(component="insight_engine")

        names = [rule.name for rule in self.rules]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate insight rule names: {names}")

    def with_rule(self, rule: InsightRule) -> "InsightEngine":
        return InsightEngine((*self.rules, rule), self.thresholds)

    def evaluate(self, summaries: WindowSummaries) -> list[Insight]:
        insights = []
        for rule in self.rules:
            insight = rule.evaluate(summaries, self.thresholds)
            if insight is not None:
                insights.append(insight)

        self.logger.info(
            "insights_evaluated",
            rules=len(self.rules),
            triggered=[insight.rule for insight in insights],
        )
        return insights
