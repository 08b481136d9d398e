"""
Tests for the insight rule engine.

Each default rule is checked on its own, then the engine as a whole:
ordering, determinism, thresholds, and extension with custom rules.
"""

import pytest
from conftest import raw_activity, raw_meal, raw_mood, raw_water
from hypothesis import given
from hypothesis import strategies as st

from healthboard.domain.models import (
    ActivityEntry,
    MoodEntry,
    NutritionEntry,
    Severity,
    WaterEntry,
)
from healthboard.domain.summaries import WindowSummaries
from healthboard.services.aggregator import (
    summarize_activity,
    summarize_mood,
    summarize_nutrition,
    summarize_water,
)
from healthboard.services.insights import (
    ACTIVE_LIFESTYLE,
    DEFAULT_RULES,
    GOOD_MOOD,
    LOW_HYDRATION,
    LOW_PROTEIN,
    NO_INSIGHTS_MESSAGE,
    InsightEngine,
    InsightRule,
    InsightThresholds,
)


def summaries_with(
    calories: list[int | None] | None = None,
    proteins: list[float | None] | None = None,
    moods: list[int] | None = None,
    water: list[float] | None = None,
) -> WindowSummaries:
    parts = {}
    if calories is not None:
        parts["activity"] = summarize_activity(
            [ActivityEntry.model_validate(raw_activity(c)) for c in calories]
        )
    if proteins is not None:
        parts["nutrition"] = summarize_nutrition(
            [NutritionEntry.model_validate(raw_meal(p)) for p in proteins]
        )
    if moods is not None:
        parts["mood"] = summarize_mood([MoodEntry.model_validate(raw_mood(m)) for m in moods])
    if water is not None:
        parts["water"] = summarize_water([WaterEntry.model_validate(raw_water(w)) for w in water])
    return WindowSummaries(**parts)


THRESHOLDS = InsightThresholds()


class TestDefaultRules:
    def test_active_lifestyle_fires_above_threshold(self) -> None:
        assert ACTIVE_LIFESTYLE.evaluate(summaries_with(calories=[320]), THRESHOLDS) is not None
        assert ACTIVE_LIFESTYLE.evaluate(summaries_with(calories=[300]), THRESHOLDS) is None

    def test_active_lifestyle_ignores_activities_without_calories(self) -> None:
        # Mean over the two logged values is 350
        summaries = summaries_with(calories=[400, 300, None])
        assert ACTIVE_LIFESTYLE.evaluate(summaries, THRESHOLDS) is not None

    def test_active_lifestyle_with_no_calorie_data(self) -> None:
        assert ACTIVE_LIFESTYLE.evaluate(summaries_with(calories=[None]), THRESHOLDS) is None

    def test_low_protein(self) -> None:
        insight = LOW_PROTEIN.evaluate(summaries_with(proteins=[20, 15]), THRESHOLDS)

        assert insight is not None
        assert insight.severity is Severity.CAUTION
        assert LOW_PROTEIN.evaluate(summaries_with(proteins=[30, 25]), THRESHOLDS) is None

    def test_good_mood_requires_strictly_above_threshold(self) -> None:
        assert GOOD_MOOD.evaluate(summaries_with(moods=[5, 4]), THRESHOLDS) is not None
        assert GOOD_MOOD.evaluate(summaries_with(moods=[4, 4]), THRESHOLDS) is None

    @pytest.mark.parametrize(
        "total_ml,fires", [(1500, True), (1999, True), (2000, False), (2500, False)]
    )
    def test_low_hydration(self, total_ml: float, fires: bool) -> None:
        insight = LOW_HYDRATION.evaluate(summaries_with(water=[total_ml]), THRESHOLDS)
        assert (insight is not None) is fires

    @pytest.mark.parametrize("rule", DEFAULT_RULES, ids=lambda rule: rule.name)
    def test_rules_never_fire_on_empty_categories(self, rule: InsightRule) -> None:
        assert rule.evaluate(WindowSummaries(), THRESHOLDS) is None


class TestInsightEngine:
    def test_single_active_workout_yields_one_insight(self) -> None:
        insights = InsightEngine().evaluate(summaries_with(calories=[320]))

        assert [insight.rule for insight in insights] == ["active_lifestyle"]
        assert insights[0].message == "Great job maintaining an active lifestyle! Keep it up!"
        assert insights[0].severity is Severity.POSITIVE

    def test_empty_window_yields_no_insights(self) -> None:
        assert InsightEngine().evaluate(WindowSummaries()) == []
        assert NO_INSIGHTS_MESSAGE == "Add more data to receive personalized insights!"

    def test_insights_follow_rule_order(self) -> None:
        summaries = summaries_with(calories=[500], proteins=[10], moods=[5], water=[250])

        insights = InsightEngine().evaluate(summaries)

        assert [insight.rule for insight in insights] == [
            "active_lifestyle",
            "low_protein",
            "good_mood",
            "low_hydration",
        ]

    def test_thresholds_are_configurable(self) -> None:
        engine = InsightEngine(thresholds=InsightThresholds(min_total_water_ml=1000))

        assert engine.evaluate(summaries_with(water=[1500])) == []

    def test_with_rule_returns_a_new_engine(self) -> None:
        heavy_meals = InsightRule(
            name="heavy_meals",
            severity=Severity.CAUTION,
            message="Your meals have been on the heavy side.",
            predicate=lambda s, t: (s.nutrition.average_calories or 0) > 350,
        )
        base = InsightEngine()

        extended = base.with_rule(heavy_meals)
        insights = extended.evaluate(summaries_with(proteins=[80]))

        assert [insight.rule for insight in insights] == ["heavy_meals"]
        assert len(base.rules) == len(DEFAULT_RULES)
        assert extended.rules[-1] is heavy_meals

    def test_duplicate_rule_names_are_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            InsightEngine((LOW_PROTEIN, LOW_PROTEIN))

    def test_rule_with_empty_engine(self) -> None:
        assert InsightEngine(rules=()).evaluate(summaries_with(water=[10])) == []

    @given(
        calories=st.lists(st.one_of(st.none(), st.integers(0, 1200)), max_size=8),
        moods=st.lists(st.integers(1, 5), max_size=8),
        water=st.lists(st.floats(min_value=0, max_value=3000), max_size=8),
    )
    def test_evaluation_is_deterministic(
        self, calories: list[int | None], moods: list[int], water: list[float]
    ) -> None:
        engine = InsightEngine()
        summaries = summaries_with(calories=calories, moods=moods, water=water)

        assert engine.evaluate(summaries) == engine.evaluate(summaries)
