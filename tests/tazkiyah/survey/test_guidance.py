"""Tests for preview, habit and plan generation."""

from datetime import UTC, datetime, timedelta

import pytest

from tazkiyah.survey.diseases import CANONICAL_ORDER, Disease
from tazkiyah.survey.guidance import (
    DEFAULT_REFLECTION_HABIT,
    HABIT_LIBRARY,
    PRAYER_HABIT,
    PREVIEW_HABITS,
    TAHLIYAH_FOCUS,
    TAKHLIYAH_FOCUS,
    build_personalized_habits,
    build_reflection_preview,
    build_tazkiyah_plan,
)
from tazkiyah.survey.results import ReflectionAnswers

ANGER_REMEDY = 'Recite "A\'udhu billahi min ash-shaytani\'r-rajim" when feeling anger'


def _scores(default: int = 2, **overrides):
    scores = {disease: default for disease in CANONICAL_ORDER}
    for key, value in overrides.items():
        scores[Disease(key)] = value
    return scores


@pytest.fixture
def reflection():
    return ReflectionAnswers(
        strongest_struggle="I struggle most with anger and impatience.",
        daily_habit="I want a consistent morning dhikr routine.",
    )


class TestLookupTables:
    def test_every_disease_has_entries(self):
        for table in (PREVIEW_HABITS, TAKHLIYAH_FOCUS, TAHLIYAH_FOCUS, HABIT_LIBRARY):
            assert set(table) == set(CANONICAL_ORDER)

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            TAKHLIYAH_FOCUS[Disease.ENVY] = "changed"


class TestReflectionPreview:
    """Test cases for the post-reflection preview."""

    def test_anger_and_love_of_dunya_scenario(self, reflection):
        preview = build_reflection_preview(_scores(anger=5, loveOfDunya=4), reflection)

        assert ANGER_REMEDY in preview["personalizedHabits"]
        assert preview["takhliyahFocus"] == [
            "Remove anger through patience and dhikr",
            "Detach from excessive worldly desires",
        ]
        assert preview["personalizedHabits"][-1] == DEFAULT_REFLECTION_HABIT

    def test_prayer_keyword_adds_prayer_habit(self):
        answers = ReflectionAnswers(
            strongest_struggle="Keeping my tongue from backbiting.",
            daily_habit="Pray every SALAH on time at the masjid.",
        )

        preview = build_reflection_preview(_scores(), answers)

        assert preview["personalizedHabits"] == [PRAYER_HABIT]
        assert preview["takhliyahFocus"] == []

    def test_tahliyah_focus_capped_at_three(self, reflection):
        scores = _scores(default=4, envy=1, arrogance=2, lust=1, malice=2, despair=1)

        preview = build_reflection_preview(scores, reflection)

        assert preview["tahliyahFocus"] == [
            "Cultivate contentment and gratitude",
            "Build humility and modesty",
            "Strengthen spiritual discipline",
        ]

    def test_disease_habits_capped(self, reflection):
        preview = build_reflection_preview(_scores(default=5), reflection)

        assert len(preview["personalizedHabits"]) == 4
        assert len(preview["takhliyahFocus"]) == 11

    def test_preview_is_deterministic(self, reflection):
        scores = _scores(anger=5, envy=4, malice=3)

        assert build_reflection_preview(scores, reflection) == build_reflection_preview(
            dict(reversed(list(scores.items()))), reflection
        )


class TestPersonalizedHabits:
    """Test cases for structured habit generation."""

    def test_habits_for_critical_diseases(self, reflection):
        habits = build_personalized_habits(_scores(anger=5, loveOfDunya=4), reflection)

        assert [h.id for h in habits] == [
            "habit-anger-1",
            "habit-anger-2",
            "habit-loveOfDunya-1",
            "habit-loveOfDunya-2",
        ]
        assert "identified struggle with anger" in habits[0].description
        assert habits[0].islamic_content_ids

    def test_ids_are_unique_and_capped(self, reflection):
        habits = build_personalized_habits(_scores(default=3, envy=5, anger=5, lust=4, despair=4), reflection)

        ids = [h.id for h in habits]
        assert len(ids) == len(set(ids))
        assert len(habits) == 10
        # Three most severe critical diseases, ties broken canonically
        assert {h.target_disease for h in habits[:6]} == {Disease.ENVY, Disease.LUST, Disease.ANGER}

    def test_moderate_diseases_get_easy_habit(self, reflection):
        habits = build_personalized_habits(_scores(laziness=3), reflection)

        assert [h.title for h in habits] == ["Set daily intentions"]


class TestTazkiyahPlan:
    """Test cases for plan generation."""

    def test_plan_structure(self):
        start = datetime(2024, 3, 1, tzinfo=UTC)

        plan = build_tazkiyah_plan(_scores(anger=5, loveOfDunya=4), start)

        assert plan.critical_diseases == [Disease.ANGER, Disease.LOVE_OF_DUNYA]
        assert [p.phase_number for p in plan.phases] == [1, 2, 3]
        assert len(plan.phases[1].practices) == 4
        assert plan.expected_duration == "3 months"
        assert [m.target_date - start for m in plan.milestones] == [
            timedelta(days=7),
            timedelta(days=30),
            timedelta(days=60),
            timedelta(days=90),
        ]

    def test_plan_focuses_on_moderate_without_critical(self):
        plan = build_tazkiyah_plan(
            _scores(malice=3, suspicion=3, laziness=3), datetime(2024, 3, 1, tzinfo=UTC)
        )

        assert plan.critical_diseases == [Disease.MALICE, Disease.SUSPICION]

    def test_longer_duration_for_more_diseases(self):
        plan = build_tazkiyah_plan(
            _scores(envy=5, anger=5, despair=5), datetime(2024, 3, 1, tzinfo=UTC)
        )

        assert plan.expected_duration == "3 months"

    def test_plan_is_deterministic(self):
        start = datetime(2024, 3, 1, tzinfo=UTC)
        scores = _scores(anger=5)

        assert build_tazkiyah_plan(scores, start) == build_tazkiyah_plan(scores, start)
