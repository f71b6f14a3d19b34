"""Template-based guidance derived from categorized disease scores.

Everything here is a lookup into fixed tables keyed by :class:`Disease`,
so the same scores and reflection text always produce the same output.
The only text heuristics are a case-insensitive substring check of the
daily-habit answer for prayer keywords, and a check of the
strongest-struggle answer for a disease's name when personalizing habit
descriptions.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from tazkiyah.survey.diseases import DISEASE_LABELS, Disease
from tazkiyah.survey.results import (
    PersonalizedHabit,
    PlanMilestone,
    Practice,
    ReflectionAnswers,
    TazkiyahPhase,
    TazkiyahPlan,
    categorize_diseases,
)

MAX_PREVIEW_DISEASE_HABITS = 3
MAX_TAHLIYAH_FOCUS = 3
MAX_PLAN_CRITICAL_DISEASES = 3
MAX_PLAN_MODERATE_DISEASES = 2
MAX_STRUCTURED_HABITS = 10

PRAYER_KEYWORDS = ("prayer", "salah")
PRAYER_HABIT = "Maintain consistent prayer schedule"
DEFAULT_REFLECTION_HABIT = "Incorporate Islamic reminders in daily routine"

PREVIEW_HABITS: Mapping[Disease, str] = MappingProxyType(
    {
        Disease.ENVY: "Practice daily gratitude dhikr",
        Disease.ARROGANCE: "Daily reflection on human weaknesses",
        Disease.SELF_DECEPTION: "Daily self-accountability (muhasabah) before Maghrib",
        Disease.LUST: "Lower your gaze and seek refuge when tempted",
        Disease.ANGER: "Recite \"A'udhu billahi min ash-shaytani'r-rajim\" when feeling anger",
        Disease.MALICE: "Make dua for those who have wronged you",
        Disease.BACKBITING: "Pause before speaking about anyone who is absent",
        Disease.SUSPICION: "Assume good intentions before judging others",
        Disease.LOVE_OF_DUNYA: "Give something small in charity every day",
        Disease.LAZINESS: "Rise 15 minutes before Fajr",
        Disease.DESPAIR: "Recite \"La hawla wa la quwwata illa billah\" when feeling hopeless",
    }
)

TAKHLIYAH_FOCUS: Mapping[Disease, str] = MappingProxyType(
    {
        Disease.ENVY: "Purify heart from envy through gratitude",
        Disease.ARROGANCE: "Remove arrogance through humility practices",
        Disease.SELF_DECEPTION: "Eliminate self-deception through honest self-reflection",
        Disease.LUST: "Control lustful desires through spiritual discipline",
        Disease.ANGER: "Remove anger through patience and dhikr",
        Disease.MALICE: "Cleanse heart from malice through forgiveness",
        Disease.BACKBITING: "Stop backbiting through mindful speech",
        Disease.SUSPICION: "Remove suspicion through positive thinking",
        Disease.LOVE_OF_DUNYA: "Detach from excessive worldly desires",
        Disease.LAZINESS: "Overcome laziness through consistent action",
        Disease.DESPAIR: "Remove despair through trust in Allah",
    }
)

TAHLIYAH_FOCUS: Mapping[Disease, str] = MappingProxyType(
    {
        Disease.ENVY: "Cultivate contentment and gratitude",
        Disease.ARROGANCE: "Build humility and modesty",
        Disease.SELF_DECEPTION: "Develop self-awareness and honesty",
        Disease.LUST: "Strengthen spiritual discipline",
        Disease.ANGER: "Develop patience and forbearance",
        Disease.MALICE: "Cultivate forgiveness and compassion",
        Disease.BACKBITING: "Practice good speech and silence",
        Disease.SUSPICION: "Build trust and positive thinking",
        Disease.LOVE_OF_DUNYA: "Focus on the Hereafter",
        Disease.LAZINESS: "Develop discipline and consistency",
        Disease.DESPAIR: "Strengthen faith and hope",
    }
)


@dataclass(frozen=True)
class HabitTemplate:
    title: str
    description: str
    frequency: str
    difficulty_level: str
    estimated_duration: str


HABIT_LIBRARY: Mapping[Disease, Tuple[HabitTemplate, ...]] = MappingProxyType(
    {
        Disease.ENVY: (
            HabitTemplate(
                "Gratitude dhikr after each prayer",
                'Say "Alhamdulillahi Rabbil Alameen" 33 times after each obligatory prayer',
                "daily", "easy", "5 minutes",
            ),
            HabitTemplate(
                "Make dua for those you envy",
                "When feeling envy, immediately make sincere dua for the person's continued blessings",
                "daily", "moderate", "2 minutes",
            ),
        ),
        Disease.ARROGANCE: (
            HabitTemplate(
                "Serve someone daily",
                "Perform a small act of service for family, friends, or community without expecting recognition",
                "daily", "moderate", "15 minutes",
            ),
            HabitTemplate(
                "Istighfar practice",
                'Say "Astaghfirullaha rabbi min kulli dhanbin wa atubu ilayh" 100 times',
                "daily", "easy", "10 minutes",
            ),
        ),
        Disease.SELF_DECEPTION: (
            HabitTemplate(
                "Daily self-accountability (Muhasabah)",
                "Before Maghrib, spend 10 minutes honestly reviewing your actions and intentions",
                "daily", "moderate", "10 minutes",
            ),
            HabitTemplate(
                "Seek counsel from trusted friends",
                "Weekly ask a righteous friend for honest feedback about your character",
                "weekly", "challenging", "20 minutes",
            ),
        ),
        Disease.LUST: (
            HabitTemplate(
                "Immediate gaze lowering",
                "When tempted, immediately lower your gaze and say \"A'udhu billahi min ash-shaytani'r-rajim\"",
                "daily", "moderate", "1 minute",
            ),
            HabitTemplate(
                "Voluntary fasting",
                "Fast on Mondays and Thursdays to build self-control and reduce desires",
                "weekly", "challenging", "Full day",
            ),
        ),
        Disease.ANGER: (
            HabitTemplate(
                "Immediate refuge seeking",
                "When feeling angry, immediately say \"A'udhu billahi min ash-shaytani'r-rajim\"",
                "daily", "easy", "1 minute",
            ),
            HabitTemplate(
                "Wudu when angry",
                "Perform ablution when feeling anger to cool down physically and spiritually",
                "daily", "easy", "5 minutes",
            ),
        ),
        Disease.MALICE: (
            HabitTemplate(
                "Make dua for those who hurt you",
                "Daily make sincere dua for the guidance and wellbeing of those who have wronged you",
                "daily", "challenging", "5 minutes",
            ),
            HabitTemplate(
                "Acts of kindness",
                "Perform one unexpected act of kindness daily to soften your heart",
                "daily", "moderate", "10 minutes",
            ),
        ),
        Disease.BACKBITING: (
            HabitTemplate(
                "Guard your tongue",
                "Before speaking about someone, ask: Is it true? Is it necessary? Is it kind?",
                "daily", "moderate", "1 minute",
            ),
            HabitTemplate(
                "Defend the absent",
                "When someone speaks ill of others, defend them or change the topic",
                "daily", "challenging", "2 minutes",
            ),
        ),
        Disease.SUSPICION: (
            HabitTemplate(
                "Assume good intentions",
                "When in doubt about someone's actions, assume the best possible motive",
                "daily", "moderate", "1 minute",
            ),
            HabitTemplate(
                "Verify before believing",
                "If you hear something concerning about someone, verify it before accepting it",
                "daily", "moderate", "5 minutes",
            ),
        ),
        Disease.LOVE_OF_DUNYA: (
            HabitTemplate(
                "Daily gratitude practice",
                "List 3 non-material blessings you are grateful for each day",
                "daily", "easy", "5 minutes",
            ),
            HabitTemplate(
                "Charity practice",
                "Give something small in charity daily to detach from material possessions",
                "daily", "moderate", "5 minutes",
            ),
        ),
        Disease.LAZINESS: (
            HabitTemplate(
                "Early rising for Fajr",
                "Wake up 15 minutes before Fajr prayer time for preparation and dhikr",
                "daily", "moderate", "15 minutes",
            ),
            HabitTemplate(
                "Set daily intentions",
                "After Fajr, set 3 specific intentions for beneficial actions throughout the day",
                "daily", "easy", "5 minutes",
            ),
        ),
        Disease.DESPAIR: (
            HabitTemplate(
                "Hope in Allah's mercy",
                'When feeling hopeless, recite "La hawla wa la quwwata illa billah"',
                "daily", "easy", "2 minutes",
            ),
            HabitTemplate(
                "Study stories of hope",
                "Read one story of divine mercy or relief after hardship",
                "daily", "easy", "10 minutes",
            ),
        ),
    }
)

CONTENT_REFERENCES: Mapping[Disease, Tuple[str, ...]] = MappingProxyType(
    {
        Disease.ENVY: ("quran-16-71", "hadith-abu-dawud-envy"),
        Disease.ARROGANCE: ("hadith-muslim-pride", "quran-31-18"),
        Disease.SELF_DECEPTION: ("hadith-abu-dawud-mirror", "quran-9-119"),
        Disease.LUST: ("hadith-bukhari-fasting", "quran-24-30"),
        Disease.ANGER: ("hadith-abu-dawud-wudu", "quran-3-134"),
        Disease.MALICE: ("quran-42-40", "hadith-ahmad-mercy"),
        Disease.BACKBITING: ("hadith-muslim-backbiting",),
        Disease.SUSPICION: ("quran-49-12",),
        Disease.LOVE_OF_DUNYA: ("hadith-muslim-stewardship",),
        Disease.LAZINESS: ("hadith-bayhaqi-excellence",),
        Disease.DESPAIR: ("quran-65-3",),
    }
)


# Reflection preview


def build_reflection_preview(
    disease_scores: Mapping[Disease, int], reflection: ReflectionAnswers
) -> Dict[str, List[str]]:
    """Lightweight guidance shown right after the reflection is submitted."""
    categories = categorize_diseases(disease_scores)

    personalized_habits = [
        PREVIEW_HABITS[disease]
        for disease in categories.critical[:MAX_PREVIEW_DISEASE_HABITS]
    ]
    daily_habit = reflection.daily_habit.lower()
    if any(keyword in daily_habit for keyword in PRAYER_KEYWORDS):
        personalized_habits.append(PRAYER_HABIT)
    else:
        personalized_habits.append(DEFAULT_REFLECTION_HABIT)

    return {
        "personalizedHabits": personalized_habits,
        "takhliyahFocus": [TAKHLIYAH_FOCUS[d] for d in categories.critical],
        "tahliyahFocus": [
            TAHLIYAH_FOCUS[d] for d in categories.strengths[:MAX_TAHLIYAH_FOCUS]
        ],
    }


# Structured habits and plan


def _by_severity(diseases: List[Disease], disease_scores: Mapping[Disease, int]) -> List[Disease]:
    # sorted() is stable, so ties keep canonical order
    return sorted(diseases, key=lambda d: disease_scores[d], reverse=True)


def _personalize_description(
    template: HabitTemplate, disease: Disease, reflection: ReflectionAnswers
) -> str:
    description = template.description
    struggle = reflection.strongest_struggle.lower()
    if DISEASE_LABELS[disease].lower() in struggle:
        description += (
            f" This directly addresses your identified struggle with "
            f"{DISEASE_LABELS[disease].lower()}."
        )

    daily_habit = reflection.daily_habit.lower()
    if "prayer" in daily_habit and "prayer" in template.description:
        description += " This aligns with your desire to strengthen your prayer practice."
    elif "dhikr" in daily_habit and "dhikr" in template.description:
        description += " This supports your goal to increase remembrance of Allah."
    return description


def _habit_from_template(
    disease: Disease, index: int, template: HabitTemplate, reflection: ReflectionAnswers
) -> PersonalizedHabit:
    return PersonalizedHabit(
        id=f"habit-{disease.value}-{index + 1}",
        title=template.title,
        description=_personalize_description(template, disease, reflection),
        frequency=template.frequency,
        target_disease=disease,
        difficulty_level=template.difficulty_level,
        estimated_duration=template.estimated_duration,
        islamic_content_ids=list(CONTENT_REFERENCES[disease]),
    )


def build_personalized_habits(
    disease_scores: Mapping[Disease, int], reflection: ReflectionAnswers
) -> List[PersonalizedHabit]:
    """Structured habits for the persisted result.

    Every library habit for the three most severe critical diseases, then
    the easiest habit of each moderate disease while fewer than ten habits
    have been chosen. Habit ids are derived from the disease and template
    position, so they are unique and stable.
    """
    categories = categorize_diseases(disease_scores)
    habits: List[PersonalizedHabit] = []

    for disease in _by_severity(categories.critical, disease_scores)[
        :MAX_PLAN_CRITICAL_DISEASES
    ]:
        for index, template in enumerate(HABIT_LIBRARY[disease]):
            habits.append(_habit_from_template(disease, index, template, reflection))

    for disease in categories.moderate:
        if len(habits) >= MAX_STRUCTURED_HABITS:
            break
        templates = HABIT_LIBRARY[disease]
        index = next(
            (i for i, t in enumerate(templates) if t.difficulty_level == "easy"), 0
        )
        habits.append(_habit_from_template(disease, index, templates[index], reflection))

    return habits


def _plan_focus_diseases(disease_scores: Mapping[Disease, int]) -> List[Disease]:
    categories = categorize_diseases(disease_scores)
    if categories.critical:
        return _by_severity(categories.critical, disease_scores)[:MAX_PLAN_CRITICAL_DISEASES]
    return categories.moderate[:MAX_PLAN_MODERATE_DISEASES]


def _expected_duration(disease_count: int) -> str:
    total_weeks = 10 + max(0, disease_count - 2) * 2
    months = -(-total_weeks // 4)
    return f"{months} months"


def _plan_phases(focus: List[Disease]) -> List[TazkiyahPhase]:
    purification_practices = [
        Practice(
            name=template.title,
            type="behavioral",
            description=template.description,
            frequency="Daily" if template.frequency == "daily" else "Weekly",
            islamic_content_ids=list(CONTENT_REFERENCES[disease]),
        )
        for disease in focus
        for template in HABIT_LIBRARY[disease]
    ]

    return [
        TazkiyahPhase(
            phase_number=1,
            title="Awareness and Recognition",
            description="Developing consciousness of spiritual diseases and building foundation for change",
            target_diseases=list(focus),
            duration="2 weeks",
            practices=[
                Practice(
                    name="Daily Self-Accountability (Muhasabah)",
                    type="reflection",
                    description="Before Maghrib, spend 10 minutes reviewing your day for instances of target diseases",
                    frequency="Daily after Asr",
                    islamic_content_ids=["athar-umar-muhasabah"],
                ),
                Practice(
                    name="Morning Dhikr for Protection",
                    type="dhikr",
                    description="Recite morning adhkar focusing on seeking refuge from spiritual diseases",
                    frequency="Daily after Fajr",
                    islamic_content_ids=["dua-istiadha"],
                ),
            ],
            checkpoints=[
                "Can identify when target diseases manifest during the day",
                "Established daily muhasabah routine",
                "Completed morning dhikr for 10 consecutive days",
            ],
        ),
        TazkiyahPhase(
            phase_number=2,
            title="Active Purification (Takhliyah)",
            description="Actively working to remove and reduce the identified spiritual diseases",
            target_diseases=list(focus),
            duration="4 weeks",
            practices=purification_practices,
            checkpoints=[
                "Notice reduction in frequency of target diseases",
                "Can catch and correct yourself in real-time",
                "Others notice positive changes in your character",
                "Completed 75% of planned practices",
            ],
        ),
        TazkiyahPhase(
            phase_number=3,
            title="Virtue Cultivation (Tahliyah)",
            description="Building positive spiritual qualities to replace the removed diseases",
            target_diseases=[],
            duration="4 weeks",
            practices=[
                Practice(
                    name="Gratitude Practice",
                    type="reflection",
                    description="Daily gratitude journaling and dhikr to cultivate contentment",
                    frequency="Daily before sleep",
                    islamic_content_ids=["quran-16-18"],
                ),
                Practice(
                    name="Service to Others",
                    type="behavioral",
                    description="Weekly acts of service to family and community",
                    frequency="Weekly",
                    islamic_content_ids=["hadith-ahmad-benefit-others"],
                ),
            ],
            checkpoints=[
                "Established positive spiritual habits",
                "Feel genuine contentment and peace",
                "Ready to help others with similar struggles",
            ],
        ),
    ]


def _plan_milestones(focus: List[Disease], starting_at: datetime) -> List[PlanMilestone]:
    focus_names = ", ".join(DISEASE_LABELS[d].lower() for d in focus) or "target diseases"
    schedule = [
        (7, "Self-Awareness Established",
         "Successfully identified patterns and triggers for target spiritual diseases"),
        (30, "Active Purification Initiated",
         f"Began systematic work on removing {focus_names} from daily life"),
        (60, "Character Transformation Visible",
         "Others notice positive changes in character and spiritual state"),
        (90, "Spiritual Development Plan Completed",
         "Successfully completed all phases of Tazkiyah plan and ready for advanced practices"),
    ]
    return [
        PlanMilestone(
            id=f"milestone-{index + 1}",
            title=title,
            description=description,
            target_date=starting_at + timedelta(days=days),
        )
        for index, (days, title, description) in enumerate(schedule)
    ]


def build_tazkiyah_plan(
    disease_scores: Mapping[Disease, int], starting_at: datetime
) -> TazkiyahPlan:
    """Three-phase purification plan for the most severe diseases.

    Focuses on up to three critical diseases by severity, or on up to two
    moderate diseases when nothing is critical. Milestone dates are offsets
    from ``starting_at``.
    """
    focus = _plan_focus_diseases(disease_scores)
    return TazkiyahPlan(
        critical_diseases=focus,
        plan_type="takhliyah",
        phases=_plan_phases(focus),
        expected_duration=_expected_duration(len(focus)),
        milestones=_plan_milestones(focus, starting_at),
    )
