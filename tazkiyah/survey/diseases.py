"""The eleven fixed disease dimensions scored by the survey."""

from enum import Enum
from typing import Dict, List

LIKERT_MIN = 1
LIKERT_MAX = 5

REFLECTION_MIN_LENGTH = 10
REFLECTION_MAX_LENGTH = 500
NOTE_MAX_LENGTH = 1000


class Disease(str, Enum):
    """Spiritual disease dimension, valued by its question id."""

    ENVY = "envy"
    ARROGANCE = "arrogance"
    SELF_DECEPTION = "selfDeception"
    LUST = "lust"
    ANGER = "anger"
    MALICE = "malice"
    BACKBITING = "backbiting"
    SUSPICION = "suspicion"
    LOVE_OF_DUNYA = "loveOfDunya"
    LAZINESS = "laziness"
    DESPAIR = "despair"


# Enum definition order is the canonical order
CANONICAL_ORDER: List[Disease] = list(Disease)

PHASE1_DISEASES: List[Disease] = [
    Disease.ENVY,
    Disease.ARROGANCE,
    Disease.SELF_DECEPTION,
    Disease.LUST,
]

PHASE2_DISEASES: List[Disease] = [
    Disease.ANGER,
    Disease.MALICE,
    Disease.BACKBITING,
    Disease.SUSPICION,
    Disease.LOVE_OF_DUNYA,
    Disease.LAZINESS,
    Disease.DESPAIR,
]

DISEASE_LABELS: Dict[Disease, str] = {
    Disease.ENVY: "Envy",
    Disease.ARROGANCE: "Arrogance",
    Disease.SELF_DECEPTION: "Self-Deception",
    Disease.LUST: "Lust",
    Disease.ANGER: "Anger",
    Disease.MALICE: "Malice",
    Disease.BACKBITING: "Backbiting",
    Disease.SUSPICION: "Suspicion",
    Disease.LOVE_OF_DUNYA: "Love of Dunya",
    Disease.LAZINESS: "Laziness",
    Disease.DESPAIR: "Despair",
}
