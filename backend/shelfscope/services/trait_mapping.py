"""
Static tables that turn onboarding selections into trait score deltas.

Every key is an enum member so a typo in a category or trait name fails at import
time (see validate_mapping_table) instead of silently scoring nothing.
"""
import enum
from typing import Dict, Mapping, Tuple


class Trait(str, enum.Enum):
    OPENNESS = "openness"
    CONSCIENTIOUSNESS = "conscientiousness"
    EXTRAVERSION = "extraversion"
    AGREEABLENESS = "agreeableness"
    EMOTIONAL_STABILITY = "emotional_stability"


class TraitLevel(str, enum.Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class PreferenceCategory(str, enum.Enum):
    DIFFICULTY = "difficulty"
    MOODS = "moods"
    EMOTIONS = "emotions"
    THEMES = "themes"
    NARRATIVE_STYLES = "narrative_styles"
    PURPOSES = "purposes"
    LENGTH = "length"
    PACE = "pace"


# Used only to break exact score ties when ranking traits.
TRAIT_PRIORITY: Tuple[Trait, ...] = (
    Trait.OPENNESS,
    Trait.CONSCIENTIOUSNESS,
    Trait.EXTRAVERSION,
    Trait.AGREEABLENESS,
    Trait.EMOTIONAL_STABILITY,
)

SINGLE_SELECT_CATEGORIES = frozenset({
    PreferenceCategory.DIFFICULTY,
    PreferenceCategory.LENGTH,
    PreferenceCategory.PACE,
})

BASELINE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

# Level boundaries: < LOW_THRESHOLD is low, > HIGH_THRESHOLD is high, else moderate
LOW_THRESHOLD = 40
HIGH_THRESHOLD = 60

TraitDeltas = Dict[Trait, int]

O = Trait.OPENNESS
C = Trait.CONSCIENTIOUSNESS
E = Trait.EXTRAVERSION
A = Trait.AGREEABLENESS
S = Trait.EMOTIONAL_STABILITY

MAPPING_TABLE: Dict[PreferenceCategory, Dict[str, TraitDeltas]] = {
    PreferenceCategory.DIFFICULTY: {
        "challenging": {O: 3},
        "moderate": {O: 1},
        "easy": {O: -2, A: 1},
        "any": {},
    },
    PreferenceCategory.MOODS: {
        "philosophical": {O: 3},
        "bright": {E: 2, A: 1, S: 2},
        "dark": {O: 1, S: -2},
        "neutral": {C: 1},
        "emotional": {A: 2, S: -1},
    },
    PreferenceCategory.EMOTIONS: {
        "joy": {E: 2, A: 1, S: 2},
        "sadness": {O: 1, E: -1, S: -2},
        "tension": {O: 1, A: -1, S: -2},
        "inspiration": {O: 2, S: 1},
        "fear": {O: 1, S: -3},
        "empathy": {A: 3, S: 1},
    },
    PreferenceCategory.THEMES: {
        "growth": {O: 2, C: 2},
        "love": {A: 2, E: 1},
        "friendship": {A: 2, E: 1},
        "family": {A: 3, C: 1},
        "social_issues": {O: 2, C: 1},
        "history": {O: 1, C: 2},
        "future": {O: 2},
        "fantasy": {O: 3, A: -1},
    },
    PreferenceCategory.NARRATIVE_STYLES: {
        "metaphorical": {O: 2, E: -1},
        "direct": {O: -1, C: 1, E: 1, S: 1},
        "philosophical": {O: 3, C: 1},
        "descriptive": {O: 1, C: 1},
        "dialogue": {E: 2, A: 1},
    },
    PreferenceCategory.PURPOSES: {
        "leisure": {S: 1},
        "learning": {O: 2, C: 2},
        "self_development": {C: 3, O: 1},
        "emotional_relief": {S: -1, A: 1},
        "inspiration": {O: 2, S: 1},
    },
    PreferenceCategory.LENGTH: {
        "short": {C: -1},
        "medium": {},
        "long": {C: 2, O: 1},
        "any": {},
    },
    PreferenceCategory.PACE: {
        "fast": {E: 1, C: -1},
        "medium": {},
        "slow": {C: 2, O: 1},
    },
}

del O, C, E, A, S


def validate_mapping_table(table: Mapping[PreferenceCategory, Mapping[str, TraitDeltas]]) -> None:
    """Raise ValueError if any category, option or delta in `table` is malformed."""
    for category, options in table.items():
        if not isinstance(category, PreferenceCategory):
            raise ValueError(f"Unknown preference category in mapping table: {category!r}")
        for option, deltas in options.items():
            if not isinstance(option, str) or not option:
                raise ValueError(f"Invalid option {option!r} in category {category.value}")
            for trait, delta in deltas.items():
                if not isinstance(trait, Trait):
                    raise ValueError(
                        f"Unknown trait {trait!r} for {category.value}.{option}"
                    )
                if isinstance(delta, bool) or not isinstance(delta, int):
                    raise ValueError(
                        f"Delta for {category.value}.{option}.{trait.value} must be an int, got {delta!r}"
                    )


validate_mapping_table(MAPPING_TABLE)
