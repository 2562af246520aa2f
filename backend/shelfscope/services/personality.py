"""
Preference -> trait scoring and per-trait leveling.

Everything here is pure: no I/O, no clock, no randomness. The same preferences
always produce the same ScoreVector and profile.
"""
import logging
from typing import Dict, List, Mapping, Union

from shelfscope.schemas.preferences import PreferenceInput
from shelfscope.schemas.report import RadarPoint, ScoreVector, TraitProfile
from shelfscope.services.trait_mapping import (
    BASELINE_SCORE,
    HIGH_THRESHOLD,
    LOW_THRESHOLD,
    MAPPING_TABLE,
    MAX_SCORE,
    MIN_SCORE,
    SINGLE_SELECT_CATEGORIES,
    TRAIT_PRIORITY,
    PreferenceCategory,
    Trait,
    TraitLevel,
)

logger = logging.getLogger(__name__)

TRAIT_NAMES: Dict[Trait, str] = {
    Trait.OPENNESS: "Openness",
    Trait.CONSCIENTIOUSNESS: "Conscientiousness",
    Trait.EXTRAVERSION: "Extraversion",
    Trait.AGREEABLENESS: "Agreeableness",
    Trait.EMOTIONAL_STABILITY: "Emotional Stability",
}

# Short labels for the radar chart axes
RADAR_LABELS: Dict[Trait, str] = {
    Trait.OPENNESS: "Openness",
    Trait.CONSCIENTIOUSNESS: "Diligence",
    Trait.EXTRAVERSION: "Energy",
    Trait.AGREEABLENESS: "Empathy",
    Trait.EMOTIONAL_STABILITY: "Calm",
}

TRAIT_DESCRIPTIONS: Dict[Trait, Dict[TraitLevel, str]] = {
    Trait.OPENNESS: {
        TraitLevel.HIGH: (
            "You are open to new ideas and experiences and enjoy abstract, philosophical "
            "thinking. Complex concepts are an invitation, not an obstacle."
        ),
        TraitLevel.MODERATE: (
            "You look for a balance between the familiar and the new, and enjoy a "
            "challenge when it is pitched at the right level."
        ),
        TraitLevel.LOW: (
            "You prefer concrete, practical content and trust what is familiar and proven."
        ),
    },
    Trait.CONSCIENTIOUSNESS: {
        TraitLevel.HIGH: (
            "You read with a plan. Deep learning and self-improvement matter to you, "
            "and you like to finish what you start."
        ),
        TraitLevel.MODERATE: "Your reading mixes some planning with plenty of flexibility.",
        TraitLevel.LOW: "You read freely and spontaneously, picking up books on a whim.",
    },
    Trait.EXTRAVERSION: {
        TraitLevel.HIGH: (
            "You enjoy lively, social stories driven by dialogue and interaction."
        ),
        TraitLevel.MODERATE: "You balance quiet, reflective reading with livelier stories.",
        TraitLevel.LOW: (
            "You prefer introspective reading that explores a character's inner world."
        ),
    },
    Trait.AGREEABLENESS: {
        TraitLevel.HIGH: (
            "You are drawn to warm, empathetic stories where relationships and emotional "
            "connection come first."
        ),
        TraitLevel.MODERATE: (
            "You like stories that balance many kinds of relationships and emotions."
        ),
        TraitLevel.LOW: (
            "You prefer an objective, analytical angle and enjoy stories with conflict and tension."
        ),
    },
    Trait.EMOTIONAL_STABILITY: {
        TraitLevel.HIGH: (
            "You prefer bright, positive books that leave you feeling settled and comfortable."
        ),
        TraitLevel.MODERATE: "You enjoy balanced books that move through a range of emotions.",
        TraitLevel.LOW: (
            "You are drawn to intense emotions and complex psychology, and look for books "
            "that resonate deeply."
        ),
    },
}

PreferencesLike = Union[PreferenceInput, Mapping]


def _coerce(preferences: PreferencesLike) -> PreferenceInput:
    if isinstance(preferences, PreferenceInput):
        return preferences
    return PreferenceInput.model_validate(dict(preferences))


def _selected_options(preferences: PreferenceInput, category: PreferenceCategory) -> List[str]:
    value = getattr(preferences, category.value, None)
    if value is None:
        return []
    if category in SINGLE_SELECT_CATEGORIES:
        return [value] if isinstance(value, str) else []
    # Multi-select: a repeated option counts once, first occurrence wins the order
    return list(dict.fromkeys(value))


def raw_score(preferences: PreferencesLike) -> Dict[Trait, int]:
    """Baseline plus every matching delta, before clamping."""
    prefs = _coerce(preferences)
    totals: Dict[Trait, int] = {trait: BASELINE_SCORE for trait in Trait}

    for category, options in MAPPING_TABLE.items():
        for option in _selected_options(prefs, category):
            deltas = options.get(option)
            if deltas is None:
                logger.debug("Ignoring unknown option %s=%r", category.value, option)
                continue
            for trait, delta in deltas.items():
                totals[trait] += delta

    return totals


def clamp(value: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def score(preferences: PreferencesLike) -> ScoreVector:
    """
    Convert onboarding selections into a ScoreVector.

    Deltas are summed from baseline 50 across every populated category and clamped
    to [0, 100] once, at the end.
    """
    totals = raw_score(preferences)
    return ScoreVector(**{trait.value: clamp(total) for trait, total in totals.items()})


def level_for(value: float) -> TraitLevel:
    if value < LOW_THRESHOLD:
        return TraitLevel.LOW
    if value > HIGH_THRESHOLD:
        return TraitLevel.HIGH
    return TraitLevel.MODERATE


def describe(trait: Trait, value: float) -> str:
    return TRAIT_DESCRIPTIONS[trait][level_for(value)]


def levelize(vector: ScoreVector) -> List[TraitProfile]:
    """Score, level and canned description for each trait, in priority order."""
    return [
        TraitProfile(
            trait=trait,
            name=TRAIT_NAMES[trait],
            score=vector.get(trait),
            level=level_for(vector.get(trait)),
            description=describe(trait, vector.get(trait)),
        )
        for trait in TRAIT_PRIORITY
    ]


def rank_traits(vector: ScoreVector) -> List[Trait]:
    """Traits by score, highest first; exact ties fall back to TRAIT_PRIORITY order."""
    priority = {trait: index for index, trait in enumerate(TRAIT_PRIORITY)}
    return sorted(Trait, key=lambda trait: (-vector.get(trait), priority[trait]))


def profile_by_trait(profile: List[TraitProfile]) -> Dict[Trait, TraitProfile]:
    return {entry.trait: entry for entry in profile}


def radar_chart(vector: ScoreVector) -> List[RadarPoint]:
    return [
        RadarPoint(subject=RADAR_LABELS[trait], value=vector.get(trait))
        for trait in TRAIT_PRIORITY
    ]
