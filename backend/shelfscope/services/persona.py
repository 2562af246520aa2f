"""
Rule-based persona selection.

The top-ranked trait selects a single-trait rule keyed by (trait, level); the
ordered pair of the top two traits selects a combination rule that is applied on
top when the leading trait is high. Each rule is a PersonaPatch merged field by field onto the current persona.
"""
from typing import Dict, List, Optional, Tuple

from shelfscope.schemas.report import ColorTheme, Persona, PersonaPatch, ScoreVector, TraitProfile
from shelfscope.services.personality import level_for, rank_traits
from shelfscope.services.trait_mapping import Trait, TraitLevel

DEFAULT_PERSONA = Persona(
    title="Balanced Reader",
    icon="📖",
    subtitle="At home in every genre",
    description=(
        "You enjoy books across many genres, which lets you see the world "
        "from more than one point of view."
    ),
    color_theme=ColorTheme(primary="#6366f1", secondary="#8b5cf6", accent="#ec4899"),
    key_traits=["Versatile", "Open-minded", "Balanced"],
)

SINGLE_TRAIT_RULES: Dict[Tuple[Trait, TraitLevel], PersonaPatch] = {
    (Trait.OPENNESS, TraitLevel.HIGH): PersonaPatch(
        title="Philosophical Explorer",
        icon="🔭",
        subtitle="Sees the world from new angles",
        description="Endlessly curious, you love exploring new ideas and perspectives.",
        color_theme=ColorTheme(primary="#6366f1", secondary="#06b6d4", accent="#8b5cf6"),
        key_traits=["Curious", "Creative", "Abstract thinker"],
    ),
    (Trait.CONSCIENTIOUSNESS, TraitLevel.HIGH): PersonaPatch(
        title="Diligent Learner",
        icon="📚",
        subtitle="Builds knowledge step by step",
        description="Goal-oriented, you build up knowledge in a planned, systematic way.",
        color_theme=ColorTheme(primary="#3b82f6", secondary="#06b6d4", accent="#8b5cf6"),
        key_traits=["Goal-oriented", "Methodical", "Achievement-driven"],
    ),
    (Trait.EXTRAVERSION, TraitLevel.HIGH): PersonaPatch(
        title="Adrenaline Plot Chaser",
        icon="⚡",
        subtitle="Lives for a story that moves",
        description="You draw energy from lively, fast-moving stories and love action.",
        color_theme=ColorTheme(primary="#f59e0b", secondary="#ef4444", accent="#f97316"),
        key_traits=["Energetic", "Sociable", "Action-oriented"],
    ),
    (Trait.AGREEABLENESS, TraitLevel.HIGH): PersonaPatch(
        title="Empathic Connector",
        icon="💕",
        subtitle="Shares warmth through stories",
        description="You feel deeply with others and are drawn to warm stories about people.",
        color_theme=ColorTheme(primary="#ec4899", secondary="#f97316", accent="#8b5cf6"),
        key_traits=["Empathetic", "Relationship-focused", "Warm"],
    ),
    (Trait.EMOTIONAL_STABILITY, TraitLevel.HIGH): PersonaPatch(
        title="Serene Observer",
        icon="🌸",
        subtitle="Prefers stories that steady the mind",
        description="Calm and balanced, you enjoy positive, reassuring stories.",
        color_theme=ColorTheme(primary="#10b981", secondary="#06b6d4", accent="#6366f1"),
        key_traits=["Calm", "Positive", "Grounded"],
    ),
    (Trait.EMOTIONAL_STABILITY, TraitLevel.LOW): PersonaPatch(
        title="Emotional Immerser",
        icon="🌙",
        subtitle="Explores the depths of feeling",
        description="Sensitive and perceptive, you love exploring deep emotions and complex minds.",
        color_theme=ColorTheme(primary="#a855f7", secondary="#ec4899", accent="#f97316"),
        key_traits=["Sensitive", "Introspective", "Deep"],
    ),
}

COMBINATION_RULES: Dict[Tuple[Trait, Trait], PersonaPatch] = {
    (Trait.OPENNESS, Trait.CONSCIENTIOUSNESS): PersonaPatch(
        title="Intellectual Seeker",
        icon="🔬",
        subtitle="Chases depth in every subject",
    ),
    (Trait.OPENNESS, Trait.AGREEABLENESS): PersonaPatch(
        title="Artistic Soul",
        icon="🎨",
        subtitle="Falls for beautifully told stories",
    ),
    (Trait.EXTRAVERSION, Trait.AGREEABLENESS): PersonaPatch(
        title="Social Empath",
        icon="🤝",
        subtitle="Reads to share stories with others",
    ),
    (Trait.CONSCIENTIOUSNESS, Trait.AGREEABLENESS): PersonaPatch(
        title="Devoted Grower",
        icon="🌱",
        subtitle="Values growth and relationships alike",
    ),
}


def merge_persona(base: Persona, patch: PersonaPatch) -> Persona:
    """Return a new Persona where every field set on `patch` replaces the one on `base`."""
    overrides = {
        field: value
        for field, value in patch.model_dump(exclude_none=True).items()
    }
    merged = base.model_dump()
    merged.update(overrides)
    return Persona.model_validate(merged)


def _level_of(trait: Trait, vector: ScoreVector, profile: Optional[List[TraitProfile]]) -> TraitLevel:
    if profile:
        for entry in profile:
            if entry.trait == trait:
                return entry.level
    return level_for(vector.get(trait))


def resolve_persona(vector: ScoreVector, profile: Optional[List[TraitProfile]] = None) -> Persona:
    """
    Select the persona for a scored profile.

    Never raises: when neither a single-trait nor a combination rule matches, the
    default "Balanced Reader" persona is returned.
    """
    ranked = rank_traits(vector)
    top, second = ranked[0], ranked[1]

    top_level = _level_of(top, vector, profile)

    persona = DEFAULT_PERSONA
    single = SINGLE_TRAIT_RULES.get((top, top_level))
    if single is not None:
        persona = merge_persona(persona, single)

    # Combination rules require a high leading trait; a flat profile stays default.
    if top_level == TraitLevel.HIGH:
        combo = COMBINATION_RULES.get((top, second))
        if combo is not None:
            persona = merge_persona(persona, combo)

    return persona
