"""Tests for persona rule resolution."""
import itertools

from shelfscope.schemas.report import Persona, PersonaPatch, ScoreVector
from shelfscope.services.persona import (
    COMBINATION_RULES,
    DEFAULT_PERSONA,
    SINGLE_TRAIT_RULES,
    merge_persona,
    resolve_persona,
)
from shelfscope.services.personality import levelize, score
from shelfscope.services.trait_mapping import Trait, TraitLevel


def vector(o=50, c=50, e=50, a=50, s=50) -> ScoreVector:
    return ScoreVector(
        openness=o, conscientiousness=c, extraversion=e, agreeableness=a, emotional_stability=s
    )


def test_baseline_vector_gets_default_persona():
    persona = resolve_persona(vector())
    assert persona == DEFAULT_PERSONA
    assert persona.title == "Balanced Reader"


def test_moderate_leader_gets_default_persona():
    # Leading pair matches a combination rule, but the leader is not high
    assert resolve_persona(vector(o=58, c=55)).title == "Balanced Reader"


def test_single_trait_rule_for_high_leader():
    persona = resolve_persona(vector(e=75, s=52))
    expected = SINGLE_TRAIT_RULES[(Trait.EXTRAVERSION, TraitLevel.HIGH)]
    assert persona.title == expected.title
    assert persona.key_traits == expected.key_traits


def test_low_emotional_stability_leader_gets_immerser():
    persona = resolve_persona(vector(o=30, c=30, e=30, a=30, s=35))
    assert persona.title == "Emotional Immerser"


def test_combination_rule_overrides_single_trait_fields(sample_preferences):
    scores = score(sample_preferences)
    persona = resolve_persona(scores, levelize(scores))

    single = SINGLE_TRAIT_RULES[(Trait.OPENNESS, TraitLevel.HIGH)]
    combo = COMBINATION_RULES[(Trait.OPENNESS, Trait.CONSCIENTIOUSNESS)]
    assert persona.title == combo.title == "Intellectual Seeker"
    assert persona.icon == combo.icon
    assert persona.subtitle == combo.subtitle
    # Fields the combination leaves unset come from the single-trait rule
    assert persona.description == single.description
    assert persona.key_traits == single.key_traits
    assert persona.color_theme == single.color_theme


def test_tie_for_top_uses_trait_priority():
    persona = resolve_persona(vector(o=70, a=70))
    assert persona.title == "Artistic Soul"


def test_persona_is_total_over_score_grid():
    grid = [0, 39, 40, 60, 61, 100]
    for o, c, e, a, s in itertools.product(grid, repeat=5):
        persona = resolve_persona(vector(o, c, e, a, s))
        assert isinstance(persona, Persona)
        assert persona.title
        assert persona.key_traits


def test_resolve_persona_never_mutates_default():
    before = DEFAULT_PERSONA.model_dump()
    resolve_persona(vector(o=90, c=80))
    assert DEFAULT_PERSONA.model_dump() == before


def test_merge_persona_replaces_lists_instead_of_concatenating():
    merged = merge_persona(DEFAULT_PERSONA, PersonaPatch(key_traits=["Bold"]))
    assert merged.key_traits == ["Bold"]
    assert merged.title == DEFAULT_PERSONA.title
