"""
Report sections derived from the preferences and the score vector.

Each function is an independent rule table over (PreferenceInput, ScoreVector);
none of them looks at the persona.
"""
from typing import Callable, Dict, List, Literal, NamedTuple, Tuple

from shelfscope.schemas.preferences import PreferenceInput
from shelfscope.schemas.report import (
    GrowthChallenge,
    GrowthPotential,
    ReadingDirection,
    ReadingDNAItem,
    ReadingStyle,
    ReportStatistics,
    ScoreVector,
    StyleShare,
)
from shelfscope.services.personality import level_for, rank_traits
from shelfscope.services.trait_mapping import Trait, TraitLevel

# Onboarding genre ids in the order they are offered
GENRE_CATALOG: Dict[str, str] = {
    "novel": "Fiction",
    "poetry": "Poetry",
    "essay": "Essays",
    "self-help": "Self-help",
    "science": "Science",
    "history": "History",
    "philosophy": "Philosophy",
    "art": "Art",
    "economy": "Business & Economics",
    "tech": "Technology",
    "travel": "Travel",
    "cooking": "Food & Cooking",
}

# Categories counted towards statistics; genres included
ANSWERED_CATEGORIES = (
    "purposes",
    "genres",
    "length",
    "pace",
    "difficulty",
    "moods",
    "emotions",
    "narrative_styles",
    "themes",
)

MIN_DNA_ITEMS = 3
MAX_DNA_ITEMS = 5
MAX_DIRECTIONS = 3


def _high(vector: ScoreVector, trait: Trait) -> bool:
    return level_for(vector.get(trait)) == TraitLevel.HIGH


def _low(vector: ScoreVector, trait: Trait) -> bool:
    return level_for(vector.get(trait)) == TraitLevel.LOW


class _DNARule(NamedTuple):
    matches: Callable[[PreferenceInput, ScoreVector], bool]
    item: ReadingDNAItem


DNA_RULES: Tuple[_DNARule, ...] = (
    _DNARule(
        lambda p, v: _high(v, Trait.OPENNESS),
        ReadingDNAItem(
            title="Idea Explorer",
            description="New worlds and unfamiliar ideas are what keep you turning pages.",
            icon="🔭",
            color="#6366f1",
        ),
    ),
    _DNARule(
        lambda p, v: _high(v, Trait.CONSCIENTIOUSNESS),
        ReadingDNAItem(
            title="Steady Finisher",
            description="You read with intent and see a book through to the last page.",
            icon="📐",
            color="#3b82f6",
        ),
    ),
    _DNARule(
        lambda p, v: _high(v, Trait.EXTRAVERSION),
        ReadingDNAItem(
            title="Story Sharer",
            description="A good book is better when you can talk about it with someone.",
            icon="💬",
            color="#f59e0b",
        ),
    ),
    _DNARule(
        lambda p, v: _high(v, Trait.AGREEABLENESS),
        ReadingDNAItem(
            title="Heart Reader",
            description="You read for the people in the story and how they treat each other.",
            icon="💞",
            color="#ec4899",
        ),
    ),
    _DNARule(
        lambda p, v: _high(v, Trait.EMOTIONAL_STABILITY),
        ReadingDNAItem(
            title="Calm Harbor",
            description="Books are where you go to feel settled and recharge.",
            icon="🌿",
            color="#10b981",
        ),
    ),
    _DNARule(
        lambda p, v: _low(v, Trait.EMOTIONAL_STABILITY),
        ReadingDNAItem(
            title="Deep Feeler",
            description="You let intense emotions in and are not afraid of a book that hurts.",
            icon="🌊",
            color="#8b5cf6",
        ),
    ),
    _DNARule(
        lambda p, v: len(set(p.genres)) >= 4,
        ReadingDNAItem(
            title="Genre Hopper",
            description="Your shelf crosses genres freely; variety is part of the pleasure.",
            icon="🧭",
            color="#06b6d4",
        ),
    ),
    _DNARule(
        lambda p, v: 1 <= len(set(p.genres)) <= 2,
        ReadingDNAItem(
            title="Focused Specialist",
            description="You know what you love and go deep rather than wide.",
            icon="🎯",
            color="#ef4444",
        ),
    ),
    _DNARule(
        lambda p, v: len(set(p.emotions)) >= 3,
        ReadingDNAItem(
            title="Wide Emotional Range",
            description="Joy, tension or grief: you welcome the whole spectrum on the page.",
            icon="🎭",
            color="#a855f7",
        ),
    ),
    _DNARule(
        lambda p, v: bool({"learning", "self_development"} & set(p.purposes)),
        ReadingDNAItem(
            title="Lifelong Learner",
            description="Every book is a chance to learn something you can use.",
            icon="🎓",
            color="#0ea5e9",
        ),
    ),
    _DNARule(
        lambda p, v: p.pace == "slow",
        ReadingDNAItem(
            title="Slow Savourer",
            description="You take your time and let sentences linger.",
            icon="🐢",
            color="#84cc16",
        ),
    ),
    _DNARule(
        lambda p, v: p.pace == "fast",
        ReadingDNAItem(
            title="Page Turner",
            description="Momentum matters; you like books you can race through.",
            icon="🏃",
            color="#f97316",
        ),
    ),
)

DNA_FILLERS: Tuple[ReadingDNAItem, ...] = (
    ReadingDNAItem(
        title="Curious Reader",
        description="You come to each book ready to be surprised.",
        icon="✨",
        color="#6366f1",
    ),
    ReadingDNAItem(
        title="Story Lover",
        description="At heart you read for a well-told story.",
        icon="📖",
        color="#8b5cf6",
    ),
    ReadingDNAItem(
        title="Open Page",
        description="Your reading identity is still taking shape, and that is a strength.",
        icon="📄",
        color="#ec4899",
    ),
)


def reading_dna(preferences: PreferenceInput, vector: ScoreVector) -> List[ReadingDNAItem]:
    """Three to five headline reading traits, first matching rules first."""
    items = [rule.item for rule in DNA_RULES if rule.matches(preferences, vector)][:MAX_DNA_ITEMS]
    titles = {item.title for item in items}
    for filler in DNA_FILLERS:
        if len(items) >= MIN_DNA_ITEMS:
            break
        if filler.title not in titles:
            items.append(filler)
    return items


STYLE_LABELS: Dict[Trait, Tuple[str, str]] = {
    Trait.OPENNESS: ("Exploratory reading", "Seeks out new ideas, forms and perspectives."),
    Trait.CONSCIENTIOUSNESS: ("Purposeful reading", "Reads with a goal and a plan."),
    Trait.EXTRAVERSION: ("Lively reading", "Enjoys pace, dialogue and stories worth sharing."),
    Trait.AGREEABLENESS: ("Empathetic reading", "Reads for characters and relationships."),
    Trait.EMOTIONAL_STABILITY: ("Comfort reading", "Looks for books that steady and restore."),
}


def reading_style(vector: ScoreVector) -> ReadingStyle:
    """
    Main style plus two sub-styles from the three highest-ranked traits.

    Percentages are each trait's share of the three scores combined; they always sum
    to 100, with the rounding remainder going to the main style.
    """
    top = rank_traits(vector)[:3]
    scores = [vector.get(trait) for trait in top]
    total = sum(scores)

    if total > 0:
        sub_shares = [int(value * 100 // total) for value in scores[1:]]
    else:
        sub_shares = [33, 33]
    main_share = 100 - sum(sub_shares)

    def share(trait: Trait, percentage: int) -> StyleShare:
        title, description = STYLE_LABELS[trait]
        return StyleShare(title=title, description=description, percentage=percentage)

    return ReadingStyle(
        main_style=share(top[0], main_share),
        sub_styles=[share(trait, pct) for trait, pct in zip(top[1:], sub_shares)],
    )


class _DirectionRule(NamedTuple):
    matches: Callable[[PreferenceInput, ScoreVector], bool]
    direction: ReadingDirection


DIRECTION_RULES: Tuple[_DirectionRule, ...] = (
    _DirectionRule(
        lambda p, v: _low(v, Trait.OPENNESS),
        ReadingDirection(
            category="Approachable classics",
            reason="Well-loved classics stretch your range without feeling unfamiliar.",
            examples=["Pride and Prejudice", "The Old Man and the Sea", "Of Mice and Men"],
        ),
    ),
    _DirectionRule(
        lambda p, v: _high(v, Trait.CONSCIENTIOUSNESS),
        ReadingDirection(
            category="Deep-dive nonfiction",
            reason="Your methodical streak suits long-form books that reward sustained attention.",
            examples=["Sapiens", "Guns, Germs, and Steel", "Thinking, Fast and Slow"],
        ),
    ),
    _DirectionRule(
        lambda p, v: _low(v, Trait.AGREEABLENESS) or "tension" in p.emotions,
        ReadingDirection(
            category="Psychological thrillers",
            reason="You enjoy conflict and tension; tightly plotted thrillers deliver both.",
            examples=["Gone Girl", "The Silent Patient", "Rebecca"],
        ),
    ),
    _DirectionRule(
        lambda p, v: _low(v, Trait.EMOTIONAL_STABILITY),
        ReadingDirection(
            category="Healing essays",
            reason="Gentle, reflective essays balance the intense stories you are drawn to.",
            examples=["The Year of Magical Thinking", "Bluets", "Braiding Sweetgrass"],
        ),
    ),
    _DirectionRule(
        lambda p, v: _high(v, Trait.EXTRAVERSION),
        ReadingDirection(
            category="Book club favourites",
            reason="Books that spark conversation give your social reading style an outlet.",
            examples=["Where the Crawdads Sing", "Little Fires Everywhere", "The Midnight Library"],
        ),
    ),
)

GENRE_EXAMPLES: Dict[str, List[str]] = {
    "novel": ["Never Let Me Go", "A Gentleman in Moscow"],
    "poetry": ["Milk and Honey", "Devotions"],
    "essay": ["Consider the Lobster", "Slouching Towards Bethlehem"],
    "self-help": ["Atomic Habits", "The Power of Now"],
    "science": ["A Brief History of Time", "The Gene"],
    "history": ["SPQR", "The Silk Roads"],
    "philosophy": ["Meditations", "The Myth of Sisyphus"],
    "art": ["Ways of Seeing", "The Story of Art"],
    "economy": ["Freakonomics", "The Psychology of Money"],
    "tech": ["The Innovators", "Code"],
    "travel": ["In Patagonia", "A Walk in the Woods"],
    "cooking": ["Salt, Fat, Acid, Heat", "Kitchen Confidential"],
}


def reading_directions(preferences: PreferenceInput, vector: ScoreVector) -> List[ReadingDirection]:
    """Up to three next directions: trait rules first, then genres not yet chosen."""
    directions = [
        rule.direction for rule in DIRECTION_RULES if rule.matches(preferences, vector)
    ]

    chosen = set(preferences.genres)
    for genre_id, label in GENRE_CATALOG.items():
        if len(directions) >= MAX_DIRECTIONS:
            break
        if genre_id in chosen:
            continue
        directions.append(
            ReadingDirection(
                category=label,
                reason=f"You have not explored {label.lower()} yet; it is a natural next step.",
                examples=GENRE_EXAMPLES[genre_id],
            )
        )

    return directions[:MAX_DIRECTIONS]


Scope = Literal["narrow", "moderate", "diverse"]


def reading_scope(genre_count: int) -> Scope:
    if genre_count <= 2:
        return "narrow"
    if genre_count <= 4:
        return "moderate"
    return "diverse"


def emotional_range(emotion_count: int) -> Literal["narrow", "moderate", "wide"]:
    if emotion_count <= 2:
        return "narrow"
    if emotion_count <= 4:
        return "moderate"
    return "wide"


NEXT_LEVEL: Dict[str, str] = {
    "narrow": "Branching out into neighbouring genres",
    "moderate": "Going deeper within the genres you already enjoy",
    "diverse": "Taking on demanding, challenging reads",
}

GROWTH_SUGGESTIONS: Dict[str, List[str]] = {
    "narrow": [
        "Start from the genres you love and step into one adjacent genre at a time.",
        "Pick one book a month from outside your usual shelf.",
    ],
    "moderate": [
        "You already read widely; now add depth with a landmark book in each genre.",
        "Now and then try something completely new.",
    ],
    "diverse": [
        "Your reading is already very varied; try longer or more demanding books.",
        "Take on a challenging subject and read two books on it back to back.",
    ],
}

GROWTH_CHALLENGES: Tuple[GrowthChallenge, ...] = (
    GrowthChallenge(
        title="Science fiction & fantasy",
        description="Stretch your imagination and experience unfamiliar worlds.",
        difficulty="easy",
    ),
    GrowthChallenge(
        title="Classic literature",
        description="Find insight and values that have lasted for generations.",
        difficulty="medium",
    ),
    GrowthChallenge(
        title="Psychology & philosophy",
        description="Deepen your understanding of people and the world.",
        difficulty="hard",
    ),
)


def growth_potential(preferences: PreferenceInput) -> GrowthPotential:
    scope = reading_scope(len(set(preferences.genres)))
    return GrowthPotential(
        current_level=scope,
        next_level=NEXT_LEVEL[scope],
        suggestions=list(GROWTH_SUGGESTIONS[scope]),
        challenges=list(GROWTH_CHALLENGES),
    )


def _answered(value) -> bool:
    if isinstance(value, list):
        return len(value) > 0
    return bool(value)


def report_statistics(preferences: PreferenceInput) -> ReportStatistics:
    """Completion and variety figures over the nine onboarding categories, plus the mood summary."""
    total = sum(1 for name in ANSWERED_CATEGORIES if _answered(getattr(preferences, name)))
    selections = (
        len(preferences.genres)
        + len(preferences.moods)
        + len(preferences.emotions)
        + len(preferences.themes)
    )
    category_count = len(ANSWERED_CATEGORIES)
    return ReportStatistics(
        total_responses=total,
        diversity_score=min(100, selections * 100 // 20),
        clarity_score=min(100, total * 100 // category_count),
        completion_rate=total * 100 // category_count,
        dominant_mood=preferences.moods[0] if preferences.moods else "neutral",
        emotional_range=emotional_range(len(set(preferences.emotions))),
    )
