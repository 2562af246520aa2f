from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Literal
from datetime import datetime

from shelfscope.services.trait_mapping import Trait, TraitLevel


class ScoreVector(BaseModel):
    """Five trait scores, each within [0, 100] once the scorer returns."""
    model_config = ConfigDict(frozen=True)

    openness: float = Field(ge=0, le=100)
    conscientiousness: float = Field(ge=0, le=100)
    extraversion: float = Field(ge=0, le=100)
    agreeableness: float = Field(ge=0, le=100)
    emotional_stability: float = Field(ge=0, le=100)

    def get(self, trait: Trait) -> float:
        return getattr(self, trait.value)

    def as_dict(self) -> Dict[Trait, float]:
        return {trait: self.get(trait) for trait in Trait}


class TraitProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    trait: Trait
    name: str
    score: float
    level: TraitLevel
    description: str


class ColorTheme(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: str
    secondary: str
    accent: str


class Persona(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    icon: str
    subtitle: str
    description: str
    color_theme: ColorTheme
    key_traits: List[str]


class PersonaPatch(BaseModel):
    """Partial persona used by rule tables; unset fields keep the base persona's value."""
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    icon: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    color_theme: Optional[ColorTheme] = None
    key_traits: Optional[List[str]] = None


class RadarPoint(BaseModel):
    subject: str
    value: float
    full_mark: int = 100


class ReadingDNAItem(BaseModel):
    title: str
    description: str
    icon: str
    color: str


class StyleShare(BaseModel):
    title: str
    description: str
    percentage: int


class ReadingStyle(BaseModel):
    main_style: StyleShare
    sub_styles: List[StyleShare]


class ReadingDirection(BaseModel):
    category: str
    reason: str
    examples: List[str]


class GrowthChallenge(BaseModel):
    title: str
    description: str
    difficulty: Literal["easy", "medium", "hard"]


class GrowthPotential(BaseModel):
    current_level: Literal["narrow", "moderate", "diverse"]
    next_level: str
    suggestions: List[str]
    challenges: List[GrowthChallenge]


class ReportStatistics(BaseModel):
    total_responses: int
    diversity_score: int
    clarity_score: int
    completion_rate: int
    dominant_mood: str = "neutral"
    emotional_range: Literal["narrow", "moderate", "wide"] = "narrow"


class SelectedBook(BaseModel):
    id: str
    title: str
    author: str
    cover_image: Optional[str] = None


class CategoryAnalysis(BaseModel):
    purposes: str
    style: str
    atmosphere: str
    content: str


class Narrative(BaseModel):
    summary: str
    closing: str
    category_analysis: CategoryAnalysis
    source: Literal["generated", "fallback"]


class Report(BaseModel):
    id: str
    user_id: str
    created_at: datetime
    version: str
    score_vector: ScoreVector
    profile: List[TraitProfile]
    radar_chart: List[RadarPoint]
    persona: Persona
    reading_dna: List[ReadingDNAItem]
    reading_style: ReadingStyle
    reading_directions: List[ReadingDirection]
    growth_potential: GrowthPotential
    statistics: ReportStatistics
    selected_books: List[SelectedBook] = []
    narrative: Narrative


class GenerateReportRequest(BaseModel):
    selected_book_ids: Optional[List[str]] = None
