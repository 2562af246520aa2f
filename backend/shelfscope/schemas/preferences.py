from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime


class PreferenceInput(BaseModel):
    """
    A user's onboarding selections, read once per scoring pass.

    Multi-select categories are lists (treated as sets when scored), single-select
    categories are plain strings. Unknown keys are ignored so older or newer onboarding
    UIs can send payloads this service does not know about yet.
    """
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    genres: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("genres", "favorite_genres", "preferred_genres"),
    )
    difficulty: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("difficulty", "preferred_difficulty")
    )
    moods: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("moods", "preferred_moods")
    )
    emotions: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("emotions", "preferred_emotions")
    )
    themes: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("themes", "preferred_themes")
    )
    narrative_styles: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("narrative_styles", "preferred_narrative_styles"),
    )
    purposes: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("purposes", "reading_purposes")
    )
    length: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("length", "preferred_length")
    )
    pace: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("pace", "reading_pace")
    )

    @field_validator(
        "genres", "moods", "emotions", "themes", "narrative_styles", "purposes", mode="before"
    )
    @classmethod
    def _coerce_multi_select(cls, value):
        # Malformed entries are dropped rather than rejected
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, str) and item.strip()]

    @field_validator("difficulty", "length", "pace", mode="before")
    @classmethod
    def _coerce_single_select(cls, value):
        if not isinstance(value, str) or not value.strip():
            return None
        return value

    def summary_lines(self) -> List[str]:
        """Human-readable `label: values` lines used in prompts."""
        def fmt(values) -> str:
            if isinstance(values, list):
                return ", ".join(values) if values else "not provided"
            return values or "not provided"

        return [
            f"Reading purposes: {fmt(self.purposes)}",
            f"Favorite genres: {fmt(self.genres)}",
            f"Preferred length: {fmt(self.length)}",
            f"Reading pace: {fmt(self.pace)}",
            f"Preferred difficulty: {fmt(self.difficulty)}",
            f"Preferred moods: {fmt(self.moods)}",
            f"Preferred emotions: {fmt(self.emotions)}",
            f"Narrative styles: {fmt(self.narrative_styles)}",
            f"Preferred themes: {fmt(self.themes)}",
        ]


class PreferencesPayload(PreferenceInput):
    """Body of POST /api/onboarding/preferences."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    selected_book_ids: Optional[List[str]] = None


class PreferencesResponse(BaseModel):
    user_id: str
    preferences: PreferenceInput
    selected_book_ids: List[str] = []
    updated_at: Optional[datetime] = None
