"""
Narrative text for a report, generated by an OpenAI chat completion.

This is the only non-deterministic, latency-bearing step of report generation.
Failures never propagate: `augment` always returns an AugmentationResult, with
`degraded=True` and fixed fallback text when the call timed out, errored or
returned something unusable. Two calls with the same input may return different
text.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError, RateLimitError

from shelfscope.schemas.preferences import PreferenceInput
from shelfscope.schemas.report import CategoryAnalysis, Narrative, Persona, TraitProfile
from shelfscope.services.derived import emotional_range

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = (
    "You have a distinctive and valuable way of reading. "
    "It is a strong foundation for a rich reading life."
)
FALLBACK_CLOSING = (
    "Reading is a journey of discovering yourself and understanding the world. "
    "Enjoy every step of it! 📚✨"
)
FALLBACK_ANALYSIS: Dict[str, str] = {
    "purposes": "You know why you read, and you look to books for meaningful experiences.",
    "style": "You have a good sense of the reading style that suits you.",
    "atmosphere": "You can enjoy books across a wide spectrum of moods and emotions.",
    "content": "The content you choose reflects your reading identity well.",
}

SYSTEM_PROMPT = """You are a warm, insightful reading counselor. You receive the result of a
reading-personality analysis and write short, encouraging texts for the reader.

Return only a JSON object with these string fields:
- executive_summary: 2-3 sentences summarizing the reader's reading personality
- closing_message: 2-3 warm sentences encouraging their reading journey
- purposes_analysis: 2-3 sentences about why they read
- style_analysis: 2-3 sentences about their reading style (length, pace, difficulty)
- atmosphere_analysis: 2-3 sentences about their mood and emotion preferences
- content_analysis: 2-3 sentences about their themes, narrative styles and genres

Address the reader as "you". No markdown."""

_ANALYSIS_FIELDS = {
    "purposes": "purposes_analysis",
    "style": "style_analysis",
    "atmosphere": "atmosphere_analysis",
    "content": "content_analysis",
}


class NarrativeParseError(ValueError):
    """The model response could not be turned into narrative text."""


@dataclass(frozen=True)
class AugmentationResult:
    narrative: Narrative
    degraded: bool = False
    error: Optional[str] = None


def fallback_narrative() -> Narrative:
    return Narrative(
        summary=FALLBACK_SUMMARY,
        closing=FALLBACK_CLOSING,
        category_analysis=CategoryAnalysis(**FALLBACK_ANALYSIS),
        source="fallback",
    )


def degraded_result(error: str) -> AugmentationResult:
    return AugmentationResult(narrative=fallback_narrative(), degraded=True, error=error)


def build_user_prompt(
    profile: List[TraitProfile],
    persona: Persona,
    preferences: PreferenceInput,
) -> str:
    trait_lines = [f"{entry.name}: {entry.score:g} ({entry.level.value})" for entry in profile]
    lines = [
        "Reading personality analysis:",
        "",
        f"Persona: {persona.title} - {persona.subtitle}",
        *trait_lines,
        "",
        *preferences.summary_lines(),
        f"Emotional range: {emotional_range(len(set(preferences.emotions)))}",
        "",
        "Write the JSON object described in your instructions.",
    ]
    return "\n".join(lines)


def _text_field(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_narrative(content: Optional[str]) -> Narrative:
    """
    Turn the raw model response into a Narrative.

    Missing, blank or non-string fields fall back one by one. Raises NarrativeParseError
    when there is nothing usable at all (empty content, invalid JSON, not an object, or
    no recognized field).
    """
    if not content or not content.strip():
        raise NarrativeParseError("empty response content")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise NarrativeParseError(f"response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise NarrativeParseError(f"expected a JSON object, got {type(data).__name__}")

    summary = _text_field(data, "executive_summary")
    closing = _text_field(data, "closing_message")
    analysis = {name: _text_field(data, key) for name, key in _ANALYSIS_FIELDS.items()}

    if summary is None and closing is None and not any(analysis.values()):
        raise NarrativeParseError("response has none of the expected fields")

    return Narrative(
        summary=summary or FALLBACK_SUMMARY,
        closing=closing or FALLBACK_CLOSING,
        category_analysis=CategoryAnalysis(
            **{name: text or FALLBACK_ANALYSIS[name] for name, text in analysis.items()}
        ),
        source="generated",
    )


class NarrativeAugmenter:
    """Wraps an AsyncOpenAI client; construct once at startup and inject where needed."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        model: str = "gpt-4o-mini",
        temperature: float = 0.9,
        timeout_seconds: float = 20.0,
        max_retries: int = 2,
        retry_base_delay: float = 1.0,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    @classmethod
    def from_settings(cls, settings) -> "NarrativeAugmenter":
        client = None
        if settings.narrative_enabled:
            # The SDK's own retries are disabled; retries and the deadline are handled here.
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, max_retries=0)
        else:
            logger.warning("[NARRATIVE] OPENAI_API_KEY not set - reports will use fallback text")
        return cls(
            client=client,
            model=settings.OPENAI_MODEL,
            temperature=settings.NARRATIVE_TEMPERATURE,
            timeout_seconds=settings.NARRATIVE_TIMEOUT_SECONDS,
            max_retries=settings.NARRATIVE_MAX_RETRIES,
        )

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def _complete(self, user_prompt: str) -> Optional[str]:
        """One chat completion, retried with exponential backoff on RateLimitError."""
        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    response_format={"type": "json_object"},
                    temperature=self.temperature,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": user_prompt},
                    ],
                )
            except RateLimitError:
                if attempt == attempts - 1:
                    raise
                wait = self.retry_base_delay * (2 ** attempt)
                logger.info("[NARRATIVE] rate limited, retrying in %.1fs (attempt %d)", wait, attempt + 1)
                await asyncio.sleep(wait)
                continue
            if not response.choices:
                return None
            return response.choices[0].message.content
        return None

    async def augment(
        self,
        profile: List[TraitProfile],
        persona: Persona,
        preferences: PreferenceInput,
    ) -> AugmentationResult:
        """
        Generate summary, closing and per-category analysis for a scored profile.

        Never raises for provider or parsing failures. Cancellation of the calling task
        propagates as usual.
        """
        if not self.enabled:
            return degraded_result("narrative generation disabled (no API key)")

        user_prompt = build_user_prompt(profile, persona, preferences)
        try:
            content = await asyncio.wait_for(self._complete(user_prompt), timeout=self.timeout_seconds)
            narrative = parse_narrative(content)
        except asyncio.TimeoutError:
            logger.warning("[NARRATIVE] generation timed out after %.1fs, using fallback text", self.timeout_seconds)
            return degraded_result(f"timed out after {self.timeout_seconds}s")
        except NarrativeParseError as e:
            logger.warning("[NARRATIVE] unusable response, using fallback text: %s", e)
            return degraded_result(f"unusable response: {e}")
        except OpenAIError as e:
            logger.warning(
                "[NARRATIVE] OpenAI call failed, using fallback text: error_type=%s, error=%s",
                type(e).__name__,
                e,
            )
            return degraded_result(f"{type(e).__name__}: {e}")
        except Exception as e:
            # Never break report generation - log and degrade
            logger.exception("[NARRATIVE] unexpected error, using fallback text")
            return degraded_result(f"{type(e).__name__}: {e}")

        return AugmentationResult(narrative=narrative)
