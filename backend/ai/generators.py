import json
import logging
import random

from pydantic import BaseModel

from ai import mock_content
from ai.providers import AIProvider, get_provider
from ai.schemas import (
    AffirmationContent,
    ChatReply,
    MeditationContent,
    NeuralPatternContent,
    SoundscapeContent,
)
from config import settings
from services.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MEDITATION_DURATION = 1260
DEFAULT_SOUNDSCAPE_TYPE = "cosmic_harmony"
DEFAULT_SOUNDSCAPE_DURATION = 600
DEFAULT_CONSCIOUSNESS_STATE = "theta_gamma_sync"
CHAT_HISTORY_LIMIT = 20

MEDITATION_SYSTEM = (
    "You are an expert in sacred geometry, neuroscience, and consciousness expansion. "
    "Design meditation experiences grounded in real geometric principles."
)
MEDITATION_PROMPT = """Design a sacred geometry meditation session.
{focus}
Duration: {duration} seconds

Return a JSON object with:
- pattern: sacred geometry pattern name (flower_of_life, vesica_piscis, merkaba, ...)
- duration: session length in seconds
- frequencies: array of {{"hz": number, "type": string}} healing tones
- geometry_sequence: array of {{"shape", "transform", "color", "timing"}} steps
- neural_targets: array of brain regions the session engages
- consciousness_level: target brainwave state
- guided_text: narration for the session"""

AFFIRMATION_SYSTEM = (
    "You are a guide to cosmic consciousness and universal principles. "
    "Write affirmations that feel personal, expansive and grounded."
)
AFFIRMATION_PROMPT = """Write one personalised cosmic consciousness affirmation.

User context: {context}

Return a JSON object with:
- text: the affirmation
- category: its theme (abundance, unity, transformation, ...)
- vibrational_frequency: an integer frequency in hz that matches it
- cosmic_alignment: the celestial principle it connects to
- personalization_factors: array of the context factors you used"""

SOUNDSCAPE_SYSTEM = (
    "You are an expert in sound healing, astronomy, and immersive audio. "
    "Design soundscapes inspired by real astronomical phenomena."
)
SOUNDSCAPE_PROMPT = """Design a galactic soundscape.

Type: {soundscape_type}
Duration: {duration} seconds

Return a JSON object with:
- name: a descriptive title
- frequencies: array of {{"hz", "type", "amplitude"}} layers
- duration: length in seconds
- galactic_type: cosmic theme (nebula, pulsar, black_hole, galaxy_rotation, ...)
- audio_params: {{"reverb", "delay", "filter", "modulation"}} for a Web Audio graph"""

NEURAL_SYSTEM = (
    "You are a neuroscientist who studies meditation and brainwave dynamics. "
    "Produce plausible neural activation patterns."
)
NEURAL_PROMPT = """Produce a neural pathway activation pattern.

Target state: {state}

Return a JSON object with:
- pattern_type: name of the pattern
- brain_waves: {{"alpha", "theta", "delta", "beta", "gamma"}} frequencies in hz
- visualization_data: {{"nodes": [{{"x", "y", "intensity"}}], "connections": [{{"from", "to", "strength"}}]}}
- activation_sequence: array of {{"timestamp", "region", "intensity"}}"""

CHAT_SYSTEM = """You are the NeuraPeace AI assistant, a calm guide who explains the neuroscience of
meditation, breathing, brainwaves and heart coherence in plain language. Keep answers short,
warm and accurate; never give medical diagnoses.

Return a JSON object with:
- content: your reply
- context_references: array of scientific concepts your reply draws on
- suggested_actions: array of short next steps inside the app"""


def extract_json_object(text: str) -> dict:
    """Parse a JSON object from a model reply, tolerating markdown code fences."""
    payload = (text or "").strip()
    if "```" in payload:
        payload = payload.split("```")[1]
        if payload.lower().startswith("json"):
            payload = payload[4:]
        payload = payload.strip()
    parsed = json.loads(payload)
    if not isinstance(parsed, dict):
        raise ValueError("Expected a JSON object")
    return parsed


class ContentGenerator:
    """Produces experience payloads from an LLM provider, or locally when none is set."""

    def __init__(self, provider: AIProvider | None = None, rng: random.Random | None = None):
        self.provider = provider
        self.rng = rng or random.Random()

    @property
    def mode(self) -> str:
        return "llm" if self.provider is not None else "mock"

    async def _generate(
        self,
        label: str,
        schema: type[BaseModel],
        prompt: str,
        system: str,
        history: list[dict] | None = None,
    ) -> dict:
        messages = [*(history or []), {"role": "user", "content": prompt}]
        try:
            result = await self.provider.chat(messages=messages, system=system, json_mode=True)
            payload = extract_json_object(result.get("content", ""))
            parsed = schema.model_validate(payload)
        except UpstreamError as exc:
            logger.warning("Generating %s failed upstream: %s", label, exc.message)
            raise UpstreamError(f"Failed to generate {label}: {exc.message}") from exc
        except ValueError as exc:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors.
            logger.warning("Generating %s returned an unusable payload: %s", label, exc)
            raise UpstreamError(f"Failed to generate {label}: {exc}") from exc
        logger.info("Generated %s with %s", label, result.get("model") or self.provider.name)
        return parsed.model_dump(by_alias=True)

    async def sacred_geometry_meditation(self, intention: str | None = None, duration: int | None = None) -> dict:
        duration = duration or DEFAULT_MEDITATION_DURATION
        if self.provider is None:
            raw = mock_content.sacred_geometry_meditation(intention, duration, self.rng)
            return MeditationContent.model_validate(raw).model_dump()
        focus = f"Focus on: {intention}" if intention else "Create a general consciousness expansion session."
        return await self._generate(
            "sacred geometry meditation",
            MeditationContent,
            MEDITATION_PROMPT.format(focus=focus, duration=duration),
            MEDITATION_SYSTEM,
        )

    async def cosmic_affirmation(
        self,
        intention: str | None = None,
        life_area: str | None = None,
        personality: str | None = None,
    ) -> dict:
        if self.provider is None:
            raw = mock_content.cosmic_affirmation(intention, life_area, personality, self.rng)
            return AffirmationContent.model_validate(raw).model_dump()
        context = {
            key: value
            for key, value in (("intention", intention), ("lifeArea", life_area), ("personality", personality))
            if value
        }
        return await self._generate(
            "cosmic affirmation",
            AffirmationContent,
            AFFIRMATION_PROMPT.format(context=json.dumps(context)),
            AFFIRMATION_SYSTEM,
        )

    async def galactic_soundscape(self, soundscape_type: str | None = None, duration: int | None = None) -> dict:
        soundscape_type = soundscape_type or DEFAULT_SOUNDSCAPE_TYPE
        duration = duration or DEFAULT_SOUNDSCAPE_DURATION
        if self.provider is None:
            raw = mock_content.galactic_soundscape(soundscape_type, duration, self.rng)
            return SoundscapeContent.model_validate(raw).model_dump()
        return await self._generate(
            "galactic soundscape",
            SoundscapeContent,
            SOUNDSCAPE_PROMPT.format(soundscape_type=soundscape_type, duration=duration),
            SOUNDSCAPE_SYSTEM,
        )

    async def neural_pattern(self, consciousness_state: str | None = None) -> dict:
        state = consciousness_state or DEFAULT_CONSCIOUSNESS_STATE
        if self.provider is None:
            raw = mock_content.neural_pattern(state, self.rng)
            return NeuralPatternContent.model_validate(raw).model_dump(by_alias=True)
        return await self._generate(
            "neural pattern",
            NeuralPatternContent,
            NEURAL_PROMPT.format(state=state),
            NEURAL_SYSTEM,
        )

    async def chat_response(self, message: str, history: list[dict] | None = None) -> dict:
        if self.provider is None:
            return ChatReply.model_validate(mock_content.chat_response(message, self.rng)).model_dump()
        recent = [
            {"role": item["role"], "content": item["content"]}
            for item in (history or [])[-CHAT_HISTORY_LIMIT:]
            if item.get("role") in {"user", "assistant"}
        ]
        return await self._generate("chat response", ChatReply, message, CHAT_SYSTEM, history=recent)


def get_content_generator() -> ContentGenerator:
    """FastAPI dependency resolving the generator for the configured mode."""
    if settings.resolved_generation_mode == "mock":
        return ContentGenerator()
    provider = get_provider(
        settings.AI_PROVIDER,
        settings.AI_API_KEY,
        model=settings.AI_MODEL,
        timeout_seconds=settings.AI_TIMEOUT_SECONDS,
    )
    return ContentGenerator(provider=provider)
