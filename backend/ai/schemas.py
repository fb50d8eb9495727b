"""Validated shapes of generator payloads.

LLM replies and locally synthesised mock content both pass through these
models before anything is stored, so the typed columns always receive the
fields they expect while the nested blobs stay free-form JSON.
"""
from __future__ import annotations

import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def _relaxed_number(value: Any) -> Any:
    """Accept `"528 Hz"`-style strings the models like to return."""
    if isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if match:
            return float(match.group(0))
    return value


def _whole_number(value: Any) -> Any:
    value = _relaxed_number(value)
    if isinstance(value, float):
        return int(round(value))
    return value


class FrequencyTone(BaseModel):
    hz: float
    type: str = "healing"

    @field_validator("hz", mode="before")
    @classmethod
    def parse_hz(cls, value: Any) -> Any:
        return _relaxed_number(value)


class SoundLayer(FrequencyTone):
    amplitude: float = 0.5


class GeometryStep(BaseModel):
    shape: str
    transform: str = "rotate"
    color: str = "#8b5cf6"
    timing: float = 0


class MeditationContent(BaseModel):
    pattern: str = Field(min_length=1)
    duration: int = Field(ge=1)
    frequencies: list[FrequencyTone] = Field(default_factory=list)
    geometry_sequence: list[GeometryStep] = Field(default_factory=list)
    neural_targets: list[str] = Field(default_factory=list)
    consciousness_level: str = "alpha_theta_bridge"
    guided_text: str = ""

    @field_validator("duration", mode="before")
    @classmethod
    def whole_seconds(cls, value: Any) -> Any:
        return _whole_number(value)


class AffirmationContent(BaseModel):
    text: str = Field(min_length=1)
    category: str = Field(min_length=1)
    vibrational_frequency: int
    cosmic_alignment: str = ""
    personalization_factors: list[str] = Field(default_factory=list)

    @field_validator("vibrational_frequency", mode="before")
    @classmethod
    def round_frequency(cls, value: Any) -> Any:
        return _whole_number(value)


class AudioParams(BaseModel):
    reverb: float = 0.5
    delay: float = 0.3
    filter: str = "lowpass"
    modulation: float = 0.2


class SoundscapeContent(BaseModel):
    name: str = Field(min_length=1)
    frequencies: list[SoundLayer] = Field(default_factory=list)
    duration: int = Field(ge=1)
    galactic_type: str = Field(min_length=1)
    audio_params: AudioParams = Field(default_factory=AudioParams)

    @field_validator("duration", mode="before")
    @classmethod
    def whole_seconds(cls, value: Any) -> Any:
        return _whole_number(value)


class BrainWaves(BaseModel):
    alpha: float = 10.0
    theta: float = 6.0
    delta: float = 2.0
    beta: float = 18.0
    gamma: float = 40.0


class PatternNode(BaseModel):
    x: float
    y: float
    intensity: float = 0.5


class PatternConnection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: int = Field(alias="from")
    to: int
    strength: float = 0.5


class VisualizationData(BaseModel):
    nodes: list[PatternNode] = Field(default_factory=list)
    connections: list[PatternConnection] = Field(default_factory=list)


class ActivationStep(BaseModel):
    timestamp: float
    region: str
    intensity: float = 0.5


class NeuralPatternContent(BaseModel):
    pattern_type: str = Field(min_length=1)
    brain_waves: BrainWaves = Field(default_factory=BrainWaves)
    visualization_data: VisualizationData = Field(default_factory=VisualizationData)
    activation_sequence: list[ActivationStep] = Field(default_factory=list)


class ChatReply(BaseModel):
    content: str = Field(min_length=1, validation_alias=AliasChoices("content", "response", "message"))
    context_references: list[str] = Field(default_factory=list)
    suggested_actions: list[str] = Field(default_factory=list)
