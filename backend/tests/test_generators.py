from __future__ import annotations

import asyncio
import json
import random
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ai.generators import ContentGenerator, extract_json_object  # noqa: E402
from ai.providers import get_provider  # noqa: E402
from ai.providers.anthropic import AnthropicProvider  # noqa: E402
from ai.providers.openai_provider import OpenAIProvider  # noqa: E402
from services.errors import UpstreamError  # noqa: E402


def _openai_reply(content: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "model": "gpt-4o-2024-08-06",
            "choices": [{"message": {"role": "assistant", "content": content}}],
            "usage": {"prompt_tokens": 42, "completion_tokens": 17},
        },
    )


def _openai_generator(handler) -> ContentGenerator:
    provider = OpenAIProvider(api_key="sk-test", transport=httpx.MockTransport(handler))
    return ContentGenerator(provider=provider, rng=random.Random(7))


def test_mock_meditation_has_expected_shape():
    generator = ContentGenerator(rng=random.Random(11))
    assert generator.mode == "mock"

    content = asyncio.run(generator.sacred_geometry_meditation("inner calm"))
    assert content["duration"] == 1260
    assert content["pattern"]
    assert content["frequencies"] and all("hz" in f and "type" in f for f in content["frequencies"])
    assert {"shape", "transform", "color", "timing"} <= set(content["geometry_sequence"][0])
    assert "inner calm" in content["guided_text"]


def test_mock_soundscape_and_neural_defaults():
    generator = ContentGenerator(rng=random.Random(3))

    soundscape = asyncio.run(generator.galactic_soundscape())
    assert soundscape["duration"] == 600
    assert "cosmic harmony" in soundscape["name"]
    assert set(soundscape["audio_params"]) == {"reverb", "delay", "filter", "modulation"}

    pattern = asyncio.run(generator.neural_pattern())
    assert pattern["pattern_type"] == "theta_gamma_sync"
    assert set(pattern["brain_waves"]) == {"alpha", "theta", "delta", "beta", "gamma"}
    for connection in pattern["visualization_data"]["connections"]:
        assert "from" in connection and connection["from"] != connection["to"]


def test_mock_affirmation_uses_requested_life_area():
    generator = ContentGenerator(rng=random.Random(5))
    content = asyncio.run(generator.cosmic_affirmation("to rest deeply", "healing", None))
    assert content["category"] == "healing"
    assert isinstance(content["vibrational_frequency"], int)
    assert "intention: to rest deeply" in content["personalization_factors"]


def test_llm_meditation_parses_fenced_json_and_sends_json_mode():
    seen: dict = {}
    reply = {
        "pattern": "vesica_piscis",
        "duration": "900 seconds",
        "frequencies": [{"hz": "528 Hz", "type": "solfeggio"}],
        "geometry_sequence": [{"shape": "circle", "transform": "expand", "color": "#fff", "timing": 0}],
        "neural_targets": ["insula"],
        "consciousness_level": "theta",
        "guided_text": "Breathe.",
    }

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        seen["auth"] = request.headers["authorization"]
        return _openai_reply(f"```json\n{json.dumps(reply)}\n```")

    content = asyncio.run(_openai_generator(handler).sacred_geometry_meditation("clarity", 900))
    assert content["pattern"] == "vesica_piscis"
    assert content["duration"] == 900
    assert content["frequencies"][0]["hz"] == 528
    assert seen["response_format"] == {"type": "json_object"}
    assert seen["messages"][0]["role"] == "system"
    assert "Focus on: clarity" in seen["messages"][-1]["content"]
    assert seen["auth"] == "Bearer sk-test"


def test_llm_neural_pattern_keeps_from_key():
    reply = {
        "pattern_type": "alpha_bridge",
        "brain_waves": {"alpha": 10},
        "visualization_data": {"nodes": [{"x": 1, "y": 2}], "connections": [{"from": 0, "to": 1}]},
        "activation_sequence": [{"timestamp": 0, "region": "frontal"}],
    }
    generator = _openai_generator(lambda request: _openai_reply(json.dumps(reply)))
    content = asyncio.run(generator.neural_pattern("alpha_bridge"))
    assert content["visualization_data"]["connections"][0]["from"] == 0
    assert content["brain_waves"]["theta"] == 6.0


def test_llm_chat_forwards_recent_history():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return _openai_reply(json.dumps({"response": "Slow your exhale.", "suggested_actions": ["Start a session"]}))

    history = [
        {"role": "user", "content": "I feel tense"},
        {"role": "assistant", "content": "Let us breathe."},
        {"role": "system", "content": "ignored"},
    ]
    reply = asyncio.run(_openai_generator(handler).chat_response("What next?", history))
    assert reply["content"] == "Slow your exhale."
    assert reply["context_references"] == []
    assert [m["role"] for m in seen["messages"]] == ["system", "user", "assistant", "user"]


def test_llm_http_error_becomes_upstream_error():
    generator = _openai_generator(lambda request: httpx.Response(503, text="overloaded"))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(generator.galactic_soundscape("nebula", 300))
    assert exc_info.value.message.startswith("Failed to generate galactic soundscape:")
    assert "overloaded" in exc_info.value.message
    assert exc_info.value.status_code == 500


def test_llm_unparseable_reply_becomes_upstream_error():
    generator = _openai_generator(lambda request: _openai_reply("the stars are quiet today"))
    with pytest.raises(UpstreamError, match="Failed to generate cosmic affirmation"):
        asyncio.run(generator.cosmic_affirmation("peace", None, None))


def test_llm_reply_missing_required_fields_becomes_upstream_error():
    generator = _openai_generator(lambda request: _openai_reply(json.dumps({"category": "unity"})))
    with pytest.raises(UpstreamError):
        asyncio.run(generator.cosmic_affirmation("peace", None, None))


def test_transport_failure_becomes_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError, match="connection refused"):
        asyncio.run(_openai_generator(handler).neural_pattern())


def test_anthropic_provider_reads_text_blocks():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        seen["key"] = request.headers["x-api-key"]
        return httpx.Response(
            200,
            json={
                "model": "claude-sonnet-4-20250514",
                "content": [{"type": "text", "text": '{"content": "Notice the breath."}'}],
                "usage": {"input_tokens": 10, "output_tokens": 5},
            },
        )

    provider = AnthropicProvider(api_key="ak-test", transport=httpx.MockTransport(handler))
    reply = asyncio.run(ContentGenerator(provider=provider).chat_response("hello"))
    assert reply["content"] == "Notice the breath."
    assert seen["key"] == "ak-test"
    assert "JSON" in seen["system"]


def test_get_provider_ignores_foreign_model_ids():
    provider = get_provider("OpenAI", "sk-test", model="claude-3-opus")
    assert isinstance(provider, OpenAIProvider)
    assert provider.get_model() == OpenAIProvider.DEFAULT_MODEL

    with pytest.raises(ValueError):
        get_provider("unknown", "key")


def test_extract_json_object_rejects_arrays():
    assert extract_json_object('```\n{"a": 1}\n```') == {"a": 1}
    with pytest.raises(ValueError):
        extract_json_object("[1, 2]")
