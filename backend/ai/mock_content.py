"""Randomised local content used when generation runs in mock mode."""
from __future__ import annotations

import random

SACRED_PATTERNS = [
    "flower_of_life",
    "seed_of_life",
    "vesica_piscis",
    "merkaba",
    "sri_yantra",
    "metatrons_cube",
]
SOLFEGGIO_HZ = [174, 285, 396, 417, 528, 639, 741, 852, 963]
GEOMETRY_SHAPES = ["circle", "triangle", "hexagon", "tetrahedron", "icosahedron", "torus", "spiral"]
GEOMETRY_TRANSFORMS = ["rotate", "expand", "contract", "pulse", "fold", "spiral_in"]
GEOMETRY_COLORS = ["#8b5cf6", "#6366f1", "#ec4899", "#22d3ee", "#f59e0b", "#10b981"]
NEURAL_TARGETS = [
    "prefrontal_cortex",
    "anterior_cingulate",
    "insula",
    "hippocampus",
    "pineal_region",
    "default_mode_network",
    "thalamus",
]
CONSCIOUSNESS_LEVELS = ["alpha_relaxation", "theta_meditation", "theta_gamma_sync", "delta_restoration", "gamma_insight"]
GUIDED_LINES = [
    "Settle into a steady breath and let the outer pattern hold your attention.",
    "Watch the first circle bloom into six and feel the field around you widen.",
    "Let each rotation of the form carry a slower, softer exhale.",
    "Rest inside the center point where every line of the pattern meets.",
    "Allow the geometry to fade while its rhythm keeps moving through you.",
]

AFFIRMATIONS = {
    "abundance": [
        "I am an open channel for the generous flow of the universe.",
        "Everything I need arrives in its right time and measure.",
    ],
    "unity": [
        "I am one thread in the vast weave of living light.",
        "My heart beats in rhythm with every star that ever shone.",
    ],
    "transformation": [
        "Each breath dissolves an old form and reveals a brighter one.",
        "I welcome change as the universe rearranging itself through me.",
    ],
    "clarity": [
        "My mind is as still and clear as the space between galaxies.",
        "I see my path lit by the quiet intelligence within me.",
    ],
    "healing": [
        "Every cell in my body remembers its original harmony.",
        "I receive the restoring light of the cosmos with gratitude.",
    ],
}
COSMIC_ALIGNMENTS = [
    "Pleiadian harmonic resonance",
    "Sirius heart gateway",
    "Galactic center pulse",
    "Andromeda unity field",
    "Solar plexus of Orion",
]

GALACTIC_TYPES = ["nebula", "pulsar", "black_hole", "galaxy_rotation", "solar_wind", "aurora"]
SOUNDSCAPE_NAMES = {
    "nebula": "Nebula Drift",
    "pulsar": "Pulsar Heartbeat",
    "black_hole": "Event Horizon Hum",
    "galaxy_rotation": "Spiral Arm Chorus",
    "solar_wind": "Solar Wind Whisper",
    "aurora": "Aurora Veil",
}
WAVE_TYPES = ["sine", "triangle", "binaural", "drone"]
AUDIO_FILTERS = ["lowpass", "bandpass", "highpass"]

BRAIN_REGIONS = ["frontal", "parietal", "temporal", "occipital", "limbic", "brainstem"]

CHAT_REPLIES = [
    (
        "Slow, rhythmic breathing around six breaths per minute tends to raise heart rate "
        "variability and shifts the nervous system toward parasympathetic rest.",
        ["heart rate variability", "resonance breathing"],
        ["Try a five minute heart-galaxy session", "Start a sacred geometry meditation"],
    ),
    (
        "Theta activity rises as attention turns inward and the body relaxes; focusing on a "
        "simple visual pattern is one way many people ease into that state.",
        ["theta oscillations", "focused attention meditation"],
        ["Generate a neural pathway visualization", "Begin a meditation session"],
    ),
    (
        "Regular meditation practice is associated with changes in the default mode network, "
        "the brain system that is active during mind-wandering.",
        ["default mode network", "mind-wandering"],
        ["Request a cosmic affirmation for clarity", "Explore a galactic soundscape"],
    ),
    (
        "Sound with a steady, slow pulse can help entrain breathing and attention. Pair it with "
        "a comfortable posture and let the rhythm lead.",
        ["auditory entrainment", "breath pacing"],
        ["Synthesize a galactic soundscape", "Submit comfort feedback during your session"],
    ),
]


def _rng(rng: random.Random | None) -> random.Random:
    return rng or random.Random()


def sacred_geometry_meditation(intention: str | None, duration: int, rng: random.Random | None = None) -> dict:
    r = _rng(rng)
    steps = r.randint(4, 7)
    step_time = round(duration / steps, 1)
    lines = r.sample(GUIDED_LINES, k=3)
    if intention:
        lines.insert(0, f"Hold the intention of {intention.strip()} gently at the center of your awareness.")
    return {
        "pattern": r.choice(SACRED_PATTERNS),
        "duration": duration,
        "frequencies": [{"hz": hz, "type": "solfeggio"} for hz in sorted(r.sample(SOLFEGGIO_HZ, k=3))],
        "geometry_sequence": [
            {
                "shape": r.choice(GEOMETRY_SHAPES),
                "transform": r.choice(GEOMETRY_TRANSFORMS),
                "color": r.choice(GEOMETRY_COLORS),
                "timing": round(step_time * idx, 1),
            }
            for idx in range(steps)
        ],
        "neural_targets": r.sample(NEURAL_TARGETS, k=3),
        "consciousness_level": r.choice(CONSCIOUSNESS_LEVELS),
        "guided_text": " ".join(lines),
    }


def cosmic_affirmation(
    intention: str | None,
    life_area: str | None,
    personality: str | None,
    rng: random.Random | None = None,
) -> dict:
    r = _rng(rng)
    wanted = (life_area or "").strip().lower()
    category = wanted if wanted in AFFIRMATIONS else r.choice(sorted(AFFIRMATIONS))
    factors = [
        f"{label}: {value.strip()}"
        for label, value in (("intention", intention), ("life_area", life_area), ("personality", personality))
        if value and value.strip()
    ]
    return {
        "text": r.choice(AFFIRMATIONS[category]),
        "category": category,
        "vibrational_frequency": r.choice(SOLFEGGIO_HZ),
        "cosmic_alignment": r.choice(COSMIC_ALIGNMENTS),
        "personalization_factors": factors or ["universal"],
    }


def galactic_soundscape(soundscape_type: str, duration: int, rng: random.Random | None = None) -> dict:
    r = _rng(rng)
    galactic_type = r.choice(GALACTIC_TYPES)
    base_hz = r.choice([108, 136.1, 144, 172.06, 194.18, 210.42])
    return {
        "name": f"{SOUNDSCAPE_NAMES[galactic_type]} ({soundscape_type.replace('_', ' ')})",
        "frequencies": [
            {
                "hz": round(base_hz * ratio, 2),
                "type": r.choice(WAVE_TYPES),
                "amplitude": round(r.uniform(0.2, 0.8), 2),
            }
            for ratio in (1.0, 1.5, 2.0, 3.0)
        ],
        "duration": duration,
        "galactic_type": galactic_type,
        "audio_params": {
            "reverb": round(r.uniform(0.3, 0.9), 2),
            "delay": round(r.uniform(0.1, 0.6), 2),
            "filter": r.choice(AUDIO_FILTERS),
            "modulation": round(r.uniform(0.05, 0.5), 2),
        },
    }


def neural_pattern(consciousness_state: str, rng: random.Random | None = None) -> dict:
    r = _rng(rng)
    node_count = r.randint(8, 14)
    nodes = [
        {"x": round(r.uniform(0, 100), 1), "y": round(r.uniform(0, 100), 1), "intensity": round(r.random(), 2)}
        for _ in range(node_count)
    ]
    connections = []
    for idx in range(node_count):
        target = r.randrange(node_count)
        if target != idx:
            connections.append({"from": idx, "to": target, "strength": round(r.random(), 2)})
    return {
        "pattern_type": consciousness_state,
        "brain_waves": {
            "alpha": round(r.uniform(8, 12), 1),
            "theta": round(r.uniform(4, 8), 1),
            "delta": round(r.uniform(0.5, 4), 1),
            "beta": round(r.uniform(13, 30), 1),
            "gamma": round(r.uniform(30, 80), 1),
        },
        "visualization_data": {"nodes": nodes, "connections": connections},
        "activation_sequence": [
            {"timestamp": step * 1000, "region": r.choice(BRAIN_REGIONS), "intensity": round(r.random(), 2)}
            for step in range(6)
        ],
    }


def chat_response(message: str, rng: random.Random | None = None) -> dict:
    _ = message
    content, references, actions = _rng(rng).choice(CHAT_REPLIES)
    return {
        "content": content,
        "context_references": list(references),
        "suggested_actions": list(actions),
    }
