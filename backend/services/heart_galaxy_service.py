from __future__ import annotations

import random
from dataclasses import dataclass

RESTING_HEART_RATE = 65
MIN_HEART_RATE = 20
MAX_HEART_RATE = 250
CONSTELLATIONS = ["Andromeda", "Pleiades", "Sirius", "Vega", "Arcturus"]


@dataclass(frozen=True)
class HeartGalaxyReading:
    heart_rate: int
    coherence_level: int
    galaxy_sync_status: str
    cosmic_coordinates: dict
    connection_strength: str
    biometric_harmony: str


def coherence_level(heart_rate: float, jitter: float) -> int:
    """Coherence in [0, 100]; `jitter` is a draw from [0, 20)."""
    raw = round(100 - abs(heart_rate - RESTING_HEART_RATE) * 2 + jitter)
    return max(0, min(100, int(raw)))


def sync_status(coherence: int) -> str:
    if coherence > 70:
        return "synchronized"
    if coherence > 40:
        return "aligning"
    return "seeking"


def connection_strength(coherence: int) -> str:
    if coherence > 80:
        return "strong"
    if coherence > 50:
        return "moderate"
    return "developing"


def biometric_harmony(heart_rate: float) -> str:
    return "optimal" if 60 <= heart_rate <= 100 else "adjusting"


def cosmic_coordinates(rng: random.Random) -> dict:
    return {
        "galactic_longitude": rng.random() * 360,
        "galactic_latitude": (rng.random() - 0.5) * 180,
        "distance_from_center": rng.random() * 50000,
        "constellation": rng.choice(CONSTELLATIONS),
    }


def read_heart_galaxy(heart_rate: float, rng: random.Random | None = None) -> HeartGalaxyReading:
    """Simulate a heart-galaxy connection from a single heart-rate sample."""
    r = rng or random.Random()
    coherence = coherence_level(heart_rate, r.random() * 20)
    return HeartGalaxyReading(
        heart_rate=int(round(heart_rate)),
        coherence_level=coherence,
        galaxy_sync_status=sync_status(coherence),
        cosmic_coordinates=cosmic_coordinates(r),
        connection_strength=connection_strength(coherence),
        biometric_harmony=biometric_harmony(heart_rate),
    )
