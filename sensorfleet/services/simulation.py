"""
Synthetic temperature generation for the sensor fleet.

A process-local malfunction designation, chosen once at worker startup,
makes a small set of sensor codes always report abnormal values. It is
independent of the store-driven detection in services.anomaly_service.
"""

import logging
import math
import random
from typing import Dict, FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Bands in tenths of a degree, inclusive.
NORMAL_BAND = (150, 300)        # 15.0 - 30.0
LOW_ABNORMAL_BAND = (100, 140)  # 10.0 - 14.0
HIGH_ABNORMAL_BAND = (300, 350)  # 30.0 - 35.0


def designate_malfunctioning(
    codes: Iterable[int],
    ratio: float = 0.01,
    seed: Optional[int] = None,
) -> FrozenSet[int]:
    """
    Pick max(1, floor(len(codes) * ratio)) codes without replacement.
    An empty fleet yields an empty designation.
    """
    codes = sorted(set(codes))
    if not codes:
        return frozenset()

    count = min(len(codes), max(1, math.floor(len(codes) * ratio)))
    return frozenset(random.Random(seed).sample(codes, count))


def _draw(rng: random.Random, band) -> float:
    low, high = band
    return rng.randint(low, high) / 10


def normal_temperature(rng: random.Random) -> float:
    return _draw(rng, NORMAL_BAND)


def abnormal_temperature(rng: random.Random) -> float:
    """Low or high abnormal band with equal probability."""
    band = LOW_ABNORMAL_BAND if rng.randint(0, 1) == 0 else HIGH_ABNORMAL_BAND
    return _draw(rng, band)


def generate_tick(
    sensor_codes: Iterable[int],
    malfunctioning: FrozenSet[int],
    timestamp: int,
    rng: Optional[random.Random] = None,
) -> List[Dict]:
    """One reading row per sensor code, all stamped with `timestamp`."""
    rng = rng or random.Random()
    return [
        {
            "sensor_id": code,
            "timestamp": timestamp,
            "temperature_value": (
                abnormal_temperature(rng) if code in malfunctioning else normal_temperature(rng)
            ),
        }
        for code in sensor_codes
    ]
