"""
Tests for reading generation and the startup malfunction designation.
"""
import random

import pytest

from sensorfleet.services.simulation import (
    abnormal_temperature,
    designate_malfunctioning,
    generate_tick,
    normal_temperature,
)


def _is_one_decimal(value: float) -> bool:
    return abs(value * 10 - round(value * 10)) < 1e-9


def test_normal_band():
    rng = random.Random(42)
    values = [normal_temperature(rng) for _ in range(5000)]

    assert all(15.0 <= v <= 30.0 for v in values)
    assert all(_is_one_decimal(v) for v in values)


def test_abnormal_bands_never_overlap_normal_band():
    rng = random.Random(42)
    values = [abnormal_temperature(rng) for _ in range(5000)]

    assert all(10.0 <= v <= 14.0 or 30.0 <= v <= 35.0 for v in values)
    assert all(_is_one_decimal(v) for v in values)
    # both bands are used
    assert any(v <= 14.0 for v in values)
    assert any(v >= 30.0 for v in values)


def test_generate_tick_one_reading_per_sensor():
    codes = list(range(1, 101))
    rows = generate_tick(codes, frozenset({3, 50}), 1_700_000_000, random.Random(0))

    assert len(rows) == len(codes)
    assert [r["sensor_id"] for r in rows] == codes
    assert all(r["timestamp"] == 1_700_000_000 for r in rows)


def test_generate_tick_biases_malfunctioning_sensors():
    malfunctioning = frozenset({1, 2})
    rows = generate_tick(range(1, 11), malfunctioning, 0, random.Random(5))

    for row in rows:
        value = row["temperature_value"]
        if row["sensor_id"] in malfunctioning:
            assert value <= 14.0 or value >= 30.0
        else:
            assert 15.0 <= value <= 30.0


def test_generate_tick_empty_fleet():
    assert generate_tick([], frozenset(), 0) == []


@pytest.mark.parametrize(
    "fleet_size, expected",
    [(10000, 100), (1000, 10), (250, 2), (50, 1), (1, 1)],
)
def test_designation_size(fleet_size, expected):
    chosen = designate_malfunctioning(range(1, fleet_size + 1), ratio=0.01, seed=3)

    assert len(chosen) == expected
    assert chosen <= set(range(1, fleet_size + 1))


def test_designation_is_reproducible_with_seed():
    codes = range(1, 1001)

    assert designate_malfunctioning(codes, seed=11) == designate_malfunctioning(codes, seed=11)
    assert isinstance(designate_malfunctioning(codes, seed=11), frozenset)


def test_designation_of_empty_fleet():
    assert designate_malfunctioning([]) == frozenset()
