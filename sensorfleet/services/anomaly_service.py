"""
Anomaly Detector & Pruner
-------------------------
Store-driven detection of sensors whose average temperature strays from
their face's baseline:
 - count_out_of_range / prune_face: the worker's removal path, comparing
   each sensor's all-time mean against a caller-supplied allowed range
 - malfunctioning_by_deviation: read-only diagnostic comparing sensor and
   face averages over an optional window

Not to be confused with the worker's startup malfunction designation
(see services.simulation), which only biases generated values.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session, aliased

from sensorfleet.models.sensor import Sensor
from sensorfleet.models.sensor_reading import SensorReading

logger = logging.getLogger(__name__)

DEFAULT_DEVIATION = 0.20


class InvalidThresholdError(ValueError):
    """Raised for a negative deviation threshold or an inverted allowed range."""
    pass


def allowed_range(face_average: float, ratio: float = DEFAULT_DEVIATION) -> Tuple[float, float]:
    """
    [avg * (1 - ratio), avg * (1 + ratio)], ordered low to high so a
    negative face average still yields a usable range.
    """
    if ratio < 0:
        raise InvalidThresholdError(f"Deviation ratio must be non-negative, got {ratio}")
    low, high = face_average * (1 - ratio), face_average * (1 + ratio)
    return min(low, high), max(low, high)


def _validate_range(allowed_min: float, allowed_max: float) -> None:
    if allowed_min > allowed_max:
        raise InvalidThresholdError(f"Inverted allowed range: [{allowed_min}, {allowed_max}]")


def _out_of_range_codes(face: str, allowed_min: float, allowed_max: float):
    """Codes on `face` whose all-time mean lies strictly outside the range."""
    s = aliased(Sensor)
    sensor_avg = func.avg(SensorReading.temperature_value)
    return (
        select(s.sensor_code)
        .join(SensorReading, SensorReading.sensor_id == s.sensor_code)
        .where(s.face == face)
        .group_by(s.sensor_code)
        .having(or_(sensor_avg < allowed_min, sensor_avg > allowed_max))
    )


def count_out_of_range(db: Session, face: str, allowed_min: float, allowed_max: float) -> int:
    """Read-only probe: how many sensors prune_face would remove right now."""
    _validate_range(allowed_min, allowed_max)
    subquery = _out_of_range_codes(face, allowed_min, allowed_max).subquery()
    return db.scalar(select(func.count()).select_from(subquery))


def prune_face(db: Session, face: str, allowed_min: float, allowed_max: float) -> int:
    """
    Delete every sensor on `face` whose all-time mean is strictly outside
    [allowed_min, allowed_max]; readings follow through the FK cascade.
    Sensors sitting exactly on a boundary are kept.

    Returns:
        Number of sensors removed.
    """
    _validate_range(allowed_min, allowed_max)
    stmt = (
        delete(Sensor)
        .where(
            Sensor.face == face,
            Sensor.sensor_code.in_(_out_of_range_codes(face, allowed_min, allowed_max)),
        )
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return result.rowcount


def _windowed(stmt, conditions):
    return stmt.where(*conditions) if conditions else stmt


def malfunctioning_by_deviation(
    db: Session,
    threshold: float = DEFAULT_DEVIATION,
    start: Optional[int] = None,
    end: Optional[int] = None,
) -> List[Dict]:
    """
    Sensors whose average deviates from their face's average by more than
    `threshold` (a fraction, 0.2 == 20%), both averages taken over readings
    in the optional [start, end] window. Nothing is deleted.
    """
    if threshold < 0:
        raise InvalidThresholdError(f"Threshold must be non-negative, got {threshold}")

    conditions = []
    if start is not None:
        conditions.append(SensorReading.timestamp >= start)
    if end is not None:
        conditions.append(SensorReading.timestamp <= end)

    face_averages = (
        _windowed(
            select(Sensor.face, func.avg(SensorReading.temperature_value).label("face_avg"))
            .join(SensorReading, SensorReading.sensor_id == Sensor.sensor_code),
            conditions,
        )
        .group_by(Sensor.face)
        .cte("face_averages")
    )
    sensor_averages = (
        _windowed(
            select(
                Sensor.id,
                Sensor.sensor_code,
                Sensor.face,
                func.avg(SensorReading.temperature_value).label("sensor_avg"),
            )
            .join(SensorReading, SensorReading.sensor_id == Sensor.sensor_code),
            conditions,
        )
        .group_by(Sensor.id, Sensor.sensor_code, Sensor.face)
        .cte("sensor_averages")
    )

    deviation = (
        func.abs(sensor_averages.c.sensor_avg - face_averages.c.face_avg)
        / func.nullif(face_averages.c.face_avg, 0)
    ).label("deviation")

    stmt = (
        select(
            sensor_averages.c.id,
            sensor_averages.c.sensor_code,
            sensor_averages.c.face,
            sensor_averages.c.sensor_avg,
            face_averages.c.face_avg,
            deviation,
        )
        .join(face_averages, sensor_averages.c.face == face_averages.c.face)
        .where(deviation > threshold)
        .order_by(sensor_averages.c.face, sensor_averages.c.sensor_code)
    )

    return [
        {
            "id": row.id,
            "sensor_code": row.sensor_code,
            "face": row.face,
            "sensor_avg": float(row.sensor_avg),
            "face_avg": float(row.face_avg),
            "deviation": float(row.deviation),
        }
        for row in db.execute(stmt)
    ]
