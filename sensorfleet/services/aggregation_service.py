"""
Aggregator
----------
Per-face mean temperatures over a time window, grouped by calendar bucket.

`overall_face_average` is a mean of the per-bucket means: every bucket
weighs the same no matter how many readings it holds.
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from sensorfleet.db.sql import bucket_start
from sensorfleet.models.sensor import Sensor
from sensorfleet.models.sensor_reading import SensorReading

logger = logging.getLogger(__name__)


def facewise_average(
    db: Session,
    interval: str,
    start: Optional[int] = None,
    end: Optional[int] = None,
    face: Optional[str] = None,
) -> List[Dict]:
    """
    Mean temperature per (bucket, face), ordered by bucket then face.

    Args:
        interval: bucket granularity, one of minute/hour/day/week/month.
        start, end: inclusive Unix-second bounds on the reading timestamp.
        face: restrict the result to a single face.

    Raises:
        InvalidIntervalError: for any other granularity.
    """
    period = bucket_start(interval, SensorReading.timestamp).label("period")

    stmt = (
        select(period, Sensor.face, func.avg(SensorReading.temperature_value).label("avg_temperature"))
        .select_from(SensorReading)
        .join(Sensor, SensorReading.sensor_id == Sensor.sensor_code)
    )
    if start is not None:
        stmt = stmt.where(SensorReading.timestamp >= start)
    if end is not None:
        stmt = stmt.where(SensorReading.timestamp <= end)
    if face is not None:
        stmt = stmt.where(Sensor.face == face)

    stmt = stmt.group_by(period, Sensor.face).order_by(period, Sensor.face)

    return [
        {"period": row.period, "face": row.face, "avg_temperature": float(row.avg_temperature)}
        for row in db.execute(stmt)
    ]


def mean_of_means(rows: Iterable[Dict]) -> Dict[str, float]:
    """Average the per-bucket means of each face with equal weight per bucket."""
    totals: Dict[str, List[float]] = {}
    for row in rows:
        bucket = totals.setdefault(row["face"], [0.0, 0])
        bucket[0] += float(row["avg_temperature"])
        bucket[1] += 1

    return {face: total / count for face, (total, count) in totals.items()}


def overall_face_average(
    db: Session,
    interval: str,
    start: Optional[int] = None,
    end: Optional[int] = None,
) -> Dict[str, float]:
    """One scalar mean per face for the window. Faces without readings are absent."""
    return mean_of_means(facewise_average(db, interval, start, end))
