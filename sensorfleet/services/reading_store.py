"""
Reading Store
-------------
Append-only log of (sensor, timestamp, temperature) readings.
Readings are never updated; they disappear only when their sensor is
deleted (FK cascade).
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import insert, select
from sqlalchemy.orm import Session

from sensorfleet.models.sensor_reading import SensorReading

logger = logging.getLogger(__name__)


def bulk_insert_readings(db: Session, rows: Iterable[Dict]) -> int:
    """
    Write a tick's readings as one transaction.
    Either every row commits or the whole batch is rolled back.
    """
    rows = list(rows)
    if not rows:
        return 0

    try:
        db.execute(insert(SensorReading), rows)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return len(rows)


def create_reading(db: Session, sensor_code: int, timestamp: int, temperature: float) -> int:
    """Insert a single reading and return its id."""
    try:
        new_id = db.scalar(
            insert(SensorReading)
            .values(sensor_id=sensor_code, timestamp=timestamp, temperature_value=temperature)
            .returning(SensorReading.id)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return new_id


def readings_for_sensor(db: Session, sensor_code: int, limit: int = 100, offset: int = 0) -> List[SensorReading]:
    """Readings of one sensor, newest first."""
    stmt = (
        select(SensorReading)
        .where(SensorReading.sensor_id == sensor_code)
        .order_by(SensorReading.timestamp.desc(), SensorReading.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(db.scalars(stmt))


def latest_reading(db: Session, sensor_code: int) -> Optional[SensorReading]:
    readings = readings_for_sensor(db, sensor_code, limit=1)
    return readings[0] if readings else None
