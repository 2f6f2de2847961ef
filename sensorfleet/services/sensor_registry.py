"""
Sensor Registry
---------------
Durable set of sensor identities (code, face, install time, status).
Used by the worker for bulk maintenance and by the CRUD API for
single-sensor operations.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, inspect, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from sensorfleet.models.sensor import Sensor

logger = logging.getLogger(__name__)

SENSORS_TABLE = "sensors"


class RegistryMissingError(RuntimeError):
    """Raised when the sensors relation has not been created yet."""
    pass


class FaceChangeError(ValueError):
    """Raised when an update tries to move a live sensor to another face."""
    pass


def registry_exists(engine: Engine) -> bool:
    """Check whether the schema bootstrap has created the sensors relation."""
    return inspect(engine).has_table(SENSORS_TABLE)


def ensure_registry(engine: Engine) -> None:
    if not registry_exists(engine):
        raise RegistryMissingError(
            f"Table '{SENSORS_TABLE}' not found. Run the schema migrations first (alembic upgrade head)."
        )


def list_sensors(db: Session) -> List[Sensor]:
    return list(db.scalars(select(Sensor).order_by(Sensor.id)))


def list_sensor_codes(db: Session) -> List[int]:
    """All live sensor codes, ascending."""
    return list(db.scalars(select(Sensor.sensor_code).order_by(Sensor.sensor_code)))


def count_sensors(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(Sensor))


def count_codes_in_range(db: Session, target_count: int) -> int:
    """Number of distinct live codes inside [1, target_count]."""
    return db.scalar(
        select(func.count(Sensor.sensor_code.distinct())).where(
            Sensor.sensor_code.between(1, target_count)
        )
    )


def get_sensor(db: Session, sensor_id: int) -> Optional[Sensor]:
    return db.get(Sensor, sensor_id)


def create_sensor(
    db: Session,
    sensor_code: int,
    face: str,
    installed_at: Optional[int] = None,
    status: str = "active",
) -> int:
    """Insert a single sensor and return its surrogate id."""
    sensor = Sensor(
        sensor_code=sensor_code,
        face=face,
        installed_at=installed_at if installed_at is not None else int(time.time()),
        status=status,
    )
    try:
        db.add(sensor)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Created sensor id={sensor.id} code={sensor_code} face={face}")
    return sensor.id


def update_sensor(db: Session, sensor_id: int, **fields) -> Optional[Sensor]:
    """
    Apply the given column values to a sensor. Returns None when it does not exist.

    Raises:
        FaceChangeError: `face` differs from the stored one; a face is fixed
            for the sensor's lifetime.
    """
    sensor = db.get(Sensor, sensor_id)
    if sensor is None:
        return None

    if "face" in fields and fields["face"] != sensor.face:
        raise FaceChangeError(
            f"Sensor {sensor_id} is mounted on {sensor.face}; its face cannot change to {fields['face']}"
        )

    for key, value in fields.items():
        setattr(sensor, key, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(sensor)
    return sensor


def delete_sensor(db: Session, sensor_id: int) -> bool:
    """Delete one sensor; its readings go with it through the FK cascade."""
    sensor = db.get(Sensor, sensor_id)
    if sensor is None:
        return False

    sensor_code = sensor.sensor_code
    try:
        db.delete(sensor)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Deleted sensor id={sensor_id} code={sensor_code}")
    return True


def bulk_insert(db: Session, rows: Iterable[Dict]) -> int:
    """Insert many sensors in one transaction: all of them or none."""
    rows = list(rows)
    if not rows:
        return 0

    try:
        db.execute(insert(Sensor), rows)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return len(rows)
