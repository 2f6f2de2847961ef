"""
Fleet Maintainer
----------------
Keeps the registry holding every sensor code in [1, target_count],
regenerating any missing code with a random face.
"""

import logging
import random
import time
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from sensorfleet.models.sensor import FACES, Sensor
from sensorfleet.services import sensor_registry

logger = logging.getLogger(__name__)


def missing_codes(db: Session, target_count: int) -> List[int]:
    existing = set(
        db.scalars(select(Sensor.sensor_code).where(Sensor.sensor_code.between(1, target_count)))
    )
    return [code for code in range(1, target_count + 1) if code not in existing]


def ensure_fleet(
    db: Session,
    target_count: int,
    rng: Optional[random.Random] = None,
    now: Optional[int] = None,
) -> int:
    """
    Insert one sensor per missing code in a single all-or-nothing batch.
    Idempotent: a complete fleet is left untouched.

    Returns:
        Number of sensors created.

    Raises:
        SQLAlchemyError: when the batch fails; nothing is inserted.
    """
    if target_count < 1:
        raise ValueError(f"target_count must be at least 1, got {target_count}")

    if sensor_registry.count_codes_in_range(db, target_count) >= target_count:
        return 0

    codes = missing_codes(db, target_count)
    if not codes:
        return 0

    rng = rng or random.Random()
    installed_at = int(now if now is not None else time.time())
    logger.info(f"Generating {len(codes)} sensors all at once...")

    rows = [
        {
            "sensor_code": code,
            "face": rng.choice(FACES),
            "installed_at": installed_at,
            "status": "active",
        }
        for code in codes
    ]
    created = sensor_registry.bulk_insert(db, rows)

    logger.info(f"Sensor generation complete. Target fleet size: {target_count}")
    return created
