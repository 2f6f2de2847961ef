from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List

from sensorfleet.db.session import get_db
from sensorfleet.schemas.sensor_schema import ReadingOut
from sensorfleet.services import reading_store

router = APIRouter(tags=["Readings"])


@router.get("/{sensor_code}/readings", response_model=List[ReadingOut])
def get_readings(
    sensor_code: int,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Readings of a sensor (by sensor code), newest first."""
    return reading_store.readings_for_sensor(db, sensor_code, limit=limit, offset=offset)


@router.get("/{sensor_code}/readings/latest", response_model=ReadingOut)
def get_latest_reading(sensor_code: int, db: Session = Depends(get_db)):
    reading = reading_store.latest_reading(db, sensor_code)
    if reading is None:
        raise HTTPException(status_code=404, detail="No readings for this sensor")
    return reading
