from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
import logging

from sensorfleet.db.session import get_db
from sensorfleet.schemas.sensor_schema import SensorCreate, SensorOut, SensorUpdate
from sensorfleet.services import sensor_registry
from sensorfleet.services.sensor_registry import FaceChangeError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sensors"])


@router.get("/", response_model=List[SensorOut])
def list_sensors(db: Session = Depends(get_db)):
    """List all sensors."""
    return sensor_registry.list_sensors(db)


@router.get("/{sensor_id}", response_model=SensorOut)
def get_sensor(sensor_id: int, db: Session = Depends(get_db)):
    """Retrieve a sensor by its surrogate id."""
    sensor = sensor_registry.get_sensor(db, sensor_id)
    if sensor is None:
        raise HTTPException(status_code=404, detail="Sensor not found")
    return sensor


@router.post("/", status_code=201)
def create_sensor(payload: SensorCreate, db: Session = Depends(get_db)):
    """Register a new sensor."""
    try:
        sensor_id = sensor_registry.create_sensor(
            db,
            sensor_code=payload.sensor_code,
            face=payload.face.value,
            installed_at=payload.installed_at,
            status=payload.status,
        )
    except IntegrityError:
        raise HTTPException(status_code=409, detail=f"Sensor code {payload.sensor_code} already exists")
    return {"id": sensor_id}


@router.put("/{sensor_id}", response_model=SensorOut)
def update_sensor(sensor_id: int, payload: SensorUpdate, db: Session = Depends(get_db)):
    """Update an existing sensor."""
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("face") is not None:
        fields["face"] = fields["face"].value

    try:
        sensor = sensor_registry.update_sensor(db, sensor_id, **fields)
    except FaceChangeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Update conflicts with an existing sensor or its readings")

    if sensor is None:
        raise HTTPException(status_code=404, detail="Sensor not found")
    return sensor


@router.delete("/{sensor_id}")
def delete_sensor(sensor_id: int, db: Session = Depends(get_db)):
    """Delete a sensor together with its readings."""
    if not sensor_registry.delete_sensor(db, sensor_id):
        raise HTTPException(status_code=404, detail="Sensor not found")
    return {"message": "Sensor deleted successfully"}
