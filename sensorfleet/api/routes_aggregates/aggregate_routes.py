from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from sensorfleet.db.session import get_db
from sensorfleet.db.sql import InvalidIntervalError
from sensorfleet.models.sensor import Face
from sensorfleet.schemas.aggregate_schema import (
    FacewiseAverageResponse,
    MalfunctioningResponse,
    OverallAverageResponse,
)
from sensorfleet.services.aggregation_service import facewise_average, overall_face_average
from sensorfleet.services.anomaly_service import InvalidThresholdError, malfunctioning_by_deviation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Aggregates"])


@router.get("/", response_model=FacewiseAverageResponse)
def get_facewise_average(
    interval: str = Query("hour", description="minute, hour, day, week or month"),
    start: Optional[int] = Query(None, description="Unix seconds, inclusive"),
    end: Optional[int] = Query(None, description="Unix seconds, inclusive"),
    face: Optional[Face] = None,
    db: Session = Depends(get_db),
):
    """Average temperature per time bucket and face."""
    try:
        rows = facewise_average(db, interval, start, end, face.value if face else None)
    except InvalidIntervalError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"interval": interval, "total": len(rows), "data": rows}


@router.get("/overall", response_model=OverallAverageResponse)
def get_overall_average(
    interval: str = Query("hour", description="minute, hour, day, week or month"),
    start: Optional[int] = None,
    end: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """One average per face: the mean of the per-bucket means."""
    try:
        averages = overall_face_average(db, interval, start, end)
    except InvalidIntervalError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"interval": interval, "averages": averages}


@router.get("/malfunctioning", response_model=MalfunctioningResponse)
def get_malfunctioning(
    threshold: float = Query(0.20, description="Allowed deviation from the face average, as a fraction"),
    start: Optional[int] = None,
    end: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Sensors deviating from their face average by more than `threshold`. Read-only."""
    try:
        sensors = malfunctioning_by_deviation(db, threshold, start, end)
    except InvalidThresholdError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info(f"Found {len(sensors)} sensors beyond {threshold:.0%} deviation")
    return {"threshold": threshold, "total": len(sensors), "sensors": sensors}
