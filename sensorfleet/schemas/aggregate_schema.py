from datetime import datetime
from pydantic import BaseModel
from typing import Dict, List


class FaceBucketAverage(BaseModel):
    period: datetime
    face: str
    avg_temperature: float


class FacewiseAverageResponse(BaseModel):
    interval: str
    total: int
    data: List[FaceBucketAverage]


class OverallAverageResponse(BaseModel):
    interval: str
    averages: Dict[str, float]


class MalfunctioningSensor(BaseModel):
    id: int
    sensor_code: int
    face: str
    sensor_avg: float
    face_avg: float
    deviation: float


class MalfunctioningResponse(BaseModel):
    threshold: float
    total: int
    sensors: List[MalfunctioningSensor]
