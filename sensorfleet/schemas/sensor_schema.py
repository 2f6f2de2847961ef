from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional

from sensorfleet.models.sensor import Face


class SensorCreate(BaseModel):
    """Payload for registering a single sensor."""
    sensor_code: int = Field(..., ge=1, description="External sensor code, unique across the fleet")
    face: Face = Field(..., description="Mounting face: north, east, south or west")
    installed_at: Optional[int] = Field(default=None, description="Unix seconds; defaults to now")
    status: str = Field(default="active", max_length=20)


class SensorUpdate(BaseModel):
    """
    Partial update; omitted fields are left unchanged.
    `face` is accepted only when it matches the stored face.
    """
    sensor_code: Optional[int] = Field(default=None, ge=1)
    face: Optional[Face] = None
    installed_at: Optional[int] = None
    status: Optional[str] = Field(default=None, max_length=20)

    @field_validator("sensor_code", "face", "installed_at")
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class SensorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sensor_code: int
    face: str
    installed_at: int
    status: Optional[str]


class ReadingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sensor_id: int
    timestamp: int
    temperature_value: float
