from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_BUCKETS = ("minute", "hour", "day", "week", "month")


class Settings(BaseSettings):
    PROJECT_NAME: str = "SensorFleet"
    PROJECT_VERSION: str = "0.1.0"
    DATABASE_URL: str
    DB_TIMEZONE: str = "UTC"

    # Fleet simulation
    TARGET_SENSOR_COUNT: int = 10000
    TICK_SECONDS: float = 1.0
    AGGREGATION_INTERVAL: int = 1
    AGGREGATION_BUCKET: str = "minute"
    DEVIATION_RATIO: float = 0.20
    MALFUNCTION_RATIO: float = 0.01
    MALFUNCTION_SEED: Optional[int] = None

    RUN_WORKER_IN_API: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("TARGET_SENSOR_COUNT")
    def validate_target(cls, v):
        if v < 1:
            raise ValueError("TARGET_SENSOR_COUNT must be at least 1")
        return v

    @field_validator("TICK_SECONDS", "AGGREGATION_INTERVAL")
    def validate_period(cls, v):
        if v <= 0:
            raise ValueError("periods must be positive")
        return v

    @field_validator("DEVIATION_RATIO", "MALFUNCTION_RATIO")
    def validate_ratio(cls, v):
        if v < 0:
            raise ValueError("ratios cannot be negative")
        return v

    @field_validator("AGGREGATION_BUCKET")
    def validate_bucket(cls, v):
        if v.lower() not in ALLOWED_BUCKETS:
            raise ValueError(f"AGGREGATION_BUCKET must be one of: {', '.join(ALLOWED_BUCKETS)}")
        return v.lower()


settings = Settings()
