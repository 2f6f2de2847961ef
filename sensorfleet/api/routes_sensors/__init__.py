from fastapi import APIRouter
from sensorfleet.api.routes_sensors.sensor_routes import router as sensor_routes
from sensorfleet.api.routes_sensors.reading_routes import router as reading_routes

router = APIRouter(prefix="/sensors")
router.include_router(sensor_routes)
router.include_router(reading_routes)
