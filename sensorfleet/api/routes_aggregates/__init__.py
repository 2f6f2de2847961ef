from fastapi import APIRouter
from sensorfleet.api.routes_aggregates.aggregate_routes import router as aggregate_routes

router = APIRouter(prefix="/aggregates")
router.include_router(aggregate_routes)
