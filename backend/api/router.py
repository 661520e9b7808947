"""Main API router: aggregates all sub-routers."""

from fastapi import APIRouter

from api.movements import router as movements_router
from api.markets import router as markets_router
from api.collector import router as collector_router

api_router = APIRouter(prefix="/api")

api_router.include_router(movements_router, tags=["Movements"])
api_router.include_router(markets_router, tags=["Markets"])
api_router.include_router(collector_router, tags=["Collector"])
