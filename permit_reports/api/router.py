"""Top-level API router."""

from fastapi import APIRouter

from permit_reports.api.routes.exports import router as exports_router
from permit_reports.api.routes.health import router as health_router
from permit_reports.api.routes.localities import router as localities_router
from permit_reports.api.routes.reports import router as reports_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(reports_router)
api_router.include_router(exports_router)
api_router.include_router(localities_router)
