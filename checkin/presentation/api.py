from fastapi import APIRouter

from checkin.presentation.routers.v1.dashboard import router as dashboard_router
from checkin.presentation.routers.v1.register import router as register_router
from checkin.presentation.routes.health import router as health_router

api = APIRouter()

# Add all /api routers here
routers = (register_router, dashboard_router)
for router in routers:
    api.include_router(router, prefix="/api")

api.include_router(health_router)
