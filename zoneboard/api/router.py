"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from zoneboard.api.zone_board import router as zone_board_router
from zoneboard.api.schedule import router as schedule_router
from zoneboard.api.technicians import router as technicians_router

api_router = APIRouter()
api_router.include_router(zone_board_router)
api_router.include_router(schedule_router)
api_router.include_router(technicians_router)
