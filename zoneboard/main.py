"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from zoneboard.api.router import api_router
from zoneboard.config import get_settings
from zoneboard.db.engine import create_tables, engine

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Zone board API started")
    yield
    await engine.dispose()


app = FastAPI(
    title="Zoneboard",
    description="Zone and time-bucket scheduling board for field-service dispatch.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
