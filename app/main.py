# app/main.py
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

# ---------------------------
# Env loading (root .env first, then app/.env as fallback)
# ---------------------------
load_dotenv(find_dotenv(usecwd=True))
load_dotenv(Path(__file__).resolve().parent / ".env", override=False)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("app")

# --- DB engine + models (models must be imported BEFORE create_all) ---
from app.db.session import engine
from app.models import Base

from app.api import health
from app.api.v1 import compliance
from app.core.errors import register_exception_handlers
from app.middleware.request_logging import RequestLoggingMiddleware
from app.worker.scheduler import make_scheduler

# ---------------------------
# CREATE TABLES (dev-only; use alembic elsewhere)
# ---------------------------
ENABLE_CREATE_ALL = os.getenv("ENABLE_CREATE_ALL", "1") == "1"

if ENABLE_CREATE_ALL:
    Base.metadata.create_all(bind=engine)


# ---------------------------
# Scheduler (daily checks, weekly reports)
# ---------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.scheduler = None
    if os.getenv("ENABLE_SCHEDULER", "1") == "1":
        try:
            app.state.scheduler = make_scheduler()
            app.state.scheduler.start()
        except Exception:
            # keep API running if scheduler fails
            log.exception("Scheduler failed to start")
            app.state.scheduler = None
    yield
    sched = app.state.scheduler
    if sched:
        sched.shutdown(wait=False)


# ---------------------------
# APP
# ---------------------------
app = FastAPI(title="FundingOS Compliance", lifespan=lifespan)

register_exception_handlers(app)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(compliance.router, prefix="/api")
app.include_router(health.router, prefix="/api")


# ---------------------------
# OpenAPI
# ---------------------------
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    app.openapi_schema = get_openapi(
        title="FundingOS Compliance",
        version="1.0.0",
        description="Compliance tracking, alerts and scoring for FundingOS users",
        routes=app.routes,
    )
    return app.openapi_schema


app.openapi = custom_openapi
