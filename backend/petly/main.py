import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import (
    auth,
    users,
    dogs,
    health_logs,
    check_ins,
    reminders,
    templates,
    weights,
    insights,
    chat,
    subscriptions,
    triage,
    notifications,
)
from .core.config import settings
from .db.base import Base
from .db.session import engine
from .services.scheduler import start_scheduler

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    scheduler = start_scheduler() if settings.scheduler_enabled else None
    logger.info("[STARTUP] Petly API ready (%s)", settings.environment)
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Petly API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router_modules = [
    auth.router,
    users.router,
    dogs.router,
    health_logs.router,
    check_ins.router,
    reminders.router,
    templates.router,
    weights.router,
    insights.router,
    chat.router,
    triage.router,
    subscriptions.router,
    subscriptions.legacy_router,
    subscriptions.webhook_router,
    notifications.router,
]

for router in router_modules:
    app.include_router(router)


@app.get("/")
async def root() -> dict:
    return {"message": "Petly backend is ready"}


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "environment": settings.environment}

