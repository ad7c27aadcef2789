import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dashboard.app.core.config import settings
from dashboard.app.core.context import close_context, init_context
import dashboard.app.routers.drag as drag
import dashboard.app.routers.health as health
import dashboard.app.routers.notifications as notifications
import dashboard.app.routers.reservations as reservations
import dashboard.app.routers.schedule as schedule


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_context()
    try:
        yield
    finally:
        await close_context()


app = FastAPI(
    title="Floor Plan Dashboard API",
    lifespan=lifespan,
)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(schedule.router, prefix=settings.API_PREFIX)
app.include_router(drag.router, prefix=settings.API_PREFIX)
app.include_router(reservations.router, prefix=settings.API_PREFIX)
app.include_router(notifications.router, prefix=settings.API_PREFIX)
