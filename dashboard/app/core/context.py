import asyncio
import contextlib
from dataclasses import dataclass

import httpx
from fastapi import HTTPException, status

from dashboard.app.core import api_client as api_client_module
from dashboard.app.core.api_client import close_http_client, init_http_client
from dashboard.app.core.config import settings
from dashboard.app.services.coordinator import MutationCoordinator
from dashboard.app.services.drag import DragTracker
from dashboard.app.services.notifications import Notifier
from dashboard.app.services.schedule_cache import ScheduleCache
from dashboard.app.services.upstream import UpstreamAPI


@dataclass
class DashboardContext:
    """The services one dashboard session shares: cache, gesture state, notices."""

    cache: ScheduleCache
    tracker: DragTracker
    notifier: Notifier
    coordinator: MutationCoordinator
    refresher: asyncio.Task | None = None

    @classmethod
    def build(cls, client: httpx.AsyncClient) -> "DashboardContext":
        cache = ScheduleCache(UpstreamAPI(client))
        tracker = DragTracker()
        notifier = Notifier(settings.NOTIFICATION_BACKLOG)
        return cls(cache, tracker, notifier, MutationCoordinator(cache, tracker, notifier))

    def start_refresher(self, interval: float) -> None:
        self.refresher = asyncio.create_task(
            self.cache.run_refresher(interval, lambda: self.tracker.is_dragging)
        )

    async def stop_refresher(self) -> None:
        if self.refresher is None:
            return
        self.refresher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self.refresher
        self.refresher = None


context: DashboardContext | None = None


async def init_context(
    transport: httpx.AsyncBaseTransport | None = None,
    *,
    background_refresh: bool = True,
) -> None:
    global context
    await init_http_client(transport)
    context = DashboardContext.build(api_client_module.http_client)
    if background_refresh:
        context.start_refresher(settings.SCHEDULE_REFRESH_SECONDS)


async def close_context() -> None:
    global context
    if context is not None:
        await context.stop_refresher()
    await close_http_client()
    context = None


def get_context() -> DashboardContext:
    if context is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="Dashboard not initialised")
    return context
