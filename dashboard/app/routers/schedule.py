from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dashboard.app.core.context import DashboardContext, get_context
from dashboard.app.routers.schemas import ProfileOut, RefreshIn, RefreshOut, ScheduleOut
from dashboard.app.services import timeslots
from dashboard.app.services.errors import ScheduleLoadError, UpstreamError
from dashboard.app.services.models import RestaurantProfile, Schedule


router = APIRouter()


async def get_profile(ctx: DashboardContext) -> RestaurantProfile:
    try:
        return await ctx.cache.profile()
    except UpstreamError as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc


async def resolve_timezone(ctx: DashboardContext, timezone: str | None) -> str:
    if timezone is None:
        return (await get_profile(ctx)).timezone
    try:
        timeslots.zone(timezone)
    except ValueError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return timezone


async def load_schedule(ctx: DashboardContext, day: date, timezone: str, *, force: bool = False) -> Schedule:
    try:
        return await ctx.cache.load(day, timezone, force=force)
    except ScheduleLoadError as exc:
        raise HTTPException(
            status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": exc.message,
                "retry": exc.retryable,
                "date": exc.date,
                "timezone": exc.timezone,
            },
        ) from exc


def schedule_out(schedule: Schedule, profile: RestaurantProfile) -> ScheduleOut:
    return ScheduleOut(
        date=schedule.date,
        timezone=schedule.timezone,
        overnight=profile.is_overnight,
        time_slots=schedule.times,
        slots=schedule.slots,
    )


@router.get("/restaurant/profile", response_model=ProfileOut)
async def restaurant_profile(ctx: DashboardContext = Depends(get_context)) -> ProfileOut:
    profile = await get_profile(ctx)
    return ProfileOut(profile=profile, overnight=profile.is_overnight, time_slots=profile.time_slots())


@router.get("/schedule", response_model=ScheduleOut)
async def get_schedule(
    day: date | None = Query(default=None, alias="date"),
    timezone: str | None = None,
    ctx: DashboardContext = Depends(get_context),
) -> ScheduleOut:
    timezone = await resolve_timezone(ctx, timezone)
    if day is None:
        day = timeslots.restaurant_today(timezone)
    schedule = await load_schedule(ctx, day, timezone)
    return schedule_out(schedule, await get_profile(ctx))


@router.post("/schedule/refresh", response_model=RefreshOut)
async def refresh_schedule(payload: RefreshIn, ctx: DashboardContext = Depends(get_context)) -> RefreshOut:
    """On-demand refresh (page focus or mount); skipped while a reservation is being dragged."""
    timezone = await resolve_timezone(ctx, payload.timezone)
    if ctx.tracker.is_dragging:
        cached = ctx.cache.get(payload.date, timezone)
        if cached is None:
            return RefreshOut(refreshed=False)
        return RefreshOut(refreshed=False, schedule=schedule_out(cached, await get_profile(ctx)))

    ctx.cache.invalidate(payload.date, timezone)
    schedule = await load_schedule(ctx, payload.date, timezone, force=True)
    return RefreshOut(refreshed=True, schedule=schedule_out(schedule, await get_profile(ctx)))


@router.get("/reservations")
async def list_reservations(
    day: date | None = Query(default=None, alias="date"),
    timezone: str | None = None,
    ctx: DashboardContext = Depends(get_context),
) -> list[dict]:
    timezone = await resolve_timezone(ctx, timezone)
    try:
        return await ctx.cache.reservations(timezone, day)
    except UpstreamError as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
