from fastapi import APIRouter, Depends, HTTPException, status

from dashboard.app.core.context import DashboardContext, get_context
from dashboard.app.routers.schedule import get_profile, load_schedule, resolve_timezone
from dashboard.app.routers.schemas import (
    DragStartIn,
    DragStateOut,
    DropIn,
    DropOut,
    HoverIn,
    OutcomeOut,
    VerdictOut,
)
from dashboard.app.services.errors import DragError, ReservationNotFound, UpstreamError
from dashboard.app.services.models import DragSession, Schedule


router = APIRouter()


def _state(ctx: DashboardContext) -> DragStateOut:
    tracker = ctx.tracker
    return DragStateOut(state=tracker.state, session=tracker.session, pending=sorted(tracker.pending))


def _active_session(ctx: DashboardContext) -> DragSession:
    if ctx.tracker.session is None:
        raise HTTPException(status.HTTP_409_CONFLICT, detail="No drag in progress")
    return ctx.tracker.session


async def _session_schedule(ctx: DashboardContext, session: DragSession) -> Schedule:
    schedule = ctx.cache.get(session.date, session.timezone)
    if schedule is None:
        schedule = await load_schedule(ctx, session.date, session.timezone)
    return schedule


@router.get("/drag", response_model=DragStateOut)
async def drag_state(ctx: DashboardContext = Depends(get_context)) -> DragStateOut:
    return _state(ctx)


@router.post("/drag/start", response_model=DragStateOut)
async def start_drag(payload: DragStartIn, ctx: DashboardContext = Depends(get_context)) -> DragStateOut:
    timezone = await resolve_timezone(ctx, payload.timezone)
    schedule = await load_schedule(ctx, payload.date, timezone)
    try:
        ctx.tracker.start(schedule, payload.table_id, payload.time)
    except DragError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _state(ctx)


@router.post("/drag/hover", response_model=VerdictOut)
async def hover(payload: HoverIn, ctx: DashboardContext = Depends(get_context)) -> VerdictOut:
    session = _active_session(ctx)
    schedule = await _session_schedule(ctx, session)
    profile = await get_profile(ctx)
    verdict = ctx.tracker.hover(schedule, profile, payload.table_id, payload.time)
    return VerdictOut.from_verdict(verdict)


@router.post("/drag/drop", response_model=DropOut)
async def drop(payload: DropIn, ctx: DashboardContext = Depends(get_context)) -> DropOut:
    session = _active_session(ctx)
    schedule = await _session_schedule(ctx, session)
    profile = await get_profile(ctx)

    try:
        decision = ctx.tracker.drop(schedule, profile, payload.table_id, payload.time)
    except DragError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    verdict = VerdictOut.from_verdict(decision.verdict) if decision.verdict else None
    if not decision.commit:
        return DropOut(issued=False, state=ctx.tracker.state, verdict=verdict)

    try:
        outcome = await ctx.coordinator.move(decision.session, decision.target.table_id, decision.target.time)
    except ReservationNotFound as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DragError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except UpstreamError as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
    return DropOut(issued=True, state=ctx.tracker.state, verdict=verdict, outcome=OutcomeOut.from_outcome(outcome))


@router.post("/drag/cancel", response_model=DragStateOut)
async def cancel_drag(ctx: DashboardContext = Depends(get_context)) -> DragStateOut:
    ctx.tracker.cancel()
    return _state(ctx)
