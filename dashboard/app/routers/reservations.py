from fastapi import APIRouter, Depends, HTTPException, status

from dashboard.app.core.context import DashboardContext, get_context
from dashboard.app.routers.schedule import resolve_timezone
from dashboard.app.routers.schemas import OutcomeOut, QuickMoveIn, ReservationActionIn
from dashboard.app.services.errors import ReservationBusy, ReservationNotFound, ScheduleLoadError, UpstreamError


router = APIRouter()


@router.post("/reservations/{reservation_id}/cancel", response_model=OutcomeOut)
async def cancel_reservation(
    reservation_id: int,
    payload: ReservationActionIn,
    ctx: DashboardContext = Depends(get_context),
) -> OutcomeOut:
    timezone = await resolve_timezone(ctx, payload.timezone)
    try:
        outcome = await ctx.coordinator.cancel(payload.date, timezone, reservation_id)
    except ReservationBusy as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return OutcomeOut.from_outcome(outcome)


@router.post("/reservations/{reservation_id}/quick-move", response_model=OutcomeOut)
async def quick_move(
    reservation_id: int,
    payload: QuickMoveIn,
    ctx: DashboardContext = Depends(get_context),
) -> OutcomeOut:
    timezone = await resolve_timezone(ctx, payload.timezone)
    try:
        outcome = await ctx.coordinator.quick_move(payload.date, timezone, reservation_id, payload.direction)
    except ReservationBusy as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ReservationNotFound as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (ScheduleLoadError, UpstreamError) as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return OutcomeOut.from_outcome(outcome)
