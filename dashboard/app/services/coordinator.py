import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Literal

from dashboard.app.services import timeslots
from dashboard.app.services.drag import DragTracker
from dashboard.app.services.errors import ReservationBusy, ReservationNotFound, UpstreamError
from dashboard.app.services.models import DragSession, ReservationSummary, Schedule
from dashboard.app.services.notifications import Notifier
from dashboard.app.services.schedule_cache import ScheduleCache
from dashboard.app.services.validator import check_placement

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    REJECTED = "rejected"


@dataclass
class MutationOutcome:
    status: OutcomeStatus
    reservation_id: int
    message: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.COMMITTED


def clear_reservation(
    schedule: Schedule,
    reservation_id: int,
    table_id: int | None = None,
    times: set[str] | None = None,
) -> Schedule:
    for slot in schedule.slots:
        if times is not None and slot.time not in times:
            continue
        for index, table in enumerate(slot.tables):
            if table.reservation is None or table.reservation.id != reservation_id:
                continue
            if table_id is not None and table.id != table_id:
                continue
            slot.tables[index] = table.model_copy(update={"reservation": None, "status": "available"})
    return schedule


def place_reservation(
    schedule: Schedule,
    reservation: ReservationSummary,
    table_id: int,
    times: set[str],
    label: str,
) -> Schedule:
    placed = reservation.model_copy(update={"time_slot": label})
    for slot in schedule.slots:
        if slot.time not in times:
            continue
        for index, table in enumerate(slot.tables):
            if table.id == table_id:
                slot.tables[index] = table.model_copy(update={"status": "reserved", "reservation": placed})
    return schedule


def move_patch(
    reservation: ReservationSummary,
    *,
    source_table_id: int,
    source_time: str,
    table_id: int,
    time: str,
    duration_minutes: int,
) -> Callable[[Schedule], Schedule]:
    count = timeslots.duration_slot_count(duration_minutes)
    source_times = set(timeslots.window(source_time, count))
    target_times = set(timeslots.window(time, count))
    label = timeslots.slot_range_label(time, duration_minutes)

    def apply(schedule: Schedule) -> Schedule:
        clear_reservation(schedule, reservation.id, source_table_id, source_times)
        return place_reservation(schedule, reservation, table_id, target_times, label)

    return apply


class MutationCoordinator:
    """Applies reservation changes optimistically and reconciles with the upstream answer."""

    def __init__(self, cache: ScheduleCache, tracker: DragTracker, notifier: Notifier) -> None:
        self.cache = cache
        self.tracker = tracker
        self.notifier = notifier

    async def run(
        self,
        *,
        day: date,
        timezone: str,
        reservation_id: int,
        optimistic: Callable[[Schedule], Schedule],
        request: Callable[[], Awaitable[object]],
        success: tuple[str, str],
        failure_title: str,
        claimed: bool = False,
    ) -> MutationOutcome:
        if not claimed:
            self.tracker.claim(reservation_id)
        try:
            # snapshot and patch happen in the same tick as the claim
            patched = self.cache.get(day, timezone) is not None
            snapshot = self.cache.patch(day, timezone, optimistic)
            try:
                await request()
            except UpstreamError as exc:
                if patched:
                    self.cache.restore(day, timezone, snapshot)
                logger.info("Rolled back reservation %s on %s: %s", reservation_id, day, exc)
                self.notifier.error(failure_title, exc.message or "Please try again")
                return MutationOutcome(
                    OutcomeStatus.ROLLED_BACK, reservation_id, exc.message, error=type(exc).__name__
                )

            self.cache.invalidate_reservations(timezone)
            self.cache.invalidate(day, timezone)
            logger.info("Committed change to reservation %s on %s", reservation_id, day)
            self.notifier.success(*success)
            return MutationOutcome(OutcomeStatus.COMMITTED, reservation_id, success[1])
        finally:
            self.tracker.settle(reservation_id)

    async def move(self, session: DragSession, table_id: int, time: str) -> MutationOutcome:
        """Commit a drop. Takes over the claim ``DragTracker.drop`` made for the reservation."""
        try:
            schedule = self.cache.get(session.date, session.timezone)
            located = schedule.locate(session.reservation_id, session.source_table_id) if schedule else None
            if located is None:
                raise ReservationNotFound(f"Reservation {session.reservation_id} is no longer on the schedule")
            source, source_time = located
            profile = await self.cache.profile()
        except Exception:
            self.tracker.settle(session.reservation_id)
            raise

        reservation = source.reservation
        target = schedule.cell(table_id, time)
        table_name = target.name if target is not None else f"Table {table_id}"

        return await self.run(
            day=session.date,
            timezone=session.timezone,
            reservation_id=reservation.id,
            optimistic=move_patch(
                reservation,
                source_table_id=session.source_table_id,
                source_time=source_time,
                table_id=table_id,
                time=time,
                duration_minutes=profile.duration_for(reservation),
            ),
            request=lambda: self.cache.upstream.move_reservation(
                reservation.id, table_id=table_id, time=time, day=session.date, timezone=session.timezone
            ),
            success=("Reservation Updated", f"Reservation moved to {time} ({table_name})"),
            failure_title="Failed to move reservation",
            claimed=True,
        )

    async def cancel(self, day: date, timezone: str, reservation_id: int) -> MutationOutcome:
        return await self.run(
            day=day,
            timezone=timezone,
            reservation_id=reservation_id,
            optimistic=lambda schedule: clear_reservation(schedule, reservation_id),
            request=lambda: self.cache.upstream.cancel_reservation(reservation_id, timezone=timezone),
            success=("Reservation Cancelled", "Successfully cancelled reservation."),
            failure_title="Cancellation Failed",
        )

    async def quick_move(
        self,
        day: date,
        timezone: str,
        reservation_id: int,
        direction: Literal["up", "down"],
    ) -> MutationOutcome:
        """Shift a reservation one hour earlier ("up") or later ("down") on its table."""
        if self.tracker.is_pending(reservation_id):
            raise ReservationBusy(f"Reservation {reservation_id} is still being moved")

        schedule = self.cache.get(day, timezone) or await self.cache.load(day, timezone)
        located = schedule.locate(reservation_id)
        if located is None:
            raise ReservationNotFound(f"Reservation {reservation_id} is not on the {day} schedule")
        cell, current_time = located
        reservation = cell.reservation

        profile = await self.cache.profile()
        duration = profile.duration_for(reservation)
        new_time = timeslots.shift(current_time, -1 if direction == "up" else 1)
        verdict = check_placement(
            schedule,
            profile,
            reservation_id=reservation_id,
            guest_count=reservation.guest_count,
            duration_minutes=duration,
            table_id=cell.id,
            time=new_time,
        )
        if not verdict.valid:
            self.notifier.error("Move Failed", verdict.detail)
            return MutationOutcome(OutcomeStatus.REJECTED, reservation_id, verdict.detail, error=verdict.reason.value)

        return await self.run(
            day=day,
            timezone=timezone,
            reservation_id=reservation_id,
            optimistic=move_patch(
                reservation,
                source_table_id=cell.id,
                source_time=current_time,
                table_id=cell.id,
                time=new_time,
                duration_minutes=duration,
            ),
            request=lambda: self.cache.upstream.move_reservation(
                reservation_id, table_id=cell.id, time=new_time, day=day, timezone=timezone
            ),
            success=(
                "Reservation Moved",
                f"Moved reservation {'earlier' if direction == 'up' else 'later'} by 1 hour.",
            ),
            failure_title="Move Failed",
        )
