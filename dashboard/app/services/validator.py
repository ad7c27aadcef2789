"""Client-side drop checks.

These run on every hover and must stay side-effect free. They are only an
optimistic pre-flight: the upstream API still decides whether a move lands.
"""
from dataclasses import dataclass
from enum import Enum

from dashboard.app.services import timeslots
from dashboard.app.services.models import DragSession, RestaurantProfile, Schedule


class DropRejection(str, Enum):
    SAME_CELL = "same_cell"
    UNKNOWN_TARGET = "unknown_target"
    OUTSIDE_HOURS = "outside_hours"
    CONFLICT = "conflict"
    CAPACITY = "capacity"


@dataclass(frozen=True)
class DropVerdict:
    valid: bool
    reason: DropRejection | None = None
    detail: str | None = None

    @property
    def affordance(self) -> str:
        return "accept" if self.valid else "reject"


ACCEPT = DropVerdict(valid=True)


def _reject(reason: DropRejection, detail: str) -> DropVerdict:
    return DropVerdict(valid=False, reason=reason, detail=detail)


def check_placement(
    schedule: Schedule,
    profile: RestaurantProfile,
    *,
    reservation_id: int,
    guest_count: int,
    duration_minutes: int,
    table_id: int,
    time: str,
) -> DropVerdict:
    if not timeslots.fits_hours(time, duration_minutes, profile.opening_time, profile.closing_time):
        return _reject(
            DropRejection.OUTSIDE_HOURS,
            f"{timeslots.slot_range_label(time, duration_minutes)} is outside "
            f"operating hours ({profile.opening_time} - {profile.closing_time})",
        )

    target = schedule.cell(table_id, time)
    if target is None:
        return _reject(DropRejection.UNKNOWN_TARGET, f"No table {table_id} at {time}")

    for slot_time in timeslots.window(time, timeslots.duration_slot_count(duration_minutes)):
        cell = schedule.cell(table_id, slot_time)
        if cell is None:
            # unknown occupancy (e.g. a degraded overnight slot) counts as free; upstream has the final say
            continue
        occupant = cell.active_reservation
        if occupant is not None and occupant.id != reservation_id:
            return _reject(
                DropRejection.CONFLICT,
                f"{occupant.guest_name} already has {cell.name} at {slot_time}",
            )

    if not target.fits(guest_count):
        return _reject(
            DropRejection.CAPACITY,
            f"{target.name} cannot accommodate {guest_count} guests "
            f"({target.min_guests}-{target.max_guests})",
        )

    return ACCEPT


def check_drop(
    schedule: Schedule,
    session: DragSession,
    table_id: int,
    time: str,
    profile: RestaurantProfile,
) -> DropVerdict:
    if table_id == session.source_table_id and time == session.source_time:
        return _reject(DropRejection.SAME_CELL, "Dropped on its current cell")

    source = schedule.cell(session.source_table_id, session.source_time)
    duration = profile.avg_reservation_duration
    if source is not None and source.reservation is not None:
        duration = profile.duration_for(source.reservation)

    return check_placement(
        schedule,
        profile,
        reservation_id=session.reservation_id,
        guest_count=session.guest_count,
        duration_minutes=duration,
        table_id=table_id,
        time=time,
    )
