from datetime import date, datetime
from typing import Literal

from pydantic import Field

from dashboard.app.services.coordinator import MutationOutcome
from dashboard.app.services.drag import DragState
from dashboard.app.services.models import DragSession, RestaurantProfile, ScheduleSlot, WireModel
from dashboard.app.services.validator import DropVerdict

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ProfileOut(WireModel):
    profile: RestaurantProfile
    overnight: bool
    time_slots: list[str]


class ScheduleOut(WireModel):
    date: date
    timezone: str
    overnight: bool
    time_slots: list[str]
    slots: list[ScheduleSlot]


class RefreshIn(WireModel):
    date: date
    timezone: str | None = None


class RefreshOut(WireModel):
    refreshed: bool
    schedule: ScheduleOut | None = None


class DragStartIn(WireModel):
    date: date
    timezone: str | None = None
    table_id: int
    time: str = Field(pattern=TIME_PATTERN)


class HoverIn(WireModel):
    table_id: int
    time: str = Field(pattern=TIME_PATTERN)


class DropIn(WireModel):
    # both omitted: dropped outside any cell
    table_id: int | None = None
    time: str | None = Field(default=None, pattern=TIME_PATTERN)


class VerdictOut(WireModel):
    valid: bool
    affordance: Literal["accept", "reject"]
    reason: str | None = None
    detail: str | None = None

    @classmethod
    def from_verdict(cls, verdict: DropVerdict) -> "VerdictOut":
        return cls(
            valid=verdict.valid,
            affordance=verdict.affordance,
            reason=verdict.reason.value if verdict.reason else None,
            detail=verdict.detail,
        )


class OutcomeOut(WireModel):
    status: str
    reservation_id: int
    message: str
    error: str | None = None

    @classmethod
    def from_outcome(cls, outcome: MutationOutcome) -> "OutcomeOut":
        return cls(
            status=outcome.status.value,
            reservation_id=outcome.reservation_id,
            message=outcome.message,
            error=outcome.error,
        )


class DragStateOut(WireModel):
    state: DragState
    session: DragSession | None = None
    pending: list[int] = Field(default_factory=list)


class DropOut(WireModel):
    issued: bool
    state: DragState
    verdict: VerdictOut | None = None
    outcome: OutcomeOut | None = None


class ReservationActionIn(WireModel):
    date: date
    timezone: str | None = None


class QuickMoveIn(ReservationActionIn):
    direction: Literal["up", "down"]


class NoticeOut(WireModel):
    level: Literal["success", "error"]
    title: str
    message: str
    created_at: datetime
