import logging
from dataclasses import dataclass
from enum import Enum

from dashboard.app.services.errors import DragError, ReservationBusy
from dashboard.app.services.models import DragSession, DropTarget, RestaurantProfile, Schedule
from dashboard.app.services.validator import DropVerdict, check_drop

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"


@dataclass
class DropDecision:
    session: DragSession
    target: DropTarget | None = None
    verdict: DropVerdict | None = None

    @property
    def commit(self) -> bool:
        return self.verdict is not None and self.verdict.valid


class DragTracker:
    """Tracks the gesture in progress and the reservations whose moves are in flight.

    A single gesture at a time; moves of different reservations may be
    committing concurrently, but a reservation cannot be picked up again
    until its own move settles.
    """

    def __init__(self) -> None:
        self.session: DragSession | None = None
        self.pending: set[int] = set()

    @property
    def state(self) -> DragState:
        if self.session is not None:
            return DragState.DRAGGING
        if self.pending:
            return DragState.COMMITTING
        return DragState.IDLE

    @property
    def is_dragging(self) -> bool:
        return self.session is not None

    def is_pending(self, reservation_id: int) -> bool:
        return reservation_id in self.pending

    def _require_session(self) -> DragSession:
        if self.session is None:
            raise DragError("No drag in progress")
        return self.session

    def start(self, schedule: Schedule, table_id: int, time: str) -> DragSession:
        if self.session is not None:
            raise DragError("A drag is already in progress")

        cell = schedule.cell(table_id, time)
        if cell is None:
            raise DragError(f"No table {table_id} at {time}")
        reservation = cell.active_reservation
        if reservation is None:
            raise DragError("Only cells holding an active reservation can be dragged")
        if self.is_pending(reservation.id):
            raise ReservationBusy(f"Reservation {reservation.id} is still being moved")

        _, start_time = schedule.locate(reservation.id, table_id)
        self.session = DragSession(
            reservation_id=reservation.id,
            guest_name=reservation.guest_name,
            guest_count=reservation.guest_count,
            source_table_id=table_id,
            source_time=start_time,
            date=schedule.date,
            timezone=schedule.timezone,
        )
        return self.session

    def hover(self, schedule: Schedule, profile: RestaurantProfile, table_id: int, time: str) -> DropVerdict:
        session = self._require_session()
        session.hover = DropTarget(table_id=table_id, time=time)
        return check_drop(schedule, session, table_id, time, profile)

    def drop(
        self,
        schedule: Schedule,
        profile: RestaurantProfile,
        table_id: int | None = None,
        time: str | None = None,
    ) -> DropDecision:
        """End the gesture.

        A committable drop claims the reservation before returning, so the
        tracker goes straight from dragging to committing. The caller must
        hand that claim to ``MutationCoordinator.move``, which settles it.
        """
        session = self._require_session()
        self.session = None

        if table_id is None or time is None:
            logger.debug("Reservation %s dropped outside the schedule", session.reservation_id)
            return DropDecision(session)

        target = DropTarget(table_id=table_id, time=time)
        verdict = check_drop(schedule, session, table_id, time, profile)
        if not verdict.valid:
            logger.debug("Drop of reservation %s ignored: %s", session.reservation_id, verdict.reason)
            return DropDecision(session, target, verdict)

        self.claim(session.reservation_id)
        return DropDecision(session, target, verdict)

    def cancel(self) -> DragSession | None:
        session, self.session = self.session, None
        return session

    def claim(self, reservation_id: int) -> None:
        if reservation_id in self.pending:
            raise ReservationBusy(f"Reservation {reservation_id} is still being moved")
        self.pending.add(reservation_id)

    def settle(self, reservation_id: int) -> None:
        self.pending.discard(reservation_id)
