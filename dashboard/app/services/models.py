from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from dashboard.app.core.config import settings
from dashboard.app.services import timeslots

TableStatus = Literal["available", "occupied", "reserved", "maintenance", "unavailable"]

BOOKED_STATUSES = frozenset({"occupied", "reserved"})
INACTIVE_RESERVATION_STATUSES = frozenset({"canceled", "completed", "no_show"})
MAX_TABLE_GUESTS = 50


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ReservationSummary(WireModel):
    id: int
    guest_name: str
    guest_count: int = Field(ge=1)
    time_slot: str | None = None
    phone: str | None = None
    status: str = "confirmed"
    duration: int | None = Field(default=None, ge=1)

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_RESERVATION_STATUSES


class TableCell(WireModel):
    id: int
    name: str
    min_guests: int = Field(default=1, ge=1)
    max_guests: int = Field(default=4, ge=1, le=MAX_TABLE_GUESTS)
    status: TableStatus = "available"
    reservation: ReservationSummary | None = None

    @model_validator(mode="after")
    def _check_booking(self) -> "TableCell":
        if self.max_guests < self.min_guests:
            raise ValueError(f"Table {self.id}: maxGuests is below minGuests")
        if self.reservation is not None and self.status not in BOOKED_STATUSES:
            raise ValueError(f"Table {self.id}: reservation attached to a {self.status} cell")
        if self.reservation is None and self.status in BOOKED_STATUSES:
            raise ValueError(f"Table {self.id}: {self.status} cell without a reservation")
        return self

    @property
    def active_reservation(self) -> ReservationSummary | None:
        if self.reservation is not None and self.reservation.is_active:
            return self.reservation
        return None

    def fits(self, guest_count: int) -> bool:
        return self.min_guests <= guest_count <= self.max_guests


class ScheduleSlot(WireModel):
    time: str
    tables: list[TableCell] = Field(default_factory=list)


class Schedule(WireModel):
    date: date
    timezone: str
    slots: list[ScheduleSlot] = Field(default_factory=list)

    @property
    def times(self) -> list[str]:
        return [slot.time for slot in self.slots]

    def slot(self, time: str) -> ScheduleSlot | None:
        for slot in self.slots:
            if slot.time == time:
                return slot
        return None

    def cell(self, table_id: int, time: str) -> TableCell | None:
        slot = self.slot(time)
        if slot is None:
            return None
        for table in slot.tables:
            if table.id == table_id:
                return table
        return None

    def locate(self, reservation_id: int, table_id: int | None = None) -> tuple[TableCell, str] | None:
        """First (cell, time) holding the reservation, in service-day order.

        That first cell is where the reservation starts; pass ``table_id`` to
        look on one table only.
        """
        for slot in self.slots:
            for table in slot.tables:
                if table_id is not None and table.id != table_id:
                    continue
                if table.reservation is not None and table.reservation.id == reservation_id:
                    return table, slot.time
        return None


class RestaurantProfile(WireModel):
    id: int | None = None
    name: str | None = None
    opening_time: str = "10:00"
    closing_time: str = "22:00"
    avg_reservation_duration: int = Field(default=settings.DEFAULT_RESERVATION_MINUTES, ge=1)
    timezone: str = settings.DEFAULT_TIMEZONE

    @field_validator("opening_time", "closing_time")
    @classmethod
    def _hh_mm(cls, value: str) -> str:
        # Postgres time columns arrive as HH:MM:SS
        value = value[:5]
        timeslots.to_minutes(value)
        return value

    @field_validator("avg_reservation_duration", mode="before")
    @classmethod
    def _default_duration(cls, value):
        return value or settings.DEFAULT_RESERVATION_MINUTES

    @field_validator("timezone", mode="before")
    @classmethod
    def _default_timezone(cls, value):
        return value or settings.DEFAULT_TIMEZONE

    @property
    def is_overnight(self) -> bool:
        return timeslots.is_overnight(self.opening_time, self.closing_time)

    def time_slots(self) -> list[str]:
        return timeslots.generate_time_slots(
            self.opening_time,
            self.closing_time,
            self.avg_reservation_duration,
            self.timezone,
        )

    def duration_for(self, reservation: ReservationSummary) -> int:
        return reservation.duration or self.avg_reservation_duration


class DropTarget(WireModel):
    table_id: int
    time: str


class DragSession(WireModel):
    """One pointer gesture moving a reservation; never persisted.

    ``source_time`` is where the reservation starts, whichever of its cells
    was grabbed.
    """

    reservation_id: int
    guest_name: str
    guest_count: int
    source_table_id: int
    source_time: str
    date: date
    timezone: str
    hover: DropTarget | None = None

    @property
    def source(self) -> DropTarget:
        return DropTarget(table_id=self.source_table_id, time=self.source_time)
