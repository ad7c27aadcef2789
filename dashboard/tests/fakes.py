import asyncio
import json
from datetime import date

import httpx

from dashboard.app.services import timeslots
from dashboard.app.services.models import Schedule, ScheduleSlot, TableCell
from dashboard.app.services.schedule_cache import ScheduleCache
from dashboard.app.services.upstream import UpstreamAPI

DAY = date(2025, 1, 10)
TZ = "Europe/Belgrade"


class FakeRestaurantAPI:
    """In-memory stand-in for the restaurant platform, served through httpx.MockTransport."""

    def __init__(self, opening: str = "17:00", closing: str = "23:00", duration: int = 120) -> None:
        self.profile = {
            "id": 1,
            "name": "Demo Bistro",
            "openingTime": opening,
            "closingTime": closing,
            "avgReservationDuration": duration,
            "timezone": TZ,
        }
        self.tables: dict[int, dict] = {}
        self.reservations: dict[int, dict] = {}
        self.requests: list[httpx.Request] = []
        self.failing_slots: set[str] = set()
        self.patch_error: tuple[int, str] | str | None = None
        self.gate: asyncio.Event | None = None
        self.gate_paths: tuple[str, ...] = ()
        self.waiting = False
        self.down = False

    def add_table(self, table_id: int, name: str, min_guests: int, max_guests: int) -> None:
        self.tables[table_id] = {"id": table_id, "name": name, "minGuests": min_guests, "maxGuests": max_guests}

    def add_reservation(
        self,
        reservation_id: int,
        table_id: int,
        time: str,
        guest_count: int,
        *,
        day: date = DAY,
        guest_name: str | None = None,
        status: str = "confirmed",
        duration: int | None = None,
    ) -> None:
        self.reservations[reservation_id] = {
            "id": reservation_id,
            "tableId": table_id,
            "date": day.isoformat(),
            "time": time,
            "guestName": guest_name or f"Guest {reservation_id}",
            "guestCount": guest_count,
            "phone": f"+381600000{reservation_id}",
            "status": status,
            "duration": duration,
        }

    def _duration(self, reservation: dict) -> int:
        return reservation["duration"] or self.profile["avgReservationDuration"]

    def _occupant(self, table_id: int, day: str, time: str, ignore: int | None = None) -> dict | None:
        for reservation in self.reservations.values():
            if reservation["status"] in ("canceled", "completed", "no_show"):
                continue
            if reservation["tableId"] != table_id or reservation["date"] != day or reservation["id"] == ignore:
                continue
            count = timeslots.duration_slot_count(self._duration(reservation))
            if time in timeslots.window(reservation["time"], count):
                return reservation
        return None

    def availability(self, day: str, time: str) -> list[dict]:
        cells = []
        # newest tables first so clients have to sort
        for table_id in sorted(self.tables, reverse=True):
            cell = dict(self.tables[table_id], status="available", reservation=None)
            occupant = self._occupant(table_id, day, time)
            if occupant is not None:
                cell["status"] = "reserved"
                cell["reservation"] = {
                    "id": occupant["id"],
                    "guestName": occupant["guestName"],
                    "guestCount": occupant["guestCount"],
                    "timeSlot": timeslots.slot_range_label(occupant["time"], self._duration(occupant)),
                    "phone": occupant["phone"],
                    "status": occupant["status"],
                    "duration": occupant["duration"],
                }
            cells.append(cell)
        return cells

    def schedule(self, day: date = DAY, timezone: str = TZ) -> Schedule:
        times = timeslots.generate_time_slots(
            self.profile["openingTime"], self.profile["closingTime"], self.profile["avgReservationDuration"], timezone
        )
        slots = [
            ScheduleSlot(
                time=time,
                tables=sorted(
                    (TableCell.model_validate(cell) for cell in self.availability(day.isoformat(), time)),
                    key=lambda cell: cell.id,
                ),
            )
            for time in times
        ]
        return Schedule(date=day, timezone=timezone, slots=slots)

    def patches(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.method == "PATCH"]

    def _patch(self, reservation_id: int, body: dict) -> httpx.Response:
        if self.patch_error == "network":
            self.patch_error = None
            raise httpx.ConnectError("connection refused")
        if self.patch_error is not None:
            code, message = self.patch_error
            self.patch_error = None
            return httpx.Response(code, json={"message": message})

        reservation = self.reservations.get(reservation_id)
        if reservation is None:
            return httpx.Response(404, json={"message": "Reservation not found"})
        if body.get("status"):
            reservation["status"] = body["status"]
            return httpx.Response(200, json=reservation)

        count = timeslots.duration_slot_count(self._duration(reservation))
        for time in timeslots.window(body["time"], count):
            if self._occupant(body["tableId"], body["date"], time, ignore=reservation_id):
                return httpx.Response(409, json={"message": "Slot already booked"})
        reservation.update(tableId=body["tableId"], time=body["time"], date=body["date"])
        return httpx.Response(200, json=reservation)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            return httpx.Response(503, json={"message": "Maintenance"})
        path = request.url.path
        if self.gate is not None and path.startswith(self.gate_paths):
            self.waiting = True
            await self.gate.wait()
            self.waiting = False

        params = request.url.params
        if path == "/api/restaurants/profile":
            return httpx.Response(200, json=self.profile)
        if path == "/api/tables/availability":
            if params["time"] in self.failing_slots:
                return httpx.Response(500, json={"message": "Internal error"})
            return httpx.Response(200, json=self.availability(params["date"], params["time"]))
        if path == "/api/tables/availability/schedule":
            schedule = self.schedule(date.fromisoformat(params["date"]), params["timezone"])
            return httpx.Response(200, json=schedule.model_dump(mode="json", by_alias=True)["slots"])
        if path == "/api/reservations" and request.method == "GET":
            return httpx.Response(200, json=list(self.reservations.values()))
        if path.startswith("/api/reservations/") and request.method == "PATCH":
            return self._patch(int(path.rsplit("/", 1)[1]), json.loads(request.content))
        return httpx.Response(404, json={"message": "Not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_cache(api: FakeRestaurantAPI, **kwargs) -> ScheduleCache:
    kwargs.setdefault("load_retries", 0)
    kwargs.setdefault("overnight_load_retries", 0)
    client = httpx.AsyncClient(transport=api.transport(), base_url="http://upstream.test")
    return ScheduleCache(UpstreamAPI(client), **kwargs)
