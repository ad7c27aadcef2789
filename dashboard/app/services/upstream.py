"""Thin async client for the restaurant platform's REST API."""
from datetime import date
from typing import Any

import httpx

from dashboard.app.services.errors import (
    ReservationConflict,
    UpstreamError,
    UpstreamServerError,
    UpstreamUnavailable,
    UpstreamValidationError,
)
from dashboard.app.services.models import RestaurantProfile, ScheduleSlot, TableCell


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return f"Upstream responded with {response.status_code}"


def _raise_for_status(response: httpx.Response) -> None:
    code = response.status_code
    if code < 400:
        return
    message = _error_message(response)
    if code == 409:
        raise ReservationConflict(message)
    if code in (400, 422):
        raise UpstreamValidationError(message, status_code=code)
    if code >= 500:
        raise UpstreamServerError(message, status_code=code)
    raise UpstreamError(message, status_code=code)


class UpstreamAPI:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(f"Timed out calling {path}") from exc
        except httpx.TransportError as exc:
            raise UpstreamUnavailable(f"Could not reach upstream: {exc}") from exc

        _raise_for_status(response)
        if not response.content:
            return None
        return response.json()

    async def get_profile(self) -> RestaurantProfile:
        data = await self._request("GET", "/api/restaurants/profile")
        return RestaurantProfile.model_validate(data)

    async def get_slot_availability(self, day: date, time: str, timezone: str) -> list[TableCell]:
        data = await self._request(
            "GET",
            "/api/tables/availability",
            params={"date": day.isoformat(), "time": time, "timezone": timezone},
        )
        if not isinstance(data, list):
            return []
        return [TableCell.model_validate(item) for item in data]

    async def get_day_schedule(self, day: date, timezone: str) -> list[ScheduleSlot]:
        data = await self._request(
            "GET",
            "/api/tables/availability/schedule",
            params={"date": day.isoformat(), "timezone": timezone},
        )
        return [ScheduleSlot.model_validate(item) for item in data or []]

    async def list_reservations(self, timezone: str, day: date | None = None) -> list[dict]:
        params = {"timezone": timezone}
        if day is not None:
            params["date"] = day.isoformat()
        return await self._request("GET", "/api/reservations", params=params) or []

    async def move_reservation(
        self,
        reservation_id: int,
        *,
        table_id: int,
        time: str,
        day: date,
        timezone: str,
    ) -> dict:
        return await self._request(
            "PATCH",
            f"/api/reservations/{reservation_id}",
            json={"tableId": table_id, "time": time, "date": day.isoformat(), "timezone": timezone},
        )

    async def cancel_reservation(self, reservation_id: int, *, timezone: str) -> dict:
        return await self._request(
            "PATCH",
            f"/api/reservations/{reservation_id}",
            json={"status": "canceled", "timezone": timezone},
        )
