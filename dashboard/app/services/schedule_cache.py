import asyncio
import logging
from collections.abc import Callable
from datetime import date
from operator import attrgetter

from pydantic import ValidationError

from dashboard.app.core.config import settings
from dashboard.app.services import timeslots
from dashboard.app.services.errors import ScheduleLoadError, UpstreamError
from dashboard.app.services.models import RestaurantProfile, Schedule, ScheduleSlot, TableCell
from dashboard.app.services.query_cache import QueryCache
from dashboard.app.services.upstream import UpstreamAPI

logger = logging.getLogger(__name__)

PROFILE_KEY = ("profile",)


def _sorted_tables(tables: list[TableCell]) -> list[TableCell]:
    return sorted(tables, key=attrgetter("id"))


class ScheduleCache:
    """Latest known table/time-slot matrix per (date, timezone)."""

    def __init__(
        self,
        upstream: UpstreamAPI,
        queries: QueryCache | None = None,
        *,
        fetch_mode: str = settings.SCHEDULE_FETCH_MODE,
        stale_seconds: float = settings.SCHEDULE_STALE_SECONDS,
        profile_stale_seconds: float = settings.PROFILE_STALE_SECONDS,
        load_retries: int = settings.SCHEDULE_LOAD_RETRIES,
        overnight_load_retries: int = settings.OVERNIGHT_LOAD_RETRIES,
    ) -> None:
        self.upstream = upstream
        self.queries = queries or QueryCache()
        self.fetch_mode = fetch_mode
        self.stale_seconds = stale_seconds
        self.profile_stale_seconds = profile_stale_seconds
        self.load_retries = load_retries
        self.overnight_load_retries = overnight_load_retries

    @staticmethod
    def key(day: date, timezone: str) -> tuple:
        return ("schedule", day, timezone)

    async def profile(self, *, force: bool = False) -> RestaurantProfile:
        if not force and self.queries.is_fresh(PROFILE_KEY, self.profile_stale_seconds):
            return self.queries.get(PROFILE_KEY)
        profile = await self.upstream.get_profile()
        self.queries.set(PROFILE_KEY, profile)
        return profile

    def get(self, day: date, timezone: str) -> Schedule | None:
        return self.queries.get(self.key(day, timezone))

    def loaded_keys(self) -> list[tuple[date, str]]:
        return [(day, timezone) for _, day, timezone in self.queries.keys(("schedule",))]

    async def load(self, day: date, timezone: str, *, force: bool = False) -> Schedule:
        key = self.key(day, timezone)
        if not force and self.queries.is_fresh(key, self.stale_seconds):
            return self.queries.get(key)

        try:
            profile = await self.profile()
        except (UpstreamError, ValidationError) as exc:
            raise ScheduleLoadError(
                f"Could not load restaurant profile: {exc}", date=day.isoformat(), timezone=timezone
            ) from exc

        generation = self.queries.generation(key)
        schedule = await self._fetch_with_retries(day, timezone, profile)
        if not self.queries.set(key, schedule, generation=generation):
            logger.debug("Discarding schedule fetch for %s %s, cache was patched meanwhile", day, timezone)
            return self.queries.get(key)
        return schedule

    async def _fetch_with_retries(self, day: date, timezone: str, profile: RestaurantProfile) -> Schedule:
        retries = self.overnight_load_retries if profile.is_overnight else self.load_retries
        for attempt in range(retries):
            try:
                return await self._fetch(day, timezone, profile)
            except ScheduleLoadError as exc:
                logger.warning("Schedule load for %s %s failed (attempt %d): %s", day, timezone, attempt + 1, exc)
        return await self._fetch(day, timezone, profile)

    async def _fetch(self, day: date, timezone: str, profile: RestaurantProfile) -> Schedule:
        try:
            times = timeslots.generate_time_slots(
                profile.opening_time, profile.closing_time, profile.avg_reservation_duration, timezone
            )
        except ValueError as exc:
            raise ScheduleLoadError(str(exc), date=day.isoformat(), timezone=timezone) from exc
        if not times:
            raise ScheduleLoadError(
                "Restaurant hours leave no bookable time slots", date=day.isoformat(), timezone=timezone
            )

        if self.fetch_mode == "aggregate":
            try:
                fetched = await self.upstream.get_day_schedule(day, timezone)
            except (UpstreamError, ValidationError) as exc:
                raise ScheduleLoadError(
                    f"Failed to fetch schedule: {exc}", date=day.isoformat(), timezone=timezone
                ) from exc
            slots = [ScheduleSlot(time=slot.time, tables=_sorted_tables(slot.tables)) for slot in fetched]
            return Schedule(date=day, timezone=timezone, slots=slots)

        results = await asyncio.gather(
            *(self.upstream.get_slot_availability(day, time, timezone) for time in times),
            return_exceptions=True,
        )

        slots: list[ScheduleSlot] = []
        failures = 0
        for time, result in zip(times, results):
            if isinstance(result, (UpstreamError, ValidationError)):
                if not profile.is_overnight:
                    raise ScheduleLoadError(
                        f"Failed to fetch availability for {time}: {result}",
                        date=day.isoformat(),
                        timezone=timezone,
                    ) from result
                failures += 1
                logger.warning("Availability for %s %s failed, showing the slot empty: %s", day, time, result)
                slots.append(ScheduleSlot(time=time, tables=[]))
            elif isinstance(result, BaseException):
                raise result
            else:
                slots.append(ScheduleSlot(time=time, tables=_sorted_tables(result)))

        if failures == len(times):
            raise ScheduleLoadError("All time slots failed to load", date=day.isoformat(), timezone=timezone)
        return Schedule(date=day, timezone=timezone, slots=slots)

    def invalidate(self, day: date, timezone: str) -> None:
        self.queries.invalidate(self.key(day, timezone))

    def patch(self, day: date, timezone: str, mutator: Callable[[Schedule], Schedule]) -> Schedule | None:
        return self.queries.patch(self.key(day, timezone), mutator)

    def restore(self, day: date, timezone: str, snapshot: Schedule | None) -> None:
        self.queries.restore(self.key(day, timezone), snapshot)

    async def reservations(self, timezone: str, day: date | None = None) -> list[dict]:
        key = ("reservations", timezone, day)
        if self.queries.is_fresh(key, self.stale_seconds):
            return self.queries.get(key)
        data = await self.upstream.list_reservations(timezone, day)
        self.queries.set(key, data)
        return data

    def invalidate_reservations(self, timezone: str) -> None:
        self.queries.invalidate(("reservations", timezone))

    async def refresh_all(self, is_blocked: Callable[[], bool] | None = None) -> int:
        refreshed = 0
        for day, timezone in self.loaded_keys():
            if is_blocked is not None and is_blocked():
                logger.debug("Schedule refresh suppressed while a drag is active")
                break
            try:
                await self.load(day, timezone, force=True)
            except ScheduleLoadError as exc:
                logger.warning("Background refresh of %s %s failed: %s", day, timezone, exc)
                continue
            refreshed += 1
        return refreshed

    async def run_refresher(self, interval: float, is_blocked: Callable[[], bool]) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.refresh_all(is_blocked)
