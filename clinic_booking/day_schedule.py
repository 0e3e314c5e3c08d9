"""Everything the day grid needs for one date, in one call."""
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from clinic_booking.api_client import ClinicApiClient
from clinic_booking.availability import HourStatus, classify_hours, doctor_cards
from clinic_booking.logging_config import bind_trace_id, clear_trace_id, get_logger
from clinic_booking.schedule import (
    Roster,
    ScheduleSourceSelector,
    js_weekday,
    load_roster,
    roster_summary,
    weekday_name,
)

logger = get_logger(__name__)


class HourNotAvailable(Exception):
    """Raised when picking an hour the grid shows as blocked."""

    def __init__(self, hour: str, status: Optional[HourStatus]):
        reason = status.hint if status else "Not offered on this day"
        super().__init__(f"{hour}: {reason}")
        self.hour = hour
        self.status = status


@dataclass(frozen=True)
class DaySchedule:
    day: date
    weekday: str
    hours: List[str]
    statuses: Dict[str, HourStatus]
    doctors: List[Dict[str, object]]
    source: str
    is_fallback: bool
    roster_live: bool

    @property
    def has_doctors(self) -> bool:
        return bool(self.doctors)

    @property
    def available_hours(self) -> List[str]:
        return [hour for hour in self.hours if self.statuses[hour].selectable]


class DaySchedulePlanner:
    """Loads the roster, resolves the hours and maps availability for a date."""

    def __init__(self, client: ClinicApiClient, selector: Optional[ScheduleSourceSelector] = None):
        self.client = client
        self.selector = selector or ScheduleSourceSelector(client)

    async def plan(self, day: date, roster: Optional[Roster] = None) -> DaySchedule:
        bind_trace_id()
        try:
            if roster is None:
                roster = await load_roster(self.client)
            resolution = await self.selector.resolve(day, roster)
            weekday = js_weekday(day)

            schedule = DaySchedule(
                day=day,
                weekday=weekday_name(day),
                hours=resolution.hours,
                statuses=classify_hours(resolution.hours, roster.doctors, weekday, resolution.booked),
                doctors=doctor_cards(roster.doctors, weekday),
                source=resolution.source,
                is_fallback=resolution.is_fallback,
                roster_live=roster.live,
            )
            logger.info(
                "day_planned",
                date=day.isoformat(),
                source=schedule.source,
                available=len(schedule.available_hours),
                **roster_summary(roster),
            )
            return schedule
        finally:
            clear_trace_id()


def pick(schedule: DaySchedule, hour: str) -> str:
    """Return ``hour`` if it can be booked, else raise HourNotAvailable."""
    status = schedule.statuses.get(hour)
    if status is None or not status.selectable:
        raise HourNotAvailable(hour, status)
    return hour
