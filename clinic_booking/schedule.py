"""Which hours of a date are bookable, and where that answer came from.

Sources are tried in a fixed order, each one awaited before the next:

1. ``date``           hours precomputed by the backend for the date
2. ``weekday``        recurring hours for the date's weekday
3. ``doctor_shifts``  hours covered by each doctor's shifts
4. static default     07:00 .. 21:00

The first source returning a non-empty list wins. A source that raises and
a source that returns nothing are treated alike: the chain moves on. A day
whose hours are all booked is not empty; its booked hours travel with the
resolution. The static default guarantees a non-empty answer, flagged
``is_fallback``.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from clinic_booking import config
from clinic_booking.api_client import ClinicApiClient
from clinic_booking.availability import hours_covered_by_shifts
from clinic_booking.logging_config import get_logger
from clinic_booking.models import Doctor, normalize_time

logger = get_logger(__name__)

HourProvider = Callable[[date], Awaitable[Any]]

DEFAULT_SOURCE = "default"
HOUR_KEYS = ("hora", "hora_inicio", "time", "start_time")


def js_weekday(day: date) -> int:
    """Weekday in the backend's numbering: 0=Sunday ... 6=Saturday."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class ScheduleSource:
    """One named provider in the fallback chain."""
    name: str
    fetch: HourProvider


@dataclass(frozen=True)
class ScheduleResolution:
    hours: List[str]
    source: str
    is_fallback: bool
    booked: FrozenSet[str] = frozenset()


@dataclass
class Roster:
    """Doctors for a planning run and whether they came from the backend."""
    doctors: List[Doctor] = field(default_factory=list)
    live: bool = False
    failed_doctor_ids: List[Any] = field(default_factory=list)


def parse_hours(payload: Any) -> Tuple[List[str], Set[str]]:
    """
    Extract ``HH:MM`` strings from a backend hours payload.

    Accepts a list of strings or of objects carrying one of ``hora``,
    ``hora_inicio``, ``time`` or ``start_time``, optionally wrapped as
    ``{"horas": [...]}`` or ``{"data": [...]}``.

    Returns ``(hours, booked)``. ``hours`` is every hour the source offers
    for the day, de-duplicated and sorted, taken ones included. ``booked``
    holds the hours of entries marked ``disponible: false``.
    """
    if isinstance(payload, dict):
        payload = payload.get("horas") or payload.get("hours") or payload.get("data") or []
    if not isinstance(payload, list):
        return [], set()

    hours = set()
    booked = set()
    for entry in payload:
        taken = False
        if isinstance(entry, dict):
            taken = entry.get("disponible") is False or entry.get("available") is False
            entry = next((entry[key] for key in HOUR_KEYS if entry.get(key)), None)
        if not entry:
            continue
        try:
            hour = normalize_time(entry)
        except ValueError:
            logger.warning("schedule_hour_skipped", value=entry)
            continue
        hours.add(hour)
        if taken:
            booked.add(hour)
    return sorted(hours), booked


def normalize_hours(payload: Any) -> List[str]:
    """Every hour of ``payload``, booked or not. See :func:`parse_hours`."""
    return parse_hours(payload)[0]


async def load_roster(client: ClinicApiClient) -> Roster:
    """
    Fetch active doctors and their shifts; fall back to the demo roster.

    Shift calls run concurrently, one per doctor. A doctor whose call fails
    is kept with no shifts. If every call fails (or there are no doctors),
    the roster is not live.
    """
    try:
        doctors = await asyncio.to_thread(client.list_doctors, active=True)
    except Exception as exc:
        logger.warning("roster_unavailable", error=str(exc))
        doctors = []

    if not doctors:
        return Roster(doctors=[Doctor.from_api(d) for d in config.DEFAULT_DOCTORS], live=False)

    results = await asyncio.gather(
        *(asyncio.to_thread(client.get_doctor_shifts, doctor.id) for doctor in doctors),
        return_exceptions=True,
    )

    loaded = []
    failed = []
    for doctor, result in zip(doctors, results):
        if isinstance(result, BaseException):
            logger.warning("doctor_shifts_failed", doctor_id=doctor.id, error=str(result))
            failed.append(doctor.id)
            loaded.append(doctor)
        else:
            loaded.append(doctor.model_copy(update={"shifts": result}))

    if len(failed) == len(doctors):
        return Roster(doctors=loaded, live=False, failed_doctor_ids=failed)
    return Roster(doctors=loaded, live=True, failed_doctor_ids=failed)


class ScheduleSourceSelector:
    """Resolves the candidate hours of a date through the fallback chain."""

    def __init__(
        self,
        client: ClinicApiClient,
        default_hours: Sequence[str] = tuple(config.DEFAULT_HOURS),
    ):
        self.client = client
        self.default_hours = list(default_hours)

    def sources(self, roster: Optional[Roster] = None) -> List[ScheduleSource]:
        """The backend sources, in priority order."""
        return [
            ScheduleSource("date", self._hours_for_date),
            ScheduleSource("weekday", self._hours_for_weekday),
            ScheduleSource("doctor_shifts", lambda day: self._hours_from_shifts(day, roster)),
        ]

    async def resolve(self, target: date, roster: Optional[Roster] = None) -> ScheduleResolution:
        """Never raises; the static default closes the chain."""
        return await resolve_hours(target, self.sources(roster), self.default_hours)

    async def _hours_for_date(self, day: date) -> Any:
        return await asyncio.to_thread(self.client.get_hours_for_date, day.isoformat())

    async def _hours_for_weekday(self, day: date) -> Any:
        return await asyncio.to_thread(self.client.get_hours_for_weekday, js_weekday(day))

    async def _hours_from_shifts(self, day: date, roster: Optional[Roster]) -> List[str]:
        if roster is None:
            roster = await load_roster(self.client)
        if not roster.live:
            return []
        return hours_covered_by_shifts(roster.doctors, js_weekday(day))


async def resolve_hours(
    target: date,
    sources: Sequence[ScheduleSource],
    default_hours: Sequence[str] = tuple(config.DEFAULT_HOURS),
) -> ScheduleResolution:
    """Try ``sources`` left to right; first non-empty answer wins."""
    for source in sources:
        try:
            payload = await source.fetch(target)
        except Exception as exc:
            logger.warning("schedule_source_failed", source=source.name, date=target.isoformat(), error=str(exc))
            continue

        hours, booked = parse_hours(payload)
        if hours:
            logger.info(
                "schedule_resolved",
                source=source.name,
                date=target.isoformat(),
                hours=len(hours),
                booked=len(booked),
            )
            return ScheduleResolution(
                hours=hours, source=source.name, is_fallback=False, booked=frozenset(booked)
            )

        logger.warning("schedule_source_empty", source=source.name, date=target.isoformat())

    logger.warning("schedule_fallback", date=target.isoformat())
    return ScheduleResolution(hours=list(default_hours), source=DEFAULT_SOURCE, is_fallback=True)


def weekday_name(day: date) -> str:
    return config.WEEKDAY_NAMES[js_weekday(day)]


def roster_summary(roster: Roster) -> Dict[str, Any]:
    return {
        "doctors": len(roster.doctors),
        "live": roster.live,
        "failed": list(roster.failed_doctor_ids),
    }
