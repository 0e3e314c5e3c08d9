"""Hour-by-hour availability for one day.

An hour ``HH:00`` stands for the block ``[HH:00, HH:00 + 60min)``. It is
available when at least one doctor working that weekday has a shift that
overlaps the block. Overlap is open on both ends: a shift ending at 12:00
does not make the 12:00 block available.

Everything here is a pure function; results are rebuilt on every call.
"""
from enum import Enum
from typing import Collection, Dict, Iterable, List, Sequence, Tuple

from clinic_booking import config
from clinic_booking.models import Doctor, normalize_time

Interval = Tuple[int, int]


class HourStatus(str, Enum):
    """What the day grid shows for one hour."""
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"  # staff that day, none on this hour
    NO_DOCTORS = "no_doctors"  # nobody works this weekday
    BOOKED = "booked"  # offered, but already taken

    @property
    def selectable(self) -> bool:
        return self is HourStatus.AVAILABLE

    @property
    def hint(self) -> str:
        return {
            HourStatus.AVAILABLE: "Available - pick to book",
            HourStatus.UNAVAILABLE: "Not available",
            HourStatus.NO_DOCTORS: "No doctors assigned",
            HourStatus.BOOKED: "Already booked",
        }[self]


def to_minutes(hhmm: str) -> int:
    hour, minute = normalize_time(hhmm).split(":")
    return int(hour) * 60 + int(minute)


def hour_block(hour: str, minutes: int = config.HOUR_BLOCK_MINUTES) -> Interval:
    start = to_minutes(hour)
    return (start, start + minutes)


def overlaps(a: Interval, b: Interval) -> bool:
    """Open-interval overlap; touching endpoints do not count."""
    return a[0] < b[1] and b[0] < a[1]


def doctors_working_on(doctors: Iterable[Doctor], weekday: int) -> List[Doctor]:
    """Doctors with at least one shift on ``weekday`` (0=Sunday)."""
    return [doctor for doctor in doctors if doctor.works_on(weekday)]


def _is_covered(block: Interval, doctors: Sequence[Doctor], weekday=None) -> bool:
    for doctor in doctors:
        shifts = doctor.shifts if weekday is None else doctor.shifts_on(weekday)
        for shift in shifts:
            if overlaps(block, (to_minutes(shift.start), to_minutes(shift.end))):
                return True
    return False


def map_availability(hours: Iterable[str], doctors: Sequence[Doctor]) -> Dict[str, bool]:
    """
    Map each hour to whether any of ``doctors`` covers it.

    ``doctors`` are expected to be the ones working the target weekday
    already (see :func:`doctors_working_on`); every shift they carry is
    considered.
    """
    return {hour: _is_covered(hour_block(hour), doctors) for hour in hours}


def classify_hours(
    hours: Iterable[str],
    doctors: Iterable[Doctor],
    weekday: int,
    booked: Collection[str] = (),
) -> Dict[str, HourStatus]:
    """
    Per-hour status for the day grid, only counting shifts on ``weekday``.

    Hours in ``booked`` are reported as BOOKED whatever the shifts say:
    the backend already holds an appointment there.
    """
    working = doctors_working_on(doctors, weekday)
    statuses = {}
    for hour in hours:
        if hour in booked:
            statuses[hour] = HourStatus.BOOKED
        elif not working:
            statuses[hour] = HourStatus.NO_DOCTORS
        elif _is_covered(hour_block(hour), working, weekday):
            statuses[hour] = HourStatus.AVAILABLE
        else:
            statuses[hour] = HourStatus.UNAVAILABLE
    return statuses


def doctor_cards(doctors: Iterable[Doctor], weekday: int) -> List[Dict[str, object]]:
    """Doctors working ``weekday`` with their shift ranges as display strings."""
    return [
        {
            "id": doctor.id,
            "name": doctor.name,
            "specialty": doctor.specialty,
            "shifts": [shift.label for shift in doctor.shifts_on(weekday)],
        }
        for doctor in doctors_working_on(doctors, weekday)
    ]


def hours_covered_by_shifts(doctors: Iterable[Doctor], weekday: int) -> List[str]:
    """
    Hourly starts touched by the shifts recurring on ``weekday``.

    A 08:30-10:00 shift yields 08:00 and 09:00: each hour whose block
    overlaps the shift.
    """
    hours = set()
    for doctor in doctors:
        for shift in doctor.shifts_on(weekday):
            start, end = to_minutes(shift.start), to_minutes(shift.end)
            for hour in range(start // 60, (end + 59) // 60):
                if hour < 24 and overlaps((hour * 60, hour * 60 + 60), (start, end)):
                    hours.add(f"{hour:02d}:00")
    return sorted(hours)
