"""Month grid for the booking calendar (weeks start on Monday)."""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Tuple

from clinic_booking import config


@dataclass(frozen=True)
class CalendarDay:
    day: date
    is_current_month: bool
    is_today: bool
    is_past: bool
    is_bookable: bool


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months from (year, month); December + 1 is next January."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def booking_window(today: date, days: int = config.BOOKING_WINDOW_DAYS) -> Tuple[date, date]:
    return today, today + timedelta(days=days)


def month_grid(year: int, month: int, today: date) -> List[List[CalendarDay]]:
    """
    Full weeks covering ``month``, padded with days of the adjacent months.

    A day is bookable when it belongs to the shown month and falls inside
    the booking window starting today.
    """
    first, last = booking_window(today)
    weeks = []
    for week in calendar.Calendar(firstweekday=calendar.MONDAY).monthdatescalendar(year, month):
        weeks.append([
            CalendarDay(
                day=day,
                is_current_month=day.month == month,
                is_today=day == today,
                is_past=day < today,
                is_bookable=day.month == month and first <= day <= last,
            )
            for day in week
        ])
    return weeks


def month_title(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"
