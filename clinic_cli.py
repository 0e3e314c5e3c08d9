#!/usr/bin/env python3
"""
Terminal client for the clinic booking system.

Usage:
    python clinic_cli.py health
    python clinic_cli.py month [YYYY-MM]
    python clinic_cli.py day YYYY-MM-DD
    python clinic_cli.py specialties
    python clinic_cli.py book YYYY-MM-DD
"""
import asyncio
import sys
from datetime import date, datetime
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()

from clinic_booking import config  # noqa: E402  (reads env populated above)
from clinic_booking.api_client import ClinicApiClient  # noqa: E402
from clinic_booking.availability import HourStatus  # noqa: E402
from clinic_booking.booking import BookingDispatcher, submit_booking  # noqa: E402
from clinic_booking.calendar_view import month_grid, month_title  # noqa: E402
from clinic_booking.day_schedule import DaySchedulePlanner, HourNotAvailable, pick  # noqa: E402
from clinic_booking.errors import ApiError, NetworkError, describe_api_error  # noqa: E402
from clinic_booking.logging_config import setup_structured_logging  # noqa: E402
from clinic_booking.models import AppointmentDraft, BookingMode  # noqa: E402
from clinic_booking.validation import mask_document_id, mask_name, mask_phone  # noqa: E402


class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    GREY = '\033[90m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


STATUS_COLORS = {
    HourStatus.AVAILABLE: Colors.GREEN,
    HourStatus.UNAVAILABLE: Colors.RED,
    HourStatus.NO_DOCTORS: Colors.GREY,
    HourStatus.BOOKED: Colors.YELLOW,
}


def print_colored(text: str, color: str = Colors.RESET):
    print(f"{color}{text}{Colors.RESET}")


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        print_colored(f"Invalid date '{value}', expected YYYY-MM-DD", Colors.RED)
        sys.exit(1)


def parse_month(value: str) -> Tuple[int, int]:
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except ValueError:
        print_colored(f"Invalid month '{value}', expected YYYY-MM", Colors.RED)
        sys.exit(1)
    return parsed.year, parsed.month


def cmd_health(client: ClinicApiClient):
    if client.check_health():
        print_colored(f"Backend reachable at {client.base_url}", Colors.GREEN)
    else:
        print_colored(f"Backend NOT reachable at {client.base_url}", Colors.RED)
        sys.exit(1)


def cmd_month(client: ClinicApiClient, arg: str = None):
    today = date.today()
    year, month = today.year, today.month
    if arg:
        year, month = parse_month(arg)

    print_colored(month_title(year, month), Colors.BOLD)
    print(" Mo Tu We Th Fr Sa Su")
    for week in month_grid(year, month, today):
        cells = []
        for cell in week:
            text = f"{cell.day.day:3d}"
            if not cell.is_current_month or cell.is_past:
                text = f"{Colors.GREY}{text}{Colors.RESET}"
            elif cell.is_today:
                text = f"{Colors.BOLD}{text}{Colors.RESET}"
            elif cell.is_bookable:
                text = f"{Colors.GREEN}{text}{Colors.RESET}"
            cells.append(text)
        print("".join(cells))


def print_day(schedule):
    print_colored(f"\n{schedule.weekday} {schedule.day.isoformat()}", Colors.BOLD)
    if schedule.is_fallback:
        print_colored("Showing default hours (backend schedule unavailable)", Colors.YELLOW)
    if not schedule.roster_live:
        print_colored("Showing demo doctors (backend roster unavailable)", Colors.YELLOW)

    for hour in schedule.hours:
        status = schedule.statuses[hour]
        print_colored(f"  {hour}  {status.hint}", STATUS_COLORS[status])

    if not schedule.has_doctors:
        print("\nNo doctors assigned for this day. Pick another day.")
        return
    print(f"\nDoctors ({len(schedule.doctors)}):")
    for card in schedule.doctors:
        print(f"  {card['name']} - {card['specialty']}: {', '.join(card['shifts'])}")


def cmd_day(client: ClinicApiClient, arg: str):
    schedule = asyncio.run(DaySchedulePlanner(client).plan(parse_date(arg)))
    print_day(schedule)


def cmd_specialties(client: ClinicApiClient):
    try:
        grouped = client.specialties_by_mode()
    except (ApiError, NetworkError) as exc:
        print_colored(describe_api_error(exc, "Could not load specialties"), Colors.RED)
        sys.exit(1)

    for mode, items in grouped.items():
        print_colored(f"\n{mode.label}", Colors.BOLD)
        for specialty in items:
            print(f"  [{specialty.id}] {specialty.name}")


def ask(prompt: str, mask=None) -> str:
    value = input(f"{prompt}: ").strip()
    return mask(value) if mask else value


def cmd_book(client: ClinicApiClient, arg: str):
    day = parse_date(arg)
    try:
        specialties = client.list_specialties(active=True)
    except (ApiError, NetworkError) as exc:
        print_colored(describe_api_error(exc, "Could not load specialties"), Colors.RED)
        sys.exit(1)

    for specialty in specialties:
        print(f"  [{specialty.id}] {specialty.name} - {specialty.booking_mode.label}")
    chosen = ask("Specialty id")
    specialty = next((s for s in specialties if str(s.id) == chosen), None)

    draft = AppointmentDraft(
        first_name=ask("First name", mask_name),
        last_name=ask("Last name", mask_name),
        document_id=ask("Document id (8 digits)", mask_document_id),
        birth_date=ask("Birth date (YYYY-MM-DD)"),
        phone=ask("Phone", mask_phone),
        specialty_id=specialty.id if specialty else None,
        date=day.isoformat(),
        reason=ask("Reason"),
    )

    if specialty and specialty.booking_mode is BookingMode.SLOT:
        schedule = asyncio.run(DaySchedulePlanner(client).plan(day))
        print_day(schedule)
        try:
            draft.hour = pick(schedule, ask("Hour (HH:MM)"))
        except HourNotAvailable as exc:
            print_colored(str(exc), Colors.RED)
            sys.exit(1)

    outcome = asyncio.run(submit_booking(BookingDispatcher(client), specialty, draft))
    for field, message in outcome.field_errors.items():
        print_colored(f"  {field}: {message}", Colors.RED)
    print_colored(outcome.message, Colors.GREEN if outcome.success else Colors.RED)
    if not outcome.success:
        sys.exit(1)


COMMANDS = {
    "health": (cmd_health, 0),
    "month": (cmd_month, None),
    "day": (cmd_day, 1),
    "specialties": (cmd_specialties, 0),
    "book": (cmd_book, 1),
}


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] not in COMMANDS:
        print(__doc__)
        sys.exit(1)

    setup_structured_logging(config.LOG_LEVEL, json_logs=config.LOG_JSON)
    command, arity = COMMANDS[argv[0]]
    args = argv[1:]
    # arity None: one optional argument
    max_args = 1 if arity is None else arity
    min_args = 0 if arity is None else arity
    if not min_args <= len(args) <= max_args:
        print(__doc__)
        sys.exit(1)

    command(ClinicApiClient(), *args)


if __name__ == "__main__":
    main()
