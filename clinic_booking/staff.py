"""Helpers for the operator queue of 'staff assigns later' requests."""
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional

from clinic_booking.models import AppointmentRequest
from clinic_booking.validation import calculate_age, parse_iso_date

OVERDUE_AFTER = timedelta(hours=24)

STATUS_TEXT = {
    "pending": "Waiting for assignment",
    "assigned": "Appointment assigned",
    "cancelled": "Cancelled",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(moment: datetime) -> datetime:
    # backend timestamps without offset are UTC
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def can_be_assigned(request: AppointmentRequest) -> bool:
    return request.status == "pending"


def can_be_cancelled(request: AppointmentRequest) -> bool:
    return request.status == "pending"


def can_be_edited(request: AppointmentRequest) -> bool:
    return request.status == "pending"


def is_overdue(request: AppointmentRequest, now: Optional[datetime] = None) -> bool:
    """Pending for more than 24 hours."""
    if request.status != "pending":
        return False
    return (now or _now()) - _aware(request.created_at) > OVERDUE_AFTER


def priority(request: AppointmentRequest, now: Optional[datetime] = None) -> str:
    if request.urgent:
        return "urgent"
    if is_overdue(request, now):
        return "overdue"
    return "normal"


def status_text(status: str) -> str:
    return STATUS_TEXT.get(status, "Unknown status")


def time_elapsed(request: AppointmentRequest, now: Optional[datetime] = None) -> str:
    diff = (now or _now()) - _aware(request.created_at)
    days = diff.days
    hours = diff.seconds // 3600
    minutes = (diff.seconds % 3600) // 60

    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return f"{minutes} minute{'s' if minutes != 1 else ''} ago"


def patient_summary(request: AppointmentRequest, today: Optional[date] = None) -> Dict[str, object]:
    patient = request.patient_data
    birth = parse_iso_date(patient.get("birthdate") or "")
    return {
        "name": patient.get("name"),
        "dni": patient.get("dni"),
        "phone": patient.get("phone"),
        "age": calculate_age(birth, today or date.today()) if birth else None,
    }
