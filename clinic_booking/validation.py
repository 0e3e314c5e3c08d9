"""Field-level checks for the appointment form, plus input masks.

Validation never raises: it returns ``{field: message}`` so the form can
show every problem at once. An empty dict means the draft may be submitted.
"""
import re
from datetime import date, datetime
from typing import Dict, Optional

from clinic_booking.models import AppointmentDraft, BookingMode

DOCUMENT_ID_PATTERN = re.compile(r"[0-9]{8}")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_DISALLOWED = re.compile(r"[^a-zA-ZáéíóúüÁÉÍÓÚÜñÑ\s]")

MIN_NAME_LENGTH = 2
MIN_PHONE_LENGTH = 9
MAX_AGE = 120


def calculate_age(birth: date, today: date) -> int:
    """Whole years between ``birth`` and ``today`` (negative for future dates)."""
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def parse_iso_date(value: str) -> Optional[date]:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError):
        return None


def validate_draft(
    draft: AppointmentDraft,
    mode: Optional[BookingMode] = None,
    today: Optional[date] = None,
) -> Dict[str, str]:
    """
    Check a draft before dispatch.

    Args:
        draft: Form state
        mode: Booking modality of the chosen specialty; SLOT also needs
              a date and an hour
        today: Reference date for the age check (default: today)

    Returns:
        Mapping of field name to error message, empty when valid
    """
    today = today or date.today()
    errors = {}

    for field, label in (("first_name", "First name"), ("last_name", "Last name")):
        value = getattr(draft, field).strip()
        if not value:
            errors[field] = f"{label} is required"
        elif len(value) < MIN_NAME_LENGTH:
            errors[field] = f"{label} must have at least {MIN_NAME_LENGTH} characters"

    if not draft.document_id:
        errors["document_id"] = "Document id is required"
    elif not DOCUMENT_ID_PATTERN.fullmatch(draft.document_id):
        errors["document_id"] = "Document id must have exactly 8 digits"

    if not draft.birth_date:
        errors["birth_date"] = "Birth date is required"
    else:
        birth = parse_iso_date(draft.birth_date)
        if birth is None:
            errors["birth_date"] = "Birth date must be a valid date (YYYY-MM-DD)"
        elif not 0 <= calculate_age(birth, today) <= MAX_AGE:
            errors["birth_date"] = "Invalid birth date"

    if not draft.phone:
        errors["phone"] = "Contact phone is required"
    elif len(draft.phone) < MIN_PHONE_LENGTH:
        errors["phone"] = f"Phone must have at least {MIN_PHONE_LENGTH} digits"

    if draft.email and not EMAIL_PATTERN.match(draft.email):
        errors["email"] = "Email must have a valid format"

    if draft.specialty_id in (None, ""):
        errors["specialty_id"] = "Select a specialty"

    if mode is BookingMode.SLOT:
        if not draft.date:
            errors["date"] = "Select a date"
        if not draft.hour:
            errors["hour"] = "Select an hour"

    return errors


# -- input masks -------------------------------------------------------------

def mask_document_id(value: str) -> str:
    """Digits only, at most 8."""
    return re.sub(r"[^0-9]", "", value or "")[:8]


def mask_phone(value: str, max_digits: int = 9) -> str:
    return re.sub(r"[^0-9]", "", value or "")[:max_digits]


def mask_name(value: str) -> str:
    """Letters (Spanish accents included) and single spaces, at most 120 chars."""
    cleaned = NAME_DISALLOWED.sub("", value or "")
    return re.sub(r"\s+", " ", cleaned)[:120]
