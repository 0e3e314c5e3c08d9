"""Client for the clinic appointment-booking API."""
from clinic_booking.api_client import ClinicApiClient
from clinic_booking.booking import BookingDispatcher, BookingOutcome, submit_booking
from clinic_booking.day_schedule import DaySchedule, DaySchedulePlanner
from clinic_booking.models import AppointmentDraft, BookingMode, Doctor, Shift, Specialty
from clinic_booking.session import AuthSession

__all__ = [
    "AppointmentDraft",
    "AuthSession",
    "BookingDispatcher",
    "BookingMode",
    "BookingOutcome",
    "ClinicApiClient",
    "DaySchedule",
    "DaySchedulePlanner",
    "Doctor",
    "Shift",
    "Specialty",
    "submit_booking",
]
