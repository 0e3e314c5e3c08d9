"""Pydantic models for clinic records and the appointment draft."""
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::[0-5]\d)?$")


def normalize_time(value: str) -> str:
    """``8:00`` / ``08:00:00`` -> ``08:00``."""
    match = TIME_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError(f"Invalid time of day: {value!r}")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


class BookingMode(str, Enum):
    """How a specialty is booked."""
    SLOT = "SLOT"  # patient picks date and hour
    REQUEST = "REQUEST"  # staff assigns the time later
    WALKIN = "WALKIN"  # no appointment, first come first served

    @property
    def label(self) -> str:
        return {
            BookingMode.SLOT: "Book a time directly",
            BookingMode.REQUEST: "Request an appointment, staff assigns the time",
            BookingMode.WALKIN: "Walk-in, no appointment needed",
        }[self]


class Shift(BaseModel):
    """A recurring working window of one doctor."""
    model_config = ConfigDict(frozen=True)

    start: str
    end: str
    weekdays: frozenset[int] = Field(
        default_factory=frozenset,
        description="0=Sunday ... 6=Saturday"
    )

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize_time(cls, value):
        return normalize_time(value)

    @field_validator("weekdays")
    @classmethod
    def _check_weekdays(cls, value):
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("weekdays must be in 0..6")
        return value

    @model_validator(mode="after")
    def _start_before_end(self):
        if self.start >= self.end:
            raise ValueError(f"Shift start {self.start} must be before end {self.end}")
        return self

    def recurs_on(self, weekday: int) -> bool:
        return weekday in self.weekdays

    @property
    def label(self) -> str:
        return f"{self.start} – {self.end}"


def shifts_from_rows(rows: Iterable[Dict[str, Any]]) -> List[Shift]:
    """
    Build Shifts from backend schedule rows.

    Rows look like ``{"dia_semana": 1, "hora_inicio": "08:00:00", "hora_fin":
    "12:00:00"}``; rows with the same window are merged into one Shift.
    Inactive rows (``activo`` false) are skipped.
    """
    windows: Dict[tuple, Set[int]] = {}
    for row in rows:
        if not row.get("activo", True):
            continue
        start = normalize_time(row.get("hora_inicio") or row["start"])
        end = normalize_time(row.get("hora_fin") or row["end"])
        weekday = row.get("dia_semana", row.get("day_of_week"))
        days = windows.setdefault((start, end), set())
        if weekday is not None:
            days.add(int(weekday))

    return [
        Shift(start=start, end=end, weekdays=frozenset(days))
        for (start, end), days in sorted(windows.items())
    ]


class Doctor(BaseModel):
    """A doctor and the shifts they work."""
    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    name: str
    specialty: str = ""
    shifts: List[Shift] = Field(default_factory=list)
    active: bool = True

    @classmethod
    def from_api(cls, data: Dict[str, Any], shifts: Optional[List[Shift]] = None) -> "Doctor":
        """Accept both the public doctors payload and the demo roster shape."""
        name = data.get("name") or data.get("nombre")
        if not name:
            name = " ".join(
                part for part in (data.get("firstName"), data.get("lastName")) if part
            )
        specialty = data.get("specialty") or data.get("especialidad") or ""
        if not specialty and data.get("specialties"):
            specialty = ", ".join(s.get("name", "") for s in data["specialties"])
        return cls(
            id=data["id"],
            name=name,
            specialty=specialty,
            shifts=shifts if shifts is not None else data.get("shifts", []),
            active=data.get("active", data.get("activo", True)),
        )

    def works_on(self, weekday: int) -> bool:
        return any(shift.recurs_on(weekday) for shift in self.shifts)

    def shifts_on(self, weekday: int) -> List[Shift]:
        return [shift for shift in self.shifts if shift.recurs_on(weekday)]


class Specialty(BaseModel):
    """Medical specialty and the modality used to book it."""
    id: Union[int, str]
    name: str
    booking_mode: BookingMode
    description: Optional[str] = None
    slot_minutes: Optional[int] = None
    capacity: Optional[int] = None
    active: bool = True

    @field_validator("booking_mode", mode="before")
    @classmethod
    def _upper_mode(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


class User(BaseModel):
    """Authenticated staff member."""
    id: Union[int, str]
    name: str = ""
    email: str = ""
    role: str = ""
    doctor_id: Optional[Union[int, str]] = None  # set for users with role "doctor"

    @model_validator(mode="before")
    @classmethod
    def _accept_spanish_keys(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            data.setdefault("name", data.get("nombre", ""))
            data.setdefault("role", data.get("rol", ""))
        return data


class AppointmentRequest(BaseModel):
    """A pending 'staff assigns later' request as listed for operators."""
    id: Union[int, str]
    status: str = "pending"
    urgent: bool = False
    created_at: datetime
    specialty_id: Optional[Union[int, str]] = None
    patient_data: Dict[str, Any] = Field(default_factory=dict)


class AppointmentDraft(BaseModel):
    """
    Form state of an appointment being filled in.

    No validation happens on assignment; ``validation.validate_draft``
    produces field-level messages instead, so the form can show them all.
    """
    first_name: str = ""
    last_name: str = ""
    document_id: str = ""
    birth_date: str = ""
    phone: str = ""
    email: str = ""
    specialty_id: Optional[Union[int, str]] = None
    doctor_id: Optional[Union[int, str]] = None
    date: Optional[str] = None
    hour: Optional[str] = None
    reason: str = ""
    notes: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()

    def patient_payload(self) -> Dict[str, Any]:
        return {
            "name": self.full_name,
            "firstName": self.first_name.strip(),
            "lastName": self.last_name.strip(),
            "dni": self.document_id,
            "birthdate": self.birth_date or None,
            "phone": self.phone,
            "email": self.email or None,
        }

    def to_request_payload(self) -> Dict[str, Any]:
        """Body for ``POST /requests``."""
        return {
            "specialty_id": self.specialty_id,
            "doctor_id": self.doctor_id,
            "patient": self.patient_payload(),
            "note": self.reason or self.notes or None,
        }

    def to_appointment_payload(self) -> Dict[str, Any]:
        """Body for ``POST /appointments/public``."""
        return {
            "patient": self.patient_payload(),
            "doctorId": self.doctor_id,
            "especialidadId": self.specialty_id,
            "fecha": self.date,
            "hora": self.hour,
            "motivo": self.reason,
            "notas": self.notes or None,
        }
