"""Client for the clinic REST API.

Every call goes through one shared session (retries, pooling) and one
circuit breaker. Failures come back as two exception types only:

- ``ApiError``: the server answered with a non-2xx status, or with a
  2xx body that is not JSON (code ``INVALID_RESPONSE``)
- ``NetworkError``: no answer at all (refused, timeout, open circuit)

4xx answers mean the backend is up, so they do not count against the
circuit breaker.
"""
from typing import Any, Dict, List, Optional, Tuple, Union

import requests

from clinic_booking import config
from clinic_booking.cache import TTLCache
from clinic_booking.circuit_breaker import CircuitBreaker, CircuitBreakerOpen
from clinic_booking.errors import ApiError, NetworkError, PermissionDenied
from clinic_booking.http_client import create_http_session
from clinic_booking.logging_config import get_logger
from clinic_booking.models import (
    AppointmentRequest,
    BookingMode,
    Doctor,
    Shift,
    Specialty,
    User,
    normalize_time,
    shifts_from_rows,
)
from clinic_booking.session import AuthSession

logger = get_logger(__name__)

Id = Union[int, str]

INVALID_RESPONSE = "INVALID_RESPONSE"


def own_doctor_id(user: User) -> Id:
    """Doctor record of a user with role ``doctor``; older accounts share the id."""
    return user.doctor_id if user.doctor_id is not None else user.id


class ClinicApiClient:
    """Thin wrapper over the clinic endpoints."""

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        session: Optional[AuthSession] = None,
        http: Optional[requests.Session] = None,
        breaker: Optional[CircuitBreaker] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or AuthSession()
        self.http = http or create_http_session()
        self.breaker = breaker or CircuitBreaker(
            failure_threshold=config.BREAKER_FAILURE_THRESHOLD,
            timeout=config.BREAKER_TIMEOUT_SECONDS,
        )
        self.cache = cache if cache is not None else TTLCache()

    # -- plumbing -----------------------------------------------------------

    def request(self, method: str, path: str, **kwargs) -> Any:
        """
        Send one request and return the decoded JSON body.

        Raises:
            ApiError: non-2xx answer (401 also closes the auth session)
            NetworkError: connection failure, timeout or open circuit
        """
        url = f"{self.base_url}{path}"
        headers = dict(kwargs.pop("headers", None) or {})
        headers.update(self.session.authorization_header())
        send = getattr(self.http, method.lower())

        def call():
            try:
                return send(url, headers=headers, **kwargs)
            except requests.exceptions.HTTPError as exc:
                if exc.response is not None and exc.response.status_code < 500:
                    return exc.response
                raise

        try:
            response = self.breaker.call(call)
        except CircuitBreakerOpen as exc:
            logger.warning("api_circuit_open", method=method, path=path, retry_after=exc.retry_after)
            raise NetworkError() from exc
        except requests.exceptions.HTTPError as exc:
            error = ApiError.from_response(exc.response)
            logger.error("api_server_error", method=method, path=path, status=error.status)
            raise error from exc
        except requests.exceptions.RequestException as exc:
            logger.warning("api_unreachable", method=method, path=path, error=str(exc))
            raise NetworkError() from exc

        if not response.ok:
            error = ApiError.from_response(response)
            logger.warning(
                "api_rejected",
                method=method,
                path=path,
                status=error.status,
                code=error.code,
            )
            if error.status == 401:
                self.session.close()
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            # a proxy or captive portal answering 2xx with HTML
            logger.error(
                "api_invalid_response",
                method=method,
                path=path,
                status=response.status_code,
                content_type=response.headers.get("Content-Type"),
            )
            raise ApiError(
                config.GENERIC_RETRY_MESSAGE,
                status=response.status_code,
                code=INVALID_RESPONSE,
            ) from exc

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        if params:
            params = {key: value for key, value in params.items() if value is not None}
        return self.request("GET", path, params=params or None, **kwargs)

    def post(self, path: str, data: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("POST", path, json=data or {})

    def patch(self, path: str, data: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("PATCH", path, json=data or {})

    def put(self, path: str, data: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("PUT", path, json=data or {})

    def delete(self, path: str, data: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("DELETE", path, json=data)

    def _cached_get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        key = path + "?" + "&".join(
            f"{k}={v}" for k, v in sorted((params or {}).items()) if v is not None
        )
        return self.cache.get_or_fetch(key, lambda: self.get(path, params=params))

    # -- health -------------------------------------------------------------

    def check_health(self) -> bool:
        """True when the backend answers ``/health`` with 200. Never raises."""
        try:
            self.request("GET", "/health", timeout=config.HEALTH_TIMEOUT)
        except (ApiError, NetworkError):
            return False
        return True

    # -- schedule sources ---------------------------------------------------

    def get_hours_for_date(self, iso_date: str) -> Any:
        return self.get("/horarios/horas-disponibles", params={"fecha": iso_date})

    def get_hours_for_weekday(self, weekday: int) -> Any:
        """Recurring hours for a weekday (0=Sunday)."""
        return self.get(f"/horarios/dia/{weekday}")

    def get_doctor_shifts(self, doctor_id: Id) -> List[Shift]:
        rows = self.get(f"/horarios/doctor/{doctor_id}") or []
        return shifts_from_rows(rows)

    # -- shift management ---------------------------------------------------

    def _require_schedule_access(self, doctor_id: Optional[Id] = None) -> User:
        """Staff may edit any schedule; a doctor only their own."""
        user = self.session.require_role(*config.STAFF_ROLES)
        if user.role == "doctor" and doctor_id is not None and str(doctor_id) != str(own_doctor_id(user)):
            raise PermissionDenied("Doctors can only manage their own schedule")
        return user

    def create_shift(self, doctor_id: Id, weekday: int, start: str, end: str) -> Dict[str, Any]:
        """
        Add one schedule row for ``doctor_id`` on ``weekday`` (0=Sunday).

        The window is checked locally first (``Shift`` raises ValueError for
        a bad time, weekday or inverted range), so nothing invalid is sent.
        """
        self._require_schedule_access(doctor_id)
        shift = Shift(start=start, end=end, weekdays=frozenset({weekday}))
        return self.post(f"/horarios/doctor/{doctor_id}", {
            "dia_semana": weekday,
            "hora_inicio": shift.start,
            "hora_fin": shift.end,
        })

    def update_shift(self, schedule_id: Id, data: Dict[str, Any]) -> Dict[str, Any]:
        self._require_schedule_access()
        return self.put(f"/horarios/{schedule_id}", data)

    def delete_shift(self, schedule_id: Id):
        self._require_schedule_access()
        self.delete(f"/horarios/{schedule_id}")

    def generate_default_shifts(self, doctor_id: Id) -> List[Shift]:
        """Replace the doctor's default rows with their specialty's default schedule."""
        self._require_schedule_access(doctor_id)
        data = self.post(f"/horarios/doctor/{doctor_id}/generar-defaults") or {}
        return shifts_from_rows(data.get("horarios") or [])

    # -- doctors ------------------------------------------------------------

    def list_doctors(
        self,
        specialty_id: Optional[Id] = None,
        active: Optional[bool] = None,
    ) -> List[Doctor]:
        params = {
            "specialtyId": specialty_id,
            "active": str(active).lower() if active is not None else None,
        }
        rows = self.get("/doctors", params=params) or []
        return [Doctor.from_api(row, shifts=[]) for row in rows]

    def get_doctor(self, doctor_id: Id) -> Doctor:
        return Doctor.from_api(self.get(f"/doctors/{doctor_id}"), shifts=[])

    def create_doctor(self, data: Dict[str, Any]) -> Doctor:
        self.session.require_role("admin", "operador")
        return Doctor.from_api(self.post("/doctors", data), shifts=[])

    def update_doctor(self, doctor_id: Id, data: Dict[str, Any]) -> Doctor:
        self.session.require_role("admin", "operador")
        return Doctor.from_api(self.patch(f"/doctors/{doctor_id}", data), shifts=[])

    def set_doctor_active(self, doctor_id: Id, active: bool) -> Doctor:
        """Deactivated doctors drop out of the public roster and its hours."""
        self.session.require_role("admin", "operador")
        return Doctor.from_api(self.patch(f"/doctors/{doctor_id}/status", {"active": active}), shifts=[])

    def assign_doctor_specialties(self, doctor_id: Id, specialty_ids: List[Id]) -> Doctor:
        self.session.require_role("admin", "operador")
        updated = self.post(f"/doctors/{doctor_id}/specialties", {"specialtyIds": list(specialty_ids)})
        return Doctor.from_api(updated, shifts=[])

    # -- specialties --------------------------------------------------------

    def list_specialties(
        self,
        booking_mode: Optional[BookingMode] = None,
        active: Optional[bool] = None,
    ) -> List[Specialty]:
        params = {
            "booking_mode": booking_mode.value if booking_mode else None,
            "active": str(active).lower() if active is not None else None,
        }
        rows = self._cached_get("/specialties", params) or []
        return [Specialty.model_validate(row) for row in rows]

    def get_specialty(self, specialty_id: Id) -> Specialty:
        return Specialty.model_validate(self._cached_get(f"/specialties/{specialty_id}"))

    def specialties_by_mode(self) -> Dict[BookingMode, List[Specialty]]:
        grouped = {mode: [] for mode in BookingMode}
        for specialty in self.list_specialties(active=True):
            grouped[specialty.booking_mode].append(specialty)
        return grouped

    def create_specialty(self, data: Dict[str, Any]) -> Specialty:
        self.session.require_role("admin")
        created = self.post("/specialties", data)
        self.cache.clear()
        return Specialty.model_validate(created)

    def update_specialty(self, specialty_id: Id, data: Dict[str, Any]) -> Specialty:
        self.session.require_role("admin")
        updated = self.patch(f"/specialties/{specialty_id}", data)
        self.cache.clear()
        return Specialty.model_validate(updated)

    def delete_specialty(self, specialty_id: Id):
        self.session.require_role("admin")
        self.delete(f"/specialties/{specialty_id}")
        self.cache.clear()

    def get_clinic_hours(self) -> Any:
        return self._cached_get("/clinic-hours")

    # -- requests (staff assigns later) -------------------------------------

    def create_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("/requests", payload)

    def list_requests(
        self,
        status: Optional[str] = None,
        specialty_id: Optional[Id] = None,
        dni: Optional[str] = None,
    ) -> List[AppointmentRequest]:
        self.session.require_role(*config.STAFF_ROLES)
        rows = self.get(
            "/requests",
            params={"status": status, "specialtyId": specialty_id, "dni": dni},
        ) or []
        return [AppointmentRequest.model_validate(row) for row in rows]

    def pending_requests(self) -> List[AppointmentRequest]:
        return self.list_requests(status="pending")

    def assign_request(self, request_id: Id, assignment: Dict[str, Any]) -> Dict[str, Any]:
        self.session.require_role("admin", "operador")
        return self.patch(f"/requests/{request_id}/assign", assignment)

    def cancel_request(self, request_id: Id, reason: Optional[str] = None) -> Dict[str, Any]:
        self.session.require_role("admin", "operador")
        return self.patch(f"/requests/{request_id}/cancel", {"reason": reason})

    # -- appointments -------------------------------------------------------

    def create_public_appointment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("/appointments/public", payload)

    def list_appointments(
        self,
        date: Optional[str] = None,
        doctor_id: Optional[Id] = None,
    ) -> List[Dict[str, Any]]:
        user = self.session.require_role(*config.STAFF_ROLES)
        if doctor_id is None and user.role == "doctor":
            doctor_id = own_doctor_id(user)
        return self.get("/appointments", params={"date": date, "doctorId": doctor_id}) or []

    def get_appointment(self, appointment_id: Id) -> Dict[str, Any]:
        self.session.require_role(*config.STAFF_ROLES)
        return self.get(f"/appointments/{appointment_id}")

    def update_appointment(self, appointment_id: Id, data: Dict[str, Any]) -> Dict[str, Any]:
        """Edit reason, notes or doctor. Date and hour change through ``reschedule_appointment``."""
        self.session.require_role("admin", "operador")
        return self.patch(f"/appointments/{appointment_id}", data)

    def reschedule_appointment(
        self,
        appointment_id: Id,
        new_date: str,
        new_hour: str,
        doctor_id: Optional[Id] = None,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Move an appointment; a taken hour comes back as a 409 ApiError."""
        self.session.require_role("admin", "operador")
        return self.patch(f"/appointments/{appointment_id}/reschedule", {
            "fecha": new_date,
            "hora": normalize_time(new_hour),
            "doctorId": doctor_id,
            "reason": reason,
        })

    def confirm_attendance(self, appointment_id: Id) -> Dict[str, Any]:
        self.session.require_role(*config.STAFF_ROLES)
        return self.patch(f"/appointments/{appointment_id}/confirm")

    def complete_appointment(
        self,
        appointment_id: Id,
        notes: Optional[str] = None,
        diagnosis: Optional[str] = None,
        treatment: Optional[str] = None,
    ) -> Dict[str, Any]:
        self.session.require_role("doctor", "admin")
        return self.patch(f"/appointments/{appointment_id}/complete", {
            "notes": notes,
            "diagnosis": diagnosis,
            "treatment": treatment,
        })

    def update_appointment_status(self, appointment_id: Id, status: str) -> Dict[str, Any]:
        self.session.require_role(*config.STAFF_ROLES)
        return self.patch(f"/appointments/{appointment_id}/status", {"status": status})

    def cancel_appointment(self, appointment_id: Id, reason: Optional[str] = None) -> Any:
        self.session.require_role(*config.STAFF_ROLES)
        return self.delete(f"/appointments/{appointment_id}", {"reason": reason} if reason else None)

    # -- auth ---------------------------------------------------------------

    def login(self, email: str, password: str) -> Tuple[str, User]:
        """Authenticate and open ``self.session``."""
        data = self.post("/auth/login", {"email": email, "password": password})
        token = data.get("token")
        user = User.model_validate(data.get("usuario") or data.get("user") or {})
        self.session.open(token, user)
        return token, user

    def logout(self):
        self.session.close()

    def get_profile(self) -> User:
        return User.model_validate(self.get("/auth/profile"))

    def verify_token(self) -> bool:
        """Check the stored token; an invalid token closes the session."""
        if not self.session.is_authenticated:
            return False
        try:
            self.get("/auth/verify")
        except ApiError:
            self.session.close()
            return False
        return True
