"""Submit an appointment draft according to the specialty's booking mode.

- WALKIN: nothing is sent; the patient is told the walk-in hours
- REQUEST: the draft goes to ``POST /requests``, staff pick the time later
- SLOT: the draft goes to ``POST /appointments/public`` for its date/hour

The handler table must cover every BookingMode; adding a mode without a
handler fails when this module is imported.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from clinic_booking import config
from clinic_booking.api_client import ClinicApiClient
from clinic_booking.errors import ApiError, NetworkError, describe_api_error
from clinic_booking.logging_config import bind_trace_id, clear_trace_id, get_logger
from clinic_booking.models import AppointmentDraft, BookingMode, Specialty
from clinic_booking.validation import validate_draft

logger = get_logger(__name__)


@dataclass(frozen=True)
class BookingOutcome:
    success: bool
    message: str
    mode: Optional[BookingMode] = None
    data: Optional[Dict[str, Any]] = None
    field_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def draft_consumed(self) -> bool:
        """Whether the form should be discarded (done, or nothing to book)."""
        return self.success


def walk_in_message(hours: Mapping[str, str], specialty_name: str = "") -> str:
    lines = [config.WALK_IN_MESSAGE]
    if specialty_name:
        lines[0] = f"{specialty_name}: {config.WALK_IN_MESSAGE}"
    lines.extend(f"{days}: {span}" for days, span in hours.items())
    return "\n".join(lines)


class BookingDispatcher:
    """Runs exactly one action per draft, chosen by the specialty's mode."""

    def __init__(
        self,
        client: ClinicApiClient,
        walk_in_hours: Mapping[str, str] = config.WALK_IN_HOURS,
    ):
        self.client = client
        self.walk_in_hours = dict(walk_in_hours)

    async def dispatch(self, specialty: Specialty, draft: AppointmentDraft) -> BookingOutcome:
        """Assumes ``draft`` already passed validation (see ``submit_booking``)."""
        handler = HANDLERS[specialty.booking_mode]
        bind_trace_id()
        try:
            outcome = await handler(self, specialty, draft)
        finally:
            logger.info(
                "booking_dispatched",
                mode=specialty.booking_mode.value,
                specialty_id=specialty.id,
            )
            clear_trace_id()
        return outcome

    async def _walk_in(self, specialty: Specialty, draft: AppointmentDraft) -> BookingOutcome:
        return BookingOutcome(
            success=True,
            message=walk_in_message(self.walk_in_hours, specialty.name),
            mode=BookingMode.WALKIN,
            data={"hours": dict(self.walk_in_hours)},
        )

    async def _request(self, specialty: Specialty, draft: AppointmentDraft) -> BookingOutcome:
        payload = draft.to_request_payload()
        payload["specialty_id"] = specialty.id
        return await self._submit(
            BookingMode.REQUEST,
            self.client.create_request,
            payload,
            config.REQUEST_SUCCESS_MESSAGE,
        )

    async def _slot(self, specialty: Specialty, draft: AppointmentDraft) -> BookingOutcome:
        payload = draft.to_appointment_payload()
        payload["especialidadId"] = specialty.id
        return await self._submit(
            BookingMode.SLOT,
            self.client.create_public_appointment,
            payload,
            config.SLOT_SUCCESS_MESSAGE.format(date=draft.date, hour=draft.hour),
        )

    async def _submit(
        self,
        mode: BookingMode,
        send: Callable[[Dict[str, Any]], Any],
        payload: Dict[str, Any],
        success_message: str,
    ) -> BookingOutcome:
        try:
            data = await asyncio.to_thread(send, payload)
        except (ApiError, NetworkError) as exc:
            logger.warning("booking_failed", mode=mode.value, error=str(exc))
            return BookingOutcome(success=False, message=describe_api_error(exc), mode=mode)

        return BookingOutcome(success=True, message=success_message, mode=mode, data=data)


Handler = Callable[[BookingDispatcher, Specialty, AppointmentDraft], Awaitable[BookingOutcome]]

HANDLERS: Dict[BookingMode, Handler] = {
    BookingMode.WALKIN: BookingDispatcher._walk_in,
    BookingMode.REQUEST: BookingDispatcher._request,
    BookingMode.SLOT: BookingDispatcher._slot,
}

_unhandled = set(BookingMode) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"No booking handler for: {sorted(m.value for m in _unhandled)}")


async def submit_booking(
    dispatcher: BookingDispatcher,
    specialty: Optional[Specialty],
    draft: AppointmentDraft,
) -> BookingOutcome:
    """Validate, then dispatch. Invalid drafts are never dispatched."""
    mode = specialty.booking_mode if specialty else None
    errors = validate_draft(draft, mode=mode)
    if specialty is None:
        errors.setdefault("specialty_id", "Select a specialty")
    if errors:
        return BookingOutcome(
            success=False,
            message="Please correct the highlighted fields.",
            mode=mode,
            field_errors=errors,
        )
    return await dispatcher.dispatch(specialty, draft)
