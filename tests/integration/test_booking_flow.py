"""End-to-end booking flows against the mock backend.

Covers:
- Day planning from live schedules, and the offline fallback
- Booking each modality, including a double-booked slot
- Booked hours staying on the grid as booked, never as open
"""
from datetime import date

import pytest

from clinic_booking.availability import HourStatus
from clinic_booking.booking import BookingDispatcher, submit_booking
from clinic_booking.config import DEFAULT_HOURS, NETWORK_ERROR_MESSAGE
from clinic_booking.day_schedule import DaySchedulePlanner, HourNotAvailable, pick
from clinic_booking.models import AppointmentDraft, BookingMode, Specialty

pytestmark = pytest.mark.integration

MONDAY = date(2026, 10, 19)
WEDNESDAY = date(2026, 10, 21)
SUNDAY = date(2026, 10, 25)


def patient_draft(**overrides):
    data = dict(
        first_name="Ana",
        last_name="Lopez",
        document_id="12345678",
        birth_date="1990-05-14",
        phone="987654321",
    )
    data.update(overrides)
    return AppointmentDraft(**data)


class TestDayPlanning:
    """Test the day grid built from live data."""

    @pytest.mark.asyncio
    async def test_wednesday_from_date_source(self, client):
        schedule = await DaySchedulePlanner(client).plan(WEDNESDAY)

        assert schedule.source == "date"
        assert not schedule.is_fallback
        assert schedule.roster_live
        assert schedule.weekday == "Wednesday"
        assert schedule.hours == ["08:00", "09:00", "10:00", "11:00", "15:00", "16:00", "17:00"]
        assert schedule.available_hours == schedule.hours
        assert [card["name"] for card in schedule.doctors] == ["Ana Cairo", "Luis Perez"]

    @pytest.mark.asyncio
    async def test_sunday_has_no_doctors(self, client):
        schedule = await DaySchedulePlanner(client).plan(SUNDAY)

        assert schedule.source == "default"
        assert schedule.is_fallback
        assert not schedule.has_doctors
        assert set(schedule.statuses.values()) == {HourStatus.NO_DOCTORS}
        with pytest.raises(HourNotAvailable):
            pick(schedule, "09:00")

    @pytest.mark.asyncio
    async def test_offline_falls_back_to_default_hours(self, offline_client):
        schedule = await DaySchedulePlanner(offline_client).plan(WEDNESDAY)

        assert schedule.is_fallback
        assert schedule.source == "default"
        assert schedule.hours == DEFAULT_HOURS
        assert len(schedule.hours) == 15
        assert not schedule.roster_live
        # demo roster: Dr. Cairo 08-12 and 16-19, Dr. Ruiz 17-19 on Wednesdays
        assert schedule.statuses["08:00"] is HourStatus.AVAILABLE
        assert schedule.statuses["13:00"] is HourStatus.UNAVAILABLE
        assert schedule.statuses["18:00"] is HourStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_planning_is_repeatable(self, client):
        planner = DaySchedulePlanner(client)

        first = await planner.plan(WEDNESDAY)
        second = await planner.plan(WEDNESDAY)

        assert first.hours == second.hours
        assert first.statuses == second.statuses


class TestBookingModes:
    """Test booking each modality through the mock backend."""

    @pytest.mark.asyncio
    async def test_slot_booking_marks_hour_booked(self, client):
        specialty = client.get_specialty(1)
        schedule = await DaySchedulePlanner(client).plan(WEDNESDAY)
        draft = patient_draft(specialty_id=1, date=WEDNESDAY.isoformat(), hour=pick(schedule, "09:00"))

        outcome = await submit_booking(BookingDispatcher(client), specialty, draft)

        assert outcome.success
        assert outcome.mode is BookingMode.SLOT
        assert outcome.data["confirmation"].startswith("APT-")
        replanned = await DaySchedulePlanner(client).plan(WEDNESDAY)
        assert replanned.source == "date"
        assert replanned.statuses["09:00"] is HourStatus.BOOKED
        assert "09:00" not in replanned.available_hours
        with pytest.raises(HourNotAvailable):
            pick(replanned, "09:00")

    @pytest.mark.asyncio
    async def test_fully_booked_day_offers_nothing(self, client):
        specialty = client.get_specialty(1)
        dispatcher = BookingDispatcher(client)
        schedule = await DaySchedulePlanner(client).plan(MONDAY)
        assert schedule.available_hours == ["08:00", "09:00", "10:00", "11:00", "15:00", "16:00", "17:00"]

        for hour in schedule.available_hours:
            draft = patient_draft(specialty_id=1, date=MONDAY.isoformat(), hour=hour)
            outcome = await submit_booking(dispatcher, specialty, draft)
            assert outcome.success

        replanned = await DaySchedulePlanner(client).plan(MONDAY)

        assert replanned.source == "date"
        assert not replanned.is_fallback
        assert replanned.available_hours == []
        assert set(replanned.statuses.values()) == {HourStatus.BOOKED}

    @pytest.mark.asyncio
    async def test_double_booking_rejected(self, client):
        specialty = client.get_specialty(1)
        dispatcher = BookingDispatcher(client)
        draft = patient_draft(specialty_id=1, date=WEDNESDAY.isoformat(), hour="10:00")

        first = await submit_booking(dispatcher, specialty, draft)
        second = await submit_booking(dispatcher, specialty, draft)

        assert first.success
        assert not second.success
        assert second.message == "That time was just booked. Pick another one."

    @pytest.mark.asyncio
    async def test_request_booking_reaches_operator_queue(self, client):
        specialty = client.get_specialty(2)

        outcome = await submit_booking(
            BookingDispatcher(client), specialty, patient_draft(specialty_id=2, reason="Chest pain")
        )

        assert outcome.success
        assert outcome.mode is BookingMode.REQUEST
        client.login("operator@clinic.test", "operator123")
        pending = client.pending_requests()
        assert len(pending) == 1
        assert pending[0].patient_data["dni"] == "12345678"

    @pytest.mark.asyncio
    async def test_walk_in_creates_nothing(self, client, mock_backend):
        specialty = client.get_specialty(3)

        outcome = await submit_booking(BookingDispatcher(client), specialty, patient_draft(specialty_id=3))

        assert outcome.success
        assert outcome.mode is BookingMode.WALKIN
        assert mock_backend.requests_store == []
        assert mock_backend.appointments == []

    @pytest.mark.asyncio
    async def test_request_offline(self, offline_client):
        specialty = Specialty(id=2, name="Cardiology", booking_mode="REQUEST")

        outcome = await submit_booking(
            BookingDispatcher(offline_client), specialty, patient_draft(specialty_id=2)
        )

        assert not outcome.success
        assert outcome.message == NETWORK_ERROR_MESSAGE
