"""Tests for operator queue helpers."""
from datetime import date, datetime, timedelta, timezone

from clinic_booking.models import AppointmentRequest
from clinic_booking.staff import (
    can_be_assigned,
    can_be_cancelled,
    is_overdue,
    patient_summary,
    priority,
    status_text,
    time_elapsed,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_request(hours_ago=1, **overrides):
    data = dict(
        id=1,
        status="pending",
        created_at=NOW - timedelta(hours=hours_ago),
        patient_data={"name": "Ana Lopez", "dni": "12345678", "birthdate": "1990-05-14"},
    )
    data.update(overrides)
    return AppointmentRequest(**data)


class TestRequestState:
    """Test what operators may do with a request."""

    def test_only_pending_can_be_assigned_or_cancelled(self):
        assert can_be_assigned(make_request())
        assert can_be_cancelled(make_request())
        assert not can_be_assigned(make_request(status="assigned"))
        assert not can_be_cancelled(make_request(status="cancelled"))

    def test_status_text(self):
        assert status_text("pending") == "Waiting for assignment"
        assert status_text("archived") == "Unknown status"


class TestPriority:
    """Test queue ordering hints."""

    def test_overdue_after_24_hours(self):
        assert not is_overdue(make_request(hours_ago=23), NOW)
        assert is_overdue(make_request(hours_ago=25), NOW)

    def test_assigned_never_overdue(self):
        assert not is_overdue(make_request(hours_ago=48, status="assigned"), NOW)

    def test_urgent_beats_overdue(self):
        assert priority(make_request(hours_ago=48, urgent=True), NOW) == "urgent"
        assert priority(make_request(hours_ago=48), NOW) == "overdue"
        assert priority(make_request(hours_ago=1), NOW) == "normal"

    def test_naive_timestamp_treated_as_utc(self):
        request = make_request(created_at=datetime(2026, 10, 18, 11, 0))

        assert is_overdue(request, NOW)


class TestDisplay:
    """Test display helpers."""

    def test_time_elapsed(self):
        assert time_elapsed(make_request(hours_ago=50), NOW) == "2 days ago"
        assert time_elapsed(make_request(hours_ago=1), NOW) == "1 hour ago"
        assert time_elapsed(make_request(hours_ago=0), NOW) == "0 minutes ago"

    def test_patient_summary(self):
        summary = patient_summary(make_request(), today=date(2026, 10, 19))

        assert summary == {"name": "Ana Lopez", "dni": "12345678", "phone": None, "age": 36}
