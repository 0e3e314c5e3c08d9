"""Tests for the staff management endpoints: doctors, shifts and appointments."""
import pytest

from clinic_booking.errors import ApiError, PermissionDenied, describe_api_error
from clinic_booking.models import Shift


def login_as(client, role):
    credentials = {
        "admin": ("admin@clinic.test", "admin123"),
        "operador": ("operator@clinic.test", "operator123"),
        "doctor": ("doctor@clinic.test", "doctor123"),
    }
    return client.login(*credentials[role])


def book(client, hour, fecha="2026-10-21", doctor_id=None):
    return client.create_public_appointment(
        {"especialidadId": 1, "fecha": fecha, "hora": hour, "doctorId": doctor_id, "patient": {}}
    )


class TestDoctorManagement:
    """Test creating and maintaining doctors."""

    def test_changes_need_login(self, client):
        with pytest.raises(PermissionDenied):
            client.create_doctor({"firstName": "Rosa", "lastName": "Diaz"})

    def test_doctor_role_cannot_manage_doctors(self, client):
        login_as(client, "doctor")

        with pytest.raises(PermissionDenied):
            client.set_doctor_active(2, False)

    def test_create_and_update(self, client, mock_backend):
        login_as(client, "admin")

        created = client.create_doctor({"firstName": "Rosa", "lastName": "Diaz", "specialtyIds": [1]})
        updated = client.update_doctor(created.id, {"phone": "987654321"})

        assert created.name == "Rosa Diaz"
        assert created.specialty == "General Medicine"
        assert created.active
        assert updated.name == "Rosa Diaz"
        assert mock_backend.find(mock_backend.doctors, created.id)["phone"] == "987654321"

    def test_missing_name_is_422(self, client):
        login_as(client, "operador")

        with pytest.raises(ApiError) as exc_info:
            client.create_doctor({"firstName": "Rosa"})

        assert exc_info.value.status == 422
        assert describe_api_error(exc_info.value) == "First and last name are required"

    def test_deactivated_doctor_leaves_roster_and_hours(self, client):
        login_as(client, "operador")

        doctor = client.set_doctor_active(2, False)

        assert not doctor.active
        assert [d.id for d in client.list_doctors(active=True)] == [1]
        assert [d.id for d in client.list_doctors()] == [1, 2]
        # Friday is covered by Dr. Perez alone
        assert client.get_hours_for_weekday(5) == []

    def test_assign_specialties(self, client):
        login_as(client, "admin")

        doctor = client.assign_doctor_specialties(2, [1, 2])

        assert doctor.specialty == "General Medicine, Cardiology"
        assert [d.id for d in client.list_doctors(specialty_id=1)] == [1, 2]

    def test_assign_unknown_specialty(self, client):
        login_as(client, "admin")

        with pytest.raises(ApiError) as exc_info:
            client.assign_doctor_specialties(2, [99])

        assert exc_info.value.status == 404


class TestShiftManagement:
    """Test editing the schedule rows the booking flow reads."""

    def test_changes_need_login(self, client):
        with pytest.raises(PermissionDenied):
            client.create_shift(1, 6, "08:00", "10:00")

    def test_new_shift_feeds_weekday_hours(self, client):
        login_as(client, "admin")

        row = client.create_shift(2, 6, "9:00", "11:00")

        assert row["hora_inicio"] == "09:00:00"
        assert client.get_hours_for_weekday(6) == ["09:00", "10:00"]
        assert Shift(start="09:00", end="11:00", weekdays={6}) in client.get_doctor_shifts(2)

    def test_inverted_window_never_sent(self, client, mock_backend):
        login_as(client, "admin")
        rows = len(mock_backend.schedules)

        with pytest.raises(ValueError):
            client.create_shift(1, 2, "12:00", "08:00")

        assert len(mock_backend.schedules) == rows

    def test_update_and_delete(self, client, mock_backend):
        login_as(client, "operador")
        row = client.create_shift(1, 6, "08:00", "10:00")

        updated = client.update_shift(row["id"], {"hora_fin": "12:00"})
        assert updated["hora_fin"] == "12:00:00"
        assert client.get_hours_for_weekday(6) == ["08:00", "09:00", "10:00", "11:00"]

        client.delete_shift(row["id"])
        assert mock_backend.find(mock_backend.schedules, row["id"]) is None
        assert client.get_hours_for_weekday(6) == []

    def test_update_with_bad_window_is_400(self, client):
        login_as(client, "admin")

        with pytest.raises(ApiError) as exc_info:
            client.update_shift(1, {"hora_fin": "07:00"})

        assert exc_info.value.status == 400

    def test_generate_defaults_replaces_previous_defaults(self, client, mock_backend):
        login_as(client, "admin")
        doctor = client.create_doctor({"firstName": "Rosa", "lastName": "Diaz", "specialtyIds": [1]})

        client.generate_default_shifts(doctor.id)
        shifts = client.generate_default_shifts(doctor.id)

        assert shifts == [Shift(start="09:00", end="13:00", weekdays={1, 2, 3, 4, 5})]
        rows = [row for row in mock_backend.schedules if row["doctor_id"] == doctor.id]
        assert len(rows) == 5

    def test_generate_defaults_without_template(self, client):
        login_as(client, "admin")

        with pytest.raises(ApiError) as exc_info:
            client.generate_default_shifts(2)

        assert exc_info.value.status == 400

    def test_doctor_manages_only_own_schedule(self, client):
        login_as(client, "doctor")

        row = client.create_shift(1, 6, "08:00", "10:00")
        assert row["doctor_id"] == 1

        with pytest.raises(PermissionDenied):
            client.create_shift(2, 6, "08:00", "10:00")


class TestAppointmentManagement:
    """Test the appointment lifecycle seen by staff."""

    def test_get_and_update(self, client):
        created = book(client, "09:00")
        login_as(client, "admin")

        assert client.get_appointment(created["id"])["hora"] == "09:00"
        assert client.update_appointment(created["id"], {"motivo": "Follow-up"})["motivo"] == "Follow-up"

    def test_unknown_appointment(self, client):
        login_as(client, "admin")

        with pytest.raises(ApiError) as exc_info:
            client.get_appointment(99)

        assert exc_info.value.status == 404

    def test_reschedule_frees_old_hour(self, client):
        created = book(client, "09:00")
        login_as(client, "operador")

        moved = client.reschedule_appointment(created["id"], "2026-10-22", "10:00:00", reason="Patient asked")

        assert (moved["fecha"], moved["hora"]) == ("2026-10-22", "10:00")
        assert moved["rescheduled_from"] == {"fecha": "2026-10-21", "hora": "09:00"}
        assert {"hora": "09:00", "disponible": True} in client.get_hours_for_date("2026-10-21")
        assert {"hora": "10:00", "disponible": False} in client.get_hours_for_date("2026-10-22")

    def test_reschedule_into_taken_hour(self, client):
        first = book(client, "09:00")
        book(client, "10:00")
        login_as(client, "operador")

        with pytest.raises(ApiError) as exc_info:
            client.reschedule_appointment(first["id"], "2026-10-21", "10:00")

        assert exc_info.value.status == 409
        assert describe_api_error(exc_info.value) == "That time was just booked. Pick another one."

    def test_confirm_then_complete(self, client):
        created = book(client, "11:00")
        login_as(client, "operador")

        assert client.confirm_attendance(created["id"])["status"] == "CONFIRMED"
        with pytest.raises(ApiError) as exc_info:
            client.confirm_attendance(created["id"])
        assert exc_info.value.status == 409
        with pytest.raises(PermissionDenied):
            client.complete_appointment(created["id"], notes="Rest")

        login_as(client, "doctor")
        completed = client.complete_appointment(created["id"], notes="Rest", diagnosis="Flu")

        assert completed["status"] == "COMPLETED"
        assert completed["diagnosis"] == "Flu"

    def test_doctor_sees_own_appointments(self, client):
        book(client, "09:00", doctor_id=1)
        book(client, "15:00", doctor_id=2)
        _, user = login_as(client, "doctor")

        appointments = client.list_appointments()

        assert user.doctor_id == 1
        assert [a["hora"] for a in appointments] == ["09:00"]
