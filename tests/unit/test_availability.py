"""Test the hour-by-hour availability mapping."""
import pytest

from clinic_booking.availability import (
    HourStatus,
    classify_hours,
    doctor_cards,
    doctors_working_on,
    hour_block,
    hours_covered_by_shifts,
    map_availability,
    overlaps,
    to_minutes,
)
from clinic_booking.config import DEFAULT_HOURS
from clinic_booking.models import Doctor, Shift

MONDAY = 1
WEDNESDAY = 3
SUNDAY = 0


class TestIntervals:
    """Test minute conversion and open-interval overlap."""

    def test_to_minutes(self):
        assert to_minutes("00:00") == 0
        assert to_minutes("08:30") == 510
        assert to_minutes("8:05") == 485

    def test_hour_block_is_sixty_minutes(self):
        assert hour_block("14:00") == (840, 900)

    @pytest.mark.parametrize("a,b,expected", [
        ((480, 540), (480, 720), True),
        ((720, 780), (480, 720), False),  # touching end
        ((420, 480), (480, 720), False),  # touching start
        ((500, 510), (480, 720), True),  # contained
        ((0, 60), (600, 660), False),
    ])
    def test_overlap_is_symmetric(self, a, b, expected):
        """overlap(A, B) == overlap(B, A) for every pair."""
        assert overlaps(a, b) is expected
        assert overlaps(b, a) is expected


class TestMapAvailability:
    """Test hour -> bool mapping."""

    def test_shift_start_hour_available_end_hour_not(self, morning_doctor):
        """[08:00, 12:00) covers 08:00 but not 12:00."""
        result = map_availability(["08:00", "11:00", "12:00"], [morning_doctor])

        assert result == {"08:00": True, "11:00": True, "12:00": False}

    def test_no_doctors_means_nothing_available(self):
        result = map_availability(DEFAULT_HOURS, [])

        assert len(result) == 15
        assert not any(result.values())

    def test_any_doctor_is_enough(self, morning_doctor, evening_doctor):
        result = map_availability(["09:00", "14:00", "18:00"], [morning_doctor, evening_doctor])

        assert result == {"09:00": True, "14:00": False, "18:00": True}

    def test_half_hour_shift_overlaps_its_hour(self):
        doctor = Doctor(id=9, name="Dr. Half", shifts=[Shift(start="10:30", end="11:00", weekdays={1})])

        result = map_availability(["10:00", "11:00"], [doctor])

        assert result == {"10:00": True, "11:00": False}

    def test_same_inputs_same_mapping(self, morning_doctor):
        hours = ["07:00", "08:00", "12:00"]
        assert map_availability(hours, [morning_doctor]) == map_availability(hours, [morning_doctor])


class TestClassifyHours:
    """Test the three-state grid used by the day view."""

    def test_weekday_without_doctors_is_no_doctors(self, morning_doctor, evening_doctor):
        result = classify_hours(["08:00", "18:00"], [morning_doctor, evening_doctor], SUNDAY)

        assert set(result.values()) == {HourStatus.NO_DOCTORS}
        assert not any(status.selectable for status in result.values())

    def test_only_doctors_of_that_weekday_count(self, morning_doctor, evening_doctor):
        result = classify_hours(["09:00", "18:00"], [morning_doctor, evening_doctor], MONDAY)

        assert result["09:00"] is HourStatus.AVAILABLE
        assert result["18:00"] is HourStatus.UNAVAILABLE

    def test_shift_on_other_weekday_does_not_leak(self):
        doctor = Doctor(id=3, name="Dr. Split", shifts=[
            Shift(start="08:00", end="10:00", weekdays={1}),
            Shift(start="15:00", end="17:00", weekdays={2}),
        ])

        result = classify_hours(["08:00", "15:00"], [doctor], MONDAY)

        assert result == {"08:00": HourStatus.AVAILABLE, "15:00": HourStatus.UNAVAILABLE}

    def test_booked_hour_is_told_apart(self, morning_doctor):
        result = classify_hours(
            ["08:00", "09:00", "13:00"], [morning_doctor], MONDAY, booked={"09:00"}
        )

        assert result == {
            "08:00": HourStatus.AVAILABLE,
            "09:00": HourStatus.BOOKED,
            "13:00": HourStatus.UNAVAILABLE,
        }
        assert not HourStatus.BOOKED.selectable
        assert HourStatus.BOOKED.hint == "Already booked"

    def test_booked_wins_over_missing_staff(self, morning_doctor):
        result = classify_hours(["08:00", "09:00"], [morning_doctor], SUNDAY, booked={"08:00"})

        assert result == {"08:00": HourStatus.BOOKED, "09:00": HourStatus.NO_DOCTORS}


class TestDoctorCards:
    """Test per-day doctor cards."""

    def test_cards_list_shift_ranges_for_the_day(self, morning_doctor, evening_doctor):
        cards = doctor_cards([morning_doctor, evening_doctor], WEDNESDAY)

        assert [card["name"] for card in cards] == ["Dr. Morning", "Dr. Evening"]
        assert cards[0]["shifts"] == ["08:00 – 12:00"]

    def test_doctors_working_on(self, morning_doctor, evening_doctor):
        assert doctors_working_on([morning_doctor, evening_doctor], 5) == [evening_doctor]


class TestHoursCoveredByShifts:
    """Test deriving candidate hours from shifts."""

    def test_hours_from_shifts_are_sorted_and_unique(self, morning_doctor, evening_doctor):
        other = Doctor(id=4, name="Dr. Overlap", shifts=[Shift(start="10:00", end="13:00", weekdays={3})])

        result = hours_covered_by_shifts([morning_doctor, evening_doctor, other], WEDNESDAY)

        assert result == ["08:00", "09:00", "10:00", "11:00", "12:00", "17:00", "18:00"]

    def test_partial_hours_included(self):
        doctor = Doctor(id=5, name="Dr. Odd", shifts=[Shift(start="08:30", end="10:15", weekdays={1})])

        assert hours_covered_by_shifts([doctor], MONDAY) == ["08:00", "09:00", "10:00"]
