"""
Test candidate slot generation and the preference pass.
"""
from datetime import date, time

import pytest

from config import Settings, WorkingBand
from models.calendar import CourseSession, TimeRange
from service.errors import InvalidInputError
from service.slots import PreferenceMode, SlotGenerator, apply_preferences


MONDAY = date(2025, 1, 6)


def get_generator():
    return SlotGenerator.from_settings(Settings())


def make_session(**overrides):
    data = {"id": "s1", "course_id": "c1", "subject": "Calculus", "duration_minutes": 60}
    data.update(overrides)
    return CourseSession(**data)


def test_slots_ordered_by_day_band_and_start():
    """Monday morning comes first, Saturday morning last."""
    slots = get_generator().generate(MONDAY, 60)

    assert slots[0].date == MONDAY
    assert slots[0].start_time == time(9, 0)
    assert slots[0].end_time == time(10, 0)
    assert slots[-1].date == date(2025, 1, 11)

    keys = [(s.date, s.start_time) for s in slots]
    assert keys == sorted(keys)


def test_sunday_never_yields_slots():
    slots = get_generator().generate(MONDAY, 30)
    assert all(s.date.isoweekday() != 7 for s in slots)


def test_wednesday_and_saturday_have_no_afternoon():
    slots = get_generator().generate(MONDAY, 60)
    for slot in slots:
        if slot.date.isoweekday() in (3, 6):
            assert slot.start_time < time(12, 15)


def test_monday_afternoon_band():
    slots = [s for s in get_generator().generate(MONDAY, 60) if s.date == MONDAY]
    afternoon = [s.start_time for s in slots if s.start_time >= time(13, 0)]
    assert afternoon == [time(13, 30), time(14, 0), time(14, 30), time(15, 0), time(15, 30)]


def test_ninety_minute_morning_starts():
    """A start is emitted only when start + duration fits the band."""
    slots = [s for s in get_generator().generate(MONDAY, 90) if s.date == MONDAY]
    morning = [s.start_time for s in slots if s.start_time < time(12, 15)]
    assert morning == [time(9, 0), time(9, 30), time(10, 0), time(10, 30)]


def test_duration_longer_than_any_band_is_empty():
    assert get_generator().generate(MONDAY, 240) == []


def test_huge_duration_is_empty_not_an_error():
    """Durations far beyond any band yield nothing instead of overflowing."""
    assert get_generator().generate(MONDAY, 10**10) == []


@pytest.mark.parametrize("duration", [0, -30])
def test_non_positive_duration_raises(duration):
    with pytest.raises(InvalidInputError):
        get_generator().generate(MONDAY, duration)


def test_non_positive_step_raises():
    with pytest.raises(InvalidInputError):
        SlotGenerator(bands=[], step_minutes=0)


def test_weekday_preference_changes_day_order():
    generator = SlotGenerator(
        bands=[WorkingBand(name="morning", start=time(9, 0), end=time(12, 0), weekdays=[1, 2, 3, 4, 5])],
        weekday_preference=[5, 1],
    )
    slots = generator.generate(MONDAY, 60)
    assert slots[0].date == date(2025, 1, 10)  # Friday
    # Days missing from the preference list keep calendar order
    days = []
    for slot in slots:
        if slot.date.isoweekday() not in days:
            days.append(slot.date.isoweekday())
    assert days == [5, 1, 2, 3, 4]


def test_generation_is_restartable():
    generator = get_generator()
    assert generator.generate(MONDAY, 60) == generator.generate(MONDAY, 60)


def test_strict_preferences_filter():
    session = make_session(
        preferred_time=TimeRange(start=time(10, 0), end=time(12, 0)),
        preferred_weekdays=[2],
    )
    slots = apply_preferences(get_generator().generate(MONDAY, 60), session, PreferenceMode.STRICT)

    assert slots
    for slot in slots:
        assert slot.date.isoweekday() == 2
        assert slot.start_time >= time(10, 0)
        assert slot.end_time <= time(12, 0)


def test_prefer_mode_puts_matches_first():
    session = make_session(preferred_weekdays=[4])
    all_slots = get_generator().generate(MONDAY, 60)
    slots = apply_preferences(all_slots, session, PreferenceMode.PREFER)

    assert len(slots) == len(all_slots)
    assert slots[0].date.isoweekday() == 4
    thursday_count = sum(1 for s in all_slots if s.date.isoweekday() == 4)
    assert all(s.date.isoweekday() == 4 for s in slots[:thursday_count])
    assert all(s.date.isoweekday() != 4 for s in slots[thursday_count:])


def test_ignore_mode_and_no_preferences_keep_order():
    all_slots = get_generator().generate(MONDAY, 60)
    with_pref = make_session(preferred_weekdays=[4])
    assert apply_preferences(all_slots, with_pref, PreferenceMode.IGNORE) == all_slots
    assert apply_preferences(all_slots, make_session(), PreferenceMode.STRICT) == all_slots
