"""
Candidate time-window generation under the institutional working-hours policy.
"""
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence

from config import Settings, WorkingBand, settings as default_settings
from models.calendar import CourseSession, TimeWindow
from service.errors import InvalidInputError
import logging

logger = logging.getLogger(__name__)


class PreferenceMode(str, Enum):
    STRICT = "strict"  # only windows matching the session preferences
    PREFER = "prefer"  # matching windows first, then the rest
    IGNORE = "ignore"


class SlotGenerator:
    """
    Enumerates the candidate windows of one week.

    Output order is the preference order used by the allocator: weekdays in
    ``weekday_preference`` order, bands in configured order, then start time.
    """

    def __init__(
        self,
        bands: Sequence[WorkingBand],
        rest_weekdays: Sequence[int] = (7,),
        weekday_preference: Sequence[int] = (1, 2, 3, 4, 5, 6, 7),
        step_minutes: int = 30,
    ):
        if step_minutes <= 0:
            raise InvalidInputError([f"Slot step must be greater than 0 minutes, got {step_minutes}"])
        self.bands = list(bands)
        self.rest_weekdays = set(rest_weekdays)
        self.step_minutes = step_minutes
        # Weekdays missing from the preference list go last, in calendar order.
        self._weekday_rank = {day: idx for idx, day in enumerate(weekday_preference)}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SlotGenerator":
        settings = settings or default_settings
        return cls(
            bands=settings.working_bands,
            rest_weekdays=settings.rest_weekdays,
            weekday_preference=settings.weekday_preference,
            step_minutes=settings.slot_step_minutes,
        )

    def generate(self, week_start: date, duration_minutes: int) -> List[TimeWindow]:
        """Return every window of ``duration_minutes`` in the 7 days from ``week_start``."""
        if duration_minutes <= 0:
            raise InvalidInputError([f"Session duration must be greater than 0 minutes, got {duration_minutes}"])

        days = [week_start + timedelta(days=offset) for offset in range(7)]
        days.sort(key=lambda d: (self._weekday_rank.get(d.isoweekday(), 7 + d.isoweekday()), d))

        slots: List[TimeWindow] = []
        for day in days:
            weekday = day.isoweekday()
            if weekday in self.rest_weekdays:
                continue
            for band in self.bands:
                if weekday not in band.weekdays:
                    continue
                slots.extend(self._band_slots(day, band, duration_minutes))

        logger.debug(f"Generated {len(slots)} candidate slots of {duration_minutes} min for week of {week_start}")
        return slots

    def _band_slots(self, day: date, band: WorkingBand, duration_minutes: int) -> List[TimeWindow]:
        """Windows inside one band; empty when the band is shorter than the duration."""
        band_start = datetime.combine(day, band.start)
        band_end = datetime.combine(day, band.end)
        band_minutes = int((band_end - band_start).total_seconds() // 60)
        # Compare in minutes first, huge durations would overflow datetime arithmetic
        if duration_minutes > band_minutes:
            return []

        duration = timedelta(minutes=duration_minutes)
        windows = []
        offset = 0
        while offset + duration_minutes <= band_minutes:
            current = band_start + timedelta(minutes=offset)
            windows.append(TimeWindow(
                date=day,
                start_time=current.time(),
                end_time=(current + duration).time(),
            ))
            offset += self.step_minutes
        return windows


def matches_preferences(window: TimeWindow, session: CourseSession) -> bool:
    """True when ``window`` lies inside the session's preferred time and weekdays."""
    if session.preferred_time is not None and not session.preferred_time.contains(window):
        return False
    if session.preferred_weekdays and window.weekday not in session.preferred_weekdays:
        return False
    return True


def apply_preferences(
    slots: List[TimeWindow],
    session: CourseSession,
    mode: PreferenceMode = PreferenceMode.STRICT,
) -> List[TimeWindow]:
    """Filter or re-sort generator output according to the session preferences."""
    if mode == PreferenceMode.IGNORE:
        return list(slots)
    if session.preferred_time is None and not session.preferred_weekdays:
        return list(slots)

    if mode == PreferenceMode.STRICT:
        return [w for w in slots if matches_preferences(w, session)]

    # sort is stable, generator order survives within each group
    return sorted(slots, key=lambda w: 0 if matches_preferences(w, session) else 1)
