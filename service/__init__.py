"""
Scheduling and conflict-resolution engine.
"""
from .allocator import Scheduler, expand_courses, schedule
from .auditor import find_conflicts, group_conflicts
from .availability import AvailabilityOracle, bookings_from_events, is_free
from .errors import InvalidInputError
from .matcher import ResourceMatcher
from .slots import PreferenceMode, SlotGenerator, apply_preferences

__all__ = [
    "Scheduler",
    "schedule",
    "expand_courses",
    "find_conflicts",
    "group_conflicts",
    "AvailabilityOracle",
    "bookings_from_events",
    "is_free",
    "InvalidInputError",
    "ResourceMatcher",
    "PreferenceMode",
    "SlotGenerator",
    "apply_preferences",
]
