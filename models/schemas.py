from pydantic import BaseModel
from typing import List, Dict, Optional
from datetime import date

from .calendar import (
    Assignment,
    Booking,
    Conflict,
    ConflictGroup,
    Course,
    CourseSession,
    Event,
    Room,
    Teacher,
    UnplacedSession,
)


# ===========================
# Scheduling Request
# ===========================

class SchedulingRequest(BaseModel):
    """Sessions to place for one week plus the reference data they need"""
    week_start: date
    sessions: List[CourseSession] = []
    courses: List[Course] = []          # expanded into sessions_per_week sessions each, after sessions
    teachers: List[Teacher]
    rooms: List[Room]
    existing_bookings: List[Booking] = []
    existing_events: List[Event] = []   # converted to teacher/room bookings


# ===========================
# Scheduling Response
# ===========================

class ErrorMessage(BaseModel):
    """Error or warning message"""
    title: str
    message: str


class Messages(BaseModel):
    """Collection of error/warning messages"""
    error_message: List[ErrorMessage] = []


class SchedulingResponse(BaseModel):
    """Placed and unplaced sessions of one scheduling run"""
    week_start: date
    assignments: List[Assignment] = []
    unplaced: List[UnplacedSession] = []
    total_requested: int = 0
    placed_count: int = 0
    unplaced_count: int = 0
    day_distribution: Dict[str, int] = {}
    messages: Messages = Messages()

    # Additional metadata for debugging
    status: Optional[str] = None  # "COMPLETE", "PARTIAL", "BUDGET_EXCEEDED"
    iterations: Optional[int] = None
    solve_time_seconds: Optional[float] = None


# ===========================
# Conflict Audit
# ===========================

class ConflictAuditRequest(BaseModel):
    events: List[Event]
    check_capacity: bool = True


class ConflictAuditResponse(BaseModel):
    conflicts: List[Conflict] = []
    groups: List[ConflictGroup] = []
    total: int = 0
    room_conflicts: int = 0
    teacher_conflicts: int = 0
    capacity_conflicts: int = 0
