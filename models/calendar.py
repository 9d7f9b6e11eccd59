"""
Calendar value types shared by the slot generator, availability oracle,
resource matcher, allocator and conflict auditor.

Every type is frozen: a Booking or Assignment is never edited in place,
a new value replaces it.
"""
import datetime as dt
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


WEEKDAY_NAMES = {
    1: "monday",
    2: "tuesday",
    3: "wednesday",
    4: "thursday",
    5: "friday",
    6: "saturday",
    7: "sunday",
}


# ===========================
# Enumerations
# ===========================

class ResourceKind(str, Enum):
    TEACHER = "TEACHER"
    ROOM = "ROOM"


class BookingOrigin(str, Enum):
    EXISTING = "EXISTING"        # committed before this run
    ALLOCATED = "ALLOCATED"      # placed by this run
    UNAVAILABLE = "UNAVAILABLE"  # declared teacher unavailability


class UnplacedReason(str, Enum):
    NO_QUALIFIED_TEACHER = "NoQualifiedTeacher"
    NO_QUALIFIED_ROOM = "NoQualifiedRoom"
    NO_FREE_SLOT = "NoFreeSlot"
    BUDGET_EXCEEDED = "BudgetExceeded"


class ConflictKind(str, Enum):
    ROOM = "ROOM"
    TEACHER = "TEACHER"
    CAPACITY = "CAPACITY"


# ===========================
# Time
# ===========================

class TimeWindow(BaseModel):
    """A half-open [start_time, end_time) interval on one date."""
    date: dt.date
    start_time: dt.time
    end_time: dt.time

    model_config = ConfigDict(frozen=True)

    @property
    def duration_minutes(self) -> int:
        start = dt.datetime.combine(self.date, self.start_time)
        end = dt.datetime.combine(self.date, self.end_time)
        return int((end - start).total_seconds() // 60)

    @property
    def weekday(self) -> int:
        return self.date.isoweekday()

    def overlaps(self, other: "TimeWindow") -> bool:
        # Touching windows (09:00-10:00 and 10:00-11:00) do not overlap.
        return (
            self.date == other.date
            and self.start_time < other.end_time
            and self.end_time > other.start_time
        )

    def intersection(self, other: "TimeWindow") -> Optional["TimeWindow"]:
        if not self.overlaps(other):
            return None
        return TimeWindow(
            date=self.date,
            start_time=max(self.start_time, other.start_time),
            end_time=min(self.end_time, other.end_time),
        )

    def label(self) -> str:
        return f"{self.date.isoformat()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class TimeRange(BaseModel):
    """A clock-time range without a date, used for session preferences."""
    start: dt.time
    end: dt.time

    model_config = ConfigDict(frozen=True)

    def contains(self, window: TimeWindow) -> bool:
        return self.start <= window.start_time and window.end_time <= self.end


# ===========================
# Resources
# ===========================

class SubjectExpertise(BaseModel):
    subject: str
    level: int = 1  # 1=basic, 2=intermediate, 3=expert

    model_config = ConfigDict(frozen=True)


class Teacher(BaseModel):
    id: str
    name: str
    email: str = ""
    role: str = "TEACHER"
    expertise: List[SubjectExpertise] = []
    unavailable: List[TimeWindow] = []

    model_config = ConfigDict(frozen=True)

    def expertise_level(self, subject: str) -> int:
        """Highest recorded level for ``subject`` (case-insensitive), 0 if none."""
        wanted = subject.strip().lower()
        levels = [e.level for e in self.expertise if e.subject.strip().lower() == wanted]
        return max(levels) if levels else 0


class Room(BaseModel):
    id: str
    name: str
    capacity: int
    category: str = "lecture"
    location: str = ""

    model_config = ConfigDict(frozen=True)


# ===========================
# Demand
# ===========================

class CourseSession(BaseModel):
    """One schedulable occurrence: one teacher, one room, one window."""
    id: str
    course_id: str
    subject: str
    duration_minutes: int
    min_capacity: int = 1
    priority: int = 1
    expected_attendance: Optional[int] = None
    preferred_time: Optional[TimeRange] = None
    preferred_weekdays: List[int] = []
    assigned_teacher_id: Optional[str] = None
    subject_category: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Course(BaseModel):
    """A course that expands into ``sessions_per_week`` CourseSessions."""
    id: str
    name: str = ""
    subject: str
    duration_minutes: int
    sessions_per_week: int = 1
    min_capacity: int = 1
    priority: int = 1
    expected_attendance: Optional[int] = None
    preferred_time: Optional[TimeRange] = None
    preferred_weekdays: List[int] = []
    assigned_teacher_id: Optional[str] = None
    subject_category: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def sessions(self) -> List[CourseSession]:
        return [
            CourseSession(
                id=f"{self.id}#{n}",
                course_id=self.id,
                subject=self.subject,
                duration_minutes=self.duration_minutes,
                min_capacity=self.min_capacity,
                priority=self.priority,
                expected_attendance=self.expected_attendance,
                preferred_time=self.preferred_time,
                preferred_weekdays=self.preferred_weekdays,
                assigned_teacher_id=self.assigned_teacher_id,
                subject_category=self.subject_category,
            )
            for n in range(1, self.sessions_per_week + 1)
        ]


# ===========================
# Commitments and results
# ===========================

class Booking(BaseModel):
    """A committed (resource, window) pair."""
    resource_id: str
    kind: ResourceKind
    window: TimeWindow
    origin: BookingOrigin = BookingOrigin.EXISTING
    reference: Optional[str] = None  # event or session id that owns the booking

    model_config = ConfigDict(frozen=True)


class Assignment(BaseModel):
    session_id: str
    course_id: str
    teacher: Teacher
    room: Room
    window: TimeWindow
    score: float
    teacher_score: float = 0.0
    room_score: float = 0.0

    model_config = ConfigDict(frozen=True)


class UnplacedSession(BaseModel):
    session_id: str
    course_id: str
    reason: UnplacedReason
    detail: str = ""

    model_config = ConfigDict(frozen=True)


class ScheduleResult(BaseModel):
    week_start: dt.date
    assignments: List[Assignment] = []
    unplaced: List[UnplacedSession] = []
    bookings: List[Booking] = Field(default_factory=list)  # working set created by the run
    total_requested: int = 0
    placed_count: int = 0
    unplaced_count: int = 0
    budget_exhausted: bool = False
    iterations: int = 0
    day_distribution: Dict[str, int] = {}

    model_config = ConfigDict(frozen=True)


# ===========================
# Audit
# ===========================

class Event(BaseModel):
    """A materialized calendar event fed to the conflict auditor."""
    id: int
    title: str = ""
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    teacher_id: Optional[str] = None
    teacher_name: str = ""
    room_id: Optional[str] = None
    room_name: str = ""
    room_capacity: Optional[int] = None
    expected_participants: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(date=self.date, start_time=self.start_time, end_time=self.end_time)

    @property
    def display_name(self) -> str:
        return self.title or f"Event {self.id}"


class Conflict(BaseModel):
    kind: ConflictKind
    event_a_id: int
    event_b_id: Optional[int] = None
    overlap: Optional[TimeWindow] = None
    description: str

    model_config = ConfigDict(frozen=True)


class ConflictGroup(BaseModel):
    kind: ConflictKind
    resource_id: str
    resource_name: str = ""
    date: dt.date
    event_ids: List[int] = []
    conflict_count: int = 0

    model_config = ConfigDict(frozen=True)
