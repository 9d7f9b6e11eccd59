"""
Data models and Pydantic schemas for the scheduling engine and API.
"""
from .calendar import (
    Assignment,
    Booking,
    BookingOrigin,
    Conflict,
    ConflictGroup,
    ConflictKind,
    Course,
    CourseSession,
    Event,
    ResourceKind,
    Room,
    ScheduleResult,
    SubjectExpertise,
    Teacher,
    TimeRange,
    TimeWindow,
    UnplacedReason,
    UnplacedSession,
)
from .schemas import (
    SchedulingRequest,
    SchedulingResponse,
    Messages,
    ErrorMessage,
    ConflictAuditRequest,
    ConflictAuditResponse,
)

__all__ = [
    "Assignment",
    "Booking",
    "BookingOrigin",
    "Conflict",
    "ConflictGroup",
    "ConflictKind",
    "Course",
    "CourseSession",
    "Event",
    "ResourceKind",
    "Room",
    "ScheduleResult",
    "SubjectExpertise",
    "Teacher",
    "TimeRange",
    "TimeWindow",
    "UnplacedReason",
    "UnplacedSession",
    "SchedulingRequest",
    "SchedulingResponse",
    "Messages",
    "ErrorMessage",
    "ConflictAuditRequest",
    "ConflictAuditResponse",
]
