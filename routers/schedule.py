import time

from fastapi import APIRouter

from config import settings
from models.calendar import ScheduleResult, UnplacedReason
from models.schemas import ErrorMessage, Messages, SchedulingRequest, SchedulingResponse
from service.allocator import Scheduler, expand_courses
from service.availability import bookings_from_events
from service.slots import PreferenceMode

# Create a router instance
router = APIRouter()

REASON_TITLES = {
    UnplacedReason.NO_QUALIFIED_TEACHER: "No Qualified Teacher",
    UnplacedReason.NO_QUALIFIED_ROOM: "No Qualified Room",
    UnplacedReason.NO_FREE_SLOT: "No Free Slot",
    UnplacedReason.BUDGET_EXCEEDED: "Budget Exceeded",
}


def _run(request: SchedulingRequest, preference_mode: PreferenceMode) -> SchedulingResponse:
    scheduler = Scheduler(settings=settings, preference_mode=preference_mode)
    sessions = list(request.sessions) + expand_courses(request.courses)
    existing = list(request.existing_bookings) + bookings_from_events(request.existing_events)

    started = time.monotonic()
    result = scheduler.schedule(
        request.week_start,
        sessions,
        request.teachers,
        request.rooms,
        existing,
    )
    return _to_response(result, time.monotonic() - started)


def _to_response(result: ScheduleResult, solve_time: float) -> SchedulingResponse:
    if result.budget_exhausted:
        status = "BUDGET_EXCEEDED"
    elif result.unplaced_count:
        status = "PARTIAL"
    else:
        status = "COMPLETE"

    messages = Messages(error_message=[
        ErrorMessage(
            title=REASON_TITLES[unplaced.reason],
            message=f"Session {unplaced.session_id}: {unplaced.detail}",
        )
        for unplaced in result.unplaced
    ])

    return SchedulingResponse(
        week_start=result.week_start,
        assignments=result.assignments,
        unplaced=result.unplaced,
        total_requested=result.total_requested,
        placed_count=result.placed_count,
        unplaced_count=result.unplaced_count,
        day_distribution=result.day_distribution,
        messages=messages,
        status=status,
        iterations=result.iterations,
        solve_time_seconds=solve_time,
    )


@router.post("/schedule/with-preference", response_model=SchedulingResponse)
def schedule_with_preference(request: SchedulingRequest):
    """
    Place sessions honouring their preferred times and weekdays.

    How preferences apply (strict filter or preferred-first ordering) comes
    from the ``preference_mode`` setting.
    """
    mode = PreferenceMode(settings.preference_mode)
    if mode == PreferenceMode.IGNORE:
        mode = PreferenceMode.STRICT
    return _run(request, mode)


@router.post("/schedule/without-preference", response_model=SchedulingResponse)
def schedule_without_preference(request: SchedulingRequest):
    """
    Place sessions ignoring their preferred times and weekdays.

    Only working hours, availability, qualification and capacity apply.
    """
    return _run(request, PreferenceMode.IGNORE)
