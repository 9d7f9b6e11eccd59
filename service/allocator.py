"""
Priority-ordered first-fit allocator.

This module places course-sessions into (teacher, room, time window) triples
for one week. Sessions are handled one at a time in descending priority; for
each, candidate slots are walked in generator preference order and the first
slot for which a qualified teacher and a qualified room are both free wins.
Placements are never revisited, so later sessions see every booking committed
for earlier ones.
"""
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence
import logging
import time

from config import Settings, settings as default_settings
from models.calendar import (
    WEEKDAY_NAMES, Assignment, Booking, BookingOrigin, Course, CourseSession, ResourceKind,
    Room, ScheduleResult, Teacher, TimeWindow, UnplacedReason, UnplacedSession,
)
from service.availability import AvailabilityOracle, unavailability_bookings
from service.errors import InvalidInputError
from service.matcher import ResourceMatcher
from service.slots import PreferenceMode, SlotGenerator, apply_preferences

logger = logging.getLogger(__name__)


class BudgetExhausted(Exception):
    """Internal signal: the iteration or wall-clock budget ran out."""


class RunBudget:
    """
    Iteration and wall-clock budget of one scheduling run.

    A limit of 0 disables that limit.
    """

    def __init__(self, max_iterations: int, time_budget_seconds: float):
        self.max_iterations = max_iterations
        self.iterations = 0
        self.deadline = time.monotonic() + time_budget_seconds if time_budget_seconds else None

    def tick(self):
        self.iterations += 1
        self.check()

    def check(self):
        if self.max_iterations and self.iterations > self.max_iterations:
            raise BudgetExhausted()
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise BudgetExhausted()


class Scheduler:
    """
    Greedy scheduler over one week.

    Holds configuration only; every call to ``schedule`` starts from the
    supplied bookings and keeps its working set local to that call.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        preference_mode: Optional[PreferenceMode] = None,
        max_iterations: Optional[int] = None,
        time_budget_seconds: Optional[float] = None,
        slot_generator: Optional[SlotGenerator] = None,
        matcher: Optional[ResourceMatcher] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            settings: engine policy, defaults to the application settings
            preference_mode: how session time/weekday preferences are applied
            max_iterations: cap on candidate slots examined in one run
            time_budget_seconds: wall-clock cap for one run
            slot_generator: override for the working-hours slot generator
            matcher: override for teacher/room scoring
        """
        self.settings = settings or default_settings
        self.preference_mode = PreferenceMode(preference_mode or self.settings.preference_mode)
        self.max_iterations = (
            max_iterations if max_iterations is not None else self.settings.scheduler_max_iterations
        )
        self.time_budget_seconds = (
            time_budget_seconds if time_budget_seconds is not None
            else self.settings.scheduler_time_budget_seconds
        )
        self.slot_generator = slot_generator or SlotGenerator.from_settings(self.settings)
        self.matcher = matcher or ResourceMatcher(self.settings)

    def schedule(
        self,
        week_start: date,
        sessions: Sequence[CourseSession],
        teachers: Sequence[Teacher],
        rooms: Sequence[Room],
        existing_bookings: Sequence[Booking] = (),
    ) -> ScheduleResult:
        """
        Place as many sessions as possible into the week starting at ``week_start``.

        Args:
            week_start: first day of the planning week
            sessions: sessions to place, in submission order
            teachers: teacher pool, listing order breaks score ties
            rooms: room pool, listing order breaks score ties
            existing_bookings: read-only snapshot of committed bookings

        Returns:
            ScheduleResult with assignments, unplaced sessions and the
            bookings created by this run

        Raises:
            InvalidInputError: malformed input, nothing was allocated
        """
        # Step 1: Reject malformed input before any allocation
        errors = self._validate_input(sessions, teachers, rooms, existing_bookings)
        if errors:
            logger.error(f"Rejected scheduling request: {len(errors)} validation error(s)")
            raise InvalidInputError(errors)

        started = time.monotonic()
        week_end = week_start + timedelta(days=6)
        logger.info(
            f"Scheduling {len(sessions)} session(s) for week {week_start} "
            f"with {len(teachers)} teacher(s), {len(rooms)} room(s), "
            f"{len(existing_bookings)} existing booking(s)"
        )

        # Step 2: Priority order, stable for equal priorities
        ordered = sorted(sessions, key=lambda s: -s.priority)

        # Step 3: Working set over existing bookings and teacher unavailability
        oracle = AvailabilityOracle(list(existing_bookings) + unavailability_bookings(teachers))

        assignments: List[Assignment] = []
        unplaced: List[UnplacedSession] = []
        placed_by_course: Dict[str, List[TimeWindow]] = defaultdict(list)
        budget = RunBudget(self.max_iterations, self.time_budget_seconds)
        budget_exhausted = False

        # Step 4: One session at a time, first fit
        for index, session in enumerate(ordered):
            try:
                budget.check()
                outcome = self._place_session(
                    session, week_start, week_end, teachers, rooms, oracle, placed_by_course, budget,
                )
            except BudgetExhausted:
                budget_exhausted = True
                logger.warning(
                    f"Scheduling budget exhausted after {budget.iterations} iteration(s); "
                    f"{len(ordered) - index} session(s) left unplaced"
                )
                for remaining in ordered[index:]:
                    unplaced.append(UnplacedSession(
                        session_id=remaining.id,
                        course_id=remaining.course_id,
                        reason=UnplacedReason.BUDGET_EXCEEDED,
                        detail="Scheduling budget exhausted before this session was placed",
                    ))
                break

            if isinstance(outcome, Assignment):
                assignments.append(outcome)
            else:
                unplaced.append(outcome)

        # Step 5: Aggregate
        result = ScheduleResult(
            week_start=week_start,
            assignments=assignments,
            unplaced=unplaced,
            bookings=list(oracle.working_set),
            total_requested=len(sessions),
            placed_count=len(assignments),
            unplaced_count=len(unplaced),
            budget_exhausted=budget_exhausted,
            iterations=budget.iterations,
            day_distribution=self._day_distribution(assignments),
        )
        logger.info(
            f"Scheduled {result.placed_count}/{result.total_requested} session(s) "
            f"in {time.monotonic() - started:.3f}s. Distribution: {result.day_distribution}"
        )
        return result

    def _place_session(
        self,
        session: CourseSession,
        week_start: date,
        week_end: date,
        teachers: Sequence[Teacher],
        rooms: Sequence[Room],
        oracle: AvailabilityOracle,
        placed_by_course: Dict[str, List[TimeWindow]],
        budget: RunBudget,
    ):
        """Return an Assignment for the first feasible slot, or an UnplacedSession."""
        loads = {t.id: oracle.load(ResourceKind.TEACHER, t.id, week_start, week_end) for t in teachers}
        ranked_teachers = self.matcher.rank_teachers(session, teachers, loads)
        if not ranked_teachers:
            return self._unplaced(
                session, UnplacedReason.NO_QUALIFIED_TEACHER,
                f"No teacher qualified for subject '{session.subject}' below the weekly cap",
            )

        ranked_rooms = self.matcher.rank_rooms(session, rooms)
        if not ranked_rooms:
            return self._unplaced(
                session, UnplacedReason.NO_QUALIFIED_ROOM,
                f"No room with capacity >= {session.min_capacity}",
            )

        slots = self.slot_generator.generate(week_start, session.duration_minutes)
        slots = apply_preferences(slots, session, self.preference_mode)
        if not slots:
            return self._unplaced(
                session, UnplacedReason.NO_FREE_SLOT,
                "No candidate slot fits the working hours and session preferences",
            )

        teacher_blocked = room_blocked = course_blocked = 0
        for window in slots:
            budget.tick()

            if self.settings.avoid_same_course_overlap and any(
                window.overlaps(placed) for placed in placed_by_course[session.course_id]
            ):
                course_blocked += 1
                continue

            teacher_pick = self._first_free(ranked_teachers, ResourceKind.TEACHER, window, oracle)
            if teacher_pick is None:
                teacher_blocked += 1
                continue

            room_pick = self._first_free(ranked_rooms, ResourceKind.ROOM, window, oracle)
            if room_pick is None:
                room_blocked += 1
                continue

            teacher, teacher_score = teacher_pick
            room, room_score = room_pick
            self._commit(session, teacher, room, window, oracle)
            placed_by_course[session.course_id].append(window)
            logger.info(
                f"Placed {session.id} ({session.subject}) -> {window.label()} "
                f"teacher={teacher.id} room={room.id} score={teacher_score + room_score:.1f}"
            )
            return Assignment(
                session_id=session.id,
                course_id=session.course_id,
                teacher=teacher,
                room=room,
                window=window,
                score=teacher_score + room_score,
                teacher_score=teacher_score,
                room_score=room_score,
            )

        return self._unplaced(
            session, UnplacedReason.NO_FREE_SLOT,
            f"{len(slots)} candidate slot(s) exhausted: teacher busy in {teacher_blocked}, "
            f"room busy in {room_blocked}, same-course overlap in {course_blocked}",
        )

    def _first_free(self, ranked, kind: ResourceKind, window: TimeWindow, oracle: AvailabilityOracle):
        for resource, score in ranked:
            if oracle.is_free(resource.id, kind, window):
                return resource, score
        return None

    def _commit(self, session: CourseSession, teacher: Teacher, room: Room, window: TimeWindow, oracle: AvailabilityOracle):
        oracle.commit(Booking(
            resource_id=teacher.id,
            kind=ResourceKind.TEACHER,
            window=window,
            origin=BookingOrigin.ALLOCATED,
            reference=session.id,
        ))
        oracle.commit(Booking(
            resource_id=room.id,
            kind=ResourceKind.ROOM,
            window=window,
            origin=BookingOrigin.ALLOCATED,
            reference=session.id,
        ))

    def _unplaced(self, session: CourseSession, reason: UnplacedReason, detail: str) -> UnplacedSession:
        logger.warning(f"Could not place {session.id} ({session.subject}): {reason.value} - {detail}")
        return UnplacedSession(session_id=session.id, course_id=session.course_id, reason=reason, detail=detail)

    def _day_distribution(self, assignments: Sequence[Assignment]) -> Dict[str, int]:
        counts: Dict[int, int] = defaultdict(int)
        for assignment in assignments:
            counts[assignment.window.weekday] += 1
        return {WEEKDAY_NAMES[day]: counts[day] for day in sorted(counts)}

    # ===========================
    # Validation
    # ===========================

    def _validate_input(
        self,
        sessions: Sequence[CourseSession],
        teachers: Sequence[Teacher],
        rooms: Sequence[Room],
        existing_bookings: Sequence[Booking],
    ) -> List[str]:
        """Validate input data and return list of errors."""
        errors = []

        teacher_ids = set()
        for teacher in teachers:
            if teacher.id in teacher_ids:
                errors.append(f"Duplicate teacher id '{teacher.id}'")
            teacher_ids.add(teacher.id)
            for window in teacher.unavailable:
                errors.extend(_window_errors(window, f"Unavailability of teacher {teacher.id}"))

        room_ids = set()
        for room in rooms:
            if room.id in room_ids:
                errors.append(f"Duplicate room id '{room.id}'")
            room_ids.add(room.id)
            if room.capacity < 0:
                errors.append(f"Room {room.id} has negative capacity {room.capacity}")

        session_ids = set()
        for session in sessions:
            if session.id in session_ids:
                errors.append(f"Duplicate session id '{session.id}'")
            session_ids.add(session.id)
            if session.duration_minutes <= 0:
                errors.append(f"Session {session.id}: duration must be greater than 0 minutes")
            if session.min_capacity < 0:
                errors.append(f"Session {session.id}: minimum capacity must not be negative")
            if session.assigned_teacher_id is not None and session.assigned_teacher_id not in teacher_ids:
                errors.append(f"Session {session.id} is assigned to unknown teacher {session.assigned_teacher_id}")
            if session.preferred_time is not None and session.preferred_time.start >= session.preferred_time.end:
                errors.append(f"Session {session.id}: preferred start time must be before preferred end time")
            for day in session.preferred_weekdays:
                if day not in WEEKDAY_NAMES:
                    errors.append(f"Session {session.id}: invalid preferred weekday {day}, use 1 (Monday) to 7 (Sunday)")

        for booking in existing_bookings:
            errors.extend(_window_errors(booking.window, f"Booking of {booking.kind.value.lower()} {booking.resource_id}"))

        return errors


def _window_errors(window: TimeWindow, owner: str) -> List[str]:
    if window.start_time >= window.end_time:
        return [f"{owner}: start time ({window.start_time:%H:%M}) must be before end time ({window.end_time:%H:%M})"]
    return []


def schedule(
    week_start: date,
    sessions: Sequence[CourseSession],
    teachers: Sequence[Teacher],
    rooms: Sequence[Room],
    existing_bookings: Sequence[Booking] = (),
    settings: Optional[Settings] = None,
) -> ScheduleResult:
    """Run one allocation with default policy."""
    return Scheduler(settings=settings).schedule(week_start, sessions, teachers, rooms, existing_bookings)


def expand_courses(courses: Sequence[Course]) -> List[CourseSession]:
    """
    Expand courses into their weekly sessions, in course order.

    Raises:
        InvalidInputError: a course asks for fewer than one session per week
    """
    errors = [
        f"Course {course.id}: sessions per week must be at least 1, got {course.sessions_per_week}"
        for course in courses
        if course.sessions_per_week < 1
    ]
    if errors:
        raise InvalidInputError(errors)

    sessions: List[CourseSession] = []
    for course in courses:
        sessions.extend(course.sessions())
    return sessions
