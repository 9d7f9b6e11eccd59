"""
Availability checks for teachers and rooms.

Pre-existing bookings, declared teacher unavailability and bookings made
earlier in the current allocation run all block a resource the same way.
"""
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Sequence, Tuple

from models.calendar import Booking, BookingOrigin, Event, ResourceKind, Teacher, TimeWindow
from service.errors import InvalidInputError


def is_free(
    resource_id: str,
    kind: ResourceKind,
    window: TimeWindow,
    committed_bookings: Iterable[Booking],
    working_set_bookings: Iterable[Booking] = (),
) -> bool:
    """True iff no booking of ``(kind, resource_id)`` overlaps ``window`` in either source."""
    for source in (committed_bookings, working_set_bookings):
        for booking in source:
            if booking.kind != kind or booking.resource_id != resource_id:
                continue
            if booking.window.overlaps(window):
                return False
    return True


def bookings_from_events(events: Iterable[Event]) -> List[Booking]:
    """
    Teacher and room bookings for already materialized events.

    Raises:
        InvalidInputError: an event lacks its date or times
    """
    events = list(events)
    incomplete = [e.id for e in events if e.date is None or e.start_time is None or e.end_time is None]
    if incomplete:
        raise InvalidInputError([f"Existing event {event_id} has no complete date and time" for event_id in incomplete])

    bookings = []
    for event in events:
        window = event.window
        if event.teacher_id is not None:
            bookings.append(Booking(
                resource_id=event.teacher_id,
                kind=ResourceKind.TEACHER,
                window=window,
                origin=BookingOrigin.EXISTING,
                reference=str(event.id),
            ))
        if event.room_id is not None:
            bookings.append(Booking(
                resource_id=event.room_id,
                kind=ResourceKind.ROOM,
                window=window,
                origin=BookingOrigin.EXISTING,
                reference=str(event.id),
            ))
    return bookings


def unavailability_bookings(teachers: Iterable[Teacher]) -> List[Booking]:
    """Blocking bookings for every declared teacher unavailability window."""
    return [
        Booking(
            resource_id=teacher.id,
            kind=ResourceKind.TEACHER,
            window=window,
            origin=BookingOrigin.UNAVAILABLE,
        )
        for teacher in teachers
        for window in teacher.unavailable
    ]


class AvailabilityOracle:
    """
    Indexed view over committed bookings plus the run-local working set.

    The committed snapshot is read-only; ``commit`` only ever appends to the
    working set.
    """

    def __init__(self, committed_bookings: Sequence[Booking] = ()):
        self.committed: Tuple[Booking, ...] = tuple(committed_bookings)
        self.working_set: List[Booking] = []
        self._index: Dict[Tuple[ResourceKind, str, date], List[Booking]] = defaultdict(list)
        for booking in self.committed:
            self._add_to_index(booking)

    def _add_to_index(self, booking: Booking) -> None:
        self._index[(booking.kind, booking.resource_id, booking.window.date)].append(booking)

    def is_free(self, resource_id: str, kind: ResourceKind, window: TimeWindow) -> bool:
        # Same predicate as the module-level is_free, restricted to one date bucket.
        bucket = self._index.get((kind, resource_id, window.date), ())
        return is_free(resource_id, kind, window, bucket)

    def commit(self, booking: Booking) -> None:
        self.working_set.append(booking)
        self._add_to_index(booking)

    def bookings_for(self, kind: ResourceKind, resource_id: str) -> List[Booking]:
        return [
            booking
            for (k, rid, _), bucket in self._index.items()
            if k == kind and rid == resource_id
            for booking in bucket
        ]

    def load(
        self,
        kind: ResourceKind,
        resource_id: str,
        start: date,
        end: date,
    ) -> int:
        """Number of real bookings (not unavailability) of a resource between two dates inclusive."""
        count = 0
        for booking in self.bookings_for(kind, resource_id):
            if booking.origin == BookingOrigin.UNAVAILABLE:
                continue
            if not (start <= booking.window.date <= end):
                continue
            count += 1
        return count
