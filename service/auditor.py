"""
Double-booking audit over a closed set of committed events.

Every pair of events is compared (O(n^2) in the number of events). The whole
set is recomputed on each call; this is fine for hundreds of events per
audit but does not scale to very large calendars.
"""
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from models.calendar import Conflict, ConflictGroup, ConflictKind, Event
from service.errors import InvalidInputError

logger = logging.getLogger(__name__)

_KIND_ORDER = {ConflictKind.ROOM: 0, ConflictKind.TEACHER: 1, ConflictKind.CAPACITY: 2}


def find_conflicts(events: Sequence[Event], check_capacity: bool = True) -> List[Conflict]:
    """
    Return every room and teacher double-booking among ``events``.

    A pair of events on the same date whose times overlap (half-open rule)
    yields a ROOM conflict when both have the same room and a TEACHER
    conflict when both have the same teacher. Missing rooms or teachers never
    conflict. When ``check_capacity`` is set, events expecting more
    participants than their room holds yield a CAPACITY conflict.

    Raises:
        InvalidInputError: an event is missing its date or times, has
            start >= end, or shares its id with another event
    """
    errors = _validate_events(events)
    if errors:
        raise InvalidInputError(errors)

    conflicts: List[Conflict] = []
    for i in range(len(events)):
        for j in range(i + 1, len(events)):
            conflicts.extend(_pair_conflicts(events[i], events[j]))

    if check_capacity:
        for event in events:
            capacity_conflict = _capacity_conflict(event)
            if capacity_conflict is not None:
                conflicts.append(capacity_conflict)

    conflicts.sort(key=_conflict_sort_key)
    logger.info(f"Audited {len(events)} event(s): {len(conflicts)} conflict(s) found")
    return conflicts


def _conflict_sort_key(conflict: Conflict) -> Tuple[int, int, int]:
    second = conflict.event_b_id if conflict.event_b_id is not None else -1
    return conflict.event_a_id, second, _KIND_ORDER[conflict.kind]


def _pair_conflicts(first: Event, second: Event) -> List[Conflict]:
    if first.date != second.date:
        return []

    overlap = first.window.intersection(second.window)
    if overlap is None:
        return []

    # Lower id is always reported first.
    if first.id > second.id:
        first, second = second, first

    span = f"on {overlap.date.isoformat()} from {overlap.start_time:%H:%M} to {overlap.end_time:%H:%M}"
    conflicts = []

    if first.room_id is not None and second.room_id is not None and first.room_id == second.room_id:
        room_name = first.room_name or second.room_name or first.room_id
        conflicts.append(Conflict(
            kind=ConflictKind.ROOM,
            event_a_id=first.id,
            event_b_id=second.id,
            overlap=overlap,
            description=(
                f"Room '{room_name}' double-booked: {first.display_name} ({first.id}) "
                f"vs {second.display_name} ({second.id}) {span}"
            ),
        ))
        logger.debug(f"Room conflict between events {first.id} and {second.id}")

    if first.teacher_id is not None and second.teacher_id is not None and first.teacher_id == second.teacher_id:
        teacher_name = first.teacher_name or second.teacher_name or first.teacher_id
        conflicts.append(Conflict(
            kind=ConflictKind.TEACHER,
            event_a_id=first.id,
            event_b_id=second.id,
            overlap=overlap,
            description=(
                f"Teacher '{teacher_name}' double-booked: {first.display_name} ({first.id}) "
                f"vs {second.display_name} ({second.id}) {span}"
            ),
        ))
        logger.debug(f"Teacher conflict between events {first.id} and {second.id}")

    return conflicts


def _capacity_conflict(event: Event) -> Optional[Conflict]:
    if event.room_capacity is None or event.expected_participants is None:
        return None
    if event.expected_participants <= event.room_capacity:
        return None
    room_name = event.room_name or event.room_id or "unassigned"
    return Conflict(
        kind=ConflictKind.CAPACITY,
        event_a_id=event.id,
        description=(
            f"Event '{event.display_name}' expects {event.expected_participants} participants "
            f"but room '{room_name}' has capacity for only {event.room_capacity}"
        ),
    )


def _validate_events(events: Sequence[Event]) -> List[str]:
    errors = []
    seen = set()
    for event in events:
        if event.id in seen:
            errors.append(f"Duplicate event id {event.id}")
        seen.add(event.id)

        missing = [name for name in ("date", "start_time", "end_time") if getattr(event, name) is None]
        if missing:
            errors.append(f"Event {event.id} is missing {', '.join(missing)}")
            continue
        if event.start_time >= event.end_time:
            errors.append(
                f"Event {event.id}: start time ({event.start_time:%H:%M}) "
                f"must be before end time ({event.end_time:%H:%M})"
            )
    return errors


def group_conflicts(conflicts: Sequence[Conflict], events: Sequence[Event]) -> List[ConflictGroup]:
    """
    Group pair conflicts by kind, resource and date.

    Capacity conflicts involve a single event and are not grouped.
    """
    by_id: Dict[int, Event] = {event.id: event for event in events}
    groups: Dict[Tuple[ConflictKind, str, object], dict] = {}

    for conflict in conflicts:
        if conflict.kind == ConflictKind.CAPACITY:
            continue
        event_a = by_id.get(conflict.event_a_id)
        if event_a is None:
            continue
        if conflict.kind == ConflictKind.ROOM:
            resource_id, resource_name = event_a.room_id, event_a.room_name
        else:
            resource_id, resource_name = event_a.teacher_id, event_a.teacher_name

        key = (conflict.kind, resource_id, event_a.date)
        group = groups.setdefault(key, {"resource_name": resource_name, "event_ids": [], "count": 0})
        group["count"] += 1
        for event_id in (conflict.event_a_id, conflict.event_b_id):
            if event_id is not None and event_id not in group["event_ids"]:
                group["event_ids"].append(event_id)

    return [
        ConflictGroup(
            kind=kind,
            resource_id=resource_id,
            resource_name=group["resource_name"] or resource_id,
            date=day,
            event_ids=sorted(group["event_ids"]),
            conflict_count=group["count"],
        )
        for (kind, resource_id, day), group in groups.items()
    ]
