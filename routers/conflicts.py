from fastapi import APIRouter

from models.calendar import ConflictKind
from models.schemas import ConflictAuditRequest, ConflictAuditResponse
from service.auditor import find_conflicts, group_conflicts

router = APIRouter()


@router.post("/conflicts/audit", response_model=ConflictAuditResponse)
def audit_conflicts(request: ConflictAuditRequest):
    """
    Report room, teacher and capacity conflicts among the given events.

    Nothing is stored; the caller decides whether to persist or discard the
    result.
    """
    conflicts = find_conflicts(request.events, check_capacity=request.check_capacity)
    return ConflictAuditResponse(
        conflicts=conflicts,
        groups=group_conflicts(conflicts, request.events),
        total=len(conflicts),
        room_conflicts=sum(1 for c in conflicts if c.kind == ConflictKind.ROOM),
        teacher_conflicts=sum(1 for c in conflicts if c.kind == ConflictKind.TEACHER),
        capacity_conflicts=sum(1 for c in conflicts if c.kind == ConflictKind.CAPACITY),
    )
