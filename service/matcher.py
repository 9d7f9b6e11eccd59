"""
Teacher and room scoring.

Scores are non-negative; zero means "not a candidate". Ranking keeps the
input order for equal scores so the allocator stays deterministic.
"""
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from config import Settings, settings as default_settings
from models.calendar import CourseSession, Room, Teacher
import logging

logger = logging.getLogger(__name__)


class ResourceMatcher:
    """
    Scores (session, teacher) and (session, room) pairings.

    Subject to room affinity comes from a configurable table
    (subject category -> room category -> score) instead of keyword checks
    spread through the code.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.room_affinity: Dict[str, Dict[str, float]] = {
            subject.lower(): {category.lower(): score for category, score in rooms.items()}
            for subject, rooms in self.settings.room_affinity.items()
        }
        self.subject_keywords: Dict[str, List[str]] = {
            category.lower(): [keyword.lower() for keyword in keywords]
            for category, keywords in self.settings.subject_keywords.items()
        }
        self.generic_room_categories = {c.lower() for c in self.settings.generic_room_categories}

    # ===========================
    # Teachers
    # ===========================

    def score_teacher(self, session: CourseSession, teacher: Teacher, load: int = 0) -> float:
        """
        Score a teacher for a session.

        Args:
            session: the session to staff
            teacher: candidate teacher
            load: sessions the teacher already carries this week

        Returns:
            ``expertise_weight * level`` for subject experts, the generic
            fallback score for generic-role teachers, 0 otherwise. Teachers at
            the weekly cap score 0, one below it are penalised.
        """
        if session.assigned_teacher_id is not None and teacher.id != session.assigned_teacher_id:
            return 0.0

        cap = self.settings.teacher_weekly_session_cap
        if cap > 0 and load >= cap:
            return 0.0

        level = teacher.expertise_level(session.subject)
        if level > 0:
            score = self.settings.expertise_weight * level
        elif teacher.role.upper() == self.settings.generic_teacher_role.upper():
            score = self.settings.generic_teacher_score
        elif session.assigned_teacher_id is not None:
            # An explicitly assigned teacher is qualified by assignment.
            score = self.settings.generic_teacher_score
        else:
            return 0.0

        if cap > 0 and load == cap - 1:
            score *= self.settings.near_cap_penalty
        return score

    def rank_teachers(
        self,
        session: CourseSession,
        teachers: Sequence[Teacher],
        loads: Optional[Mapping[str, int]] = None,
    ) -> List[Tuple[Teacher, float]]:
        loads = loads or {}
        scored = [(t, self.score_teacher(session, t, loads.get(t.id, 0))) for t in teachers]
        ranked = [pair for pair in scored if pair[1] > 0]
        ranked.sort(key=lambda pair: pair[1], reverse=True)
        return ranked

    # ===========================
    # Rooms
    # ===========================

    def subject_category(self, session: CourseSession) -> Optional[str]:
        """Explicit category if given, else the first keyword table entry found in the subject."""
        if session.subject_category:
            return session.subject_category.lower()
        subject = session.subject.lower()
        for category, keywords in self.subject_keywords.items():
            if any(keyword in subject for keyword in keywords):
                return category
        return None

    def affinity(self, session: CourseSession, room: Room) -> float:
        room_category = room.category.lower()
        subject_category = self.subject_category(session)
        if subject_category is not None:
            score = self.room_affinity.get(subject_category, {}).get(room_category)
            if score is not None:
                return score
        if room_category in self.generic_room_categories:
            return self.settings.generic_room_score
        return self.settings.mismatch_room_score

    def capacity_bonus(self, session: CourseSession, room: Room) -> float:
        """Bonus for rooms sized close to the expected attendance."""
        attendance = session.expected_attendance or session.min_capacity
        if attendance <= 0:
            return 0.0
        ratio = room.capacity / attendance
        if ratio < 1:
            return 0.0
        if ratio <= 1.25:
            return 15.0
        if ratio <= 2:
            return 10.0
        if ratio <= 3:
            return 5.0
        return 0.0

    def score_room(self, session: CourseSession, room: Room) -> float:
        if room.capacity < session.min_capacity:
            return 0.0
        return self.affinity(session, room) + self.capacity_bonus(session, room)

    def rank_rooms(self, session: CourseSession, rooms: Sequence[Room]) -> List[Tuple[Room, float]]:
        scored = [(r, self.score_room(session, r)) for r in rooms]
        ranked = [pair for pair in scored if pair[1] > 0]
        ranked.sort(key=lambda pair: pair[1], reverse=True)
        logger.debug(f"Session {session.id}: {len(ranked)}/{len(rooms)} rooms qualify")
        return ranked
