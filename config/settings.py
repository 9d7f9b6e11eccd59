"""
Configuration management for the room scheduling engine and API.
"""
from datetime import time
from typing import Dict, List

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class WorkingBand(BaseModel):
    """A teaching band inside a working day (e.g. morning, afternoon)."""
    name: str
    start: time
    end: time
    weekdays: List[int]  # ISO weekdays the band is open on, 1=Monday


DEFAULT_WORKING_BANDS = [
    WorkingBand(name="morning", start=time(9, 0), end=time(12, 15), weekdays=[1, 2, 3, 4, 5, 6]),
    WorkingBand(name="afternoon", start=time(13, 30), end=time(16, 45), weekdays=[1, 2, 4, 5]),
]

# subject category -> room category -> affinity score
DEFAULT_ROOM_AFFINITY: Dict[str, Dict[str, float]] = {
    "computing": {"computer_lab": 50.0, "lab": 30.0, "engineering_lab": 30.0},
    "science": {"science_lab": 50.0, "research_lab": 50.0, "lab": 45.0},
    "engineering": {"engineering_lab": 50.0, "workshop": 50.0, "lab": 35.0},
    "business": {"business": 50.0, "conference": 50.0, "seminar": 35.0, "lecture": 35.0},
    "arts": {"studio": 50.0, "gallery": 45.0},
    "languages": {"seminar": 50.0, "language_lab": 50.0},
    "medicine": {"medical": 50.0, "clinic": 50.0, "research_lab": 40.0},
    "mathematics": {"lecture": 40.0, "classroom": 40.0},
    "social": {"seminar": 45.0, "research_lab": 35.0},
    "environment": {"field": 50.0, "lab": 50.0, "science_lab": 45.0},
}

# subject category -> keywords found in free-text subject names
DEFAULT_SUBJECT_KEYWORDS: Dict[str, List[str]] = {
    "computing": ["computer", "programming", "software", "database", "python", "java", "web", "machine learning"],
    "science": ["physics", "chemistry", "biology", "science", "experiment"],
    "engineering": ["engineering", "mechanical", "electrical", "civil", "industrial"],
    "business": ["business", "economics", "management", "finance", "accounting", "marketing"],
    "arts": ["art", "design", "music", "creative", "photography"],
    "languages": ["language", "english", "literature", "french", "spanish", "communication"],
    "medicine": ["medicine", "health", "anatomy", "medical", "nursing", "pharmacology"],
    "mathematics": ["math", "calculus", "statistics", "algebra", "geometry"],
    "social": ["psychology", "sociology", "social", "anthropology"],
    "environment": ["environment", "ecology", "climate", "sustainable", "renewable"],
}


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Room Scheduling Engine API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    # Working hours policy
    working_bands: List[WorkingBand] = DEFAULT_WORKING_BANDS
    rest_weekdays: List[int] = [7]
    weekday_preference: List[int] = [1, 2, 3, 4, 5, 6, 7]
    slot_step_minutes: int = 30

    # Teacher matching
    generic_teacher_role: str = "TEACHER"
    expertise_weight: float = 10.0
    generic_teacher_score: float = 1.0
    teacher_weekly_session_cap: int = 4
    near_cap_penalty: float = 0.5

    # Room matching
    room_affinity: Dict[str, Dict[str, float]] = DEFAULT_ROOM_AFFINITY
    subject_keywords: Dict[str, List[str]] = DEFAULT_SUBJECT_KEYWORDS
    generic_room_categories: List[str] = ["lecture", "classroom", "hall", "auditorium"]
    generic_room_score: float = 25.0
    mismatch_room_score: float = 5.0

    # Allocator
    preference_mode: str = "strict"  # "strict", "prefer" or "ignore"
    avoid_same_course_overlap: bool = True
    # 0 disables the corresponding limit
    scheduler_max_iterations: int = 200_000
    scheduler_time_budget_seconds: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
