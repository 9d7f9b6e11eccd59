"""
Test the scheduling and conflict audit API with self-contained test data.
"""
from fastapi.testclient import TestClient
from main import app


client = TestClient(app)

# 2025-01-06 is a Monday
WEEK_START = "2025-01-06"


# Test data fixtures
def get_minimal_request():
    """Return minimal valid scheduling request."""
    return {
        "week_start": WEEK_START,
        "sessions": [
            {
                "id": "s1",
                "course_id": "c1",
                "subject": "Calculus",
                "duration_minutes": 60,
                "min_capacity": 20
            }
        ],
        "teachers": [
            {
                "id": "t1",
                "name": "John Doe",
                "expertise": [{"subject": "Calculus", "level": 3}]
            }
        ],
        "rooms": [
            {"id": "r1", "name": "Lecture Hall A", "capacity": 50, "category": "lecture"}
        ]
    }


def get_medium_request():
    """Return medium-sized scheduling request with courses and existing events."""
    return {
        "week_start": WEEK_START,
        "courses": [
            {
                "id": "math",
                "name": "Mathematics",
                "subject": "Statistics",
                "duration_minutes": 90,
                "sessions_per_week": 2,
                "min_capacity": 30,
                "priority": 2
            },
            {
                "id": "phys",
                "name": "Physics Lab",
                "subject": "Physics",
                "duration_minutes": 120,
                "sessions_per_week": 1,
                "min_capacity": 15,
                "priority": 1
            }
        ],
        "teachers": [
            {"id": "t1", "name": "Alice Smith", "expertise": [{"subject": "Statistics", "level": 2}]},
            {"id": "t2", "name": "Bob Johnson", "expertise": [{"subject": "Physics", "level": 3}]}
        ],
        "rooms": [
            {"id": "r1", "name": "Lecture Hall A", "capacity": 60, "category": "lecture"},
            {"id": "r2", "name": "Physics Lab", "capacity": 20, "category": "science_lab"}
        ],
        "existing_events": [
            {
                "id": 1,
                "title": "Faculty meeting",
                "date": WEEK_START,
                "start_time": "09:00",
                "end_time": "12:15",
                "teacher_id": "t1",
                "room_id": "r1"
            }
        ]
    }


def get_audit_request():
    """Return the two-event room clash."""
    return {
        "events": [
            {
                "id": 3,
                "title": "Algebra",
                "date": "2025-01-01",
                "start_time": "09:00",
                "end_time": "10:00",
                "teacher_id": "T1",
                "room_id": "A",
                "room_name": "A"
            },
            {
                "id": 4,
                "title": "Geometry",
                "date": "2025-01-01",
                "start_time": "09:30",
                "end_time": "10:30",
                "teacher_id": "T2",
                "room_id": "A",
                "room_name": "A"
            }
        ]
    }


def test_root_endpoint():
    """Test root endpoint is accessible."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "status" in data
    assert data["status"] == "healthy"


def test_health_endpoint():
    """Test health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_with_preference_endpoint_minimal():
    """Test /v1/schedule/with-preference with minimal valid request."""
    response = client.post("/api/v1/schedule/with-preference", json=get_minimal_request())

    assert response.status_code == 200
    data = response.json()

    # Verify response structure
    assert "assignments" in data
    assert "messages" in data
    assert isinstance(data["assignments"], list)
    assert isinstance(data["messages"], dict)
    assert data["status"] == "COMPLETE"
    assert data["placed_count"] == 1
    assert data["unplaced_count"] == 0

    assignment = data["assignments"][0]
    assert assignment["session_id"] == "s1"
    assert assignment["teacher"]["id"] == "t1"
    assert assignment["room"]["id"] == "r1"
    # First slot of the week: Monday morning
    assert assignment["window"]["date"] == WEEK_START
    assert assignment["window"]["start_time"].startswith("09:00")
    assert assignment["window"]["end_time"].startswith("10:00")
    assert data["day_distribution"] == {"monday": 1}


def test_without_preference_endpoint_minimal():
    """Test /v1/schedule/without-preference with minimal valid request."""
    response = client.post("/api/v1/schedule/without-preference", json=get_minimal_request())

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "COMPLETE"
    assert len(data["assignments"]) == 1
    assert data["iterations"] >= 1
    assert data["solve_time_seconds"] >= 0


def test_with_preference_endpoint_medium():
    """Courses expand into sessions and existing events block their resources."""
    response = client.post("/api/v1/schedule/with-preference", json=get_medium_request())

    assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.json()}"
    data = response.json()

    assert data["total_requested"] == 3
    assert data["status"] == "COMPLETE"
    session_ids = sorted(a["session_id"] for a in data["assignments"])
    assert session_ids == ["math#1", "math#2", "phys#1"]

    # t1 and r1 are busy all Monday morning
    for assignment in data["assignments"]:
        if assignment["teacher"]["id"] == "t1" or assignment["room"]["id"] == "r1":
            window = assignment["window"]
            assert not (window["date"] == WEEK_START and window["start_time"] < "12:15")


def test_teacher_preference_strict_enforcement():
    """Preferred weekdays are a hard filter on /with-preference."""
    request = get_minimal_request()
    request["sessions"][0]["preferred_weekdays"] = [3]
    request["sessions"][0]["preferred_time"] = {"start": "10:00", "end": "12:00"}

    response = client.post("/api/v1/schedule/with-preference", json=request)
    assert response.status_code == 200
    window = response.json()["assignments"][0]["window"]
    assert window["date"] == "2025-01-08"  # Wednesday
    assert window["start_time"].startswith("10:00")


def test_teacher_preference_not_enforced_in_without_preference():
    """Preferences are ignored on /without-preference."""
    request = get_minimal_request()
    request["sessions"][0]["preferred_weekdays"] = [3]

    response = client.post("/api/v1/schedule/without-preference", json=request)
    assert response.status_code == 200
    window = response.json()["assignments"][0]["window"]
    assert window["date"] == WEEK_START


def test_unplaced_session_reported_in_messages():
    """A session nobody can teach is reported, not raised."""
    request = get_minimal_request()
    # A generic-role teacher would be the fallback for any subject
    request["teachers"][0]["role"] = "PROFESSOR"
    request["sessions"].append({
        "id": "s2",
        "course_id": "c2",
        "subject": "Organic Chemistry",
        "duration_minutes": 60
    })

    response = client.post("/api/v1/schedule/without-preference", json=request)
    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "PARTIAL"
    assert data["unplaced"][0]["session_id"] == "s2"
    assert data["unplaced"][0]["reason"] == "NoQualifiedTeacher"
    error = data["messages"]["error_message"][0]
    assert error["title"] == "No Qualified Teacher"
    assert "s2" in error["message"]


def test_validation_error_format():
    """Test that validation errors return human-friendly format."""
    # Missing required fields
    invalid_request = {
        "sessions": [],
    }

    response = client.post("/api/v1/schedule/with-preference", json=invalid_request)

    assert response.status_code == 422
    data = response.json()
    assert "errors" in data
    assert isinstance(data["errors"], dict)
    assert "Week Start" in data["errors"]

    for field, messages in data["errors"].items():
        assert isinstance(messages, list)
        assert len(messages) > 0
        assert isinstance(messages[0], str)


def test_invalid_duration_returns_422():
    """Engine input errors use the same error shape as request validation."""
    request = get_minimal_request()
    request["sessions"][0]["duration_minutes"] = 0

    response = client.post("/api/v1/schedule/without-preference", json=request)
    assert response.status_code == 422
    errors = response.json()["errors"]["Input"]
    assert any("duration" in message for message in errors)


def test_course_without_weekly_sessions_returns_422():
    """A course must expand into at least one session."""
    request = get_medium_request()
    request["courses"][1]["sessions_per_week"] = 0

    response = client.post("/api/v1/schedule/with-preference", json=request)
    assert response.status_code == 422
    assert any("Course phys" in message for message in response.json()["errors"]["Input"])


def test_invalid_existing_event_returns_422():
    """Existing events without times cannot block anything and are rejected."""
    request = get_minimal_request()
    request["existing_events"] = [{"id": 9, "title": "Orphan", "teacher_id": "t1"}]

    response = client.post("/api/v1/schedule/without-preference", json=request)
    assert response.status_code == 422
    assert "Input" in response.json()["errors"]


def test_conflict_audit_endpoint():
    """Room clash between events 3 and 4, no teacher clash."""
    response = client.post("/api/v1/conflicts/audit", json=get_audit_request())

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["room_conflicts"] == 1
    assert data["teacher_conflicts"] == 0

    conflict = data["conflicts"][0]
    assert conflict["kind"] == "ROOM"
    assert conflict["event_a_id"] == 3
    assert conflict["event_b_id"] == 4
    assert conflict["overlap"]["start_time"].startswith("09:30")
    assert conflict["overlap"]["end_time"].startswith("10:00")

    assert len(data["groups"]) == 1
    assert data["groups"][0]["event_ids"] == [3, 4]


def test_conflict_audit_capacity_flag():
    """Capacity conflicts only appear when requested."""
    request = get_audit_request()
    request["events"][0]["room_capacity"] = 10
    request["events"][0]["expected_participants"] = 25

    data = client.post("/api/v1/conflicts/audit", json=request).json()
    assert data["capacity_conflicts"] == 1

    request["check_capacity"] = False
    data = client.post("/api/v1/conflicts/audit", json=request).json()
    assert data["capacity_conflicts"] == 0
    assert data["total"] == 1


def test_conflict_audit_invalid_event():
    """An event ending before it starts is rejected."""
    request = get_audit_request()
    request["events"][1]["end_time"] = "09:00"

    response = client.post("/api/v1/conflicts/audit", json=request)
    assert response.status_code == 422
    assert any("Event 4" in message for message in response.json()["errors"]["Input"])
