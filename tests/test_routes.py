from career_assessment.core import database
from career_assessment.services import proctored_service

ANSWER_KEY = [1, 2, 2, 1, 2]
USER = {"X-User-Id": "user-42"}

def start_practice(client):
    flow_id = client.post("/api/quiz/practice").json()["flow_id"]
    response = client.post(
        f"/api/quiz/{flow_id}/setup",
        json={"name": "Dev", "class_level": "Class 12", "stream": "Commerce"},
        headers=USER
    )
    assert response.status_code == 200
    assert response.json()["state"] == "instructions"
    return flow_id

def test_home_and_health(client):
    assert client.get("/").json()["status"] == "operational"
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["database"] == "healthy"
    assert client.get("/info").json()["configuration"]["questions_per_test"] == 5

def test_setup_without_identity_is_rejected(client):
    flow_id = client.post("/api/quiz/practice").json()["flow_id"]
    response = client.post(f"/api/quiz/{flow_id}/setup", json={"class_level": "Class 9"})
    assert response.status_code == 401
    assert response.json()["type"] == "authentication_required"

def test_setup_validates_stream(client):
    flow_id = client.post("/api/quiz/practice").json()["flow_id"]
    response = client.post(
        f"/api/quiz/{flow_id}/setup",
        json={"class_level": "Class 11", "stream": "Science"},
        headers=USER
    )
    assert response.status_code == 400
    assert "PCM or PCB" in response.json()["message"]

def test_practice_journey(client):
    flow_id = start_practice(client)

    view = client.post(f"/api/quiz/{flow_id}/start").json()
    assert view["state"] == "quiz"
    assert view["quiz"]["palette"] == ["not-visited"] * 5

    for index, value in enumerate(ANSWER_KEY):
        client.post(f"/api/quiz/{flow_id}/answer", json={"value": value, "index": index})
    view = client.post(f"/api/quiz/{flow_id}/submit").json()
    assert view["state"] == "results"
    assert view["result"]["percentage"] == 100

    assert client.post(f"/api/quiz/{flow_id}/explore").json()["state"] == "path-selection"

    view = client.post(f"/api/quiz/{flow_id}/recommendations", json={"track": "studies"}).json()
    assert [item["title"] for item in view["recommendations"]][0] == "B.Sc. Statistics"

    view = client.post(f"/api/quiz/{flow_id}/roadmap", json={"title": "B.Sc. Statistics"}).json()
    assert view["state"] == "roadmap"
    assert view["steps"][0]["title"] == "Build Foundations"

    assert client.post(f"/api/quiz/{flow_id}/back").json()["state"] == "recommendations"
    assert client.get(f"/api/quiz/{flow_id}").json()["state"] == "recommendations"

    assert client.delete(f"/api/quiz/{flow_id}").json()["closed"] is True
    assert client.get(f"/api/quiz/{flow_id}").status_code == 404

def test_quiz_navigation(client):
    flow_id = start_practice(client)
    client.post(f"/api/quiz/{flow_id}/start")

    view = client.post(f"/api/quiz/{flow_id}/jump", json={"index": 3}).json()
    assert view["quiz"]["current_index"] == 3

    client.post(f"/api/quiz/{flow_id}/answer", json={"value": 0})
    view = client.post(f"/api/quiz/{flow_id}/clear").json()
    assert view["quiz"]["palette"][3] == "not-answered"

    view = client.post(f"/api/quiz/{flow_id}/next").json()
    assert view["quiz"]["current_index"] == 4

def test_invalid_answer_index(client):
    flow_id = start_practice(client)
    client.post(f"/api/quiz/{flow_id}/start")
    response = client.post(f"/api/quiz/{flow_id}/answer", json={"value": 0, "index": 9})
    assert response.status_code == 400
    assert response.json()["type"] == "session_error"

def test_answer_outside_quiz_conflicts(client):
    flow_id = start_practice(client)
    response = client.post(f"/api/quiz/{flow_id}/answer", json={"value": 0})
    assert response.status_code == 409
    assert response.json()["type"] == "invalid_transition"

def test_unknown_flow(client):
    response = client.get("/api/quiz/missing")
    assert response.status_code == 404

def test_proctored_journey(client, services):
    services["db"].add_test()

    login = client.post("/api/proctored/login", json={"password": "abc123"})
    assert login.json() == {"test_id": "test-1"}

    view = client.post("/api/proctored/tests/test-1").json()
    assert view["state"] == "proctored-auth"
    flow_id = view["flow_id"]

    view = client.post(f"/api/proctored/{flow_id}/authenticate", json={"password": "WRONG1"}).json()
    assert view["error"] == "Incorrect Password"

    view = client.post(f"/api/proctored/{flow_id}/authenticate", json={"password": "ABC123"}).json()
    assert view["state"] == "quiz"

    client.post(f"/api/quiz/{flow_id}/answer", json={"value": 1})
    view = client.post(f"/api/quiz/{flow_id}/submit").json()
    assert view["state"] == "submitted"
    assert view["test"]["iq_score"] == 110

    again = client.post("/api/proctored/login", json={"password": "ABC123"})
    assert again.status_code == 400
    assert again.json()["message"] == "This test has already been completed."

def test_unreachable_store_shows_retryable_error(client, services, monkeypatch):
    def refuse(self):
        raise ConnectionError("mongodb unreachable")

    monkeypatch.setattr(database.DatabaseManager, "__init__", refuse)
    monkeypatch.setattr(database, "_db_manager", None)
    monkeypatch.setattr(proctored_service, "_proctored_service",
                        proctored_service.ProctoredService(ai_service=services["ai"]))

    response = client.post("/api/proctored/tests/test-1")
    assert response.status_code == 200
    view = response.json()
    assert view["state"] == "test-unavailable"
    assert view["error"] == "Error fetching test. Please try again."

    services["db"].add_test()
    monkeypatch.setattr(database, "_db_manager", services["db"])
    view = client.post(f"/api/proctored/{view['flow_id']}/retry").json()
    assert view["state"] == "proctored-auth"

def test_proctored_flow_rejects_practice_actions(client, services):
    services["db"].add_test()
    flow_id = client.post("/api/proctored/tests/test-1").json()["flow_id"]
    response = client.post(f"/api/quiz/{flow_id}/explore")
    assert response.status_code == 409

def test_teacher_issues_and_lists_tests(client, services):
    response = client.post("/api/teacher/tests", json={
        "teacher_id": "teacher-3",
        "student_email": "noor@example.com",
        "student_name": "Noor",
        "student_class": "Class 10",
        "test_type": "Specific",
        "job_details": {"job": "Pilot", "specialization": "Commercial"}
    })
    assert response.status_code == 200
    issued = response.json()
    assert len(issued["password"]) == 6
    assert issued["type"] == "Specific"

    listing = client.get("/api/teacher/teacher-3/tests").json()
    assert listing["count"] == 1
    assert listing["tests"][0]["jobDetails"]["job"] == "Pilot"

def test_cleanup_endpoint(client):
    client.post("/api/quiz/practice")
    result = client.post("/api/cleanup").json()
    assert result["removed"] == 0
    assert result["active_flows"] == 1
