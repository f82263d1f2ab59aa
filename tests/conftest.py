import copy
import threading

import pytest

from career_assessment.core import ai_services, database
from career_assessment.core.config import config
from career_assessment.core.dummy_data import dummy_analysis, dummy_questions, dummy_recommendations, dummy_roadmap
from career_assessment.core.utils import memory_manager
from career_assessment.services import proctored_service, quiz_service, recommendation_service

class FakeAIService:
    """In-memory stand-in for the Groq/OpenAI backed service"""

    def __init__(self):
        self.fail_questions = False
        self.fail_recommendations = False
        self.fail_roadmap = False
        self.fail_analysis = False
        self.failing_images = set()
        self.image_gate: threading.Event = None
        self.image_calls = []
        self.recommendation_calls = []
        self.analysis_calls = []
        self.analysis_gate: threading.Event = None

    def generate_quiz_questions(self, student_context, question_count=None):
        if self.fail_questions:
            return []
        return dummy_questions(question_count or config.QUESTIONS_PER_TEST)

    def generate_aptitude_questions(self, class_level, test_type, specifics=None, question_count=None):
        return dummy_questions(question_count or config.APTITUDE_QUESTIONS_PER_TEST)

    def generate_recommendations(self, transcript, class_level, stream, track, time_taken):
        self.recommendation_calls.append((track, class_level, stream, len(transcript)))
        if self.fail_recommendations:
            raise Exception("recommendation backend down")
        return dummy_recommendations(track)

    def generate_image(self, prompt):
        self.image_calls.append(prompt)
        if self.image_gate is not None:
            self.image_gate.wait(timeout=5)
        if prompt in self.failing_images:
            raise Exception("image backend down")
        return f"https://images.example/{len(prompt)}.png"

    def generate_roadmap(self, title):
        if self.fail_roadmap:
            raise Exception("roadmap backend down")
        return dummy_roadmap()

    def analyze_aptitude(self, transcript, class_level, test_type, specifics=None, iq_score=None):
        self.analysis_calls.append({
            "transcript": transcript,
            "class_level": class_level,
            "test_type": test_type,
            "specifics": specifics,
            "iq_score": iq_score
        })
        if self.analysis_gate is not None:
            self.analysis_gate.wait(timeout=5)
        if self.fail_analysis:
            raise Exception("analysis backend down")
        return dummy_analysis(test_type)

    def health_check(self):
        return {"status": "healthy", "mode": "fake"}

class FakeDatabase:
    """In-memory stand-in for the MongoDB manager"""

    def __init__(self):
        self.tests = {}
        self.students = {}
        self.fail_get = False
        self.fail_complete = False
        self.fail_student_update = False
        self.complete_calls = []

    def add_test(self, **fields):
        doc = {
            "test_id": "test-1",
            "password": "ABC123",
            "status": "pending",
            "type": "General",
            "teacherId": "teacher-1",
            "studentEmail": "asha@example.com",
            "studentName": "Asha",
            "studentClass": "Class 9",
            "questions": [
                {"question": "2 + 2 = ?", "options": ["3", "4", "5", "6"], "correctAnswerIndex": 1},
                {"question": "Capital of France?", "options": ["Paris", "Rome", "Oslo", "Lima"],
                 "correctAnswerIndex": 0}
            ]
        }
        doc.update(fields)
        self.tests[doc["test_id"]] = doc
        return doc

    def get_test(self, test_id):
        if self.fail_get:
            raise Exception("store unreachable")
        doc = self.tests.get(test_id)
        return copy.deepcopy(doc) if doc else None

    def find_test_by_password(self, password):
        for doc in self.tests.values():
            if doc.get("password") == password:
                return {"test_id": doc["test_id"], "status": doc["status"]}
        return None

    def create_test(self, document):
        self.tests[document["test_id"]] = copy.deepcopy(document)
        return document["test_id"]

    def complete_test(self, test_id, fields):
        self.complete_calls.append((test_id, fields))
        if self.fail_complete:
            raise Exception("write rejected")
        doc = self.tests.get(test_id)
        if not doc or doc["status"] != "pending":
            return False
        doc.update(fields, status="completed", completedAt=1.0)
        return True

    def list_teacher_tests(self, teacher_id, limit=50):
        return [
            {k: v for k, v in doc.items() if k not in ("password", "questions")}
            for doc in self.tests.values() if doc.get("teacherId") == teacher_id
        ][:limit]

    def upsert_student(self, teacher_id, email, fields):
        self.students.setdefault((teacher_id, email), {}).update(fields)

    def update_student_aptitude(self, teacher_id, email, iq_score):
        if self.fail_student_update:
            raise Exception("student record locked")
        record = self.students.setdefault((teacher_id, email), {})
        record.update(iq=iq_score, lastTestDate=1.0)
        return True

    def validate_connection(self):
        return {"mongodb": True, "collections_accessible": True, "overall": True}

    def close(self):
        pass

@pytest.fixture(autouse=True)
def fast_config(monkeypatch):
    """Small question sets and a timer that only moves when ticked"""
    monkeypatch.setattr(config, "QUESTIONS_PER_TEST", 5)
    monkeypatch.setattr(config, "APTITUDE_QUESTIONS_PER_TEST", 4)
    monkeypatch.setattr(config, "QUESTION_TIME_LIMIT", 3)
    monkeypatch.setattr(config, "TIMER_INTERVAL_SECONDS", 3600)
    yield
    memory_manager.clear()

@pytest.fixture
def fake_ai():
    return FakeAIService()

@pytest.fixture
def fake_db():
    return FakeDatabase()

@pytest.fixture
def services(monkeypatch, fake_ai, fake_db):
    """Wire every service singleton to the fakes"""
    recommendations = recommendation_service.RecommendationService(fake_ai)
    monkeypatch.setattr(ai_services, "_ai_service", fake_ai)
    monkeypatch.setattr(database, "_db_manager", fake_db)
    monkeypatch.setattr(recommendation_service, "_recommendation_service", recommendations)
    monkeypatch.setattr(quiz_service, "_quiz_service", quiz_service.QuizService(fake_ai, recommendations))
    monkeypatch.setattr(proctored_service, "_proctored_service",
                        proctored_service.ProctoredService(fake_db, fake_ai))
    return {"ai": fake_ai, "db": fake_db}

@pytest.fixture
def client(services):
    from fastapi.testclient import TestClient
    from career_assessment.main import app

    with TestClient(app) as test_client:
        yield test_client
