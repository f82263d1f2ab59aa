# career_assessment/services/proctored_service.py
import dataclasses
import logging
import time
from typing import Any, Dict, List, Optional

from ..core.ai_services import get_ai_service
from ..core.config import config
from ..core.database import get_db_manager
from ..core.models import ProctoredTest, SessionMode, TestStatus, TestType
from ..core.scoring import estimate_aptitude
from ..core.session import AssessmentSession
from ..core.states import (
    Authenticated, AuthenticationFailed, InvalidTransition, LoadingTest, ProctoredAuth,
    SubmissionFailed, SubmissionStarted, Submitted, Submitting, TestFound,
    TestLookupStarted, TestMissing, TestSubmitted
)
from ..core.utils import (
    memory_manager, generate_test_id, generate_test_password, run_blocking, ValidationUtils
)
from .quiz_service import QuizFlow, parse_questions

logger = logging.getLogger(__name__)

TEST_NOT_FOUND_MESSAGE = "Test not found. Please check the link."
TEST_FETCH_FAILED_MESSAGE = "Error fetching test. Please try again."
INCORRECT_PASSWORD_MESSAGE = "Incorrect Password"
NO_QUESTIONS_MESSAGE = "This test has no questions. Please contact your teacher."
SUBMISSION_FAILED_MESSAGE = "Failed to submit test. Please try again."
INVALID_LOGIN_MESSAGE = "Invalid test password. Please check and try again."
ALREADY_COMPLETED_MESSAGE = "This test has already been completed."
ANALYSIS_FALLBACK = "Analysis not available."
VERDICT_FALLBACK = "N/A"

class TestLoginError(ValueError):
    """Student portal login rejected"""

class ProctoredFlow(QuizFlow):
    """A student taking a teacher-issued test.

    The record is loaded, the student proves the password, answers the
    fixed question set and the submission is written back once.
    """

    kind = "proctored"

    def __init__(self, test_id: str, db_manager=None, ai_service=None, flow_id: str = None):
        super().__init__(None, flow_id)
        self.test_id = test_id
        self._db_manager = db_manager
        self.ai_service = ai_service or get_ai_service()
        self.test: Optional[ProctoredTest] = None
        self.state = LoadingTest(test_id=test_id, request_id=self.next_request_id())

    @property
    def db_manager(self):
        # Resolved on first use
        if self._db_manager is None:
            self._db_manager = get_db_manager()
        return self._db_manager

    async def load(self) -> Dict[str, Any]:
        state = self.state
        if not isinstance(state, LoadingTest):
            raise InvalidTransition(f"Test is not loading (state '{state.name}')")
        request_id = state.request_id

        try:
            doc = await run_blocking(self.db_manager.get_test, self.test_id)
        except Exception as e:
            logger.error(f"❌ Test fetch failed for {self.test_id}: {e}")
            self.dispatch(TestMissing(request_id, TEST_FETCH_FAILED_MESSAGE))
            return self.view()

        if not doc:
            self.dispatch(TestMissing(request_id, TEST_NOT_FOUND_MESSAGE))
            return self.view()

        try:
            test = ProctoredTest.from_document(doc)
        except (ValueError, TypeError, KeyError) as e:
            logger.error(f"❌ Malformed test record {self.test_id}: {e}")
            self.dispatch(TestMissing(request_id, TEST_FETCH_FAILED_MESSAGE))
            return self.view()

        self.dispatch(TestFound(request_id, test))
        if test.is_completed:
            logger.info(f"Test {self.test_id} already completed")
        return self.view()

    async def retry(self) -> Dict[str, Any]:
        self.dispatch(TestLookupStarted(self.test_id, self.next_request_id()))
        return await self.load()

    def authenticate(self, password: str) -> Dict[str, Any]:
        self._ensure_idle()
        state = self.state
        if not isinstance(state, ProctoredAuth):
            raise InvalidTransition(f"Cannot authenticate in state '{state.name}'")

        if password != state.test.password:
            logger.warning(f"⚠️ Incorrect password for test {self.test_id}")
            self.dispatch(AuthenticationFailed(INCORRECT_PASSWORD_MESSAGE))
            return self.view()

        if not state.test.questions:
            self.dispatch(AuthenticationFailed(NO_QUESTIONS_MESSAGE))
            return self.view()

        self.test = state.test
        session = AssessmentSession(SessionMode.PROCTORED, state.test.questions, on_timeout=self._on_timeout)
        self.dispatch(Authenticated(session))
        logger.info(f"🔓 Test {self.test_id} unlocked for {state.test.student_name or 'student'}")
        return self.view()

    async def submit(self) -> Dict[str, Any]:
        if isinstance(self.state, (Submitting, Submitted)):
            logger.info(f"Submission already handled for {self.test_id}")
            return self.view()

        session = self._quiz()
        if session.is_active:
            session.request_submission()
        # Enter Submitting before the first await; later calls see the guard above
        self.dispatch(SubmissionStarted())

        test = self.test
        result = session.result()
        iq_score = estimate_aptitude(result.percentage)
        analysis = await self._analyze(test, session.transcript(), iq_score)

        fields = {
            "answers": list(session.answers),
            "score": result.score,
            "iqScore": iq_score,
            "analysis": analysis.get("analysis") or ANALYSIS_FALLBACK,
            "verdict": analysis.get("verdict") or VERDICT_FALLBACK,
            "swot": analysis.get("swot"),
            "teachingPlan": analysis.get("teachingPlan"),
            "suggestions": analysis.get("suggestions")
        }

        try:
            written = await run_blocking(self.db_manager.complete_test, test.test_id, fields)
            if written:
                completed = dataclasses.replace(
                    test,
                    status=TestStatus.COMPLETED,
                    score=result.score,
                    iq_score=iq_score,
                    extra=dict(test.extra, analysis=fields["analysis"], verdict=fields["verdict"])
                )
            else:
                # Completed elsewhere; show the stored outcome
                doc = await run_blocking(self.db_manager.get_test, test.test_id)
                completed = ProctoredTest.from_document(doc) if doc else \
                    dataclasses.replace(test, status=TestStatus.COMPLETED)
        except Exception as e:
            logger.error(f"❌ Submission failed for {test.test_id}: {e}")
            if not self.closed:
                session.reopen()
                self.dispatch(SubmissionFailed(SUBMISSION_FAILED_MESSAGE))
            return self.view()

        if written:
            await self._update_student(test, iq_score)

        self.dispatch(TestSubmitted(completed))
        logger.info(f"✅ Test {test.test_id} submitted: score {result.score}/{result.total}, aptitude {iq_score}")
        return self.view()

    async def _analyze(self, test: ProctoredTest, transcript: List[Dict[str, Any]],
                       iq_score: int) -> Dict[str, Any]:
        try:
            analysis = await run_blocking(
                self.ai_service.analyze_aptitude,
                transcript,
                test.student_class or "Unknown",
                test.test_type.value,
                test.specialization,
                iq_score
            )
            return analysis or {}
        except Exception as e:
            logger.warning(f"Aptitude analysis unavailable for {test.test_id}: {e}")
            return {}

    async def _update_student(self, test: ProctoredTest, iq_score: int):
        if not (test.teacher_id and test.student_email):
            return
        try:
            await run_blocking(
                self.db_manager.update_student_aptitude, test.teacher_id, test.student_email, iq_score
            )
        except Exception as e:
            logger.error(f"Failed to update student aptitude for {test.student_email}: {e}")

class ProctoredService:
    """Student portal login, proctored flows and teacher test issuance"""

    def __init__(self, db_manager=None, ai_service=None):
        self._db_manager = db_manager
        self.ai_service = ai_service or get_ai_service()

    @property
    def db_manager(self):
        if self._db_manager is None:
            self._db_manager = get_db_manager()
        return self._db_manager

    async def find_by_password(self, password: str) -> str:
        """Resolve the test id behind a portal password"""
        password = ValidationUtils.sanitize_input(password or "", max_length=50).upper()
        if not password:
            raise TestLoginError(INVALID_LOGIN_MESSAGE)

        doc = await run_blocking(self.db_manager.find_test_by_password, password)
        if not doc:
            raise TestLoginError(INVALID_LOGIN_MESSAGE)
        if doc.get("status") == TestStatus.COMPLETED.value:
            raise TestLoginError(ALREADY_COMPLETED_MESSAGE)

        return doc["test_id"]

    async def open_test(self, test_id: str) -> ProctoredFlow:
        """Register a proctored flow and load its test"""
        test_id = ValidationUtils.sanitize_input(test_id or "", max_length=100)
        if not test_id:
            raise ValueError("A test id is required")

        flow = ProctoredFlow(test_id, self._db_manager, self.ai_service)
        memory_manager.add_flow(flow)
        await flow.load()
        return flow

    def get_flow(self, flow_id: str) -> ProctoredFlow:
        flow = memory_manager.get_flow(flow_id)
        if not isinstance(flow, ProctoredFlow):
            raise InvalidTransition("This assessment is not a proctored test")
        return flow

    async def issue_test(self, teacher_id: str, student_email: str, student_name: str,
                         student_class: str, test_type: str = "General",
                         job_details: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Create a pending test for a student and return its credentials"""
        test_type = TestType(test_type)
        if not teacher_id:
            raise ValueError("Teacher id is required")
        if not student_email or not student_name or not student_class:
            raise ValueError("Student name, email and class are required")

        job_details = job_details or {}
        specifics = None
        if test_type == TestType.SPECIFIC:
            if not job_details.get("job"):
                raise ValueError("A job is required for a Specific test")
            specifics = f"{job_details.get('job', '')} ({job_details.get('specialization', '')})"

        raw = await run_blocking(
            self.ai_service.generate_aptitude_questions, student_class, test_type.value, specifics
        )
        questions = parse_questions(raw)
        if not questions:
            raise Exception("Failed to generate test questions")

        await run_blocking(self.db_manager.upsert_student, teacher_id, student_email, {
            "name": student_name,
            "class": student_class
        })

        now = time.time()
        document = {
            "test_id": generate_test_id(),
            "teacherId": teacher_id,
            "studentEmail": student_email,
            "studentName": student_name,
            "studentClass": student_class,
            "password": generate_test_password(),
            "expiresAt": now + config.TEST_EXPIRY_HOURS * 3600,
            "status": TestStatus.PENDING.value,
            "type": test_type.value,
            "questions": [question.to_dict() for question in questions],
            "jobDetails": job_details if test_type == TestType.SPECIFIC else None
        }
        test_id = await run_blocking(self.db_manager.create_test, document)
        logger.info(f"✅ Test issued to {student_email}: {test_id}")

        return {
            "test_id": test_id,
            "password": document["password"],
            "expires_at": document["expiresAt"],
            "total_questions": len(questions),
            "type": test_type.value
        }

    async def list_tests(self, teacher_id: str) -> List[Dict[str, Any]]:
        if not teacher_id:
            raise ValueError("Teacher id is required")
        return await run_blocking(self.db_manager.list_teacher_tests, teacher_id)

    def health_check(self) -> Dict[str, Any]:
        try:
            db_health = self.db_manager.validate_connection()
            return {"status": "healthy" if db_health["overall"] else "degraded"}
        except Exception as e:
            return {"status": "error", "message": str(e)}

# Singleton pattern for proctored service
_proctored_service = None

def get_proctored_service() -> ProctoredService:
    """Get proctored service instance (singleton)"""
    global _proctored_service
    if _proctored_service is None:
        _proctored_service = ProctoredService()
    return _proctored_service
