# career_assessment/api/routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Header

from ..core.config import config
from ..core.utils import ValidationUtils, DateTimeUtils
from ..models.schemas import (
    AnswerRequest, ClearRequest, IssueTestRequest, IssueTestResponse, JumpRequest,
    LoginResponse, PasswordRequest, RoadmapRequest, SetupRequest, TrackRequest
)
from ..services.quiz_service import get_quiz_service
from ..services.proctored_service import get_proctored_service

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/")
async def home():
    """Home endpoint"""
    return {
        "service": config.API_TITLE,
        "version": config.API_VERSION,
        "status": "operational"
    }

# ==================== Practice assessment ====================

@router.post("/api/quiz/practice")
async def create_practice():
    """Open a practice assessment at the setup step"""
    flow = get_quiz_service().create_practice()
    return flow.view()

@router.get("/api/quiz/{flow_id}")
async def get_view(flow_id: str):
    """Current view of any assessment flow"""
    return get_quiz_service().get_flow(flow_id).view()

@router.post("/api/quiz/{flow_id}/setup")
async def complete_setup(flow_id: str, request: SetupRequest,
                         x_user_id: Optional[str] = Header(None)):
    flow = get_quiz_service().get_practice_flow(flow_id)
    profile = ValidationUtils.validate_profile(
        request.name, request.class_level, request.stream, request.sub_stream
    )
    return flow.complete_setup(profile, x_user_id)

@router.post("/api/quiz/{flow_id}/start")
async def start_quiz(flow_id: str):
    """Generate questions and enter the quiz"""
    return await get_quiz_service().get_practice_flow(flow_id).start()

@router.post("/api/quiz/{flow_id}/answer")
async def select_answer(flow_id: str, request: AnswerRequest):
    return get_quiz_service().get_flow(flow_id).select_answer(request.value, request.index)

@router.post("/api/quiz/{flow_id}/clear")
async def clear_answer(flow_id: str, request: Optional[ClearRequest] = None):
    index = request.index if request else None
    return get_quiz_service().get_flow(flow_id).clear_answer(index)

@router.post("/api/quiz/{flow_id}/next")
async def next_question(flow_id: str):
    return await get_quiz_service().get_flow(flow_id).next_question()

@router.post("/api/quiz/{flow_id}/jump")
async def jump_to(flow_id: str, request: JumpRequest):
    return get_quiz_service().get_flow(flow_id).jump_to(request.index)

@router.post("/api/quiz/{flow_id}/submit")
async def submit_quiz(flow_id: str):
    """End the attempt; repeated calls return the same outcome"""
    return await get_quiz_service().get_flow(flow_id).submit()

@router.post("/api/quiz/{flow_id}/explore")
async def explore(flow_id: str):
    return get_quiz_service().get_practice_flow(flow_id).explore()

@router.post("/api/quiz/{flow_id}/recommendations")
async def choose_track(flow_id: str, request: TrackRequest):
    return await get_quiz_service().get_practice_flow(flow_id).choose_track(request.track)

@router.post("/api/quiz/{flow_id}/roadmap")
async def view_roadmap(flow_id: str, request: RoadmapRequest):
    return await get_quiz_service().get_practice_flow(flow_id).view_roadmap(request.title)

@router.post("/api/quiz/{flow_id}/back")
async def go_back(flow_id: str):
    return get_quiz_service().get_practice_flow(flow_id).back()

@router.post("/api/quiz/{flow_id}/retake")
async def retake(flow_id: str):
    return get_quiz_service().get_practice_flow(flow_id).retake()

@router.delete("/api/quiz/{flow_id}")
async def exit_quiz(flow_id: str):
    """Leave the assessment and release its timer"""
    return get_quiz_service().exit(flow_id)

# ==================== Proctored tests ====================

@router.post("/api/proctored/login", response_model=LoginResponse)
async def portal_login(request: PasswordRequest):
    """Student portal: resolve a test from its password"""
    test_id = await get_proctored_service().find_by_password(request.password)
    return {"test_id": test_id}

@router.post("/api/proctored/tests/{test_id}")
async def open_test(test_id: str):
    flow = await get_proctored_service().open_test(test_id)
    return flow.view()

@router.post("/api/proctored/{flow_id}/authenticate")
async def authenticate(flow_id: str, request: PasswordRequest):
    return get_proctored_service().get_flow(flow_id).authenticate(request.password)

@router.post("/api/proctored/{flow_id}/retry")
async def retry_test(flow_id: str):
    return await get_proctored_service().get_flow(flow_id).retry()

@router.post("/api/teacher/tests", response_model=IssueTestResponse)
async def issue_test(request: IssueTestRequest):
    """Issue a proctored test to a student"""
    return await get_proctored_service().issue_test(
        request.teacher_id,
        request.student_email,
        request.student_name,
        request.student_class,
        request.test_type,
        request.job_details
    )

@router.get("/api/teacher/{teacher_id}/tests")
async def list_teacher_tests(teacher_id: str):
    tests = await get_proctored_service().list_tests(teacher_id)
    return {
        "count": len(tests),
        "tests": tests,
        "timestamp": DateTimeUtils.get_current_timestamp()
    }

@router.post("/api/cleanup")
async def cleanup_resources():
    """Expire idle assessment flows"""
    return get_quiz_service().cleanup_expired()
