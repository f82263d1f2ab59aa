# career_assessment/services/quiz_service.py
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from ..core.ai_services import get_ai_service
from ..core.config import config
from ..core.models import Question, SessionMode, StudentProfile, Track
from ..core.session import AssessmentSession
from ..core.states import (
    Attempt, BackRequested, ExploreRequested, GenerationFailed, InQuiz,
    InvalidTransition, LowScore, PathSelection, QuestionsReady, QuizCompleted,
    Recommendations, Results, RetakeRequested, Roadmap, SessionBusy, Setup,
    SetupCompleted, StartRequested, is_suspended, transition
)
from ..core.utils import memory_manager, generate_flow_id, run_blocking
from .recommendation_service import get_recommendation_service

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate questions. Please try again."

class AuthenticationRequired(Exception):
    """The practice assessment needs an identified user"""

def parse_questions(raw: List[Dict[str, Any]]) -> List[Question]:
    """Turn generator payloads into questions, dropping malformed items"""
    questions = []
    for i, item in enumerate(raw or [], 1):
        try:
            questions.append(Question.from_dict(item))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Dropping question {i}: {e}")
    return questions

class QuizFlow:
    """One operator's walk through the assessment views.

    All state changes go through dispatch(), which also keeps the session
    timer in step with the view: running only while the quiz is shown.
    """

    kind = "quiz"

    def __init__(self, state, flow_id: str = None):
        self.flow_id = flow_id or generate_flow_id()
        self.state = state
        self.closed = False
        self._request_counter = 0
        self._tasks: Set[asyncio.Task] = set()

    def next_request_id(self) -> int:
        self._request_counter += 1
        return self._request_counter

    @property
    def session(self) -> Optional[AssessmentSession]:
        return getattr(self.state, "session", None)

    def dispatch(self, event):
        if self.closed:
            stray = getattr(event, "session", None)
            if stray is not None:
                stray.close()
            logger.info(f"Flow {self.flow_id} closed; dropping {type(event).__name__}")
            return self.state

        previous = self.state
        new_state = transition(previous, event)

        if new_state is previous:
            # Stale completion; its session never reaches a view
            if isinstance(event, QuestionsReady):
                event.session.close()
            return previous

        self.state = new_state
        self._sync_session(previous, new_state)
        logger.debug(f"Flow {self.flow_id}: {previous.name} -> {new_state.name}")
        return new_state

    def _sync_session(self, previous, current):
        old_session = getattr(previous, "session", None)
        new_session = getattr(current, "session", None)

        if old_session is not None and old_session is not new_session:
            old_session.close()

        if new_session is None:
            return
        if isinstance(current, InQuiz):
            if old_session is new_session:
                new_session.resume()
            else:
                new_session.start()
        else:
            new_session.pause()

    def _ensure_idle(self):
        if is_suspended(self.state):
            raise SessionBusy("Please wait, an operation is in progress")

    def _quiz(self) -> AssessmentSession:
        self._ensure_idle()
        if not isinstance(self.state, InQuiz):
            raise InvalidTransition(f"No quiz in progress (state '{self.state.name}')")
        return self.state.session

    # ==================== Quiz operations ====================

    def select_answer(self, value, index: int = None) -> Dict[str, Any]:
        session = self._quiz()
        session.select_answer(session.current_index if index is None else index, value)
        return self.view()

    def clear_answer(self, index: int = None) -> Dict[str, Any]:
        session = self._quiz()
        session.clear_answer(session.current_index if index is None else index)
        return self.view()

    async def next_question(self) -> Dict[str, Any]:
        session = self._quiz()
        if session.advance(auto_skip=False):
            return await self.submit()
        return self.view()

    def jump_to(self, index: int) -> Dict[str, Any]:
        session = self._quiz()
        session.jump_to(index)
        return self.view()

    async def submit(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _on_timeout(self, finished: bool):
        """Timer callback; the last question expiring submits the attempt"""
        if not finished or self.closed:
            return
        logger.info(f"⏰ Time expired on last question, submitting: {self.flow_id}")
        task = asyncio.get_running_loop().create_task(self.submit())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"❌ Background submission failed for {self.flow_id}: {task.exception()}")

    # ==================== View / teardown ====================

    def view(self) -> Dict[str, Any]:
        data = {"flow_id": self.flow_id, "kind": self.kind, "state": self.state.name}
        data.update(self.state.to_view())
        return data

    def close(self):
        if self.closed:
            return
        self.closed = True
        if self.session is not None:
            self.session.close()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

class PracticeFlow(QuizFlow):
    """Self-serve assessment followed by recommendations and roadmaps"""

    kind = "practice"

    def __init__(self, ai_service=None, recommendation_service=None,
                 on_require_auth: Optional[Callable[[], None]] = None, flow_id: str = None):
        super().__init__(Setup(), flow_id)
        self.ai_service = ai_service or get_ai_service()
        self.recommendation_service = recommendation_service or get_recommendation_service()
        self.on_require_auth = on_require_auth
        self.identity: Optional[str] = None

    def complete_setup(self, profile: StudentProfile, identity: Optional[str]) -> Dict[str, Any]:
        if not identity:
            if self.on_require_auth:
                self.on_require_auth()
            raise AuthenticationRequired("Please log in to take the assessment")

        self.identity = identity
        self.dispatch(SetupCompleted(profile))
        logger.info(f"📝 Setup completed for {profile.name} ({profile.class_level}): {self.flow_id}")
        return self.view()

    async def start(self) -> Dict[str, Any]:
        """Generate the question set and enter the quiz"""
        self._ensure_idle()
        request_id = self.next_request_id()
        self.dispatch(StartRequested(request_id))
        profile = self.state.profile

        try:
            raw = await run_blocking(
                self.ai_service.generate_quiz_questions, profile.describe(), config.QUESTIONS_PER_TEST
            )
            questions = parse_questions(raw)
        except Exception as e:
            logger.error(f"❌ Question generation failed for {self.flow_id}: {e}")
            questions = []

        if not questions:
            self.dispatch(GenerationFailed(request_id, GENERATION_FAILED_MESSAGE))
            return self.view()

        session = AssessmentSession(SessionMode.PRACTICE, questions, on_timeout=self._on_timeout)
        self.dispatch(QuestionsReady(request_id, session))
        return self.view()

    async def submit(self) -> Dict[str, Any]:
        state = self.state
        if isinstance(state, (Results, LowScore, PathSelection, Recommendations, Roadmap)):
            logger.info(f"Attempt already scored: {self.flow_id}")
            return self.view()

        session = self._quiz()
        if session.is_active:
            session.request_submission()

        self.dispatch(QuizCompleted(Attempt.from_session(session)))
        logger.info(f"✅ Practice attempt scored: {self.flow_id}")
        return self.view()

    def explore(self) -> Dict[str, Any]:
        self.dispatch(ExploreRequested())
        return self.view()

    async def choose_track(self, track) -> Dict[str, Any]:
        await self.recommendation_service.load_recommendations(self, Track(track))
        return self.view()

    async def view_roadmap(self, title: str) -> Dict[str, Any]:
        await self.recommendation_service.load_roadmap(self, title)
        return self.view()

    def back(self) -> Dict[str, Any]:
        self._ensure_idle()
        self.dispatch(BackRequested())
        return self.view()

    def retake(self) -> Dict[str, Any]:
        self._ensure_idle()
        self.dispatch(RetakeRequested())
        return self.view()

class QuizService:
    """Registry facade over live assessment flows"""

    def __init__(self, ai_service=None, recommendation_service=None):
        self.ai_service = ai_service or get_ai_service()
        self.recommendation_service = recommendation_service or get_recommendation_service()

    def create_practice(self, on_require_auth: Optional[Callable[[], None]] = None) -> PracticeFlow:
        flow = PracticeFlow(self.ai_service, self.recommendation_service, on_require_auth)
        memory_manager.add_flow(flow)
        return flow

    def get_flow(self, flow_id: str) -> QuizFlow:
        return memory_manager.get_flow(flow_id)

    def get_practice_flow(self, flow_id: str) -> PracticeFlow:
        flow = self.get_flow(flow_id)
        if not isinstance(flow, PracticeFlow):
            raise InvalidTransition("This assessment is not a practice session")
        return flow

    def exit(self, flow_id: str) -> Dict[str, Any]:
        """Leave the assessment and release its session"""
        self.get_flow(flow_id)
        memory_manager.remove_flow(flow_id)
        return {"flow_id": flow_id, "closed": True}

    def cleanup_expired(self) -> Dict[str, Any]:
        removed = memory_manager.cleanup_expired_data()
        return {"removed": removed, **memory_manager.get_memory_stats()}

    def health_check(self) -> Dict[str, Any]:
        try:
            stats = memory_manager.get_memory_stats()
            return {
                "status": "healthy",
                "active_flows": stats["active_flows"],
                "by_kind": stats["by_kind"],
                "dummy_mode": config.USE_DUMMY_DATA
            }
        except Exception as e:
            return {"status": "error", "message": str(e)}

# Singleton pattern for quiz service
_quiz_service = None

def get_quiz_service() -> QuizService:
    """Get quiz service instance (singleton)"""
    global _quiz_service
    if _quiz_service is None:
        _quiz_service = QuizService()
    return _quiz_service
