# career_assessment/core/session.py
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence

import markdown

from .models import Answer, Question, SessionMode, Visitation
from .scoring import QuizResult, build_transcript, is_empty_answer, score_session
from .timer import QuestionTimer

logger = logging.getLogger(__name__)

class SessionError(ValueError):
    """Operation not allowed on the session (bad index, inactive session, bad answer)"""

class AssessmentSession:
    """One attempt at an assessment.

    Owns the answer and visitation slots (always index-aligned with the
    questions), the current position and the per-question timer. The timer
    is released when the session is closed.
    """

    def __init__(self, mode: SessionMode, questions: Sequence[Question],
                 on_timeout: Optional[Callable[[bool], None]] = None,
                 time_limit: int = None, interval: float = None,
                 clock: Callable[[], float] = time.time):
        if not questions:
            raise SessionError("A session needs at least one question")

        self.session_id = str(uuid.uuid4())
        self.mode = mode
        self.questions = tuple(questions)
        self.answers: List[Answer] = [None] * len(self.questions)
        self.visitation: List[Visitation] = [Visitation.NOT_VISITED] * len(self.questions)
        self.current_index = 0
        self._clock = clock
        self.started_at = clock()
        self.finished_at: Optional[float] = None
        self.completion_requested = False
        self.closed = False
        self._on_timeout = on_timeout
        self.timer = QuestionTimer(self._handle_expiry, time_limit, interval)

        logger.info(f"✅ Session created: {self.session_id} ({mode.value}, {len(self.questions)} questions)")

    # ==================== Lifecycle ====================

    @property
    def is_active(self) -> bool:
        return not self.closed and not self.completion_requested

    @property
    def remaining_seconds(self) -> int:
        return self.timer.remaining

    @property
    def last_index(self) -> int:
        return len(self.questions) - 1

    def start(self):
        self.timer.reset()
        self.timer.resume()

    def pause(self):
        self.timer.pause()

    def resume(self):
        if self.is_active:
            self.timer.resume()

    def reopen(self):
        """Allow another submission attempt after a failed one; answers are kept"""
        if self.closed:
            raise SessionError("Session is closed")
        self.completion_requested = False
        self.finished_at = None

    def close(self):
        if self.closed:
            return
        self.timer.cancel()
        self.closed = True
        logger.info(f"🧹 Session closed: {self.session_id}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ==================== Operations ====================

    def _require_active(self):
        if not self.is_active:
            raise SessionError("Session is not active")

    def _checked_index(self, index: Any) -> int:
        if isinstance(index, bool) or not isinstance(index, int):
            raise SessionError("Question index must be an integer")
        if not 0 <= index < len(self.questions):
            raise SessionError(f"Question index {index} out of range")
        return index

    def select_answer(self, index: int, value: Answer):
        self._require_active()
        index = self._checked_index(index)
        question = self.questions[index]

        if question.is_free_text:
            if not isinstance(value, str):
                raise SessionError("This question expects a written answer")
            value = value.strip()
            if not value:
                self.clear_answer(index)
                return
        else:
            if isinstance(value, bool) or not isinstance(value, int) \
                    or not 0 <= value < len(question.options):
                raise SessionError("Invalid option index")

        self.answers[index] = value
        self.visitation[index] = Visitation.ANSWERED

    def clear_answer(self, index: int):
        self._require_active()
        index = self._checked_index(index)
        self.answers[index] = None
        self.visitation[index] = Visitation.NOT_ANSWERED

    def _settle_current(self, auto_skip: bool):
        idx = self.current_index
        if self.visitation[idx] != Visitation.NOT_VISITED:
            return
        if auto_skip:
            self.visitation[idx] = Visitation.SKIPPED
        elif is_empty_answer(self.answers[idx]):
            self.visitation[idx] = Visitation.NOT_ANSWERED
        else:
            self.visitation[idx] = Visitation.ANSWERED

    def advance(self, auto_skip: bool = False) -> bool:
        """Move past the current question.

        Returns True when the last question was left and the session now
        waits for submission.
        """
        self._require_active()
        self._settle_current(auto_skip)

        if self.current_index >= self.last_index:
            self._mark_finished()
            return True

        self.current_index += 1
        self.timer.reset()
        return False

    def jump_to(self, index: int):
        self._require_active()
        self.current_index = self._checked_index(index)
        self.timer.reset()

    def request_submission(self):
        """Operator ends the attempt early"""
        self._require_active()
        self._settle_current(auto_skip=False)
        self._mark_finished()

    def _mark_finished(self):
        self.completion_requested = True
        self.finished_at = self._clock()
        self.timer.pause()

    def _handle_expiry(self):
        if not self.is_active:
            return
        logger.info(f"⏭️ Auto-skip on question {self.current_index + 1}: {self.session_id}")
        finished = self.advance(auto_skip=True)
        if self._on_timeout:
            self._on_timeout(finished)

    # ==================== Results ====================

    def result(self) -> QuizResult:
        finished_at = self.finished_at if self.finished_at is not None else self._clock()
        return score_session(self.questions, self.answers, self.started_at, finished_at)

    def transcript(self) -> List[Dict[str, Any]]:
        return build_transcript(self.questions, self.answers)

    def view(self) -> Dict[str, Any]:
        question = self.questions[self.current_index]
        return {
            "session_id": self.session_id,
            "mode": self.mode.value,
            "question_number": self.current_index + 1,
            "current_index": self.current_index,
            "total_questions": len(self.questions),
            "question_html": markdown.markdown(question.text),
            "options": list(question.options) if question.options else None,
            "answer": self.answers[self.current_index],
            "remaining_seconds": self.remaining_seconds,
            "palette": [status.value for status in self.visitation],
            "answered": sum(1 for status in self.visitation if status == Visitation.ANSWERED)
        }
