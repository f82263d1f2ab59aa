# career_assessment/core/states.py
"""
Flow states and the transition function.

Each state variant carries exactly the data its view needs. Loading
states carry a request id; a completion event whose id no longer matches
the current state is stale and leaves the state untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .models import Answer, ProctoredTest, Question, Recommendation, RoadmapStep, StudentProfile, Track
from .scoring import QuizResult, build_transcript
from .session import AssessmentSession

logger = logging.getLogger(__name__)

class InvalidTransition(Exception):
    """Event not accepted in the current state"""

class SessionBusy(Exception):
    """A suspension (generation, lookup, submission) is in progress"""

@dataclass(frozen=True)
class Attempt:
    """Immutable record of a finished session"""
    questions: Tuple[Question, ...]
    answers: Tuple[Answer, ...]
    result: QuizResult

    @classmethod
    def from_session(cls, session: AssessmentSession) -> 'Attempt':
        return cls(tuple(session.questions), tuple(session.answers), session.result())

    def transcript(self) -> List[Dict[str, Any]]:
        return build_transcript(self.questions, self.answers)

# ==================== States ====================

@dataclass
class Setup:
    name = "setup"
    error: Optional[str] = None

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "error": self.error}

@dataclass
class Instructions:
    name = "instructions"
    profile: StudentProfile
    error: Optional[str] = None

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "profile": vars(self.profile), "error": self.error}

@dataclass
class GeneratingQuestions:
    name = "generating-questions"
    profile: StudentProfile
    request_id: int

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "loading": True}

@dataclass
class InQuiz:
    name = "quiz"
    session: AssessmentSession
    profile: Optional[StudentProfile] = None
    error: Optional[str] = None

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "quiz": self.session.view(), "error": self.error}

@dataclass
class Submitting:
    name = "submitting"
    session: AssessmentSession
    profile: Optional[StudentProfile] = None

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "loading": True}

@dataclass
class Results:
    name = "results"
    attempt: Attempt
    profile: StudentProfile

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "result": self.attempt.result.to_dict()}

@dataclass
class LowScore:
    name = "low-score"
    attempt: Attempt
    profile: StudentProfile

    def to_view(self) -> Dict[str, Any]:
        return {
            "view": self.name,
            "result": self.attempt.result.to_dict(),
            "message": "Your score was below 30%. We are not able to recommend a job at this time."
        }

@dataclass
class PathSelection:
    name = "path-selection"
    attempt: Attempt
    profile: StudentProfile

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "tracks": [track.value for track in Track]}

@dataclass
class Recommendations:
    name = "recommendations"
    attempt: Attempt
    profile: StudentProfile
    track: Track
    request_id: int
    items: List[Recommendation] = field(default_factory=list)
    loading: bool = True
    error: Optional[str] = None

    def to_view(self) -> Dict[str, Any]:
        return {
            "view": self.name,
            "track": self.track.value,
            "loading": self.loading,
            "recommendations": [item.to_dict() for item in self.items],
            "error": self.error
        }

@dataclass
class Roadmap:
    name = "roadmap"
    title: str
    origin: Recommendations
    request_id: int
    steps: List[RoadmapStep] = field(default_factory=list)
    loading: bool = True

    def to_view(self) -> Dict[str, Any]:
        return {
            "view": self.name,
            "title": self.title,
            "loading": self.loading,
            "steps": [step.to_dict() for step in self.steps]
        }

@dataclass
class LoadingTest:
    name = "loading-test"
    test_id: str
    request_id: int

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "loading": True}

@dataclass
class TestUnavailable:
    name = "test-unavailable"
    test_id: str
    message: str

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "error": self.message, "retryable": True}

@dataclass
class ProctoredAuth:
    name = "proctored-auth"
    test: ProctoredTest
    error: Optional[str] = None

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "test": self.test.summary(), "error": self.error}

@dataclass
class Submitted:
    name = "submitted"
    test: ProctoredTest

    def to_view(self) -> Dict[str, Any]:
        return {"view": self.name, "test": self.test.summary()}

# ==================== Events ====================

@dataclass
class SetupCompleted:
    profile: StudentProfile

@dataclass
class StartRequested:
    request_id: int

@dataclass
class QuestionsReady:
    request_id: int
    session: AssessmentSession

@dataclass
class GenerationFailed:
    request_id: int
    message: str

@dataclass
class QuizCompleted:
    attempt: Attempt

@dataclass
class SubmissionStarted:
    pass

@dataclass
class SubmissionFailed:
    message: str

@dataclass
class TestSubmitted:
    test: ProctoredTest

@dataclass
class ExploreRequested:
    pass

@dataclass
class TrackChosen:
    track: Track
    request_id: int

@dataclass
class RecommendationsReady:
    request_id: int
    items: List[Recommendation]

@dataclass
class RecommendationsFailed:
    request_id: int
    message: str

@dataclass
class RoadmapRequested:
    title: str
    request_id: int

@dataclass
class RoadmapReady:
    request_id: int
    steps: List[RoadmapStep]

@dataclass
class BackRequested:
    pass

@dataclass
class RetakeRequested:
    pass

@dataclass
class TestLookupStarted:
    test_id: str
    request_id: int

@dataclass
class TestFound:
    request_id: int
    test: ProctoredTest

@dataclass
class TestMissing:
    request_id: int
    message: str

@dataclass
class Authenticated:
    session: AssessmentSession

@dataclass
class AuthenticationFailed:
    message: str

# ==================== Transitions ====================

_COMPLETIONS = (QuestionsReady, GenerationFailed, RecommendationsReady,
                RecommendationsFailed, RoadmapReady, TestFound, TestMissing)

def _invalid(state, event):
    raise InvalidTransition(
        f"Cannot handle {type(event).__name__} in state '{state.name}'"
    )

def transition(state, event):
    """Return the state that follows `state` after `event`"""
    # Async completions: apply only to the request that is still pending
    if isinstance(event, _COMPLETIONS):
        if getattr(state, "request_id", None) != event.request_id or not _is_loading(state):
            logger.info(f"Ignoring stale {type(event).__name__} in state '{state.name}'")
            return state

    # ----- practice setup -----
    if isinstance(state, Setup):
        if isinstance(event, SetupCompleted):
            return Instructions(profile=event.profile)

    elif isinstance(state, Instructions):
        if isinstance(event, StartRequested):
            return GeneratingQuestions(profile=state.profile, request_id=event.request_id)
        if isinstance(event, RetakeRequested):
            return Setup()

    elif isinstance(state, GeneratingQuestions):
        if isinstance(event, QuestionsReady):
            return InQuiz(session=event.session, profile=state.profile)
        if isinstance(event, GenerationFailed):
            return Instructions(profile=state.profile, error=event.message)

    # ----- quiz -----
    elif isinstance(state, InQuiz):
        if isinstance(event, QuizCompleted) and state.profile is not None:
            return Results(attempt=event.attempt, profile=state.profile)
        if isinstance(event, SubmissionStarted):
            return Submitting(session=state.session, profile=state.profile)

    elif isinstance(state, Submitting):
        if isinstance(event, TestSubmitted):
            return Submitted(test=event.test)
        if isinstance(event, SubmissionFailed):
            return InQuiz(session=state.session, profile=state.profile, error=event.message)

    # ----- post-result pipeline -----
    elif isinstance(state, Results):
        if isinstance(event, ExploreRequested):
            if state.attempt.result.passed:
                return PathSelection(attempt=state.attempt, profile=state.profile)
            return LowScore(attempt=state.attempt, profile=state.profile)
        if isinstance(event, RetakeRequested):
            return Setup()

    elif isinstance(state, LowScore):
        if isinstance(event, BackRequested):
            return Results(attempt=state.attempt, profile=state.profile)
        if isinstance(event, RetakeRequested):
            return Setup()

    elif isinstance(state, PathSelection):
        if isinstance(event, TrackChosen):
            return Recommendations(attempt=state.attempt, profile=state.profile,
                                   track=event.track, request_id=event.request_id)
        if isinstance(event, BackRequested):
            return Results(attempt=state.attempt, profile=state.profile)
        if isinstance(event, RetakeRequested):
            return Setup()

    elif isinstance(state, Recommendations):
        if isinstance(event, RecommendationsReady):
            return Recommendations(attempt=state.attempt, profile=state.profile, track=state.track,
                                   request_id=state.request_id, items=list(event.items), loading=False)
        if isinstance(event, RecommendationsFailed):
            return Recommendations(attempt=state.attempt, profile=state.profile, track=state.track,
                                   request_id=state.request_id, loading=False, error=event.message)
        if isinstance(event, TrackChosen):
            return Recommendations(attempt=state.attempt, profile=state.profile,
                                   track=event.track, request_id=event.request_id)
        if isinstance(event, RoadmapRequested) and not state.loading:
            return Roadmap(title=event.title, origin=state, request_id=event.request_id)
        if isinstance(event, BackRequested):
            return PathSelection(attempt=state.attempt, profile=state.profile)
        if isinstance(event, RetakeRequested):
            return Setup()

    elif isinstance(state, Roadmap):
        if isinstance(event, RoadmapReady):
            return Roadmap(title=state.title, origin=state.origin, request_id=state.request_id,
                           steps=list(event.steps), loading=False)
        if isinstance(event, RoadmapRequested):
            return Roadmap(title=event.title, origin=state.origin, request_id=event.request_id)
        if isinstance(event, BackRequested):
            return state.origin
        if isinstance(event, RetakeRequested):
            return Setup()

    # ----- proctored gateway -----
    elif isinstance(state, LoadingTest):
        if isinstance(event, TestFound):
            if event.test.is_completed:
                return Submitted(test=event.test)
            return ProctoredAuth(test=event.test)
        if isinstance(event, TestMissing):
            return TestUnavailable(test_id=state.test_id, message=event.message)

    elif isinstance(state, TestUnavailable):
        if isinstance(event, TestLookupStarted):
            return LoadingTest(test_id=event.test_id, request_id=event.request_id)

    elif isinstance(state, ProctoredAuth):
        if isinstance(event, Authenticated):
            return InQuiz(session=event.session)
        if isinstance(event, AuthenticationFailed):
            return ProctoredAuth(test=state.test, error=event.message)

    return _invalid(state, event)

def _is_loading(state) -> bool:
    if isinstance(state, (GeneratingQuestions, LoadingTest)):
        return True
    return bool(getattr(state, "loading", False))

def is_suspended(state) -> bool:
    """True while an async operation owns the flow"""
    return isinstance(state, (GeneratingQuestions, LoadingTest, Submitting))
