import pytest

from career_assessment.core import models, states
from career_assessment.core.models import ProctoredTest, Question, Recommendation, SessionMode, StudentProfile, Track
from career_assessment.core.scoring import score_session
from career_assessment.core.session import AssessmentSession
from career_assessment.core.states import (
    Attempt, BackRequested, ExploreRequested, GeneratingQuestions, InQuiz, Instructions,
    InvalidTransition, LoadingTest, LowScore, PathSelection, ProctoredAuth, QuestionsReady,
    QuizCompleted, Recommendations, RecommendationsReady, Results, RetakeRequested, Roadmap,
    RoadmapReady, RoadmapRequested, Setup, SetupCompleted, StartRequested, Submitted,
    TrackChosen, is_suspended, transition
)

PROFILE = StudentProfile(name="Ravi", class_level="Class 10")
QUESTION = Question(text="2 + 2 = ?", options=("3", "4"), correct_option_index=1)

def make_attempt(answers):
    questions = (QUESTION,) * len(answers)
    return Attempt(questions, tuple(answers), score_session(questions, answers, 0, 30))

def make_test(status=models.TestStatus.PENDING):
    return ProctoredTest(test_id="t1", password="PW1234", questions=[QUESTION], status=status)

def test_practice_setup_path():
    state = transition(Setup(), SetupCompleted(PROFILE))
    assert isinstance(state, Instructions)

    state = transition(state, StartRequested(request_id=1))
    assert isinstance(state, GeneratingQuestions)
    assert is_suspended(state)

    session = AssessmentSession(SessionMode.PRACTICE, [QUESTION])
    state = transition(state, QuestionsReady(1, session))
    assert isinstance(state, InQuiz)
    assert state.session is session
    assert state.profile == PROFILE

def test_stale_questions_are_ignored():
    generating = GeneratingQuestions(profile=PROFILE, request_id=2)
    session = AssessmentSession(SessionMode.PRACTICE, [QUESTION])
    assert transition(generating, QuestionsReady(1, session)) is generating

def test_completion_ignored_outside_loading_state():
    results = Results(attempt=make_attempt([1]), profile=PROFILE)
    assert transition(results, RoadmapReady(1, [])) is results

def test_explore_branches_on_pass_threshold():
    passed = Results(attempt=make_attempt([1, 1, None]), profile=PROFILE)
    failed = Results(attempt=make_attempt([0, 0, None]), profile=PROFILE)
    assert isinstance(transition(passed, ExploreRequested()), PathSelection)

    low = transition(failed, ExploreRequested())
    assert isinstance(low, LowScore)
    assert "below 30%" in low.to_view()["message"]
    assert isinstance(transition(low, BackRequested()), Results)

def test_recommendations_and_roadmap_navigation():
    attempt = make_attempt([1])
    state = transition(PathSelection(attempt=attempt, profile=PROFILE), TrackChosen(Track.JOBS, 5))
    assert isinstance(state, Recommendations) and state.loading

    with pytest.raises(InvalidTransition):
        transition(state, RoadmapRequested("Data Analyst", 6))

    items = [Recommendation(title="Data Analyst", description="", image_prompt="charts")]
    ready = transition(state, RecommendationsReady(5, items))
    assert not ready.loading
    assert ready.items[0].title == "Data Analyst"

    roadmap = transition(ready, RoadmapRequested("Data Analyst", 6))
    assert isinstance(roadmap, Roadmap) and roadmap.loading
    assert transition(roadmap, BackRequested()) is ready
    assert isinstance(transition(ready, BackRequested()), PathSelection)

def test_late_recommendations_for_previous_track_dropped():
    attempt = make_attempt([1])
    first = transition(PathSelection(attempt=attempt, profile=PROFILE), TrackChosen(Track.JOBS, 1))
    second = transition(first, TrackChosen(Track.STUDIES, 2))
    late = [Recommendation(title="Engineer", description="", image_prompt="")]
    assert transition(second, RecommendationsReady(1, late)) is second
    assert second.track == Track.STUDIES

def test_retake_returns_to_setup():
    results = Results(attempt=make_attempt([1]), profile=PROFILE)
    assert isinstance(transition(results, RetakeRequested()), Setup)

def test_completed_test_skips_authentication():
    loading = LoadingTest(test_id="t1", request_id=1)
    state = transition(loading, states.TestFound(1, make_test(models.TestStatus.COMPLETED)))
    assert isinstance(state, Submitted)

def test_pending_test_requires_password():
    state = transition(LoadingTest(test_id="t1", request_id=1), states.TestFound(1, make_test()))
    assert isinstance(state, ProctoredAuth)
    assert "password" not in state.to_view()["test"]

def test_missing_test_is_unavailable():
    state = transition(LoadingTest(test_id="t1", request_id=1), states.TestMissing(1, "Test not found. Please check the link."))
    assert isinstance(state, states.TestUnavailable)
    assert state.to_view()["error"] == "Test not found. Please check the link."

def test_quiz_is_only_entered_from_its_gateways():
    with pytest.raises(InvalidTransition):
        transition(Setup(), StartRequested(1))
    with pytest.raises(InvalidTransition):
        transition(Results(attempt=make_attempt([1]), profile=PROFILE), StartRequested(1))

def test_proctored_quiz_does_not_complete_as_practice():
    session = AssessmentSession(SessionMode.PROCTORED, [QUESTION])
    with pytest.raises(InvalidTransition):
        transition(InQuiz(session=session), QuizCompleted(make_attempt([1])))
