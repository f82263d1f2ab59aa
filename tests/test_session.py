import pytest

from career_assessment.core.models import Question, SessionMode, Visitation
from career_assessment.core.session import AssessmentSession, SessionError

def make_session(count=3, on_timeout=None, **kwargs):
    questions = [
        Question(text=f"Question {i}", options=("a", "b", "c", "d"), correct_option_index=i % 4)
        for i in range(count)
    ]
    return AssessmentSession(SessionMode.PRACTICE, questions, on_timeout=on_timeout, **kwargs)

def test_slots_align_with_questions():
    session = make_session(4)
    assert len(session.answers) == len(session.visitation) == 4
    assert all(status == Visitation.NOT_VISITED for status in session.visitation)
    assert session.current_index == 0

def test_empty_question_set_rejected():
    with pytest.raises(SessionError):
        AssessmentSession(SessionMode.PRACTICE, [])

def test_select_and_clear_answer():
    session = make_session()
    session.select_answer(0, 2)
    assert session.answers[0] == 2
    assert session.visitation[0] == Visitation.ANSWERED

    session.clear_answer(0)
    assert session.answers[0] is None
    assert session.visitation[0] == Visitation.NOT_ANSWERED

    session.select_answer(0, 1)
    assert session.visitation[0] == Visitation.ANSWERED

@pytest.mark.parametrize("index", [-1, 3, 10])
def test_out_of_range_index_rejected(index):
    session = make_session()
    with pytest.raises(SessionError):
        session.select_answer(index, 0)
    with pytest.raises(SessionError):
        session.jump_to(index)

@pytest.mark.parametrize("value", [4, -1, True, "b"])
def test_invalid_option_rejected(value):
    session = make_session()
    with pytest.raises(SessionError):
        session.select_answer(0, value)
    assert session.answers[0] is None

def test_free_text_question():
    session = AssessmentSession(SessionMode.PRACTICE, [Question(text="Why?")])
    session.select_answer(0, "  Because  ")
    assert session.answers[0] == "Because"
    with pytest.raises(SessionError):
        session.select_answer(0, 1)
    session.select_answer(0, "   ")
    assert session.answers[0] is None
    assert session.visitation[0] == Visitation.NOT_ANSWERED

def test_advance_settles_unvisited_slot():
    session = make_session()
    assert session.advance() is False
    assert session.visitation[0] == Visitation.NOT_ANSWERED
    assert session.current_index == 1

    session.select_answer(1, 0)
    session.advance()
    assert session.visitation[1] == Visitation.ANSWERED

def test_advance_on_last_question_requests_submission():
    session = make_session(2)
    session.advance()
    assert session.advance() is True
    assert session.completion_requested
    assert not session.is_active
    assert session.finished_at is not None
    with pytest.raises(SessionError):
        session.select_answer(0, 1)

def test_jump_keeps_visitation_and_resets_timer():
    session = make_session(time_limit=10)
    session.start()
    session.timer.tick()
    assert session.remaining_seconds == 9

    session.jump_to(2)
    assert session.current_index == 2
    assert session.remaining_seconds == 10
    assert session.visitation[0] == Visitation.NOT_VISITED

def test_timer_expiry_auto_skips():
    calls = []
    session = make_session(2, on_timeout=calls.append, time_limit=2)
    session.start()

    session.timer.tick()
    session.timer.tick()
    assert session.visitation[0] == Visitation.SKIPPED
    assert session.current_index == 1
    assert session.remaining_seconds == 2
    assert calls == [False]

    session.timer.tick()
    session.timer.tick()
    assert session.visitation[1] == Visitation.SKIPPED
    assert calls == [False, True]
    assert session.completion_requested

def test_expiry_does_not_skip_answered_question():
    session = make_session(2, time_limit=1)
    session.start()
    session.select_answer(0, 3)
    session.timer.tick()
    assert session.visitation[0] == Visitation.ANSWERED
    assert session.current_index == 1

def test_paused_session_does_not_count_down():
    session = make_session(time_limit=5)
    session.start()
    session.pause()
    session.timer.tick()
    assert session.remaining_seconds == 5
    session.resume()
    session.timer.tick()
    assert session.remaining_seconds == 4

def test_reopen_after_finish_keeps_answers():
    session = make_session(1)
    session.select_answer(0, 0)
    session.request_submission()
    assert not session.is_active

    session.reopen()
    assert session.is_active
    assert session.answers == [0]

def test_close_releases_timer():
    with make_session(time_limit=2) as session:
        session.start()
    assert session.closed
    session.timer.tick()
    session.timer.tick()
    assert session.current_index == 0
    with pytest.raises(SessionError):
        session.reopen()

def test_view_hides_answer_key():
    session = make_session()
    view = session.view()
    assert view["question_number"] == 1
    assert view["question_html"] == "<p>Question 0</p>"
    assert view["options"] == ["a", "b", "c", "d"]
    assert view["palette"] == ["not-visited"] * 3
    assert "correct_option_index" not in view
