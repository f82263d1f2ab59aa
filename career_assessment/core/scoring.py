# career_assessment/core/scoring.py
import logging
import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Sequence

from .config import config
from .models import Answer, Question

logger = logging.getLogger(__name__)

class Outcome(Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    SKIPPED = "skipped"

@dataclass(frozen=True)
class QuizResult:
    score: int
    total: int
    percentage: float
    accuracy: int
    correct: int
    incorrect: int
    skipped: int
    time_taken: str
    elapsed_seconds: int

    @property
    def passed(self) -> bool:
        return self.percentage >= config.PASS_PERCENTAGE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["passed"] = self.passed
        return data

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def is_empty_answer(answer: Answer) -> bool:
    return answer is None or answer == ""

def grade_answer(question: Question, answer: Answer) -> Outcome:
    """Classify one answer slot.

    Questions without an answer key (free text) cannot be checked locally;
    any non-empty response counts as correct.
    """
    if is_empty_answer(answer):
        return Outcome.SKIPPED
    if question.correct_option_index is not None:
        if isinstance(answer, int) and not isinstance(answer, bool) \
                and answer == question.correct_option_index:
            return Outcome.CORRECT
        return Outcome.INCORRECT
    return Outcome.CORRECT

def format_elapsed(seconds: float) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60} min {seconds % 60} sec"

def score_session(questions: Sequence[Question], answers: Sequence[Answer],
                  started_at: float, finished_at: float) -> QuizResult:
    """Reduce a question set and its answers into a result summary"""
    if len(questions) != len(answers):
        raise ValueError("Answers must align with questions")

    correct = incorrect = skipped = 0
    for question, answer in zip(questions, answers):
        outcome = grade_answer(question, answer)
        if outcome == Outcome.CORRECT:
            correct += 1
        elif outcome == Outcome.INCORRECT:
            incorrect += 1
        else:
            skipped += 1

    score = correct * config.POINTS_PER_QUESTION
    total = len(questions) * config.POINTS_PER_QUESTION
    percentage = (score / total) * 100 if total > 0 else 0.0
    attempted = correct + incorrect
    accuracy = _round_half_up(correct / attempted * 100) if attempted > 0 else 0

    elapsed = max(0, int(finished_at - started_at))

    result = QuizResult(
        score=score,
        total=total,
        percentage=percentage,
        accuracy=accuracy,
        correct=correct,
        incorrect=incorrect,
        skipped=skipped,
        time_taken=format_elapsed(elapsed),
        elapsed_seconds=elapsed
    )
    logger.info(f"🎯 Scored session: {correct}/{len(questions)} correct, {percentage:.1f}%")
    return result

def estimate_aptitude(percentage: float) -> int:
    """Linear aptitude estimate, baseline 70 spanning to 150"""
    return _round_half_up(config.APTITUDE_BASELINE + (percentage / 100) * config.APTITUDE_SPAN)

def build_transcript(questions: Sequence[Question], answers: Sequence[Answer]) -> List[Dict[str, Any]]:
    """Question/answer pairs as sent to the analysis and recommendation prompts"""
    transcript = []
    for question, answer in zip(questions, answers):
        outcome = grade_answer(question, answer)
        transcript.append({
            "question": question.text,
            "answer": question.answer_text(answer),
            "correct": outcome == Outcome.CORRECT,
            "skipped": outcome == Outcome.SKIPPED
        })
    return transcript
