# career_assessment/core/models.py
"""
Domain records shared by the session engine, the gateway and the orchestrator
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# An answer slot holds an option index, free text, or nothing
Answer = Optional[Union[int, str]]

class Visitation(Enum):
    NOT_VISITED = "not-visited"
    NOT_ANSWERED = "not-answered"
    ANSWERED = "answered"
    SKIPPED = "skipped"

class SessionMode(Enum):
    PRACTICE = "practice"
    PROCTORED = "proctored"

class Track(Enum):
    JOBS = "jobs"
    STUDIES = "studies"

class TestStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"

class TestType(Enum):
    GENERAL = "General"
    SPECIFIC = "Specific"

@dataclass(frozen=True)
class Question:
    text: str
    options: Optional[Tuple[str, ...]] = None
    correct_option_index: Optional[int] = None

    @property
    def is_free_text(self) -> bool:
        return not self.options

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Question':
        """Build a question from generator or store payloads"""
        text = (data.get("question") or data.get("text") or "").strip()
        if not text:
            raise ValueError("Question text is required")

        options = data.get("options")
        if options:
            options = tuple(str(option) for option in options)
        else:
            options = None

        correct = data.get("correctAnswerIndex", data.get("correct_option_index"))
        if correct is not None:
            correct = int(correct)
            if options is None or not (0 <= correct < len(options)):
                logger.warning(f"Dropping out-of-range correct index {correct} for: {text[:40]}")
                correct = None

        return cls(text=text, options=options, correct_option_index=correct)

    def to_dict(self) -> Dict[str, Any]:
        """Store representation (keeps the answer key)"""
        return {
            "question": self.text,
            "options": list(self.options) if self.options else None,
            "correctAnswerIndex": self.correct_option_index
        }

    def answer_text(self, answer: Answer) -> str:
        """Human readable form of an answer, as sent to analysis prompts"""
        if answer is None or answer == "":
            return "Skipped"
        if isinstance(answer, int) and self.options and 0 <= answer < len(self.options):
            return self.options[answer]
        return str(answer)

@dataclass
class StudentProfile:
    name: str
    class_level: str
    stream: str = ""
    sub_stream: str = ""

    def describe(self) -> str:
        """Context sentence used for question generation"""
        context = f"The student is in {self.class_level}."
        if self.stream:
            sub = f" ({self.sub_stream})" if self.sub_stream else ""
            context += f" Their selected stream is {self.stream}{sub}."
        else:
            context += " They are in the 1-10 class range."
        return context

@dataclass
class Recommendation:
    title: str
    description: str
    image_prompt: str
    image_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Recommendation':
        return cls(
            title=str(data.get("title", "")).strip(),
            description=str(data.get("description", "")).strip(),
            image_prompt=str(data.get("imagePrompt") or data.get("image_prompt") or data.get("title", "")).strip()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "image_prompt": self.image_prompt,
            "image_url": self.image_url
        }

@dataclass(frozen=True)
class RoadmapStep:
    title: str
    duration: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "duration": self.duration, "description": self.description}

@dataclass
class ProctoredTest:
    """Transient copy of a teacher-issued test record"""
    test_id: str
    password: str
    questions: List[Question]
    status: TestStatus = TestStatus.PENDING
    test_type: TestType = TestType.GENERAL
    student_email: str = ""
    student_name: str = ""
    student_class: str = ""
    teacher_id: str = ""
    job_details: Optional[Dict[str, str]] = None
    iq_score: Optional[int] = None
    score: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status == TestStatus.COMPLETED

    @property
    def specialization(self) -> Optional[str]:
        """'job (specialization)' for Specific tests, None otherwise"""
        if self.test_type != TestType.SPECIFIC:
            return None
        details = self.job_details or {}
        return f"{details.get('job', '')} ({details.get('specialization', '')})"

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'ProctoredTest':
        return cls(
            test_id=str(doc.get("test_id") or doc.get("_id")),
            password=doc.get("password", ""),
            questions=[Question.from_dict(q) for q in doc.get("questions") or []],
            status=TestStatus(doc.get("status", TestStatus.PENDING.value)),
            test_type=TestType(doc.get("type", TestType.GENERAL.value)),
            student_email=doc.get("studentEmail", ""),
            student_name=doc.get("studentName", ""),
            student_class=doc.get("studentClass", ""),
            teacher_id=doc.get("teacherId", ""),
            job_details=doc.get("jobDetails"),
            iq_score=doc.get("iqScore"),
            score=doc.get("score"),
            extra={k: doc[k] for k in ("analysis", "verdict", "completedAt") if k in doc}
        )

    def summary(self) -> Dict[str, Any]:
        """Public view; never includes the password or the answer key"""
        return {
            "test_id": self.test_id,
            "status": self.status.value,
            "type": self.test_type.value,
            "student_name": self.student_name,
            "student_class": self.student_class,
            "job_details": self.job_details,
            "total_questions": len(self.questions),
            "score": self.score,
            "iq_score": self.iq_score
        }
