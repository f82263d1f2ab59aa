# career_assessment/models/schemas.py
from typing import Dict, Optional, Union

from pydantic import BaseModel

class SetupRequest(BaseModel):
    name: str = ""
    class_level: str
    stream: str = ""
    sub_stream: str = ""

class AnswerRequest(BaseModel):
    value: Union[int, str]
    index: Optional[int] = None

class ClearRequest(BaseModel):
    index: Optional[int] = None

class JumpRequest(BaseModel):
    index: int

class TrackRequest(BaseModel):
    track: str

class RoadmapRequest(BaseModel):
    title: str

class PasswordRequest(BaseModel):
    password: str

class IssueTestRequest(BaseModel):
    """Teacher request for a new proctored test"""
    teacher_id: str
    student_email: str
    student_name: str
    student_class: str
    test_type: str = "General"
    job_details: Optional[Dict[str, str]] = None

class LoginResponse(BaseModel):
    test_id: str

class IssueTestResponse(BaseModel):
    test_id: str
    password: str
    expires_at: float
    total_questions: int
    type: str
