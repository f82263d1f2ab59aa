# career_assessment/models/__init__.py
"""
Pydantic models and schemas for request/response validation
"""

from .schemas import (
    SetupRequest,
    AnswerRequest,
    ClearRequest,
    JumpRequest,
    TrackRequest,
    RoadmapRequest,
    PasswordRequest,
    IssueTestRequest,
    LoginResponse,
    IssueTestResponse
)

__all__ = [
    "SetupRequest",
    "AnswerRequest",
    "ClearRequest",
    "JumpRequest",
    "TrackRequest",
    "RoadmapRequest",
    "PasswordRequest",
    "IssueTestRequest",
    "LoginResponse",
    "IssueTestResponse"
]
