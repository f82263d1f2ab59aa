# career_assessment/services/__init__.py
"""
Assessment flows: practice sessions, proctored tests, recommendations
"""

from .quiz_service import get_quiz_service
from .recommendation_service import get_recommendation_service
from .proctored_service import get_proctored_service

__all__ = [
    "get_quiz_service",
    "get_recommendation_service",
    "get_proctored_service"
]
