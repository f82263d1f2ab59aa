# career_assessment/__init__.py
"""
Career Assessment - timed aptitude assessments with AI career guidance
Practice sessions, teacher-issued proctored tests, recommendations and roadmaps
"""

__version__ = "1.0.0"
__description__ = "Assessment session engine with proctored tests and career recommendations"

from .core.config import config
from .main import app

__all__ = ["app", "config"]
