# career_assessment/api/__init__.py
"""
FastAPI routes and API layer
"""

from .routes import router

__all__ = ["router"]
