# career_assessment/core/config.py
import os
from typing import Dict, Any
from urllib.parse import quote_plus
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Config:
    """Centralized configuration management"""

    # ==================== API Configuration ====================
    API_TITLE = "Career Assessment API"
    API_DESCRIPTION = "Timed aptitude assessments with AI-driven career guidance"
    API_VERSION = "1.0.0"

    # ==================== Database Configuration ====================
    MONGO_USER = os.getenv("MONGO_USER", "")
    MONGO_PASS = os.getenv("MONGO_PASS", "")
    MONGO_HOST = os.getenv("MONGO_HOST", "localhost:27017")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "career_assessment")
    MONGO_AUTH_SOURCE = os.getenv("MONGO_AUTH_SOURCE", "admin")
    MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

    @property
    def MONGO_CONNECTION_STRING(self) -> str:
        if not self.MONGO_USER:
            return f"mongodb://{self.MONGO_HOST}/{self.MONGO_DB_NAME}"
        return (
            f"mongodb://{quote_plus(self.MONGO_USER)}:"
            f"{quote_plus(self.MONGO_PASS)}@{self.MONGO_HOST}/"
            f"{self.MONGO_DB_NAME}?authSource={self.MONGO_AUTH_SOURCE}"
        )

    # Collections
    TESTS_COLLECTION = os.getenv("TESTS_COLLECTION", "tests")
    STUDENTS_COLLECTION = os.getenv("STUDENTS_COLLECTION", "teacher_students")

    # ==================== Development Settings ====================
    USE_DUMMY_DATA = os.getenv("USE_DUMMY_DATA", "true").lower() == "true"

    # ==================== Assessment Configuration ====================
    # Question generation
    QUESTIONS_PER_TEST = int(os.getenv("QUESTIONS_PER_TEST", "30"))
    APTITUDE_QUESTIONS_PER_TEST = int(os.getenv("APTITUDE_QUESTIONS_PER_TEST", "20"))
    RECOMMENDATIONS_COUNT = int(os.getenv("RECOMMENDATIONS_COUNT", "3"))

    # Student profile choices
    CLASS_LEVELS = ["Class 8", "Class 9", "Class 10", "Class 11", "Class 12"]
    STREAM_CLASS_LEVELS = ["Class 11", "Class 12"]
    STREAMS = ["Science", "Commerce", "Arts"]
    SCIENCE_SUB_STREAMS = ["PCM", "PCB"]

    # Per-question countdown (seconds)
    QUESTION_TIME_LIMIT = int(os.getenv("QUESTION_TIME_LIMIT", "30"))
    TIMER_INTERVAL_SECONDS = float(os.getenv("TIMER_INTERVAL_SECONDS", "1"))

    # Scoring
    POINTS_PER_QUESTION = int(os.getenv("POINTS_PER_QUESTION", "5"))
    PASS_PERCENTAGE = float(os.getenv("PASS_PERCENTAGE", "30"))
    APTITUDE_BASELINE = int(os.getenv("APTITUDE_BASELINE", "70"))
    APTITUDE_SPAN = int(os.getenv("APTITUDE_SPAN", "80"))

    # Proctored tests
    TEST_PASSWORD_LENGTH = 6
    TEST_EXPIRY_HOURS = int(os.getenv("TEST_EXPIRY_HOURS", "24"))

    # Flow expiration
    FLOW_EXPIRATION_SECONDS = int(os.getenv("FLOW_EXPIRATION_SECONDS", "7200"))  # 2 hours
    MEMORY_CLEANUP_INTERVAL = int(os.getenv("MEMORY_CLEANUP_INTERVAL", "1800"))  # 30 minutes

    # ==================== AI Service Configuration ====================
    # Groq settings
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    GROQ_TIMEOUT = int(os.getenv("GROQ_TIMEOUT", "30"))
    GROQ_TEMPERATURE = float(os.getenv("GROQ_TEMPERATURE", "0.7"))
    GROQ_MAX_TOKENS = int(os.getenv("GROQ_MAX_TOKENS", "6000"))
    GROQ_TOP_P = float(os.getenv("GROQ_TOP_P", "0.9"))

    # OpenAI image settings
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3")
    OPENAI_IMAGE_SIZE = os.getenv("OPENAI_IMAGE_SIZE", "1024x1024")

    # Retry settings
    BATCH_GENERATION_RETRIES = int(os.getenv("BATCH_GENERATION_RETRIES", "3"))

    # ==================== Analysis Configuration ====================
    ANALYSIS_TEMPERATURE = float(os.getenv("ANALYSIS_TEMPERATURE", "0.3"))
    ANALYSIS_MAX_TOKENS = int(os.getenv("ANALYSIS_MAX_TOKENS", "2500"))

    # ==================== Environment Overrides ====================
    @classmethod
    def from_env(cls) -> 'Config':
        """Create config with environment variable overrides"""
        return cls()

    # ==================== Validation ====================
    def validate(self) -> Dict[str, Any]:
        """Validate configuration and return status"""
        issues = []

        if self.QUESTIONS_PER_TEST < 1:
            issues.append("QUESTIONS_PER_TEST must be at least 1")

        if self.QUESTION_TIME_LIMIT < 1:
            issues.append("QUESTION_TIME_LIMIT must be at least 1")

        if self.TIMER_INTERVAL_SECONDS <= 0:
            issues.append("TIMER_INTERVAL_SECONDS must be positive")

        if not (0 <= self.PASS_PERCENTAGE <= 100):
            issues.append("PASS_PERCENTAGE must be between 0 and 100")

        if not self.USE_DUMMY_DATA and not self.GROQ_API_KEY:
            issues.append("GROQ_API_KEY is required when not using dummy data")

        return {
            "valid": len(issues) == 0,
            "issues": issues,
            "config_loaded": True,
            "using_dummy_data": self.USE_DUMMY_DATA
        }

# Global configuration instance
config = Config.from_env()

# Validate on import
validation_result = config.validate()
if not validation_result["valid"]:
    import logging
    logger = logging.getLogger(__name__)
    logger.warning(f"Configuration issues: {validation_result['issues']}")
