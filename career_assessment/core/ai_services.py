# career_assessment/core/ai_services.py
import json
import logging
import time
from typing import List, Dict, Any, Optional

import openai
from groq import Groq

from .config import config
from .dummy_data import dummy_analysis, dummy_questions, dummy_recommendations, dummy_roadmap
from .prompts import PromptTemplates, PromptFormatter

logger = logging.getLogger(__name__)

class AIService:
    """Service for all generation calls: questions, recommendations, images, roadmaps, analysis"""

    def __init__(self):
        """Initialize Groq client with validation"""
        self.client = None
        self._image_client = None
        self.use_dummy = config.USE_DUMMY_DATA

        if not self.use_dummy:
            self._init_groq_client()
        else:
            logger.info("🔧 AI Service in dummy mode - using mock responses")

    def _init_groq_client(self):
        """Initialize Groq client"""
        try:
            if not config.GROQ_API_KEY:
                raise Exception("GROQ_API_KEY not provided")

            self.client = Groq(api_key=config.GROQ_API_KEY, timeout=config.GROQ_TIMEOUT)
            logger.info("✅ Groq client initialized")

        except Exception as e:
            logger.error(f"❌ Groq client initialization failed: {e}")
            raise Exception(f"AI service initialization failed: {e}")

    @property
    def image_client(self) -> openai.OpenAI:
        if self._image_client is None:
            if not config.OPENAI_API_KEY:
                raise Exception("OPENAI_API_KEY not found in environment variables")
            self._image_client = openai.OpenAI(api_key=config.OPENAI_API_KEY)
            logger.info("OpenAI image client initialized")
        return self._image_client

    # ==================== Questions ====================

    def generate_quiz_questions(self, student_context: str, question_count: int = None) -> List[Dict[str, Any]]:
        """Generate practice questions; an empty list signals failure"""
        if question_count is None:
            question_count = config.QUESTIONS_PER_TEST

        logger.info(f"🤖 Generating {question_count} quiz questions (dummy: {self.use_dummy})")

        if self.use_dummy:
            return dummy_questions(question_count)

        try:
            prompt = PromptTemplates.create_quiz_questions_prompt(student_context, question_count)
            payload = self._call_llm_json(prompt)
            questions = self._valid_questions(payload.get("questions"))

            if len(questions) != question_count:
                logger.warning(f"Generated {len(questions)} questions, expected {question_count}")

            logger.info(f"✅ Generated {len(questions)} questions successfully")
            return questions

        except Exception as e:
            logger.error(f"❌ Question generation failed: {e}")
            return []

    def generate_aptitude_questions(self, class_level: str, test_type: str,
                                    specifics: Optional[str] = None,
                                    question_count: int = None) -> List[Dict[str, Any]]:
        """Generate the question set of a teacher-issued test"""
        if question_count is None:
            question_count = config.APTITUDE_QUESTIONS_PER_TEST

        logger.info(f"🤖 Generating {question_count} {test_type} aptitude questions for {class_level}")

        if self.use_dummy:
            return dummy_questions(question_count)

        try:
            prompt = PromptTemplates.create_aptitude_test_prompt(class_level, test_type, specifics, question_count)
            payload = self._call_llm_json(prompt)
            return self._valid_questions(payload.get("questions"))

        except Exception as e:
            logger.error(f"❌ Aptitude test generation failed: {e}")
            return []

    def _valid_questions(self, raw: Any) -> List[Dict[str, Any]]:
        questions = []
        for i, item in enumerate(raw or [], 1):
            if not isinstance(item, dict) or not str(item.get("question", "")).strip():
                logger.warning(f"Skipping malformed question {i}")
                continue
            options = item.get("options")
            if options is not None and (not isinstance(options, list) or len(options) < 2):
                logger.warning(f"Skipping question {i} with invalid options")
                continue
            questions.append(item)
        return questions

    # ==================== Recommendations ====================

    def generate_recommendations(self, transcript: List[Dict[str, Any]], class_level: str, stream: str,
                                 track: str, time_taken: str) -> List[Dict[str, Any]]:
        """Generate ranked recommendations for a track"""
        logger.info(f"🤖 Generating {track} recommendations (dummy: {self.use_dummy})")

        if self.use_dummy:
            return dummy_recommendations(track)

        prompt = PromptTemplates.create_recommendations_prompt(
            transcript, class_level, stream, track, time_taken
        )
        payload = self._call_llm_json(prompt)
        recommendations = [
            item for item in payload.get("recommendations") or []
            if isinstance(item, dict) and item.get("title")
        ]
        logger.info(f"✅ Generated {len(recommendations)} recommendations")
        return recommendations

    def generate_image(self, prompt: str) -> Optional[str]:
        """Generate an image for a recommendation; None when unavailable"""
        if self.use_dummy or not prompt:
            return None

        try:
            response = self.image_client.images.generate(
                model=config.OPENAI_IMAGE_MODEL,
                prompt=PromptTemplates.create_image_prompt(prompt),
                size=config.OPENAI_IMAGE_SIZE,
                n=1
            )
            if not response.data:
                return None
            image = response.data[0]
            if getattr(image, "url", None):
                return image.url
            if getattr(image, "b64_json", None):
                return f"data:image/png;base64,{image.b64_json}"
            return None

        except Exception as e:
            logger.warning(f"Image generation failed: {e}")
            return None

    def generate_roadmap(self, title: str) -> List[Dict[str, Any]]:
        """Generate milestone steps toward a recommendation"""
        logger.info(f"🤖 Generating roadmap for '{title}' (dummy: {self.use_dummy})")

        if self.use_dummy:
            return dummy_roadmap()

        payload = self._call_llm_json(PromptTemplates.create_roadmap_prompt(title))
        return [
            step for step in payload.get("roadmap") or []
            if isinstance(step, dict) and step.get("title")
        ]

    # ==================== Analysis ====================

    def analyze_aptitude(self, transcript: List[Dict[str, Any]], class_level: str, test_type: str,
                         specifics: Optional[str] = None, iq_score: Optional[int] = None) -> Dict[str, Any]:
        """Aptitude analysis for a proctored test submission"""
        logger.info(f"🎯 Analyzing {test_type} aptitude for {class_level} (dummy: {self.use_dummy})")

        if self.use_dummy:
            return dummy_analysis(test_type)

        prompt = PromptTemplates.create_aptitude_analysis_prompt(
            transcript, class_level, test_type, specifics, iq_score
        )
        payload = self._call_llm_json(
            prompt,
            max_tokens=config.ANALYSIS_MAX_TOKENS,
            temperature=config.ANALYSIS_TEMPERATURE
        )
        logger.info("✅ Aptitude analysis completed")
        return payload

    # ==================== LLM plumbing ====================

    def _call_llm_json(self, prompt: str, max_tokens: int = None,
                       temperature: float = None) -> Dict[str, Any]:
        response = self._call_llm_with_retries(prompt, max_tokens, temperature)
        try:
            payload = json.loads(PromptFormatter.strip_code_fences(response))
        except json.JSONDecodeError as e:
            raise Exception(f"LLM returned invalid JSON: {e}")
        if not isinstance(payload, dict):
            raise Exception("LLM returned a non-object JSON payload")
        return payload

    def _call_llm_with_retries(self, prompt: str, max_tokens: int = None,
                               temperature: float = None, retries: int = None) -> str:
        """Call LLM with retry logic"""
        if not self.client:
            raise Exception("AI service not available")
        if max_tokens is None:
            max_tokens = config.GROQ_MAX_TOKENS
        if temperature is None:
            temperature = config.GROQ_TEMPERATURE
        if retries is None:
            retries = config.BATCH_GENERATION_RETRIES

        last_error = None

        for attempt in range(retries):
            try:
                logger.debug(f"LLM call attempt {attempt + 1}/{retries}")

                completion = self.client.chat.completions.create(
                    model=config.GROQ_MODEL,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=temperature,
                    max_completion_tokens=max_tokens,
                    top_p=config.GROQ_TOP_P,
                    response_format={"type": "json_object"}
                )

                if not completion.choices:
                    raise Exception("LLM returned no response")

                response = (completion.choices[0].message.content or "").strip()

                if not response:
                    raise Exception("LLM returned empty content")

                return response

            except Exception as e:
                last_error = e
                logger.warning(f"LLM call attempt {attempt + 1} failed: {e}")
                if attempt < retries - 1:
                    time.sleep(2 ** attempt)

        raise Exception(f"LLM call failed after {retries} attempts: {last_error}")

    def health_check(self) -> Dict[str, Any]:
        """Check AI service health"""
        if self.use_dummy:
            return {
                "status": "healthy",
                "mode": "dummy",
                "client_ready": True,
                "message": "Running in dummy data mode"
            }

        try:
            if not self.client:
                return {"status": "error", "message": "Client not initialized"}

            start_time = time.time()
            test_response = self.client.chat.completions.create(
                model=config.GROQ_MODEL,
                messages=[{"role": "user", "content": "ping"}],
                max_completion_tokens=5
            )
            response_time = time.time() - start_time

            if test_response.choices:
                return {
                    "status": "healthy",
                    "mode": "live",
                    "model": config.GROQ_MODEL,
                    "response_time_ms": round(response_time * 1000, 2),
                    "client_ready": True,
                    "images_enabled": bool(config.OPENAI_API_KEY)
                }
            else:
                return {"status": "error", "message": "No response from LLM"}

        except Exception as e:
            return {"status": "error", "message": str(e)}

# Singleton pattern for AI service
_ai_service = None

def get_ai_service() -> AIService:
    """Get AI service instance (singleton)"""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service

def close_ai_service():
    """Close AI service instance"""
    global _ai_service
    if _ai_service:
        _ai_service = None
