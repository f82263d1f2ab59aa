# career_assessment/core/prompts.py
import json
from typing import List, Dict, Any, Optional
from .config import config

class PromptTemplates:
    """Centralized prompt template management"""

    @staticmethod
    def create_quiz_questions_prompt(student_context: str, question_count: int = None) -> str:
        """Create prompt for practice aptitude questions"""
        if question_count is None:
            question_count = config.QUESTIONS_PER_TEST

        sets = max(1, question_count // 5)
        return f"""{student_context} Based on this, create {question_count} unique multiple-choice questions for a career aptitude test.

REQUIREMENTS:
- The questions must be in 5 sets of {sets} questions each, covering: English, Math, Science, Social Science (or related subjects based on stream), and Aptitude
- Each question has exactly 4 options with exactly 1 correct answer
- Keep questions age-appropriate for the student's class

Return a JSON object of this shape:
{{"questions": [{{"question": "...", "options": ["...", "...", "...", "..."], "correctAnswerIndex": 0}}]}}
"correctAnswerIndex" is the integer position (0-3) of the correct option."""

    @staticmethod
    def create_aptitude_test_prompt(class_level: str, test_type: str,
                                    specifics: Optional[str] = None,
                                    question_count: int = None) -> str:
        """Create prompt for a teacher-issued aptitude test"""
        if question_count is None:
            question_count = config.APTITUDE_QUESTIONS_PER_TEST

        if test_type == "General":
            focus = (f"Create a {question_count}-question general aptitude test for a child in class {class_level}. "
                     "The test should assess potential in logical reasoning, verbal ability, numerical reasoning, "
                     "spatial awareness, and creativity.")
        else:
            focus = (f"Create a {question_count}-question aptitude test for a child in class {class_level} to assess "
                     f"their suitability for the career/field of: {specifics}. The questions should be age-appropriate "
                     "and test for relevant skills like problem-solving, critical thinking, and specific knowledge "
                     "areas where applicable.")

        return f"""{focus} All questions must be multiple-choice questions (MCQs) with 4 options.

Return a JSON object of this shape:
{{"questions": [{{"question": "...", "options": ["...", "...", "...", "..."], "correctAnswerIndex": 0}}]}}"""

    @staticmethod
    def create_recommendations_prompt(transcript: List[Dict[str, Any]], class_level: str, stream: str,
                                      track: str, time_taken: str, recommendation_count: int = None) -> str:
        """Create prompt for track recommendations based on the answer pattern"""
        if recommendation_count is None:
            recommendation_count = config.RECOMMENDATIONS_COUNT

        lines = ["User Answers Analysis:"]
        correct_count = 0
        for i, item in enumerate(transcript, 1):
            if item.get("skipped"):
                lines.append(f"Q{i}: Skipped")
            elif item.get("correct"):
                correct_count += 1
                lines.append(f"Q{i}: Correct ({item['question'][:30]}...)")
            else:
                lines.append(f"Q{i}: Incorrect")
        answer_summary = "\n".join(lines)

        score_percentage = (correct_count / len(transcript)) * 100 if transcript else 0
        prompt_type = "job and career paths" if track == "jobs" else "fields for higher studies"
        stream_text = f" ({stream})" if stream else ""

        return f"""Analyze the following student's aptitude test performance.
Profile: Class {class_level}{stream_text}.
Performance: Score {score_percentage:.1f}%, Time Taken: {time_taken}.

{answer_summary}

Based on their answering pattern (identifying strong/weak topics) and implicit IQ from the score/time ratio, recommend the top {recommendation_count} {prompt_type}.
For each, provide:
1. "title": The name of the path.
2. "description": Why this fits their specific performance (2-3 sentences).
3. "imagePrompt": A creative, professional image prompt to visually represent this path (for AI generation).

Return a JSON object of this shape:
{{"recommendations": [{{"title": "...", "description": "...", "imagePrompt": "..."}}]}}"""

    @staticmethod
    def create_image_prompt(prompt: str) -> str:
        return f"A professional, high-quality photograph representing {prompt}. Minimalist, blue and white theme."

    @staticmethod
    def create_roadmap_prompt(title: str) -> str:
        """Create prompt for a beginner roadmap"""
        return f"""Create a detailed, step-by-step roadmap for a beginner to become a "{title}". Provide 4-6 milestones. For each, give a "title", a "duration", and a brief "description".

Return a JSON object of this shape:
{{"roadmap": [{{"title": "...", "duration": "...", "description": "..."}}]}}"""

    @staticmethod
    def create_aptitude_analysis_prompt(transcript: List[Dict[str, Any]], class_level: str, test_type: str,
                                        specifics: Optional[str] = None, iq_score: Optional[int] = None) -> str:
        """Create prompt for the aptitude analysis of a proctored test"""
        answers = json.dumps([
            {"question": item["question"], "answer": item["answer"], "correct": item["correct"]}
            for item in transcript
        ])
        estimate = iq_score if iq_score is not None else "N/A"
        swot_shape = ('"swot": {"strengths": ["..."], "weaknesses": ["..."], '
                      '"opportunities": ["..."], "threats": ["..."]}')

        if test_type == "General":
            return f"""Based on the following test answers from a child in class {class_level} (Estimated IQ: {estimate}), analyze their performance.
Provide:
1. A detailed SWOT analysis (Strengths, Weaknesses, Opportunities, Threats) based on their answers.
2. A detailed, personalized teaching plan on how to teach this student without straining them, considering their class level and estimated IQ.
3. Five distinct and suitable career paths (study and job) with a brief reason for each.
4. A short paragraph analysis and a summary verdict.

The answers are: {answers}

Return a JSON object of this shape:
{{{swot_shape}, "teachingPlan": "...", "suggestions": [{{"career": "...", "reason": "..."}}], "analysis": "...", "verdict": "..."}}"""

        return f"""Based on the following test answers from a child in class {class_level} (Estimated IQ: {estimate}), provide a detailed aptitude analysis for the career of {specifics}.
Provide:
1. A detailed SWOT analysis (Strengths, Weaknesses, Opportunities, Threats) relevant to this career.
2. A detailed, personalized teaching plan on how to teach this student without straining them, considering their class level and estimated IQ.
3. A detailed paragraph analysis and a summary verdict (e.g., "High Potential", "Moderate Fit").

The answers are: {answers}

Return a JSON object of this shape:
{{{swot_shape}, "teachingPlan": "...", "analysis": "...", "verdict": "..."}}"""

class PromptFormatter:
    """Utility class for cleaning LLM responses"""

    @staticmethod
    def strip_code_fences(response: str) -> str:
        """Remove markdown code fences some models wrap JSON in"""
        cleaned = response.strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
            if cleaned.rstrip().endswith("```"):
                cleaned = cleaned.rstrip()[:-3]
        return cleaned.strip()
