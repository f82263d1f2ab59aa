import json
from types import SimpleNamespace

import pytest

from career_assessment.core.ai_services import AIService
from career_assessment.core.config import config
from career_assessment.core.prompts import PromptFormatter, PromptTemplates

class ScriptedCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])

def live_service(monkeypatch, *replies):
    monkeypatch.setattr(config, "USE_DUMMY_DATA", True)
    service = AIService()
    completions = ScriptedCompletions(replies)
    service.use_dummy = False
    service.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr("career_assessment.core.ai_services.time.sleep", lambda seconds: None)
    return service, completions

def test_quiz_questions_parsed_from_json(monkeypatch):
    payload = {"questions": [
        {"question": "Pick the odd one", "options": ["a", "b", "c", "d"], "correctAnswerIndex": 3},
        {"question": "", "options": ["a", "b"]},
        {"question": "Broken options", "options": "abcd"}
    ]}
    service, completions = live_service(monkeypatch, "```json\n" + json.dumps(payload) + "\n```")

    questions = service.generate_quiz_questions("The student is in Class 9.", 3)
    assert [q["question"] for q in questions] == ["Pick the odd one"]
    assert completions.calls[0]["response_format"] == {"type": "json_object"}

def test_question_generation_failure_returns_empty(monkeypatch):
    service, _ = live_service(monkeypatch, *[Exception("rate limited")] * config.BATCH_GENERATION_RETRIES)
    assert service.generate_quiz_questions("context", 5) == []

def test_retry_recovers_after_transient_error(monkeypatch):
    reply = json.dumps({"roadmap": [{"title": "Learn basics", "duration": "3 months", "description": "..."}]})
    service, completions = live_service(monkeypatch, Exception("timeout"), reply)
    steps = service.generate_roadmap("Pilot")
    assert steps[0]["title"] == "Learn basics"
    assert len(completions.calls) == 2

def test_recommendations_raise_on_invalid_json(monkeypatch):
    service, _ = live_service(monkeypatch, "not json")
    with pytest.raises(Exception):
        service.generate_recommendations([], "Class 10", "", "jobs", "1 min 0 sec")

def test_dummy_mode_has_no_images(monkeypatch):
    monkeypatch.setattr(config, "USE_DUMMY_DATA", True)
    assert AIService().generate_image("a lab") is None

def test_recommendation_prompt_summarizes_answers():
    transcript = [
        {"question": "What is 15% of 200?", "answer": "30", "correct": True, "skipped": False},
        {"question": "Pick a synonym", "answer": "Skipped", "correct": False, "skipped": True}
    ]
    prompt = PromptTemplates.create_recommendations_prompt(transcript, "Class 12", "Commerce", "studies", "3 min 2 sec")
    assert "Q1: Correct" in prompt
    assert "Q2: Skipped" in prompt
    assert "fields for higher studies" in prompt
    assert "Score 50.0%" in prompt

def test_analysis_prompt_variants():
    transcript = [{"question": "q", "answer": "a", "correct": True, "skipped": False}]
    general = PromptTemplates.create_aptitude_analysis_prompt(transcript, "Class 8", "General", None, 102)
    specific = PromptTemplates.create_aptitude_analysis_prompt(transcript, "Class 8", "Specific", "Chef (Pastry)", 102)
    assert "Five distinct" in general
    assert "Chef (Pastry)" in specific
    assert "Estimated IQ: 102" in specific

def test_strip_code_fences():
    assert PromptFormatter.strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert PromptFormatter.strip_code_fences(' {"a": 1} ') == '{"a": 1}'
