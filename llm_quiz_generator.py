import os
import json
import logging
from functools import lru_cache
from typing import Any, Protocol
from dotenv import load_dotenv
import google.generativeai as genai
from pydantic import ValidationError
from models import QuizOutput

load_dotenv()

logger = logging.getLogger(__name__)

QUESTION_COUNT = 5

GENERATION_CONFIG = {
    "temperature": 0.7,
    "response_mime_type": "application/json",
}

PROMPT_TEMPLATE = """Create a mixed set of {count} questions to test understanding of this content. Include both single-choice and multi-select questions. Make questions direct and natural without referencing any website or source material.

Content: "{content}"

Requirements:
1. Mix of single-choice and multi-select questions
2. Questions should be direct and natural (e.g., "What is the primary cause of..." instead of "According to the text...")
3. Test comprehension of key concepts and relationships
4. Include specific details but phrase questions independently
5. All options should be plausible
6. For multi-select questions, include 2-3 correct answers in the correctAnswers array
7. Single-choice questions have exactly one entry in correctAnswers

Format as JSON (return ONLY this, no markdown, no comments):
{{
  "title": "Quiz: [Main Topic]",
  "questions": [
    {{
      "question": "Question text",
      "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
      "correctAnswers": [0],
      "type": "single" | "multiple"
    }}
  ]
}}
"""


class QuizParseError(Exception):
    """The model response could not be decoded into a quiz."""


class TextModel(Protocol):
    def generate_content(self, prompt: str) -> Any: ...


def build_prompt(content: str) -> str:
    return PROMPT_TEMPLATE.format(count=QUESTION_COUNT, content=content)


# Tried in order when GEMINI_MODEL is not set, before any other 'flash' model.
PREFERRED_MODELS = ("gemini-1.5-flash", "gemini-1.5-flash-8b")


def _pick_model() -> str:
    names = [
        m.name.split("/")[-1]
        for m in genai.list_models()
        if "generateContent" in getattr(m, "supported_generation_methods", [])
    ]
    if not names:
        raise RuntimeError("No Gemini models with generateContent are available to this API key.")
    for preferred in PREFERRED_MODELS:
        if preferred in names:
            return preferred
    return next((n for n in names if "flash" in n), names[0])


@lru_cache(maxsize=1)
def get_model() -> TextModel:
    """Configure the Gemini client from the environment and build the quiz model."""
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise RuntimeError("Set GEMINI_API_KEY or GOOGLE_API_KEY in .env")
    genai.configure(api_key=api_key)
    model_name = os.getenv("GEMINI_MODEL") or _pick_model()
    logger.info("Using model %s for quiz generation", model_name)
    return genai.GenerativeModel(model_name, generation_config=GENERATION_CONFIG)


def _json_object_text(raw: str) -> str:
    """Cut the outermost ``{...}`` out of a reply wrapped in fences or prose."""
    text = (raw or "").strip()
    start, end = text.find("{"), text.rfind("}")
    return text[start:end + 1] if start != -1 and end > start else text


def parse_quiz(raw: str) -> QuizOutput:
    """Decode a model response into a validated quiz."""
    text = _json_object_text(raw)
    if not text:
        raise QuizParseError("Empty model response")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise QuizParseError(f"Model response is not valid JSON: {e}") from e

    if isinstance(data, dict):
        for q in data.get("questions") or []:
            if isinstance(q, dict) and isinstance(q.get("type"), str):
                q["type"] = q["type"].strip().lower()
    try:
        return QuizOutput.model_validate(data)
    except ValidationError as e:
        raise QuizParseError(f"Model response does not match the quiz shape: {e}") from e


def generate_quiz(content: str, model: TextModel) -> QuizOutput:
    """
    Ask the model for a quiz about the given text.

    Args:
        content: extracted page text
        model: text-generation client exposing generate_content(prompt)

    Raises:
        QuizParseError: the response is not a well-formed quiz
    """
    resp = model.generate_content(build_prompt(content))
    quiz = parse_quiz(getattr(resp, "text", "") or "")
    logger.info("Model returned quiz %r with %d questions", quiz.title, len(quiz.questions))
    return quiz
