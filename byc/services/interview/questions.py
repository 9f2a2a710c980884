"""Interview question bank.

The built-in prompts are used unless ``settings.questions_file`` points at a
JSON file containing a list of ``{"id", "prompt", "time_limit", "tips"}``
objects.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from byc.core.config import get_settings
from byc.core.exceptions import QuestionBankError
from byc.core.models import Question

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS: tuple[Question, ...] = (
    Question(
        id=1,
        prompt=(
            "Tell us about a challenging technical problem you solved. "
            "What was your approach?"
        ),
        time_limit=120,
        tips=(
            "Start with the context and challenge",
            "Explain your thought process",
            "Share the outcome and learnings",
        ),
    ),
    Question(
        id=2,
        prompt=(
            "Why are you interested in a career in data engineering? "
            "What excites you about this field?"
        ),
        time_limit=120,
        tips=(
            "Be genuine about your motivation",
            "Connect to your skills and interests",
            "Show enthusiasm for the field",
        ),
    ),
)


def load_questions_file(path: str | Path) -> tuple[Question, ...]:
    """Parse a JSON question file.

    Args:
        path: Path to a JSON file holding a non-empty list of question objects.

    Returns:
        The questions in file order.

    Raises:
        QuestionBankError: If the file is missing, not valid JSON, empty,
            or contains duplicate / invalid entries.
    """
    file_path = Path(path)
    try:
        with open(file_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise QuestionBankError(f"Question file not found: {file_path}") from None
    except json.JSONDecodeError as exc:
        raise QuestionBankError(f"Invalid JSON in {file_path}: {exc}") from None

    if not isinstance(data, list) or not data:
        raise QuestionBankError(f"{file_path} must contain a non-empty list of questions")

    try:
        questions = tuple(Question.model_validate(item) for item in data)
    except ValidationError as exc:
        raise QuestionBankError(f"Invalid question in {file_path}: {exc}") from None

    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        raise QuestionBankError(f"Duplicate question ids in {file_path}")

    return questions


def get_questions() -> tuple[Question, ...]:
    """Return the configured question sequence."""
    questions_file = get_settings().questions_file
    if not questions_file:
        return DEFAULT_QUESTIONS

    questions = load_questions_file(questions_file)
    logger.info("Loaded %d interview questions from %s", len(questions), questions_file)
    return questions
