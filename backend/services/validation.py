"""Structural validation of quiz payloads returned by the model.

Failures are returned as ``InvalidQuiz`` values, not raised, so callers can
decide whether to retry. Validation stops at the first broken rule.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from models import QuizQuestion
from utils import parse_json_response

OPTION_COUNT = 4


@dataclass(frozen=True)
class ValidQuiz:
    questions: list[QuizQuestion] = field(default_factory=list)

    ok = True


@dataclass(frozen=True)
class InvalidQuiz:
    message: str
    rule: str
    question_index: Optional[int] = None  # 1-based; None for payload-level failures

    ok = False


ValidationResult = Union[ValidQuiz, InvalidQuiz]


def _non_empty_string(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _check_question(item, index: int) -> Optional[InvalidQuiz]:
    """Return the first rule ``item`` violates, or None."""
    if not isinstance(item, dict):
        return InvalidQuiz(f"Question {index} is not an object", "not_an_object", index)

    if not _non_empty_string(item.get("question")):
        return InvalidQuiz(f"Question {index} is missing question text", "missing_question_text", index)

    options = item.get("options")
    if not isinstance(options, list):
        return InvalidQuiz(f"Question {index} options must be an array", "options_not_array", index)

    if not _non_empty_string(item.get("correctAnswer")):
        return InvalidQuiz(f"Question {index} is missing a correct answer", "missing_correct_answer", index)

    if len(options) != OPTION_COUNT:
        return InvalidQuiz(
            f"Question {index} does not have exactly {OPTION_COUNT} options",
            "wrong_option_count",
            index,
        )

    if not all(isinstance(o, str) for o in options):
        return InvalidQuiz(f"Question {index} has a non-text option", "non_string_option", index)

    if len(set(options)) != len(options):
        return InvalidQuiz(f"Question {index} has duplicate options", "duplicate_options", index)

    if item["correctAnswer"] not in options:
        return InvalidQuiz(
            f"Question {index} correct answer is not in options",
            "answer_not_in_options",
            index,
        )

    return None


def validate_quiz_payload(raw: Optional[str]) -> ValidationResult:
    """
    Parse raw model output and check every question in order.

    Returns ValidQuiz with the questions in source order, or InvalidQuiz
    describing the first violation found.
    """
    if raw is None or not raw.strip():
        return InvalidQuiz("Empty response from model", "empty_response")

    try:
        payload = parse_json_response(raw)
    except ValueError:
        return InvalidQuiz("Malformed response: model output is not valid JSON", "malformed_response")

    if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
        return InvalidQuiz("Invalid response format: missing questions array", "missing_questions_array")

    validated = []
    for index, item in enumerate(payload["questions"], start=1):
        failure = _check_question(item, index)
        if failure is not None:
            return failure
        validated.append(
            QuizQuestion(
                question=item["question"],
                options=tuple(item["options"]),
                correct_answer=item["correctAnswer"],
            )
        )

    return ValidQuiz(questions=validated)
