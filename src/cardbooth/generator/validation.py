"""Schema validation for model output.

Text fields must be JSON strings. They are trimmed and hard-truncated to
their limit before the emptiness check, so a field is only rejected when
nothing usable is left.
Integers must be exact: ``80``, ``80.0`` and ``"80"`` pass, ``3.5`` and
``"3.5"`` do not.
"""

import logging
import math
from typing import Any

from cardbooth.models.card import (
    CLASS_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    MAX_QUESTIONS,
    MIN_QUESTIONS,
    NAME_MAX_LENGTH,
    QUESTION_MAX_LENGTH,
    SESSION_ID_MAX_LENGTH,
    SKILL_MAX_LENGTH,
    STAT_KEYS,
    STAT_MAX,
    STAT_MIN,
    CardStats,
    GeneratedCardRecord,
    GeneratedQuestionSet,
    Question,
)

logger = logging.getLogger(__name__)


class SchemaError(ValueError):
    """Model output did not match the expected schema."""


def clamp_text(label: str, value: Any, max_length: int) -> str:
    """Trim a value to a string and truncate it to max_length.

    Non-string values are stringified.

    Args:
        label: Field name used in the truncation log line.
        value: Raw value. None becomes an empty string.
        max_length: Maximum number of characters kept.

    Returns:
        The trimmed, possibly truncated, string.
    """
    text = "" if value is None else str(value).strip()
    if len(text) > max_length:
        logger.info(f"Truncating {label} to {max_length} chars: {text!r}")
        return text[:max_length]
    return text


def exact_int(value: Any) -> int | None:
    """Coerce a value to an int only when it is exactly integral.

    Returns:
        The integer, or None if the value is not an exact integer.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if math.isfinite(number) and number.is_integer():
            return int(number)
    return None


def _required_text(raw: dict[str, Any], key: str, max_length: int) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise SchemaError(f"field '{key}' must be a string, got {value!r}")
    text = clamp_text(key, value, max_length)
    if not text:
        raise SchemaError(f"missing or empty field '{key}'")
    return text


def normalize_card(raw: Any) -> GeneratedCardRecord:
    """Validate parsed model output as card data.

    Raises:
        SchemaError: If any field is missing, empty, mistyped or out of range.
    """
    if not isinstance(raw, dict):
        raise SchemaError("card output is not a JSON object")

    name = _required_text(raw, "name", NAME_MAX_LENGTH)
    card_class = _required_text(raw, "class", CLASS_MAX_LENGTH)
    skill = _required_text(raw, "skill", SKILL_MAX_LENGTH)
    description = _required_text(raw, "description", DESCRIPTION_MAX_LENGTH)

    raw_stats = raw.get("stats")
    if not isinstance(raw_stats, dict):
        raise SchemaError("missing 'stats' object")

    stats: dict[str, int] = {}
    for key in STAT_KEYS:
        value = exact_int(raw_stats.get(key))
        if value is None or not STAT_MIN <= value <= STAT_MAX:
            raise SchemaError(f"stat '{key}' must be an integer {STAT_MIN}-{STAT_MAX}, got {raw_stats.get(key)!r}")
        stats[key] = value

    return GeneratedCardRecord(
        name=name,
        card_class=card_class,
        stats=CardStats(**stats),
        skill=skill,
        description=description,
    )


def normalize_questions(raw: Any) -> GeneratedQuestionSet:
    """Validate parsed model output as a question set.

    Raises:
        SchemaError: If the set size, session id or any question is invalid.
    """
    if not isinstance(raw, dict):
        raise SchemaError("question output is not a JSON object")

    raw_questions = raw.get("questions")
    if not isinstance(raw_questions, list) or not MIN_QUESTIONS <= len(raw_questions) <= MAX_QUESTIONS:
        raise SchemaError(f"expected {MIN_QUESTIONS}-{MAX_QUESTIONS} questions")

    session_id = _required_text(raw, "session_id", SESSION_ID_MAX_LENGTH)

    questions: list[Question] = []
    seen_ids: set[int] = set()
    for item in raw_questions:
        if not isinstance(item, dict):
            raise SchemaError("question entry is not an object")
        question_id = exact_int(item.get("id"))
        raw_text = item.get("text")
        text = clamp_text("question.text", raw_text, QUESTION_MAX_LENGTH) if isinstance(raw_text, str) else ""
        if question_id is None or question_id < 1 or not text:
            raise SchemaError(f"invalid question entry: {item!r}")
        if question_id in seen_ids:
            raise SchemaError(f"duplicate question id {question_id}")
        seen_ids.add(question_id)
        questions.append(Question(id=question_id, text=text))

    return GeneratedQuestionSet(session_id=session_id, questions=questions)
