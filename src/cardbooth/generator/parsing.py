"""Recover a JSON object from raw model text."""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 500


class OutputParseError(ValueError):
    """Model output could not be parsed as JSON."""


def extract_json_object(text: str) -> Any | None:
    """Parse the span from the first '{' to the last '}'.

    Returns:
        The parsed value, or None if there is no such span or it is not valid JSON.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None


def parse_model_output(raw_text: str, label: str = "model") -> Any:
    """Parse model output, falling back to brace-span extraction.

    Args:
        raw_text: Text returned by the backend.
        label: Name used in log lines.

    Raises:
        OutputParseError: If the text is empty or neither strategy yields JSON.
    """
    text = (raw_text or "").strip()
    if not text:
        logger.warning(f"{label} response empty")
        raise OutputParseError("JSON parse failed: empty response")

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        suffix = "...(truncated)" if len(text) > PREVIEW_LENGTH else ""
        logger.info(f"{label} raw preview: {text[:PREVIEW_LENGTH]}{suffix}")
        extracted = extract_json_object(text)
        if extracted is None:
            raise OutputParseError(f"JSON parse failed: {e}") from e
        return extracted
