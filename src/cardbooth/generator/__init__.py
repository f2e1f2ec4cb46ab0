"""Structured content generation backed by a chat model."""

from cardbooth.generator.client import BackendError, OllamaClient
from cardbooth.generator.parsing import OutputParseError, extract_json_object, parse_model_output
from cardbooth.generator.service import MAX_ATTEMPTS, ContentGenerator
from cardbooth.generator.validation import SchemaError, clamp_text, exact_int, normalize_card, normalize_questions

__all__ = [
    "MAX_ATTEMPTS",
    "BackendError",
    "ContentGenerator",
    "OllamaClient",
    "OutputParseError",
    "SchemaError",
    "clamp_text",
    "exact_int",
    "extract_json_object",
    "normalize_card",
    "normalize_questions",
    "parse_model_output",
]
