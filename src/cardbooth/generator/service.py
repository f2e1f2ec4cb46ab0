"""Retrying, validating structured-content generation."""

import logging
from collections.abc import Callable, Sequence
from typing import Protocol, TypeVar

from cardbooth.errors import GenerationError
from cardbooth.generator.client import BackendError
from cardbooth.generator.parsing import OutputParseError, parse_model_output
from cardbooth.generator.prompts import (
    CARD_SYSTEM_PROMPT,
    QUESTION_USER_PROMPT,
    build_card_prompt,
    build_question_system_prompt,
)
from cardbooth.generator.validation import SchemaError, normalize_card, normalize_questions
from cardbooth.models.card import GeneratedCardRecord, GeneratedQuestionSet

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3

T = TypeVar("T")


class ChatBackend(Protocol):
    async def chat(self, system: str, user: str) -> str: ...


class ContentGenerator:
    """Turns untrusted input into schema-valid records via a chat backend.

    Each attempt is a fresh backend call followed by parsing and validation.
    Attempt failures are logged and retried; only exhaustion is raised.
    """

    def __init__(self, backend: ChatBackend, language: str = "Korean", max_attempts: int = MAX_ATTEMPTS) -> None:
        self.backend = backend
        self.language = language
        self.max_attempts = max_attempts

    async def generate_card(self, keywords: Sequence[str]) -> GeneratedCardRecord:
        """Generate card data from answer keywords.

        Raises:
            GenerationError: If every attempt failed.
        """
        return await self._generate(
            label="card",
            system=CARD_SYSTEM_PROMPT,
            user=build_card_prompt(keywords, self.language),
            normalize=normalize_card,
        )

    async def generate_questions(self) -> GeneratedQuestionSet:
        """Generate a fresh set of profiling questions.

        Raises:
            GenerationError: If every attempt failed.
        """
        return await self._generate(
            label="question",
            system=build_question_system_prompt(self.language),
            user=QUESTION_USER_PROMPT,
            normalize=normalize_questions,
        )

    async def _generate(self, label: str, system: str, user: str, normalize: Callable[[object], T]) -> T:
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                raw_text = await self.backend.chat(system, user)
                parsed = parse_model_output(raw_text, label=label)
                return normalize(parsed)
            except (BackendError, OutputParseError, SchemaError) as e:
                last_error = e
                logger.warning(f"{label} attempt {attempt}/{self.max_attempts} failed: {e}")

        raise GenerationError() from last_error
