"""Pytest configuration and fixtures."""

from collections.abc import Iterable

import pytest

from cardbooth.generator import ContentGenerator
from cardbooth.models.card import GeneratedQuestionSet, Question
from cardbooth.notifications import QueueNotifier
from cardbooth.queue import PrintQueue
from cardbooth.sessions import InputSessionStore

VALID_CARD_JSON = (
    '{"name":"Nova","class":"Echo Rider",'
    '"stats":{"sense":80,"logic":72,"luck":40,"charm":65,"vibe":91},'
    '"skill":"Photon Step","description":"Reads the room fast and acts on it."}'
)

VALID_QUESTIONS_JSON = (
    '{"session_id":"8b0f7c2e-5f33-4a65-9b9a-4a6a5e9f2d10","questions":['
    '{"id":1,"text":"Lunch today?"},'
    '{"id":2,"text":"Stairs or elevator?"},'
    '{"id":3,"text":"First thing on a menu?"},'
    '{"id":4,"text":"Late train: run or wait?"}]}'
)


class FakeBackend:
    """Chat backend returning scripted responses; exceptions in the script are raised."""

    def __init__(self, responses: Iterable[str | Exception]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    async def chat(self, system: str, user: str) -> str:
        self.calls.append((system, user))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def is_healthy(self) -> bool:
        return True


@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def notifier() -> QueueNotifier:
    return QueueNotifier()


@pytest.fixture
def queue(notifier: QueueNotifier) -> PrintQueue:
    """Create a print queue with the default limits."""
    return PrintQueue(job_ttl_seconds=300, claim_ttl_seconds=60, notifier=notifier)


@pytest.fixture
def sessions() -> InputSessionStore:
    return InputSessionStore(ttl_seconds=600)


@pytest.fixture
def question_set() -> GeneratedQuestionSet:
    return GeneratedQuestionSet(
        session_id="batch-1",
        questions=[
            Question(id=1, text="Lunch today?"),
            Question(id=2, text="Stairs or elevator?"),
            Question(id=3, text="First thing on a menu?"),
            Question(id=4, text="Late train: run or wait?"),
        ],
    )


@pytest.fixture
def make_generator():
    """Build a ContentGenerator over a scripted backend."""

    def _make(*responses: str | Exception) -> tuple[ContentGenerator, FakeBackend]:
        backend = FakeBackend(responses)
        return ContentGenerator(backend), backend

    return _make
