"""Pydantic models for cardbooth."""

from cardbooth.models.card import CardStats, GeneratedCardRecord, GeneratedQuestionSet, Question
from cardbooth.models.job import JobClaim, JobOutcome, PrintJob
from cardbooth.models.session import InputSession

__all__ = [
    "CardStats",
    "GeneratedCardRecord",
    "GeneratedQuestionSet",
    "InputSession",
    "JobClaim",
    "JobOutcome",
    "PrintJob",
    "Question",
]
