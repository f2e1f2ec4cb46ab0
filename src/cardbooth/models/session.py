"""Input session models."""

from datetime import datetime, timedelta
from uuid import uuid4

from pydantic import BaseModel, Field

from cardbooth.models.card import Question


class InputSession(BaseModel):
    """A single-use question/answer exchange addressed by a QR token."""

    token: str = Field(default_factory=lambda: str(uuid4()))
    created_at: datetime = Field(default_factory=datetime.now)
    session_id: str
    questions: list[Question]
    answered_at: datetime | None = None
    keywords: list[str] | None = None

    @property
    def is_answered(self) -> bool:
        return self.answered_at is not None

    def expires_at(self, ttl_seconds: float) -> datetime:
        return self.created_at + timedelta(seconds=ttl_seconds)

    def is_expired(self, ttl_seconds: float) -> bool:
        """Check if the session has outlived the session TTL."""
        elapsed = (datetime.now() - self.created_at).total_seconds()
        return elapsed > ttl_seconds
