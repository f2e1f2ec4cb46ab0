"""Print job models."""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class JobOutcome(StrEnum):
    """Terminal outcome reported by a print station."""

    PRINTED = "printed"
    FAILED = "failed"


class JobClaim(BaseModel):
    """An active claim on a print job by a single station."""

    claimed_by: str
    claimed_at: datetime = Field(default_factory=datetime.now)

    def is_stale(self, ttl_seconds: float) -> bool:
        """Check if the claim is older than the claim TTL."""
        elapsed = (datetime.now() - self.claimed_at).total_seconds()
        return elapsed > ttl_seconds


class PrintJob(BaseModel):
    """A rendered card waiting in the print queue."""

    id: UUID = Field(default_factory=uuid4)
    image: str  # base64 encoded PNG, opaque to the queue
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)
    claim: JobClaim | None = None
    fail_count: int = Field(default=0, ge=0)
    last_error: str | None = None

    @property
    def is_claimed(self) -> bool:
        return self.claim is not None

    def is_expired(self, ttl_seconds: float) -> bool:
        """Check if the job has outlived the job TTL."""
        elapsed = (datetime.now() - self.created_at).total_seconds()
        return elapsed > ttl_seconds
