"""In-memory print queue with claim leases, bounded retries and job expiry."""

import logging
from typing import Any

from cardbooth.errors import InvalidStatusError, NotFoundError
from cardbooth.models.job import JobClaim, JobOutcome, PrintJob
from cardbooth.notifications import QueueNotifier

logger = logging.getLogger(__name__)

MAX_FAILS = 3


class PrintQueue:
    """FIFO hand-off of rendered cards to print stations.

    At most one station holds a claim on a job at a time. Jobs are served
    oldest-unclaimed-first. Every method is synchronous so that a scan and
    the claim it makes cannot interleave with another request on the event loop.
    """

    def __init__(
        self,
        job_ttl_seconds: float = 300,
        claim_ttl_seconds: float = 60,
        max_fails: int = MAX_FAILS,
        notifier: QueueNotifier | None = None,
    ) -> None:
        self.job_ttl_seconds = job_ttl_seconds
        self.claim_ttl_seconds = claim_ttl_seconds
        self.max_fails = max_fails
        self.notifier = notifier or QueueNotifier()
        self._jobs: dict[str, PrintJob] = {}  # insertion ordered, job_id -> job

    def __len__(self) -> int:
        return len(self._jobs)

    def get_job(self, job_id: str) -> PrintJob | None:
        """Get a job by ID."""
        return self._jobs.get(job_id)

    def pending_count(self) -> int:
        """Number of jobs without an active claim."""
        return sum(1 for job in self._jobs.values() if not job.is_claimed)

    def enqueue(self, image: str, meta: dict[str, Any] | None = None) -> str:
        """Append a new unclaimed job at the tail of the queue.

        Args:
            image: Base64 encoded card image.
            meta: Opaque metadata passed through to the station.

        Returns:
            The new job ID.
        """
        job = PrintJob(image=image, meta=meta or {})
        job_id = str(job.id)
        self._jobs[job_id] = job
        logger.info(f"Print job {job_id} queued")
        self.notifier.publish_new_job(job_id)
        self._publish_update()
        return job_id

    def claim_next(self, client_id: str) -> PrintJob | None:
        """Claim the oldest unclaimed job for a station.

        Runs a garbage collection pass first so the claim always sees
        expired claims released and dead jobs removed.

        Returns:
            The claimed job, or None when no job is available.
        """
        if self.collect_garbage():
            self._publish_update()

        for job_id, job in self._jobs.items():
            if job.is_claimed:
                continue
            job.claim = JobClaim(claimed_by=client_id)
            logger.info(f"Print job {job_id} claimed by {client_id}")
            self._publish_update()
            return job

        return None

    def report_outcome(self, job_id: str, status: str, message: str | None = None) -> None:
        """Record a station's terminal outcome for a job.

        Args:
            job_id: The job the station claimed.
            status: "printed" or "failed".
            message: Optional failure detail from the station.

        Raises:
            NotFoundError: If the job is not in the queue.
            InvalidStatusError: If status is not a known outcome.
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError("job not found")

        try:
            outcome = JobOutcome(status)
        except ValueError as e:
            raise InvalidStatusError() from e

        if outcome == JobOutcome.PRINTED:
            del self._jobs[job_id]
            logger.info(f"Print job {job_id} printed")
        else:
            job.fail_count += 1
            job.claim = None
            job.last_error = message
            if job.fail_count >= self.max_fails:
                del self._jobs[job_id]
                logger.warning(f"Print job {job_id} dropped after {job.fail_count} failures: {message or ''}")
            else:
                logger.warning(f"Print job {job_id} failed ({job.fail_count}/{self.max_fails}): {message or ''}")

        self._publish_update()

    def collect_garbage(self) -> bool:
        """Release stale claims and remove expired or exhausted jobs.

        Safe to call at any time and any number of times.

        Returns:
            True if anything changed.
        """
        changed = False
        for job_id, job in list(self._jobs.items()):
            if job.claim is not None and job.claim.is_stale(self.claim_ttl_seconds):
                logger.info(f"Releasing stale claim on job {job_id} held by {job.claim.claimed_by}")
                job.claim = None
                changed = True

            if job.is_expired(self.job_ttl_seconds) or job.fail_count >= self.max_fails:
                del self._jobs[job_id]
                logger.info(f"Print job {job_id} evicted")
                changed = True

        return changed

    def _publish_update(self) -> None:
        self.notifier.publish_queue_update(self.pending_count())
