"""Print station client: claims jobs from the broker and hands them to a local print agent."""

import asyncio
import contextlib
import logging
from typing import Any
from uuid import uuid4

import aiohttp

from cardbooth.models.job import JobOutcome

logger = logging.getLogger(__name__)


class AgentError(Exception):
    """Raised when the local print agent rejects or fails a print."""


class PrintAgentClient:
    """HTTP client for the local print agent that drives the physical printer."""

    def __init__(self, session: aiohttp.ClientSession, agent_url: str, timeout_seconds: float = 30) -> None:
        self._session = session
        self.agent_url = agent_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def is_online(self) -> bool:
        """Check the agent's health endpoint."""
        try:
            async with self._session.get(
                f"{self.agent_url}/health",
                timeout=aiohttp.ClientTimeout(total=5),
            ) as resp:
                return resp.status < 300
        except Exception as e:
            logger.debug(f"Print agent health check failed: {e}")
            return False

    async def print_image(self, image_base64: str, printer_name: str | None = None) -> None:
        """Send a base64 PNG to the agent.

        Raises:
            AgentError: If the agent is unreachable or reports a failure.
        """
        payload: dict[str, Any] = {"imageBase64": image_base64}
        if printer_name:
            payload["printerName"] = printer_name
        try:
            async with self._session.post(
                f"{self.agent_url}/print",
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as resp:
                if resp.status >= 300:
                    text = await resp.text()
                    raise AgentError(text or "print failed")
        except aiohttp.ClientError as e:
            raise AgentError(str(e) or "print error") from e
        except TimeoutError as e:
            raise AgentError("print agent timed out") from e


class PrintStation:
    """Polls the broker for print jobs and prints them one at a time.

    Claims are triggered by queue events from ``/ws/print`` and by a fallback
    poll timer. Only one claim/print cycle runs at a time.

    After a failed print, events are ignored until the next poll so a broken
    printer does not burn through the job's retries.
    """

    def __init__(
        self,
        server_url: str,
        agent_url: str = "http://127.0.0.1:18181",
        client_id: str | None = None,
        printer_name: str | None = None,
        poll_interval: float = 15.0,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.agent_url = agent_url
        self.client_id = client_id or str(uuid4())
        self.printer_name = printer_name
        self.poll_interval = poll_interval
        self.pending_count = 0
        self._retry_at = 0.0  # loop time before which queue events do not trigger a claim
        self._busy = asyncio.Lock()
        self._session: aiohttp.ClientSession | None = None
        self._agent: PrintAgentClient | None = None
        self._task: asyncio.Task | None = None

    async def __aenter__(self) -> "PrintStation":
        self._session = aiohttp.ClientSession()
        self._agent = PrintAgentClient(self._session, self.agent_url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
        if self._session:
            await self._session.close()
        self._session = None
        self._agent = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("PrintStation must be used as an async context manager")
        return self._session

    @property
    def agent(self) -> PrintAgentClient:
        if self._agent is None:
            raise RuntimeError("PrintStation must be used as an async context manager")
        return self._agent

    async def claim(self) -> dict[str, Any] | None:
        """Claim the next job from the broker. Returns None when the queue is empty."""
        async with self.session.get(
            f"{self.server_url}/api/print/next",
            params={"clientId": self.client_id},
        ) as resp:
            if resp.status == 204:
                return None
            resp.raise_for_status()
            return await resp.json()

    async def report(self, job_id: str, outcome: JobOutcome, message: str | None = None) -> None:
        """Report the outcome of a claimed job to the broker."""
        body: dict[str, Any] = {"status": outcome.value}
        if message:
            body["message"] = message
        async with self.session.post(f"{self.server_url}/api/print/{job_id}/done", json=body) as resp:
            if resp.status >= 300:
                logger.warning(f"Reporting job {job_id} as {outcome} returned {resp.status}")

    async def process_next(self) -> JobOutcome | None:
        """Run one claim/print/report cycle.

        Returns:
            The outcome reported for the claimed job, or None if the queue was
            empty or a cycle was already running.
        """
        if self._busy.locked():
            return None

        async with self._busy:
            job = await self.claim()
            if job is None:
                return None

            job_id = job["jobId"]
            logger.info(f"Claimed job {job_id}")

            if not await self.agent.is_online():
                logger.warning(f"Print agent offline, returning job {job_id}")
                await self.report(job_id, JobOutcome.FAILED, "agent offline")
                return JobOutcome.FAILED

            try:
                await self.agent.print_image(job["imageBase64"], self.printer_name)
            except AgentError as e:
                logger.error(f"Job {job_id} failed: {e}")
                await self.report(job_id, JobOutcome.FAILED, str(e))
                return JobOutcome.FAILED

            await self.report(job_id, JobOutcome.PRINTED)
            logger.info(f"Job {job_id} printed")
            return JobOutcome.PRINTED

    async def drain(self) -> int:
        """Process jobs until the queue is empty or a print fails.

        A failed job is not retried here. The next poll picks it up.

        Returns:
            The number of jobs handled, including a final failed one.
        """
        handled = 0
        while (outcome := await self.process_next()) is not None:
            handled += 1
            if outcome == JobOutcome.FAILED:
                self._retry_at = asyncio.get_running_loop().time() + self.poll_interval
                break
        return handled

    async def start(self) -> None:
        """Start the background station loop."""
        if self._task is not None and not self._task.done():
            logger.warning(f"Station {self.client_id} already running")
            return
        self._task = asyncio.create_task(self.run(), name=f"print-station-{self.client_id}")

    async def stop(self) -> None:
        """Stop the background station loop."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run(self) -> None:
        """Listen for queue events and poll as a fallback, forever."""
        ws_url = self.server_url.replace("http://", "ws://", 1).replace("https://", "wss://", 1)
        ws_url = f"{ws_url}/ws/print"

        while True:
            try:
                async with self.session.ws_connect(ws_url, params={"clientId": self.client_id}) as ws:
                    logger.info(f"Station {self.client_id} connected to {ws_url}")
                    await self._listen(ws)
            except asyncio.CancelledError:
                logger.info(f"Station {self.client_id} cancelled")
                raise
            except Exception as e:
                logger.warning(f"Event stream unavailable ({e}), polling every {self.poll_interval}s")

            try:
                await self.drain()
            except Exception as e:
                logger.error(f"Queue processing failed: {e}")
            await asyncio.sleep(self.poll_interval)

    async def _listen(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        await self.drain()
        while True:
            try:
                msg = await ws.receive(timeout=self.poll_interval)
            except TimeoutError:
                await self.drain()
                continue

            if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                return
            if msg.type != aiohttp.WSMsgType.TEXT:
                continue

            event = msg.json()
            if event.get("event") == "print:queue_update":
                self.pending_count = event.get("data", {}).get("pendingCount", 0)
            if asyncio.get_running_loop().time() < self._retry_at:
                continue
            try:
                await self.drain()
            except Exception as e:
                logger.error(f"Queue processing failed: {e}")
