"""Ollama chat backend client."""

import logging
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """The text-generation backend failed, timed out or returned an unusable response."""


class OllamaClient:
    """Minimal async client for the Ollama ``/api/chat`` endpoint.

    A single aiohttp session is created lazily and reused across calls.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:11434",
        model: str = "gpt-oss:20b",
        timeout_seconds: float = 600,
        health_timeout_seconds: float = 5,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.health_timeout_seconds = health_timeout_seconds
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def chat(self, system: str, user: str) -> str:
        """Send one non-streaming chat request and return the assistant text.

        Args:
            system: System prompt.
            user: User message.

        Returns:
            The raw ``message.content`` string.

        Raises:
            BackendError: On timeout, transport failure, non-2xx status or malformed body.
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "stream": False,
            "format": "json",
        }
        session = self._get_session()
        try:
            async with session.post(
                f"{self.base_url}/api/chat",
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as resp:
                if resp.status >= 300:
                    text = await resp.text()
                    raise BackendError(f"Ollama error {resp.status}: {text[:200]}")
                data = await resp.json(content_type=None)
        except TimeoutError as e:
            raise BackendError(f"Ollama request timed out after {self.timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            raise BackendError(f"Ollama request failed: {e}") from e
        except ValueError as e:
            raise BackendError(f"Ollama returned invalid JSON: {e}") from e

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise BackendError("Invalid Ollama response")
        return content

    async def is_healthy(self) -> bool:
        """Check that the backend answers ``/api/tags`` within the health timeout."""
        try:
            session = self._get_session()
            async with session.get(
                f"{self.base_url}/api/tags",
                timeout=aiohttp.ClientTimeout(total=self.health_timeout_seconds),
            ) as resp:
                return resp.status < 300
        except Exception as e:
            logger.debug(f"Ollama health check failed: {e}")
            return False
