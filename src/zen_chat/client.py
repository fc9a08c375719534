"""Async HTTP client for the generateContent completion endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .exceptions import TransportError
from .projection import CompletionRequest

LOGGER = logging.getLogger(__name__)


def extract_reply_text(payload: Any) -> str | None:
    """Return ``candidates[0].content.parts[0].text`` or None when missing."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class CompletionClient:
    """Send projected conversations to the completion endpoint."""

    def __init__(
        self,
        endpoint: str,
        model: str,
        api_key: str = "",
        timeout: float = 60,
        retries: int = 0,
        retry_backoff_seconds: float = 0.5,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.retries = max(0, retries)
        self.retry_backoff_seconds = retry_backoff_seconds
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def url(self) -> str:
        return f"{self.endpoint}/models/{self.model}:generateContent"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post_once(self, body: dict[str, Any]) -> Any:
        try:
            response = await self._client.post(
                self.url,
                params={"key": self.api_key} if self.api_key else None,
                json=body,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request to {self.model} timed out.") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Unable to reach completion endpoint: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Completion endpoint returned a non-JSON body (HTTP {response.status_code})."
            ) from exc

        if response.is_error:
            # An error body is still JSON; the caller treats it as a missing reply.
            LOGGER.warning(
                "chat.request.http_error",
                extra={
                    "event": "chat.request.http_error",
                    "status_code": response.status_code,
                },
            )
        return payload

    async def generate(self, request: CompletionRequest) -> Any:
        """POST ``request`` and return the decoded JSON response.

        Raises:
            TransportError: on network failures, timeouts, or non-JSON bodies,
                once all retries are exhausted.
        """
        body = request.to_payload()
        LOGGER.info(
            "chat.request.start",
            extra={
                "event": "chat.request.start",
                "model": self.model,
                "turns": len(request.turns),
            },
        )
        for attempt in range(self.retries + 1):
            try:
                return await self._post_once(body)
            except TransportError as exc:
                LOGGER.warning(
                    "chat.request.retry",
                    extra={
                        "event": "chat.request.retry",
                        "attempt": attempt + 1,
                        "error": str(exc),
                    },
                )
                if attempt >= self.retries:
                    raise
                await asyncio.sleep(self.retry_backoff_seconds * (attempt + 1))
        raise TransportError("No request attempts were made.")
