"""
Educational content generation.

The recommendation engine depends only on the ``ContentGenerator`` protocol:
``async generate(prompt) -> str``. Implementations never raise for
operational failures; they log and return a fallback string instead, so the
engine's control flow stays linear.

Implementations:
  ``ChatCompletionContentGenerator``  - calls an OpenAI-compatible
      ``/chat/completions`` endpoint over httpx with bounded retry.
  ``StaticContentGenerator``          - returns fixed text; used when no
      API key is configured, when content generation is disabled, and in tests.

Retry policy (``ChatCompletionContentGenerator``):
  - Up to ``max_retries`` attempts.
  - Retry on timeouts, transport errors, HTTP 429 and HTTP 5xx.
  - Backoff between attempts: ``backoff_base_s * 2 ** attempt`` (1s, 2s, ...).
  - The whole call, retries included, is bounded by ``total_timeout_s``.
  - Any other HTTP error or malformed response degrades to the fallback.
  - ``asyncio.CancelledError`` is never swallowed.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional, Protocol

import httpx

from spendsense.config import ContentConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a financial education expert who writes clear, empowering, "
    "jargon-free content. Use supportive language and never shame or judge. "
    "Focus on education and practical next steps, not product sales. "
    "Keep content concise."
)

NOT_CONFIGURED_CONTENT = (
    "Personalized educational content is not configured yet. In the meantime, "
    "consider the action items below as a starting point: small, steady steps "
    "can help you make real progress."
)

UNAVAILABLE_CONTENT = (
    "Personalized educational content is unavailable right now. Consider the "
    "action items below as a starting point, and check back later for more detail."
)

Sleep = Callable[[float], Awaitable[None]]


class ContentGenerator(Protocol):
    """Anything that turns a prompt into educational prose without raising."""

    async def generate(self, prompt: str) -> str:
        ...


class StaticContentGenerator:
    """Returns the same text for every prompt."""

    def __init__(self, text: str = NOT_CONFIGURED_CONTENT) -> None:
        self.text = text

    async def generate(self, prompt: str) -> str:
        return self.text


class _RetryableError(Exception):
    """Internal marker for a failure worth another attempt."""


class ChatCompletionContentGenerator:
    """Content generator backed by an OpenAI-compatible chat completions API.

    Args:
        api_key: Bearer token for the API.
        config: Model, sampling, retry and timeout settings.
        client: Optional shared ``httpx.AsyncClient``. When omitted, a client
            is created and closed for each ``generate()`` call.
        sleep: Awaitable used for backoff; injectable for tests.
    """

    def __init__(
        self,
        api_key: str,
        config: ContentConfig,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._api_key = api_key
        self.config = config
        self._client = client
        self._sleep = sleep

    async def generate(self, prompt: str) -> str:
        """Generate content for ``prompt``; returns fallback text on failure."""
        try:
            return await asyncio.wait_for(
                self._generate_with_retry(prompt),
                timeout=self.config.total_timeout_s,
            )
        except TimeoutError:
            logger.warning(
                "Content generation exceeded %.1fs; using fallback.",
                self.config.total_timeout_s,
            )
        except Exception as exc:
            logger.error("Content generation failed: %s; using fallback.", exc)
        return UNAVAILABLE_CONTENT

    async def _generate_with_retry(self, prompt: str) -> str:
        own_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=self.config.request_timeout_s)
        try:
            for attempt in range(self.config.max_retries):
                try:
                    return await self._request(client, prompt)
                except _RetryableError as exc:
                    if attempt == self.config.max_retries - 1:
                        logger.error(
                            "Content API still failing after %d attempts: %s",
                            self.config.max_retries, exc,
                        )
                        break
                    wait = self.config.backoff_base_s * 2 ** attempt
                    logger.warning(
                        "Content API %s, retrying in %.1fs (%d/%d)",
                        exc, wait, attempt + 1, self.config.max_retries,
                    )
                    await self._sleep(wait)
            return UNAVAILABLE_CONTENT
        finally:
            if own_client:
                await client.aclose()

    async def _request(self, client: httpx.AsyncClient, prompt: str) -> str:
        """Make one API call.

        Raises:
            _RetryableError: On timeout, transport error, 429 or 5xx.
            httpx.HTTPStatusError: On any other non-2xx status.
            ValueError: If the response body is not a usable completion.
        """
        try:
            resp = await client.post(
                f"{self.config.api_base_url.rstrip('/')}/chat/completions",
                json={
                    "model": self.config.model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": self.config.temperature,
                    "max_tokens": self.config.max_tokens,
                },
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self.config.request_timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise _RetryableError(f"timeout ({type(exc).__name__})") from exc
        except httpx.TransportError as exc:
            raise _RetryableError(f"transport error ({exc})") from exc

        if resp.status_code == 429 or resp.status_code >= 500:
            raise _RetryableError(f"HTTP {resp.status_code}")
        resp.raise_for_status()

        body = resp.json()
        try:
            text = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"Malformed completion response: {exc!r}") from exc
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Completion response contained no text.")
        return text.strip()


def build_content_generator(
    config: ContentConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> ContentGenerator:
    """Pick a content generator for ``config``.

    Returns the static generator when generation is disabled or the API key
    environment variable (``config.api_key_env``) is unset.
    """
    if not config.enabled:
        logger.info("Content generation disabled; using static content.")
        return StaticContentGenerator()

    api_key = os.environ.get(config.api_key_env, "").strip()
    if not api_key:
        logger.warning(
            "%s is not set; using static educational content.", config.api_key_env
        )
        return StaticContentGenerator()

    return ChatCompletionContentGenerator(api_key=api_key, config=config, client=client)
