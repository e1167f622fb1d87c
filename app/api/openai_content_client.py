"""OpenAI / Azure OpenAI chat client for post and review-reply generation."""
import asyncio
import logging
import time
from typing import Optional

from openai import AsyncAzureOpenAI, AsyncOpenAI, OpenAIError

from app.config import Settings
from app.metrics import (
    OPENAI_API_CALLS_TOTAL,
    OPENAI_API_CALL_DURATION_SECONDS,
)

logger = logging.getLogger(__name__)


class OpenAIContentClient:
    """Async chat-completions client with request spacing.

    Consecutive requests are spaced at least min_request_interval seconds
    apart. The SDK itself retries once on 429 and connection errors.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        provider: str = "OpenAI",
        preview: str = "",
        min_request_interval: float = 1.0,
    ):
        self.client = client
        self.model = model
        self.provider = provider
        self.preview = preview
        self.min_request_interval = min_request_interval
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["OpenAIContentClient"]:
        """Build a client for the configured provider, or None when nothing is configured."""
        if settings.azure_openai_configured:
            client = AsyncAzureOpenAI(
                api_key=settings.azure_openai_key,
                azure_endpoint=settings.azure_openai_endpoint,
                api_version=settings.azure_openai_api_version,
                timeout=settings.content_request_timeout_seconds,
                max_retries=1,
            )
            logger.info(
                f"[OpenAIContentClient] Using Azure OpenAI deployment "
                f"'{settings.azure_openai_deployment}' "
                f"(key: {settings.azure_openai_key[:8]}...)"
            )
            return cls(
                client,
                model=settings.azure_openai_deployment,
                provider="Azure OpenAI",
                preview=(
                    f"Endpoint: {settings.azure_openai_endpoint}, "
                    f"Deployment: {settings.azure_openai_deployment}"
                ),
                min_request_interval=settings.content_min_request_interval_seconds,
            )

        if settings.openai_api_key:
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.content_request_timeout_seconds,
                max_retries=1,
            )
            logger.info(f"[OpenAIContentClient] Using OpenAI model '{settings.openai_model}'")
            return cls(
                client,
                model=settings.openai_model,
                provider="OpenAI",
                preview=f"Model: {settings.openai_model}",
                min_request_interval=settings.content_min_request_interval_seconds,
            )

        logger.warning(
            "[OpenAIContentClient] No OpenAI configuration found, template content will be used"
        )
        return None

    async def close(self):
        """Close the OpenAI client."""
        await self.client.close()

    async def _wait_for_slot(self) -> None:
        async with self._lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.min_request_interval:
                wait = self.min_request_interval - elapsed
                logger.debug(f"[OpenAIContentClient] Spacing requests, waiting {wait:.2f}s")
                await asyncio.sleep(wait)
            self._last_request_time = time.monotonic()

    async def complete(
        self,
        endpoint: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 120,
        temperature: float = 0.7,
    ) -> str:
        """Run one chat completion.

        Args:
            endpoint: Logical name used as the metrics label
            system_prompt: System message
            user_prompt: User message
            max_tokens: Completion token limit
            temperature: Sampling temperature

        Returns:
            Stripped completion text, or "" on error.
        """
        await self._wait_for_slot()

        start_time = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            )

            duration = time.perf_counter() - start_time
            OPENAI_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(duration)
            OPENAI_API_CALLS_TOTAL.labels(endpoint=endpoint, status="success").inc()

            text = (response.choices[0].message.content or "").strip() if response.choices else ""
            tokens = response.usage.total_tokens if response.usage else "?"
            logger.info(
                f"[OpenAIContentClient] {endpoint} complete in {duration:.1f}s, tokens: {tokens}"
            )
            return text

        except OpenAIError as e:
            duration = time.perf_counter() - start_time
            OPENAI_API_CALL_DURATION_SECONDS.labels(endpoint=endpoint).observe(duration)
            OPENAI_API_CALLS_TOTAL.labels(endpoint=endpoint, status="error").inc()
            logger.error(f"[OpenAIContentClient] {endpoint} failed: {e}")
            return ""
