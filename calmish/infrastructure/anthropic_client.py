"""Resilient Anthropic Client - AsyncAnthropic plus retry policy for companion replies.

Invariants:
    - 429, 5xx, 529 and connection failures are retried up to max_retries
    - A server-sent Retry-After overrides the computed backoff
    - Timeouts and other 4xx fail on the first attempt
    - Every failure leaves as AnthropicAPIError; api_error_type names the cause

Design Decisions:
    - SDK retries disabled so attempts and delays are logged here
    - Backoff doubles per attempt, capped, with 25% jitter either way
"""

import asyncio
import logging
import random
from dataclasses import dataclass

import anthropic
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from calmish.core.errors import AnthropicAPIError, ErrorContext

logger = logging.getLogger(__name__)

# 529 has no exported exception class in every SDK release
_OVERLOADED_STATUS = 529


@dataclass(frozen=True)
class _Failure:
    error_type: str
    retryable: bool
    retry_after_ms: int | None = None


def _retry_after_ms(error: APIStatusError) -> int | None:
    value = error.response.headers.get("retry-after", "")
    return int(value) * 1000 if value.isdigit() else None


def _classify(error: APIError) -> _Failure:
    # APITimeoutError subclasses APIConnectionError; test it first
    if isinstance(error, APITimeoutError):
        return _Failure("timeout", retryable=False)
    if isinstance(error, RateLimitError):
        return _Failure("rate_limit", True, _retry_after_ms(error))
    if isinstance(error, (APIConnectionError, InternalServerError)):
        return _Failure("connection_error", retryable=True)
    if isinstance(error, APIStatusError) and error.status_code == _OVERLOADED_STATUS:
        return _Failure("overloaded", retryable=True)
    return _Failure("client_error", retryable=False)


class ResilientAnthropicClient:
    """create_message() with backoff; the rest of the SDK is not exposed."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 60,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout_seconds, max_retries=0,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list,
        temperature: float = 0.7,
        context: ErrorContext | None = None,
    ):
        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(
                    model=model,
                    max_tokens=max_tokens,
                    system=system,
                    messages=messages,
                    temperature=temperature,
                )
            except APIError as e:
                failure = _classify(e)
                if not failure.retryable or attempt >= self.max_retries:
                    logger.error(
                        f"Anthropic call failed ({failure.error_type}): {e}",
                        extra={"attempt": attempt + 1, "error_code": failure.error_type},
                    )
                    raise AnthropicAPIError(
                        str(e), failure.error_type,
                        retry_after_ms=failure.retry_after_ms, context=context,
                    )
                delay = failure.retry_after_ms or self._backoff(attempt)
                logger.warning(
                    f"Anthropic {failure.error_type}, retrying in {delay}ms",
                    extra={"attempt": attempt + 1},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue

            usage = response.usage
            logger.info(
                "Companion reply generated",
                extra={
                    "attempt": attempt + 1,
                    "input_tokens": usage.input_tokens,
                    "output_tokens": usage.output_tokens,
                },
            )
            return response

    def _backoff(self, attempt: int) -> int:
        delay = min(self.max_delay_ms, self.base_delay_ms * 2 ** attempt)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    async def close(self) -> None:
        await self.client.close()
