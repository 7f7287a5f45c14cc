from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Awaitable, Callable

import httpx

if TYPE_CHECKING:
    from chan_reader.config import Settings

TRANSIENT_HTTP_STATUS = {408, 425, 429, 500, 502, 503, 504}

_TRANSIENT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


@dataclass
class RetryableHttpError(Exception):
    status_code: int
    message: str
    retry_after_seconds: float | None = None


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 8.0

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RetryPolicy":
        return cls(
            max_attempts=settings.api_retry_max_attempts,
            base_delay_seconds=settings.api_retry_base_delay_seconds,
            max_delay_seconds=settings.api_retry_max_delay_seconds,
        )

    @property
    def attempts(self) -> int:
        return max(1, int(self.max_attempts))

    def backoff(self, attempt: int) -> float:
        base = max(0.0, float(self.base_delay_seconds))
        ceiling = max(base, float(self.max_delay_seconds))
        return min(ceiling, base * (2 ** (attempt - 1)))


def parse_retry_after(value: str | None) -> float | None:
    value = (value or "").strip()
    if not value:
        return None
    if value.isdigit():
        return float(value)
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0.0, (retry_at - datetime.now(timezone.utc)).total_seconds())


def should_retry_exception(exc: Exception) -> tuple[bool, float | None]:
    if isinstance(exc, RetryableHttpError):
        return True, exc.retry_after_seconds
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True, None
    return False, None


async def with_retry(
    *,
    operation: str,
    call: Callable[[], Awaitable[httpx.Response]],
    policy: RetryPolicy,
    logger: logging.Logger,
) -> httpx.Response:
    """Run ``call`` until it returns a non-transient response.

    Transient statuses and network failures are retried with exponential
    backoff (or the server's ``Retry-After``). Any other response is returned
    as-is; callers decide what a 4xx means for them.
    """
    attempts = policy.attempts

    for attempt in range(1, attempts + 1):
        try:
            response = await call()
            if response.status_code in TRANSIENT_HTTP_STATUS:
                raise RetryableHttpError(
                    status_code=response.status_code,
                    message=f"retryable HTTP status {response.status_code}",
                    retry_after_seconds=parse_retry_after(response.headers.get("Retry-After")),
                )
            return response
        except Exception as exc:
            retryable, retry_after = should_retry_exception(exc)
            if not retryable or attempt >= attempts:
                raise
            delay = retry_after if retry_after is not None else policy.backoff(attempt)
            logger.warning(
                "Retrying API request after transient failure",
                extra={
                    "event": "api_retry_scheduled",
                    "operation": operation,
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "delay_seconds": delay,
                    "error": repr(exc),
                },
            )
            await asyncio.sleep(delay)

    raise RuntimeError(f"Retry loop exhausted unexpectedly for operation '{operation}'")
