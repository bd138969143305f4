"""Retry with exponential backoff for REST store requests.

Transparent to callers: wrap any async callable and it retries on transient
HTTP statuses. Socket-level failures are not retried here; they surface as
StoreConnectionError so the connection manager can reconnect.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Set

import httpx

from ..exceptions import (
    RemoteOperationError,
    StoreAuthError,
    StoreConnectionError,
    StoreRateLimitError,
)

logger = logging.getLogger(__name__)

# Status codes that trigger a retry
RETRYABLE_STATUS_CODES: Set[int] = {429, 500, 502, 503, 504}

# Status codes that should NOT be retried (auth failures)
AUTH_FAILURE_CODES: Set[int] = {401, 403}

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 0.5
DEFAULT_MAX_DELAY = 10.0


async def retry_with_backoff(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    **kwargs: Any,
) -> Any:
    """Execute an async function with retry and exponential backoff.

    Retries on:
      - HTTP 429, 500, 502, 503, 504

    Never retries:
      - HTTP 401, 403 (raises StoreAuthError immediately)
      - httpx.TransportError (raised as StoreConnectionError, or
        RemoteOperationError for timeouts)

    Uses full jitter: delay = random(0, min(max_delay, base_delay * 2^attempt)),
    or the Retry-After header on 429 when present.

    Returns:
        The result of fn(*args, **kwargs).
    """
    for attempt in range(max_retries + 1):
        try:
            return await fn(*args, **kwargs)

        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code

            if status in AUTH_FAILURE_CODES:
                raise StoreAuthError(
                    f"Authentication failed: HTTP {status}",
                    status_code=status,
                ) from exc

            if status in RETRYABLE_STATUS_CODES and attempt < max_retries:
                delay = _compute_delay(attempt, base_delay, max_delay, exc.response)
                logger.warning(
                    "Retryable HTTP %d (attempt %d/%d), waiting %.1fs",
                    status,
                    attempt + 1,
                    max_retries,
                    delay,
                )
                await asyncio.sleep(delay)
                continue

            if status == 429:
                raise StoreRateLimitError(
                    "Rate limited: HTTP 429",
                    retry_after=_parse_retry_after(exc.response),
                ) from exc
            raise RemoteOperationError(
                f"Store error: HTTP {status}",
                status_code=status,
                response_body=exc.response.text[:500],
            ) from exc

        except httpx.TimeoutException as exc:
            raise RemoteOperationError(
                f"Store request timed out: {type(exc).__name__}"
            ) from exc

        except httpx.TransportError as exc:
            raise StoreConnectionError(
                f"Store connection lost: {type(exc).__name__}: {exc}"
            ) from exc


def _compute_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    response: httpx.Response | None = None,
) -> float:
    """Compute retry delay with full jitter.

    On 429, prefers the Retry-After header value if present.
    """
    if response is not None:
        retry_after = _parse_retry_after(response)
        if retry_after is not None:
            return min(retry_after, max_delay)

    exp_delay = base_delay * (2**attempt)
    return random.uniform(0, min(exp_delay, max_delay))


def _parse_retry_after(response: httpx.Response) -> float | None:
    """Parse Retry-After header (seconds only, not HTTP-date)."""
    value = response.headers.get("Retry-After") or response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None
