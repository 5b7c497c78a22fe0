"""InvoiceLeaf Slack — Resilience Utilities.

Retry policy and an async retry loop with exponential backoff for the
webhook delivery path.

Usage:
    policy = RetryPolicy(retries=2, retry_delay_ms=1000)
    result = await call_with_retry(
        send_once, policy, is_retryable=lambda e: True,
    )
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from invoiceleaf_slack.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Timeout and retry settings for one delivery.

    Attributes:
        timeout_ms: Per-attempt timeout in milliseconds.
        retries: Additional attempts after the first one.
        retry_delay_ms: Base backoff delay in milliseconds.
    """

    timeout_ms: int = 10_000
    retries: int = 2
    retry_delay_ms: int = 1_000

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if self.retry_delay_ms < 0:
            raise ValueError(f"retry_delay_ms must be >= 0, got {self.retry_delay_ms}")

    @property
    def timeout_seconds(self) -> float:
        """Per-attempt timeout in seconds."""
        return self.timeout_ms / 1000

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows a failed attempt.

        Args:
            attempt: Zero-based index of the attempt that just failed.

        Returns:
            Delay in seconds: retry_delay_ms * 2^attempt, converted.
        """
        return self.retry_delay_ms * (2 ** attempt) / 1000

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RetryPolicy":
        """Build a policy from a settings section, keeping defaults for gaps.

        Args:
            data: Mapping with optional timeout_ms, retries, retry_delay_ms.

        Returns:
            A validated RetryPolicy.
        """
        defaults = cls()
        return cls(
            timeout_ms=int(data.get("timeout_ms", defaults.timeout_ms)),
            retries=int(data.get("retries", defaults.retries)),
            retry_delay_ms=int(data.get("retry_delay_ms", defaults.retry_delay_ms)),
        )


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    is_retryable: Callable[[Exception], bool],
    sleep: Optional[Sleep] = None,
    label: str = "operation",
) -> T:
    """Run an async operation, retrying transient failures with backoff.

    Attempts run strictly one after another. An error for which
    is_retryable returns False is re-raised immediately. Once the retry
    budget is spent the last error is raised.

    Args:
        operation: Zero-argument coroutine factory performing one attempt.
        policy: Retry budget and backoff base.
        is_retryable: Predicate deciding whether an error may be retried.
        sleep: Awaitable sleep used between attempts. Defaults to
            asyncio.sleep; tests pass a recorder.
        label: Name used in log lines.

    Returns:
        The result of the first successful attempt.

    Raises:
        Exception: The non-retryable error, or the last error observed.
    """
    sleep = sleep or asyncio.sleep
    last_error: Optional[Exception] = None
    total_attempts = policy.retries + 1

    for attempt in range(total_attempts):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            if not is_retryable(e):
                logger.debug("%s failed with non-retryable error: %s", label, e)
                raise

            if attempt < policy.retries:
                delay = policy.delay_for(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                    label, attempt + 1, total_attempts, delay, e,
                )
                await sleep(delay)

    logger.warning(
        "Retry exhausted for %s after %d attempts: %s",
        label, total_attempts, last_error,
    )
    raise last_error  # type: ignore[misc]
