"""InvoiceLeaf Slack — Webhook Client.

Posts SlackMessage payloads to an incoming-webhook URL with httpx:
  - URL validated at construction, before any network call
  - Per-attempt timeout enforced by cancellation
  - Success only on a 2xx response whose body is literally "ok"
  - Exponential backoff retry on 5xx, 429, timeout and transport errors
  - Other 4xx responses raised on the first attempt
"""

from __future__ import annotations

import asyncio
import re
from typing import Optional

import httpx

from invoiceleaf_slack.models import SlackMessage
from invoiceleaf_slack.utils.logger import get_logger
from invoiceleaf_slack.utils.resilience import RetryPolicy, Sleep, call_with_retry

logger = get_logger(__name__)

WEBHOOK_URL_PATTERN = re.compile(
    r"^https://hooks\.slack\.com/services/T[A-Z0-9]+/B[A-Z0-9]+/[a-zA-Z0-9]+$"
)

_TIMEOUT_BODY = "Timeout"


# ═══════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════


class SlackWebhookValidationError(ValueError):
    """Raised when a webhook URL is missing or malformed."""


class SlackApiError(Exception):
    """Raised when Slack rejects a message or cannot be reached.

    Attributes:
        status_code: HTTP status, or 0 for timeouts and transport failures.
        response_body: Raw response text ("Timeout" for timeouts).
    """

    def __init__(self, status_code: int, response_body: str) -> None:
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(f"Slack API error: {status_code} - {response_body}")

    @property
    def is_retryable(self) -> bool:
        """Worth another attempt unless Slack answered with a 4xx other than 429.

        Client errors point at the webhook or payload, so repeating the
        request cannot help. Everything else is retried: network failures,
        429, 5xx, redirects and 2xx responses with an error body.
        """
        return not (400 <= self.status_code < 500 and self.status_code != 429)


def validate_webhook_url(url: Optional[str]) -> str:
    """Check a webhook URL against the Slack incoming-webhook shape.

    Args:
        url: Candidate URL.

    Returns:
        The URL, stripped of surrounding whitespace.

    Raises:
        SlackWebhookValidationError: If the URL is empty or malformed.
    """
    if not url or not url.strip():
        raise SlackWebhookValidationError("Webhook URL is required")
    url = url.strip()
    if not WEBHOOK_URL_PATTERN.match(url):
        raise SlackWebhookValidationError(
            "Invalid Slack webhook URL format. "
            "Expected: https://hooks.slack.com/services/T.../B.../..."
        )
    return url


def _is_retryable(error: Exception) -> bool:
    return isinstance(error, SlackApiError) and error.is_retryable


# ═══════════════════════════════════════════════════════════
# Client
# ═══════════════════════════════════════════════════════════


class SlackWebhookClient:
    """Async client for one Slack incoming webhook.

    An httpx.AsyncClient may be injected; it is then owned by the caller
    and never closed here. Without one, the client opens a connection
    pool on ``async with`` entry, or a short-lived one per message.

    Attributes:
        webhook_url: Validated target URL.
        policy: Timeout and retry settings.
    """

    def __init__(
        self,
        webhook_url: str,
        policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        """Initialize the client.

        Args:
            webhook_url: Slack incoming-webhook URL.
            policy: Timeout and retry settings. Defaults to RetryPolicy().
            http_client: Externally owned httpx client.
            sleep: Awaitable sleep used between retries.

        Raises:
            SlackWebhookValidationError: If webhook_url is invalid.
        """
        self.webhook_url = validate_webhook_url(webhook_url)
        self.policy = policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep
        self._client = http_client
        self._owns_client = False

    async def send_message(self, message: SlackMessage) -> None:
        """Deliver a message, retrying transient failures.

        Args:
            message: The message to post.

        Raises:
            SlackApiError: When Slack rejects the message with a client
                error, or the last error once retries are exhausted.
        """
        payload = message.to_payload()
        await call_with_retry(
            lambda: self._post_once(payload),
            self.policy,
            is_retryable=_is_retryable,
            sleep=self._sleep,
            label="Slack webhook delivery",
        )
        logger.debug("Slack message delivered: %s", message.text)

    async def _post_once(self, payload: dict) -> None:
        """Single POST attempt bounded by the policy timeout.

        Raises:
            SlackApiError: On any outcome other than 2xx + "ok".
        """
        if self._client is not None:
            await self._post_with(self._client, payload)
            return
        async with httpx.AsyncClient(timeout=self.policy.timeout_seconds) as client:
            await self._post_with(client, payload)

    async def _post_with(self, client: httpx.AsyncClient, payload: dict) -> None:
        try:
            response = await asyncio.wait_for(
                client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=self.policy.timeout_seconds,
                ),
                timeout=self.policy.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise SlackApiError(0, _TIMEOUT_BODY) from None
        except httpx.HTTPError as e:
            logger.debug("Transport error posting to Slack: %s", e)
            raise SlackApiError(0, "") from e

        body = response.text
        if not response.is_success or body != "ok":
            raise SlackApiError(response.status_code, body)

    async def close(self) -> None:
        """Close the connection pool opened by ``async with``."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False
            logger.debug("Slack HTTP client closed")

    async def __aenter__(self) -> "SlackWebhookClient":
        """Async context manager entry.

        Returns:
            The SlackWebhookClient instance.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.policy.timeout_seconds)
            self._owns_client = True
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit. Closes an owned HTTP client."""
        await self.close()
