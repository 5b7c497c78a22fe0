"""InvoiceLeaf Slack — Handler Context & Shared Steps.

Every handler receives a HandlerContext carrying the installation
config, the data client, the delivery policy and the clock. The shared
pipeline steps live here:
  - fetch_company: best-effort enrichment, never fails the handler
  - deliver: apply installation overrides and post the message
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from invoiceleaf_slack.config import DEFAULT_APP_BASE_URL, IntegrationConfig
from invoiceleaf_slack.data.client import DataClient
from invoiceleaf_slack.models import Company, SlackMessage
from invoiceleaf_slack.notifier.slack_client import SlackWebhookClient
from invoiceleaf_slack.utils.logger import get_logger
from invoiceleaf_slack.utils.resilience import RetryPolicy

logger = get_logger(__name__)

ClientFactory = Callable[[str, RetryPolicy], SlackWebhookClient]

# Skip reasons reported back to the host
REASON_DISABLED = "notification_type_disabled"
REASON_NO_ACTIVITY = "no_activity"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_client_factory(webhook_url: str, policy: RetryPolicy) -> SlackWebhookClient:
    """Build a SlackWebhookClient that manages its own HTTP connection."""
    return SlackWebhookClient(webhook_url, policy=policy)


@dataclass
class HandlerContext:
    """Everything a handler needs for one invocation.

    Attributes:
        config: Settings of the installation the event belongs to.
        data: Host data access.
        retry_policy: Timeout and retry settings for delivery.
        app_base_url: Web app base URL for deep links.
        clock: Returns the current time (timezone-aware).
        client_factory: Builds the webhook client from (url, policy).
    """

    config: IntegrationConfig
    data: DataClient
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    app_base_url: str = DEFAULT_APP_BASE_URL
    clock: Callable[[], datetime] = _utc_now
    client_factory: ClientFactory = default_client_factory


async def fetch_company(ctx: HandlerContext, company_id: Optional[str]) -> Optional[Company]:
    """Look up the company a document is assigned to.

    Failures are logged and treated as "no company".

    Args:
        ctx: Handler context.
        company_id: Company identifier, possibly None.

    Returns:
        The Company, or None when unassigned, unknown or unavailable.
    """
    if not company_id:
        return None
    try:
        companies = await ctx.data.list_companies([company_id])
    except Exception as e:
        logger.warning("Failed to fetch company %s: %s", company_id, e)
        return None
    return companies[0] if companies else None


def apply_installation_overrides(message: SlackMessage, config: IntegrationConfig) -> SlackMessage:
    """Copy channel, username and icon overrides onto the message."""
    message.channel = config.channel_override
    message.username = config.username
    message.icon_emoji = config.icon_emoji
    return message


async def deliver(ctx: HandlerContext, message: SlackMessage) -> None:
    """Post a message to the installation's webhook.

    Args:
        ctx: Handler context.
        message: Assembled message.

    Raises:
        SlackWebhookValidationError: If the configured URL is malformed.
        SlackApiError: If delivery fails after retries.
    """
    apply_installation_overrides(message, ctx.config)
    client = ctx.client_factory(ctx.config.webhook_url, ctx.retry_policy)
    async with client:
        await client.send_message(message)
