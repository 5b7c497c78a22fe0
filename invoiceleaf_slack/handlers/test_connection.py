"""InvoiceLeaf Slack — Test Connection Action.

User-triggered "Send Test Message". Delivery errors are translated into
guidance the user can act on.
"""

from __future__ import annotations

from invoiceleaf_slack.handlers.base import HandlerContext, deliver
from invoiceleaf_slack.models import TestConnectionEvent, TestConnectionResult
from invoiceleaf_slack.notifier.messages import build_test_connection_message
from invoiceleaf_slack.notifier.slack_client import SlackApiError, SlackWebhookValidationError
from invoiceleaf_slack.utils.logger import get_logger

logger = get_logger(__name__)

SUCCESS_MESSAGE = "Test message sent successfully! Check your Slack channel."
MISSING_URL_MESSAGE = (
    "Slack webhook URL is not configured. "
    "Please add your webhook URL in the integration settings."
)


def describe_api_error(error: SlackApiError) -> str:
    """Map a Slack API failure to a user-facing explanation."""
    if error.status_code == 404:
        return "Webhook URL not found. Please verify your Slack webhook URL is correct."
    if error.status_code == 403:
        return "Access denied. The webhook may have been revoked. Please create a new webhook."
    if error.response_body == "channel_not_found":
        return "Channel not found. Please verify the channel exists and the webhook has access."
    if error.response_body == "invalid_payload":
        return "Invalid message format. Please contact support."
    return "Failed to send message to Slack."


async def send_test_message(
    event: TestConnectionEvent, ctx: HandlerContext
) -> TestConnectionResult:
    """Send a test message to the configured webhook.

    Args:
        event: Action payload with the space and requesting user.
        ctx: Handler context.

    Returns:
        TestConnectionResult with a success message or user guidance.
    """
    logger.info("Sending test message to Slack (space=%s, user=%s)", event.space_id, event.user_id)

    if not ctx.config.webhook_url:
        logger.error("Webhook URL not configured")
        return TestConnectionResult(success=False, error=MISSING_URL_MESSAGE)

    message = build_test_connection_message(event.space_id, event.user_id, ctx.clock())

    try:
        await deliver(ctx, message)
    except SlackWebhookValidationError as e:
        logger.error("Invalid webhook URL: %s", e)
        return TestConnectionResult(success=False, error=f"Invalid webhook URL: {e}")
    except SlackApiError as e:
        logger.error("Slack API error: %d %s", e.status_code, e.response_body)
        return TestConnectionResult(success=False, error=describe_api_error(e))
    except Exception as e:
        logger.error("Unexpected error sending test message: %s", e)
        return TestConnectionResult(success=False, error=f"Failed to send test message: {e}")

    logger.info("Test message sent successfully (space=%s)", event.space_id)
    return TestConnectionResult(success=True, message=SUCCESS_MESSAGE)
