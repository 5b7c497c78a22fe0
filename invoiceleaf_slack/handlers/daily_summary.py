"""InvoiceLeaf Slack — Daily Summary Handler.

Summarizes the documents processed during the previous calendar day
(yesterday 00:00 up to today 00:00, in the context clock's timezone).
"""

from __future__ import annotations

from datetime import datetime, timedelta

from invoiceleaf_slack.aggregator import calculate_daily_stats
from invoiceleaf_slack.config import NotificationKind
from invoiceleaf_slack.data.client import DEFAULT_LIST_LIMIT
from invoiceleaf_slack.filters import is_notification_enabled
from invoiceleaf_slack.handlers.base import (
    REASON_DISABLED,
    REASON_NO_ACTIVITY,
    HandlerContext,
    deliver,
)
from invoiceleaf_slack.models import DailySummaryEvent, DailySummaryResult
from invoiceleaf_slack.notifier.messages import build_daily_summary_message
from invoiceleaf_slack.utils.logger import get_logger

logger = get_logger(__name__)


def summary_window(now: datetime) -> tuple[datetime, datetime]:
    """Return (yesterday 00:00, today 00:00) relative to now."""
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return today - timedelta(days=1), today


async def handle_daily_summary(
    event: DailySummaryEvent, ctx: HandlerContext
) -> DailySummaryResult:
    """Send the daily activity summary.

    Args:
        event: Scheduled daily tick.
        ctx: Handler context.

    Returns:
        DailySummaryResult, skipped with "no_activity" on an empty day.
    """
    if not is_notification_enabled(NotificationKind.DAILY_SUMMARY, ctx.config):
        logger.debug("Daily summary disabled for space %s", event.space_id)
        return DailySummaryResult(success=True, skipped=True, reason=REASON_DISABLED)

    start, end = summary_window(ctx.clock())
    logger.info(
        "Generating daily summary for space %s (%s → %s)",
        event.space_id, start.isoformat(), end.isoformat(),
    )

    try:
        documents = await ctx.data.list_documents(start, end, limit=DEFAULT_LIST_LIMIT)
    except Exception as e:
        logger.error("Failed to fetch documents for summary: %s", e)
        return DailySummaryResult(success=False, error=f"Failed to fetch documents: {e}")

    if not documents:
        logger.info("No documents processed yesterday, skipping summary (%s)", event.space_id)
        return DailySummaryResult(success=True, skipped=True, reason=REASON_NO_ACTIVITY)

    stats = calculate_daily_stats(documents)
    logger.info(
        "Daily summary: %d processed, %.2f %s, top vendor %s",
        stats.processed_count, stats.total_amount, stats.currency, stats.top_vendor,
    )

    message = build_daily_summary_message(stats, event.space_id, ctx.app_base_url)
    try:
        await deliver(ctx, message)
    except Exception as e:
        logger.error("Failed to send daily summary notification: %s", e)
        return DailySummaryResult(
            success=False, error=f"Failed to send Slack notification: {e}",
        )

    logger.info("Daily summary notification sent for space %s", event.space_id)
    return DailySummaryResult(success=True, stats=stats)
