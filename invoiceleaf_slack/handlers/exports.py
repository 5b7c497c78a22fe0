"""InvoiceLeaf Slack — Export Completed Handler."""

from __future__ import annotations

from invoiceleaf_slack.config import NotificationKind
from invoiceleaf_slack.filters import is_notification_enabled
from invoiceleaf_slack.handlers.base import REASON_DISABLED, HandlerContext, deliver
from invoiceleaf_slack.models import (
    Export,
    ExportCompletedEvent,
    ExportCompletedResult,
    ExportStatus,
)
from invoiceleaf_slack.notifier.messages import build_export_completed_message
from invoiceleaf_slack.utils.logger import get_logger

logger = get_logger(__name__)


def _export_from_event(event: ExportCompletedEvent, completed_at: str) -> Export:
    """Minimal export record built from the event alone."""
    return Export(
        id=event.export_id,
        space_id=event.space_id,
        format=event.format or "unknown",
        status=ExportStatus.COMPLETED,
        document_count=event.document_count,
        created_at=completed_at,
        completed_at=completed_at,
    )


async def handle_export_completed(
    event: ExportCompletedEvent, ctx: HandlerContext
) -> ExportCompletedResult:
    """Notify that an export is ready for download.

    When the export details cannot be fetched the message is built from
    the event fields, without a download link.

    Args:
        event: Inbound export.completed event.
        ctx: Handler context.

    Returns:
        ExportCompletedResult describing the outcome.
    """
    if not is_notification_enabled(NotificationKind.EXPORT_COMPLETED, ctx.config):
        logger.debug("Export completed notifications disabled (%s)", event.export_id)
        return ExportCompletedResult(success=True, skipped=True, reason=REASON_DISABLED)

    now = ctx.clock()
    try:
        export = await ctx.data.get_export(event.export_id)
    except Exception as e:
        logger.warning(
            "Could not fetch export %s, using event data: %s", event.export_id, e,
        )
        export = _export_from_event(event, now.isoformat())

    message = build_export_completed_message(export, event.space_id, ctx.app_base_url, now)

    try:
        await deliver(ctx, message)
    except Exception as e:
        logger.error("Failed to send Slack notification for export %s: %s", export.id, e)
        return ExportCompletedResult(
            success=False,
            error=f"Failed to send Slack notification: {e}",
            export_id=export.id,
        )

    logger.info(
        "Export completed notification sent: %s (%s, %d documents)",
        export.id, export.format, export.document_count,
    )
    return ExportCompletedResult(
        success=True,
        export_id=export.id,
        format=export.format,
        document_count=export.document_count,
    )
