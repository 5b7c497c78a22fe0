"""InvoiceLeaf Slack — Document Event Handlers.

Handles document.created, document.processed and document.updated.
All three share one pipeline:
  1. Skip when the notification kind is disabled
  2. Fetch the document (failure → success=False)
  3. Apply the filters (rejection → skipped with the filter reason)
  4. Best-effort company lookup
  5. Build and deliver the message
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from invoiceleaf_slack.config import NotificationKind
from invoiceleaf_slack.filters import is_notification_enabled, should_notify
from invoiceleaf_slack.handlers.base import (
    REASON_DISABLED,
    HandlerContext,
    deliver,
    fetch_company,
)
from invoiceleaf_slack.models import (
    Company,
    Document,
    DocumentEvent,
    DocumentNotificationResult,
    SlackMessage,
)
from invoiceleaf_slack.notifier.messages import (
    build_document_created_message,
    build_document_processed_message,
    build_document_updated_message,
)
from invoiceleaf_slack.utils.logger import get_logger

logger = get_logger(__name__)

MessageBuilder = Callable[
    [Document, Optional[Company], str, str, Optional[datetime]], SlackMessage
]


async def _handle_document_event(
    event: DocumentEvent,
    ctx: HandlerContext,
    kind: str,
    build: MessageBuilder,
    label: str,
) -> DocumentNotificationResult:
    """Run the shared document notification pipeline.

    Args:
        event: Inbound document event.
        ctx: Handler context.
        kind: NotificationKind toggle guarding this event.
        build: Message assembly function for this event.
        label: Short event name for log lines.

    Returns:
        DocumentNotificationResult describing the outcome.
    """
    if not is_notification_enabled(kind, ctx.config):
        logger.debug("Document %s notifications disabled (%s)", label, event.document_id)
        return DocumentNotificationResult(success=True, skipped=True, reason=REASON_DISABLED)

    try:
        document = await ctx.data.get_document(event.document_id)
    except Exception as e:
        logger.error("Failed to fetch document %s: %s", event.document_id, e)
        return DocumentNotificationResult(
            success=False, error=f"Failed to fetch document: {e}",
        )

    decision = should_notify(document, ctx.config)
    if not decision.should_notify:
        logger.debug("Document %s filtered out: %s", document.id, decision.reason)
        return DocumentNotificationResult(
            success=True,
            skipped=True,
            reason=decision.reason,
            document_id=document.id,
            vendor_name=document.vendor_name,
            amount=document.total,
        )

    company = await fetch_company(ctx, document.company_id)
    message = build(document, company, event.space_id, ctx.app_base_url, ctx.clock())

    try:
        await deliver(ctx, message)
    except Exception as e:
        logger.error("Failed to send Slack notification for document %s: %s", document.id, e)
        return DocumentNotificationResult(
            success=False,
            error=f"Failed to send Slack notification: {e}",
            document_id=document.id,
        )

    logger.info(
        "Document %s notification sent: %s (%s %s)",
        label, document.id, document.vendor_name, document.total,
    )
    return DocumentNotificationResult(
        success=True,
        document_id=document.id,
        vendor_name=document.vendor_name,
        amount=document.total,
    )


async def handle_document_created(
    event: DocumentEvent, ctx: HandlerContext
) -> DocumentNotificationResult:
    """Notify about a newly uploaded document."""
    return await _handle_document_event(
        event, ctx, NotificationKind.DOCUMENT_CREATED,
        build_document_created_message, "created",
    )


async def handle_document_processed(
    event: DocumentEvent, ctx: HandlerContext
) -> DocumentNotificationResult:
    """Notify about a document whose extraction completed."""
    return await _handle_document_event(
        event, ctx, NotificationKind.DOCUMENT_PROCESSED,
        build_document_processed_message, "processed",
    )


async def handle_document_updated(
    event: DocumentEvent, ctx: HandlerContext
) -> DocumentNotificationResult:
    """Notify about a modified document."""
    return await _handle_document_event(
        event, ctx, NotificationKind.DOCUMENT_UPDATED,
        build_document_updated_message, "updated",
    )
