"""InvoiceLeaf Slack — Event Handlers.

One handler per inbound event. Each returns a HandlerResult and never
raises for expected failures. dispatch_event routes a raw host payload
to its handler.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping

from invoiceleaf_slack.handlers.base import HandlerContext
from invoiceleaf_slack.handlers.daily_summary import handle_daily_summary
from invoiceleaf_slack.handlers.documents import (
    handle_document_created,
    handle_document_processed,
    handle_document_updated,
)
from invoiceleaf_slack.handlers.exports import handle_export_completed
from invoiceleaf_slack.handlers.test_connection import send_test_message
from invoiceleaf_slack.models import (
    DailySummaryEvent,
    DocumentEvent,
    ExportCompletedEvent,
    HandlerResult,
    TestConnectionEvent,
)
from invoiceleaf_slack.utils.logger import get_logger

logger = get_logger(__name__)

Handler = Callable[[Any, HandlerContext], Awaitable[HandlerResult]]

# Event name → (payload type, handler)
EVENT_HANDLERS: Mapping[str, tuple[type, Handler]] = {
    "document.created": (DocumentEvent, handle_document_created),
    "document.processed": (DocumentEvent, handle_document_processed),
    "document.updated": (DocumentEvent, handle_document_updated),
    "export.completed": (ExportCompletedEvent, handle_export_completed),
    "schedule.daily_summary": (DailySummaryEvent, handle_daily_summary),
    "action.test_connection": (TestConnectionEvent, send_test_message),
}


async def dispatch_event(
    name: str, payload: Mapping[str, Any], ctx: HandlerContext
) -> HandlerResult:
    """Parse a host payload and run the matching handler.

    Args:
        name: Event name, e.g. "document.processed".
        payload: camelCase event payload.
        ctx: Handler context.

    Returns:
        The handler's result, or success=False for an unknown event or
        an invalid payload.
    """
    route = EVENT_HANDLERS.get(name)
    if route is None:
        logger.error("No handler registered for event %s", name)
        return HandlerResult(success=False, error=f"unknown_event:{name}")

    event_type, handler = route
    try:
        event = event_type.from_api_dict(dict(payload))
    except (ValueError, TypeError) as e:
        logger.error("Invalid %s payload: %s", name, e)
        return HandlerResult(success=False, error=str(e))

    logger.debug("Dispatching %s", name)
    return await handler(event, ctx)


__all__ = [
    "EVENT_HANDLERS",
    "HandlerContext",
    "dispatch_event",
    "handle_daily_summary",
    "handle_document_created",
    "handle_document_processed",
    "handle_document_updated",
    "handle_export_completed",
    "send_test_message",
]
