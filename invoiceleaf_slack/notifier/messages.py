"""InvoiceLeaf Slack — Notification Messages.

One assembly function per notification kind. Each returns a
SlackMessage carrying:
  - a one-line fallback text for clients without Block Kit support
  - the block sequence: header, fields section, context lines, actions
  - a status attachment that colors the side bar

Clock-dependent parts (relative times, due-date warnings) take an
explicit ``now`` so output is reproducible.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from invoiceleaf_slack.config import DEFAULT_APP_BASE_URL
from invoiceleaf_slack.models import (
    Company,
    DailySummaryStats,
    Document,
    Export,
    SlackMessage,
)
from invoiceleaf_slack.notifier.blocks import (
    Block,
    actions,
    button,
    context,
    divider,
    field_pair,
    header,
    section,
    section_with_fields,
    status_attachment,
)
from invoiceleaf_slack.notifier.formatters import (
    days_until,
    escape_mrkdwn,
    format_currency,
    format_date,
    format_relative_time,
)

# ── Status labels shown in the Status field ──────────────
_STATUS_LABELS: dict[str, str] = {
    "UPLOADED": ":inbox_tray: Uploaded",
    "PROCESSING": ":hourglass_flowing_sand: Processing",
    "PROCESSED": ":white_check_mark: Processed",
    "PENDING_REVIEW": ":eyes: Pending Review",
    "APPROVED": ":heavy_check_mark: Approved",
    "EXPORTED": ":outbox_tray: Exported",
    "ERROR": ":x: Error",
}

DUE_SOON_DAYS = 7
TOP_CATEGORIES = 5


def format_status(status: str) -> str:
    """Emoji-decorated label for a document status (unknown: verbatim)."""
    return _STATUS_LABELS.get(status, status)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _document_url(base_url: str, space_id: str, document_id: str) -> str:
    return f"{base_url}/spaces/{space_id}/documents/{document_id}"


def _company_line(company: Optional[Company]) -> list[Block]:
    if company is None:
        return []
    return [context(f"Assigned to: *{escape_mrkdwn(company.name)}*")]


def due_date_warning(document: Document, now: Optional[datetime] = None) -> Optional[Block]:
    """Context block warning about an approaching due date.

    Shown only when the due date is between today and DUE_SOON_DAYS days
    ahead, inclusive. Past-due documents get no warning.

    Args:
        document: Document with an optional due_date.
        now: Reference time.

    Returns:
        The warning block, or None.
    """
    if not document.due_date:
        return None
    days = days_until(document.due_date, now)
    if days is None or days < 0 or days > DUE_SOON_DAYS:
        return None
    if days == 0:
        return context(":warning: *Due today!*")
    return context(f":warning: Due in {_plural(days, 'day')}")


# ═══════════════════════════════════════════════════════════
# Document Notifications
# ═══════════════════════════════════════════════════════════


def build_document_created_message(
    document: Document,
    company: Optional[Company],
    space_id: str,
    base_url: str = DEFAULT_APP_BASE_URL,
    now: Optional[datetime] = None,
) -> SlackMessage:
    """Message for a freshly uploaded document.

    Extraction usually has not run yet, so the vendor falls back to
    "Processing...".

    Args:
        document: The uploaded document.
        company: Assigned company, if it could be fetched.
        space_id: Workspace for the deep link.
        base_url: Web app base URL.
        now: Reference time for the relative upload time.

    Returns:
        The assembled SlackMessage.
    """
    vendor = escape_mrkdwn(document.vendor_name) or "Processing..."
    blocks: list[Block] = [
        header("New Invoice Uploaded"),
        section_with_fields([
            field_pair("Vendor", vendor),
            field_pair("Status", format_status(document.status)),
        ]),
    ]
    blocks.extend(_company_line(company))
    blocks.append(context(f"Uploaded {format_relative_time(document.created_at, now)}"))
    blocks.append(actions(
        button("View Document", "view_document",
               url=_document_url(base_url, space_id, document.id)),
    ))

    suffix = f" from {document.vendor_name}" if document.vendor_name else ""
    return SlackMessage(
        text=f"New invoice uploaded{suffix}",
        blocks=blocks,
        attachments=[status_attachment("info")],
    )


def build_document_processed_message(
    document: Document,
    company: Optional[Company],
    space_id: str,
    base_url: str = DEFAULT_APP_BASE_URL,
    now: Optional[datetime] = None,
) -> SlackMessage:
    """Message for a document whose extraction completed.

    Shows vendor, amount, invoice number and date; adds the net/VAT split
    when both parts are known, the assigned company, the category, and a
    due-date warning when payment is due within a week.

    Args:
        document: The processed document.
        company: Assigned company, if it could be fetched.
        space_id: Workspace for the deep link.
        base_url: Web app base URL.
        now: Reference time for the due-date warning.

    Returns:
        The assembled SlackMessage.
    """
    amount = format_currency(document.total, document.currency)
    blocks: list[Block] = [
        header("Invoice Processed"),
        section_with_fields([
            field_pair("Vendor", escape_mrkdwn(document.vendor_name) or "Unknown"),
            field_pair("Amount", amount),
            field_pair("Invoice #", escape_mrkdwn(document.document_number) or "N/A"),
            field_pair("Date", format_date(document.document_date)),
        ]),
    ]

    if document.net_total is not None and document.vat_total is not None:
        blocks.append(context(
            f"Net: {format_currency(document.net_total, document.currency)} | "
            f"VAT: {format_currency(document.vat_total, document.currency)}"
        ))

    blocks.extend(_company_line(company))

    if document.category_name:
        blocks.append(context(f"Category: {escape_mrkdwn(document.category_name)}"))

    warning = due_date_warning(document, now)
    if warning is not None:
        blocks.append(warning)

    blocks.append(actions(
        button("View Invoice", "view_invoice",
               url=_document_url(base_url, space_id, document.id)),
    ))

    return SlackMessage(
        text=f"Invoice processed: {document.vendor_name or 'Unknown vendor'} - {amount}",
        blocks=blocks,
        attachments=[status_attachment("success")],
    )


def build_document_updated_message(
    document: Document,
    company: Optional[Company],
    space_id: str,
    base_url: str = DEFAULT_APP_BASE_URL,
    now: Optional[datetime] = None,
) -> SlackMessage:
    """Message for a modified document."""
    amount = format_currency(document.total, document.currency)
    blocks: list[Block] = [
        header("Invoice Updated"),
        section_with_fields([
            field_pair("Vendor", escape_mrkdwn(document.vendor_name) or "Unknown"),
            field_pair("Amount", amount),
            field_pair("Invoice #", escape_mrkdwn(document.document_number) or "N/A"),
            field_pair("Status", format_status(document.status)),
        ]),
    ]
    blocks.extend(_company_line(company))
    blocks.append(context(f"Updated {format_relative_time(document.updated_at, now)}"))
    blocks.append(actions(
        button("View Invoice", "view_invoice",
               url=_document_url(base_url, space_id, document.id)),
    ))

    return SlackMessage(
        text=f"Invoice updated: {document.vendor_name or 'Unknown vendor'} - {amount}",
        blocks=blocks,
        attachments=[status_attachment("info")],
    )


# ═══════════════════════════════════════════════════════════
# Export & Summary Notifications
# ═══════════════════════════════════════════════════════════


def build_export_completed_message(
    export: Export,
    space_id: str,
    base_url: str = DEFAULT_APP_BASE_URL,
    now: Optional[datetime] = None,
) -> SlackMessage:
    """Message for an export that is ready.

    The primary "Download Export" button appears only with a download
    URL; "View All Exports" is always present.

    Args:
        export: The completed export.
        space_id: Workspace for the exports page link.
        base_url: Web app base URL.
        now: Reference time for the relative completion time.

    Returns:
        The assembled SlackMessage.
    """
    export_format = export.format.upper()
    blocks: list[Block] = [
        header("Export Ready"),
        section_with_fields([
            field_pair("Format", export_format),
            field_pair("Documents", str(export.document_count)),
        ]),
        context(f"Completed {format_relative_time(export.completed_at or export.created_at, now)}"),
    ]

    buttons: list[dict[str, Any]] = []
    if export.download_url:
        buttons.append(button("Download Export", "download_export",
                              url=export.download_url, style="primary"))
    buttons.append(button("View All Exports", "view_exports",
                          url=f"{base_url}/spaces/{space_id}/exports"))
    blocks.append(actions(*buttons))

    return SlackMessage(
        text=f"Export ready: {export.document_count} documents in {export_format} format",
        blocks=blocks,
        attachments=[status_attachment("success")],
    )


def top_categories(breakdown: dict[str, int], limit: int = TOP_CATEGORIES) -> list[tuple[str, int]]:
    """Largest categories first; ties keep their first-seen order."""
    return sorted(breakdown.items(), key=lambda item: item[1], reverse=True)[:limit]


def build_daily_summary_message(
    stats: DailySummaryStats,
    space_id: str,
    base_url: str = DEFAULT_APP_BASE_URL,
) -> SlackMessage:
    """Message summarizing one day of activity.

    Args:
        stats: Aggregated statistics (at least one document).
        space_id: Workspace for the dashboard links.
        base_url: Web app base URL.

    Returns:
        The assembled SlackMessage.
    """
    total = format_currency(stats.total_amount, stats.currency)
    top_vendor = (
        f"{escape_mrkdwn(stats.top_vendor)} ({stats.top_vendor_count})"
        if stats.top_vendor else "N/A"
    )
    blocks: list[Block] = [
        header("Daily Invoice Summary"),
        section_with_fields([
            field_pair("Processed", _plural(stats.processed_count, "invoice")),
            field_pair("Total Amount", total),
            field_pair("Pending Review", str(stats.pending_count)),
            field_pair("Top Vendor", top_vendor),
        ]),
    ]

    categories = top_categories(stats.category_breakdown)
    if categories:
        line = " | ".join(f"{escape_mrkdwn(name)}: {count}" for name, count in categories)
        blocks.extend([divider(), context(f"*By Category:* {line}")])

    blocks.extend([
        divider(),
        actions(
            button("Open Dashboard", "open_dashboard",
                   url=f"{base_url}/spaces/{space_id}/dashboard", style="primary"),
            button("View Documents", "view_documents",
                   url=f"{base_url}/spaces/{space_id}/documents"),
        ),
    ])

    return SlackMessage(
        text=(
            f"Daily Summary: {_plural(stats.processed_count, 'invoice')} processed, "
            f"total {total}"
        ),
        blocks=blocks,
        attachments=[status_attachment("info")],
    )


def build_test_connection_message(
    space_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> SlackMessage:
    """Message confirming the webhook works."""
    blocks: list[Block] = [
        header("InvoiceLeaf Connected"),
        section(
            "Your InvoiceLeaf workspace is now connected to Slack. "
            "You'll receive notifications based on your configuration."
        ),
        divider(),
        context(
            f"Workspace: `{space_id}`",
            f"Configured by: `{user_id or 'unknown'}`",
            f"Time: {format_date(now or datetime.now().astimezone())}",
        ),
    ]
    return SlackMessage(
        text="InvoiceLeaf Slack integration connected successfully!",
        blocks=blocks,
        attachments=[status_attachment("success")],
    )
