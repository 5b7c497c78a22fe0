"""Tests for Block Kit builders and notification message assembly."""

import dataclasses

import pytest

from conftest import message_texts
from invoiceleaf_slack.models import DailySummaryStats, DocumentStatus
from invoiceleaf_slack.notifier.blocks import STATUS_COLORS, button, status_attachment
from invoiceleaf_slack.notifier.messages import (
    build_daily_summary_message,
    build_document_created_message,
    build_document_processed_message,
    build_document_updated_message,
    build_export_completed_message,
    build_test_connection_message,
    due_date_warning,
    format_status,
    top_categories,
)

BASE_URL = "https://app.invoiceleaf.com"


def block_types(message):
    return [block["type"] for block in message.blocks]


def action_ids(message):
    actions = [b for b in message.blocks if b["type"] == "actions"]
    return [element["action_id"] for element in actions[-1]["elements"]]


def texts(message):
    return message_texts(message.to_payload())


class TestBlocks:

    @pytest.mark.parametrize("status", sorted(STATUS_COLORS))
    def test_status_attachment(self, status):
        assert status_attachment(status) == {"color": STATUS_COLORS[status], "fallback": ""}

    def test_status_colors(self):
        assert STATUS_COLORS["success"] == "#36a64f"
        assert STATUS_COLORS["info"] == "#0066cc"

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            status_attachment("purple")

    def test_button_style_validation(self):
        assert button("Go", "go", style="primary")["style"] == "primary"
        with pytest.raises(ValueError):
            button("Go", "go", style="shiny")

    def test_button_omits_unset_fields(self):
        element = button("Go", "go")
        assert "url" not in element and "style" not in element


class TestDueDateWarning:
    """Boundaries of the 0..7 day warning window (reference: Jan 15)."""

    @pytest.mark.parametrize("due,expected", [
        ("2024-01-15", ":warning: *Due today!*"),
        ("2024-01-16", ":warning: Due in 1 day"),
        ("2024-01-22", ":warning: Due in 7 days"),
    ])
    def test_warning_shown(self, sample_document, fixed_now, due, expected):
        document = dataclasses.replace(sample_document, due_date=due)
        block = due_date_warning(document, fixed_now)
        assert block["elements"][0]["text"] == expected

    @pytest.mark.parametrize("due", ["2024-01-23", "2024-01-14", None, "invalid"])
    def test_warning_hidden(self, sample_document, fixed_now, due):
        document = dataclasses.replace(sample_document, due_date=due)
        assert due_date_warning(document, fixed_now) is None


class TestDocumentProcessedMessage:

    def test_full_document(self, sample_document, sample_company, fixed_now):
        message = build_document_processed_message(
            sample_document, sample_company, "sp_1", BASE_URL, fixed_now,
        )

        assert message.text == "Invoice processed: Amazon Web Services - €1,234.56"
        assert block_types(message) == [
            "header", "section", "context", "context", "context", "context", "actions",
        ]
        content = texts(message)
        assert "Invoice Processed" in content
        assert "*Vendor*\nAmazon Web Services" in content
        assert "*Amount*\n€1,234.56" in content
        assert "*Invoice #*\nINV-001" in content
        assert "*Date*\nJan 10, 2024" in content
        assert "Net: €1,037.45 | VAT: €197.11" in content
        assert "Assigned to: *Leaf &amp; Sons*" in content
        assert "Category: Cloud Services" in content
        assert ":warning: Due in 3 days" in content
        assert message.attachments == [{"color": "#36a64f", "fallback": ""}]

    def test_view_button_links_to_document(self, sample_document, fixed_now):
        message = build_document_processed_message(sample_document, None, "sp_1", BASE_URL, fixed_now)
        view = message.blocks[-1]["elements"][0]
        assert view["action_id"] == "view_invoice"
        assert view["url"] == f"{BASE_URL}/spaces/sp_1/documents/doc_1"

    def test_sparse_document_uses_fallbacks(self, fixed_now):
        from invoiceleaf_slack.models import Document
        message = build_document_processed_message(Document(id="d"), None, "sp_1", BASE_URL, fixed_now)
        content = texts(message)
        assert "*Vendor*\nUnknown" in content
        assert "*Amount*\nN/A" in content
        assert "*Invoice #*\nN/A" in content
        assert "*Date*\nN/A" in content
        assert block_types(message) == ["header", "section", "actions"]
        assert message.text == "Invoice processed: Unknown vendor - N/A"

    def test_net_vat_requires_both_values(self, sample_document, fixed_now):
        document = dataclasses.replace(sample_document, vat_total=None)
        message = build_document_processed_message(document, None, "sp_1", BASE_URL, fixed_now)
        assert not any(t.startswith("Net:") for t in texts(message))

    def test_company_absent_is_omitted(self, sample_document, fixed_now):
        message = build_document_processed_message(sample_document, None, "sp_1", BASE_URL, fixed_now)
        assert not any("Assigned to" in t for t in texts(message))

    def test_vendor_name_is_escaped(self, sample_document, fixed_now):
        document = dataclasses.replace(sample_document, vendor_name="A<B>")
        message = build_document_processed_message(document, None, "sp_1", BASE_URL, fixed_now)
        assert "*Vendor*\nA&lt;B&gt;" in texts(message)


class TestDocumentCreatedAndUpdatedMessages:

    def test_created_before_extraction(self, fixed_now):
        from invoiceleaf_slack.models import Document
        document = Document(id="d1", status=DocumentStatus.UPLOADED, created_at="2024-01-15T11:55:00Z")
        message = build_document_created_message(document, None, "sp_1", BASE_URL, fixed_now)

        assert message.text == "New invoice uploaded"
        content = texts(message)
        assert "New Invoice Uploaded" in content
        assert "*Vendor*\nProcessing..." in content
        assert "*Status*\n:inbox_tray: Uploaded" in content
        assert "Uploaded 5 minutes ago" in content
        assert action_ids(message) == ["view_document"]
        assert message.attachments[0]["color"] == "#0066cc"

    def test_created_with_vendor(self, sample_document, sample_company, fixed_now):
        message = build_document_created_message(
            sample_document, sample_company, "sp_1", BASE_URL, fixed_now,
        )
        assert message.text == "New invoice uploaded from Amazon Web Services"
        assert "Assigned to: *Leaf &amp; Sons*" in texts(message)

    def test_updated(self, sample_document, fixed_now):
        message = build_document_updated_message(sample_document, None, "sp_1", BASE_URL, fixed_now)
        content = texts(message)
        assert message.text == "Invoice updated: Amazon Web Services - €1,234.56"
        assert "Invoice Updated" in content
        assert "*Status*\n:white_check_mark: Processed" in content
        assert "Updated 15 minutes ago" in content
        assert action_ids(message) == ["view_invoice"]
        assert message.attachments[0]["color"] == "#0066cc"

    def test_unknown_status_shown_verbatim(self):
        assert format_status("ARCHIVED") == "ARCHIVED"
        assert format_status("PENDING_REVIEW") == ":eyes: Pending Review"


class TestExportCompletedMessage:

    def test_with_download_url(self, sample_export, fixed_now):
        message = build_export_completed_message(sample_export, "sp_1", BASE_URL, fixed_now)
        assert message.text == "Export ready: 12 documents in CSV format"
        content = texts(message)
        assert "*Format*\nCSV" in content
        assert "*Documents*\n12" in content
        assert "Completed 2 minutes ago" in content
        assert action_ids(message) == ["download_export", "view_exports"]
        download, view_all = message.blocks[-1]["elements"]
        assert download["style"] == "primary"
        assert download["url"] == sample_export.download_url
        assert view_all["url"] == f"{BASE_URL}/spaces/sp_1/exports"

    def test_without_download_url(self, sample_export, fixed_now):
        export = dataclasses.replace(sample_export, download_url=None)
        message = build_export_completed_message(export, "sp_1", BASE_URL, fixed_now)
        assert action_ids(message) == ["view_exports"]

    def test_falls_back_to_created_at(self, sample_export, fixed_now):
        export = dataclasses.replace(sample_export, completed_at=None)
        message = build_export_completed_message(export, "sp_1", BASE_URL, fixed_now)
        assert "Completed 1 hour ago" in texts(message)


class TestDailySummaryMessage:

    @pytest.fixture
    def stats(self):
        return DailySummaryStats(
            processed_count=12,
            total_amount=4321.0,
            currency="EUR",
            pending_count=3,
            top_vendor="Amazon",
            top_vendor_count=5,
            category_breakdown={
                "Travel": 2, "Cloud": 4, "Office": 1, "Meals": 2,
                "Software": 1, "Rent": 1, "Marketing": 1,
            },
        )

    def test_summary(self, stats):
        message = build_daily_summary_message(stats, "sp_1", BASE_URL)
        content = texts(message)
        assert message.text == "Daily Summary: 12 invoices processed, total €4,321.00"
        assert "*Processed*\n12 invoices" in content
        assert "*Total Amount*\n€4,321.00" in content
        assert "*Pending Review*\n3" in content
        assert "*Top Vendor*\nAmazon (5)" in content
        assert "*By Category:* Cloud: 4 | Travel: 2 | Meals: 2 | Office: 1 | Software: 1" in content
        assert action_ids(message) == ["open_dashboard", "view_documents"]
        assert message.blocks[-1]["elements"][0]["style"] == "primary"

    def test_single_invoice_and_no_vendor(self, stats):
        stats = dataclasses.replace(stats, processed_count=1, top_vendor=None, top_vendor_count=0)
        message = build_daily_summary_message(stats, "sp_1", BASE_URL)
        assert "*Processed*\n1 invoice" in texts(message)
        assert "*Top Vendor*\nN/A" in texts(message)
        assert message.text.startswith("Daily Summary: 1 invoice processed")

    def test_empty_breakdown_omits_category_line(self, stats):
        stats = dataclasses.replace(stats, category_breakdown={})
        message = build_daily_summary_message(stats, "sp_1", BASE_URL)
        assert not any("By Category" in t for t in texts(message))
        assert block_types(message) == ["header", "section", "divider", "actions"]

    def test_top_categories_tie_keeps_first_seen(self):
        breakdown = {"b": 1, "a": 2, "c": 2, "d": 1}
        assert top_categories(breakdown, limit=3) == [("a", 2), ("c", 2), ("b", 1)]


class TestTestConnectionMessage:

    def test_message(self, fixed_now):
        message = build_test_connection_message("sp_1", "user_7", fixed_now)
        content = texts(message)
        assert message.text == "InvoiceLeaf Slack integration connected successfully!"
        assert "InvoiceLeaf Connected" in content
        assert "Workspace: `sp_1`" in content
        assert "Configured by: `user_7`" in content
        assert "Time: Jan 15, 2024" in content
        assert message.attachments[0]["color"] == "#36a64f"
