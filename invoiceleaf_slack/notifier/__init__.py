"""InvoiceLeaf Slack — Notifier Package.

Slack notification system built on Block Kit.
Components:
  - formatters: currency, date and text helpers for display strings
  - blocks: Block Kit element/block builders and status attachments
  - messages: one message assembly function per notification kind
  - slack_client: async webhook client with validation and retry
"""

from invoiceleaf_slack.notifier.messages import (
    build_daily_summary_message,
    build_document_created_message,
    build_document_processed_message,
    build_document_updated_message,
    build_export_completed_message,
    build_test_connection_message,
)
from invoiceleaf_slack.notifier.slack_client import (
    SlackApiError,
    SlackWebhookClient,
    SlackWebhookValidationError,
)

__all__ = [
    "build_daily_summary_message",
    "build_document_created_message",
    "build_document_processed_message",
    "build_document_updated_message",
    "build_export_completed_message",
    "build_test_connection_message",
    "SlackApiError",
    "SlackWebhookClient",
    "SlackWebhookValidationError",
]
