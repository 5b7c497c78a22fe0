"""InvoiceLeaf Slack — Slack notifications for InvoiceLeaf events.

Turns document, export and daily-summary events into Block Kit
messages delivered through a Slack incoming webhook.
"""

__version__ = "1.0.0"
