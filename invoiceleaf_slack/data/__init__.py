"""InvoiceLeaf Slack — Data Package."""

from invoiceleaf_slack.data.client import DataClient, InMemoryDataClient

__all__ = ["DataClient", "InMemoryDataClient"]
