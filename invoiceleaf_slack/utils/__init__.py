"""InvoiceLeaf Slack — Utilities Package."""

from invoiceleaf_slack.utils.logger import get_logger, set_log_level
from invoiceleaf_slack.utils.resilience import RetryPolicy, call_with_retry

__all__ = [
    "get_logger",
    "set_log_level",
    "RetryPolicy",
    "call_with_retry",
]
