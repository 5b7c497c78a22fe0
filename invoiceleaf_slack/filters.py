"""InvoiceLeaf Slack — Notification Filters.

Decides whether a document should produce a notification. Three
independent checks run in a fixed order and the first rejection wins:
  1. Minimum amount (same-currency comparisons only)
  2. Vendor filter
  3. Category filter

Missing document data never blocks a notification.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional

from invoiceleaf_slack.config import (
    DEFAULT_CURRENCY,
    NOTIFICATION_DEFAULTS,
    IntegrationConfig,
)
from invoiceleaf_slack.models import PASS, Document, FilterResult
from invoiceleaf_slack.utils.logger import get_logger

logger = get_logger(__name__)

FilterCheck = Callable[[Document, IntegrationConfig], FilterResult]


def _normalize(text: Optional[str]) -> str:
    """Lowercase and trim for matching."""
    return (text or "").lower().strip()


def _number_token(value: float) -> str:
    """Render a number for a reason token: 100.0 → "100", 99.5 → "99.5"."""
    return str(int(value)) if float(value).is_integer() else str(value)


def _matches_either_way(value: str, entries: Iterable[str]) -> bool:
    """Case-insensitive substring match in both directions.

    "amazon" matches "amazon web services" and the reverse. Short
    entries therefore match broadly (a filter of "a" matches any value
    containing "a").
    """
    normalized = _normalize(value)
    for entry in entries:
        candidate = _normalize(entry)
        if not candidate:
            continue
        if candidate in normalized or normalized in candidate:
            return True
    return False


# ═══════════════════════════════════════════════════════════
# Individual Checks
# ═══════════════════════════════════════════════════════════


def check_minimum_amount(document: Document, config: IntegrationConfig) -> FilterResult:
    """Reject documents below the configured minimum amount.

    Disabled when minimum_amount is 0. When the document currency differs
    from the filter currency the amounts are not comparable and the check
    passes.

    Args:
        document: Document under evaluation.
        config: Installation settings.

    Returns:
        PASS, or a rejection with reason "amount_below_minimum:<amount><<min>".
    """
    minimum = config.minimum_amount
    if not minimum or minimum <= 0:
        return PASS

    amount = document.total if document.total is not None else 0.0
    document_currency = (document.currency or DEFAULT_CURRENCY).upper()
    filter_currency = (config.minimum_amount_currency or DEFAULT_CURRENCY).upper()

    if document_currency != filter_currency:
        return PASS

    if amount < minimum:
        return FilterResult(
            should_notify=False,
            reason=f"amount_below_minimum:{_number_token(amount)}<{_number_token(minimum)}",
        )
    return PASS


def check_vendor(document: Document, config: IntegrationConfig) -> FilterResult:
    """Reject documents whose vendor matches no vendor filter entry.

    Args:
        document: Document under evaluation.
        config: Installation settings.

    Returns:
        PASS, or a rejection with reason "vendor_not_in_filter:<vendor>".
    """
    if not config.vendor_filter:
        return PASS

    if not _normalize(document.vendor_name):
        return PASS

    if _matches_either_way(document.vendor_name or "", config.vendor_filter):
        return PASS

    return FilterResult(
        should_notify=False,
        reason=f"vendor_not_in_filter:{document.vendor_name}",
    )


def check_category(document: Document, config: IntegrationConfig) -> FilterResult:
    """Reject documents whose category matches no category filter entry.

    An entry matches on exact (case-insensitive) category id, or on the
    category name with the same two-way substring rule as vendors.

    Args:
        document: Document under evaluation.
        config: Installation settings.

    Returns:
        PASS, or a rejection with reason "category_not_in_filter:<name-or-id>".
    """
    if not config.category_filter:
        return PASS

    if not document.category_id and not document.category_name:
        return PASS

    category_id = _normalize(document.category_id)
    for entry in config.category_filter:
        if category_id and category_id == _normalize(entry):
            return PASS

    if document.category_name and _matches_either_way(
        document.category_name, config.category_filter
    ):
        return PASS

    return FilterResult(
        should_notify=False,
        reason=f"category_not_in_filter:{document.category_name or document.category_id}",
    )


# Evaluation order matters: the first rejection is reported.
FILTER_CHECKS: tuple[FilterCheck, ...] = (
    check_minimum_amount,
    check_vendor,
    check_category,
)


# ═══════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════


def should_notify(document: Document, config: IntegrationConfig) -> FilterResult:
    """Run every filter check in order and return the first rejection.

    Args:
        document: Document under evaluation.
        config: Installation settings.

    Returns:
        FilterResult(should_notify=True) when all checks pass.
    """
    for check in FILTER_CHECKS:
        result = check(document, config)
        if not result.should_notify:
            logger.debug(
                "  SKIP %s (vendor=%s, amount=%s %s): %s",
                document.id, document.vendor_name, document.total,
                document.currency, result.reason,
            )
            return result
    return PASS


def is_notification_enabled(
    kind: str,
    config: IntegrationConfig,
    defaults: Mapping[str, bool] = NOTIFICATION_DEFAULTS,
) -> bool:
    """Resolve a notification toggle against its default.

    Only an unset toggle (None) falls back to the default; an explicit
    False always wins over a True default.

    Args:
        kind: One of NotificationKind.
        config: Installation settings.
        defaults: Per-kind defaults.

    Returns:
        Whether notifications of this kind should be sent.
    """
    value = config.toggle(kind)
    if value is None:
        return defaults.get(kind, False)
    return value
