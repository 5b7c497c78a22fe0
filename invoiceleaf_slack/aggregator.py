"""InvoiceLeaf Slack — Daily Aggregator.

Reduces one day's documents into DailySummaryStats for the summary
message. Pure: no I/O, no clock.

Known limitation: totals are grouped per currency and only the primary
currency (the one with the most documents) is reported. Amounts in
other currencies are left out of total_amount.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from invoiceleaf_slack.config import DEFAULT_CURRENCY
from invoiceleaf_slack.models import DailySummaryStats, Document, DocumentStatus

UNCATEGORIZED = "Uncategorized"


def _most_common(counts: Counter) -> tuple[object, int]:
    """Highest count, first-inserted key on ties. (None, 0) when empty."""
    best_key, best_count = None, 0
    for key, count in counts.items():
        if count > best_count:
            best_key, best_count = key, count
    return best_key, best_count


def calculate_daily_stats(documents: Iterable[Document]) -> DailySummaryStats:
    """Aggregate documents into daily summary statistics.

    An empty collection is not special-cased: it yields zero counts,
    EUR with a total of 0, and no top vendor. Callers skip the summary
    before getting here.

    Args:
        documents: Documents processed during the summary window.

    Returns:
        DailySummaryStats for the collection.
    """
    docs = list(documents)

    currency_counts: Counter = Counter()
    currency_totals: dict[str, float] = {}
    vendor_counts: Counter = Counter()
    categories: Counter = Counter()

    for doc in docs:
        currency = doc.currency or DEFAULT_CURRENCY
        currency_counts[currency] += 1
        currency_totals[currency] = currency_totals.get(currency, 0.0) + (doc.total or 0.0)

        if doc.vendor_name:
            vendor_counts[doc.vendor_name] += 1

        categories[doc.category_name or UNCATEGORIZED] += 1

    primary, _ = _most_common(currency_counts)
    primary_currency = primary or DEFAULT_CURRENCY
    top_vendor, top_vendor_count = _most_common(vendor_counts)

    return DailySummaryStats(
        processed_count=len(docs),
        total_amount=currency_totals.get(primary_currency, 0.0),
        currency=primary_currency,
        pending_count=sum(1 for d in docs if d.status == DocumentStatus.PENDING_REVIEW),
        top_vendor=top_vendor,
        top_vendor_count=top_vendor_count,
        category_breakdown=dict(categories),
    )
