"""InvoiceLeaf Slack — Data Models.

Dataclasses for every entity that flows through the notification
pipeline: host entities (documents, companies, exports), inbound event
payloads, the outbound Slack message, filter decisions, daily summary
statistics, and the result records handlers hand back to the host.

Host payloads are camelCase JSON. Each host-facing dataclass includes:
  - from_api_dict(row): classmethod to build it from a host payload
  - to_dict(): converts back to the camelCase wire shape
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


class DocumentStatus:
    """Lifecycle statuses a document can report."""

    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    PROCESSED = "PROCESSED"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    EXPORTED = "EXPORTED"
    ERROR = "ERROR"


class ExportStatus:
    """Lifecycle statuses an export can report."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


def _require(row: dict[str, Any], keys: list[str], entity: str) -> None:
    """Validate that a host payload carries the required keys.

    Args:
        row: Raw payload from the host.
        keys: camelCase keys that must be present and not None.
        entity: Entity name for the error message.

    Raises:
        ValueError: If any required key is missing.
    """
    missing = [key for key in keys if row.get(key) is None]
    if missing:
        raise ValueError(f"{entity} payload is missing required fields: {', '.join(missing)}")


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}


# ═══════════════════════════════════════════════════════════
# Host Entities
# ═══════════════════════════════════════════════════════════


@dataclass
class Document:
    """An invoice or receipt as returned by the host data API.

    Read-only to this package. Monetary and descriptive fields are often
    missing on freshly uploaded documents, so everything except identity,
    status and timestamps is optional.

    Attributes:
        id: Document identifier.
        space_id: Workspace the document belongs to.
        status: One of DocumentStatus (unknown values kept verbatim).
        created_at: ISO-8601 creation timestamp.
        updated_at: ISO-8601 last-modified timestamp.
        document_number: Invoice number printed on the document.
        document_date: Invoice date (ISO-8601).
        due_date: Payment due date (ISO-8601).
        vendor_name: Extracted vendor name.
        total: Gross total.
        net_total: Net amount before VAT.
        vat_total: VAT amount.
        currency: ISO-4217 code, EUR assumed when absent.
        category_id: Category identifier.
        category_name: Category display name.
        company_id: Company the document is assigned to.
        processed_at: When extraction completed (ISO-8601).
    """

    id: str
    space_id: str = ""
    status: str = DocumentStatus.UPLOADED
    created_at: str = ""
    updated_at: str = ""
    document_number: Optional[str] = None
    document_date: Optional[str] = None
    due_date: Optional[str] = None
    vendor_name: Optional[str] = None
    vendor_vat_id: Optional[str] = None
    total: Optional[float] = None
    net_total: Optional[float] = None
    vat_total: Optional[float] = None
    currency: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    company_id: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    notes: Optional[str] = None
    processed_at: Optional[str] = None

    @classmethod
    def from_api_dict(cls, row: dict[str, Any]) -> "Document":
        """Construct a Document from a host API payload.

        Args:
            row: camelCase dictionary from the data API.

        Returns:
            A Document instance.

        Raises:
            ValueError: If the payload has no id.
        """
        _require(row, ["id"], "Document")
        return cls(
            id=str(row["id"]),
            space_id=row.get("spaceId", ""),
            status=row.get("status") or DocumentStatus.UPLOADED,
            created_at=row.get("createdAt", ""),
            updated_at=row.get("updatedAt", ""),
            document_number=row.get("documentNumber"),
            document_date=row.get("documentDate"),
            due_date=row.get("dueDate"),
            vendor_name=row.get("vendorName"),
            vendor_vat_id=row.get("vendorVatId"),
            total=_optional_float(row.get("total")),
            net_total=_optional_float(row.get("netTotal")),
            vat_total=_optional_float(row.get("vatTotal")),
            currency=row.get("currency"),
            category_id=row.get("categoryId"),
            category_name=row.get("categoryName"),
            company_id=row.get("companyId"),
            tags=list(row.get("tags") or []),
            notes=row.get("notes"),
            processed_at=row.get("processedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase host shape, omitting unset fields."""
        return _compact({
            "id": self.id,
            "spaceId": self.space_id,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "documentNumber": self.document_number,
            "documentDate": self.document_date,
            "dueDate": self.due_date,
            "vendorName": self.vendor_name,
            "vendorVatId": self.vendor_vat_id,
            "total": self.total,
            "netTotal": self.net_total,
            "vatTotal": self.vat_total,
            "currency": self.currency,
            "categoryId": self.category_id,
            "categoryName": self.category_name,
            "companyId": self.company_id,
            "tags": self.tags or None,
            "notes": self.notes,
            "processedAt": self.processed_at,
        })


@dataclass
class Company:
    """A company a document can be assigned to. Display context only."""

    id: str
    name: str
    vat_id: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_api_dict(cls, row: dict[str, Any]) -> "Company":
        """Construct a Company from a host API payload.

        Args:
            row: camelCase dictionary from the data API.

        Returns:
            A Company instance.
        """
        _require(row, ["id", "name"], "Company")
        return cls(
            id=str(row["id"]),
            name=row["name"],
            vat_id=row.get("vatId"),
            address=row.get("address"),
            city=row.get("city"),
            country=row.get("country"),
        )


@dataclass
class Export:
    """A bulk export of documents.

    Attributes:
        id: Export identifier.
        space_id: Workspace the export belongs to.
        format: Export format name (e.g. "csv", "datev").
        status: One of ExportStatus.
        document_count: Number of documents included.
        created_at: ISO-8601 creation timestamp.
        download_url: Signed download link, when available.
        completed_at: ISO-8601 completion timestamp.
    """

    id: str
    space_id: str
    format: str
    status: str
    document_count: int
    created_at: str
    download_url: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_api_dict(cls, row: dict[str, Any]) -> "Export":
        """Construct an Export from a host API payload.

        Args:
            row: camelCase dictionary from the data API.

        Returns:
            An Export instance.
        """
        _require(row, ["id"], "Export")
        return cls(
            id=str(row["id"]),
            space_id=row.get("spaceId", ""),
            format=row.get("format") or "unknown",
            status=row.get("status") or ExportStatus.COMPLETED,
            document_count=int(row.get("documentCount") or 0),
            created_at=row.get("createdAt", ""),
            download_url=row.get("downloadUrl"),
            completed_at=row.get("completedAt"),
        )


# ═══════════════════════════════════════════════════════════
# Inbound Events
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DocumentEvent:
    """Payload of document.created / document.processed / document.updated."""

    document_id: str
    space_id: str
    user_id: Optional[str] = None
    timestamp: Optional[str] = None

    @classmethod
    def from_api_dict(cls, row: dict[str, Any]) -> "DocumentEvent":
        _require(row, ["documentId", "spaceId"], "Document event")
        return cls(
            document_id=str(row["documentId"]),
            space_id=str(row["spaceId"]),
            user_id=row.get("userId"),
            timestamp=row.get("timestamp"),
        )


@dataclass(frozen=True)
class ExportCompletedEvent:
    """Payload of export.completed."""

    export_id: str
    space_id: str
    document_count: int = 0
    format: str = ""
    user_id: Optional[str] = None
    timestamp: Optional[str] = None

    @classmethod
    def from_api_dict(cls, row: dict[str, Any]) -> "ExportCompletedEvent":
        _require(row, ["exportId", "spaceId"], "Export event")
        return cls(
            export_id=str(row["exportId"]),
            space_id=str(row["spaceId"]),
            document_count=int(row.get("documentCount") or 0),
            format=row.get("format") or "",
            user_id=row.get("userId"),
            timestamp=row.get("timestamp"),
        )


@dataclass(frozen=True)
class DailySummaryEvent:
    """Payload of the scheduled daily tick."""

    space_id: str
    scheduled_at: str = ""

    @classmethod
    def from_api_dict(cls, row: dict[str, Any]) -> "DailySummaryEvent":
        _require(row, ["spaceId"], "Daily summary event")
        return cls(
            space_id=str(row["spaceId"]),
            scheduled_at=row.get("scheduledAt", ""),
        )


@dataclass(frozen=True)
class TestConnectionEvent:
    """Payload of the user-triggered "Send Test Message" action."""

    __test__ = False  # not a pytest test class

    space_id: str
    user_id: str = ""

    @classmethod
    def from_api_dict(cls, row: dict[str, Any]) -> "TestConnectionEvent":
        _require(row, ["spaceId"], "Test connection event")
        return cls(
            space_id=str(row["spaceId"]),
            user_id=str(row.get("userId") or ""),
        )


# ═══════════════════════════════════════════════════════════
# Outbound Message
# ═══════════════════════════════════════════════════════════


@dataclass
class SlackMessage:
    """Incoming-webhook message payload.

    Attributes:
        text: Plain-text fallback shown where blocks cannot render.
        blocks: Block Kit blocks.
        attachments: Legacy attachments (used for the colored side bar).
        channel: Channel override.
        username: Bot display name override.
        icon_emoji: Bot icon override, e.g. ":receipt:".
    """

    text: str
    blocks: list[dict[str, Any]] = field(default_factory=list)
    attachments: list[dict[str, Any]] = field(default_factory=list)
    channel: Optional[str] = None
    username: Optional[str] = None
    icon_emoji: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body posted to the webhook."""
        return _compact({
            "text": self.text,
            "blocks": self.blocks or None,
            "attachments": self.attachments or None,
            "channel": self.channel,
            "username": self.username,
            "icon_emoji": self.icon_emoji,
        })


# ═══════════════════════════════════════════════════════════
# Pipeline Results
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FilterResult:
    """Decision of the notification filters.

    Attributes:
        should_notify: Whether the document passes every filter.
        reason: Machine-readable token naming the failing filter.
    """

    should_notify: bool
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"shouldNotify": self.should_notify, "reason": self.reason})


# Shared pass-through decision
PASS = FilterResult(should_notify=True)


@dataclass
class DailySummaryStats:
    """Aggregated activity for one day.

    total_amount only covers documents in the primary currency.
    """

    processed_count: int
    total_amount: float
    currency: str
    pending_count: int
    top_vendor: Optional[str]
    top_vendor_count: int
    category_breakdown: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processedCount": self.processed_count,
            "totalAmount": self.total_amount,
            "currency": self.currency,
            "pendingCount": self.pending_count,
            "topVendor": self.top_vendor,
            "topVendorCount": self.top_vendor_count,
            "categoryBreakdown": dict(self.category_breakdown),
        }


@dataclass
class HandlerResult:
    """Uniform outcome every handler returns to the host.

    Attributes:
        success: False only when an upstream fetch or the delivery failed.
        skipped: True when the handler decided not to notify.
        reason: Machine-readable skip reason.
        error: Human-readable failure description.
    """

    success: bool
    skipped: bool = False
    reason: Optional[str] = None
    error: Optional[str] = None

    def _extra_fields(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase host contract, omitting unset fields."""
        data: dict[str, Any] = {"success": self.success}
        if self.skipped:
            data["skipped"] = True
        data.update(_compact({"reason": self.reason, "error": self.error}))
        data.update(_compact(self._extra_fields()))
        return data


@dataclass
class DocumentNotificationResult(HandlerResult):
    """Result of the document handlers."""

    document_id: Optional[str] = None
    vendor_name: Optional[str] = None
    amount: Optional[float] = None

    def _extra_fields(self) -> dict[str, Any]:
        return {
            "documentId": self.document_id,
            "vendorName": self.vendor_name,
            "amount": self.amount,
        }


@dataclass
class ExportCompletedResult(HandlerResult):
    """Result of the export-completed handler."""

    export_id: Optional[str] = None
    format: Optional[str] = None
    document_count: Optional[int] = None

    def _extra_fields(self) -> dict[str, Any]:
        return {
            "exportId": self.export_id,
            "format": self.format,
            "documentCount": self.document_count,
        }


@dataclass
class DailySummaryResult(HandlerResult):
    """Result of the daily summary handler."""

    stats: Optional[DailySummaryStats] = None

    def _extra_fields(self) -> dict[str, Any]:
        return {"stats": self.stats.to_dict() if self.stats else None}


@dataclass
class TestConnectionResult(HandlerResult):
    """Result of the test-connection action."""

    __test__ = False  # not a pytest test class

    message: Optional[str] = None

    def _extra_fields(self) -> dict[str, Any]:
        return {"message": self.message}
