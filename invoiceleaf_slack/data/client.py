"""InvoiceLeaf Slack — Data Access Client.

The host platform owns documents, companies and exports; handlers read
them through the DataClient protocol. InMemoryDataClient backs the CLI
replay mode and the tests.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol

from invoiceleaf_slack.models import Company, Document, Export
from invoiceleaf_slack.notifier.formatters import parse_datetime
from invoiceleaf_slack.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 1000


class DataClient(Protocol):
    """Read access to host entities. Every call may fail."""

    async def get_document(self, document_id: str) -> Document: ...

    async def list_companies(self, ids: list[str]) -> list[Company]: ...

    async def list_documents(
        self,
        processed_after: datetime,
        processed_before: datetime,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Document]: ...

    async def get_export(self, export_id: str) -> Export: ...


class InMemoryDataClient:
    """DataClient over plain dicts and lists.

    Attributes:
        documents: Documents keyed by id.
        companies: Companies keyed by id.
        exports: Exports keyed by id.
        errors: Method name → exception raised on the next calls to it.
        call_count: Number of data calls served.
    """

    def __init__(
        self,
        documents: Optional[list[Document]] = None,
        companies: Optional[list[Company]] = None,
        exports: Optional[list[Export]] = None,
    ) -> None:
        self.documents: dict[str, Document] = {d.id: d for d in documents or []}
        self.companies: dict[str, Company] = {c.id: c for c in companies or []}
        self.exports: dict[str, Export] = {e.id: e for e in exports or []}
        self.errors: dict[str, Exception] = {}
        self.call_count = 0

    def _enter(self, method: str) -> None:
        self.call_count += 1
        error = self.errors.get(method)
        if error is not None:
            raise error

    async def get_document(self, document_id: str) -> Document:
        """Return a document by id.

        Raises:
            LookupError: If no document has this id.
        """
        self._enter("get_document")
        try:
            return self.documents[document_id]
        except KeyError:
            raise LookupError(f"Document not found: {document_id}") from None

    async def list_companies(self, ids: list[str]) -> list[Company]:
        """Return the known companies among ids, in request order."""
        self._enter("list_companies")
        return [self.companies[i] for i in ids if i in self.companies]

    async def list_documents(
        self,
        processed_after: datetime,
        processed_before: datetime,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Document]:
        """Return documents with processed_at in [processed_after, processed_before).

        Args:
            processed_after: Inclusive lower bound.
            processed_before: Exclusive upper bound.
            limit: Maximum number of documents returned.

        Returns:
            Matching documents in insertion order.
        """
        self._enter("list_documents")
        after = parse_datetime(processed_after)
        before = parse_datetime(processed_before)
        matches = []
        for doc in self.documents.values():
            processed = parse_datetime(doc.processed_at)
            if processed is None:
                continue
            if after <= processed < before:
                matches.append(doc)
        return matches[:limit]

    async def get_export(self, export_id: str) -> Export:
        """Return an export by id.

        Raises:
            LookupError: If no export has this id.
        """
        self._enter("get_export")
        try:
            return self.exports[export_id]
        except KeyError:
            raise LookupError(f"Export not found: {export_id}") from None

    # ── Snapshots ─────────────────────────────────────────

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any]) -> "InMemoryDataClient":
        """Build a client from a camelCase snapshot.

        Args:
            snapshot: Mapping with optional "documents", "companies" and
                "exports" lists of host payloads.

        Returns:
            A populated InMemoryDataClient.
        """
        return cls(
            documents=[Document.from_api_dict(r) for r in snapshot.get("documents") or []],
            companies=[Company.from_api_dict(r) for r in snapshot.get("companies") or []],
            exports=[Export.from_api_dict(r) for r in snapshot.get("exports") or []],
        )

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryDataClient":
        """Load a snapshot from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        with open(path, "r", encoding="utf-8") as f:
            snapshot = json.load(f)
        client = cls.from_snapshot(snapshot)
        logger.debug(
            "Loaded data snapshot from %s: %d documents, %d companies, %d exports",
            path, len(client.documents), len(client.companies), len(client.exports),
        )
        return client
