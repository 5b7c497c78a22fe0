"""Shared pytest fixtures for InvoiceLeaf Slack tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Union

import httpx
import pytest

from invoiceleaf_slack.config import IntegrationConfig
from invoiceleaf_slack.data.client import InMemoryDataClient
from invoiceleaf_slack.handlers.base import HandlerContext
from invoiceleaf_slack.models import Company, Document, DocumentStatus, Export, ExportStatus
from invoiceleaf_slack.notifier.slack_client import SlackWebhookClient
from invoiceleaf_slack.utils.resilience import RetryPolicy

WEBHOOK_URL = "https://hooks.slack.com/services/T0001ABCD/B0002EFGH/abcDEF123xyz"
FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeSlack:
    """Scripted Slack webhook endpoint for httpx.MockTransport.

    Each request consumes the next scripted response; the last one
    repeats. A response is a (status, body) tuple or an exception.
    """

    def __init__(self, *responses: Union[tuple[int, str], Exception]) -> None:
        self.responses = list(responses) or [(200, "ok")]
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        status, body = response
        return httpx.Response(status, text=body)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def message_texts(payload: dict[str, Any]) -> list[str]:
    """Every text string found in a message's blocks, in order."""
    texts: list[str] = []
    for block in payload.get("blocks", []):
        if "text" in block:
            texts.append(block["text"]["text"])
        for item in block.get("fields", []) + block.get("elements", []):
            if isinstance(item.get("text"), dict):
                texts.append(item["text"]["text"])
            elif "text" in item:
                texts.append(item["text"])
    return texts


@pytest.fixture
def recording_sleep():
    """Async sleep that returns immediately and records delays."""
    return RecordingSleep()


@pytest.fixture
def fixed_now():
    """Reference time for clock-dependent output: 2024-01-15 12:00 UTC."""
    return FIXED_NOW


@pytest.fixture
def config():
    """Installation with every setting at its default."""
    return IntegrationConfig(webhook_url=WEBHOOK_URL)


@pytest.fixture
def sample_document():
    """A fully extracted invoice."""
    return Document(
        id="doc_1",
        space_id="sp_1",
        status=DocumentStatus.PROCESSED,
        created_at="2024-01-15T11:30:00Z",
        updated_at="2024-01-15T11:45:00Z",
        document_number="INV-001",
        document_date="2024-01-10",
        due_date="2024-01-18",
        vendor_name="Amazon Web Services",
        total=1234.56,
        net_total=1037.45,
        vat_total=197.11,
        currency="EUR",
        category_id="cat_cloud",
        category_name="Cloud Services",
        company_id="co_1",
        processed_at="2024-01-14T10:00:00Z",
    )


@pytest.fixture
def sample_company():
    return Company(id="co_1", name="Leaf & Sons")


@pytest.fixture
def sample_export():
    return Export(
        id="exp_1",
        space_id="sp_1",
        format="csv",
        status=ExportStatus.COMPLETED,
        document_count=12,
        created_at="2024-01-15T11:00:00Z",
        download_url="https://files.invoiceleaf.com/exp_1.csv",
        completed_at="2024-01-15T11:58:00Z",
    )


@pytest.fixture
def data_client(sample_document, sample_company, sample_export):
    """In-memory data client holding the sample entities."""
    return InMemoryDataClient(
        documents=[sample_document],
        companies=[sample_company],
        exports=[sample_export],
    )


@pytest.fixture
def fake_slack():
    """Slack endpoint answering 200 "ok"."""
    return FakeSlack()


@pytest.fixture
def make_context(data_client, recording_sleep, fixed_now):
    """Build a HandlerContext wired to a FakeSlack endpoint.

    Usage:
        ctx = make_context(config, fake_slack)
    """
    def _make(config: IntegrationConfig, slack: FakeSlack, data=None) -> HandlerContext:
        def factory(url: str, policy: RetryPolicy) -> SlackWebhookClient:
            return SlackWebhookClient(
                url, policy=policy, http_client=slack.http_client(), sleep=recording_sleep,
            )

        return HandlerContext(
            config=config,
            data=data if data is not None else data_client,
            retry_policy=RetryPolicy(retries=2, retry_delay_ms=10),
            clock=lambda: fixed_now,
            client_factory=factory,
        )

    return _make
