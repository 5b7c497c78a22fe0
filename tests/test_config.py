"""Tests for configuration parsing and loading."""

import pytest

from conftest import WEBHOOK_URL
from invoiceleaf_slack.config import (
    NOTIFICATION_DEFAULTS,
    IntegrationConfig,
    NotificationKind,
    load_config,
)
from invoiceleaf_slack.utils.resilience import RetryPolicy

SETTINGS_YAML = """
installation:
  webhookUrl: ${TEST_SLACK_WEBHOOK}
  username: Ledger Bot
  notifyOnDocumentCreated: true
  minimumAmount: 25
  vendorFilter: [Amazon, Google]

delivery:
  timeout_ms: 5000
  retries: 4

app:
  base_url: https://invoices.example.com/

logging:
  level: DEBUG
"""


class TestIntegrationConfig:

    def test_from_camel_case(self):
        config = IntegrationConfig.from_dict({
            "webhookUrl": WEBHOOK_URL,
            "channelOverride": "#finance",
            "notifyOnDocumentProcessed": False,
            "minimumAmount": 100,
            "minimumAmountCurrency": "usd",
            "vendorFilter": ["Amazon ", " Google"],
            "categoryFilter": [],
        })
        assert config.channel_override == "#finance"
        assert config.notify_on_document_processed is False
        assert config.notify_on_document_created is None
        assert config.minimum_amount == 100.0
        assert config.minimum_amount_currency == "USD"
        assert config.vendor_filter == frozenset({"Amazon", "Google"})
        assert config.category_filter == frozenset()

    def test_from_snake_case(self):
        config = IntegrationConfig.from_dict({
            "webhook_url": WEBHOOK_URL,
            "enable_daily_summary": "true",
            "category_filter": "Travel, Office",
        })
        assert config.enable_daily_summary is True
        assert config.category_filter == frozenset({"Travel", "Office"})

    def test_unknown_keys_ignored(self):
        config = IntegrationConfig.from_dict({"webhookUrl": WEBHOOK_URL, "theme": "dark"})
        assert config.webhook_url == WEBHOOK_URL

    def test_missing_webhook_url(self):
        with pytest.raises(ValueError, match="webhook_url"):
            IntegrationConfig.from_dict({"username": "x"})

    @pytest.mark.parametrize("settings", [
        {"minimumAmount": -1},
        {"username": "x" * 81},
        {"iconEmoji": "receipt"},
        {"notifyOnDocumentCreated": "yes"},
    ])
    def test_invalid_values(self, settings):
        with pytest.raises(ValueError):
            IntegrationConfig.from_dict({"webhookUrl": WEBHOOK_URL, **settings})

    def test_toggle_lookup(self):
        config = IntegrationConfig(webhook_url=WEBHOOK_URL, notify_on_export_completed=False)
        assert config.toggle(NotificationKind.EXPORT_COMPLETED) is False
        assert config.toggle(NotificationKind.DAILY_SUMMARY) is None
        with pytest.raises(KeyError):
            config.toggle("webhook_url")

    def test_defaults_table_is_immutable(self):
        with pytest.raises(TypeError):
            NOTIFICATION_DEFAULTS[NotificationKind.DOCUMENT_CREATED] = True
        assert set(NOTIFICATION_DEFAULTS) == set(NotificationKind.ALL)


class TestLoadConfig:

    def test_loads_settings_with_env_interpolation(self, tmp_path, monkeypatch):
        settings = tmp_path / "settings.yaml"
        settings.write_text(SETTINGS_YAML, encoding="utf-8")
        monkeypatch.setenv("TEST_SLACK_WEBHOOK", WEBHOOK_URL)

        config = load_config(settings, env_path=tmp_path / ".env")

        assert config.installation.webhook_url == WEBHOOK_URL
        assert config.installation.username == "Ledger Bot"
        assert config.installation.notify_on_document_created is True
        assert config.installation.minimum_amount == 25.0
        assert config.installation.vendor_filter == frozenset({"Amazon", "Google"})
        assert config.delivery == RetryPolicy(timeout_ms=5000, retries=4, retry_delay_ms=1000)
        assert config.app_base_url == "https://invoices.example.com"
        assert config.log_level == "DEBUG"

    def test_reads_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TEST_SLACK_WEBHOOK", raising=False)
        settings = tmp_path / "settings.yaml"
        settings.write_text(SETTINGS_YAML, encoding="utf-8")
        env_file = tmp_path / ".env"
        env_file.write_text(f"TEST_SLACK_WEBHOOK={WEBHOOK_URL}\n", encoding="utf-8")

        config = load_config(settings, env_path=env_file)
        assert config.installation.webhook_url == WEBHOOK_URL
        monkeypatch.delenv("TEST_SLACK_WEBHOOK", raising=False)

    def test_missing_env_var(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TEST_SLACK_WEBHOOK", raising=False)
        settings = tmp_path / "settings.yaml"
        settings.write_text(SETTINGS_YAML, encoding="utf-8")
        with pytest.raises(ValueError, match="TEST_SLACK_WEBHOOK"):
            load_config(settings, env_path=tmp_path / ".env")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml", env_path=tmp_path / ".env")

    def test_empty_file(self, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="empty"):
            load_config(settings, env_path=tmp_path / ".env")

    def test_defaults_for_optional_sections(self, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text(f"installation:\n  webhookUrl: {WEBHOOK_URL}\n", encoding="utf-8")
        config = load_config(settings, env_path=tmp_path / ".env")
        assert config.delivery == RetryPolicy()
        assert config.app_base_url == "https://app.invoiceleaf.com"
        assert config.log_level == "INFO"
