"""InvoiceLeaf Slack — Configuration Loader.

Two layers of configuration:
  - IntegrationConfig: one installation's settings, supplied by the host
    on every invocation (camelCase mapping) and never mutated here.
  - AppConfig: settings for running the package standalone (CLI),
    loaded from config/settings.yaml with ${VAR_NAME} references
    resolved from the environment and an optional .env file.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv

from invoiceleaf_slack.utils.logger import get_logger
from invoiceleaf_slack.utils.resilience import RetryPolicy

logger = get_logger(__name__)

# ── Path Constants ────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
SETTINGS_PATH = CONFIG_DIR / "settings.yaml"

DEFAULT_APP_BASE_URL = "https://app.invoiceleaf.com"
DEFAULT_CURRENCY = "EUR"

# ── Environment Variable Pattern ─────────────────────────
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)}")

_ICON_EMOJI_PATTERN = re.compile(r"^:[a-z0-9_+-]+:$")
_USERNAME_MAX_LEN = 80


# ═══════════════════════════════════════════════════════════
# Notification Toggles
# ═══════════════════════════════════════════════════════════


class NotificationKind:
    """Names of the per-installation notification toggles."""

    DOCUMENT_CREATED = "notify_on_document_created"
    DOCUMENT_PROCESSED = "notify_on_document_processed"
    DOCUMENT_UPDATED = "notify_on_document_updated"
    EXPORT_COMPLETED = "notify_on_export_completed"
    DAILY_SUMMARY = "enable_daily_summary"

    ALL = (
        DOCUMENT_CREATED,
        DOCUMENT_PROCESSED,
        DOCUMENT_UPDATED,
        EXPORT_COMPLETED,
        DAILY_SUMMARY,
    )


# Value used when an installation never set the toggle.
NOTIFICATION_DEFAULTS: Mapping[str, bool] = MappingProxyType({
    NotificationKind.DOCUMENT_CREATED: False,
    NotificationKind.DOCUMENT_PROCESSED: True,
    NotificationKind.DOCUMENT_UPDATED: False,
    NotificationKind.EXPORT_COMPLETED: True,
    NotificationKind.DAILY_SUMMARY: False,
})

# Host (camelCase) key → dataclass field
_CAMEL_KEYS: dict[str, str] = {
    "webhookUrl": "webhook_url",
    "channelOverride": "channel_override",
    "username": "username",
    "iconEmoji": "icon_emoji",
    "notifyOnDocumentCreated": NotificationKind.DOCUMENT_CREATED,
    "notifyOnDocumentProcessed": NotificationKind.DOCUMENT_PROCESSED,
    "notifyOnDocumentUpdated": NotificationKind.DOCUMENT_UPDATED,
    "notifyOnExportCompleted": NotificationKind.EXPORT_COMPLETED,
    "enableDailySummary": NotificationKind.DAILY_SUMMARY,
    "minimumAmount": "minimum_amount",
    "minimumAmountCurrency": "minimum_amount_currency",
    "vendorFilter": "vendor_filter",
    "categoryFilter": "category_filter",
}


# ═══════════════════════════════════════════════════════════
# Configuration Dataclasses
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class IntegrationConfig:
    """Settings of one installation.

    Toggles are Optional: None means "never set" so the default table
    can apply, which is different from an explicit False.
    """

    webhook_url: str
    channel_override: Optional[str] = None
    username: Optional[str] = None
    icon_emoji: Optional[str] = None
    notify_on_document_created: Optional[bool] = None
    notify_on_document_processed: Optional[bool] = None
    notify_on_document_updated: Optional[bool] = None
    notify_on_export_completed: Optional[bool] = None
    enable_daily_summary: Optional[bool] = None
    minimum_amount: float = 0.0
    minimum_amount_currency: str = DEFAULT_CURRENCY
    vendor_filter: frozenset[str] = field(default_factory=frozenset)
    category_filter: frozenset[str] = field(default_factory=frozenset)

    def toggle(self, kind: str) -> Optional[bool]:
        """Raw value of a notification toggle (None when unset).

        Args:
            kind: One of NotificationKind.

        Raises:
            KeyError: If kind is not a known toggle.
        """
        if kind not in NotificationKind.ALL:
            raise KeyError(f"Unknown notification kind: {kind}")
        return getattr(self, kind)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IntegrationConfig":
        """Build an IntegrationConfig from a host or YAML mapping.

        Accepts the host's camelCase keys and their snake_case equivalents.
        Unknown keys are ignored.

        Args:
            data: Raw installation settings.

        Returns:
            A validated IntegrationConfig.

        Raises:
            ValueError: If webhookUrl is missing or a value is invalid.
        """
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name in _CAMEL_KEYS.values():
                values[name] = value

        _validate_keys(values, ["webhook_url"], "installation")

        minimum_amount = float(values.get("minimum_amount") or 0)
        if minimum_amount < 0:
            raise ValueError(f"minimumAmount must be >= 0, got {minimum_amount}")

        username = values.get("username") or None
        if username and len(username) > _USERNAME_MAX_LEN:
            raise ValueError(
                f"username must be at most {_USERNAME_MAX_LEN} characters, got {len(username)}"
            )

        icon_emoji = values.get("icon_emoji") or None
        if icon_emoji and not _ICON_EMOJI_PATTERN.match(icon_emoji):
            raise ValueError(f"iconEmoji must look like ':emoji_name:', got {icon_emoji!r}")

        toggles = {}
        for kind in NotificationKind.ALL:
            raw = values.get(kind)
            toggles[kind] = None if raw is None else _as_bool(raw, kind)

        return cls(
            webhook_url=str(values["webhook_url"]).strip(),
            channel_override=values.get("channel_override") or None,
            username=username,
            icon_emoji=icon_emoji,
            minimum_amount=minimum_amount,
            minimum_amount_currency=(
                values.get("minimum_amount_currency") or DEFAULT_CURRENCY
            ).upper(),
            vendor_filter=_as_filter_set(values.get("vendor_filter")),
            category_filter=_as_filter_set(values.get("category_filter")),
            **toggles,
        )


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration for standalone runs."""

    installation: IntegrationConfig
    delivery: RetryPolicy
    app_base_url: str
    log_level: str


def _as_bool(value: Any, name: str) -> bool:
    """Coerce a toggle value, accepting YAML/env style strings.

    Raises:
        ValueError: If the value cannot be read as a boolean.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"Toggle '{name}' must be a boolean, got {value!r}")


def _as_filter_set(value: Any) -> frozenset[str]:
    """Normalize a vendor/category filter into a set of trimmed entries."""
    if not value:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")
    return frozenset(item.strip() for item in value if item and item.strip())


# ═══════════════════════════════════════════════════════════
# YAML Loading & Environment Variable Resolution
# ═══════════════════════════════════════════════════════════


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${VAR_NAME} references in YAML values.

    Args:
        value: A string, dict, list, or primitive from parsed YAML.

    Returns:
        The same structure with all ${VAR_NAME} placeholders replaced
        by their environment variable values.

    Raises:
        ValueError: If a referenced environment variable is not set.
    """
    if isinstance(value, str):
        for var_name in ENV_VAR_PATTERN.findall(value):
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(
                    f"Environment variable '${{{var_name}}}' is required but not set. "
                    f"Add it to your .env file or export it in your shell."
                )
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file with UTF-8 encoding.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as a dictionary.

    Raises:
        FileNotFoundError: If the YAML file does not exist.
        ValueError: If the file is empty.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Configuration file is empty: {path}")

    logger.debug("Loaded configuration from %s", path)
    return data


def _validate_keys(data: Mapping[str, Any], required: list[str], section: str) -> None:
    """Validate that all required keys exist in a config section.

    Args:
        data: The configuration dictionary to validate.
        required: List of required key names.
        section: Human-readable section name for error messages.

    Raises:
        ValueError: If any required key is missing.
    """
    missing = [key for key in required if not data.get(key)]
    if missing:
        raise ValueError(
            f"Missing required configuration keys in '{section}': {', '.join(missing)}"
        )


# ═══════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════


def load_config(
    settings_path: Path | None = None,
    env_path: Path | None = None,
) -> AppConfig:
    """Load the standalone application configuration.

    Args:
        settings_path: Override path to settings.yaml. Defaults to config/settings.yaml.
        env_path: Override path to .env file. Defaults to project root .env.

    Returns:
        A fully validated AppConfig instance.

    Raises:
        FileNotFoundError: If the settings file is missing.
        ValueError: If required fields are missing or env vars are unset.
    """
    env_file = env_path or (PROJECT_ROOT / ".env")
    load_dotenv(env_file)
    logger.debug("Loaded environment from %s", env_file)

    settings = _resolve_env_vars(_load_yaml(settings_path or SETTINGS_PATH))
    _validate_keys(settings, ["installation"], "settings")

    config = AppConfig(
        installation=IntegrationConfig.from_dict(settings["installation"]),
        delivery=RetryPolicy.from_dict(settings.get("delivery") or {}),
        app_base_url=(settings.get("app") or {}).get("base_url", DEFAULT_APP_BASE_URL).rstrip("/"),
        log_level=(settings.get("logging") or {}).get("level", "INFO"),
    )

    logger.info("Configuration loaded successfully")
    logger.debug("App base URL: %s", config.app_base_url)
    logger.debug(
        "Delivery policy: timeout=%dms retries=%d delay=%dms",
        config.delivery.timeout_ms, config.delivery.retries, config.delivery.retry_delay_ms,
    )
    return config
