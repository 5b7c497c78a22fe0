#!/usr/bin/env python3
"""InvoiceLeaf Slack — Application Runner.

Performs pre-flight checks and hands the command line to the CLI.

Usage:
    python scripts/run.py test-connection --space-id sp_123
    python scripts/run.py replay --event document.processed --payload event.json
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

BANNER = r"""
╔══════════════════════════════════════════════════════════╗
║                                                          ║
║              InvoiceLeaf Slack Notifications             ║
║        Invoice activity, straight to your channel        ║
║                                                          ║
╚══════════════════════════════════════════════════════════╝
"""

REQUIRED_ENV_VARS = [
    "SLACK_WEBHOOK_URL",
]

REQUIRED_FILES = [
    "config/settings.yaml",
]


def preflight_checks() -> bool:
    """Run pre-flight checks before starting the application.

    Checks:
      - .env file exists (optional when variables are exported)
      - Required environment variables are set
      - SLACK_WEBHOOK_URL has the incoming-webhook shape
      - Required config files exist
      - logs/ directory exists (creates it)

    Returns:
        True if all checks pass, False otherwise.
    """
    os.chdir(str(PROJECT_ROOT))
    ok = True

    # Load .env
    env_path = PROJECT_ROOT / ".env"
    if not env_path.exists():
        print("⚠️  .env file not found, using exported environment variables")
        print("   Copy .env.example to .env to keep your webhook URL locally.")
    else:
        from dotenv import load_dotenv
        load_dotenv(env_path)
        print("✅ .env loaded")

    # Check required env vars
    for var in REQUIRED_ENV_VARS:
        val = os.environ.get(var, "")
        if not val or "XXXXXXXX" in val:
            print(f"❌ {var} not set or still the example value")
            ok = False
        else:
            # Mask the secret path segment
            masked = val[:40] + "..." if len(val) > 40 else "***"
            print(f"✅ {var} = {masked}")

    webhook = os.environ.get("SLACK_WEBHOOK_URL", "")
    if webhook:
        from invoiceleaf_slack.notifier.slack_client import WEBHOOK_URL_PATTERN
        if WEBHOOK_URL_PATTERN.match(webhook.strip()):
            print("✅ SLACK_WEBHOOK_URL format looks valid")
        else:
            print("❌ SLACK_WEBHOOK_URL is not a Slack incoming-webhook URL")
            ok = False

    # Check config files
    for f in REQUIRED_FILES:
        path = PROJECT_ROOT / f
        if not path.exists():
            print(f"❌ {f} not found!")
            ok = False
        else:
            print(f"✅ {f} exists")

    (PROJECT_ROOT / "logs").mkdir(exist_ok=True)
    print("✅ logs/ directory ready")

    return ok


def main() -> None:
    """Entry point: run checks then start the CLI."""
    print(BANNER)

    print("═══ Pre-flight Checks ═══\n")
    if not preflight_checks():
        print("\n❌ Pre-flight checks failed! Fix the issues above and try again.")
        sys.exit(1)

    print("\n✅ All checks passed!\n")

    from invoiceleaf_slack.main import main as app_main
    app_main()


if __name__ == "__main__":
    main()
