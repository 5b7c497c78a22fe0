"""InvoiceLeaf Slack — Command-Line Entry Point.

Runs the notification pipeline outside the host platform, using
config/settings.yaml for the installation settings:
  - test-connection: send the "connected" test message
  - replay: dispatch a recorded event payload against a JSON data
    snapshot and print the handler result

Usage:
    python -m invoiceleaf_slack.main test-connection --space-id sp_1
    python -m invoiceleaf_slack.main replay --event document.processed \\
        --payload event.json --data snapshot.json
    python scripts/run.py ...
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import click

from invoiceleaf_slack.config import AppConfig, load_config
from invoiceleaf_slack.data.client import InMemoryDataClient
from invoiceleaf_slack.handlers import EVENT_HANDLERS, dispatch_event
from invoiceleaf_slack.handlers.base import ClientFactory, HandlerContext, default_client_factory
from invoiceleaf_slack.handlers.test_connection import send_test_message
from invoiceleaf_slack.models import HandlerResult, TestConnectionEvent
from invoiceleaf_slack.utils.logger import get_logger, set_log_level

logger = get_logger(__name__)


def _build_context(ctx: click.Context, data: InMemoryDataClient) -> HandlerContext:
    """Handler context from the loaded config and the injected client factory."""
    config: AppConfig = ctx.obj["config"]
    factory: ClientFactory = ctx.obj.get("client_factory", default_client_factory)
    return HandlerContext(
        config=config.installation,
        data=data,
        retry_policy=config.delivery,
        app_base_url=config.app_base_url,
        client_factory=factory,
    )


def _report(result: HandlerResult) -> None:
    """Print the result as JSON and exit non-zero on failure."""
    click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    if not result.success:
        raise SystemExit(1)


@click.group()
@click.option("--settings", "settings_path", type=click.Path(path_type=Path),
              default=None, help="Path to settings.yaml")
@click.option("--env", "env_path", type=click.Path(path_type=Path),
              default=None, help="Path to .env file")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output (show DEBUG logs)")
@click.pass_context
def cli(ctx: click.Context, settings_path: Optional[Path], env_path: Optional[Path],
        verbose: bool) -> None:
    """InvoiceLeaf Slack notifications."""
    try:
        config = load_config(settings_path, env_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        raise SystemExit(2)

    set_log_level("DEBUG" if verbose else config.log_level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command("test-connection")
@click.option("--space-id", required=True, help="Workspace identifier")
@click.option("--user-id", default="", help="User triggering the test")
@click.pass_context
def test_connection(ctx: click.Context, space_id: str, user_id: str) -> None:
    """Send a test message to the configured webhook."""
    handler_ctx = _build_context(ctx, InMemoryDataClient())
    event = TestConnectionEvent(space_id=space_id, user_id=user_id)
    _report(asyncio.run(send_test_message(event, handler_ctx)))


@cli.command()
@click.option("--event", "event_name", required=True,
              type=click.Choice(sorted(EVENT_HANDLERS)), help="Event name")
@click.option("--payload", "payload_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON file with the event payload")
@click.option("--data", "data_path", default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON snapshot with documents, companies and exports")
@click.pass_context
def replay(ctx: click.Context, event_name: str, payload_path: Path,
           data_path: Optional[Path]) -> None:
    """Dispatch a recorded event payload and print the result."""
    with open(payload_path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    data = InMemoryDataClient.from_json_file(data_path) if data_path else InMemoryDataClient()
    logger.info("Replaying %s from %s", event_name, payload_path)
    _report(asyncio.run(dispatch_event(event_name, payload, _build_context(ctx, data))))


def main() -> None:
    """Application entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
