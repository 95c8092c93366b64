"""CLI interface for the shift handoff snapshot."""

import asyncio
import sys

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .config import SnapshotConfig, load_config
from .client import PylonClient
from .constants import (
    DEFAULT_SLACK_CHANNEL,
    EXIT_CODE_ERROR,
    CliHelp,
    EnvVar,
    LogMessage,
    Region,
)
from .report import render_report
from .slack import SlackPublisher
from .snapshot import HandoffSnapshot

app = typer.Typer(help=CliHelp.APP)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


async def _snapshot_async(
    region: Region, config: SnapshotConfig, dry_run: bool
) -> None:
    """Async implementation of the snapshot command."""
    async with PylonClient(token=config.pylon_token) as client:
        snapshot = HandoffSnapshot(config=config, client=client)
        report = await snapshot.build_report(region)

    text = render_report(report)

    if dry_run:
        console.print(
            Panel(
                Text(text),
                title=f"{report.region.header_label} ({report.date_label})",
                subtitle="dry run, not posted",
            )
        )
        return

    publisher = SlackPublisher(token=config.slack_token, channel=config.slack_channel)
    await publisher.publish(text)
    logger.success(LogMessage.REPORT_POSTED.format(region.value, config.slack_channel))


@app.command()
def snapshot(
    region: Region = typer.Argument(..., help=CliHelp.REGION),
    dry_run: bool = typer.Option(False, "--dry-run", help=CliHelp.DRY_RUN),
    lookback_days: int = typer.Option(
        None,
        "--lookback-days",
        envvar=EnvVar.LOOKBACK_DAYS,
        help=CliHelp.LOOKBACK_DAYS,
    ),
    channel: str = typer.Option(
        DEFAULT_SLACK_CHANNEL,
        "--channel",
        envvar=EnvVar.SLACK_CHANNEL,
        help=CliHelp.CHANNEL,
    ),
    pylon_token: str = typer.Option(
        None,
        "--pylon-token",
        envvar=EnvVar.PYLON_TOKEN,
        help="Ticketing API token. Can also be set via PYLON_TOKEN.",
    ),
    slack_token: str = typer.Option(
        None,
        "--slack-token",
        envvar=EnvVar.SLACK_BOT_TOKEN,
        help="Slack bot token. Can also be set via SLACK_BOT_TOKEN.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=CliHelp.VERBOSE),
) -> None:
    """Scan the ticket queue and publish a shift handoff snapshot.

    Counts issues created during the shift, breaks them down by the shift roster,
    classifies the open queue into SLA, aged, handoff and community buckets, and
    posts a single summary message.
    """
    _configure_logging(verbose)
    try:
        config = load_config(
            pylon_token=pylon_token,
            slack_token=slack_token,
            slack_channel=channel,
            lookback_days=lookback_days,
            require_slack=not dry_run,
        )
        asyncio.run(_snapshot_async(region, config, dry_run))
    except Exception as e:
        logger.exception(LogMessage.ERROR_OCCURRED.format(e))
        raise typer.Exit(code=EXIT_CODE_ERROR)
