"""Command line interface for sunset-bot operators."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from sunset_bot.core.errors import SunsetBotError
from sunset_bot.core.models import init_db
from sunset_bot.core.tenants import TenantSettings
from sunset_bot.core.daemon import build_bot
from sunset_bot.core.windows import WindowName, compute_window, get_zone
from sunset_bot.monitoring.logging import configure_logging, get_logger
from sunset_bot.utils.config import get_config

logger = get_logger(__name__)

WINDOW_CHOICES = [name.value for name in WindowName]


def _fmt(value: Optional[datetime], zone) -> str:
    if value is None:
        return "-"
    return f"{value.isoformat()}  [dim]({value.astimezone(zone).isoformat()})[/]"


def command_init_db(console: Console) -> int:
    """Create tables and the listing view in the configured database."""

    config = get_config()
    init_db(config.database.url)
    console.print(f"[green]Schema ready[/] at {config.database.url}")
    return 0


def command_window(console: Console, window: str, timezone_name: Optional[str], auto_move: bool) -> int:
    """Print the UTC bounds a window resolves to right now."""

    config = get_config()
    zone = get_zone(timezone_name, config.app.default_timezone)
    name = WindowName(window)
    computed = compute_window(name, datetime.now(timezone.utc), zone, auto_move=auto_move)

    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan")
    table.add_column(justify="left")
    table.add_row("Window", name.label)
    table.add_row("Timezone", str(zone))
    table.add_row("Start (incl.)", _fmt(computed.start, zone))
    table.add_row("End (excl.)", _fmt(computed.end, zone))
    table.add_row("Bucket", computed.attribute.value if computed.attribute else "-")
    table.add_row("Overdue since", _fmt(computed.overdue_since, zone))

    console.print(table)
    return 0


def command_tasks(console: Console, slack_user_id: str, window: str) -> int:
    """Show the tasks a Slack user would see for a window."""

    config = get_config()
    bot = build_bot(config)
    name = WindowName(window)

    tenant_user_id = bot.tenants.resolve_tenant_user_id(slack_user_id)
    if not tenant_user_id:
        console.print(f"[yellow]No tenant-user linked to Slack user {slack_user_id}[/]")
        return 1

    settings: TenantSettings = bot.tenants.resolve_settings(tenant_user_id)
    tasks = bot.list_tasks(tenant_user_id, name, settings)

    table = Table(
        box=box.ROUNDED,
        expand=True,
        title=f"{name.label} · {tenant_user_id} · {settings.timezone}"
        + (" · auto-move" if settings.auto_move and name is WindowName.TODAY else ""),
    )
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Done", justify="center")
    table.add_column("Title")
    for task in tasks:
        table.add_row(str(task.id), "✓" if task.is_completed else "", task.task_title)

    if not tasks:
        console.print(f"[dim]No to-dos for {name.label}[/]")
    else:
        console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""

    parser = argparse.ArgumentParser(description="sunset-bot command line interface")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create tables and the vw_tasks view (development databases)")

    tasks_parser = subparsers.add_parser("tasks", help="List the to-dos a Slack user sees for a window")
    tasks_parser.add_argument("slack_user_id", help="Slack user ID (e.g. U012ABCDEF)")
    tasks_parser.add_argument("window", choices=WINDOW_CHOICES)

    window_parser = subparsers.add_parser("window", help="Show the UTC bounds of a window")
    window_parser.add_argument("window", choices=WINDOW_CHOICES)
    window_parser.add_argument("--timezone", help="IANA timezone (default: SUNSET_DEFAULT_TIMEZONE)")
    window_parser.add_argument("--auto-move", action="store_true", help="Include overdue incomplete tasks in today")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""

    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    configure_logging(config.logging.level, config.logging.format)
    console = Console()

    try:
        if args.command == "init-db":
            return command_init_db(console)

        if args.command == "tasks":
            return command_tasks(console, args.slack_user_id, args.window)

        if args.command == "window":
            return command_window(console, args.window, args.timezone, args.auto_move)
    except SunsetBotError as e:
        logger.error("cli.command.failed", command=args.command, error=str(e))
        console.print(f"[red]{e}[/]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":  # pragma: no cover - manual execution
    sys.exit(main())
