#!/usr/bin/env python3
"""
Command-line interface for Paranoid Toolkit.

Provides configuration display, soft delete statistics and purging of
destroyed rows.
"""

import logging
import sys
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable
from sqlalchemy import MetaData, Table, create_engine, delete, func, inspect, select
from sqlalchemy.engine import Connection, Engine

from . import __version__
from .config import get_config
from .soft_delete import Visibility

console = Console()
logger = logging.getLogger(__name__)


def _engine(database_url: Optional[str]) -> Engine:
    config = get_config()
    url = database_url or config.database_url
    if not url:
        raise click.UsageError(
            "Database URL required. Set PARANOID_DATABASE_URL or use --database-url"
        )
    return create_engine(url, echo=config.echo_sql)


def soft_delete_tables(engine: Engine) -> List[str]:
    """Return the names of tables carrying a ``deleted_at`` column."""
    inspector = inspect(engine)
    return [
        table_name
        for table_name in inspector.get_table_names()
        if "deleted_at" in {col["name"] for col in inspector.get_columns(table_name)}
    ]


def table_stats(conn: Connection, table: Table) -> Dict[str, int]:
    """Count live and destroyed rows of a reflected table."""
    stats = {}
    for visibility in Visibility:
        stmt = select(func.count()).select_from(table)
        criterion = visibility.criterion(table.c.deleted_at)
        if criterion is not None:
            stmt = stmt.where(criterion)
        stats[visibility.value] = conn.execute(stmt).scalar_one()
    return stats


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Paranoid Toolkit - soft delete tools for SQLAlchemy models."""
    config = get_config()
    config.configure_logging()
    if ctx.invoked_subcommand is None:
        console.print(
            Panel.fit(
                f"[bold blue]Paranoid Toolkit[/bold blue] v{__version__}\n"
                "[dim]Soft delete tools for SQLAlchemy models[/dim]\n"
                f"Environment: [bold]{config.environment}[/bold]\n\n"
                "Use [bold]paranoid --help[/bold] to see available commands.",
                border_style="blue",
            )
        )


@cli.group()
def config() -> None:
    """Inspect toolkit configuration."""
    pass


@config.command("show")
@click.option("--format", type=click.Choice(["table", "json", "yaml"]), default="table")
def config_show(format: str) -> None:
    """Display current configuration."""
    try:
        config_dict = get_config().to_dict()

        if format == "json":
            console.print_json(data=config_dict)
        elif format == "yaml":
            import yaml

            console.print(yaml.safe_dump(config_dict, default_flow_style=False))
        else:
            table = RichTable(title="Paranoid Configuration", show_header=True)
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")

            for setting, value in config_dict.items():
                if value is None:
                    value = "[dim]Not configured[/dim]"
                elif isinstance(value, bool):
                    value = "✓" if value else "✗"
                table.add_row(setting, str(value))

            console.print(table)

    except Exception as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.option(
    "--database-url", envvar="PARANOID_DATABASE_URL", help="Database connection URL"
)
def stats(database_url: Optional[str]) -> None:
    """Show live and destroyed row counts per soft delete table."""
    try:
        engine = _engine(database_url)
        tables = soft_delete_tables(engine)
        if not tables:
            console.print("[yellow]No tables with a deleted_at column found[/yellow]")
            return

        metadata = MetaData()
        report = RichTable(title="Soft Delete Statistics", show_header=True)
        report.add_column("Table", style="cyan")
        report.add_column("Live", justify="right", style="green")
        report.add_column("Destroyed", justify="right", style="red")
        report.add_column("Total", justify="right")

        with engine.connect() as conn:
            for table_name in tables:
                table = Table(table_name, metadata, autoload_with=conn)
                counts = table_stats(conn, table)
                report.add_row(
                    table_name,
                    str(counts[Visibility.LIVE.value]),
                    str(counts[Visibility.ONLY_DESTROYED.value]),
                    str(counts[Visibility.WITH_DESTROYED.value]),
                )

        console.print(report)

    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]Error collecting statistics: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("table_name")
@click.option(
    "--older-than",
    type=int,
    required=True,
    help="Only purge rows destroyed more than this many days ago",
)
@click.option(
    "--database-url", envvar="PARANOID_DATABASE_URL", help="Database connection URL"
)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def purge(
    table_name: str, older_than: int, database_url: Optional[str], yes: bool
) -> None:
    """Permanently remove destroyed rows of TABLE_NAME."""
    if older_than < 0:
        raise click.BadParameter("must not be negative", param_hint="--older-than")

    try:
        engine = _engine(database_url)
        if table_name not in soft_delete_tables(engine):
            console.print(
                f"[red]Error: table '{table_name}' has no deleted_at column[/red]"
            )
            sys.exit(1)

        cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(
            days=older_than
        )

        if not yes:
            click.confirm(
                f"Permanently delete rows of '{table_name}' destroyed before "
                f"{cutoff.isoformat()}?",
                abort=True,
            )

        with engine.begin() as conn:
            table = Table(table_name, MetaData(), autoload_with=conn)
            stmt: Any = delete(table).where(
                Visibility.ONLY_DESTROYED.criterion(table.c.deleted_at),
                table.c.deleted_at < cutoff,
            )
            removed = conn.execute(stmt).rowcount

        logger.info(f"Purged {removed} row(s) from {table_name}")
        console.print(f"[green]✓ Purged {removed} row(s) from {table_name}[/green]")

    except (click.Abort, click.ClickException):
        raise
    except Exception as e:
        console.print(f"[red]Error purging {table_name}: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli()
