"""CLI: chat-history stats|analytics"""

from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from chat_history.errors import ChatHistoryError
from chat_history.models.filters import PRESET_DAYS, preset_range

console = Console()


def _get_client(table_id: Optional[str] = None):
    from chat_history.cli.main import _get_client
    return _get_client(table_id)


def _run(coro):
    from chat_history.cli.main import _run
    return _run(coro)


@click.command("stats")
@click.option("-t", "--table", "table_id", default=None)
@click.option("--json-output", "--json", is_flag=True)
def stats_cmd(table_id, json_output):
    """Stat cards and the most recent sessions."""

    async def _stats():
        client = _get_client(table_id)
        try:
            with console.status("Loading..."):
                summary = await client.dashboard()
        except ChatHistoryError as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.close()

        if summary is None:
            console.print("[yellow]No table configuration selected.[/yellow]")
            return
        if json_output:
            click.echo(summary.model_dump_json(indent=2))
            return
        for stat in summary.stats:
            console.print(f"[bold]{stat.title}:[/bold] {stat.value}")
        table = Table(title="Recent sessions")
        table.add_column("Session", style="bold")
        table.add_column("Messages", justify="right")
        table.add_column("Last message")
        for s in summary.recent_sessions:
            table.add_row(s.session_id, str(s.message_count), s.last_message_at)
        console.print(table)

    _run(_stats())


@click.command("analytics")
@click.option("-t", "--table", "table_id", default=None)
@click.option("--from", "date_from", default=None, metavar="YYYY-MM-DD")
@click.option("--to", "date_to", default=None, metavar="YYYY-MM-DD")
@click.option("--preset", type=click.Choice(list(PRESET_DAYS)), default=None)
@click.option("--json-output", "--json", is_flag=True)
def analytics_cmd(table_id, date_from, date_to, preset, json_output):
    """Sessions per day, split by the table's classifier (default: last 30 days)."""
    if preset:
        date_from, date_to = preset_range(preset)

    async def _analytics():
        client = _get_client(table_id)
        try:
            with console.status("Analyzing..."):
                report = await client.analyze(date_from, date_to)
        except ChatHistoryError as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.close()

        if report is None:
            console.print("[yellow]No table configuration selected.[/yellow]")
            return
        if json_output:
            click.echo(report.model_dump_json(indent=2))
            return
        console.print(f"[bold]{report.date_from} → {report.date_to}[/bold]")
        console.print(f"Sessions: {report.total_sessions}  Messages: {report.total_messages}")
        for part in report.pie:
            console.print(f"  [{part.color}]■[/] {part.name}: {part.value}")
        table = Table(title="Sessions per day")
        table.add_column("Date")
        for part in report.pie:
            table.add_column(part.name, justify="right")
        for bucket in report.by_day:
            table.add_row(bucket.date, str(bucket.positive), str(bucket.negative))
        console.print(table)

    _run(_analytics())
