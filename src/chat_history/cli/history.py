"""CLI: chat-history history|export"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from chat_history.errors import ExportEmptyError, ExportError
from chat_history.history import HistoryResult, ResultStatus
from chat_history.models.filters import PRESET_DAYS, FilterSet
from chat_history.models.table import TableConfig

console = Console()


def _get_client(table_id: Optional[str] = None):
    from chat_history.cli.main import _get_client
    return _get_client(table_id)


def _run(coro):
    from chat_history.cli.main import _run
    return _run(coro)


def build_filters(
    pairs: tuple[str, ...],
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    preset: Optional[str] = None,
    page: int = 1,
) -> FilterSet:
    updates: dict[str, Optional[str]] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--filter")
        updates[key.strip()] = value.strip()
    filters = FilterSet().with_filters(updates)
    if preset:
        filters = filters.with_preset(preset)
    if date_from:
        filters = filters.with_filter("from", date_from)
    if date_to:
        filters = filters.with_filter("to", date_to)
    return filters.with_page(page)


def filter_options(fn):
    fn = click.option("-t", "--table", "table_id", default=None, help="Table configuration id")(fn)
    fn = click.option("-f", "--filter", "pairs", multiple=True, metavar="KEY=VALUE",
                      help="Filter value, e.g. q=radiograf or special_request=requested")(fn)
    fn = click.option("--from", "date_from", default=None, metavar="YYYY-MM-DD")(fn)
    fn = click.option("--to", "date_to", default=None, metavar="YYYY-MM-DD")(fn)
    fn = click.option("--preset", type=click.Choice(list(PRESET_DAYS)), default=None, help="Quick date range")(fn)
    return fn


def render_page(config: TableConfig, result: HistoryResult, expand: bool) -> Table:
    page = result.page
    primary = config.primary_column
    others = config.secondary_columns
    title = f"{config.name} — page {page.page} of {max(page.total_pages, 1)} ({page.total_count} sessions)"
    table = Table(title=title, show_lines=True)
    table.add_column(primary.header, ratio=3)
    for column in others:
        table.add_column(column.header)
    for session in page.sessions():
        table.add_row(
            primary.display(session.first, session.messages),
            *(column.display(session.first, session.messages) for column in others),
        )
        if expand:
            for message in session.messages:
                table.add_row(f"[dim]{message.created_at}[/dim]\n{primary.display(message, session.messages)}")
    return table


@click.command("history")
@filter_options
@click.option("-p", "--page", default=1, type=click.IntRange(min=1))
@click.option("-e", "--expand", is_flag=True, help="Show every message of each session")
@click.option("--json-output", "--json", is_flag=True)
def history_cmd(table_id, pairs, date_from, date_to, preset, page, expand, json_output):
    """Show one page of sessions matching the filters."""
    filters = build_filters(pairs, date_from, date_to, preset, page)

    async def _history():
        client = _get_client(table_id)
        try:
            view = client.history_view(filters)
            with console.status("Loading sessions..."):
                result = await view.refresh()
        finally:
            await client.close()

        if json_output:
            click.echo(result.model_dump_json(indent=2))
            if result.status == ResultStatus.FAILED:
                raise SystemExit(1)
            return
        if result.status == ResultStatus.INACTIVE:
            console.print("[yellow]No table configuration selected.[/yellow]")
        elif result.status == ResultStatus.FAILED:
            console.print(f"[red]{result.error}[/red]")
            raise SystemExit(1)
        elif result.status == ResultStatus.EMPTY:
            total = result.page.total_count if result.page else 0
            if total:
                console.print(f"[yellow]Page {filters.page} is out of range ({total} sessions).[/yellow]")
            else:
                console.print("[yellow]No sessions match the filters.[/yellow]")
        else:
            console.print(render_page(client.current, result, expand))
            params = view.query_params()
            if params:
                console.print(f"[dim]filters: {json.dumps(params, ensure_ascii=False)}[/dim]")

    _run(_history())


@click.command("export")
@filter_options
@click.option("-o", "--output", type=click.Path(file_okay=False, path_type=Path), default=Path("."))
def export_cmd(table_id, pairs, date_from, date_to, preset, output):
    """Export every session matching the filters as CSV."""
    filters = build_filters(pairs, date_from, date_to, preset)

    async def _export():
        client = _get_client(table_id)
        try:
            with console.status("Exporting..."):
                export = await client.export(filters)
        except ExportEmptyError as e:
            console.print(f"[yellow]{e}[/yellow]")
            return
        except ExportError as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(1)
        finally:
            await client.close()

        if export is None:
            console.print("[yellow]No table configuration selected.[/yellow]")
            return
        path = export.write_to(output)
        console.print(f"[green]Exported {export.row_count} messages from {export.session_count} sessions to {path}[/green]")

    _run(_export())
