"""CLI: chat-history tables"""

import click
from rich.console import Console
from rich.table import Table

from chat_history.registry import TableRegistry

console = Console()


@click.command("tables")
def tables_cmd():
    """List the configured history tables."""
    registry = TableRegistry.default()
    table = Table(title=f"Tables ({len(registry)})")
    table.add_column("ID", style="bold")
    table.add_column("Backend table")
    table.add_column("Name")
    table.add_column("Filters")
    for config in registry.all():
        table.add_row(config.id, config.table_name, config.name, ", ".join(f.id for f in config.filters))
    console.print(table)
