"""
Chat history CLI — `chat-history` command.

Commands:
  chat-history tables        List table configurations
  chat-history history       Show one page of filtered sessions
  chat-history export        Write the filtered sessions as CSV
  chat-history stats         Dashboard stat cards and recent sessions
  chat-history analytics     Session analytics for a date range
"""

import asyncio
from typing import Optional

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install chat-history-dashboard[cli]")

from pydantic import ValidationError

from chat_history.client import AsyncChatHistory
from chat_history.config import Settings, load_settings
from chat_history.logging_config import consumers_for, setup_logging

console = Console()


def _load_settings() -> Settings:
    try:
        return load_settings()
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][0]) for err in e.errors())
        console.print(f"[red]Missing or invalid settings: {missing}. Set them in the environment or .env.[/red]")
        raise SystemExit(1)


def _get_client(table_id: Optional[str] = None) -> AsyncChatHistory:
    settings = _load_settings()
    setup_logging(settings.LOG_LEVEL, consumers_for(settings.LOG_FILE))
    client = AsyncChatHistory.from_settings(settings)
    if table_id:
        if table_id not in client.registry:
            console.print(f"[red]Unknown table {table_id!r}. Available: {', '.join(client.registry.ids())}[/red]")
            raise SystemExit(1)
        client.select_table(table_id)
    return client


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
def main():
    """Chat history CLI — browse, analyze and export chatbot conversations."""


# Register subcommands from separate modules
from chat_history.cli.history import export_cmd, history_cmd
from chat_history.cli.stats import analytics_cmd, stats_cmd
from chat_history.cli.tables import tables_cmd

main.add_command(tables_cmd)
main.add_command(history_cmd)
main.add_command(export_cmd)
main.add_command(stats_cmd)
main.add_command(analytics_cmd)


if __name__ == "__main__":
    main()
