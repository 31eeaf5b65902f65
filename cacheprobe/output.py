from datetime import datetime
from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from cacheprobe.logic.rules import PLACEHOLDER

INFO_COLUMNS = ("service", "layer", "enabled", "cache_header", "ttl")
LOG_COLUMNS = ("service", "layer", "enabled", "status", "ttl", "age")


def layer_rows(result, columns: Sequence[str]):
    for status in result.layers:
        values = (getattr(status, column) for column in columns)
        yield [status.name] + [PLACEHOLDER if value is None else str(value) for value in values]


def print_result(result, columns: Sequence[str] = LOG_COLUMNS, console: Optional[Console] = None) -> None:
    """Print one sample as a table, one row per cache layer."""
    console = console or Console()
    stamp = datetime.fromisoformat(result.timestamp.replace("Z", "+00:00"))

    console.print("")
    console.print("------------------------------------")
    console.print("[bold blue]WordPress URL:[/bold blue]", result.url)
    console.print("[bold blue]TimeStamp:[/bold blue]", stamp.strftime("%a, %d %b %Y %H:%M:%S GMT"))
    console.print("------------------------------------")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("name")
    for column in columns:
        table.add_column(column)
    for row in layer_rows(result, columns):
        table.add_row(*(Text(cell) for cell in row))
    console.print(table)
