"""Rich theme and reusable UI helpers for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

LIFEBOOK_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "stat.label": "dim",
    "stat.value": "bold",
    "phase.interview": "cyan",
    "phase.writing": "magenta",
})


def get_console() -> Console:
    """Return a Console instance with the lifebook theme applied."""
    return Console(theme=LIFEBOOK_THEME)


def app_header(title: str = "lifebook") -> Rule:
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying label/value pairs."""
    lines = [f"  [stat.label]{label}:[/] [stat.value]{value}[/]" for label, value in fields.items()]
    return Panel("\n".join(lines), title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def sessions_table(rows: list[dict]) -> Table:
    """Return a table of persisted session summaries."""
    table = Table(box=box.SIMPLE_HEAD, header_style="bold")
    table.add_column("Book", style="bold")
    table.add_column("Phase")
    table.add_column("Chapter", justify="right")
    table.add_column("Notes", justify="right")
    table.add_column("Turns", justify="right")
    table.add_column("Manuscript", justify="right")
    for row in rows:
        phase = row["phase"]
        table.add_row(
            row["book_id"],
            f"[phase.{phase}]{phase}[/]",
            f"{row['current_chapter_index']}/{row['chapters']}",
            str(row["notes"]),
            str(row["turns"]),
            f"{row['manuscript_chars']} chars",
        )
    return table
