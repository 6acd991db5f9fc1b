"""
Console report generator for nmpolicy.

Renders a generation in the terminal with Rich: a header panel with the
generation stamp, a table of captures showing whether each came from the
cache, and an optional dump of the desired state.
"""

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from nmpolicy.engine import GenerationResult

# Source icons
ICON_CACHED = "[cyan]●[/cyan]"
ICON_RESOLVED = "[green]✓[/green]"


def generate_console_report(
    result: GenerationResult,
    console: Console | None = None,
    verbose: bool = False,
) -> None:
    """
    Print a console report for a generation.

    Args:
        result: The generation to report on
        console: Rich Console instance (creates one if not provided)
        verbose: Also print each captured state and the desired state
    """
    if console is None:
        console = Console()

    _print_header(console, result)
    console.print()

    if result.captures:
        _print_captures(console, result)
        console.print()

    if verbose:
        _print_documents(console, result)

    console.print(
        f"[dim]Captures: {len(result.captures)} | "
        f"Cached: {result.cached_count} | "
        f"Resolved: {result.resolved_count} | "
        f"Duration: {result.duration_ms:.1f}ms[/dim]"
    )


def _print_header(console: Console, result: GenerationResult) -> None:
    meta = result.state.meta_info
    header = Text()
    header.append(" Generated state ", style="bold")
    header.append("│ ", style="dim")
    header.append(f"version {meta.version}", style="bold cyan")
    console.print(Panel(header, expand=False))
    if meta.timestamp is not None:
        console.print(f"  [dim]Generated:[/dim] {meta.timestamp.isoformat()}")


def _print_captures(console: Console, result: GenerationResult) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Capture", style="cyan")
    table.add_column("Expression")
    table.add_column("Source", width=9)
    table.add_column("Timestamp", style="dim")

    for outcome in result.captures:
        icon = ICON_CACHED if outcome.used_cache else ICON_RESOLVED
        source = "cache" if outcome.used_cache else "resolved"
        timestamp = outcome.timestamp.isoformat() if outcome.timestamp else "-"
        expression = outcome.expression
        if len(expression) > 60:
            expression = expression[:57] + "..."
        table.add_row(icon, outcome.name, expression, source, timestamp)

    console.print(table)


def _print_documents(console: Console, result: GenerationResult) -> None:
    for outcome in result.captures:
        state = result.state.cache.capture[outcome.name].state
        console.print(f"[bold]{outcome.name}[/bold]")
        console.print(Syntax(state.decode("utf-8", errors="replace"), "yaml"))

    desired = result.state.desired_state
    if desired is not None:
        console.print("[bold]desiredState[/bold]")
        console.print(Syntax(desired.decode("utf-8", errors="replace"), "yaml"))
        console.print()
