"""
CLI entry point for nmpolicy.

This module provides the Typer-based command-line interface.

Commands:
    gen     Generate desired state from a policy, current state and cache
    eval    Evaluate a single capture expression against a state file
    parse   Show how a capture expression is parsed

Architecture Note:
    The CLI only loads files and renders output. Generation itself lives in
    nmpolicy.engine so it can be used programmatically.
"""

import json
import traceback
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nmpolicy import __version__
from nmpolicy.config import get_settings
from nmpolicy.engine import StateGenerator
from nmpolicy.errors import NMPolicyError
from nmpolicy.expression import parse
from nmpolicy.logging_config import configure_logging
from nmpolicy.report import generate_console_report, generate_json_report
from nmpolicy.resolver import evaluate
from nmpolicy.schema import (
    CachedState,
    dump_generated_state,
    load_cached_state,
    load_policy,
)
from nmpolicy.tree import dump_document, load_document

app = typer.Typer(
    name="nmpolicy",
    help="Resolve network-state policies into desired state.",
    add_completion=False,
    no_args_is_help=True,
)

# Status and reports; generated documents go to stdout via typer.echo
console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"nmpolicy version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    nmpolicy - Resolve network-state policies.

    Evaluates policy captures against the current state, reuses cached
    captures and produces the desired state.
    """
    pass


@app.command()
def gen(
    policy_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the policy YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    state_path: Annotated[
        Optional[Path],
        typer.Option(
            "--state",
            "-s",
            help="Path to the current state YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    cache_path: Annotated[
        Optional[Path],
        typer.Option(
            "--cache",
            "-c",
            help="Path to a cache or previously generated state YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--out",
            "-o",
            help="Write the generated state YAML here instead of stdout.",
            resolve_path=True,
        ),
    ] = None,
    report: Annotated[
        bool,
        typer.Option(
            "--report",
            help="Print a capture report to stderr.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Enable debug logging.",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Show full error tracebacks.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print a JSON report instead of YAML.",
        ),
    ] = False,
) -> None:
    """
    Generate desired state from a policy.

    The output holds desiredState, cache and metaInfo. Pass it back with
    --cache on the next run to reuse the resolved captures.

    Example:
        $ nmpolicy gen policy.yaml --state current.yaml --out generated.yaml
    """
    settings = _setup(verbose)

    try:
        policy = load_policy(policy_path)
        current_state = state_path.read_bytes() if state_path else None
        cache = load_cached_state(cache_path) if cache_path else CachedState()
    except Exception as e:
        _fail("load_error", f"Error loading input: {e}", json_output, debug)

    try:
        result = StateGenerator.from_settings(settings).generate(policy, current_state, cache)
    except NMPolicyError as e:
        _fail("generation_error", str(e), json_output, debug, error=e)

    if json_output:
        typer.echo(generate_json_report(result))
        return

    generated = dump_generated_state(result.state)
    if output:
        output.write_text(generated, encoding="utf-8")
    else:
        typer.echo(generated, nl=False)

    if report or output:
        generate_console_report(result, console=console, verbose=verbose)


@app.command("eval")
def eval_expression(
    expression: Annotated[
        str,
        typer.Argument(help="Capture expression to evaluate."),
    ],
    state_path: Annotated[
        Path,
        typer.Option(
            "--state",
            "-s",
            help="Path to the state YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Show full error tracebacks.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print errors in JSON format.",
        ),
    ] = False,
) -> None:
    """
    Evaluate one capture expression against a state file.

    Example:
        $ nmpolicy eval 'routes.running.destination=="0.0.0.0/0"' -s current.yaml
    """
    settings = _setup(False)

    try:
        root = load_document(state_path.read_bytes(), source=str(state_path))
        result = evaluate(parse(expression), root)
    except NMPolicyError as e:
        _fail("evaluation_error", str(e), json_output, debug, error=e)

    typer.echo(dump_document(result, sort_keys=settings.yaml_sort_keys).decode("utf-8"), nl=False)


@app.command("parse")
def parse_expression(
    expression: Annotated[
        str,
        typer.Argument(help="Capture expression to parse."),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output segments in JSON format.",
        ),
    ] = False,
) -> None:
    """
    Show the path segments of a capture expression.

    Example:
        $ nmpolicy parse 'routes.running.destination=="0.0.0.0/0"'
    """
    _setup(False)

    try:
        parsed = parse(expression)
    except NMPolicyError as e:
        _fail("parse_error", str(e), json_output, False, error=e)

    if json_output:
        segments = [
            {
                "name": segment.name,
                "position": segment.position,
                "filter": {
                    "field": segment.filter.field,
                    "literal": segment.filter.literal,
                } if segment.filter else None,
            }
            for segment in parsed.segments
        ]
        typer.echo(json.dumps({"expression": parsed.source, "segments": segments}, indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=3)
    table.add_column("Segment", style="cyan")
    table.add_column("Position", width=8)
    table.add_column("Filter")
    for index, segment in enumerate(parsed.segments, 1):
        eq_filter = f'== "{segment.filter.literal}"' if segment.filter else ""
        table.add_row(str(index), escape(segment.name), str(segment.position), escape(eq_filter))
    Console().print(table)


def _setup(verbose: bool):
    """Read settings and configure logging."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)
    return settings


def _fail(
    error_type: str,
    message: str,
    json_output: bool,
    debug: bool,
    error: NMPolicyError | None = None,
) -> None:
    """Report an error and exit with status 1."""
    if json_output:
        output = {
            "error": True,
            "error_type": error_type,
            "message": message,
        }
        if error is not None:
            output["details"] = error.to_dict()
        if debug:
            output["traceback"] = traceback.format_exc()
        typer.echo(json.dumps(output, indent=2, default=str))
    else:
        console.print(f"[red]{escape(message)}[/red]")
        if debug:
            console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
    raise typer.Exit(code=1)
