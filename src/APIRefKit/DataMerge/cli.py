"""
Typer CLI for the reference data merge.

NAVMAP:
- CLI_ROOT: Root Typer app with global logging/profile options
- MERGE: ``merge`` splices the data files into the page
- CHECK: ``check`` locates the region without writing
- CONFIG: ``config show`` prints the effective settings
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, List, Optional

import typer
import yaml
from pydantic import ValidationError

from .document import locate_region
from .errors import ConfigLoadError, DataMergeError, MarkerLocationError, format_error
from .io import read_text
from .logging import get_logger, log_event
from .merge import MergePlan, run_merge
from .settings import MergeSettings, build_settings

# ============================================================================
# CLI Application Setup
# ============================================================================

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
    help="[bold]DataMerge[/bold] — Splice generated API data files into APIReference.html.",
)

config_app = typer.Typer(no_args_is_help=True, rich_markup_mode="rich")
app.add_typer(config_app, name="config", help="Introspect configuration")


@dataclass
class CLIState:
    """Global options captured by the root callback."""

    profile: Optional[Path] = None
    log_level: Optional[str] = None
    log_format: Optional[str] = None


@app.callback()
def root_callback(
    ctx: typer.Context,
    profile: Annotated[
        Optional[Path],
        typer.Option("--profile", help="TOML/YAML profile layered under ENV and CLI"),
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="Logging level (DEBUG|INFO|WARNING|ERROR)")
    ] = None,
    log_format: Annotated[
        Optional[str], typer.Option("--log-format", help="Logging format (console|json)")
    ] = None,
) -> None:
    """
    [bold]Reference data merge[/bold]

    [bold yellow]Precedence:[/bold yellow] CLI args > ENV vars > profile > defaults
    """
    ctx.obj = CLIState(profile=profile, log_level=log_level, log_format=log_format)


def _settings(ctx: typer.Context, **overrides: Any) -> MergeSettings:
    state: CLIState = ctx.obj or CLIState()
    try:
        return build_settings(
            state.profile,
            log_level=state.log_level,
            log_format=state.log_format,
            **overrides,
        )
    except ConfigLoadError as exc:
        typer.secho(f"✗ Configuration Error: {format_error(exc)}", err=True, fg="red")
        raise typer.Exit(code=2) from exc
    except ValidationError as exc:
        typer.secho(f"✗ Configuration Error: {exc}", err=True, fg="red")
        raise typer.Exit(code=2) from exc


def _logger(settings: MergeSettings, command: str):
    logger = get_logger(
        level=settings.log_level.value,
        fmt=settings.log_format.value,
        base_fields={"html_file": settings.html_file},
    )
    return logger.bind(command=command, dry_run=settings.dry_run or None)


# ============================================================================
# Commands
# ============================================================================


@app.command("merge")
def merge_command(
    ctx: typer.Context,
    docs_dir: Annotated[
        Optional[Path], typer.Option("--docs-dir", help="Directory holding page and data files")
    ] = None,
    html_file: Annotated[
        Optional[str], typer.Option("--html-file", help="Target page relative to --docs-dir")
    ] = None,
    data_file: Annotated[
        Optional[List[str]],
        typer.Option("--data-file", help="Data file to merge (repeat to set the order)"),
    ] = None,
    start_marker: Annotated[
        Optional[str], typer.Option("--start-marker", help="Literal opening the data block")
    ] = None,
    anchor: Annotated[
        Optional[str], typer.Option("--anchor", help="Unique literal following the data block")
    ] = None,
    dry_run: Annotated[
        Optional[bool],
        typer.Option("--dry-run/--write", help="Report without writing the page"),
    ] = None,
) -> None:
    """Merge all data files into the reference page."""

    settings = _settings(
        ctx,
        docs_dir=docs_dir,
        html_file=html_file,
        data_files=data_file or None,
        start_marker=start_marker,
        anchor=anchor,
        dry_run=dry_run,
    )
    logger = _logger(settings, "merge")

    if not settings.html_path.is_file():
        log_event(
            logger,
            "error",
            f"Target page not found: {settings.html_path}",
            stage="document",
            error_code="HTML_MISSING",
        )
        raise typer.Exit(code=1)

    try:
        run_merge(MergePlan.from_settings(settings), logger=logger)
    except MarkerLocationError as exc:
        log_event(
            logger,
            "error",
            format_error(exc),
            stage=exc.stage,
            error_code="MARKER_NOT_LOCATED",
            marker=exc.marker,
        )
        raise typer.Exit(code=1) from exc
    except UnicodeDecodeError as exc:
        log_event(
            logger,
            "error",
            f"Cannot decode {settings.html_path} as UTF-8: {exc}",
            stage="document",
            error_code="HTML_UNDECODABLE",
        )
        raise typer.Exit(code=1) from exc
    except (DataMergeError, OSError) as exc:
        log_event(logger, "error", str(exc), stage="merge", error_code="MERGE_FAILED")
        raise typer.Exit(code=1) from exc


@app.command("check")
def check_command(
    ctx: typer.Context,
    docs_dir: Annotated[
        Optional[Path], typer.Option("--docs-dir", help="Directory holding the page")
    ] = None,
    html_file: Annotated[
        Optional[str], typer.Option("--html-file", help="Target page relative to --docs-dir")
    ] = None,
    start_marker: Annotated[
        Optional[str], typer.Option("--start-marker", help="Literal opening the data block")
    ] = None,
    anchor: Annotated[
        Optional[str], typer.Option("--anchor", help="Unique literal following the data block")
    ] = None,
) -> None:
    """Locate the data block and report its span without writing."""

    settings = _settings(
        ctx,
        docs_dir=docs_dir,
        html_file=html_file,
        start_marker=start_marker,
        anchor=anchor,
    )
    try:
        html = read_text(settings.html_path)
        span = locate_region(
            html,
            start_marker=settings.start_marker,
            anchor=settings.anchor,
            end_token=settings.end_token,
        )
    except (OSError, UnicodeDecodeError) as exc:
        typer.secho(f"✗ Cannot read {settings.html_path}: {exc}", err=True, fg="red")
        raise typer.Exit(code=1) from exc
    except MarkerLocationError as exc:
        typer.secho(f"✗ {format_error(exc)}", err=True, fg="red")
        raise typer.Exit(code=1) from exc

    typer.echo(f"{settings.html_path}: chars {span.start} to {span.end} ({span.length} chars)")


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    fmt: Annotated[str, typer.Option("--format", help="Output format (yaml|json)")] = "yaml",
) -> None:
    """Display effective configuration after layering (profile + ENV + CLI)."""

    settings = _settings(ctx)
    data = settings.model_dump(mode="json")
    if fmt == "json":
        typer.echo(json.dumps(data, indent=2))
    elif fmt == "yaml":
        typer.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    else:
        typer.secho(f"✗ Unknown format: {fmt}", err=True, fg="red")
        raise typer.Exit(code=2)


def main() -> None:
    """Console script entry point."""

    app()
