"""
extract_audio.cli - Typer CLI entry point.

Provides the extract, inspect and init-config commands.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from extract_audio import __version__
from extract_audio.config import ExtractConfig, build_config, create_default_config, write_config
from extract_audio.exceptions import ConfigError, ReadError, ValidationError
from extract_audio.io import write_json
from extract_audio.logging import configure_logging
from extract_audio.pipeline import RunSummary, inspect_source, run_extraction
from extract_audio.utils import format_size, plural
from extract_audio.validation import check_disk_space, validate_input_file

app = typer.Typer(
    name="extract-audio",
    help="Extract embedded audio files from Arrow IPC and Parquet files.\n\n"
    "Each row's binary audio column is written byte-for-byte to its own file, "
    "named after the row's identifier column.",
    add_completion=False,
)
console = Console()

DEFAULT_CONFIG_NAME = "extract-audio.yaml"


def version_callback(value: bool) -> None:
    if value:
        console.print(f"extract-audio {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """extract-audio - dump audio payloads from columnar files."""
    pass


def _load_config(config_file: Path | None, **overrides) -> ExtractConfig:
    try:
        return build_config(config_file, **overrides)
    except ConfigError as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/red]")
        raise typer.Exit(1)


def print_summary(summary: RunSummary) -> None:
    table = Table(title="Extraction Summary")
    table.add_column("Outcome", style="cyan")
    table.add_column("Rows", justify="right", style="green")

    table.add_row("Written", str(summary.written))
    table.add_row("Skipped (null payload)", str(summary.skipped_null))
    table.add_row("Skipped (decode failure)", str(summary.decode_failed))
    table.add_row("Failed (write error)", str(summary.write_failed))
    if summary.fallback_names:
        table.add_row("[dim]Named by row number[/dim]", f"[dim]{summary.fallback_names}[/dim]")
    console.print(table)


@app.command("extract")
def extract_cmd(
    input_path: Path = typer.Option(..., "--input", "-i", help="Arrow IPC or Parquet file"),
    output_dir: Path = typer.Option(..., "--output", "-o", help="Directory for audio files"),
    container_format: str | None = typer.Option(
        None, "--format", "-f", help="Container format: parquet (default) or arrow"
    ),
    batch_size: int | None = typer.Option(
        None, "--batch-size", "-b", help="Maximum rows held in memory at once"
    ),
    payload_column: str | None = typer.Option(
        None, "--payload-column", help="Audio bytes column (struct fields as audio.bytes)"
    ),
    identifier_column: str | None = typer.Option(
        None, "--id-column", help="Filename column (struct fields as audio.path)"
    ),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Only extract the first N rows"),
    no_infer_extension: bool = typer.Option(
        False,
        "--no-infer-extension",
        help="Don't add an extension guessed from the audio bytes to bare names",
    ),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help=f"YAML settings file (see {DEFAULT_CONFIG_NAME})"
    ),
    summary_json: Path | None = typer.Option(
        None, "--summary-json", help="Also write the run summary as JSON"
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Log every skipped or failed row"),
) -> None:
    """Extract every audio payload of an input file into a directory."""
    configure_logging(verbose=debug)

    config = _load_config(
        config_file,
        input_path=input_path,
        output_dir=output_dir,
        container_format=container_format,
        batch_size=batch_size,
        payload_column=payload_column,
        identifier_column=identifier_column,
        limit=limit,
        infer_extension=False if no_infer_extension else None,
        debug=debug,
    )

    try:
        info = validate_input_file(config.input_path)
        disk = check_disk_space(config.output_dir, info["size_bytes"])
    except ValidationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not disk["sufficient"]:
        console.print(
            f"[yellow]Warning: {format_size(disk['available_bytes'])} free at "
            f"{config.output_dir}, input is {format_size(info['size_bytes'])}[/yellow]"
        )

    console.print(
        f"[cyan]Extracting audio from {config.input_path.name} "
        f"({config.container_format.value}, {format_size(info['size_bytes'])})...[/cyan]"
    )

    with console.status("Reading batches...") as status:
        summary = run_extraction(
            config,
            on_batch=lambda s: status.update(f"Processed {plural(s.rows, 'row')}..."),
        )

    if summary.payload_column:
        console.print(
            f"[dim]  payload: {summary.payload_column}, "
            f"identifier: {summary.identifier_column}[/dim]"
        )

    print_summary(summary)

    if summary_json:
        write_json(summary_json, summary.as_dict())
        console.print(f"[dim]  Summary written to {summary_json}[/dim]")

    if not summary.ok:
        console.print(f"[red]Error: Extraction aborted: {summary.fatal_error}[/red]")
        if summary.written:
            console.print(
                f"[dim]  {plural(summary.written, 'file')} already written "
                f"to {config.output_dir} were kept[/dim]"
            )
        raise typer.Exit(1)

    if summary.first_row_error and not debug:
        console.print(f"[dim]  First skipped row: {summary.first_row_error}[/dim]")
        console.print("[dim]  Re-run with --debug to list every skipped row[/dim]")

    console.print(
        f"\n[green]✓[/green] Wrote {plural(summary.written, 'file')} "
        f"({format_size(summary.bytes_written)}) to {config.output_dir}, "
        f"skipped {summary.skipped}, failed {summary.write_failed}"
    )


@app.command("inspect")
def inspect_cmd(
    input_path: Path = typer.Option(..., "--input", "-i", help="Arrow IPC or Parquet file"),
    container_format: str | None = typer.Option(
        None, "--format", "-f", help="Container format: parquet (default) or arrow"
    ),
    payload_column: str | None = typer.Option(None, "--payload-column"),
    identifier_column: str | None = typer.Option(None, "--id-column"),
    config_file: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Show the input schema and which columns extraction would use."""
    config = _load_config(
        config_file,
        input_path=input_path,
        output_dir=Path("."),
        container_format=container_format,
        payload_column=payload_column,
        identifier_column=identifier_column,
    )

    try:
        result = inspect_source(config)
    except ReadError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    selected = {result["payload"]: "payload", result["identifier"]: "identifier"}

    table = Table(title=f"Schema: {config.input_path.name}")
    table.add_column("Column", style="cyan")
    table.add_column("Type")
    table.add_column("Kind", style="dim")
    table.add_column("Role", style="green")
    for row in result["columns"]:
        table.add_row(row["column"], row["type"], row["kind"], selected.get(row["column"], ""))
    console.print(table)

    if result["error"]:
        console.print(f"[red]Error: {result['error']}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[green]✓[/green] payload: [cyan]{result['payload']}[/cyan], "
        f"identifier: [cyan]{result['identifier']}[/cyan]"
    )


@app.command("init-config")
def init_config_cmd(
    path: Path = typer.Argument(Path(DEFAULT_CONFIG_NAME), help="Config file to create"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a settings file with the default column names and batch size."""
    if path.exists() and not force:
        console.print(f"[red]Error: '{path}' already exists[/red]")
        raise typer.Exit(1)

    write_config(create_default_config(), path)
    console.print(f"[green]✓[/green] Wrote default settings to {path}")
