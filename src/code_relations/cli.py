"""Command-line interface for the project relations analyzer."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .artifact import AnalysisOptions, ProjectRelations
from .config import Settings
from .errors import RelationsError
from .progress import ProgressEvent
from .service import RelationsAnalyzer
from .utils.logger import setup_logging

console = Console()
cli = typer.Typer(help="Build and inspect code relationship graphs for indexed projects.")

_MEMORY_BANK_OPTION = typer.Option(
    None,
    "--memory-bank",
    "-m",
    help="Memory Bank directory holding index-metadata.json.",
)


def _build_analyzer(memory_bank: Optional[Path]) -> RelationsAnalyzer:
    settings = Settings()
    if memory_bank is not None:
        settings.memory_bank_path = memory_bank.resolve()
    setup_logging(settings.log_level, settings.log_file)
    return RelationsAnalyzer(settings=settings)


def _print_progress(event: ProgressEvent) -> None:
    detail = f" ({event.current_file})" if event.current_file else ""
    if event.phase == "enriching" and event.total_nodes is not None:
        counts = f"{event.processed_nodes}/{event.total_nodes} nodes"
    else:
        counts = f"{event.processed_files}/{event.total_files} files"
    console.print(f"[cyan]{event.phase}[/cyan] {counts}{detail}")


def _summary_table(relations: ProjectRelations) -> Table:
    table = Table(title=f"Relations: {relations.project_id}")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Nodes", str(relations.stats.total_nodes))
    table.add_row("Edges", str(relations.stats.total_edges))
    table.add_row("Analyzed Files", str(relations.stats.analyzed_files))
    table.add_row("Time (ms)", str(relations.stats.analysis_time_ms))
    for node_type, count in sorted(relations.stats.nodes_by_type.items()):
        table.add_row(f"  {node_type}", str(count))
    return table


@cli.command()
def analyze(
    project_id: str = typer.Argument(..., help="Project identifier in the Memory Bank."),
    memory_bank: Optional[Path] = _MEMORY_BANK_OPTION,
    no_ai: bool = typer.Option(False, "--no-ai", help="Use template descriptions only."),
    max_files: Optional[int] = typer.Option(None, "--max-files", help="Analyze at most N files."),
    source_path: Optional[str] = typer.Option(None, "--source-path", help="Only files under this path."),
    include: Optional[List[str]] = typer.Option(None, "--include", help="Glob of files to keep."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", help="Glob of files to drop."),
    skip_if_current: bool = typer.Option(
        False, "--skip-if-current", help="Reuse the stored graph when the index is unchanged."
    ),
) -> None:
    """Analyze a project and write its relations.json."""

    options = AnalysisOptions(
        use_ai=not no_ai,
        max_files=max_files,
        include_patterns=list(include or []),
        exclude_patterns=list(exclude or []),
        force=not skip_if_current,
        source_path=source_path,
    )

    try:
        analyzer = _build_analyzer(memory_bank)
        relations = asyncio.run(analyzer.analyze_project(project_id, options, _print_progress))
    except RelationsError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Relations written to[/green] {analyzer.store.path_for(project_id)}")
    console.print(_summary_table(relations))


@cli.command()
def status(
    project_id: str = typer.Argument(..., help="Project identifier in the Memory Bank."),
    memory_bank: Optional[Path] = _MEMORY_BANK_OPTION,
) -> None:
    """Report whether a project's stored graph is missing, ready or outdated."""

    try:
        analyzer = _build_analyzer(memory_bank)
        result = analyzer.get_relations_status(project_id)
    except RelationsError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    if result.status == "none":
        console.print(f"[yellow]No relations found for {project_id}.[/yellow]")
        raise typer.Exit(code=0)

    colour = "green" if result.status == "ready" else "yellow"
    console.print(f"Status: [{colour}]{result.status}[/{colour}]")
    info = result.outdated_info
    if info is not None and info.is_outdated:
        console.print(f"Reason: {info.reason}")
        console.print(f"Stored hash:  {info.stored_hash}")
        console.print(f"Current hash: {info.current_hash}")
    console.print(_summary_table(result.relations))


def app() -> None:
    """Entry point used by the console script."""

    cli()


if __name__ == "__main__":  # pragma: no cover
    app()
