"""FOS Decisions CLI - discover, parse, enrich, vectorize and ingest ombudsman decisions"""

import sys
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich import box

from fosdecisions.dbs.adapters.jsonl_index_store import DecisionIndexStore
from fosdecisions.dbs.adapters.json_directory_store import JsonDirectoryStore
from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.dbs.postgres_db import PostgreSQLDatabase
from fosdecisions.models.options import DEFAULT_START_DATE, PipelineOptions
from fosdecisions.services.backfill_service import BackfillService
from fosdecisions.services.pipeline_service import PipelineService, parse_stages
from fosdecisions.services.report import StageReport
from fosdecisions.utils.settings.factory import settings_factory

__version__ = "0.1.0"

# Initialize Typer app and Rich consoles
app = typer.Typer(
    name="fos-pipeline",
    help="ETL pipeline for Financial Ombudsman Service published decisions",
    add_completion=False
)
console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Route loguru to stderr at INFO, or DEBUG when verbose"""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def display_reports(reports: List[StageReport]) -> None:
    """Summary table of per-stage record counts"""
    table = Table(title="Pipeline summary", box=box.SIMPLE)
    table.add_column("Stage", style="cyan")
    table.add_column("Processed", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")
    for report in reports:
        table.add_row(report.stage, str(report.processed), str(report.skipped), str(report.failed))
    console.print(table)


def fail(message: str) -> typer.Exit:
    err_console.print(f"[red]Error: {message}[/red]")
    return typer.Exit(1)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose)


@app.command()
def run(
    stage: str = typer.Option("all", "--stage", help="discover, parse, enrich, vectorize, ingest, all, or a comma-separated list"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run the browser headless"),
    start_date: str = typer.Option(DEFAULT_START_DATE, "--start-date", help="Earliest decision date (YYYY-MM-DD)"),
    end_date: Optional[str] = typer.Option(None, "--end-date", help="Latest decision date (YYYY-MM-DD)"),
    query: Optional[str] = typer.Option(None, "--query", help="Free-text search query"),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", help="Stop discovery after N pages"),
    max_results: Optional[int] = typer.Option(None, "--max-results", help="Stop discovery after N results"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Per-stage record limit"),
    download_delay: int = typer.Option(500, "--download-delay", help="Delay after each PDF download (ms)"),
    enrich_delay: int = typer.Option(1200, "--enrich-delay", help="Delay after each LLM call (ms)"),
    vector_delay: int = typer.Option(800, "--vector-delay", help="Delay after each embedding call (ms)"),
    page_wait: int = typer.Option(1200, "--page-wait", help="Wait after each pagination (ms)"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing stage output"),
    index: Optional[Path] = typer.Option(None, "--index", help="Path of decisions-index.jsonl"),
    pdf_dir: Optional[Path] = typer.Option(None, "--pdf-dir", help="PDF cache directory"),
    enrich_provider: Optional[str] = typer.Option(None, "--enrich-provider", help="openai or openrouter"),
    enrich_model: Optional[str] = typer.Option(None, "--enrich-model", help="Chat model for enrichment"),
    embedding_provider: Optional[str] = typer.Option(None, "--embedding-provider", help="openai or openrouter"),
    embedding_model: Optional[str] = typer.Option(None, "--embedding-model", help="Embedding model"),
    append: bool = typer.Option(False, "--append", help="Append discovered rows to the index"),
) -> None:
    """
    Run pipeline stages in canonical order
    """
    try:
        options = PipelineOptions(
            stages=parse_stages(stage),
            headless=headless,
            start_date=start_date,
            end_date=end_date,
            query=query,
            max_pages=max_pages,
            max_results=max_results,
            limit=limit,
            download_delay_ms=download_delay,
            enrich_delay_ms=enrich_delay,
            vector_delay_ms=vector_delay,
            page_wait_ms=page_wait,
            force=force,
            append=append,
            index_path=index,
            pdf_dir=pdf_dir,
            enrich_provider=enrich_provider,
            enrich_model=enrich_model,
            embedding_provider=embedding_provider,
            embedding_model=embedding_model,
        )
        reports = PipelineService(options).run()
    except Exception as e:
        logger.exception(f"Pipeline failed: {e}")
        raise fail(str(e))

    display_reports(reports)


@app.command()
def backfill(
    start_date: str = typer.Option(DEFAULT_START_DATE, "--start-date", help="First day of the backfill"),
    end_date: Optional[str] = typer.Option(None, "--end-date", help="Last day of the backfill (default: today)"),
    window_days: Optional[int] = typer.Option(None, "--window-days", help="Fixed window size in days (default: calendar months)"),
    retries: int = typer.Option(2, "--retries", help="Retries per stage per window"),
    retry_delay: int = typer.Option(5000, "--retry-delay", help="Delay between retries (ms)"),
    state: Optional[Path] = typer.Option(None, "--state", help="Backfill state file"),
    force: bool = typer.Option(False, "--force", help="Re-run windows already done"),
    stop_on_error: bool = typer.Option(False, "--stop-on-error", help="Stop at the first failed window"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="Run the browser headless"),
    index: Optional[Path] = typer.Option(None, "--index", help="Path of decisions-index.jsonl"),
    pdf_dir: Optional[Path] = typer.Option(None, "--pdf-dir", help="PDF cache directory"),
    download_delay: int = typer.Option(800, "--download-delay", help="Delay after each PDF download (ms)"),
    page_wait: int = typer.Option(1200, "--page-wait", help="Wait after each pagination (ms)"),
) -> None:
    """
    Discover and parse the archive window by window, resuming from saved state
    """
    try:
        options = PipelineOptions(
            headless=headless,
            index_path=index,
            pdf_dir=pdf_dir,
            download_delay_ms=download_delay,
            page_wait_ms=page_wait,
        )
        pipeline = PipelineService(options)
        runner = BackfillService(
            run_stage=pipeline.run_stage,
            layout=pipeline.layout,
            base_options=options,
            state_path=state,
            retries=retries,
            retry_delay_ms=retry_delay,
            stop_on_error=stop_on_error,
        )
        result = runner.run(start_date=start_date, end_date=end_date, window_days=window_days, force=force)
    except Exception as e:
        logger.exception(f"Backfill failed: {e}")
        raise fail(str(e))

    done = sum(1 for window in result.windows if window.status == "done")
    failed = sum(1 for window in result.windows if window.status == "failed")
    console.print(f"[green]{done}[/green] windows done, [red]{failed}[/red] failed, {len(result.windows)} total")


@app.command("init-db")
def init_db() -> None:
    """Create the fos_decisions table"""
    try:
        database = PostgreSQLDatabase(settings_factory.create_database_settings())
        database.create_tables()
        database.close()
    except Exception as e:
        raise fail(str(e))

    console.print("[green]✓ fos_decisions table ready[/green]")


@app.command()
def status(
    index: Optional[Path] = typer.Option(None, "--index", help="Path of decisions-index.jsonl"),
    pdf_dir: Optional[Path] = typer.Option(None, "--pdf-dir", help="PDF cache directory"),
) -> None:
    """Show file counts for every stage"""
    layout = DatasetLayout.from_settings(index_path=index, pdf_dir=pdf_dir)
    index_rows = len(DecisionIndexStore(layout.index_path).read())
    pdfs = len(list(layout.pdf_dir.glob("*.pdf"))) if layout.pdf_dir.exists() else 0

    table = Table(title=f"Dataset: {layout.root}", box=box.SIMPLE)
    table.add_column("Stage", style="cyan")
    table.add_column("Location")
    table.add_column("Count", justify="right", style="green")
    table.add_row("discover", str(layout.index_path), str(index_rows))
    table.add_row("pdfs", str(layout.pdf_dir), str(pdfs))
    table.add_row("parse", str(layout.parsed_dir), str(JsonDirectoryStore(layout.parsed_dir).count()))
    table.add_row("enrich", str(layout.enriched_dir), str(JsonDirectoryStore(layout.enriched_dir).count()))
    table.add_row("vectorize", str(layout.vectors_dir), str(JsonDirectoryStore(layout.vectors_dir).count()))
    console.print(table)


@app.command()
def version() -> None:
    """Show version"""
    console.print(f"[bold blue]FOS Decisions Pipeline[/bold blue] version [green]{__version__}[/green]")


def main() -> None:
    """Entry point for the CLI application"""
    app()


if __name__ == "__main__":
    main()
