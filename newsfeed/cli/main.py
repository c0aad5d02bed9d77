import time
from typing import Optional

import typer
from rich import print
from rich.markup import escape
from rich.table import Table
from sqlalchemy.orm import Session

from newsfeed.config.settings import get_settings
from newsfeed.db.database import get_engine, init_db
from newsfeed.db.fixtures import seed_sources
from newsfeed.db.repository import NewsRepository
from newsfeed.models.schemas import SourceResult
from newsfeed.services.dispatch import IngestDispatcher
from newsfeed.services.errors import SourceNotFoundError
from newsfeed.services.fetcher import FeedFetcher
from newsfeed.services.rss_ingest import RssIngestor
from newsfeed.tools.logging_setup import setup_logging
from newsfeed.workflows.run_ingest import dispatch_sources, run_batch, select_sources


app = typer.Typer(help="RSS/Atom news source ingestion")


@app.callback()
def main():
    setup_logging()


@app.command()
def doctor():
    """Check config + DB connectivity."""
    s = get_settings()
    print("[bold green]Config loaded[/bold green]")
    print("Database:", s.database_url)
    print("Fetch timeout:", s.fetch_timeout_seconds, "| User-Agent:", s.fetch_user_agent)
    init_db()
    print("[bold green]DB OK[/bold green]")


def _print_result(result: SourceResult) -> None:
    if result.ok:
        print(f"[green]✔[/green] {escape(result.name)}: {result.items} new items")
    else:
        print(f"[bold red]✘[/bold red] {escape(result.name)}: {escape(result.error or '')}")


@app.command()
def ingest(
    source_id: Optional[int] = typer.Option(None, "--source-id", help="Ingest only this source."),
    use_async: bool = typer.Option(False, "--async", help="Queue sources for the worker instead."),
):
    """Fetch feeds of all active sources (or one source) and store new items."""
    init_db()
    with Session(get_engine()) as session:
        repository = NewsRepository(session)
        try:
            sources = select_sources(repository, source_id)
        except SourceNotFoundError as e:
            print(f"[bold red]{escape(str(e))}[/bold red]")
            raise typer.Exit(1)

        if not sources:
            print("[yellow]No active sources[/yellow]")
            return

        print(f"[bold]Ingestion started[/bold]: {len(sources)} source(s)")

        if use_async:
            queued = dispatch_sources(IngestDispatcher(session), sources)
            print(f"[bold green]Queued {queued} source(s) for async ingestion[/bold green]")
            return

        report = run_batch(RssIngestor(repository, FeedFetcher()), sources, on_result=_print_result)

    print(
        f"[bold]Processing complete[/bold]: {report.success_count} succeeded, "
        f"{report.failure_count} failed"
    )
    print(f"Total new items: {report.total_items}")
    if report.failure_count:
        raise typer.Exit(1)


@app.command()
def worker(
    once: bool = typer.Option(False, "--once", help="Drain the queue once and exit."),
    limit: Optional[int] = typer.Option(None, "--limit", help="Messages per poll."),
    poll: Optional[float] = typer.Option(None, "--poll", help="Seconds between polls."),
):
    """Consume queued ingest messages."""
    s = get_settings()
    init_db()
    interval = poll if poll is not None else s.worker_poll_seconds
    with Session(get_engine()) as session:
        dispatcher = IngestDispatcher(
            session, ingestor_factory=lambda repo: RssIngestor(repo, FeedFetcher())
        )
        while True:
            handled = dispatcher.consume(limit)
            if handled:
                print(f"Handled {handled} message(s)")
                continue
            if once:
                break
            time.sleep(interval)


@app.command()
def seed():
    """Add the default news sources."""
    init_db()
    with Session(get_engine()) as session:
        added = seed_sources(NewsRepository(session))
    print(f"[bold green]Added {added} source(s)[/bold green]")


@app.command("add-source")
def add_source(
    name: str,
    url: str,
    description: Optional[str] = typer.Option(None, "--description"),
    country: str = typer.Option("rus", "--country"),
    inactive: bool = typer.Option(False, "--inactive"),
):
    """Register a feed URL."""
    init_db()
    with Session(get_engine()) as session:
        source = NewsRepository(session).add_source(
            name, url, description=description, country=country, is_active=not inactive
        )
        print(f"[bold green]Added source {source.id}[/bold green]: {escape(source.name)}")


@app.command()
def sources():
    """List configured sources."""
    init_db()
    table = Table("ID", "Name", "URL", "Active", "Last parsed")
    with Session(get_engine()) as session:
        for src in NewsRepository(session).find_sources():
            table.add_row(
                str(src.id),
                escape(src.name),
                escape(src.url),
                "yes" if src.is_active else "no",
                src.last_parsed_at.isoformat(" ", "seconds") if src.last_parsed_at else "-",
            )
    print(table)


@app.command()
def latest(limit: int = typer.Option(20, "--limit")):
    """Show the newest stored items of active sources."""
    init_db()
    table = Table("Published", "Source", "Title")
    with Session(get_engine()) as session:
        for item in NewsRepository(session).find_latest_items(limit):
            table.add_row(item.published_at.isoformat(" ", "minutes"), escape(item.source.name), escape(item.title))
    print(table)


if __name__ == "__main__":
    app()
