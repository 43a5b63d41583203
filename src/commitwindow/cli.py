"""Command-line interface for commitwindow."""

import asyncio
import calendar
import subprocess
import time
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, TextIO

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from commitwindow.extraction import CommitWindowResolver, RepositoryScanner
from commitwindow.logging_setup import configure_logging
from commitwindow.models import Credentials, DateWindow, FilterConfig, ScanResult, Settings, parse_report_date
from commitwindow.remote import BitbucketClient, SourceHostError
from commitwindow.reporting import ReportWriter

app = typer.Typer(
    name="commitwindow",
    help="Report the commits of every accessible Bitbucket repository inside a date window",
    add_completion=False,
)
console = Console()


def _one_month_before(day: date) -> date:
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def _build_window(since: Optional[str], until: Optional[str], today: Optional[date] = None) -> DateWindow:
    """Build the report window; defaults to one month ago up to the end of today."""
    today = today or datetime.now(timezone.utc).date()
    start = parse_report_date(since) if since else None
    end = parse_report_date(until) if until else None
    default = DateWindow.from_dates(_one_month_before(today), today + timedelta(days=1))
    return DateWindow(since=start or default.since, until=end or default.until)


def _git_user_email() -> Optional[str]:
    """Read the global git user email, used as the default username."""
    try:
        completed = subprocess.run(
            ["git", "config", "--global", "user.email"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return None
    email = completed.stdout.strip().split("\n")[0]
    return email or None


def _collect_credentials(username: Optional[str], password: Optional[str], settings: Settings) -> Credentials:
    """Use given credentials, falling back to settings and then to prompts."""
    username = username or settings.bitbucket_username
    if not username:
        username = typer.prompt("Bitbucket username", default=_git_user_email())

    if not password and settings.bitbucket_password is not None:
        password = settings.bitbucket_password.get_secret_value()
    if not password:
        password = typer.prompt("Bitbucket password", hide_input=True)

    return Credentials(username=username, password=password)


def _default_log_file(settings: Settings) -> Optional[Path]:
    if settings.log_dir is None:
        return None
    stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    return settings.log_dir / f"log_{stamp}.log"


def _print_configuration(credentials: Credentials, config: FilterConfig) -> None:
    console.print("[bold green]Scanning repositories[/bold green]")
    console.print(f"[bold blue]User:[/bold blue] {credentials.username}")
    console.print(f"[bold blue]Since:[/bold blue] {config.window.since:%d/%m/%Y %H:%M:%S}")
    console.print(f"[bold blue]Until:[/bold blue] {config.window.until:%d/%m/%Y %H:%M:%S}")
    console.print(f"[bold blue]Prefix:[/bold blue] {config.prefix or '(none)'}")
    console.print(f"[bold blue]Show empty:[/bold blue] {config.show_empty}")
    console.print(f"[bold blue]Truncate messages:[/bold blue] {config.truncate_length or 'no'}\n")


async def _run_scan(
    credentials: Credentials,
    config: FilterConfig,
    settings: Settings,
    concurrency: int,
) -> ScanResult:
    resolver = CommitWindowResolver(
        config,
        page_size=settings.page_size,
        retry_delay=settings.retry_delay_seconds,
        max_retries=settings.max_retries,
        fetch_timeout=settings.fetch_timeout_seconds,
    )
    async with BitbucketClient(
        credentials,
        api_url=settings.api_url,
        timeout=settings.fetch_timeout_seconds,
    ) as client:
        scanner = RepositoryScanner(client, config, resolver=resolver, max_concurrency=concurrency)
        return await scanner.scan()


def _write_report(result: ScanResult, output: Optional[Path]) -> None:
    writer = ReportWriter()
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            writer.write(result, f)
        console.print(f"[bold green]✓[/bold green] Report saved to {output}")
        return

    console.print()
    for line in writer.render(result):
        console.print(line, markup=False, highlight=False, soft_wrap=True)


@app.command()
def report(
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Bitbucket username or email"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Bitbucket password (prompted if omitted)"),
    since: Optional[str] = typer.Option(None, "--since", "-s", help="Window start, DD/MM/YYYY (default: one month ago)"),
    until: Optional[str] = typer.Option(None, "--until", "-e", help="Window end (exclusive), DD/MM/YYYY (default: tomorrow, so today is included)"),
    prefix: str = typer.Option("", "--prefix", help="Only repositories whose name starts with this prefix"),
    show_empty: bool = typer.Option(False, "--show-empty", help="Also report repositories without commits"),
    truncate: int = typer.Option(0, "--truncate", "-t", min=0, help="Cut commit messages to this length (0 = keep all)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to this file"),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", min=1, help="Repositories resolved at once"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write log events to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Report the commits of every accessible repository inside the date window."""
    settings = Settings()

    try:
        window = _build_window(since, until)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    credentials = _collect_credentials(username, password, settings)
    config = FilterConfig(window=window, prefix=prefix, show_empty=show_empty, truncate_length=truncate)
    log_stream: Optional[TextIO] = configure_logging(
        "DEBUG" if verbose else settings.log_level,
        log_file or _default_log_file(settings),
    )

    _print_configuration(credentials, config)
    started = time.monotonic()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Resolving commits...", total=None)
            result = asyncio.run(
                _run_scan(credentials, config, settings, concurrency or settings.max_concurrency)
            )

        console.print(
            f"[bold green]✓[/bold green] {result.total_repositories} repositories found, "
            f"{result.matched_repositories} matched, {result.total_commits} commits"
        )
        _write_report(result, output)

    except KeyboardInterrupt:
        console.print("\n[yellow][CTRL + C] Cancelled[/yellow]")
        raise typer.Exit(2)
    except SourceHostError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        console.print("Please check your username, password and internet connection.")
        raise typer.Exit(1)
    finally:
        console.print(f"[dim]Finished in {time.monotonic() - started:.2f}s[/dim]")
        if log_stream is not None:
            log_stream.close()


@app.command()
def list_repos(
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Bitbucket username or email"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Bitbucket password (prompted if omitted)"),
    since: Optional[str] = typer.Option(None, "--since", "-s", help="Only repositories updated after this date, DD/MM/YYYY"),
    prefix: str = typer.Option("", "--prefix", help="Only repositories whose name starts with this prefix"),
) -> None:
    """List the repositories that a report would scan."""
    settings = Settings()

    try:
        window = _build_window(since, None)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    credentials = _collect_credentials(username, password, settings)
    config = FilterConfig(window=window, prefix=prefix)

    async def fetch():
        async with BitbucketClient(credentials, api_url=settings.api_url, timeout=settings.fetch_timeout_seconds) as client:
            scanner = RepositoryScanner(client, config)
            return scanner.filter_repositories(await client.list_repositories())

    try:
        repositories = asyncio.run(fetch())
    except SourceHostError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        console.print("Please check your username, password and internet connection.")
        raise typer.Exit(1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Owner", style="green")
    table.add_column("Name", style="cyan")
    table.add_column("Last Updated", style="blue")

    for repo in repositories:
        table.add_row(repo.owner, repo.name, repo.last_updated.strftime("%Y-%m-%d %H:%M"))

    console.print(table)
    console.print(f"\n[bold green]✓[/bold green] {len(repositories)} repositories")


if __name__ == "__main__":
    app()
