"""Command-line interface for repoheft"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn

from . import __version__
from .core.config import settings, MAX_WORKER_CAP
from .core.analysis_engine import AnalysisEngine
from .core.exceptions import InspectionError, InvalidLocationError, RepositoryListingError
from .core.models import Location, RepositoryScan
from .reports import ReportGenerator
from .utils import ExclusionFilter, classify_location


console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Route log records to stderr through rich"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def fail(message: str) -> None:
    """Print an error and exit with status 1"""
    err_console.print(f"[bold red]❌ {escape(message)}[/bold red]", highlight=False, soft_wrap=True)
    raise click.Abort()


def report_options(func):
    """Options shared by every command that prints a report"""
    func = click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
                        help='💾 Write the report to a file instead of the terminal')(func)
    func = click.option('--format', '-f', 'output_format', type=click.Choice(['console', 'json']),
                        default='console', help='📊 Output format')(func)
    func = click.option('--top', '-n', type=click.IntRange(min=1), default=None,
                        help='🔢 Number of files to report (default: 10 for a repository, 25 for an account)')(func)
    func = click.option('--exclude', '-x', multiple=True, metavar='PATTERN',
                        help='🚫 Extra path substring to exclude (repeatable)')(func)
    return func


def build_filter(exclude: Tuple[str, ...], enabled: bool) -> Optional[ExclusionFilter]:
    """Configured denylist plus extras, or only the extras when the denylist is off"""
    if not enabled:
        return ExclusionFilter(patterns=list(exclude)) if exclude else None
    return ExclusionFilter.from_settings(settings, extra=exclude)


def classify_or_fail(raw: Optional[str]) -> Location:
    try:
        return classify_location(raw or "", hosting_domain=settings.hosting_domain)
    except InvalidLocationError as e:
        fail(str(e))
        raise  # unreachable, fail() always raises


def run_single(location: Location, top: Optional[int], output_format: str,
               output: Optional[Path], exclusion_filter: Optional[ExclusionFilter]) -> None:
    engine = AnalysisEngine(settings)
    err_console.print(f"[cyan]📦 Cloning the repository:[/cyan] {escape(location.raw)}", highlight=False)
    try:
        with err_console.status("[bold cyan]Listing files and their sizes...[/bold cyan]"):
            report = engine.scan_repository(location.raw, top=top, exclusion_filter=exclusion_filter)
    except (InspectionError, OSError) as e:
        fail(f"Error: {e}")
    finally:
        engine.close()

    err_console.print("[green]✅ Largest files in the repository:[/green]")
    ReportGenerator(console).generate_report(report, output_format, output)
    if output:
        err_console.print(f"[green]Report saved to {output}[/green]")


def run_sweep(location: Location, top: Optional[int], output_format: str,
              output: Optional[Path], exclusion_filter: Optional[ExclusionFilter],
              workers: Optional[int] = None) -> None:
    engine = AnalysisEngine(settings)
    err_console.print(f"[cyan]👥 Sweeping {location.kind.value}/{escape(location.owner)}[/cyan]", highlight=False)

    with Progress(
        SpinnerColumn(style="cyan"),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(style="cyan"),
        MofNCompleteColumn(),
        console=err_console,
        transient=True
    ) as progress:
        task = progress.add_task("🔍 Listing repositories...", total=None)

        def on_listed(urls):
            progress.update(task, total=len(urls), description="📏 Measuring repositories...")

        def on_scanned(scan: RepositoryScan):
            if scan.failed:
                progress.console.print(f"[yellow]⚠️  Skipped {escape(scan.location)}[/yellow]", highlight=False)
            progress.advance(task)

        try:
            report = engine.sweep_account(
                location,
                top=top,
                exclusion_filter=exclusion_filter or ExclusionFilter(patterns=[]),
                max_workers=workers,
                progress=on_scanned,
                on_listed=on_listed
            )
        except RepositoryListingError as e:
            fail(f"Error: {e}")
        finally:
            engine.close()

    err_console.print(
        f"[green]✅ Largest files across {report.repositories} repositories"
        f"{f' ({len(report.failures)} skipped)' if report.failures else ''}:[/green]"
    )
    ReportGenerator(console).generate_report(report, output_format, output)
    if output:
        err_console.print(f"[green]Report saved to {output}[/green]")


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='🐛 Enable debug logging')
def main(verbose):
    """📏 repoheft - find the largest committed files in a repository or account"""
    setup_logging(verbose or settings.verbose)
    try:
        settings.validate_settings()
    except ValueError as e:
        fail(f"Invalid configuration: {e}")


@main.command()
@click.argument('location', required=False)
@report_options
@click.option('--filter/--no-filter', 'use_filter', default=None,
              help='🧹 Apply the exclusion list (default: off for a repository, on for an account)')
def scan(location, output, output_format, top, exclude, use_filter):
    """🎯 Report the largest files of a repository

    LOCATION is a repository URL. An account URL of the form
    https://github.com/orgs/<name> or https://github.com/users/<name>
    sweeps every repository of that account instead.
    """
    if not location:
        fail("Usage: repoheft scan <repository-url>")
    loc = classify_or_fail(location)

    if loc.is_account:
        enabled = True if use_filter is None else use_filter
        run_sweep(loc, top, output_format, output, build_filter(exclude, enabled))
    else:
        enabled = bool(exclude) if use_filter is None else use_filter
        run_single(loc, top, output_format, output, build_filter(exclude, enabled))


@main.command()
@report_options
@click.option('--workers', '-w', type=click.IntRange(1, MAX_WORKER_CAP), default=None,
              help='⚡ Repositories to analyze concurrently (default: MAX_WORKERS)')
@click.option('--no-filter', 'no_filter', is_flag=True, help='🧹 Skip the configured exclusion list (--exclude patterns still apply)')
def sweep(output, output_format, top, exclude, workers, no_filter):
    """👥 Report the largest files across every repository of an account

    The account URL is read from the ACCOUNT_URL environment variable. Set
    GITHUB_TOKEN to authenticate against the GitHub API.
    """
    if not settings.account_url:
        fail("ACCOUNT_URL is not set")
    loc = classify_or_fail(settings.account_url)
    if not loc.is_account:
        fail(f"ACCOUNT_URL must be a users/ or orgs/ URL: {loc.raw}")

    run_sweep(loc, top, output_format, output, build_filter(exclude, not no_filter), workers)


if __name__ == '__main__':
    main()
