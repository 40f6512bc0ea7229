"""Aggregation and report formatters"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import json

from rich.console import Console
from rich.style import Style
from rich.table import Table
from rich.text import Text

from ..core.models import FileSizeEntry, ScanReport


def aggregate(entry_lists: Iterable[Iterable[FileSizeEntry]], top: int,
              repositories: int = 1, account_mode: bool = False) -> ScanReport:
    """Merge per-repository entries, sort by size descending and keep the top N"""
    if top < 1:
        raise ValueError(f"top must be at least 1, got {top}")
    merged = [entry for entries in entry_lists for entry in entries]
    # sorted() is stable, so equal sizes keep their tree order
    merged = sorted(merged, key=lambda entry: entry.size, reverse=True)
    return ScanReport(
        entries=merged[:top],
        repositories=repositories,
        top=top,
        account_mode=account_mode
    )


def entry_to_dict(entry: FileSizeEntry) -> Dict[str, Any]:
    return {
        'extension': entry.extension,
        'size': entry.size,
        'size_mb': entry.size_mb,
        'path': entry.display_path,
        'repository': entry.repository,
        'url': entry.browse_url,
    }


class BaseReporter(ABC):
    """Abstract base class for report formatters"""

    @abstractmethod
    def generate(self, report: ScanReport, output_path: Optional[Path] = None) -> None:
        """Generate report in specific format"""
        pass

    @abstractmethod
    def get_format_name(self) -> str:
        """Return the name of the report format"""
        pass


class ConsoleReporter(BaseReporter):
    """Prints the largest files as a rich table"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def get_format_name(self) -> str:
        return 'console'

    def build_table(self, report: ScanReport) -> Table:
        last_column = "URL" if report.account_mode else "File"
        table = Table(title="Largest files", title_style="bold magenta")
        table.add_column("Ext", style="cyan", no_wrap=True)
        table.add_column("Size", justify="right", style="bold")
        table.add_column(last_column, overflow="fold")

        for entry in report.entries:
            # Text() so that brackets in paths are not parsed as markup
            target = Text(entry.display_path)
            url = entry.browse_url
            if report.account_mode and url:
                target = Text(url, style=Style(link=url))
            table.add_row(entry.extension, f"{entry.size_mb} MB", target)
        return table

    def generate(self, report: ScanReport, output_path: Optional[Path] = None) -> None:
        if output_path:
            with open(output_path, 'w', encoding='utf-8') as f:
                Console(file=f, width=200).print(self.build_table(report))
            return
        if not report.entries:
            self.console.print("[yellow]No files to report[/yellow]")
            return
        self.console.print(self.build_table(report))


class JsonReporter(BaseReporter):
    """Writes the largest files as a JSON array"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def get_format_name(self) -> str:
        return 'json'

    def generate(self, report: ScanReport, output_path: Optional[Path] = None) -> None:
        data = [entry_to_dict(entry) for entry in report.entries]
        if output_path:
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
        else:
            self.console.print_json(data=data)


class ReportGenerator:
    """Main report generator that coordinates different reporters"""

    def __init__(self, console: Optional[Console] = None):
        self.reporters: Dict[str, BaseReporter] = {}
        self.register_reporter(ConsoleReporter(console))
        self.register_reporter(JsonReporter(console))

    def register_reporter(self, reporter: BaseReporter) -> None:
        """Register a new reporter"""
        self.reporters[reporter.get_format_name()] = reporter

    @property
    def formats(self) -> List[str]:
        return sorted(self.reporters)

    def generate_report(self, report: ScanReport, output_format: str,
                        output_path: Optional[Path] = None) -> None:
        """Generate report in specified format"""
        if output_format not in self.reporters:
            raise ValueError(f"Unknown report format: {output_format}")

        self.reporters[output_format].generate(report, output_path)
