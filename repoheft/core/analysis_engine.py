"""Repository analysis: clone, measure, clean up, aggregate"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional
import logging
import shutil

from .config import Settings
from .exceptions import InspectionError
from .hosting import GitHubClient
from .models import FileSizeEntry, Location, RepositoryScan, ScanReport
from .repository import GitCliInspector, RepositoryInspector
from ..reports.report_generator import aggregate
from ..utils.file_filter import ExclusionFilter


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[RepositoryScan], None]


def remove_clone_dir(clone_dir: Path) -> None:
    """Delete a clone directory if it exists"""
    if clone_dir.exists():
        shutil.rmtree(clone_dir)
        logger.debug(f"Removed {clone_dir}")


def analyze_repository(location: str,
                       settings: Settings,
                       inspector: RepositoryInspector,
                       clone_dir: Optional[Path] = None,
                       tolerate_failures: bool = False) -> RepositoryScan:
    """
    Clone one repository and measure every tracked file

    Args:
        location: Clone URL of the repository
        settings: Settings providing the default clone directory
        inspector: Backend used to clone and query the repository
        clone_dir: Directory to clone into (defaults to settings.clone_dir)
        tolerate_failures: Log git errors and return an empty scan instead of raising

    Returns:
        RepositoryScan with one entry per tracked file, in tree order

    The clone directory is removed before cloning and again on every exit path.
    """
    clone_dir = Path(clone_dir or settings.clone_dir)
    scan = RepositoryScan(location=location)

    try:
        remove_clone_dir(clone_dir)
        logger.info(f"Cloning {location}")
        inspector.shallow_clone(location, clone_dir)

        branch = inspector.default_branch(clone_dir)
        paths = inspector.list_tracked_paths(clone_dir, branch)
        logger.info(f"Measuring {len(paths)} files in {location} ({branch})")
        sizes = inspector.object_sizes(clone_dir, branch, paths)

        scan.branch = branch
        scan.entries = [
            FileSizeEntry(path=path, size=sizes[path], repository=location, branch=branch)
            for path in paths
        ]
    except (InspectionError, OSError) as e:
        if not tolerate_failures:
            raise
        logger.error(f"Skipping {location}: {e}")
        scan.error = str(e)
    finally:
        remove_clone_dir(clone_dir)

    return scan


class AnalysisEngine:
    """Runs single-repository scans and account sweeps"""

    def __init__(self,
                 settings: Settings,
                 inspector: Optional[RepositoryInspector] = None,
                 hosting_client: Optional[GitHubClient] = None):
        self.settings = settings
        self.inspector = inspector or GitCliInspector(timeout=settings.git_timeout)
        self._hosting_client = hosting_client

    @property
    def hosting_client(self) -> GitHubClient:
        if self._hosting_client is None:
            self._hosting_client = GitHubClient(
                api_url=self.settings.github_api_url,
                token=self.settings.github_token,
                timeout=self.settings.http_timeout,
                per_page=self.settings.api_per_page
            )
        return self._hosting_client

    def scan_repository(self, location: str, top: Optional[int] = None,
                        exclusion_filter: Optional[ExclusionFilter] = None) -> ScanReport:
        """Measure one repository; git failures propagate to the caller"""
        top = top or self.settings.single_top
        scan = analyze_repository(location, self.settings, self.inspector)
        entries = scan.entries
        if exclusion_filter:
            entries = exclusion_filter.filter_entries(entries)
        return aggregate([entries], top=top, repositories=1)

    def sweep_account(self, location: Location,
                      top: Optional[int] = None,
                      exclusion_filter: Optional[ExclusionFilter] = None,
                      max_workers: Optional[int] = None,
                      progress: Optional[ProgressCallback] = None,
                      on_listed: Optional[Callable[[List[str]], None]] = None) -> ScanReport:
        """
        Measure every repository of an account and merge the results

        Repository listing errors propagate. Per-repository git failures are
        logged and recorded in the report's failures; the sweep continues.
        """
        top = top or self.settings.account_top
        max_workers = max_workers or self.settings.max_workers
        if exclusion_filter is None:
            exclusion_filter = ExclusionFilter.from_settings(self.settings)

        urls = self.hosting_client.list_clone_urls(location)
        if on_listed:
            on_listed(urls)

        scans = self._analyze_all(urls, max_workers, progress)

        filtered = [exclusion_filter.filter_entries(scan.entries) for scan in scans]
        failures = [scan for scan in scans if scan.failed]
        if failures:
            logger.warning(f"{len(failures)} of {len(urls)} repositories could not be analyzed")

        report = aggregate(filtered, top=top, repositories=len(urls), account_mode=True)
        report.failures = failures
        return report

    def _analyze_all(self, urls: List[str], max_workers: int,
                     progress: Optional[ProgressCallback]) -> List[RepositoryScan]:
        """Analyze repositories in order, optionally on a bounded thread pool"""
        if max_workers <= 1 or len(urls) <= 1:
            scans = []
            for url in urls:
                scan = analyze_repository(url, self.settings, self.inspector,
                                          tolerate_failures=True)
                if progress:
                    progress(scan)
                scans.append(scan)
            return scans

        # Each worker slot gets its own clone directory so clones never collide
        base = Path(self.settings.clone_dir)
        workers = min(max_workers, len(urls))
        slots = [base.with_name(f"{base.name}-{n}") for n in range(workers)]
        logger.info(f"Analyzing {len(urls)} repositories with {workers} workers")

        def run_slot(slot: int) -> List[RepositoryScan]:
            results = []
            for url in urls[slot::workers]:
                scan = analyze_repository(url, self.settings, self.inspector,
                                          clone_dir=slots[slot], tolerate_failures=True)
                if progress:
                    progress(scan)
                results.append(scan)
            return results

        with ThreadPoolExecutor(max_workers=workers) as pool:
            per_slot = list(pool.map(run_slot, range(workers)))

        # Restore listing order: slot n handled urls n, n + workers, ...
        scans: List[RepositoryScan] = [None] * len(urls)  # type: ignore[list-item]
        for slot, results in enumerate(per_slot):
            for i, scan in enumerate(results):
                scans[slot + i * workers] = scan
        return scans

    def close(self) -> None:
        if self._hosting_client is not None:
            self._hosting_client.close()
