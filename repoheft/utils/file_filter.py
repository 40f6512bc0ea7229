"""Exclusion filtering for tracked paths in account sweeps"""

from typing import Iterable, List, Optional, TYPE_CHECKING
import logging

from ..core.models import FileSizeEntry

if TYPE_CHECKING:
    from ..core.config import Settings

logger = logging.getLogger(__name__)


DEFAULT_EXCLUDE_PATTERNS = [
    # Dependency and build directories
    'node_modules/', 'vendor/', 'bower_components/', 'dist/', 'build/',
    '__pycache__/', '.venv/', 'venv/', 'site-packages/', 'Pods/',
    # Lockfiles
    'lockfile', 'package-lock.json', 'npm-shrinkwrap.json', 'yarn.lock',
    'pnpm-lock.yaml', 'composer.lock', 'Gemfile.lock', 'Cargo.lock',
    'poetry.lock', 'Pipfile.lock', 'go.sum', 'mix.lock', 'pubspec.lock',
    # Repository metadata and tool configuration
    '.github/', '.gitignore', '.gitattributes', '.gitmodules',
    '.editorconfig', '.DS_Store',
    # License and readme files
    'LICENSE', 'LICENCE', 'COPYING', 'README', 'CHANGELOG',
]


class ExclusionFilter:
    """Drops paths that contain any denylisted substring

    Matching is a plain substring test on the repository-relative path, so
    'mylicense_check.py' survives but 'docs/LICENSE-THIRD-PARTY.txt' does not.
    """

    def __init__(self, patterns: Optional[List[str]] = None):
        """
        Initialize the exclusion filter

        Args:
            patterns: Substrings to exclude (uses defaults if None, nothing if empty)
        """
        self.patterns = list(DEFAULT_EXCLUDE_PATTERNS if patterns is None else patterns)

    @classmethod
    def from_settings(cls, settings: 'Settings',
                      extra: Iterable[str] = (),
                      disabled: bool = False) -> 'ExclusionFilter':
        """
        Create an ExclusionFilter from configuration

        Args:
            settings: Settings providing the base pattern list
            extra: Additional patterns given on the command line
            disabled: Return a filter that excludes nothing
        """
        if disabled:
            return cls(patterns=[])
        patterns = list(settings.exclude_patterns)
        patterns.extend(p for p in extra if p and p not in patterns)
        return cls(patterns=patterns)

    def should_exclude(self, path: str) -> bool:
        """Check if a path contains any excluded substring"""
        return any(pattern in path for pattern in self.patterns)

    def filter_entries(self, entries: Iterable[FileSizeEntry]) -> List[FileSizeEntry]:
        """Return the entries whose paths are not excluded"""
        kept = []
        dropped = 0
        for entry in entries:
            if self.should_exclude(entry.path):
                dropped += 1
            else:
                kept.append(entry)
        if dropped:
            logger.debug(f"Excluded {dropped} paths matching the denylist")
        return kept

    def __bool__(self) -> bool:
        return bool(self.patterns)
