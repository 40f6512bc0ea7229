"""Data model for file size reports"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import List, Optional

BYTES_PER_MB = 1024 * 1024


def printable(text: str) -> str:
    """Replace undecodable bytes (kept as surrogates) with U+FFFD for display"""
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


class LocationKind(Enum):
    """What a location string points at"""
    REPOSITORY = "repository"
    USER = "users"
    ORG = "orgs"


@dataclass(frozen=True)
class Location:
    """A classified repository or account location"""
    raw: str
    kind: LocationKind
    owner: Optional[str] = None

    @property
    def is_account(self) -> bool:
        return self.kind is not LocationKind.REPOSITORY


@dataclass(frozen=True)
class FileSizeEntry:
    """Committed size of one tracked file"""
    path: str
    size: int
    repository: Optional[str] = None
    branch: Optional[str] = None

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"File size must be non-negative: {self.path} ({self.size})")

    @property
    def extension(self) -> str:
        """File suffix without the dot, upper-cased ('' for dotfiles)"""
        return PurePosixPath(self.display_path).suffix[1:].upper()

    @property
    def display_path(self) -> str:
        """Path safe to print, even when it was not valid UTF-8 in the repository"""
        return printable(self.path)

    @property
    def size_mb(self) -> int:
        """Size in whole megabytes, rounded half up"""
        return int(self.size / BYTES_PER_MB + 0.5)

    @property
    def browse_url(self) -> Optional[str]:
        """Web link to the file on the hosting provider"""
        if not self.repository or not self.branch:
            return None
        base = self.repository.rstrip("/")
        if base.endswith(".git"):
            base = base[:-len(".git")]
        return f"{base}/blob/{self.branch}/{self.display_path}"


@dataclass
class RepositoryScan:
    """Outcome of analyzing a single repository"""
    location: str
    branch: Optional[str] = None
    entries: List[FileSizeEntry] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class ScanReport:
    """Merged, sorted and truncated result of a run"""
    entries: List[FileSizeEntry]
    repositories: int
    failures: List[RepositoryScan] = field(default_factory=list)
    top: Optional[int] = None
    account_mode: bool = False
