from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from repoheft.core.config import Settings
from repoheft.core.exceptions import InspectionError, RepositoryListingError
from repoheft.core.repository import RepositoryInspector


class FakeInspector(RepositoryInspector):
    """In-memory repositories keyed by clone URL"""

    def __init__(self, repos: Dict[str, Dict[str, int]], branch: str = "main",
                 broken: Optional[List[str]] = None):
        self.repos = repos
        self.branch = branch
        self.broken = set(broken or [])
        self.clones: List[Path] = []
        self._current: Dict[Path, str] = {}

    def shallow_clone(self, url: str, destination: Path) -> None:
        assert not destination.exists(), "clone directory was not cleaned up"
        destination.mkdir(parents=True)
        (destination / ".git").mkdir()
        self.clones.append(destination)
        if url not in self.repos:
            raise InspectionError("git clone failed with exit code 128", ["git", "clone", url],
                                  "fatal: repository not found")
        self._current[destination] = url

    def default_branch(self, repo_dir: Path) -> str:
        return self.branch

    def list_tracked_paths(self, repo_dir: Path, ref: str) -> List[str]:
        url = self._current[repo_dir]
        if url in self.broken:
            raise InspectionError("git ls-tree failed with exit code 128")
        return list(self.repos[url])

    def object_size(self, repo_dir: Path, ref: str, path: str) -> int:
        return self.repos[self._current[repo_dir]][path]


class FakeHostingClient:
    def __init__(self, urls: Optional[List[str]] = None, error: Optional[str] = None):
        self.urls = urls or []
        self.error = error
        self.closed = False
        self.requested = []

    def list_clone_urls(self, location):
        self.requested.append(location)
        if self.error:
            raise RepositoryListingError(self.error)
        return list(self.urls)

    def close(self):
        self.closed = True


@pytest.fixture
def clone_dir(tmp_path: Path) -> Path:
    return tmp_path / "cloned-repo"


@pytest.fixture
def settings(clone_dir: Path) -> Settings:
    return Settings(
        clone_dir=clone_dir,
        account_url=None,
        github_token=None,
        max_workers=1,
        single_top=10,
        account_top=25,
    )
