"""Repository inspection through git"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence
import logging
import subprocess

from .exceptions import InspectionError
from .models import printable


logger = logging.getLogger(__name__)

GIT_ENCODING = "utf-8"


class RepositoryInspector(ABC):
    """Operations needed to measure the committed files of a repository"""

    @abstractmethod
    def shallow_clone(self, url: str, destination: Path) -> None:
        """Clone the default branch at depth one without a working tree"""
        pass

    @abstractmethod
    def default_branch(self, repo_dir: Path) -> str:
        """Return the branch name the clone is on"""
        pass

    @abstractmethod
    def list_tracked_paths(self, repo_dir: Path, ref: str) -> List[str]:
        """Return every file path recorded in the tree at ``ref``"""
        pass

    @abstractmethod
    def object_size(self, repo_dir: Path, ref: str, path: str) -> int:
        """Return the stored byte size of ``path`` at ``ref``"""
        pass

    def object_sizes(self, repo_dir: Path, ref: str, paths: Sequence[str]) -> Dict[str, int]:
        """Return sizes for many paths; override when a batch query is cheaper"""
        return {path: self.object_size(repo_dir, ref, path) for path in paths}


class GitCliInspector(RepositoryInspector):
    """RepositoryInspector backed by the ``git`` executable

    Commands are always passed as argument lists, never through a shell.
    """

    def __init__(self, git: str = "git", timeout: Optional[int] = 300):
        self.git = git
        self.timeout = timeout

    def _run(self, args: List[str], cwd: Optional[Path] = None,
             input_text: Optional[str] = None) -> str:
        cmd = [self.git, *args]
        logger.debug(f"Running {printable(' '.join(cmd))}")
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                input=input_text,
                capture_output=True,
                # Paths are raw bytes in git; undecodable ones round-trip as surrogates
                encoding=GIT_ENCODING,
                errors="surrogateescape",
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise InspectionError(f"git {args[0]} timed out after {self.timeout}s", cmd) from e
        except UnicodeError as e:
            raise InspectionError(f"git {args[0]} could not encode its input: {e}", cmd) from e
        except OSError as e:
            raise InspectionError(f"Could not run {self.git}: {e}", cmd) from e

        if result.returncode != 0:
            raise InspectionError(f"git {args[0]} failed with exit code {result.returncode}",
                                  cmd, result.stderr)
        return result.stdout

    def shallow_clone(self, url: str, destination: Path) -> None:
        if url.startswith('-'):
            raise InspectionError(f"Refusing to clone a location that looks like an option: {url}")
        self._run([
            'clone', '--quiet', '--no-checkout', '--single-branch', '--depth=1',
            '--', url, str(destination)
        ])

    def default_branch(self, repo_dir: Path) -> str:
        try:
            self._run(['rev-parse', '--verify', '--quiet', 'HEAD'], cwd=repo_dir)
        except InspectionError as e:
            raise InspectionError("Repository has no commits", e.command, e.stderr) from e
        return self._run(['rev-parse', '--abbrev-ref', 'HEAD'], cwd=repo_dir).strip()

    def list_tracked_paths(self, repo_dir: Path, ref: str) -> List[str]:
        output = self._run(['ls-tree', '-r', '-z', ref], cwd=repo_dir)
        paths = []
        for record in output.split('\0'):
            if not record:
                continue
            meta, _, path = record.partition('\t')
            # Submodules show up as commit objects that a shallow clone cannot size
            if meta.split()[1] == 'blob':
                paths.append(path)
        return paths

    def object_size(self, repo_dir: Path, ref: str, path: str) -> int:
        output = self._run(['cat-file', '-s', f"{ref}:{path}"], cwd=repo_dir)
        return int(output.strip())

    def object_sizes(self, repo_dir: Path, ref: str, paths: Sequence[str]) -> Dict[str, int]:
        # --batch-check is line based, so paths containing newlines go one by one
        batchable = [p for p in paths if '\n' not in p]
        sizes: Dict[str, int] = {}
        if batchable:
            # Same codec as _run, so surrogate-escaped paths go back out as their original bytes
            request = ''.join(f"{ref}:{path}\n" for path in batchable)
            output = self._run(['cat-file', '--batch-check=%(objectsize)'],
                               cwd=repo_dir, input_text=request)
            lines = output.splitlines()
            if len(lines) != len(batchable):
                raise InspectionError(
                    f"git cat-file returned {len(lines)} sizes for {len(batchable)} paths")
            for path, line in zip(batchable, lines):
                try:
                    sizes[path] = int(line)
                except ValueError:
                    raise InspectionError(f"Could not read size of {printable(path)}: {line}") from None
        for path in paths:
            if path not in sizes:
                sizes[path] = self.object_size(repo_dir, ref, path)
        return sizes
