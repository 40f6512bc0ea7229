import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict

import pytest
from click.testing import CliRunner

from conftest import FakeHostingClient
from repoheft import cli
from repoheft.core.analysis_engine import AnalysisEngine, analyze_repository
from repoheft.core.exceptions import InspectionError
from repoheft.core.models import Location, LocationKind
from repoheft.core.repository import GitCliInspector
from repoheft.utils.file_filter import ExclusionFilter

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

FILES = {
    "a.txt": b"x" * 10,
    "b/lockfile.json": b"{}" * 250000,
    "docs/with space.md": b"# hi\n",
    "empty": b"",
}

ACME = Location("https://github.com/orgs/acme", LocationKind.ORG, "acme")


def git(*args: str, cwd: Path) -> str:
    proc = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com",
         "-c", "commit.gpgsign=false", *args],
        cwd=cwd, check=True, capture_output=True, text=True
    )
    return proc.stdout


def make_repo(repo: Path, files: Dict[bytes, bytes], commit: bool = True) -> Path:
    """Create a repository on branch 'trunk'; file names are raw bytes"""
    repo.mkdir()
    git("init", "-q", cwd=repo)
    git("symbolic-ref", "HEAD", "refs/heads/trunk", cwd=repo)
    root = os.fsencode(repo)
    for name, content in files.items():
        path = os.path.join(root, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
    if commit:
        git("add", "-A", cwd=repo)
        git("commit", "-q", "-m", "initial", cwd=repo)
    return repo


@pytest.fixture
def origin(tmp_path: Path) -> str:
    files = {name.encode(): content for name, content in FILES.items()}
    return make_repo(tmp_path / "origin", files).as_uri()


def test_scan_local_repository(origin, settings, clone_dir):
    scan = analyze_repository(origin, settings, GitCliInspector(timeout=60))

    assert scan.branch == "trunk"
    assert {e.path: e.size for e in scan.entries} == {name: len(data) for name, data in FILES.items()}
    assert not clone_dir.exists()


def test_clone_skips_working_tree(origin, tmp_path):
    inspector = GitCliInspector(timeout=60)
    dest = tmp_path / "clone"
    inspector.shallow_clone(origin, dest)
    assert sorted(p.name for p in dest.iterdir()) == [".git"]
    assert inspector.object_size(dest, "trunk", "a.txt") == 10


def test_engine_top_entries_sorted(origin, settings):
    report = AnalysisEngine(settings, inspector=GitCliInspector(timeout=60)).scan_repository(origin, top=2)
    assert [e.path for e in report.entries] == ["b/lockfile.json", "a.txt"]


def test_missing_repository_raises(tmp_path, settings, clone_dir):
    with pytest.raises(InspectionError):
        analyze_repository((tmp_path / "nope").as_uri(), settings, GitCliInspector(timeout=60))
    assert not clone_dir.exists()


def test_option_like_location_rejected(tmp_path):
    with pytest.raises(InspectionError):
        GitCliInspector().shallow_clone("--upload-pack=touch pwned", tmp_path / "clone")
    assert not (tmp_path / "clone").exists()


def test_sweep_measures_non_utf8_file_names(tmp_path, settings, clone_dir):
    try:
        bad = make_repo(tmp_path / "bad", {b"caf\xe9.bin": b"x" * 7})
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 file names")
    good = make_repo(tmp_path / "good", {b"ok.txt": b"x" * 3})
    engine = AnalysisEngine(settings, inspector=GitCliInspector(timeout=60),
                            hosting_client=FakeHostingClient([bad.as_uri(), good.as_uri()]))

    report = engine.sweep_account(ACME, exclusion_filter=ExclusionFilter([]))

    assert report.failures == []
    assert [(e.display_path, e.size) for e in report.entries] == [("caf\ufffd.bin", 7), ("ok.txt", 3)]
    assert not clone_dir.exists()


def test_path_with_newline_is_measured(tmp_path, settings):
    repo = make_repo(tmp_path / "origin", {b"line\nbreak.txt": b"x" * 42, b"plain.txt": b"x"})
    scan = analyze_repository(repo.as_uri(), settings, GitCliInspector(timeout=60))
    assert {e.path: e.size for e in scan.entries} == {"line\nbreak.txt": 42, "plain.txt": 1}


def test_submodule_entries_are_skipped(tmp_path, settings):
    repo = make_repo(tmp_path / "origin", {b"a.txt": b"abc"})
    sha = git("rev-parse", "HEAD", cwd=repo).strip()
    git("update-index", "--add", "--cacheinfo", f"160000,{sha},sub", cwd=repo)
    git("commit", "-q", "-m", "add gitlink", cwd=repo)

    scan = analyze_repository(repo.as_uri(), settings, GitCliInspector(timeout=60))

    assert not scan.failed
    assert [(e.path, e.size) for e in scan.entries] == [("a.txt", 3)]


def test_empty_repository_reports_no_commits(tmp_path, settings, clone_dir):
    repo = make_repo(tmp_path / "origin", {}, commit=False)
    with pytest.raises(InspectionError, match="Repository has no commits"):
        analyze_repository(repo.as_uri(), settings, GitCliInspector(timeout=60))
    assert not clone_dir.exists()


def test_cli_empty_repository_exits_1(tmp_path, monkeypatch, settings, clone_dir):
    repo = make_repo(tmp_path / "origin", {}, commit=False)
    monkeypatch.setattr(cli, "settings", settings.model_copy(update={"hosting_domain": "file://"}))

    result = CliRunner().invoke(cli.main, ["scan", repo.as_uri()])

    assert result.exit_code == 1
    assert "Repository has no commits" in result.output
    assert not clone_dir.exists()
