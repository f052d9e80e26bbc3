"""Pytest fixtures for revpin tests."""
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from revpin.packages.loader import PackageInfo

STDLIB = {"fmt", "os", "strings", "testing"}


def git(repo: Path, *args: str) -> str:
    """Run a git command in repo and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def init_repo(repo: Path, files: Dict[str, str]) -> str:
    """Create a git repository holding files and return the commit SHA."""
    repo.mkdir(parents=True, exist_ok=True)
    git(repo, "init", "--quiet")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test User")
    return commit_files(repo, files, "Initial commit")


def commit_files(repo: Path, files: Dict[str, str], message: str) -> str:
    """Write files into repo, commit them and return the new SHA."""
    for name, body in files.items():
        path = repo / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body)
    git(repo, "add", "--all")
    git(repo, "commit", "--quiet", "-m", message)
    return git(repo, "rev-parse", "HEAD")


class FakeLister:
    """PackageLister over a GOPATH-style directory tree.

    ``graph`` maps an import path to its (transitive) dependencies, the way
    ``go list`` reports ``Deps``. Packages with no directory under src/ come
    back with an error, like ``go list -e`` does.
    """

    def __init__(
        self,
        workspace: Path,
        graph: Dict[str, List[str]],
        project: str = "C",
        version: str = "go1.22.1",
        test_imports: Optional[Dict[str, List[str]]] = None,
    ):
        self.workspace = Path(workspace)
        self.graph = graph
        self.project = project
        self.version = version
        self.test_imports = test_imports or {}
        self.calls: List[tuple] = []

    def _info(self, path: str) -> PackageInfo:
        if path in STDLIB:
            return PackageInfo(
                import_path=path,
                dir=f"/usr/local/go/src/{path}",
                root="/usr/local/go",
                standard=True,
            )
        pkg_dir = self.workspace / "src" / path
        if not pkg_dir.is_dir():
            return PackageInfo(import_path=path, error=f'cannot find package "{path}"')
        return PackageInfo(
            import_path=path,
            dir=str(pkg_dir),
            root=str(self.workspace),
            deps=self.graph.get(path, []),
            test_imports=self.test_imports.get(path, []),
        )

    def list(self, *patterns: str) -> List[PackageInfo]:
        self.calls.append(patterns)
        paths = []
        for pattern in patterns:
            if pattern == "./...":
                paths.append(self.project)
            else:
                paths.append(pattern)
        return [self._info(p) for p in paths]

    def import_path(self, pattern: str) -> str:
        return self.project

    def tool_version(self) -> str:
        return self.version


@pytest.fixture
def gopath(tmp_path: Path) -> Dict[str, object]:
    """Create a GOPATH with project C depending on D (with D/A, D/B) and E.

    Returns dict with:
        - workspace: GOPATH root
        - project: Path to C
        - D, E: paths to the dependency repositories
        - d_sha, e_sha: their HEAD commits
        - lister: FakeLister for the graph C -> D, D/A, E
    """
    workspace = tmp_path / "gopath"
    src = workspace / "src"

    project = src / "C"
    init_repo(project, {
        "main.go": 'package main\n\nimport (\n\t"D"\n\t"E"\n\t"fmt"\n)\n',
    })

    d_repo = src / "D"
    d_sha = init_repo(d_repo, {
        "d.go": 'package D // import "D"\n\nvar X int\n',
        "A/a.go": "package A\n",
        "B/b.go": "package B\n",
        "_example/main.go": "package main\n",
        "testdata/in.txt": "fixture\n",
        ".travis.yml": "language: go\n",
    })

    e_repo = src / "E"
    e_sha = init_repo(e_repo, {
        "e.go": "package E\n",
    })

    lister = FakeLister(workspace, {
        "C": ["D", "D/A", "E", "fmt"],
        "D": ["D/A", "fmt"],
        "E": ["strings"],
    })

    return {
        "workspace": workspace,
        "project": project,
        "D": d_repo,
        "E": e_repo,
        "d_sha": d_sha,
        "e_sha": e_sha,
        "lister": lister,
    }
