"""Version control backends: identify, describe and diff a working tree.

Each backend is data only: an executable name plus whitespace-separated
command templates. ``{key}`` placeholders are expanded per argument after the
template is split, so a substituted value never turns into several arguments.
"""
import logging
import os
import shutil
import subprocess
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, NamedTuple, Tuple

from pydantic import BaseModel, ConfigDict, Field

from revpin.core.errors import (
    BackendUnavailableError,
    CommandFailedError,
    RevpinError,
    UnsupportedVCSError,
)

logger = logging.getLogger(__name__)


class Backend(BaseModel):
    """Command templates for one version control system."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Human-readable VCS name")
    command: str = Field(..., description="Executable looked up on PATH")
    identify_cmd: str = Field(..., description="Prints the revision id of the working tree")
    describe_cmd: str = Field(..., description="Prints a human description of {rev}")
    diff_cmd: str = Field(..., description="Prints differences between the tree and {rev}")

    def expand(self, template: str, **values: str) -> List[str]:
        """Split a template into arguments and substitute placeholders."""
        args = template.split()
        for key, value in values.items():
            args = [arg.replace("{" + key + "}", value) for arg in args]
        return args

    def run(self, directory: str, template: str, quiet: bool = False, **values: str) -> str:
        """Run a command template in directory and return combined output.

        Raises:
            BackendUnavailableError: If the executable is not on PATH
            CommandFailedError: If the command cannot start or exits non-zero
        """
        executable = shutil.which(self.command)
        if executable is None:
            raise BackendUnavailableError(f"missing {self.name} command ({self.command})")

        args = self.expand(template, **values)
        cmdline = " ".join([self.command] + args)
        try:
            result = subprocess.run(
                [executable] + args,
                cwd=directory,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise CommandFailedError(f"# cd {directory}; {cmdline}: {e}")

        if result.returncode != 0:
            if not quiet:
                logger.error(f"# cd {directory}; {cmdline}\n{result.stdout.rstrip()}")
            raise CommandFailedError(
                f"# cd {directory}; {cmdline}: exit status {result.returncode}",
                output=result.stdout,
            )
        return result.stdout

    def identify(self, directory: str) -> str:
        """Return the revision id checked out in directory."""
        return self.run(directory, self.identify_cmd).strip()

    def describe(self, directory: str, rev: str) -> str:
        """Return a description of rev, or "" if none can be produced."""
        try:
            return self.run(directory, self.describe_cmd, quiet=True, rev=rev).strip()
        except RevpinError as e:
            logger.debug(f"No description for {rev} in {directory}: {e}")
            return ""

    def is_dirty(self, directory: str, rev: str) -> bool:
        """Report whether directory differs from rev.

        A failing diff counts as dirty: cleanliness that cannot be verified
        is not trusted.
        """
        try:
            out = self.run(directory, self.diff_cmd, rev=rev)
        except RevpinError:
            return True
        return len(out) != 0


GIT = Backend(
    name="Git",
    command="git",
    identify_cmd="rev-parse HEAD",
    describe_cmd="describe --tags",
    diff_cmd="diff {rev}",
)

MERCURIAL = Backend(
    name="Mercurial",
    command="hg",
    identify_cmd="identify --id --debug",
    describe_cmd="log -r . --template {latesttag}-{latesttagdistance}",
    diff_cmd="diff -r {rev}",
)

BAZAAR = Backend(
    name="Bazaar",
    command="bzr",
    identify_cmd="version-info --custom --template {revision_id}",
    describe_cmd="revno",
    diff_cmd="diff -r {rev}",
)

# Detected VCS kind -> backend. Kinds detected but absent here are unsupported.
BACKENDS = MappingProxyType({
    "git": GIT,
    "hg": MERCURIAL,
    "bzr": BAZAAR,
})

# Marker directories in the order they are checked.
VCS_MARKERS: Tuple[str, ...] = ("hg", "git", "svn", "bzr")


class Repository(NamedTuple):
    """A repository root (as a slash path below the source root) and its backend."""

    root: str
    backend: Backend


def detect_repository(directory: str, source_root: str) -> Repository:
    """Find the repository owning directory.

    Walks upward from directory, stopping before source_root, looking for a
    ``.hg``, ``.git``, ``.svn`` or ``.bzr`` marker.

    Raises:
        UnsupportedVCSError: If no marker is found, directory lies outside
            source_root, or the detected kind has no registered backend
    """
    src = os.path.normpath(os.path.abspath(source_root))
    current = os.path.normpath(os.path.abspath(directory))

    if current != src and not current.startswith(src + os.sep):
        raise UnsupportedVCSError(
            f"directory {directory!r} is outside source root {source_root!r}"
        )

    while len(current) > len(src):
        for kind in VCS_MARKERS:
            if os.path.exists(os.path.join(current, "." + kind)):
                root = Path(os.path.relpath(current, src)).as_posix()
                backend = BACKENDS.get(kind)
                if backend is None:
                    raise UnsupportedVCSError(f"{kind} is unsupported: {directory}")
                return Repository(root=root, backend=backend)
        current = os.path.dirname(current)

    raise UnsupportedVCSError(
        f"directory {directory!r} is not using a known version control system"
    )


class RepositoryCache:
    """Memoizes detect_repository for the lifetime of one resolution run."""

    def __init__(self) -> None:
        self._repos: Dict[Tuple[str, str], Repository] = {}

    def lookup(self, directory: str, source_root: str) -> Repository:
        key = (directory, source_root)
        repo = self._repos.get(key)
        if repo is None:
            repo = detect_repository(directory, source_root)
            self._repos[key] = repo
        return repo

    def __len__(self) -> int:
        return len(self._repos)
