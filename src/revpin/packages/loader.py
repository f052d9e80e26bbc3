"""Package listing: the import graph as reported by the go tool."""
import json
import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from revpin.core.errors import PackageListError

logger = logging.getLogger(__name__)


class PackageInfo(BaseModel):
    """One package from ``go list -json``.

    ``Error`` arrives as an object (``{"Err": "..."}``) and is flattened to a
    string; an empty string means the package loaded cleanly.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    import_path: str = Field(..., alias="ImportPath")
    dir: str = Field(default="", alias="Dir", description="Package directory")
    root: str = Field(default="", alias="Root", description="Workspace root containing src/")
    standard: bool = Field(default=False, alias="Standard")
    error: str = Field(default="", alias="Error")
    deps: List[str] = Field(default_factory=list, alias="Deps")
    test_imports: List[str] = Field(default_factory=list, alias="TestImports")
    xtest_imports: List[str] = Field(default_factory=list, alias="XTestImports")

    @model_validator(mode="before")
    @classmethod
    def flatten_error(cls, data):
        if isinstance(data, dict) and "Error" in data:
            err = data["Error"]
            data = dict(data)
            data["Error"] = (err or {}).get("Err", "") if not isinstance(err, str) else err
        return data

    @property
    def source_root(self) -> str:
        return os.path.join(self.root, "src")


class PackageLister(Protocol):
    """Anything that can report the import graph of a workspace."""

    def list(self, *patterns: str) -> List[PackageInfo]:
        ...

    def import_path(self, pattern: str) -> str:
        ...

    def tool_version(self) -> str:
        ...


def parse_package_stream(text: str) -> List[PackageInfo]:
    """Decode the concatenated JSON objects printed by ``go list -json``.

    An object that fails validation is kept as a package carrying the
    validation message as its error, so the caller reports it with the rest.
    """
    decoder = json.JSONDecoder()
    packages: List[PackageInfo] = []
    pos = 0
    length = len(text)
    while True:
        while pos < length and text[pos].isspace():
            pos += 1
        if pos >= length:
            break
        try:
            obj, pos = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise PackageListError(f"Malformed package listing: {e}")
        try:
            packages.append(PackageInfo.model_validate(obj))
        except ValidationError as e:
            name = obj.get("ImportPath", "?") if isinstance(obj, dict) else "?"
            packages.append(PackageInfo(import_path=str(name), error=str(e)))
    return packages


class GoListLoader:
    """PackageLister backed by ``go list -e -json``.

    Unlike the go tool, an empty pattern list lists nothing rather than the
    package in the current directory.
    """

    def __init__(self, go_command: str = "go", cwd: Optional[Path] = None):
        self.go_command = go_command
        self.cwd = Path(cwd) if cwd is not None else None

    def _run(self, args: List[str]) -> str:
        cmdline = " ".join([self.go_command] + args)
        logger.debug(f"Running {cmdline}")
        try:
            result = subprocess.run(
                [self.go_command] + args,
                cwd=self.cwd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise PackageListError(f"Cannot run {cmdline}: {e}")

        if result.returncode != 0:
            raise PackageListError(
                f"{cmdline} failed: {result.stderr.strip()}"
            )
        return result.stdout

    def list(self, *patterns: str) -> List[PackageInfo]:
        if not patterns:
            return []
        return parse_package_stream(self._run(["list", "-e", "-json"] + list(patterns)))

    def import_path(self, pattern: str) -> str:
        packages = self.list(pattern)
        if not packages:
            raise PackageListError(f"No package matches {pattern}")
        return packages[0].import_path

    def tool_version(self) -> str:
        """Return the go version, e.g. ``go1.22.1``."""
        out = self._run(["version"])
        fields = out.split()
        if len(fields) < 3:
            raise PackageListError(
                f"Unexpected output of {self.go_command} version: {out!r}"
            )
        return fields[2]
