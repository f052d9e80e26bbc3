"""Manifest model: the pinned revision of every vendored dependency."""
import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from revpin.core.errors import ManifestError
from revpin.vcs.backends import Backend


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class Dependency(BaseModel):
    """A specific revision of one package.

    Only ImportPath, Comment and Rev are persisted. The remaining fields are
    filled while resolving and never written to disk.
    """

    model_config = ConfigDict(populate_by_name=True)

    import_path: str = Field(..., alias="ImportPath", description="Package import path")
    comment: str = Field(default="", alias="Comment", description="Description of the revision, if any")
    rev: str = Field(default="", alias="Rev", description="VCS-specific revision id")

    # Resolution-only state
    workspace: str = Field(default="", exclude=True, description="Workspace root containing src/")
    dir: str = Field(default="", exclude=True, description="Package directory on disk")
    root: str = Field(default="", exclude=True, description="Repository root as an import path")
    matched: bool = Field(default=False, exclude=True, description="Selected for update")
    backend: Optional[Backend] = Field(default=None, exclude=True)

    def to_json_dict(self) -> dict:
        data = self.model_dump(by_alias=True)
        if not data["Comment"]:
            del data["Comment"]
        return data


class Manifest(BaseModel):
    """Everything needed to rebuild a project reproducibly.

    Dependencies are always written sorted by import path so that two saves
    of the same state produce identical bytes.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "ImportPath": "example.com/project",
                "GoVersion": "go1.22.1",
                "Deps": [
                    {
                        "ImportPath": "github.com/pkg/errors",
                        "Comment": "v0.9.1",
                        "Rev": "614d223910a179a466c1767a985424175c39b465",
                    }
                ],
            }
        },
    )

    import_path: str = Field(default="", alias="ImportPath")
    tool_version: str = Field(
        default="",
        alias="GoVersion",
        validation_alias=AliasChoices("GoVersion", "ToolVersion"),
    )
    packages: List[str] = Field(default_factory=list, alias="Packages", description="Arguments to save, if any")
    deps: List[Dependency] = Field(default_factory=list, alias="Deps")

    @field_validator("deps", "packages", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return [] if v is None else v

    def sort_deps(self) -> None:
        self.deps.sort(key=lambda d: d.import_path)

    def to_json(self) -> str:
        """Serialize to tab-indented JSON with a trailing newline."""
        self.sort_deps()
        data = {
            "ImportPath": self.import_path,
            "GoVersion": self.tool_version,
        }
        if self.packages:
            data["Packages"] = list(self.packages)
        data["Deps"] = [d.to_json_dict() for d in self.deps]
        return json.dumps(data, indent="\t") + "\n"

    def save(self, path: Path) -> None:
        """Atomically replace the manifest file at path."""
        path = Path(path)
        content = self.to_json()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".Deps-", suffix=".tmp", dir=str(path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.chmod(tmp_name, 0o666 & ~_current_umask())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ManifestError(f"Cannot write manifest {path}: {e}")

    @classmethod
    def load(cls, path: Path) -> "Manifest":
        """Load a manifest; a missing file is an empty manifest."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls()
        except OSError as e:
            raise ManifestError(f"Cannot read manifest {path}: {e}")

        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest {path}: {e}")
