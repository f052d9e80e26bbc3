"""Settings for revpin, optionally loaded from a JSON file."""
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from revpin.core.errors import ConfigError

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Tunable paths and commands.

    Every field has a default, so an empty JSON object is a valid config.
    """

    model_config = ConfigDict(extra="forbid")

    vendor_dir: str = Field(default="vendor", description="Vendor tree, relative to the project")
    manifest_name: str = Field(default="Deps.json", description="Manifest file name inside vendor_dir")
    go_command: str = Field(default="go", description="Executable used to list packages")
    write_readme: bool = Field(default=True, description="Write a README into vendor_dir on save")

    def vendor_path(self, project_dir: Path) -> Path:
        return Path(project_dir) / self.vendor_dir

    def manifest_path(self, project_dir: Path) -> Path:
        return self.vendor_path(project_dir) / self.manifest_name


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from a JSON file, or defaults when no path is given.

    Raises:
        ConfigError: If the file is missing, is not JSON, or has bad values
    """
    if path is None:
        return Settings()

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file {path}: expected a JSON object")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}")

    logger.debug(f"Loaded settings from {path}")
    return settings
