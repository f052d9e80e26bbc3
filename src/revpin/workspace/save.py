"""The save operation: record and vendor everything the project imports."""
import logging
from pathlib import Path
from typing import Optional, Sequence

from revpin.core.config import Settings
from revpin.deps.diff import check_conflicts, reconcile
from revpin.deps.manifest import Manifest
from revpin.deps.resolver import list_dependencies
from revpin.packages.loader import PackageLister
from revpin.vendor.tree import copy_sources, remove_sources, write_readme

logger = logging.getLogger(__name__)

DEFAULT_SAVE_PATTERNS = ("./...",)


def save_dependencies(
    project_dir: Path,
    patterns: Sequence[str],
    lister: PackageLister,
    settings: Optional[Settings] = None,
) -> Manifest:
    """Reconcile the manifest with the current import graph and vendor it.

    New dependencies are pinned at the revision checked out in the workspace;
    dependencies already in the manifest keep their recorded revision, and
    dependencies no longer imported are dropped. The manifest is written only
    once every dependency resolved cleanly and no revisions conflict.

    Args:
        project_dir: Project root holding the vendor directory
        patterns: Root package patterns (default: ``./...``)
        lister: Source of the package import graph
        settings: Paths and commands (default: Settings())

    Returns:
        The manifest as written

    Raises:
        ResolutionFailedError: If any package could not be listed or identified
        DirtyWorkingTreeError: If a dependency has uncommitted changes
        ConflictingRevisionsError: If one repository would be pinned twice
        VendorIOError: If the vendor tree could not be fully synchronized
    """
    settings = settings or Settings()
    project_dir = Path(project_dir)
    vendor_dir = settings.vendor_path(project_dir)
    manifest_path = settings.manifest_path(project_dir)

    explicit = list(patterns)
    patterns = explicit or list(DEFAULT_SAVE_PATTERNS)

    tool_version = lister.tool_version()
    manifest = Manifest.load(manifest_path)
    manifest.import_path = lister.import_path(".")
    manifest.tool_version = tool_version
    manifest.packages = explicit

    resolution = list_dependencies(lister, patterns)
    resolution.raise_for_errors()

    final, added, removed = reconcile(manifest.deps, resolution.deps)
    check_conflicts(final)
    manifest.deps = final

    if settings.write_readme:
        write_readme(vendor_dir)
    manifest.save(manifest_path)
    logger.info(
        f"Saved {len(final)} dependencies to {manifest_path} "
        f"({len(added)} added, {len(removed)} removed)"
    )

    remove_sources(vendor_dir, removed)
    copy_sources(vendor_dir, added)
    return manifest
