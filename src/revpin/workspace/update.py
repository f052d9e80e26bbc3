"""The update operation: move selected dependencies to their current revision."""
import logging
from pathlib import Path
from typing import Optional, Sequence

from revpin.core.config import Settings
from revpin.deps.diff import check_conflicts, select, subtract
from revpin.deps.manifest import Manifest
from revpin.deps.resolver import (
    locate_dependencies,
    pin_revisions,
    repository_siblings,
)
from revpin.packages.loader import PackageLister
from revpin.vcs.backends import RepositoryCache
from revpin.vendor.tree import copy_sources

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_PATTERNS = ("...",)


def update_dependencies(
    project_dir: Path,
    patterns: Sequence[str],
    lister: PackageLister,
    settings: Optional[Settings] = None,
) -> Manifest:
    """Re-pin manifest dependencies matching patterns and re-vendor them.

    Unselected dependencies keep their revision, except those sharing a
    repository with a selected one, which are updated along with it.

    Args:
        project_dir: Project root holding the vendor directory
        patterns: Import path patterns (default: ``...``, everything)
        lister: Source of the package import graph
        settings: Paths and commands (default: Settings())

    Returns:
        The manifest as written

    Raises:
        NoMatchingDependencyError: If no pattern matched a dependency
        ResolutionFailedError: If any package could not be listed or identified
        DirtyWorkingTreeError: If a selected dependency has uncommitted changes
        ConflictingRevisionsError: If one repository would be pinned twice
        VendorIOError: If the vendor tree could not be fully synchronized
    """
    settings = settings or Settings()
    project_dir = Path(project_dir)
    vendor_dir = settings.vendor_path(project_dir)
    manifest_path = settings.manifest_path(project_dir)
    patterns = list(patterns) or list(DEFAULT_UPDATE_PATTERNS)

    manifest = Manifest.load(manifest_path)
    selected = select(patterns, manifest.deps)

    cache = RepositoryCache()
    located = locate_dependencies(lister, selected, cache)
    siblings = repository_siblings(manifest.deps, located.deps)
    if siblings:
        located.extend(locate_dependencies(lister, siblings, cache))
        selected = selected + siblings
    located.raise_for_errors()

    pinned = pin_revisions(located.deps)
    pinned.raise_for_errors()

    final = subtract(manifest.deps, selected) + pinned.deps
    check_conflicts(final)
    manifest.deps = final

    manifest.save(manifest_path)
    logger.info(f"Updated {len(pinned.deps)} dependencies in {manifest_path}")

    copy_sources(vendor_dir, pinned.deps)
    return manifest
