"""Resolve packages to pinned dependencies.

Resolution never stops at the first bad package: every dependency is tried,
problems are logged and collected in a Resolution, and the caller decides
whether to proceed. Nothing here writes to disk.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from revpin.core.errors import (
    DirtyWorkingTreeError,
    ResolutionFailedError,
    RevpinError,
)
from revpin.deps.manifest import Dependency
from revpin.packages.loader import PackageInfo, PackageLister
from revpin.vcs.backends import RepositoryCache

logger = logging.getLogger(__name__)

VENDOR_DIR = "vendor"
VENDOR_SEP = "/" + VENDOR_DIR + "/"


@dataclass
class Resolution:
    """Aggregate outcome of resolving a batch of dependencies."""

    deps: List[Dependency] = field(default_factory=list)
    errors: List[RevpinError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def fail(self, error: RevpinError) -> None:
        logger.error(str(error))
        self.errors.append(error)

    def extend(self, other: "Resolution") -> None:
        self.deps.extend(other.deps)
        self.errors.extend(other.errors)

    def raise_for_errors(self) -> None:
        """Raise if anything failed; a dirty tree outranks other failures."""
        if self.ok:
            return
        for error in self.errors:
            if isinstance(error, DirtyWorkingTreeError):
                raise error
        raise ResolutionFailedError(self.errors)


def unqualify(import_path: str) -> str:
    """Strip vendored qualification: ``a/vendor/b`` -> ``b``."""
    i = import_path.rfind(VENDOR_SEP)
    if i != -1:
        return import_path[i + len(VENDOR_SEP):]
    return import_path


def contains_path_prefix(prefixes: Iterable[str], path: str) -> bool:
    """Return whether any prefix is path or a directory containing it.

    ``["a"]`` matches ``a`` and ``a/b`` but not ``ab``.
    """
    return any(p == path or path.startswith(p + "/") for p in prefixes)


def _package_error(pkg: PackageInfo) -> RevpinError:
    return RevpinError(f"{pkg.import_path}: {pkg.error}")


def _pin(dep: Dependency, resolution: Resolution) -> bool:
    """Identify dep's checked-out revision and verify the tree is clean."""
    try:
        rev = dep.backend.identify(dep.dir)
    except RevpinError as e:
        logger.error(f"{dep.import_path}: cannot identify revision in {dep.dir}")
        resolution.fail(e)
        return False
    if dep.backend.is_dirty(dep.dir, rev):
        resolution.fail(DirtyWorkingTreeError(dep.dir))
        return False
    dep.rev = rev
    dep.comment = dep.backend.describe(dep.dir, rev)
    return True


def list_dependencies(
    lister: PackageLister,
    patterns: Sequence[str],
    cache: Optional[RepositoryCache] = None,
) -> Resolution:
    """Compute the pinned dependencies of the packages matching patterns.

    Packages from the same repositories as the root packages are part of the
    project and are not dependencies. Test imports of the root packages count.
    """
    cache = cache or RepositoryCache()
    resolution = Resolution()
    seen: List[str] = []
    paths: List[str] = []

    roots = lister.list(*patterns)
    for pkg in roots:
        if pkg.standard:
            logger.debug(f"ignoring stdlib package: {pkg.import_path}")
            continue
        if pkg.error:
            resolution.fail(_package_error(pkg))
            continue
        try:
            repo = cache.lookup(pkg.dir, pkg.source_root)
        except RevpinError as e:
            resolution.fail(e)
            continue
        seen.append(repo.root)
        paths.extend(pkg.deps)

    test_imports: List[str] = []
    for pkg in roots:
        test_imports.extend(pkg.test_imports)
        test_imports.extend(pkg.xtest_imports)
    for pkg in lister.list(*test_imports):
        if pkg.standard:
            continue
        if pkg.error:
            resolution.fail(_package_error(pkg))
            continue
        paths.append(pkg.import_path)
        paths.extend(pkg.deps)

    paths = sorted(set(unqualify(p) for p in paths))

    for pkg in lister.list(*paths):
        if pkg.error:
            resolution.fail(_package_error(pkg))
            continue
        if pkg.standard:
            continue
        try:
            repo = cache.lookup(pkg.dir, pkg.source_root)
        except RevpinError as e:
            resolution.fail(e)
            continue
        if contains_path_prefix(seen, pkg.import_path):
            continue
        seen.append(pkg.import_path)

        dep = Dependency(
            import_path=pkg.import_path,
            dir=pkg.dir,
            workspace=pkg.root,
            root=repo.root,
            backend=repo.backend,
        )
        if _pin(dep, resolution):
            resolution.deps.append(dep)

    return resolution


def locate_dependencies(
    lister: PackageLister,
    deps: Sequence[Dependency],
    cache: Optional[RepositoryCache] = None,
) -> Resolution:
    """Find each dependency's package directory and repository on disk.

    The dependencies are updated in place; revisions are left untouched.
    """
    cache = cache or RepositoryCache()
    resolution = Resolution()
    if not deps:
        return resolution

    listed = {pkg.import_path: pkg for pkg in lister.list(*[d.import_path for d in deps])}
    for dep in deps:
        pkg = listed.get(dep.import_path)
        if pkg is None:
            resolution.fail(RevpinError(f"{dep.import_path}: error listing package"))
            continue
        if pkg.error:
            resolution.fail(_package_error(pkg))
            continue
        try:
            repo = cache.lookup(pkg.dir, pkg.source_root)
        except RevpinError as e:
            resolution.fail(e)
            continue
        dep.dir = pkg.dir
        dep.workspace = pkg.root
        dep.root = repo.root
        dep.backend = repo.backend
        resolution.deps.append(dep)
    return resolution


def pin_revisions(deps: Sequence[Dependency]) -> Resolution:
    """Pin located dependencies to the revisions currently checked out."""
    resolution = Resolution()
    for dep in deps:
        if _pin(dep, resolution):
            resolution.deps.append(dep)
    return resolution


def repository_siblings(
    deps: Sequence[Dependency],
    located: Sequence[Dependency],
) -> List[Dependency]:
    """Return unselected deps living in the repository of a located dep.

    Updating one package of a repository moves the whole repository, so its
    other vendored packages must follow or the manifest would pin two
    revisions of one repository.
    """
    roots = {d.root for d in located if d.root}
    siblings = []
    for dep in deps:
        if dep.matched:
            continue
        if contains_path_prefix(roots, dep.import_path):
            logger.info(f"updating {dep.import_path} with its repository")
            dep.matched = True
            siblings.append(dep)
    return siblings
