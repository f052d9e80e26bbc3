"""Set algebra over dependency lists and same-repository conflict checks."""
import logging
from typing import List, Sequence, Tuple

from revpin.core.errors import ConflictingRevisionsError, NoMatchingDependencyError
from revpin.deps.manifest import Dependency
from revpin.deps.pattern import compile_pattern

logger = logging.getLogger(__name__)


def subtract(a: Sequence[Dependency], b: Sequence[Dependency]) -> List[Dependency]:
    """Return a - b, comparing by import path. Keeps a's order."""
    exclude = {d.import_path for d in b}
    return [d for d in a if d.import_path not in exclude]


def reconcile(
    current: Sequence[Dependency],
    desired: Sequence[Dependency],
) -> Tuple[List[Dependency], List[Dependency], List[Dependency]]:
    """Merge the desired dependency set into the current one.

    Dependencies present in both keep their current revision.

    Returns:
        (final, added, removed)
    """
    removed = subtract(current, desired)
    added = subtract(desired, current)
    final = subtract(current, removed) + added
    return final, added, removed


def _under(path: str, prefix: str) -> bool:
    return bool(prefix) and path.startswith(prefix + "/")


def check_conflicts(deps: Sequence[Dependency]) -> None:
    """Ensure each repository contributes a single revision.

    Raises:
        ConflictingRevisionsError: For the first pair of related packages
            whose revisions differ
    """
    for da in deps:
        for db in deps:
            if da is db:
                continue
            related = (
                _under(db.import_path, da.import_path)
                or _under(da.import_path, db.root)
                or (da.root and da.root == db.root)
            )
            if related and da.rev != db.rev:
                raise ConflictingRevisionsError(da.import_path, da.rev, db.import_path, db.rev)


def select(patterns: Sequence[str], deps: Sequence[Dependency]) -> List[Dependency]:
    """Mark and return the dependencies matching any of patterns.

    Raises:
        NoMatchingDependencyError: If no pattern matched anything
    """
    selected: List[Dependency] = []
    for pattern in patterns:
        matches = compile_pattern(pattern)
        found = False
        for dep in deps:
            if matches(dep.import_path):
                found = True
                if not dep.matched:
                    dep.matched = True
                    selected.append(dep)
        if not found:
            logger.warning(f"not in manifest: {pattern}")
    if not selected:
        raise NoMatchingDependencyError(
            f"no dependency matches {', '.join(patterns)}"
        )
    return selected
