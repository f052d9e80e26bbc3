"""Dependency manifests: model, selection, reconciliation and resolution."""
from revpin.deps.diff import check_conflicts, reconcile, select, subtract
from revpin.deps.manifest import Dependency, Manifest
from revpin.deps.pattern import compile_pattern, match_pattern
from revpin.deps.resolver import (
    Resolution,
    list_dependencies,
    locate_dependencies,
    pin_revisions,
    repository_siblings,
)

__all__ = [
    "Dependency",
    "Manifest",
    "Resolution",
    "check_conflicts",
    "compile_pattern",
    "list_dependencies",
    "locate_dependencies",
    "match_pattern",
    "pin_revisions",
    "reconcile",
    "repository_siblings",
    "select",
    "subtract",
]
