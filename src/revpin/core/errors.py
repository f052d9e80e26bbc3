"""Core exception types for revpin."""
from typing import List


class RevpinError(Exception):
    """Base exception for all revpin errors."""
    pass


class ConfigError(RevpinError):
    """Raised when the settings file cannot be read or validated."""
    pass


class ManifestError(RevpinError):
    """Raised when the dependency manifest cannot be read or written."""
    pass


class PackageListError(RevpinError):
    """Raised when the package lister itself fails to run."""
    pass


class BackendUnavailableError(RevpinError):
    """Raised when a version control executable is not on PATH."""
    pass


class UnsupportedVCSError(RevpinError):
    """Raised when a directory is not under a registered version control system."""
    pass


class CommandFailedError(RevpinError):
    """Raised when a version control command exits non-zero or cannot run."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class DirtyWorkingTreeError(RevpinError):
    """Raised when a dependency's working tree differs from its revision."""

    def __init__(self, directory: str):
        super().__init__(f"dirty working tree: {directory}")
        self.directory = directory


class ConflictingRevisionsError(RevpinError):
    """Raised when two packages from one repository disagree on revision."""

    def __init__(self, path_a: str, rev_a: str, path_b: str, rev_b: str):
        super().__init__(
            f"conflicting revisions: {path_a}@{rev_a} and {path_b}@{rev_b}"
        )
        self.path_a = path_a
        self.rev_a = rev_a
        self.path_b = path_b
        self.rev_b = rev_b


class ResolutionFailedError(RevpinError):
    """Raised when one or more dependencies could not be listed or identified."""

    def __init__(self, errors: List[RevpinError]):
        self.errors = list(errors)
        noun = "error" if len(self.errors) == 1 else "errors"
        super().__init__(
            f"error loading dependencies ({len(self.errors)} {noun}): "
            + "; ".join(str(e) for e in self.errors)
        )


class NoMatchingDependencyError(RevpinError):
    """Raised when no update pattern matched any dependency in the manifest."""
    pass


class VendorIOError(RevpinError):
    """Raised when copying or removing vendored sources was incomplete."""
    pass
