"""Version control backends and repository detection."""
from revpin.vcs.backends import (
    BACKENDS,
    Backend,
    Repository,
    RepositoryCache,
    detect_repository,
)

__all__ = [
    "BACKENDS",
    "Backend",
    "Repository",
    "RepositoryCache",
    "detect_repository",
]
