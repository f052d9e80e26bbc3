"""revpin CLI - pin and vendor the dependencies of a Go workspace."""
import logging
import sys
from pathlib import Path

import click

from revpin.core.config import load_settings
from revpin.core.errors import (
    ConfigError,
    ConflictingRevisionsError,
    DirtyWorkingTreeError,
    NoMatchingDependencyError,
    ResolutionFailedError,
    RevpinError,
)
from revpin.packages.loader import GoListLoader
from revpin.workspace import save_dependencies, update_dependencies

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
)
logger = logging.getLogger("revpin")

EXIT_CODES = (
    (ResolutionFailedError, 3),
    (DirtyWorkingTreeError, 4),
    (ConflictingRevisionsError, 5),
    (NoMatchingDependencyError, 6),
    (ConfigError, 7),
)


def _exit_for(error: Exception) -> None:
    for error_type, code in EXIT_CODES:
        if isinstance(error, error_type):
            sys.exit(code)
    sys.exit(1)


@click.group()
@click.option(
    "--config",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON settings file",
)
@click.option(
    "-C",
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
    help="Project root (default: current directory)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Log external commands and skipped packages",
)
@click.pass_context
def main(ctx: click.Context, config: Path, project_dir: Path, verbose: bool):
    """revpin - pin dependencies to VCS revisions and vendor their sources."""
    if verbose:
        logging.getLogger("revpin").setLevel(logging.DEBUG)
    try:
        settings = load_settings(config)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(7)
    ctx.obj = {"settings": settings, "project_dir": project_dir}


@main.command()
@click.argument("patterns", nargs=-1)
@click.pass_obj
def save(obj: dict, patterns):
    """Record and vendor the dependencies of PATTERNS.

    With no patterns, everything under the project (./...) is considered.

    Examples:
        revpin save
        revpin -C ~/go/src/example.com/app save ./cmd/...

    Exit codes:
        0: Success
        1: Generic runtime failure
        3: A package could not be listed or identified
        4: A dependency has uncommitted changes
        5: Two packages of one repository need different revisions
        7: Configuration file error
    """
    settings = obj["settings"]
    project_dir = obj["project_dir"]
    lister = GoListLoader(settings.go_command, cwd=project_dir)
    try:
        manifest = save_dependencies(project_dir, patterns, lister, settings)
    except RevpinError as e:
        logger.error(f"save failed: {e}")
        _exit_for(e)
    logger.debug(f"{len(manifest.deps)} dependencies pinned")


@main.command()
@click.argument("patterns", nargs=-1)
@click.pass_obj
def update(obj: dict, patterns):
    """Re-pin manifest dependencies matching PATTERNS to their current revision.

    Patterns match import paths; "..." matches any suffix. With no patterns,
    every dependency is updated.

    Examples:
        revpin update github.com/pkg/errors
        revpin update 'golang.org/x/...'

    Exit codes:
        0: Success
        1: Generic runtime failure
        3: A package could not be listed or identified
        4: A dependency has uncommitted changes
        5: Two packages of one repository need different revisions
        6: No pattern matched a dependency
        7: Configuration file error
    """
    settings = obj["settings"]
    project_dir = obj["project_dir"]
    lister = GoListLoader(settings.go_command, cwd=project_dir)
    try:
        manifest = update_dependencies(project_dir, patterns, lister, settings)
    except RevpinError as e:
        logger.error(f"update failed: {e}")
        _exit_for(e)
    logger.debug(f"{len(manifest.deps)} dependencies pinned")


if __name__ == "__main__":
    main()
