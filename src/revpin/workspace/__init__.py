"""Workspace operations: save and update."""
from revpin.workspace.save import save_dependencies
from revpin.workspace.update import update_dependencies

__all__ = [
    "save_dependencies",
    "update_dependencies",
]
