"""Import path patterns for selecting dependencies.

``...`` is the only wildcard and matches any string, slashes included.
A pattern ending in ``/...`` also matches the bare prefix, so ``a/...``
selects ``a`` as well as ``a/b``. Patterns match whole import paths.
"""
import re
from typing import Callable

WILDCARD = "..."


def compile_pattern(pattern: str) -> Callable[[str], bool]:
    """Compile pattern into a predicate over import paths."""
    expr = re.escape(pattern).replace(re.escape(WILDCARD), ".*")
    if expr.endswith("/.*"):
        expr = expr[: -len("/.*")] + "(/.*)?"
    regex = re.compile(expr, re.DOTALL)
    return lambda name: regex.fullmatch(name) is not None


def match_pattern(pattern: str, name: str) -> bool:
    return compile_pattern(pattern)(name)
