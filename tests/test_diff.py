"""Tests for dependency set algebra, selection and conflict detection."""
import pytest

from revpin.core.errors import ConflictingRevisionsError, NoMatchingDependencyError
from revpin.deps import Dependency, check_conflicts, reconcile, select, subtract


def dep(path, rev="", root=""):
    return Dependency(import_path=path, rev=rev, root=root)


def paths(deps):
    return [d.import_path for d in deps]


class TestSubtract:
    def test_keeps_order_of_first_operand(self):
        a = [dep("z"), dep("b"), dep("m"), dep("a")]
        b = [dep("m"), dep("q")]
        assert paths(subtract(a, b)) == ["z", "b", "a"]

    def test_compares_by_import_path_only(self):
        a = [dep("D", rev="r1")]
        b = [dep("D", rev="r2")]
        assert subtract(a, b) == []

    def test_empty_operands(self):
        assert subtract([], [dep("a")]) == []
        assert paths(subtract([dep("a")], [])) == ["a"]


def test_reconcile_keeps_existing_revisions():
    current = [dep("D", rev="old"), dep("gone", rev="g1")]
    desired = [dep("D", rev="new"), dep("E", rev="e1")]

    final, added, removed = reconcile(current, desired)

    assert paths(removed) == ["gone"]
    assert paths(added) == ["E"]
    assert [(d.import_path, d.rev) for d in final] == [("D", "old"), ("E", "e1")]


def test_reconcile_is_idempotent():
    current = [dep("D", rev="d1"), dep("E", rev="e1")]
    final, added, removed = reconcile(current, [dep("D", rev="d1"), dep("E", rev="e1")])
    assert added == [] and removed == []
    assert paths(final) == ["D", "E"]


class TestCheckConflicts:
    def test_same_repository_different_revisions(self):
        deps = [dep("D/A", rev="r1", root="D"), dep("D/B", rev="r2", root="D")]
        with pytest.raises(ConflictingRevisionsError) as exc_info:
            check_conflicts(deps)
        err = exc_info.value
        assert {err.path_a, err.path_b} == {"D/A", "D/B"}
        assert {err.rev_a, err.rev_b} == {"r1", "r2"}

    def test_same_repository_same_revision(self):
        check_conflicts([dep("D/A", rev="r1", root="D"), dep("D/B", rev="r1", root="D")])

    def test_parent_child_without_known_root(self):
        with pytest.raises(ConflictingRevisionsError):
            check_conflicts([dep("D", rev="r1"), dep("D/A", rev="r2")])

    def test_package_under_other_repository_root(self):
        """A manifest entry with no resolved root still conflicts with its repo."""
        with pytest.raises(ConflictingRevisionsError):
            check_conflicts([dep("D/B", rev="r1"), dep("D/A", rev="r2", root="D")])

    def test_unrelated_repositories(self):
        check_conflicts([dep("D", rev="r1", root="D"), dep("DX", rev="r2", root="DX")])


class TestSelect:
    def test_marks_matching_dependencies(self):
        deps = [dep("D"), dep("D/A"), dep("E")]
        selected = select(["D/..."], deps)
        assert paths(selected) == ["D", "D/A"]
        assert [d.matched for d in deps] == [True, True, False]

    def test_overlapping_patterns_select_once(self):
        deps = [dep("D"), dep("E")]
        assert paths(select(["D", "...", "E"], deps)) == ["D", "E"]

    def test_partial_miss_is_logged(self, caplog):
        deps = [dep("D"), dep("E")]
        selected = select(["D", "nope"], deps)
        assert paths(selected) == ["D"]
        assert "not in manifest: nope" in caplog.text

    def test_no_match_raises(self):
        with pytest.raises(NoMatchingDependencyError):
            select(["nope", "also/..."], [dep("D")])
