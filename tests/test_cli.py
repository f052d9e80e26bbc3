"""Tests for the revpin command line."""
import json

import pytest
from click.testing import CliRunner

from conftest import commit_files
from revpin import cli
from revpin.cli import main


@pytest.fixture
def run(gopath, monkeypatch):
    """Invoke the CLI against the gopath fixture with a fake package lister."""
    monkeypatch.setattr(cli, "GoListLoader", lambda *args, **kwargs: gopath["lister"])
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(main, ["-C", str(gopath["project"]), *args])

    return invoke


def test_cli_help_returns_zero_exit_code():
    result = CliRunner().invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "save" in result.output
    assert "update" in result.output


def test_save_then_update(gopath, run):
    result = run("save")
    assert result.exit_code == 0, result.output
    d2 = commit_files(gopath["D"], {"d2.go": "package D\n"}, "advance D")

    result = run("update", "D")

    assert result.exit_code == 0, result.output
    data = json.loads((gopath["project"] / "vendor" / "Deps.json").read_text())
    assert data["Deps"][0] == {"ImportPath": "D", "Rev": d2}


def test_update_no_match_exit_code_6(run):
    assert run("save").exit_code == 0
    assert run("update", "nope").exit_code == 6


def test_dirty_tree_exit_code_4(gopath, run):
    (gopath["E"] / "e.go").write_text("package E\n\nvar dirty int\n")
    assert run("save").exit_code == 4


def test_resolution_failure_exit_code_3(gopath, run):
    gopath["lister"].graph["C"] = ["missing"]
    assert run("save").exit_code == 3


def test_conflict_exit_code_5(gopath, run):
    lister = gopath["lister"]
    lister.graph["C"] = ["D/A"]
    assert run("save").exit_code == 0
    commit_files(gopath["D"], {"d2.go": "package D\n"}, "advance D")
    lister.graph["C"] = ["D/A", "D/B"]
    assert run("save").exit_code == 5


def test_bad_config_exit_code_7(run, tmp_path):
    config = tmp_path / "revpin.json"
    config.write_text("{not json")
    assert run("--config", str(config), "save").exit_code == 7


def test_config_file_changes_vendor_dir(gopath, run, tmp_path):
    config = tmp_path / "revpin.json"
    config.write_text(json.dumps({"vendor_dir": "third_party"}))

    result = run("--config", str(config), "save")

    assert result.exit_code == 0, result.output
    assert (gopath["project"] / "third_party" / "Deps.json").exists()
