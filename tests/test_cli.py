from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sshmirror import cli
from sshmirror.cli import (
    EXIT_BAD_FLAGS,
    EXIT_LOCAL_FAILURE,
    EXIT_OK,
    EXIT_REMOTE_FAILURE,
    EXIT_USAGE,
    app,
    main,
)

from conftest import FakeRemoteTree, mk_file, remote_failure, tree


@pytest.fixture
def source(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    (root / "x").mkdir(parents=True)
    page = root / "x" / "f.txt"
    page.write_text("hi", encoding="utf-8")
    page.chmod(0o644)
    os.utime(page, (100, 100))
    return root


@pytest.fixture
def remote(monkeypatch) -> FakeRemoteTree:
    fake = FakeRemoteTree(
        tree(("x", "y"), (mk_file("x/f.txt", mtime_sec=100), mk_file("y/g.txt")))
    )
    opened: list[tuple[object, str]] = []

    @contextmanager
    def fake_open(target, root):
        opened.append((target, root))
        yield fake

    monkeypatch.setattr(cli, "open_remote_tree", fake_open)
    fake.opened = opened
    return fake


def _args(tmp_path: Path, *args: str) -> list[str]:
    return ["--ssh-config", str(tmp_path / "no_ssh_config"), *args]


def test_help_lists_flags() -> None:
    result = CliRunner().invoke(app, ["--help"])
    assert result.exit_code == 0
    for flag in ("--dry", "--verbose", "--debug", "--overwrite-all"):
        assert flag in result.output


def test_wrong_argument_count_is_usage_error(tmp_path, remote, capsys) -> None:
    assert main(_args(tmp_path, "only-one")) == EXIT_USAGE
    assert "Usage: sshmirror" in capsys.readouterr().err
    assert remote.opened == []


def test_unknown_flag_is_flag_error(tmp_path, remote, capsys) -> None:
    assert main(["--bogus", "a", "b", "c"]) == EXIT_BAD_FLAGS
    assert "Usage: sshmirror" in capsys.readouterr().err
    assert remote.opened == []


def test_missing_source_is_usage_error(tmp_path, remote) -> None:
    code = main(_args(tmp_path, str(tmp_path / "nope"), "deploy@host", "/srv"))
    assert code == EXIT_USAGE
    assert remote.opened == []


def test_dry_run_prints_report(tmp_path, source, remote, capsys) -> None:
    code = main(_args(tmp_path, "--dry", str(source), "deploy@host", "/srv/www/"))

    assert code == EXIT_OK
    assert capsys.readouterr().out == (
        "### WOULD CREATE DIRECTORIES ###\n"
        "### WOULD COPY FILES ###\n"
        "### WOULD DELETE DIRECTORIES ###\n"
        "y\n"
        "### WOULD DELETE FILES ###\n"
    )
    assert remote.mutations == []
    target, root = remote.opened[0]
    assert (target.user, target.host, root) == ("deploy", "host", "/srv/www")


def test_real_run_prints_summary(tmp_path, source, remote, capsys) -> None:
    code = main(_args(tmp_path, "-v", str(source), "deploy@host", "/srv"))

    assert code == EXIT_OK
    assert remote.mutations == [("delete_recursive", "y")]
    assert "deleted 1 directories and 0 files" in capsys.readouterr().out


def test_remote_failure_exit_code(tmp_path, source, remote, capsys) -> None:
    remote.failures[("delete_recursive", "y")] = remote_failure("delete", "y")

    code = main(_args(tmp_path, str(source), "deploy@host", "/srv"))

    assert code == EXIT_REMOTE_FAILURE
    assert "delete y" in capsys.readouterr().err


def test_overwrite_all_copies_tree(tmp_path, source, remote) -> None:
    code = main(_args(tmp_path, "--overwrite-all", str(source), "deploy@host", "/srv"))

    assert code == EXIT_OK
    assert remote.mutations == [
        ("copy_tree", str(source.resolve())),
        ("delete_recursive", "y"),
    ]


def test_local_read_error_stops_before_remote_changes(
    tmp_path, source, remote, monkeypatch, capsys
) -> None:
    def fake_walk(top, topdown=True, onerror=None, followlinks=False):
        onerror(PermissionError(13, "Permission denied", str(source / "x")))
        yield from ()

    monkeypatch.setattr(os, "walk", fake_walk)

    code = main(_args(tmp_path, str(source), "deploy@host", "/srv"))

    assert code == EXIT_LOCAL_FAILURE
    assert "Local scan failed" in capsys.readouterr().err
    assert remote.mutations == []


def test_default_run_announces_deletions_on_stdout(
    tmp_path, source, remote, capsys
) -> None:
    code = main(_args(tmp_path, str(source), "deploy@host", "/srv"))

    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "No files to copy.\nDeleting directories ...\ny\nNo files to delete.\n" in out


def test_usage_line_lists_every_option(tmp_path, remote, capsys) -> None:
    main(_args(tmp_path, "only-one"))
    err = capsys.readouterr().err
    for option in ("--port N", "--ssh-config PATH", "--copy-workers N"):
        assert option in err
