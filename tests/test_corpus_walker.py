"""
Tests for CorpusWalker.

Covers depth-first ordering, subtree pruning, hidden entries, non-regular
files and per-entry error isolation.
"""

import logging
import os
import sys
from pathlib import Path

import pytest

from csindex.core.exclusion import Decision, ExclusionFilter
from csindex.core.walker import CorpusWalker
from tests.support.corpus_utils import make_tree


def _walker(extra=()) -> CorpusWalker:
    return CorpusWalker(ExclusionFilter.from_patterns(extra))


def test_yields_regular_files_depth_first_in_name_order(tmp_path: Path):
    root = make_tree(
        tmp_path / "corpus",
        {
            "b.txt": "b",
            "a/z.txt": "z",
            "a/inner/y.txt": "y",
            "c/x.txt": "x",
        },
    )

    files = list(_walker().files(str(root)))

    assert files == [
        str(root / "a" / "inner" / "y.txt"),
        str(root / "a" / "z.txt"),
        str(root / "b.txt"),
        str(root / "c" / "x.txt"),
    ]


def test_excluded_subtree_is_never_visited(tmp_path: Path):
    root = make_tree(
        tmp_path / "corpus",
        {
            "main.go": "package main",
            "node_modules/pkg/index.js": "x",
            "generated/out.txt": "x",
        },
    )

    entries = list(_walker(["/generated$"]).walk(str(root)))
    paths = [e.path for e in entries]

    assert str(root / "node_modules") in paths
    assert str(root / "generated") in paths
    assert not any("pkg" in p or "out.txt" in p for p in paths)
    skipped = {e.path: e.decision for e in entries if e.decision is not Decision.INCLUDE}
    assert skipped[str(root / "node_modules")] is Decision.SKIP_SUBTREE
    assert skipped[str(root / "generated")] is Decision.SKIP_SUBTREE


def test_hidden_entries_are_omitted(tmp_path: Path):
    root = make_tree(
        tmp_path / "corpus",
        {
            "keep.txt": "k",
            ".hidden/secret.txt": "s",
            ".dotfile": "d",
            "#lock": "l",
            "backup~": "b",
            "~tmp": "t",
        },
    )

    assert list(_walker().files(str(root))) == [str(root / "keep.txt")]


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks and fifos need POSIX")
def test_symlinks_and_special_files_are_omitted_silently(tmp_path: Path, caplog):
    root = make_tree(tmp_path / "corpus", {"real.txt": "r", "dir/inside.txt": "i"})
    (root / "file_link").symlink_to(root / "real.txt")
    (root / "dir_link").symlink_to(root / "dir", target_is_directory=True)
    os.mkfifo(root / "pipe")

    with caplog.at_level(logging.WARNING, logger="csindex"):
        files = list(_walker().files(str(root)))

    assert files == [str(root / "dir" / "inside.txt"), str(root / "real.txt")]
    assert caplog.records == []


def test_root_that_is_a_file_is_yielded(tmp_path: Path):
    root = make_tree(tmp_path / "corpus", {"single.txt": "s"})

    files = list(_walker().files(str(root / "single.txt")))

    assert files == [str(root / "single.txt")]


def test_missing_root_reports_error_and_yields_nothing(tmp_path: Path, caplog):
    missing = tmp_path / "gone"

    with caplog.at_level(logging.WARNING, logger="csindex"):
        entries = list(_walker().walk(str(missing)))

    assert len(entries) == 1
    assert entries[0].error is not None
    assert not entries[0].indexable
    assert str(missing) in caplog.text


def test_unreadable_directory_is_skipped_and_walk_continues(
    tmp_path: Path, monkeypatch, caplog
):
    root = make_tree(
        tmp_path / "corpus",
        {"a/one.txt": "1", "locked/two.txt": "2", "z/three.txt": "3"},
    )
    locked = str(root / "locked")
    real_scandir = os.scandir

    def fake_scandir(path="."):
        if os.fspath(path) == locked:
            raise PermissionError(13, "Permission denied", locked)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", fake_scandir)

    with caplog.at_level(logging.WARNING, logger="csindex"):
        entries = list(_walker().walk(str(root)))

    files = [e.path for e in entries if e.indexable]
    assert files == [str(root / "a" / "one.txt"), str(root / "z" / "three.txt")]
    errored = [e for e in entries if e.error is not None]
    assert [e.path for e in errored] == [locked]
    assert locked in caplog.text


def test_walk_is_lazy(tmp_path: Path, monkeypatch):
    root = make_tree(tmp_path / "corpus", {"a/one.txt": "1", "b/two.txt": "2"})
    listed = []
    real_scandir = os.scandir

    def recording_scandir(path="."):
        listed.append(os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", recording_scandir)

    files = _walker().files(str(root))
    assert listed == []

    assert next(files) == str(root / "a" / "one.txt")
    assert str(root / "b") not in listed


def test_deep_tree_does_not_exhaust_the_stack(tmp_path: Path):
    deepest = tmp_path
    for _ in range(1100):
        deepest = deepest / "d"
        deepest.mkdir()
    leaf = deepest / "leaf.txt"
    leaf.write_text("leaf", encoding="utf-8")
    (tmp_path / "z.txt").write_text("z", encoding="utf-8")

    try:
        files = list(_walker().files(str(tmp_path)))
    finally:
        # rmtree recurses per level on older interpreters
        leaf.unlink()
        while deepest != tmp_path:
            deepest.rmdir()
            deepest = deepest.parent

    assert files == [str(leaf), str(tmp_path / "z.txt")]
