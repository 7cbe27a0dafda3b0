"""Tests for entry point path probing."""

from __future__ import annotations

import pytest

from plugintester.editions.paths import resolve_path, strip_extension


def test_resolve_path_probes_extensions_in_order(tmp_path):
    edition = tmp_path / "edition-browser"
    edition.mkdir()
    (edition / "index.mjs").write_text("", encoding="utf-8")

    resolved = resolve_path([tmp_path, "edition-browser", "index"], ["js", "mjs"])

    assert resolved == edition / "index.mjs"


def test_resolve_path_prefers_existing_path_as_is(tmp_path):
    (tmp_path / "index").write_text("", encoding="utf-8")
    (tmp_path / "index.py").write_text("", encoding="utf-8")

    assert resolve_path([tmp_path, "index"], ["py"]) == tmp_path / "index"


def test_resolve_path_first_extension_wins(tmp_path):
    (tmp_path / "index.py").write_text("", encoding="utf-8")
    (tmp_path / "index.pyw").write_text("", encoding="utf-8")

    assert resolve_path([tmp_path, "index"], ["py", "pyw"]) == tmp_path / "index.py"
    assert resolve_path([tmp_path, "index"], [".pyw", "py"]) == tmp_path / "index.pyw"


def test_resolve_path_returns_directories(tmp_path):
    package = tmp_path / "plugin"
    package.mkdir()

    assert resolve_path([tmp_path, "plugin"], ["py"]) == package


@pytest.mark.parametrize(
    "segments",
    [
        [],
        ["", "index"],
        [None, "index"],
        ["base", ""],
    ],
)
def test_resolve_path_with_missing_segment_finds_nothing(tmp_path, segments):
    (tmp_path / "index.py").write_text("", encoding="utf-8")

    assert resolve_path(segments, ["py"]) is None


def test_resolve_path_without_match(tmp_path):
    assert resolve_path([tmp_path, "missing"], ["py", "pyc"]) is None


@pytest.mark.parametrize(
    "entry,expected",
    [
        ("index.py", "index"),
        ("lib/index.js", "lib/index"),
        ("index", "index"),
        ("source/index.test.py", "source/index.test"),
    ],
)
def test_strip_extension(entry, expected):
    assert strip_extension(entry) == expected
