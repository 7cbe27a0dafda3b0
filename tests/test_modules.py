"""Module loading tests."""

from __future__ import annotations

import pytest

from plugintester.core.modules import load_module


def test_load_module_from_file_and_package(tmp_path):
    (tmp_path / "single.py").write_text("VALUE = 1\n", encoding="utf-8")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "__init__.py").write_text("from .inner import VALUE\n", encoding="utf-8")
    (tmp_path / "pkg" / "inner.py").write_text("VALUE = 2\n", encoding="utf-8")

    single = load_module(tmp_path / "single.py", "plugin")
    package = load_module(tmp_path / "pkg", "tester")

    assert single.VALUE == 1
    assert package.VALUE == 2
    assert load_module(tmp_path / "single.py", "plugin") is single


def test_load_module_propagates_import_errors(tmp_path):
    (tmp_path / "broken.py").write_text("raise RuntimeError('boom')\n", encoding="utf-8")

    with pytest.raises(RuntimeError, match="boom"):
        load_module(tmp_path / "broken.py", "test")
    with pytest.raises(ImportError):
        load_module(tmp_path / "absent.py", "test")
