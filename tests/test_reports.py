"""Report rendering tests."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from plugintester.compare import compare_trees
from plugintester.compare.tree import ContentMismatch
from plugintester.core import CaseOutcome, OutcomeStatus, SuiteReport
from plugintester.reports import render_comparison, render_report, write_markdown_report


def _report() -> SuiteReport:
    mismatch = ContentMismatch(
        path="index.html", actual="<b>hi</b>", expected="<b>HI</b>", normalization="whitespace=trim"
    )
    return SuiteReport(
        name="shout plugin",
        outcomes=[
            CaseOutcome("create", OutcomeStatus.PASSED, duration=0.002),
            CaseOutcome("load plugin shout", OutcomeStatus.PASSED),
            CaseOutcome(
                "generate > results > same file content for: index.html",
                OutcomeStatus.FAILED,
                "content differs (whitespace=trim)",
                mismatch=mismatch,
            ),
            CaseOutcome("finish up", OutcomeStatus.SKIPPED, "skipped: framework could not be created"),
        ],
    )


def test_render_report_lists_checks_and_diffs():
    console = Console(record=True, width=160)

    render_report(_report(), console)
    output = console.export_text()

    assert "shout plugin" in output
    assert "load plugin shout" in output
    assert "FAIL" in output
    assert "-<b>HI</b>" in output
    assert "+<b>hi</b>" in output
    assert "4 checks: 2 passed, 1 failed, 1 skipped" in output


def test_render_comparison_reports_differences(tmp_path):
    (tmp_path / "out").mkdir()
    (tmp_path / "expected").mkdir()
    (tmp_path / "out" / "extra.txt").write_text("x", encoding="utf-8")
    (tmp_path / "expected" / "gone.txt").write_text("x", encoding="utf-8")
    console = Console(record=True, width=160)

    render_comparison(compare_trees(tmp_path / "out", tmp_path / "expected"), console)
    output = console.export_text()

    assert "missing  gone.txt" in output
    assert "extra    extra.txt" in output
    assert "Trees match." not in output


def test_render_comparison_skipped(tmp_path):
    console = Console(record=True, width=160)

    render_comparison(compare_trees(tmp_path, tmp_path / "absent"), console)

    assert "nothing to compare" in console.export_text()


def test_write_markdown_report(tmp_path):
    path = tmp_path / "reports" / "run.md"

    write_markdown_report(_report(), path)
    content = path.read_text(encoding="utf-8")

    assert content.startswith("# shout plugin\n")
    assert "Result: failed" in content
    assert "| PASS | create |  |" in content
    assert "| SKIP | finish up | skipped: framework could not be created |" in content
    assert "## Content differences" in content
    assert "```diff" in content
    assert "+<b>hi</b>" in content
