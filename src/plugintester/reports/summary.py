"""Console and Markdown rendering of suite reports and tree comparisons."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console, Group
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table, box
from rich.text import Text

from plugintester import get_version
from plugintester.compare import ComparisonResult
from plugintester.core.tester import CaseOutcome, OutcomeStatus, SuiteReport

_STATUS_STYLES = {
    OutcomeStatus.PASSED: ("PASS", "green"),
    OutcomeStatus.FAILED: ("FAIL", "bold red"),
    OutcomeStatus.SKIPPED: ("SKIP", "yellow"),
}


def render_report(report: SuiteReport, console: Console | None = None) -> None:
    """Print one row per check, then the diff of every mismatched file."""

    console = console or Console()
    table = Table(title=report.name, box=box.SIMPLE_HEAVY, expand=False)
    table.add_column("Status", no_wrap=True)
    table.add_column("Check")
    table.add_column("Time", justify="right", style="grey58")
    table.add_column("Detail", style="grey70", overflow="fold")

    for outcome in report.outcomes:
        label, style = _STATUS_STYLES[outcome.status]
        detail = outcome.message if outcome.mismatch is None else "content differs"
        table.add_row(
            Text(label, style=style),
            outcome.name,
            f"{outcome.duration * 1000:.0f}ms",
            Text(detail),
        )
    console.print(table)

    for outcome in report.failures:
        if outcome.mismatch is not None:
            console.print(_mismatch_panel(outcome))

    summary_style = "green" if report.passed else "bold red"
    console.print(
        Text(
            f"{len(report.outcomes)} checks: "
            f"{len(report.outcomes) - len(report.failures) - len(report.skipped)} passed, "
            f"{len(report.failures)} failed, {len(report.skipped)} skipped",
            style=summary_style,
        )
    )


def render_comparison(result: ComparisonResult, console: Console | None = None) -> None:
    """Print a comparison result without running any framework."""

    console = console or Console()
    if result.skipped:
        console.print(Text(f"Expected path {result.expected_root} doesn't exist; nothing to compare.", style="yellow"))
        return

    grid = Table.grid(padding=(0, 2))
    grid.add_row(Text("actual", style="grey58"), str(result.actual_root))
    grid.add_row(Text("expected", style="grey58"), str(result.expected_root))
    grid.add_row(Text("normalization", style="grey58"), result.normalization)
    grid.add_row(Text("matched", style="grey58"), str(len(result.matched)))
    console.print(grid)

    for path in result.missing:
        console.print(Text(f"- missing  {path}", style="red"))
    for path in result.extra:
        console.print(Text(f"+ extra    {path}", style="red"))
    for mismatch in result.mismatches:
        console.print(
            Panel(
                Syntax(mismatch.diff(), "diff", word_wrap=True),
                title=f"differs: {mismatch.path}",
                border_style="red",
            )
        )
    if result.ok:
        console.print(Text("Trees match.", style="green"))


def write_markdown_report(report: SuiteReport, report_path: Path) -> None:
    """Write a Markdown summary of a suite run."""

    generated_at = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    lines = [
        f"# {report.name}",
        "",
        f"Generated: {generated_at} (plugintester {get_version()})",
        f"Result: {'passed' if report.passed else 'failed'}",
        "",
        "| Status | Check | Detail |",
        "| --- | --- | --- |",
    ]
    for outcome in report.outcomes:
        label, _ = _STATUS_STYLES[outcome.status]
        detail = outcome.message.splitlines()[0] if outcome.message else ""
        lines.append(f"| {label} | {_escape(outcome.name)} | {_escape(detail)} |")

    mismatched = [outcome for outcome in report.failures if outcome.mismatch is not None]
    if mismatched:
        lines.extend(["", "## Content differences"])
        for outcome in mismatched:
            assert outcome.mismatch is not None
            lines.extend(["", f"### {outcome.mismatch.path}", "", "```diff", outcome.mismatch.diff().rstrip(), "```"])

    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text("\n".join(lines).strip() + "\n", encoding="utf-8")


def _mismatch_panel(outcome: CaseOutcome) -> Panel:
    assert outcome.mismatch is not None
    body = Group(
        Text(outcome.mismatch.normalization, style="grey58"),
        Syntax(outcome.mismatch.diff(), "diff", word_wrap=True),
    )
    return Panel(body, title=outcome.name, border_style="red")


def _escape(value: str) -> str:
    return value.replace("|", "\\|")
