"""End-to-end CLI smoke tests.

These run the installed CLI in a subprocess against a throwaway plugin package:
- `run` passing and failing against expected output
- `edition` selection from a package.json with editions
- `compare` exit codes
"""

from __future__ import annotations

import json
import shlex
import subprocess
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import pytest

pytestmark = pytest.mark.e2e

PLUGINTESTER = (sys.executable, "-m", "plugintester")

PLUGIN_SOURCE = '''
class Plugin:
    name = "shout"

    def __init__(self, framework):
        self.framework = framework

    def render(self, path, content):
        return content.upper()
'''


@dataclass(frozen=True)
class CommandResult:
    args: Sequence[str]
    returncode: int
    stdout: str
    stderr: str


def _format_cmd(args: Sequence[str]) -> str:
    return " ".join(shlex.quote(part) for part in args)


def run_cli(args: Sequence[str], *, cwd: Path, timeout_seconds: float = 60.0) -> CommandResult:
    full_args = [*PLUGINTESTER, *args]
    print(f"+ {_format_cmd(full_args)}", flush=True)
    completed = subprocess.run(
        full_args,
        check=False,
        cwd=str(cwd),
        text=True,
        capture_output=True,
        timeout=timeout_seconds,
    )
    if completed.stdout:
        print(completed.stdout.rstrip(), flush=True)
    if completed.stderr:
        print(completed.stderr.rstrip(), file=sys.stderr, flush=True)
    return CommandResult(tuple(full_args), completed.returncode, completed.stdout, completed.stderr)


def expect_code(result: CommandResult, code: int) -> None:
    if result.returncode != code:
        raise AssertionError(
            f"Expected rc={code}, got rc={result.returncode}: {_format_cmd(result.args)}\n\n"
            f"stdout:\n{result.stdout}\nstderr:\n{result.stderr}"
        )


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _editions_package(root: Path, expected: str) -> Path:
    _write(
        root / "package.json",
        json.dumps(
            {
                "name": "docpad-plugin-shout",
                "editions": [
                    {"directory": "future", "entry": "index.py", "engines": {"python": ">=99"}},
                    {"directory": "source", "entry": "index.py", "engines": {"python": ">=3"}},
                ],
            }
        ),
    )
    _write(root / "future" / "index.py", PLUGIN_SOURCE)
    _write(root / "source" / "index.py", PLUGIN_SOURCE)
    _write(root / "test" / "src" / "index.html", "<p>hello</p>\n")
    _write(root / "test" / "out-expected" / "index.html", expected)
    return root


def test_run_edition_and_compare(tmp_path):
    package = _editions_package(tmp_path / "docpad-plugin-shout", "<P>HELLO</P>")

    edition = run_cli(["edition", str(package), "--json"], cwd=tmp_path)
    expect_code(edition, 0)
    assert json.loads(edition.stdout)["edition"]["directory"] == "source"

    strict = run_cli(["run", str(package)], cwd=tmp_path)
    expect_code(strict, 1)

    _write(tmp_path / "plugintester.yaml", "tester:\n  whitespace: trim\n")
    trimmed = run_cli(["run", str(package)], cwd=tmp_path)
    expect_code(trimmed, 0)
    assert (tmp_path / "plugintester.log").exists()

    out = package / "test" / "out"
    expected = package / "test" / "out-expected"
    expect_code(run_cli(["compare", str(out), str(expected), "--whitespace", "trim"], cwd=tmp_path), 0)
    expect_code(run_cli(["compare", str(out), str(expected)], cwd=tmp_path), 1)


def test_forced_unsupported_edition_fails(tmp_path):
    package = _editions_package(tmp_path / "docpad-plugin-shout", "<P>HELLO</P>")

    result = run_cli(["run", str(package), "--edition", "missing"], cwd=tmp_path)

    expect_code(result, 2)
    assert "Error:" in result.stderr
