"""Directory tree scanning and comparison of generated output against fixtures."""

from __future__ import annotations

import difflib
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from plugintester.compare.normalize import NormalizationConfig, normalize
from plugintester.errors import IOFailure

logger = logging.getLogger(__name__)

FileTree = dict[str, str]


@dataclass(frozen=True, slots=True)
class ContentMismatch:
    """A file present on both sides whose normalized content differs."""

    path: str
    actual: str
    expected: str
    normalization: str

    def diff(self, context: int = 3) -> str:
        """Unified diff from expected to actual, for display."""

        lines = difflib.unified_diff(
            self.expected.splitlines(keepends=True),
            self.actual.splitlines(keepends=True),
            fromfile=f"expected/{self.path}",
            tofile=f"actual/{self.path}",
            n=context,
        )
        return "".join(line if line.endswith("\n") else f"{line}\n" for line in lines)


@dataclass(slots=True)
class ComparisonResult:
    """Outcome of comparing an actual output tree with an expected one."""

    actual_root: Path
    expected_root: Path
    normalization: str
    missing: list[str] = field(default_factory=list)
    extra: list[str] = field(default_factory=list)
    mismatches: list[ContentMismatch] = field(default_factory=list)
    matched: list[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not (self.missing or self.extra or self.mismatches)

    @property
    def compared(self) -> list[str]:
        """Every path present on both sides, in order."""

        return sorted([*self.matched, *(item.path for item in self.mismatches)])

    def to_dict(self) -> dict[str, object]:
        return {
            "actual_root": str(self.actual_root),
            "expected_root": str(self.expected_root),
            "normalization": self.normalization,
            "skipped": self.skipped,
            "ok": self.ok,
            "missing": list(self.missing),
            "extra": list(self.extra),
            "matched": list(self.matched),
            "mismatches": [
                {
                    "path": item.path,
                    "actual": item.actual,
                    "expected": item.expected,
                    "normalization": item.normalization,
                }
                for item in self.mismatches
            ],
        }


def scan_tree(root: Path) -> FileTree:
    """Read every regular file under ``root`` keyed by its POSIX path relative to ``root``.

    Symlinked files and directories are followed. A directory link back to one of its
    own ancestors is skipped so the walk terminates.
    """

    tree: FileTree = {}
    if not root.exists():
        return tree

    def _raise(error: OSError) -> None:
        raise IOFailure(f"Unable to scan {error.filename or root}: {error}", path=error.filename) from error

    ancestors: dict[str, frozenset[tuple[int, int]]] = {}
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=True):
        chain = ancestors.pop(dirpath, frozenset()) | {_directory_key(dirpath)}
        kept: list[str] = []
        for name in sorted(dirnames):
            child = os.path.join(dirpath, name)
            if _directory_key(child) in chain:
                logger.warning("Skipping %s: symlink loops back to an enclosing directory", child)
                continue
            ancestors[child] = chain
            kept.append(name)
        dirnames[:] = kept

        base = Path(dirpath)
        for filename in sorted(filenames):
            path = base / filename
            if not path.is_file():
                continue
            key = path.relative_to(root).as_posix()
            try:
                tree[key] = path.read_bytes().decode("utf-8", errors="surrogateescape")
            except OSError as exc:
                raise IOFailure(f"Unable to read {path}: {exc}", path=path) from exc
    return tree


def _directory_key(path: str) -> tuple[int, int]:
    try:
        stat = os.stat(path)
    except OSError as exc:
        raise IOFailure(f"Unable to scan {path}: {exc}", path=path) from exc
    return stat.st_dev, stat.st_ino


def compare_trees(
    actual_root: Path,
    expected_root: Path,
    config: NormalizationConfig | None = None,
) -> ComparisonResult:
    """Compare the files under ``actual_root`` with the fixture tree under ``expected_root``.

    A missing ``expected_root`` means no fixture check was requested, so the result is
    marked skipped rather than failing.
    """

    config = config or NormalizationConfig()
    actual_root = Path(actual_root)
    expected_root = Path(expected_root)
    result = ComparisonResult(
        actual_root=actual_root,
        expected_root=expected_root,
        normalization=config.label,
    )

    if not expected_root.exists():
        logger.info(
            "Skipping results comparison, as expected path %s doesn't exist", expected_root
        )
        result.skipped = True
        return result

    actual = scan_tree(actual_root)
    expected = scan_tree(expected_root)

    result.missing = sorted(expected.keys() - actual.keys())
    result.extra = sorted(actual.keys() - expected.keys())

    for key in sorted(actual.keys() & expected.keys()):
        actual_text = normalize(actual[key], config)
        expected_text = normalize(expected[key], config)
        if actual_text == expected_text:
            result.matched.append(key)
        else:
            result.mismatches.append(
                ContentMismatch(
                    path=key,
                    actual=actual_text,
                    expected=expected_text,
                    normalization=config.label,
                )
            )

    logger.debug(
        "Compared %s with %s: matched=%s mismatched=%s missing=%s extra=%s",
        actual_root,
        expected_root,
        len(result.matched),
        len(result.mismatches),
        len(result.missing),
        len(result.extra),
    )
    return result
