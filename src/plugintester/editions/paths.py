"""Filesystem probing for module entry points."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from plugintester.errors import IOFailure


def resolve_path(segments: Sequence[str | Path | None], extensions: Sequence[str] = ()) -> Path | None:
    """Return the first existing path built from ``segments`` and ``extensions``.

    The joined path is tried as-is first, then with each extension appended in order.
    Any empty segment yields ``None`` instead of a half-built path.
    """

    if not segments or any(segment is None or str(segment) == "" for segment in segments):
        return None

    base = Path(*(str(segment) for segment in segments))
    if _exists(base):
        return base

    for extension in extensions:
        suffix = extension.lstrip(".")
        if not suffix:
            continue
        candidate = base.with_name(f"{base.name}.{suffix}")
        if _exists(candidate):
            return candidate

    return None


def strip_extension(entry: str) -> str:
    """Drop the final file extension of ``entry``, keeping any directory part."""

    path = Path(entry)
    if not path.suffix:
        return entry
    return path.with_suffix("").as_posix()


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError as exc:  # pragma: no cover - permission errors on exotic filesystems
        raise IOFailure(f"Unable to probe {path}: {exc}", path=path) from exc
