"""Engine requirement ranges and runtime capability detection.

Edition manifests describe the environments an edition supports with npm-style
ranges, e.g. ``{"python": ">=3.11", "cpython": "^3.12 || ^3.13"}``. A range is
parsed once into alternatives of primitive comparators so that checking a
runtime version is a plain tuple comparison.
"""

from __future__ import annotations

import platform
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

Version = tuple[int, int, int]

_WILDCARDS = {"x", "X", "*"}
_COMPARATOR = re.compile(r"^(?P<op><=|>=|<|>|=|\^|~>|~)?\s*v?(?P<version>[0-9xX*]+(?:\.[0-9xX*]+){0,2})$")
_HYPHEN = re.compile(r"^\s*(?P<low>\S+)\s+-\s+(?P<high>\S+)\s*$")
_CONCRETE = re.compile(r"^\s*v?(?P<parts>\d+(?:\.\d+){0,2})")


@dataclass(frozen=True, slots=True)
class Comparator:
    """A single ``op version`` primitive, with ``op`` one of <, <=, >, >=, =."""

    op: str
    version: Version

    def matches(self, candidate: Version) -> bool:
        if self.op == "<":
            return candidate < self.version
        if self.op == "<=":
            return candidate <= self.version
        if self.op == ">":
            return candidate > self.version
        if self.op == ">=":
            return candidate >= self.version
        return candidate == self.version


@dataclass(frozen=True, slots=True)
class VersionRange:
    """Parsed engine range: any alternative whose comparators all match satisfies it."""

    raw: str
    alternatives: tuple[tuple[Comparator, ...], ...]

    def satisfied_by(self, version: str) -> bool:
        parsed = parse_version(version)
        if parsed is None:
            return False
        return any(
            all(comparator.matches(parsed) for comparator in alternative)
            for alternative in self.alternatives
        )

    def __str__(self) -> str:
        return self.raw


EngineRequirement = VersionRange | bool


def parse_version(value: str) -> Version | None:
    """Parse a concrete version such as ``3.12.1`` or ``v12``; prerelease tags are ignored."""

    match = _CONCRETE.match(str(value))
    if match is None:
        return None
    parts = [int(part) for part in match.group("parts").split(".")]
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def parse_range(raw: str) -> VersionRange:
    """Parse an npm-style range; raises ``ValueError`` when it cannot be understood."""

    text = str(raw).strip()
    alternatives: list[tuple[Comparator, ...]] = []
    for chunk in text.split("||"):
        alternatives.append(_parse_alternative(chunk.strip(), raw))
    return VersionRange(raw=text, alternatives=tuple(alternatives))


def parse_requirement(value: str | bool) -> EngineRequirement:
    """Convert a manifest ``engines`` value into a requirement."""

    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Engine requirement must be a string or boolean, got {value!r}")
    return parse_range(value)


def requirement_satisfied(requirement: EngineRequirement, version: str | None) -> bool:
    """Check one requirement against the runtime version (``None`` when the capability is absent)."""

    if version is None:
        return False
    if isinstance(requirement, bool):
        return requirement
    return requirement.satisfied_by(version)


def _parse_alternative(chunk: str, raw: str) -> tuple[Comparator, ...]:
    if chunk in {"", *_WILDCARDS}:
        return ()

    hyphen = _HYPHEN.match(chunk)
    if hyphen is not None:
        low = _parse_partial(hyphen.group("low"), raw)
        high = _parse_partial(hyphen.group("high"), raw)
        comparators: list[Comparator] = []
        if low[0] is not None:
            comparators.append(Comparator(">=", _floor(low)))
        if high[0] is not None:
            if _is_full(high):
                comparators.append(Comparator("<=", _floor(high)))
            else:
                comparators.append(Comparator("<", _bump(high)))
        return tuple(comparators)

    tokens = re.sub(r"(<=|>=|<|>|=|\^|~>|~)\s+", r"\1", chunk).split()
    comparators = []
    for token in tokens:
        comparators.extend(_parse_comparator(token, raw))
    return tuple(comparators)


def _parse_comparator(token: str, raw: str) -> list[Comparator]:
    match = _COMPARATOR.match(token)
    if match is None:
        raise ValueError(f"Unsupported engine range {raw!r}")
    op = match.group("op") or ""
    partial = _parse_partial(match.group("version"), raw)
    major, minor, patch = partial

    if major is None:
        # "*" and ">=*" accept anything; "<*" and ">*" accept nothing.
        return [Comparator("<", (0, 0, 0))] if op in {"<", ">"} else []

    floor = _floor(partial)
    if op in {"", "="}:
        if _is_full(partial):
            return [Comparator("=", floor)]
        return [Comparator(">=", floor), Comparator("<", _bump(partial))]
    if op == ">=":
        return [Comparator(">=", floor)]
    if op == "<":
        return [Comparator("<", floor)]
    if op == ">":
        if _is_full(partial):
            return [Comparator(">", floor)]
        return [Comparator(">=", _bump(partial))]
    if op == "<=":
        if _is_full(partial):
            return [Comparator("<=", floor)]
        return [Comparator("<", _bump(partial))]
    if op in {"~", "~>"}:
        if minor is None:
            return [Comparator(">=", floor), Comparator("<", (major + 1, 0, 0))]
        return [Comparator(">=", floor), Comparator("<", (major, minor + 1, 0))]
    # caret: allow changes that do not modify the left-most non-zero component
    if major > 0 or minor is None:
        upper = (major + 1, 0, 0)
    elif minor > 0 or patch is None:
        upper = (0, minor + 1, 0)
    else:
        upper = (0, 0, patch + 1)
    return [Comparator(">=", floor), Comparator("<", upper)]


def _parse_partial(text: str, raw: str) -> tuple[int | None, int | None, int | None]:
    parts = text.lstrip("vV").split(".")
    if len(parts) > 3:
        raise ValueError(f"Unsupported engine range {raw!r}")
    values: list[int | None] = []
    for part in parts:
        if part in _WILDCARDS:
            break
        if not part.isdigit():
            raise ValueError(f"Unsupported engine range {raw!r}")
        values.append(int(part))
    while len(values) < 3:
        values.append(None)
    return values[0], values[1], values[2]


def _is_full(partial: tuple[int | None, int | None, int | None]) -> bool:
    return all(part is not None for part in partial)


def _floor(partial: tuple[int | None, int | None, int | None]) -> Version:
    major, minor, patch = partial
    return major or 0, minor or 0, patch or 0


def _bump(partial: tuple[int | None, int | None, int | None]) -> Version:
    """Smallest version above every version matching ``partial`` (``1.2`` -> ``1.3.0``)."""

    major, minor, _ = partial
    if minor is None:
        return (major or 0) + 1, 0, 0
    return major or 0, minor + 1, 0


class RuntimeCapabilities(Mapping[str, str]):
    """Read-only, ordered mapping of capability name to concrete version."""

    __slots__ = ("_versions",)

    def __init__(self, versions: Mapping[str, str] | None = None) -> None:
        self._versions = MappingProxyType(
            {str(key): str(value) for key, value in (versions or {}).items()}
        )

    def __getitem__(self, key: str) -> str:
        return self._versions[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __repr__(self) -> str:
        return f"RuntimeCapabilities({dict(self._versions)!r})"


def capture_runtime(extra: Mapping[str, str] | None = None) -> RuntimeCapabilities:
    """Describe the running interpreter, plus any caller supplied capabilities."""

    versions: dict[str, str] = {
        "python": platform.python_version(),
        platform.python_implementation().lower(): platform.python_version(),
    }
    if extra:
        versions.update({str(key): str(value) for key, value in extra.items()})
    return RuntimeCapabilities(versions)
