"""Whitespace and content normalization applied before output comparison."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from re import Pattern

_WHITESPACE_RUN = re.compile(r"\s+")
_NEWLINE_RUN = re.compile(r"\n+")


class WhitespaceMode(str, Enum):
    """How whitespace differences are ignored."""

    NONE = "none"
    REMOVE = "remove"
    TRIM = "trim"


@dataclass(frozen=True, slots=True)
class NormalizationConfig:
    """Active transforms: one whitespace mode, then an optional content pattern."""

    mode: WhitespaceMode = WhitespaceMode.NONE
    content_remove: Pattern[str] | None = None

    @classmethod
    def build(
        cls,
        mode: WhitespaceMode | str | None = None,
        content_remove: Pattern[str] | str | None = None,
    ) -> NormalizationConfig:
        resolved_mode = WhitespaceMode(mode) if mode is not None else WhitespaceMode.NONE
        pattern = re.compile(content_remove) if isinstance(content_remove, str) else content_remove
        return cls(mode=resolved_mode, content_remove=pattern)

    @property
    def label(self) -> str:
        """Human readable description of the transforms, shown next to mismatches."""

        parts = [f"whitespace={self.mode.value}"]
        if self.content_remove is not None:
            parts.append(f"content_remove=/{self.content_remove.pattern}/")
        return ", ".join(parts)


def normalize(text: str, config: NormalizationConfig) -> str:
    """Apply the whitespace mode, then the content-removal pattern."""

    if config.mode is WhitespaceMode.REMOVE:
        text = _WHITESPACE_RUN.sub("", text)
    elif config.mode is WhitespaceMode.TRIM:
        text = trim_lines(text)

    if config.content_remove is not None:
        text = config.content_remove.sub("", text)

    return text


def trim_lines(text: str) -> str:
    """Strip every line, drop the blank ones, and strip the result."""

    joined = "\n".join(line.strip() for line in text.splitlines())
    return _NEWLINE_RUN.sub("\n", joined).strip()
