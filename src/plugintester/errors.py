"""Exception types raised by Plugintester."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from plugintester.editions.manifest import EditionDescriptor


class PluginTesterError(Exception):
    """Base class for all Plugintester failures."""


class ConfigurationError(PluginTesterError, ValueError):
    """Raised when tester configuration is invalid or uses a removed option."""


class MalformedManifestError(PluginTesterError):
    """Raised when a package manifest has no usable entry or edition information."""


class NoValidEditionError(PluginTesterError):
    """Raised when no edition can be selected for the running environment."""

    def __init__(
        self,
        message: str,
        *,
        candidates: Sequence[EditionDescriptor] = (),
        hint: str | None = None,
    ) -> None:
        self.candidates = tuple(candidates)
        self.hint = hint
        if self.candidates:
            attempted = ", ".join(candidate.directory for candidate in self.candidates)
            message = f"{message} (attempted: {attempted})"
        super().__init__(message)


class IOFailure(PluginTesterError, OSError):
    """Raised when the filesystem fails underneath a probe or a tree scan."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else super().__str__()


class LifecycleError(PluginTesterError):
    """Raised when a host framework lifecycle action fails."""

    def __init__(self, action: str, message: str) -> None:
        self.action = action
        super().__init__(f"Action '{action}' failed: {message}")


__all__ = [
    "ConfigurationError",
    "IOFailure",
    "LifecycleError",
    "MalformedManifestError",
    "NoValidEditionError",
    "PluginTesterError",
]
