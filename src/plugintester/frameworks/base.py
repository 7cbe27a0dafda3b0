"""Interface between the tester and the host framework it drives."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

LIFECYCLE_ACTIONS: tuple[str, ...] = ("init", "clean", "install", "generate", "destroy")


@runtime_checkable
class HostFramework(Protocol):
    """A content-generation framework instance with a plugin loaded.

    Implementations are constructed with the framework configuration mapping and may
    expose ``skeleton_exists_message``: an ``init`` failure carrying that message means
    the site already exists and is not treated as an error.
    """

    out_path: Path

    def action(self, name: str) -> None:
        """Run a lifecycle action, raising on failure."""

    def register_plugin(self, plugin: Any) -> None:
        """Register a plugin implementation handed over by the tester."""

    def loaded_plugin(self, name: str) -> bool:
        """Return True when the named plugin is loaded."""

    def get_plugin(self, name: str) -> Any:
        """Return the loaded plugin instance."""


class FrameworkFactory(Protocol):
    def __call__(self, config: Mapping[str, Any]) -> HostFramework: ...
