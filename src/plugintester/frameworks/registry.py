"""Registry of host framework implementations."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from importlib import import_module
from typing import Any

from plugintester.errors import ConfigurationError
from plugintester.frameworks.base import FrameworkFactory

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "plugintester.frameworks"


class FrameworkRegistry:
    """Registry that discovers and resolves host framework factories."""

    def __init__(self) -> None:
        self._factories: dict[str, FrameworkFactory] = {}

    def register(self, name: str, factory: FrameworkFactory) -> None:
        if name in self._factories:
            return
        self._factories[name] = factory

    def clear(self) -> None:
        self._factories.clear()

    def names(self) -> list[str]:
        return sorted(self._factories)

    def load_entrypoints(self) -> None:
        from importlib.metadata import entry_points

        try:
            resolved_entry_points = entry_points()
        except Exception as exc:  # pragma: no cover - broken distribution metadata
            logger.warning("Failed to enumerate framework entry points: %s", exc)
            return

        candidates: Iterable[Any]
        if hasattr(resolved_entry_points, "select"):
            candidates = resolved_entry_points.select(group=ENTRY_POINT_GROUP)
        else:  # pragma: no cover - unexpected shim
            candidates = []

        for entry_point in candidates:
            name = getattr(entry_point, "name", repr(entry_point))
            try:
                factory = entry_point.load()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Failed to load framework entry point %s: %s", name, exc)
                continue
            self.register(name, factory)

    def resolve(self, spec: str) -> FrameworkFactory:
        """Return the factory registered as ``spec`` or importable as ``module:attr``."""

        if spec in self._factories:
            return self._factories[spec]
        if ":" not in spec:
            known = ", ".join(self.names()) or "none"
            raise ConfigurationError(f"Unknown framework {spec!r} (registered: {known})")

        module_name, _, attribute = spec.partition(":")
        try:
            module = import_module(module_name)
        except ImportError as exc:
            raise ConfigurationError(f"Unable to import framework module {module_name!r}: {exc}") from exc
        try:
            factory = getattr(module, attribute)
        except AttributeError as exc:
            raise ConfigurationError(f"Module {module_name!r} has no attribute {attribute!r}") from exc
        self.register(spec, factory)
        return factory


registry = FrameworkRegistry()


def load_default_frameworks() -> None:
    """Register the built-in frameworks."""

    module = import_module("plugintester.frameworks.null")
    registry.register("null", module.NullFramework)
