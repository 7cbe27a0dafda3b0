"""Minimal host framework that copies sources to the output directory."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from plugintester.frameworks.registry import registry

logger = logging.getLogger(__name__)

SKELETON_EXISTS = "The site skeleton already exists"


class NullFrameworkError(RuntimeError):
    """Raised when a null framework action cannot complete."""


class NullFramework:
    """Framework stand-in for smoke runs and tests.

    ``generate`` copies every file under ``src_path`` into ``out_path``, passing text
    content through each registered plugin's ``render(path, content)`` hook, if any.
    """

    skeleton_exists_message = SKELETON_EXISTS

    def __init__(self, config: Mapping[str, Any]) -> None:
        self.config = dict(config)
        self.root_path = Path(self.config.get("root_path") or Path.cwd())
        self.src_path = Path(self.config.get("src_path") or self.root_path / "src")
        self.out_path = Path(self.config.get("out_path") or self.root_path / "out")
        self.enabled_plugins: dict[str, bool] = dict(self.config.get("enabled_plugins") or {})
        self.enable_unlisted = bool(self.config.get("enable_unlisted_plugins", True))
        self.actions: list[str] = []
        self._plugins: dict[str, Any] = {}

    def register_plugin(self, plugin: Any) -> None:
        instance = plugin(self) if isinstance(plugin, type) else plugin
        name = getattr(instance, "name", None)
        if not name:
            raise NullFrameworkError(f"Plugin {plugin!r} does not declare a name")
        if not self.enabled_plugins.get(name, self.enable_unlisted):
            logger.info("Plugin %s is disabled; not loading it", name)
            return
        self._plugins[name] = instance
        logger.debug("Registered plugin %s", name)

    def loaded_plugin(self, name: str) -> bool:
        return name in self._plugins

    def get_plugin(self, name: str) -> Any:
        return self._plugins.get(name)

    def action(self, name: str) -> None:
        handler = getattr(self, f"_action_{name}", None)
        if handler is None:
            raise NullFrameworkError(f"Unknown action {name!r}")
        logger.debug("Running action %s", name)
        handler()
        self.actions.append(name)

    def _action_init(self) -> None:
        if self.src_path.exists():
            raise NullFrameworkError(SKELETON_EXISTS)
        self.src_path.mkdir(parents=True)

    def _action_clean(self) -> None:
        if self.out_path.exists():
            shutil.rmtree(self.out_path)

    def _action_install(self) -> None:
        self.out_path.mkdir(parents=True, exist_ok=True)

    def _action_generate(self) -> None:
        for source in sorted(self.src_path.rglob("*")):
            if not source.is_file():
                continue
            relative = source.relative_to(self.src_path)
            target = self.out_path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            renderers = [p for p in self._plugins.values() if hasattr(p, "render")]
            if not renderers:
                shutil.copyfile(source, target)
                continue
            content = source.read_text(encoding="utf-8")
            for plugin in renderers:
                content = plugin.render(relative.as_posix(), content)
            target.write_text(content, encoding="utf-8")

    def _action_destroy(self) -> None:
        self._plugins.clear()


registry.register("null", NullFramework)
