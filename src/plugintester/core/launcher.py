"""Pick the edition of a plugin package and run the matching tests."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from plugintester.config import Config, load_config
from plugintester.core.modules import load_module
from plugintester.core.ports import DEFAULT_PORTS, PortAllocator
from plugintester.core.tester import PluginTester, SuiteReport
from plugintester.editions import (
    PackageManifest,
    SelectionResult,
    capture_runtime,
    find_manifest,
    load_manifest,
    select_edition,
)
from plugintester.errors import ConfigurationError

logger = logging.getLogger(__name__)


def resolve_selection(
    plugin_path: Path,
    edition_hint: str | None = None,
    *,
    config: Config,
    runtime: Mapping[str, str] | None = None,
) -> SelectionResult:
    """Read the package manifest under ``plugin_path`` and select an edition."""

    settings = config.editions
    manifest_path = find_manifest(plugin_path, settings.manifests)
    if manifest_path is None:
        logger.info("No manifest found under %s; using the package root", plugin_path)
        manifest = PackageManifest()
    else:
        manifest = load_manifest(manifest_path)

    return select_edition(
        manifest,
        runtime if runtime is not None else capture_runtime(settings.capabilities),
        edition_hint,
        root=plugin_path,
        extensions=settings.extensions,
        test_module=settings.test_module,
        tester_module=settings.tester_module,
    )


def launch(
    plugin_path: Path | None = None,
    edition_hint: str | None = None,
    *,
    config: Config | None = None,
    framework: str | None = None,
    runtime: Mapping[str, str] | None = None,
    ports: PortAllocator | None = None,
    debug: bool = False,
) -> SuiteReport:
    """Run the tests of the plugin package at ``plugin_path``.

    A ``test`` module inside the selected edition replaces everything; otherwise the
    plugin entry is loaded and handed to the edition's ``tester`` module, falling back
    to the standard :class:`PluginTester`.
    """

    config = config or load_config()
    root = Path(plugin_path or Path.cwd()).resolve()
    selection = resolve_selection(root, edition_hint, config=config, runtime=runtime)
    ports = ports or DEFAULT_PORTS

    if selection.test_path is not None:
        logger.info("Loading custom plugin tests via %s", selection.test_path)
        module = load_module(selection.test_path, "test")
        runner = getattr(module, "test", None) or getattr(module, "main", None)
        if not callable(runner):
            raise ConfigurationError(
                f"Custom test module {selection.test_path} defines neither test() nor main()"
            )
        result = runner()
        if isinstance(result, SuiteReport):
            return result
        return SuiteReport(name=f"custom tests via {selection.test_path}")

    plugin_module = load_module(selection.entry_path, "plugin")
    plugin_class = getattr(plugin_module, "Plugin", plugin_module)

    tester_settings: dict[str, Any] = config.tester.model_dump()
    tester_settings["plugin_path"] = root
    if framework:
        tester_settings["framework"] = framework
    framework_settings = config.framework.model_dump(by_alias=True)
    options: dict[str, Any] = {"plugin_class": plugin_class, "ports": ports, "debug": debug}

    if selection.tester_path is not None:
        logger.info("Loading custom plugin tester via %s", selection.tester_path)
        module = load_module(selection.tester_path, "tester")
        runner = getattr(module, "test", None)
        if runner is None and isinstance(getattr(module, "Tester", None), type):
            runner = module.Tester.test
        if not callable(runner):
            raise ConfigurationError(
                f"Custom tester module {selection.tester_path} defines neither test() nor Tester"
            )
        return runner(tester_settings, framework_settings, **options)

    logger.info("Loading standard plugin tests for edition %s", selection.name)
    return PluginTester.test(tester_settings, framework_settings, **options)
