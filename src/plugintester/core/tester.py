"""The plugin tester: drives a host framework through its lifecycle and checks output."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from plugintester.compare import ComparisonResult, ContentMismatch, compare_trees
from plugintester.config.loader import (
    REMOVED_TESTER_PATH_MESSAGE,
    FrameworkSettings,
    TesterSettings,
)
from plugintester.core.ports import DEFAULT_PORTS, PortAllocator
from plugintester.errors import ConfigurationError, LifecycleError
from plugintester.frameworks import HostFramework, FrameworkFactory, load_default_frameworks, registry

logger = logging.getLogger(__name__)

DEBUG_LOG_LEVEL = 7
DEFAULT_LOG_LEVEL = 5


class OutcomeStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class CaseOutcome:
    """Result of one named check within a suite."""

    name: str
    status: OutcomeStatus
    message: str = ""
    duration: float = 0.0
    mismatch: ContentMismatch | None = None

    @property
    def passed(self) -> bool:
        return self.status is OutcomeStatus.PASSED


@dataclass(slots=True)
class SuiteReport:
    """All outcomes of one tester run, in execution order."""

    name: str
    outcomes: list[CaseOutcome] = field(default_factory=list)
    comparison: ComparisonResult | None = None

    @property
    def failures(self) -> list[CaseOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is OutcomeStatus.FAILED]

    @property
    def skipped(self) -> list[CaseOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is OutcomeStatus.SKIPPED]

    @property
    def passed(self) -> bool:
        return not self.failures

    def assert_passed(self) -> None:
        """Raise ``AssertionError`` listing every failed check; handy inside pytest."""

        if self.passed:
            return
        lines = [f"{self.name}: {len(self.failures)} check(s) failed"]
        for outcome in self.failures:
            lines.append(f"- {outcome.name}: {outcome.message}")
        raise AssertionError("\n".join(lines))


class PluginTester:
    """Run a plugin through create, load, generate and finish checks.

    Subclasses add their own checks by overriding :meth:`test_custom` and calling
    :meth:`case` for each one.
    """

    def __init__(
        self,
        config: TesterSettings | Mapping[str, Any] | None = None,
        framework_config: FrameworkSettings | Mapping[str, Any] | None = None,
        *,
        framework_factory: FrameworkFactory | None = None,
        plugin_class: Any = None,
        ports: PortAllocator | None = None,
        debug: bool = False,
    ) -> None:
        self.framework: HostFramework | None = None
        self.plugin_class = plugin_class
        self.config = _validate(TesterSettings, config)
        self.framework_config = _validate(FrameworkSettings, framework_config)
        self.report = SuiteReport(name="")
        self._blocked: str | None = None
        self._prefix: list[str] = []

        if self.config.plugin_path is None:
            self.config.plugin_path = Path.cwd()
        self.config.plugin_path = Path(self.config.plugin_path).resolve()

        if not self.config.plugin_name:
            self.config.plugin_name = self.config.plugin_path.name.removeprefix(
                self.config.plugin_prefix
            )
        if not self.config.tester_name:
            self.config.tester_name = f"{self.config.plugin_name} plugin"
        if not self.config.test_path:
            self.config.test_path = self.config.plugin_path / "test"
        if not self.config.out_expected_path:
            self.config.out_expected_path = self.config.test_path / "out-expected"
        self.report.name = self.config.tester_name

        fw = self.framework_config
        if fw.port is None:
            fw.port = (ports or DEFAULT_PORTS).next()
        if fw.log_level is None:
            fw.log_level = DEBUG_LOG_LEVEL if debug else DEFAULT_LOG_LEVEL
        if not fw.root_path:
            fw.root_path = self.config.test_path
        if not fw.out_path:
            fw.out_path = fw.root_path / "out"
        if not fw.src_path:
            fw.src_path = fw.root_path / "src"
        if not fw.plugin_paths:
            fw.plugin_paths = [self.config.plugin_path]
        if not fw.enabled_plugins:
            fw.enabled_plugins = {self.config.plugin_name: True}

        if framework_factory is None:
            load_default_frameworks()
            framework_factory = registry.resolve(self.config.framework)
        self.framework_factory = framework_factory

    def get_config(self) -> TesterSettings:
        return self.config

    def get_plugin(self) -> Any:
        if self.framework is None:
            return None
        return self.framework.get_plugin(self.config.plugin_name)

    def case(self, name: str, func: Callable[[], None]) -> CaseOutcome:
        """Run one check, recording it as passed, failed or skipped."""

        full_name = " > ".join([*self._prefix, name])
        if self._blocked is not None:
            outcome = CaseOutcome(full_name, OutcomeStatus.SKIPPED, f"skipped: {self._blocked}")
            self.report.outcomes.append(outcome)
            return outcome

        started = time.perf_counter()
        try:
            func()
        except Exception as exc:  # pylint: disable=broad-except
            message = str(exc) or exc.__class__.__name__
            outcome = CaseOutcome(full_name, OutcomeStatus.FAILED, message)
            logger.error("%s failed: %s", full_name, message)
        else:
            outcome = CaseOutcome(full_name, OutcomeStatus.PASSED)
            logger.debug("%s passed", full_name)
        outcome.duration = time.perf_counter() - started
        self.report.outcomes.append(outcome)
        return outcome

    def test_create(self) -> PluginTester:
        """Create the framework instance and prepare the test site."""

        def _create() -> None:
            options = self.framework_config.model_dump(by_alias=True)
            self.framework = self.framework_factory(options)
            if self.plugin_class is not None:
                self.framework.register_plugin(self.plugin_class)

            try:
                self.framework.action("init")
            except Exception as exc:  # pylint: disable=broad-except
                skeleton_exists = getattr(self.framework, "skeleton_exists_message", None)
                if skeleton_exists is None or str(exc) != skeleton_exists:
                    raise LifecycleError("init", str(exc)) from exc
                logger.debug("Site skeleton already exists; continuing")

            for action in ("clean", "install"):
                self._run_action(action)

        if not self.case("create", _create).passed:
            self._blocked = "framework could not be created"
        return self

    def test_load(self) -> PluginTester:
        """Check the plugin was loaded by the framework."""

        plugin_name = self.config.plugin_name

        def _load() -> None:
            assert self.framework is not None
            if not self.framework.loaded_plugin(plugin_name):
                raise AssertionError(f"Plugin {plugin_name} was not loaded")

        self.case(f"load plugin {plugin_name}", _load)
        return self

    def test_generate(self) -> PluginTester:
        """Generate the site and compare it with the expected output."""

        self._prefix.append("generate")
        try:
            action = self.case("action", lambda: self._run_action("generate"))
            if not action.passed:
                return self
            self._prefix.append("results")
            try:
                self._test_results()
            finally:
                self._prefix.pop()
        finally:
            self._prefix.pop()
        return self

    def test_custom(self) -> PluginTester:
        """Hook for subclasses adding plugin specific checks."""

        return self

    def finish(self) -> PluginTester:
        """Destroy the framework instance when ``auto_exit`` is enabled."""

        if self.config.auto_exit:
            self.case("finish up", lambda: self._run_action("destroy"))
        return self

    def run(self) -> SuiteReport:
        """Run every check in order and return the report."""

        logger.info("Running %s", self.config.tester_name)
        self.test_create().test_load().test_generate().test_custom().finish()
        logger.info(
            "%s finished: %s check(s), %s failed, %s skipped",
            self.config.tester_name,
            len(self.report.outcomes),
            len(self.report.failures),
            len(self.report.skipped),
        )
        return self.report

    def _run_action(self, name: str) -> None:
        assert self.framework is not None
        try:
            self.framework.action(name)
        except LifecycleError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise LifecycleError(name, str(exc)) from exc

    def _test_results(self) -> None:
        out_path = Path(self.framework_config.out_path)
        expected_path = Path(self.config.out_expected_path)
        holder: dict[str, ComparisonResult] = {}

        def _compare() -> None:
            holder["result"] = compare_trees(out_path, expected_path, self.config.normalization())

        if not self.case("compare", _compare).passed:
            return
        result = holder["result"]
        self.report.comparison = result
        if result.skipped:
            self.report.outcomes.append(
                CaseOutcome(
                    " > ".join([*self._prefix, "same files"]),
                    OutcomeStatus.SKIPPED,
                    f"expected path {expected_path} doesn't exist",
                )
            )
            return

        def _same_files() -> None:
            problems: list[str] = []
            if result.missing:
                problems.append(f"The following file(s) should have been generated: {result.missing}")
            if result.extra:
                problems.append(f"The following file(s) should not have been generated: {result.extra}")
            if problems:
                raise AssertionError("\n".join(problems))

        self.case("same files", _same_files)

        mismatches = {item.path: item for item in result.mismatches}
        for key in result.compared:
            mismatch = mismatches.get(key)
            outcome = self.case(f"same file content for: {key}", lambda m=mismatch: _check(m))
            outcome.mismatch = mismatch

    @classmethod
    def test(
        cls,
        tester_config: Mapping[str, Any] | None = None,
        framework_config: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> SuiteReport:
        """Build a tester from plain options, run it, and return the report.

        ``tester_class`` selects a subclass to instantiate; the remaining keyword
        options (``plugin_class``, ``framework_factory``, ``ports``, ``debug``) are
        passed to its constructor.
        """

        settings = dict(tester_config or {})
        if settings.get("tester_path"):
            raise ConfigurationError(REMOVED_TESTER_PATH_MESSAGE)

        configured_class = settings.pop("tester_class", None)
        tester_class = options.pop("tester_class", None) or configured_class
        if isinstance(tester_class, str):
            logger.warning(
                "The tester_class option must be a class, not a string; %r is ignored.",
                tester_class,
            )
            tester_class = None
        tester_class = tester_class or cls

        settings["plugin_path"] = Path(settings.get("plugin_path") or Path.cwd()).resolve()
        return tester_class(settings, framework_config, **options).run()


def _check(mismatch: ContentMismatch | None) -> None:
    if mismatch is None:
        return
    raise AssertionError(
        f"content differs ({mismatch.normalization})\n{mismatch.diff()}".rstrip()
    )


def _validate(model: type[Any], value: Any) -> Any:
    if value is None:
        return model()
    if isinstance(value, model):
        return value.model_copy(deep=True)
    try:
        return model.model_validate(dict(value))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid {model.__name__}: {exc}") from exc
