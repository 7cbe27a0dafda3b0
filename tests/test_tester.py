"""Plugin tester lifecycle tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from plugintester.core import OutcomeStatus, PluginTester, PortAllocator
from plugintester.errors import ConfigurationError
from plugintester.frameworks.null import NullFramework


class ShoutPlugin:
    name = "shout"

    def __init__(self, framework) -> None:
        self.framework = framework

    def render(self, path: str, content: str) -> str:
        return content.upper()


def _plugin_dir(tmp_path: Path, sources: dict[str, str], expected: dict[str, str] | None) -> Path:
    root = tmp_path / "docpad-plugin-shout"
    for name, content in sources.items():
        path = root / "test" / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    if expected is not None:
        (root / "test" / "out-expected").mkdir(parents=True, exist_ok=True)
        for name, content in expected.items():
            path = root / "test" / "out-expected" / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
    return root


def _tester(root: Path, **settings) -> PluginTester:
    return PluginTester(
        {"plugin_path": root, **settings},
        plugin_class=ShoutPlugin,
        ports=PortAllocator(start=3000),
    )


def test_defaults_are_derived_from_plugin_path(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "hi"}, None)

    tester = _tester(root)
    config = tester.get_config()

    assert config.plugin_name == "shout"
    assert config.tester_name == "shout plugin"
    assert config.test_path == root.resolve() / "test"
    assert config.out_expected_path == root.resolve() / "test" / "out-expected"
    fw = tester.framework_config
    assert fw.port == 3001
    assert fw.log_level == 5
    assert fw.root_path == root.resolve() / "test"
    assert fw.out_path == root.resolve() / "test" / "out"
    assert fw.src_path == root.resolve() / "test" / "src"
    assert fw.plugin_paths == [root.resolve()]
    assert fw.enabled_plugins == {"shout": True}
    assert tester.framework_factory is NullFramework


def test_debug_raises_framework_log_level(tmp_path):
    root = _plugin_dir(tmp_path, {}, None)

    tester = PluginTester({"plugin_path": root}, debug=True, ports=PortAllocator(start=10))

    assert tester.framework_config.log_level == 7


def test_passing_run_records_checks_in_order(tmp_path):
    root = _plugin_dir(
        tmp_path,
        {"index.txt": "hello", "posts/a.txt": "a"},
        {"index.txt": "HELLO", "posts/a.txt": "A"},
    )

    report = _tester(root).run()

    assert [outcome.name for outcome in report.outcomes] == [
        "create",
        "load plugin shout",
        "generate > action",
        "generate > results > compare",
        "generate > results > same files",
        "generate > results > same file content for: index.txt",
        "generate > results > same file content for: posts/a.txt",
        "finish up",
    ]
    assert report.passed
    assert report.name == "shout plugin"
    assert report.comparison is not None and report.comparison.ok
    report.assert_passed()


def test_missing_and_extra_files_are_reported_together(tmp_path):
    root = _plugin_dir(tmp_path, {"a.txt": "a"}, {"b.txt": "B"})

    report = _tester(root).run()

    [failure] = report.failures
    assert failure.name == "generate > results > same files"
    assert "should have been generated: ['b.txt']" in failure.message
    assert "should not have been generated: ['a.txt']" in failure.message


def test_content_mismatch_carries_diff(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "hello"}, {"index.txt": "HELLO WORLD"})

    report = _tester(root).run()

    [failure] = report.failures
    assert failure.name == "generate > results > same file content for: index.txt"
    assert failure.mismatch is not None
    assert failure.mismatch.actual == "HELLO"
    assert "content differs (whitespace=none)" in failure.message
    with pytest.raises(AssertionError, match="1 check\\(s\\) failed"):
        report.assert_passed()


def test_whitespace_setting_applies_to_comparison(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "  hello\n\n"}, {"index.txt": "HELLO"})

    report = _tester(root, whitespace="trim").run()

    assert report.passed


def test_missing_expected_directory_skips_comparison(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "hello"}, None)

    report = _tester(root).run()

    assert report.passed
    [skipped] = report.skipped
    assert skipped.name == "generate > results > same files"
    assert report.comparison is not None and report.comparison.skipped


def test_plugin_not_loaded_fails_load_check(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "x"}, None)

    report = PluginTester({"plugin_path": root}, ports=PortAllocator(start=10)).run()

    [failure] = report.failures
    assert failure.name == "load plugin shout"
    assert failure.message == "Plugin shout was not loaded"


def test_create_failure_skips_remaining_checks(tmp_path):
    root = _plugin_dir(tmp_path, {}, None)

    def broken_factory(config):
        raise RuntimeError("cannot start")

    tester = PluginTester(
        {"plugin_path": root},
        framework_factory=broken_factory,
        ports=PortAllocator(start=10),
    )
    report = tester.run()

    statuses = [(outcome.name, outcome.status) for outcome in report.outcomes]
    assert statuses == [
        ("create", OutcomeStatus.FAILED),
        ("load plugin shout", OutcomeStatus.SKIPPED),
        ("generate > action", OutcomeStatus.SKIPPED),
        ("finish up", OutcomeStatus.SKIPPED),
    ]
    assert report.failures[0].message == "cannot start"
    assert tester.get_plugin() is None


def test_init_failure_other_than_existing_skeleton_fails_create(tmp_path):
    root = _plugin_dir(tmp_path, {}, None)

    class FailingInit(NullFramework):
        def _action_init(self) -> None:
            raise RuntimeError("disk full")

    report = PluginTester(
        {"plugin_path": root},
        framework_factory=FailingInit,
        plugin_class=ShoutPlugin,
        ports=PortAllocator(start=10),
    ).run()

    assert report.failures[0].name == "create"
    assert report.failures[0].message == "Action 'init' failed: disk full"


def test_auto_exit_disabled_keeps_framework_alive(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "x"}, None)
    tester = _tester(root, auto_exit=False)

    report = tester.run()

    assert "finish up" not in [outcome.name for outcome in report.outcomes]
    assert isinstance(tester.get_plugin(), ShoutPlugin)


def test_subclass_adds_custom_checks(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "x"}, None)

    class CustomTester(PluginTester):
        def test_custom(self):
            def _plugin_is_shout() -> None:
                assert self.get_plugin().render("a", "b") == "B"

            self.case("custom render", _plugin_is_shout)
            return self

    report = CustomTester.test(
        {"plugin_path": root}, plugin_class=ShoutPlugin, ports=PortAllocator(start=10)
    )

    assert "custom render" in [outcome.name for outcome in report.outcomes]
    assert report.passed


def test_classmethod_accepts_tester_class_option(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "x"}, None)

    class Marked(PluginTester):
        def test_custom(self):
            self.case("marked", lambda: None)
            return self

    report = PluginTester.test(
        {"plugin_path": root, "tester_class": Marked},
        plugin_class=ShoutPlugin,
        ports=PortAllocator(start=10),
    )

    assert "marked" in [outcome.name for outcome in report.outcomes]


def test_string_tester_class_is_ignored(tmp_path):
    root = _plugin_dir(tmp_path, {"index.txt": "x"}, None)

    report = PluginTester.test(
        {"plugin_path": root},
        tester_class="tester.py",
        plugin_class=ShoutPlugin,
        ports=PortAllocator(start=10),
    )

    assert report.passed


def test_tester_path_option_is_rejected(tmp_path):
    with pytest.raises(ConfigurationError, match="tester_path option has been removed"):
        PluginTester.test({"plugin_path": tmp_path, "tester_path": "tester.py"})


def test_invalid_settings_raise_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        PluginTester({"plugin_path": tmp_path, "whitespace": "squash"})
