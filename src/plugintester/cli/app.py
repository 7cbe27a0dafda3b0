"""Command line interface for Plugintester."""

from __future__ import annotations

import json
import logging
import pathlib
import re
from typing import List, Optional

import typer
import yaml
from dotenv import load_dotenv
from rich.console import Console

from plugintester import get_version
from plugintester.compare import NormalizationConfig, WhitespaceMode, compare_trees
from plugintester.config import Config, load_config
from plugintester.core import launch, resolve_selection
from plugintester.errors import PluginTesterError
from plugintester.frameworks import load_default_frameworks, registry as framework_registry
from plugintester.logging import configure_logging
from plugintester.reports import render_comparison, render_report, write_markdown_report

EDITION_ARGUMENT = re.compile(r"^(?:--)?edition=(?P<name>.*)$")


def _load_environment(env_file: Optional[pathlib.Path]) -> None:
    """Load environment variables from .env files."""

    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=True)
    else:
        load_dotenv(override=False)


def _prepare_logging(
    config: Config,
    override_path: Optional[pathlib.Path],
    override_level: Optional[str],
    debug: bool,
) -> logging.Logger:
    """Configure logging based on configuration and overrides."""

    configured_level = "debug" if debug else (override_level or config.logging.level)
    return configure_logging(
        log_path=override_path or config.logging.path,
        level=configured_level.upper(),
        mirror_to_console=debug,
    )


def _split_run_arguments(
    arguments: List[str], edition: Optional[str]
) -> tuple[Optional[pathlib.Path], Optional[str]]:
    """Separate `edition=NAME` tokens from the optional plugin path."""

    plugin_path: Optional[pathlib.Path] = None
    for value in arguments:
        match = EDITION_ARGUMENT.match(value)
        if match is not None:
            if edition is None:
                edition = match.group("name")
            continue
        if plugin_path is not None:
            raise typer.BadParameter(f"Unexpected argument {value!r}", param_hint="ARGS")
        plugin_path = pathlib.Path(value)
    return plugin_path, edition


def _fail(exc: Exception, code: int = 2) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=code)


app = typer.Typer(
    name="plugintester",
    help="Test content-generation plugins against expected output.",
    no_args_is_help=True,
    add_completion=False,
)

config_app = typer.Typer(help="Configuration utilities.", no_args_is_help=True)
app.add_typer(config_app, name="config")


def _version_callback(value: bool) -> None:
    """Print the package version and exit when requested."""

    if value:
        typer.echo(get_version())
        raise typer.Exit()


@app.callback()
def main(  # pragma: no cover - exercised via CLI invocation
    ctx: typer.Context,
    config: Optional[pathlib.Path] = typer.Option(
        None,
        "--config",
        metavar="PATH",
        help="Path to YAML configuration file (used instead of plugintester.yaml).",
    ),
    env_file: Optional[pathlib.Path] = typer.Option(
        None,
        "--env-file",
        metavar="PATH",
        help="Load environment variables from .env-style file before execution.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        metavar="LEVEL",
        help="Override the configured log level (debug, info, warn, error).",
    ),
    log_path: Optional[pathlib.Path] = typer.Option(
        None,
        "--log-path",
        metavar="PATH",
        help="Override the base directory or file for log output.",
    ),
    debug: bool = typer.Option(
        False,
        "-d",
        "--debug",
        help="Debug logging, mirrored to the console, and a verbose framework log level.",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show Plugintester version and exit.",
    ),
) -> None:
    """CLI root; loads configuration, logging, and shared context."""

    ctx.ensure_object(dict)
    _load_environment(env_file)

    try:
        config_obj = load_config(config)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    load_default_frameworks()
    framework_registry.load_entrypoints()
    logger = _prepare_logging(config_obj, log_path, log_level, debug)

    ctx.obj.update(
        {
            "config": config_obj,
            "config_path": config,
            "logger": logger,
            "debug": debug,
        }
    )


@app.command()
def run(
    ctx: typer.Context,
    arguments: Optional[List[str]] = typer.Argument(
        None,
        metavar="[PLUGIN_PATH] [edition=NAME]",
        help="Plugin package directory (default: current directory).",
    ),
    edition: Optional[str] = typer.Option(
        None,
        "--edition",
        metavar="NAME",
        help="Load this edition directory instead of detecting one.",
    ),
    framework: Optional[str] = typer.Option(
        None,
        "--framework",
        metavar="NAME",
        help="Framework name or module:attr to test against.",
    ),
    report: Optional[pathlib.Path] = typer.Option(
        None,
        "--report",
        metavar="PATH",
        help="Also write a Markdown report to this path.",
    ),
) -> None:
    """Run the plugin tests, exiting non-zero when any check fails."""

    config: Config = ctx.obj["config"]
    plugin_path, edition_hint = _split_run_arguments(list(arguments or []), edition)

    try:
        suite = launch(
            plugin_path,
            edition_hint,
            config=config,
            framework=framework,
            debug=ctx.obj["debug"],
        )
    except PluginTesterError as exc:
        raise _fail(exc) from exc

    render_report(suite, Console())
    if report is not None:
        write_markdown_report(suite, report)
        typer.echo(f"Report written to {report}")
    if not suite.passed:
        raise typer.Exit(code=1)


@app.command("edition")
def show_edition(
    ctx: typer.Context,
    plugin_path: Optional[pathlib.Path] = typer.Argument(
        None, help="Plugin package directory (default: current directory)."
    ),
    edition: Optional[str] = typer.Option(None, "--edition", metavar="NAME"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
) -> None:
    """Show which edition would be loaded and where its modules are."""

    config: Config = ctx.obj["config"]
    root = (plugin_path or pathlib.Path.cwd()).resolve()
    try:
        selection = resolve_selection(root, edition, config=config)
    except PluginTesterError as exc:
        raise _fail(exc) from exc

    data = {
        "edition": selection.edition.model_dump(),
        "implicit": selection.implicit,
        "directory": str(selection.directory_path),
        "entry": str(selection.entry_path),
        "test": str(selection.test_path) if selection.test_path else None,
        "tester": str(selection.tester_path) if selection.tester_path else None,
    }
    if as_json:
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(f"Edition:   {selection.name}{' (implicit)' if selection.implicit else ''}")
    if selection.edition.description:
        typer.echo(f"           {selection.edition.description}")
    typer.echo(f"Entry:     {data['entry']}")
    typer.echo(f"Test:      {data['test'] or '-'}")
    typer.echo(f"Tester:    {data['tester'] or '-'}")


@app.command()
def compare(
    ctx: typer.Context,
    actual: pathlib.Path = typer.Argument(..., help="Generated output directory."),
    expected: pathlib.Path = typer.Argument(..., help="Expected output directory."),
    whitespace: Optional[WhitespaceMode] = typer.Option(
        None,
        "--whitespace",
        case_sensitive=False,
        help="How to ignore whitespace differences (default from configuration).",
    ),
    content_remove: Optional[str] = typer.Option(
        None,
        "--content-remove",
        metavar="REGEX",
        help="Remove matches of this pattern from both sides before comparing.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
) -> None:
    """Compare two directory trees the way the generate check does."""

    settings = ctx.obj["config"].tester
    try:
        normalization = NormalizationConfig.build(
            whitespace or settings.whitespace,
            content_remove if content_remove is not None else settings.content_remove_regex,
        )
    except re.error as exc:
        raise typer.BadParameter(str(exc), param_hint="--content-remove") from exc

    try:
        result = compare_trees(actual, expected, normalization)
    except PluginTesterError as exc:
        raise _fail(exc) from exc

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        render_comparison(result, Console())
    if not result.ok:
        raise typer.Exit(code=1)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Print the effective configuration as YAML."""

    config: Config = ctx.obj["config"]
    if config.loaded_from:
        typer.echo(f"# loaded from: {', '.join(config.loaded_from)}")
    typer.echo(yaml.safe_dump(dict(config.model_dump()), sort_keys=False).rstrip())
