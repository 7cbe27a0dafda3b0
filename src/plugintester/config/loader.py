"""Configuration loading for Plugintester."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from plugintester.compare.normalize import NormalizationConfig, WhitespaceMode

DEFAULT_CONFIG_PATH = Path("plugintester.yaml")
LOCAL_CONFIG_PATH = Path("plugintester.local.yaml")
PACKAGED_CONFIG = ("plugintester.config", "default.yaml")

REMOVED_TESTER_PATH_MESSAGE = (
    "The tester_path option has been removed in favour of the tester_class option.\n"
    "Pass the tester class itself, e.g. tester_class=MyTester, or ship a `tester` module "
    "inside the edition directory."
)


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    path: Path | None = None
    level: str = Field(default="info")

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().lower()
        if normalized not in {"debug", "info", "warn", "warning", "error", "critical"}:
            raise ValueError(f"Unsupported logging level: {value!r}")
        return normalized


class TesterSettings(BaseModel):
    """Settings of the plugin tester itself."""

    model_config = ConfigDict(extra="forbid")

    tester_name: str | None = None
    plugin_name: str | None = None
    plugin_prefix: str = "docpad-plugin-"
    plugin_path: Path | None = None
    test_path: Path | None = None
    out_expected_path: Path | None = None
    whitespace: WhitespaceMode = WhitespaceMode.NONE
    content_remove_regex: str | None = None
    auto_exit: str | bool | None = "safe"
    framework: str = "null"

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("tester_path"):
            raise ValueError(REMOVED_TESTER_PATH_MESSAGE)
        migrated = dict(data)
        migrated.pop("tester_path", None)
        remove_whitespace = migrated.pop("remove_whitespace", None)
        if remove_whitespace is True and "whitespace" not in migrated:
            migrated["whitespace"] = WhitespaceMode.REMOVE.value
        return migrated

    @field_validator("whitespace", mode="before")
    @classmethod
    def _normalize_whitespace(cls, value: Any) -> Any:
        if value is None or value is False:
            return WhitespaceMode.NONE
        if value is True:
            return WhitespaceMode.REMOVE
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("content_remove_regex")
    @classmethod
    def _compile_regex(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid content_remove_regex {value!r}: {exc}") from exc
        return value

    def normalization(self) -> NormalizationConfig:
        return NormalizationConfig.build(self.whitespace, self.content_remove_regex)


class FrameworkSettings(BaseModel):
    """Options forwarded to the host framework; unknown keys are passed through."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    global_: bool = Field(default=True, alias="global")
    port: int | None = Field(default=None, ge=1, le=65535)
    log_level: int | None = Field(default=None, ge=0, le=7)
    root_path: Path | None = None
    out_path: Path | None = None
    src_path: Path | None = None
    plugin_paths: list[Path] | None = None
    enable_unlisted_plugins: bool = True
    enabled_plugins: dict[str, bool] | None = None
    skip_unsupported_plugins: bool = False
    catch_exceptions: bool = False
    environment: str | None = None


class EditionSettings(BaseModel):
    """Where manifests and override modules are looked up."""

    model_config = ConfigDict(extra="forbid")

    manifests: list[str] = Field(default_factory=lambda: ["pyproject.toml", "package.json"])
    extensions: list[str] = Field(default_factory=lambda: ["py"])
    test_module: str = "test"
    tester_module: str = "tester"
    capabilities: dict[str, str] = Field(default_factory=dict)

    @field_validator("extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            raise ValueError("Extensions must be a list of strings.")
        return [str(item).strip().lstrip(".") for item in value if str(item).strip()]

    @field_validator("capabilities", mode="before")
    @classmethod
    def _stringify_capabilities(cls, value: Any) -> dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("Capabilities must be a mapping of name -> version.")
        return {str(key): str(version) for key, version in value.items()}


class ConfigModel(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    tester: TesterSettings = Field(default_factory=TesterSettings)
    framework: FrameworkSettings = Field(default_factory=FrameworkSettings)
    editions: EditionSettings = Field(default_factory=EditionSettings)


@dataclass(slots=True)
class Config:
    """Validated configuration with convenience helpers."""

    model: ConfigModel
    raw: Mapping[str, Any] = field(repr=False)
    loaded_from: tuple[str, ...] = field(default_factory=tuple, repr=False)

    @property
    def logging(self) -> LoggingSettings:
        """Return logging settings."""

        return self.model.logging

    @property
    def tester(self) -> TesterSettings:
        """Return tester settings."""

        return self.model.tester

    @property
    def framework(self) -> FrameworkSettings:
        """Return framework options."""

        return self.model.framework

    @property
    def editions(self) -> EditionSettings:
        """Return edition lookup settings."""

        return self.model.editions

    def model_dump(self) -> Mapping[str, Any]:
        """Expose the parsed configuration as a mapping."""

        return self.model.model_dump(mode="json", by_alias=True)


def load_config(path: Path | None = None) -> Config:
    """Load configuration from packaged defaults and local overrides, or an explicit file."""

    merged: dict[str, Any] = {}
    loaded_from: list[str] = []

    packaged_payload = _read_packaged_yaml(*PACKAGED_CONFIG)
    if packaged_payload is not None:
        merged = _merge_dicts(merged, packaged_payload)
        loaded_from.append(":".join(PACKAGED_CONFIG))

    if path is not None:
        override_path = _resolve_path(path)
        if not override_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        merged = _merge_dicts(merged, _read_yaml(override_path))
        loaded_from.append(str(override_path))
    else:
        for candidate in (DEFAULT_CONFIG_PATH, LOCAL_CONFIG_PATH):
            resolved = _resolve_path(candidate)
            if resolved.exists():
                merged = _merge_dicts(merged, _read_yaml(resolved))
                loaded_from.append(str(resolved))

    try:
        model = ConfigModel.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    return Config(model=model, raw=merged, loaded_from=tuple(loaded_from))


def _resolve_path(path: Path) -> Path:
    """Resolve configuration paths relative to the current working directory."""

    return path if path.is_absolute() else Path.cwd() / path


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML file into a dictionary."""

    content = path.read_text(encoding="utf-8")
    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must define a mapping at the top level.")
    return data


def _read_packaged_yaml(package: str, name: str) -> dict[str, Any] | None:
    """Read YAML embedded in a Python package via importlib.resources."""

    try:
        content = resources.files(package).joinpath(name).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Packaged configuration {package}:{name} must define a mapping at the top level."
        )
    return data


def _merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two dictionaries, with override values taking precedence."""

    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
