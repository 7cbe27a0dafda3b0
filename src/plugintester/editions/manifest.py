"""Package manifest parsing for edition selection."""

from __future__ import annotations

import json
import logging
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from plugintester.editions.engines import EngineRequirement, parse_requirement
from plugintester.errors import MalformedManifestError

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_NAMES: tuple[str, ...] = ("pyproject.toml", "package.json")
DEFAULT_MAIN = "index"
TOOL_SECTION = "plugintester"


class EditionDescriptor(BaseModel):
    """One candidate source variant of a package."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    directory: str
    entry: str
    engines: dict[str, Any] = Field(default_factory=dict)
    description: str = ""
    tags: tuple[str, ...] = ()

    @field_validator("directory", "entry", mode="before")
    @classmethod
    def _require_path(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Edition paths must be strings.")
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Edition paths must not be empty.")
        return cleaned

    @field_validator("engines", mode="before")
    @classmethod
    def _parse_engines(cls, value: Any) -> dict[str, EngineRequirement]:
        if value is None or value is True:
            return {}
        if value is False:
            # npm editions use `"engines": false` for "never load automatically"
            return {"*": False}
        if not isinstance(value, Mapping):
            raise ValueError("Edition engines must be a mapping of name -> range.")
        return {str(name): parse_requirement(requirement) for name, requirement in value.items()}

    @field_serializer("engines")
    def _dump_engines(self, engines: dict[str, EngineRequirement]) -> dict[str, str | bool]:
        return {
            name: requirement if isinstance(requirement, bool) else str(requirement)
            for name, requirement in engines.items()
        }


class PackageManifest(BaseModel):
    """Subset of package metadata that drives edition selection."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str | None = None
    version: str | None = None
    main: str | None = DEFAULT_MAIN
    editions: tuple[EditionDescriptor, ...] | None = None

    @field_validator("main", mode="before")
    @classmethod
    def _normalize_main(cls, value: Any) -> str | None:
        if value is None:
            return DEFAULT_MAIN
        if not isinstance(value, str):
            raise ValueError("Manifest main entry must be a string.")
        return value.strip() or None

    @property
    def has_editions(self) -> bool:
        return bool(self.editions)


def parse_manifest(data: Mapping[str, Any], *, source: str = "<manifest>") -> PackageManifest:
    """Validate raw manifest data, raising ``MalformedManifestError`` on failure."""

    if not isinstance(data, Mapping):
        raise MalformedManifestError(f"Manifest {source} must define a mapping at the top level.")
    try:
        return PackageManifest.model_validate(dict(data))
    except ValidationError as exc:
        raise MalformedManifestError(f"Invalid manifest {source}: {exc}") from exc


def load_manifest(path: Path) -> PackageManifest:
    """Read ``package.json``, ``pyproject.toml`` or a YAML manifest from disk."""

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise MalformedManifestError(f"Manifest not found: {path}") from exc

    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            data = _from_pyproject(tomllib.loads(content))
        elif suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(content) or {}
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise MalformedManifestError(f"Unable to parse manifest {path}: {exc}") from exc

    manifest = parse_manifest(data, source=str(path))
    logger.debug(
        "Loaded manifest %s (editions=%s)",
        path,
        len(manifest.editions) if manifest.editions else 0,
    )
    return manifest


def find_manifest(root: Path, names: Sequence[str] = DEFAULT_MANIFEST_NAMES) -> Path | None:
    """Return the first manifest file present under ``root``."""

    for name in names:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def _from_pyproject(data: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten `[project]` and `[tool.plugintester]` into manifest fields."""

    project = data.get("project") or {}
    tool = (data.get("tool") or {}).get(TOOL_SECTION) or {}
    merged: dict[str, Any] = {
        "name": project.get("name"),
        "version": project.get("version"),
    }
    merged.update(tool)
    return merged
