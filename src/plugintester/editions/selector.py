"""Edition selection: pick the source variant of a plugin package to load."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from plugintester.editions.engines import RuntimeCapabilities, requirement_satisfied
from plugintester.editions.manifest import EditionDescriptor, PackageManifest
from plugintester.editions.paths import resolve_path, strip_extension
from plugintester.errors import MalformedManifestError, NoValidEditionError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = ("py",)
IMPLICIT_DIRECTORY = "."


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """The chosen edition and the module paths resolved for it."""

    edition: EditionDescriptor
    directory_path: Path
    entry_path: Path
    test_path: Path | None = None
    tester_path: Path | None = None
    implicit: bool = False

    @property
    def name(self) -> str:
        return self.edition.directory


def select_edition(
    manifest: PackageManifest,
    runtime: Mapping[str, str],
    edition_hint: str | None = None,
    *,
    root: Path,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    test_module: str = "test",
    tester_module: str = "tester",
) -> SelectionResult:
    """Select the edition of the package at ``root`` that should be loaded.

    Without an editions list the package root and its ``main`` entry are used. With an
    explicit ``edition_hint`` the edition whose directory equals the hint is used, and
    nothing else is tried. Otherwise the first edition, in manifest order, whose engine
    requirements are all met by ``runtime`` wins.
    """

    capabilities = runtime if isinstance(runtime, RuntimeCapabilities) else RuntimeCapabilities(runtime)
    root = Path(root).resolve()

    if not manifest.has_editions:
        return _select_implicit(manifest, root, extensions)

    candidates = manifest.editions or ()
    if edition_hint is not None:
        chosen = next((c for c in candidates if c.directory == edition_hint), None)
        if chosen is None:
            raise NoValidEditionError(
                f"No edition matches the requested edition {edition_hint!r}",
                candidates=candidates,
                hint=edition_hint,
            )
        logger.info("Using requested edition %s", chosen.directory)
    else:
        chosen = _first_supported(candidates, capabilities)
        if chosen is None:
            raise NoValidEditionError(
                "No edition supports the current runtime "
                + ", ".join(f"{name}={version}" for name, version in capabilities.items()),
                candidates=candidates,
            )
        logger.info("Selected edition %s", chosen.directory)

    directory_path = root / chosen.directory
    entry_path = resolve_path([root, chosen.directory, strip_extension(chosen.entry)], extensions)
    if entry_path is None:
        raise NoValidEditionError(
            f"Entry {chosen.entry!r} of edition {chosen.directory!r} was not found",
            candidates=(chosen,),
            hint=edition_hint,
        )

    return SelectionResult(
        edition=chosen,
        directory_path=directory_path,
        entry_path=entry_path,
        test_path=_module_path(resolve_path([directory_path, test_module], extensions)),
        tester_path=_module_path(resolve_path([directory_path, tester_module], extensions)),
    )


def edition_supported(edition: EditionDescriptor, runtime: Mapping[str, str]) -> bool:
    """Return True when every engine requirement of ``edition`` is met by ``runtime``."""

    return all(
        requirement_satisfied(requirement, runtime.get(name))
        for name, requirement in edition.engines.items()
    )


def _first_supported(
    candidates: Sequence[EditionDescriptor], runtime: Mapping[str, str]
) -> EditionDescriptor | None:
    for candidate in candidates:
        if edition_supported(candidate, runtime):
            return candidate
        logger.debug(
            "Skipping edition %s: engines %s not satisfied",
            candidate.directory,
            candidate.model_dump()["engines"],
        )
    return None


def _select_implicit(
    manifest: PackageManifest, root: Path, extensions: Sequence[str]
) -> SelectionResult:
    if not manifest.main:
        raise MalformedManifestError("Manifest declares neither editions nor a main entry.")

    edition = EditionDescriptor(
        directory=IMPLICIT_DIRECTORY,
        entry=manifest.main,
        description="package root",
    )
    entry_path = resolve_path([root, strip_extension(manifest.main)], extensions)
    if entry_path is None and "main" not in manifest.model_fields_set:
        raise MalformedManifestError(
            f"Manifest declares neither editions nor a main entry, and {root} has no "
            f"default {manifest.main!r} entry."
        )
    if entry_path is None:
        raise NoValidEditionError(
            f"Main entry {manifest.main!r} was not found under {root}",
            candidates=(edition,),
        )
    logger.info("No editions declared; using main entry %s", entry_path)
    return SelectionResult(edition=edition, directory_path=root, entry_path=entry_path, implicit=True)


def _module_path(path: Path | None) -> Path | None:
    """Keep files and packages; plain directories (e.g. fixture folders) are not modules."""

    if path is None:
        return None
    if path.is_dir() and not (path / "__init__.py").is_file():
        return None
    return path
