"""Edition resolution for plugin packages."""

from .engines import RuntimeCapabilities, VersionRange, capture_runtime, parse_range
from .manifest import EditionDescriptor, PackageManifest, find_manifest, load_manifest, parse_manifest
from .paths import resolve_path
from .selector import SelectionResult, edition_supported, select_edition

__all__ = [
    "EditionDescriptor",
    "PackageManifest",
    "RuntimeCapabilities",
    "SelectionResult",
    "VersionRange",
    "capture_runtime",
    "edition_supported",
    "find_manifest",
    "load_manifest",
    "parse_manifest",
    "parse_range",
    "resolve_path",
    "select_edition",
]
