"""Loading plugin, tester and test modules from resolved file paths."""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType

logger = logging.getLogger(__name__)


def load_module(path: Path, kind: str = "module") -> ModuleType:
    """Import the module or package at ``path`` under a name unique to that path.

    The containing directory is put on ``sys.path`` so the module can import its siblings.
    Import errors propagate to the caller.
    """

    path = Path(path).resolve()
    is_package = path.is_dir()
    source = path / "__init__.py" if is_package else path
    if not source.is_file():
        raise ImportError(f"No importable {kind} at {path}")

    digest = hashlib.sha256(str(path).encode("utf-8")).hexdigest()[:12]
    module_name = f"_plugintester_{kind}_{path.stem}_{digest}"
    if module_name in sys.modules:
        return sys.modules[module_name]

    spec = importlib.util.spec_from_file_location(
        module_name,
        source,
        submodule_search_locations=[str(path)] if is_package else None,
    )
    if spec is None or spec.loader is None:
        raise ImportError(f"Unable to build an import spec for {path}")

    parent = str(path.parent)
    if parent not in sys.path:
        sys.path.insert(0, parent)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    logger.debug("Loaded %s %s from %s", kind, module_name, source)
    return module
