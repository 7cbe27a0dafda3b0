"""Host framework integration for Plugintester."""

from .base import LIFECYCLE_ACTIONS, FrameworkFactory, HostFramework
from .registry import FrameworkRegistry, load_default_frameworks, registry

__all__ = [
    "LIFECYCLE_ACTIONS",
    "FrameworkFactory",
    "FrameworkRegistry",
    "HostFramework",
    "load_default_frameworks",
    "registry",
]
