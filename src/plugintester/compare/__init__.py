"""Output comparison utilities."""

from .normalize import NormalizationConfig, WhitespaceMode, normalize
from .tree import ComparisonResult, ContentMismatch, FileTree, compare_trees, scan_tree

__all__ = [
    "ComparisonResult",
    "ContentMismatch",
    "FileTree",
    "NormalizationConfig",
    "WhitespaceMode",
    "compare_trees",
    "normalize",
    "scan_tree",
]
