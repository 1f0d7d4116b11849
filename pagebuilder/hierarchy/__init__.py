"""Hierarchy building - recognized elements to the section/row/column/widget IR"""

from .builder import AMBIGUOUS_LAYOUT, HierarchyBuilder, build_hierarchy
from .columns import class_signal, column_signals, grid_tracks, partition_rows, resolve_sizes

__all__ = [
    "AMBIGUOUS_LAYOUT",
    "HierarchyBuilder",
    "build_hierarchy",
    # Column inference
    "class_signal",
    "column_signals",
    "grid_tracks",
    "partition_rows",
    "resolve_sizes",
]
