"""Folder records, the synthesized folder tree and its walks."""

from .models import (
    ROOT_ID,
    ROOT_NAME,
    ROOT_PATH,
    FolderNode,
    FolderRecord,
    coerce_folder_record,
    load_folder_records,
)
from .tree import (
    VisibleRow,
    annotate,
    filter_children,
    filter_tree,
    find_node,
    insert_child,
    iter_nodes,
    iter_visible,
    synthesize,
)

__all__ = [
    "FolderNode",
    "FolderRecord",
    "ROOT_ID",
    "ROOT_NAME",
    "ROOT_PATH",
    "VisibleRow",
    "annotate",
    "coerce_folder_record",
    "filter_children",
    "filter_tree",
    "find_node",
    "insert_child",
    "iter_nodes",
    "iter_visible",
    "load_folder_records",
    "synthesize",
]
