"""Drive folder traversal: path resolution, folder trees and recursive listings."""

from gws_tools.drive.backend import (
    FOLDER_MIME_TYPE,
    ROOT_FOLDER_ID,
    DriveApiBackend,
    DriveBackend,
    Entry,
)
from gws_tools.drive.traversal import (
    TraversalState,
    TreeNode,
    build_tree,
    list_recursive,
    resolve_path,
)

__all__ = [
    "FOLDER_MIME_TYPE",
    "ROOT_FOLDER_ID",
    "DriveApiBackend",
    "DriveBackend",
    "Entry",
    "TraversalState",
    "TreeNode",
    "build_tree",
    "list_recursive",
    "resolve_path",
]
