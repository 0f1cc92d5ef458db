"""Folder path resolution and recursive traversal over a Drive backend.

Three operations:

- :func:`resolve_path` walks ``a/b/c`` from the root, optionally creating
  missing folders.
- :func:`build_tree` returns a nested :class:`TreeNode` of bounded depth.
- :func:`list_recursive` flattens a folder's descendants into a pre-order
  list annotated with ``path`` and ``depth``.

All three await each backend call in turn; there is no sibling fan-out.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from gws_tools.drive.backend import ROOT_FOLDER_ID, ROOT_FOLDER_NAME, DriveBackend, Entry
from gws_tools.errors import GoogleApiError, PathNotFoundError

logger = logging.getLogger(__name__)

TREE_PAGE_SIZE = 50
LIST_PAGE_SIZE = 100


@dataclass
class TreeNode:
    """One node of a folder tree."""

    id: str
    name: str
    kind: str
    size: int | None = None
    children: list["TreeNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting ``size`` when unknown and ``children`` when empty."""
        result: dict[str, Any] = {"id": self.id, "name": self.name, "type": self.kind}
        if self.size is not None:
            result["size"] = self.size
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass
class TraversalState:
    """Per-call bookkeeping for :func:`list_recursive`."""

    visited: set[str] = field(default_factory=set)
    items: list[dict[str, Any]] = field(default_factory=list)


def split_path(path: str) -> list[str]:
    """Split a slash-delimited path, dropping empty segments."""
    return [segment for segment in path.split("/") if segment]


def _validate_depth(max_depth: int) -> None:
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")


# =============================================================================
# Path resolution
# =============================================================================


async def resolve_path(
    backend: DriveBackend,
    path: str,
    create_if_missing: bool = False,
    root_id: str = ROOT_FOLDER_ID,
) -> str:
    """Resolve a folder path like ``Projects/2024/Reports`` to a folder id.

    When several folders share a name under the same parent, the first one
    returned by Drive wins. Drive does not guarantee which one that is.

    Args:
        backend: Drive backend to query.
        path: Slash-delimited folder path relative to ``root_id``.
        create_if_missing: Create missing folders instead of failing.
        root_id: Folder the path is relative to.

    Returns:
        Id of the last folder in the path, or ``root_id`` for an empty path.

    Raises:
        PathNotFoundError: If a segment is missing and creation is disabled.
        GoogleApiError: If a backend call fails.
    """
    current_id = root_id

    for segment in split_path(path):
        matches = await backend.list_children(
            current_id,
            folders_only=True,
            name=segment,
            page_size=1,
            max_results=1,
        )
        if matches:
            current_id = matches[0].id
            continue

        if not create_if_missing:
            raise PathNotFoundError(segment, path)

        current_id = await backend.create_folder(segment, current_id)

    return current_id


# =============================================================================
# Tree builder
# =============================================================================


async def build_tree(
    backend: DriveBackend,
    root_id: str = ROOT_FOLDER_ID,
    max_depth: int = 3,
    include_files: bool = False,
) -> TreeNode:
    """Build a nested folder tree rooted at ``root_id``.

    ``max_depth`` is the number of levels in the returned tree, counting
    the root: 0 or 1 returns the bare root, 2 adds its children, and so on.

    Args:
        backend: Drive backend to query.
        root_id: Folder at the top of the tree.
        max_depth: Number of tree levels to return.
        include_files: Include files as leaf nodes; folders only otherwise.

    Returns:
        The root :class:`TreeNode`.

    Raises:
        ValueError: If ``max_depth`` is negative.
        GoogleApiError: If any backend call fails.
    """
    _validate_depth(max_depth)

    if root_id == ROOT_FOLDER_ID:
        root_name = ROOT_FOLDER_NAME
    else:
        root_name = (await backend.get_metadata(root_id)).name

    root = TreeNode(id=root_id, name=root_name, kind="folder")
    root.children = await _tree_children(backend, root_id, 0, max_depth, include_files)
    return root


async def _tree_children(
    backend: DriveBackend,
    folder_id: str,
    depth: int,
    max_depth: int,
    include_files: bool,
) -> list[TreeNode]:
    # depth is the level of folder_id below the root; children land on depth + 1
    if depth + 1 >= max_depth:
        return []

    entries = await backend.list_children(
        folder_id,
        folders_only=not include_files,
        order_by="name",
        page_size=TREE_PAGE_SIZE,
    )

    nodes = []
    for entry in entries:
        node = _tree_node(entry)
        if entry.is_folder:
            node.children = await _tree_children(
                backend, entry.id, depth + 1, max_depth, include_files
            )
        nodes.append(node)
    return nodes


def _tree_node(entry: Entry) -> TreeNode:
    return TreeNode(
        id=entry.id,
        name=entry.name,
        kind="folder" if entry.is_folder else "file",
        size=entry.size,
    )


# =============================================================================
# Recursive lister
# =============================================================================


async def list_recursive(
    backend: DriveBackend,
    root_id: str = ROOT_FOLDER_ID,
    max_depth: int = 5,
    include_files: bool = True,
    include_folders: bool = True,
    mime_type: str | None = None,
) -> list[dict[str, Any]]:
    """List every folder and file below ``root_id`` depth-first.

    Direct children of the root have depth 0; a folder at depth ``d`` is
    expanded only while ``d < max_depth``. Each folder is expanded at most
    once even if Drive reports it under several parents. A failed listing
    is logged and skipped; the rest of the walk continues.

    Args:
        backend: Drive backend to query.
        root_id: Folder whose descendants are listed.
        max_depth: Deepest folder level that is still expanded.
        include_files: Emit files; when false only folders are listed.
        include_folders: Emit folders (they are expanded either way).
        mime_type: Only emit files of this MIME type.

    Returns:
        Pre-order list of Drive entries with added ``path`` and ``depth``.

    Raises:
        ValueError: If ``max_depth`` is negative.
    """
    _validate_depth(max_depth)

    state = TraversalState()
    await _walk(
        backend,
        state,
        folder_id=root_id,
        parent_path="",
        depth=0,
        max_depth=max_depth,
        include_files=include_files,
        include_folders=include_folders,
        mime_type=mime_type,
    )
    return state.items


async def _walk(
    backend: DriveBackend,
    state: TraversalState,
    *,
    folder_id: str,
    parent_path: str,
    depth: int,
    max_depth: int,
    include_files: bool,
    include_folders: bool,
    mime_type: str | None,
) -> None:
    state.visited.add(folder_id)
    try:
        entries = await backend.list_children(
            folder_id,
            folders_only=not include_files,
            leaf_mime_type=mime_type if include_files else None,
            page_size=LIST_PAGE_SIZE,
        )
    except GoogleApiError as e:
        logger.warning("Skipping folder %s: %s", folder_id, e)
        return

    emit_folders = include_folders or not include_files

    for entry in entries:
        path = f"{parent_path}/{entry.name}" if parent_path else entry.name

        if not entry.is_folder:
            if include_files and (mime_type is None or entry.mime_type == mime_type):
                state.items.append({**entry.to_dict(), "path": path, "depth": depth})
            continue

        if emit_folders:
            state.items.append({**entry.to_dict(), "path": path, "depth": depth})

        if depth < max_depth and entry.id not in state.visited:
            await _walk(
                backend,
                state,
                folder_id=entry.id,
                parent_path=path,
                depth=depth + 1,
                max_depth=max_depth,
                include_files=include_files,
                include_folders=include_folders,
                mime_type=mime_type,
            )
