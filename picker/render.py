"""Rich rendering of picker rows for the command line."""

from __future__ import annotations

from typing import Iterable

from rich.markup import escape
from rich.tree import Tree

from folders.tree import VisibleRow


def row_label(row: VisibleRow, selected_id: str | None = None, show_paths: bool = True) -> str:
    node = row.node
    if node.children:
        marker = "▾ " if row.expanded else "▸ "
    else:
        marker = "  "
    label = f"{marker}[bold]{escape(node.name)}[/bold]"
    if show_paths and not node.is_root:
        label += f"  [dim]{escape(node.path)}[/dim]"
    if node.id == selected_id:
        label += "  [green]✔ selected[/green]"
    return label


def render_tree(rows: Iterable[VisibleRow], selected_id: str | None = None, show_paths: bool = True) -> Tree:
    """Turn display-ordered rows back into a rich Tree.

    Rows come depth-first, so the branch for a row is always the last one
    opened one level above it.
    """
    branches: list[Tree] = []
    for row in rows:
        label = row_label(row, selected_id, show_paths)
        if row.depth == 0:
            branches = [Tree(label, guide_style="dim")]
            continue
        del branches[row.depth:]
        branches.append(branches[-1].add(label))
    if not branches:
        raise ValueError("No rows to render")
    return branches[0]
