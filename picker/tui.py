"""
Textual User Interface for picking the destination folder.

A search box on top, the Drive folder tree below it and a status line with
the selected folder's path. The search filters level by level, like the
command-line ``tree --search``.

It uses the Textual library: https://textual.textualize.io/
"""

from __future__ import annotations

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Input, Static, Tree

from folders.models import FolderNode
from folders.tree import filter_tree
from picker.session import FolderPicker, NoSelectionError, SetupConfirmation


class FolderPickerApp(App[SetupConfirmation]):
    """Interactive picker; exits with the SetupConfirmation once confirmed."""

    TITLE = "FilePilot - Select Organization Folder"
    CSS = """
    #search { dock: top; }
    #selection { dock: bottom; height: 1; padding: 0 1; }
    """
    BINDINGS = [
        Binding("f5", "refresh", "Refresh"),
        Binding("ctrl+e", "expand_all", "Expand all"),
        Binding("ctrl+s", "confirm", "Confirm"),
        Binding("escape", "quit", "Quit"),
    ]

    def __init__(self, picker: FolderPicker, user_id: str | None = None, email: str | None = None,
                 provider: str = "google") -> None:
        super().__init__()
        self.picker = picker
        self.user_id = user_id
        self.email = email
        self.provider = provider

    def compose(self) -> ComposeResult:  # type: ignore[override]
        yield Header()
        yield Input(placeholder="Search folders...", id="search")
        yield Tree(Text(self.picker.root.name), id="folders")
        yield Static("No folder selected", id="selection")
        yield Footer()

    def on_mount(self) -> None:
        self.rebuild()
        self._report_error()
        self.query_one(Tree).focus()

    def rebuild(self) -> None:
        """Redraw the tree from the picker state (filtered, expansion kept)."""
        widget = self.query_one(Tree)
        widget.clear()
        root = filter_tree(self.picker.root, self.picker.query)
        widget.root.data = root.id
        stack = [(root, widget.root)]
        while stack:
            node, branch = stack.pop()
            for child in node.children:
                if child.children:
                    item = branch.add(Text(child.name), data=child.id, expand=child.id in self.picker.expanded)
                    stack.append((child, item))
                else:
                    branch.add_leaf(Text(child.name), data=child.id)
        widget.root.expand()
        self._show_selection()

    def _report_error(self) -> None:
        if self.picker.error:
            self.notify(f"No folders found: {self.picker.error}", severity="error")

    def _show_selection(self) -> None:
        node: FolderNode | None = self.picker.selected
        text = f"Selected: {node.name}  Path: {node.path}" if node else "No folder selected"
        self.query_one("#selection", Static).update(Text(text))

    def on_input_changed(self, event: Input.Changed) -> None:
        self.picker.search(event.value)
        self.rebuild()

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        if event.node.data is not None:
            self.picker.expanded.add(event.node.data)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        if event.node.data is not None and not event.node.is_root:
            self.picker.expanded.discard(event.node.data)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        if event.node.data is not None:
            self.picker.select(event.node.data)
            self._show_selection()

    def action_refresh(self) -> None:
        self.picker.refresh()
        self.rebuild()
        self._report_error()

    def action_expand_all(self) -> None:
        self.picker.expand_all()
        self.rebuild()

    def action_confirm(self) -> None:
        try:
            confirmation = self.picker.confirm(self.user_id, self.email, self.provider)
        except NoSelectionError as e:
            self.notify(str(e), severity="warning")
            return
        self.exit(confirmation)
