"""
State of one destination-folder picker session.

The picker owns the synthesized tree for the lifetime of the session and
throws it away on every refresh. Fetching goes through an injected
:class:`~connectors.storage_interface.FolderSource`; the confirmation webhook
is optional.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import httpx

from connectors.setup_webhook import SetupWebhook
from connectors.storage_interface import FolderSource
from folders.models import ROOT_ID, FolderNode, FolderRecord
from folders.tree import VisibleRow, find_node, insert_child, iter_nodes, iter_visible, synthesize

logger = logging.getLogger(__name__)

FETCH_ERRORS = (httpx.HTTPError, ConnectionError, ValueError)


class PickerError(Exception):
    """Base class for picker errors."""


class FolderNotFoundError(PickerError, KeyError):
    def __init__(self, folder_id: str):
        super().__init__(folder_id)
        self.folder_id = folder_id

    def __str__(self) -> str:
        return f"Folder not found: {self.folder_id}"


class NoSelectionError(PickerError):
    def __init__(self):
        super().__init__("Please select a folder to continue.")


@dataclass(frozen=True)
class SetupConfirmation:
    folder_id: str
    name: str
    path: str
    webhook_sent: bool = False


class FolderPicker:
    """Folder tree plus the user's expansion, search and selection state."""

    def __init__(self, source: FolderSource, webhook: SetupWebhook | None = None):
        self.source = source
        self.webhook = webhook
        self.root: FolderNode = synthesize([])
        self.expanded: set[str] = {ROOT_ID}
        self.query: str = ""
        self.selected_id: str | None = None
        self.error: str | None = None
        self._token = 0

    # -- loading -----------------------------------------------------------

    def begin_refresh(self) -> int:
        """Start a refresh and return its request token."""
        self._token += 1
        return self._token

    def apply_refresh(self, token: int, records: Iterable[FolderRecord]) -> bool:
        """Install the tree built from ``records`` unless a newer refresh started."""
        if token != self._token:
            logger.debug(f"Discarding stale folder batch (token {token}, latest {self._token})")
            return False
        self._install(synthesize(records))
        self.error = None
        return True

    def fail_refresh(self, token: int, exc: Exception) -> bool:
        """Record a failed fetch; the picker shows an empty drive."""
        if token != self._token:
            return False
        logger.error(f"Error loading folders: {exc}")
        self._install(synthesize([]))
        self.error = str(exc) or exc.__class__.__name__
        return True

    def refresh(self) -> bool:
        """Fetch the folders and rebuild the tree. Returns False on fetch failure."""
        token = self.begin_refresh()
        try:
            records = self.source.list_folders()
        except FETCH_ERRORS as exc:
            self.fail_refresh(token, exc)
            return False
        self.apply_refresh(token, records)
        return self.error is None

    def _install(self, root: FolderNode) -> None:
        self.root = root
        known = {node.id for node in iter_nodes(root)}
        self.expanded &= known
        self.expanded.add(ROOT_ID)
        if self.selected_id is not None and self.selected_id not in known:
            logger.info(f"Selected folder {self.selected_id} disappeared after refresh")
            self.selected_id = None

    # -- navigation --------------------------------------------------------

    @property
    def folder_count(self) -> int:
        return sum(1 for _ in iter_nodes(self.root)) - 1

    def get(self, folder_id: str) -> FolderNode:
        node = find_node(self.root, folder_id)
        if node is None:
            raise FolderNotFoundError(folder_id)
        return node

    def toggle(self, folder_id: str) -> bool:
        """Expand or collapse a folder. Returns the new expansion state."""
        self.get(folder_id)
        if folder_id in self.expanded:
            self.expanded.discard(folder_id)
            return False
        self.expanded.add(folder_id)
        return True

    def expand_all(self) -> None:
        self.expanded = {node.id for node in iter_nodes(self.root) if node.children or node.is_root}

    def collapse_all(self) -> None:
        self.expanded = {ROOT_ID}

    def search(self, query: str) -> None:
        self.query = query

    def rows(self) -> list[VisibleRow]:
        return list(iter_visible(self.root, self.expanded, self.query))

    # -- selection ---------------------------------------------------------

    def select(self, folder_id: str) -> FolderNode:
        node = self.get(folder_id)
        self.selected_id = node.id
        return node

    @property
    def selected(self) -> FolderNode | None:
        if self.selected_id is None:
            return None
        return find_node(self.root, self.selected_id)

    @property
    def selected_path(self) -> str | None:
        node = self.selected
        return node.path if node is not None else None

    def create_folder(self, name: str, parent_id: str = ROOT_ID) -> FolderNode:
        """Create the folder remotely, add it to the tree and select it."""
        parent = self.get(parent_id)
        record = self.source.create_folder(name, parent_id=parent.id)
        node = insert_child(self.root, parent.id, record)
        self.expanded.add(parent.id)
        self.selected_id = node.id
        return node

    def confirm(self, user_id: str | None = None, email: str | None = None, provider: str = "google") -> SetupConfirmation:
        """Finish the folder step, notifying the webhook when one is configured."""
        node = self.selected
        if node is None:
            raise NoSelectionError()
        sent = False
        if self.webhook is not None and user_id:
            sent = self.webhook.notify_setup_complete(user_id, email or "", provider, "completed", node.id)
        logger.info(f"Folder step completed with {node.path} ({node.id})")
        return SetupConfirmation(folder_id=node.id, name=node.name, path=node.path, webhook_sent=sent)


__all__ = [
    "FolderNotFoundError",
    "FolderPicker",
    "NoSelectionError",
    "PickerError",
    "SetupConfirmation",
]
