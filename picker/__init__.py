"""Destination-folder picker: session state, CLI and terminal UI."""

from .session import FolderNotFoundError, FolderPicker, NoSelectionError, PickerError, SetupConfirmation

__all__ = [
    "FolderNotFoundError",
    "FolderPicker",
    "NoSelectionError",
    "PickerError",
    "SetupConfirmation",
]
