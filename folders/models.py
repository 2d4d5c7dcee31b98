"""Pydantic models and tree nodes for remote storage folders."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import json
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

ROOT_ID = "root"
ROOT_NAME = "My Drive"
ROOT_PATH = "/"


class FolderRecord(BaseModel):
    """Flat description of one remote folder, as returned by a listing API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Opaque folder identifier")
    name: str = Field(..., min_length=1, description="Display name, not unique")
    parent_id: str | None = Field(default=None, alias="parentId")

    @classmethod
    def from_drive_file(cls, payload: Mapping[str, Any]) -> FolderRecord:
        """Build a record from a Drive v3 ``files`` entry (first parent wins)."""
        parents = payload.get("parents") or []
        return cls.model_validate(
            {
                "id": payload.get("id"),
                "name": payload.get("name"),
                "parent_id": parents[0] if parents else None,
            }
        )


@dataclass(eq=False)
class FolderNode:
    """Tree node with resolved children and a computed display path."""

    id: str
    name: str
    path: str = ""
    children: list[FolderNode] = field(default_factory=list)
    parent_id: str | None = None

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @classmethod
    def from_record(cls, record: FolderRecord) -> FolderNode:
        return cls(id=record.id, name=record.name, parent_id=record.parent_id)

    @classmethod
    def synthetic_root(cls, children: list[FolderNode] | None = None) -> FolderNode:
        return cls(id=ROOT_ID, name=ROOT_NAME, path=ROOT_PATH, children=children or [])

    def to_dict(self) -> dict[str, Any]:
        """Nested plain-dict form, used for JSON output.

        Built with an explicit stack, so the depth of the tree is not bounded
        by the recursion limit. A node already emitted is not repeated.
        """
        result = self._flat_dict()
        seen = {id(self)}
        stack = [(self, result)]
        while stack:
            node, payload = stack.pop()
            for child in node.children:
                if id(child) in seen:
                    continue
                seen.add(id(child))
                child_payload = child._flat_dict()
                payload["children"].append(child_payload)
                stack.append((child, child_payload))
        return result

    def _flat_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "name": self.name, "path": self.path}
        if self.parent_id is not None:
            payload["parentId"] = self.parent_id
        payload["children"] = []
        return payload

    def __repr__(self) -> str:
        return f"FolderNode(id={self.id!r}, name={self.name!r}, path={self.path!r}, children={len(self.children)})"


# ---------------------------------------------------------------------------
# helpers


def coerce_folder_record(value: Any) -> FolderRecord:
    """Normalize supported inputs into a FolderRecord instance."""
    if isinstance(value, FolderRecord):
        return value
    payload: Mapping[str, Any]
    if isinstance(value, Mapping):
        payload = value
    elif isinstance(value, (str, bytes)):
        payload = _load_text_payload(value)
    else:
        raise TypeError("Unsupported value for a folder record")
    if not isinstance(payload, Mapping):
        raise ValueError("Folder record payload must be a mapping")
    try:
        if "parents" in payload:
            return FolderRecord.from_drive_file(payload)
        return FolderRecord.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid folder record payload: {dict(payload)!r}") from exc


def load_folder_records(source: str | bytes | Path) -> list[FolderRecord]:
    """Read a YAML/JSON list of folder records.

    The document may be a bare list or a mapping with a ``files`` key, which
    is the shape the Drive listing endpoint returns.
    """
    text = source.read_text() if isinstance(source, Path) else source
    payload = _load_text_payload(text)
    if isinstance(payload, Mapping):
        payload = payload.get("files") or []
    if not isinstance(payload, list):
        raise ValueError("Folder records document must be a list")
    return [coerce_folder_record(item) for item in payload]


def _load_text_payload(raw: str | bytes) -> Any:
    """Interpret raw text as YAML first, falling back to JSON."""
    text = raw.decode() if isinstance(raw, bytes) else raw
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError:
        return json.loads(text)


__all__ = [
    "FolderNode",
    "FolderRecord",
    "ROOT_ID",
    "ROOT_NAME",
    "ROOT_PATH",
    "coerce_folder_record",
    "load_folder_records",
]
