"""
mock_drive.daemon
-----------------
This module implements a fake of the Google Drive v3 ``files`` API using FastAPI.
It serves folder listings (with pagination) and folder creation from an
in-memory store that can be seeded from a YAML file. Intended for local
development of the folder picker, testing, and demonstration purposes.
"""
import json
import logging
import socket
import uuid
from pathlib import Path

import typer
import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from common.app_setup import setup_logging
from connectors.storage_interface import FOLDER_MIME_TYPE
from folders.models import FolderRecord, load_folder_records

logger = logging.getLogger("mock_drive")

MOCK_ROOT_ID = "0AMockDriveRoot"


# Pydantic model for folder creation requests
class FileCreateModel(BaseModel):
    name: str | None = None
    mimeType: str = FOLDER_MIME_TYPE
    parents: list[str] = Field(default_factory=list)


# Output model, shaped like a Drive ``files`` resource
class FileInfoModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    mimeType: str = FOLDER_MIME_TYPE
    parents: list[str] = Field(default_factory=list)
    trashed: bool = False


class FileListModel(BaseModel):
    files: list[FileInfoModel]
    nextPageToken: str | None = None


# In-memory mock Drive store, insertion ordered
mock_files: dict[str, FileInfoModel] = {}

app = FastAPI(title="mock_drive")


def reset_store(records: list[FolderRecord] | None = None) -> None:
    """Replace the store content with ``records`` (top-level ones go under the drive root)."""
    mock_files.clear()
    for record in records or []:
        mock_files[record.id] = FileInfoModel(
            id=record.id,
            name=record.name,
            parents=[record.parent_id or MOCK_ROOT_ID],
        )
    logger.info(f"Store reset with {len(mock_files)} folders")


def load_seed(path: Path) -> None:
    reset_store(load_folder_records(path))


def require_token(authorization: str | None = Header(default=None)) -> str:
    """Accept any bearer token, reject requests without one."""
    if not authorization or not authorization.startswith("Bearer ") or not authorization[7:].strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return authorization[7:].strip()


def generate_file_id() -> str:
    return f"mock-{uuid.uuid4().hex[:12]}"


def get_server():
    # Helper to get the running server instance
    return getattr(app.state, "uvicorn_server", None)


@app.post("/shutdown")
def shutdown():
    """Shutdown the server gracefully."""
    logger.info("Shutdown requested via /shutdown endpoint.")
    server = get_server()
    if server:
        server.should_exit = True
    return {"message": "Server shutting down"}


@app.get("/status")
def status():
    """Health/status endpoint for the mock Drive daemon."""
    server = get_server()
    state = "shutting_down" if server and server.should_exit else "ok"
    return {"status": state, "folders": len(mock_files)}


@app.get("/drive/v3/about")
def about(token: str = Depends(require_token)):
    return {"user": {"displayName": "Mock User", "emailAddress": "mock.user@example.com"}}


@app.get("/drive/v3/files", response_model=FileListModel, response_model_exclude_none=True)
def list_files(pageSize: int = 100, pageToken: str | None = None, q: str | None = None,
               token: str = Depends(require_token)) -> FileListModel:
    """List folders, ``pageSize`` at a time. The page token is an opaque offset."""
    logger.info(f"Listing folders. pageSize={pageSize} pageToken={pageToken!r} q={q!r}")
    if pageSize < 1:
        raise HTTPException(status_code=400, detail="Invalid pageSize")
    try:
        offset = int(pageToken) if pageToken else 0
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid pageToken")
    visible = [f for f in mock_files.values() if not f.trashed and f.mimeType == FOLDER_MIME_TYPE]
    page = visible[offset:offset + pageSize]
    next_offset = offset + pageSize
    return FileListModel(
        files=page,
        nextPageToken=str(next_offset) if next_offset < len(visible) else None,
    )


@app.post("/drive/v3/files", response_model=FileInfoModel)
def create_file(body: FileCreateModel, token: str = Depends(require_token)) -> FileInfoModel:
    if not isinstance(body.name, str) or not body.name.strip():
        logger.warning(f"Invalid folder name: {body.name!r}")
        raise HTTPException(status_code=422, detail="Missing or invalid 'name' field")
    parents = [MOCK_ROOT_ID if p == "root" else p for p in body.parents] or [MOCK_ROOT_ID]
    for parent in parents:
        if parent != MOCK_ROOT_ID and parent not in mock_files:
            logger.warning(f"Parent not found: {parent}")
            raise HTTPException(status_code=404, detail=f"File not found: {parent}")
    info = FileInfoModel(id=generate_file_id(), name=body.name.strip(), mimeType=body.mimeType, parents=parents)
    mock_files[info.id] = info
    logger.info(f"Created folder: {info}")
    return info


app_cli = typer.Typer()


@app_cli.command()
def run(port: int = typer.Option(None, help="Port to run the server on (auto if not set)"),
        seed: Path = typer.Option(None, exists=True, dir_okay=False, help="YAML/JSON file with folders to preload")):
    """Run the FastAPI app using Uvicorn on localhost, reporting the actual port used."""
    setup_logging(app_name="filepilot", daemon=True)
    if seed is not None:
        load_seed(seed)
    if port is None or port == 0:
        # Bind to port 0 to get a free port, then close and reuse
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(('127.0.0.1', 0))
            port = s.getsockname()[1]
        logger.info(f"Selected port: {port}")
        print(json.dumps({"event": "port_selected", "port": port}), flush=True)
    else:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind(('127.0.0.1', port))
            except OSError:
                logger.error(f"ERROR: Port {port} is already in use.")
                raise typer.Exit(98)  # 98 = EADDRINUSE
        logger.info(f"Using port: {port}")
        print(json.dumps({"event": "port_used", "port": port}), flush=True)
    config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level="info")
    server = uvicorn.Server(config)
    app.state.uvicorn_server = server  # Store server instance for shutdown
    logger.info(f"Starting Uvicorn server on port {port}")
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt in main thread")
    logger.info("Server stopped, exiting process")


if __name__ == "__main__":
    app_cli()
