"""
Google Drive v3 connector: lists the user's folders and creates new ones.

The session owns the HTTP client and is handed to the connector explicitly;
nothing is created at import time. Pass ``client`` to reuse a configured
``httpx.Client`` (or a test client).
"""

import logging
from typing import Any

import httpx
from box import Box

from connectors.storage_interface import FOLDER_MIME_TYPE, FolderSource, StorageSessionProtocol
from folders.models import FolderRecord, coerce_folder_record

logger = logging.getLogger(__name__)

FILES_ENDPOINT = "/drive/v3/files"
ABOUT_ENDPOINT = "/drive/v3/about"
FOLDER_QUERY = f"mimeType = '{FOLDER_MIME_TYPE}' and trashed = false"


##### Sessions #####
class DriveSession(StorageSessionProtocol):
    """
    A Google Drive session.
    Uses the REST API with an OAuth bearer token.

    Args:
        access_token (str): OAuth access token with Drive scope.
        base_URL (str): API base URL, scheme included.
            Examples: "https://www.googleapis.com", "http://127.0.0.1:8765"
        client (httpx.Client): Optional preconfigured client; owned by the caller.
        timeout (float): Per-request timeout in seconds.
    """
    def __init__(self, access_token: str, base_URL: str = "https://www.googleapis.com",
                 client: httpx.Client | None = None, timeout: float = 10.0):
        if not access_token:
            raise ValueError("A Drive access token is required")
        self.base_URL = base_URL.rstrip("/")
        self._headers = {"Authorization": f"Bearer {access_token}"}
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(base_url=self.base_URL, timeout=timeout)

    def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make an authenticated HTTP request to the Drive API.
        raise_for_status() is called on the response.

        Args:
            method (str): The HTTP method (GET, POST, ...).
            endpoint (str): The API path, e.g. "/drive/v3/files".
            **kwargs: Additional arguments to pass to httpx request.
            example: session.request("GET", "/drive/v3/files", params={"pageSize": 10})

        Returns:
            httpx.Response: The HTTP response object.
        """
        headers = {**self._headers, **kwargs.pop("headers", {})}
        url = f"{self.base_URL}/{endpoint.lstrip('/')}"
        response = self._client.request(method, url, headers=headers, **kwargs)
        response.raise_for_status()
        return response

    @property
    def provider(self) -> str:
        return "google"

    @property
    def is_alive(self) -> bool:
        """Check the token and endpoint by asking Drive who we are."""
        try:
            resp = self.request("GET", ABOUT_ENDPOINT, params={"fields": "user"})
            return resp.status_code == 200
        except httpx.HTTPError:
            return False

    def connect(self):
        """Verify the session. Drive needs no handshake beyond a valid token."""
        if not self.is_alive:
            raise ConnectionError(f"Cannot reach Google Drive at {self.base_URL}")

    def disconnect(self):
        if self._owns_client:
            self._client.close()


##### Connectors #####

class DriveFolderConnector(FolderSource):
    """ Lists and creates folders in the user's Drive.

    Args:
        session (DriveSession): authenticated session.
        page_size (int): files requested per page.
        max_pages (int): upper bound on pages followed through nextPageToken.
    """

    def __init__(self, session: DriveSession, page_size: int = 100, max_pages: int = 50):
        self.session: DriveSession = session
        self.request = self.session.request  # "alias" self.request(...) is self.session.request(...)
        self.page_size = page_size
        self.max_pages = max_pages

    @property
    def info(self) -> Box:
        return Box({
            "type": "google_drive",
            "provider": self.session.provider,
            "baseURL": self.session.base_URL,
            "pageSize": self.page_size,
        })

    def list_folders(self) -> list[FolderRecord]:
        """Fetch every non-trashed folder, following pagination."""
        records: list[FolderRecord] = []
        page_token: str | None = None
        for page in range(self.max_pages):
            params: dict[str, Any] = {
                "q": FOLDER_QUERY,
                "pageSize": self.page_size,
                "fields": "nextPageToken, files(id, name, parents)",
            }
            if page_token:
                params["pageToken"] = page_token
            r = self.request("GET", FILES_ENDPOINT, params=params)
            payload = r.json()
            records.extend(coerce_folder_record(item) for item in payload.get("files", []))
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
        else:
            logger.warning(f"Stopped listing folders after {self.max_pages} pages, results are partial")
        logger.info(f"Fetched {len(records)} folders from {self.session.base_URL}")
        return records

    def create_folder(self, name: str, parent_id: str = "root") -> FolderRecord:
        if not name or not name.strip():
            raise ValueError("Folder name cannot be empty")
        body = {"name": name.strip(), "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]}
        r = self.request("POST", FILES_ENDPOINT, json=body, params={"fields": "id, name, parents"})
        record = coerce_folder_record(r.json())
        logger.info(f"Created folder {record.name!r} ({record.id}) under {parent_id}")
        return record
