import pytest
from fastapi.testclient import TestClient

from connectors.drive_connector import DriveFolderConnector, DriveSession
from folders.models import FolderRecord
from mock_drive import daemon

SEED_FOLDERS = [
    FolderRecord(id="f1", name="Documents"),
    FolderRecord(id="f2", name="Finance", parent_id="f1"),
    FolderRecord(id="f3", name="Invoices", parent_id="f2"),
    FolderRecord(id="f4", name="Photos"),
    FolderRecord(id="f5", name="Receipts", parent_id="f1"),
]


@pytest.fixture
def drive_client():
    """TestClient bound to a freshly seeded mock_drive app."""
    daemon.reset_store(SEED_FOLDERS)
    with TestClient(daemon.app) as client:
        yield client
    daemon.reset_store()


@pytest.fixture
def drive_session(drive_client):
    return DriveSession("test-token", base_URL=str(drive_client.base_url), client=drive_client)


@pytest.fixture
def drive_connector(drive_session):
    return DriveFolderConnector(drive_session, page_size=2)
