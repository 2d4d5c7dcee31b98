import httpx
import pytest
from folders.models import FolderRecord
from picker.session import FolderNotFoundError, FolderPicker, NoSelectionError


class FakeSource:
    """In-memory FolderSource."""

    def __init__(self, records=None, error=None):
        self.records = list(records or [])
        self.error = error
        self.created = 0

    def list_folders(self):
        if self.error is not None:
            raise self.error
        return list(self.records)

    def create_folder(self, name, parent_id="root"):
        self.created += 1
        record = FolderRecord(id=f"new{self.created}", name=name, parent_id=parent_id)
        self.records.append(record)
        return record

    @property
    def info(self):
        return {"type": "fake"}


class RecordingWebhook:
    def __init__(self, ok=True):
        self.ok = ok
        self.calls = []

    def notify_setup_complete(self, user_id, email, provider, status, folder_id):
        self.calls.append((user_id, email, provider, status, folder_id))
        return self.ok


RECORDS = [
    FolderRecord(id="f1", name="Documents"),
    FolderRecord(id="f2", name="Finance", parent_id="f1"),
    FolderRecord(id="f3", name="Photos"),
]


@pytest.fixture
def picker():
    p = FolderPicker(FakeSource(RECORDS))
    assert p.refresh() is True
    return p


def test_initial_state_is_empty_root():
    p = FolderPicker(FakeSource())
    assert p.root.id == "root"
    assert p.root.children == []
    assert p.expanded == {"root"}
    assert p.selected is None


def test_refresh_builds_tree(picker):
    assert picker.folder_count == 3
    assert [r.node.name for r in picker.rows()] == ["My Drive", "Documents", "Photos"]


def test_fetch_failure_leaves_empty_drive():
    source = FakeSource(error=httpx.ConnectError("Failed to fetch files"))
    p = FolderPicker(source)
    assert p.refresh() is False
    assert p.root.children == []
    assert "Failed to fetch files" in p.error


def test_successful_refresh_clears_error():
    source = FakeSource(RECORDS, error=ConnectionError("offline"))
    p = FolderPicker(source)
    p.refresh()
    assert p.error == "offline"
    source.error = None
    assert p.refresh() is True
    assert p.error is None
    assert p.folder_count == 3


def test_stale_refresh_is_discarded(picker):
    slow = picker.begin_refresh()
    fast = picker.begin_refresh()
    assert picker.apply_refresh(fast, [FolderRecord(id="n", name="New")]) is True
    assert picker.apply_refresh(slow, RECORDS) is False
    assert picker.fail_refresh(slow, RuntimeError("late")) is False
    assert [c.name for c in picker.root.children] == ["New"]
    assert picker.error is None


def test_toggle_and_expand(picker):
    assert picker.toggle("f1") is True
    assert [r.node.name for r in picker.rows()] == ["My Drive", "Documents", "Finance", "Photos"]
    assert picker.toggle("f1") is False
    picker.expand_all()
    assert picker.expanded == {"root", "f1"}
    picker.collapse_all()
    assert picker.expanded == {"root"}
    with pytest.raises(FolderNotFoundError):
        picker.toggle("nope")


def test_search_is_shallow(picker):
    picker.expand_all()
    picker.search("fin")
    assert [r.node.name for r in picker.rows()] == ["My Drive"]
    picker.search("DOC")
    assert [r.node.name for r in picker.rows()] == ["My Drive", "Documents"]


def test_select_and_path(picker):
    node = picker.select("f2")
    assert node.name == "Finance"
    assert picker.selected_path == "/Documents/Finance"


def test_select_unknown_folder(picker):
    with pytest.raises(FolderNotFoundError) as excinfo:
        picker.select("missing")
    assert str(excinfo.value) == "Folder not found: missing"
    assert picker.selected is None


def test_selection_survives_refresh_only_if_folder_exists(picker):
    picker.select("f2")
    picker.toggle("f1")
    picker.refresh()
    assert picker.selected_path == "/Documents/Finance"
    assert "f1" in picker.expanded
    picker.source.records = [FolderRecord(id="f3", name="Photos")]
    picker.refresh()
    assert picker.selected is None
    assert picker.expanded == {"root"}


def test_create_folder_selects_it(picker):
    node = picker.create_folder("2024", parent_id="f2")
    assert node.path == "/Documents/Finance/2024"
    assert picker.selected_id == node.id
    assert "f2" in picker.expanded
    top = picker.create_folder("FilePilot")
    assert top.path == "/FilePilot"


def test_create_folder_unknown_parent(picker):
    with pytest.raises(FolderNotFoundError):
        picker.create_folder("X", parent_id="ghost")
    assert picker.source.created == 0


def test_confirm_requires_selection(picker):
    with pytest.raises(NoSelectionError):
        picker.confirm("u1", "a@example.com")


def test_confirm_notifies_webhook():
    hook = RecordingWebhook()
    p = FolderPicker(FakeSource(RECORDS), webhook=hook)
    p.refresh()
    p.select("f2")
    result = p.confirm("u1", "a@example.com")
    assert result.path == "/Documents/Finance"
    assert result.webhook_sent is True
    assert hook.calls == [("u1", "a@example.com", "google", "completed", "f2")]


def test_confirm_without_user_skips_webhook():
    hook = RecordingWebhook()
    p = FolderPicker(FakeSource(RECORDS), webhook=hook)
    p.refresh()
    p.select("f3")
    result = p.confirm()
    assert result.webhook_sent is False
    assert hook.calls == []
