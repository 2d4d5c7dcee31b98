from typing import Protocol, List
from box import Box

from folders.models import FolderRecord

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class StorageSessionProtocol(Protocol):
    """Interface Protocol for cloud storage session objects.
    To be implemented by actual session classes (one per provider).
    """
    @property
    def provider(self) -> str: ...
    @property
    def is_alive(self) -> bool: ...
    def connect(self): ...
    def disconnect(self): ...


class FolderSource(Protocol):
    """
       Protocol for anything that can list and create remote folders.
       Implementations must accept a StorageSessionProtocol instance upon initialization
       and store it as self.session. Listing returns one full batch of flat records,
       in the order the provider returned them.
    """

    def list_folders(self) -> List[FolderRecord]: ...

    def create_folder(self, name: str, parent_id: str = "root") -> FolderRecord:
        """
        Create a folder named ``name`` under ``parent_id``.
        ``"root"`` designates the top of the user's drive.
        """
        ...

    @property
    def info(self) -> Box:
        """
        Returns information about the connector,
          such as provider and endpoint, as a Box.
        """
        ...
