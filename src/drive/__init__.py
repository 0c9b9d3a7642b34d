from .client import DriveClient, RemoteStoreError
from .models import Folder, FolderResult, FolderStatus
from .provisioner import FolderProvisioner

__all__ = ["DriveClient", "RemoteStoreError", "Folder", "FolderResult", "FolderStatus", "FolderProvisioner"]
