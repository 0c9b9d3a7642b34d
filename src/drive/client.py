"""Google Drive client - folder list/get/create over the Drive v3 API with a service account."""
import asyncio
import logging
from pathlib import Path
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
TOKEN_URI = "https://oauth2.googleapis.com/token"


class RemoteStoreError(Exception):
    """A Drive call failed (HTTP error, transport error or bad credentials)."""

    def __init__(self, operation: str, message: str, status: int | None = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.status = status


def _http_status(exc: HttpError) -> int | None:
    response = getattr(exc, "resp", None)
    return int(response.status) if response is not None and getattr(response, "status", None) else None


def quote_query_value(value: str) -> str:
    """Escape a string literal for a Drive files.list query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_credentials(
    *,
    client_email: str = "",
    private_key: str = "",
    scopes: list[str],
    credentials_file: str | Path = "",
) -> service_account.Credentials:
    """Service account credentials from a JSON key file, or from email + private key."""
    if credentials_file:
        return service_account.Credentials.from_service_account_file(str(credentials_file), scopes=scopes)
    if not client_email or not private_key:
        raise ValueError("Google service account not configured. Run: python main.py setup")
    info = {
        "type": "service_account",
        "client_email": client_email,
        "private_key": private_key,
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=scopes)


class DriveClient:
    """Thin async wrapper around the Drive files resource. Blocking calls run in a thread."""

    def __init__(self, service: Any):
        self._service = service

    @classmethod
    def from_credentials(cls, credentials: service_account.Credentials) -> "DriveClient":
        return cls(build("drive", "v3", credentials=credentials, cache_discovery=False))

    async def list_folders(self, name: str, parent_ids: list[str] | None = None, page_size: int = 100) -> list[dict]:
        """Folders whose name contains name. One page only; callers must match exactly."""
        clauses = [
            f"mimeType='{FOLDER_MIME_TYPE}'",
            f"name contains '{quote_query_value(name)}'",
            "trashed = false",
        ]
        if parent_ids:
            parents = " or ".join(f"'{quote_query_value(p)}' in parents" for p in parent_ids)
            clauses.append(f"({parents})")
        params = {
            "q": " and ".join(clauses),
            "pageSize": page_size,
            "supportsAllDrives": True,
            "includeItemsFromAllDrives": True,
            "fields": "files(id, name, parents), incompleteSearch",
        }
        data = await self._call("list_folders", lambda: self._service.files().list(**params).execute())
        if data.get("incompleteSearch"):
            logger.warning("Drive search for '%s' was incomplete", name)
        return data.get("files", [])

    async def get_folder(self, folder_id: str) -> dict:
        """Canonical record (id, name, parents) for a folder id."""
        if not folder_id:
            raise ValueError("missing_id")
        params = {"fileId": folder_id, "supportsAllDrives": True, "fields": "id, name, parents"}
        return await self._call("get_folder", lambda: self._service.files().get(**params).execute())

    async def create_folder(self, name: str, parent_ids: list[str] | None = None) -> dict:
        """Create a folder and return its id and name."""
        body = {"name": name, "parents": list(parent_ids or []), "mimeType": FOLDER_MIME_TYPE}
        return await self._call(
            "create_folder",
            lambda: self._service.files().create(body=body, supportsAllDrives=True, fields="id, name, parents").execute(),
        )

    async def _call(self, operation: str, fn) -> dict:
        try:
            return await asyncio.to_thread(fn)
        except HttpError as exc:
            raise RemoteStoreError(operation, str(exc), status=_http_status(exc)) from exc
        except (GoogleAuthError, OSError) as exc:
            raise RemoteStoreError(operation, str(exc)) from exc
