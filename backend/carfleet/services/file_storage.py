"""Document and photo storage for car attachments.

Two backends: a local directory served by the API at ``/uploads`` and
Google Drive (files shared as public readers). Folder identifiers are
resolved once at startup by ``init_file_storage`` and passed around as a
frozen ``StorageFolders``.
"""

from __future__ import annotations

import io
import logging
import re
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httplib2
from googleapiclient.errors import HttpError
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from carfleet.errors import UpstreamError, ValidationError
from carfleet.sheets.google import is_transient_error

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_DRIVE_FILE_ID = re.compile(r"/d/([A-Za-z0-9_-]+)")
_FOLDER_MIME = "application/vnd.google-apps.folder"


@dataclass(frozen=True)
class Attachment:
    """An uploaded file held in memory."""

    field: str  # form field: "documents" or "photo"
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class StorageFolders:
    documents: str
    photos: str


def validate_attachment(attachment: Attachment, max_bytes: int) -> None:
    if attachment.size > max_bytes:
        raise ValidationError(
            f"{attachment.filename} exceeds the {max_bytes // (1024 * 1024)}MB upload limit",
            fields=[attachment.field],
        )


def stored_name(filename: str) -> str:
    """Timestamp-prefixed file name with unsafe characters replaced."""
    base = _UNSAFE_CHARS.sub("_", Path(filename or "upload").name).strip("._") or "upload"
    return f"{int(time.time() * 1000)}_{base}"


class FileStorage(ABC):
    @abstractmethod
    def create_or_get_folder(self, name: str) -> str:
        """Return the identifier of folder ``name``, creating it if needed."""

    @abstractmethod
    def upload(self, attachment: Attachment, folder_id: str) -> str:
        """Store the file and return its public URL."""

    @abstractmethod
    def delete(self, url: str) -> None:
        """Remove a previously uploaded file by its public URL."""


class LocalFileStorage(FileStorage):
    """Files under a local directory, served at ``url_prefix``."""

    def __init__(self, root: str | Path, url_prefix: str = "/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def create_or_get_folder(self, name: str) -> str:
        folder = _UNSAFE_CHARS.sub("_", name).strip("._")
        if not folder:
            raise ValueError(f"Invalid folder name: {name!r}")
        (self.root / folder).mkdir(parents=True, exist_ok=True)
        return folder

    def upload(self, attachment: Attachment, folder_id: str) -> str:
        name = stored_name(attachment.filename)
        target = self.root / folder_id / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(attachment.data)
        except OSError as e:
            raise UpstreamError(f"Cannot store {attachment.filename}: {e}") from e
        logger.info("Stored %s (%d bytes) as %s", attachment.filename, attachment.size, target)
        return f"{self.url_prefix}/{folder_id}/{name}"

    def _path_for(self, url: str) -> Path | None:
        if not url.startswith(self.url_prefix + "/"):
            return None
        relative = url[len(self.url_prefix) + 1:]
        root = self.root.resolve()
        path = (root / relative).resolve()
        if root not in path.parents:
            return None
        return path

    def delete(self, url: str) -> None:
        path = self._path_for(url)
        if path is None:
            logger.warning("Not deleting %s: not a local upload", url)
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise UpstreamError(f"Cannot delete {url}: {e}") from e
        logger.info("Deleted %s", path)


class DriveFileStorage(FileStorage):
    """Google Drive v3 storage, files shared with anyone holding the link."""

    SCOPES = ["https://www.googleapis.com/auth/drive.file"]

    def __init__(
        self,
        key_file: str | Path = "keys.json",
        timeout: float = 20.0,
        max_attempts: int = 3,
        wait: Any = None,
        service_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.key_file = Path(key_file)
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)
        self._service_factory = service_factory
        self._local = threading.local()

    def _get_service(self) -> Any:
        service = getattr(self._local, "service", None)
        if service is not None:
            return service

        if self._service_factory is not None:
            service = self._service_factory()
        else:
            from google.oauth2 import service_account
            from google_auth_httplib2 import AuthorizedHttp
            from googleapiclient.discovery import build

            creds = service_account.Credentials.from_service_account_file(
                str(self.key_file), scopes=self.SCOPES
            )
            http = AuthorizedHttp(creds, http=httplib2.Http(timeout=self.timeout))
            service = build("drive", "v3", http=http, cache_discovery=False)

        self._local.service = service
        return service

    def _execute(self, request: Any, retry: bool = True) -> dict:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts if retry else 1),
            wait=self._wait,
            retry=retry_if_exception(is_transient_error),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return request.execute()
        except (HttpError, OSError, httplib2.HttpLib2Error) as e:
            logger.warning("Drive request failed: %s", e)
            raise UpstreamError(f"File storage request failed: {e}") from e
        return {}

    def create_or_get_folder(self, name: str) -> str:
        files = self._get_service().files()
        escaped = name.replace("\\", "\\\\").replace("'", "\\'")
        result = self._execute(
            files.list(
                q=f"name='{escaped}' and mimeType='{_FOLDER_MIME}' and trashed=false",
                fields="files(id, name)",
                spaces="drive",
            )
        )
        existing = result.get("files", [])
        if existing:
            return existing[0]["id"]

        folder = self._execute(
            files.create(body={"name": name, "mimeType": _FOLDER_MIME}, fields="id"),
            retry=False,
        )
        logger.info("Created Drive folder %s (%s)", name, folder["id"])
        return folder["id"]

    def upload(self, attachment: Attachment, folder_id: str) -> str:
        from googleapiclient.http import MediaIoBaseUpload

        service = self._get_service()
        media = MediaIoBaseUpload(
            io.BytesIO(attachment.data),
            mimetype=attachment.content_type or "application/octet-stream",
            resumable=False,
        )
        uploaded = self._execute(
            service.files().create(
                body={"name": stored_name(attachment.filename), "parents": [folder_id]},
                media_body=media,
                fields="id, webViewLink",
            ),
            retry=False,
        )
        self._execute(
            service.permissions().create(
                fileId=uploaded["id"],
                body={"role": "reader", "type": "anyone"},
            )
        )
        logger.info("Uploaded %s to Drive as %s", attachment.filename, uploaded["id"])
        return uploaded["webViewLink"]

    def delete(self, url: str) -> None:
        # Format: https://drive.google.com/file/d/<id>/view?usp=drivesdk
        match = _DRIVE_FILE_ID.search(url)
        if match is None:
            logger.warning("Not deleting %s: no Drive file ID in URL", url)
            return
        file_id = match.group(1)
        try:
            self._get_service().files().delete(fileId=file_id).execute()
        except HttpError as e:
            if e.resp.status == 404:
                logger.warning("Drive file %s already gone", file_id)
                return
            raise UpstreamError(f"File storage request failed: {e}") from e
        except (OSError, httplib2.HttpLib2Error) as e:
            raise UpstreamError(f"File storage request failed: {e}") from e
        logger.info("Deleted Drive file %s", file_id)


def create_file_storage_from_config(config) -> FileStorage:
    """Create the configured file storage (``FILE_STORAGE``)."""
    if config.FILE_STORAGE == "drive":
        return DriveFileStorage(
            key_file=config.GOOGLE_KEY_FILE,
            timeout=config.STORE_TIMEOUT_SECONDS,
            max_attempts=config.STORE_MAX_RETRIES,
        )
    if config.FILE_STORAGE != "local":
        raise ValueError(f"Unknown FILE_STORAGE: {config.FILE_STORAGE}")
    return LocalFileStorage(config.UPLOADS_DIR, url_prefix=config.UPLOADS_URL_PREFIX)


def init_file_storage(config) -> tuple[FileStorage, StorageFolders]:
    """Build the file storage and resolve the documents / photos folders once."""
    storage = create_file_storage_from_config(config)
    folders = StorageFolders(
        documents=storage.create_or_get_folder(config.DOCUMENTS_FOLDER_NAME),
        photos=storage.create_or_get_folder(config.PHOTOS_FOLDER_NAME),
    )
    logger.info("File storage ready: %s", folders)
    return storage, folders
