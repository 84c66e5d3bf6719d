"""
Text Extractor — Image-to-text converters.

The pipeline only depends on ImageToTextConverter. The production
backend uses Google Drive's document conversion: an image uploaded as a
Google Doc is OCR'd by Drive, and exporting the Doc as plain text yields
the recognised text.
"""

import io
import logging
import mimetypes
import threading
from abc import ABC, abstractmethod
from pathlib import PurePath
from typing import Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from .drive_auth import DriveCredentialProvider

logger = logging.getLogger(__name__)

FOLDER_MIME = "application/vnd.google-apps.folder"
DOCUMENT_MIME = "application/vnd.google-apps.document"


class ExtractionError(RuntimeError):
    """Raised when a converter cannot produce text for an image."""


class ImageToTextConverter(ABC):
    """Converts raw image bytes to text. Implementations must be thread-safe."""

    @abstractmethod
    def convert(self, image_bytes: bytes, name: str) -> str:
        """
        Extract text from one image.

        Args:
            image_bytes: Raw image file contents.
            name: Image filename, used for naming and content-type hints.

        Returns:
            The extracted text.

        Raises:
            ExtractionError: If extraction fails.
        """
        ...


class DriveDocsConverter(ImageToTextConverter):
    """
    OCR through Google Drive document conversion.

    Each conversion creates a temporary Doc inside ``folder_name`` and
    deletes it afterwards. Credentials and the folder are resolved on the
    first conversion, so a fully cached run never touches the network.
    """

    def __init__(self, credentials: DriveCredentialProvider, folder_name: str = "Temp_OCR_Go"):
        self.credentials = credentials
        self.folder_name = folder_name

        self._creds = None
        self._folder_id: Optional[str] = None
        self._init_lock = threading.Lock()
        # httplib2 connections are not thread-safe: one client per worker
        self._local = threading.local()

    def convert(self, image_bytes: bytes, name: str) -> str:
        service = self._service()
        folder_id = self._ensure_folder(service)

        mimetype = mimetypes.guess_type(name)[0] or "image/png"
        media = MediaIoBaseUpload(io.BytesIO(image_bytes), mimetype=mimetype, resumable=False)
        metadata = {
            "name": PurePath(name).stem,
            "parents": [folder_id],
            "mimeType": DOCUMENT_MIME,
        }

        logger.debug(f"Creating Doc from {name}...")
        try:
            doc = service.files().create(
                body=metadata, media_body=media, fields="id"
            ).execute()
        except HttpError as e:
            raise ExtractionError(f"Could not create Doc for OCR of {name}: {e}") from e

        doc_id = doc["id"]
        try:
            logger.debug(f"Exporting text of Doc {doc_id} ({name})...")
            data = service.files().export(fileId=doc_id, mimeType="text/plain").execute()
        except HttpError as e:
            raise ExtractionError(f"Could not export text for {name}: {e}") from e
        finally:
            self._delete(service, doc_id)

        if isinstance(data, bytes):
            data = data.decode("utf-8-sig")
        return data.replace("\r\n", "\n")

    # ── Drive plumbing ──

    def _service(self):
        service = getattr(self._local, "service", None)
        if service is None:
            with self._init_lock:
                if self._creds is None:
                    self._creds = self.credentials.acquire()
                    logger.info("Google Drive authentication succeeded.")
            service = build("drive", "v3", credentials=self._creds, cache_discovery=False)
            self._local.service = service
        return service

    def _ensure_folder(self, service) -> str:
        """Find the temporary Drive folder by name, creating it once."""
        with self._init_lock:
            if self._folder_id is not None:
                return self._folder_id

            query = (
                f"mimeType='{FOLDER_MIME}' and name='{self.folder_name}' "
                f"and trashed=false"
            )
            try:
                found = service.files().list(
                    q=query, pageSize=1, fields="files(id)"
                ).execute().get("files", [])
                if found:
                    self._folder_id = found[0]["id"]
                    logger.info(
                        f"Temporary folder '{self.folder_name}' found "
                        f"(ID: {self._folder_id})"
                    )
                else:
                    logger.info(f"Creating temporary Drive folder '{self.folder_name}'")
                    folder = service.files().create(
                        body={"name": self.folder_name, "mimeType": FOLDER_MIME},
                        fields="id"
                    ).execute()
                    self._folder_id = folder["id"]
            except HttpError as e:
                raise ExtractionError(
                    f"Could not find or create Drive folder '{self.folder_name}': {e}"
                ) from e

            return self._folder_id

    @staticmethod
    def _delete(service, doc_id: str):
        try:
            service.files().delete(fileId=doc_id).execute()
            logger.debug(f"Deleted temporary Doc {doc_id}")
        except Exception as e:
            logger.error(f"Could not delete temporary Doc {doc_id}: {e}")
