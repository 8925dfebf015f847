"""Staging of uploaded documents in blob storage."""

import uuid
from pathlib import PurePosixPath
from typing import Protocol

from fincontrol.core.errors import MSG_UNSUPPORTED_FILE, InvalidRequestError, PayloadTooLargeError

ALLOWED_EXTENSIONS = {
    "application/pdf": {".pdf"},
    "image/png": {".png"},
    "image/jpeg": {".jpg", ".jpeg"},
    "image/webp": {".webp"},
}


class BlobStore(Protocol):
    def upload_fileobj(self, key: str, data: bytes, content_type: str = ...) -> None: ...

    def download_fileobj(self, key: str) -> bytes: ...

    def delete_fileobj(self, key: str) -> None: ...


def classify_document(mime_type: str) -> str | None:
    """Return ``image`` or ``document`` for supported MIME types, else None."""
    if mime_type.startswith("image/"):
        return "image"
    if mime_type == "application/pdf":
        return "document"
    return None


def build_storage_key(user_id: str, profile_id: str, file_name: str) -> str:
    """Blob key ``{user_id}/{profile_id}/{uuid}.{ext}``; the user folder comes first."""
    suffix = PurePosixPath(file_name).suffix.lower() or ".bin"
    return f"{user_id}/{profile_id}/{uuid.uuid4()}{suffix}"


class FileService:
    """Service for document storage on top of a blob store backend."""

    def __init__(self, store: BlobStore, max_bytes: int) -> None:
        """Initialize FileService with a blob store and the upload size limit."""
        self.store = store
        self.max_bytes = max_bytes

    def check_upload(self, file_name: str, mime_type: str, size: int) -> None:
        """Accept PDFs and PNG/JPEG/WEBP images up to the size limit."""
        extensions = ALLOWED_EXTENSIONS.get(mime_type)
        if not extensions or PurePosixPath(file_name).suffix.lower() not in extensions:
            raise InvalidRequestError(MSG_UNSUPPORTED_FILE)
        if size > self.max_bytes:
            raise PayloadTooLargeError

    def save_file(self, key: str, data: bytes, mime_type: str) -> None:
        """Store a document under the given key."""
        self.store.upload_fileobj(key, data, mime_type)

    def get_file(self, key: str) -> bytes:
        """Retrieve a document by key."""
        return self.store.download_fileobj(key)

    def delete_file(self, key: str) -> None:
        """Remove a document by key."""
        self.store.delete_fileobj(key)
