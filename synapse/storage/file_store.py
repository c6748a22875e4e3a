import mimetypes
import os
import uuid
from pathlib import Path
from typing import Optional
from synapse.core.errors import StorageError
from synapse.storage.base import BlobStore
from synapse.config.settings import settings

class LocalBlobStore(BlobStore):
    """
    Implements BlobStore on the local disk.
    Blobs are stored as <uploads_path>/<storage_id>, the id carrying a MIME-derived suffix.
    """

    def __init__(self, uploads_path: Optional[str] = None):
        self.uploads_path = uploads_path or settings.storage.uploads_path
        os.makedirs(self.uploads_path, exist_ok=True)

    def _path(self, storage_id: str) -> str:
        # storage ids are generated here; refuse anything that could escape the uploads dir
        if os.path.basename(storage_id) != storage_id:
            raise StorageError(f"Invalid storage id: {storage_id}")
        return os.path.join(self.uploads_path, storage_id)

    def save(self, data: bytes, mime_type: str) -> str:
        suffix = mimetypes.guess_extension(mime_type) or ".bin"
        storage_id = f"{uuid.uuid4().hex}{suffix}"
        with open(self._path(storage_id), "wb") as f:
            f.write(data)
        return storage_id

    def resolve_url(self, storage_id: str) -> Optional[str]:
        if not storage_id:
            return None
        path = self._path(storage_id)
        if not os.path.exists(path):
            return None
        return Path(path).resolve().as_uri()

    def read(self, storage_id: str) -> bytes:
        path = self._path(storage_id)
        if not os.path.exists(path):
            raise StorageError("File not found in storage")
        with open(path, "rb") as f:
            return f.read()

    def delete(self, storage_id: str) -> None:
        if not storage_id:
            return
        path = self._path(storage_id)
        if os.path.exists(path):
            os.remove(path)
