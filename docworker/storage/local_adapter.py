import time
from pathlib import Path

from docworker.logging.logger import Log
from docworker.storage.base import BaseStorage
from docworker.storage.exceptions import DownloadError, UploadError


class LocalStorageAdapter(BaseStorage):
    """Stores files under a root directory on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        target = self._resolve(path, UploadError)
        if target.exists():
            raise UploadError(f"File already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise UploadError(f"Failed to upload file: {exc}") from exc
        Log.debug(f"Stored {len(content)} bytes ({content_type}) at {target}")

    def download(self, path: str) -> bytes:
        target = self._resolve(path, DownloadError)
        if not target.is_file():
            raise DownloadError(f"Failed to download file: {path} not found")
        try:
            return target.read_bytes()
        except OSError as exc:
            raise DownloadError(f"Failed to download file: {exc}") from exc

    def signed_url(self, path: str, ttl_seconds: int) -> str:
        target = self._resolve(path, DownloadError)
        expires = int(time.time()) + ttl_seconds
        return f"{target.as_uri()}?expires={expires}"

    def _resolve(self, path: str, error_cls: type[Exception]) -> Path:
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root):
            raise error_cls(f"Path escapes storage root: {path}")
        return target
