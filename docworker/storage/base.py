from abc import ABC, abstractmethod


class BaseStorage(ABC):
    """Contract for blob storage adapters holding raw uploaded files."""

    @abstractmethod
    def upload(self, path: str, content: bytes, content_type: str) -> None:
        """Store *content* under *path*.

        Raises:
            UploadError: if the write fails or the path already exists.
        """

    @abstractmethod
    def download(self, path: str) -> bytes:
        """Read the bytes stored under *path*.

        Raises:
            DownloadError: if the file is missing or cannot be read.
        """

    @abstractmethod
    def signed_url(self, path: str, ttl_seconds: int) -> str:
        """Return a read-only URL for *path* valid for *ttl_seconds*.

        Raises:
            DownloadError: if the backend cannot issue the URL.
        """

    def close(self) -> None:
        """Release any client held by the adapter."""
