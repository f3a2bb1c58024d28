class StorageError(Exception):
    """Base exception for blob storage failures."""


class DownloadError(StorageError):
    """Raised when a stored file cannot be read."""


class UploadError(StorageError):
    """Raised when a file cannot be written to storage."""
