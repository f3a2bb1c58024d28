from pathlib import Path

from docworker.config.settings import Settings
from docworker.storage.base import BaseStorage
from docworker.storage.gcs_adapter import GcsStorageAdapter
from docworker.storage.local_adapter import LocalStorageAdapter


class StorageFactory:
    """Creates the configured blob storage adapter."""

    BACKENDS = ("local", "gcs")

    @classmethod
    def create(cls, settings: Settings) -> BaseStorage:
        backend = settings.storage_backend
        if backend == "local":
            return LocalStorageAdapter(Path(settings.storage_local_root))
        if backend == "gcs":
            return GcsStorageAdapter(settings.storage_bucket, settings.gcp_project_id)
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
