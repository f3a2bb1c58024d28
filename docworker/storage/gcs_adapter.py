from datetime import timedelta

import requests
from google.api_core import exceptions as gcs_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from docworker.logging.logger import Log
from docworker.storage.base import BaseStorage
from docworker.storage.exceptions import DownloadError, UploadError

# Client construction, credential refresh and the HTTP transport fail with these
# before or instead of an API error.
_GCS_ERRORS = (
    gcs_exceptions.GoogleAPIError,
    auth_exceptions.GoogleAuthError,
    requests.RequestException,
)


class GcsStorageAdapter(BaseStorage):
    """Stores files in a Google Cloud Storage bucket."""

    def __init__(self, bucket_name: str, project_id: str | None = None) -> None:
        self._bucket_name = bucket_name
        self._project_id = project_id
        self._client: storage.Client | None = None

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        try:
            blob = self._bucket().blob(path)
            # if_generation_match=0 refuses to overwrite an existing object
            blob.upload_from_string(content, content_type=content_type, if_generation_match=0)
        except _GCS_ERRORS as exc:
            raise UploadError(f"Failed to upload file: {exc}") from exc
        Log.debug(f"Uploaded {len(content)} bytes to gs://{self._bucket_name}/{path}")

    def download(self, path: str) -> bytes:
        try:
            blob = self._bucket().blob(path)
            return blob.download_as_bytes()
        except gcs_exceptions.NotFound as exc:
            raise DownloadError(f"Failed to download file: {path} not found") from exc
        except _GCS_ERRORS as exc:
            raise DownloadError(f"Failed to download file: {exc}") from exc

    def signed_url(self, path: str, ttl_seconds: int) -> str:
        try:
            blob = self._bucket().blob(path)
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=ttl_seconds),
                method="GET",
            )
        except _GCS_ERRORS as exc:
            raise DownloadError(f"Failed to sign URL for {path}: {exc}") from exc

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _bucket(self) -> storage.Bucket:
        if self._client is None:
            self._client = storage.Client(project=self._project_id)
            Log.info(f"GCS client initialized for bucket {self._bucket_name}")
        return self._client.bucket(self._bucket_name)
