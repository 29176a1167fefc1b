"""Google Cloud Storage helper service."""
from __future__ import annotations

from typing import Optional
from google.cloud import storage


class GCSService:
    """Wrapper around google-cloud-storage for image uploads.

    Objects are written without generation preconditions, so putting the same
    key twice overwrites the earlier image.
    """

    def __init__(
        self,
        bucket_name: str,
        public_base_url: Optional[str] = None,
        client: Optional[storage.Client] = None,
    ) -> None:
        self.bucket_name = bucket_name
        self.public_base_url = (public_base_url or f"https://storage.googleapis.com/{bucket_name}").rstrip("/")
        self._client = client or storage.Client()
        self._bucket = self._client.bucket(bucket_name)

    def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        """Upload bytes under `key` and return the object's public URL."""
        blob = self._bucket.blob(key)
        blob.upload_from_string(data, content_type=content_type)
        return self.public_url(key)

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"


def image_key(tag: str, project_name: str) -> str:
    """Deterministic object key, e.g. ``before-<project>.jpg``."""
    return f"{tag}-{project_name}.jpg"
