from __future__ import annotations
import io
from functools import lru_cache
import urllib3
from minio import Minio
from minio.error import S3Error
from fotocontest.config import settings
from fotocontest.errors import StorageError

def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure


class ObjectStorage:
    """Photo blobs in an S3-compatible bucket (MinIO in dev)."""

    def __init__(self, endpoint: str, access_key: str, secret_key: str, bucket: str, timeout: float):
        host, secure = _parse_endpoint(endpoint)
        http_client = urllib3.PoolManager(
            timeout=urllib3.Timeout(connect=timeout, read=timeout),
            retries=urllib3.Retry(total=2, backoff_factor=0.2),
        )
        self.bucket = bucket
        self._client = Minio(host, access_key=access_key, secret_key=secret_key, secure=secure, http_client=http_client)
        self._bucket_checked = False

    def _ensure_bucket(self) -> None:
        if self._bucket_checked:
            return
        try:
            if not self._client.bucket_exists(self.bucket):
                self._client.make_bucket(self.bucket)
        except S3Error as e:
            # Bucket creation may race with another worker
            if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise StorageError(f"Bucket unavailable: {self.bucket}") from e
        except urllib3.exceptions.HTTPError as e:
            raise StorageError(f"Object store unreachable: {self.bucket}") from e
        self._bucket_checked = True

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self._ensure_bucket()
            self._client.put_object(self.bucket, key, io.BytesIO(data), length=len(data), content_type=content_type)
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            raise StorageError(f"Upload failed: {key}") from e

    def get_bytes(self, key: str) -> tuple[bytes, str]:
        """
        Retrieve object from storage.
        Returns (data, content_type).
        """
        response = None
        try:
            response = self._client.get_object(self.bucket, key)
            data = response.read()
            content_type = response.headers.get("Content-Type", "application/octet-stream")
            return data, content_type
        except S3Error as e:
            if e.code == "NoSuchKey":
                raise FileNotFoundError(f"Object not found: {key}")
            raise StorageError(f"Download failed: {key}") from e
        except urllib3.exceptions.HTTPError as e:
            raise StorageError(f"Download failed: {key}") from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()

    def delete(self, key: str) -> None:
        try:
            self._client.remove_object(self.bucket, key)
        except (S3Error, urllib3.exceptions.HTTPError) as e:
            raise StorageError(f"Delete failed: {key}") from e


def public_url_for(key: str) -> str | None:
    """Direct bucket URL when a public base is configured; None means serve through the API."""
    if settings.serve_media_via_api or not settings.s3_public_base_url:
        return None
    return f"{settings.s3_public_base_url.rstrip('/')}/{key}"


@lru_cache(maxsize=1)
def get_storage() -> ObjectStorage:
    return ObjectStorage(
        settings.s3_endpoint,
        settings.s3_access_key,
        settings.s3_secret_key,
        settings.s3_bucket_uploads,
        settings.s3_timeout_seconds,
    )
