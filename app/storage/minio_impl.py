"""MinIO-backed storage for generated documents."""

from __future__ import annotations

import io
from datetime import timedelta
from typing import Mapping

from minio import Minio

from app.storage.contracts import ObjectStorage, Presigner, StorageError


def _wrap_error(op: str, bucket: str | None, key: str | None, exc: Exception) -> StorageError:
    return StorageError(op=op, bucket=bucket, key=key, message=str(exc))


def _attachment(file_name: str) -> dict[str, str]:
    safe = file_name.replace('"', "")
    return {"response-content-disposition": f'attachment; filename="{safe}"'}


class MinioStorage(ObjectStorage, Presigner):
    """Uploads, deletes and presigns generated documents with the MinIO SDK.

    Every SDK or transport failure surfaces as StorageError; callers never
    see minio exception types.
    """

    def __init__(self, client: Minio):
        self._client = client

    def put_bytes(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        try:
            self._client.put_object(
                bucket_name=bucket,
                object_name=key,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream",
                metadata=dict(metadata) if metadata else None,
            )
        except Exception as exc:  # S3Error and transport errors alike
            raise _wrap_error("put", bucket, key, exc) from exc
        return f"{bucket}/{key}"

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._client.remove_object(bucket, key)
        except Exception as exc:
            raise _wrap_error("delete", bucket, key, exc) from exc

    def ensure_bucket(self, name: str) -> None:
        try:
            if not self._client.bucket_exists(name):
                self._client.make_bucket(name)
        except Exception as exc:
            raise _wrap_error("ensure_bucket", name, None, exc) from exc

    def presign_get(
        self,
        bucket: str,
        key: str,
        ttl_seconds: int = 900,
        *,
        download_name: str | None = None,
    ) -> str:
        """Presigned GET URL; with download_name the browser saves under that name."""
        try:
            return self._client.presigned_get_object(
                bucket,
                key,
                expires=timedelta(seconds=ttl_seconds),
                response_headers=_attachment(download_name) if download_name else None,
            )
        except Exception as exc:
            raise _wrap_error("presign_get", bucket, key, exc) from exc


__all__ = ["MinioStorage"]
