"""Storage interfaces and error types for generated documents."""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable


class StorageError(Exception):
    """Object storage failure with the operation, bucket and key involved."""

    def __init__(self, op: str, bucket: str | None, key: str | None, message: str):
        self.op = op
        self.bucket = bucket
        self.key = key
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        location = f"{self.bucket or '<unknown>'}/{self.key}" if self.key else self.bucket or "<unknown>"
        return f"{self.op} {location}: {self.message}"


@runtime_checkable
class ObjectStorage(Protocol):
    """Write side: rendered documents go in, deleted generations come out."""

    def put_bytes(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        ...

    def delete_object(self, bucket: str, key: str) -> None:
        ...

    def ensure_bucket(self, name: str) -> None:
        ...


@runtime_checkable
class Presigner(Protocol):
    """Read side: time-limited download URLs handed to users."""

    def presign_get(
        self,
        bucket: str,
        key: str,
        ttl_seconds: int = 900,
        *,
        download_name: str | None = None,
    ) -> str:
        ...


__all__ = ["StorageError", "ObjectStorage", "Presigner"]
