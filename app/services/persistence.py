"""Persistence adapter for rendered documents.

Uploads the binary to object storage, presigns a download URL and records
the document metadata. Upload and metadata write are not atomic: when the
metadata insert fails after a successful upload the object is left in place
and its key is logged for a reconciliation sweep. Objects carry the
generation id, owner and contract type as metadata so a sweep can match
them without the database row.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import PersistenceError
from app.db import repository
from app.db.session import session_scope
from app.db.models import GeneratedDocument
from app.schemas.domain import RenderedArtifact
from app.storage.contracts import StorageError
from app.storage.minio_impl import MinioStorage

logger = logging.getLogger(__name__)


def object_key(generation_id: str, file_name: str) -> str:
    return f"generated/{generation_id}/{file_name}"


class ArtifactStore:
    """Stores rendered artifacts and their metadata."""

    def __init__(
        self,
        storage: MinioStorage,
        session_factory: async_sessionmaker[AsyncSession],
        bucket: str,
        url_ttl_s: int,
    ):
        self._storage = storage
        self._session_factory = session_factory
        self._bucket = bucket
        self._url_ttl_s = url_ttl_s

    async def persist(
        self,
        generation_id: str,
        artifact: RenderedArtifact,
        *,
        user_id: str,
        contract_type: str,
        contract_name: str,
    ) -> str:
        """Upload an artifact and record its metadata.

        Returns:
            Presigned download URL of the stored object.

        Raises:
            PersistenceError: Upload, presign or metadata write failed.
        """
        key = object_key(generation_id, artifact.file_name)

        try:
            await asyncio.to_thread(
                self._storage.put_bytes,
                self._bucket,
                key,
                artifact.data,
                content_type=artifact.content_type,
                metadata={
                    "generation-id": generation_id,
                    "user-id": user_id,
                    "contract-type": contract_type,
                },
            )
            url = await asyncio.to_thread(
                self._storage.presign_get,
                self._bucket,
                key,
                self._url_ttl_s,
                download_name=artifact.file_name,
            )
        except StorageError as e:
            logger.warning("Upload of %s/%s failed: %s", self._bucket, key, e)
            raise PersistenceError(f"upload failed: {e}") from e

        logger.info("Stored %s/%s (%d bytes)", self._bucket, key, artifact.size)

        try:
            async with session_scope(self._session_factory) as db:
                await repository.add_document(
                    db,
                    generation_id=generation_id,
                    user_id=user_id,
                    file_name=artifact.file_name,
                    content_type=artifact.content_type,
                    size=artifact.size,
                    bucket=self._bucket,
                    object_key=key,
                    download_url=url,
                    category="contract",
                    description=f"Generated {contract_name}",
                    tags=["generated", "contract", contract_type],
                )
        except SQLAlchemyError as e:
            logger.error(
                "Metadata write failed after upload; orphaned object %s/%s: %s",
                self._bucket,
                key,
                e,
            )
            raise PersistenceError(f"metadata write failed: {e}") from e

        return url

    async def download_url(self, document: GeneratedDocument) -> str:
        """Presign a fresh download URL for a stored document."""
        try:
            return await asyncio.to_thread(
                self._storage.presign_get,
                document.bucket,
                document.object_key,
                self._url_ttl_s,
                download_name=document.file_name,
            )
        except StorageError as e:
            raise PersistenceError(f"presign failed: {e}") from e

    async def remove(self, documents: list[GeneratedDocument]) -> None:
        """Delete the stored objects of the given documents."""
        for document in documents:
            try:
                await asyncio.to_thread(self._storage.delete_object, document.bucket, document.object_key)
            except StorageError as e:
                raise PersistenceError(f"delete failed: {e}") from e
            logger.info("Deleted %s/%s", document.bucket, document.object_key)

    async def list_documents(self, user_id: str, tag: Optional[str] = None) -> list[GeneratedDocument]:
        async with self._session_factory() as db:
            return await repository.list_documents(db, user_id, tag)


__all__ = ["ArtifactStore", "object_key"]
