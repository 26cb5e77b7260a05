"""Repository helpers for generations and generated documents."""

from __future__ import annotations

from typing import Any, Optional, Sequence
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import GeneratedDocument, Generation, GenerationStatus


async def create_generation(
    db: AsyncSession,
    *,
    user_id: str,
    contract_type: str,
    parameters: dict[str, Any],
    output_format: str = "pdf",
    generation_id: Optional[str] = None,
) -> Generation:
    generation = Generation(
        id=generation_id or str(uuid4()),
        user_id=user_id,
        contract_type=contract_type,
        parameters=parameters,
        output_format=output_format,
        status=GenerationStatus.generating,
    )
    db.add(generation)
    await db.flush()
    await db.refresh(generation)
    return generation


async def get_generation(db: AsyncSession, generation_id: str) -> Optional[Generation]:
    return await db.get(Generation, generation_id)


async def list_generations(db: AsyncSession, user_id: str, limit: int = 20) -> Sequence[Generation]:
    result = await db.execute(
        select(Generation)
        .where(Generation.user_id == user_id)
        .order_by(Generation.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def add_document(
    db: AsyncSession,
    *,
    generation_id: str,
    user_id: str,
    file_name: str,
    content_type: str,
    size: int,
    bucket: str,
    object_key: str,
    download_url: str,
    description: str = "",
    tags: Optional[list[str]] = None,
    category: str = "contract",
) -> GeneratedDocument:
    document = GeneratedDocument(
        id=str(uuid4()),
        generation_id=generation_id,
        user_id=user_id,
        file_name=file_name,
        content_type=content_type,
        size=size,
        bucket=bucket,
        object_key=object_key,
        download_url=download_url,
        category=category,
        description=description,
        tags=list(tags or []),
    )
    db.add(document)
    await db.flush()
    await db.refresh(document)
    return document


async def documents_for_generation(db: AsyncSession, generation_id: str) -> Sequence[GeneratedDocument]:
    result = await db.execute(
        select(GeneratedDocument)
        .where(GeneratedDocument.generation_id == generation_id)
        .order_by(GeneratedDocument.uploaded_at.desc())
    )
    return result.scalars().all()


async def list_documents(
    db: AsyncSession,
    user_id: str,
    tag: Optional[str] = None,
) -> list[GeneratedDocument]:
    result = await db.execute(
        select(GeneratedDocument)
        .where(GeneratedDocument.user_id == user_id)
        .order_by(GeneratedDocument.uploaded_at.desc())
    )
    documents = list(result.scalars().all())
    # JSON containment differs per dialect; filter tags in Python
    if tag:
        documents = [doc for doc in documents if tag in (doc.tags or [])]
    return documents


async def delete_generation(db: AsyncSession, generation_id: str) -> None:
    await db.execute(delete(GeneratedDocument).where(GeneratedDocument.generation_id == generation_id))
    await db.execute(delete(Generation).where(Generation.id == generation_id))
