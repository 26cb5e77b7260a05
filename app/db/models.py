from __future__ import annotations

"""SQLAlchemy models for generations and their stored documents."""

import enum
from datetime import datetime
from uuid import uuid4
from typing import Optional

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base


class GenerationStatus(str, enum.Enum):
    generating = "generating"
    completed = "completed"
    error = "error"


class Generation(Base):
    __tablename__ = "generations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    contract_type: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g., "nda"
    parameters: Mapped[dict] = mapped_column(JSON, nullable=False)  # validated snapshot, defaults applied
    output_format: Mapped[str] = mapped_column(String(10), nullable=False, default="pdf")
    content: Mapped[Optional[str]] = mapped_column(Text)  # drafted markup
    status: Mapped[GenerationStatus] = mapped_column(
        SAEnum(GenerationStatus, name="generation_status"),
        nullable=False,
        default=GenerationStatus.generating,
    )
    error: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    documents: Mapped[list["GeneratedDocument"]] = relationship(
        "GeneratedDocument",
        back_populates="generation",
        cascade="all, delete-orphan",
        order_by="GeneratedDocument.uploaded_at",
    )

    __table_args__ = (
        Index("idx_generations_user_created", "user_id", "created_at"),
    )


class GeneratedDocument(Base):
    __tablename__ = "generated_documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    generation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("generations.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)

    bucket: Mapped[str] = mapped_column(String(63), nullable=False, default="generated")
    object_key: Mapped[str] = mapped_column(String(512), nullable=False)  # "generated/<generation>/<file>"

    category: Mapped[str] = mapped_column(String(50), nullable=False, default="contract")
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    download_url: Mapped[str] = mapped_column(Text, nullable=False)

    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    generation: Mapped["Generation"] = relationship("Generation", back_populates="documents")

    __table_args__ = (
        Index("idx_generated_documents_user_uploaded", "user_id", "uploaded_at"),
    )
