"""Initial schema for generations and generated documents."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    status_enum = sa.Enum("generating", "completed", "error", name="generation_status")

    op.create_table(
        "generations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("contract_type", sa.String(length=50), nullable=False),
        sa.Column("parameters", sa.JSON(), nullable=False),
        sa.Column("output_format", sa.String(length=10), nullable=False, server_default="pdf"),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("status", status_enum, nullable=False, server_default="generating"),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_generations_user_created", "generations", ["user_id", "created_at"])

    op.create_table(
        "generated_documents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("generation_id", sa.String(length=36), sa.ForeignKey("generations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("bucket", sa.String(length=63), nullable=False, server_default="generated"),
        sa.Column("object_key", sa.String(length=512), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False, server_default="contract"),
        sa.Column("description", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("download_url", sa.Text(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "idx_generated_documents_user_uploaded", "generated_documents", ["user_id", "uploaded_at"]
    )


def downgrade() -> None:
    op.drop_index("idx_generated_documents_user_uploaded", table_name="generated_documents")
    op.drop_table("generated_documents")
    op.drop_index("idx_generations_user_created", table_name="generations")
    op.drop_table("generations")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS generation_status")
