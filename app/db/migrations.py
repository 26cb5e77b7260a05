"""Alembic helper utilities for programmatic migrations."""
from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)


def run_migrations(database_url: str) -> None:
    """Run Alembic migrations up to the latest revision."""
    base_path = Path(__file__).resolve().parents[2]
    alembic_cfg = Config(str(base_path / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(base_path / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    alembic_cfg.attributes["database_url_override"] = database_url
    command.upgrade(alembic_cfg, "head")


def main() -> None:
    from app.core.config import settings
    from app.core.logging import setup_logging

    setup_logging()
    logger.info("Upgrading database schema to head")
    run_migrations(settings.DATABASE_URL)


if __name__ == "__main__":
    main()
