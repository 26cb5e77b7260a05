"""Pytest configuration and fixtures."""

import os

# Set test database URL BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import GenerationConfig
from app.db import models  # noqa: F401
from app.db.session import Base
from app.services.orchestrator import GenerationOrchestrator
from app.services.persistence import ArtifactStore

SAMPLE_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>NDA</title><style>body { color: #222; }</style></head>
<body>
<h1>Non-Disclosure Agreement</h1>
<section class="section">
  <h2>1. Parties</h2>
  <p>This agreement is made between <strong>Alpine Robotics AG</strong> and <em>Lakeside GmbH</em>.</p>
  <dl><dt>Purpose</dt><dd>Evaluation of a joint project</dd></dl>
</section>
<section class="section">
  <h2>2. Obligations</h2>
  <ul><li>Keep information confidential</li><li>Return all documents</li></ul>
</section>
<div class="signature-row">
  <div class="signature">Alpine Robotics AG</div>
  <div class="signature">Lakeside GmbH</div>
</div>
</body>
</html>"""

SAMPLE_NDA_PARAMETERS = {
    "disclosingParty": "Alpine Robotics AG",
    "disclosingPartyAddress": "Bahnhofstrasse 1, 8001 Zürich",
    "receivingParty": "Lakeside GmbH",
    "purpose": "Evaluation of a joint project",
    "duration": 3,
}


@pytest.fixture(scope="function")
def session_factory(tmp_path):
    """Async session factory over a SQLite file with the schema created."""
    db_path = tmp_path / "test.db"
    # NullPool: every session opens its own connection on the running loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)

    async def _create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create_schema())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def generation_config():
    return GenerationConfig(
        model="gpt-test",
        llm_timeout_s=5,
        template_stores={"nda": "vs_nda", "employment": "vs_employment", "terms": ""},
        statute_store_id="vs_statutes",
        render_max_concurrency=1,
        render_queue_timeout_s=0.2,
        render_timeout_s=2.0,
        page_load_timeout_s=1.0,
        download_url_ttl_s=3600,
    )


@pytest.fixture
def mock_db_session():
    """Create a mock async database session."""
    mock_session = MagicMock()
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    mock_session.execute = AsyncMock()
    mock_session.add = MagicMock()
    mock_session.commit = AsyncMock()
    return mock_session


@pytest.fixture
def mock_storage():
    """Create a mock storage client."""
    storage = MagicMock()
    storage.put_bytes = MagicMock(side_effect=lambda bucket, key, data, **_: f"{bucket}/{key}")
    storage.presign_get = MagicMock(side_effect=lambda bucket, key, ttl, **_: f"https://minio.test/{bucket}/{key}?ttl={ttl}")
    storage.delete_object = MagicMock()
    return storage


@pytest.fixture
def mock_drafter():
    drafter = MagicMock()
    drafter.draft = AsyncMock(return_value=SAMPLE_HTML)
    return drafter


@pytest.fixture
def mock_renderer():
    renderer = MagicMock()
    renderer.render = AsyncMock(return_value=b"%PDF-1.7 rendered")
    return renderer


@pytest.fixture
def artifact_store(mock_storage, session_factory):
    return ArtifactStore(mock_storage, session_factory, bucket="generated", url_ttl_s=3600)


@pytest.fixture
def orchestrator(generation_config, session_factory, mock_drafter, mock_renderer, artifact_store):
    return GenerationOrchestrator(
        generation_config,
        session_factory,
        mock_drafter,
        mock_renderer,
        artifact_store,
    )


@pytest.fixture
def sample_html():
    return SAMPLE_HTML


@pytest.fixture
def nda_parameters():
    return dict(SAMPLE_NDA_PARAMETERS)
