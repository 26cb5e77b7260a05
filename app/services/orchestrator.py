"""Generation orchestrator.

Drives one generation through its stages and owns the generation record:

    start   validate request, create record (status generating)
    draft   compose grounded prompt, call drafting model, keep markup
    finish  render, upload + record metadata, mark completed

The synchronous API runs the stages back to back through ``generate``; the
Temporal workflow runs each stage as its own activity. Any stage failure
marks the record ``error`` and re-raises the original exception.
"""

from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import GenerationConfig
from app.core.errors import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    UpstreamGenerationError,
    ValidationError,
)
from app.db import repository
from app.db.models import GeneratedDocument, Generation, GenerationStatus
from app.db.session import session_scope
from app.schemas.domain import (
    ContractTypeDefinition,
    GenerationRequest,
    GenerationResult,
    OutputFormat,
    RenderedArtifact,
)
from app.services import composer, registry
from app.services.drafting import ContractDrafter
from app.services.persistence import ArtifactStore
from app.services.renderer import DocumentRenderer

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9]")


def artifact_file_name(contract_name: str, generation_id: str, output_format: OutputFormat) -> str:
    """'{type name stripped to [A-Za-z0-9]}_{id}.{ext}'"""
    return f"{_UNSAFE_NAME_CHARS.sub('', contract_name)}_{generation_id}.{output_format.extension}"


class GenerationOrchestrator:
    """Runs generations and serves the user's generation records."""

    def __init__(
        self,
        config: GenerationConfig,
        session_factory: async_sessionmaker[AsyncSession],
        drafter: ContractDrafter,
        renderer: DocumentRenderer,
        artifacts: ArtifactStore,
    ):
        self._config = config
        self._session_factory = session_factory
        self._drafter = drafter
        self._renderer = renderer
        self._artifacts = artifacts
        self._stores = composer.GroundingStores(
            templates=config.template_stores,
            statutes=config.statute_store_id,
        )

    @property
    def stores(self) -> composer.GroundingStores:
        return self._stores

    def validate(self, request: GenerationRequest) -> tuple[ContractTypeDefinition, dict[str, Any]]:
        """Check a request without touching the database or any remote service.

        Raises:
            ValidationError: Unknown type, bad parameters or no template store.
        """
        definition = registry.require_type(request.contract_type)
        parameters = registry.validate_parameters(definition, request.parameters)
        self._stores.for_type(definition.id)
        return definition, parameters

    # --------------------
    # Pipeline stages
    # --------------------
    async def start(self, request: GenerationRequest, generation_id: Optional[str] = None) -> str:
        """Validate the request and create the generation record.

        Reusing a generation_id whose record already exists is a no-op, so
        a retried start never creates a second record.
        """
        definition, parameters = self.validate(request)
        output_format = request.output_format or OutputFormat(self._config.default_output_format)

        async with self._session_factory() as db:
            if generation_id is not None:
                existing = await repository.get_generation(db, generation_id)
                if existing is not None:
                    logger.info("Generation %s already started, reusing record", generation_id)
                    return existing.id
            try:
                generation = await repository.create_generation(
                    db,
                    generation_id=generation_id,
                    user_id=request.user_id,
                    contract_type=definition.id,
                    parameters=parameters,
                    output_format=output_format.value,
                )
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                if generation_id is None:
                    raise PersistenceError(f"could not create generation record: {e}") from e
                logger.info("Generation %s created concurrently, reusing record", generation_id)
                return generation_id
            except SQLAlchemyError as e:
                raise PersistenceError(f"could not create generation record: {e}") from e

        logger.info(
            "Generation %s started: type=%s format=%s user=%s",
            generation.id,
            definition.id,
            output_format.value,
            request.user_id,
        )
        return generation.id

    async def draft(self, generation_id: str) -> None:
        """Draft the contract markup and store it on the record."""
        generation = await self._load(generation_id)
        async with self._stage(generation_id, "draft"):
            definition = registry.require_type(generation.contract_type)
            prompt = composer.compose(definition, generation.parameters, self._stores)
            markup = await self._drafter.draft(
                prompt.system_instructions,
                prompt.user_instructions,
                prompt.grounding_store_ids,
            )
            if not markup.strip():
                raise UpstreamGenerationError("empty response from drafting model")
            await self._update(generation_id, content=markup)
        logger.info("Generation %s drafted (%d chars)", generation_id, len(markup))

    async def finish(self, generation_id: str) -> GenerationResult:
        """Render the drafted markup, store it and complete the record."""
        generation = await self._load(generation_id)
        async with self._stage(generation_id, "finish"):
            result = await self._render_and_store(generation, OutputFormat(generation.output_format))
            await self._update(generation_id, status=GenerationStatus.completed, error=None)
        logger.info("Generation %s completed: document=%s", generation_id, result.document_id)
        return result

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run a full generation synchronously."""
        generation_id = await self.start(request)
        await self.draft(generation_id)
        return await self.finish(generation_id)

    async def _render_and_store(self, generation: Generation, output_format: OutputFormat) -> GenerationResult:
        if not generation.content:
            raise UpstreamGenerationError(f"generation {generation.id} has no drafted content")

        definition = registry.require_type(generation.contract_type)
        data = await self._renderer.render(
            generation.content,
            composer.footer_fields(definition.id, generation.parameters),
            output_format,
        )
        artifact = RenderedArtifact(
            data=data,
            file_name=artifact_file_name(definition.name, generation.id, output_format),
            content_type=output_format.content_type,
        )
        url = await self._artifacts.persist(
            generation.id,
            artifact,
            user_id=generation.user_id,
            contract_type=definition.id,
            contract_name=definition.name,
        )
        return GenerationResult(download_url=url, document_id=generation.id)

    @asynccontextmanager
    async def _stage(self, generation_id: str, stage: str) -> AsyncIterator[None]:
        """Mark the record failed when the wrapped stage raises."""
        try:
            yield
        except (Exception, asyncio.CancelledError) as e:
            reason = str(e) or f"{stage} cancelled"
            logger.warning("Generation %s failed during %s: %s", generation_id, stage, reason)
            try:
                await self._update(generation_id, status=GenerationStatus.error, error=reason)
            except SQLAlchemyError as db_error:
                logger.error("Could not mark generation %s as failed: %s", generation_id, db_error)
            raise

    # --------------------
    # Records
    # --------------------
    async def get_generation(self, generation_id: str, user_id: str) -> Generation:
        """Return a generation record owned by user_id.

        Raises:
            NotFoundError: No such record.
            AuthorizationError: The record belongs to another user.
        """
        generation = await self._load(generation_id)
        if generation.user_id != user_id:
            raise AuthorizationError(f"generation {generation_id} belongs to another user")
        return generation

    async def list_generations(self, user_id: str, limit: int = 20) -> list[Generation]:
        async with self._session_factory() as db:
            return list(await repository.list_generations(db, user_id, limit))

    async def delete_generation(self, generation_id: str, user_id: str) -> None:
        """Delete a generation with its stored documents."""
        await self.get_generation(generation_id, user_id)
        documents = await self._documents(generation_id)
        await self._artifacts.remove(documents)
        async with session_scope(self._session_factory) as db:
            await repository.delete_generation(db, generation_id)
        logger.info("Generation %s deleted with %d document(s)", generation_id, len(documents))

    async def download_url(
        self,
        generation_id: str,
        user_id: str,
        output_format: Optional[OutputFormat] = None,
    ) -> str:
        """Fresh download URL of the latest stored document of a generation."""
        generation = await self.get_generation(generation_id, user_id)
        wanted = output_format or OutputFormat(generation.output_format)
        for document in await self._documents(generation_id):
            if document.content_type == wanted.content_type:
                return await self._artifacts.download_url(document)
        raise NotFoundError(f"no {wanted.value} document stored for generation {generation_id}")

    async def rerender(
        self,
        generation_id: str,
        user_id: str,
        output_format: OutputFormat,
    ) -> GenerationResult:
        """Render the retained markup of a completed generation in another format."""
        generation = await self.get_generation(generation_id, user_id)
        if generation.status is not GenerationStatus.completed:
            raise ValidationError(
                f"generation {generation_id} is {generation.status.value}, only completed generations can be rendered"
            )
        result = await self._render_and_store(generation, output_format)
        logger.info("Generation %s rendered again as %s", generation_id, output_format.value)
        return result

    async def list_documents(self, user_id: str, tag: Optional[str] = None) -> list[GeneratedDocument]:
        return await self._artifacts.list_documents(user_id, tag)

    async def _load(self, generation_id: str) -> Generation:
        async with self._session_factory() as db:
            generation = await repository.get_generation(db, generation_id)
        if generation is None:
            raise NotFoundError(f"generation {generation_id} not found")
        return generation

    async def _documents(self, generation_id: str) -> list[GeneratedDocument]:
        async with self._session_factory() as db:
            return list(await repository.documents_for_generation(db, generation_id))

    async def _update(self, generation_id: str, **fields) -> None:
        async with session_scope(self._session_factory) as db:
            generation = await repository.get_generation(db, generation_id)
            if generation is None:
                raise NotFoundError(f"generation {generation_id} not found")
            for name, value in fields.items():
                setattr(generation, name, value)


__all__ = ["GenerationOrchestrator", "artifact_file_name"]
