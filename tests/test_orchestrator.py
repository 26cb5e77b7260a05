"""Tests for the generation orchestrator (drafter and renderer mocked, SQLite records)."""

from __future__ import annotations

import asyncio
import re

import pytest

from app.core.errors import (
    AuthorizationError,
    NotFoundError,
    RenderingError,
    UpstreamGenerationError,
    ValidationError,
)
from app.db import repository
from app.db.models import GenerationStatus
from app.schemas.domain import GenerationRequest, OutputFormat
from app.services.orchestrator import artifact_file_name

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def _request(parameters, contract_type="nda", user_id="user-1", output_format=None):
    return GenerationRequest(
        contract_type=contract_type,
        parameters=parameters,
        user_id=user_id,
        output_format=output_format,
    )


async def _documents(session_factory, generation_id):
    async with session_factory() as db:
        return list(await repository.documents_for_generation(db, generation_id))


def test_artifact_file_name():
    name = artifact_file_name("Non-Disclosure Agreement", "abc", OutputFormat.pdf)
    assert name == "NonDisclosureAgreement_abc.pdf"
    assert artifact_file_name("Employment Contract", "abc", OutputFormat.word).endswith(".docx")


class TestGenerate:
    @pytest.mark.asyncio
    async def test_nda_end_to_end(
        self, orchestrator, nda_parameters, mock_drafter, mock_renderer, mock_storage, session_factory, sample_html
    ):
        result = await orchestrator.generate(_request(nda_parameters))

        assert UUID_PATTERN.match(result.document_id)
        assert result.download_url.startswith("https://minio.test/generated/generated/")

        system, user, store_ids = mock_drafter.draft.await_args.args
        assert store_ids == ["vs_nda", "vs_statutes"]
        assert "Alpine Robotics AG" in user

        markup, footer, output_format = mock_renderer.render.await_args.args
        assert markup == sample_html
        assert footer.name == "Alpine Robotics AG"
        assert output_format is OutputFormat.pdf

        generation = await orchestrator.get_generation(result.document_id, "user-1")
        assert generation.status is GenerationStatus.completed
        assert generation.content == sample_html
        assert generation.error is None
        assert generation.parameters["jurisdiction"] == "Zürich"
        assert generation.parameters["mutualNDA"] is False

        (document,) = await _documents(session_factory, result.document_id)
        assert document.file_name == f"NonDisclosureAgreement_{result.document_id}.pdf"
        assert document.content_type == "application/pdf"

    @pytest.mark.asyncio
    async def test_requested_word_format(self, orchestrator, nda_parameters, mock_renderer, session_factory):
        result = await orchestrator.generate(_request(nda_parameters, output_format=OutputFormat.word))

        assert mock_renderer.render.await_args.args[2] is OutputFormat.word
        (document,) = await _documents(session_factory, result.document_id)
        assert document.file_name.endswith(".docx")

    @pytest.mark.asyncio
    async def test_unknown_type_rejected_before_any_cost(self, orchestrator, mock_drafter):
        with pytest.raises(ValidationError, match="unknown contract type"):
            await orchestrator.generate(_request({}, contract_type="lease"))

        mock_drafter.draft.assert_not_awaited()
        assert await orchestrator.list_generations("user-1") == []

    @pytest.mark.asyncio
    async def test_missing_parameter_creates_no_record(self, orchestrator, nda_parameters, mock_drafter):
        del nda_parameters["purpose"]

        with pytest.raises(ValidationError, match="purpose"):
            await orchestrator.generate(_request(nda_parameters))

        mock_drafter.draft.assert_not_awaited()
        assert await orchestrator.list_generations("user-1") == []

    @pytest.mark.asyncio
    async def test_type_without_template_store_rejected(self, orchestrator, mock_drafter):
        request = _request({"companyName": "X AG", "companyAddress": "Street 1"}, contract_type="terms")

        with pytest.raises(ValidationError, match="no drafting template"):
            await orchestrator.generate(request)

        assert await orchestrator.list_generations("user-1") == []

    @pytest.mark.asyncio
    async def test_empty_draft_never_rendered(self, orchestrator, nda_parameters, mock_drafter, mock_renderer):
        mock_drafter.draft.return_value = "   "

        with pytest.raises(UpstreamGenerationError, match="empty response"):
            await orchestrator.generate(_request(nda_parameters))

        mock_renderer.render.assert_not_awaited()
        (generation,) = await orchestrator.list_generations("user-1")
        assert generation.status is GenerationStatus.error
        assert "empty response" in generation.error

    @pytest.mark.asyncio
    async def test_drafting_error_reraised_unchanged(self, orchestrator, nda_parameters, mock_drafter):
        error = UpstreamGenerationError("drafting request failed: rate limited")
        mock_drafter.draft.side_effect = error

        with pytest.raises(UpstreamGenerationError) as excinfo:
            await orchestrator.generate(_request(nda_parameters))

        assert excinfo.value is error
        (generation,) = await orchestrator.list_generations("user-1")
        assert generation.status is GenerationStatus.error
        assert generation.error == "drafting request failed: rate limited"

    @pytest.mark.asyncio
    async def test_cancelled_draft_marks_record_failed(self, orchestrator, nda_parameters, mock_drafter):
        mock_drafter.draft.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await orchestrator.generate(_request(nda_parameters))

        (generation,) = await orchestrator.list_generations("user-1")
        assert generation.status is GenerationStatus.error
        assert generation.error == "draft cancelled"

    @pytest.mark.asyncio
    async def test_non_finite_salary_rejected_before_any_record(self, orchestrator, mock_drafter):
        parameters = {
            "employerName": "Acme GmbH",
            "employeeName": "Jane Doe",
            "position": "Engineer",
            "startDate": "2024-03-01",
            "salary": "NaN",
        }

        with pytest.raises(ValidationError, match="salary"):
            await orchestrator.generate(_request(parameters, contract_type="employment"))

        mock_drafter.draft.assert_not_awaited()
        assert await orchestrator.list_generations("user-1") == []

    @pytest.mark.asyncio
    async def test_rendering_error_marks_record_and_stores_nothing(
        self, orchestrator, nda_parameters, mock_renderer, mock_storage
    ):
        mock_renderer.render.side_effect = RenderingError("PDF rendering failed: crash")

        with pytest.raises(RenderingError):
            await orchestrator.generate(_request(nda_parameters))

        mock_storage.put_bytes.assert_not_called()
        (generation,) = await orchestrator.list_generations("user-1")
        assert generation.status is GenerationStatus.error
        assert generation.content is not None

    @pytest.mark.asyncio
    async def test_start_is_idempotent_for_a_given_id(self, orchestrator, nda_parameters):
        first = await orchestrator.start(_request(nda_parameters), generation_id="fixed-id")
        second = await orchestrator.start(_request(nda_parameters), generation_id="fixed-id")

        assert first == second == "fixed-id"
        assert len(await orchestrator.list_generations("user-1")) == 1


class TestRecords:
    @pytest.mark.asyncio
    async def test_owner_round_trip(self, orchestrator, nda_parameters):
        result = await orchestrator.generate(_request(nda_parameters))

        generation = await orchestrator.get_generation(result.document_id, "user-1")
        assert generation.id == result.document_id
        assert generation.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_other_user_is_rejected(self, orchestrator, nda_parameters):
        result = await orchestrator.generate(_request(nda_parameters))

        with pytest.raises(AuthorizationError):
            await orchestrator.get_generation(result.document_id, "user-2")

    @pytest.mark.asyncio
    async def test_unknown_id_not_found(self, orchestrator):
        with pytest.raises(NotFoundError):
            await orchestrator.get_generation("does-not-exist", "user-1")

    @pytest.mark.asyncio
    async def test_list_newest_first_with_limit(self, orchestrator, nda_parameters):
        ids = [await orchestrator.start(_request(nda_parameters)) for _ in range(3)]
        await orchestrator.start(_request(nda_parameters, user_id="user-2"))

        listed = await orchestrator.list_generations("user-1")
        assert {g.id for g in listed} == set(ids)
        created = [g.created_at for g in listed]
        assert created == sorted(created, reverse=True)
        assert len(await orchestrator.list_generations("user-1", limit=2)) == 2

    @pytest.mark.asyncio
    async def test_delete_removes_objects_and_record(self, orchestrator, nda_parameters, mock_storage, session_factory):
        result = await orchestrator.generate(_request(nda_parameters))
        (document,) = await _documents(session_factory, result.document_id)

        await orchestrator.delete_generation(result.document_id, "user-1")

        mock_storage.delete_object.assert_called_once_with("generated", document.object_key)
        assert await _documents(session_factory, result.document_id) == []
        with pytest.raises(NotFoundError):
            await orchestrator.get_generation(result.document_id, "user-1")

    @pytest.mark.asyncio
    async def test_delete_never_existed_vs_foreign(self, orchestrator, nda_parameters, mock_storage):
        result = await orchestrator.generate(_request(nda_parameters))

        with pytest.raises(NotFoundError):
            await orchestrator.delete_generation("never-existed", "user-1")
        with pytest.raises(AuthorizationError):
            await orchestrator.delete_generation(result.document_id, "user-2")

        mock_storage.delete_object.assert_not_called()
        assert await orchestrator.get_generation(result.document_id, "user-1")


class TestRerender:
    @pytest.mark.asyncio
    async def test_rerender_as_word_adds_artifact(self, orchestrator, nda_parameters, mock_renderer, session_factory):
        result = await orchestrator.generate(_request(nda_parameters))
        mock_renderer.render.return_value = b"PK docx"

        rerendered = await orchestrator.rerender(result.document_id, "user-1", OutputFormat.word)

        assert rerendered.document_id == result.document_id
        assert mock_renderer.render.await_args.args[2] is OutputFormat.word
        file_names = {d.file_name for d in await _documents(session_factory, result.document_id)}
        assert file_names == {
            f"NonDisclosureAgreement_{result.document_id}.pdf",
            f"NonDisclosureAgreement_{result.document_id}.docx",
        }

        url = await orchestrator.download_url(result.document_id, "user-1", OutputFormat.word)
        assert url.endswith(".docx?ttl=3600")

    @pytest.mark.asyncio
    async def test_rerender_requires_completed_generation(self, orchestrator, nda_parameters, mock_drafter):
        mock_drafter.draft.return_value = ""
        with pytest.raises(UpstreamGenerationError):
            await orchestrator.generate(_request(nda_parameters))
        (generation,) = await orchestrator.list_generations("user-1")

        with pytest.raises(ValidationError, match="only completed"):
            await orchestrator.rerender(generation.id, "user-1", OutputFormat.word)

    @pytest.mark.asyncio
    async def test_download_url_missing_format(self, orchestrator, nda_parameters):
        result = await orchestrator.generate(_request(nda_parameters))

        with pytest.raises(NotFoundError, match="no word document"):
            await orchestrator.download_url(result.document_id, "user-1", OutputFormat.word)
