"""Tests for Temporal workflows (GenerationWorkflow)."""

from __future__ import annotations

import asyncio
import re
from uuid import uuid4

import pytest
from temporalio import activity
from temporalio.client import WorkflowFailureError
from temporalio.exceptions import ApplicationError
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker

from worker.workflows import GenerationWorkflow

# UUID v4 pattern for validation
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

REQUEST = {
    "contract_type": "nda",
    "parameters": {"purpose": "Evaluation of a joint venture"},
    "user_id": "user-1",
    "output_format": "pdf",
}


# Track activity calls for verification
activity_calls: list[tuple[str, tuple]] = []


@activity.defn(name="begin_generation")
async def mock_begin_generation(generation_id: str, request: dict) -> str:
    """Mock begin_generation that tracks calls."""
    activity_calls.append(("begin_generation", (generation_id, request)))
    return generation_id


@activity.defn(name="draft_contract")
async def mock_draft_contract(generation_id: str) -> None:
    """Mock draft_contract that tracks calls."""
    activity_calls.append(("draft_contract", (generation_id,)))


@activity.defn(name="render_and_store")
async def mock_render_and_store(generation_id: str) -> dict:
    """Mock render_and_store that tracks calls."""
    activity_calls.append(("render_and_store", (generation_id,)))
    return {
        "download_url": f"https://minio.test/generated/{generation_id}.pdf",
        "document_id": generation_id,
    }


@activity.defn(name="draft_contract")
async def failing_draft_contract(generation_id: str) -> None:
    activity_calls.append(("draft_contract", (generation_id,)))
    raise ApplicationError(
        "empty response from drafting model",
        type="UpstreamGenerationError",
        non_retryable=True,
    )


def _worker(env, draft=mock_draft_contract):
    return Worker(
        env.client,
        task_queue="test-queue",
        workflows=[GenerationWorkflow],
        activities=[mock_begin_generation, draft, mock_render_and_store],
    )


class TestGenerationWorkflow:
    """Tests for GenerationWorkflow."""

    @pytest.fixture(autouse=True)
    def reset_activity_calls(self):
        """Reset activity call tracking before each test."""
        activity_calls.clear()

    @pytest.mark.asyncio
    async def test_workflow_happy_path(self):
        """Workflow should run all stages and return the stored document."""
        async with await WorkflowEnvironment.start_time_skipping() as env:
            async with _worker(env):
                result = await env.client.execute_workflow(
                    GenerationWorkflow.run,
                    REQUEST,
                    id=f"test-workflow-{uuid4()}",
                    task_queue="test-queue",
                )

        assert UUID_PATTERN.match(result["document_id"])
        assert result["download_url"].endswith(f"{result['document_id']}.pdf")
        assert result["contract_type"] == "nda"

    @pytest.mark.asyncio
    async def test_workflow_activity_call_sequence(self):
        """Workflow should call activities in order with one generation_id."""
        async with await WorkflowEnvironment.start_time_skipping() as env:
            async with _worker(env):
                result = await env.client.execute_workflow(
                    GenerationWorkflow.run,
                    REQUEST,
                    id=f"test-workflow-{uuid4()}",
                    task_queue="test-queue",
                )

        assert [name for name, _ in activity_calls] == [
            "begin_generation",
            "draft_contract",
            "render_and_store",
        ]
        generation_id = result["document_id"]
        assert activity_calls[0][1] == (generation_id, REQUEST)
        assert activity_calls[1][1] == (generation_id,)
        assert activity_calls[2][1] == (generation_id,)

    @pytest.mark.asyncio
    async def test_progress_query_while_drafting(self):
        """Progress query should report the drafting stage while it runs."""
        drafting = asyncio.Event()
        release = asyncio.Event()

        @activity.defn(name="draft_contract")
        async def blocking_draft_contract(generation_id: str) -> None:
            drafting.set()
            await release.wait()

        async with await WorkflowEnvironment.start_time_skipping() as env:
            async with _worker(env, draft=blocking_draft_contract):
                handle = await env.client.start_workflow(
                    GenerationWorkflow.run,
                    REQUEST,
                    id=f"test-workflow-{uuid4()}",
                    task_queue="test-queue",
                )
                await asyncio.wait_for(drafting.wait(), timeout=30)
                progress = await handle.query(GenerationWorkflow.progress)
                release.set()
                result = await handle.result()

        assert progress == {"status": "processing", "progress": 20, "message": "Drafting contract"}
        assert result["contract_type"] == "nda"

    @pytest.mark.asyncio
    async def test_drafting_failure_fails_workflow(self):
        """A failed drafting stage should fail the workflow and skip rendering."""
        async with await WorkflowEnvironment.start_time_skipping() as env:
            async with _worker(env, draft=failing_draft_contract):
                handle = await env.client.start_workflow(
                    GenerationWorkflow.run,
                    REQUEST,
                    id=f"test-workflow-{uuid4()}",
                    task_queue="test-queue",
                )
                with pytest.raises(WorkflowFailureError) as excinfo:
                    await handle.result()

        assert [name for name, _ in activity_calls] == ["begin_generation", "draft_contract"]

        cause = excinfo.value.cause
        while getattr(cause, "cause", None) is not None:
            cause = cause.cause
        assert "empty response from drafting model" in str(cause)


class TestWorkflowDefinition:
    """Tests for workflow definition and decorators."""

    def test_workflow_has_defn_decorator(self):
        """GenerationWorkflow should be decorated with @workflow.defn."""
        assert hasattr(GenerationWorkflow, "__temporal_workflow_definition")

    def test_workflow_exposes_progress_query(self):
        assert callable(GenerationWorkflow.progress)
        assert callable(GenerationWorkflow.run)
