"""Temporal workflow for asynchronous contract generation.

GenerationWorkflow runs the orchestrator stages as three activities:
begin_generation -> draft_contract -> render_and_store
and answers the ``progress`` query while it runs.
"""

from datetime import timedelta
from typing import Any

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError

with workflow.unsafe.imports_passed_through():
    from worker.activities import begin_generation, draft_contract, render_and_store


@workflow.defn
class GenerationWorkflow:
    """Workflow that drafts, renders and stores one contract.

    The generation_id is created inside the workflow with workflow.uuid4(),
    so a retried begin_generation finds the record it already created.
    Drafting and rendering are never retried: each attempt is a paid model
    call or a browser launch, and a failure is terminal for the generation.
    """

    def __init__(self) -> None:
        self._status = "queued"
        self._progress = 0
        self._message = "Queued"

    @workflow.query
    def progress(self) -> dict[str, Any]:
        return {"status": self._status, "progress": self._progress, "message": self._message}

    def _advance(self, progress: int, message: str) -> None:
        self._status = "processing"
        self._progress = progress
        self._message = message

    @workflow.run
    async def run(self, request: dict[str, Any]) -> dict[str, Any]:
        """Execute the generation.

        Args:
            request: GenerationRequest as a JSON-compatible dict.

        Returns:
            Dict with download_url, document_id and contract_type.
        """
        generation_id = str(workflow.uuid4())
        workflow.logger.info(
            "Starting generation workflow: type=%s generation_id=%s",
            request.get("contract_type"),
            generation_id,
        )

        try:
            self._advance(10, "Starting")
            await workflow.execute_activity(
                begin_generation,
                args=[generation_id, request],
                start_to_close_timeout=timedelta(minutes=1),
                retry_policy=RetryPolicy(
                    maximum_attempts=3,
                    non_retryable_error_types=["ValidationError"],
                ),
            )

            self._advance(20, "Drafting contract")
            await workflow.execute_activity(
                draft_contract,
                generation_id,
                start_to_close_timeout=timedelta(minutes=5),
                retry_policy=RetryPolicy(maximum_attempts=1),
            )

            self._advance(60, "Rendering and storing document")
            result = await workflow.execute_activity(
                render_and_store,
                generation_id,
                start_to_close_timeout=timedelta(minutes=3),
                retry_policy=RetryPolicy(maximum_attempts=1),
            )
        except ActivityError as e:
            self._status = "failed"
            self._message = "Failed"
            workflow.logger.warning("Generation %s failed: %s", generation_id, e.cause or e)
            raise

        self._status = "completed"
        self._progress = 100
        self._message = "Completed"
        workflow.logger.info("Generation workflow completed: generation_id=%s", generation_id)

        return {**result, "contract_type": request.get("contract_type")}


__all__ = ["GenerationWorkflow"]
