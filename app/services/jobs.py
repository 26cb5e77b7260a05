"""Asynchronous generation jobs backed by Temporal workflow executions.

A job is a ``GenerationWorkflow`` execution with id ``generation-<job id>``.
The submitting user is stored in the workflow memo so that status lookups
can hide other users' jobs; job state is read back from Temporal instead
of being stored by the service.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional
from uuid import uuid4

from temporalio.client import Client, WorkflowExecutionStatus, WorkflowFailureError, WorkflowQueryFailedError
from temporalio.service import RPCError, RPCStatusCode

from app.schemas.domain import AsyncJob, GenerationRequest, JobStatus
from worker.workflows import GenerationWorkflow

logger = logging.getLogger(__name__)

WORKFLOW_ID_PREFIX = "generation-"
_QUERY_TIMEOUT = timedelta(seconds=5)


def workflow_id(job_id: str) -> str:
    return f"{WORKFLOW_ID_PREFIX}{job_id}"


def _root_message(error: BaseException) -> str:
    """Message of the innermost cause of a workflow failure."""
    while True:
        cause = getattr(error, "cause", None) or error.__cause__
        if cause is None:
            break
        error = cause
    return getattr(error, "message", None) or str(error)


class GenerationJobs:
    """Submits generation workflows and maps their executions to jobs."""

    def __init__(self, client: Client, task_queue: str):
        self._client = client
        self._task_queue = task_queue

    async def submit(self, request: GenerationRequest) -> str:
        """Start a generation workflow and return its job id."""
        job_id = str(uuid4())
        await self._client.start_workflow(
            GenerationWorkflow.run,
            request.model_dump(mode="json"),
            id=workflow_id(job_id),
            task_queue=self._task_queue,
            memo={"user_id": request.user_id},
        )
        logger.info("Queued generation job %s (%s) for user %s", job_id, request.contract_type, request.user_id)
        return job_id

    async def status(self, job_id: str, user_id: str) -> Optional[AsyncJob]:
        """Look up a job owned by user_id.

        Returns None for unknown jobs and for jobs of other users.
        """
        handle = self._client.get_workflow_handle(workflow_id(job_id))
        try:
            description = await handle.describe()
        except RPCError as e:
            if e.status == RPCStatusCode.NOT_FOUND:
                return None
            raise

        owner = await description.memo_value("user_id", None)
        if owner != user_id:
            logger.info("Job %s requested by %s but owned by %s", job_id, user_id, owner)
            return None

        job = AsyncJob(
            id=job_id,
            status=JobStatus.queued,
            created_at=description.start_time,
            completed_at=description.close_time,
        )

        if description.status == WorkflowExecutionStatus.RUNNING:
            progress = await self._progress(handle)
            if progress:
                job.status = JobStatus(progress["status"])
                job.progress = progress["progress"]
                job.progress_message = progress["message"]
            return job

        if description.status == WorkflowExecutionStatus.COMPLETED:
            result: dict[str, Any] = await handle.result()
            job.status = JobStatus.completed
            job.progress = 100
            job.progress_message = "Completed"
            job.result = result
            return job

        try:
            await handle.result()
        except WorkflowFailureError as e:
            job.error = _root_message(e)
        else:
            job.error = f"workflow ended as {description.status.name.lower()}"
        job.status = JobStatus.failed
        return job

    async def _progress(self, handle) -> Optional[dict[str, Any]]:
        """Query the running workflow; None until a worker has picked it up."""
        try:
            return await handle.query(GenerationWorkflow.progress, rpc_timeout=_QUERY_TIMEOUT)
        except (RPCError, WorkflowQueryFailedError) as e:
            logger.debug("Progress query for %s not answered yet: %s", handle.id, e)
            return None


__all__ = ["GenerationJobs", "workflow_id"]
