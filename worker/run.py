"""Temporal worker entry point.

Polls the generation queue and runs GenerationWorkflow with its three
activities. The orchestrator is built before polling starts so that a
broken configuration fails the process instead of the first job.
"""
import asyncio
import logging
import signal
from datetime import timedelta

from temporalio.client import Client
from temporalio.worker import Worker

from app.core.config import settings as app_settings
from app.core.logging import setup_logging
from app.db import init_db
from app.deps import get_orchestrator
from worker.activities import begin_generation, draft_contract, render_and_store
from worker.config import WorkerSettings
from worker.workflows import GenerationWorkflow

logger = logging.getLogger("worker")

ACTIVITIES = [begin_generation, draft_contract, render_and_store]


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    """Install signal handlers for graceful shutdown."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:  # pragma: no cover - Windows
            signal.signal(sig, lambda *_: stop_event.set())


def build_worker(client: Client, settings: WorkerSettings) -> Worker:
    return Worker(
        client,
        task_queue=settings.WORKER_TASK_QUEUE,
        workflows=[GenerationWorkflow],
        activities=ACTIVITIES,
        max_concurrent_activities=settings.MAX_CONCURRENT_ACTIVITIES,
        graceful_shutdown_timeout=timedelta(seconds=settings.GRACEFUL_SHUTDOWN_S),
    )


def _warm_up() -> None:
    """Build the shared orchestrator and report what it can draft."""
    if not app_settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; drafting activities will fail")
    orchestrator = get_orchestrator()
    drafting = orchestrator.stores.configured_types()
    logger.info("Contract types with a drafting template: %s", ", ".join(drafting) or "none")


async def run_worker() -> None:
    """Run the Temporal worker until SIGINT/SIGTERM."""
    settings = WorkerSettings()
    logger.info("Starting worker: %r", settings)

    await init_db()
    _warm_up()

    client = await Client.connect(
        settings.TEMPORAL_ADDRESS,
        namespace=settings.TEMPORAL_NAMESPACE
    )
    worker = build_worker(client, settings)

    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)

    logger.info("Worker polling %s", settings.WORKER_TASK_QUEUE)
    worker_task = asyncio.create_task(worker.run())

    await stop_event.wait()
    logger.info("Shutdown signal received, draining in-flight activities")

    await worker.shutdown()
    await asyncio.gather(worker_task, return_exceptions=True)
    logger.info("Worker stopped")


def main() -> None:
    setup_logging()
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
