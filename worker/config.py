"""Worker configuration.

Connection and capacity settings for the Temporal worker, read from the
environment. Database, storage and model settings are shared with the API
through app.core.config.
"""
import os


class WorkerSettings:
    """Temporal connection and activity capacity of one worker process."""

    def __init__(self):
        self.TEMPORAL_ADDRESS = os.getenv("TEMPORAL_ADDRESS", "temporal:7233")
        self.TEMPORAL_NAMESPACE = os.getenv("TEMPORAL_NAMESPACE", "default")
        self.WORKER_TASK_QUEUE = os.getenv("WORKER_TASK_QUEUE", "generation-queue")

        # Drafting waits on the model; rendering is capped again by RENDER_MAX_CONCURRENCY
        self.MAX_CONCURRENT_ACTIVITIES = int(os.getenv("MAX_CONCURRENT_ACTIVITIES", "8"))

        # In-flight drafts and renders get this long to finish on SIGTERM
        self.GRACEFUL_SHUTDOWN_S = float(os.getenv("GRACEFUL_SHUTDOWN_S", "300"))

    def __repr__(self):
        return (
            f"WorkerSettings(temporal={self.TEMPORAL_ADDRESS}, "
            f"namespace={self.TEMPORAL_NAMESPACE}, "
            f"queue={self.WORKER_TASK_QUEUE}, "
            f"max_activities={self.MAX_CONCURRENT_ACTIVITIES}, "
            f"grace={self.GRACEFUL_SHUTDOWN_S:g}s)"
        )
