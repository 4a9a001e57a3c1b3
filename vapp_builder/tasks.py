"""Remote task waiting.

The driver owns the polling loop; this module turns its terminal
observation into either a RemoteTask or a ComposeVAppError.
"""

from __future__ import annotations

import logging
import time

from vapp_builder.driver import RemoteDriver
from vapp_builder.errors import ComposeVAppError
from vapp_builder.metrics import task_wait_duration
from vapp_builder.schemas import RemoteTask

logger = logging.getLogger(__name__)


class TaskWaiter:
    """Blocks on remote tasks through the driver."""

    def __init__(self, driver: RemoteDriver):
        self._driver = driver

    def wait(self, task_id: str, operation: str = "task") -> RemoteTask:
        """Wait for a task to reach a terminal state.

        One terminal observation is final; nothing is retried here.

        Raises:
            ComposeVAppError: If the driver hands back a task that is not
                terminal yet.
        """
        logger.debug(f"Waiting for {operation} task {task_id}")
        start = time.monotonic()
        task = self._driver.wait_task_completion(task_id)
        elapsed = time.monotonic() - start

        if not task.is_terminal:
            task_wait_duration.labels(operation=operation, status="incomplete").observe(elapsed)
            raise ComposeVAppError(
                f"{operation} task {task_id} returned non-terminal status {task.status.value}"
            )

        status = "error" if task.failed else "success"
        task_wait_duration.labels(operation=operation, status=status).observe(elapsed)

        if task.failed:
            logger.warning(
                f"{operation} task {task_id} failed after {elapsed:.1f}s: {task.error_message}"
            )
        else:
            logger.info(f"{operation} task {task_id} completed in {elapsed:.1f}s")
        return task

    def wait_or_raise(self, task_id: str, operation: str = "task") -> RemoteTask:
        """Wait for a task and raise ComposeVAppError if it failed."""
        task = self.wait(task_id, operation)
        if task.failed:
            raise ComposeVAppError(
                task.error_message or f"{operation} task {task_id} ended with status {task.status.value}"
            )
        return task
