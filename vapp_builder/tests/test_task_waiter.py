from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from vapp_builder.driver import RemoteDriver
from vapp_builder.errors import ComposeVAppError
from vapp_builder.schemas import RemoteTask, TaskStatus
from vapp_builder.tasks import TaskWaiter


def _driver(task: RemoteTask) -> MagicMock:
    driver = MagicMock(spec=RemoteDriver)
    driver.wait_task_completion.return_value = task
    return driver


def test_wait_returns_terminal_task():
    task = RemoteTask(task_id="t1", status=TaskStatus.SUCCESS)
    driver = _driver(task)

    result = TaskWaiter(driver).wait("t1")

    assert result is task
    assert result.is_terminal
    assert not result.failed
    driver.wait_task_completion.assert_called_once_with("t1")


def test_wait_does_not_retry_failed_task():
    driver = _driver(RemoteTask(task_id="t1", status=TaskStatus.ERROR, error_message="boom"))

    result = TaskWaiter(driver).wait("t1")

    assert result.failed
    assert driver.wait_task_completion.call_count == 1


def test_wait_or_raise_failure_carries_remote_message():
    driver = _driver(RemoteTask(task_id="t1", status=TaskStatus.ERROR, error_message="quota exceeded"))

    with pytest.raises(ComposeVAppError) as excinfo:
        TaskWaiter(driver).wait_or_raise("t1", "compose")

    assert excinfo.value.message == "quota exceeded"
    assert "quota exceeded" in str(excinfo.value)


def test_empty_error_message_is_success():
    driver = _driver(RemoteTask(task_id="t1", error_message=""))
    assert TaskWaiter(driver).wait_or_raise("t1").task_id == "t1"


@pytest.mark.parametrize("status", [TaskStatus.QUEUED, TaskStatus.RUNNING])
def test_non_terminal_task_rejected(status):
    driver = _driver(RemoteTask(task_id="t1", status=status))

    with pytest.raises(ComposeVAppError, match=f"non-terminal status {status.value}"):
        TaskWaiter(driver).wait("t1", "compose")


@pytest.mark.parametrize("status", [TaskStatus.ERROR, TaskStatus.ABORTED])
def test_failed_status_without_message(status):
    task = RemoteTask(task_id="t1", status=status)
    assert task.failed

    with pytest.raises(ComposeVAppError, match=f"ended with status {status.value}"):
        TaskWaiter(_driver(task)).wait_or_raise("t1", "compose")
