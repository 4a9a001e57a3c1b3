"""User-facing notifications for the build step."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from vapp_builder.errors import VAppBuilderError

logger = logging.getLogger(__name__)


MESSAGES: dict[str, str] = {
    "build_vapp": "Building vApp...",
    "adding_vm": "Adding VM to existing vApp...",
    "vapp_created": "vApp {vapp_name} successfully created.",
    "vapp_creation_failed": "vApp {vapp_name} creation failed!",
    "vm_add_failed": "VM {vm_name} add to {vapp_name} failed!",
    "build_failed": "vApp build failed: {error}",
}


def message(key: str, **kwargs: str) -> str:
    """Render a catalog message."""
    return MESSAGES[key].format(**kwargs)


class UiReporter(ABC):
    """One-way notification sink shown to the user."""

    @abstractmethod
    def info(self, msg: str) -> None:
        ...

    @abstractmethod
    def success(self, msg: str) -> None:
        ...

    @abstractmethod
    def error(self, msg: str) -> None:
        ...


class LoggingReporter(UiReporter):
    """Reporter that forwards notifications to the logging system."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def info(self, msg: str) -> None:
        self._log.info(msg)

    def success(self, msg: str) -> None:
        self._log.info(msg)

    def error(self, msg: str) -> None:
        self._log.error(msg)


def report_failure(ui: UiReporter, error: VAppBuilderError) -> None:
    """Surface a build failure to the user, including the remote message."""
    ui.error(message("build_failed", error=str(error)))
