"""Remote driver and machine handle interfaces.

The cloud session (transport, auth, polling cadence) lives behind
RemoteDriver; the builder only sequences calls on it. MachineHandle is
the durable record of which vApp/VM a machine maps to.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from vapp_builder.config import settings
from vapp_builder.schemas import (
    ComposeRequest,
    ComposeResult,
    GuestCustomization,
    RecomposeRequest,
    RemoteTask,
    VApp,
)

logger = logging.getLogger(__name__)


class RemoteDriver(ABC):
    """Abstract cloud driver used by the build step."""

    @abstractmethod
    def compose_vapp(self, request: ComposeRequest) -> ComposeResult:
        """Create a vApp from template VMs.

        Returns:
            ComposeResult with both vapp_id and task_id set
        """
        ...

    @abstractmethod
    def recompose_vapp(self, request: RecomposeRequest) -> ComposeResult:
        """Add template VMs to an existing vApp."""
        ...

    @abstractmethod
    def get_vapp(self, vapp_id: str) -> VApp | None:
        """Fetch a vApp snapshot, or None if it cannot be found."""
        ...

    @abstractmethod
    def wait_task_completion(self, task_id: str) -> RemoteTask:
        """Block until the task is terminal.

        Polling interval and backoff are owned by the driver.
        """
        ...

    @abstractmethod
    def set_vm_guest_customization(
        self,
        vm_id: str,
        vm_name: str,
        options: GuestCustomization,
    ) -> str:
        """Enable guest customization on a VM. Returns the task id."""
        ...


class MachineHandle(ABC):
    """Machine whose vApp/VM ids survive across invocations."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def vapp_id(self) -> str | None:
        ...

    @vapp_id.setter
    @abstractmethod
    def vapp_id(self, value: str | None) -> None:
        ...

    @property
    @abstractmethod
    def id(self) -> str | None:
        ...

    @id.setter
    @abstractmethod
    def id(self, value: str | None) -> None:
        ...


class MachineState(MachineHandle):
    """In-memory machine state."""

    def __init__(self, name: str, vapp_id: str | None = None, id: str | None = None):
        self._name = name
        self._vapp_id = vapp_id
        self._id = id

    def __repr__(self) -> str:
        return f"MachineState(name={self._name!r}, vapp_id={self._vapp_id!r}, id={self._id!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def vapp_id(self) -> str | None:
        return self._vapp_id

    @vapp_id.setter
    def vapp_id(self, value: str | None) -> None:
        self._vapp_id = value

    @property
    def id(self) -> str | None:
        return self._id

    @id.setter
    def id(self, value: str | None) -> None:
        self._id = value


class FileMachineState(MachineHandle):
    """Machine state persisted as JSON under state_dir/<name>/state.json.

    Every write is flushed to disk immediately so a crash right after
    compose still leaves the vApp id behind for the next run.
    """

    def __init__(self, name: str, state_dir: str | Path | None = None):
        self._name = name
        base = Path(state_dir or settings.state_dir)
        self._path = base / name / "state.json"
        self._data: dict[str, str | None] = {"vapp_id": None, "id": None}
        if self._path.exists():
            self._data.update(json.loads(self._path.read_text(encoding="utf-8")))

    @property
    def path(self) -> Path:
        return self._path

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        tmp.replace(self._path)
        logger.debug(f"Saved machine state for {self._name} to {self._path}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def vapp_id(self) -> str | None:
        return self._data.get("vapp_id")

    @vapp_id.setter
    def vapp_id(self, value: str | None) -> None:
        self._data["vapp_id"] = value
        self._write()

    @property
    def id(self) -> str | None:
        return self._data.get("id")

    @id.setter
    def id(self, value: str | None) -> None:
        self._data["id"] = value
        self._write()
