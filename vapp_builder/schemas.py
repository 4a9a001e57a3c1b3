"""Builder <-> remote driver schemas.

These Pydantic models define the data structures handed to and returned
by the cloud driver during vApp composition.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FenceMode(str, Enum):
    """Isolation strategy for the vApp network."""
    NAT_ROUTED = "natRouted"  # Edge gateway with NAT/firewall
    BRIDGED = "bridged"  # Directly attached to the parent network


class IpAllocationMode(str, Enum):
    """How VMs on the vApp network receive addresses."""
    POOL = "POOL"
    DHCP = "DHCP"
    MANUAL = "MANUAL"


class TaskStatus(str, Enum):
    """Remote task status."""
    QUEUED = "queued"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    ABORTED = "aborted"


TERMINAL_TASK_STATES = {TaskStatus.SUCCESS, TaskStatus.ERROR, TaskStatus.ABORTED}
FAILED_TASK_STATES = {TaskStatus.ERROR, TaskStatus.ABORTED}


# --- Network ---

class DnsPair(BaseModel):
    """Up to two DNS resolvers for the vApp network."""
    dns1: str | None = None
    dns2: str | None = None


class NetworkPlan(BaseModel):
    """Private network plan for a vApp.

    Bridged plans only carry name, fence mode, allocation mode and
    parent network; every other field stays unset.
    """
    name: str
    fence_mode: FenceMode
    ip_allocation_mode: IpAllocationMode = IpAllocationMode.POOL
    parent_network: str
    gateway: str | None = None
    netmask: str | None = None
    start_address: str | None = None
    end_address: str | None = None
    dns1: str | None = None
    dns2: str | None = None
    enable_firewall: bool | None = None

    def to_driver_options(self) -> dict[str, Any]:
        """Render the plan as driver network options, skipping unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


# --- Compose ---

class ComposeRequest(BaseModel):
    """Builder -> Driver: create a new vApp from template VMs."""
    vdc_id: str
    vapp_name: str
    description: str
    vm_templates: dict[str, str]  # VM name -> template VM id
    network: NetworkPlan


class RecomposeRequest(BaseModel):
    """Builder -> Driver: add template VMs to an existing vApp."""
    vapp_id: str
    vm_templates: dict[str, str]
    network: NetworkPlan


class ComposeResult(BaseModel):
    """Driver -> Builder: accepted compose/recompose operation."""
    task_id: str
    vapp_id: str | None = None  # Only set by compose


class RemoteTask(BaseModel):
    """Terminal observation of a remote asynchronous task."""
    task_id: str
    status: TaskStatus = TaskStatus.SUCCESS
    error_message: str | None = None

    @property
    def failed(self) -> bool:
        return bool(self.error_message) or self.status in FAILED_TASK_STATES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TASK_STATES


# --- vApp ---

class VmRef(BaseModel):
    """Reference to a VM inside a vApp."""
    id: str


class VApp(BaseModel):
    """Snapshot of a vApp as returned by the driver."""
    id: str
    name: str
    vms: dict[str, VmRef] = Field(default_factory=dict)  # VM name -> ref


class GuestCustomization(BaseModel):
    """Guest customization options applied after VM creation."""
    enabled: bool = True
    admin_password_enabled: bool = False
