"""vApp build step.

Creates the vApp for a machine on first run (compose) or adds the
machine to the vApp it already belongs to (recompose), then enables
guest customization on the new VM.

Build lifecycle:
    no vapp_id -> compose -> persist vapp_id -> wait -> fetch vApp
        -> persist VM id -> guest customization -> next step
    vapp_id set -> recompose -> wait -> fetch vApp
        -> persist VM id -> guest customization -> next step

Any failure aborts the pipeline. Nothing created remotely is cleaned up;
the persisted vapp_id makes a re-run take the recompose path instead of
creating a second vApp.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from vapp_builder import naming
from vapp_builder.config import ProviderConfig
from vapp_builder.driver import MachineHandle, RemoteDriver
from vapp_builder.errors import ComposeVAppError, VAppBuilderError
from vapp_builder.logging_config import set_correlation_id
from vapp_builder.metrics import build_errors, driver_call_duration
from vapp_builder.network.subnet import plan_network
from vapp_builder.reporter import UiReporter, message, report_failure
from vapp_builder.schemas import (
    ComposeRequest,
    GuestCustomization,
    NetworkPlan,
    RecomposeRequest,
    VApp,
)
from vapp_builder.tasks import TaskWaiter

logger = logging.getLogger(__name__)


@dataclass
class ProvisionEnv:
    """State shared between pipeline steps for one machine."""
    machine: MachineHandle
    config: ProviderConfig
    driver: RemoteDriver
    ui: UiReporter
    bridged_network: bool = False


def resolve_template_id(config: ProviderConfig) -> str:
    """Template VM id for the machine: first VM listed in the catalog item."""
    for template_id in config.catalog_item.vms.values():
        return template_id
    raise ComposeVAppError(
        f"Catalog item '{config.catalog_item.name}' has no template VMs"
    )


class BuildVApp:
    """Pipeline step that composes or recomposes the machine's vApp."""

    def __init__(self, app: Callable[[ProvisionEnv], Any]):
        self._app = app

    def __call__(self, env: ProvisionEnv) -> Any:
        return self.call(env)

    def call(self, env: ProvisionEnv) -> Any:
        set_correlation_id()
        branch = "recompose" if env.machine.vapp_id is not None else "compose"
        try:
            network, bridged = plan_network(env.config)
            if bridged:
                env.bridged_network = True

            if branch == "compose":
                self._compose(env, network)
            else:
                self._recompose(env, network)
        except VAppBuilderError as e:
            build_errors.labels(branch=branch, error=type(e).__name__).inc()
            report_failure(env.ui, e)
            raise

        return self._app(env)

    # --- Branches ---

    def _compose(self, env: ProvisionEnv, network: NetworkPlan) -> None:
        machine = env.machine
        driver = env.driver
        waiter = TaskWaiter(driver)
        env.ui.info(message("build_vapp"))

        request = ComposeRequest(
            vdc_id=env.config.vdc_id,
            vapp_name=naming.vapp_name(env.config.vapp_prefix),
            description=naming.vapp_description(),
            vm_templates={machine.name: resolve_template_id(env.config)},
            network=network,
        )
        logger.debug(f"Launch Compose vApp {request.vapp_name}...")
        result = _timed("compose_vapp", driver.compose_vapp, request)
        if not result.vapp_id:
            raise ComposeVAppError(
                f"Compose of {request.vapp_name} returned no vApp id (task {result.task_id})"
            )

        # Persisted before waiting so a crash mid-task still routes the
        # next run to recompose.
        machine.vapp_id = result.vapp_id

        waiter.wait_or_raise(result.task_id, "compose")

        vapp = _timed("get_vapp", driver.get_vapp, result.vapp_id)
        if vapp is None:
            env.ui.error(message("vapp_creation_failed", vapp_name=request.vapp_name))
            raise ComposeVAppError("vApp created but id unresolved")

        env.ui.success(message("vapp_created", vapp_name=vapp.name))
        vm_id = self._assign_vm(env, vapp)
        self._customize_guest(env, waiter, vm_id, vapp)

    def _recompose(self, env: ProvisionEnv, network: NetworkPlan) -> None:
        machine = env.machine
        driver = env.driver
        waiter = TaskWaiter(driver)
        env.ui.info(message("adding_vm"))

        request = RecomposeRequest(
            vapp_id=machine.vapp_id,
            vm_templates={machine.name: resolve_template_id(env.config)},
            network=network,
        )
        result = _timed("recompose_vapp", driver.recompose_vapp, request)

        logger.info("Waiting for the recompose task to complete ...")
        waiter.wait_or_raise(result.task_id, "recompose")

        vapp = _timed("get_vapp", driver.get_vapp, machine.vapp_id)
        if vapp is None:
            env.ui.error(
                message("vm_add_failed", vm_name=machine.name, vapp_name=machine.vapp_id)
            )
            raise ComposeVAppError("VM added to vApp but id unresolved")

        vm_id = self._assign_vm(env, vapp)
        self._customize_guest(env, waiter, vm_id, vapp)

    # --- Shared ---

    def _assign_vm(self, env: ProvisionEnv, vapp: VApp) -> str:
        vm = vapp.vms.get(env.machine.name)
        if vm is None:
            raise ComposeVAppError(
                f"VM {env.machine.name} not found in vApp {vapp.name}"
            )
        env.machine.id = vm.id
        return vm.id

    def _customize_guest(
        self,
        env: ProvisionEnv,
        waiter: TaskWaiter,
        vm_id: str,
        vapp: VApp,
    ) -> None:
        logger.info(
            f"Setting Guest Customization on ID: [{vm_id}] of vApp [{vapp.name}]"
        )
        task_id = _timed(
            "set_vm_guest_customization",
            env.driver.set_vm_guest_customization,
            vm_id,
            env.machine.name,
            GuestCustomization(enabled=True, admin_password_enabled=False),
        )
        waiter.wait_or_raise(task_id, "guest_customization")


def _timed(operation: str, func: Callable[..., Any], *args: Any) -> Any:
    """Call a driver method, recording its latency."""
    start = time.monotonic()
    status = "error"
    try:
        result = func(*args)
        status = "success"
        return result
    finally:
        driver_call_duration.labels(operation=operation, status=status).observe(
            time.monotonic() - start
        )
