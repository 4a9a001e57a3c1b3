from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from vapp_builder.config import CatalogItem, ProviderConfig, settings
from vapp_builder.driver import RemoteDriver
from vapp_builder.schemas import ComposeResult, RemoteTask, VApp, VmRef


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch, tmp_path):
    """Keep machine state and defaults local to each test.

    Redirect state_dir to a temp directory so tests don't try to create
    /var/lib/vapp-builder.
    """
    monkeypatch.setattr(settings, "state_dir", str(tmp_path / "state"))
    monkeypatch.setattr(settings, "default_vapp_prefix", "Vagrant")
    monkeypatch.setattr(settings, "default_dns", ["8.8.8.8", "8.8.4.4"])
    yield


@pytest.fixture
def provider_config():
    """Machine config with a single-template catalog and no network options."""
    return ProviderConfig(
        vdc_id="vdc-1",
        vdc_network_id="net-parent",
        catalog_item=CatalogItem(name="centos7", vms={"centos7-tmpl": "vm-tmpl-1"}),
    )


@pytest.fixture
def mock_driver():
    """Driver mock whose calls all succeed for a machine named 'web'."""
    driver = MagicMock(spec=RemoteDriver)
    driver.compose_vapp.return_value = ComposeResult(vapp_id="vapp-1", task_id="task-compose")
    driver.recompose_vapp.return_value = ComposeResult(task_id="task-recompose")
    driver.get_vapp.return_value = VApp(
        id="vapp-1",
        name="Vagrant-user-host-abcd1234",
        vms={"web": VmRef(id="vm-web"), "db": VmRef(id="vm-db")},
    )
    driver.set_vm_guest_customization.return_value = "task-custom"
    driver.wait_task_completion.side_effect = lambda task_id: RemoteTask(task_id=task_id)
    return driver


@pytest.fixture
def mock_ui():
    return MagicMock()
