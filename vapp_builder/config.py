"""vApp builder configuration."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Builder settings loaded from environment variables."""

    # vApp naming
    default_vapp_prefix: str = "Vagrant"
    network_name: str = "Vagrant-vApp-Net"

    # Public resolvers used when the machine config has no DNS list
    default_dns: list[str] = ["8.8.8.8", "8.8.4.4"]

    # Durable machine state (vApp id, VM id)
    state_dir: str = "/var/lib/vapp-builder"

    log_level: str = "INFO"

    class Config:
        env_prefix = "VAPP_BUILDER_"


settings = Settings()


class CatalogItem(BaseModel):
    """Catalog item resolved for a machine.

    vms maps template VM name -> template VM id, in catalog order.
    """
    name: str = ""
    vms: dict[str, str] = Field(default_factory=dict)


class ProviderConfig(BaseModel):
    """Per-machine provider configuration (read-only for the builder)."""
    vdc_id: str
    vdc_network_id: str
    catalog_item: CatalogItem
    vapp_prefix: str | None = None
    ip_subnet: str | None = None  # e.g. "172.16.32.0/24"
    ip_dns: list[str] | None = None  # CIDR or bare addresses
    network_bridge: str | None = None  # set to attach in bridged mode
