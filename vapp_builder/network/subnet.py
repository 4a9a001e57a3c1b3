"""vApp network planning.

Turns the machine's subnet/DNS/bridge configuration into the network
plan handed to the driver on compose and recompose. Pure computation,
no remote calls.

Three modes, checked in order:
- ip_subnet set: natRouted network carved out of the subnet. The first
  usable address is the edge gateway, the rest (minus broadcast) is the
  static IP pool.
- network_bridge set: bridged network attached straight to the parent
  network, no edge gateway, no pool.
- neither: natRouted network on 10.1.1.0/24.
"""

from __future__ import annotations

import ipaddress
import logging

from vapp_builder.config import ProviderConfig, settings
from vapp_builder.errors import InvalidNetworkConfig
from vapp_builder.schemas import DnsPair, FenceMode, IpAllocationMode, NetworkPlan

logger = logging.getLogger(__name__)

# network + gateway + one pool address + broadcast
MIN_SUBNET_ADDRESSES = 4

DEFAULT_GATEWAY = "10.1.1.1"
DEFAULT_NETMASK = "255.255.255.0"
DEFAULT_POOL_START = "10.1.1.2"
DEFAULT_POOL_END = "10.1.1.254"


def _parse_network(value: str, what: str) -> ipaddress.IPv4Network:
    try:
        network = ipaddress.ip_network(value.strip(), strict=False)
    except (ValueError, AttributeError) as e:
        raise InvalidNetworkConfig(f"Invalid {what} '{value}': {e}") from e
    if network.version != 4:
        raise InvalidNetworkConfig(f"Invalid {what} '{value}': only IPv4 is supported")
    return network


def resolve_dns(dns_list: list[str] | None) -> DnsPair:
    """Resolve the DNS pair for the vApp network.

    No list (or an empty one) means the public defaults. Otherwise the
    first two entries are used in order, each reduced to its network base
    address (e.g. "1.2.3.4/24" -> "1.2.3.0"). Extra entries are ignored.
    """
    if not dns_list:
        defaults = list(settings.default_dns) + [None, None]
        return DnsPair(dns1=defaults[0], dns2=defaults[1])

    bases = [
        str(_parse_network(entry, "DNS address").network_address)
        for entry in dns_list[:2]
    ]
    bases += [None, None]
    return DnsPair(dns1=bases[0], dns2=bases[1])


def subnet_plan(
    ip_subnet: str,
    parent_network: str,
    dns: DnsPair,
    name: str | None = None,
) -> NetworkPlan:
    """Build a natRouted plan from a CIDR subnet.

    Raises:
        InvalidNetworkConfig: If the subnet is malformed or has fewer than
            MIN_SUBNET_ADDRESSES addresses.
    """
    logger.debug(f"Input address: {ip_subnet}")
    network = _parse_network(ip_subnet, "subnet")

    if network.num_addresses < MIN_SUBNET_ADDRESSES:
        raise InvalidNetworkConfig(
            f"Subnet {network} has {network.num_addresses} address(es); "
            f"at least {MIN_SUBNET_ADDRESSES} are required (prefix /30 or larger) "
            f"for network, gateway, pool and broadcast addresses"
        )

    # Drop the network address from the front; the next address is the
    # gateway. Then drop the broadcast address from the back.
    first = network.network_address + 1
    gateway = first
    start_address = first + 1
    end_address = network.broadcast_address - 1

    logger.debug(f"Gateway IP: {gateway}")
    logger.debug(f"Netmask: {network.netmask}")
    logger.debug(f"IP Pool: {start_address}-{end_address}")
    logger.debug(f"DNS1: {dns.dns1} DNS2: {dns.dns2}")

    return NetworkPlan(
        name=name or settings.network_name,
        fence_mode=FenceMode.NAT_ROUTED,
        ip_allocation_mode=IpAllocationMode.POOL,
        parent_network=parent_network,
        gateway=str(gateway),
        netmask=str(network.netmask),
        start_address=str(start_address),
        end_address=str(end_address),
        dns1=dns.dns1,
        dns2=dns.dns2,
        enable_firewall=False,
    )


def bridged_plan(parent_network: str, name: str | None = None) -> NetworkPlan:
    """Build a bridged plan; avoids deploying an edge gateway altogether."""
    return NetworkPlan(
        name=name or settings.network_name,
        fence_mode=FenceMode.BRIDGED,
        ip_allocation_mode=IpAllocationMode.POOL,
        parent_network=parent_network,
    )


def default_plan(parent_network: str, dns: DnsPair, name: str | None = None) -> NetworkPlan:
    """Build the fallback natRouted plan on 10.1.1.0/24."""
    logger.debug(f"DNS1: {dns.dns1} DNS2: {dns.dns2}")
    return NetworkPlan(
        name=name or settings.network_name,
        fence_mode=FenceMode.NAT_ROUTED,
        ip_allocation_mode=IpAllocationMode.POOL,
        parent_network=parent_network,
        gateway=DEFAULT_GATEWAY,
        netmask=DEFAULT_NETMASK,
        start_address=DEFAULT_POOL_START,
        end_address=DEFAULT_POOL_END,
        dns1=dns.dns1,
        dns2=dns.dns2,
        enable_firewall=False,
    )


def plan_network(config: ProviderConfig) -> tuple[NetworkPlan, bool]:
    """Compute the vApp network plan for a machine.

    Returns:
        Tuple of (plan, bridged). bridged is True when the vApp is attached
        directly to the parent network.

    Raises:
        InvalidNetworkConfig: On a malformed/too small subnet, a malformed
            DNS entry, or when both ip_subnet and network_bridge are set.
    """
    if config.ip_subnet is not None and config.network_bridge is not None:
        raise InvalidNetworkConfig(
            f"ip_subnet ({config.ip_subnet}) and network_bridge "
            f"({config.network_bridge}) are mutually exclusive"
        )

    dns = resolve_dns(config.ip_dns)

    if config.network_bridge is not None:
        return bridged_plan(config.vdc_network_id), True

    if config.ip_subnet is not None:
        return subnet_plan(config.ip_subnet, config.vdc_network_id, dns), False

    # No IP subnet specified, reverting to defaults
    return default_plan(config.vdc_network_id, dns), False
