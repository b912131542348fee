"""
Private address allocation for swarm nodes.

Every role owns a fixed host offset inside one of the cluster subnets.
With the default subnets this gives the classic layout:

    bastion   10.0.1.5
    managers  10.0.1.10, 10.0.1.11, ...
    edge      10.0.1.20, 10.0.1.21, ...
    workers   10.0.2.15, 10.0.2.16, ...
"""
import ipaddress
from typing import Dict, Optional, Tuple

from .errors import InvalidCIDR, RangeExhausted
from .models import (
    DEFAULT_APPLICATION_SUBNET,
    DEFAULT_MANAGEMENT_SUBNET,
    NodeRole,
)

MANAGEMENT = 'management'
APPLICATION = 'application'

# role -> (subnet, host offset of index 0)
ROLE_BASES: Dict[NodeRole, Tuple[str, int]] = {
    NodeRole.BASTION: (MANAGEMENT, 5),
    NodeRole.MANAGER: (MANAGEMENT, 10),
    NodeRole.EDGE: (MANAGEMENT, 20),
    NodeRole.WORKER: (APPLICATION, 15),
}


def parse_network(cidr: str, label: str = 'subnet') -> ipaddress.IPv4Network:
    """Parse an IPv4 network, raising InvalidCIDR on anything malformed."""
    try:
        network = ipaddress.ip_network(str(cidr), strict=True)
    except ValueError as e:
        raise InvalidCIDR(f"Invalid {label} CIDR '{cidr}': {e}") from e
    if network.version != 4:
        raise InvalidCIDR(f"{label} CIDR '{cidr}' must be IPv4")
    return network


def role_subnet(role: NodeRole) -> str:
    return ROLE_BASES[role][0]


def capacity(role: NodeRole, subnet: str = None) -> int:
    """How many nodes of a role fit before the subnet's broadcast address."""
    subnet_name, offset = ROLE_BASES[role]
    if subnet is None:
        subnet = _default_subnet(subnet_name)
    network = parse_network(subnet)
    return max(network.num_addresses - 1 - offset, 0)


def allocate(role: NodeRole, index: int, subnet: Optional[str] = None) -> str:
    """Return the private IP of the index-th node of a role.

    Args:
        role: Node role
        index: Zero-based ordinal within the role
        subnet: CIDR of the subnet the role lives in. Defaults to the
            management or application default subnet.

    Raises:
        RangeExhausted: If the address would run past the end of the subnet
        InvalidCIDR: If the subnet is malformed
    """
    role = NodeRole(role)
    if index < 0:
        raise RangeExhausted(f"Negative index {index} for role {role.value}")
    subnet_name, offset = ROLE_BASES[role]
    if subnet is None:
        subnet = _default_subnet(subnet_name)
    network = parse_network(subnet)

    host = offset + index
    # Last usable host sits just below the broadcast address
    if host >= network.num_addresses - 1:
        raise RangeExhausted(
            f"{role.value} index {index} overflows {network} "
            f"(at most {capacity(role, subnet)} {role.value} nodes fit)"
        )
    return str(network.network_address + host)


def _default_subnet(subnet_name: str) -> str:
    if subnet_name == MANAGEMENT:
        return DEFAULT_MANAGEMENT_SUBNET
    return DEFAULT_APPLICATION_SUBNET
