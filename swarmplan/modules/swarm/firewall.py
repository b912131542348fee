"""Expands catalog rule names into concrete firewall records for a cluster."""
import ipaddress
import logging
from typing import Dict, Iterable, Tuple

from . import catalog
from .addressing import parse_network
from .errors import InvalidCIDR
from .models import ANY_IPV4, ANY_IPV6, ClusterSpec, FirewallRule, NodeRole

logger = logging.getLogger("swarmplan.firewall")

SSH_PORT = '22'
WEB_PORTS = ('80', '443')
# Docker Swarm: cluster management, node gossip (tcp+udp), overlay VXLAN
SWARM_PORTS = (('tcp', '2377'), ('tcp', '7946'), ('udp', '7946'), ('udp', '4789'))


def _host_cidr(ip: str) -> str:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError as e:
        raise InvalidCIDR(f"Invalid host address '{ip}': {e}") from e
    return f"{address}/{address.max_prefixlen}"


def _source_cidrs(cidrs: Iterable[str], label: str) -> Tuple[str, ...]:
    result = []
    for cidr in cidrs:
        try:
            result.append(str(ipaddress.ip_network(str(cidr), strict=True)))
        except ValueError as e:
            raise InvalidCIDR(f"Invalid {label} '{cidr}': {e}") from e
    if not result:
        raise InvalidCIDR(f"At least one {label} is required")
    return tuple(result)


def _inbound(name: str, protocol: str, port: str, sources: Tuple[str, ...], description: str) -> FirewallRule:
    return FirewallRule(
        name=name,
        direction='in',
        protocol=protocol,
        port=port,
        source_ips=sources,
        description=description,
    )


def resolve(rule_name: str, spec: ClusterSpec, bastion_ip: str) -> Tuple[FirewallRule, ...]:
    """Return the concrete records behind one rule name.

    Args:
        rule_name: One of the catalog rule names
        spec: Cluster spec providing subnets and admin ranges
        bastion_ip: Private address of the bastion host

    Raises:
        InvalidCIDR: If a subnet, admin range or the bastion address is malformed
        KeyError: If the rule name is unknown
    """
    if rule_name == catalog.SSH_FROM_ADMIN:
        sources = _source_cidrs(spec.admin_cidrs, 'admin CIDR')
        return (_inbound(rule_name, 'tcp', SSH_PORT, sources, 'SSH from administrators'),)

    if rule_name == catalog.SSH_FROM_BASTION:
        # Only the bastion itself, never a subnet. Workers cannot SSH to each other.
        return (_inbound(rule_name, 'tcp', SSH_PORT, (_host_cidr(bastion_ip),), 'SSH from bastion'),)

    if rule_name == catalog.WEB_TRAFFIC:
        return tuple(
            _inbound(rule_name, 'tcp', port, (ANY_IPV4, ANY_IPV6), f'Public web traffic on {port}')
            for port in WEB_PORTS
        )

    if rule_name == catalog.SWARM_CONTROL:
        subnets = tuple(
            str(parse_network(cidr, label))
            for cidr, label in (
                (spec.management_subnet, 'management subnet'),
                (spec.application_subnet, 'application subnet'),
            )
        )
        return tuple(
            _inbound(rule_name, protocol, port, subnets, f'Docker Swarm {protocol}/{port}')
            for protocol, port in SWARM_PORTS
        )

    raise KeyError(f"Unknown firewall rule: {rule_name}")


def resolve_all(spec: ClusterSpec, bastion_ip: str) -> Dict[str, Tuple[FirewallRule, ...]]:
    """Resolve every rule referenced by the catalog, keyed by rule name."""
    resolved = {}
    for role in catalog.ROLE_ORDER:
        for rule_name in catalog.required_rules(role):
            if rule_name not in resolved:
                resolved[rule_name] = resolve(rule_name, spec, bastion_ip)
                logger.debug(f"Resolved {rule_name} into {len(resolved[rule_name])} record(s)")
    return resolved


def rules_for_role(role: NodeRole, resolved: Dict[str, Tuple[FirewallRule, ...]]) -> Tuple[FirewallRule, ...]:
    records = []
    for rule_name in catalog.required_rules(role):
        records.extend(resolved[rule_name])
    return tuple(records)
