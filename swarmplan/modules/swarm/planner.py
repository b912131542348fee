"""
Topology planner.

plan() turns a ClusterSpec into a ClusterPlan. It is a pure function: the
same spec always produces the same nodes, addresses, firewall records and
join steps in the same order, so re-rendering on every provisioning run
never perturbs nodes that did not change.
"""
import logging
import re
from typing import Dict, List

from . import catalog, firewall
from .addressing import ROLE_BASES, MANAGEMENT, allocate, parse_network
from .errors import InvalidSpec, RangeExhausted
from .models import CLUSTER_NAME_PATTERN, ClusterPlan, ClusterSpec, Environment, NodeRole, NodeSpec
from .steps import join_sequence

logger = logging.getLogger("swarmplan.planner")


def validate_spec(spec: ClusterSpec) -> None:
    """Check ClusterSpec invariants.

    Raises:
        InvalidSpec: For bad counts, names, environments or overlapping subnets
        InvalidCIDR: For malformed network ranges
    """
    if not spec.name or not str(spec.name).strip():
        raise InvalidSpec("Cluster name cannot be empty")
    if not re.fullmatch(CLUSTER_NAME_PATTERN, str(spec.name)):
        raise InvalidSpec(
            f"Invalid cluster name '{spec.name}': use lowercase letters, digits and dashes"
        )
    try:
        Environment(spec.environment)
    except ValueError:
        valid = ', '.join(e.value for e in Environment)
        raise InvalidSpec(f"Unknown environment '{spec.environment}' (expected one of: {valid})")

    for field_name in ('manager_count', 'edge_count', 'worker_count'):
        value = getattr(spec, field_name)
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidSpec(f"{field_name} must be an integer, got {value!r}")
        if value < 0:
            raise InvalidSpec(f"{field_name} cannot be negative, got {value}")
    if spec.manager_count < 1:
        raise InvalidSpec("At least one manager is required")
    if spec.manager_count % 2 == 0:
        raise InvalidSpec(
            f"manager_count must be odd to keep a raft quorum, got {spec.manager_count}"
        )

    network = parse_network(spec.network_cidr, 'network')
    management = parse_network(spec.management_subnet, 'management subnet')
    application = parse_network(spec.application_subnet, 'application subnet')
    if management.overlaps(application):
        raise InvalidSpec(f"Subnets overlap: {management} and {application}")
    for subnet in (management, application):
        if not subnet.subnet_of(network):
            raise InvalidSpec(f"Subnet {subnet} is outside network {network}")


def _subnet_for(spec: ClusterSpec, role: NodeRole) -> str:
    if ROLE_BASES[role][0] == MANAGEMENT:
        return spec.management_subnet
    return spec.application_subnet


def _allocate_addresses(spec: ClusterSpec) -> Dict[NodeRole, List[str]]:
    addresses: Dict[NodeRole, List[str]] = {}
    owners: Dict[str, str] = {}
    for role in catalog.ROLE_ORDER:
        subnet = _subnet_for(spec, role)
        addresses[role] = []
        for index in range(spec.count_for(role)):
            ip = allocate(role, index, subnet)
            if ip in owners:
                raise RangeExhausted(
                    f"{role.value} index {index} runs into {owners[ip]} at {ip}; "
                    f"reduce the {role.value} count"
                )
            owners[ip] = f"{role.value}-{index}"
            addresses[role].append(ip)
    return addresses


def plan(spec: ClusterSpec) -> ClusterPlan:
    """Derive the complete cluster layout from a spec.

    Args:
        spec: Cluster parameters

    Returns:
        ClusterPlan with nodes in role order [bastion, manager, edge, worker]

    Raises:
        InvalidSpec, InvalidCIDR, RangeExhausted
    """
    validate_spec(spec)
    logger.debug(
        f"Planning {spec.name}: managers={spec.manager_count} "
        f"edge={spec.edge_count} workers={spec.worker_count}"
    )

    addresses = _allocate_addresses(spec)
    bastion_ip = addresses[NodeRole.BASTION][0]
    rules = firewall.resolve_all(spec, bastion_ip)

    nodes: List[NodeSpec] = []
    for role in catalog.ROLE_ORDER:
        profile = catalog.profile(role)
        for index, ip in enumerate(addresses[role]):
            nodes.append(NodeSpec(
                name=f"{spec.name}-{role.value}-{index}",
                role=role,
                index=index,
                private_ip=ip,
                has_public_ip=profile.public_ip,
                firewall_rules=profile.rules,
                membership=profile.membership,
                labels=profile.labels,
                server_type=spec.server_type_for(role),
            ))

    managers = [n for n in nodes if n.role == NodeRole.MANAGER]
    primary = managers[0]
    steps = join_sequence(nodes, primary)
    tolerance = spec.manager_count // 2

    if spec.edge_count == 0:
        logger.warning(f"⚠️  {spec.name} has no edge nodes, nothing will accept public web traffic")

    logger.info(
        f"✅ Planned {spec.name}: {len(nodes)} nodes, primary manager {primary.private_ip}, "
        f"quorum tolerance {tolerance}"
    )
    return ClusterPlan(
        spec=spec,
        nodes=tuple(nodes),
        firewall_rules=rules,
        steps=steps,
        quorum_tolerance=tolerance,
    )
