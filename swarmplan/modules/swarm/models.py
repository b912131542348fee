"""Data models for Docker Swarm cluster planning."""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class NodeRole(str, Enum):
    """Node roles in the swarm cluster."""
    BASTION = 'bastion'
    MANAGER = 'manager'
    EDGE = 'edge'
    WORKER = 'worker'


class SwarmMembership(str, Enum):
    """How a node takes part in the swarm."""
    NONE = 'none'
    MANAGER = 'manager'
    WORKER = 'worker'


class Environment(str, Enum):
    PRODUCTION = 'production'
    STAGING = 'staging'


DEFAULT_NETWORK_CIDR = '10.0.0.0/16'
DEFAULT_MANAGEMENT_SUBNET = '10.0.1.0/24'
DEFAULT_APPLICATION_SUBNET = '10.0.2.0/24'
ANY_IPV4 = '0.0.0.0/0'
ANY_IPV6 = '::/0'
DEFAULT_SERVER_TYPE = 'cx22'
# Lowercase DNS label, used verbatim in host names and inventory lines
CLUSTER_NAME_PATTERN = r'^[a-z0-9][a-z0-9-]*$'


@dataclass(frozen=True)
class ClusterSpec:
    """Operator supplied cluster parameters. Everything else is derived."""
    name: str
    manager_count: int = 1
    edge_count: int = 1
    worker_count: int = 1
    environment: Environment = Environment.PRODUCTION
    network_cidr: str = DEFAULT_NETWORK_CIDR
    management_subnet: str = DEFAULT_MANAGEMENT_SUBNET
    application_subnet: str = DEFAULT_APPLICATION_SUBNET
    admin_cidrs: Tuple[str, ...] = (ANY_IPV4, ANY_IPV6)
    location: str = 'nbg1'
    image: str = 'ubuntu-22.04'
    # role value -> Hetzner server type, stored as sorted pairs so the spec stays hashable
    server_types: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'server_types', tuple(sorted(dict(self.server_types).items())))
        object.__setattr__(self, 'admin_cidrs', tuple(self.admin_cidrs))

    def count_for(self, role: NodeRole) -> int:
        """Number of nodes requested for a role. There is always one bastion."""
        if role == NodeRole.BASTION:
            return 1
        return {
            NodeRole.MANAGER: self.manager_count,
            NodeRole.EDGE: self.edge_count,
            NodeRole.WORKER: self.worker_count,
        }[role]

    def server_type_for(self, role: NodeRole) -> str:
        return dict(self.server_types).get(role.value, DEFAULT_SERVER_TYPE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'environment': Environment(self.environment).value,
            'manager_count': self.manager_count,
            'edge_count': self.edge_count,
            'worker_count': self.worker_count,
            'network_cidr': self.network_cidr,
            'management_subnet': self.management_subnet,
            'application_subnet': self.application_subnet,
            'admin_cidrs': list(self.admin_cidrs),
            'location': self.location,
            'image': self.image,
            'server_types': dict(self.server_types),
        }


@dataclass(frozen=True)
class FirewallRule:
    """A single ingress/egress rule, shaped like a Hetzner Cloud firewall rule."""
    name: str
    direction: str
    protocol: str
    port: Optional[str]
    source_ips: Tuple[str, ...] = ()
    destination_ips: Tuple[str, ...] = ()
    description: str = ''

    def to_provider(self) -> Dict[str, Any]:
        """Hetzner Cloud API representation."""
        rule = {
            'direction': self.direction,
            'protocol': self.protocol,
            'description': self.description,
        }
        if self.port is not None:
            rule['port'] = self.port
        if self.direction == 'in':
            rule['source_ips'] = list(self.source_ips)
        else:
            rule['destination_ips'] = list(self.destination_ips)
        return rule


@dataclass(frozen=True)
class NodeSpec:
    """A single provisioned node."""
    name: str
    role: NodeRole
    index: int
    private_ip: str
    has_public_ip: bool
    firewall_rules: Tuple[str, ...]
    membership: SwarmMembership
    labels: Tuple[Tuple[str, str], ...] = ()
    server_type: str = DEFAULT_SERVER_TYPE

    @property
    def in_swarm(self) -> bool:
        return self.membership != SwarmMembership.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'role': self.role.value,
            'index': self.index,
            'private_ip': self.private_ip,
            'has_public_ip': self.has_public_ip,
            'firewall_rules': list(self.firewall_rules),
            'membership': self.membership.value,
            'labels': dict(self.labels),
            'server_type': self.server_type,
        }


@dataclass(frozen=True)
class ClusterPlan:
    """Fully derived cluster layout. Produced by planner.plan()."""
    spec: ClusterSpec
    nodes: Tuple[NodeSpec, ...]
    firewall_rules: Dict[str, Tuple[FirewallRule, ...]] = field(hash=False)
    steps: Tuple[Any, ...]
    quorum_tolerance: int

    def nodes_by_role(self, role: NodeRole) -> List[NodeSpec]:
        return [n for n in self.nodes if n.role == role]

    @property
    def primary_manager(self) -> NodeSpec:
        return self.nodes_by_role(NodeRole.MANAGER)[0]

    @property
    def bastion(self) -> NodeSpec:
        return self.nodes_by_role(NodeRole.BASTION)[0]

    def node(self, name: str) -> NodeSpec:
        for n in self.nodes:
            if n.name == name:
                return n
        raise KeyError(name)

    def rules_for(self, node: NodeSpec) -> List[FirewallRule]:
        """Concrete firewall records attached to a node."""
        rules = []
        for rule_name in node.firewall_rules:
            rules.extend(self.firewall_rules[rule_name])
        return rules

    def to_dict(self) -> Dict[str, Any]:
        return {
            'spec': self.spec.to_dict(),
            'primary_manager': self.primary_manager.name,
            'quorum_tolerance': self.quorum_tolerance,
            'nodes': [n.to_dict() for n in self.nodes],
            'firewall_rules': {
                name: [r.to_provider() for r in self.firewall_rules[name]]
                for name in sorted(self.firewall_rules)
            },
            'steps': [s.to_dict() for s in self.steps],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    def fingerprint(self) -> str:
        """Stable hash of the plan, changes only when the derived layout changes."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(canonical.encode()).hexdigest()
