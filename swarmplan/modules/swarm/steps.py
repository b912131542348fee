"""
Typed swarm join steps.

The join order of a cluster is an ordered tuple of these steps. Every step
renders a shell command that checks the node's current swarm state first, so
replaying a step that already succeeded changes nothing.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from .models import NodeSpec, SwarmMembership

SWARM_PORT = 2377

MANAGER_TOKEN = 'manager'
WORKER_TOKEN = 'worker'

_LOCAL_STATE = "docker info --format '{{.Swarm.LocalNodeState}}'"


@dataclass(frozen=True)
class Step:
    node: NodeSpec

    kind = 'step'
    # Join token this step needs, if any
    token = None

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.node.name}"

    @property
    def target(self) -> str:
        """Inventory host the command runs on."""
        return self.node.name

    def command(self, tokens: Mapping[str, str] = None) -> str:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'key': self.key, 'node': self.node.name, 'target': self.target}


@dataclass(frozen=True)
class InitPrimaryManager(Step):
    kind = 'init-primary-manager'

    def command(self, tokens: Mapping[str, str] = None) -> str:
        ip = self.node.private_ip
        return (
            f"{_LOCAL_STATE} | grep -qx active || "
            f"docker swarm init --advertise-addr {ip} --listen-addr {ip}:{SWARM_PORT}"
        )


@dataclass(frozen=True)
class _Join(Step):
    primary: NodeSpec = None

    def command(self, tokens: Mapping[str, str] = None) -> str:
        if not tokens or self.token not in tokens:
            raise ValueError(f"{self.key} requires the {self.token} join token")
        ip = self.node.private_ip
        return (
            f"{_LOCAL_STATE} | grep -qx active || "
            f"docker swarm join --token {tokens[self.token]} "
            f"--advertise-addr {ip} {self.primary.private_ip}:{SWARM_PORT}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['primary'] = self.primary.name
        return data


@dataclass(frozen=True)
class JoinManager(_Join):
    kind = 'join-manager'
    token = MANAGER_TOKEN


@dataclass(frozen=True)
class JoinWorker(_Join):
    kind = 'join-worker'
    token = WORKER_TOKEN


@dataclass(frozen=True)
class LabelNode(Step):
    """Applies placement labels. Runs on the primary manager."""
    primary: NodeSpec = None

    kind = 'label-node'

    @property
    def target(self) -> str:
        return self.primary.name

    def command(self, tokens: Mapping[str, str] = None) -> str:
        args = ' '.join(f"--label-add {k}={v}" for k, v in self.node.labels)
        return f"docker node update {args} {self.node.name}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['labels'] = dict(self.node.labels)
        return data


def join_sequence(nodes: List[NodeSpec], primary: NodeSpec) -> Tuple[Step, ...]:
    """Build the ordered join steps for the swarm members of a cluster.

    The primary initializes the swarm, other managers join next, then edge
    and worker nodes join as workers. Labels go last since the primary can
    only label nodes that are already members.
    """
    steps: List[Step] = [InitPrimaryManager(node=primary)]
    members = [n for n in nodes if n.membership != SwarmMembership.NONE]

    for node in members:
        if node.name == primary.name:
            continue
        if node.membership == SwarmMembership.MANAGER:
            steps.append(JoinManager(node=node, primary=primary))
    for node in members:
        if node.membership == SwarmMembership.WORKER:
            steps.append(JoinWorker(node=node, primary=primary))
    for node in members:
        if node.labels:
            steps.append(LabelNode(node=node, primary=primary))
    return tuple(steps)
