"""
Role catalog: what each node role is allowed to expose and how it joins the swarm.

Public web traffic is granted to edge nodes only. Managers and workers are
reachable on SSH from the bastion and on the swarm ports from inside the
cluster, nothing else.
"""
from dataclasses import dataclass
from typing import Dict, Tuple

from .models import ClusterSpec, NodeRole, SwarmMembership

SSH_FROM_ADMIN = 'ssh-from-admin'
SSH_FROM_BASTION = 'ssh-from-bastion'
WEB_TRAFFIC = 'web-traffic'
SWARM_CONTROL = 'swarm-control'

ALL_RULES = (SSH_FROM_ADMIN, SSH_FROM_BASTION, WEB_TRAFFIC, SWARM_CONTROL)

# Order in which roles are planned and provisioned
ROLE_ORDER = (NodeRole.BASTION, NodeRole.MANAGER, NodeRole.EDGE, NodeRole.WORKER)


@dataclass(frozen=True)
class RoleProfile:
    role: NodeRole
    rules: Tuple[str, ...]
    public_ip: bool
    membership: SwarmMembership
    labels: Tuple[Tuple[str, str], ...] = ()


CATALOG: Dict[NodeRole, RoleProfile] = {
    NodeRole.BASTION: RoleProfile(
        role=NodeRole.BASTION,
        rules=(SSH_FROM_ADMIN,),
        public_ip=True,
        membership=SwarmMembership.NONE,
    ),
    NodeRole.MANAGER: RoleProfile(
        role=NodeRole.MANAGER,
        rules=(SSH_FROM_BASTION, SWARM_CONTROL),
        public_ip=False,
        membership=SwarmMembership.MANAGER,
        labels=(('node.role', 'manager'),),
    ),
    NodeRole.EDGE: RoleProfile(
        role=NodeRole.EDGE,
        rules=(SSH_FROM_BASTION, WEB_TRAFFIC, SWARM_CONTROL),
        public_ip=True,
        membership=SwarmMembership.WORKER,
        labels=(('node.role', 'edge'), ('ingress', 'true')),
    ),
    NodeRole.WORKER: RoleProfile(
        role=NodeRole.WORKER,
        rules=(SSH_FROM_BASTION, SWARM_CONTROL),
        public_ip=False,
        membership=SwarmMembership.WORKER,
        labels=(('node.role', 'worker'),),
    ),
}


def _check_least_privilege(catalog: Dict[NodeRole, RoleProfile]) -> None:
    for role, profile in catalog.items():
        if WEB_TRAFFIC in profile.rules and role != NodeRole.EDGE:
            raise AssertionError(f"{role.value} must not receive {WEB_TRAFFIC}")
        if WEB_TRAFFIC in profile.rules and not profile.public_ip:
            raise AssertionError(f"{role.value} serves web traffic without a public IP")
        unknown = set(profile.rules) - set(ALL_RULES)
        if unknown:
            raise AssertionError(f"{role.value} references unknown rules {sorted(unknown)}")


_check_least_privilege(CATALOG)


def profile(role: NodeRole) -> RoleProfile:
    return CATALOG[NodeRole(role)]


def required_rules(role: NodeRole) -> Tuple[str, ...]:
    """Firewall rule names a node of this role must carry."""
    return profile(role).rules


def role_counts(spec: ClusterSpec) -> Dict[NodeRole, int]:
    return {role: spec.count_for(role) for role in ROLE_ORDER}
