"""
Render a ClusterPlan into the artifacts consumed by Terraform and Ansible.

All render_* functions return values. write_artifacts() is the only place
that touches the filesystem.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from . import catalog
from .models import ClusterPlan, Environment, NodeRole, NodeSpec, SwarmMembership
from .steps import SWARM_PORT

logger = logging.getLogger("swarmplan.render")

DEFAULT_SSH_USER = 'root'
DEFAULT_SSH_KEY = '~/.ssh/id_rsa'


def _public_ip(node: NodeSpec, public_ips: Mapping[str, str]) -> Optional[str]:
    if not node.has_public_ip:
        return None
    return public_ips.get(node.name)


def render_inventory(plan: ClusterPlan, public_ips: Mapping[str, str] = None) -> Dict[str, List[Dict[str, Any]]]:
    """role -> [{name, public_ip, private_ip}] in plan order."""
    public_ips = public_ips or {}
    inventory: Dict[str, List[Dict[str, Any]]] = {}
    for role in catalog.ROLE_ORDER:
        inventory[role.value] = [
            {
                'name': node.name,
                'public_ip': _public_ip(node, public_ips),
                'private_ip': node.private_ip,
            }
            for node in plan.nodes_by_role(role)
        ]
    return inventory


def render_inventory_ini(
    plan: ClusterPlan,
    public_ips: Mapping[str, str] = None,
    ssh_user: str = DEFAULT_SSH_USER,
    ssh_key: str = DEFAULT_SSH_KEY,
) -> str:
    """Ansible INI inventory with one section per role.

    The bastion is addressed by its public IP when known. Everything else is
    addressed by private IP and reached through the bastion with ProxyJump.
    """
    public_ips = public_ips or {}
    bastion = plan.bastion
    bastion_public = public_ips.get(bastion.name)
    primary = plan.primary_manager
    output = []

    for role, hosts in render_inventory(plan, public_ips).items():
        output.append(f"[{role}]")
        for host in hosts:
            address = host['private_ip']
            if role == NodeRole.BASTION.value and host['public_ip']:
                address = host['public_ip']
            line = f"{host['name']} ansible_host={address} private_ip={host['private_ip']}"
            if host['name'] == primary.name:
                line += " swarm_primary=true"
            output.append(line)
        output.append("")

    output.append("[swarm:children]")
    for role in catalog.ROLE_ORDER:
        if catalog.profile(role).membership != SwarmMembership.NONE:
            output.append(role.value)
    output.append("")

    output.append("[swarm:vars]")
    common_args = "-o StrictHostKeyChecking=no -o UserKnownHostsFile=/dev/null"
    if bastion_public:
        common_args += f" -o ProxyJump={ssh_user}@{bastion_public}"
    else:
        logger.warning("⚠️  Bastion public IP unknown, inventory has no ProxyJump for internal hosts")
    output.append(f"ansible_ssh_common_args='{common_args}'")
    output.append("")

    output.append("[all:vars]")
    output.append(f"ansible_user={ssh_user}")
    output.append(f"ansible_ssh_private_key_file={ssh_key}")
    output.append("ansible_ssh_extra_args='-o ServerAliveInterval=30 -o ServerAliveCountMax=5'")
    return "\n".join(output) + "\n"


def render_vars(plan: ClusterPlan) -> Dict[str, Any]:
    """Flat variable set for downstream tooling."""
    spec = plan.spec
    primary = plan.primary_manager
    return {
        'cluster_name': spec.name,
        'environment': Environment(spec.environment).value,
        'bastion_count': spec.count_for(NodeRole.BASTION),
        'manager_count': spec.manager_count,
        'edge_count': spec.edge_count,
        'worker_count': spec.worker_count,
        'network_cidr': spec.network_cidr,
        'management_subnet': spec.management_subnet,
        'application_subnet': spec.application_subnet,
        'bastion_private_ip': plan.bastion.private_ip,
        'primary_manager_name': primary.name,
        'primary_manager_ip': primary.private_ip,
        'swarm_advertise_addr': f"{primary.private_ip}:{SWARM_PORT}",
        'quorum_tolerance': plan.quorum_tolerance,
        'plan_fingerprint': plan.fingerprint(),
    }


def _firewall_name(plan: ClusterPlan, role: NodeRole) -> str:
    return f"{plan.spec.name}-{role.value}-fw"


def _provider_labels(plan: ClusterPlan, role: NodeRole) -> Dict[str, str]:
    return {
        'cluster': plan.spec.name,
        'environment': Environment(plan.spec.environment).value,
        'role': role.value,
    }


def render_firewalls(plan: ClusterPlan) -> List[Dict[str, Any]]:
    """Hetzner firewalls, one per role, applied by label selector."""
    firewalls = []
    for role in catalog.ROLE_ORDER:
        rules = []
        for rule_name in catalog.required_rules(role):
            rules.extend(r.to_provider() for r in plan.firewall_rules[rule_name])
        selector = ','.join(f"{k}={v}" for k, v in _provider_labels(plan, role).items())
        firewalls.append({
            'name': _firewall_name(plan, role),
            'labels': _provider_labels(plan, role),
            'rules': rules,
            'apply_to': [{'type': 'label_selector', 'label_selector': {'selector': selector}}],
        })
    return firewalls


def render_servers(plan: ClusterPlan) -> List[Dict[str, Any]]:
    """Hetzner server definitions in plan order."""
    spec = plan.spec
    return [
        {
            'name': node.name,
            'server_type': node.server_type,
            'image': spec.image,
            'location': spec.location,
            'labels': _provider_labels(plan, node.role),
            'public_net': {'enable_ipv4': node.has_public_ip, 'enable_ipv6': node.has_public_ip},
            'networks': [{'ip': node.private_ip}],
            'firewalls': [_firewall_name(plan, node.role)],
        }
        for node in plan.nodes
    ]


def render_artifacts(
    plan: ClusterPlan,
    public_ips: Mapping[str, str] = None,
    ssh_user: str = DEFAULT_SSH_USER,
    ssh_key: str = DEFAULT_SSH_KEY,
) -> Dict[str, str]:
    """Relative path -> file content for every artifact."""
    name = plan.spec.name
    return {
        f"hosts-{name}.ini": render_inventory_ini(plan, public_ips, ssh_user, ssh_key),
        "group_vars/all.yml": yaml.dump(render_vars(plan), default_flow_style=False, sort_keys=False),
        "hetzner/servers.json": json.dumps(render_servers(plan), indent=2) + "\n",
        "hetzner/firewalls.json": json.dumps(render_firewalls(plan), indent=2) + "\n",
        "plan.json": plan.to_json() + "\n",
    }


def write_artifacts(
    plan: ClusterPlan,
    output_dir: str,
    public_ips: Mapping[str, str] = None,
    ssh_user: str = DEFAULT_SSH_USER,
    ssh_key: str = DEFAULT_SSH_KEY,
    dry_run: bool = False,
) -> List[Path]:
    """Write all artifacts under output_dir. Returns the written paths."""
    written = []
    for relative, content in render_artifacts(plan, public_ips, ssh_user, ssh_key).items():
        path = Path(output_dir) / relative
        if dry_run:
            logger.info(f"📝 [dry-run] would write {path}")
            written.append(path)
            continue
        os.makedirs(path.parent, exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
        logger.info(f"✅ Wrote {path}")
        written.append(path)
    return written
