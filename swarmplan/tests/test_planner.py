import pytest

from swarmplan.modules.swarm import catalog
from swarmplan.modules.swarm.errors import InvalidCIDR, InvalidSpec, RangeExhausted
from swarmplan.modules.swarm.models import ClusterSpec, NodeRole
from swarmplan.modules.swarm.planner import plan
from swarmplan.modules.swarm.steps import InitPrimaryManager, JoinManager, JoinWorker, LabelNode


def ips(cluster, role):
    return [n.private_ip for n in cluster.nodes_by_role(role)]


def test_scenario_three_managers():
    cluster = plan(ClusterSpec(name="prod", manager_count=3, edge_count=2, worker_count=5))
    assert ips(cluster, NodeRole.BASTION) == ["10.0.1.5"]
    assert ips(cluster, NodeRole.MANAGER) == ["10.0.1.10", "10.0.1.11", "10.0.1.12"]
    assert ips(cluster, NodeRole.EDGE) == ["10.0.1.20", "10.0.1.21"]
    assert ips(cluster, NodeRole.WORKER) == ["10.0.2.15", "10.0.2.16", "10.0.2.17", "10.0.2.18", "10.0.2.19"]
    assert cluster.primary_manager.private_ip == "10.0.1.10"
    assert cluster.quorum_tolerance == 1


def test_minimum_viable_cluster():
    cluster = plan(ClusterSpec(name="tiny", manager_count=1, edge_count=1, worker_count=1))
    assert cluster.quorum_tolerance == 0
    assert len(cluster.nodes) == 4


def test_even_manager_count_is_invalid():
    with pytest.raises(InvalidSpec):
        plan(ClusterSpec(name="even", manager_count=2, edge_count=1, worker_count=1))


@pytest.mark.parametrize("k", [0, 1, 2, 3, 7])
def test_quorum_tolerance(k):
    cluster = plan(ClusterSpec(name="q", manager_count=2 * k + 1, edge_count=0, worker_count=0))
    assert cluster.quorum_tolerance == k


def test_zero_workers():
    cluster = plan(ClusterSpec(name="nowork", manager_count=1, edge_count=1, worker_count=0))
    assert cluster.nodes_by_role(NodeRole.WORKER) == []


def test_zero_edge_warns(caplog):
    caplog.set_level("WARNING", logger="swarmplan.planner")
    plan(ClusterSpec(name="noedge", manager_count=1, edge_count=0, worker_count=1))
    assert "no edge nodes" in caplog.text


@pytest.mark.parametrize("field", ["edge_count", "worker_count"])
def test_negative_counts(field):
    kwargs = {"name": "neg", "manager_count": 1, "edge_count": 1, "worker_count": 1, field: -1}
    with pytest.raises(InvalidSpec):
        plan(ClusterSpec(**kwargs))


def test_zero_managers():
    with pytest.raises(InvalidSpec):
        plan(ClusterSpec(name="none", manager_count=0))


def test_unknown_environment():
    with pytest.raises(InvalidSpec):
        plan(ClusterSpec(name="env", environment="qa"))


def test_worker_range_exhausted():
    with pytest.raises(RangeExhausted):
        plan(ClusterSpec(name="big", manager_count=1, edge_count=1, worker_count=241))


def test_manager_range_running_into_edge():
    # managers 10.0.1.10..20 would take edge-0's address
    with pytest.raises(RangeExhausted):
        plan(ClusterSpec(name="wide", manager_count=11, edge_count=1, worker_count=0))


def test_overlapping_subnets():
    spec = ClusterSpec(name="ovl", management_subnet="10.0.1.0/24", application_subnet="10.0.0.0/23")
    with pytest.raises(InvalidSpec):
        plan(spec)


def test_subnet_outside_network():
    spec = ClusterSpec(name="out", application_subnet="192.168.2.0/24")
    with pytest.raises(InvalidSpec):
        plan(spec)


def test_malformed_network():
    with pytest.raises(InvalidCIDR):
        plan(ClusterSpec(name="bad", network_cidr="10.0.0.0/99"))


def test_deterministic():
    spec = ClusterSpec(name="det", manager_count=5, edge_count=3, worker_count=7)
    first, second = plan(spec), plan(spec)
    assert first.to_json() == second.to_json()
    assert first.fingerprint() == second.fingerprint()
    assert [n.name for n in first.nodes] == [n.name for n in second.nodes]


def test_fingerprint_changes_with_layout():
    a = plan(ClusterSpec(name="fp", manager_count=1, worker_count=1))
    b = plan(ClusterSpec(name="fp", manager_count=1, worker_count=2))
    assert a.fingerprint() != b.fingerprint()


def test_adding_workers_keeps_existing_nodes():
    small = plan(ClusterSpec(name="grow", manager_count=3, edge_count=2, worker_count=2))
    large = plan(ClusterSpec(name="grow", manager_count=3, edge_count=2, worker_count=6))
    assert set(small.nodes) <= set(large.nodes)


def test_least_privilege_on_planned_nodes():
    cluster = plan(ClusterSpec(name="lp", manager_count=3, edge_count=2, worker_count=3))
    for node in cluster.nodes:
        if node.role not in (NodeRole.EDGE, NodeRole.BASTION):
            assert catalog.WEB_TRAFFIC not in node.firewall_rules
            assert not any(r.port in ("80", "443") for r in cluster.rules_for(node))


def test_public_ip_flags():
    cluster = plan(ClusterSpec(name="pub", manager_count=1, edge_count=1, worker_count=1))
    flags = {n.role: n.has_public_ip for n in cluster.nodes}
    assert flags == {NodeRole.BASTION: True, NodeRole.MANAGER: False, NodeRole.EDGE: True, NodeRole.WORKER: False}


def test_node_names():
    cluster = plan(ClusterSpec(name="web", manager_count=1, edge_count=1, worker_count=2))
    assert [n.name for n in cluster.nodes] == [
        "web-bastion-0", "web-manager-0", "web-edge-0", "web-worker-0", "web-worker-1",
    ]


def test_join_order():
    cluster = plan(ClusterSpec(name="j", manager_count=3, edge_count=1, worker_count=2))
    steps = list(cluster.steps)
    assert isinstance(steps[0], InitPrimaryManager)
    assert steps[0].node.name == "j-manager-0"
    assert [type(s) for s in steps[1:3]] == [JoinManager, JoinManager]
    assert [s.node.name for s in steps[3:6]] == ["j-edge-0", "j-worker-0", "j-worker-1"]
    assert all(isinstance(s, JoinWorker) for s in steps[3:6])
    labels = [s for s in steps if isinstance(s, LabelNode)]
    assert len(labels) == 6
    assert steps[-len(labels):] == labels
    for step in steps[1:]:
        assert step.primary == cluster.primary_manager


def test_bastion_never_joins():
    cluster = plan(ClusterSpec(name="b", manager_count=1, edge_count=1, worker_count=1))
    assert all(s.node.role != NodeRole.BASTION for s in cluster.steps)


def test_server_types():
    spec = ClusterSpec(name="st", server_types={"manager": "cx32"})
    cluster = plan(spec)
    assert cluster.primary_manager.server_type == "cx32"
    assert cluster.bastion.server_type == "cx22"


@pytest.mark.parametrize("name", ["Prod", "my cluster", "web_1", "-lead", "ok\n"])
def test_invalid_cluster_names(name):
    with pytest.raises(InvalidSpec):
        plan(ClusterSpec(name=name))


def test_spec_is_hashable():
    a = ClusterSpec(name="h", server_types={"worker": "cx32", "manager": "cx42"})
    b = ClusterSpec(name="h", server_types={"manager": "cx42", "worker": "cx32"})
    assert hash(a) == hash(b)
    assert a == b
    assert a.server_types == (("manager", "cx42"), ("worker", "cx32"))
    assert a.server_type_for(NodeRole.WORKER) == "cx32"
