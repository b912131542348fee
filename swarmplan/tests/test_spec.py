import pytest

from swarmplan.modules.swarm.errors import InvalidSpec
from swarmplan.modules.swarm.models import Environment
from swarmplan.modules.swarm.spec import load_spec, spec_from_dict


def test_load_cluster_yaml(tmp_path):
    cluster_yaml = tmp_path / "cluster.yaml"
    cluster_yaml.write_text("""
name: fluffy
environment: staging
managers: 3
edge: 2
workers: 5
network:
  management_subnet: 10.0.1.0/24
admin_cidrs:
  - 203.0.113.0/24
server_types:
  manager: cx32
""")
    spec = load_spec(str(cluster_yaml))
    assert spec.name == "fluffy"
    assert spec.environment == Environment.STAGING
    assert (spec.manager_count, spec.edge_count, spec.worker_count) == (3, 2, 5)
    assert spec.admin_cidrs == ("203.0.113.0/24",)
    assert spec.application_subnet == "10.0.2.0/24"
    assert spec.server_types == (("manager", "cx32"),)


def test_environment_override():
    spec = spec_from_dict({"name": "c", "managers": 1, "environment": "production"}, environment="staging")
    assert spec.environment == Environment.STAGING


def test_defaults():
    spec = spec_from_dict({"name": "c", "managers": 1})
    assert spec.edge_count == 1
    assert spec.worker_count == 1
    assert spec.environment == Environment.PRODUCTION


def test_missing_name():
    with pytest.raises(InvalidSpec):
        spec_from_dict({"managers": 1})


def test_unknown_key():
    with pytest.raises(InvalidSpec):
        spec_from_dict({"name": "c", "managers": 1, "masters": 3})


def test_bad_environment():
    with pytest.raises(InvalidSpec):
        spec_from_dict({"name": "c", "managers": 1, "environment": "dev"})


def test_missing_file(tmp_path):
    with pytest.raises(InvalidSpec):
        load_spec(str(tmp_path / "nope.yaml"))


def test_not_a_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(InvalidSpec):
        load_spec(str(path))
