"""Load ClusterSpec definitions from cluster YAML files."""
import logging
from pathlib import Path
from typing import Any, Dict

import yaml
from jsonschema import ValidationError, validate

from .errors import InvalidSpec
from .models import CLUSTER_NAME_PATTERN, ClusterSpec, Environment

logger = logging.getLogger("swarmplan.spec")

CLUSTER_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "pattern": CLUSTER_NAME_PATTERN},
        "environment": {"type": "string", "enum": [e.value for e in Environment]},
        "managers": {"type": "integer", "minimum": 1},
        "edge": {"type": "integer", "minimum": 0},
        "workers": {"type": "integer", "minimum": 0},
        "network": {
            "type": "object",
            "properties": {
                "cidr": {"type": "string"},
                "management_subnet": {"type": "string"},
                "application_subnet": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "admin_cidrs": {"type": "array", "items": {"type": "string"}, "minItems": 1},
        "location": {"type": "string"},
        "image": {"type": "string"},
        "server_types": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
    },
    "required": ["name", "managers"],
    "additionalProperties": False,
}


def spec_from_dict(data: Dict[str, Any], environment: str = None) -> ClusterSpec:
    """Build a ClusterSpec from a parsed cluster definition.

    Args:
        data: Parsed YAML mapping
        environment: Overrides the environment from the file when given

    Raises:
        InvalidSpec: If the mapping doesn't match CLUSTER_SCHEMA
    """
    if not isinstance(data, dict):
        raise InvalidSpec("Cluster definition must be a mapping")
    try:
        validate(instance=data, schema=CLUSTER_SCHEMA)
    except ValidationError as ve:
        location = '.'.join(str(p) for p in ve.path) or 'cluster'
        raise InvalidSpec(f"YAML validation error at {location}: {ve.message}") from ve

    env_value = environment or data.get("environment", Environment.PRODUCTION.value)
    try:
        env = Environment(env_value)
    except ValueError:
        raise InvalidSpec(f"Unknown environment '{env_value}'")

    network = data.get("network", {})
    kwargs = {
        "name": data["name"],
        "environment": env,
        "manager_count": data["managers"],
        "edge_count": data.get("edge", 1),
        "worker_count": data.get("workers", 1),
        "server_types": dict(data.get("server_types", {})),
    }
    optional = {
        "network_cidr": network.get("cidr"),
        "management_subnet": network.get("management_subnet"),
        "application_subnet": network.get("application_subnet"),
        "location": data.get("location"),
        "image": data.get("image"),
    }
    kwargs.update({k: v for k, v in optional.items() if v is not None})
    if "admin_cidrs" in data:
        kwargs["admin_cidrs"] = tuple(data["admin_cidrs"])
    return ClusterSpec(**kwargs)


def load_spec(path: str, environment: str = None) -> ClusterSpec:
    """Read and validate a cluster YAML file."""
    cluster_path = Path(path).expanduser()
    if not cluster_path.exists():
        raise InvalidSpec(f"Cluster definition not found: {cluster_path}")
    with open(cluster_path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidSpec(f"Cannot parse {cluster_path}: {e}") from e
    logger.info(f"📄 Loaded config from {cluster_path}")
    return spec_from_dict(data, environment)
