"""
Docker Swarm topology planning.

    spec = ClusterSpec(name="web", manager_count=3, edge_count=2, worker_count=5)
    cluster = plan(spec)
"""
from .errors import (
    ExecutionError,
    InvalidCIDR,
    InvalidSpec,
    PlanningError,
    RangeExhausted,
    SwarmPlanError,
)
from .models import ClusterPlan, ClusterSpec, Environment, FirewallRule, NodeRole, NodeSpec
from .planner import plan, validate_spec
from .spec import load_spec, spec_from_dict

__all__ = [
    'ClusterPlan',
    'ClusterSpec',
    'Environment',
    'ExecutionError',
    'FirewallRule',
    'InvalidCIDR',
    'InvalidSpec',
    'NodeRole',
    'NodeSpec',
    'PlanningError',
    'RangeExhausted',
    'SwarmPlanError',
    'load_spec',
    'plan',
    'spec_from_dict',
    'validate_spec',
]
