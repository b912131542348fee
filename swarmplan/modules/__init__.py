"""
Infrastructure planning modules.
"""
from .swarm import ClusterSpec, plan, load_spec

__all__ = [
    'ClusterSpec',
    'plan',
    'load_spec',
]
