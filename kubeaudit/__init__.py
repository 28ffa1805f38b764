"""Cluster version, node role and check selection for Kubernetes benchmark runs."""

__version__ = "0.1.0"

from .errors import KubeAuditError
from .roles import has_role, is_master, is_node, load_roles
from .schemas import FilterOpts, RoleSpec, VersionDocument, VersionMapRule
from .selection import compile_filter, select_checks
from .version import (
    VersionResolver,
    get_kube_version_from_rest_api,
    load_version_mapping,
    map_to_benchmark_version,
)

__all__ = [
    "FilterOpts",
    "KubeAuditError",
    "RoleSpec",
    "VersionDocument",
    "VersionMapRule",
    "VersionResolver",
    "compile_filter",
    "get_kube_version_from_rest_api",
    "has_role",
    "is_master",
    "is_node",
    "load_roles",
    "load_version_mapping",
    "map_to_benchmark_version",
    "select_checks",
]
