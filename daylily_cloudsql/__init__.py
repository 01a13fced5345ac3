"""
daylily-cloudsql: Cloud SQL for PostgreSQL plan resolver

Turns a declarative, partially-specified deployment request (sizing preset,
databases, users, replicas, networking, backup/HA, tuning) into a validated,
internally-consistent provisioning plan, plus derived outputs such as
connection strings and secret references.

Example:
    from daylily_cloudsql import derive_outputs, load_request, resolve

    plan = resolve(load_request("config/request.yaml"))
    outputs = derive_outputs(plan)
    print(outputs.connection_strings["app_db"])
"""

try:
    from daylily_cloudsql._version import __version__
except ImportError:
    __version__ = "0.0.0.dev0"
from daylily_cloudsql.config import load_request
from daylily_cloudsql.errors import PlanValidationError
from daylily_cloudsql.models import (
    DatabaseSpec,
    DerivedOutputs,
    NetworkRule,
    ReplicaSpec,
    Request,
    ResolvedPlan,
    ResolvedSizing,
    UserSpec,
)
from daylily_cloudsql.outputs import derive_outputs
from daylily_cloudsql.resolver import Resolver, resolve

__all__ = [
    "__version__",
    # Entry points
    "Resolver",
    "resolve",
    "derive_outputs",
    "load_request",
    # Models
    "Request",
    "DatabaseSpec",
    "UserSpec",
    "ReplicaSpec",
    "NetworkRule",
    "ResolvedPlan",
    "ResolvedSizing",
    "DerivedOutputs",
    # Errors
    "PlanValidationError",
]
