"""Request and plan models."""

from daylily_cloudsql.models.plan import (
    BackupSettings,
    DerivedOutputs,
    DiskSettings,
    InsightsSettings,
    MaintenanceWindow,
    NetworkSettings,
    ResolvedDatabase,
    ResolvedPlan,
    ResolvedReplica,
    ResolvedSizing,
    ResolvedUser,
    SecretResolution,
    SecretSource,
)
from daylily_cloudsql.models.request import (
    DatabaseSpec,
    NetworkRule,
    ReplicaSpec,
    Request,
    UserSpec,
)

__all__ = [
    # Input
    "Request",
    "DatabaseSpec",
    "UserSpec",
    "ReplicaSpec",
    "NetworkRule",
    # Plan
    "ResolvedPlan",
    "ResolvedSizing",
    "DiskSettings",
    "ResolvedDatabase",
    "ResolvedUser",
    "ResolvedReplica",
    "SecretResolution",
    "SecretSource",
    "NetworkSettings",
    "BackupSettings",
    "InsightsSettings",
    "MaintenanceWindow",
    "DerivedOutputs",
]
