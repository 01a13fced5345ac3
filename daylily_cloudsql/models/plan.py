"""Resolved, fully-validated provisioning plan.

A ``ResolvedPlan`` is what the provisioning layer consumes.  Every dataclass
here is frozen and every collection is a tuple or a read-only mapping, so a
plan can be shared between consumers without copying.  Entity tuples are
sorted by name; use the ``*_by_name`` helpers for keyed access.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from daylily_cloudsql.models.request import NetworkRule


def _frozen(mapping: Mapping[str, str] | None = None) -> Mapping[str, str]:
    return MappingProxyType(dict(sorted((mapping or {}).items())))


class SecretSource(str, Enum):
    EXPLICIT = "explicit"
    GENERATED = "generated"
    SECRET_MANAGER = "secret_manager"


@dataclass(frozen=True)
class ResolvedSizing:
    machine_type: str
    disk_size_gb: int
    edition: str
    availability_type: str


@dataclass(frozen=True)
class DiskSettings:
    disk_type: str = "PD_SSD"
    autoresize: bool = True
    autoresize_limit_gb: int = 0


@dataclass(frozen=True)
class SecretResolution:
    """How a user's password is obtained.

    Attributes:
        source: Where the password comes from.
        password: Generated password; ``None`` for explicit references.  Never
            included in ``repr``.
        secret_id: Secret Manager secret id, when one is allocated.
        secret_ref: Fully-qualified secret reference
            (``projects/<project>/secrets/<id>``) or the caller's explicit
            reference.
    """

    source: SecretSource
    password: str | None = field(default=None, repr=False)
    secret_id: str | None = None
    secret_ref: str | None = None


@dataclass(frozen=True)
class ResolvedDatabase:
    name: str
    charset: str
    collation: str


@dataclass(frozen=True)
class ResolvedUser:
    name: str
    role: str
    secret: SecretResolution


@dataclass(frozen=True)
class ResolvedReplica:
    name: str
    instance_name: str
    region: str
    availability_type: str
    failover_target: bool
    machine_type: str


@dataclass(frozen=True)
class NetworkSettings:
    ipv4_enabled: bool = True
    private_network: str | None = None
    ssl_mode: str = "ENCRYPTED_ONLY"
    authorized_networks: tuple[NetworkRule, ...] = ()


@dataclass(frozen=True)
class BackupSettings:
    enabled: bool = True
    start_time: str = "03:00"
    location: str | None = None
    retention_days: int = 7
    point_in_time_recovery: bool = True
    transaction_log_retention_days: int = 7


@dataclass(frozen=True)
class InsightsSettings:
    enabled: bool = True
    query_string_length: int = 1024
    record_application_tags: bool = False
    record_client_address: bool = False
    query_plans_per_minute: int = 5


@dataclass(frozen=True)
class MaintenanceWindow:
    day: int = 7
    hour: int = 3
    update_track: str = "stable"


@dataclass(frozen=True)
class ResolvedPlan:
    """A complete, internally-consistent Cloud SQL PostgreSQL plan."""

    instance_name: str
    project_id: str
    region: str
    engine_version: str
    sizing: ResolvedSizing
    disk: DiskSettings = field(default_factory=DiskSettings)
    use_random_suffix: bool = False
    deletion_protection: bool = True
    performance_flags: Mapping[str, str] = field(default_factory=_frozen)
    database_flags: Mapping[str, str] = field(default_factory=_frozen)
    extensions: tuple[str, ...] = ()
    data_cache_enabled: bool = False
    databases: tuple[ResolvedDatabase, ...] = ()
    users: tuple[ResolvedUser, ...] = ()
    read_replicas: tuple[ResolvedReplica, ...] = ()
    network: NetworkSettings = field(default_factory=NetworkSettings)
    backup: BackupSettings = field(default_factory=BackupSettings)
    insights: InsightsSettings = field(default_factory=InsightsSettings)
    maintenance: MaintenanceWindow = field(default_factory=MaintenanceWindow)
    labels: Mapping[str, str] = field(default_factory=_frozen)
    store_passwords_in_secret_manager: bool = False

    @property
    def databases_by_name(self) -> dict[str, ResolvedDatabase]:
        return {d.name: d for d in self.databases}

    @property
    def users_by_name(self) -> dict[str, ResolvedUser]:
        return {u.name: u for u in self.users}

    @property
    def replicas_by_name(self) -> dict[str, ResolvedReplica]:
        return {r.name: r for r in self.read_replicas}

    def summary(self) -> dict[str, Any]:
        """Return a JSON-friendly view of the plan with secrets left out."""
        return {
            "instance_name": self.instance_name,
            "project_id": self.project_id,
            "region": self.region,
            "engine_version": self.engine_version,
            "sizing": {
                "machine_type": self.sizing.machine_type,
                "disk_size_gb": self.sizing.disk_size_gb,
                "edition": self.sizing.edition,
                "availability_type": self.sizing.availability_type,
            },
            "database_flags": dict(self.database_flags),
            "extensions": list(self.extensions),
            "databases": [d.name for d in self.databases],
            "users": {u.name: u.role for u in self.users},
            "read_replicas": {r.name: r.region for r in self.read_replicas},
            "labels": dict(self.labels),
        }


@dataclass(frozen=True)
class DerivedOutputs:
    """Convenience values computed from a ``ResolvedPlan``."""

    connection_name: str
    database_names: tuple[str, ...]
    connection_strings: Mapping[str, str]
    user_secret_ids: Mapping[str, str]
    replica_topology: Mapping[str, tuple[str, ...]]
    failover_replica: str | None
    cloud_sql_proxy_command: str
    metrics_dashboard_url: str
    permission_script: str
    postgres_info: Mapping[str, Any]
