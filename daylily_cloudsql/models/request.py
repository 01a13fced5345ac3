"""Structured input for a Cloud SQL PostgreSQL deployment request.

The request is permissive about *values* (those are checked by
the resolver, which reports typed errors with field paths) and strict about
*shape*: unknown keys and wrongly-typed fields are rejected here.

Entity maps (databases, users, read replicas) are kept as ordered
``(name, spec)`` pairs rather than dicts so a repeated name survives parsing
and can be reported as a ``DuplicateIdentifier`` instead of being silently
overwritten.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from daylily_cloudsql.errors import InvalidRequestError
from daylily_cloudsql.validation.catalog import DEFAULT_ENGINE_VERSION


def _as_pairs(value: Any) -> Any:
    """Accept a mapping or a sequence of ``(name, spec)`` pairs."""
    if value is None:
        return ()
    if isinstance(value, Mapping):
        value = value.items()
    elif isinstance(value, (str, bytes)):
        return value
    try:
        # A bare name (``app_db:`` in YAML) means "all defaults".
        return tuple((name, {} if spec is None else spec) for name, spec in value)
    except (TypeError, ValueError):
        return value


def _flag_value(value: Any) -> str:
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


class DatabaseSpec(BaseModel):
    """One logical database on the instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    charset: str | None = None
    collation: str | None = None


class UserSpec(BaseModel):
    """One built-in database user."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    role: str
    password_length: int | None = None
    password_secret_ref: str | None = None


class ReplicaSpec(BaseModel):
    """One read replica of the primary instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    region: str
    availability_type: str = "ZONAL"
    failover_target: bool = False
    machine_type: str | None = None


class NetworkRule(BaseModel):
    """An authorized network allowed to reach the public IP."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    cidr: str


class Request(BaseModel):
    """A partially-specified deployment request.

    Sizing fields left as ``None`` fall through to the preset (or to the
    system default when no preset is named).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Instance
    instance_name: str
    project_id: str
    region: str
    engine_version: str = DEFAULT_ENGINE_VERSION
    use_random_suffix: bool = False
    deletion_protection: bool = True

    # Sizing
    preset_name: str | None = None
    machine_type: str | None = None
    disk_size_gb: int | None = None
    edition: str | None = None
    availability_type: str | None = None
    disk_type: str = "PD_SSD"
    disk_autoresize: bool = True
    disk_autoresize_limit_gb: int | None = None
    data_cache_enabled: bool = False

    # Entities
    databases: tuple[tuple[str, DatabaseSpec], ...] = ()
    users: tuple[tuple[str, UserSpec], ...] = ()
    read_replicas: tuple[tuple[str, ReplicaSpec], ...] = ()

    # Network
    ipv4_enabled: bool = True
    private_network: str | None = None
    ssl_mode: str = "ENCRYPTED_ONLY"
    authorized_networks: tuple[NetworkRule, ...] = ()

    # Backup / PITR
    backup_enabled: bool = True
    backup_start_time: str = "03:00"
    backup_location: str | None = None
    backup_retention_days: int = 7
    point_in_time_recovery: bool = True
    transaction_log_retention_days: int = 7

    # Query insights
    query_insights_enabled: bool = True
    query_string_length: int = 1024
    record_application_tags: bool = False
    record_client_address: bool = False
    query_plans_per_minute: int = 5

    # Maintenance (day 1 = Monday)
    maintenance_window_day: int = 7
    maintenance_window_hour: int = 3
    maintenance_window_update_track: str = "stable"

    # Engine tuning
    auto_generate_performance_flags: bool = False
    max_connections: int | None = None
    database_flags: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    postgresql_extensions: tuple[str, ...] = ()

    # Secrets
    store_passwords_in_secret_manager: bool = False
    default_password_length: int = 32

    labels: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    @field_validator("databases", "users", "read_replicas", mode="before")
    @classmethod
    def _entity_pairs(cls, v: Any) -> Any:
        return _as_pairs(v)

    @field_validator("authorized_networks", "postgresql_extensions", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return () if v is None else v

    @field_validator("database_flags", mode="before")
    @classmethod
    def _flags_as_strings(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, Mapping):
            return {str(k): _flag_value(val) for k, val in v.items()}
        return v

    @field_validator("labels", mode="before")
    @classmethod
    def _labels_as_strings(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, Mapping):
            return {str(k): str(val) for k, val in v.items()}
        return v

    @field_validator("database_flags", "labels")
    @classmethod
    def _read_only(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @field_validator("max_connections", mode="before")
    @classmethod
    def _max_connections_from_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return None
            if not s.isdigit():
                raise ValueError("max_connections must be a whole number")
            return int(s)
        return v

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Request:
        """Build a ``Request`` from a plain mapping (e.g. parsed YAML).

        Shape errors are reported as ``InvalidRequestError``.
        """
        if not isinstance(data, Mapping):
            raise InvalidRequestError(
                "", type(data).__name__, "request root must be a mapping"
            )
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            path = ".".join(str(p) for p in first.get("loc", ()) if p is not None)
            raise InvalidRequestError(
                path, first.get("input"), format_validation_error(e)
            ) from e


def format_validation_error(e: ValidationError) -> str:
    """Return a compact, human-friendly error summary."""

    parts: list[str] = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", []) if p is not None)
        msg = err.get("msg", "invalid")
        if loc:
            parts.append(f"{loc}: {msg}")
        else:
            parts.append(str(msg))
    return "; ".join(parts) if parts else str(e)
