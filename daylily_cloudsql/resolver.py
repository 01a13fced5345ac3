"""Resolve a deployment ``Request`` into a ``ResolvedPlan``.

Resolution runs in a fixed order and stops at the first failure:

1. instance scalars (name, project, region, engine version)
2. sizing (preset -> explicit overrides -> disk checks)
3. engine flags (derived and/or explicit, plus extension requirements)
4. entities (databases, users, read replicas)
5. network rules and cross-field settings (backup, insights, maintenance,
   labels)
6. assembly

No partial plan is ever returned.  Apart from password generation, which
draws from the injected random source, resolution is deterministic.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Mapping
from random import Random
from types import MappingProxyType
from typing import Any

from daylily_cloudsql import flags as flag_rules
from daylily_cloudsql.errors import ConflictingSettingsError, InvalidSettingError
from daylily_cloudsql.expander import expand_databases, expand_replicas, expand_users
from daylily_cloudsql.models.plan import (
    BackupSettings,
    DiskSettings,
    InsightsSettings,
    MaintenanceWindow,
    NetworkSettings,
    ResolvedPlan,
    ResolvedSizing,
)
from daylily_cloudsql.models.request import NetworkRule, Request
from daylily_cloudsql.presets import SizingOverrides, resolve_sizing
from daylily_cloudsql.validation import catalog
from daylily_cloudsql.validation.validators import (
    ensure_unique,
    validate_cidr,
    validate_choice,
    validate_disk,
    validate_engine_version,
    validate_extensions,
    validate_instance_name,
    validate_labels,
    validate_network_name,
    validate_non_empty,
    validate_range,
    validate_time_of_day,
)

logger = logging.getLogger(__name__)

MANAGED_BY_LABEL = ("managed-by", "daylily-cloudsql")


class Resolver:
    """Turns requests into plans.

    Args:
        rng: Random source for password generation.  Defaults to
            ``secrets.SystemRandom()``; tests pass a seeded ``random.Random``.
    """

    def __init__(self, rng: Random | None = None) -> None:
        self._rng = rng or secrets.SystemRandom()

    def resolve(self, request: Request | Mapping[str, Any]) -> ResolvedPlan:
        if not isinstance(request, Request):
            request = Request.from_mapping(request)

        # 1. Instance scalars
        instance_name = validate_instance_name(request.instance_name)
        project_id = validate_non_empty(request.project_id, "project_id")
        region = validate_non_empty(request.region, "region")
        engine_version = validate_engine_version(request.engine_version)

        # 2. Sizing
        sizing = self._resolve_sizing(request)
        disk = DiskSettings(
            disk_type=validate_choice(request.disk_type, catalog.DISK_TYPES, "disk_type"),
            autoresize=request.disk_autoresize,
            autoresize_limit_gb=request.disk_autoresize_limit_gb or 0,
        )
        validate_disk(
            sizing.disk_size_gb,
            autoresize=disk.autoresize,
            autoresize_limit_gb=disk.autoresize_limit_gb,
        )

        # 3. Flags and extensions
        extensions = validate_extensions(request.postgresql_extensions)
        performance_flags, database_flags = self._resolve_flags(request, sizing, extensions)

        # 4. Entities
        databases = expand_databases(request.databases)
        users = expand_users(
            request.users,
            default_password_length=request.default_password_length,
            store_in_secret_manager=request.store_passwords_in_secret_manager,
            instance_name=instance_name,
            project_id=project_id,
            rng=self._rng,
        )
        replicas = expand_replicas(
            request.read_replicas,
            instance_name=instance_name,
            primary_machine_type=sizing.machine_type,
        )

        # 5. Network and cross-field settings
        network = self._resolve_network(request)
        backup = self._resolve_backup(request, sizing)
        insights = self._resolve_insights(request)
        maintenance = self._resolve_maintenance(request)
        if request.data_cache_enabled and sizing.edition != "ENTERPRISE_PLUS":
            raise ConflictingSettingsError(
                "data_cache_enabled", True, "data cache requires the ENTERPRISE_PLUS edition"
            )
        labels = dict([MANAGED_BY_LABEL])
        labels.update(validate_labels(request.labels))

        # 6. Assembly
        plan = ResolvedPlan(
            instance_name=instance_name,
            project_id=project_id,
            region=region,
            engine_version=engine_version,
            sizing=sizing,
            disk=disk,
            use_random_suffix=request.use_random_suffix,
            deletion_protection=request.deletion_protection,
            performance_flags=performance_flags,
            database_flags=database_flags,
            extensions=extensions,
            data_cache_enabled=request.data_cache_enabled,
            databases=databases,
            users=users,
            read_replicas=replicas,
            network=network,
            backup=backup,
            insights=insights,
            maintenance=maintenance,
            labels=MappingProxyType(dict(sorted(labels.items()))),
            store_passwords_in_secret_manager=request.store_passwords_in_secret_manager,
        )
        logger.debug(
            "Resolved plan for %s: %d database(s), %d user(s), %d replica(s)",
            instance_name,
            len(databases),
            len(users),
            len(replicas),
        )
        return plan

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _resolve_sizing(self, request: Request) -> ResolvedSizing:
        sizing = resolve_sizing(
            request.preset_name,
            SizingOverrides(
                machine_type=request.machine_type,
                disk_size_gb=request.disk_size_gb,
                edition=request.edition,
                availability_type=request.availability_type,
            ),
        )
        validate_non_empty(sizing.machine_type, "machine_type")
        validate_choice(sizing.edition, catalog.EDITIONS, "edition")
        validate_choice(sizing.availability_type, catalog.AVAILABILITY_TYPES, "availability_type")
        return sizing

    def _resolve_flags(
        self,
        request: Request,
        sizing: ResolvedSizing,
        extensions: tuple[str, ...],
    ) -> tuple[Mapping[str, str], Mapping[str, str]]:
        if request.max_connections is not None:
            validate_range(request.max_connections, catalog.MAX_CONNECTIONS, "max_connections")
        for name in request.database_flags:
            validate_non_empty(name, "database_flags")
        explicit_connections = request.database_flags.get("max_connections")
        if explicit_connections is not None:
            path = "database_flags.max_connections"
            if not explicit_connections.strip().isdigit():
                raise InvalidSettingError(path, explicit_connections, "must be a whole number")
            validate_range(int(explicit_connections), catalog.MAX_CONNECTIONS, path)

        required = flag_rules.extension_flags(extensions)
        for name, value in required.items():
            explicit = request.database_flags.get(name)
            if explicit is not None and explicit.strip().lower() != value:
                raise ConflictingSettingsError(
                    f"database_flags.{name}",
                    explicit,
                    f"the requested extensions need {name}={value}",
                )

        performance = flag_rules.resolve_performance_flags(
            sizing,
            auto_generate=request.auto_generate_performance_flags,
            explicit=request.database_flags,
            max_connections=request.max_connections,
        )
        logger.debug(
            "Performance flags %s: %s",
            "auto-generated" if request.auto_generate_performance_flags else "explicit",
            sorted(performance),
        )
        combined = flag_rules.merge_flags(
            performance,
            required,
            request.database_flags,
        )
        return performance, MappingProxyType(combined)

    def _resolve_network(self, request: Request) -> NetworkSettings:
        rules: list[NetworkRule] = []
        for rule in request.authorized_networks:
            name = validate_network_name(rule.name, f"authorized_networks.{rule.name}")
            cidr = validate_cidr(rule.cidr, f"authorized_networks.{rule.name}")
            rules.append(NetworkRule(name=name, cidr=cidr))
        ensure_unique((r.name for r in rules), "authorized_networks")

        if rules and not request.ipv4_enabled:
            raise ConflictingSettingsError(
                "authorized_networks",
                [r.name for r in rules],
                "authorized networks require ipv4_enabled",
            )
        private_network = request.private_network.strip() if request.private_network else None
        if not request.ipv4_enabled and not private_network:
            raise ConflictingSettingsError(
                "ipv4_enabled",
                False,
                "an instance without a public IP needs a private_network",
            )
        return NetworkSettings(
            ipv4_enabled=request.ipv4_enabled,
            private_network=private_network,
            ssl_mode=validate_choice(request.ssl_mode, catalog.SSL_MODES, "ssl_mode"),
            authorized_networks=tuple(sorted(rules, key=lambda r: r.name)),
        )

    def _resolve_backup(self, request: Request, sizing: ResolvedSizing) -> BackupSettings:
        if request.point_in_time_recovery and not request.backup_enabled:
            raise ConflictingSettingsError(
                "point_in_time_recovery",
                True,
                "point-in-time recovery requires backup_enabled",
            )
        validate_time_of_day(request.backup_start_time, "backup_start_time")
        validate_range(
            request.backup_retention_days, catalog.BACKUP_RETENTION_DAYS, "backup_retention_days"
        )
        validate_range(
            request.transaction_log_retention_days,
            catalog.TRANSACTION_LOG_RETENTION_DAYS[sizing.edition],
            "transaction_log_retention_days",
        )
        return BackupSettings(
            enabled=request.backup_enabled,
            start_time=request.backup_start_time,
            location=request.backup_location or None,
            retention_days=request.backup_retention_days,
            point_in_time_recovery=request.point_in_time_recovery,
            transaction_log_retention_days=request.transaction_log_retention_days,
        )

    def _resolve_insights(self, request: Request) -> InsightsSettings:
        validate_range(request.query_string_length, catalog.QUERY_STRING_LENGTH, "query_string_length")
        validate_range(
            request.query_plans_per_minute, catalog.QUERY_PLANS_PER_MINUTE, "query_plans_per_minute"
        )
        return InsightsSettings(
            enabled=request.query_insights_enabled,
            query_string_length=request.query_string_length,
            record_application_tags=request.record_application_tags,
            record_client_address=request.record_client_address,
            query_plans_per_minute=request.query_plans_per_minute,
        )

    def _resolve_maintenance(self, request: Request) -> MaintenanceWindow:
        return MaintenanceWindow(
            day=validate_range(request.maintenance_window_day, catalog.MAINTENANCE_DAY, "maintenance_window_day"),
            hour=validate_range(
                request.maintenance_window_hour, catalog.MAINTENANCE_HOUR, "maintenance_window_hour"
            ),
            update_track=validate_choice(
                request.maintenance_window_update_track,
                catalog.UPDATE_TRACKS,
                "maintenance_window_update_track",
            ),
        )


def resolve(request: Request | Mapping[str, Any], rng: Random | None = None) -> ResolvedPlan:
    """Resolve ``request`` with a fresh ``Resolver``."""
    return Resolver(rng=rng).resolve(request)
