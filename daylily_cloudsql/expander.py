"""Expand the request's entity maps into normalized plan records.

Each ``expand_*`` function takes the ``(name, spec)`` pairs from the request,
checks names once for validity and uniqueness, applies per-entity defaults,
and returns records sorted by name.  Errors are attributed to the entity,
e.g. ``users.app_user.role``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from random import Random

from daylily_cloudsql.credentials import resolve_secret
from daylily_cloudsql.errors import MultipleFailoverTargetsError
from daylily_cloudsql.models.plan import ResolvedDatabase, ResolvedReplica, ResolvedUser
from daylily_cloudsql.models.request import DatabaseSpec, ReplicaSpec, UserSpec
from daylily_cloudsql.validation import catalog
from daylily_cloudsql.validation.validators import (
    ensure_unique,
    validate_choice,
    validate_instance_name,
    validate_non_empty,
    validate_role,
    validate_sql_name,
)

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "UTF8"
DEFAULT_COLLATION = "en_US.UTF8"


def _checked_names(pairs: Sequence[tuple[str, object]], map_name: str, validate) -> list[str]:
    names = [name for name, _ in pairs]
    for name in names:
        validate(name, f"{map_name}.{name}")
    ensure_unique(names, map_name)
    return names


def expand_databases(pairs: Sequence[tuple[str, DatabaseSpec]]) -> tuple[ResolvedDatabase, ...]:
    _checked_names(pairs, "databases", validate_sql_name)
    records = [
        ResolvedDatabase(
            name=name,
            charset=spec.charset or DEFAULT_CHARSET,
            collation=spec.collation or DEFAULT_COLLATION,
        )
        for name, spec in sorted(pairs, key=lambda p: p[0])
    ]
    logger.debug("Expanded %d database(s)", len(records))
    return tuple(records)


def expand_users(
    pairs: Sequence[tuple[str, UserSpec]],
    *,
    default_password_length: int,
    store_in_secret_manager: bool,
    instance_name: str,
    project_id: str,
    rng: Random | None = None,
) -> tuple[ResolvedUser, ...]:
    """Validate roles and resolve a secret for every user.

    Users are processed in name order so a seeded ``rng`` gives stable
    passwords regardless of how the request listed them.
    """
    _checked_names(pairs, "users", validate_sql_name)
    records: list[ResolvedUser] = []
    for name, spec in sorted(pairs, key=lambda p: p[0]):
        role = validate_role(spec.role, f"users.{name}.role")
        secret = resolve_secret(
            name,
            spec,
            default_length=default_password_length,
            store_in_secret_manager=store_in_secret_manager,
            instance_name=instance_name,
            project_id=project_id,
            rng=rng,
        )
        records.append(ResolvedUser(name=name, role=role, secret=secret))
    logger.debug("Expanded %d user(s)", len(records))
    return tuple(records)


def expand_replicas(
    pairs: Sequence[tuple[str, ReplicaSpec]],
    *,
    instance_name: str,
    primary_machine_type: str,
) -> tuple[ResolvedReplica, ...]:
    """Normalize read replicas.

    Replicas may live in the primary's region.  At most one replica may be
    the failover target.
    """
    _checked_names(pairs, "read_replicas", validate_instance_name)
    records: list[ResolvedReplica] = []
    failover: str | None = None
    for name, spec in sorted(pairs, key=lambda p: p[0]):
        path = f"read_replicas.{name}"
        region = validate_non_empty(spec.region, f"{path}.region")
        availability = validate_choice(
            spec.availability_type, catalog.AVAILABILITY_TYPES, f"{path}.availability_type"
        )
        if spec.failover_target:
            if failover is not None:
                raise MultipleFailoverTargetsError(
                    f"{path}.failover_target",
                    True,
                    f"replica {failover!r} is already the failover target",
                )
            failover = name
        replica_instance = f"{instance_name}-{name}"
        validate_instance_name(replica_instance, f"{path}.instance_name")
        records.append(
            ResolvedReplica(
                name=name,
                instance_name=replica_instance,
                region=region,
                availability_type=availability,
                failover_target=spec.failover_target,
                machine_type=spec.machine_type or primary_machine_type,
            )
        )
    logger.debug("Expanded %d read replica(s); failover target: %s", len(records), failover)
    return tuple(records)
