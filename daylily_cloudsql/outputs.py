"""Convenience outputs computed from a ``ResolvedPlan``.

Connection strings are SQLAlchemy URLs that reach the instance through the
Cloud SQL Auth Proxy unix socket
(``postgresql+psycopg2://<user>@/<db>?host=/cloudsql/<connection-name>``).
No password is ever embedded; callers fetch it from the user's secret.

When the plan asks for a random instance-name suffix the final name is not
known yet, so the instance segment is rendered as ``<name>-{suffix}`` for the
provisioning layer to fill in.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from types import MappingProxyType

from sqlalchemy.engine import URL

from daylily_cloudsql.models.plan import DerivedOutputs, ResolvedPlan, SecretSource

logger = logging.getLogger(__name__)

DRIVERNAME = "postgresql+psycopg2"
DEFAULT_DB_USER = "postgres"
SUFFIX_PLACEHOLDER = "{suffix}"
DASHBOARD_URL = (
    "https://console.cloud.google.com/sql/instances/{instance}/overview?project={project}"
)

_ROLE_GRANTS = {
    "admin": [
        "GRANT ALL PRIVILEGES ON DATABASE {db} TO {user};",
        "GRANT ALL ON SCHEMA public TO {user};",
        "GRANT ALL PRIVILEGES ON ALL TABLES IN SCHEMA public TO {user};",
        "GRANT ALL PRIVILEGES ON ALL SEQUENCES IN SCHEMA public TO {user};",
        "ALTER DEFAULT PRIVILEGES IN SCHEMA public GRANT ALL ON TABLES TO {user};",
    ],
    "readwrite": [
        "GRANT CONNECT, TEMPORARY ON DATABASE {db} TO {user};",
        "GRANT USAGE, CREATE ON SCHEMA public TO {user};",
        "GRANT SELECT, INSERT, UPDATE, DELETE ON ALL TABLES IN SCHEMA public TO {user};",
        "GRANT USAGE, SELECT ON ALL SEQUENCES IN SCHEMA public TO {user};",
        "ALTER DEFAULT PRIVILEGES IN SCHEMA public "
        "GRANT SELECT, INSERT, UPDATE, DELETE ON TABLES TO {user};",
    ],
    "readonly": [
        "GRANT CONNECT ON DATABASE {db} TO {user};",
        "GRANT USAGE ON SCHEMA public TO {user};",
        "GRANT SELECT ON ALL TABLES IN SCHEMA public TO {user};",
        "ALTER DEFAULT PRIVILEGES IN SCHEMA public GRANT SELECT ON TABLES TO {user};",
    ],
}


def quote_ident(name: str) -> str:
    """Quote a PostgreSQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def instance_name_template(plan: ResolvedPlan) -> str:
    if plan.use_random_suffix:
        return f"{plan.instance_name}-{SUFFIX_PLACEHOLDER}"
    return plan.instance_name


def connection_name(plan: ResolvedPlan) -> str:
    """``<project>:<region>:<instance>`` as used by the Auth Proxy."""
    return f"{plan.project_id}:{plan.region}:{instance_name_template(plan)}"


def owner_user(plan: ResolvedPlan) -> str:
    """User embedded in connection strings: first admin, else first user."""
    for user in plan.users:
        if user.role == "admin":
            return user.name
    if plan.users:
        return plan.users[0].name
    return DEFAULT_DB_USER


def build_connection_url(*, database: str, user: str, conn_name: str) -> str:
    # The socket path is appended unencoded so a ``{suffix}`` placeholder in
    # the connection name stays substitutable.
    url = URL.create(DRIVERNAME, username=user, database=database)
    return f"{url.render_as_string(hide_password=False)}?host=/cloudsql/{conn_name}"


def build_permission_script(plan: ResolvedPlan) -> str:
    """SQL that grants each user its role's privileges and creates extensions.

    Intended to be run with ``psql`` as a ``cloudsqlsuperuser`` member after
    the instance, databases and users exist.
    """
    lines = [f"-- Permissions for Cloud SQL instance {plan.instance_name}"]
    for db in plan.databases:
        lines.append("")
        lines.append(f"\\connect {quote_ident(db.name)}")
        for ext in plan.extensions:
            lines.append(f"CREATE EXTENSION IF NOT EXISTS {quote_ident(ext)};")
        for user in plan.users:
            lines.append(f"-- {user.name} ({user.role})")
            for stmt in _ROLE_GRANTS[user.role]:
                lines.append(stmt.format(db=quote_ident(db.name), user=quote_ident(user.name)))
    return "\n".join(lines) + "\n"


def derive_outputs(plan: ResolvedPlan) -> DerivedOutputs:
    """Compute the convenience outputs for ``plan``.  Never fails."""
    conn_name = connection_name(plan)
    owner = owner_user(plan)

    connection_strings = {
        db.name: build_connection_url(database=db.name, user=owner, conn_name=conn_name)
        for db in plan.databases
    }
    user_secret_ids = {
        u.name: u.secret.secret_id
        for u in plan.users
        if u.secret.source is SecretSource.SECRET_MANAGER and u.secret.secret_id
    }

    topology: dict[str, list[str]] = defaultdict(list)
    for replica in plan.read_replicas:
        topology[replica.region].append(replica.name)
    failover = next((r.name for r in plan.read_replicas if r.failover_target), None)

    postgres_info = {
        "engine_version": plan.engine_version,
        "edition": plan.sizing.edition,
        "machine_type": plan.sizing.machine_type,
        "disk_size_gb": plan.sizing.disk_size_gb,
        "disk_type": plan.disk.disk_type,
        "availability_type": plan.sizing.availability_type,
        "extensions": plan.extensions,
    }

    logger.debug("Derived outputs for %s (%d connection strings)", conn_name, len(connection_strings))
    return DerivedOutputs(
        connection_name=conn_name,
        database_names=tuple(db.name for db in plan.databases),
        connection_strings=MappingProxyType(connection_strings),
        user_secret_ids=MappingProxyType(user_secret_ids),
        replica_topology=MappingProxyType(
            {region: tuple(sorted(names)) for region, names in sorted(topology.items())}
        ),
        failover_replica=failover,
        cloud_sql_proxy_command=f"cloud-sql-proxy {conn_name}",
        metrics_dashboard_url=DASHBOARD_URL.format(
            instance=instance_name_template(plan), project=plan.project_id
        ),
        permission_script=build_permission_script(plan),
        postgres_info=MappingProxyType(postgres_info),
    )
