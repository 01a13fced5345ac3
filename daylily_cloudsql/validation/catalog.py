"""Fixed catalogs of values Cloud SQL for PostgreSQL accepts.

These are immutable module-level constants; nothing in the package mutates
them, so concurrent resolutions can share them freely.
"""

from __future__ import annotations

from types import MappingProxyType

SUPPORTED_ENGINE_VERSIONS = frozenset(
    {
        "POSTGRES_12",
        "POSTGRES_13",
        "POSTGRES_14",
        "POSTGRES_15",
        "POSTGRES_16",
    }
)
DEFAULT_ENGINE_VERSION = "POSTGRES_15"

ROLES = ("admin", "readwrite", "readonly")

EDITIONS = frozenset({"ENTERPRISE", "ENTERPRISE_PLUS"})
AVAILABILITY_TYPES = frozenset({"ZONAL", "REGIONAL"})
DISK_TYPES = frozenset({"PD_SSD", "PD_HDD"})
SSL_MODES = frozenset(
    {
        "ALLOW_UNENCRYPTED_AND_ENCRYPTED",
        "ENCRYPTED_ONLY",
        "TRUSTED_CLIENT_CERTIFICATE_REQUIRED",
    }
)
UPDATE_TRACKS = frozenset({"stable", "canary", "week5"})

MIN_DISK_SIZE_GB = 10
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

# Inclusive ranges for numeric settings.
BACKUP_RETENTION_DAYS = (1, 365)
TRANSACTION_LOG_RETENTION_DAYS = {
    "ENTERPRISE": (1, 7),
    "ENTERPRISE_PLUS": (1, 35),
}
QUERY_STRING_LENGTH = (256, 4500)
QUERY_PLANS_PER_MINUTE = (0, 20)
MAINTENANCE_DAY = (1, 7)
MAINTENANCE_HOUR = (0, 23)
MAX_CONNECTIONS = (14, 262143)

SUPPORTED_EXTENSIONS = frozenset(
    {
        "address_standardizer",
        "address_standardizer_data_us",
        "amcheck",
        "bloom",
        "btree_gin",
        "btree_gist",
        "citext",
        "cube",
        "dblink",
        "dict_int",
        "dict_xsyn",
        "earthdistance",
        "fuzzystrmatch",
        "hstore",
        "intagg",
        "intarray",
        "isn",
        "lo",
        "ltree",
        "pg_buffercache",
        "pg_cron",
        "pg_freespacemap",
        "pg_hint_plan",
        "pg_partman",
        "pg_prewarm",
        "pg_repack",
        "pg_similarity",
        "pg_stat_statements",
        "pg_trgm",
        "pg_visibility",
        "pgaudit",
        "pgcrypto",
        "pglogical",
        "pgrowlocks",
        "pgstattuple",
        "pgtap",
        "plpgsql",
        "plv8",
        "postgis",
        "postgis_raster",
        "postgis_sfcgal",
        "postgis_tiger_geocoder",
        "postgis_topology",
        "postgres_fdw",
        "prefix",
        "refint",
        "seg",
        "sslinfo",
        "tablefunc",
        "tcn",
        "tsm_system_rows",
        "tsm_system_time",
        "unaccent",
        "uuid-ossp",
        "vector",
    }
)

# Extensions that only load once a Cloud SQL flag is switched on.
EXTENSION_REQUIRED_FLAGS = MappingProxyType(
    {
        "pgaudit": (("cloudsql.enable_pgaudit", "on"),),
        "pg_cron": (("cloudsql.enable_pg_cron", "on"),),
        "pg_hint_plan": (("cloudsql.enable_pg_hint_plan", "on"),),
        "pglogical": (
            ("cloudsql.enable_pglogical", "on"),
            ("cloudsql.logical_decoding", "on"),
        ),
    }
)
