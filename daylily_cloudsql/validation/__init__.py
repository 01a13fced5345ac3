"""Catalogs and leaf validators for deployment requests."""

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
    validate_role,
    validate_sql_name,
    validate_time_of_day,
)

__all__ = [
    "catalog",
    "ensure_unique",
    "validate_cidr",
    "validate_choice",
    "validate_disk",
    "validate_engine_version",
    "validate_extensions",
    "validate_instance_name",
    "validate_labels",
    "validate_network_name",
    "validate_non_empty",
    "validate_range",
    "validate_role",
    "validate_sql_name",
    "validate_time_of_day",
]
