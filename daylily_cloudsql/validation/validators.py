"""Leaf validators for request fields.

Each ``validate_*`` function is pure: it returns the (possibly normalized)
value when it is acceptable and raises a typed ``PlanValidationError``
otherwise.  The caller supplies the field path used in the error.
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable, Mapping
from typing import Any

from daylily_cloudsql.errors import (
    AutoresizeLimitBelowDiskSizeError,
    DiskSizeTooSmallError,
    DuplicateIdentifierError,
    InvalidCIDRError,
    InvalidIdentifierError,
    InvalidLabelError,
    InvalidSettingError,
    UnknownRoleError,
    UnsupportedEngineVersionError,
    UnsupportedExtensionError,
)
from daylily_cloudsql.validation import catalog

# Cloud SQL instance ids: lowercase letters, digits and hyphens, starting with
# a letter and not ending with a hyphen.
_INSTANCE_NAME_RE = re.compile(r"^[a-z](?:[a-z0-9-]{0,96}[a-z0-9])?$")
# PostgreSQL database and role names as Cloud SQL accepts them.
_SQL_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$-]{0,62}$")
_NETWORK_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,62}$")
_LABEL_KEY_RE = re.compile(r"^[a-z][a-z0-9_-]{0,62}$")
_LABEL_VALUE_RE = re.compile(r"^[a-z0-9_-]{0,63}$")
_HH_MM_RE = re.compile(r"^([01][0-9]|2[0-3]):([0-5][0-9])$")


def validate_engine_version(value: str, field_path: str = "engine_version") -> str:
    if value not in catalog.SUPPORTED_ENGINE_VERSIONS:
        supported = ", ".join(sorted(catalog.SUPPORTED_ENGINE_VERSIONS))
        raise UnsupportedEngineVersionError(
            field_path, value, f"Invalid PostgreSQL version; expected one of {supported}"
        )
    return value


def validate_role(value: str, field_path: str) -> str:
    """Return the canonical (lower-case) role name."""
    role = str(value).strip().lower() if value is not None else ""
    if role not in catalog.ROLES:
        raise UnknownRoleError(
            field_path, value, f"role must be one of {', '.join(catalog.ROLES)}"
        )
    return role


def validate_cidr(value: str, field_path: str) -> str:
    """Return the canonical network prefix for an IPv4 or IPv6 CIDR string."""
    if not isinstance(value, str) or "/" not in value:
        raise InvalidCIDRError(field_path, value, "expected <address>/<prefix-length>")
    try:
        network = ipaddress.ip_network(value.strip(), strict=True)
    except ValueError as e:
        raise InvalidCIDRError(field_path, value, str(e)) from e
    return str(network)


def validate_instance_name(value: str, field_path: str = "instance_name") -> str:
    if not isinstance(value, str) or not _INSTANCE_NAME_RE.match(value):
        raise InvalidIdentifierError(
            field_path,
            value,
            "must start with a lowercase letter, contain only lowercase letters, "
            "digits and hyphens, and not end with a hyphen",
        )
    return value


def validate_sql_name(value: str, field_path: str) -> str:
    if not isinstance(value, str) or not _SQL_NAME_RE.match(value):
        raise InvalidIdentifierError(
            field_path,
            value,
            "must start with a letter or underscore and contain at most 63 "
            "letters, digits, underscores, hyphens or dollar signs",
        )
    return value


def validate_network_name(value: str, field_path: str) -> str:
    if not isinstance(value, str) or not _NETWORK_NAME_RE.match(value):
        raise InvalidIdentifierError(field_path, value, "invalid network rule name")
    return value


def validate_non_empty(value: Any, field_path: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidSettingError(field_path, value, "must not be empty")
    return str(value).strip()


def ensure_unique(names: Iterable[str], field_path: str) -> None:
    """Raise on the first name that appears more than once."""
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise DuplicateIdentifierError(
                f"{field_path}.{name}", name, "name is defined more than once"
            )
        seen.add(name)


def validate_choice(value: Any, choices: Iterable[str], field_path: str) -> str:
    allowed = sorted(choices)
    if value not in allowed:
        raise InvalidSettingError(
            field_path, value, f"expected one of {', '.join(allowed)}"
        )
    return value


def validate_range(value: int, bounds: tuple[int, int], field_path: str) -> int:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise InvalidSettingError(field_path, value, f"must be between {low} and {high}")
    return value


def validate_time_of_day(value: str, field_path: str) -> str:
    if not isinstance(value, str) or not _HH_MM_RE.match(value):
        raise InvalidSettingError(field_path, value, "expected HH:MM (24-hour)")
    return value


def validate_disk(
    disk_size_gb: int,
    *,
    autoresize: bool,
    autoresize_limit_gb: int | None,
) -> None:
    if disk_size_gb < catalog.MIN_DISK_SIZE_GB:
        raise DiskSizeTooSmallError(
            "disk_size_gb",
            disk_size_gb,
            f"must be at least {catalog.MIN_DISK_SIZE_GB} GB",
        )
    # A limit of 0 means "no limit" to Cloud SQL.
    if autoresize and autoresize_limit_gb and autoresize_limit_gb < disk_size_gb:
        raise AutoresizeLimitBelowDiskSizeError(
            "disk_autoresize_limit_gb",
            autoresize_limit_gb,
            f"must be >= disk_size_gb ({disk_size_gb})",
        )


def validate_extensions(values: Iterable[str], field_path: str = "postgresql_extensions") -> tuple[str, ...]:
    """Return the extensions, de-duplicated in first-seen order."""
    result: list[str] = []
    for ext in values:
        if ext not in catalog.SUPPORTED_EXTENSIONS:
            raise UnsupportedExtensionError(
                f"{field_path}.{ext}", ext, "extension is not supported by Cloud SQL"
            )
        if ext not in result:
            result.append(ext)
    return tuple(result)


def validate_labels(labels: Mapping[str, str], field_path: str = "labels") -> dict[str, str]:
    for key, value in labels.items():
        if not _LABEL_KEY_RE.match(key):
            raise InvalidLabelError(
                f"{field_path}.{key}",
                key,
                "keys must start with a lowercase letter and use only "
                "lowercase letters, digits, underscores and hyphens",
            )
        if not _LABEL_VALUE_RE.match(str(value)):
            raise InvalidLabelError(
                f"{field_path}.{key}",
                value,
                "values may use only lowercase letters, digits, underscores and hyphens",
            )
    return dict(labels)
