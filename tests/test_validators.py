"""Tests for the leaf validators."""

from __future__ import annotations

import pytest

from daylily_cloudsql.errors import (
    AutoresizeLimitBelowDiskSizeError,
    DiskSizeTooSmallError,
    DuplicateIdentifierError,
    InvalidCIDRError,
    InvalidIdentifierError,
    InvalidLabelError,
    InvalidSettingError,
    PlanValidationError,
    UnknownRoleError,
    UnsupportedEngineVersionError,
    UnsupportedExtensionError,
)
from daylily_cloudsql.validation import (
    ensure_unique,
    validate_cidr,
    validate_choice,
    validate_disk,
    validate_engine_version,
    validate_extensions,
    validate_instance_name,
    validate_labels,
    validate_range,
    validate_role,
    validate_sql_name,
    validate_time_of_day,
)

# ---------------------------------------------------------------------------
# Engine version
# ---------------------------------------------------------------------------


class TestEngineVersion:
    @pytest.mark.parametrize(
        "version",
        ["POSTGRES_12", "POSTGRES_13", "POSTGRES_14", "POSTGRES_15", "POSTGRES_16"],
    )
    def test_supported(self, version):
        assert validate_engine_version(version) == version

    @pytest.mark.parametrize("version", ["POSTGRES_11", "POSTGRES_9_6", "MYSQL_8_0", "15", ""])
    def test_unsupported(self, version):
        with pytest.raises(UnsupportedEngineVersionError) as e:
            validate_engine_version(version)
        assert e.value.field_path == "engine_version"
        assert e.value.value == version
        assert "Invalid PostgreSQL version" in str(e.value)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_engine_version("POSTGRES_11")


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


class TestRole:
    @pytest.mark.parametrize("role", ["admin", "readwrite", "readonly"])
    def test_known_roles(self, role):
        assert validate_role(role, "users.u.role") == role

    def test_role_is_normalized_to_lower_case(self):
        assert validate_role(" ReadOnly ", "users.u.role") == "readonly"

    def test_unknown_role_carries_path(self):
        with pytest.raises(UnknownRoleError) as e:
            validate_role("superuser", "users.admin_user.role")
        assert e.value.field_path == "users.admin_user.role"
        assert e.value.value == "superuser"


# ---------------------------------------------------------------------------
# CIDR
# ---------------------------------------------------------------------------


class TestCIDR:
    @pytest.mark.parametrize(
        "cidr", ["203.0.113.0/24", "198.51.100.0/24", "10.0.0.0/8", "0.0.0.0/0", "2001:db8::/32"]
    )
    def test_valid(self, cidr):
        assert validate_cidr(cidr, "authorized_networks.office") == cidr

    @pytest.mark.parametrize(
        "cidr",
        ["203.0.113.0/99", "203.0.113.0", "300.1.1.1/24", "10.0.0.1/24", "office", "2001:db8::/129"],
    )
    def test_invalid(self, cidr):
        with pytest.raises(InvalidCIDRError) as e:
            validate_cidr(cidr, "authorized_networks.office")
        assert e.value.field_path == "authorized_networks.office"


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class TestIdentifiers:
    @pytest.mark.parametrize("name", ["orders-db", "a", "pg16-main-01"])
    def test_valid_instance_names(self, name):
        assert validate_instance_name(name) == name

    @pytest.mark.parametrize("name", ["", "Orders", "1db", "db_", "db-", "a" * 99])
    def test_invalid_instance_names(self, name):
        with pytest.raises(InvalidIdentifierError):
            validate_instance_name(name)

    @pytest.mark.parametrize("name", ["app_db", "_scratch", "App-DB", "x$1"])
    def test_valid_sql_names(self, name):
        assert validate_sql_name(name, "databases.x") == name

    @pytest.mark.parametrize("name", ["", "1db", "has space", "a" * 64])
    def test_invalid_sql_names(self, name):
        with pytest.raises(InvalidIdentifierError) as e:
            validate_sql_name(name, f"databases.{name}")
        assert e.value.field_path == f"databases.{name}"

    def test_ensure_unique_reports_first_duplicate(self):
        with pytest.raises(DuplicateIdentifierError) as e:
            ensure_unique(["a", "b", "a", "b"], "users")
        assert e.value.field_path == "users.a"

    def test_ensure_unique_accepts_distinct(self):
        ensure_unique(["a", "b"], "users")


# ---------------------------------------------------------------------------
# Disk
# ---------------------------------------------------------------------------


class TestDisk:
    def test_minimum_size(self):
        validate_disk(10, autoresize=False, autoresize_limit_gb=None)

    def test_below_minimum(self):
        with pytest.raises(DiskSizeTooSmallError) as e:
            validate_disk(9, autoresize=False, autoresize_limit_gb=None)
        assert e.value.field_path == "disk_size_gb"

    def test_limit_below_size_with_autoresize(self):
        with pytest.raises(AutoresizeLimitBelowDiskSizeError):
            validate_disk(500, autoresize=True, autoresize_limit_gb=100)

    def test_limit_ignored_without_autoresize(self):
        validate_disk(500, autoresize=False, autoresize_limit_gb=100)

    def test_zero_limit_means_unlimited(self):
        validate_disk(500, autoresize=True, autoresize_limit_gb=0)

    def test_limit_equal_to_size(self):
        validate_disk(500, autoresize=True, autoresize_limit_gb=500)


# ---------------------------------------------------------------------------
# Extensions, labels, settings
# ---------------------------------------------------------------------------


class TestExtensions:
    def test_supported_list(self):
        exts = ["pg_stat_statements", "pgcrypto", "uuid-ossp", "hstore"]
        assert validate_extensions(exts) == tuple(exts)

    def test_duplicates_collapsed(self):
        assert validate_extensions(["pgcrypto", "pgcrypto"]) == ("pgcrypto",)

    def test_unsupported_fails_fast(self):
        with pytest.raises(UnsupportedExtensionError) as e:
            validate_extensions(["pgcrypto", "timescaledb", "not_real"])
        assert e.value.value == "timescaledb"
        assert e.value.field_path == "postgresql_extensions.timescaledb"


class TestLabels:
    def test_valid(self):
        labels = {"environment": "production", "team": "platform", "managed_by": "terraform"}
        assert validate_labels(labels) == labels

    def test_uppercase_key(self):
        with pytest.raises(InvalidLabelError) as e:
            validate_labels({"Team": "platform"})
        assert e.value.field_path == "labels.Team"

    def test_bad_value(self):
        with pytest.raises(InvalidLabelError):
            validate_labels({"team": "Platform Team"})


class TestSettings:
    def test_choice(self):
        assert validate_choice("ZONAL", {"ZONAL", "REGIONAL"}, "availability_type") == "ZONAL"
        with pytest.raises(InvalidSettingError):
            validate_choice("MULTI", {"ZONAL", "REGIONAL"}, "availability_type")

    def test_range_bounds_inclusive(self):
        assert validate_range(1, (1, 7), "d") == 1
        assert validate_range(7, (1, 7), "d") == 7
        with pytest.raises(InvalidSettingError):
            validate_range(8, (1, 7), "d")

    def test_range_rejects_bool(self):
        with pytest.raises(InvalidSettingError):
            validate_range(True, (0, 7), "d")

    @pytest.mark.parametrize("value", ["03:00", "23:59", "00:00"])
    def test_time_of_day(self, value):
        assert validate_time_of_day(value, "backup_start_time") == value

    @pytest.mark.parametrize("value", ["24:00", "3:00", "03:60", "noon"])
    def test_bad_time_of_day(self, value):
        with pytest.raises(InvalidSettingError):
            validate_time_of_day(value, "backup_start_time")


def test_error_to_dict():
    err = UnknownRoleError("users.bob.role", "root", "bad role")
    assert err.to_dict() == {
        "kind": "UnknownRole",
        "field_path": "users.bob.role",
        "value": "root",
        "message": "bad role",
    }
    assert isinstance(err, PlanValidationError)


def test_sensitive_values_are_redacted():
    err = InvalidSettingError("users.bob.password", "hunter2", sensitive=True)
    assert "hunter2" not in str(err)
    assert err.value == "<redacted>"
