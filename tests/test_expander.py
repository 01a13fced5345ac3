"""Tests for entity expansion (databases, users, read replicas)."""

from __future__ import annotations

import random

import pytest

from daylily_cloudsql.errors import (
    DuplicateIdentifierError,
    InvalidIdentifierError,
    InvalidSettingError,
    MultipleFailoverTargetsError,
    PasswordTooShortError,
    UnknownRoleError,
)
from daylily_cloudsql.expander import expand_databases, expand_replicas, expand_users
from daylily_cloudsql.models.plan import SecretSource
from daylily_cloudsql.models.request import DatabaseSpec, ReplicaSpec, UserSpec


def _users(pairs, **kwargs):
    params = {
        "default_password_length": 16,
        "store_in_secret_manager": False,
        "instance_name": "orders-db",
        "project_id": "test-project",
        "rng": random.Random(0),
    }
    params.update(kwargs)
    return expand_users(pairs, **params)


# ---------------------------------------------------------------------------
# Databases
# ---------------------------------------------------------------------------


class TestDatabases:
    def test_defaults_applied(self):
        (db,) = expand_databases([("app_db", DatabaseSpec())])
        assert db.charset == "UTF8"
        assert db.collation == "en_US.UTF8"

    def test_explicit_values_kept(self):
        (db,) = expand_databases([("app_db", DatabaseSpec(charset="LATIN1", collation="C"))])
        assert (db.charset, db.collation) == ("LATIN1", "C")

    def test_sorted_by_name(self):
        dbs = expand_databases([("test_db", DatabaseSpec()), ("app_db", DatabaseSpec())])
        assert [d.name for d in dbs] == ["app_db", "test_db"]

    def test_duplicate_name(self):
        with pytest.raises(DuplicateIdentifierError) as e:
            expand_databases([("app_db", DatabaseSpec()), ("app_db", DatabaseSpec(charset="C"))])
        assert e.value.field_path == "databases.app_db"

    def test_invalid_name(self):
        with pytest.raises(InvalidIdentifierError) as e:
            expand_databases([("9lives", DatabaseSpec())])
        assert e.value.field_path == "databases.9lives"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestUsers:
    def test_roles_normalized(self):
        users = _users(
            [
                ("admin_user", UserSpec(role="ADMIN")),
                ("app_user", UserSpec(role="readwrite")),
                ("readonly_user", UserSpec(role="ReadOnly")),
            ]
        )
        assert {u.name: u.role for u in users} == {
            "admin_user": "admin",
            "app_user": "readwrite",
            "readonly_user": "readonly",
        }

    def test_unknown_role_attributed_to_user(self):
        with pytest.raises(UnknownRoleError) as e:
            _users([("admin_user", UserSpec(role="owner"))])
        assert e.value.field_path == "users.admin_user.role"

    def test_password_too_short(self):
        with pytest.raises(PasswordTooShortError):
            _users([("app_user", UserSpec(role="readwrite", password_length=5))])

    def test_order_independent_with_seeded_rng(self):
        a = _users(
            [("b_user", UserSpec(role="readonly")), ("a_user", UserSpec(role="admin"))],
            rng=random.Random(9),
        )
        b = _users(
            [("a_user", UserSpec(role="admin")), ("b_user", UserSpec(role="readonly"))],
            rng=random.Random(9),
        )
        assert a == b

    def test_secret_manager_reference(self):
        (user,) = _users(
            [("app_user", UserSpec(role="readwrite"))], store_in_secret_manager=True
        )
        assert user.secret.source is SecretSource.SECRET_MANAGER
        assert user.secret.secret_id == "orders-db-app-user-password"

    def test_duplicate_user(self):
        with pytest.raises(DuplicateIdentifierError) as e:
            _users([("app_user", UserSpec(role="readwrite")), ("app_user", UserSpec(role="admin"))])
        assert e.value.field_path == "users.app_user"


# ---------------------------------------------------------------------------
# Replicas
# ---------------------------------------------------------------------------


class TestReplicas:
    def _expand(self, pairs):
        return expand_replicas(pairs, instance_name="orders-db", primary_machine_type="db-custom-2-7680")

    def test_cross_region_replica(self):
        (replica,) = self._expand([("replica1", ReplicaSpec(region="us-east1"))])
        assert replica.region == "us-east1"
        assert replica.availability_type == "ZONAL"
        assert replica.failover_target is False
        assert replica.instance_name == "orders-db-replica1"
        assert replica.machine_type == "db-custom-2-7680"

    def test_same_region_is_legal(self):
        (replica,) = self._expand([("replica1", ReplicaSpec(region="us-central1"))])
        assert replica.region == "us-central1"

    def test_machine_type_override(self):
        (replica,) = self._expand(
            [("replica1", ReplicaSpec(region="us-east1", machine_type="db-custom-4-16384"))]
        )
        assert replica.machine_type == "db-custom-4-16384"

    def test_single_failover_target(self):
        replicas = self._expand(
            [
                ("replica1", ReplicaSpec(region="us-east1", failover_target=True)),
                ("replica2", ReplicaSpec(region="us-west1")),
            ]
        )
        assert [r.failover_target for r in replicas] == [True, False]

    def test_multiple_failover_targets(self):
        with pytest.raises(MultipleFailoverTargetsError) as e:
            self._expand(
                [
                    ("replica1", ReplicaSpec(region="us-east1", failover_target=True)),
                    ("replica2", ReplicaSpec(region="us-west1", failover_target=True)),
                ]
            )
        assert e.value.field_path == "read_replicas.replica2.failover_target"

    def test_empty_region(self):
        with pytest.raises(InvalidSettingError) as e:
            self._expand([("replica1", ReplicaSpec(region="  "))])
        assert e.value.field_path == "read_replicas.replica1.region"

    def test_bad_availability_type(self):
        with pytest.raises(InvalidSettingError) as e:
            self._expand([("replica1", ReplicaSpec(region="us-east1", availability_type="GLOBAL"))])
        assert e.value.field_path == "read_replicas.replica1.availability_type"

    def test_replica_name_rules(self):
        with pytest.raises(InvalidIdentifierError):
            self._expand([("Replica_1", ReplicaSpec(region="us-east1"))])
