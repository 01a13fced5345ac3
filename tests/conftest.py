"""Pytest configuration for daylily-cloudsql tests."""

import os
import random

import pytest


@pytest.fixture(autouse=True)
def _clean_plan_env(monkeypatch):
    """Keep CLOUDSQL_PLAN_* variables from the host out of the tests."""
    for key in list(os.environ):
        if key.startswith("CLOUDSQL_PLAN_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def rng():
    """Seeded random source so generated passwords are reproducible."""
    return random.Random(1234)


@pytest.fixture
def base_request():
    """Smallest valid request, as a plain dict."""
    return {
        "instance_name": "orders-db",
        "project_id": "test-project",
        "region": "us-central1",
    }
