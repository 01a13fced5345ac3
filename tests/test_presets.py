"""Tests for the preset catalog and layered sizing builder."""

from __future__ import annotations

import pytest

from daylily_cloudsql.errors import MissingSizingFieldError, UnknownPresetError
from daylily_cloudsql.models.plan import ResolvedSizing
from daylily_cloudsql.presets import (
    DEFAULT_SIZING,
    PRESETS,
    SizingBuilder,
    SizingOverrides,
    lookup,
    resolve_sizing,
)

EXPECTED = {
    "budget": ("db-custom-2-7680", 100, "ENTERPRISE"),
    "balanced": ("db-custom-4-16384", 500, "ENTERPRISE"),
    "performance": ("db-custom-8-32768", 1000, "ENTERPRISE_PLUS"),
}


class TestCatalog:
    @pytest.mark.parametrize("name", sorted(EXPECTED))
    def test_catalog_rows(self, name):
        machine_type, disk, edition = EXPECTED[name]
        sizing = lookup(name)
        assert sizing.machine_type == machine_type
        assert sizing.disk_size_gb == disk
        assert sizing.edition == edition

    def test_custom_has_no_base(self):
        assert lookup("custom") is None

    def test_unknown_has_no_base(self):
        assert lookup("enormous") is None

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            PRESETS["budget"] = DEFAULT_SIZING  # type: ignore[index]


class TestSizingBuilder:
    @pytest.mark.parametrize("name", sorted(EXPECTED))
    def test_preset_only(self, name):
        assert resolve_sizing(name, SizingOverrides()) == PRESETS[name]

    def test_override_wins_per_field(self):
        sizing = resolve_sizing("budget", SizingOverrides(disk_size_gb=5000))
        assert sizing.disk_size_gb == 5000
        assert sizing.machine_type == "db-custom-2-7680"
        assert sizing.edition == "ENTERPRISE"

    def test_all_overrides(self):
        overrides = SizingOverrides(
            machine_type="db-custom-16-65536",
            disk_size_gb=2000,
            edition="ENTERPRISE_PLUS",
            availability_type="REGIONAL",
        )
        assert resolve_sizing("balanced", overrides) == ResolvedSizing(
            machine_type="db-custom-16-65536",
            disk_size_gb=2000,
            edition="ENTERPRISE_PLUS",
            availability_type="REGIONAL",
        )

    def test_no_preset_uses_system_default(self):
        assert resolve_sizing(None, SizingOverrides()) == DEFAULT_SIZING

    def test_no_preset_with_override(self):
        sizing = resolve_sizing(None, SizingOverrides(machine_type="db-custom-4-16384"))
        assert sizing.machine_type == "db-custom-4-16384"
        assert sizing.disk_size_gb == DEFAULT_SIZING.disk_size_gb

    def test_custom_fully_specified(self):
        sizing = resolve_sizing(
            "custom",
            SizingOverrides(
                machine_type="db-custom-16-65536", disk_size_gb=2000, edition="ENTERPRISE_PLUS"
            ),
        )
        assert sizing.machine_type == "db-custom-16-65536"
        assert sizing.disk_size_gb == 2000
        assert sizing.edition == "ENTERPRISE_PLUS"
        assert sizing.availability_type == "ZONAL"

    @pytest.mark.parametrize(
        "overrides, missing",
        [
            (SizingOverrides(), "machine_type"),
            (SizingOverrides(machine_type="db-custom-2-7680"), "disk_size_gb"),
            (SizingOverrides(machine_type="db-custom-2-7680", disk_size_gb=100), "edition"),
            (SizingOverrides(disk_size_gb=100, edition="ENTERPRISE"), "machine_type"),
        ],
    )
    def test_custom_missing_field(self, overrides, missing):
        with pytest.raises(MissingSizingFieldError) as e:
            resolve_sizing("custom", overrides)
        assert e.value.field_path == missing

    def test_unknown_preset(self):
        with pytest.raises(UnknownPresetError) as e:
            SizingBuilder.for_preset("enormous")
        assert e.value.field_path == "preset_name"
