"""Sizing presets and the layered sizing builder.

Presets give base values for the sizing fields.  Explicit request fields
always win over the preset, field by field.  ``custom`` is a sentinel preset
with no base size: machine type, disk size and edition must then all be
supplied explicitly (availability keeps its ``ZONAL`` default).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from types import MappingProxyType

from daylily_cloudsql.errors import MissingSizingFieldError, UnknownPresetError
from daylily_cloudsql.models.plan import ResolvedSizing

logger = logging.getLogger(__name__)

CUSTOM_PRESET = "custom"

PRESETS = MappingProxyType(
    {
        "budget": ResolvedSizing(
            machine_type="db-custom-2-7680",
            disk_size_gb=100,
            edition="ENTERPRISE",
            availability_type="ZONAL",
        ),
        "balanced": ResolvedSizing(
            machine_type="db-custom-4-16384",
            disk_size_gb=500,
            edition="ENTERPRISE",
            availability_type="REGIONAL",
        ),
        "performance": ResolvedSizing(
            machine_type="db-custom-8-32768",
            disk_size_gb=1000,
            edition="ENTERPRISE_PLUS",
            availability_type="REGIONAL",
        ),
    }
)

# Used when the request names no preset at all.
DEFAULT_SIZING = ResolvedSizing(
    machine_type="db-custom-2-7680",
    disk_size_gb=100,
    edition="ENTERPRISE",
    availability_type="ZONAL",
)

PRESET_NAMES = tuple(sorted(PRESETS)) + (CUSTOM_PRESET,)


def lookup(preset_name: str) -> ResolvedSizing | None:
    """Return the base sizing for a preset, or ``None`` if unknown or ``custom``."""
    return PRESETS.get(preset_name)


@dataclass(frozen=True)
class SizingOverrides:
    """Explicitly requested sizing fields; ``None`` means "not set"."""

    machine_type: str | None = None
    disk_size_gb: int | None = None
    edition: str | None = None
    availability_type: str | None = None


class SizingBuilder:
    """Merge a base sizing with explicit overrides.

    Example:
        sizing = SizingBuilder.for_preset("budget").apply(
            SizingOverrides(disk_size_gb=5000)
        ).build()
    """

    def __init__(self, base: ResolvedSizing | None, *, preset_name: str | None = None) -> None:
        self._preset_name = preset_name
        self._values: dict[str, object] = {}
        if base is not None:
            self._values = {f.name: getattr(base, f.name) for f in fields(ResolvedSizing)}

    @classmethod
    def for_preset(cls, preset_name: str | None) -> SizingBuilder:
        if preset_name is None:
            return cls(DEFAULT_SIZING)
        if preset_name == CUSTOM_PRESET:
            builder = cls(None, preset_name=CUSTOM_PRESET)
            # Availability is an HA choice, not a size; it keeps its default.
            builder._values["availability_type"] = DEFAULT_SIZING.availability_type
            return builder
        base = lookup(preset_name)
        if base is None:
            raise UnknownPresetError(
                "preset_name",
                preset_name,
                f"expected one of {', '.join(PRESET_NAMES)}",
            )
        return cls(base, preset_name=preset_name)

    def apply(self, overrides: SizingOverrides) -> SizingBuilder:
        for f in fields(SizingOverrides):
            value = getattr(overrides, f.name)
            if value is not None:
                self._values[f.name] = value
        return self

    def build(self) -> ResolvedSizing:
        for f in fields(ResolvedSizing):
            if self._values.get(f.name) is None:
                raise MissingSizingFieldError(
                    f.name,
                    None,
                    f"preset {self._preset_name or CUSTOM_PRESET!r} requires "
                    f"{f.name} to be set explicitly",
                )
        sizing = ResolvedSizing(**self._values)  # type: ignore[arg-type]
        logger.debug("Resolved sizing (preset=%s): %s", self._preset_name, sizing)
        return sizing


def resolve_sizing(preset_name: str | None, overrides: SizingOverrides) -> ResolvedSizing:
    """Look up ``preset_name``, overlay ``overrides`` and return the result."""
    return SizingBuilder.for_preset(preset_name).apply(overrides).build()
