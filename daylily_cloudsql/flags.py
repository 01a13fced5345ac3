"""PostgreSQL memory flags derived from the resolved machine size.

Sizing rules (RAM taken from the machine type):

- ``shared_buffers``         25% of RAM
- ``effective_cache_size``   75% of RAM
- ``work_mem``               RAM / (4 * expected connections), at least 64kB
- ``maintenance_work_mem``   5% of RAM, clamped to [64MB, 2GB]
- ``max_connections``        passed through when supplied

Values are rendered in the unit strings PostgreSQL accepts (``8GB``,
``384MB``, ``19660kB``) using the largest unit that divides evenly.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from daylily_cloudsql.errors import InvalidMachineTypeError
from daylily_cloudsql.models.plan import ResolvedSizing
from daylily_cloudsql.validation.catalog import EXTENSION_REQUIRED_FLAGS

logger = logging.getLogger(__name__)

DEFAULT_EXPECTED_CONNECTIONS = 100
WORK_MEM_CONNECTION_FACTOR = 4
MIN_WORK_MEM_KB = 64
MIN_MAINTENANCE_WORK_MEM_MB = 64
MAX_MAINTENANCE_WORK_MEM_MB = 2048

PERFORMANCE_FLAG_NAMES = (
    "shared_buffers",
    "effective_cache_size",
    "work_mem",
    "maintenance_work_mem",
    "max_connections",
)

_CUSTOM_RE = re.compile(r"^db-custom-(?P<vcpu>\d+)-(?P<ram_mb>\d+)$")
_PERF_OPTIMIZED_RE = re.compile(r"^db-perf-optimized-n-(?P<vcpu>\d+)$", re.IGNORECASE)
# ENTERPRISE_PLUS performance-optimized shapes carry 8 GB per vCPU.
_PERF_OPTIMIZED_MB_PER_VCPU = 8 * 1024
_SHARED_CORE = MappingProxyType(
    {
        "db-f1-micro": (1, 614),
        "db-g1-small": (1, 1700),
    }
)


@dataclass(frozen=True)
class MachineShape:
    vcpu: int
    ram_mb: int


def parse_machine_type(machine_type: str, field_path: str = "machine_type") -> MachineShape:
    """Return the vCPU count and RAM encoded in a Cloud SQL tier name."""
    custom = _CUSTOM_RE.match(machine_type or "")
    perf = _PERF_OPTIMIZED_RE.match(machine_type or "")
    if custom:
        shape = MachineShape(int(custom.group("vcpu")), int(custom.group("ram_mb")))
    elif perf:
        vcpu = int(perf.group("vcpu"))
        shape = MachineShape(vcpu, vcpu * _PERF_OPTIMIZED_MB_PER_VCPU)
    elif machine_type in _SHARED_CORE:
        shape = MachineShape(*_SHARED_CORE[machine_type])
    else:
        raise InvalidMachineTypeError(
            field_path,
            machine_type,
            "expected db-custom-<vcpu>-<ram_mb>, db-perf-optimized-N-<vcpu>, "
            "db-f1-micro or db-g1-small",
        )
    if shape.vcpu < 1 or shape.ram_mb < 1:
        raise InvalidMachineTypeError(field_path, machine_type, "vCPU and RAM must be positive")
    return shape


def format_kb(size_kb: int) -> str:
    """Render a size in kB with the largest unit that divides it evenly."""
    if size_kb and size_kb % (1024 * 1024) == 0:
        return f"{size_kb // (1024 * 1024)}GB"
    if size_kb and size_kb % 1024 == 0:
        return f"{size_kb // 1024}MB"
    return f"{size_kb}kB"


def derive(sizing: ResolvedSizing, max_connections: int | None = None) -> Mapping[str, str]:
    """Derive memory flags for ``sizing``.

    Pure and idempotent: the same sizing always yields the same mapping.
    """
    shape = parse_machine_type(sizing.machine_type)
    ram_mb = shape.ram_mb
    connections = max_connections or DEFAULT_EXPECTED_CONNECTIONS

    shared_buffers_mb = ram_mb * 25 // 100
    effective_cache_mb = ram_mb * 75 // 100
    work_mem_kb = max(
        ram_mb * 1024 // (WORK_MEM_CONNECTION_FACTOR * connections), MIN_WORK_MEM_KB
    )
    maintenance_mb = min(
        max(ram_mb * 5 // 100, MIN_MAINTENANCE_WORK_MEM_MB), MAX_MAINTENANCE_WORK_MEM_MB
    )

    flags = {
        "shared_buffers": format_kb(shared_buffers_mb * 1024),
        "effective_cache_size": format_kb(effective_cache_mb * 1024),
        "work_mem": format_kb(work_mem_kb),
        "maintenance_work_mem": format_kb(maintenance_mb * 1024),
    }
    if max_connections is not None:
        flags["max_connections"] = str(max_connections)

    logger.debug(
        "Derived performance flags for %s (%d vCPU, %d MB): %s",
        sizing.machine_type,
        shape.vcpu,
        ram_mb,
        flags,
    )
    return MappingProxyType(dict(sorted(flags.items())))


def merge_flags(*layers: Mapping[str, str]) -> dict[str, str]:
    """Merge flag mappings left to right; later layers win per key."""
    merged: dict[str, str] = {}
    for layer in layers:
        merged.update(layer)
    return dict(sorted(merged.items()))


def extension_flags(extensions: Iterable[str]) -> dict[str, str]:
    """Return the Cloud SQL flags the given extensions need in order to load."""
    flags: dict[str, str] = {}
    for ext in extensions:
        for name, value in EXTENSION_REQUIRED_FLAGS.get(ext, ()):
            flags[name] = value
    return flags


def resolve_performance_flags(
    sizing: ResolvedSizing,
    *,
    auto_generate: bool,
    explicit: Mapping[str, str],
    max_connections: int | None = None,
) -> Mapping[str, str]:
    """Return the performance flags for a plan.

    With ``auto_generate`` the derived values are used and any explicit
    performance flag overrides its derived counterpart.  Without it, the
    explicit performance flags (and ``max_connections``) pass through as-is.
    """
    explicit_perf = {k: v for k, v in explicit.items() if k in PERFORMANCE_FLAG_NAMES}
    if max_connections is not None and "max_connections" not in explicit_perf:
        explicit_perf["max_connections"] = str(max_connections)
    if not auto_generate:
        return MappingProxyType(dict(sorted(explicit_perf.items())))
    derived = derive(sizing, max_connections)
    return MappingProxyType(merge_flags(derived, explicit_perf))
