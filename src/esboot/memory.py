"""
Heap sizing for the Elasticsearch JVM.

The heap gets half of the RAM available to the instance, the other half is
left to Lucene through the filesystem cache.
ref. https://www.elastic.co/guide/en/elasticsearch/guide/current/heap-sizing.html#_give_half_your_memory_to_lucene

Parts inspired by fabric8's run-java-sh container options.
"""

import logging
import re
from pathlib import Path
from typing import Iterable

from esboot.core.constants import (
    CGROUP_MEMORY_LIMIT_PATHS,
    CGROUP_MEMORY_UNLIMITED_BYTES,
    MEMORY_ES_BYTES_MAX,
    MEMORY_ES_BYTES_MIN,
    MEMORY_MIB_BYTES,
    RAM_SPEC_PATTERN,
)
from esboot.core.errors import InsufficientMemory, InvalidRamSpec, MemoryLimitUnavailable
from esboot.core.models import HeapFlags, MemoryBudget, RamQuantity, RamUnit

logger = logging.getLogger(__name__)

_RAM_SPEC_RE = re.compile(RAM_SPEC_PATTERN, re.ASCII)


def _mb(num_bytes: int) -> int:
    return num_bytes // MEMORY_MIB_BYTES


def parse_ram_quantity(spec: str | None) -> RamQuantity:
    """Parse `4Gi`, `512m`, `2G`... Raises InvalidRamSpec on anything else."""
    match = _RAM_SPEC_RE.fullmatch(spec or "")
    if not match:
        raise InvalidRamSpec(spec)
    num, unit = match.groups()
    return RamQuantity(value=int(num), unit=RamUnit(unit.upper()))


def read_cgroup_limit(paths: Iterable[str | Path] = CGROUP_MEMORY_LIMIT_PATHS) -> int | None:
    """
    Read the memory ceiling enforced on this container.

    Tries each path in order (cgroup v1 first, then v2). The v2 `max`
    value means unlimited and never clamps anything.

    Returns:
        The limit in bytes, or None when no source is readable
    """
    for path in paths:
        path = Path(path)
        try:
            raw = path.read_text().strip()
        except OSError:
            logger.debug(f"Memory limit source {path} is not readable")
            continue
        if raw == "max":
            return CGROUP_MEMORY_UNLIMITED_BYTES
        try:
            return int(raw)
        except ValueError:
            logger.debug(f"Ignoring unexpected content in {path}: {raw!r}")
    return None


def compute_heap_flags(
    ram_spec: str | None,
    cgroup_limit_bytes: int | None,
    java_opts: str = "",
) -> HeapFlags:
    """
    Derive fixed-size heap flags from the requested instance RAM.

    Args:
        ram_spec: INSTANCE_RAM value, e.g. `8Gi`
        cgroup_limit_bytes: Ceiling reported by the host, None if unknown
        java_opts: Existing ES_JAVA_OPTS; the heap flags are appended to it

    Returns:
        HeapFlags with -Xms equal to -Xmx

    Raises:
        InvalidRamSpec: ram_spec is malformed
        MemoryLimitUnavailable: cgroup_limit_bytes is None
        InsufficientMemory: less than the minimum is left after clamping
    """
    requested = parse_ram_quantity(ram_spec)
    num = requested.bytes

    logger.info("Comparing the specified RAM to the maximum recommended for Elasticsearch...")
    if num > MEMORY_ES_BYTES_MAX:
        num = MEMORY_ES_BYTES_MAX
        logger.warning(
            f"Downgrading the INSTANCE_RAM to {_mb(num)}m because {ram_spec} "
            "will result in a larger heap then recommended."
        )

    logger.info("Inspecting the maximum RAM available...")
    if cgroup_limit_bytes is None:
        raise MemoryLimitUnavailable()
    if cgroup_limit_bytes < num:
        num = cgroup_limit_bytes
        logger.warning(
            f"Setting the maximum allowable RAM to {_mb(num)}m "
            "which is the largest amount available"
        )

    budget = MemoryBudget(requested_bytes=requested.bytes, cgroup_ceiling_bytes=cgroup_limit_bytes)
    if budget.effective_bytes < budget.min_required_bytes:
        raise InsufficientMemory(
            required_mb=_mb(MEMORY_ES_BYTES_MIN),
            available_mb=_mb(budget.effective_bytes),
        )

    heap_mb = budget.heap_mb
    opts = f"{java_opts} -Xms{heap_mb}m -Xmx{heap_mb}m".lstrip()
    logger.info(f"ES_JAVA_OPTS: '{opts}'")
    return HeapFlags(heap_mb=heap_mb, java_opts=opts)
