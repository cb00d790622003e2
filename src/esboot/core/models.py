"""
esboot Data Models

Plain dataclasses passed between the wrapper components:
- RamQuantity / MemoryBudget / HeapFlags: heap sizing
- PollState: readiness polling progress
- IndexTemplateDoc / TemplateResult / PublishReport: template publishing
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from esboot.core.constants import (
    MEMORY_ES_BYTES_MAX,
    MEMORY_ES_BYTES_MIN,
    MEMORY_GIB_BYTES,
    MEMORY_HEAP_DIVISOR,
    MEMORY_MIB_BYTES,
)


# =============================================================================
# Memory
# =============================================================================


class RamUnit(str, Enum):
    """Units accepted in INSTANCE_RAM."""

    MEBIBYTES = "M"
    GIBIBYTES = "G"

    @property
    def bytes(self) -> int:
        return MEMORY_GIB_BYTES if self is RamUnit.GIBIBYTES else MEMORY_MIB_BYTES


@dataclass(frozen=True)
class RamQuantity:
    """A RAM amount as written by the operator, e.g. `4Gi` or `512M`."""

    value: int
    unit: RamUnit

    @property
    def bytes(self) -> int:
        return self.value * self.unit.bytes

    def __str__(self) -> str:
        return f"{self.value}{self.unit.value}i"


@dataclass(frozen=True)
class MemoryBudget:
    """Inputs of the heap calculation and the derived effective amount."""

    requested_bytes: int
    cgroup_ceiling_bytes: int
    max_recommended_bytes: int = MEMORY_ES_BYTES_MAX
    min_required_bytes: int = MEMORY_ES_BYTES_MIN

    @property
    def effective_bytes(self) -> int:
        return min(self.requested_bytes, self.max_recommended_bytes, self.cgroup_ceiling_bytes)

    @property
    def heap_mb(self) -> int:
        return self.effective_bytes // MEMORY_HEAP_DIVISOR // MEMORY_MIB_BYTES


@dataclass(frozen=True)
class HeapFlags:
    """Fixed-size heap flags and the JVM option string they were appended to."""

    heap_mb: int
    java_opts: str

    @property
    def min_flag(self) -> str:
        return f"-Xms{self.heap_mb}m"

    @property
    def max_flag(self) -> str:
        return f"-Xmx{self.heap_mb}m"


# =============================================================================
# Readiness
# =============================================================================


@dataclass
class PollState:
    """Progress of a readiness poll."""

    retry_count: int
    interval_seconds: int
    attempts_remaining: int = field(init=False)
    attempts_made: int = 0
    slept_seconds: float = 0.0
    ready: bool = False
    last_response: str | None = None  # in-memory capture of the last failure

    def __post_init__(self) -> None:
        self.attempts_remaining = self.retry_count

    @property
    def max_total_seconds(self) -> int:
        return self.retry_count * self.interval_seconds

    @property
    def exhausted(self) -> bool:
        return self.attempts_remaining <= 0


# =============================================================================
# Templates
# =============================================================================


@dataclass(frozen=True)
class IndexTemplateDoc:
    """An index template document on disk. Registered under its filename stem."""

    path: Path

    @property
    def name(self) -> str:
        return self.path.stem


@dataclass
class TemplateResult:
    """Outcome of publishing one template."""

    name: str
    path: Path
    existed: bool = False
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300


@dataclass
class PublishReport:
    """Per-document results of a publish run."""

    results: list[TemplateResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[TemplateResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[TemplateResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def status_codes(self) -> dict[str, int | None]:
        return {r.name: r.status_code for r in self.results}
