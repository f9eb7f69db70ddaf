"""Models for probe results."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from onboarding_preflight.models.definition import TestDefinition, TestKind

Verdict = Literal["PASS", "WARNING", "FAIL"]
ProbeStatus = Literal["PENDING", "RUNNING", "PASS", "WARNING", "FAIL"]

TERMINAL_STATUSES: frozenset[ProbeStatus] = frozenset({"PASS", "WARNING", "FAIL"})


@dataclass(frozen=True, kw_only=True)
class Measurements:
    """Values measured by a probe, each present only when the probe reports it."""

    delivery_time: float | None = None
    response_time_ms: float | None = None
    width: int | None = None
    height: int | None = None
    pixel_ratio: float | None = None
    download_mbps: float | None = None
    upload_mbps: float | None = None
    latency_ms: float | None = None
    file_count: int | None = None
    total_bytes: int | None = None


@dataclass(frozen=True, kw_only=True)
class ProbeResult:
    """Outcome of one checklist test.

    A result moves PENDING -> RUNNING -> PASS/WARNING/FAIL. Records are
    immutable; the orchestrator replaces the stored record on each transition.
    """

    test_id: int
    kind: TestKind
    name: str
    status: ProbeStatus = "PENDING"
    message: str = "Test pending"
    details: str = ""
    recommendations: Sequence[str] = field(default_factory=tuple)
    duration: float | None = None
    error: str | None = None
    measurements: Measurements | None = None

    @classmethod
    def pending(cls, definition: TestDefinition) -> "ProbeResult":
        """Create the initial record for a test."""
        return cls(test_id=definition.id, kind=definition.kind, name=definition.name)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
