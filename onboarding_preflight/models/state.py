"""Mutable state of a single checklist run."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from onboarding_preflight.models.result import ProbeResult

if TYPE_CHECKING:
    from onboarding_preflight.gate import VerificationGate

type RunStatus = Literal["NOT_STARTED", "RUNNING", "COMPLETE"]

NO_ACTIVE_TEST = -1


@dataclass(kw_only=True)
class RunState:
    """Everything the orchestrator knows about the current run."""

    identity: str | None = None
    status: RunStatus = "NOT_STARTED"
    current_index: int = NO_ACTIVE_TEST
    results: list[ProbeResult] = field(default_factory=list)
    pending_gate: "VerificationGate | None" = None
