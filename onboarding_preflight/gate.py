"""Single-shot suspension points that wait for human input."""

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from onboarding_preflight.errors import GateAlreadyOpenError, VerificationTimeout
from onboarding_preflight.models.selection import SelectedFile

log = logging.getLogger(__name__)

type GateKind = Literal["code", "files"]
type GateValue = str | Sequence[SelectedFile]

CODE_LENGTH = 6
_CODE_PATTERN = re.compile(rf"\d{{{CODE_LENGTH}}}")


def is_valid_code(code: str) -> bool:
    """Check that a code is exactly six ASCII digits."""
    return bool(_CODE_PATTERN.fullmatch(code))


@dataclass(frozen=True, kw_only=True)
class GateOutcome:
    """How a gate completed.

    ``elapsed`` is measured from the moment the gate opened; for a resolved
    code gate it is the delivery time of the code.
    """

    value: GateValue | None
    elapsed: float
    timed_out: bool

    def unwrap(self) -> tuple[GateValue, float]:
        """Return value and elapsed time, raising if the gate expired."""
        if self.timed_out or self.value is None:
            raise VerificationTimeout(
                f"No input received within {self.elapsed:.0f} seconds"
            )
        return self.value, self.elapsed


class VerificationGate:
    """Awaitable barrier satisfied by one external event or by its deadline."""

    def __init__(self, test_id: int, kind: GateKind, timeout: float) -> None:
        loop = asyncio.get_running_loop()
        self.test_id = test_id
        self.kind = kind
        self.timeout = timeout
        self.opened_at = loop.time()
        self.deadline = self.opened_at + timeout
        self._loop = loop
        self._future: asyncio.Future[tuple[GateValue, float]] = loop.create_future()
        self._outcome: GateOutcome | None = None

    def __repr__(self) -> str:
        return (
            f"VerificationGate(test_id={self.test_id}, kind={self.kind!r}, "
            f"resolved={self.resolved})"
        )

    @property
    def done(self) -> bool:
        """Whether the gate was resolved or has expired."""
        return self._future.done()

    @property
    def resolved(self) -> bool:
        """Whether the gate was completed by valid input."""
        return self._future.done() and not self._future.cancelled()

    def accepts(self, value: GateValue) -> bool:
        """Check whether a value is acceptable input for this gate."""
        if self.kind == "code":
            return isinstance(value, str) and is_valid_code(value)
        return not isinstance(value, str) and len(value) > 0

    def resolve(self, value: GateValue) -> bool:
        """Complete the gate with human input.

        Returns False, leaving the gate untouched, when the gate has already
        completed or the value is not acceptable.
        """
        if self._future.done():
            log.debug("Ignoring input for completed gate on test %d", self.test_id)
            return False
        if not self.accepts(value):
            log.debug("Ignoring malformed input for gate on test %d", self.test_id)
            return False
        self._future.set_result((value, self._loop.time()))
        return True

    async def wait(self) -> GateOutcome:
        """Suspend until the gate is resolved or its deadline passes."""
        if self._outcome is not None:
            return self._outcome

        remaining = max(self.deadline - self._loop.time(), 0.0)
        try:
            value, resolved_at = await asyncio.wait_for(self._future, remaining)
        except TimeoutError:
            log.info(
                "Gate on test %d expired after %.1fs", self.test_id, self.timeout
            )
            self._outcome = GateOutcome(
                value=None, elapsed=self._loop.time() - self.opened_at, timed_out=True
            )
        else:
            self._outcome = GateOutcome(
                value=value, elapsed=resolved_at - self.opened_at, timed_out=False
            )
        return self._outcome


class GateKeeper:
    """Tracks the gate currently open for the run; at most one exists."""

    def __init__(self) -> None:
        self._gate: VerificationGate | None = None

    def open(self, test_id: int, kind: GateKind, timeout: float) -> VerificationGate:
        """Open a gate for a test.

        Raises:
            GateAlreadyOpenError: If a gate is still open.

        """
        if self._gate is not None:
            raise GateAlreadyOpenError(
                f"Gate already open for test {self._gate.test_id}, "
                f"cannot open another for test {test_id}"
            )
        self._gate = VerificationGate(test_id, kind, timeout)
        log.info(
            "Opened %s gate for test %d (timeout=%.0fs)", kind, test_id, timeout
        )
        return self._gate

    def get(self, test_id: int) -> VerificationGate | None:
        """Return the open gate for a test, if any."""
        if self._gate is not None and self._gate.test_id == test_id:
            return self._gate
        return None

    def close(self, test_id: int) -> None:
        """Discard the gate for a test."""
        if self._gate is not None and self._gate.test_id == test_id:
            self._gate = None

    def clear(self) -> None:
        self._gate = None
