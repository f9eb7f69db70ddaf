"""Test orchestrator driving the checklist one test at a time."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Protocol, cast

from onboarding_preflight.classification import (
    Classification,
    check_upload_selection,
    classify_connection,
    classify_domain,
    classify_download,
    classify_email,
    classify_failure,
    classify_resolution,
    classify_timeout,
    classify_two_factor,
    classify_upload,
    classify_widget,
)
from onboarding_preflight.collaborators.base import ProbeCollaborators
from onboarding_preflight.errors import (
    CollaboratorFailure,
    EmptySelectionError,
    GateAlreadyOpenError,
    PreflightError,
    RunInProgressError,
    ValidationError,
    VerificationTimeout,
)
from onboarding_preflight.gate import GateKeeper, GateKind, VerificationGate
from onboarding_preflight.models.definition import (
    DEFAULT_CHECKLIST,
    Checklist,
    TestDefinition,
    TestKind,
)
from onboarding_preflight.models.result import Measurements, ProbeResult
from onboarding_preflight.models.selection import SelectedFile
from onboarding_preflight.models.state import NO_ACTIVE_TEST, RunState
from onboarding_preflight.report import Report, build_report

log = logging.getLogger(__name__)

WIDGET_SETTLE_DELAY = 3.0


class RunListener(Protocol):
    """Receives progress notifications from a running orchestrator."""

    def result_changed(self, index: int, result: ProbeResult) -> None:
        """Called after the result at ``index`` was replaced."""

    def gate_opened(self, gate: VerificationGate) -> None:
        """Called when a test starts waiting for human input."""

    def gate_closed(self, gate: VerificationGate) -> None:
        """Called when a test stops waiting, whether answered or expired."""


@dataclass(frozen=True, kw_only=True)
class ProbeOutcome:
    """Classified outcome of a probe before it is stored as a result."""

    classification: Classification
    measurements: Measurements | None = None


def validate_identity(identity: str) -> str:
    """Check that the identity looks like an email address.

    Raises:
        ValidationError: If the address has no ``@`` or an empty local or
            domain part.

    """
    address = identity.strip()
    local, separator, domain = address.partition("@")
    if not separator or not local or not domain or "@" in domain:
        raise ValidationError(f"Invalid email address: {identity!r}")
    return address


@dataclass(kw_only=True)
class TestOrchestrator:
    """Runs the checklist sequentially against the probe collaborators.

    The orchestrator exclusively owns the run state. Tests are executed in
    checklist order and each one reaches a terminal status before the next
    starts. Gated tests suspend until ``submit_verification_code`` or
    ``submit_files`` is called from another task, or until the gate expires.
    """

    __test__ = False

    collaborators: ProbeCollaborators
    checklist: Checklist = DEFAULT_CHECKLIST
    listener: RunListener | None = None
    widget_settle_delay: float = WIDGET_SETTLE_DELAY
    state: RunState = field(default_factory=RunState, init=False)
    _gates: GateKeeper = field(default_factory=GateKeeper, init=False, repr=False)

    async def start_run(self, identity: str) -> Sequence[ProbeResult]:
        """Run every test of the checklist and return the completed results.

        Args:
            identity: Email address used by the email verification test

        Returns:
            One terminal result per checklist entry, in checklist order

        Raises:
            ValidationError: If the identity is not a valid address
            RunInProgressError: If a run is already executing

        """
        if self.state.status == "RUNNING":
            raise RunInProgressError("A run is already in progress")
        address = validate_identity(identity)

        self._gates.clear()
        self.state = RunState(
            identity=address,
            status="RUNNING",
            current_index=0,
            results=[ProbeResult.pending(test) for test in self.checklist.tests],
        )
        log.info("Starting run of %d test(s) for %s", len(self.checklist), address)

        try:
            for index, definition in enumerate(self.checklist.tests):
                await self._run_test(index, definition)
        except BaseException:
            log.info("Run aborted, discarding state")
            self._reset()
            raise

        self.state.status = "COMPLETE"
        self.state.current_index = NO_ACTIVE_TEST
        log.info("Run completed")
        return tuple(self.state.results)

    def submit_verification_code(self, test_id: int, code: str) -> bool:
        """Resolve the code gate of a test.

        Returns False without changing any state when no code gate is open
        for the test or the code is not six digits.
        """
        if not isinstance(code, str):
            log.debug("Ignoring non-text code for test %d", test_id)
            return False
        gate = self._gates.get(test_id)
        if gate is None or gate.kind != "code":
            self._log_missing_gate(test_id, "code")
            return False
        return gate.resolve(code.strip())

    def submit_files(self, test_id: int, files: Sequence[SelectedFile]) -> bool:
        """Resolve the file selection gate of a test.

        Raises:
            EmptySelectionError: If no files were selected

        """
        if not files:
            raise EmptySelectionError("No files selected")
        gate = self._gates.get(test_id)
        if gate is None or gate.kind != "files":
            self._log_missing_gate(test_id, "files")
            return False
        return gate.resolve(tuple(files))

    def restart(self) -> None:
        """Discard the run and return to NOT_STARTED.

        Raises:
            RunInProgressError: If a run is executing

        """
        if self.state.status == "RUNNING":
            raise RunInProgressError("Cannot restart while a run is in progress")
        self._reset()
        log.info("Orchestrator reset")

    def report(self) -> Report:
        """Aggregate the results of the completed run."""
        if self.state.status != "COMPLETE":
            raise PreflightError("Run has not completed")
        return build_report(self.state.results, self.state.identity)

    def _log_missing_gate(self, test_id: int, kind: GateKind) -> None:
        if self.checklist.get(test_id) is None:
            log.warning("Input for unknown test %d ignored", test_id)
        else:
            log.debug("No %s gate open for test %d", kind, test_id)

    def _reset(self) -> None:
        self._gates.clear()
        self.state = RunState()

    def _update(self, index: int, result: ProbeResult) -> None:
        self.state.results[index] = result
        if self.listener is not None:
            self.listener.result_changed(index, result)

    async def _run_test(self, index: int, definition: TestDefinition) -> None:
        """Execute one test and store its terminal result."""
        loop = asyncio.get_running_loop()
        self.state.current_index = index
        self._update(
            index,
            replace(
                self.state.results[index], status="RUNNING", message="Running test..."
            ),
        )
        log.info("Running test %d: %s", definition.id, definition.name)

        started = loop.time()
        error: str | None = None
        try:
            outcome = await self._probes()[definition.kind](definition)
        except VerificationTimeout as exc:
            error = str(exc)
            outcome = ProbeOutcome(
                classification=classify_timeout(
                    definition.kind, definition.verification_timeout
                )
            )
        except GateAlreadyOpenError:
            raise
        except Exception as exc:
            log.error("Test %s failed: %s", definition.name, exc, exc_info=exc)
            error = str(exc) or type(exc).__name__
            outcome = ProbeOutcome(
                classification=classify_failure(definition.kind, error)
            )
        finally:
            gate = self.state.pending_gate
            self._gates.close(definition.id)
            self.state.pending_gate = None
            if gate is not None and self.listener is not None:
                self.listener.gate_closed(gate)

        classification = outcome.classification
        duration = loop.time() - started
        self._update(
            index,
            replace(
                self.state.results[index],
                status=classification.verdict,
                message=classification.message,
                details=classification.details,
                recommendations=tuple(classification.recommendations),
                duration=duration,
                error=error,
                measurements=outcome.measurements,
            ),
        )
        log.info(
            "Test completed: test=%s status=%s duration=%.1fs",
            definition.name,
            classification.verdict,
            duration,
        )

    def _probes(
        self,
    ) -> Mapping[TestKind, Callable[[TestDefinition], Awaitable[ProbeOutcome]]]:
        return {
            "domain-access": self._probe_domain,
            "email-2fa": self._probe_email_2fa,
            "file-download": self._probe_download,
            "file-upload": self._probe_upload,
            "intercom": self._probe_widget,
            "screen-resolution": self._probe_resolution,
            "connection-speed": self._probe_connection,
        }

    def _open_gate(
        self, index: int, definition: TestDefinition, kind: GateKind, message: str
    ) -> VerificationGate:
        gate = self._gates.open(definition.id, kind, definition.verification_timeout)
        self.state.pending_gate = gate
        self._update(index, replace(self.state.results[index], message=message))
        if self.listener is not None:
            self.listener.gate_opened(gate)
        return gate

    async def _probe_domain(self, definition: TestDefinition) -> ProbeOutcome:
        access = await self.collaborators.check_domain_access()
        return ProbeOutcome(
            classification=classify_domain(access.reachable, access.diagnostic),
            measurements=Measurements(response_time_ms=access.response_time_ms),
        )

    async def _probe_email_2fa(self, definition: TestDefinition) -> ProbeOutcome:
        """Send a code, wait for the user to enter it and time the delivery."""
        address = self.state.identity
        if address is None:
            raise PreflightError("Run has no identity")

        receipt = await self.collaborators.send_verification_message(address, "2fa")
        if not receipt.accepted:
            return ProbeOutcome(
                classification=classify_email(
                    False, "Failed to send verification email"
                )
            )
        log.info("Verification message sent: message_id=%s", receipt.message_id)

        gate = self._open_gate(
            self.state.current_index,
            definition,
            "code",
            f"Enter the 6-digit code sent to {address}",
        )
        value, delivery_time = (await gate.wait()).unwrap()

        check = await self.collaborators.verify_code(address, cast(str, value))
        measurements = Measurements(delivery_time=delivery_time)
        if not check.valid:
            return ProbeOutcome(
                classification=classify_email(
                    False, check.message or "Invalid verification code"
                ),
                measurements=measurements,
            )
        return ProbeOutcome(
            classification=classify_two_factor(delivery_time),
            measurements=measurements,
        )

    async def _probe_download(self, definition: TestDefinition) -> ProbeOutcome:
        bundle = await self.collaborators.prepare_download_bundle()
        saved: Sequence[Path] = ()
        if bundle.file_count:
            saved = await self.collaborators.persist_bundle(bundle)
        return ProbeOutcome(
            classification=classify_download(len(saved), bundle.total_bytes),
            measurements=Measurements(
                file_count=len(saved), total_bytes=bundle.total_bytes
            ),
        )

    async def _probe_upload(self, definition: TestDefinition) -> ProbeOutcome:
        """Wait for the user's file selection, then upload it."""
        gate = self._open_gate(
            self.state.current_index,
            definition,
            "files",
            "Please select and upload the downloaded files",
        )
        value, _ = (await gate.wait()).unwrap()
        files = tuple(cast(Sequence[SelectedFile], value))
        measurements = Measurements(
            file_count=len(files), total_bytes=sum(file.size for file in files)
        )

        if (rejection := check_upload_selection(files)) is not None:
            return ProbeOutcome(classification=rejection, measurements=measurements)

        receipt = await self.collaborators.upload_files(files)
        if not receipt.accepted:
            raise CollaboratorFailure(receipt.message or "Upload failed")
        return ProbeOutcome(
            classification=classify_upload(
                files, receipt.warnings, receipt.accepted_count or None
            ),
            measurements=measurements,
        )

    async def _probe_widget(self, definition: TestDefinition) -> ProbeOutcome:
        await asyncio.sleep(self.widget_settle_delay)
        present = await self.collaborators.check_widget_presence()
        return ProbeOutcome(classification=classify_widget(present))

    async def _probe_resolution(self, definition: TestDefinition) -> ProbeOutcome:
        screen = await self.collaborators.read_screen_resolution()
        return ProbeOutcome(
            classification=classify_resolution(
                screen.width, screen.height, screen.pixel_ratio
            ),
            measurements=Measurements(
                width=screen.width, height=screen.height, pixel_ratio=screen.pixel_ratio
            ),
        )

    async def _probe_connection(self, definition: TestDefinition) -> ProbeOutcome:
        speed = await self.collaborators.measure_connection()
        return ProbeOutcome(
            classification=classify_connection(
                speed.download_mbps, speed.upload_mbps, speed.latency_ms
            ),
            measurements=Measurements(
                download_mbps=speed.download_mbps,
                upload_mbps=speed.upload_mbps,
                latency_ms=speed.latency_ms,
            ),
        )
