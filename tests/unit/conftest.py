"""Fixtures for orchestrator tests."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from unittest.mock import Mock

import pytest

from onboarding_preflight.collaborators.base import (
    BundleFile,
    CodeCheck,
    ConnectionMeasurement,
    DomainAccess,
    DownloadBundle,
    MessageReceipt,
    ProbeCollaborators,
    ScreenResolution,
    UploadReceipt,
)
from onboarding_preflight.gate import VerificationGate
from onboarding_preflight.models.definition import TestKind
from onboarding_preflight.models.result import ProbeResult
from onboarding_preflight.models.selection import SelectedFile
from onboarding_preflight.orchestrator import TestOrchestrator
from onboarding_preflight.testing.factories import build_checklist

ALL_KINDS: Sequence[TestKind] = (
    "domain-access",
    "email-2fa",
    "file-download",
    "file-upload",
    "intercom",
    "screen-resolution",
    "connection-speed",
)


@dataclass(kw_only=True)
class AnsweringListener:
    """Records transitions and answers gates on the next loop iteration."""

    orchestrator: TestOrchestrator | None = None
    code: str | None = "123456"
    files: Sequence[SelectedFile] = (SelectedFile(name="report.pdf", size=2048),)
    transitions: list[tuple[int, str]] = field(default_factory=list)
    gates: list[VerificationGate] = field(default_factory=list)
    closed: list[VerificationGate] = field(default_factory=list)
    gate_event: asyncio.Event = field(default_factory=asyncio.Event)

    def result_changed(self, index: int, result: ProbeResult) -> None:
        self.transitions.append((index, result.status))

    def gate_opened(self, gate: VerificationGate) -> None:
        self.gates.append(gate)
        self.gate_event.set()
        asyncio.get_running_loop().call_soon(self._answer, gate)

    def gate_closed(self, gate: VerificationGate) -> None:
        self.closed.append(gate)

    def _answer(self, gate: VerificationGate) -> None:
        assert self.orchestrator is not None
        if gate.kind == "code" and self.code is not None:
            self.orchestrator.submit_verification_code(gate.test_id, self.code)
        elif gate.kind == "files" and self.files:
            self.orchestrator.submit_files(gate.test_id, self.files)


@pytest.fixture
def collaborators() -> Mock:
    """Create mock collaborators where every probe succeeds."""
    mock = Mock(spec=ProbeCollaborators)
    mock.check_domain_access.return_value = DomainAccess(
        reachable=True, response_time_ms=42.0, diagnostic="ok"
    )
    mock.send_verification_message.return_value = MessageReceipt(
        accepted=True, message_id="msg-1"
    )
    mock.verify_code.return_value = CodeCheck(valid=True, elapsed_seconds=1.5)
    mock.prepare_download_bundle.return_value = DownloadBundle(
        files=(BundleFile(name="sample.txt", content=b"hello"),)
    )
    mock.persist_bundle.return_value = [Path("sample.txt")]
    mock.upload_files.return_value = UploadReceipt(accepted=True, accepted_count=1)
    mock.check_widget_presence.return_value = True
    mock.read_screen_resolution.return_value = ScreenResolution(width=1920, height=1080)
    mock.measure_connection.return_value = ConnectionMeasurement(
        download_mbps=50.0, upload_mbps=20.0, latency_ms=30.0
    )
    return mock


@pytest.fixture
def listener() -> AnsweringListener:
    """Create a listener that answers every gate."""
    return AnsweringListener()


@pytest.fixture
def orchestrator(
    collaborators: Mock, listener: AnsweringListener
) -> TestOrchestrator:
    """Create orchestrator running every test kind with short gate timeouts."""
    orchestrator = TestOrchestrator(
        collaborators=collaborators,
        checklist=build_checklist(ALL_KINDS, verification_timeout=0.5),
        listener=listener,
        widget_settle_delay=0,
    )
    listener.orchestrator = orchestrator
    return orchestrator
