"""Abstract base class for the probe collaborators used by the orchestrator."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from onboarding_preflight.models.selection import SelectedFile

type MessageKind = Literal["test", "2fa"]


@dataclass(frozen=True, kw_only=True)
class DomainAccess:
    """Reachability of the platform domain."""

    reachable: bool
    response_time_ms: float | None = None
    diagnostic: str = ""


@dataclass(frozen=True, kw_only=True)
class MessageReceipt:
    """Acknowledgement that a verification message was handed to the mailer."""

    accepted: bool
    message_id: str | None = None


@dataclass(frozen=True, kw_only=True)
class CodeCheck:
    """Server-side verification of a code entered by the user."""

    valid: bool
    elapsed_seconds: float | None = None
    message: str = ""


@dataclass(frozen=True, kw_only=True)
class BundleFile:
    """One file of the download bundle."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True, kw_only=True)
class DownloadBundle:
    """Files prepared by the server for the download test."""

    files: Sequence[BundleFile] = field(default_factory=tuple)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_bytes(self) -> int:
        return sum(len(file.content) for file in self.files)


@dataclass(frozen=True, kw_only=True)
class UploadReceipt:
    """Server response to a file upload."""

    accepted: bool
    warnings: Sequence[str] = field(default_factory=tuple)
    accepted_count: int = 0
    message: str = ""


@dataclass(frozen=True, kw_only=True)
class ScreenResolution:
    """Dimensions of the user's screen."""

    width: int
    height: int
    pixel_ratio: float = 1.0


@dataclass(frozen=True, kw_only=True)
class ConnectionMeasurement:
    """Throughput and latency of the user's connection."""

    download_mbps: float
    upload_mbps: float
    latency_ms: float


class ProbeCollaborators(ABC):
    """Transport-level probes the orchestrator calls and awaits.

    Implementations either return a result describing the outcome or raise;
    the orchestrator turns raised exceptions into failed tests.
    """

    @abstractmethod
    async def check_domain_access(self) -> DomainAccess:
        """Check that the platform domain is reachable."""

    @abstractmethod
    async def send_verification_message(
        self, address: str, kind: MessageKind
    ) -> MessageReceipt:
        """Send a message carrying a 6-digit code to the address."""

    @abstractmethod
    async def verify_code(self, address: str, code: str) -> CodeCheck:
        """Check the code the user received at the address."""

    @abstractmethod
    async def prepare_download_bundle(self) -> DownloadBundle:
        """Fetch the files used by the download test."""

    @abstractmethod
    async def persist_bundle(self, bundle: DownloadBundle) -> Sequence[Path]:
        """Save the bundle locally and return where the files were written."""

    @abstractmethod
    async def upload_files(self, files: Sequence[SelectedFile]) -> UploadReceipt:
        """Upload the selected files."""

    @abstractmethod
    async def check_widget_presence(self) -> bool:
        """Check that the support widget can be loaded."""

    @abstractmethod
    async def read_screen_resolution(self) -> ScreenResolution:
        """Read the resolution of the user's screen."""

    @abstractmethod
    async def measure_connection(self) -> ConnectionMeasurement:
        """Measure download speed, upload speed and latency."""
