"""Integration tests for the HTTP collaborator backend."""

import base64
from collections.abc import AsyncGenerator
from pathlib import Path

import aiohttp
import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from onboarding_preflight.collaborators.base import BundleFile, DownloadBundle
from onboarding_preflight.collaborators.http import (
    HttpCollaborators,
    HttpCollaboratorsConfig,
)
from onboarding_preflight.collaborators.http.collaborators import to_mbps
from onboarding_preflight.errors import CollaboratorFailure
from onboarding_preflight.models.selection import SelectedFile

API_BASE_URL = "http://api.test"
WIDGET_URL = "http://widget.test/widget.js"


@pytest.fixture
def config(tmp_path: Path) -> HttpCollaboratorsConfig:
    """Create test configuration."""
    return HttpCollaboratorsConfig(
        api_base_url=f"{API_BASE_URL}/",
        token=SecretStr("test-token"),
        widget_url=WIDGET_URL,
        download_dir=tmp_path / "downloads",
        screen_width=1366,
        screen_height=768,
        pixel_ratio=2.0,
        speed_upload_bytes=1024,
    )


@pytest.fixture
async def collaborators(
    config: HttpCollaboratorsConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[HttpCollaborators, None]:
    """Create collaborators with managed session."""
    async with HttpCollaborators.from_config(config) as impl:
        yield impl


def test_to_mbps() -> None:
    """Converts bytes per second into megabits per second."""
    assert to_mbps(1_250_000, 1.0) == pytest.approx(10.0)
    assert to_mbps(1_250_000, 0.5) == pytest.approx(20.0)
    assert to_mbps(100, 0.0) > 0


class TestDomainAccess:
    """Tests for check_domain_access."""

    async def test_reachable(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """Maps a successful check with its response time."""
        aioresponses.get(
            f"{API_BASE_URL}/test-domain",
            payload={
                "success": True,
                "message": "Domain is accessible",
                "metadata": {"responseTime": 120, "statusCode": 200},
            },
        )

        access = await collaborators.check_domain_access()

        assert access.reachable
        assert access.response_time_ms == 120
        assert access.diagnostic == "Domain is accessible"

    async def test_unreachable(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """Passes the diagnostic of a failed check through."""
        aioresponses.get(
            f"{API_BASE_URL}/test-domain",
            payload={
                "success": False,
                "message": "Domain access failed",
                "details": "ECONNREFUSED",
            },
        )

        access = await collaborators.check_domain_access()

        assert not access.reachable
        assert access.diagnostic == "ECONNREFUSED"

    async def test_raises_on_server_error(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """Raises CollaboratorFailure for error status codes."""
        aioresponses.get(f"{API_BASE_URL}/test-domain", status=500, body="boom")

        with pytest.raises(CollaboratorFailure, match="check domain access: 500"):
            await collaborators.check_domain_access()


class TestEmail:
    """Tests for send_verification_message and verify_code."""

    async def test_sends_2fa_message(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """Posts the address and message kind."""
        url = f"{API_BASE_URL}/send-email"
        aioresponses.post(
            url, payload={"success": True, "metadata": {"messageId": "msg-1"}}
        )

        receipt = await collaborators.send_verification_message(
            "user@example.com", "2fa"
        )

        assert receipt.accepted
        assert receipt.message_id == "msg-1"
        call = aioresponses.requests[("POST", URL(url))][0]
        assert call.kwargs["json"] == {"email": "user@example.com", "type": "2fa"}

    async def test_send_rejected(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """A rejected send is reported rather than raised."""
        aioresponses.post(
            f"{API_BASE_URL}/send-email",
            payload={"success": False, "message": "Failed to send email"},
        )

        receipt = await collaborators.send_verification_message(
            "user@example.com", "2fa"
        )

        assert not receipt.accepted

    async def test_verify_code(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """Maps the verification answer and delivery time."""
        url = f"{API_BASE_URL}/verify-email"
        aioresponses.post(
            url,
            payload={
                "success": True,
                "status": "PASS",
                "message": "Email verified successfully",
                "deliveryTime": 3.2,
            },
        )

        check = await collaborators.verify_code("user@example.com", "123456")

        assert check.valid
        assert check.elapsed_seconds == 3.2
        call = aioresponses.requests[("POST", URL(url))][0]
        assert call.kwargs["json"] == {"email": "user@example.com", "code": "123456"}

    async def test_verify_code_rejected(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """A wrong code comes back invalid with the server's message."""
        aioresponses.post(
            f"{API_BASE_URL}/verify-email",
            payload={"success": False, "message": "Invalid verification code"},
        )

        check = await collaborators.verify_code("user@example.com", "000000")

        assert not check.valid
        assert check.message == "Invalid verification code"


class TestDownload:
    """Tests for prepare_download_bundle and persist_bundle."""

    async def test_decodes_files(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """Decodes base64 and plain text files."""
        aioresponses.get(
            f"{API_BASE_URL}/file-download",
            payload={
                "success": True,
                "metadata": {
                    "filesCount": 2,
                    "files": [
                        {
                            "name": "sample.pdf",
                            "content": base64.b64encode(b"%PDF").decode(),
                            "type": "application/pdf",
                            "encoding": "base64",
                        },
                        {"name": "notes.txt", "content": "hello", "type": "text/plain"},
                    ],
                },
            },
        )

        bundle = await collaborators.prepare_download_bundle()

        assert bundle.files == (
            BundleFile(
                name="sample.pdf", content=b"%PDF", content_type="application/pdf"
            ),
            BundleFile(
                name="notes.txt", content=b"hello", content_type="text/plain"
            ),
        )
        assert bundle.total_bytes == 9

    async def test_raises_when_unsuccessful(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """Raises CollaboratorFailure when the API reports failure."""
        aioresponses.get(
            f"{API_BASE_URL}/file-download",
            payload={"success": False, "message": "Failed to prepare files"},
        )

        with pytest.raises(CollaboratorFailure, match="Failed to prepare files"):
            await collaborators.prepare_download_bundle()

    async def test_persists_into_download_dir(
        self, collaborators: HttpCollaborators, config: HttpCollaboratorsConfig
    ) -> None:
        """Writes files by base name only."""
        bundle = DownloadBundle(
            files=(
                BundleFile(name="a.txt", content=b"abc"),
                BundleFile(name="../../escape.txt", content=b"x"),
            )
        )

        paths = await collaborators.persist_bundle(bundle)

        directory = config.download_dir
        assert paths == [directory / "a.txt", directory / "escape.txt"]
        assert (config.download_dir / "a.txt").read_bytes() == b"abc"
        assert (config.download_dir / "escape.txt").read_bytes() == b"x"


class TestUpload:
    """Tests for upload_files."""

    async def test_uploads_files(
        self,
        collaborators: HttpCollaborators,
        aioresponses: aioresponses_cls,
        tmp_path: Path,
    ) -> None:
        """Posts the files and maps the receipt."""
        path = tmp_path / "report.pdf"
        path.write_bytes(b"content")
        aioresponses.post(
            f"{API_BASE_URL}/file-upload",
            payload={
                "success": True,
                "message": "1 file(s) uploaded successfully",
                "warnings": ["Large file: report.pdf"],
                "uploadedFiles": [{"filename": "report.pdf", "size": 7}],
            },
        )

        receipt = await collaborators.upload_files([SelectedFile.from_path(path)])

        assert receipt.accepted
        assert receipt.accepted_count == 1
        assert receipt.warnings == ("Large file: report.pdf",)

    async def test_raises_for_file_without_path(
        self, collaborators: HttpCollaborators
    ) -> None:
        """Files must exist locally to be uploaded."""
        with pytest.raises(CollaboratorFailure, match="no local path"):
            await collaborators.upload_files([SelectedFile(name="a.txt", size=1)])

    async def test_raises_on_rejection_status(
        self,
        collaborators: HttpCollaborators,
        aioresponses: aioresponses_cls,
        tmp_path: Path,
    ) -> None:
        """Raises CollaboratorFailure for error status codes."""
        path = tmp_path / "a.txt"
        path.write_bytes(b"a")
        aioresponses.post(f"{API_BASE_URL}/file-upload", status=413, body="too large")

        with pytest.raises(CollaboratorFailure, match="upload files: 413 too large"):
            await collaborators.upload_files([SelectedFile.from_path(path)])


class TestWidget:
    """Tests for check_widget_presence."""

    async def test_present(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """The widget is present when its script loads."""
        aioresponses.get(WIDGET_URL, status=200, body="window.Intercom=1")

        assert await collaborators.check_widget_presence()

    async def test_missing(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """The widget is absent when its script is not found."""
        aioresponses.get(WIDGET_URL, status=404)

        assert not await collaborators.check_widget_presence()

    async def test_blocked(
        self, collaborators: HttpCollaborators, aioresponses: aioresponses_cls
    ) -> None:
        """The widget is absent when the connection fails."""
        aioresponses.get(WIDGET_URL, exception=aiohttp.ClientConnectionError("blocked"))

        assert not await collaborators.check_widget_presence()


async def test_read_screen_resolution(collaborators: HttpCollaborators) -> None:
    """Reports the configured resolution."""
    resolution = await collaborators.read_screen_resolution()

    assert (resolution.width, resolution.height, resolution.pixel_ratio) == (
        1366,
        768,
        2.0,
    )


async def test_measure_connection(
    collaborators: HttpCollaborators, aioresponses: aioresponses_cls
) -> None:
    """Times a download, an upload and a ping."""
    aioresponses.get(f"{API_BASE_URL}/file-download", body=b"x" * 4096)
    aioresponses.post(f"{API_BASE_URL}/file-upload", payload={"success": True})
    aioresponses.get(f"{API_BASE_URL}/ping", payload={"ok": True})

    measurement = await collaborators.measure_connection()

    assert measurement.download_mbps > 0
    assert measurement.upload_mbps > 0
    assert measurement.latency_ms >= 0
    assert ("GET", URL(f"{API_BASE_URL}/ping")) in aioresponses.requests
