"""HTTP collaborator backend talking to the onboarding test API."""

import asyncio
import base64
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import aiohttp

from onboarding_preflight.collaborators.base import (
    BundleFile,
    CodeCheck,
    ConnectionMeasurement,
    DomainAccess,
    DownloadBundle,
    MessageKind,
    MessageReceipt,
    ProbeCollaborators,
    ScreenResolution,
    UploadReceipt,
)
from onboarding_preflight.collaborators.http.config import HttpCollaboratorsConfig
from onboarding_preflight.collaborators.http.models import (
    DomainResponse,
    DownloadResponse,
    SendEmailResponse,
    UploadResponse,
    VerifyEmailResponse,
)
from onboarding_preflight.errors import CollaboratorFailure
from onboarding_preflight.models.selection import SelectedFile

log = logging.getLogger(__name__)

_MIN_SECONDS = 1e-6


def to_mbps(num_bytes: int, seconds: float) -> float:
    """Convert a transfer of ``num_bytes`` in ``seconds`` to megabits per second."""
    return num_bytes * 8 / 1_000_000 / max(seconds, _MIN_SECONDS)


async def _raise_for_status(response: aiohttp.ClientResponse, action: str) -> None:
    if response.status >= 300:
        text = await response.text()
        raise CollaboratorFailure(f"Failed to {action}: {response.status} {text}")


@dataclass(frozen=True, kw_only=True)
class HttpCollaborators(ProbeCollaborators):
    """Probe collaborators backed by the onboarding test API."""

    config: HttpCollaboratorsConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: HttpCollaboratorsConfig
    ) -> AsyncGenerator["HttpCollaborators", None]:
        """Create collaborators with managed session lifecycle."""
        headers = {"Accept": "application/json"}
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"
        async with aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.request_timeout),
        ) as session:
            yield cls(config=config, session=session)

    def url(self, endpoint: str) -> str:
        """Absolute URL of an API endpoint."""
        return f"{self.config.api_base_url.rstrip('/')}/{endpoint}"

    async def _get_json(self, endpoint: str, action: str) -> Any:
        async with self.session.get(self.url(endpoint)) as response:
            await _raise_for_status(response, action)
            return await response.json()

    async def _post_json(
        self, endpoint: str, payload: dict[str, str], action: str
    ) -> Any:
        async with self.session.post(self.url(endpoint), json=payload) as response:
            await _raise_for_status(response, action)
            return await response.json()

    async def check_domain_access(self) -> DomainAccess:
        """Ask the API to reach the platform domain."""
        data = await self._get_json("test-domain", "check domain access")
        result = DomainResponse.model_validate(data)
        log.info(
            "Domain check: success=%s response_time=%sms",
            result.success,
            result.metadata.response_time,
        )
        return DomainAccess(
            reachable=result.success,
            response_time_ms=result.metadata.response_time,
            diagnostic=result.details or result.message,
        )

    async def send_verification_message(
        self, address: str, kind: MessageKind
    ) -> MessageReceipt:
        """Ask the API to email a verification code."""
        data = await self._post_json(
            "send-email", {"email": address, "type": kind}, "send verification email"
        )
        result = SendEmailResponse.model_validate(data)
        if not result.success:
            log.warning("Verification email rejected: %s", result.message)
        return MessageReceipt(
            accepted=result.success, message_id=result.metadata.message_id
        )

    async def verify_code(self, address: str, code: str) -> CodeCheck:
        """Ask the API whether the code matches the one it sent."""
        data = await self._post_json(
            "verify-email", {"email": address, "code": code}, "verify code"
        )
        result = VerifyEmailResponse.model_validate(data)
        return CodeCheck(
            valid=result.success,
            elapsed_seconds=result.delivery_time,
            message=result.message,
        )

    async def prepare_download_bundle(self) -> DownloadBundle:
        """Fetch the test files, decoding base64-encoded content."""
        data = await self._get_json("file-download", "prepare download")
        result = DownloadResponse.model_validate(data)
        if not result.success:
            raise CollaboratorFailure(result.message or "Download preparation failed")

        files = tuple(
            BundleFile(
                name=file.name,
                content=(
                    base64.b64decode(file.content)
                    if file.encoding == "base64"
                    else file.content.encode("utf-8")
                ),
                content_type=file.type,
            )
            for file in result.metadata.files
        )
        return DownloadBundle(files=files)

    async def persist_bundle(self, bundle: DownloadBundle) -> Sequence[Path]:
        """Write the bundle files into the configured download directory."""
        directory = self.config.download_dir
        await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)

        paths: list[Path] = []
        for file in bundle.files:
            path = directory / Path(file.name).name
            await asyncio.to_thread(path.write_bytes, file.content)
            paths.append(path)
        log.info("Saved %d file(s) to %s", len(paths), directory)
        return paths

    async def upload_files(self, files: Sequence[SelectedFile]) -> UploadReceipt:
        """Upload files as a multipart form (``file0`` .. ``fileN``)."""
        form = aiohttp.FormData()
        for index, file in enumerate(files):
            if file.path is None:
                raise CollaboratorFailure(f"File {file.name!r} has no local path")
            content = await asyncio.to_thread(file.path.read_bytes)
            form.add_field(
                f"file{index}",
                content,
                filename=file.name,
                content_type="application/octet-stream",
            )

        async with self.session.post(self.url("file-upload"), data=form) as response:
            await _raise_for_status(response, "upload files")
            data = await response.json()

        result = UploadResponse.model_validate(data)
        return UploadReceipt(
            accepted=result.success,
            warnings=tuple(result.warnings),
            accepted_count=len(result.uploaded_files),
            message=result.message,
        )

    async def check_widget_presence(self) -> bool:
        """Check that the widget script can be fetched."""
        try:
            async with self.session.get(self.config.widget_url) as response:
                return response.status < 400
        except (aiohttp.ClientError, TimeoutError) as exc:
            log.warning("Widget script unreachable: %s", exc)
            return False

    async def read_screen_resolution(self) -> ScreenResolution:
        """Return the configured screen resolution."""
        return ScreenResolution(
            width=self.config.screen_width,
            height=self.config.screen_height,
            pixel_ratio=self.config.pixel_ratio,
        )

    async def measure_connection(self) -> ConnectionMeasurement:
        """Time a download, an upload and a ping against the API."""
        loop = asyncio.get_running_loop()

        started = loop.time()
        async with self.session.get(self.url("file-download")) as response:
            await _raise_for_status(response, "measure download speed")
            body = await response.read()
        download_mbps = to_mbps(len(body), loop.time() - started)

        payload = bytes(self.config.speed_upload_bytes)
        form = aiohttp.FormData()
        form.add_field(
            "file0",
            payload,
            filename="speed-test.bin",
            content_type="application/octet-stream",
        )
        started = loop.time()
        async with self.session.post(self.url("file-upload"), data=form) as response:
            await _raise_for_status(response, "measure upload speed")
            await response.read()
        upload_mbps = to_mbps(len(payload), loop.time() - started)

        started = loop.time()
        async with self.session.get(self.url("ping")) as response:
            await _raise_for_status(response, "measure latency")
            await response.read()
        latency_ms = (loop.time() - started) * 1000

        log.info(
            "Connection: download=%.2fMbps upload=%.2fMbps latency=%.0fms",
            download_mbps,
            upload_mbps,
            latency_ms,
        )
        return ConnectionMeasurement(
            download_mbps=download_mbps, upload_mbps=upload_mbps, latency_ms=latency_ms
        )
