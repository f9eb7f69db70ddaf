"""Mapping of measured values to verdicts and recommendations.

Every function here is pure: the same input always produces the same
verdict, message and recommendation list.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from onboarding_preflight.models.definition import TestKind
from onboarding_preflight.models.result import Verdict
from onboarding_preflight.models.selection import SelectedFile

TFA_PASS_SECONDS = 5.0
TFA_WARNING_SECONDS = 30.0

MIN_WIDTH = 1280
MIN_HEIGHT = 720

GOOD_DOWNLOAD_MBPS = 10.0
GOOD_UPLOAD_MBPS = 5.0
GOOD_LATENCY_MS = 100.0
ACCEPTABLE_DOWNLOAD_MBPS = 5.0
ACCEPTABLE_UPLOAD_MBPS = 2.0
ACCEPTABLE_LATENCY_MS = 200.0

MAX_UPLOAD_FILES = 100
MAX_UPLOAD_BYTES = 100 * 1024 * 1024

_MB = 1024 * 1024
_PATH_IN_WARNING = re.compile(r'File ".*[/\\]([^/\\]+)"')


@dataclass(frozen=True, kw_only=True)
class Classification:
    """Verdict for a measured value together with its explanation."""

    verdict: Verdict
    message: str
    details: str = ""
    recommendations: Sequence[str] = field(default_factory=tuple)


def classify_two_factor(delivery_time: float) -> Classification:
    """Classify how long a 2FA code took to reach the user."""
    if delivery_time <= TFA_PASS_SECONDS:
        return Classification(
            verdict="PASS",
            message=f"2FA code delivered in {delivery_time:.2f}s",
            details=(
                "Delivery time is within the acceptable range for secure "
                "authentication."
            ),
        )
    if delivery_time <= TFA_WARNING_SECONDS:
        return Classification(
            verdict="WARNING",
            message=f"2FA code delivered in {delivery_time:.2f}s",
            details="Delivery time is slower than recommended.",
            recommendations=(
                f"2FA code delivery took {delivery_time:.2f}s, above the "
                f"{TFA_PASS_SECONDS:.0f}s target",
                "Login may be delayed while waiting for verification codes",
            ),
        )
    return Classification(
        verdict="FAIL",
        message=f"2FA code delivered in {delivery_time:.2f}s",
        details="Delivery time exceeds the maximum usable window.",
        recommendations=(
            "2FA code delivery is too slow: consider alternative delivery methods",
            f"Codes arriving after {TFA_WARNING_SECONDS:.0f}s may expire before "
            "they can be used",
        ),
    )


def classify_resolution(
    width: int, height: int, pixel_ratio: float = 1.0
) -> Classification:
    """Classify the screen resolution; below the minimum degrades to a warning."""
    details = f"Current: {width}x{height}, Pixel Ratio: {pixel_ratio}x"
    if width >= MIN_WIDTH and height >= MIN_HEIGHT:
        return Classification(
            verdict="PASS",
            message=f"Screen resolution {width}x{height} meets requirements",
            details=details,
        )
    return Classification(
        verdict="WARNING",
        message=(
            f"Screen resolution {width}x{height} is below recommended "
            f"{MIN_WIDTH}x{MIN_HEIGHT}"
        ),
        details=details,
        recommendations=("Low screen resolution may affect user experience",),
    )


def classify_connection(
    download_mbps: float, upload_mbps: float, latency_ms: float
) -> Classification:
    """Classify connection speed from download, upload and latency."""
    details = (
        f"Download: {download_mbps:.2f} Mbps | Upload: {upload_mbps:.2f} Mbps | "
        f"Latency: {latency_ms:.0f} ms"
    )

    if (
        download_mbps >= GOOD_DOWNLOAD_MBPS
        and upload_mbps >= GOOD_UPLOAD_MBPS
        and latency_ms < GOOD_LATENCY_MS
    ):
        return Classification(
            verdict="PASS",
            message="Connection speed is excellent",
            details=details,
        )

    if (
        download_mbps >= ACCEPTABLE_DOWNLOAD_MBPS
        and upload_mbps >= ACCEPTABLE_UPLOAD_MBPS
        and latency_ms < ACCEPTABLE_LATENCY_MS
    ):
        return Classification(
            verdict="WARNING",
            message="Connection speed is acceptable but could be improved",
            details=details,
            recommendations=(
                "Connection speed is functional but may cause delays with large files",
                "Consider upgrading internet connection for better performance",
                "Close bandwidth-heavy applications during platform use",
            ),
        )

    blockers: list[str] = []
    if download_mbps < ACCEPTABLE_DOWNLOAD_MBPS:
        blockers.append("Download speed too slow (minimum 5 Mbps required)")
    if upload_mbps < ACCEPTABLE_UPLOAD_MBPS:
        blockers.append("Upload speed too slow (minimum 2 Mbps required)")
    if latency_ms >= ACCEPTABLE_LATENCY_MS:
        blockers.append("Network latency too high (maximum 200ms acceptable)")

    return Classification(
        verdict="FAIL",
        message="Connection speed is below recommended minimum",
        details=details,
        recommendations=(
            *blockers,
            "Internet connection speed is insufficient for optimal performance",
            "Contact IT department to investigate network issues",
        ),
    )


def check_upload_selection(files: Sequence[SelectedFile]) -> Classification | None:
    """Validate a file selection against the upload caps.

    Returns a FAIL classification when the selection must not be uploaded,
    or None when it is within limits.
    """
    if not files:
        return Classification(
            verdict="FAIL",
            message="No files selected",
            details="Please select files to upload.",
            recommendations=("No files selected",),
        )

    if len(files) > MAX_UPLOAD_FILES:
        return Classification(
            verdict="FAIL",
            message="Too many files selected",
            details=(
                f"Maximum {MAX_UPLOAD_FILES} files allowed, "
                f"{len(files)} files were selected."
            ),
            recommendations=(f"Select at most {MAX_UPLOAD_FILES} files",),
        )

    oversized = [
        f"{file.name} ({file.size / _MB:.2f} MB)"
        for file in files
        if file.size > MAX_UPLOAD_BYTES
    ]
    if oversized:
        return Classification(
            verdict="FAIL",
            message="Files exceed 100MB limit",
            details=f"Files exceed 100MB limit: {', '.join(oversized)}",
            recommendations=(
                "Files larger than 100MB cannot be uploaded to the platform",
            ),
        )

    return None


def clean_upload_warning(warning: str) -> str:
    """Reduce file paths in a server warning to bare file names."""
    return _PATH_IN_WARNING.sub(r'File "\1"', warning)


def classify_upload(
    files: Sequence[SelectedFile],
    warnings: Sequence[str] = (),
    accepted_count: int | None = None,
) -> Classification:
    """Classify an upload from the selection and the server's warnings."""
    if (rejection := check_upload_selection(files)) is not None:
        return rejection

    count = accepted_count if accepted_count is not None else len(files)
    total_mb = sum(file.size for file in files) / _MB
    cleaned = tuple(clean_upload_warning(warning) for warning in warnings)

    if cleaned:
        return Classification(
            verdict="WARNING",
            message=f"{count} file(s) uploaded successfully with some warnings",
            details=(
                f"Uploaded {count} file(s) ({total_mb:.2f} MB total). "
                "Some warnings were detected but files were uploaded."
            ),
            recommendations=cleaned,
        )
    return Classification(
        verdict="PASS",
        message=f"{count} file(s) uploaded successfully",
        details=(
            f"Uploaded {count} file(s) ({total_mb:.2f} MB total). "
            "All files uploaded without issues."
        ),
    )


def classify_domain(reachable: bool, diagnostic: str = "") -> Classification:
    """Classify domain reachability."""
    if reachable:
        return Classification(
            verdict="PASS", message="Domain access successful", details=diagnostic
        )
    return Classification(
        verdict="FAIL",
        message="Domain access failed",
        details=diagnostic,
        recommendations=(
            "Network connectivity issues",
            "Firewall or proxy blocking the domain",
            "DNS resolution failure",
            "VPN/Corporate network restrictions",
        ),
    )


def classify_email(confirmed: bool, reason: str = "") -> Classification:
    """Classify whether the emailed code was confirmed."""
    if confirmed:
        return Classification(verdict="PASS", message="Email delivered successfully")
    return Classification(
        verdict="FAIL",
        message=reason or "Email verification failed",
        details="The verification email could not be confirmed.",
        recommendations=(
            "Check that emails from the platform are not blocked or sent to spam",
            "Ask your IT department to allow the platform's sender address",
        ),
    )


def classify_widget(present: bool) -> Classification:
    """Classify support widget presence; absence is only a warning."""
    if present:
        return Classification(
            verdict="PASS",
            message="Intercom widget loaded successfully",
            details="Widget is available and functional",
        )
    return Classification(
        verdict="WARNING",
        message="Intercom widget not detected",
        details=(
            "The Intercom support widget is not available. This may be blocked "
            "by firewall or content blocker."
        ),
        recommendations=(
            "Intercom widget not loaded",
            "May be blocked by network policies",
        ),
    )


TIMEOUT_RECOMMENDATIONS: dict[TestKind, str] = {
    "email-2fa": "VerificationTimeout: no code was entered before the deadline. "
    "Check email delivery and spam filters.",
    "file-upload": "VerificationTimeout: no files were selected before the deadline.",
}

FAILURE_RECOMMENDATIONS: dict[TestKind, Sequence[str]] = {
    "domain-access": ("Cannot reach test server", "Network completely blocked"),
    "email-2fa": ("Failed to send verification email. Check email configuration.",),
    "file-download": (
        "Server unreachable",
        "Download blocked by browser or network",
    ),
    "file-upload": (
        "File upload failed. Check network connection and file size limits.",
    ),
    "intercom": ("Unable to check Intercom widget status.",),
    "screen-resolution": ("Screen API unavailable",),
    "connection-speed": (
        "Network connection unstable",
        "Unable to complete speed test",
    ),
}


def classify_timeout(kind: TestKind, timeout: float) -> Classification:
    """Classify a test whose verification gate expired."""
    return Classification(
        verdict="FAIL",
        message="Verification timed out",
        details=f"No input was received within {timeout:.0f} seconds.",
        recommendations=(
            TIMEOUT_RECOMMENDATIONS.get(
                kind, "VerificationTimeout: no input received before the deadline."
            ),
        ),
    )


def classify_failure(kind: TestKind, error: str) -> Classification:
    """Classify a test whose probe raised or reported an explicit failure."""
    return Classification(
        verdict="FAIL",
        message="Test execution failed",
        details=error,
        recommendations=(*FAILURE_RECOMMENDATIONS.get(kind, ()), error),
    )


def classify_download(saved_count: int, total_bytes: int) -> Classification:
    """Classify the download test from the number of files saved locally."""
    if saved_count > 0:
        return Classification(
            verdict="PASS",
            message="All files downloaded successfully",
            details=(
                f"Downloaded {saved_count} file(s) ({total_bytes / _MB:.2f} MB). "
                "Downloads are not restricted. Use these files for the upload test."
            ),
        )
    return Classification(
        verdict="FAIL",
        message="No files were downloaded",
        details="The server did not provide any files to download.",
        recommendations=FAILURE_RECOMMENDATIONS["file-download"],
    )
