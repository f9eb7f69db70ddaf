"""Models for the checklist of tests run against the user's environment."""

from collections.abc import Sequence
from typing import Literal

from pydantic import Field, model_validator

from onboarding_preflight.models.base import Model

TestKind = Literal[
    "domain-access",
    "email-2fa",
    "file-download",
    "file-upload",
    "intercom",
    "screen-resolution",
    "connection-speed",
]

TestCategory = Literal["critical", "important", "optional"]

DEFAULT_VERIFICATION_TIMEOUT = 300.0


class TestDefinition(Model):
    """Static description of one checklist entry."""

    __test__ = False

    id: int = Field(..., ge=1, description="Unique sequence position")
    kind: TestKind = Field(..., description="Probe executed for this test")
    name: str = Field(..., description="Human-readable test name")
    description: str = Field(default="", description="What the test verifies")
    category: TestCategory = Field(default="important")
    estimated_time: str = Field(default="5s", description="Expected duration hint")
    verification_timeout: float = Field(
        default=DEFAULT_VERIFICATION_TIMEOUT,
        gt=0,
        description="Seconds to wait for human input when the test is gated",
    )


class Checklist(Model):
    """Ordered, immutable list of tests executed by the orchestrator."""

    version: str = Field(default="1.0", description="Checklist schema version")
    tests: Sequence[TestDefinition] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "Checklist":
        seen: set[int] = set()
        for test in self.tests:
            if test.id in seen:
                raise ValueError(f"Duplicate test id: {test.id}")
            seen.add(test.id)
        return self

    def __len__(self) -> int:
        return len(self.tests)

    def get(self, test_id: int) -> TestDefinition | None:
        """Return the test with the given id, if any."""
        return next((test for test in self.tests if test.id == test_id), None)


DEFAULT_CHECKLIST = Checklist(
    tests=(
        TestDefinition(
            id=1,
            kind="domain-access",
            name="Domain Access Test",
            description=(
                "Verifies that your device can access the required domain "
                "and network resources for the platform"
            ),
            category="critical",
            estimated_time="5s",
        ),
        TestDefinition(
            id=2,
            kind="email-2fa",
            name="Email Delivery & 2FA Timing Test",
            description=(
                "Sends a verification code by email and measures how long it "
                "takes to reach you, as used for two-factor authentication"
            ),
            category="critical",
            estimated_time="30s",
        ),
        TestDefinition(
            id=3,
            kind="file-download",
            name="File Download Test",
            description=(
                "Tests your ability to download files from the platform and "
                "checks for download restrictions"
            ),
            category="critical",
            estimated_time="15s",
        ),
        TestDefinition(
            id=4,
            kind="file-upload",
            name="File Upload Test",
            description=(
                "Tests your ability to upload files to the platform and "
                "validates file handling"
            ),
            category="critical",
            estimated_time="15s",
        ),
        TestDefinition(
            id=5,
            kind="intercom",
            name="Intercom Widget Test",
            description=(
                "Verifies that the Intercom support widget loads without "
                "being blocked"
            ),
            category="important",
            estimated_time="5s",
        ),
        TestDefinition(
            id=6,
            kind="screen-resolution",
            name="Screen Resolution Test",
            description=(
                "Checks if your screen resolution meets the minimum "
                "requirements for optimal display"
            ),
            category="important",
            estimated_time="2s",
        ),
        TestDefinition(
            id=7,
            kind="connection-speed",
            name="Connection Speed Test",
            description=(
                "Measures your internet connection speed for optimal "
                "platform performance"
            ),
            category="critical",
            estimated_time="20s",
        ),
    )
)
