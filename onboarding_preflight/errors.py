"""Exceptions raised by the checklist core."""


class PreflightError(Exception):
    """Base class for checklist errors."""


class ValidationError(PreflightError, ValueError):
    """Raised when an entry point receives malformed input."""


class EmptySelectionError(ValidationError):
    """Raised when a file submission contains no files."""


class CollaboratorFailure(PreflightError):
    """Raised when a probe collaborator reports an explicit failure."""


class VerificationTimeout(PreflightError):
    """Raised when a verification gate expires without valid input."""


class GateAlreadyOpenError(PreflightError):
    """Raised when a second gate is opened for a test that is already gated."""


class RunInProgressError(PreflightError):
    """Raised when a run is started or reset while another run is executing."""
