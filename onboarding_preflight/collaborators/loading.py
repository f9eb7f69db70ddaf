"""Discovery of collaborator backends registered by installed packages.

A backend is a :class:`CollaboratorManifest` published under the
``onboarding_preflight.collaborators`` entry point group. The bundled ``http``
backend talks to the onboarding test API; other packages can register
backends that probe the environment differently.
"""

from importlib.metadata import entry_points
from typing import Any

from onboarding_preflight.collaborators.manifest import CollaboratorManifest

ENTRY_POINT_GROUP = "onboarding_preflight.collaborators"


class CollaboratorNotFoundError(LookupError):
    """Raised when no installed package registers the requested backend."""


def available_backends() -> list[str]:
    """Names of the registered backends, sorted."""
    return sorted({entry.name for entry in entry_points(group=ENTRY_POINT_GROUP)})


def load_collaborator_manifest(key: str) -> CollaboratorManifest[Any]:
    """Resolve a backend name to its manifest.

    Raises:
        CollaboratorNotFoundError: If no backend is registered as ``key``

    """
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    if not matches:
        raise CollaboratorNotFoundError(
            f"Collaborator backend '{key}' not found. "
            f"Available backends: {available_backends()}"
        )
    manifest: CollaboratorManifest[Any] = next(iter(matches)).load()
    return manifest
