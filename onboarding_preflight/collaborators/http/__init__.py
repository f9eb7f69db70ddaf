"""HTTP collaborator backend module."""

from onboarding_preflight.collaborators.http.collaborators import HttpCollaborators
from onboarding_preflight.collaborators.http.config import HttpCollaboratorsConfig
from onboarding_preflight.collaborators.http.manifest import http_manifest

__all__ = ["HttpCollaborators", "HttpCollaboratorsConfig", "http_manifest"]
