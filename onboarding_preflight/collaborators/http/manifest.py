"""HTTP collaborator backend manifest."""

from onboarding_preflight.collaborators.http.collaborators import HttpCollaborators
from onboarding_preflight.collaborators.http.config import HttpCollaboratorsConfig
from onboarding_preflight.collaborators.manifest import CollaboratorManifest

http_manifest = CollaboratorManifest(
    config_cls=HttpCollaboratorsConfig,
    collaborators_factory=HttpCollaborators.from_config,
)
