"""Collaborator manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from onboarding_preflight.collaborators.base import ProbeCollaborators


@dataclass(frozen=True, kw_only=True)
class CollaboratorManifest[ConfigT: BaseModel]:
    """Manifest describing a collaborator backend plugin.

    Holds the configuration class and the factory used to build the
    collaborators lazily once the backend key is known.
    """

    config_cls: type[ConfigT]
    collaborators_factory: Callable[
        [ConfigT], AbstractAsyncContextManager[ProbeCollaborators]
    ]
