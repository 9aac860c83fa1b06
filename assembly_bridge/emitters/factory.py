"""
Emitter factory for creating appropriate emitter instances.

This module provides a factory for creating artifact emitters based on the
artifact kind.
"""

from typing import Optional, Union

from ..core.enums import ArtifactKind
from ..options import GeneratorOptions
from .base import ArtifactEmitter
from .bridge import BridgeModuleEmitter
from .manifest import ManifestEmitter


class EmitterFactory:
    """Factory for creating artifact emitter instances."""

    @staticmethod
    def create_emitter(
        artifact_kind: Union[ArtifactKind, str],
        options: Optional[GeneratorOptions] = None,
    ) -> ArtifactEmitter:
        """Create and return the emitter for the given artifact kind."""
        if isinstance(artifact_kind, str):
            artifact_kind = ArtifactKind.from_string(artifact_kind)

        match artifact_kind:
            case ArtifactKind.MANIFEST:
                return ManifestEmitter(options)
            case ArtifactKind.BRIDGE:
                return BridgeModuleEmitter(options)
            case _:
                raise ValueError(f"Unsupported artifact: {artifact_kind}")
