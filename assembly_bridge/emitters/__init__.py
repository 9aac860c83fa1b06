"""
Artifact emitters for assembly_bridge.

Both emitters render from the same component descriptor, in the same member
order, so the manifest and the bridge module always describe the same exports.
"""

from .base import ArtifactEmitter
from .manifest import ManifestEmitter, toml_string
from .bridge import BridgeModuleEmitter, js_string
from .factory import EmitterFactory

__all__ = [
    "ArtifactEmitter",
    "ManifestEmitter",
    "BridgeModuleEmitter",
    "EmitterFactory",
    "toml_string",
    "js_string",
]
