"""
Component providers for assembly_bridge.

A provider turns a component path into member candidates. The introspector
decides which of them are invocable.
"""

from .base import ComponentProvider
from .clr import ClrMetadataProvider
from .description import DescriptionProvider
from .factory import ProviderFactory

__all__ = [
    "ComponentProvider",
    "ClrMetadataProvider",
    "DescriptionProvider",
    "ProviderFactory",
]
