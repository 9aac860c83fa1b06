"""
Provider factory for creating appropriate provider instances.

This module picks a component provider from an explicit provider kind or,
for ``ProviderKind.AUTO``, from the shape of the component path.
"""

from pathlib import Path
from typing import Union

from ..core.enums import ProviderKind
from ..exceptions import NotLoadableModuleError
from .base import ComponentProvider
from .clr import CLR_SUFFIXES, ClrMetadataProvider
from .description import DESCRIPTION_SUFFIXES, DescriptionProvider


class ProviderFactory:
    """Factory for creating component provider instances."""

    @staticmethod
    def detect_kind(component_path: Path) -> ProviderKind:
        """Guess the provider kind from a component path."""
        path = Path(component_path)
        suffix = path.suffix.lower()
        if suffix in DESCRIPTION_SUFFIXES:
            return ProviderKind.DESCRIPTION
        if suffix in CLR_SUFFIXES:
            return ProviderKind.CLR
        raise NotLoadableModuleError(
            f"Selected file is not a loadable component: "
            f"unrecognised file type '{suffix or path.name}'.",
            file_path=path,
        )

    @staticmethod
    def create_provider(
        provider_kind: Union[ProviderKind, str], component_path: Path
    ) -> ComponentProvider:
        """Create and return the provider for the given kind and component."""
        if isinstance(provider_kind, str):
            provider_kind = ProviderKind.from_string(provider_kind)
        if provider_kind is ProviderKind.AUTO:
            provider_kind = ProviderFactory.detect_kind(component_path)

        match provider_kind:
            case ProviderKind.CLR:
                return ClrMetadataProvider()
            case ProviderKind.DESCRIPTION:
                return DescriptionProvider()
            case _:
                raise ValueError(f"Unsupported provider: {provider_kind}")
