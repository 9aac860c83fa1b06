"""
Base emitter interface.

This module defines the protocol that all artifact emitters must implement.
"""

from typing import Optional, Protocol, Sequence

from ..core.data_structures import ComponentDescriptor


class ArtifactEmitter(Protocol):
    """Protocol defining interface for artifact emitters."""

    @property
    def filename(self) -> str:
        """Name of the file the artifact is written to."""
        ...

    def render(
        self,
        component: ComponentDescriptor,
        identifiers: Optional[Sequence[str]] = None,
    ) -> str:
        """Render the artifact text for ``component``."""
        ...
