"""
Base provider interface.

This module defines the protocol that all component description providers
must implement.
"""

from pathlib import Path
from typing import List, Protocol

from ..core.data_structures import MemberCandidate


class ComponentProvider(Protocol):
    """Protocol defining interface for component description providers."""

    name: str

    def source_path(self, component_path: Path) -> Path:
        """Return the absolute path recorded as the component's location."""
        ...

    def load(self, component_path: Path) -> List[MemberCandidate]:
        """
        Enumerate every member of every type declared by the component.

        Candidates are returned in type enumeration order, then member
        enumeration order within each type.

        Raises:
            NotLoadableModuleError: The path is not a component of this format.
            PartialTypeLoadError: Some declared types could not be resolved.
        """
        ...
