"""
Core module for assembly_bridge.

This module contains the fundamental data structures and enums used throughout
the introspection and generation pipeline.
"""

from .enums import TypeKind, ProviderKind, ErrorKind, CollisionPolicy, ArtifactKind
from .data_structures import (
    MemberDescriptor,
    MemberCandidate,
    ComponentDescriptor,
    RunContext,
    GenerationResult,
)

__all__ = [
    "TypeKind",
    "ProviderKind",
    "ErrorKind",
    "CollisionPolicy",
    "ArtifactKind",
    "MemberDescriptor",
    "MemberCandidate",
    "ComponentDescriptor",
    "RunContext",
    "GenerationResult",
]
