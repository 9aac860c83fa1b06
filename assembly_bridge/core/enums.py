"""
Enums for assembly_bridge.

This module contains the enumeration types shared by providers, the
introspector and the generation pipeline.
"""

from enum import Enum, auto


class TypeKind(Enum):
    """Kind of a declaring type as reported by a provider."""

    CLASS = auto()
    VALUE_TYPE = auto()
    INTERFACE = auto()
    ENUM = auto()

    @classmethod
    def from_string(cls, kind_name: str) -> "TypeKind":
        """Convert a string type kind (``class``, ``struct``, ...) to an enum value."""
        aliases = {
            "class": cls.CLASS,
            "struct": cls.VALUE_TYPE,
            "value_type": cls.VALUE_TYPE,
            "valuetype": cls.VALUE_TYPE,
            "interface": cls.INTERFACE,
            "enum": cls.ENUM,
        }
        normalized = kind_name.strip().lower()
        if normalized in aliases:
            return aliases[normalized]
        raise ValueError(f"Unsupported type kind: {kind_name}")

    @property
    def is_class_like(self) -> bool:
        return self is TypeKind.CLASS


class ProviderKind(Enum):
    """Enumeration of supported component description providers."""

    AUTO = "auto"
    CLR = "clr"
    DESCRIPTION = "description"

    @classmethod
    def from_string(cls, provider_name: str) -> "ProviderKind":
        """Convert string provider name to enum value."""
        name = provider_name.upper()
        if name in cls.__members__:
            return cls[name]
        raise ValueError(f"Unsupported provider: {provider_name}")


class ErrorKind(Enum):
    """Closed set of terminal outcomes for a failed generation run."""

    INVALID_INPUT = "invalid_input"
    NOT_LOADABLE = "not_loadable"
    PARTIAL_TYPE_LOAD = "partial_type_load"
    NOTHING_TO_EXPORT = "nothing_to_export"
    UNCLASSIFIED = "unclassified"


class CollisionPolicy(Enum):
    """How the identifier allocator treats two members with the same identifier."""

    IGNORE = "ignore"
    ORDINAL = "ordinal"

    @classmethod
    def from_string(cls, policy: str) -> "CollisionPolicy":
        """Convert string policy name to enum value."""
        normalized = policy.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unsupported collision policy: {policy}")


class ArtifactKind(Enum):
    """Artifacts produced by a generation run."""

    MANIFEST = "manifest"
    BRIDGE = "bridge"

    @classmethod
    def from_string(cls, artifact_name: str) -> "ArtifactKind":
        """Convert string artifact name to enum value."""
        name = artifact_name.upper()
        if name in cls.__members__:
            return cls[name]
        raise ValueError(f"Unsupported artifact: {artifact_name}")
