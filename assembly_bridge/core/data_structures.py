"""
Data structures for assembly_bridge.

This module contains the value types that flow through one generation run:
raw member candidates reported by a provider, the filtered member descriptors,
the run context and the tagged run result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .enums import ErrorKind, TypeKind


@dataclass(frozen=True)
class MemberDescriptor:
    """An invocable member of a component."""

    namespace_name: str
    type_name: str
    member_name: str
    is_static: bool
    return_type_name: str
    parameter_type_names: Tuple[str, ...] = ()

    @property
    def qualified_type_name(self) -> str:
        """Type name as the foreign bridge expects it (``Namespace.Type`` or ``Type``)."""
        if not self.namespace_name:
            return self.type_name
        return f"{self.namespace_name}.{self.type_name}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the MemberDescriptor to a dictionary."""
        return {
            "namespace": self.namespace_name,
            "class": self.type_name,
            "method": self.member_name,
            "static": self.is_static,
            "returns": self.return_type_name,
            "params": list(self.parameter_type_names),
        }


@dataclass(frozen=True)
class MemberCandidate:
    """A member as reported by a provider, before the eligibility filter."""

    namespace_name: str
    type_name: str
    member_name: str
    type_kind: TypeKind
    is_public: bool
    is_special: bool
    is_static: bool
    returns_void: bool
    return_type_name: str
    parameter_type_names: Tuple[str, ...] = ()

    def exclusion_reason(self) -> Optional[str]:
        """Return why this member is not invocable, or None if it is."""
        if not self.type_kind.is_class_like:
            return f"declared on {self.type_kind.name.lower()}"
        if not self.is_public:
            return "not public"
        if self.is_special:
            return "special member"
        if self.returns_void:
            return "returns void"
        return None

    @property
    def is_invocable(self) -> bool:
        return self.exclusion_reason() is None

    def to_descriptor(self) -> MemberDescriptor:
        return MemberDescriptor(
            namespace_name=self.namespace_name,
            type_name=self.type_name,
            member_name=self.member_name,
            is_static=self.is_static,
            return_type_name=self.return_type_name,
            parameter_type_names=tuple(self.parameter_type_names),
        )


@dataclass(frozen=True)
class ComponentDescriptor:
    """The invocable surface of one component, rebuilt on every run."""

    source_path: Path
    members: Tuple[MemberDescriptor, ...] = ()

    def __len__(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def to_dict(self) -> Dict[str, Any]:
        """Convert the ComponentDescriptor to a dictionary."""
        return {
            "source_path": str(self.source_path),
            "members": [member.to_dict() for member in self.members],
        }


@dataclass(frozen=True)
class RunContext:
    """Inputs of a single generation run. A blank path is kept as None."""

    source_path: Optional[Path]
    dest_path: Optional[Path]

    @staticmethod
    def _path_or_none(value: Any) -> Optional[Path]:
        text = str(value).strip() if value is not None else ""
        return Path(text) if text else None

    @classmethod
    def create(cls, source_path: Any, dest_path: Any) -> "RunContext":
        """Build a context from user input, stripping surrounding whitespace."""
        return cls(
            source_path=cls._path_or_none(source_path),
            dest_path=cls._path_or_none(dest_path),
        )


@dataclass(frozen=True)
class GenerationResult:
    """Tagged outcome of a generation run."""

    ok: bool
    message: str
    error_kind: Optional[ErrorKind] = None
    causes: Tuple[str, ...] = ()
    member_count: int = 0
    written_files: Tuple[Path, ...] = ()
    manifest_text: Optional[str] = None
    bridge_text: Optional[str] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    members: Tuple[MemberDescriptor, ...] = ()

    @classmethod
    def success(
        cls,
        members: Sequence[MemberDescriptor],
        written_files: List[Path],
        manifest_text: str,
        bridge_text: str,
        warnings: Optional[List[str]] = None,
    ) -> "GenerationResult":
        return cls(
            ok=True,
            message=f"Generated {len(members)} handlers. Done!",
            member_count=len(members),
            written_files=tuple(written_files),
            manifest_text=manifest_text,
            bridge_text=bridge_text,
            warnings=tuple(warnings or ()),
            members=tuple(members),
        )

    @classmethod
    def failure(
        cls,
        error_kind: ErrorKind,
        message: str,
        causes: Optional[List[str]] = None,
    ) -> "GenerationResult":
        return cls(
            ok=False,
            message=message,
            error_kind=error_kind,
            causes=tuple(causes or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the GenerationResult to a dictionary."""
        return {
            "success": self.ok,
            "message": self.message,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "causes": list(self.causes),
            "member_count": self.member_count,
            "written_files": [str(path) for path in self.written_files],
            "warnings": list(self.warnings),
            "exports": [member.to_dict() for member in self.members],
        }
