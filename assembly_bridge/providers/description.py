#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: description.py

Description:
------------
Provider for pre-extracted component descriptions stored as JSON or YAML.

Document layout::

    component: bin/Demo.dll        # optional, relative to the document
    types:
      - namespace: Demo
        name: Calc
        kind: class                # class | struct | interface | enum
        members:
          - name: Add
            visibility: public     # default public
            special: false
            static: true
            returns: System.Int32  # "void" or omitted means no return value
            params: [System.Int32, System.Int32]
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core import MemberCandidate, TypeKind
from ..exceptions import NotLoadableModuleError, PartialTypeLoadError

DESCRIPTION_SUFFIXES = (".json", ".yaml", ".yml")
VOID_TYPE_NAMES = ("", "void", "System.Void", "None")


class MemberEntry(BaseModel):
    """One member of a described type."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(min_length=1, description="Member name as declared")
    visibility: str = Field(default="public", description="Declared visibility")
    special: bool = Field(default=False, description="Accessor, operator or constructor")
    static: bool = Field(default=False, description="Callable without an instance")
    returns: Optional[str] = Field(default=None, description="Return type name")
    params: List[str] = Field(default_factory=list, description="Parameter type names")

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def return_type_name(self) -> str:
        return self.returns or ""

    @property
    def returns_void(self) -> bool:
        return self.return_type_name in VOID_TYPE_NAMES


class TypeEntry(BaseModel):
    """A described type and its members."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    namespace: Optional[str] = Field(default=None, description="Namespace; empty for the global one")
    name: str = Field(min_length=1, description="Type name")
    kind: TypeKind = Field(default=TypeKind.CLASS, description="class, struct, interface or enum")
    members: List[MemberEntry] = Field(default_factory=list)

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls, v: Any) -> Any:
        if isinstance(v, str):
            return TypeKind.from_string(v)
        return v

    @field_validator("members", mode="before")
    @classmethod
    def default_members(cls, v: Any) -> Any:
        return [] if v is None else v

    def candidates(self) -> List[MemberCandidate]:
        return [
            MemberCandidate(
                namespace_name=self.namespace or "",
                type_name=self.name,
                member_name=member.name,
                type_kind=self.kind,
                is_public=member.visibility.lower() == "public",
                is_special=member.special,
                is_static=member.static,
                returns_void=member.returns_void,
                return_type_name=member.return_type_name,
                parameter_type_names=tuple(member.params),
            )
            for member in self.members
        ]


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a validation error into one line."""
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


class DescriptionProvider:
    """Reads member candidates from a description document."""

    name = "description"

    def read_document(self, component_path: Path) -> Dict[str, Any]:
        path = Path(component_path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() in (".yaml", ".yml"):
                    document = yaml.safe_load(f)
                else:
                    document = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise NotLoadableModuleError(
                f"Selected file is not a loadable component: {e}",
                file_path=path,
                original_error=e,
            ) from e

        if not isinstance(document, dict) or not isinstance(document.get("types"), list):
            raise NotLoadableModuleError(
                "Selected file is not a loadable component: "
                "description must be a mapping with a 'types' list.",
                file_path=path,
            )
        return document

    def source_path(self, component_path: Path) -> Path:
        path = Path(component_path).resolve()
        component = self.read_document(path).get("component")
        if not component:
            return path
        return (path.parent / str(component)).resolve()

    def load(self, component_path: Path) -> List[MemberCandidate]:
        document = self.read_document(component_path)
        candidates: List[MemberCandidate] = []
        causes: List[str] = []

        for position, raw in enumerate(document["types"]):
            label = f"types[{position}]"
            if isinstance(raw, dict) and raw.get("name"):
                label = str(raw["name"])
            try:
                entry = TypeEntry.model_validate(raw)
            except ValidationError as e:
                cause = describe_validation_error(e)
                logger.warning(f"Skipping malformed type {label}: {cause}")
                causes.append(f"{label}: {cause}")
                continue
            candidates.extend(entry.candidates())

        if causes:
            raise PartialTypeLoadError(causes, file_path=Path(component_path))
        return candidates
