#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: clr.py

Description:
------------
Provider for compiled .NET assemblies. Reads the CLI metadata of a managed
module without loading or executing it.
"""

from pathlib import Path
from typing import List

from loguru import logger

from ..core import MemberCandidate, TypeKind
from ..exceptions import MetadataFormatError, NotLoadableModuleError, PartialTypeLoadError
from .clr_metadata import AssemblyMetadata, TypeDefinition

CLR_SUFFIXES = (".dll", ".exe", ".winmd")


def type_kind_of(type_def: TypeDefinition) -> TypeKind:
    """Classify a TypeDef by its flags and base type."""
    if type_def.is_interface:
        return TypeKind.INTERFACE
    if type_def.is_enum:
        return TypeKind.ENUM
    if type_def.is_value_type:
        return TypeKind.VALUE_TYPE
    return TypeKind.CLASS


class ClrMetadataProvider:
    """Lists the methods of the types of a managed module, including inherited ones."""

    name = "clr"

    def source_path(self, component_path: Path) -> Path:
        return Path(component_path).resolve()

    def read_metadata(self, component_path: Path) -> AssemblyMetadata:
        try:
            data = Path(component_path).read_bytes()
        except OSError as e:
            raise NotLoadableModuleError(
                f"Selected file is not a loadable component: {e}",
                file_path=Path(component_path),
                original_error=e,
            ) from e

        try:
            return AssemblyMetadata(data)
        except MetadataFormatError as e:
            logger.debug(f"Metadata header rejected: {e}")
            raise NotLoadableModuleError(
                "Selected file is not a loadable component: "
                "not a managed .NET module.",
                file_path=Path(component_path),
                original_error=e,
            ) from e

    def load(self, component_path: Path) -> List[MemberCandidate]:
        metadata = self.read_metadata(component_path)
        logger.debug(
            f"Reading {metadata.row_count(0x02)} type(s) from {component_path} "
            f"(runtime {metadata.runtime_version})"
        )

        candidates: List[MemberCandidate] = []
        causes: List[str] = []
        try:
            type_defs = list(metadata.type_definitions())
        except MetadataFormatError as e:
            raise PartialTypeLoadError(
                [f"Type table could not be read: {e}"], file_path=Path(component_path)
            ) from e

        for type_def in type_defs:
            try:
                methods = metadata.methods(type_def, inherited=True)
            except MetadataFormatError as e:
                logger.warning(f"Could not load type '{type_def.full_name}': {e}")
                causes.append(f"Could not load type '{type_def.full_name}': {e}")
                continue

            kind = type_kind_of(type_def)
            for method in methods:
                candidates.append(
                    MemberCandidate(
                        namespace_name=type_def.namespace,
                        type_name=type_def.name,
                        member_name=method.name,
                        type_kind=kind,
                        is_public=method.is_public,
                        is_special=method.is_special,
                        is_static=method.is_static,
                        returns_void=method.returns_void,
                        return_type_name=method.return_type,
                        parameter_type_names=tuple(method.parameter_types),
                    )
                )

        if causes:
            raise PartialTypeLoadError(causes, file_path=Path(component_path))
        return candidates
