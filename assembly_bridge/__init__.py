#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: __init__.py

Description:
------------
assembly_bridge inspects the public surface of a compiled component and
generates two artifacts from it:

    1. ``config.toml``, a manifest describing every exported member
    2. ``handler.js``, a Node.js module exposing each member through edge-js
       as a Promise-returning function that takes one payload argument

Components can be .NET assemblies (read from their CLI metadata without
being loaded) or JSON/YAML descriptions of an assembly.
"""

__version__ = "1.0.0"

from .core import (
    ArtifactKind,
    CollisionPolicy,
    ComponentDescriptor,
    ErrorKind,
    GenerationResult,
    MemberCandidate,
    MemberDescriptor,
    ProviderKind,
    RunContext,
    TypeKind,
)
from .exceptions import (
    BridgeGenError,
    ConfigError,
    InvalidInputError,
    NothingToExportError,
    NotLoadableModuleError,
    PartialTypeLoadError,
)
from .identifiers import derive_identifier, escape, unescape, IdentifierAllocator
from .options import GeneratorOptions
from .introspector import Introspector
from .emitters import BridgeModuleEmitter, ManifestEmitter
from .generator import BridgeGenerator, run_generation
from .api import generate_bridge, list_exports


def get_tool_info() -> dict:
    """
    Return metadata about this tool for discovery by tool registries.

    Returns:
        Dict containing tool metadata including name, version, description,
        available functions and requirements.
    """
    return {
        "name": "assembly_bridge",
        "version": __version__,
        "description": "Generate edge-js bridge modules and TOML manifests from compiled components",
        "supported": True,
        "platform": ["windows", "linux", "macos"],
        "functions": [
            "generate_bridge",
            "list_exports",
            "run_generation",
        ],
        "requirements": ["loguru", "typer", "rich", "PyYAML", "pydantic"],
        "capabilities": [
            "clr_metadata_introspection",
            "description_documents",
            "toml_manifest_generation",
            "edge_js_bridge_generation",
        ],
        "classes": {
            "BridgeGenerator": "Runs the introspection-to-generation pipeline",
            "Introspector": "Enumerates the invocable members of a component",
            "GeneratorOptions": "Configuration options for generation runs",
        },
    }


__all__ = [
    "ArtifactKind",
    "CollisionPolicy",
    "ComponentDescriptor",
    "ErrorKind",
    "GenerationResult",
    "MemberCandidate",
    "MemberDescriptor",
    "ProviderKind",
    "RunContext",
    "TypeKind",
    "BridgeGenError",
    "ConfigError",
    "InvalidInputError",
    "NothingToExportError",
    "NotLoadableModuleError",
    "PartialTypeLoadError",
    "derive_identifier",
    "escape",
    "unescape",
    "IdentifierAllocator",
    "GeneratorOptions",
    "Introspector",
    "BridgeModuleEmitter",
    "ManifestEmitter",
    "BridgeGenerator",
    "run_generation",
    "generate_bridge",
    "list_exports",
    "get_tool_info",
]
