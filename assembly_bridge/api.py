#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Functional API for embedding callers.

Both functions return plain dictionaries and never raise, so they can be
called across a language boundary without exception translation.
"""

from pathlib import Path
from typing import Any, Dict

from loguru import logger

from .core import ErrorKind, GenerationResult, RunContext
from .exceptions import BridgeGenError, ConfigError, NotLoadableModuleError, PartialTypeLoadError
from .generator import BridgeGenerator
from .introspector import Introspector
from .options import GeneratorOptions


def generate_bridge(component: str, output_dir: str, **options: Any) -> Dict[str, Any]:
    """
    Generate config.toml and handler.js for ``component`` in ``output_dir``.

    Args:
        component: Path to the component to introspect
        output_dir: Existing, writable destination directory
        **options: GeneratorOptions fields, plus ``dry_run``

    Returns:
        Dict with structure:
        {
            "success": bool,
            "message": str,
            "error_kind": str or None,
            "causes": [str],
            "member_count": int,
            "written_files": [str],
            "warnings": [str],
            "exports": [dict]
        }
    """
    dry_run = bool(options.pop("dry_run", False))
    try:
        generator_options = GeneratorOptions.from_dict(options)
    except ConfigError as e:
        logger.error(f"Invalid options: {e}")
        return GenerationResult.failure(ErrorKind.UNCLASSIFIED, f"Error: {e}").to_dict()

    result = BridgeGenerator(generator_options).run(
        RunContext.create(component, output_dir), dry_run=dry_run
    )
    return result.to_dict()


def list_exports(component: str, provider: str = "auto") -> Dict[str, Any]:
    """
    List the invocable members of ``component`` without writing anything.

    Returns:
        Dict with structure:
        {
            "success": bool,
            "message": str,
            "error_kind": str or None,
            "causes": [str],
            "source_path": str or None,
            "exports": [dict]
        }
    """
    response: Dict[str, Any] = {
        "success": False,
        "message": "",
        "error_kind": None,
        "causes": [],
        "source_path": None,
        "exports": [],
    }
    component_path = Path(str(component).strip())
    if not str(component).strip() or not component_path.exists():
        response.update(
            message="Please choose a valid component path.",
            error_kind=ErrorKind.INVALID_INPUT.value,
        )
        return response

    try:
        introspector = Introspector(provider_kind=GeneratorOptions(provider=provider).provider_kind)
        descriptor = introspector.introspect(component_path)
    except NotLoadableModuleError as e:
        response.update(message=str(e), error_kind=ErrorKind.NOT_LOADABLE.value)
        return response
    except PartialTypeLoadError as e:
        response.update(
            message="Failed to load some types:\n" + "\n".join(e.causes),
            error_kind=ErrorKind.PARTIAL_TYPE_LOAD.value,
            causes=e.causes,
        )
        return response
    except BridgeGenError as e:
        response.update(message=f"Error: {e}", error_kind=ErrorKind.UNCLASSIFIED.value)
        return response
    except Exception as e:
        logger.exception(f"Unexpected error while listing exports: {e}")
        response.update(message=f"Error: {e}", error_kind=ErrorKind.UNCLASSIFIED.value)
        return response

    response.update(
        success=True,
        message=f"Found {len(descriptor)} invocable member(s).",
        source_path=str(descriptor.source_path),
        exports=[member.to_dict() for member in descriptor.members],
    )
    return response
