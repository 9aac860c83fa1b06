#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: generator.py

Description:
------------
The generation pipeline: validate the run context, introspect the component,
derive identifiers, render the manifest and bridge module in memory and
write both files. Every failure ends the run with a tagged
GenerationResult and leaves the destination untouched.
"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from .core import (
    ArtifactKind,
    CollisionPolicy,
    ComponentDescriptor,
    ErrorKind,
    GenerationResult,
    RunContext,
)
from .emitters import EmitterFactory
from .exceptions import (
    InvalidInputError,
    NothingToExportError,
    NotLoadableModuleError,
    PartialTypeLoadError,
)
from .identifiers import assign_identifiers, find_collisions
from .introspector import Introspector
from .options import GeneratorOptions
from .providers import ComponentProvider


def write_atomic(path: Path, text: str) -> None:
    """Write ``text`` as UTF-8 (no BOM) through a temporary sibling file."""
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


class BridgeGenerator:
    """Runs the introspection-to-generation pipeline for one component."""

    def __init__(
        self,
        options: Optional[GeneratorOptions] = None,
        provider: Optional[ComponentProvider] = None,
    ) -> None:
        self.options = options or GeneratorOptions()
        self.introspector = Introspector(provider, self.options.provider_kind)
        self.manifest_emitter = EmitterFactory.create_emitter(ArtifactKind.MANIFEST, self.options)
        self.bridge_emitter = EmitterFactory.create_emitter(ArtifactKind.BRIDGE, self.options)

    def validate(self, context: RunContext) -> None:
        """
        Check the run inputs before anything is loaded.

        Raises:
            InvalidInputError: The component path or destination is unusable
        """
        source = context.source_path
        if source is None or not source.exists():
            raise InvalidInputError(
                "Please choose a valid component path.", file_path=source
            )
        dest = context.dest_path
        if dest is None or not dest.is_dir() or not os.access(dest, os.W_OK):
            raise InvalidInputError(
                "Please choose a valid saving location.", file_path=dest
            )

    def render(self, component: ComponentDescriptor) -> Tuple[str, str, List[str]]:
        """Render both artifacts, returning (manifest, bridge module, warnings)."""
        warnings = []
        collisions = find_collisions(component.members, self.options.global_namespace)
        if collisions:
            message = f"Colliding export identifiers: {', '.join(collisions)}."
            if self.options.collision is CollisionPolicy.IGNORE:
                message += (
                    f" {self.options.bridge_filename} declares them more than once and will not load;"
                    " rerun with --collision-policy ordinal to number them."
                )
            else:
                message += " Numbered with ordinal suffixes."
            logger.warning(message)
            warnings.append(message)

        identifiers = assign_identifiers(
            component.members, self.options.collision, self.options.global_namespace
        )
        manifest_text = self.manifest_emitter.render(component, identifiers)
        bridge_text = self.bridge_emitter.render(component, identifiers)
        return manifest_text, bridge_text, warnings

    def generate(self, context: RunContext, dry_run: bool = False) -> GenerationResult:
        """
        Run the pipeline and raise on failure.

        Raises:
            InvalidInputError, NotLoadableModuleError, PartialTypeLoadError,
            NothingToExportError, or any exception a provider lets escape
        """
        self.validate(context)
        component = self.introspector.introspect(context.source_path)
        if component.is_empty:
            raise NothingToExportError(file_path=component.source_path)

        manifest_text, bridge_text, warnings = self.render(component)

        written: List[Path] = []
        if dry_run:
            logger.info("Dry run, no files written")
        else:
            for emitter, text in (
                (self.manifest_emitter, manifest_text),
                (self.bridge_emitter, bridge_text),
            ):
                target = context.dest_path / emitter.filename
                write_atomic(target, text)
                logger.debug(f"Wrote {target}")
                written.append(target)

        result = GenerationResult.success(
            component.members, written, manifest_text, bridge_text, warnings
        )
        logger.success(result.message)
        return result

    def run(self, context: RunContext, dry_run: bool = False) -> GenerationResult:
        """Run the pipeline and convert every failure into a tagged result."""
        try:
            return self.generate(context, dry_run=dry_run)
        except InvalidInputError as e:
            logger.error(str(e))
            return GenerationResult.failure(ErrorKind.INVALID_INPUT, str(e))
        except NotLoadableModuleError as e:
            logger.error(str(e))
            return GenerationResult.failure(ErrorKind.NOT_LOADABLE, str(e))
        except PartialTypeLoadError as e:
            logger.error(f"{e} from {e.file_path}")
            return GenerationResult.failure(
                ErrorKind.PARTIAL_TYPE_LOAD,
                "Failed to load some types:\n" + "\n".join(e.causes),
                e.causes,
            )
        except NothingToExportError as e:
            logger.warning(str(e))
            return GenerationResult.failure(ErrorKind.NOTHING_TO_EXPORT, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error while generating bridge: {e}")
            return GenerationResult.failure(ErrorKind.UNCLASSIFIED, f"Error: {e}")


def run_generation(
    source_path: str,
    dest_path: str,
    options: Optional[GeneratorOptions] = None,
    dry_run: bool = False,
) -> GenerationResult:
    """Convenience wrapper building the run context from raw user input."""
    return BridgeGenerator(options).run(RunContext.create(source_path, dest_path), dry_run)
