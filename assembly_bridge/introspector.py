#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: introspector.py

Description:
------------
Turns the member candidates reported by a provider into the ordered list of
invocable members of a component.

A member is invocable when it is public, not a special member (accessor,
operator, constructor), returns a value, and is declared on a class-like
type. Arity and parameter types are not checked.
"""

from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from .core import ComponentDescriptor, MemberCandidate, ProviderKind
from .providers import ComponentProvider, ProviderFactory


class Introspector:
    """Enumerates the invocable surface of a component."""

    def __init__(
        self,
        provider: Optional[ComponentProvider] = None,
        provider_kind: Union[ProviderKind, str] = ProviderKind.AUTO,
    ) -> None:
        self.provider = provider
        self.provider_kind = provider_kind

    def _provider_for(self, component_path: Path) -> ComponentProvider:
        if self.provider is not None:
            return self.provider
        return ProviderFactory.create_provider(self.provider_kind, component_path)

    def _load(self, provider: ComponentProvider, component_path: Path) -> List[MemberCandidate]:
        logger.debug(f"Loading {component_path} with the {provider.name} provider")
        return provider.load(Path(component_path))

    def candidates(self, component_path: Path) -> List[MemberCandidate]:
        """Return every member the provider reports, eligible or not."""
        return self._load(self._provider_for(component_path), component_path)

    def introspect(self, component_path: Path) -> ComponentDescriptor:
        """
        Build the component descriptor for ``component_path``.

        Raises:
            NotLoadableModuleError: The path is not a component of the expected format
            PartialTypeLoadError: Some declaring types could not be resolved
        """
        provider = self._provider_for(component_path)
        candidates = self._load(provider, component_path)

        members = []
        for candidate in candidates:
            reason = candidate.exclusion_reason()
            if reason is None:
                members.append(candidate.to_descriptor())
            else:
                logger.trace(
                    f"Skipping {candidate.type_name}.{candidate.member_name}: {reason}"
                )

        logger.info(f"{len(members)} of {len(candidates)} member(s) are invocable")
        return ComponentDescriptor(
            source_path=provider.source_path(Path(component_path)),
            members=tuple(members),
        )
