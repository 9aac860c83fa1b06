#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: exceptions.py

Description:
------------
Custom exceptions for the assembly_bridge package.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Sequence


class BridgeGenError(Exception):
    """Base exception for assembly_bridge operations with error context."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        file_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.file_path = file_path
        self.original_error = original_error
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "message": str(self.args[0]) if self.args else "",
            "error_code": self.error_code,
            "file_path": str(self.file_path) if self.file_path else None,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "exception_type": self.__class__.__name__,
        }


class InvalidInputError(BridgeGenError):
    """Raised when the component path or destination directory is unusable."""

    def __init__(self, message: str, *, file_path: Optional[Path] = None) -> None:
        super().__init__(message, error_code="INVALID_INPUT", file_path=file_path)


class NotLoadableModuleError(BridgeGenError):
    """Raised when a path does not hold a component of the expected format."""

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            error_code="NOT_LOADABLE",
            file_path=file_path,
            original_error=original_error,
        )


class PartialTypeLoadError(BridgeGenError):
    """Raised when a component loads but some of its types cannot be resolved."""

    def __init__(
        self,
        causes: Sequence[str],
        *,
        file_path: Optional[Path] = None,
    ) -> None:
        self.causes = list(causes)
        super().__init__(
            f"Failed to load {len(self.causes)} type(s)",
            error_code="PARTIAL_TYPE_LOAD",
            file_path=file_path,
            causes=self.causes,
        )


class NothingToExportError(BridgeGenError):
    """Raised when a component has no invocable members."""

    def __init__(self, *, file_path: Optional[Path] = None, candidates: int = 0) -> None:
        super().__init__(
            "No compatible public methods found.",
            error_code="NOTHING_TO_EXPORT",
            file_path=file_path,
            candidates=candidates,
        )


class MetadataFormatError(BridgeGenError):
    """Raised by the CLR reader when metadata bytes are malformed."""

    def __init__(self, message: str, *, offset: Optional[int] = None) -> None:
        super().__init__(message, error_code="METADATA_FORMAT", offset=offset)


class ConfigError(BridgeGenError):
    """Raised when generator options cannot be loaded or are invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message,
            error_code="CONFIG_ERROR",
            file_path=config_path,
            original_error=original_error,
            **context,
        )
