#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: manifest.py

Description:
------------
Emits the declarative manifest (``config.toml``) describing every exported
member of a component.
"""

from typing import List, Optional, Sequence

from ..core import ComponentDescriptor, MemberDescriptor
from ..identifiers import escape
from ..options import GeneratorOptions


def _is_toml_control(ch: str) -> bool:
    return (ch < " " and ch != "\t") or ch == "\x7f"


def _toml_basic_string(text: str) -> str:
    chars = []
    for ch in text:
        if ch in ('"', "\\"):
            chars.append("\\" + ch)
        elif _is_toml_control(ch):
            chars.append(f"\\u{ord(ch):04X}")
        else:
            chars.append(ch)
    return '"' + "".join(chars) + '"'


def toml_string(value: str) -> str:
    """
    Quote an escaped value so that the TOML value is exactly the escaped text.

    Plain values use a literal string. Values whose escaped form holds a
    quote use the multi-line literal form. Literal strings cannot carry
    control characters, so values holding any are written as basic strings
    with ``\\uXXXX`` escapes.
    """
    escaped = escape(value)
    if any(_is_toml_control(ch) for ch in escaped):
        return _toml_basic_string(escaped)
    if "'" in escaped:
        return f"'''{escaped}'''"
    return f"'{escaped}'"


class ManifestEmitter:
    """Renders the manifest document."""

    def __init__(self, options: Optional[GeneratorOptions] = None) -> None:
        self.options = options or GeneratorOptions()

    @property
    def filename(self) -> str:
        return self.options.manifest_filename

    def _export_block(self, member: MemberDescriptor) -> List[str]:
        params = ", ".join(toml_string(p) for p in member.parameter_type_names)
        return [
            "[[export]]",
            f"namespace = {toml_string(member.namespace_name)}",
            f"class     = {toml_string(member.type_name)}",
            f"method    = {toml_string(member.member_name)}",
            f"static    = {'true' if member.is_static else 'false'}",
            f"returns   = {toml_string(member.return_type_name)}",
            f"params    = [{params}]",
            "",
        ]

    def render(
        self,
        component: ComponentDescriptor,
        identifiers: Optional[Sequence[str]] = None,
    ) -> str:
        """Render the manifest text; identifiers are not part of the manifest."""
        lines = [
            "[dll]",
            f"path = {toml_string(str(component.source_path))}",
            "",
            f"# Methods exported via {self.options.bridge_filename}",
        ]
        for member in component.members:
            lines.extend(self._export_block(member))
        return "\n".join(lines) + "\n"
