#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: bridge.py

Description:
------------
Emits the CommonJS bridge module (``handler.js``). Every exported member gets
a raw ``edge.func`` binding and an entry in the exported map that wraps the
binding's callback in a Promise. Calls are independent: each returns its own
Promise and no ordering between calls is implied.
"""

from typing import List, Optional, Sequence

from ..core import ComponentDescriptor, MemberDescriptor
from ..identifiers import assign_identifiers, escape
from ..options import GeneratorOptions

JS_LINE_TERMINATORS = ("\n", "\r", "\u2028", "\u2029")


def js_string(value: str) -> str:
    """Quote an escaped value as a single-quoted JavaScript string literal."""
    escaped = escape(value)
    for ch in JS_LINE_TERMINATORS:
        escaped = escaped.replace(ch, f"\\u{ord(ch):04X}")
    return f"'{escaped}'"


class BridgeModuleEmitter:
    """Renders the bridge module."""

    def __init__(self, options: Optional[GeneratorOptions] = None) -> None:
        self.options = options or GeneratorOptions()

    @property
    def filename(self) -> str:
        return self.options.bridge_filename

    def _raw_binding(self, component: ComponentDescriptor, member: MemberDescriptor, raw_name: str) -> List[str]:
        return [
            f"const {raw_name} = edge.func({{",
            f"  assemblyFile: {js_string(str(component.source_path))},",
            f"  typeName: {js_string(member.qualified_type_name)},",
            f"  methodName: {js_string(member.member_name)}",
            "});",
            "",
        ]

    def _map_entry(self, identifier: str, raw_name: str) -> List[str]:
        return [
            f"  {js_string(identifier)}: (payload) => new Promise((resolve, reject) => {{",
            f"    {raw_name}(payload ?? null, (err, res) => err ? reject(err) : resolve(res));",
            "  }),",
        ]

    def render(
        self,
        component: ComponentDescriptor,
        identifiers: Optional[Sequence[str]] = None,
    ) -> str:
        if identifiers is None:
            identifiers = assign_identifiers(
                component.members,
                self.options.collision,
                self.options.global_namespace,
            )
        if len(identifiers) != len(component.members):
            raise ValueError("one identifier is required per member")

        package = self.options.bridge_package
        lines = [
            f"// Auto-generated by {self.options.generator_name}",
            f"// Requires: npm i {package}",
            f"const edge = require({js_string(package)});",
            "",
        ]

        raw_names = [f"{identifier}{self.options.raw_suffix}" for identifier in identifiers]
        for member, raw_name in zip(component.members, raw_names):
            lines.extend(self._raw_binding(component, member, raw_name))

        lines.append("const exportsMap = {")
        for identifier, raw_name in zip(identifiers, raw_names):
            lines.extend(self._map_entry(identifier, raw_name))
        lines.extend(["};", "", "module.exports = exportsMap;"])
        return "\n".join(lines) + "\n"
