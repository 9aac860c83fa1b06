"""Helper utilities for building small managed PE images in tests."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

# TypeAttributes
TYPE_PUBLIC = 0x00000001
TYPE_NESTED_PUBLIC = 0x00000002
TYPE_INTERFACE = 0x00000020
TYPE_ABSTRACT = 0x00000080
TYPE_SEALED = 0x00000100

# MethodAttributes
METHOD_PRIVATE = 0x0001
METHOD_PUBLIC = 0x0006
METHOD_STATIC = 0x0010
METHOD_VIRTUAL = 0x0040
METHOD_HIDE_BY_SIG = 0x0080
METHOD_ABSTRACT = 0x0400
METHOD_SPECIAL_NAME = 0x0800
METHOD_RT_SPECIAL_NAME = 0x1000

# Signature element types
VOID = b"\x01"
BOOLEAN = b"\x02"
INT32 = b"\x08"
INT64 = b"\x0a"
DOUBLE = b"\x0d"
STRING = b"\x0e"
OBJECT = b"\x1c"

SECTION_RVA = 0x2000
SECTION_FILE_OFFSET = 0x200
CLI_HEADER_SIZE = 72


def compressed(value: int) -> bytes:
    """Encode an unsigned integer in the compressed signature format."""
    if value < 0x80:
        return bytes([value])
    if value < 0x4000:
        return struct.pack(">H", 0x8000 | value)
    return struct.pack(">I", 0xC0000000 | value)


def szarray(element: bytes) -> bytes:
    return b"\x1d" + element


def byref(element: bytes) -> bytes:
    return b"\x10" + element


def type_var(number: int) -> bytes:
    return b"\x13" + compressed(number)


def method_var(number: int) -> bytes:
    return b"\x1e" + compressed(number)


def method_signature(
    returns: bytes,
    params: Sequence[bytes] = (),
    *,
    static: bool = False,
    generic_count: int = 0,
) -> bytes:
    """Build a MethodDefSig blob."""
    calling_convention = 0x00 if static else 0x20
    head = b""
    if generic_count:
        calling_convention |= 0x10
        head = compressed(generic_count)
    return (
        bytes([calling_convention])
        + head
        + compressed(len(params))
        + returns
        + b"".join(params)
    )


def _pad4(data: bytes) -> bytes:
    return data + b"\0" * (-len(data) % 4)


@dataclass
class _TypeRow:
    namespace: str
    name: str
    flags: int
    extends: int
    methods: List[Tuple[int, str, bytes]] = field(default_factory=list)


class AssemblyBuilder:
    """Collects types and methods and serialises them as a PE32 image with CLI metadata."""

    def __init__(self, module_name: str = "Demo.dll") -> None:
        self.module_name = module_name
        self._strings = bytearray(b"\0")
        self._string_offsets: Dict[str, int] = {"": 0}
        self._blobs = bytearray(b"\0")
        self._type_refs: List[Tuple[int, int, int]] = []
        self._type_ref_index: Dict[Tuple[str, str], int] = {}
        self._types: List[_TypeRow] = [_TypeRow("", "<Module>", 0, 0)]
        self._nested: List[Tuple[int, int]] = []
        self._generic_params: List[Tuple[int, int, int, str]] = []

    # Heaps

    def _string(self, text: str) -> int:
        if text not in self._string_offsets:
            self._string_offsets[text] = len(self._strings)
            self._strings += text.encode("utf-8") + b"\0"
        return self._string_offsets[text]

    def _blob(self, data: bytes) -> int:
        offset = len(self._blobs)
        self._blobs += compressed(len(data)) + data
        return offset

    # Rows

    def type_ref(self, namespace: str, name: str) -> int:
        """Return the TypeRef row index for an external type, adding it if needed."""
        key = (namespace, name)
        if key not in self._type_ref_index:
            # ResolutionScope: AssemblyRef row 1
            self._type_refs.append(((1 << 2) | 2, self._string(name), self._string(namespace)))
            self._type_ref_index[key] = len(self._type_refs)
        return self._type_ref_index[key]

    def ref_token(self, namespace: str, name: str) -> int:
        """TypeDefOrRef coded index of an external type."""
        return (self.type_ref(namespace, name) << 2) | 1

    def class_ref(self, namespace: str, name: str) -> bytes:
        """Signature bytes for a reference-type argument of an external type."""
        return b"\x12" + compressed(self.ref_token(namespace, name))

    def value_ref(self, namespace: str, name: str) -> bytes:
        """Signature bytes for a value-type argument of an external type."""
        return b"\x11" + compressed(self.ref_token(namespace, name))

    def def_ref(self, type_index: int) -> bytes:
        """Signature bytes for a reference to a type defined in this image."""
        return b"\x12" + compressed(type_index << 2)

    def generic_inst(self, generic: bytes, *arguments: bytes) -> bytes:
        return b"\x15" + generic + compressed(len(arguments)) + b"".join(arguments)

    def add_type(
        self,
        namespace: str,
        name: str,
        *,
        flags: int = TYPE_PUBLIC,
        extends: Optional[Tuple[str, str]] = ("System", "Object"),
        enclosing: Optional[int] = None,
        base: Optional[int] = None,
    ) -> int:
        """Add a TypeDef row and return its 1-based index.

        ``base`` names a type added earlier and takes precedence over ``extends``.
        """
        if base is not None:
            # TypeDefOrRef: TypeDef tag 0
            extends_token = base << 2
        else:
            extends_token = self.ref_token(*extends) if extends else 0
        self._types.append(_TypeRow(namespace, name, flags, extends_token))
        index = len(self._types)
        if enclosing is not None:
            self._nested.append((index, enclosing))
        return index

    def add_method(
        self,
        type_index: int,
        name: str,
        signature: bytes,
        *,
        flags: int = METHOD_PUBLIC | METHOD_HIDE_BY_SIG,
    ) -> None:
        """Add a method to a type; methods keep the order they are added in."""
        self._types[type_index - 1].methods.append((flags, name, signature))

    def add_generic_param(self, type_index: int, number: int, name: str) -> None:
        # TypeOrMethodDef: TypeDef tag 0
        self._generic_params.append((number, 0, type_index << 1, name))

    # Serialisation

    def _tables(self) -> bytes:
        method_rows = []
        type_rows = []
        for row in self._types:
            method_list = len(method_rows) + 1
            type_rows.append(
                struct.pack(
                    "<IHHHHH",
                    row.flags,
                    self._string(row.name),
                    self._string(row.namespace),
                    row.extends,
                    1,
                    method_list,
                )
            )
            for flags, name, signature in row.methods:
                method_rows.append(
                    struct.pack("<IHHHHH", 0, 0, flags, self._string(name), self._blob(signature), 1)
                )

        tables: Dict[int, List[bytes]] = {
            0x00: [struct.pack("<HHHHH", 0, self._string(self.module_name), 1, 0, 0)],
            0x01: [struct.pack("<HHH", *row) for row in self._type_refs],
            0x02: type_rows,
            0x06: method_rows,
            0x23: [struct.pack("<HHHHIHHHH", 4, 0, 0, 0, 0, 0, self._string("mscorlib"), 0, 0)],
            0x29: [struct.pack("<HH", nested, outer) for nested, outer in self._nested],
            0x2A: [
                struct.pack("<HHHH", number, flags, owner, self._string(name))
                for number, flags, owner, name in self._generic_params
            ],
        }
        present = {table_id: rows for table_id, rows in tables.items() if rows}

        valid = 0
        for table_id in present:
            valid |= 1 << table_id
        header = struct.pack("<IBBBBQQ", 0, 2, 0, 0, 1, valid, 0)
        counts = b"".join(struct.pack("<I", len(present[t])) for t in sorted(present))
        body = b"".join(b"".join(present[t]) for t in sorted(present))
        return _pad4(header + counts + body)

    def _metadata(self) -> bytes:
        tables = self._tables()
        streams = [
            ("#~", tables),
            ("#Strings", _pad4(bytes(self._strings))),
            ("#US", _pad4(b"\0")),
            ("#GUID", b"\x11" * 16),
            ("#Blob", _pad4(bytes(self._blobs))),
        ]

        version = _pad4(b"v4.0.30319\0")
        headers_size = 16 + len(version) + 4 + sum(
            8 + len(_pad4(name.encode("ascii") + b"\0")) for name, _ in streams
        )

        root = struct.pack("<IHHII", 0x424A5342, 1, 1, 0, len(version)) + version
        root += struct.pack("<HH", 0, len(streams))
        offset = headers_size
        for name, data in streams:
            root += struct.pack("<II", offset, len(data)) + _pad4(name.encode("ascii") + b"\0")
            offset += len(data)
        return root + b"".join(data for _, data in streams)

    def build(self, managed: bool = True) -> bytes:
        """Return the complete image bytes."""
        metadata = self._metadata()
        metadata_rva = SECTION_RVA + CLI_HEADER_SIZE
        cli_header = struct.pack("<IHHIIII", CLI_HEADER_SIZE, 2, 5, metadata_rva, len(metadata), 1, 0)
        cli_header = cli_header.ljust(CLI_HEADER_SIZE, b"\0")
        text = cli_header + metadata

        dos = bytearray(0x80)
        dos[0:2] = b"MZ"
        struct.pack_into("<I", dos, 0x3C, 0x80)

        coff = struct.pack("<HHIIIHH", 0x14C, 1, 0, 0, 0, 224, 0x2102)

        optional = bytearray(224)
        struct.pack_into("<H", optional, 0, 0x10B)
        struct.pack_into("<I", optional, 92, 16)
        if managed:
            struct.pack_into("<II", optional, 96 + 14 * 8, SECTION_RVA, CLI_HEADER_SIZE)

        section = bytearray(40)
        section[0:8] = b".text\0\0\0"
        struct.pack_into(
            "<IIII", section, 8, len(text), SECTION_RVA, len(text), SECTION_FILE_OFFSET
        )
        struct.pack_into("<I", section, 36, 0x60000020)

        headers = bytes(dos) + b"PE\0\0" + coff + bytes(optional) + bytes(section)
        return headers.ljust(SECTION_FILE_OFFSET, b"\0") + text

    def write(self, path: Path, managed: bool = True) -> Path:
        path.write_bytes(self.build(managed))
        return path


__all__ = [
    "AssemblyBuilder",
    "compressed",
    "method_signature",
    "szarray",
    "byref",
    "type_var",
    "method_var",
]
