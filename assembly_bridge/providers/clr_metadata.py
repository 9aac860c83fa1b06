#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: clr_metadata.py

Description:
------------
Reader for the CLI metadata embedded in managed PE images (ECMA-335
partition II). Only what is needed to list types, their methods and method
signatures is decoded: the PE headers, the metadata root, the ``#~``/``#-``
table stream and the ``#Strings`` and ``#Blob`` heaps.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from loguru import logger

from ..exceptions import MetadataFormatError

METADATA_SIGNATURE = 0x424A5342
CLI_HEADER_DIRECTORY = 14

# Table ids
MODULE = 0x00
TYPE_REF = 0x01
TYPE_DEF = 0x02
FIELD = 0x04
METHOD_PTR = 0x05
METHOD_DEF = 0x06
PARAM = 0x08
INTERFACE_IMPL = 0x09
MEMBER_REF = 0x0A
DECL_SECURITY = 0x0E
STANDALONE_SIG = 0x11
EVENT = 0x14
PROPERTY = 0x17
MODULE_REF = 0x1A
TYPE_SPEC = 0x1B
ASSEMBLY = 0x20
ASSEMBLY_REF = 0x23
FILE = 0x26
EXPORTED_TYPE = 0x27
MANIFEST_RESOURCE = 0x28
NESTED_CLASS = 0x29
GENERIC_PARAM = 0x2A
METHOD_SPEC = 0x2B
GENERIC_PARAM_CONSTRAINT = 0x2C

# TypeDef flags
TD_INTERFACE = 0x00000020

# MethodDef flags
MD_MEMBER_ACCESS_MASK = 0x0007
MD_PUBLIC = 0x0006
MD_STATIC = 0x0010
MD_SPECIAL_NAME = 0x0800
MD_RT_SPECIAL_NAME = 0x1000

# Signature element types
ELEMENT_TYPE_VOID = 0x01
ELEMENT_TYPE_STRING = 0x0E
ELEMENT_TYPE_PTR = 0x0F
ELEMENT_TYPE_BYREF = 0x10
ELEMENT_TYPE_VALUETYPE = 0x11
ELEMENT_TYPE_CLASS = 0x12
ELEMENT_TYPE_VAR = 0x13
ELEMENT_TYPE_ARRAY = 0x14
ELEMENT_TYPE_GENERICINST = 0x15
ELEMENT_TYPE_TYPEDBYREF = 0x16
ELEMENT_TYPE_FNPTR = 0x1B
ELEMENT_TYPE_OBJECT = 0x1C
ELEMENT_TYPE_SZARRAY = 0x1D
ELEMENT_TYPE_MVAR = 0x1E
ELEMENT_TYPE_CMOD_REQD = 0x1F
ELEMENT_TYPE_CMOD_OPT = 0x20
ELEMENT_TYPE_SENTINEL = 0x41
ELEMENT_TYPE_PINNED = 0x45

SIG_GENERIC = 0x10

PRIMITIVE_TYPE_NAMES: Dict[int, str] = {
    ELEMENT_TYPE_VOID: "System.Void",
    0x02: "System.Boolean",
    0x03: "System.Char",
    0x04: "System.SByte",
    0x05: "System.Byte",
    0x06: "System.Int16",
    0x07: "System.UInt16",
    0x08: "System.Int32",
    0x09: "System.UInt32",
    0x0A: "System.Int64",
    0x0B: "System.UInt64",
    0x0C: "System.Single",
    0x0D: "System.Double",
    ELEMENT_TYPE_STRING: "System.String",
    ELEMENT_TYPE_TYPEDBYREF: "System.TypedReference",
    0x18: "System.IntPtr",
    0x19: "System.UIntPtr",
    ELEMENT_TYPE_OBJECT: "System.Object",
}

# Coded index definitions: (tag bits, tables by tag; None marks an unused tag)
CODED_INDEXES: Dict[str, Tuple[int, Sequence[Optional[int]]]] = {
    "TypeDefOrRef": (2, (TYPE_DEF, TYPE_REF, TYPE_SPEC)),
    "HasConstant": (2, (FIELD, PARAM, PROPERTY)),
    "HasCustomAttribute": (
        5,
        (
            METHOD_DEF, FIELD, TYPE_REF, TYPE_DEF, PARAM, INTERFACE_IMPL,
            MEMBER_REF, MODULE, DECL_SECURITY, PROPERTY, EVENT, STANDALONE_SIG,
            MODULE_REF, TYPE_SPEC, ASSEMBLY, ASSEMBLY_REF, FILE, EXPORTED_TYPE,
            MANIFEST_RESOURCE, GENERIC_PARAM, GENERIC_PARAM_CONSTRAINT, METHOD_SPEC,
        ),
    ),
    "HasFieldMarshal": (1, (FIELD, PARAM)),
    "HasDeclSecurity": (2, (TYPE_DEF, METHOD_DEF, ASSEMBLY)),
    "MemberRefParent": (3, (TYPE_DEF, TYPE_REF, MODULE_REF, METHOD_DEF, TYPE_SPEC)),
    "HasSemantics": (1, (EVENT, PROPERTY)),
    "MethodDefOrRef": (1, (METHOD_DEF, MEMBER_REF)),
    "MemberForwarded": (1, (FIELD, METHOD_DEF)),
    "Implementation": (2, (FILE, ASSEMBLY_REF, EXPORTED_TYPE)),
    "CustomAttributeType": (3, (None, None, METHOD_DEF, MEMBER_REF, None)),
    "ResolutionScope": (2, (MODULE, 0x1A, ASSEMBLY_REF, TYPE_REF)),
    "TypeOrMethodDef": (1, (TYPE_DEF, METHOD_DEF)),
}

# Column kinds: "u8", "u16", "u32", "str", "guid", "blob",
# ("idx", table id) or ("coded", coded index name).
TABLE_SCHEMAS: Dict[int, Tuple[str, Sequence[Tuple[str, object]]]] = {
    0x00: ("Module", (("Generation", "u16"), ("Name", "str"), ("Mvid", "guid"),
                      ("EncId", "guid"), ("EncBaseId", "guid"))),
    0x01: ("TypeRef", (("ResolutionScope", ("coded", "ResolutionScope")),
                       ("TypeName", "str"), ("TypeNamespace", "str"))),
    0x02: ("TypeDef", (("Flags", "u32"), ("TypeName", "str"), ("TypeNamespace", "str"),
                       ("Extends", ("coded", "TypeDefOrRef")),
                       ("FieldList", ("idx", FIELD)), ("MethodList", ("idx", METHOD_DEF)))),
    0x03: ("FieldPtr", (("Field", ("idx", FIELD)),)),
    0x04: ("Field", (("Flags", "u16"), ("Name", "str"), ("Signature", "blob"))),
    0x05: ("MethodPtr", (("Method", ("idx", METHOD_DEF)),)),
    0x06: ("MethodDef", (("RVA", "u32"), ("ImplFlags", "u16"), ("Flags", "u16"),
                         ("Name", "str"), ("Signature", "blob"),
                         ("ParamList", ("idx", PARAM)))),
    0x07: ("ParamPtr", (("Param", ("idx", PARAM)),)),
    0x08: ("Param", (("Flags", "u16"), ("Sequence", "u16"), ("Name", "str"))),
    0x09: ("InterfaceImpl", (("Class", ("idx", TYPE_DEF)),
                             ("Interface", ("coded", "TypeDefOrRef")))),
    0x0A: ("MemberRef", (("Class", ("coded", "MemberRefParent")), ("Name", "str"),
                         ("Signature", "blob"))),
    0x0B: ("Constant", (("Type", "u8"), ("Padding", "u8"),
                        ("Parent", ("coded", "HasConstant")), ("Value", "blob"))),
    0x0C: ("CustomAttribute", (("Parent", ("coded", "HasCustomAttribute")),
                               ("Type", ("coded", "CustomAttributeType")),
                               ("Value", "blob"))),
    0x0D: ("FieldMarshal", (("Parent", ("coded", "HasFieldMarshal")),
                            ("NativeType", "blob"))),
    0x0E: ("DeclSecurity", (("Action", "u16"), ("Parent", ("coded", "HasDeclSecurity")),
                            ("PermissionSet", "blob"))),
    0x0F: ("ClassLayout", (("PackingSize", "u16"), ("ClassSize", "u32"),
                           ("Parent", ("idx", TYPE_DEF)))),
    0x10: ("FieldLayout", (("Offset", "u32"), ("Field", ("idx", FIELD)))),
    0x11: ("StandAloneSig", (("Signature", "blob"),)),
    0x12: ("EventMap", (("Parent", ("idx", TYPE_DEF)), ("EventList", ("idx", EVENT)))),
    0x13: ("EventPtr", (("Event", ("idx", EVENT)),)),
    0x14: ("Event", (("EventFlags", "u16"), ("Name", "str"),
                     ("EventType", ("coded", "TypeDefOrRef")))),
    0x15: ("PropertyMap", (("Parent", ("idx", TYPE_DEF)),
                           ("PropertyList", ("idx", PROPERTY)))),
    0x16: ("PropertyPtr", (("Property", ("idx", PROPERTY)),)),
    0x17: ("Property", (("Flags", "u16"), ("Name", "str"), ("Type", "blob"))),
    0x18: ("MethodSemantics", (("Semantics", "u16"), ("Method", ("idx", METHOD_DEF)),
                               ("Association", ("coded", "HasSemantics")))),
    0x19: ("MethodImpl", (("Class", ("idx", TYPE_DEF)),
                          ("MethodBody", ("coded", "MethodDefOrRef")),
                          ("MethodDeclaration", ("coded", "MethodDefOrRef")))),
    0x1A: ("ModuleRef", (("Name", "str"),)),
    0x1B: ("TypeSpec", (("Signature", "blob"),)),
    0x1C: ("ImplMap", (("MappingFlags", "u16"),
                       ("MemberForwarded", ("coded", "MemberForwarded")),
                       ("ImportName", "str"), ("ImportScope", ("idx", MODULE_REF)))),
    0x1D: ("FieldRVA", (("RVA", "u32"), ("Field", ("idx", FIELD)))),
    0x1E: ("EncLog", (("Token", "u32"), ("FuncCode", "u32"))),
    0x1F: ("EncMap", (("Token", "u32"),)),
    0x20: ("Assembly", (("HashAlgId", "u32"), ("MajorVersion", "u16"),
                        ("MinorVersion", "u16"), ("BuildNumber", "u16"),
                        ("RevisionNumber", "u16"), ("Flags", "u32"),
                        ("PublicKey", "blob"), ("Name", "str"), ("Culture", "str"))),
    0x21: ("AssemblyProcessor", (("Processor", "u32"),)),
    0x22: ("AssemblyOS", (("OSPlatformID", "u32"), ("OSMajorVersion", "u32"),
                          ("OSMinorVersion", "u32"))),
    0x23: ("AssemblyRef", (("MajorVersion", "u16"), ("MinorVersion", "u16"),
                           ("BuildNumber", "u16"), ("RevisionNumber", "u16"),
                           ("Flags", "u32"), ("PublicKeyOrToken", "blob"),
                           ("Name", "str"), ("Culture", "str"), ("HashValue", "blob"))),
    0x24: ("AssemblyRefProcessor", (("Processor", "u32"),
                                    ("AssemblyRef", ("idx", ASSEMBLY_REF)))),
    0x25: ("AssemblyRefOS", (("OSPlatformId", "u32"), ("OSMajorVersion", "u32"),
                             ("OSMinorVersion", "u32"),
                             ("AssemblyRef", ("idx", ASSEMBLY_REF)))),
    0x26: ("File", (("Flags", "u32"), ("Name", "str"), ("HashValue", "blob"))),
    0x27: ("ExportedType", (("Flags", "u32"), ("TypeDefId", "u32"), ("TypeName", "str"),
                            ("TypeNamespace", "str"),
                            ("Implementation", ("coded", "Implementation")))),
    0x28: ("ManifestResource", (("Offset", "u32"), ("Flags", "u32"), ("Name", "str"),
                                ("Implementation", ("coded", "Implementation")))),
    0x29: ("NestedClass", (("NestedClass", ("idx", TYPE_DEF)),
                           ("EnclosingClass", ("idx", TYPE_DEF)))),
    0x2A: ("GenericParam", (("Number", "u16"), ("Flags", "u16"),
                            ("Owner", ("coded", "TypeOrMethodDef")), ("Name", "str"))),
    0x2B: ("MethodSpec", (("Method", ("coded", "MethodDefOrRef")),
                          ("Instantiation", "blob"))),
    0x2C: ("GenericParamConstraint", (("Owner", ("idx", GENERIC_PARAM)),
                                      ("Constraint", ("coded", "TypeDefOrRef")))),
}

_FIXED_SIZES = {"u8": 1, "u16": 2, "u32": 4}
_STRUCT_FORMATS = {1: "<B", 2: "<H", 4: "<I"}


def _unpack(fmt: str, data: bytes, offset: int) -> tuple:
    if offset < 0:
        raise MetadataFormatError(f"Negative offset {offset}", offset=offset)
    try:
        return struct.unpack_from(fmt, data, offset)
    except struct.error as e:
        raise MetadataFormatError(
            f"Truncated data at offset {offset:#x}", offset=offset
        ) from e


def read_compressed_uint(data: bytes, pos: int) -> Tuple[int, int]:
    """Decode an ECMA-335 compressed unsigned integer, returning (value, next_pos)."""
    if pos >= len(data):
        raise MetadataFormatError("Unexpected end of signature", offset=pos)
    first = data[pos]
    if first & 0x80 == 0:
        return first, pos + 1
    if first & 0xC0 == 0x80:
        if pos + 1 >= len(data):
            raise MetadataFormatError("Truncated compressed integer", offset=pos)
        return ((first & 0x3F) << 8) | data[pos + 1], pos + 2
    if first & 0xE0 == 0xC0:
        if pos + 3 >= len(data):
            raise MetadataFormatError("Truncated compressed integer", offset=pos)
        value = (
            ((first & 0x1F) << 24)
            | (data[pos + 1] << 16)
            | (data[pos + 2] << 8)
            | data[pos + 3]
        )
        return value, pos + 4
    raise MetadataFormatError(f"Invalid compressed integer lead byte {first:#x}", offset=pos)


@dataclass(frozen=True)
class Section:
    """A PE section header."""

    name: str
    virtual_address: int
    virtual_size: int
    raw_size: int
    raw_pointer: int

    def contains(self, rva: int) -> bool:
        return self.virtual_address <= rva < self.virtual_address + max(
            self.virtual_size, self.raw_size
        )


class PEImage:
    """The parts of a PE/COFF image needed to locate the CLI metadata."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        if len(data) < 0x40 or data[:2] != b"MZ":
            raise MetadataFormatError("Missing MZ signature")
        (pe_offset,) = _unpack("<I", data, 0x3C)
        if data[pe_offset:pe_offset + 4] != b"PE\0\0":
            raise MetadataFormatError("Missing PE signature", offset=pe_offset)

        coff = pe_offset + 4
        (number_of_sections,) = _unpack("<H", data, coff + 2)
        (optional_size,) = _unpack("<H", data, coff + 16)
        optional = coff + 20
        (magic,) = _unpack("<H", data, optional)
        if magic == 0x10B:
            directories = optional + 96
        elif magic == 0x20B:
            directories = optional + 112
        else:
            raise MetadataFormatError(f"Unknown optional header magic {magic:#x}", offset=optional)

        (directory_count,) = _unpack("<I", data, directories - 4)
        if directory_count > CLI_HEADER_DIRECTORY:
            self.cli_header_rva, self.cli_header_size = _unpack(
                "<II", data, directories + CLI_HEADER_DIRECTORY * 8
            )
        else:
            self.cli_header_rva, self.cli_header_size = 0, 0

        self.sections: List[Section] = []
        table = optional + optional_size
        for index in range(number_of_sections):
            offset = table + index * 40
            raw_name = data[offset:offset + 8]
            virtual_size, virtual_address, raw_size, raw_pointer = _unpack(
                "<IIII", data, offset + 8
            )
            self.sections.append(
                Section(
                    name=raw_name.rstrip(b"\0").decode("ascii", errors="replace"),
                    virtual_address=virtual_address,
                    virtual_size=virtual_size,
                    raw_size=raw_size,
                    raw_pointer=raw_pointer,
                )
            )

    @property
    def is_managed(self) -> bool:
        return self.cli_header_rva != 0

    def rva_to_offset(self, rva: int) -> int:
        for section in self.sections:
            if section.contains(rva):
                return rva - section.virtual_address + section.raw_pointer
        raise MetadataFormatError(f"RVA {rva:#x} is outside every section")


@dataclass
class MethodDefinition:
    """A method row with its decoded signature."""

    name: str
    flags: int
    return_type: str
    parameter_types: List[str] = field(default_factory=list)

    @property
    def is_public(self) -> bool:
        return self.flags & MD_MEMBER_ACCESS_MASK == MD_PUBLIC

    @property
    def is_static(self) -> bool:
        return bool(self.flags & MD_STATIC)

    @property
    def is_special(self) -> bool:
        return bool(self.flags & (MD_SPECIAL_NAME | MD_RT_SPECIAL_NAME))

    @property
    def returns_void(self) -> bool:
        return self.return_type == PRIMITIVE_TYPE_NAMES[ELEMENT_TYPE_VOID]

    @property
    def is_inheritable(self) -> bool:
        """Public instance methods other than constructors are visible on derived types."""
        return self.is_public and not self.is_static and not self.flags & MD_RT_SPECIAL_NAME

    @property
    def signature_key(self) -> Tuple[str, Tuple[str, ...]]:
        return self.name, tuple(self.parameter_types)


@dataclass
class TypeDefinition:
    """A TypeDef row, resolved to display names."""

    index: int
    namespace: str
    name: str
    flags: int
    base_type: Optional[str]

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @property
    def is_interface(self) -> bool:
        return bool(self.flags & TD_INTERFACE)

    @property
    def is_enum(self) -> bool:
        return self.base_type == "System.Enum"

    @property
    def is_value_type(self) -> bool:
        return self.base_type == "System.ValueType" and self.full_name != "System.Enum"


class AssemblyMetadata:
    """
    Metadata tables of a managed module.

    Args:
        data: The complete file contents of the module

    Raises:
        MetadataFormatError: If the image is not a managed PE module
    """

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.image = PEImage(data)
        if not self.image.is_managed:
            raise MetadataFormatError("PE image has no CLI header")

        cli = self.image.rva_to_offset(self.image.cli_header_rva)
        metadata_rva, _metadata_size = _unpack("<II", data, cli + 8)
        self._root = self.image.rva_to_offset(metadata_rva)
        self.streams = self._read_stream_headers()
        self._read_table_header()
        self._rows_cache: Dict[int, List[Dict[str, int]]] = {}
        self._nested: Optional[Dict[int, int]] = None
        self._generic_names: Optional[Dict[Tuple[int, int], Dict[int, str]]] = None

    # ------------------------------------------------------------------
    # Metadata root and heaps
    # ------------------------------------------------------------------

    def _read_stream_headers(self) -> Dict[str, Tuple[int, int]]:
        data = self.data
        (signature,) = _unpack("<I", data, self._root)
        if signature != METADATA_SIGNATURE:
            raise MetadataFormatError("Bad metadata signature", offset=self._root)
        (version_length,) = _unpack("<I", data, self._root + 12)
        self.runtime_version = (
            data[self._root + 16:self._root + 16 + version_length]
            .rstrip(b"\0")
            .decode("ascii", errors="replace")
        )
        pos = self._root + 16 + version_length
        (stream_count,) = _unpack("<H", data, pos + 2)
        pos += 4

        streams: Dict[str, Tuple[int, int]] = {}
        for _ in range(stream_count):
            offset, size = _unpack("<II", data, pos)
            name_start = pos + 8
            name_end = data.find(b"\0", name_start, name_start + 32)
            if name_end < 0:
                raise MetadataFormatError("Unterminated stream name", offset=name_start)
            name = data[name_start:name_end].decode("ascii", errors="replace")
            streams[name] = (self._root + offset, size)
            pos = name_start + ((name_end - name_start + 1 + 3) & ~3)

        logger.debug(f"Metadata streams: {', '.join(streams)}")
        return streams

    def _stream(self, *names: str) -> Tuple[int, int]:
        for name in names:
            if name in self.streams:
                return self.streams[name]
        raise MetadataFormatError(f"Missing metadata stream {names[0]}")

    def string(self, index: int) -> str:
        start, size = self._stream("#Strings")
        if index >= size:
            raise MetadataFormatError(f"String index {index:#x} out of range")
        end = self.data.find(b"\0", start + index, start + size)
        if end < 0:
            end = start + size
        return self.data[start + index:end].decode("utf-8", errors="replace")

    def blob(self, index: int) -> bytes:
        start, size = self._stream("#Blob")
        if index >= size:
            raise MetadataFormatError(f"Blob index {index:#x} out of range")
        length, pos = read_compressed_uint(self.data, start + index)
        if pos + length > start + size:
            raise MetadataFormatError(f"Blob at {index:#x} overruns the heap")
        return self.data[pos:pos + length]

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _read_table_header(self) -> None:
        start, _size = self._stream("#~", "#-")
        (heap_sizes,) = _unpack("<B", self.data, start + 6)
        (valid,) = _unpack("<Q", self.data, start + 8)
        self._string_size = 4 if heap_sizes & 0x01 else 2
        self._guid_size = 4 if heap_sizes & 0x02 else 2
        self._blob_size = 4 if heap_sizes & 0x04 else 2

        pos = start + 24
        self.row_counts: Dict[int, int] = {}
        for table_id in range(64):
            if valid >> table_id & 1:
                (self.row_counts[table_id],) = _unpack("<I", self.data, pos)
                pos += 4
        if heap_sizes & 0x40:
            pos += 4

        self._table_offsets: Dict[int, int] = {}
        self._row_layouts: Dict[int, List[Tuple[str, int]]] = {}
        for table_id in sorted(self.row_counts):
            if table_id not in TABLE_SCHEMAS:
                # Later tables are never read, so their layout is irrelevant.
                logger.debug(f"Stopping table walk at unknown table {table_id:#x}")
                break
            layout = self._row_layout(table_id)
            self._table_offsets[table_id] = pos
            self._row_layouts[table_id] = layout
            pos += sum(size for _, size in layout) * self.row_counts[table_id]

    def _index_size(self, table_id: int) -> int:
        return 4 if self.row_counts.get(table_id, 0) >= 1 << 16 else 2

    def _coded_size(self, coded_name: str) -> int:
        bits, tables = CODED_INDEXES[coded_name]
        largest = max(self.row_counts.get(t, 0) for t in tables if t is not None)
        return 4 if largest >= 1 << (16 - bits) else 2

    def _row_layout(self, table_id: int) -> List[Tuple[str, int]]:
        _name, columns = TABLE_SCHEMAS[table_id]
        layout = []
        for column, kind in columns:
            if isinstance(kind, tuple):
                category, target = kind
                size = self._index_size(target) if category == "idx" else self._coded_size(target)
            elif kind == "str":
                size = self._string_size
            elif kind == "guid":
                size = self._guid_size
            elif kind == "blob":
                size = self._blob_size
            else:
                size = _FIXED_SIZES[kind]
            layout.append((column, size))
        return layout

    def row_count(self, table_id: int) -> int:
        return self.row_counts.get(table_id, 0)

    def rows(self, table_id: int) -> List[Dict[str, int]]:
        """Return every row of a table as column-name to raw-value mappings."""
        if table_id in self._rows_cache:
            return self._rows_cache[table_id]
        if table_id not in self._table_offsets:
            return []

        layout = self._row_layouts[table_id]
        pos = self._table_offsets[table_id]
        result = []
        for _ in range(self.row_counts[table_id]):
            row = {}
            for column, size in layout:
                (row[column],) = _unpack(_STRUCT_FORMATS[size], self.data, pos)
                pos += size
            result.append(row)
        self._rows_cache[table_id] = result
        return result

    def row(self, table_id: int, index: int) -> Dict[str, int]:
        """Return the row with a 1-based index."""
        rows = self.rows(table_id)
        if not 1 <= index <= len(rows):
            raise MetadataFormatError(f"Row {index} out of range for table {table_id:#x}")
        return rows[index - 1]

    @staticmethod
    def decode_coded(coded_name: str, value: int) -> Tuple[Optional[int], int]:
        """Split a coded index into (table id, 1-based row index)."""
        bits, tables = CODED_INDEXES[coded_name]
        tag = value & ((1 << bits) - 1)
        if tag >= len(tables):
            raise MetadataFormatError(f"Invalid {coded_name} tag {tag}")
        return tables[tag], value >> bits

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def _nested_map(self) -> Dict[int, int]:
        if self._nested is None:
            self._nested = {
                row["NestedClass"]: row["EnclosingClass"]
                for row in self.rows(NESTED_CLASS)
            }
        return self._nested

    def type_def_names(self, index: int) -> Tuple[str, str]:
        """Return (namespace, name) of a TypeDef, joining nested names with ``+``."""
        row = self.row(TYPE_DEF, index)
        name = self.string(row["TypeName"])
        enclosing = self._nested_map().get(index)
        seen = {index}
        while enclosing and enclosing not in seen:
            seen.add(enclosing)
            outer = self.row(TYPE_DEF, enclosing)
            name = f"{self.string(outer['TypeName'])}+{name}"
            row = outer
            enclosing = self._nested_map().get(enclosing)
        return self.string(row["TypeNamespace"]), name

    def type_ref_names(self, index: int) -> Tuple[str, str]:
        """Return (namespace, name) of a TypeRef, following nested-type scopes."""
        row = self.row(TYPE_REF, index)
        name = self.string(row["TypeName"])
        namespace = self.string(row["TypeNamespace"])
        scope_table, scope_index = self.decode_coded("ResolutionScope", row["ResolutionScope"])
        if scope_table == TYPE_REF and scope_index and scope_index != index:
            outer_namespace, outer_name = self.type_ref_names(scope_index)
            return outer_namespace, f"{outer_name}+{name}"
        return namespace, name

    def type_def_or_ref_name(self, coded_value: int, coded_name: str = "TypeDefOrRef") -> Optional[str]:
        table, index = self.decode_coded(coded_name, coded_value)
        if index == 0:
            return None
        if table == TYPE_DEF:
            namespace, name = self.type_def_names(index)
        elif table == TYPE_REF:
            namespace, name = self.type_ref_names(index)
        else:
            return self.decode_type_spec(index)
        return f"{namespace}.{name}" if namespace else name

    def decode_type_spec(self, index: int) -> str:
        row = self.row(TYPE_SPEC, index)
        decoder = SignatureDecoder(self, self.blob(row["Signature"]))
        return decoder.read_type()

    def _generic_param_names(self) -> Dict[Tuple[int, int], Dict[int, str]]:
        if self._generic_names is None:
            names: Dict[Tuple[int, int], Dict[int, str]] = {}
            for row in self.rows(GENERIC_PARAM):
                table, owner = self.decode_coded("TypeOrMethodDef", row["Owner"])
                names.setdefault((table, owner), {})[row["Number"]] = self.string(row["Name"])
            self._generic_names = names
        return self._generic_names

    def generic_param_name(self, owner_table: int, owner_index: int, number: int) -> Optional[str]:
        return self._generic_param_names().get((owner_table, owner_index), {}).get(number)

    # ------------------------------------------------------------------
    # Types and methods
    # ------------------------------------------------------------------

    def type_definitions(self) -> Iterator[TypeDefinition]:
        """Yield every TypeDef except the ``<Module>`` pseudo-type, in table order."""
        for index in range(2, self.row_count(TYPE_DEF) + 1):
            row = self.row(TYPE_DEF, index)
            namespace, name = self.type_def_names(index)
            yield TypeDefinition(
                index=index,
                namespace=namespace,
                name=name,
                flags=row["Flags"],
                base_type=self.type_def_or_ref_name(row["Extends"]),
            )

    def _method_indexes(self, type_index: int) -> range:
        type_count = self.row_count(TYPE_DEF)
        method_count = self.row_count(METHOD_PTR) or self.row_count(METHOD_DEF)
        start = self.row(TYPE_DEF, type_index)["MethodList"]
        if type_index < type_count:
            end = self.row(TYPE_DEF, type_index + 1)["MethodList"]
        else:
            end = method_count + 1
        start = max(start, 1)
        end = min(max(end, start), method_count + 1)
        return range(start, end)

    def base_type_indexes(self, type_index: int) -> List[int]:
        """TypeDef indexes of the base types defined in this module, nearest first."""
        chain: List[int] = []
        seen = {type_index}
        current = type_index
        while True:
            table, index = self.decode_coded("TypeDefOrRef", self.row(TYPE_DEF, current)["Extends"])
            if table != TYPE_DEF or index == 0 or index in seen:
                return chain
            chain.append(index)
            seen.add(index)
            current = index

    def _declared_methods(self, type_index: int) -> List[MethodDefinition]:
        result = []
        for index in self._method_indexes(type_index):
            if self.row_count(METHOD_PTR):
                index = self.row(METHOD_PTR, index)["Method"]
            row = self.row(METHOD_DEF, index)
            decoder = SignatureDecoder(
                self, self.blob(row["Signature"]), type_index=type_index, method_index=index
            )
            return_type, parameter_types = decoder.read_method_signature()
            result.append(
                MethodDefinition(
                    name=self.string(row["Name"]),
                    flags=row["Flags"],
                    return_type=return_type,
                    parameter_types=parameter_types,
                )
            )
        return result

    def methods(self, type_def: TypeDefinition, inherited: bool = False) -> List[MethodDefinition]:
        """
        Decode the methods of ``type_def`` in table order.

        With ``inherited``, public instance methods of base types defined in
        this module follow the declared ones, nearest base first. A base
        method is skipped when a nearer type declares the same name and
        parameter types. Bases referenced from other assemblies are not
        followed.
        """
        declared = self._declared_methods(type_def.index)
        if not inherited:
            return declared

        result = list(declared)
        hidden = {method.signature_key for method in declared}
        for base_index in self.base_type_indexes(type_def.index):
            for method in self._declared_methods(base_index):
                if method.is_inheritable and method.signature_key not in hidden:
                    result.append(method)
                    hidden.add(method.signature_key)
        return result


class SignatureDecoder:
    """Decodes a signature blob into reflection-style type names."""

    def __init__(
        self,
        metadata: AssemblyMetadata,
        blob: bytes,
        *,
        type_index: int = 0,
        method_index: int = 0,
    ) -> None:
        self.metadata = metadata
        self.blob = blob
        self.pos = 0
        self.type_index = type_index
        self.method_index = method_index

    def _byte(self) -> int:
        if self.pos >= len(self.blob):
            raise MetadataFormatError("Unexpected end of signature")
        value = self.blob[self.pos]
        self.pos += 1
        return value

    def _peek(self) -> int:
        if self.pos >= len(self.blob):
            raise MetadataFormatError("Unexpected end of signature")
        return self.blob[self.pos]

    def _uint(self) -> int:
        value, self.pos = read_compressed_uint(self.blob, self.pos)
        return value

    def _type_def_or_ref(self) -> str:
        encoded = self._uint()
        name = self.metadata.type_def_or_ref_name(encoded)
        if name is None:
            raise MetadataFormatError("Null type reference in signature")
        return name

    def _skip_custom_modifiers(self) -> None:
        while self.pos < len(self.blob) and self._peek() in (
            ELEMENT_TYPE_CMOD_REQD,
            ELEMENT_TYPE_CMOD_OPT,
        ):
            self.pos += 1
            self._uint()

    def read_method_signature(self) -> Tuple[str, List[str]]:
        """Decode a MethodDefSig, returning (return type, parameter types)."""
        calling_convention = self._byte()
        if calling_convention & SIG_GENERIC:
            self._uint()
        param_count = self._uint()
        return_type = self._read_return_or_param(allow_void=True)
        parameters = []
        for _ in range(param_count):
            if self.pos < len(self.blob) and self._peek() == ELEMENT_TYPE_SENTINEL:
                self.pos += 1
            parameters.append(self._read_return_or_param(allow_void=False))
        return return_type, parameters

    def _read_return_or_param(self, allow_void: bool) -> str:
        self._skip_custom_modifiers()
        element = self._peek()
        if element == ELEMENT_TYPE_VOID:
            if not allow_void:
                raise MetadataFormatError("void parameter in signature")
            self.pos += 1
            return PRIMITIVE_TYPE_NAMES[ELEMENT_TYPE_VOID]
        if element == ELEMENT_TYPE_BYREF:
            self.pos += 1
            return self.read_type() + "&"
        return self.read_type()

    def read_type(self) -> str:
        self._skip_custom_modifiers()
        element = self._byte()
        while element in (ELEMENT_TYPE_PINNED, ELEMENT_TYPE_SENTINEL):
            self._skip_custom_modifiers()
            element = self._byte()

        if element in PRIMITIVE_TYPE_NAMES and element != ELEMENT_TYPE_VOID:
            return PRIMITIVE_TYPE_NAMES[element]

        if element in (ELEMENT_TYPE_CLASS, ELEMENT_TYPE_VALUETYPE):
            return self._type_def_or_ref()
        if element == ELEMENT_TYPE_SZARRAY:
            return self.read_type() + "[]"
        if element == ELEMENT_TYPE_ARRAY:
            element_type = self.read_type()
            rank = self._uint()
            for _ in range(self._uint()):
                self._uint()
            for _ in range(self._uint()):
                self._uint()
            return element_type + ("[*]" if rank == 1 else "[" + "," * (rank - 1) + "]")
        if element == ELEMENT_TYPE_PTR:
            self._skip_custom_modifiers()
            if self._peek() == ELEMENT_TYPE_VOID:
                self.pos += 1
                return "System.Void*"
            return self.read_type() + "*"
        if element == ELEMENT_TYPE_BYREF:
            return self.read_type() + "&"
        if element == ELEMENT_TYPE_GENERICINST:
            self._byte()
            generic_type = self._type_def_or_ref()
            arguments = [self.read_type() for _ in range(self._uint())]
            return f"{generic_type}[{','.join(arguments)}]"
        if element == ELEMENT_TYPE_VAR:
            number = self._uint()
            name = self.metadata.generic_param_name(TYPE_DEF, self.type_index, number)
            return name or f"!{number}"
        if element == ELEMENT_TYPE_MVAR:
            number = self._uint()
            name = self.metadata.generic_param_name(METHOD_DEF, self.method_index, number)
            return name or f"!!{number}"
        if element == ELEMENT_TYPE_FNPTR:
            self.read_method_signature()
            return "System.IntPtr"
        raise MetadataFormatError(f"Unsupported element type {element:#x} in signature")
