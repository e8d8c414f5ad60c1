#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter - Image Metadata Reader

Read-only view over the CLR metadata of a managed executable image.

The classifier and the reference extractor only talk to ImageMetadata;
DnfileImage is the concrete reader built on dnfile/pefile. Any other reader
that answers the same questions can be passed in its place.
"""

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

import dnfile
import pefile
from dnfile.enums import CorHeaderEnum, MetadataTables

from sourcegetter_errors import MalformedImageError

# ELEMENT_TYPE -> (size, signed) for integer constants (not in dnfile.enums)
CONSTANT_INT_TYPES = {
    0x02: (1, False),  # BOOLEAN
    0x03: (2, False),  # CHAR
    0x04: (1, True),  # I1
    0x05: (1, False),  # U1
    0x06: (2, True),  # I2
    0x07: (2, False),  # U2
    0x08: (4, True),  # I4
    0x09: (4, False),  # U4
    0x0A: (8, True),  # I8
    0x0B: (8, False),  # U8
}


@dataclass(frozen=True)
class FieldInfo:
    """A field and its compile-time constant (None if it has none)"""

    name: str
    constant: Optional[int]


@dataclass(frozen=True)
class ResourceEntry:
    """A manifest resource of an image"""

    name: str
    embedded: bool
    data: Optional[bytes] = None


class ImageMetadata:
    """Interface of a parsed executable image"""

    @property
    def module_name(self) -> str:
        raise NotImplementedError

    @property
    def entry_point_type_name(self) -> Optional[str]:
        """Full name of the type declaring the entry point, None if absent"""
        raise NotImplementedError

    @property
    def version(self) -> Tuple[int, int, int, int]:
        raise NotImplementedError

    def find_type(self, full_name: str) -> Optional[Any]:
        """Return an opaque handle for the first type with this full name"""
        raise NotImplementedError

    def find_field(self, type_handle: Any, name: str) -> Optional[FieldInfo]:
        raise NotImplementedError

    def embedded_resources(self) -> Iterator[ResourceEntry]:
        raise NotImplementedError

    def assembly_references(self) -> List[str]:
        raise NotImplementedError

    def type_names(self) -> List[str]:
        """Full names of top-level, non compiler-generated types"""
        raise NotImplementedError


# ============================================================
# dnfile helpers
# ============================================================


def _text(item) -> str:
    """Heap string column -> str (dnfile wraps them in HeapItemString)"""
    if item is None:
        return ""
    value = getattr(item, "value", item)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _blob(item) -> Optional[bytes]:
    """Blob heap column -> bytes"""
    if item is None:
        return None
    if isinstance(item, (bytes, bytearray)):
        return bytes(item)
    value = getattr(item, "value", None)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return None


def _rows(table) -> list:
    if table is None:
        return []
    return list(table.rows)


def _ref_index(ref) -> Optional[int]:
    """1-based row index of a table reference"""
    if isinstance(ref, int):
        return ref
    return getattr(ref, "row_index", None)


def _ref_row(ref, table):
    row = getattr(ref, "row", None)
    if row is not None:
        return row
    index = _ref_index(ref)
    rows = _rows(table)
    if index is None or not 0 < index <= len(rows):
        return None
    return rows[index - 1]


def _full_name(type_row) -> str:
    namespace = _text(type_row.TypeNamespace)
    name = _text(type_row.TypeName)
    return f"{namespace}.{name}" if namespace else name


def decode_constant(element_type: int, value: Optional[bytes]) -> Optional[int]:
    """Decode an integer constant blob; non-integer constants give None"""
    layout = CONSTANT_INT_TYPES.get(element_type)
    if layout is None or value is None:
        return None
    size, signed = layout
    if len(value) < size:
        return None
    return int.from_bytes(value[:size], "little", signed=signed)


# ============================================================
# dnfile backed reader
# ============================================================


class DnfileImage(ImageMetadata):
    """ImageMetadata over a dnfile.dnPE parse of an in-memory image"""

    def __init__(self, raw_bytes: bytes):
        try:
            self._pe = dnfile.dnPE(data=bytes(raw_bytes))
        except pefile.PEFormatError as e:
            raise MalformedImageError(f"Not a PE image: {e}") from e

        net = getattr(self._pe, "net", None)
        if net is None or getattr(net, "mdtables", None) is None:
            raise MalformedImageError("Image has no CLR metadata")
        self._net = net
        self._tables = net.mdtables

    def _table(self, name: str):
        return getattr(self._tables, name, None)

    @property
    def module_name(self) -> str:
        assembly = _rows(self._table("Assembly"))
        if assembly:
            return _text(assembly[0].Name)
        module = _rows(self._table("Module"))
        if module:
            name = _text(module[0].Name)
            return name.rsplit(".", 1)[0] if "." in name else name
        return ""

    @property
    def version(self) -> Tuple[int, int, int, int]:
        assembly = _rows(self._table("Assembly"))
        if not assembly:
            return (0, 0, 0, 0)
        row = assembly[0]
        return (
            int(row.MajorVersion),
            int(row.MinorVersion),
            int(row.BuildNumber),
            int(row.RevisionNumber),
        )

    @property
    def entry_point_type_name(self) -> Optional[str]:
        header = self._net.struct
        if int(getattr(header, "Flags", 0)) & CorHeaderEnum.CLR_NATIVE_ENTRYPOINT:
            return None
        token = int(getattr(header, "EntryPointTokenOrRva", 0))
        if token == 0 or (token >> 24) != MetadataTables.MethodDef:
            return None

        method_index = token & 0xFFFFFF
        for type_row in _rows(self._table("TypeDef")):
            for ref in type_row.MethodList or []:
                if _ref_index(ref) == method_index:
                    return _full_name(type_row)
        return None

    def find_type(self, full_name: str):
        for type_row in _rows(self._table("TypeDef")):
            if _full_name(type_row) == full_name:
                return type_row
        return None

    def _constants_by_field(self) -> dict:
        constants = {}
        for row in _rows(self._table("Constant")):
            parent = row.Parent
            table_name = getattr(parent, "table_name", None)
            if table_name is None:
                table_name = getattr(getattr(parent, "table", None), "name", None)
            if table_name != "Field":
                continue
            constants[_ref_index(parent)] = (int(row.Type), _blob(row.Value))
        return constants

    def find_field(self, type_handle, name: str) -> Optional[FieldInfo]:
        field_table = self._table("Field")
        for ref in type_handle.FieldList or []:
            field_row = _ref_row(ref, field_table)
            if field_row is None or _text(field_row.Name) != name:
                continue
            element_type, value = self._constants_by_field().get(
                _ref_index(ref), (None, None)
            )
            return FieldInfo(name=name, constant=decode_constant(element_type, value))
        return None

    def embedded_resources(self) -> Iterator[ResourceEntry]:
        for resource in getattr(self._net, "resources", None) or []:
            data = getattr(resource, "data", None)
            embedded = isinstance(data, (bytes, bytearray))
            yield ResourceEntry(
                name=_text(resource.name),
                embedded=embedded,
                data=bytes(data) if embedded else None,
            )

    def assembly_references(self) -> List[str]:
        return [_text(row.Name) for row in _rows(self._table("AssemblyRef"))]

    def type_names(self) -> List[str]:
        nested = set()
        for row in _rows(self._table("NestedClass")):
            nested.add(_ref_index(row.NestedClass))

        names = []
        for index, type_row in enumerate(_rows(self._table("TypeDef")), start=1):
            if index in nested:
                continue
            name = _text(type_row.TypeName)
            if name.startswith("<"):
                continue
            names.append(_full_name(type_row))
        return names
