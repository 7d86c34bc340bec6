"""Serialization of messages and metadata records to XML or binary payloads."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from enum import IntEnum
from typing import Any

import msgpack

from .messages import (
    BlockInfo,
    BlockMetadata,
    BlockRequest,
    ChunkMetadata,
    FileDel,
    FileDescription,
    FileExist,
    FileInfo,
    FileList,
    FileRequest,
    FileUpdate,
    FormatRequest,
    IOOpType,
    IOoperation,
    LogicalBlockMetadata,
    MetaData,
    Reply,
    TaskOperation,
    TaskOpType,
)

TYPE_KEY = "__type__"
XML = "xml"
BINARY = "binary"


class CodecError(ValueError):
    """Raised when a value cannot be encoded or a payload cannot be decoded."""


_MESSAGE_FIELDS = ("origin", "destination")

_FILE_INFO_FIELDS = _MESSAGE_FIELDS + (
    "name",
    "hash_key",
    "size",
    "num_block",
    "num_primary_file",
    "type",
    "replica",
    "uploading",
    "blocks_metadata",
    "n_lblock",
    "is_input",
    "intended_block_size",
)

# The fields each type carries over the wire, in wire order.
_SCHEMA: dict[type, tuple[str, ...]] = {
    FileInfo: _FILE_INFO_FIELDS,
    FileUpdate: _MESSAGE_FIELDS
    + ("name", "size", "num_block", "num_primary_file", "blocks_metadata"),
    FileList: _MESSAGE_FIELDS + ("data",),
    BlockInfo: _MESSAGE_FIELDS
    + (
        "name",
        "primary_file",
        "file_name",
        "seq",
        "hash_key",
        "size",
        "type",
        "replica",
        "primary_seq",
        "offset",
        "foffset",
        "node",
        "l_node",
        "r_node",
        "is_committed",
        "content",
    ),
    Reply: _MESSAGE_FIELDS + ("message", "details"),
    FileRequest: _MESSAGE_FIELDS + ("name", "type", "generate"),
    BlockRequest: _MESSAGE_FIELDS
    + ("name", "hash_key", "off", "len", "should_read_partially"),
    FileDescription: _FILE_INFO_FIELDS
    + (
        "primary_files",
        "blocks",
        "hash_keys",
        "block_size",
        "offsets",
        "offsets_in_file",
        "chunk_sequences",
        "primary_sequences",
        "block_hosts",
        "logical_blocks",
        "num_static_blocks",
    ),
    FileDel: _MESSAGE_FIELDS + ("name",),
    FormatRequest: _MESSAGE_FIELDS,
    FileExist: _MESSAGE_FIELDS + ("name",),
    MetaData: _MESSAGE_FIELDS + ("name", "node", "content"),
    ChunkMetadata: (
        "name",
        "primary_file",
        "chunk_seq",
        "size",
        "offset",
        "foffset",
        "primary_seq",
    ),
    BlockMetadata: (
        "name",
        "file_name",
        "seq",
        "hash_key",
        "size",
        "type",
        "replica",
        "node",
        "l_node",
        "r_node",
        "is_committed",
        "chunks",
    ),
    IOoperation: _MESSAGE_FIELDS
    + ("operation", "option", "pos", "length", "block", "block_metadata"),
    LogicalBlockMetadata: (
        "file_name",
        "name",
        "host_name",
        "size",
        "hash_key",
        "primary_chunk_num",
        "replica_chunk_num",
        "physical_blocks",
    ),
    TaskOperation: _MESSAGE_FIELDS
    + ("operation", "job_id", "file", "tmg_id", "lblock_metadata"),
}

_BY_NAME: dict[str, type] = {cls.__name__: cls for cls in _SCHEMA}

_COERCE: dict[tuple[type, str], Any] = {
    (IOoperation, "operation"): IOOpType,
    (IOoperation, "block"): tuple,
    (TaskOperation, "operation"): TaskOpType,
}


def _to_plain(value: Any) -> Any:
    cls = type(value)
    if cls in _SCHEMA:
        plain: dict[str, Any] = {TYPE_KEY: cls.__name__}
        for name in _SCHEMA[cls]:
            plain[name] = _to_plain(getattr(value, name))
        return plain
    if isinstance(value, bool):
        return value
    if isinstance(value, (IntEnum, int)):
        return int(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    raise CodecError(f"cannot serialize value of type {cls.__name__}")


def _from_plain(value: Any) -> Any:
    if isinstance(value, dict):
        return _record_from_dict(value)
    if isinstance(value, list):
        return [_from_plain(item) for item in value]
    return value


def _record_from_dict(data: dict) -> Any:
    type_name = data.get(TYPE_KEY)
    cls = _BY_NAME.get(type_name) if isinstance(type_name, str) else None
    if cls is None:
        raise CodecError(f"unknown record type: {type_name!r}")
    kwargs: dict[str, Any] = {}
    for name in _SCHEMA[cls]:
        if name not in data:
            raise CodecError(f"{type_name} is missing field {name!r}")
        value = _from_plain(data[name])
        coerce = _COERCE.get((cls, name))
        if coerce is not None:
            try:
                value = coerce(value)
            except (ValueError, TypeError) as exc:
                raise CodecError(f"bad value for {type_name}.{name}: {value!r}") from exc
        kwargs[name] = value
    return cls(**kwargs)


def to_dict(message: Any) -> dict:
    """Turn a message or metadata record into a tagged plain dictionary."""
    if type(message) not in _SCHEMA:
        raise CodecError(f"{type(message).__name__} is not a serializable type")
    return _to_plain(message)


def from_dict(data: Any) -> Any:
    """Rebuild a message or metadata record from a tagged plain dictionary."""
    if not isinstance(data, dict):
        raise CodecError("serialized record must be a mapping")
    return _record_from_dict(data)


def _xml_element(tag: str, value: Any) -> ET.Element:
    element = ET.Element(tag)
    if isinstance(value, dict):
        element.set("t", "r")
        element.set("class", value[TYPE_KEY])
        for key, item in value.items():
            if key != TYPE_KEY:
                element.append(_xml_element(key, item))
    elif isinstance(value, list):
        element.set("t", "l")
        for item in value:
            element.append(_xml_element("item", item))
    elif isinstance(value, bool):
        element.set("t", "b")
        element.text = "1" if value else "0"
    elif isinstance(value, int):
        element.set("t", "i")
        element.text = str(value)
    else:
        element.set("t", "s")
        element.text = value
    return element


def _xml_value(element: ET.Element) -> Any:
    kind = element.get("t")
    text = element.text or ""
    if kind == "r":
        record: dict[str, Any] = {TYPE_KEY: element.get("class")}
        for child in element:
            record[child.tag] = _xml_value(child)
        return record
    if kind == "l":
        return [_xml_value(child) for child in element]
    if kind == "b":
        if text not in ("0", "1"):
            raise CodecError(f"bad boolean in <{element.tag}>: {text!r}")
        return text == "1"
    if kind == "i":
        try:
            return int(text)
        except ValueError as exc:
            raise CodecError(f"bad integer in <{element.tag}>: {text!r}") from exc
    if kind == "s":
        return text
    raise CodecError(f"unknown value kind {kind!r} in <{element.tag}>")


def encode(message: Any, serialization: str = BINARY) -> bytes:
    """Serialize a message; "xml" gives an XML document, anything else binary."""
    plain = to_dict(message)
    if serialization == XML:
        return ET.tostring(_xml_element("message", plain), encoding="utf-8", xml_declaration=True)
    try:
        return msgpack.packb(plain, use_bin_type=True)
    except (OverflowError, TypeError, ValueError) as exc:
        raise CodecError(f"cannot encode {type(message).__name__}: {exc}") from exc


def decode(payload: bytes, serialization: str = BINARY) -> Any:
    """Deserialize a payload produced by encode with the same serialization."""
    raw = bytes(payload)
    if serialization == XML:
        try:
            root = ET.fromstring(raw)
        except ET.ParseError as exc:
            raise CodecError(f"malformed XML payload: {exc}") from exc
        plain = _xml_value(root)
    else:
        try:
            plain = msgpack.unpackb(raw, raw=False)
        except (ValueError, TypeError, msgpack.UnpackException) as exc:
            raise CodecError(f"malformed binary payload: {exc}") from exc
    return from_dict(plain)