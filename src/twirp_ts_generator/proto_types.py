"""Type definitions that are common in protobuf schemas."""

from __future__ import annotations

from google.protobuf.descriptor_pb2 import FieldDescriptorProto

TIMESTAMP_TYPE_NAME = ".google.protobuf.Timestamp"
TIMESTAMP_PROTO_FILE = "google/protobuf/timestamp.proto"
WELL_KNOWN_PROTO_PREFIX = "google/protobuf/"

PROTO_FILE_SUFFIXES = (".proto", ".protodevel")
TS_SUFFIX = ".ts"

# The wire JSON type of a model is its name with this suffix.
JSON_SUFFIX = "JSON"

PROTO_SCALAR_TO_TS = {
    FieldDescriptorProto.TYPE_DOUBLE: "number",
    FieldDescriptorProto.TYPE_FLOAT: "number",
    FieldDescriptorProto.TYPE_INT64: "number",
    FieldDescriptorProto.TYPE_UINT64: "number",
    FieldDescriptorProto.TYPE_INT32: "number",
    FieldDescriptorProto.TYPE_FIXED64: "number",
    FieldDescriptorProto.TYPE_FIXED32: "number",
    FieldDescriptorProto.TYPE_UINT32: "number",
    FieldDescriptorProto.TYPE_SFIXED32: "number",
    FieldDescriptorProto.TYPE_SFIXED64: "number",
    FieldDescriptorProto.TYPE_SINT32: "number",
    FieldDescriptorProto.TYPE_SINT64: "number",
    FieldDescriptorProto.TYPE_BOOL: "boolean",
    FieldDescriptorProto.TYPE_STRING: "string",
    FieldDescriptorProto.TYPE_BYTES: "string",
}


class ProtoFieldType:
    """Field kinds that refer to other declarations."""

    MESSAGE = FieldDescriptorProto.TYPE_MESSAGE
    ENUM = FieldDescriptorProto.TYPE_ENUM
    GROUP = FieldDescriptorProto.TYPE_GROUP


def is_repeated(field: FieldDescriptorProto) -> bool:
    """Whether the field carries the repeated label."""
    return field.HasField("label") and field.label == FieldDescriptorProto.LABEL_REPEATED
